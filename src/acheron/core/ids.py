from typing import NewType

ActorId = NewType('ActorId', str)
FactionId = NewType('FactionId', str)
KeywordId = NewType('KeywordId', str)
LocationId = NewType('LocationId', str)
WorldSpaceId = NewType('WorldSpaceId', str)
QuestId = NewType('QuestId', str)
