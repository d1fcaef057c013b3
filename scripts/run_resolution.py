import argparse
import logging
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.append(str(Path(__file__).parent.parent))

from src.acheron.core.config import build_registry, load_config
from src.acheron.core.log import AuditLog
from src.acheron.core.sim import step
from src.acheron.events.registry import Category
from src.acheron.reports.gazette import generate_gazette


def main():
    parser = argparse.ArgumentParser(description="Run repeated Acheron defeat resolutions.")
    parser.add_argument(
        "--config",
        type=str,
        default="data/config.yaml",
        help="Path to the resolution config YAML file.",
    )
    parser.add_argument("--category", type=str, default="Hostile", help="Event category to select from.")
    parser.add_argument("--victim", type=str, default="player", help="Actor ID of the defeated victim.")
    parser.add_argument(
        "--assailant", action="append", default=[], help="Actor ID of a victorious assailant. May be repeated."
    )
    parser.add_argument("--in-combat", action="store_true", help="Combat is still ongoing.")
    parser.add_argument("--rounds", type=int, default=5, help="Number of selections to run.")
    parser.add_argument(
        "--elapsed", type=float, default=12.0, help="Time units to advance cooldowns by between rounds."
    )
    parser.add_argument("--seed", type=int, help="Override the config's random seed.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    category = Category.from_name(args.category)
    if category is None:
        parser.error(f"Unknown category '{args.category}'.")

    config = load_config(Path(args.config))
    if args.seed is not None:
        config.seed = args.seed
    log = AuditLog()
    registry = build_registry(config, log=log)

    try:
        victim = registry.forms.actor(args.victim)
        assailants = [registry.forms.actor(a_id) for a_id in args.assailant]
    except ValueError as e:
        parser.error(str(e))

    print(f"Loaded registry from '{args.config}' with seed {config.seed}.")
    for tick in range(args.rounds):
        log.tick = tick
        quest = registry.select_quest(category, victim, assailants, args.in_combat)
        if quest is not None:
            print(f"Round {tick}: starting quest '{quest.id}' ({quest.name})")
        else:
            print(f"Round {tick}: no event available")
        step(registry, args.elapsed, tick=tick, log=log)
        print(generate_gazette(log, tick=tick))


if __name__ == "__main__":
    main()
