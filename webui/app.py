import math
import sys
import threading
from pathlib import Path
from typing import Optional

# Add the project root to the Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from flask import Flask, jsonify, request

from src.acheron.core.config import build_registry, load_config
from src.acheron.events.registry import Category, EventNotFoundError, EventRegistry


app = Flask(__name__)

CONFIG_PATH = PROJECT_ROOT / "data" / "config.yaml"

# Registry served by the settings routes; built from CONFIG_PATH on first use
registry: Optional[EventRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> EventRegistry:
    global registry
    if registry is None:
        with _registry_lock:
            if registry is None:
                registry = build_registry(load_config(CONFIG_PATH))
    return registry


def _parse_category(name: str) -> Optional[Category]:
    return Category.from_name(name)


@app.route('/events/<category_name>')
def list_events(category_name):
    category = _parse_category(category_name)
    if category is None:
        return jsonify({"error": f"Unknown category '{category_name}'"}), 400
    events = get_registry().get_events(category, include_hidden=False)
    return jsonify({
        "category": category.name,
        "events": [{"name": name, "weight": weight} for name, weight in events],
    })


@app.route('/events/<category_name>/<path:event_name>/weight', methods=['POST'])
def set_weight(category_name, event_name):
    category = _parse_category(category_name)
    if category is None:
        return jsonify({"error": f"Unknown category '{category_name}'"}), 400
    data = request.get_json(silent=True) or {}
    weight = data.get("weight")
    if isinstance(weight, bool) or not isinstance(weight, (int, float)) or not math.isfinite(weight):
        return jsonify({"error": "Missing or invalid 'weight'"}), 400
    try:
        new_weight = get_registry().set_event_weight(event_name, category, weight)
    except EventNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"category": category.name, "name": event_name, "weight": new_weight})


@app.route('/save', methods=['POST'])
def save():
    reg = get_registry()
    reg.save()
    return jsonify({"status": "saved", "path": str(reg.weights_path) if reg.weights_path else None})


@app.route('/select', methods=['POST'])
def select():
    data = request.get_json(silent=True) or {}
    category = _parse_category(data.get("category", ""))
    if category is None:
        return jsonify({"error": f"Unknown category '{data.get('category')}'"}), 400

    reg = get_registry()
    try:
        victim = reg.forms.actor(data["victim"])
        assailants = [reg.forms.actor(a_id) for a_id in data.get("assailants", [])]
    except KeyError:
        return jsonify({"error": "Missing 'victim'"}), 400
    except ValueError as e:
        return jsonify({"error": str(e)}), 404

    quest = reg.select_quest(category, victim, assailants, bool(data.get("in_combat", False)))
    return jsonify({"category": category.name, "quest": quest.id if quest else None})


if __name__ == '__main__':
    app.run(debug=True)
