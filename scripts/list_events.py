import argparse
import logging
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.append(str(Path(__file__).parent.parent))

from src.acheron.core.config import build_registry, load_config
from src.acheron.events.registry import Category, EventNotFoundError
from src.acheron.reports.gazette import render_event_table


def main():
    parser = argparse.ArgumentParser(description="List and configure Acheron resolution events.")
    parser.add_argument(
        "--config",
        type=str,
        default="data/config.yaml",
        help="Path to the resolution config YAML file.",
    )
    parser.add_argument(
        "--category", type=str, help="Only show this category (Hostile, Follower, Civilian, Guard, NPC)."
    )
    parser.add_argument(
        "--set", action="append", default=[], metavar="NAME=WEIGHT",
        help="Set the weight of an event in --category. May be repeated.",
    )
    parser.add_argument("--save", action="store_true", help="Persist weights after applying --set.")
    parser.add_argument("--hide-hidden", action="store_true", help="Omit events flagged Hidden.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    registry = build_registry(load_config(Path(args.config)))

    categories = list(Category)
    if args.category:
        category = Category.from_name(args.category)
        if category is None:
            parser.error(f"Unknown category '{args.category}'.")
        categories = [category]

    if args.set:
        if not args.category:
            parser.error("--set requires --category.")
        for assignment in args.set:
            name, sep, weight = assignment.rpartition("=")
            if not sep or not name:
                parser.error(f"Invalid --set value '{assignment}', expected NAME=WEIGHT.")
            try:
                new_weight = registry.set_event_weight(name, categories[0], int(weight))
            except ValueError:
                parser.error(f"Invalid weight in '{assignment}'.")
            except EventNotFoundError as e:
                print(f"Warning: {e}")
                continue
            print(f"Set weight of '{name}' to {new_weight}.")

    for category in categories:
        print(render_event_table(registry, category, include_hidden=not args.hide_hidden))

    if args.save:
        registry.save()
        print(f"Weights saved to {registry.weights_path}")


if __name__ == "__main__":
    main()
