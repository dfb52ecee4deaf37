"""Command-line interface for seatassign."""

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np

from seatassign.errors import InputError
from seatassign.normalize import latest_preferences
from seatassign.optimizer import DEFAULT_CANDIDATES, optimize_seating
from seatassign.output import arrangement_to_dict, format_arrangement_csv, format_results
from seatassign.parser import create_class_template, parse_class_yaml, parse_roster_csv


def main(argv: list[str] | None = None) -> int:
    """Main entry point for seatassign CLI."""
    parser = argparse.ArgumentParser(
        description="Generate a classroom seating chart from student seating preferences.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  seatassign period3.yaml
  seatassign period3.yaml --roster roster.csv --seed 7
  seatassign period3.yaml --selection-index 2 --json chart.json
""",
    )
    parser.add_argument(
        "class_yaml",
        type=Path,
        help="Path to the class file (tables, students, preferences, settings)",
    )
    parser.add_argument(
        "--roster",
        type=Path,
        help="CSV roster with id,name columns (replaces the class file's students)",
    )
    parser.add_argument(
        "--candidates",
        type=int,
        default=DEFAULT_CANDIDATES,
        help=f"Number of candidate arrangements to generate (default: {DEFAULT_CANDIDATES})",
    )
    parser.add_argument(
        "--selection-index",
        type=int,
        default=0,
        help="Which ranked candidate to pick, usually the number of charts already made "
        "(default: 0 = best)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for a reproducible chart",
    )
    parser.add_argument(
        "--json",
        type=Path,
        help="Write the arrangement record as JSON to this path",
    )
    parser.add_argument(
        "--csv",
        type=Path,
        help="Write the seating chart as CSV to this path",
    )
    parser.add_argument(
        "--output-template",
        type=Path,
        help="Path for the class file template (default: class_template.yaml)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log optimizer progress",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    # Validate input files exist
    if not args.class_yaml.exists():
        print(f"Error: Class file not found: {args.class_yaml}", file=sys.stderr)
        return 1
    if args.roster and not args.roster.exists():
        print(f"Error: Roster file not found: {args.roster}", file=sys.stderr)
        return 1

    # Parse roster and class file
    roster = None
    if args.roster:
        try:
            roster = parse_roster_csv(args.roster)
        except Exception as e:
            print(f"Error parsing roster CSV: {e}", file=sys.stderr)
            return 1

    try:
        setup = parse_class_yaml(args.class_yaml, roster=roster)
    except Exception as e:
        print(f"Error parsing class file: {e}", file=sys.stderr)
        return 1

    print(
        f"Loaded {len(setup.students)} students, {len(setup.tables)} tables "
        f"and {len(setup.preferences)} preference submissions"
    )

    if not setup.tables:
        # No layout yet - write a template to fill in
        template_path = args.output_template or Path("class_template.yaml")
        create_class_template(template_path, setup.students)
        print(f"\nNo tables defined. Created template at: {template_path}")
        print("Add your tables to the class file, then run again.")
        return 1

    # Run optimization on the latest submission of each student
    try:
        result = optimize_seating(
            students=setup.students,
            tables=setup.tables,
            preferences=latest_preferences(setup.preferences),
            candidates=args.candidates,
            selection_index=args.selection_index,
            rng=np.random.default_rng(args.seed),
            constraints=setup.constraints,
            max_preferences=setup.max_preferences,
            priority=setup.priority,
        )
    except InputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Output results
    print()
    print(format_results(result, setup.name))

    if args.json:
        record = arrangement_to_dict(result)
        args.json.write_text(json.dumps(record, indent=2) + "\n", encoding="utf-8")
        print(f"Wrote arrangement record to {args.json}")
    if args.csv:
        args.csv.write_text(format_arrangement_csv(result), encoding="utf-8")
        print(f"Wrote seating chart CSV to {args.csv}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
