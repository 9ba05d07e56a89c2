"""
1) Parse a GEDCOM file.
2) Load its individuals and families into a FamilyTree, collecting rejected relations.
3) Validate birth dates.
4) Derive the relationships of a focus person.
5) Compute the layout.
"""

import argparse
import logging
from pathlib import Path

from kinship.models import FilterOptions
from kinship.parsing import load_gedcom


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kinship", description=__doc__.splitlines()[1])
    parser.add_argument("gedcom", type=Path, help="GEDCOM file to load")
    parser.add_argument("--focus", help="name (or part of it) of the person to describe")
    parser.add_argument("--limit", type=int, default=10, help="maximum lines per section")
    parser.add_argument("--no-in-laws", action="store_true", help="hide in-law relationships")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    limit = args.limit

    print(f"Parsing GEDCOM file: {args.gedcom}")
    tree, report = load_gedcom(args.gedcom)
    print(f"  Found {len(report.people)} persons and {report.relations} relationships")
    if report.rejected:
        print(f"  Rejected {len(report.rejected)} relationships:")
        for a_ref, b_ref, kind, exc in report.rejected[:limit]:
            print(f"    - {kind.value} {a_ref} -> {b_ref}: {type(exc).__name__}")

    print("Validating dates...")
    warnings = tree.validate()
    if warnings:
        print(f"  Found {len(warnings)} validation warnings:")
        for w in warnings[:limit]:
            print(f"    - {w}")
        if len(warnings) > limit:
            print(f"    ... and {len(warnings) - limit} more")
    else:
        print("  No validation issues found")

    if args.focus:
        matches = tree.search_people(args.focus)
        if not matches:
            print(f"No person matching {args.focus!r}")
            return 1
        focus = matches[0].person
        filters = FilterOptions(show_in_laws=not args.no_in_laws)
        related = tree.get_all_derived_relationships(focus.id, filters)
        print(f"Relationships of {focus.name} ({len(related)}):")
        for rel in related[:limit]:
            other = tree.get_person(rel.to_id)
            suffix = " (in-law)" if rel.is_in_law else ""
            print(f"    - {rel.label.value} of {other.name}{suffix}, distance {rel.distance}")

    print("Computing layout...")
    layout = tree.get_layout()
    for person in tree.list_people()[:limit]:
        x, y = layout[person.id]
        print(f"    - {person.name}: ({x:.0f}, {y:.0f})")

    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
