"""GEDCOM import and date handling utilities."""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from ged4py import GedcomReader

from kinship.errors import KinshipError
from kinship.models import Gender, RelationKind
from kinship.tree import FamilyTree

logger = logging.getLogger(__name__)


MONTH_MAP = {
    "JAN": 1,
    "JANUARY": 1,
    "FEB": 2,
    "FEBRUARY": 2,
    "MAR": 3,
    "MARCH": 3,
    "APR": 4,
    "APRIL": 4,
    "MAY": 5,
    "JUN": 6,
    "JUNE": 6,
    "JUL": 7,
    "JULY": 7,
    "AUG": 8,
    "AUGUST": 8,
    "SEP": 9,
    "SEPT": 9,
    "SEPTEMBER": 9,
    "OCT": 10,
    "OCTOBER": 10,
    "NOV": 11,
    "NOVEMBER": 11,
    "DEC": 12,
    "DECEMBER": 12,
}

SEX_MAP = {"M": Gender.MALE, "F": Gender.FEMALE, "U": Gender.UNDISCLOSED, "X": Gender.OTHER}

QUALIFIERS = re.compile(
    r"^(ABT\.?|ABOUT|BEF\.?|BEFORE|AFT\.?|AFTER|EST\.?|CAL\.?|FROM|TO|BET\.?|AND|CIRCA|CA\.?|AROUND):?\s*",
    flags=re.IGNORECASE,
)

# (pattern, order of the captured groups); "M" groups may be month names
DATE_PATTERNS = [
    (r"^(\d{4})-(\d{2})-(\d{2})$", "YMD"),  # 1839-08-29, 1746-00-00
    (r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$", "DMY"),  # 25 NOV 1954, 11 Aug. 1968, 02 May1838
    (r"^([A-Za-z]+)\.?,?\s*(\d{4})$", "MY"),  # NOV 1954, May, 1837
    (r"^(\d{4})$", "Y"),  # 1698
    (r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$", "MDY"),  # 01-27-1920, 1/15/1957
    (r"^(\d{1,2})\s+(\d{1,2})\s+(\d{4})$", "MDY"),  # 04 05 1911
    (r"^([A-Za-z]+)\.?\s*(\d{1,2}),?\s*(\d{4})$", "MDY"),  # April 17, 1850, SEPT. 17,1910
]


def parse_date_string(date_str: str | None) -> date | None:
    """
    Parse a free-form GEDCOM date into a `date`.

    Qualifiers (ABT, BEF, "around", ...), parentheses and trailing question
    marks are ignored; a missing month or day defaults to 1. Returns None if
    the date cannot be parsed.
    """
    if not date_str:
        return None

    s = date_str.strip().strip("()").rstrip("?")
    s = QUALIFIERS.sub("", s).strip()
    if not s:
        return None

    for pattern, order in DATE_PATTERNS:
        match = re.match(pattern, s)
        if not match:
            continue
        parts = dict(zip(order, match.groups()))

        month_raw = parts.get("M", "1")
        if month_raw.isdigit():
            month = int(month_raw)
        else:
            month = MONTH_MAP.get(month_raw.upper().rstrip("."))
            if month is None:
                continue
        try:
            return date(int(parts["Y"]), month or 1, int(parts.get("D", "1")) or 1)
        except ValueError:
            continue

    return None


def parse_gedcom(filepath: Path) -> GedcomReader:
    """Parse a GEDCOM file and return the reader object."""
    return GedcomReader(str(filepath))


def extract_name(indi) -> str:
    """Full display name of an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return "Unknown"

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_rec.value, tuple):
        parts = [p for p in name_rec.value if p]
        return " ".join(parts) if parts else "Unknown"

    # Fallback: string format "Given /Surname/"
    return str(name_rec.value).replace("/", "").strip() or "Unknown"


def extract_event_details(indi, tag: str) -> tuple[str | None, str | None]:
    """Extract date and place from an event tag (BIRT, DEAT, etc.)."""
    event = indi.sub_tag(tag)
    if event is None:
        return (None, None)

    date_rec = event.sub_tag("DATE")
    place_rec = event.sub_tag("PLAC")

    # ged4py may return DateValue objects
    date_val = str(date_rec.value) if date_rec and date_rec.value else None
    place_val = str(place_rec.value) if place_rec and place_rec.value else None
    return (date_val, place_val)


def extract_gender(indi) -> Gender | None:
    sex_rec = indi.sub_tag("SEX")
    if sex_rec is None or not sex_rec.value:
        return None
    return SEX_MAP.get(str(sex_rec.value).upper(), Gender.OTHER)


@dataclass
class ImportReport:
    people: dict[str, str] = field(default_factory=dict)  # GEDCOM xref -> person id
    relations: int = 0
    rejected: list[tuple[str, str, RelationKind, KinshipError]] = field(default_factory=list)


def import_records(reader: GedcomReader, tree: FamilyTree) -> ImportReport:
    """
    Load individuals and families into `tree`.

    Spouses and parents come from FAM records. Children of a family without
    any recorded parent are linked as explicit siblings. Relations the tree
    refuses (duplicates, cycles, clashes) are kept in the report instead of
    aborting the import. Non-standard tags (starting with _) are ignored.
    """
    report = ImportReport()

    # First pass: individuals
    for rec in reader.records0("INDI"):
        if rec.xref_id is None:
            continue

        birth_date_string, birth_place = extract_event_details(rec, "BIRT")
        person = tree.create_person(
            extract_name(rec),
            birth_date=parse_date_string(birth_date_string),
            location=birth_place,
            gender=extract_gender(rec),
        )
        report.people[rec.xref_id] = person.id

    def link(a_ref: str, b_ref: str, kind: RelationKind) -> None:
        a = report.people.get(a_ref)
        b = report.people.get(b_ref)
        if a is None or b is None:
            return
        try:
            tree.create_relation(a, b, kind)
            report.relations += 1
        except KinshipError as exc:
            logger.debug("Rejected %s %s -> %s: %r", kind.value, a_ref, b_ref, exc)
            report.rejected.append((a_ref, b_ref, kind, exc))

    # Second pass: families
    for rec in reader.records0("FAM"):
        if rec.xref_id is None:
            continue

        parents = [
            ref.xref_id
            for ref in (rec.sub_tag("HUSB"), rec.sub_tag("WIFE"))
            if ref is not None and ref.xref_id
        ]
        children = [child.xref_id for child in rec.sub_tags("CHIL") if child.xref_id]

        if len(parents) == 2:
            link(parents[0], parents[1], RelationKind.SPOUSE)
        for child in children:
            for parent in parents:
                link(parent, child, RelationKind.PARENT)
        if not parents:
            for child in children[1:]:
                link(children[0], child, RelationKind.SIBLING)

    return report


def load_gedcom(filepath: Path, tree: FamilyTree | None = None) -> tuple[FamilyTree, ImportReport]:
    tree = tree or FamilyTree()
    report = import_records(parse_gedcom(filepath), tree)
    return tree, report
