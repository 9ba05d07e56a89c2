"""Plausibility checks for family tree data."""

from kinship.models import RelationKind
from kinship.settings import ValidationSettings, settings as default_settings
from kinship.store import GraphStore


def years_between(earlier, later) -> int:
    """Whole years from `earlier` to `later` (negative if reversed)."""
    years = later.year - earlier.year
    if (later.month, later.day) < (earlier.month, earlier.day):
        years -= 1
    return years


def validate_dates(store: GraphStore, config: ValidationSettings | None = None) -> list[str]:
    """
    Check parent/child birth dates for:
    - Impossible ages (child born before parent)
    - Parents younger than the configured minimum age

    Structural problems (cycles, self relations) cannot reach the store, so
    only date plausibility is checked here. Returns a list of warning messages.
    """
    config = config or default_settings.validation
    warnings: list[str] = []

    for rel in store.relations():
        if rel.kind is not RelationKind.PARENT:
            continue

        parent = store.get_person(rel.a)
        child = store.get_person(rel.b)
        if not (parent.birth_date and child.birth_date):
            continue

        if child.birth_date < parent.birth_date:
            warnings.append(f"Impossible: {child.name} born before parent {parent.name}")
        elif years_between(parent.birth_date, child.birth_date) < config.min_parent_age:
            warnings.append(
                f"Suspicious: {parent.name} was less than {config.min_parent_age} years "
                f"old when {child.name} was born"
            )

    return warnings
