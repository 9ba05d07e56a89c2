"""Data classes for family tree entities."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import NamedTuple

from kinship.errors import UnknownRelationKind


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNDISCLOSED = "undisclosed"


class RelationKind(str, Enum):
    """Primitive relation kinds stored in the graph."""

    PARENT = "parent"
    SPOUSE = "spouse"
    SIBLING = "sibling"

    @property
    def symmetric(self) -> bool:
        return self is not RelationKind.PARENT

    @classmethod
    def parse(cls, value: "str | RelationKind") -> "RelationKind":
        """Validate a kind at the boundary, rejecting anything outside the closed set."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownRelationKind(value) from None


class RelationshipLabel(str, Enum):
    """Named relationship of `from` towards `to` (A is the GRANDPARENT of D)."""

    PARENT = "parent"
    CHILD = "child"
    GRANDPARENT = "grandparent"
    GRANDCHILD = "grandchild"
    SPOUSE = "spouse"
    SIBLING = "sibling"
    AUNT_UNCLE = "aunt/uncle"
    NIECE_NEPHEW = "niece/nephew"
    COUSIN = "cousin"
    PARENT_IN_LAW = "parent-in-law"
    CHILD_IN_LAW = "child-in-law"
    SIBLING_IN_LAW = "sibling-in-law"
    SPOUSES_PARENT = "spouse's-parent"  # married to one of to's parents
    NONE = "none"


class Position(NamedTuple):
    x: float
    y: float


@dataclass
class Person:
    id: str
    name: str
    birth_date: date | None = None
    summary: str | None = None
    location: str | None = None
    gender: Gender | None = None
    position: Position | None = None  # last computed layout, a hint only


@dataclass(frozen=True)
class Relation:
    id: str
    a: str
    b: str
    kind: RelationKind
    seq: int  # creation order, the stable tie-break everywhere

    @property
    def pair(self) -> tuple[str, str]:
        """Key used for duplicate detection; unordered for symmetric kinds."""
        if self.kind.symmetric:
            return tuple(sorted((self.a, self.b)))
        return (self.a, self.b)

    def other(self, person_id: str) -> str:
        return self.b if person_id == self.a else self.a

    def involves(self, person_id: str) -> bool:
        return person_id in (self.a, self.b)


@dataclass(frozen=True)
class DerivedRelationship:
    from_id: str
    to_id: str
    label: RelationshipLabel
    is_in_law: bool = False
    distance: int = 0
    generation: int = 0  # generations `to` sits below `from`; negative if above


@dataclass(frozen=True)
class SearchResult:
    person: Person
    label: RelationshipLabel | None = None
    distance: int | None = None


@dataclass(frozen=True)
class FilterOptions:
    """Which derived relationships a listing should keep."""

    show_in_laws: bool = True
    show_blood_relations: bool = True
    max_distance: int | None = None
    generation_depth: int | None = None  # generations above or below `from`

    def accepts(self, rel: DerivedRelationship) -> bool:
        if rel.label is RelationshipLabel.NONE:
            return False
        if rel.is_in_law and not self.show_in_laws:
            return False
        if not rel.is_in_law and not self.show_blood_relations:
            return False
        if self.max_distance is not None and rel.distance > self.max_distance:
            return False
        if self.generation_depth is not None and abs(rel.generation) > self.generation_depth:
            return False
        return True
