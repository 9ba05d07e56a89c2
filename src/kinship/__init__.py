"""Family relationship graph: invariant-checked store, relationship derivation and layout."""

from kinship.errors import (
    ConflictingRelation,
    CycleDetected,
    DuplicateRelation,
    InvalidSelfRelation,
    KinshipError,
    NotFound,
    UnknownRelationKind,
)
from kinship.models import (
    DerivedRelationship,
    FilterOptions,
    Gender,
    Person,
    Position,
    Relation,
    RelationKind,
    RelationshipLabel,
    SearchResult,
)
from kinship.tree import FamilyTree

__all__ = [
    "FamilyTree",
    # Models
    "DerivedRelationship",
    "FilterOptions",
    "Gender",
    "Person",
    "Position",
    "Relation",
    "RelationKind",
    "RelationshipLabel",
    "SearchResult",
    # Errors
    "KinshipError",
    "NotFound",
    "InvalidSelfRelation",
    "DuplicateRelation",
    "ConflictingRelation",
    "CycleDetected",
    "UnknownRelationKind",
]
