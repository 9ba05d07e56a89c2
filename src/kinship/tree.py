"""Main FamilyTree facade: mutations in, layouts and relationships out."""

import threading

from kinship.derive import RelationshipDeriver
from kinship.errors import InvalidSelfRelation, KinshipError
from kinship.layout import LayoutEngine
from kinship.models import (
    DerivedRelationship,
    FilterOptions,
    Person,
    Position,
    Relation,
    RelationKind,
    SearchResult,
)
from kinship.settings import Settings, settings as default_settings
from kinship.store import GraphStore
from kinship.validation import validate_dates


class FamilyTree:
    """
    Main interface for the relationship graph.

    Combines the graph store, relationship deriver and layout engine. Reads
    recompute whatever the last mutations made stale and cache the result.

    Usage:
        tree = FamilyTree()
        ann = tree.create_person("Ann")
        bob = tree.create_person("Bob")
        tree.create_relation(ann.id, bob.id, "parent")
        tree.get_derived_relationship(bob.id, ann.id).label  # CHILD
    """

    def __init__(self, config: Settings | None = None):
        self.config = config or default_settings
        self.store = GraphStore()
        self.deriver = RelationshipDeriver(self.store, self.config.derivation)
        self.layout_engine = LayoutEngine(self.store, self.config.layout)
        # one writer at a time; lazy cache fills count as writes
        self._lock = threading.RLock()

    # ─────────────────────────────────────────
    # People
    # ─────────────────────────────────────────

    def create_person(self, name: str, **attrs) -> Person:
        with self._lock:
            return self.store.add_person(name, **attrs)

    def update_person(self, person_id: str, **attrs) -> Person:
        with self._lock:
            return self.store.update_person(person_id, **attrs)

    def delete_person(self, person_id: str) -> None:
        with self._lock:
            self.store.remove_person(person_id)

    def get_person(self, person_id: str) -> Person:
        return self.store.get_person(person_id)

    def list_people(self) -> list[Person]:
        return self.store.people()

    # ─────────────────────────────────────────
    # Relations
    # ─────────────────────────────────────────

    def create_relation(self, a: str, b: str, kind: RelationKind | str) -> Relation:
        kind = RelationKind.parse(kind)
        if a == b:
            raise InvalidSelfRelation(a)
        with self._lock:
            return self.store.add_relation(a, b, kind)

    def add_parent(self, parent_id: str, child_id: str) -> Relation:
        return self.create_relation(parent_id, child_id, RelationKind.PARENT)

    def add_spouse(self, person1_id: str, person2_id: str) -> Relation:
        return self.create_relation(person1_id, person2_id, RelationKind.SPOUSE)

    def add_sibling(self, person1_id: str, person2_id: str) -> Relation:
        return self.create_relation(person1_id, person2_id, RelationKind.SIBLING)

    def add_relative(
        self, person_id: str, kind: RelationKind | str, name: str | None = None, **attrs
    ) -> tuple[Person, Relation]:
        """
        Create a new person already related to `person_id`.

        `kind` is the new person's role: parent, child, spouse or sibling.
        If the relation is refused the new person is removed again.
        """
        role = str(getattr(kind, "value", kind)).strip().lower()
        if role == "child":
            kind = RelationKind.PARENT
        else:
            kind = RelationKind.parse(role)
            role = kind.value

        with self._lock:
            self.store.get_person(person_id)
            relative = self.store.add_person(name or f"New {role}", **attrs)
            if role == "parent":
                a, b = relative.id, person_id
            else:
                a, b = person_id, relative.id
            try:
                relation = self.store.add_relation(a, b, kind)
            except KinshipError:
                self.store.remove_person(relative.id)
                raise
        return relative, relation

    def update_relation(
        self,
        relation_id: str,
        a: str | None = None,
        b: str | None = None,
        kind: RelationKind | str | None = None,
    ) -> Relation:
        if kind is not None:
            kind = RelationKind.parse(kind)
        with self._lock:
            current = self.store.get_relation(relation_id)
            new_a = current.a if a is None else a
            new_b = current.b if b is None else b
            if new_a == new_b:
                raise InvalidSelfRelation(new_a)
            return self.store.replace_relation(relation_id, new_a, new_b, kind)

    def delete_relation(self, relation_id: str) -> None:
        with self._lock:
            self.store.remove_relation(relation_id)

    def get_relations_for(self, person_id: str) -> list[Relation]:
        return self.store.get_relations_for(person_id)

    def list_relations(self) -> list[Relation]:
        return self.store.relations()

    # ─────────────────────────────────────────
    # Derived relationships
    # ─────────────────────────────────────────

    def get_derived_relationship(self, from_id: str, to_id: str) -> DerivedRelationship:
        with self._lock:
            return self.deriver.derive(from_id, to_id)

    def get_all_derived_relationships(
        self, from_id: str, filters: FilterOptions | None = None
    ) -> list[DerivedRelationship]:
        with self._lock:
            results = self.deriver.derive_all(from_id)
        if filters is not None:
            results = [rel for rel in results if filters.accepts(rel)]
        return results

    def search_people(self, query: str, focus_id: str | None = None) -> list[SearchResult]:
        """Case-insensitive name search, optionally annotated relative to `focus_id`."""
        needle = query.strip().lower()
        matches = [p for p in self.store.people() if needle in p.name.lower()]
        if focus_id is None:
            return [SearchResult(person=p) for p in matches]

        results = []
        for person in matches:
            rel = self.get_derived_relationship(focus_id, person.id)
            results.append(SearchResult(person=person, label=rel.label, distance=rel.distance))
        return results

    # ─────────────────────────────────────────
    # Layout
    # ─────────────────────────────────────────

    def get_layout(self) -> dict[str, Position]:
        with self._lock:
            positions = self.layout_engine.layout()
            for pid, position in positions.items():
                self.store.cache_position(pid, position)
        return positions

    def pin_position(self, person_id: str, x: float, y: float) -> None:
        with self._lock:
            self.layout_engine.pin(person_id, x, y)

    def clear_pinned_position(self, person_id: str) -> None:
        with self._lock:
            self.layout_engine.unpin(person_id)

    # ─────────────────────────────────────────
    # Validation
    # ─────────────────────────────────────────

    def validate(self) -> list[str]:
        return validate_dates(self.store, self.config.validation)
