"""Canonical person/relation graph and its structural invariants."""

import itertools
import logging
import uuid
from collections.abc import Callable, Iterable

import networkx as nx

from kinship.errors import (
    ConflictingRelation,
    CycleDetected,
    DuplicateRelation,
    InvalidSelfRelation,
    KinshipError,
    NotFound,
)
from kinship.models import Gender, Person, Position, Relation, RelationKind

logger = logging.getLogger(__name__)

Listener = Callable[[frozenset[str]], None]

EDITABLE_FIELDS = ("name", "birth_date", "summary", "location", "gender")
EXCLUSIVE_KINDS = {RelationKind.SPOUSE, RelationKind.SIBLING}


def _new_id() -> str:
    return uuid.uuid4().hex


class GraphStore:
    """
    Owns every Person node and Relation edge.

    Relations live in a networkx MultiDiGraph keyed by relation id, so a pair
    of people may carry several edges of different kinds. Every mutation goes
    through the invariant checks here; subscribers are told which connectivity
    component was touched so they can drop cached results for it.
    """

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self._people: dict[str, Person] = {}
        self._relations: dict[str, Relation] = {}
        self._listeners: list[Listener] = []
        self._seq = itertools.count()

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self, affected: Iterable[str]) -> None:
        affected = frozenset(affected)
        for listener in self._listeners:
            listener(affected)

    # ------------------------------------------------------------------
    # People
    # ------------------------------------------------------------------

    def add_person(self, name: str, **attrs) -> Person:
        person = Person(id=_new_id(), name=name)
        self._apply_attrs(person, attrs)
        self._people[person.id] = person
        self.graph.add_node(person.id)
        logger.debug("Added person %s (%s)", person.id, name)
        self._notify({person.id})
        return person

    def update_person(self, person_id: str, **attrs) -> Person:
        person = self.get_person(person_id)
        self._apply_attrs(person, attrs)
        return person

    @staticmethod
    def _apply_attrs(person: Person, attrs: dict) -> None:
        unknown = set(attrs) - set(EDITABLE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown person attributes: {sorted(unknown)}")
        if attrs.get("gender") is not None:
            attrs["gender"] = Gender(attrs["gender"])
        for key, value in attrs.items():
            setattr(person, key, value)

    def remove_person(self, person_id: str) -> None:
        self.get_person(person_id)
        affected = self.component_of(person_id)

        for rel in self._incident(person_id):
            del self._relations[rel.id]
        self.graph.remove_node(person_id)
        del self._people[person_id]

        logger.debug("Removed person %s and its relations", person_id)
        self._notify(affected)

    def get_person(self, person_id: str) -> Person:
        try:
            return self._people[person_id]
        except KeyError:
            raise NotFound(person_id) from None

    def has_person(self, person_id: str) -> bool:
        return person_id in self._people

    def people(self) -> list[Person]:
        return list(self._people.values())

    def cache_position(self, person_id: str, position: Position) -> None:
        """Record the last computed position; does not invalidate anything."""
        self._people[person_id].position = position

    def creation_index(self) -> dict[str, int]:
        return {pid: i for i, pid in enumerate(self._people)}

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def add_relation(self, a: str, b: str, kind: RelationKind | str) -> Relation:
        kind = RelationKind.parse(kind)
        rel = Relation(id=_new_id(), a=a, b=b, kind=kind, seq=next(self._seq))
        self._check(rel)
        self._insert(rel)
        logger.debug("Added %s relation %s: %s -> %s", kind.value, rel.id, a, b)
        self._notify(self.component_of(a))
        return rel

    def remove_relation(self, relation_id: str) -> None:
        rel = self.get_relation(relation_id)
        affected = self.component_of(rel.a)
        self._delete(rel)
        logger.debug("Removed relation %s", relation_id)
        self._notify(affected)

    def replace_relation(
        self,
        relation_id: str,
        a: str | None = None,
        b: str | None = None,
        kind: RelationKind | str | None = None,
    ) -> Relation:
        """
        Change the endpoints and/or kind of an existing relation.

        Checked as a removal followed by an insertion. The relation keeps its
        id and creation order. If the new edge violates an invariant the old
        edge is put back and the failure propagates.
        """
        old = self.get_relation(relation_id)
        new = Relation(
            id=old.id,
            a=old.a if a is None else a,
            b=old.b if b is None else b,
            kind=old.kind if kind is None else RelationKind.parse(kind),
            seq=old.seq,
        )
        affected = set(self.component_of(old.a))

        self._delete(old)
        try:
            self._check(new)
        except KinshipError:
            self._insert(old)
            raise
        self._insert(new)

        affected |= self.component_of(new.a)
        logger.debug("Replaced relation %s with %s %s -> %s", old.id, new.kind.value, new.a, new.b)
        self._notify(affected)
        return new

    def get_relation(self, relation_id: str) -> Relation:
        try:
            return self._relations[relation_id]
        except KeyError:
            raise NotFound(relation_id, "relation") from None

    def get_relations_for(self, person_id: str) -> list[Relation]:
        self.get_person(person_id)
        return self._incident(person_id)

    def relations(self) -> list[Relation]:
        return sorted(self._relations.values(), key=lambda r: r.seq)

    def _insert(self, rel: Relation) -> None:
        self._relations[rel.id] = rel
        self.graph.add_edge(rel.a, rel.b, key=rel.id, kind=rel.kind)

    def _delete(self, rel: Relation) -> None:
        self.graph.remove_edge(rel.a, rel.b, key=rel.id)
        del self._relations[rel.id]

    def _check(self, rel: Relation) -> None:
        """Raise the typed failure for the first invariant `rel` would break."""
        if rel.a == rel.b:
            raise InvalidSelfRelation(rel.a)
        for person_id in (rel.a, rel.b):
            self.get_person(person_id)

        for existing in self._between(rel.a, rel.b):
            if existing.kind is rel.kind and existing.pair == rel.pair:
                raise DuplicateRelation(existing.id)
            if {existing.kind, rel.kind} == EXCLUSIVE_KINDS:
                raise ConflictingRelation(existing.id)

        # a parent edge a -> b closes a cycle iff b already reaches a
        if rel.kind is RelationKind.PARENT and nx.has_path(self.parent_view(), rel.b, rel.a):
            raise CycleDetected(rel.a, rel.b)

    # ------------------------------------------------------------------
    # Traversal helpers
    # ------------------------------------------------------------------

    def _incident(self, person_id: str) -> list[Relation]:
        keys = [k for _, _, k in self.graph.out_edges(person_id, keys=True)]
        keys += [k for _, _, k in self.graph.in_edges(person_id, keys=True)]
        return sorted((self._relations[k] for k in keys), key=lambda r: r.seq)

    def _between(self, a: str, b: str) -> list[Relation]:
        keys = list(self.graph.get_edge_data(a, b, default={}))
        keys += list(self.graph.get_edge_data(b, a, default={}))
        return [self._relations[k] for k in keys]

    def parents_of(self, person_id: str) -> list[str]:
        return [
            r.a
            for r in self._incident(person_id)
            if r.kind is RelationKind.PARENT and r.b == person_id
        ]

    def children_of(self, person_id: str) -> list[str]:
        return [
            r.b
            for r in self._incident(person_id)
            if r.kind is RelationKind.PARENT and r.a == person_id
        ]

    def spouses_of(self, person_id: str) -> list[str]:
        return [
            r.other(person_id)
            for r in self._incident(person_id)
            if r.kind is RelationKind.SPOUSE
        ]

    def siblings_of(self, person_id: str) -> list[str]:
        return [
            r.other(person_id)
            for r in self._incident(person_id)
            if r.kind is RelationKind.SIBLING
        ]

    def parent_view(self) -> nx.MultiDiGraph:
        """Read-only view restricted to parent -> child edges."""
        graph = self.graph
        return nx.subgraph_view(
            graph,
            filter_edge=lambda u, v, k: graph.edges[u, v, k]["kind"] is RelationKind.PARENT,
        )

    def component_of(self, person_id: str) -> set[str]:
        return nx.node_connected_component(self.graph.to_undirected(as_view=True), person_id)

    def components(self) -> list[list[str]]:
        """Connectivity components, members in creation order, earliest component first."""
        order = self.creation_index()
        comps = [
            sorted(comp, key=order.__getitem__)
            for comp in nx.connected_components(self.graph.to_undirected(as_view=True))
        ]
        return sorted(comps, key=lambda members: order[members[0]])
