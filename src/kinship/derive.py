"""Named relationships between two people, derived from the primitive edges."""

import logging

import networkx as nx

from kinship.models import DerivedRelationship, RelationKind, RelationshipLabel as Label
from kinship.settings import DerivationSettings, settings as default_settings
from kinship.store import GraphStore

logger = logging.getLogger(__name__)

# from's label towards the person whose spouse it is, when from married into to's family
VIA_OWN_MARRIAGE = {
    Label.PARENT: Label.SPOUSES_PARENT,
    Label.CHILD: Label.CHILD_IN_LAW,
    Label.SIBLING: Label.SIBLING_IN_LAW,
}
# from's label towards to's spouse; a step-child keeps CHILD, marked only by is_in_law
VIA_THEIR_MARRIAGE = {
    Label.PARENT: Label.PARENT_IN_LAW,
    Label.SIBLING: Label.SIBLING_IN_LAW,
}


def classify(up: int, down: int) -> Label:
    """
    Label a blood path by its shape.

    `up` is the number of generations from `from` to the common ancestor and
    `down` the number from that ancestor to `to`.
    """
    if up == 0:
        return Label.PARENT if down == 1 else Label.GRANDPARENT
    if down == 0:
        return Label.CHILD if up == 1 else Label.GRANDCHILD
    if up == 1 and down == 1:
        return Label.SIBLING
    if up == 1:
        return Label.AUNT_UNCLE
    if down == 1:
        return Label.NIECE_NEPHEW
    return Label.COUSIN


def by_offset(offset: int) -> Label:
    """In-law label for a chain that is `offset` generations above `to`."""
    if offset >= 2:
        return Label.GRANDPARENT
    if offset <= -2:
        return Label.GRANDCHILD
    return {1: Label.PARENT_IN_LAW, 0: Label.SIBLING_IN_LAW, -1: Label.CHILD_IN_LAW}[offset]


class RelationshipDeriver:
    """
    Computes DerivedRelationship values on demand and caches them.

    Blood relations are found on a lineage graph whose edges point from child
    to parent. Each group of explicitly declared siblings hangs from one
    virtual parent node, so siblings without recorded parents still meet one
    generation up. No real parent is ever inferred from a sibling edge.
    """

    def __init__(self, store: GraphStore, config: DerivationSettings | None = None):
        self.store = store
        self.config = config or default_settings.derivation
        self._lineage: nx.DiGraph | None = None
        self._stale: set[str] = set()
        self._ancestors: dict[str, dict] = {}
        self._near: dict[str, dict[str, int]] = {}
        self._pairs: dict[tuple[str, str], DerivedRelationship] = {}
        store.subscribe(self.invalidate)

    def invalidate(self, affected: frozenset[str]) -> None:
        # `affected` is always a whole component, so no edge leaves it
        if self._lineage is not None:
            self._stale |= affected
        for pid in affected:
            self._ancestors.pop(pid, None)
            self._near.pop(pid, None)
        self._pairs = {
            pair: rel
            for pair, rel in self._pairs.items()
            if pair[0] not in affected and pair[1] not in affected
        }

    @property
    def lineage(self) -> nx.DiGraph:
        if self._lineage is None:
            self._lineage = self._build_lineage()
        elif self._stale:
            self._refresh_lineage(self._stale)
            self._stale = set()
        return self._lineage

    def _build_lineage(self) -> nx.DiGraph:
        lineage = nx.DiGraph()
        self._add_lineage(lineage, [p.id for p in self.store.people()])
        return lineage

    def _refresh_lineage(self, stale: set[str]) -> None:
        """Rebuild only the part of the lineage graph owned by `stale` people."""
        lineage = self._lineage
        lineage.remove_nodes_from(
            [n for n in lineage if not isinstance(n, str) and n[1] & stale]
        )
        lineage.remove_nodes_from(stale)
        self._add_lineage(lineage, [pid for pid in stale if self.store.has_person(pid)])
        logger.debug("Refreshed lineage for %d people", len(stale))

    def _add_lineage(self, lineage: nx.DiGraph, people: list[str]) -> None:
        lineage.add_nodes_from(people)

        siblings = nx.Graph()
        for pid in people:
            for rel in self.store.get_relations_for(pid):
                if rel.kind is RelationKind.PARENT and rel.b == pid:
                    lineage.add_edge(rel.b, rel.a)
                elif rel.kind is RelationKind.SIBLING:
                    siblings.add_edge(rel.a, rel.b)

        for group in nx.connected_components(siblings):
            # keyed by membership so ids stay stable across rebuilds
            node = ("siblings", frozenset(group))
            for member in group:
                lineage.add_edge(member, node)

    def _ancestry(self, person_id: str) -> dict:
        """Every ancestor node (real or virtual) with its generation distance."""
        if person_id not in self._ancestors:
            self._ancestors[person_id] = nx.single_source_shortest_path_length(
                self.lineage, person_id
            )
        return self._ancestors[person_id]

    def blood_path(self, from_id: str, to_id: str) -> tuple[int, int] | None:
        """(up, down) through the nearest common ancestor, or None."""
        ours = self._ancestry(from_id)
        theirs = self._ancestry(to_id)
        common = ours.keys() & theirs.keys()
        if not common:
            return None
        # fewest hops first, then the most balanced split
        return min(
            ((ours[n], theirs[n]) for n in common),
            key=lambda p: (p[0] + p[1], abs(p[0] - p[1]), p),
        )

    def _blood_near(self, person_id: str) -> dict[str, int]:
        """Real blood relatives within the in-law radius, with their distances."""
        if person_id in self._near:
            return self._near[person_id]

        radius = self.config.in_law_radius
        downward = self.lineage.reverse(copy=False)
        near: dict[str, int] = {}
        ups = nx.single_source_shortest_path_length(self.lineage, person_id, cutoff=radius)
        for ancestor, up in ups.items():
            downs = nx.single_source_shortest_path_length(downward, ancestor, cutoff=radius - up)
            for node, down in downs.items():
                if isinstance(node, str) and up + down < near.get(node, radius + 1):
                    near[node] = up + down

        self._near[person_id] = near
        return near

    def derive(self, from_id: str, to_id: str) -> DerivedRelationship:
        self.store.get_person(from_id)
        self.store.get_person(to_id)

        key = (from_id, to_id)
        if key not in self._pairs:
            self._pairs[key] = self._derive(from_id, to_id)
        return self._pairs[key]

    def _derive(self, from_id: str, to_id: str) -> DerivedRelationship:
        if from_id == to_id:
            return DerivedRelationship(from_id, to_id, Label.NONE)

        if to_id in self.store.spouses_of(from_id):
            return DerivedRelationship(from_id, to_id, Label.SPOUSE)

        path = self.blood_path(from_id, to_id)
        if path is not None:
            up, down = path
            return DerivedRelationship(
                from_id, to_id, classify(up, down), distance=up + down, generation=down - up
            )

        in_law = self._in_law(from_id, to_id)
        if in_law is not None:
            return in_law

        return DerivedRelationship(from_id, to_id, Label.NONE)

    def _in_law(self, from_id: str, to_id: str) -> DerivedRelationship | None:
        """
        Look for a marriage between a blood relative X of `from` and a blood
        relative Y of `to`, with at most `in_law_radius` blood hops in total.
        """
        radius = self.config.in_law_radius
        near_to = self._blood_near(to_id)

        best = None
        for x, d1 in self._blood_near(from_id).items():
            for y in self.store.spouses_of(x):
                d2 = near_to.get(y)
                if d2 is None or d1 + d2 > radius:
                    continue
                candidate = (d1 + d2, d1, x, y)
                if best is None or candidate[:2] < best[:2]:
                    best = candidate
        if best is None:
            return None

        total, d1, x, y = best
        up1, down1 = self.blood_path(from_id, x)
        up2, down2 = self.blood_path(y, to_id)
        generation = (down1 - up1) + (down2 - up2)
        if d1 == 0:
            label = classify(up2, down2)
            label = VIA_OWN_MARRIAGE.get(label, label)
        elif total == d1:
            label = classify(up1, down1)
            label = VIA_THEIR_MARRIAGE.get(label, label)
        else:
            label = by_offset(generation)

        logger.debug("In-law %s -> %s via %s = %s", from_id, to_id, (x, y), label.value)
        return DerivedRelationship(
            from_id, to_id, label, is_in_law=True, distance=total, generation=generation
        )

    def derive_all(self, from_id: str) -> list[DerivedRelationship]:
        """One result per person reachable from `from_id`, in BFS discovery order."""
        self.store.get_person(from_id)
        undirected = self.store.graph.to_undirected(as_view=True)
        return [self.derive(from_id, v) for _, v in nx.bfs_edges(undirected, from_id)]
