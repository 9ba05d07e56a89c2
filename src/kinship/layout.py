"""Deterministic 2-D placement of people for display."""

import logging
import math

import networkx as nx

from kinship.models import Position
from kinship.settings import LayoutSettings, settings as default_settings
from kinship.store import GraphStore

logger = logging.getLogger(__name__)


class LayoutEngine:
    """
    Assign an (x, y) position to every person.

    Each connectivity component is laid out on its own and cached until the
    store reports it as affected. Components with parent edges get the
    hierarchical pass: generations stacked top to bottom, a family unit
    (person plus spouses) centered over its children. Everything else
    (isolated people, spouse or sibling only clusters, components whose
    generations cannot be settled) gets a deterministic force relaxation
    from a circular seed.

    Pinned people keep their manual position and serve as anchors for the
    rest of their component.
    """

    def __init__(self, store: GraphStore, config: LayoutSettings | None = None):
        self.store = store
        self.config = config or default_settings.layout
        self._pins: dict[str, Position] = {}
        self._local: dict[frozenset[str], dict[str, Position]] = {}
        self._layout: dict[str, Position] | None = None
        store.subscribe(self.invalidate)

    def invalidate(self, affected: frozenset[str]) -> None:
        self._layout = None
        self._local = {
            members: positions
            for members, positions in self._local.items()
            if not members & affected
        }
        for pid in affected:
            if pid in self._pins and not self.store.has_person(pid):
                del self._pins[pid]

    # ------------------------------------------------------------------
    # Manual overrides
    # ------------------------------------------------------------------

    def pin(self, person_id: str, x: float, y: float) -> None:
        self.store.get_person(person_id)
        self._pins[person_id] = Position(float(x), float(y))
        self.invalidate(frozenset(self.store.component_of(person_id)))

    def unpin(self, person_id: str) -> None:
        self.store.get_person(person_id)
        if self._pins.pop(person_id, None) is not None:
            self.invalidate(frozenset(self.store.component_of(person_id)))

    @property
    def pins(self) -> dict[str, Position]:
        return dict(self._pins)

    # ------------------------------------------------------------------
    # Whole graph
    # ------------------------------------------------------------------

    def layout(self) -> dict[str, Position]:
        if self._layout is not None:
            return dict(self._layout)

        anchored = []
        free = []
        for members in self.store.components():
            key = frozenset(members)
            if key not in self._local:
                logger.debug("Laying out component of %d people", len(members))
                self._local[key] = self._lay_out_component(members)
            if key & self._pins.keys():
                anchored.append(self._local[key])
            else:
                free.append(self._local[key])

        result: dict[str, Position] = {}
        for positions in anchored:
            result.update(positions)

        # free components go in a row to the right of anything pinned
        cursor = 0.0
        if result:
            cursor = max(p.x for p in result.values()) + self.config.component_gap
        for positions in free:
            min_x = min(p.x for p in positions.values())
            max_x = max(p.x for p in positions.values())
            min_y = min(p.y for p in positions.values())
            for pid, p in positions.items():
                result[pid] = Position(cursor + p.x - min_x, p.y - min_y)
            cursor += (max_x - min_x) + self.config.component_gap

        self._layout = result
        return dict(result)

    def _lay_out_component(self, members: list[str]) -> dict[str, Position]:
        pins = {m: self._pins[m] for m in members if m in self._pins}
        if len(members) == 1:
            return {members[0]: pins.get(members[0], Position(0.0, 0.0))}

        parent_view = self.store.parent_view().subgraph(members)
        depth = None
        if parent_view.number_of_edges() > 0 and nx.is_directed_acyclic_graph(parent_view):
            depth = self.generations(members, parent_view)
        hierarchical = depth is not None

        positions = self._hierarchical(members, depth) if hierarchical else self._seed(members)
        if pins:
            positions = self._anchor(positions, pins)
        if not hierarchical:
            positions = self._relax(members, positions, fixed=pins.keys())
        return positions

    @staticmethod
    def _anchor(positions: dict[str, Position], pins: dict[str, Position]) -> dict[str, Position]:
        """Shift a computed layout so it lines up with the pinned people."""
        dx = sum(p.x - positions[pid].x for pid, p in pins.items()) / len(pins)
        dy = sum(p.y - positions[pid].y for pid, p in pins.items()) / len(pins)
        shifted = {pid: Position(p.x + dx, p.y + dy) for pid, p in positions.items()}
        shifted.update(pins)
        return shifted

    # ------------------------------------------------------------------
    # Phase 1: hierarchical
    # ------------------------------------------------------------------

    def generations(self, members: list[str], parent_view=None) -> dict[str, int] | None:
        """
        Generation depth per person: one below the deepest parent.

        People without parents take the depth of their deepest spouse or
        sibling, so someone who married in sits beside their partner. Returns
        None when those two rules contradict each other (a sibling chain that
        leads back to an ancestor) and no stable layering exists.
        """
        store = self.store
        if parent_view is None:
            parent_view = store.parent_view().subgraph(members)
        topo = list(nx.topological_sort(parent_view))
        depth = {m: 0 for m in members}

        for _ in range(2 * len(members) + 2):
            changed = False
            for node in topo:
                for child in store.children_of(node):
                    if depth[child] < depth[node] + 1:
                        depth[child] = depth[node] + 1
                        changed = True
            for node in members:
                if store.parents_of(node):
                    continue
                peers = store.spouses_of(node) + store.siblings_of(node)
                target = max((depth[p] for p in peers), default=0)
                if target > depth[node]:
                    depth[node] = target
                    changed = True
            if not changed:
                break
        else:
            logger.debug("Generations did not settle for component of %d people", len(members))
            return None
        return depth

    def _hierarchical(self, members: list[str], depth: dict[str, int]) -> dict[str, Position]:
        order = {m: i for i, m in enumerate(members)}
        roots = sorted(
            (m for m in members if not self.store.parents_of(m)),
            key=lambda m: (depth[m], order[m]),
        )

        visited: set[str] = set()
        xs: dict[str, float] = {}
        cursor = 0.0
        for start in roots + members:
            if start in visited:
                continue
            width, sub = self._subtree(start, depth, visited)
            for pid, x in sub.items():
                xs[pid] = cursor + x
            cursor += width

        gap = self.config.generation_gap
        return {m: Position(xs[m], depth[m] * gap) for m in members}

    def _subtree(self, pid: str, depth: dict[str, int], visited: set[str]) -> tuple[float, dict[str, float]]:
        """Width of the subtree rooted at `pid`'s family unit and x offsets inside it."""
        store = self.store
        cfg = self.config

        unit = [pid] + [
            s for s in store.spouses_of(pid) if s not in visited and depth[s] == depth[pid]
        ]
        visited.update(unit)

        kids: list[str] = []
        for member in unit:
            for child in store.children_of(member):
                if child in visited:
                    continue
                kids.append(child)
                visited.add(child)
                # explicit siblings without recorded parents stand next to the child
                for sib in store.siblings_of(child):
                    if sib not in visited and not store.parents_of(sib):
                        kids.append(sib)
                        visited.add(sib)

        blocks = [self._subtree(kid, depth, visited) for kid in kids]
        children_width = sum(w for w, _ in blocks)
        unit_width = (len(unit) - 1) * cfg.spouse_offset + cfg.node_spacing
        width = max(unit_width, children_width)

        xs: dict[str, float] = {}
        cursor = (width - children_width) / 2
        for w, sub in blocks:
            for node, x in sub.items():
                xs[node] = cursor + x
            cursor += w

        left = (width - unit_width) / 2 + cfg.node_spacing / 2
        for i, member in enumerate(unit):
            xs[member] = left + i * cfg.spouse_offset
        return width, xs

    # ------------------------------------------------------------------
    # Phase 2: relaxation
    # ------------------------------------------------------------------

    def _seed(self, members: list[str]) -> dict[str, Position]:
        n = len(members)
        radius = min(self.config.seed_radius, n * 50.0)
        return {
            pid: Position(
                radius * math.cos(2 * math.pi * i / n),
                radius * math.sin(2 * math.pi * i / n),
            )
            for i, pid in enumerate(members)
        }

    def _relax(self, members: list[str], positions: dict[str, Position], fixed) -> dict[str, Position]:
        cfg = self.config
        member_set = set(members)
        edges = [
            (r.a, r.b) for r in self.store.relations() if r.a in member_set and r.b in member_set
        ]
        pos = {pid: [p.x, p.y] for pid, p in positions.items()}
        max_step = cfg.target_spacing

        for _ in range(cfg.relax_iterations):
            disp = {pid: [0.0, 0.0] for pid in members}

            for i, u in enumerate(members):
                for v in members[i + 1:]:
                    dx = pos[v][0] - pos[u][0]
                    dy = pos[v][1] - pos[u][1]
                    dist = math.hypot(dx, dy)
                    if dist < 1e-6:
                        dx, dy, dist = 1.0, 0.0, 1.0
                    force = cfg.repulsion / (dist * dist)
                    disp[u][0] -= dx / dist * force
                    disp[u][1] -= dy / dist * force
                    disp[v][0] += dx / dist * force
                    disp[v][1] += dy / dist * force

            for u, v in edges:
                dx = pos[v][0] - pos[u][0]
                dy = pos[v][1] - pos[u][1]
                dist = math.hypot(dx, dy)
                if dist < 1e-6:
                    continue
                force = cfg.attraction * (dist - cfg.target_spacing)
                disp[u][0] += dx / dist * force
                disp[u][1] += dy / dist * force
                disp[v][0] -= dx / dist * force
                disp[v][1] -= dy / dist * force

            for pid in members:
                if pid in fixed:
                    continue
                step_x = cfg.damping * disp[pid][0]
                step_y = cfg.damping * disp[pid][1]
                length = math.hypot(step_x, step_y)
                if length > max_step:
                    step_x *= max_step / length
                    step_y *= max_step / length
                pos[pid][0] += step_x
                pos[pid][1] += step_y

        return {pid: Position(x, y) for pid, (x, y) in pos.items()}
