from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, Iterator, List, Tuple

from pygame.math import Vector3

if TYPE_CHECKING:
    from .agent import Neighbor

CellKey = Tuple[int, int, int]


class NeighborhoodIndex:
    """
    Non-owning lookup surface over every registered agent.

    `query` scans agents in registration order and keeps those strictly
    inside the radius and not exactly on the query point, which also drops
    the querying agent itself.
    """

    def __init__(self) -> None:
        self._agents: List["Neighbor"] = []
        self.queries = 0
        self.checks = 0

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator["Neighbor"]:
        return iter(self._agents)

    def register(self, agent: "Neighbor") -> None:
        self._agents.append(agent)

    def relocate(self, agent: "Neighbor") -> None:
        """Linear scans always read live positions; nothing to move."""

    def rebuild(self) -> None:
        pass

    def reset_counters(self) -> None:
        self.queries = 0
        self.checks = 0

    def query(self, position: Vector3, radius: float) -> List["Neighbor"]:
        self.queries += 1
        self.checks += len(self._agents)
        found: List["Neighbor"] = []
        append = found.append
        for agent in self._agents:
            distance = position.distance_to(agent.position)
            if 0.0 < distance < radius:
                append(agent)
        return found


class SpatialGridIndex(NeighborhoodIndex):
    """
    Uniform cubic grid over agent positions.

    Returns the same neighbor set as the linear scan; only the candidate set
    shrinks. Callers must `relocate` an agent after moving it so later queries
    in the same frame see the new position.
    """

    def __init__(self, cell_size: float) -> None:
        super().__init__()
        if cell_size <= 0.0:
            raise ValueError(f"cell_size must be > 0, got {cell_size}")
        self._cell_size = cell_size
        self._cells: Dict[CellKey, List["Neighbor"]] = {}
        self._agent_keys: Dict[int, CellKey] = {}

    @property
    def cell_size(self) -> float:
        return self._cell_size

    @property
    def occupied_cells(self) -> int:
        return sum(1 for bucket in self._cells.values() if bucket)

    def register(self, agent: "Neighbor") -> None:
        super().register(agent)
        self._insert(agent, self._cell_key(agent.position))

    def relocate(self, agent: "Neighbor") -> None:
        old_key = self._agent_keys.get(id(agent))
        new_key = self._cell_key(agent.position)
        if old_key == new_key:
            return
        if old_key is not None:
            bucket = self._cells.get(old_key)
            if bucket is not None:
                for slot, entry in enumerate(bucket):
                    if entry is agent:
                        del bucket[slot]
                        break
        self._insert(agent, new_key)

    def rebuild(self) -> None:
        for bucket in self._cells.values():
            bucket.clear()
        self._agent_keys.clear()
        for agent in self._agents:
            self._insert(agent, self._cell_key(agent.position))

    def query(self, position: Vector3, radius: float) -> List["Neighbor"]:
        self.queries += 1
        found: List["Neighbor"] = []
        if radius <= 0.0:
            return found
        base_x, base_y, base_z = self._cell_key(position)
        cell_range = int(math.ceil(radius / self._cell_size))
        cells = self._cells
        append = found.append
        checks = 0

        for dx in range(-cell_range, cell_range + 1):
            for dy in range(-cell_range, cell_range + 1):
                for dz in range(-cell_range, cell_range + 1):
                    bucket = cells.get((base_x + dx, base_y + dy, base_z + dz))
                    if not bucket:
                        continue
                    checks += len(bucket)
                    for agent in bucket:
                        distance = position.distance_to(agent.position)
                        if 0.0 < distance < radius:
                            append(agent)
        self.checks += checks
        return found

    def _insert(self, agent: "Neighbor", key: CellKey) -> None:
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
        bucket.append(agent)
        self._agent_keys[id(agent)] = key

    def _cell_key(self, position: Vector3) -> CellKey:
        size = self._cell_size
        return (int(position.x // size), int(position.y // size), int(position.z // size))


def build_index(kind: str, cell_size: float) -> NeighborhoodIndex:
    if kind == "linear":
        return NeighborhoodIndex()
    if kind == "grid":
        return SpatialGridIndex(cell_size)
    raise ValueError(f"Unknown neighbor index: {kind}")
