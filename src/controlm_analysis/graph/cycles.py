"""
Cycle Detection Module

Finds strongly connected components with networkx, whose SCC search is
non-recursive, so very long dependency chains never hit the interpreter
recursion limit. Circular dependencies are reported as findings, never as
failures.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import networkx as nx

from .builder import DependencyGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleReport:
    """Strongly connected components and the cycles among them."""
    components: Tuple[Tuple[int, ...], ...]
    component_of: Tuple[int, ...]
    cycles: Tuple[Tuple[int, ...], ...]
    in_cycle: Tuple[bool, ...]

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    def participates_in_cycle(self, job_id: int) -> bool:
        return self.in_cycle[job_id]


class CycleDetector:
    """Computes SCCs over a DependencyGraph in O(V+E)."""

    def detect(self, graph: DependencyGraph) -> CycleReport:
        # Component ids follow the smallest member id, whatever order networkx yields
        components = sorted(
            (tuple(sorted(scc)) for scc in nx.strongly_connected_components(graph.to_networkx())),
            key=lambda members: members[0],
        )

        component_of = [0] * graph.node_count
        for comp_id, members in enumerate(components):
            for job_id in members:
                component_of[job_id] = comp_id

        cycles = []
        in_cycle = [False] * graph.node_count
        for members in components:
            first = members[0]
            if len(members) > 1 or first in graph.successors[first]:
                cycles.append(self._cycle_path(graph, members))
                for job_id in members:
                    in_cycle[job_id] = True

        if cycles:
            jobs_in_cycles = sum(len(c) for c in cycles)
            logger.info(f"Detected {len(cycles)} circular dependencies involving {jobs_in_cycles} jobs")
        else:
            logger.info("No circular dependencies detected")

        return CycleReport(
            components=tuple(components),
            component_of=tuple(component_of),
            cycles=tuple(cycles),
            in_cycle=tuple(in_cycle),
        )

    @staticmethod
    def _cycle_path(graph: DependencyGraph, members: Tuple[int, ...]) -> Tuple[int, ...]:
        """
        Order a cyclic component for reporting.

        A simple loop (every member has exactly one successor inside the
        component) is walked along its edges starting from the smallest id,
        so A -> C -> B -> A reads (A, C, B). Components with branching have no
        single loop order and keep ascending ids.
        """
        member_set = set(members)
        inner = {m: [s for s in graph.successors[m] if s in member_set] for m in members}
        if any(len(targets) != 1 for targets in inner.values()):
            return members

        path = [members[0]]
        current = inner[members[0]][0]
        while current != members[0]:
            path.append(current)
            current = inner[current][0]
        return tuple(path)
