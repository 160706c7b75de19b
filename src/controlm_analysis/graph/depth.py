"""
Dependency Depth Module

Computes how many upstream levels sit above each job. Depth is measured on
the condensation graph (each SCC collapsed to one node), which is acyclic, so
every job gets a finite depth and all members of a cycle share one value.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import networkx as nx

from ..errors import AnalysisError
from .builder import DependencyGraph
from .cycles import CycleReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DepthReport:
    """Per-job and per-component depth values."""
    depths: Tuple[int, ...]
    component_depths: Tuple[int, ...]
    topological_order: Optional[Tuple[int, ...]]

    @property
    def max_depth(self) -> int:
        return max(self.depths, default=0)


class DepthCalculator:
    """Longest-path depth over the condensation graph."""

    def calculate(self, graph: DependencyGraph, cycles: CycleReport) -> DepthReport:
        component_count = len(cycles.components)
        component_of = cycles.component_of

        # condensation() numbers its nodes by position in the scc list
        condensed = nx.condensation(graph.to_networkx(), scc=[set(m) for m in cycles.components])

        try:
            # Ties between ready components go to the smallest member id
            order = list(nx.lexicographical_topological_sort(
                condensed, key=lambda comp: cycles.components[comp][0]
            ))
        except nx.NetworkXUnfeasible as e:
            raise AnalysisError("Condensation graph is not acyclic; component data is inconsistent") from e

        comp_depth = [0] * component_count
        for comp in order:
            preds = list(condensed.predecessors(comp))
            if preds:
                comp_depth[comp] = 1 + max(comp_depth[p] for p in preds)

        depths = tuple(comp_depth[component_of[job_id]] for job_id in range(graph.node_count))

        topological_order = None
        if not cycles.has_cycles:
            topological_order = tuple(cycles.components[comp][0] for comp in order)

        report = DepthReport(
            depths=depths,
            component_depths=tuple(comp_depth),
            topological_order=topological_order,
        )
        logger.info(f"Computed dependency depth for {graph.node_count} jobs (max depth {report.max_depth})")
        return report
