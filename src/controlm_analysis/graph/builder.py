"""
Dependency Graph Builder

Resolves job-to-job edges by matching each in-condition against the jobs
that produce a condition of the same name.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import networkx as nx

from ..errors import GraphTooLarge
from ..records.assembler import JobProfile
from .condition_index import ConditionIndex

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class Edge:
    """Producer -> consumer dependency through one condition name."""
    source: int
    target: int
    condition_name: str
    internal: bool


@dataclass(frozen=True)
class DependencyGraph:
    """
    Immutable job dependency graph keyed by job id.

    successors/predecessors hold unique neighbour ids in ascending order;
    out_edges/in_edges hold positions into ``edges``.
    """
    edges: Tuple[Edge, ...]
    successors: Tuple[Tuple[int, ...], ...]
    predecessors: Tuple[Tuple[int, ...], ...]
    out_edges: Tuple[Tuple[int, ...], ...]
    in_edges: Tuple[Tuple[int, ...], ...]
    unresolved: Tuple[Tuple[str, ...], ...]
    folders: Tuple[str, ...]

    @property
    def node_count(self) -> int:
        return len(self.successors)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def edges_from(self, job_id: int) -> List[Edge]:
        return [self.edges[i] for i in self.out_edges[job_id]]

    def edges_to(self, job_id: int) -> List[Edge]:
        return [self.edges[i] for i in self.in_edges[job_id]]

    def to_networkx(self) -> nx.DiGraph:
        """Job-level DiGraph with one node per job id (parallel condition edges merged)."""
        nx_graph = nx.DiGraph()
        nx_graph.add_nodes_from(range(self.node_count))
        nx_graph.add_edges_from(
            (source, target) for source, targets in enumerate(self.successors) for target in targets
        )
        return nx_graph

    def get_stats(self) -> dict:
        internal = sum(1 for e in self.edges if e.internal)
        return {
            'total_jobs': self.node_count,
            'total_edges': self.edge_count,
            'internal_edges': internal,
            'external_edges': self.edge_count - internal,
            'jobs_with_unresolved_conditions': sum(1 for names in self.unresolved if names),
        }


class GraphBuilder:
    """Builds a DependencyGraph from job profiles and a ConditionIndex."""

    def __init__(self, max_workers: int = 4, max_jobs: Optional[int] = None,
                 max_edges: Optional[int] = None, chunk_size: int = 2000,
                 progress: Optional[ProgressCallback] = None):
        self.max_workers = max(1, max_workers)
        self.max_jobs = max_jobs
        self.max_edges = max_edges
        self.chunk_size = max(1, chunk_size)
        self.progress = progress

    def build(self, profiles: Sequence[JobProfile], index: ConditionIndex) -> DependencyGraph:
        """
        Resolve all edges.

        Raises:
            GraphTooLarge: if the job or edge count exceeds the configured limit
        """
        total = len(profiles)
        if self.max_jobs is not None and total > self.max_jobs:
            raise GraphTooLarge('jobs', total, self.max_jobs)
        if self.max_edges is not None:
            edge_count = self.count_edges(profiles, index)
            if edge_count > self.max_edges:
                raise GraphTooLarge('edges', edge_count, self.max_edges)

        folders = tuple(p.folder_name for p in profiles)
        chunks = [profiles[start:start + self.chunk_size] for start in range(0, total, self.chunk_size)]

        processed = 0
        lock = threading.Lock()

        def resolve_chunk(chunk: Sequence[JobProfile]):
            nonlocal processed
            result = [self._resolve_job(p, index, folders) for p in chunk]
            if self.progress:
                with lock:
                    processed += len(chunk)
                    self.progress(processed, total)
            return result

        if self.max_workers == 1 or len(chunks) <= 1:
            resolved = [resolve_chunk(chunk) for chunk in chunks]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                # map() keeps chunk order, so edge order never depends on scheduling
                resolved = list(executor.map(resolve_chunk, chunks))

        edges: List[Edge] = []
        unresolved: List[Tuple[str, ...]] = []
        for chunk_result in resolved:
            for job_edges, job_unresolved in chunk_result:
                edges.extend(job_edges)
                unresolved.append(job_unresolved)

        graph = self._assemble(total, edges, unresolved, folders)
        logger.info(f"Built dependency graph: {graph.node_count} jobs, {graph.edge_count} edges")
        return graph

    @staticmethod
    def count_edges(profiles: Sequence[JobProfile], index: ConditionIndex) -> int:
        """
        Number of edges build() would create, without creating any.

        Each consumer gets one edge per (producer, distinct in-condition name),
        excluding itself as producer.
        """
        count = 0
        for profile in profiles:
            for name in {cond.name for cond in profile.in_conditions}:
                producers = index.producers_of(name)
                count += len(producers) - (1 if profile.job_id in producers else 0)
        return count

    @staticmethod
    def _resolve_job(profile: JobProfile, index: ConditionIndex,
                     folders: Tuple[str, ...]) -> Tuple[List[Edge], Tuple[str, ...]]:
        consumer = profile.job_id
        edges: List[Edge] = []
        seen = set()
        unresolved: List[str] = []

        for cond in profile.in_conditions:
            producers = index.producers_of(cond.name)
            if not producers:
                if cond.name not in unresolved:
                    unresolved.append(cond.name)
                continue
            for producer in producers:
                if producer == consumer or (producer, cond.name) in seen:
                    continue
                seen.add((producer, cond.name))
                edges.append(Edge(
                    source=producer,
                    target=consumer,
                    condition_name=cond.name,
                    internal=folders[producer] == folders[consumer],
                ))

        return edges, tuple(unresolved)

    @staticmethod
    def _assemble(node_count: int, edges: List[Edge], unresolved: List[Tuple[str, ...]],
                  folders: Tuple[str, ...]) -> DependencyGraph:
        successors = [set() for _ in range(node_count)]
        predecessors = [set() for _ in range(node_count)]
        out_edges: List[List[int]] = [[] for _ in range(node_count)]
        in_edges: List[List[int]] = [[] for _ in range(node_count)]

        for position, edge in enumerate(edges):
            successors[edge.source].add(edge.target)
            predecessors[edge.target].add(edge.source)
            out_edges[edge.source].append(position)
            in_edges[edge.target].append(position)

        return DependencyGraph(
            edges=tuple(edges),
            successors=tuple(tuple(sorted(s)) for s in successors),
            predecessors=tuple(tuple(sorted(p)) for p in predecessors),
            out_edges=tuple(tuple(ids) for ids in out_edges),
            in_edges=tuple(tuple(ids) for ids in in_edges),
            unresolved=tuple(unresolved),
            folders=folders,
        )
