"""
Dependency Query Module

Bounded-depth extraction of the neighbourhood of one job, for graph viewers.
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import QueryError
from ..records.assembler import JobProfile
from ..records.models import Folder
from .builder import DependencyGraph, Edge

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Which way to walk from the root job."""
    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"
    BOTH = "both"


class Scope(Enum):
    """Which edges may be traversed, by their internal flag."""
    INTERNAL = "internal"
    EXTERNAL = "external"
    ALL = "all"

    def allows(self, edge: Edge) -> bool:
        if self is Scope.INTERNAL:
            return edge.internal
        if self is Scope.EXTERNAL:
            return not edge.internal
        return True


@dataclass(frozen=True)
class SubgraphNode:
    job_id: int
    job_name: str
    folder_name: str
    datacenter: Optional[str]
    is_internal: bool  # same folder as the root job
    hop: int
    is_root: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.job_id,
            'job_name': self.job_name,
            'folder_name': self.folder_name,
            'datacenter': self.datacenter or '',
            'is_internal': self.is_internal,
            'hop': self.hop,
            'is_root': self.is_root,
        }


@dataclass(frozen=True)
class Subgraph:
    """Result of a dependency query."""
    root_job_id: int
    direction: Direction
    scope: Scope
    depth_limit: Optional[int]
    nodes: Tuple[SubgraphNode, ...]
    edges: Tuple[Edge, ...]

    @property
    def stats(self) -> Dict[str, int]:
        internal = sum(1 for e in self.edges if e.internal)
        return {
            'total_dependencies': len(self.edges),
            'internal_dependencies': internal,
            'external_dependencies': len(self.edges) - internal,
            'max_depth': max((n.hop for n in self.nodes), default=0),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'root_job_id': self.root_job_id,
            'direction': self.direction.value,
            'scope': self.scope.value,
            'depth': self.depth_limit,
            'nodes': [n.to_dict() for n in self.nodes],
            'edges': [
                {
                    'source_id': e.source,
                    'target_id': e.target,
                    'condition_name': e.condition_name,
                    'is_internal': e.internal,
                }
                for e in self.edges
            ],
            'stats': self.stats,
        }


class DependencyQuery:
    """Read-only query surface over a finished DependencyGraph."""

    def __init__(self, graph: DependencyGraph, profiles: Sequence[JobProfile],
                 folders: Mapping[str, Folder]):
        self.graph = graph
        self.profiles = profiles
        self.folders = folders

    def extract(self, root_job_id: int, direction: Direction = Direction.BOTH,
                depth: Optional[int] = 1, scope: Scope = Scope.ALL) -> Subgraph:
        """
        Breadth-first expansion from a root job.

        Args:
            root_job_id: Job id to start from
            direction: upstream, downstream or both
            depth: Maximum hops from the root, or None for end-to-end
            scope: Restrict traversal to internal, external or all edges

        Returns:
            Subgraph of visited jobs and the scope-matching edges among them
        """
        if not 0 <= root_job_id < self.graph.node_count:
            raise QueryError(f"Unknown job id: {root_job_id}")
        if depth is not None and depth < 1:
            raise QueryError(f"Depth must be at least 1 or None for end-to-end, got {depth}")

        try:
            direction = Direction(direction)
            scope = Scope(scope)
        except ValueError as e:
            raise QueryError(str(e)) from e
        graph = self.graph

        hops = {root_job_id: 0}
        queue = deque([root_job_id])
        while queue:
            node = queue.popleft()
            hop = hops[node]
            if depth is not None and hop >= depth:
                continue
            for neighbour in self._neighbours(node, direction, scope):
                if neighbour not in hops:
                    hops[neighbour] = hop + 1
                    queue.append(neighbour)

        edge_positions = set()
        for node in hops:
            for position in graph.out_edges[node]:
                edge = graph.edges[position]
                if edge.target in hops and scope.allows(edge):
                    edge_positions.add(position)

        root_folder = graph.folders[root_job_id]
        nodes = [
            self._node(job_id, hop, root_folder, job_id == root_job_id)
            for job_id, hop in sorted(hops.items(), key=lambda item: (item[1], item[0]))
        ]
        edges = tuple(graph.edges[p] for p in sorted(edge_positions))

        logger.debug(
            f"Query from job {root_job_id} ({direction.value}, depth={depth}, scope={scope.value}): "
            f"{len(nodes)} nodes, {len(edges)} edges"
        )
        return Subgraph(
            root_job_id=root_job_id,
            direction=direction,
            scope=scope,
            depth_limit=depth,
            nodes=tuple(nodes),
            edges=edges,
        )

    def _neighbours(self, node: int, direction: Direction, scope: Scope) -> List[int]:
        graph = self.graph
        found: List[int] = []
        if direction in (Direction.UPSTREAM, Direction.BOTH):
            found.extend(graph.edges[p].source for p in graph.in_edges[node] if scope.allows(graph.edges[p]))
        if direction in (Direction.DOWNSTREAM, Direction.BOTH):
            found.extend(graph.edges[p].target for p in graph.out_edges[node] if scope.allows(graph.edges[p]))
        return found

    def _node(self, job_id: int, hop: int, root_folder: str, is_root: bool) -> SubgraphNode:
        profile = self.profiles[job_id]
        folder = self.folders.get(profile.folder_name)
        return SubgraphNode(
            job_id=job_id,
            job_name=profile.job_name,
            folder_name=profile.folder_name,
            datacenter=folder.datacenter if folder else None,
            is_internal=profile.folder_name == root_folder,
            hop=hop,
            is_root=is_root,
        )
