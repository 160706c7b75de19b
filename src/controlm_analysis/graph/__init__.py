"""
Graph Module

Condition index, dependency graph construction, cycle detection, depth
calculation and bounded-depth queries.
"""

from .condition_index import ConditionIndex
from .builder import DependencyGraph, Edge, GraphBuilder
from .cycles import CycleDetector, CycleReport
from .depth import DepthCalculator, DepthReport
from .query import DependencyQuery, Direction, Scope, Subgraph, SubgraphNode

__all__ = [
    'ConditionIndex',
    'DependencyGraph',
    'Edge',
    'GraphBuilder',
    'CycleDetector',
    'CycleReport',
    'DepthCalculator',
    'DepthReport',
    'DependencyQuery',
    'Direction',
    'Scope',
    'Subgraph',
    'SubgraphNode',
]
