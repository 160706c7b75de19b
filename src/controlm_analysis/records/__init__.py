"""
Records Module

Immutable scheduler records, the JSON snapshot loader and the assembler that
turns a snapshot into per-job profiles.
"""

from .models import (
    Condition,
    ConditionDirection,
    ControlResource,
    DoAction,
    Folder,
    Job,
    OnCondition,
    QuantitativeResource,
    SchedulingInfo,
    Snapshot,
    Variable,
    VariableKind,
)
from .loader import SnapshotLoader, load_snapshot
from .assembler import AssembledSnapshot, JobProfile, SnapshotAssembler

__all__ = [
    'Condition',
    'ConditionDirection',
    'ControlResource',
    'DoAction',
    'Folder',
    'Job',
    'OnCondition',
    'QuantitativeResource',
    'SchedulingInfo',
    'Snapshot',
    'Variable',
    'VariableKind',
    'SnapshotLoader',
    'load_snapshot',
    'AssembledSnapshot',
    'JobProfile',
    'SnapshotAssembler',
]
