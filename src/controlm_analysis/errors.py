"""
Error Types

Exceptions raised by the analysis engine and the warnings it collects.

Fatal, graph-global problems raise an AnalysisError subclass and abort the
run. Per-record problems are recovered where they occur and recorded as
AnalysisWarning values on the report.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class AnalysisError(Exception):
    """Base class for all analysis failures."""


class GraphTooLarge(AnalysisError):
    """The snapshot exceeds the configured job or edge limits."""

    def __init__(self, kind: str, count: int, limit: int):
        self.kind = kind
        self.count = count
        self.limit = limit
        super().__init__(f"Graph too large: {count} {kind} exceeds limit of {limit}")


class QueryError(AnalysisError):
    """Invalid parameters for a dependency graph query."""


class SnapshotError(AnalysisError):
    """A snapshot file could not be read or decoded."""


class WarningKind(Enum):
    """Kinds of non-fatal findings."""
    MALFORMED_RECORD = "MalformedRecord"
    UNRESOLVED_CONDITION = "UnresolvedCondition"


@dataclass(frozen=True)
class AnalysisWarning:
    """A recovered, per-record problem."""
    kind: WarningKind
    message: str
    job_name: Optional[str] = None
    folder_name: Optional[str] = None
    record_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'message': self.message,
            'job_name': self.job_name,
            'folder_name': self.folder_name,
            'record_type': self.record_type,
        }
