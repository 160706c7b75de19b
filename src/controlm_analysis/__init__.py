"""
Control-M Migration Analysis

Dependency graph, cycle detection, complexity scoring and migration wave
planning for Control-M job exports moving to Airflow.
"""

from .analyzer import AnalysisReport, JobAnalysis, MigrationAnalyzer
from .config import AnalysisSettings
from .errors import AnalysisError, AnalysisWarning, GraphTooLarge, QueryError, SnapshotError, WarningKind

__version__ = "0.1.0"

__all__ = [
    'AnalysisReport',
    'JobAnalysis',
    'MigrationAnalyzer',
    'AnalysisSettings',
    'AnalysisError',
    'AnalysisWarning',
    'GraphTooLarge',
    'QueryError',
    'SnapshotError',
    'WarningKind',
]
