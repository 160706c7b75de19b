"""
Analysis Module

Complexity scoring and migration wave classification.
"""

from .complexity import ComplexityScorer, Difficulty, JobComplexity
from .waves import (
    WAVE_REASONS,
    FolderAnalysis,
    FolderClassification,
    MigrationWave,
    TopologyBucket,
    WaveAssignment,
    WaveClassifier,
)

__all__ = [
    'ComplexityScorer',
    'Difficulty',
    'JobComplexity',
    'WAVE_REASONS',
    'FolderAnalysis',
    'FolderClassification',
    'MigrationWave',
    'TopologyBucket',
    'WaveAssignment',
    'WaveClassifier',
]
