"""
Migration Wave Classification

Two independent partitions of the job population:

* a score-based wave (1-5) ordering jobs from quick wins to hard cases
* a topology bucket (isolated / leaf / root) from the job's own conditions

plus a folder-level split into self-contained and complex folders, decided
only by whether any dependency edge touching the folder crosses its boundary.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from ..graph.builder import DependencyGraph
from ..records.assembler import JobProfile
from ..records.models import Folder
from .complexity import Difficulty, JobComplexity

logger = logging.getLogger(__name__)


class TopologyBucket(Enum):
    """Position of a job by its own in/out conditions."""
    ISOLATED = "isolated"
    LEAF = "leaf"
    ROOT = "root"
    NONE = "none"


class FolderClassification(Enum):
    """Whether a folder can move on its own."""
    SELF_CONTAINED = "self_contained"
    COMPLEX = "complex"


WAVE_REASONS = {
    1: "Low complexity, no dependencies - Quick wins",
    2: "Low to medium complexity, minimal dependencies",
    3: "Medium complexity or critical jobs",
    4: "Medium complexity with dependencies",
    5: "High complexity - Requires careful planning",
}


@dataclass(frozen=True)
class WaveAssignment:
    """Wave and topology bucket for one job."""
    job_id: int
    wave: int
    topology: TopologyBucket
    predecessor_count: int
    successor_count: int


@dataclass(frozen=True)
class FolderAnalysis:
    """Folder-level dependency summary."""
    folder_name: str
    datacenter: str
    classification: FolderClassification
    job_count: int
    jobs_with_internal_dependency: int
    jobs_with_external_dependency: int
    internal_edges: int
    external_edges: int

    @property
    def is_self_contained(self) -> bool:
        return self.classification is FolderClassification.SELF_CONTAINED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'folder_name': self.folder_name,
            'datacenter': self.datacenter,
            'classification': self.classification.value,
            'job_count': self.job_count,
            'jobs_with_internal_dependency': self.jobs_with_internal_dependency,
            'jobs_with_external_dependency': self.jobs_with_external_dependency,
            'internal_edges': self.internal_edges,
            'external_edges': self.external_edges,
        }


@dataclass(frozen=True)
class MigrationWave:
    """A group of jobs planned for the same migration phase."""
    wave: int
    job_ids: Tuple[int, ...]
    reason: str

    def to_dict(self, profiles: Sequence[JobProfile]) -> Dict[str, Any]:
        return {
            'wave': self.wave,
            'reason': self.reason,
            'job_count': len(self.job_ids),
            'jobs': [profiles[i].job_name for i in self.job_ids],
        }


class WaveClassifier:
    """Assigns waves, topology buckets and folder classifications."""

    def __init__(self, low_dependency_threshold: int = 2):
        self.low_dependency_threshold = low_dependency_threshold

    def assign_wave(self, complexity: JobComplexity, profile: JobProfile,
                    predecessor_count: int, successor_count: int) -> int:
        """
        Score-based wave, first matching rule wins.

        Jobs that match no rule (easy, not critical, many dependencies, yet
        connected in the graph) go to wave 3.
        """
        difficulty = complexity.difficulty
        dependency_count = profile.dependency_count

        if difficulty is Difficulty.EASY and predecessor_count == 0 and successor_count == 0:
            return 1
        if difficulty in (Difficulty.EASY, Difficulty.MEDIUM) and dependency_count < self.low_dependency_threshold:
            return 2
        if difficulty is Difficulty.MEDIUM or profile.job.critical:
            return 3
        if difficulty is Difficulty.MEDIUM and dependency_count >= 1:
            return 4
        if difficulty is Difficulty.HARD:
            return 5
        return 3

    @staticmethod
    def topology_bucket(profile: JobProfile) -> TopologyBucket:
        has_in = bool(profile.in_conditions)
        has_out = bool(profile.out_conditions)
        if not has_in and not has_out:
            return TopologyBucket.ISOLATED
        if has_in and not has_out:
            return TopologyBucket.LEAF
        if not has_in and has_out:
            return TopologyBucket.ROOT
        return TopologyBucket.NONE

    def classify_jobs(self, profiles: Sequence[JobProfile], complexities: Sequence[JobComplexity],
                      graph: DependencyGraph) -> List[WaveAssignment]:
        assignments = []
        for profile in profiles:
            job_id = profile.job_id
            preds = len(graph.predecessors[job_id])
            succs = len(graph.successors[job_id])
            assignments.append(WaveAssignment(
                job_id=job_id,
                wave=self.assign_wave(complexities[job_id], profile, preds, succs),
                topology=self.topology_bucket(profile),
                predecessor_count=preds,
                successor_count=succs,
            ))
        logger.info(f"Assigned migration waves to {len(assignments)} jobs")
        return assignments

    def classify_folders(self, profiles: Sequence[JobProfile], graph: DependencyGraph,
                         folders: Mapping[str, Folder]) -> List[FolderAnalysis]:
        """Classify every known folder, in folder declaration order."""
        job_counts: Dict[str, int] = defaultdict(int)
        for profile in profiles:
            job_counts[profile.folder_name] += 1

        internal_jobs: Dict[str, set] = defaultdict(set)
        external_jobs: Dict[str, set] = defaultdict(set)
        internal_edges: Dict[str, int] = defaultdict(int)
        external_edges: Dict[str, int] = defaultdict(int)

        for edge in graph.edges:
            touched = {graph.folders[edge.source], graph.folders[edge.target]}
            targets = internal_jobs if edge.internal else external_jobs
            targets[graph.folders[edge.source]].add(edge.source)
            targets[graph.folders[edge.target]].add(edge.target)
            for folder_name in touched:
                if edge.internal:
                    internal_edges[folder_name] += 1
                else:
                    external_edges[folder_name] += 1

        results = []
        for folder_name, folder in folders.items():
            classification = (
                FolderClassification.COMPLEX if external_edges[folder_name]
                else FolderClassification.SELF_CONTAINED
            )
            results.append(FolderAnalysis(
                folder_name=folder_name,
                datacenter=folder.datacenter or '',
                classification=classification,
                job_count=job_counts[folder_name],
                jobs_with_internal_dependency=len(internal_jobs[folder_name]),
                jobs_with_external_dependency=len(external_jobs[folder_name]),
                internal_edges=internal_edges[folder_name],
                external_edges=external_edges[folder_name],
            ))

        complex_count = sum(1 for r in results if not r.is_self_contained)
        logger.info(f"Classified {len(results)} folders: {len(results) - complex_count} self-contained, {complex_count} complex")
        return results

    @staticmethod
    def group_waves(assignments: Sequence[WaveAssignment]) -> List[MigrationWave]:
        """Group jobs by wave, sorted by wave number; empty waves are omitted."""
        by_wave: Dict[int, List[int]] = defaultdict(list)
        for assignment in assignments:
            by_wave[assignment.wave].append(assignment.job_id)

        return [
            MigrationWave(wave=wave, job_ids=tuple(job_ids), reason=WAVE_REASONS[wave])
            for wave, job_ids in sorted(by_wave.items())
        ]

    @staticmethod
    def topology_summary(assignments: Sequence[WaveAssignment], profiles: Sequence[JobProfile],
                         folder_results: Sequence[FolderAnalysis]) -> Dict[str, Dict[str, int]]:
        """Counts for the isolated / self-contained / leaf / root / complex views."""
        summary = {}
        for bucket in (TopologyBucket.ISOLATED, TopologyBucket.LEAF, TopologyBucket.ROOT):
            job_ids = [a.job_id for a in assignments if a.topology is bucket]
            summary[bucket.value] = {
                'total_jobs': len(job_ids),
                'total_folders': len({profiles[i].folder_name for i in job_ids}),
            }
        for classification in FolderClassification:
            matching = [f for f in folder_results if f.classification is classification]
            summary[classification.value] = {
                'total_jobs': sum(f.job_count for f in matching),
                'total_folders': len(matching),
            }
        return summary
