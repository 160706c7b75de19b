"""
Migration Analyzer

Runs the full analysis pipeline over one snapshot and assembles the report:

    assemble -> index -> graph -> cycles -> depth -> score -> waves -> predict

Every stage works on immutable output of the previous one. Graph-global
failures (GraphTooLarge) propagate, so a report is either complete or not
produced at all.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .analysis.complexity import ComplexityScorer, Difficulty, JobComplexity
from .analysis.waves import FolderAnalysis, MigrationWave, TopologyBucket, WaveClassifier
from .config import AnalysisSettings
from .errors import AnalysisWarning, WarningKind
from .graph.builder import DependencyGraph, GraphBuilder, ProgressCallback
from .graph.condition_index import ConditionIndex
from .graph.cycles import CycleDetector
from .graph.depth import DepthCalculator
from .graph.query import DependencyQuery
from .prediction.migration_predictor import BatchPredictionReport, MigrationPrediction, MigrationPredictor
from .records.assembler import JobProfile, SnapshotAssembler
from .records.loader import load_snapshot
from .records.models import Folder, Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobAnalysis:
    """Everything the analysis says about one job."""
    job_id: int
    job_name: str
    folder_name: str
    application: Optional[str]
    complexity: JobComplexity
    wave: int
    topology: TopologyBucket
    participates_in_cycle: bool
    dependency_count: int
    predecessor_count: int
    successor_count: int
    unresolved_conditions: Tuple[str, ...]
    prediction: MigrationPrediction
    is_critical: bool = False
    is_cyclic: bool = False

    @property
    def score(self) -> int:
        return self.complexity.score

    @property
    def difficulty(self) -> Difficulty:
        return self.complexity.difficulty

    @property
    def dependency_depth(self) -> int:
        return self.complexity.dependency_depth

    def to_dict(self) -> Dict[str, Any]:
        return {
            'job_id': self.job_id,
            'job_name': self.job_name,
            'folder_name': self.folder_name,
            'application': self.application,
            'complexity_score': self.score,
            'migration_difficulty': self.difficulty.value,
            'migration_wave': self.wave,
            'topology': self.topology.value,
            'participates_in_cycle': self.participates_in_cycle,
            'dependency_depth': self.dependency_depth,
            'dependency_count': self.dependency_count,
            'predecessor_count': self.predecessor_count,
            'successor_count': self.successor_count,
            'unresolved_conditions': list(self.unresolved_conditions),
            'is_critical': self.is_critical,
            'is_cyclic': self.is_cyclic,
            'migration_priority': self.prediction.priority,
            'estimated_effort_hours': self.prediction.estimated_hours,
            'risk_level': self.prediction.risk_level.value,
            'risks': list(self.prediction.risk_factors),
            'airflow_mapping': self.prediction.airflow_mapping.to_dict(),
            'score_components': dict(self.complexity.components),
        }


@dataclass
class AnalysisReport:
    """Complete, immutable-by-convention result of one analysis run."""
    jobs: List[JobAnalysis]
    folders: List[FolderAnalysis]
    cycles: List[Tuple[int, ...]]
    waves: List[MigrationWave]
    topology_summary: Dict[str, Dict[str, int]]
    warnings: List[AnalysisWarning]
    total_jobs_attempted: int
    summary: Dict[str, Any]
    prediction_report: BatchPredictionReport
    graph: DependencyGraph = field(repr=False)
    profiles: Tuple[JobProfile, ...] = field(repr=False)
    folder_index: Mapping[str, Folder] = field(repr=False)

    @property
    def total_jobs_analyzed(self) -> int:
        return len(self.jobs)

    @property
    def has_circular_dependencies(self) -> bool:
        return bool(self.cycles)

    def job_by_name(self, job_name: str, folder_name: Optional[str] = None) -> Optional[JobAnalysis]:
        for job in self.jobs:
            if job.job_name == job_name and (folder_name is None or job.folder_name == folder_name):
                return job
        return None

    def dependency_query(self) -> DependencyQuery:
        """Query surface over this report's dependency graph."""
        return DependencyQuery(self.graph, self.profiles, self.folder_index)

    def to_dict(self) -> Dict[str, Any]:
        names = [job.job_name for job in self.jobs]
        return {
            'summary': dict(self.summary),
            'total_jobs_attempted': self.total_jobs_attempted,
            'total_jobs_analyzed': self.total_jobs_analyzed,
            'jobs': [job.to_dict() for job in self.jobs],
            'folders': [folder.to_dict() for folder in self.folders],
            'cycles': [
                {'job_ids': list(cycle), 'jobs': [names[i] for i in cycle]}
                for cycle in self.cycles
            ],
            'migration_waves': [wave.to_dict(self.profiles) for wave in self.waves],
            'topology_waves': {k: dict(v) for k, v in self.topology_summary.items()},
            'predictions': self.prediction_report.to_dict(),
            'warnings': [w.to_dict() for w in self.warnings],
        }


class MigrationAnalyzer:
    """Analyzes Control-M job snapshots for Airflow migration."""

    def __init__(self, settings: Optional[AnalysisSettings] = None,
                 progress: Optional[ProgressCallback] = None):
        self.settings = settings or AnalysisSettings()
        self.assembler = SnapshotAssembler()
        self.graph_builder = GraphBuilder(
            max_workers=self.settings.max_workers,
            max_jobs=self.settings.max_jobs,
            max_edges=self.settings.max_edges,
            progress=progress,
        )
        self.cycle_detector = CycleDetector()
        self.depth_calculator = DepthCalculator()
        self.scorer = ComplexityScorer(max_workers=self.settings.max_workers)
        self.wave_classifier = WaveClassifier(self.settings.low_dependency_threshold)
        self.predictor = MigrationPredictor()

    def analyze_file(self, path: Union[str, Path]) -> AnalysisReport:
        """Load a JSON snapshot file and analyze it."""
        return self.analyze(load_snapshot(path))

    def analyze(self, snapshot: Snapshot) -> AnalysisReport:
        """
        Run the full pipeline.

        Raises:
            GraphTooLarge: if the snapshot exceeds configured limits
        """
        assembled = self.assembler.assemble(snapshot)
        profiles = assembled.profiles
        warnings = list(assembled.warnings)

        index = ConditionIndex.build(profiles)
        graph = self.graph_builder.build(profiles, index)
        warnings.extend(self._unresolved_warnings(profiles, graph))

        cycles = self.cycle_detector.detect(graph)
        depth = self.depth_calculator.calculate(graph, cycles)

        complexities = self.scorer.score_all(profiles, depth.depths)
        assignments = self.wave_classifier.classify_jobs(profiles, complexities, graph)
        folder_results = self.wave_classifier.classify_folders(profiles, graph, assembled.folders)
        waves = self.wave_classifier.group_waves(assignments)
        topology = self.wave_classifier.topology_summary(assignments, profiles, folder_results)

        predictions, prediction_report = self.predictor.predict_batch(
            profiles, complexities, cycles.in_cycle, [len(u) for u in graph.unresolved],
        )

        jobs = []
        for profile in profiles:
            job_id = profile.job_id
            assignment = assignments[job_id]
            jobs.append(JobAnalysis(
                job_id=job_id,
                job_name=profile.job_name,
                folder_name=profile.folder_name,
                application=profile.job.application,
                complexity=complexities[job_id],
                wave=assignment.wave,
                topology=assignment.topology,
                participates_in_cycle=cycles.in_cycle[job_id],
                dependency_count=profile.dependency_count,
                predecessor_count=assignment.predecessor_count,
                successor_count=assignment.successor_count,
                unresolved_conditions=graph.unresolved[job_id],
                prediction=predictions[job_id],
                is_critical=profile.job.critical,
                is_cyclic=profile.job.cyclic,
            ))

        summary = self._summarize(assembled.total_jobs_attempted, assembled.folders, graph,
                                  cycles.cycles, depth.max_depth, complexities, waves,
                                  prediction_report, index)

        logger.info(
            f"Analysis complete: {len(jobs)}/{assembled.total_jobs_attempted} jobs analyzed, "
            f"{len(cycles.cycles)} cycles, {len(warnings)} warnings"
        )

        return AnalysisReport(
            jobs=jobs,
            folders=folder_results,
            cycles=list(cycles.cycles),
            waves=waves,
            topology_summary=topology,
            warnings=warnings,
            total_jobs_attempted=assembled.total_jobs_attempted,
            summary=summary,
            prediction_report=prediction_report,
            graph=graph,
            profiles=profiles,
            folder_index=assembled.folders,
        )

    @staticmethod
    def _unresolved_warnings(profiles, graph: DependencyGraph) -> List[AnalysisWarning]:
        warnings = []
        for profile in profiles:
            for name in graph.unresolved[profile.job_id]:
                warnings.append(AnalysisWarning(
                    kind=WarningKind.UNRESOLVED_CONDITION,
                    message=f"Job '{profile.job_name}' waits on condition '{name}' that no job produces",
                    job_name=profile.job_name,
                    folder_name=profile.folder_name,
                    record_type='Condition',
                ))
        if warnings:
            logger.debug(f"{len(warnings)} in-conditions have no producer in this snapshot")
        return warnings

    def _summarize(self, attempted: int, folders: Mapping[str, Folder], graph: DependencyGraph,
                   cycles, max_depth: int, complexities, waves: List[MigrationWave],
                   prediction_report: BatchPredictionReport, index: ConditionIndex) -> Dict[str, Any]:
        complexity_report = self.scorer.generate_complexity_report(complexities)
        graph_stats = graph.get_stats()

        return {
            'total_jobs_attempted': attempted,
            'total_jobs': complexity_report['total_jobs'],
            'total_folders': len(folders),
            'avg_complexity': complexity_report['avg_complexity'],
            'max_complexity': complexity_report['max_complexity'],
            'difficulty_distribution': complexity_report['difficulty_distribution'],
            'has_circular_dependencies': bool(cycles),
            'cycle_count': len(cycles),
            'jobs_in_cycles': sum(len(c) for c in cycles),
            'max_dependency_depth': max_depth,
            'total_edges': graph_stats['total_edges'],
            'internal_edges': graph_stats['internal_edges'],
            'external_edges': graph_stats['external_edges'],
            'jobs_with_unresolved_conditions': graph_stats['jobs_with_unresolved_conditions'],
            'conditions': index.get_stats(),
            'wave_distribution': {str(w.wave): len(w.job_ids) for w in waves},
            'total_estimated_hours': prediction_report.total_estimated_hours,
        }
