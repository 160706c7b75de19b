"""
Migration Predictor Module

Turns complexity and graph facts into migration planning hints: a priority
for ordering work, an effort estimate, risk factors and a suggested Airflow
mapping for each job.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple

from ..analysis.complexity import Difficulty, JobComplexity
from ..records.assembler import JobProfile

logger = logging.getLogger(__name__)


class MigrationRisk(Enum):
    """Risk levels for migration."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


LOW_RISK = "Low risk migration"


@dataclass(frozen=True)
class AirflowMapping:
    """Suggested Airflow target for a job."""
    suggested_dag_name: str
    operator_type: str
    estimated_effort_hours: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'suggested_dag_name': self.suggested_dag_name,
            'operator_type': self.operator_type,
            'estimated_effort_hours': self.estimated_effort_hours,
        }


@dataclass
class MigrationPrediction:
    """Prediction result for a single job."""
    job_id: int
    job_name: str
    priority: int
    estimated_hours: int
    risk_level: MigrationRisk
    risk_factors: List[str]
    airflow_mapping: AirflowMapping

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'job_name': self.job_name,
            'priority': self.priority,
            'estimated_hours': self.estimated_hours,
            'risk_level': self.risk_level.value,
            'risk_factors': list(self.risk_factors),
            'airflow_mapping': self.airflow_mapping.to_dict(),
        }


@dataclass
class BatchPredictionReport:
    """Summary report for batch predictions."""
    total_jobs: int
    total_estimated_hours: int
    high_risk_jobs: List[str]
    critical_risk_jobs: List[str]
    common_risks: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_jobs': self.total_jobs,
            'total_estimated_hours': self.total_estimated_hours,
            'high_risk_jobs': list(self.high_risk_jobs),
            'critical_risk_jobs': list(self.critical_risk_jobs),
            'common_risks': dict(self.common_risks),
        }


class MigrationPredictor:
    """
    Rule-based migration planning for Control-M jobs moving to Airflow.

    Priority favours easy and critical jobs and penalises heavily
    connected ones; effort is a flat estimate per difficulty bucket.
    """

    PRIORITY_BASE = {
        Difficulty.EASY: 100,
        Difficulty.MEDIUM: 50,
        Difficulty.HARD: 10,
    }
    CRITICAL_BONUS = 50
    DEPENDENCY_PENALTY = 2

    EFFORT_HOURS = {
        Difficulty.EASY: 4,
        Difficulty.MEDIUM: 8,
        Difficulty.HARD: 16,
    }

    # Risk thresholds
    HIGH_DEPENDENCY_COUNT = 5
    VERY_HIGH_SCORE = 80

    def calculate_priority(self, complexity: JobComplexity, profile: JobProfile) -> int:
        priority = self.PRIORITY_BASE[complexity.difficulty]
        if profile.job.critical:
            priority += self.CRITICAL_BONUS
        priority -= self.DEPENDENCY_PENALTY * profile.dependency_count
        return max(1, priority)

    def detect_risks(self, complexity: JobComplexity, profile: JobProfile,
                     in_cycle: bool = False, unresolved_count: int = 0) -> List[str]:
        """List risk factors; a job with none gets the single low-risk entry."""
        risks = []

        if profile.job.cyclic:
            risks.append("Cyclic execution pattern - requires special handling in Airflow")

        if profile.dependency_count > self.HIGH_DEPENDENCY_COUNT:
            risks.append("High number of dependencies - complex dependency chain")

        if profile.job.critical:
            risks.append("Critical job - requires careful testing and validation")

        if complexity.score > self.VERY_HIGH_SCORE:
            risks.append("Very high complexity - consider breaking into smaller DAGs")

        if in_cycle:
            risks.append("Circular dependency - jobs in the cycle must migrate together")

        if unresolved_count:
            risks.append(f"Unresolved upstream conditions ({unresolved_count}) - produced outside this snapshot")

        if not risks:
            risks.append(LOW_RISK)

        return risks

    @staticmethod
    def _determine_risk_level(risk_factors: List[str], in_cycle: bool) -> MigrationRisk:
        if risk_factors == [LOW_RISK]:
            return MigrationRisk.LOW
        if in_cycle or len(risk_factors) >= 3:
            return MigrationRisk.CRITICAL
        if len(risk_factors) == 2:
            return MigrationRisk.HIGH
        return MigrationRisk.MEDIUM

    def airflow_mapping(self, complexity: JobComplexity, profile: JobProfile) -> AirflowMapping:
        return AirflowMapping(
            suggested_dag_name=profile.job_name.lower(),
            operator_type="PythonOperator" if profile.job.cyclic else "BashOperator",
            estimated_effort_hours=self.EFFORT_HOURS[complexity.difficulty],
        )

    def predict(self, complexity: JobComplexity, profile: JobProfile,
                in_cycle: bool = False, unresolved_count: int = 0) -> MigrationPrediction:
        """
        Predict migration planning values for a single job.

        Args:
            complexity: Score result for the job
            profile: Job profile the score was computed from
            in_cycle: Whether the job sits in a circular dependency
            unresolved_count: Number of in-conditions nobody produces

        Returns:
            MigrationPrediction with priority, effort, risks and Airflow mapping
        """
        risk_factors = self.detect_risks(complexity, profile, in_cycle, unresolved_count)
        return MigrationPrediction(
            job_id=profile.job_id,
            job_name=profile.job_name,
            priority=self.calculate_priority(complexity, profile),
            estimated_hours=self.EFFORT_HOURS[complexity.difficulty],
            risk_level=self._determine_risk_level(risk_factors, in_cycle),
            risk_factors=risk_factors,
            airflow_mapping=self.airflow_mapping(complexity, profile),
        )

    def predict_batch(self, profiles: Sequence[JobProfile], complexities: Sequence[JobComplexity],
                      in_cycle: Sequence[bool],
                      unresolved_counts: Sequence[int]) -> Tuple[List[MigrationPrediction], BatchPredictionReport]:
        """
        Predict migration values for every job, indexed by job id.

        Returns:
            Tuple of (predictions list, summary report)
        """
        predictions = [
            self.predict(complexities[p.job_id], p, in_cycle[p.job_id], unresolved_counts[p.job_id])
            for p in profiles
        ]
        report = self._generate_batch_report(predictions)
        logger.info(f"Predicted migration effort for {len(predictions)} jobs "
                    f"({report.total_estimated_hours} hours total)")
        return predictions, report

    def _generate_batch_report(self, predictions: List[MigrationPrediction]) -> BatchPredictionReport:
        risk_counter = Counter()
        for prediction in predictions:
            for factor in prediction.risk_factors:
                if factor != LOW_RISK:
                    risk_counter[factor] += 1

        return BatchPredictionReport(
            total_jobs=len(predictions),
            total_estimated_hours=sum(p.estimated_hours for p in predictions),
            high_risk_jobs=[p.job_name for p in predictions if p.risk_level is MigrationRisk.HIGH],
            critical_risk_jobs=[p.job_name for p in predictions if p.risk_level is MigrationRisk.CRITICAL],
            common_risks=dict(risk_counter.most_common(10)),
        )
