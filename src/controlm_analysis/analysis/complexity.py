"""
Complexity Scoring Module

Scores each job on how hard it will be to migrate, from counts of its
conditions, resources, variables, ON conditions and scheduling features plus
its depth in the dependency graph.
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Sequence

from ..records.assembler import JobProfile

logger = logging.getLogger(__name__)


class Difficulty(Enum):
    """Migration difficulty buckets."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def from_score(cls, score: int) -> 'Difficulty':
        if score <= ComplexityScorer.EASY_MAX:
            return cls.EASY
        if score <= ComplexityScorer.MEDIUM_MAX:
            return cls.MEDIUM
        return cls.HARD


@dataclass(frozen=True)
class JobComplexity:
    """Score breakdown for a single job."""
    job_id: int
    score: int
    difficulty: Difficulty
    dependency_depth: int
    components: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'job_id': self.job_id,
            'score': self.score,
            'difficulty': self.difficulty.value,
            'dependency_depth': self.dependency_depth,
            'components': dict(self.components),
        }


class ComplexityScorer:
    """Deterministic weighted complexity score."""

    # Weights per counted feature
    WEIGHTS = {
        'dependencies': 3,        # in-conditions + control resources
        'depth': 5,               # levels of upstream jobs
        'conditions': 2,          # in + out conditions
        'variables': 1,           # variables + AutoEdits
        'on_condition': 4,        # per ON condition, plus one per action
        'cyclic': 15,             # flat penalty for cyclic execution
        'resources': 3,           # quantitative + control resources
        'scheduling': 2,          # per scheduling feature
    }

    EASY_MAX = 30
    MEDIUM_MAX = 60

    def __init__(self, max_workers: int = 4):
        self.max_workers = max(1, max_workers)

    def score_job(self, profile: JobProfile, dependency_depth: int) -> JobComplexity:
        """Score one job given its dependency depth."""
        w = self.WEIGHTS
        in_conditions = len(profile.in_conditions)
        out_conditions = len(profile.out_conditions)
        control = len(profile.control_resources)
        quantitative = len(profile.quantitative_resources)

        # Control resources feed both the dependency and the resource term
        components = {
            'dependencies': w['dependencies'] * (in_conditions + control),
            'depth': w['depth'] * dependency_depth,
            'conditions': w['conditions'] * (in_conditions + out_conditions),
            'variables': w['variables'] * profile.variable_count,
            'on_conditions': sum(w['on_condition'] + len(oc.actions) for oc in profile.on_conditions),
            'cyclic': w['cyclic'] if profile.job.cyclic else 0,
            'resources': w['resources'] * (quantitative + control),
            'scheduling': w['scheduling'] * profile.scheduling_feature_count,
        }
        score = sum(components.values())

        return JobComplexity(
            job_id=profile.job_id,
            score=score,
            difficulty=Difficulty.from_score(score),
            dependency_depth=dependency_depth,
            components=components,
        )

    def score_all(self, profiles: Sequence[JobProfile], depths: Sequence[int]) -> List[JobComplexity]:
        """Score every job; results are in job id order."""
        if self.max_workers == 1 or len(profiles) < 2:
            results = [self.score_job(p, depths[p.job_id]) for p in profiles]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(lambda p: self.score_job(p, depths[p.job_id]), profiles))

        logger.info(f"Scored {len(results)} jobs")
        return results

    def generate_complexity_report(self, results: Sequence[JobComplexity]) -> Dict[str, Any]:
        """Summarize score distribution."""
        difficulties = Counter(r.difficulty for r in results)
        avg = sum(r.score for r in results) / len(results) if results else 0

        return {
            'total_jobs': len(results),
            'avg_complexity': round(avg, 2),
            'max_complexity': max((r.score for r in results), default=0),
            'difficulty_distribution': {
                'easy': difficulties.get(Difficulty.EASY, 0),
                'medium': difficulties.get(Difficulty.MEDIUM, 0),
                'hard': difficulties.get(Difficulty.HARD, 0),
            },
        }
