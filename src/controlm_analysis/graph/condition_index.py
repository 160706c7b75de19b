"""
Condition Index

Maps every condition name to the jobs that produce it (out-conditions) and
the jobs that consume it (in-conditions).
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

from ..records.assembler import JobProfile

logger = logging.getLogger(__name__)


class ConditionIndex:
    """Read-only name -> job id lookup, built once per snapshot."""

    def __init__(self, producers: Dict[str, Tuple[int, ...]], consumers: Dict[str, Tuple[int, ...]]):
        self._producers = producers
        self._consumers = consumers

    @classmethod
    def build(cls, profiles: Iterable[JobProfile]) -> 'ConditionIndex':
        """
        Index all conditions in one pass.

        Args:
            profiles: Job profiles in job id order

        Returns:
            ConditionIndex whose id lists are in ascending job id order
        """
        producers: Dict[str, List[int]] = defaultdict(list)
        consumers: Dict[str, List[int]] = defaultdict(list)

        for profile in profiles:
            for cond in profile.out_conditions:
                ids = producers[cond.name]
                # A job listing the same name twice is still one producer
                if not ids or ids[-1] != profile.job_id:
                    ids.append(profile.job_id)
            for cond in profile.in_conditions:
                ids = consumers[cond.name]
                if not ids or ids[-1] != profile.job_id:
                    ids.append(profile.job_id)

        logger.info(f"Indexed {len(producers)} produced and {len(consumers)} consumed condition names")

        return cls(
            {name: tuple(ids) for name, ids in producers.items()},
            {name: tuple(ids) for name, ids in consumers.items()},
        )

    def producers_of(self, name: str) -> Sequence[int]:
        return self._producers.get(name, ())

    def consumers_of(self, name: str) -> Sequence[int]:
        return self._consumers.get(name, ())

    def has_producer(self, name: str) -> bool:
        return name in self._producers

    @property
    def condition_names(self) -> List[str]:
        """All known condition names, sorted."""
        return sorted(set(self._producers) | set(self._consumers))

    def get_stats(self) -> Dict[str, int]:
        """Get statistics about the index."""
        produced = set(self._producers)
        consumed = set(self._consumers)
        return {
            'produced_names': len(produced),
            'consumed_names': len(consumed),
            'unresolved_names': len(consumed - produced),
            'unconsumed_names': len(produced - consumed),
            'ambiguous_names': sum(1 for ids in self._producers.values() if len(ids) > 1),
        }
