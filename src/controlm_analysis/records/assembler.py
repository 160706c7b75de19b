"""
Snapshot Assembler

Validates cross-record references in a Snapshot and groups child records
under their job. Accepted jobs receive integer ids in snapshot order; every
downstream component refers to jobs by these ids only.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..errors import AnalysisWarning, WarningKind
from .models import (
    Condition,
    ConditionDirection,
    ControlResource,
    Folder,
    Job,
    OnCondition,
    QuantitativeResource,
    Snapshot,
    Variable,
    VariableKind,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobProfile:
    """Read-only view of one accepted job and its child records."""
    job_id: int
    job: Job
    in_conditions: Tuple[Condition, ...] = ()
    out_conditions: Tuple[Condition, ...] = ()
    on_conditions: Tuple[OnCondition, ...] = ()
    control_resources: Tuple[ControlResource, ...] = ()
    quantitative_resources: Tuple[QuantitativeResource, ...] = ()
    variables: Tuple[Variable, ...] = ()
    auto_edits: Tuple[Variable, ...] = ()

    @property
    def job_name(self) -> str:
        return self.job.job_name

    @property
    def folder_name(self) -> str:
        return self.job.folder_name

    @property
    def dependency_count(self) -> int:
        return len(self.in_conditions) + len(self.control_resources)

    @property
    def variable_count(self) -> int:
        return len(self.variables) + len(self.auto_edits)

    @property
    def scheduling_feature_count(self) -> int:
        return self.job.scheduling.feature_count()


@dataclass(frozen=True)
class AssembledSnapshot:
    """Accepted jobs plus everything needed to report on rejected records."""
    profiles: Tuple[JobProfile, ...]
    folders: Dict[str, Folder]
    warnings: Tuple[AnalysisWarning, ...]
    total_jobs_attempted: int

    def __len__(self) -> int:
        return len(self.profiles)


class SnapshotAssembler:
    """Turns a flat Snapshot into job profiles, excluding malformed records."""

    def assemble(self, snapshot: Snapshot) -> AssembledSnapshot:
        warnings: List[AnalysisWarning] = list(snapshot.load_warnings)

        folders: Dict[str, Folder] = {}
        for folder in snapshot.folders:
            if folder.folder_name in folders:
                warnings.append(self._malformed(
                    f"Duplicate folder '{folder.folder_name}' ignored",
                    folder_name=folder.folder_name, record_type='Folder',
                ))
                continue
            folders[folder.folder_name] = folder

        accepted: List[Job] = []
        seen = set()
        for job in snapshot.jobs:
            if job.folder_name not in folders:
                warnings.append(self._malformed(
                    f"Job '{job.job_name}' references unknown folder '{job.folder_name}'",
                    job_name=job.job_name, folder_name=job.folder_name, record_type='Job',
                ))
                continue
            if job.key in seen:
                warnings.append(self._malformed(
                    f"Duplicate job '{job.job_name}' in folder '{job.folder_name}' excluded",
                    job_name=job.job_name, folder_name=job.folder_name, record_type='Job',
                ))
                continue
            seen.add(job.key)
            accepted.append(job)

        children: Dict[Tuple[str, str], Dict[str, list]] = defaultdict(lambda: defaultdict(list))
        child_groups = [
            ('Condition', snapshot.conditions, self._condition_group),
            ('OnCondition', snapshot.on_conditions, lambda r: 'on_conditions'),
            ('ControlResource', snapshot.control_resources, lambda r: 'control_resources'),
            ('QuantitativeResource', snapshot.quantitative_resources, lambda r: 'quantitative_resources'),
            ('Variable', snapshot.variables, self._variable_group),
        ]
        for record_type, records, group_of in child_groups:
            for record in records:
                if record.job_key not in seen:
                    warnings.append(self._malformed(
                        f"{record_type} references unknown job '{record.job_name}' in folder '{record.folder_name}'",
                        job_name=record.job_name, folder_name=record.folder_name, record_type=record_type,
                    ))
                    continue
                children[record.job_key][group_of(record)].append(record)

        profiles = []
        for job_id, job in enumerate(accepted):
            groups = children.get(job.key, {})
            profiles.append(JobProfile(
                job_id=job_id,
                job=job,
                in_conditions=tuple(groups.get('in_conditions', ())),
                out_conditions=tuple(groups.get('out_conditions', ())),
                on_conditions=tuple(groups.get('on_conditions', ())),
                control_resources=tuple(groups.get('control_resources', ())),
                quantitative_resources=tuple(groups.get('quantitative_resources', ())),
                variables=tuple(groups.get('variables', ())),
                auto_edits=tuple(groups.get('auto_edits', ())),
            ))

        rejected = len(snapshot.jobs) - len(profiles)
        if rejected:
            logger.warning(f"Excluded {rejected} malformed job records")
        logger.info(f"Assembled {len(profiles)} jobs across {len(folders)} folders ({len(warnings)} warnings)")

        return AssembledSnapshot(
            profiles=tuple(profiles),
            folders=folders,
            warnings=tuple(warnings),
            total_jobs_attempted=len(snapshot.jobs),
        )

    @staticmethod
    def _condition_group(record: Condition) -> str:
        return 'in_conditions' if record.direction == ConditionDirection.IN else 'out_conditions'

    @staticmethod
    def _variable_group(record: Variable) -> str:
        return 'auto_edits' if record.kind == VariableKind.AUTO_EDIT else 'variables'

    @staticmethod
    def _malformed(message: str, **context) -> AnalysisWarning:
        logger.debug(message)
        return AnalysisWarning(kind=WarningKind.MALFORMED_RECORD, message=message, **context)
