"""
Snapshot Loader

Builds a Snapshot from a normalized JSON export (.json or .json.gz).

Child records may be given either as flat top-level collections carrying
``job_name``/``folder_name`` or nested under each job, e.g.::

    {
      "folders": [{"folder_name": "F1", "datacenter": "DC1"}],
      "jobs": [{
        "job_name": "LOAD_A", "folder_name": "F1", "critical": true,
        "in_conditions": [{"name": "EXTRACT-OK", "odate": "ODAT"}],
        "out_conditions": ["LOAD_A-OK"],
        "variables": {"%%PATH": "/data"}
      }],
      "conditions": [{"job_name": "LOAD_A", "folder_name": "F1",
                      "name": "X-OK", "direction": "in"}]
    }
"""

import gzip
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..errors import AnalysisWarning, SnapshotError, WarningKind
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

logger = logging.getLogger(__name__)

SCHEDULING_FIELDS = (
    'days_calendar', 'weeks_calendar', 'conf_calendar', 'time_from',
    'time_to', 'days', 'weekdays', 'shift',
)


class SnapshotLoader:
    """Converts exported dictionaries into immutable records."""

    def __init__(self):
        self.warnings: List[AnalysisWarning] = []

    def load_file(self, path: Union[str, Path]) -> Snapshot:
        """Load a snapshot from a .json or .json.gz file."""
        file_path = Path(path)
        if not file_path.exists():
            raise SnapshotError(f"Snapshot file not found: {file_path}")

        try:
            if file_path.suffix == '.gz':
                with gzip.open(file_path, 'rt', encoding='utf-8') as f:
                    data = json.load(f)
            else:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
        except (OSError, ValueError) as e:
            raise SnapshotError(f"Failed to read snapshot {file_path}: {e}") from e

        logger.info(f"Loaded snapshot file {file_path.name}")
        return self.load_dict(data)

    def load_dict(self, data: Dict[str, Any]) -> Snapshot:
        """
        Build a Snapshot from an already decoded export.

        A record that cannot be parsed is skipped with a MalformedRecord
        warning; a rejected job takes its nested child records with it.

        Raises:
            SnapshotError: if the root is not an object
        """
        if not isinstance(data, dict):
            raise SnapshotError("Snapshot root must be a JSON object")

        self.warnings = []
        folders: List[Folder] = []
        jobs: List[Job] = []
        conditions: List[Condition] = []
        on_conditions: List[OnCondition] = []
        control_resources: List[ControlResource] = []
        quantitative_resources: List[QuantitativeResource] = []
        variables: List[Variable] = []

        self._collect(folders, 'Folder', self._folder, data.get('folders', []))

        for item in data.get('jobs', []):
            job = self._parse_record('Job', self._job, item)
            if job is None:
                continue
            jobs.append(job)
            owner = {'job_name': job.job_name, 'folder_name': job.folder_name}

            # Nested child records inherit the job identity
            for direction in ConditionDirection:
                self._collect(conditions, 'Condition', self._nested_condition,
                              item.get(f'{direction.value}_conditions', []), owner, direction)
            self._collect(on_conditions, 'OnCondition', self._on_condition, item.get('on_conditions', []), owner)
            self._collect(control_resources, 'ControlResource', self._control_resource,
                          item.get('control_resources', []), owner)
            self._collect(quantitative_resources, 'QuantitativeResource', self._quantitative_resource,
                          item.get('quantitative_resources', []), owner)
            for key, kind in (('variables', VariableKind.VARIABLE), ('auto_edits', VariableKind.AUTO_EDIT)):
                self._collect(variables, 'Variable', self._variable,
                              self._variable_items(item.get(key, {})), owner, kind)

        self._collect(conditions, 'Condition', self._condition, data.get('conditions', []))
        self._collect(on_conditions, 'OnCondition', self._on_condition, data.get('on_conditions', []))
        self._collect(control_resources, 'ControlResource', self._control_resource,
                      data.get('control_resources', []))
        self._collect(quantitative_resources, 'QuantitativeResource', self._quantitative_resource,
                      data.get('quantitative_resources', []))
        self._collect(variables, 'Variable', self._variable, data.get('variables', []))

        logger.info(
            f"Snapshot: {len(folders)} folders, {len(jobs)} jobs, {len(conditions)} conditions, "
            f"{len(on_conditions)} on-conditions, {len(control_resources)} control resources, "
            f"{len(quantitative_resources)} quantitative resources, {len(variables)} variables"
        )

        return Snapshot(
            folders=tuple(folders),
            jobs=tuple(jobs),
            conditions=tuple(conditions),
            on_conditions=tuple(on_conditions),
            control_resources=tuple(control_resources),
            quantitative_resources=tuple(quantitative_resources),
            variables=tuple(variables),
            load_warnings=tuple(self.warnings),
        )

    def _collect(self, target: List[Any], record_type: str, parse: Callable[..., Any],
                 items: Any, *args: Any) -> None:
        for item in items or []:
            record = self._parse_record(record_type, parse, item, *args)
            if record is not None:
                target.append(record)

    def _parse_record(self, record_type: str, parse: Callable[..., Any], item: Any, *args: Any) -> Any:
        """Run one record parser; malformed input becomes a warning and None."""
        try:
            return parse(item, *args)
        except (SnapshotError, ValueError, TypeError, AttributeError) as e:
            context = args[0] if args and isinstance(args[0], dict) else item
            if not isinstance(context, dict):
                context = {}
            logger.warning(f"Skipping malformed {record_type} record: {e}")
            self.warnings.append(AnalysisWarning(
                kind=WarningKind.MALFORMED_RECORD,
                message=f"Malformed {record_type} record: {e}",
                job_name=self._text(context.get('job_name')),
                folder_name=self._text(context.get('folder_name')),
                record_type=record_type,
            ))
            return None

    @staticmethod
    def _text(value: Any) -> Optional[str]:
        return str(value) if value else None

    @staticmethod
    def _with_owner(item: Dict[str, Any], owner: Optional[Dict[str, str]]) -> Dict[str, Any]:
        if owner is None:
            return item
        return {**item, **owner}

    @staticmethod
    def _require(item: Dict[str, Any], key: str, record_type: str) -> str:
        value = item.get(key)
        if not value:
            raise SnapshotError(f"{record_type} record is missing required field '{key}': {item}")
        return str(value)

    def _folder(self, item: Dict[str, Any]) -> Folder:
        return Folder(
            folder_name=self._require(item, 'folder_name', 'Folder'),
            datacenter=item.get('datacenter'),
            folder_type=item.get('folder_type'),
            folder_order_method=item.get('folder_order_method'),
            application=item.get('application'),
        )

    def _job(self, item: Dict[str, Any]) -> Job:
        sched = item.get('scheduling', {}) or {}
        scheduling = SchedulingInfo(
            months=tuple(sched.get('months', []) or []),
            **{name: sched.get(name) for name in SCHEDULING_FIELDS},
        )
        return Job(
            job_name=self._require(item, 'job_name', 'Job'),
            folder_name=self._require(item, 'folder_name', 'Job'),
            application=item.get('application'),
            sub_application=item.get('sub_application'),
            appl_type=item.get('appl_type'),
            task_type=item.get('task_type'),
            description=item.get('description'),
            critical=bool(item.get('critical', False)),
            cyclic=bool(item.get('cyclic', False)),
            scheduling=scheduling,
        )

    def _nested_condition(self, item: Union[str, Dict[str, Any]], owner: Dict[str, str],
                          direction: ConditionDirection) -> Optional[Condition]:
        if isinstance(item, str):
            item = {'name': item}
        return self._condition({**item, **owner, 'direction': direction.value})

    def _condition(self, item: Dict[str, Any]) -> Optional[Condition]:
        job_name = self._require(item, 'job_name', 'Condition')
        folder_name = self._require(item, 'folder_name', 'Condition')
        name = self._require(item, 'name', 'Condition')
        raw_direction = str(item.get('direction', '')).lower()
        try:
            direction = ConditionDirection(raw_direction)
        except ValueError:
            logger.warning(f"Skipping condition '{name}' on {folder_name}/{job_name}: unknown direction '{raw_direction}'")
            self.warnings.append(AnalysisWarning(
                kind=WarningKind.MALFORMED_RECORD,
                message=f"Condition '{name}' has unknown direction '{raw_direction}'",
                job_name=job_name,
                folder_name=folder_name,
                record_type='Condition',
            ))
            return None

        return Condition(
            job_name=job_name,
            folder_name=folder_name,
            name=name,
            direction=direction,
            odate=item.get('odate'),
            and_or=item.get('and_or'),
        )

    def _on_condition(self, item: Dict[str, Any], owner: Optional[Dict[str, str]] = None) -> OnCondition:
        item = self._with_owner(item, owner)
        actions = []
        for action in item.get('actions', []):
            if isinstance(action, str):
                actions.append(DoAction(kind=action))
            else:
                actions.append(DoAction(kind=str(action.get('kind', 'ACTION')), value=action.get('value')))
        return OnCondition(
            job_name=self._require(item, 'job_name', 'OnCondition'),
            folder_name=self._require(item, 'folder_name', 'OnCondition'),
            stmt=item.get('stmt'),
            code=item.get('code'),
            pattern=item.get('pattern'),
            actions=tuple(actions),
        )

    def _control_resource(self, item: Dict[str, Any], owner: Optional[Dict[str, str]] = None) -> ControlResource:
        item = self._with_owner(item, owner)
        return ControlResource(
            job_name=self._require(item, 'job_name', 'ControlResource'),
            folder_name=self._require(item, 'folder_name', 'ControlResource'),
            name=self._require(item, 'name', 'ControlResource'),
            resource_type=item.get('resource_type'),
            on_fail=item.get('on_fail'),
        )

    def _quantitative_resource(self, item: Dict[str, Any],
                               owner: Optional[Dict[str, str]] = None) -> QuantitativeResource:
        item = self._with_owner(item, owner)
        return QuantitativeResource(
            job_name=self._require(item, 'job_name', 'QuantitativeResource'),
            folder_name=self._require(item, 'folder_name', 'QuantitativeResource'),
            name=self._require(item, 'name', 'QuantitativeResource'),
            quantity=int(item.get('quantity', 1)),
            on_fail=item.get('on_fail'),
            on_ok=item.get('on_ok'),
        )

    def _variable(self, item: Dict[str, Any], owner: Optional[Dict[str, str]] = None,
                  kind: Optional[VariableKind] = None) -> Variable:
        item = self._with_owner(item, owner)
        if kind is None:
            try:
                kind = VariableKind(item.get('kind', VariableKind.VARIABLE.value))
            except ValueError as e:
                raise SnapshotError(f"Variable record has unknown kind: {item}") from e
        return Variable(
            job_name=self._require(item, 'job_name', 'Variable'),
            folder_name=self._require(item, 'folder_name', 'Variable'),
            name=self._require(item, 'name', 'Variable'),
            value=str(item.get('value', '')),
            kind=kind,
        )

    @staticmethod
    def _variable_items(items: Any) -> List[Any]:
        """Nested variables may be a name->value mapping or a list of records."""
        if isinstance(items, dict):
            return [{'name': name, 'value': value} for name, value in items.items()]
        if isinstance(items, list):
            return items
        # Anything else is reported as one malformed record
        return [items]


def load_snapshot(source: Union[str, Path, Dict[str, Any]]) -> Snapshot:
    """Load a snapshot from a file path or an already decoded dict."""
    loader = SnapshotLoader()
    if isinstance(source, dict):
        return loader.load_dict(source)
    return loader.load_file(source)
