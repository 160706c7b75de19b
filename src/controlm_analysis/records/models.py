"""
Record Models

Immutable records exported from the Control-M scheduler. Jobs are identified
by the (job name, folder name) pair; child records (conditions, ON conditions,
resources, variables) point back at their job with that pair.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from ..errors import AnalysisWarning


class ConditionDirection(Enum):
    """Whether a job requires a condition or produces it."""
    IN = "in"
    OUT = "out"


class VariableKind(Enum):
    """Plain job variables versus AutoEdit variables."""
    VARIABLE = "variable"
    AUTO_EDIT = "auto_edit"


@dataclass(frozen=True)
class SchedulingInfo:
    """Scheduling attributes that make a job harder to translate."""
    days_calendar: Optional[str] = None
    weeks_calendar: Optional[str] = None
    conf_calendar: Optional[str] = None
    time_from: Optional[str] = None
    time_to: Optional[str] = None
    days: Optional[str] = None
    weekdays: Optional[str] = None
    months: Tuple[str, ...] = ()
    shift: Optional[str] = None

    def has_calendar(self) -> bool:
        return bool(self.days_calendar or self.weeks_calendar or self.conf_calendar)

    def has_time_window(self) -> bool:
        return bool(self.time_from and self.time_to)

    def feature_count(self) -> int:
        """Number of scheduling features in use (0-6)."""
        features = [
            self.has_calendar(),
            self.has_time_window(),
            bool(self.days),
            bool(self.months),
            bool(self.weekdays),
            bool(self.shift),
        ]
        return sum(1 for present in features if present)


@dataclass(frozen=True)
class Folder:
    """A named grouping of jobs, optionally scoped to a datacenter."""
    folder_name: str
    datacenter: Optional[str] = None
    folder_type: Optional[str] = None
    folder_order_method: Optional[str] = None
    application: Optional[str] = None


@dataclass(frozen=True)
class Job:
    """A scheduled unit of work."""
    job_name: str
    folder_name: str
    application: Optional[str] = None
    sub_application: Optional[str] = None
    appl_type: Optional[str] = None
    task_type: Optional[str] = None
    description: Optional[str] = None
    critical: bool = False
    cyclic: bool = False
    scheduling: SchedulingInfo = field(default_factory=SchedulingInfo)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.job_name, self.folder_name)


@dataclass(frozen=True)
class Condition:
    """An in or out condition attached to a job."""
    job_name: str
    folder_name: str
    name: str
    direction: ConditionDirection
    odate: Optional[str] = None
    and_or: Optional[str] = None

    @property
    def job_key(self) -> Tuple[str, str]:
        return (self.job_name, self.folder_name)


@dataclass(frozen=True)
class DoAction:
    """A single action triggered by an ON condition."""
    kind: str
    value: Optional[str] = None


@dataclass(frozen=True)
class OnCondition:
    """An event handler on a job outcome and the actions it triggers."""
    job_name: str
    folder_name: str
    stmt: Optional[str] = None
    code: Optional[str] = None
    pattern: Optional[str] = None
    actions: Tuple[DoAction, ...] = ()

    @property
    def job_key(self) -> Tuple[str, str]:
        return (self.job_name, self.folder_name)


@dataclass(frozen=True)
class ControlResource:
    """An exclusive or shared lock a job must acquire."""
    job_name: str
    folder_name: str
    name: str
    resource_type: Optional[str] = None
    on_fail: Optional[str] = None

    @property
    def job_key(self) -> Tuple[str, str]:
        return (self.job_name, self.folder_name)


@dataclass(frozen=True)
class QuantitativeResource:
    """A countable resource pool a job draws from."""
    job_name: str
    folder_name: str
    name: str
    quantity: int = 1
    on_fail: Optional[str] = None
    on_ok: Optional[str] = None

    @property
    def job_key(self) -> Tuple[str, str]:
        return (self.job_name, self.folder_name)


@dataclass(frozen=True)
class Variable:
    """A job variable or AutoEdit assignment."""
    job_name: str
    folder_name: str
    name: str
    value: str = ''
    kind: VariableKind = VariableKind.VARIABLE

    @property
    def job_key(self) -> Tuple[str, str]:
        return (self.job_name, self.folder_name)


@dataclass(frozen=True)
class Snapshot:
    """Everything read from one export, in export order."""
    folders: Tuple[Folder, ...] = ()
    jobs: Tuple[Job, ...] = ()
    conditions: Tuple[Condition, ...] = ()
    on_conditions: Tuple[OnCondition, ...] = ()
    control_resources: Tuple[ControlResource, ...] = ()
    quantitative_resources: Tuple[QuantitativeResource, ...] = ()
    variables: Tuple[Variable, ...] = ()
    load_warnings: Tuple[AnalysisWarning, ...] = ()
