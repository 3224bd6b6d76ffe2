"""Project task and weekly progress models"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Tuple


WEEKS_PER_PERIOD = 4
JUSTIFICATION_MAX_LENGTH = 1000


@dataclass(frozen=True)
class WeekEntry:
    week: int
    targeted_qty: float = 0.0
    achieved_qty: float = 0.0
    consumed_manhours: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'week': self.week,
            'targetedQty': self.targeted_qty,
            'achievedQty': self.achieved_qty,
            'consumedManhours': self.consumed_manhours,
        }


@dataclass(frozen=True)
class WeeklyProgressRecord:
    """
    Progress of one task for one (year, month) period.

    ``weekly_data`` always holds exactly four entries, weeks 1..4 in order.
    Records are replaced wholesale on re-edit, never patched.
    """

    task_id: int
    year: int
    month: int
    weekly_data: Tuple[WeekEntry, ...]
    additional_lapsed_manhours: float = 0.0
    justification: str = ''
    recorded_at: datetime = field(default_factory=datetime.utcnow, compare=False)

    @property
    def period_key(self) -> str:
        return f'{self.year:04d}-{self.month:02d}'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'taskId': self.task_id,
            'year': self.year,
            'month': self.month,
            'periodKey': self.period_key,
            'weeklyData': [entry.to_dict() for entry in self.weekly_data],
            'additionalLapsedManhours': self.additional_lapsed_manhours,
            'justification': self.justification,
            'recordedAt': self.recorded_at.isoformat(),
        }


@dataclass
class ProjectTask:
    """
    A catalog sub-task instantiated for a project.

    The budget baseline (quantity, productivity, manhours, unit) is captured
    at binding time and does not follow later catalog edits.
    """

    id: int
    project_id: Any
    sub_task_id: int
    budgeted_quantity: float
    productivity: float
    total_budgeted_manhours: float
    unit: str
    category_name: str
    task_name: str
    activity_code: str = ''
    created_at: datetime = field(default_factory=datetime.utcnow)
    # period key "YYYY-MM" -> record; written only by the progress recorder
    records: Dict[str, WeeklyProgressRecord] = field(default_factory=dict, repr=False)

    @property
    def manhours_per_unit(self) -> float:
        if self.productivity > 0:
            return 1.0 / self.productivity
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'projectId': self.project_id,
            'masterSubTaskId': self.sub_task_id,
            'budgetedQuantity': self.budgeted_quantity,
            'productivity': self.productivity,
            'totalBudgetedManhours': self.total_budgeted_manhours,
            'unit': self.unit,
            'categoryName': self.category_name,
            'activityCode': self.activity_code,
            'taskName': self.task_name,
            'recordedPeriods': sorted(self.records),
        }


@dataclass(frozen=True)
class MonthlyAggregate:
    task_id: int
    year: int
    month: int
    targeted_quantity: float
    achieved_quantity: float
    consumed_manhours: float
    variance_quantity: float
    expected_manhours: float
    variance_manhours: float
    additional_lapsed_manhours: float = 0.0
    justification: str = ''

    @property
    def period_key(self) -> str:
        return f'{self.year:04d}-{self.month:02d}'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'taskId': self.task_id,
            'year': self.year,
            'month': self.month,
            'targetedQuantity': self.targeted_quantity,
            'achievedQuantity': self.achieved_quantity,
            'consumedManhours': self.consumed_manhours,
            'varianceQuantity': self.variance_quantity,
            'expectedManhours': self.expected_manhours,
            'varianceManhours': self.variance_manhours,
            'additionalLapsedManhours': self.additional_lapsed_manhours,
            'justification': self.justification,
        }
