"""
Progress Service - Weekly progress recording
============================================
Normalizes and stores monthly progress records (four weekly entries per
period) for project tasks, and notifies subscribers when a task's data
changes so cached aggregates can be dropped.
"""

from typing import Any, Callable, Dict, List, Optional

from models import (
    JUSTIFICATION_MAX_LENGTH,
    WEEKS_PER_PERIOD,
    WeekEntry,
    WeeklyProgressRecord,
)
from progress_utils import MAX_YEAR, period_key
from services.base import InvalidInputError, LoggingMixin, ValidationError
from services.task_binding_service import TaskBinder
from utils.json_unwrap import configured_max_depth, unwrap_json_list
from utils.validators import coerce_number


Listener = Callable[[int, int, int], None]

_WEEK_FIELDS = (
    ('targetedQty', 'targeted_qty'),
    ('achievedQty', 'achieved_qty'),
    ('consumedManhours', 'consumed_manhours'),
)


def _non_negative(value: Any, field: str) -> float:
    number = coerce_number(value)
    if number < 0:
        raise InvalidInputError(f"{field} cannot be negative", field=field)
    return number


def _explicit_week(entry: Any) -> Optional[int]:
    if not isinstance(entry, dict):
        return None
    week = entry.get('week')
    if isinstance(week, bool) or not isinstance(week, int):
        return None
    if 1 <= week <= WEEKS_PER_PERIOD:
        return week
    return None


def normalize_weekly_data(weekly_data: Any) -> tuple:
    """
    Normalize raw weekly entries to exactly four ``WeekEntry`` objects.

    When every entry names a distinct week in 1..4 the entries are placed by
    week number, otherwise by position. Missing weeks are zero-filled and
    extra entries dropped. Quantities that are missing or not numbers count
    as zero; negative ones raise ``InvalidInputError``.
    """
    if not isinstance(weekly_data, list):
        weekly_data = unwrap_json_list(weekly_data, max_depth=configured_max_depth())

    weeks = [_explicit_week(entry) for entry in weekly_data]
    by_week = (
        bool(weeks)
        and None not in weeks
        and len(set(weeks)) == len(weeks)
    )

    slots: Dict[int, Any] = {}
    for index, entry in enumerate(weekly_data):
        week = weeks[index] if by_week else index + 1
        if week > WEEKS_PER_PERIOD:
            break
        slots[week] = entry

    entries = []
    for week in range(1, WEEKS_PER_PERIOD + 1):
        raw = slots.get(week)
        if not isinstance(raw, dict):
            raw = {}
        position = week - 1
        values = {
            attr: _non_negative(raw.get(key), f"weeklyData[{position}].{key}")
            for key, attr in _WEEK_FIELDS
        }
        entries.append(WeekEntry(week=week, **values))
    return tuple(entries)


class ProgressRecorder(LoggingMixin):
    """
    Records weekly progress against bound project tasks.

    Records are keyed by (task, year, month) and replaced wholesale on every
    write. Listeners registered with ``subscribe`` receive
    ``(task_id, year, month)`` after each successful write.
    """

    def __init__(self, binder: TaskBinder):
        self.binder = binder
        self._listeners: List[Listener] = []

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it"""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _publish(self, task_id: int, year: int, month: int) -> None:
        for listener in list(self._listeners):
            try:
                listener(task_id, year, month)
            except Exception as e:
                self._log_error(f"Listener failed for task {task_id} period {period_key(year, month)}: {str(e)}")
                raise

    @staticmethod
    def _clean_period(payload: Dict[str, Any]) -> tuple:
        year = payload.get('year')
        month = payload.get('month')
        if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= MAX_YEAR:
            raise ValidationError(f"year must be an integer between 1 and {MAX_YEAR}", field='year')
        if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
            raise ValidationError("month must be an integer between 1 and 12", field='month')
        return year, month

    @staticmethod
    def _clean_justification(payload: Dict[str, Any]) -> str:
        justification = payload.get('justification')
        if justification is None:
            return ''
        if not isinstance(justification, str):
            raise ValidationError("justification must be text", field='justification')
        justification = justification.strip()
        if len(justification) > JUSTIFICATION_MAX_LENGTH:
            raise ValidationError(
                f"justification cannot exceed {JUSTIFICATION_MAX_LENGTH} characters",
                field='justification',
            )
        return justification

    def record_weekly_progress(self, task_id: int, payload: Dict[str, Any]) -> WeeklyProgressRecord:
        """
        Create or replace the progress record of a task for one month.

        Args:
            task_id: Bound project task
            payload: ``year``, ``month``, ``weeklyData`` (list or JSON
                string), ``additionalLapsedManhours``, ``justification``

        Raises:
            NotFoundError: unknown task
            ValidationError: bad period or over-long justification
            InvalidInputError: a negative quantity or manhour value
        """
        task = self.binder.get_task(task_id)
        if not isinstance(payload, dict):
            raise ValidationError("Progress payload must be an object")

        year, month = self._clean_period(payload)
        weekly_data = normalize_weekly_data(payload.get('weeklyData'))
        lapsed = _non_negative(payload.get('additionalLapsedManhours'), 'additionalLapsedManhours')
        justification = self._clean_justification(payload)

        record = WeeklyProgressRecord(
            task_id=task.id,
            year=year,
            month=month,
            weekly_data=weekly_data,
            additional_lapsed_manhours=lapsed,
            justification=justification,
        )
        key = period_key(year, month)
        replaced = key in task.records
        task.records[key] = record

        self._log_info(f"Progress {'updated' if replaced else 'recorded'}: task={task.id} period={key}")
        self._audit('record_weekly_progress', task=task.id, period=key, replaced=replaced)
        self._publish(task.id, year, month)
        return record

    def get_record(self, task_id: int, year: int, month: int) -> Optional[WeeklyProgressRecord]:
        task = self.binder.get_task(task_id)
        return task.records.get(period_key(year, month))

    def progress_history(self, task_id: int) -> List[WeeklyProgressRecord]:
        """All records of a task ordered by period"""
        task = self.binder.get_task(task_id)
        return sorted(task.records.values(), key=lambda record: (record.year, record.month))
