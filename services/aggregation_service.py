"""
Aggregation Service - Monthly and project-level metrics
=======================================================
Derives monthly aggregates from weekly progress records and builds the
month-by-month report matrix, the project dashboard summary and the
variance analysis table.

Nothing here raises on missing data: an unrecorded period is ``None`` and
every ratio is zero when its denominator is zero.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Union

from models import MonthlyAggregate, ProjectTask, WeeklyProgressRecord
from progress_utils import (
    current_period,
    month_column,
    months_between,
    parse_period,
    period_key,
    previous_month,
    safe_percent,
)
from services.base import LoggingMixin, ValidationError
from services.progress_service import ProgressRecorder
from services.task_binding_service import TaskBinder


TaskRef = Union[int, ProjectTask]

# Widest report accepted, in months
REPORT_MAX_COLUMNS = 120


def aggregate_record(task: ProjectTask, record: WeeklyProgressRecord) -> MonthlyAggregate:
    """Sum the four weekly entries of a record and derive its variances"""
    targeted = sum(entry.targeted_qty for entry in record.weekly_data)
    achieved = sum(entry.achieved_qty for entry in record.weekly_data)
    consumed = sum(entry.consumed_manhours for entry in record.weekly_data)
    expected = achieved * task.manhours_per_unit

    return MonthlyAggregate(
        task_id=task.id,
        year=record.year,
        month=record.month,
        targeted_quantity=targeted,
        achieved_quantity=achieved,
        consumed_manhours=consumed,
        variance_quantity=achieved - targeted,
        expected_manhours=expected,
        variance_manhours=consumed - expected,
        additional_lapsed_manhours=record.additional_lapsed_manhours,
        justification=record.justification,
    )


class AggregationEngine(LoggingMixin):
    """
    Read side of progress tracking.

    Aggregates of recorded periods are cached per (task, year, month).
    The engine subscribes to the recorder and drops a task's cached periods
    whenever that task is re-recorded.
    """

    def __init__(self, binder: TaskBinder, recorder: Optional[ProgressRecorder] = None):
        self.binder = binder
        self._cache: Dict[Tuple[int, int, int], MonthlyAggregate] = {}
        if recorder is not None:
            recorder.subscribe(self.invalidate)

    def invalidate(self, task_id: int, year: Optional[int] = None, month: Optional[int] = None) -> None:
        """Drop every cached period of a task"""
        stale = [key for key in self._cache if key[0] == task_id]
        for key in stale:
            del self._cache[key]
        if stale:
            self._log_debug(f"Dropped {len(stale)} cached aggregates for task {task_id}")

    def _resolve(self, task: TaskRef) -> ProjectTask:
        if isinstance(task, ProjectTask):
            return task
        return self.binder.get_task(task)

    def monthly_aggregate(self, task: TaskRef, year: int, month: int) -> Optional[MonthlyAggregate]:
        """Aggregate of a task for one period, or None when nothing was recorded"""
        task = self._resolve(task)
        key = (task.id, year, month)
        if key in self._cache:
            return self._cache[key]

        record = task.records.get(period_key(year, month))
        if record is None:
            return None
        aggregate = aggregate_record(task, record)
        self._cache[key] = aggregate
        return aggregate

    def _recorded_aggregates(self, task: ProjectTask) -> List[MonthlyAggregate]:
        aggregates = []
        for key in sorted(task.records):
            record = task.records[key]
            aggregates.append(self.monthly_aggregate(task, record.year, record.month))
        return aggregates

    @staticmethod
    def _task_totals(task: ProjectTask, aggregates: List[MonthlyAggregate]) -> Dict[str, float]:
        installed = sum(a.achieved_quantity for a in aggregates)
        consumed = sum(a.consumed_manhours for a in aggregates)
        return {
            'totalTargetedQuantity': sum(a.targeted_quantity for a in aggregates),
            'totalInstalledQuantity': installed,
            'totalConsumedManhours': consumed,
            'totalExpectedManhours': sum(a.expected_manhours for a in aggregates),
            'totalAdditionalLapsedManhours': sum(a.additional_lapsed_manhours for a in aggregates),
            'remainingQuantity': task.budgeted_quantity - installed,
            'progressPercent': safe_percent(installed, task.budgeted_quantity),
        }

    # ===== REPORTS =====

    def build_monthly_report(self, project_id: Any, start_period: Any, end_period: Any) -> Dict[str, Any]:
        """
        Month-by-month report matrix for a project.

        Args:
            project_id: Project whose tasks form the rows
            start_period: First column, "YYYY-MM" or "YYYY-MM-DD"
            end_period: Last column (inclusive)

        Returns:
            Dict with ``columns``, one row per task (a cell per column,
            ``None`` where nothing was recorded, totals over the cells with
            data) and a project ``summary``.
        """
        start = parse_period(start_period, field='startDate')
        end = parse_period(end_period, field='endDate')
        span = (end[0] - start[0]) * 12 + end[1] - start[1] + 1
        if span > REPORT_MAX_COLUMNS:
            raise ValidationError(
                f"A report can span at most {REPORT_MAX_COLUMNS} months, got {span}",
                field='endDate',
            )
        periods = months_between(start, end)
        tasks = self.binder.list_tasks(project_id)

        rows = []
        total_budgeted = 0.0
        total_consumed = 0.0
        for task in tasks:
            cells = [self.monthly_aggregate(task, year, month) for year, month in periods]
            with_data = [cell for cell in cells if cell is not None]
            totals = self._task_totals(task, with_data)

            total_budgeted += task.total_budgeted_manhours
            total_consumed += totals['totalConsumedManhours']
            rows.append({
                'task': task.to_dict(),
                'cells': [cell.to_dict() if cell is not None else None for cell in cells],
                'totals': totals,
            })

        summary = {
            'totalTasks': len(tasks),
            'totalBudgetedManhours': total_budgeted,
            'totalConsumedManhours': total_consumed,
            'overallProgressPercent': safe_percent(total_consumed, total_budgeted),
        }
        self._log_info(
            f"Report built: project={project_id} columns={len(periods)} rows={len(rows)}"
        )
        return {
            'projectId': project_id,
            'startPeriod': period_key(*start),
            'endPeriod': period_key(*end),
            'columns': [month_column(year, month) for year, month in periods],
            'rows': rows,
            'summary': summary,
        }

    def recorded_range(self, project_id: Any) -> Optional[Tuple[Tuple[int, int], Tuple[int, int]]]:
        """First and last recorded (year, month) across the project's tasks, or None"""
        periods = [
            (record.year, record.month)
            for task in self.binder.list_tasks(project_id)
            for record in task.records.values()
        ]
        if not periods:
            return None
        return min(periods), max(periods)

    def _month_progress(self, tasks: List[ProjectTask], year: int, month: int, budgeted_qty: float) -> float:
        achieved = 0.0
        for task in tasks:
            aggregate = self.monthly_aggregate(task, year, month)
            if aggregate is not None:
                achieved += aggregate.achieved_quantity
        return safe_percent(achieved, budgeted_qty)

    def build_dashboard_summary(self, project_id: Any, today: Optional[date] = None) -> Dict[str, Any]:
        """Project-to-date totals plus this month's progress against last month's"""
        tasks = self.binder.list_tasks(project_id)

        budgeted_qty = 0.0
        budgeted_mh = 0.0
        installed = 0.0
        consumed = 0.0
        completed = 0
        for task in tasks:
            totals = self._task_totals(task, self._recorded_aggregates(task))
            budgeted_qty += task.budgeted_quantity
            budgeted_mh += task.total_budgeted_manhours
            installed += totals['totalInstalledQuantity']
            consumed += totals['totalConsumedManhours']
            if task.budgeted_quantity > 0 and totals['remainingQuantity'] <= 0:
                completed += 1

        this_month = current_period(today)
        last_month = previous_month(*this_month)
        monthly_progress = self._month_progress(tasks, *this_month, budgeted_qty)
        last_month_progress = self._month_progress(tasks, *last_month, budgeted_qty)

        budget_efficiency = safe_percent(consumed, budgeted_mh)
        is_over_budget = budget_efficiency >= 100

        return {
            'projectId': project_id,
            'totalTasks': len(tasks),
            'completedTasks': completed,
            'totalBudgetedQuantity': budgeted_qty,
            'totalInstalledQuantity': installed,
            'remainingQuantity': budgeted_qty - installed,
            'totalBudgetedManhours': budgeted_mh,
            'totalConsumedManhours': consumed,
            'overallProgress': safe_percent(installed, budgeted_qty),
            'budgetEfficiency': budget_efficiency,
            'isOverBudget': is_over_budget,
            'budgetStatus': 'over budget' if is_over_budget else 'within budget',
            'currentPeriod': period_key(*this_month),
            'monthlyProgress': monthly_progress,
            'lastMonthProgress': last_month_progress,
            'monthlyTrend': monthly_progress - last_month_progress,
        }

    def variance_analysis(self, project_id: Any, start: Any = None, end: Any = None) -> List[Dict[str, Any]]:
        """
        Flat (task, period) variance rows for periods with data.

        ``start`` and ``end`` optionally bound the periods (inclusive).
        Rows are ordered by task id, then period.
        """
        lower = parse_period(start, field='startDate') if start else None
        upper = parse_period(end, field='endDate') if end else None

        rows = []
        for task in self.binder.list_tasks(project_id):
            for aggregate in self._recorded_aggregates(task):
                period = (aggregate.year, aggregate.month)
                if lower and period < lower:
                    continue
                if upper and period > upper:
                    continue
                row = aggregate.to_dict()
                row.update({
                    'period': aggregate.period_key,
                    'taskName': task.task_name,
                    'categoryName': task.category_name,
                    'activityCode': task.activity_code,
                    'unit': task.unit,
                    'quantityVariancePercent': safe_percent(aggregate.variance_quantity, aggregate.targeted_quantity),
                    'manhourVariancePercent': safe_percent(aggregate.variance_manhours, aggregate.expected_manhours),
                })
                rows.append(row)
        return rows
