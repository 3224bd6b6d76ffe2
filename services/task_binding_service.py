"""
Task Binding Service
====================
Instantiates catalog sub-tasks as project tasks with a budget baseline.
"""

from typing import Any, Dict, Iterable, List, Optional

from models import ProjectTask
from services.base import (
    AlreadyBoundError,
    BaseService,
    NotFoundError,
    ValidationError,
)
from services.catalog_service import CatalogStore
from utils.validators import validate_non_negative


_OVERRIDE_FIELDS = ('budgetedQuantity', 'productivity', 'totalBudgetedManhours')


def budgeted_manhours(quantity: float, productivity: float) -> float:
    """Manhours needed for ``quantity`` at ``productivity`` units per manhour"""
    if productivity > 0:
        return quantity / productivity
    return 0.0


class TaskBinder(BaseService[ProjectTask]):
    """
    Binds catalog sub-tasks to projects.

    The binder reads the catalog at binding time only; a project task keeps
    its own copy of names, unit and productivity afterwards.
    """

    resource_name = 'ProjectTask'

    def __init__(self, catalog: CatalogStore):
        super().__init__()
        self.catalog = catalog
        # (project_id, sub_task_id) -> task id
        self._bindings: Dict[tuple, int] = {}

    def get_task(self, task_id: int) -> ProjectTask:
        return self.get_by_id_or_fail(task_id)

    def list_tasks(self, project_id: Any) -> List[ProjectTask]:
        return sorted(self.get_all(project_id=project_id), key=lambda task: task.id)

    def find_task(self, project_id: Any, sub_task_id: int) -> Optional[ProjectTask]:
        task_id = self._bindings.get((project_id, sub_task_id))
        if task_id is None:
            return None
        return self._items.get(task_id)

    def bind_task(self, project_id: Any, sub_task_id: int,
                  overrides: Optional[Dict[str, Any]] = None) -> ProjectTask:
        """
        Create a project task from a catalog sub-task.

        Args:
            project_id: Project receiving the task
            sub_task_id: Active catalog sub-task
            overrides: Optional ``budgetedQuantity``, ``productivity``,
                ``totalBudgetedManhours`` and ``unit``

        Raises:
            NotFoundError: unknown or inactive sub-task
            AlreadyBoundError: the project already has this sub-task
            ValidationError: negative or non-numeric override
        """
        if project_id is None or (isinstance(project_id, str) and not project_id.strip()):
            raise ValidationError("project_id is required", field='projectId')

        sub_task = self.catalog.get_sub_task(sub_task_id)
        activity, category = self.catalog.parents_of(sub_task)
        if not (sub_task.is_active and activity.is_active and category.is_active):
            raise NotFoundError('MasterSubTask', sub_task_id)

        if (project_id, sub_task_id) in self._bindings:
            raise AlreadyBoundError(project_id, sub_task_id)

        overrides = overrides or {}
        values = {}
        for key in _OVERRIDE_FIELDS:
            if overrides.get(key) is None:
                continue
            is_valid, error = validate_non_negative(overrides[key], key)
            if not is_valid:
                raise ValidationError(error, field=key)
            values[key] = float(overrides[key])

        quantity = values.get('budgetedQuantity', 0.0)
        productivity = values.get('productivity', sub_task.default_productivity)
        manhours = values.get('totalBudgetedManhours')
        if manhours is None:
            manhours = budgeted_manhours(quantity, productivity)

        unit = overrides.get('unit')
        if unit is not None and not isinstance(unit, str):
            raise ValidationError("unit must be a string", field='unit')
        unit = (unit or '').strip() or sub_task.unit

        task = ProjectTask(
            id=self._next_id(),
            project_id=project_id,
            sub_task_id=sub_task.id,
            budgeted_quantity=quantity,
            productivity=productivity,
            total_budgeted_manhours=manhours,
            unit=unit,
            category_name=category.name,
            task_name=sub_task.name,
            activity_code=activity.code,
        )
        self._items[task.id] = task
        self._bindings[(project_id, sub_task_id)] = task.id

        self._log_info(
            f"Task bound: project={project_id} sub_task={sub_task_id} "
            f"budgeted_manhours={manhours:.2f}"
        )
        self._audit('bind_task', id=task.id, project=project_id, sub_task=sub_task_id)
        return task

    def bind_categories(self, project_id: Any, category_ids: Iterable[int]) -> List[ProjectTask]:
        """
        Bind every active sub-task of the given categories to a project.

        Sub-tasks already bound to the project are skipped. All categories
        are resolved before anything is bound.
        """
        categories = [self.catalog.get_category(category_id) for category_id in category_ids]

        created = []
        for category in categories:
            if not category.is_active:
                self._log_warning(f"Skipping inactive category {category.code}")
                continue
            for activity in self.catalog.list_activities(category.id, active_only=True):
                for sub_task in self.catalog.list_sub_tasks(activity.id, active_only=True):
                    if (project_id, sub_task.id) in self._bindings:
                        continue
                    created.append(self.bind_task(project_id, sub_task.id))

        self._log_info(f"Initialized {len(created)} tasks for project {project_id}")
        return created
