"""
Catalog Service - Master data hierarchy
=======================================
Owns the Category -> Activity -> Sub-Task catalog shared by every project:
- CRUD for the three levels with sibling-scope uniqueness
- Hierarchy rebuild from the flat arena
- Catalog statistics
- Bulk import (upsert by natural key) and export in the same shape

Nodes live in three dicts keyed by id. Activities and sub-tasks keep the id of
their parent for lookups; ownership is expressed only through those ids.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from models import (
    CATEGORY_CODE_MAX_LENGTH,
    DEFAULT_UNIT,
    UNITS,
    MasterActivity,
    MasterCategory,
    MasterSubTask,
)
from services.base import (
    BaseService,
    DuplicateCodeError,
    HasDependentsError,
    NotFoundError,
    ServiceException,
    ValidationError,
)
from utils.json_unwrap import configured_max_depth, unwrap_json
from utils.validators import (
    normalize_code,
    validate_code,
    validate_non_negative,
    validate_numeric,
    validate_string_length,
)


def _sort_key(node) -> Tuple[int, int]:
    return (node.order, node.id)


def _name_key(name: Optional[str]) -> str:
    """Casefolded identifier used to compare sub-task names"""
    if not name:
        return ""
    return name.strip().casefold()


def _clean_text(data: Dict[str, Any], key: str, field_name: str, max_length: int = 255,
                required: bool = False) -> Optional[str]:
    value = data.get(key)
    is_valid, error = validate_string_length(value, field_name, min_length=1 if required else 0,
                                             max_length=max_length)
    if not is_valid:
        raise ValidationError(error, field=key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _clean_order(data: Dict[str, Any], default: int = 0) -> int:
    value = data.get('order')
    if value is None:
        return default
    is_valid, error = validate_numeric(value, 'order', min_value=0)
    if not is_valid:
        raise ValidationError(error, field='order')
    return int(float(value))


def _clean_flag(data: Dict[str, Any], key: str = 'isActive', default: bool = True) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be true or false", field=key)
    return value


@dataclass
class ImportResult:
    """Outcome of a bulk import: per-level counts plus per-node success/failure"""

    categories: int = 0
    activities: int = 0
    sub_tasks: int = 0
    created: Dict[str, int] = field(default_factory=lambda: {'categories': 0, 'activities': 0, 'subTasks': 0})
    updated: Dict[str, int] = field(default_factory=lambda: {'categories': 0, 'activities': 0, 'subTasks': 0})
    succeeded: List[str] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    def record(self, level: str, status: str, path: str) -> None:
        if level == 'categories':
            self.categories += 1
        elif level == 'activities':
            self.activities += 1
        else:
            self.sub_tasks += 1
        bucket = self.created if status == 'created' else self.updated
        bucket[level] += 1
        self.succeeded.append(path)

    def fail(self, path: str, key: Any, exc: ServiceException) -> None:
        self.failed.append({
            'path': path,
            'key': key,
            'code': exc.code,
            'message': exc.message,
        })

    def skip(self, path: str, key: Any, parent_path: str) -> None:
        self.failed.append({
            'path': path,
            'key': key,
            'code': 'PARENT_FAILED',
            'message': f"Skipped because {parent_path} failed",
        })

    @property
    def partial(self) -> bool:
        return bool(self.failed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'categoriesCreatedOrUpdated': self.categories,
            'activitiesCreatedOrUpdated': self.activities,
            'subTasksCreatedOrUpdated': self.sub_tasks,
            'created': dict(self.created),
            'updated': dict(self.updated),
            'succeeded': list(self.succeeded),
            'failed': list(self.failed),
        }


# (children key, natural key) per import level below a category
_IMPORT_LEVELS = (('activities', 'code'), ('subTasks', 'name'))


def _import_descendants(path: str, node: Dict[str, Any], levels=_IMPORT_LEVELS):
    """Yield (path, natural key) for every node below ``node`` in an import payload"""
    if not levels:
        return
    (child_key, key_field), rest = levels[0], levels[1:]
    for index, child in enumerate(node.get(child_key) or []):
        child_path = f"{path}.{child_key}[{index}]"
        yield child_path, child.get(key_field)
        yield from _import_descendants(child_path, child, rest)


class CatalogStore(BaseService[MasterCategory]):
    """
    In-memory master data catalog.

    Every write validates completely before touching the arena, so a failed
    call leaves the catalog exactly as it was.
    """

    resource_name = 'MasterCategory'

    def __init__(self):
        super().__init__()
        self._activities: Dict[int, MasterActivity] = {}
        self._sub_tasks: Dict[int, MasterSubTask] = {}
        self._activity_ids = itertools.count(1)
        self._sub_task_ids = itertools.count(1)

    # ===== LOOKUPS =====

    def get_category(self, category_id: int) -> MasterCategory:
        return self.get_by_id_or_fail(category_id)

    def get_activity(self, activity_id: int) -> MasterActivity:
        activity = self._activities.get(activity_id)
        if activity is None:
            raise NotFoundError('MasterActivity', activity_id)
        return activity

    def get_sub_task(self, sub_task_id: int) -> MasterSubTask:
        sub_task = self._sub_tasks.get(sub_task_id)
        if sub_task is None:
            raise NotFoundError('MasterSubTask', sub_task_id)
        return sub_task

    def list_categories(self, active_only: bool = False) -> List[MasterCategory]:
        categories = self._items.values()
        if active_only:
            categories = [c for c in categories if c.is_active]
        return sorted(categories, key=_sort_key)

    def list_activities(self, category_id: int, active_only: bool = False) -> List[MasterActivity]:
        activities = [a for a in self._activities.values() if a.category_id == category_id]
        if active_only:
            activities = [a for a in activities if a.is_active]
        return sorted(activities, key=_sort_key)

    def list_sub_tasks(self, activity_id: int, active_only: bool = False) -> List[MasterSubTask]:
        sub_tasks = [s for s in self._sub_tasks.values() if s.activity_id == activity_id]
        if active_only:
            sub_tasks = [s for s in sub_tasks if s.is_active]
        return sorted(sub_tasks, key=_sort_key)

    def find_category_by_code(self, code: str) -> Optional[MasterCategory]:
        code = normalize_code(code)
        for category in self._items.values():
            if category.code == code:
                return category
        return None

    def find_activity_by_code(self, category_id: int, code: str) -> Optional[MasterActivity]:
        code = normalize_code(code)
        for activity in self._activities.values():
            if activity.category_id == category_id and activity.code == code:
                return activity
        return None

    def find_sub_task_by_name(self, activity_id: int, name: str) -> Optional[MasterSubTask]:
        key = _name_key(name)
        for sub_task in self._sub_tasks.values():
            if sub_task.activity_id == activity_id and _name_key(sub_task.name) == key:
                return sub_task
        return None

    def parents_of(self, sub_task: MasterSubTask) -> Tuple[MasterActivity, MasterCategory]:
        """Resolve the activity and category that own a sub-task"""
        activity = self.get_activity(sub_task.activity_id)
        return activity, self.get_category(activity.category_id)

    def _check_unit(self, unit: str, field_name: str) -> None:
        if unit not in UNITS:
            self._log_warning(f"Non-standard {field_name} '{unit}'; standard units are {', '.join(UNITS)}")

    # ===== CATEGORIES =====

    def _clean_category(self, data: Dict[str, Any], current: Optional[MasterCategory] = None) -> Dict[str, Any]:
        partial = current is not None
        changes: Dict[str, Any] = {}

        if not partial or 'code' in data:
            is_valid, error = validate_code(data.get('code'), 'code', max_length=CATEGORY_CODE_MAX_LENGTH)
            if not is_valid:
                raise ValidationError(error, field='code')
            code = normalize_code(data['code'])
            existing = self.find_category_by_code(code)
            if existing is not None and existing is not current:
                raise DuplicateCodeError(code, scope='categories')
            changes['code'] = code
        if not partial or 'name' in data:
            changes['name'] = _clean_text(data, 'name', 'name', required=True)
        if not partial or 'description' in data:
            changes['description'] = _clean_text(data, 'description', 'description', max_length=1000)
        if not partial or 'order' in data:
            changes['order'] = _clean_order(data, default=self.count() + 1)
        if not partial or 'isActive' in data:
            changes['is_active'] = _clean_flag(data)
        return changes

    def create_category(self, data: Dict[str, Any]) -> MasterCategory:
        """
        Create a master category.

        Args:
            data: ``code`` and ``name`` are required; ``description``,
                ``order`` and ``isActive`` are optional.

        Raises:
            ValidationError: missing or malformed fields
            DuplicateCodeError: another category already uses the code
        """
        changes = self._clean_category(data)
        category = MasterCategory(id=self._next_id(), **changes)
        self._items[category.id] = category
        self._log_info(f"Category created: {category.code} (ID: {category.id})")
        self._audit('create_category', id=category.id, code=category.code)
        return category

    def update_category(self, category_id: int, data: Dict[str, Any]) -> MasterCategory:
        category = self.get_category(category_id)
        changes = self._clean_category(data, current=category)
        for key, value in changes.items():
            setattr(category, key, value)
        self._log_info(f"Category updated: {category.code} (ID: {category.id})")
        self._audit('update_category', id=category.id, fields=','.join(sorted(changes)))
        return category

    def delete_category(self, category_id: int, cascade: bool = False) -> bool:
        """
        Delete a category.

        Refused while the category owns an active activity or any activity
        that still has sub-tasks, unless ``cascade`` is set, in which case the
        whole subtree is removed. Empty inactive activities go with the
        category.
        """
        category = self.get_category(category_id)
        activities = self.list_activities(category_id)
        blocking = [a for a in activities if a.is_active or self.list_sub_tasks(a.id)]
        if blocking and not cascade:
            raise HasDependentsError('MasterCategory', category_id, len(blocking))

        for activity in activities:
            self._remove_activity(activity)
        del self._items[category_id]
        if activities:
            self._log_warning(
                f"Category {category.code} deleted together with {len(activities)} activities"
            )
        else:
            self._log_info(f"Category deleted: {category.code} (ID: {category_id})")
        self._audit('delete_category', id=category_id, code=category.code, cascade=cascade)
        return True

    # ===== ACTIVITIES =====

    def _clean_activity(self, data: Dict[str, Any], current: Optional[MasterActivity] = None) -> Dict[str, Any]:
        partial = current is not None
        changes: Dict[str, Any] = {}

        category_id = current.category_id if partial else None
        if not partial or 'masterCategoryId' in data:
            category_id = data.get('masterCategoryId')
            if category_id is None:
                raise ValidationError("masterCategoryId is required", field='masterCategoryId')
            if not self.exists(category_id):
                raise NotFoundError('MasterCategory', category_id)
            changes['category_id'] = category_id

        if not partial or 'code' in data or 'category_id' in changes:
            raw_code = data.get('code') if 'code' in data or not partial else current.code
            is_valid, error = validate_code(raw_code, 'code')
            if not is_valid:
                raise ValidationError(error, field='code')
            code = normalize_code(raw_code)
            existing = self.find_activity_by_code(category_id, code)
            if existing is not None and existing is not current:
                raise DuplicateCodeError(code, scope=f'category {category_id}')
            changes['code'] = code
        if not partial or 'name' in data:
            changes['name'] = _clean_text(data, 'name', 'name', required=True)
        if not partial or 'description' in data:
            changes['description'] = _clean_text(data, 'description', 'description', max_length=1000)
        if not partial or 'defaultUnit' in data:
            changes['default_unit'] = _clean_text(data, 'defaultUnit', 'defaultUnit', max_length=20) or DEFAULT_UNIT
            self._check_unit(changes['default_unit'], 'defaultUnit')
        if not partial or 'order' in data:
            changes['order'] = _clean_order(data, default=len(self.list_activities(category_id)) + 1)
        if not partial or 'isActive' in data:
            changes['is_active'] = _clean_flag(data)
        return changes

    def create_activity(self, data: Dict[str, Any]) -> MasterActivity:
        """
        Create an activity under ``data['masterCategoryId']``.

        Raises:
            NotFoundError: the category does not exist
            ValidationError: missing or malformed fields
            DuplicateCodeError: the code is already used inside the category
        """
        changes = self._clean_activity(data)
        activity = MasterActivity(id=next(self._activity_ids), **changes)
        self._activities[activity.id] = activity
        self._log_info(f"Activity created: {activity.code} (ID: {activity.id})")
        self._audit('create_activity', id=activity.id, code=activity.code, category=activity.category_id)
        return activity

    def update_activity(self, activity_id: int, data: Dict[str, Any]) -> MasterActivity:
        activity = self.get_activity(activity_id)
        changes = self._clean_activity(data, current=activity)
        for key, value in changes.items():
            setattr(activity, key, value)
        self._log_info(f"Activity updated: {activity.code} (ID: {activity.id})")
        self._audit('update_activity', id=activity.id, fields=','.join(sorted(changes)))
        return activity

    def delete_activity(self, activity_id: int, cascade: bool = False) -> bool:
        """Delete an activity; refused while it owns sub-tasks unless ``cascade`` is set"""
        activity = self.get_activity(activity_id)
        sub_tasks = self.list_sub_tasks(activity_id)
        if sub_tasks and not cascade:
            raise HasDependentsError('MasterActivity', activity_id, len(sub_tasks))
        self._remove_activity(activity)
        self._log_info(f"Activity deleted: {activity.code} (ID: {activity_id})")
        self._audit('delete_activity', id=activity_id, code=activity.code, cascade=cascade)
        return True

    def _remove_activity(self, activity: MasterActivity) -> None:
        for sub_task in self.list_sub_tasks(activity.id):
            del self._sub_tasks[sub_task.id]
        del self._activities[activity.id]

    # ===== SUB-TASKS =====

    def _clean_sub_task(self, data: Dict[str, Any], current: Optional[MasterSubTask] = None) -> Dict[str, Any]:
        partial = current is not None
        changes: Dict[str, Any] = {}

        activity_id = current.activity_id if partial else None
        if not partial or 'masterActivityId' in data:
            activity_id = data.get('masterActivityId')
            if activity_id is None:
                raise ValidationError("masterActivityId is required", field='masterActivityId')
            self.get_activity(activity_id)
            changes['activity_id'] = activity_id
        activity = self.get_activity(activity_id)

        if not partial or 'name' in data or 'activity_id' in changes:
            name = _clean_text(data, 'name', 'name', required=True) if 'name' in data or not partial else current.name
            existing = self.find_sub_task_by_name(activity_id, name)
            if existing is not None and existing is not current:
                raise DuplicateCodeError(name, scope=f'activity {activity.code}')
            changes['name'] = name
        if not partial or 'description' in data:
            changes['description'] = _clean_text(data, 'description', 'description', max_length=1000)
        if not partial or 'defaultProductivity' in data:
            value = data.get('defaultProductivity', 0)
            is_valid, error = validate_non_negative(value, 'defaultProductivity')
            if not is_valid:
                raise ValidationError(error, field='defaultProductivity')
            changes['default_productivity'] = float(value)
        if not partial or 'unit' in data:
            changes['unit'] = _clean_text(data, 'unit', 'unit', max_length=20) or activity.default_unit
            self._check_unit(changes['unit'], 'unit')
        if not partial or 'order' in data:
            changes['order'] = _clean_order(data, default=len(self.list_sub_tasks(activity_id)) + 1)
        if not partial or 'isActive' in data:
            changes['is_active'] = _clean_flag(data)
        return changes

    def create_sub_task(self, data: Dict[str, Any]) -> MasterSubTask:
        """
        Create a sub-task under ``data['masterActivityId']``.

        Raises:
            NotFoundError: the activity does not exist
            ValidationError: missing name or negative productivity
            DuplicateCodeError: the name is already used inside the activity
        """
        changes = self._clean_sub_task(data)
        sub_task = MasterSubTask(id=next(self._sub_task_ids), **changes)
        self._sub_tasks[sub_task.id] = sub_task
        self._log_info(f"Sub-task created: {sub_task.name} (ID: {sub_task.id})")
        self._audit('create_sub_task', id=sub_task.id, activity=sub_task.activity_id)
        return sub_task

    def update_sub_task(self, sub_task_id: int, data: Dict[str, Any]) -> MasterSubTask:
        sub_task = self.get_sub_task(sub_task_id)
        changes = self._clean_sub_task(data, current=sub_task)
        for key, value in changes.items():
            setattr(sub_task, key, value)
        self._log_info(f"Sub-task updated: {sub_task.name} (ID: {sub_task.id})")
        self._audit('update_sub_task', id=sub_task.id, fields=','.join(sorted(changes)))
        return sub_task

    def delete_sub_task(self, sub_task_id: int) -> bool:
        sub_task = self.get_sub_task(sub_task_id)
        del self._sub_tasks[sub_task_id]
        self._log_info(f"Sub-task deleted: {sub_task.name} (ID: {sub_task_id})")
        self._audit('delete_sub_task', id=sub_task_id)
        return True

    # ===== HIERARCHY =====

    def get_hierarchy(self, active_only: bool = False) -> List[Dict[str, Any]]:
        """Rebuild the nested Category -> Activity -> Sub-Task tree from the arena"""
        hierarchy = []
        for category in self.list_categories(active_only=active_only):
            activities = []
            for activity in self.list_activities(category.id, active_only=active_only):
                activity_data = activity.to_dict()
                activity_data['masterSubTasks'] = [
                    sub_task.to_dict()
                    for sub_task in self.list_sub_tasks(activity.id, active_only=active_only)
                ]
                activities.append(activity_data)
            category_data = category.to_dict()
            category_data['masterActivities'] = activities
            hierarchy.append(category_data)
        return hierarchy

    def stats(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Totals per level, active counts and nodes created this month"""
        today = today or datetime.utcnow().date()

        def _recent(nodes) -> int:
            return sum(
                1 for node in nodes
                if node.created_at.year == today.year and node.created_at.month == today.month
            )

        levels = {
            'categories': list(self._items.values()),
            'activities': list(self._activities.values()),
            'subTasks': list(self._sub_tasks.values()),
        }
        totals = {level: len(nodes) for level, nodes in levels.items()}
        active = {level: sum(1 for node in nodes if node.is_active) for level, nodes in levels.items()}
        recent = {level: _recent(nodes) for level, nodes in levels.items()}
        totals['total'] = sum(totals.values())
        active['total'] = sum(active.values())
        recent['total'] = sum(recent.values())
        return {'totals': totals, 'active': active, 'recent': recent}

    # ===== IMPORT / EXPORT =====

    def export_all(self) -> Dict[str, Any]:
        """Full catalog in the nested shape accepted by ``import_bulk``"""
        categories = []
        for category in self.list_categories():
            activities = []
            for activity in self.list_activities(category.id):
                sub_tasks = []
                for sub_task in self.list_sub_tasks(activity.id):
                    sub_task_data = {'name': sub_task.name}
                    if sub_task.description is not None:
                        sub_task_data['description'] = sub_task.description
                    sub_task_data['defaultProductivity'] = sub_task.default_productivity
                    sub_task_data['unit'] = sub_task.unit
                    sub_task_data['order'] = sub_task.order
                    sub_tasks.append(sub_task_data)

                activity_data = {'code': activity.code, 'name': activity.name}
                if activity.description is not None:
                    activity_data['description'] = activity.description
                activity_data['defaultUnit'] = activity.default_unit
                activity_data['order'] = activity.order
                activity_data['subTasks'] = sub_tasks
                activities.append(activity_data)

            category_data = {'code': category.code, 'name': category.name}
            if category.description is not None:
                category_data['description'] = category.description
            category_data['order'] = category.order
            category_data['activities'] = activities
            categories.append(category_data)
        return {'categories': categories}

    def import_bulk(self, payload: Any) -> ImportResult:
        """
        Upsert a nested catalog payload.

        The whole payload is shape-checked first; a malformed payload raises
        ValidationError and nothing is applied. After that every node is
        upserted on its own: categories by code, activities by code inside
        their category, sub-tasks by name inside their activity. A node that
        fails is reported in ``ImportResult.failed`` together with its subtree
        while siblings already applied stay applied.
        """
        if isinstance(payload, (str, bytes, bytearray)):
            payload = unwrap_json(payload, default=None, max_depth=configured_max_depth())
        self._validate_import_payload(payload)

        result = ImportResult()
        for c_index, category_data in enumerate(payload['categories']):
            path = f"categories[{c_index}]"
            try:
                category, status = self._upsert_category(category_data, c_index + 1)
            except ServiceException as exc:
                self._log_warning(f"Import skipped {path}: {exc.message}")
                result.fail(path, category_data.get('code'), exc)
                for child_path, key in _import_descendants(path, category_data):
                    result.skip(child_path, key, path)
                continue
            result.record('categories', status, path)

            for a_index, activity_data in enumerate(category_data.get('activities') or []):
                a_path = f"{path}.activities[{a_index}]"
                try:
                    activity, status = self._upsert_activity(category, activity_data, a_index + 1)
                except ServiceException as exc:
                    self._log_warning(f"Import skipped {a_path}: {exc.message}")
                    result.fail(a_path, activity_data.get('code'), exc)
                    for child_path, key in _import_descendants(a_path, activity_data, _IMPORT_LEVELS[1:]):
                        result.skip(child_path, key, a_path)
                    continue
                result.record('activities', status, a_path)

                for s_index, sub_task_data in enumerate(activity_data.get('subTasks') or []):
                    s_path = f"{a_path}.subTasks[{s_index}]"
                    try:
                        _, status = self._upsert_sub_task(activity, sub_task_data, s_index + 1)
                    except ServiceException as exc:
                        self._log_warning(f"Import skipped {s_path}: {exc.message}")
                        result.fail(s_path, sub_task_data.get('name'), exc)
                        continue
                    result.record('subTasks', status, s_path)

        self._log_info(
            f"Import finished: categories={result.categories}, activities={result.activities}, "
            f"subTasks={result.sub_tasks}, failed={len(result.failed)}"
        )
        self._audit('import_bulk', succeeded=len(result.succeeded), failed=len(result.failed))
        return result

    @staticmethod
    def _validate_import_payload(payload: Any) -> None:
        if not isinstance(payload, dict) or not isinstance(payload.get('categories'), list):
            raise ValidationError('Data must contain a "categories" array', field='categories')

        def _require(node: Any, path: str, keys: Tuple[str, ...]) -> None:
            if not isinstance(node, dict):
                raise ValidationError(f"{path} must be an object", field=path)
            for key in keys:
                value = node.get(key)
                if value is None or (isinstance(value, str) and not value.strip()):
                    raise ValidationError(f"{path}.{key} is required", field=f"{path}.{key}")

        def _children(node: Dict[str, Any], key: str, path: str) -> List[Any]:
            children = node.get(key)
            if children is None:
                return []
            if not isinstance(children, list):
                raise ValidationError(f"{path}.{key} must be an array", field=f"{path}.{key}")
            return children

        for c_index, category in enumerate(payload['categories']):
            c_path = f"categories[{c_index}]"
            _require(category, c_path, ('code', 'name'))
            for a_index, activity in enumerate(_children(category, 'activities', c_path)):
                a_path = f"{c_path}.activities[{a_index}]"
                _require(activity, a_path, ('code', 'name'))
                for s_index, sub_task in enumerate(_children(activity, 'subTasks', a_path)):
                    _require(sub_task, f"{a_path}.subTasks[{s_index}]", ('name', 'defaultProductivity'))

    @staticmethod
    def _import_fields(node: Dict[str, Any], keys: Tuple[str, ...]) -> Dict[str, Any]:
        return {key: node[key] for key in keys if key in node}

    def _upsert_category(self, node: Dict[str, Any], position: int) -> Tuple[MasterCategory, str]:
        data = self._import_fields(node, ('code', 'name', 'description', 'order'))
        existing = self.find_category_by_code(data['code']) if isinstance(data['code'], str) else None
        if existing is not None:
            return self.update_category(existing.id, data), 'updated'
        data.setdefault('order', position)
        return self.create_category(data), 'created'

    def _upsert_activity(self, category: MasterCategory, node: Dict[str, Any],
                         position: int) -> Tuple[MasterActivity, str]:
        data = self._import_fields(node, ('code', 'name', 'description', 'defaultUnit', 'order'))
        existing = (
            self.find_activity_by_code(category.id, data['code'])
            if isinstance(data['code'], str) else None
        )
        if existing is not None:
            return self.update_activity(existing.id, data), 'updated'
        data.setdefault('order', position)
        data['masterCategoryId'] = category.id
        return self.create_activity(data), 'created'

    def _upsert_sub_task(self, activity: MasterActivity, node: Dict[str, Any],
                         position: int) -> Tuple[MasterSubTask, str]:
        data = self._import_fields(node, ('name', 'description', 'defaultProductivity', 'unit', 'order'))
        existing = (
            self.find_sub_task_by_name(activity.id, data['name'])
            if isinstance(data['name'], str) else None
        )
        if existing is not None:
            return self.update_sub_task(existing.id, data), 'updated'
        data.setdefault('order', position)
        data['masterActivityId'] = activity.id
        return self.create_sub_task(data), 'created'
