"""Seed the master data catalog with a starter Category -> Activity -> Sub-Task tree.

Safe to run repeatedly: existing nodes are matched by code (categories and
activities) or by name (sub-tasks) and are never duplicated. Inactive nodes
found on the way are reactivated.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from models import MasterActivity, MasterCategory, MasterSubTask
from services import CatalogStore

DEFAULT_MASTER_DATA: List[Dict[str, object]] = [
    {
        "code": "HVAC",
        "name": "HVAC Systems",
        "description": "Heating, ventilation and air conditioning",
        "activities": [
            {
                "code": "HVAC-HEX",
                "name": "Heat Exchanger Installation",
                "defaultUnit": "No",
                "subTasks": [
                    {"name": "Heat Exchanger Erection (up to 350 TR)", "defaultProductivity": 64.0, "unit": "No"},
                    {"name": "Valve Package Installation", "defaultProductivity": 252.0, "unit": "Item"},
                ],
            },
            {
                "code": "HVAC-DUCT",
                "name": "Ducting",
                "defaultUnit": "Sq.m",
                "subTasks": [
                    {"name": "GI Duct Fabrication and Erection", "defaultProductivity": 1.8, "unit": "Sq.m"},
                    {"name": "Duct Insulation", "defaultProductivity": 3.5, "unit": "Sq.m"},
                ],
            },
        ],
    },
    {
        "code": "PL",
        "name": "Plumbing",
        "description": "Water supply and drainage",
        "activities": [
            {
                "code": "PL-PIPE",
                "name": "Pipe Installation",
                "defaultUnit": "m",
                "subTasks": [
                    {"name": "UPVC Pipe Installation (50-110mm)", "defaultProductivity": 0.45, "unit": "m"},
                    {"name": "PPR Pipe Installation (20-63mm)", "defaultProductivity": 0.6, "unit": "m"},
                ],
            },
            {
                "code": "PL-FIX",
                "name": "Sanitary Fixtures",
                "defaultUnit": "Set",
                "subTasks": [
                    {"name": "Wash Basin Fixing", "defaultProductivity": 0.25, "unit": "Set"},
                ],
            },
        ],
    },
    {
        "code": "EL",
        "name": "Electrical",
        "description": "Power and lighting",
        "activities": [
            {
                "code": "EL-LIGHT",
                "name": "Lighting Points",
                "defaultUnit": "Point",
                "subTasks": [
                    {"name": "Light Point Wiring", "defaultProductivity": 0.5, "unit": "Point"},
                ],
            },
        ],
    },
]


def _reactivate(update, node, status: str) -> str:
    """Reactivate ``node`` through the catalog command ``update`` when it is inactive"""
    if not node.is_active:
        update(node.id, {"isActive": True})
        return 'reactivated'
    return status


def _get_or_create_category(
    catalog: CatalogStore,
    data: Dict[str, object],
    order: int,
) -> Tuple[MasterCategory, str]:
    existing = catalog.find_category_by_code(data["code"])
    if existing:
        return existing, _reactivate(catalog.update_category, existing, 'existing')

    category = catalog.create_category({
        "code": data["code"],
        "name": data["name"],
        "description": data.get("description"),
        "order": order,
    })
    return category, 'created'


def _get_or_create_activity(
    catalog: CatalogStore,
    category: MasterCategory,
    data: Dict[str, object],
    order: int,
) -> Tuple[MasterActivity, str]:
    existing = catalog.find_activity_by_code(category.id, data["code"])
    if existing:
        return existing, _reactivate(catalog.update_activity, existing, 'existing')

    activity = catalog.create_activity({
        "masterCategoryId": category.id,
        "code": data["code"],
        "name": data["name"],
        "defaultUnit": data.get("defaultUnit"),
        "order": order,
    })
    return activity, 'created'


def _get_or_create_sub_task(
    catalog: CatalogStore,
    activity: MasterActivity,
    data: Dict[str, object],
    order: int,
) -> Tuple[MasterSubTask, str]:
    existing = catalog.find_sub_task_by_name(activity.id, data["name"])
    if existing:
        return existing, _reactivate(catalog.update_sub_task, existing, 'existing')

    sub_task = catalog.create_sub_task({
        "masterActivityId": activity.id,
        "name": data["name"],
        "defaultProductivity": data["defaultProductivity"],
        "unit": data.get("unit"),
        "order": order,
    })
    return sub_task, 'created'


def seed_master_data(
    catalog: CatalogStore,
    tree: Optional[List[Dict[str, object]]] = None,
    *,
    verbose: bool = False,
) -> Dict[str, int]:
    """Create the starter catalog; returns created/existing/reactivated counts."""

    stats: Dict[str, int] = defaultdict(int)
    for c_index, category_data in enumerate(tree or DEFAULT_MASTER_DATA, start=1):
        category, status = _get_or_create_category(catalog, category_data, c_index)
        stats[status] += 1
        if verbose:
            print(f"- {category.code} [{status}]")

        for a_index, activity_data in enumerate(category_data.get("activities", []) or [], start=1):
            activity, status = _get_or_create_activity(catalog, category, activity_data, a_index)
            stats[status] += 1
            if verbose:
                print(f"  - {category.code} → {activity.code} [{status}]")

            for s_index, sub_task_data in enumerate(activity_data.get("subTasks", []) or [], start=1):
                sub_task, status = _get_or_create_sub_task(catalog, activity, sub_task_data, s_index)
                stats[status] += 1
                if verbose:
                    print(f"    - {sub_task.name} [{status}]")

    for key in ("created", "existing", "reactivated"):
        stats.setdefault(key, 0)

    return dict(stats)
