"""
Models Package
==============
In-memory entities of the progress tracker, organized by concern.

Structure:
- catalog: MasterCategory, MasterActivity, MasterSubTask (master data tree)
- progress: ProjectTask, WeeklyProgressRecord, WeekEntry, MonthlyAggregate
"""

# Catalog models - master data hierarchy
from models.catalog import (
    MasterCategory,
    MasterActivity,
    MasterSubTask,
    UNITS,
    DEFAULT_UNIT,
    CATEGORY_CODE_MAX_LENGTH,
)

# Progress models - tasks, weekly records and derived aggregates
from models.progress import (
    ProjectTask,
    WeekEntry,
    WeeklyProgressRecord,
    MonthlyAggregate,
    WEEKS_PER_PERIOD,
    JUSTIFICATION_MAX_LENGTH,
)


__all__ = [
    'MasterCategory',
    'MasterActivity',
    'MasterSubTask',
    'UNITS',
    'DEFAULT_UNIT',
    'CATEGORY_CODE_MAX_LENGTH',
    'ProjectTask',
    'WeekEntry',
    'WeeklyProgressRecord',
    'MonthlyAggregate',
    'WEEKS_PER_PERIOD',
    'JUSTIFICATION_MAX_LENGTH',
]
