"""
Services Package
================
Service layer of the progress tracker.

Services own the in-memory state and expose command/query methods as the
only way to change it. Entity services inherit from BaseService.

Structure:
----------
- base: base class, logging helpers and the error taxonomy
- catalog_service: master data catalog (Category -> Activity -> Sub-Task)
- task_binding_service: project tasks bound to catalog sub-tasks
- progress_service: weekly progress records per task and month
- aggregation_service: monthly aggregates, reports and dashboard
- hierarchy_filter: tree search and (chunked) flattening
- report_export: monthly report as an Excel workbook (openpyxl)

Usage:
------
    from services import CatalogStore, TaskBinder, ProgressRecorder, AggregationEngine

    catalog = CatalogStore()
    binder = TaskBinder(catalog)
    recorder = ProgressRecorder(binder)
    engine = AggregationEngine(binder, recorder)
"""

# Base service and exceptions
from services.base import (
    AlreadyBoundError,
    BaseService,
    DuplicateCodeError,
    HasDependentsError,
    InvalidInputError,
    LoggingMixin,
    NotFoundError,
    ServiceException,
    ValidationError,
)

# Domain services
from services.catalog_service import CatalogStore, ImportResult
from services.task_binding_service import TaskBinder
from services.progress_service import ProgressRecorder, normalize_weekly_data
from services.aggregation_service import AggregationEngine, aggregate_record
from services.hierarchy_filter import (
    ChunkedFlatten,
    filter_tree,
    flatten_catalog,
    flatten_catalog_async,
)
from services.report_export import build_progress_workbook, export_progress_report


__all__ = [
    # Base classes
    'BaseService',
    'LoggingMixin',
    # Exceptions
    'ServiceException',
    'ValidationError',
    'InvalidInputError',
    'NotFoundError',
    'DuplicateCodeError',
    'HasDependentsError',
    'AlreadyBoundError',
    # Services
    'CatalogStore',
    'ImportResult',
    'TaskBinder',
    'ProgressRecorder',
    'normalize_weekly_data',
    'AggregationEngine',
    'aggregate_record',
    # Hierarchy helpers
    'ChunkedFlatten',
    'filter_tree',
    'flatten_catalog',
    'flatten_catalog_async',
    # Export
    'build_progress_workbook',
    'export_progress_report',
]
