"""
Base Service Class
==================
Base class for the in-memory services of the progress tracker, plus the
error taxonomy shared by every service.

Services keep their entities in an arena (a dict keyed by integer id) and
expose command/query methods as the only mutation surface.
"""

import itertools
import logging
from typing import TypeVar, Generic, Dict, Optional, List, Any

from flask import current_app, has_app_context


T = TypeVar('T')

_logger = logging.getLogger(__name__)
audit_logger = logging.getLogger('audit')


class ServiceException(Exception):
    """Base exception for service errors"""
    def __init__(self, message: str, code: str = 'SERVICE_ERROR', details: Optional[dict] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message, 'code': self.code, 'details': self.details}


class ValidationError(ServiceException):
    """Malformed or missing required input"""
    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        details = dict(details or {})
        if field:
            details['field'] = field
        self.field = field
        super().__init__(message, code='VALIDATION_ERROR', details=details)


class InvalidInputError(ServiceException):
    """Negative numeric input given to progress recording"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message, code='INVALID_INPUT', details={'field': field} if field else None)


class NotFoundError(ServiceException):
    """Reference to a catalog node or task that does not exist"""
    def __init__(self, resource: str, identifier: Any):
        message = f"{resource} with id {identifier} not found"
        super().__init__(message, code='NOT_FOUND', details={'resource': resource, 'id': identifier})


class DuplicateCodeError(ServiceException):
    """Uniqueness violation on a code (or sub-task name) among siblings"""
    def __init__(self, code: str, scope: str = 'catalog'):
        self.duplicate = code
        message = f"Code '{code}' already exists in {scope}"
        super().__init__(message, code='DUPLICATE_CODE', details={'value': code, 'scope': scope})


class HasDependentsError(ServiceException):
    """Delete blocked because the node still owns children"""
    def __init__(self, resource: str, identifier: Any, dependents: int):
        message = f"{resource} {identifier} still owns {dependents} dependent item(s)"
        super().__init__(
            message,
            code='HAS_DEPENDENTS',
            details={'resource': resource, 'id': identifier, 'dependents': dependents},
        )


class AlreadyBoundError(ServiceException):
    """A catalog sub-task binds to at most one task per project"""
    def __init__(self, project_id: Any, sub_task_id: int):
        message = f"Sub-task {sub_task_id} is already bound to project {project_id}"
        super().__init__(
            message,
            code='ALREADY_BOUND',
            details={'project_id': project_id, 'sub_task_id': sub_task_id},
        )


class LoggingMixin:
    """Logging helpers shared by services; messages are prefixed with the class name"""

    def _logger(self) -> logging.Logger:
        if has_app_context():
            return current_app.logger
        return _logger

    def _log_info(self, message: str):
        self._logger().info(f"[{self.__class__.__name__}] {message}")

    def _log_error(self, message: str):
        self._logger().error(f"[{self.__class__.__name__}] {message}")

    def _log_warning(self, message: str):
        self._logger().warning(f"[{self.__class__.__name__}] {message}")

    def _log_debug(self, message: str):
        self._logger().debug(f"[{self.__class__.__name__}] {message}")

    def _audit(self, action: str, **fields):
        """Record a mutation on the audit logger"""
        extra = " ".join(f"{key}={value}" for key, value in fields.items())
        audit_logger.info(f"{self.__class__.__name__} {action} {extra}".rstrip())


class BaseService(LoggingMixin, Generic[T]):
    """
    In-memory service base with the common lookup operations.

    Subclasses keep their entities in ``self._items`` and must define:
    - resource_name: label used in NotFoundError messages
    """

    resource_name: str = None

    def __init__(self):
        if self.resource_name is None:
            raise NotImplementedError("resource_name must be defined in the subclass")
        self._items: Dict[int, T] = {}
        self._ids = itertools.count(1)

    # ===== Lookup Operations =====

    def get_by_id(self, id: int) -> Optional[T]:
        """Return an entity by id, or None"""
        return self._items.get(id)

    def get_by_id_or_fail(self, id: int) -> T:
        """Return an entity by id or raise NotFoundError"""
        instance = self.get_by_id(id)
        if instance is None:
            raise NotFoundError(self.resource_name, id)
        return instance

    def get_all(self, **filters) -> List[T]:
        """Return every entity whose attributes match the given filters"""
        items = list(self._items.values())
        for key, value in filters.items():
            items = [item for item in items if getattr(item, key, None) == value]
        return items

    def exists(self, id: int) -> bool:
        return id in self._items

    def count(self, **filters) -> int:
        return len(self.get_all(**filters))

    def _next_id(self) -> int:
        return next(self._ids)
