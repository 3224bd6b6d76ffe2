"""Shared service state attached to the Flask application."""
from __future__ import annotations

from flask import current_app

from services import AggregationEngine, CatalogStore, ProgressRecorder, TaskBinder


class ProgressTracker:
    """
    Owns one catalog and the services built on it.

    Follows the Flask extension pattern: a module-level instance is bound to
    an app with ``init_app`` and reached from views through ``current_app``.
    """

    def __init__(self, app=None):
        self.catalog = None
        self.binder = None
        self.recorder = None
        self.engine = None
        if app is not None:
            self.init_app(app)

    def reset(self) -> None:
        """Start over with an empty catalog and no project tasks"""
        self.catalog = CatalogStore()
        self.binder = TaskBinder(self.catalog)
        self.recorder = ProgressRecorder(self.binder)
        self.engine = AggregationEngine(self.binder, self.recorder)

    def init_app(self, app) -> None:
        self.reset()
        app.extensions["progress_tracker"] = self


def get_tracker() -> ProgressTracker:
    return current_app.extensions["progress_tracker"]

