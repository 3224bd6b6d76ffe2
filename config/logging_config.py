import logging
import os
from logging.handlers import RotatingFileHandler


LOG_FORMAT = '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'


def _replace_handler(logger, handler):
    """Swap any handler previously installed by setup_logging for ``handler``"""
    for existing in list(logger.handlers):
        if getattr(existing, '_progress_tracker', False):
            logger.removeHandler(existing)
            existing.close()
    handler._progress_tracker = True
    logger.addHandler(handler)


def setup_logging(app):
    """Configure structured file logging for the application"""

    log_dir = app.config.get('LOG_DIR') or os.path.join(app.root_path, 'logs')
    os.makedirs(log_dir, exist_ok=True)
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT)

    # General application log
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, 'app.log'),
        maxBytes=10485760,  # 10MB
        backupCount=10
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    # Errors only
    error_handler = RotatingFileHandler(
        os.path.join(log_dir, 'errors.log'),
        maxBytes=10485760,
        backupCount=10
    )
    error_handler.setFormatter(formatter)
    error_handler.setLevel(logging.ERROR)

    # Catalog and progress mutations
    audit_handler = RotatingFileHandler(
        os.path.join(log_dir, 'audit.log'),
        maxBytes=10485760,
        backupCount=20  # longer retention for audits
    )
    audit_handler.setFormatter(formatter)
    audit_handler.setLevel(logging.INFO)

    _replace_handler(app.logger, file_handler)
    _replace_handler(app.logger, error_handler)
    app.logger.setLevel(level)

    audit_logger = logging.getLogger('audit')
    _replace_handler(audit_logger, audit_handler)
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False

    app.logger.info('Logging configured')
    app.logger.info(f'Log files in: {log_dir}')
