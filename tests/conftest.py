"""
Pytest configuration and fixtures for the progress tracker.
"""
import os

import pytest

# Set test environment variables before importing app
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['LOG_TO_FILE'] = '0'
os.environ['MASTER_DATA_SEED'] = '0'

from app import create_app
from app.config import AppConfig
from services import AggregationEngine, CatalogStore, ProgressRecorder, TaskBinder


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create and configure a Flask app instance for testing."""
    flask_app = create_app(AppConfig(log_dir=str(tmp_path / 'logs'), log_to_file=False))
    flask_app.config.update({
        'TESTING': True,
    })

    with flask_app.app_context():
        yield flask_app


@pytest.fixture(scope='function')
def client(app):
    """Create a test client for making requests."""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """Create a CLI runner for testing CLI commands."""
    return app.test_cli_runner()


@pytest.fixture(scope='function')
def catalog():
    """An empty catalog outside any app context."""
    return CatalogStore()


@pytest.fixture(scope='function')
def hvac(catalog):
    """Catalog holding one category, one activity and one 64 No/manhour sub-task."""
    category = catalog.create_category({'code': 'hvac', 'name': 'HVAC Systems', 'order': 1})
    activity = catalog.create_activity({
        'masterCategoryId': category.id,
        'code': 'hvac-hex',
        'name': 'Heat Exchanger Installation',
        'defaultUnit': 'No',
    })
    sub_task = catalog.create_sub_task({
        'masterActivityId': activity.id,
        'name': 'Heat Exchanger Erection (up to 350 TR)',
        'defaultProductivity': 64.0,
        'unit': 'No',
    })
    return {'catalog': catalog, 'category': category, 'activity': activity, 'sub_task': sub_task}


@pytest.fixture(scope='function')
def tracker(hvac):
    """Binder, recorder and engine wired on top of the ``hvac`` catalog."""
    binder = TaskBinder(hvac['catalog'])
    recorder = ProgressRecorder(binder)
    engine = AggregationEngine(binder, recorder)
    return {
        **hvac,
        'binder': binder,
        'recorder': recorder,
        'engine': engine,
    }


@pytest.fixture(scope='function')
def sample_payload():
    """Nested import payload with two categories."""
    return {
        'categories': [
            {
                'code': 'HVAC',
                'name': 'HVAC Systems',
                'description': 'Heating, ventilation and air conditioning',
                'order': 1,
                'activities': [
                    {
                        'code': 'HVAC-HEX',
                        'name': 'Heat Exchanger Installation',
                        'defaultUnit': 'No',
                        'order': 1,
                        'subTasks': [
                            {'name': 'Heat Exchanger Erection', 'defaultProductivity': 64.0, 'unit': 'No', 'order': 1},
                            {'name': 'Valve Package Installation', 'defaultProductivity': 252.0, 'unit': 'Item', 'order': 2},
                        ],
                    },
                ],
            },
            {
                'code': 'PL',
                'name': 'Plumbing',
                'order': 2,
                'activities': [
                    {
                        'code': 'PL-PIPE',
                        'name': 'Pipe Installation',
                        'description': 'Pipe works',
                        'defaultUnit': 'm',
                        'order': 1,
                        'subTasks': [
                            {'name': 'UPVC Pipe Installation', 'defaultProductivity': 0.45, 'unit': 'm', 'order': 1},
                        ],
                    },
                ],
            },
        ],
    }


# Markers for categorizing tests
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (slower)"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
