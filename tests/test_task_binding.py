"""
Tests for binding catalog sub-tasks to projects.
"""
import pytest

from services import AlreadyBoundError, NotFoundError, ValidationError


@pytest.mark.unit
def test_budgeted_manhours_from_productivity(tracker):
    """256 units at 64 units per manhour need 4 manhours."""
    task = tracker['binder'].bind_task('P-1', tracker['sub_task'].id, {'budgetedQuantity': 256})

    assert task.total_budgeted_manhours == pytest.approx(4.0)
    assert task.productivity == 64.0
    assert task.unit == 'No'
    assert task.category_name == 'HVAC Systems'
    assert task.activity_code == 'HVAC-HEX'
    assert task.task_name == 'Heat Exchanger Erection (up to 350 TR)'


@pytest.mark.unit
def test_overrides(tracker):
    task = tracker['binder'].bind_task('P-1', tracker['sub_task'].id, {
        'budgetedQuantity': 10,
        'productivity': 2,
        'totalBudgetedManhours': 7.5,
        'unit': 'Set',
    })
    assert task.productivity == 2.0
    assert task.total_budgeted_manhours == 7.5
    assert task.unit == 'Set'


@pytest.mark.unit
def test_zero_productivity_gives_zero_manhours(tracker):
    task = tracker['binder'].bind_task('P-1', tracker['sub_task'].id, {'budgetedQuantity': 10, 'productivity': 0})
    assert task.total_budgeted_manhours == 0.0
    assert task.manhours_per_unit == 0.0


@pytest.mark.unit
def test_baseline_does_not_follow_catalog_edits(tracker):
    task = tracker['binder'].bind_task('P-1', tracker['sub_task'].id, {'budgetedQuantity': 256})
    tracker['catalog'].update_sub_task(tracker['sub_task'].id, {'defaultProductivity': 32, 'name': 'Renamed'})

    assert task.productivity == 64.0
    assert task.task_name == 'Heat Exchanger Erection (up to 350 TR)'


@pytest.mark.unit
def test_sub_task_binds_once_per_project(tracker):
    binder = tracker['binder']
    sub_task_id = tracker['sub_task'].id
    binder.bind_task('P-1', sub_task_id)

    with pytest.raises(AlreadyBoundError):
        binder.bind_task('P-1', sub_task_id)

    other = binder.bind_task('P-2', sub_task_id)
    assert binder.find_task('P-2', sub_task_id) is other
    assert len(binder.list_tasks('P-1')) == 1


@pytest.mark.unit
def test_unknown_or_inactive_sub_task(tracker):
    binder = tracker['binder']
    with pytest.raises(NotFoundError):
        binder.bind_task('P-1', 999)

    tracker['catalog'].update_activity(tracker['activity'].id, {'isActive': False})
    with pytest.raises(NotFoundError):
        binder.bind_task('P-1', tracker['sub_task'].id)


@pytest.mark.unit
@pytest.mark.parametrize('overrides, field', [
    ({'budgetedQuantity': -1}, 'budgetedQuantity'),
    ({'productivity': 'fast'}, 'productivity'),
    ({'totalBudgetedManhours': -0.5}, 'totalBudgetedManhours'),
])
def test_invalid_overrides(tracker, overrides, field):
    binder = tracker['binder']
    with pytest.raises(ValidationError) as exc_info:
        binder.bind_task('P-1', tracker['sub_task'].id, overrides)
    assert exc_info.value.field == field
    assert binder.count() == 0


@pytest.mark.unit
def test_bind_categories_skips_bound_and_inactive(tracker):
    catalog = tracker['catalog']
    binder = tracker['binder']
    second = catalog.create_sub_task({
        'masterActivityId': tracker['activity'].id, 'name': 'Valve Package Installation', 'defaultProductivity': 252,
    })
    catalog.create_sub_task({
        'masterActivityId': tracker['activity'].id, 'name': 'Retired', 'defaultProductivity': 1, 'isActive': False,
    })
    binder.bind_task('P-1', tracker['sub_task'].id)

    created = binder.bind_categories('P-1', [tracker['category'].id])

    assert [task.sub_task_id for task in created] == [second.id]
    assert len(binder.list_tasks('P-1')) == 2


@pytest.mark.unit
def test_bind_categories_resolves_all_first(tracker):
    binder = tracker['binder']
    with pytest.raises(NotFoundError):
        binder.bind_categories('P-1', [tracker['category'].id, 404])
    assert binder.count() == 0
