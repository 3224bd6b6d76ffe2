"""
Tests for the master data catalog: CRUD, uniqueness, deletes and import/export.
"""
import copy
import json
import logging

import pytest

from services import (
    CatalogStore,
    DuplicateCodeError,
    HasDependentsError,
    NotFoundError,
    ValidationError,
)


@pytest.mark.unit
class TestCategories:
    def test_code_is_normalized(self, catalog):
        category = catalog.create_category({'code': '  hvac ', 'name': 'HVAC Systems'})
        assert category.code == 'HVAC'
        assert category.is_active is True

    def test_duplicate_code_fails(self, catalog):
        catalog.create_category({'code': 'HVAC', 'name': 'HVAC Systems'})
        with pytest.raises(DuplicateCodeError) as exc_info:
            catalog.create_category({'code': 'hvac', 'name': 'Another'})
        assert exc_info.value.duplicate == 'HVAC'

    def test_new_code_succeeds(self, catalog):
        catalog.create_category({'code': 'HVAC', 'name': 'HVAC Systems'})
        catalog.create_category({'code': 'PL', 'name': 'Plumbing'})
        assert catalog.count() == 2

    def test_code_longer_than_ten_characters_fails(self, catalog):
        with pytest.raises(ValidationError) as exc_info:
            catalog.create_category({'code': 'ABCDEFGHIJK', 'name': 'Too long'})
        assert exc_info.value.field == 'code'
        assert catalog.count() == 0

    @pytest.mark.parametrize('data, field', [
        ({'name': 'No code'}, 'code'),
        ({'code': 'X'}, 'name'),
        ({'code': 'X', 'name': 'Negative', 'order': -1}, 'order'),
        ({'code': 'X', 'name': 'Flag', 'isActive': 'yes'}, 'isActive'),
    ])
    def test_invalid_fields_name_the_field(self, catalog, data, field):
        with pytest.raises(ValidationError) as exc_info:
            catalog.create_category(data)
        assert exc_info.value.details['field'] == field

    def test_update_is_atomic(self, catalog):
        catalog.create_category({'code': 'HVAC', 'name': 'HVAC Systems'})
        category = catalog.create_category({'code': 'PL', 'name': 'Plumbing'})

        with pytest.raises(DuplicateCodeError):
            catalog.update_category(category.id, {'name': 'Renamed', 'code': 'HVAC'})

        assert category.name == 'Plumbing'
        assert category.code == 'PL'

    def test_update_keeps_own_code(self, catalog):
        category = catalog.create_category({'code': 'PL', 'name': 'Plumbing'})
        updated = catalog.update_category(category.id, {'code': 'pl', 'description': 'Water'})
        assert updated.code == 'PL'
        assert updated.description == 'Water'

    def test_unknown_category(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.update_category(99, {'name': 'Ghost'})


@pytest.mark.unit
class TestActivitiesAndSubTasks:
    def test_activity_code_unique_within_category_only(self, hvac):
        catalog = hvac['catalog']
        other = catalog.create_category({'code': 'PL', 'name': 'Plumbing'})

        with pytest.raises(DuplicateCodeError):
            catalog.create_activity({
                'masterCategoryId': hvac['category'].id, 'code': 'HVAC-HEX', 'name': 'Dup',
            })
        activity = catalog.create_activity({'masterCategoryId': other.id, 'code': 'HVAC-HEX', 'name': 'Same code'})
        assert activity.category_id == other.id

    def test_activity_requires_existing_category(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.create_activity({'masterCategoryId': 42, 'code': 'A', 'name': 'Orphan'})

    def test_moving_activity_rechecks_uniqueness(self, hvac):
        catalog = hvac['catalog']
        other = catalog.create_category({'code': 'PL', 'name': 'Plumbing'})
        catalog.create_activity({'masterCategoryId': other.id, 'code': 'HVAC-HEX', 'name': 'Clash'})

        with pytest.raises(DuplicateCodeError):
            catalog.update_activity(hvac['activity'].id, {'masterCategoryId': other.id})
        assert hvac['activity'].category_id == hvac['category'].id

    def test_activity_default_unit(self, hvac):
        activity = hvac['catalog'].create_activity({
            'masterCategoryId': hvac['category'].id, 'code': 'hvac-duct', 'name': 'Ducting',
        })
        assert activity.default_unit == 'No'
        assert activity.code == 'HVAC-DUCT'

    def test_non_standard_unit_is_logged(self, hvac, caplog):
        caplog.set_level(logging.WARNING)
        activity = hvac['catalog'].create_activity({
            'masterCategoryId': hvac['category'].id, 'code': 'CRANE', 'name': 'Crane Hire', 'defaultUnit': 'Day',
        })

        assert activity.default_unit == 'Day'
        assert "Non-standard defaultUnit 'Day'" in caplog.text

    def test_sub_task_unit_defaults_to_activity_unit(self, hvac):
        catalog = hvac['catalog']
        activity = catalog.create_activity({
            'masterCategoryId': hvac['category'].id, 'code': 'DUCT', 'name': 'Ducting', 'defaultUnit': 'Sq.m',
        })
        sub_task = catalog.create_sub_task({
            'masterActivityId': activity.id, 'name': 'Duct Insulation', 'defaultProductivity': 3.5,
        })
        assert sub_task.unit == 'Sq.m'

    def test_sub_task_name_unique_within_activity(self, hvac):
        with pytest.raises(DuplicateCodeError):
            hvac['catalog'].create_sub_task({
                'masterActivityId': hvac['activity'].id,
                'name': 'heat exchanger erection (up to 350 tr)',
                'defaultProductivity': 1,
            })

    def test_negative_productivity_fails(self, hvac):
        with pytest.raises(ValidationError) as exc_info:
            hvac['catalog'].update_sub_task(hvac['sub_task'].id, {'defaultProductivity': -1})
        assert exc_info.value.field == 'defaultProductivity'
        assert hvac['sub_task'].default_productivity == 64.0


@pytest.mark.unit
class TestDeletes:
    def test_category_with_active_activity_is_protected(self, hvac):
        catalog = hvac['catalog']
        with pytest.raises(HasDependentsError):
            catalog.delete_category(hvac['category'].id)
        assert catalog.exists(hvac['category'].id)

    def test_inactive_activity_with_sub_tasks_protects_category(self, hvac):
        catalog = hvac['catalog']
        catalog.update_activity(hvac['activity'].id, {'isActive': False})

        with pytest.raises(HasDependentsError) as exc_info:
            catalog.delete_category(hvac['category'].id)
        assert exc_info.value.details['dependents'] == 1
        assert catalog.get_sub_task(hvac['sub_task'].id) is hvac['sub_task']

    def test_empty_inactive_activity_goes_with_category(self, hvac):
        catalog = hvac['catalog']
        catalog.delete_sub_task(hvac['sub_task'].id)
        catalog.update_activity(hvac['activity'].id, {'isActive': False})

        assert catalog.delete_category(hvac['category'].id) is True
        assert catalog.count() == 0
        with pytest.raises(NotFoundError):
            catalog.get_activity(hvac['activity'].id)

    def test_activity_with_sub_tasks_is_protected(self, hvac):
        with pytest.raises(HasDependentsError) as exc_info:
            hvac['catalog'].delete_activity(hvac['activity'].id)
        assert exc_info.value.details['dependents'] == 1

    def test_cascade_removes_subtree(self, hvac):
        catalog = hvac['catalog']
        catalog.delete_category(hvac['category'].id, cascade=True)
        assert catalog.get_hierarchy() == []
        assert catalog.stats()['totals']['total'] == 0

    def test_delete_sub_task(self, hvac):
        catalog = hvac['catalog']
        catalog.delete_sub_task(hvac['sub_task'].id)
        assert catalog.delete_activity(hvac['activity'].id) is True


@pytest.mark.unit
class TestHierarchyAndStats:
    def test_children_sorted_by_order_then_id(self, catalog):
        second = catalog.create_category({'code': 'B', 'name': 'Second', 'order': 2})
        first = catalog.create_category({'code': 'A', 'name': 'First', 'order': 1})
        third = catalog.create_category({'code': 'C', 'name': 'Third', 'order': 2})

        codes = [node['code'] for node in catalog.get_hierarchy()]
        assert codes == [first.code, second.code, third.code]

    def test_active_only(self, hvac):
        catalog = hvac['catalog']
        catalog.update_sub_task(hvac['sub_task'].id, {'isActive': False})

        tree = catalog.get_hierarchy(active_only=True)
        assert tree[0]['masterActivities'][0]['masterSubTasks'] == []
        full = catalog.get_hierarchy()
        assert len(full[0]['masterActivities'][0]['masterSubTasks']) == 1

    def test_stats(self, hvac):
        catalog = hvac['catalog']
        catalog.update_activity(hvac['activity'].id, {'isActive': False})

        stats = catalog.stats()
        assert stats['totals'] == {'categories': 1, 'activities': 1, 'subTasks': 1, 'total': 3}
        assert stats['active']['activities'] == 0
        assert stats['recent']['total'] == 3


@pytest.mark.unit
class TestImportExport:
    def test_import_creates_tree(self, catalog, sample_payload):
        result = catalog.import_bulk(sample_payload)

        assert result.to_dict()['categoriesCreatedOrUpdated'] == 2
        assert result.activities == 2
        assert result.sub_tasks == 3
        assert result.created == {'categories': 2, 'activities': 2, 'subTasks': 3}
        assert result.failed == []

    def test_round_trip(self, catalog, sample_payload):
        catalog.import_bulk(sample_payload)
        exported = catalog.export_all()

        assert exported == sample_payload

        result = catalog.import_bulk(copy.deepcopy(exported))
        assert result.updated == {'categories': 2, 'activities': 2, 'subTasks': 3}
        assert catalog.export_all() == exported

    def test_import_upserts_by_natural_key(self, catalog, sample_payload):
        catalog.import_bulk(sample_payload)
        hvac = catalog.find_category_by_code('HVAC')
        catalog.update_category(hvac.id, {'isActive': False})

        changed = copy.deepcopy(sample_payload)
        changed['categories'][0]['name'] = 'Mechanical'
        changed['categories'][0]['activities'][0]['subTasks'][0]['defaultProductivity'] = 70.0
        catalog.import_bulk(changed)

        assert catalog.count() == 2
        assert hvac.name == 'Mechanical'
        assert hvac.is_active is False
        activity = catalog.find_activity_by_code(hvac.id, 'HVAC-HEX')
        sub_task = catalog.find_sub_task_by_name(activity.id, 'Heat Exchanger Erection')
        assert sub_task.default_productivity == 70.0

    def test_missing_categories_leaves_store_untouched(self, hvac):
        catalog = hvac['catalog']
        before = json.dumps(catalog.export_all(), sort_keys=True)

        with pytest.raises(ValidationError):
            catalog.import_bulk({'items': []})

        assert json.dumps(catalog.export_all(), sort_keys=True) == before

    @pytest.mark.parametrize('mutate', [
        lambda p: p['categories'][1].pop('name'),
        lambda p: p['categories'][0]['activities'][0].pop('code'),
        lambda p: p['categories'][0]['activities'][0]['subTasks'][1].pop('defaultProductivity'),
        lambda p: p['categories'][0].__setitem__('activities', 'not a list'),
        lambda p: p['categories'].append('not an object'),
    ])
    def test_malformed_node_rejects_whole_payload(self, catalog, sample_payload, mutate):
        mutate(sample_payload)
        with pytest.raises(ValidationError):
            catalog.import_bulk(sample_payload)
        assert catalog.count() == 0

    def test_value_errors_fail_per_node_without_rollback(self, catalog, sample_payload):
        sample_payload['categories'][0]['activities'][0]['subTasks'][1]['defaultProductivity'] = -5
        sample_payload['categories'][1]['code'] = 'PLUMBINGWORKS'

        result = catalog.import_bulk(sample_payload)

        assert result.partial is True
        assert [f['path'] for f in result.failed] == [
            'categories[0].activities[0].subTasks[1]',
            'categories[1]',
            'categories[1].activities[0]',
            'categories[1].activities[0].subTasks[0]',
        ]
        assert result.failed[1]['code'] == 'VALIDATION_ERROR'
        assert {f['code'] for f in result.failed[2:]} == {'PARENT_FAILED'}
        assert result.categories == 1
        assert result.sub_tasks == 1
        assert catalog.find_category_by_code('HVAC') is not None
        assert catalog.find_category_by_code('PLUMBINGWORKS') is None

    def test_double_encoded_payload(self, catalog, sample_payload):
        encoded = json.dumps(json.dumps(sample_payload))
        result = catalog.import_bulk(encoded)
        assert result.categories == 2

    def test_garbage_string_is_a_validation_error(self, catalog):
        with pytest.raises(ValidationError):
            catalog.import_bulk('{not json')

    def test_missing_order_uses_position(self, catalog):
        catalog.import_bulk({'categories': [
            {'code': 'A', 'name': 'First'},
            {'code': 'B', 'name': 'Second', 'activities': [{'code': 'X', 'name': 'Only'}]},
        ]})
        second = catalog.find_category_by_code('B')
        assert second.order == 2
        activity = catalog.find_activity_by_code(second.id, 'X')
        assert activity.order == 1
        assert activity.default_unit == 'No'

    def test_failed_activity_reports_its_sub_tasks(self, catalog):
        result = catalog.import_bulk({'categories': [{
            'code': 'HVAC',
            'name': 'HVAC Systems',
            'activities': [{
                'code': 'X' * 300,
                'name': 'Too long',
                'subTasks': [{'name': 'Orphan', 'defaultProductivity': 1}],
            }],
        }]})

        assert result.succeeded == ['categories[0]']
        assert [(f['path'], f['code']) for f in result.failed] == [
            ('categories[0].activities[0]', 'VALIDATION_ERROR'),
            ('categories[0].activities[0].subTasks[0]', 'PARENT_FAILED'),
        ]
        assert result.failed[1]['key'] == 'Orphan'
        assert 'categories[0].activities[0]' in result.failed[1]['message']

    def test_reimport_without_order_keeps_stored_order(self, catalog):
        catalog.import_bulk({'categories': [
            {'code': 'A', 'name': 'First', 'order': 5},
            {'code': 'B', 'name': 'Second', 'order': 9},
        ]})
        catalog.import_bulk({'categories': [
            {'code': 'B', 'name': 'Second renamed'},
        ]})

        second = catalog.find_category_by_code('B')
        assert second.order == 9
        assert second.name == 'Second renamed'

    def test_export_includes_inactive_nodes(self, hvac):
        catalog = hvac['catalog']
        catalog.update_category(hvac['category'].id, {'isActive': False})
        exported = catalog.export_all()
        assert exported['categories'][0]['code'] == 'HVAC'
        assert 'description' not in exported['categories'][0]


@pytest.mark.unit
def test_catalog_is_independent_per_instance():
    first = CatalogStore()
    first.create_category({'code': 'A', 'name': 'A'})
    assert CatalogStore().count() == 0
