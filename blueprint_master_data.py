"""
Master Data Blueprint
JSON API over the Category -> Activity -> Sub-Task catalog
"""

from flask import Blueprint, current_app, jsonify, request

from app.extensions import get_tracker
from services import ChunkedFlatten, ValidationError, filter_tree

master_data_bp = Blueprint('master_data', __name__, url_prefix='/api/master-data')


def _ok(data=None, message=None, status=200):
    payload = {'success': True, 'data': data}
    if message:
        payload['message'] = message
    return jsonify(payload), status


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _flag(name):
    return request.args.get(name, '').strip().lower() in {'1', 'true', 'yes', 'on'}


# ===== TREE =====

@master_data_bp.route('/hierarchy')
def hierarchy():
    """Full catalog tree, optionally filtered by ?q= and ?activeOnly=1"""
    catalog = get_tracker().catalog
    tree = catalog.get_hierarchy(active_only=_flag('activeOnly'))
    return _ok(filter_tree(tree, request.args.get('q')))


@master_data_bp.route('/stats')
def stats():
    return _ok(get_tracker().catalog.stats())


@master_data_bp.route('/sub-tasks')
def sub_task_rows():
    """Flat sub-task list with activity and category columns"""
    catalog = get_tracker().catalog
    tree = filter_tree(catalog.get_hierarchy(active_only=_flag('activeOnly')), request.args.get('q'))
    flattener = ChunkedFlatten(tree, current_app.config["FLATTEN_CHUNK_SIZE"])
    for done, total in flattener:
        current_app.logger.debug(f"Flattened {done}/{total} categories")
    return _ok(flattener.rows)


# ===== CATEGORIES =====

@master_data_bp.route('/categories', methods=['GET'])
def list_categories():
    catalog = get_tracker().catalog
    categories = catalog.list_categories(active_only=_flag('activeOnly'))
    return _ok([category.to_dict() for category in categories])


@master_data_bp.route('/categories', methods=['POST'])
def create_category():
    category = get_tracker().catalog.create_category(_json_body())
    return _ok(category.to_dict(), 'Category created', 201)


@master_data_bp.route('/categories/<int:category_id>', methods=['PUT'])
def update_category(category_id):
    category = get_tracker().catalog.update_category(category_id, _json_body())
    return _ok(category.to_dict(), 'Category updated')


@master_data_bp.route('/categories/<int:category_id>', methods=['DELETE'])
def delete_category(category_id):
    get_tracker().catalog.delete_category(category_id, cascade=_flag('cascade'))
    return _ok(message='Category deleted')


@master_data_bp.route('/categories/<int:category_id>/activities')
def list_activities(category_id):
    catalog = get_tracker().catalog
    catalog.get_category(category_id)
    activities = catalog.list_activities(category_id, active_only=_flag('activeOnly'))
    return _ok([activity.to_dict() for activity in activities])


# ===== ACTIVITIES =====

@master_data_bp.route('/activities', methods=['POST'])
def create_activity():
    activity = get_tracker().catalog.create_activity(_json_body())
    return _ok(activity.to_dict(), 'Activity created', 201)


@master_data_bp.route('/activities/<int:activity_id>', methods=['PUT'])
def update_activity(activity_id):
    activity = get_tracker().catalog.update_activity(activity_id, _json_body())
    return _ok(activity.to_dict(), 'Activity updated')


@master_data_bp.route('/activities/<int:activity_id>', methods=['DELETE'])
def delete_activity(activity_id):
    get_tracker().catalog.delete_activity(activity_id, cascade=_flag('cascade'))
    return _ok(message='Activity deleted')


@master_data_bp.route('/activities/<int:activity_id>/sub-tasks')
def list_sub_tasks(activity_id):
    catalog = get_tracker().catalog
    catalog.get_activity(activity_id)
    sub_tasks = catalog.list_sub_tasks(activity_id, active_only=_flag('activeOnly'))
    return _ok([sub_task.to_dict() for sub_task in sub_tasks])


# ===== SUB-TASKS =====

@master_data_bp.route('/sub-tasks', methods=['POST'])
def create_sub_task():
    sub_task = get_tracker().catalog.create_sub_task(_json_body())
    return _ok(sub_task.to_dict(), 'Sub-task created', 201)


@master_data_bp.route('/sub-tasks/<int:sub_task_id>', methods=['PUT'])
def update_sub_task(sub_task_id):
    sub_task = get_tracker().catalog.update_sub_task(sub_task_id, _json_body())
    return _ok(sub_task.to_dict(), 'Sub-task updated')


@master_data_bp.route('/sub-tasks/<int:sub_task_id>', methods=['DELETE'])
def delete_sub_task(sub_task_id):
    get_tracker().catalog.delete_sub_task(sub_task_id)
    return _ok(message='Sub-task deleted')


# ===== IMPORT / EXPORT =====

@master_data_bp.route('/import', methods=['POST'])
def import_master_data():
    """Upsert a nested catalog from a JSON body or an uploaded .json file"""
    upload = request.files.get('file')
    if upload is not None:
        payload = upload.read()
    else:
        payload = request.get_json(silent=True)
        if payload is None:
            payload = request.get_data(as_text=True)

    result = get_tracker().catalog.import_bulk(payload)
    if result.partial:
        current_app.logger.warning(f"Master data import finished with {len(result.failed)} failures")
        message = f"Imported with {len(result.failed)} failure(s)"
    else:
        message = 'Master data imported'
    return _ok(result.to_dict(), message)


@master_data_bp.route('/export')
def export_master_data():
    return _ok(get_tracker().catalog.export_all())
