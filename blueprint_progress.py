"""
Manpower Progress Blueprint
Project tasks, weekly progress entry, monthly report and dashboard
"""

from datetime import date

from flask import Blueprint, jsonify, make_response, request
from werkzeug.utils import secure_filename

from app.extensions import get_tracker
from services import ValidationError, export_progress_report
from services.report_export import XLSX_MIMETYPE

progress_bp = Blueprint('progress', __name__, url_prefix='/api/manpower')


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


def _required_arg(name):
    value = request.args.get(name, '').strip()
    if not value:
        raise ValidationError(f'{name} is required', field=name)
    return value


# ===== TASKS =====

@progress_bp.route('/projects/<project_id>/tasks', methods=['GET'])
def list_tasks(project_id):
    tasks = get_tracker().binder.list_tasks(project_id)
    return _ok([task.to_dict() for task in tasks])


@progress_bp.route('/projects/<project_id>/tasks', methods=['POST'])
def bind_task(project_id):
    """Bind a catalog sub-task to the project with its budget baseline"""
    data = _json_body()
    sub_task_id = data.get('masterSubTaskId')
    if isinstance(sub_task_id, bool) or not isinstance(sub_task_id, int):
        raise ValidationError('masterSubTaskId must be an integer', field='masterSubTaskId')
    task = get_tracker().binder.bind_task(project_id, sub_task_id, overrides=data)
    return _ok(task.to_dict(), 'Task added to project', 201)


@progress_bp.route('/projects/<project_id>/tasks/initialize', methods=['POST'])
def initialize_tasks(project_id):
    """Bind every active sub-task of the selected categories"""
    data = _json_body()
    category_ids = data.get('categoryIds')
    if not isinstance(category_ids, list) or not category_ids:
        raise ValidationError('categoryIds must be a non-empty list', field='categoryIds')
    tasks = get_tracker().binder.bind_categories(project_id, category_ids)
    return _ok([task.to_dict() for task in tasks], f'{len(tasks)} task(s) initialized', 201)


# ===== PROGRESS =====

@progress_bp.route('/tasks/<int:task_id>/weekly-progress', methods=['POST'])
def record_weekly_progress(task_id):
    record = get_tracker().recorder.record_weekly_progress(task_id, _json_body())
    return _ok(record.to_dict(), 'Weekly progress saved')


@progress_bp.route('/tasks/<int:task_id>/progress-history')
def progress_history(task_id):
    tracker = get_tracker()
    history = []
    for record in tracker.recorder.progress_history(task_id):
        entry = record.to_dict()
        aggregate = tracker.engine.monthly_aggregate(task_id, record.year, record.month)
        entry['aggregate'] = aggregate.to_dict() if aggregate is not None else None
        history.append(entry)
    return _ok(history)


# ===== REPORTS =====

@progress_bp.route('/projects/<project_id>/progress-report')
def progress_report(project_id):
    """Month-by-month matrix between ?startDate= and ?endDate="""
    report = get_tracker().engine.build_monthly_report(
        project_id,
        _required_arg('startDate'),
        _required_arg('endDate'),
    )
    return _ok(report)


@progress_bp.route('/projects/<project_id>/export-progress-report')
def export_progress_report_xlsx(project_id):
    """Monthly report as .xlsx; defaults to the recorded periods when no dates are given"""
    content, _ = export_progress_report(
        get_tracker().engine,
        project_id,
        request.args.get('startDate') or None,
        request.args.get('endDate') or None,
    )
    filename = f"{secure_filename(str(project_id)) or 'project'}-progress-{date.today().isoformat()}.xlsx"

    response = make_response(content)
    response.headers['Content-Type'] = XLSX_MIMETYPE
    response.headers['Content-Disposition'] = f'attachment; filename={filename}'
    return response


@progress_bp.route('/projects/<project_id>/dashboard')
def dashboard(project_id):
    return _ok(get_tracker().engine.build_dashboard_summary(project_id))


@progress_bp.route('/projects/<project_id>/variance-analysis')
def variance_analysis(project_id):
    rows = get_tracker().engine.variance_analysis(
        project_id,
        request.args.get('startDate') or None,
        request.args.get('endDate') or None,
    )
    return _ok(rows)
