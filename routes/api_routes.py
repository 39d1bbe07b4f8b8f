"""
JSON API for reporting rows, the alert feed and alert maintenance
"""
import logging
from flask import Blueprint, Response, current_app, jsonify, request

from services.common.exceptions import LedgerUnavailableError
from services.common.result import ErrorCode
from services.temporal_evaluator import parse_event_date
from utils.datetime_utils import format_utc_iso

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__)

_STATUS_BY_CODE = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INVALID_COLUMNS: 400,
    ErrorCode.STORE_UNAVAILABLE: 503,
}


def _error_response(result):
    return jsonify({'error': result.error, 'code': result.error_code}), \
        _STATUS_BY_CODE.get(result.error_code, 500)


def _requested_today():
    """`today` query parameter (YYYY-MM-DD) or the configured local date"""
    raw = request.args.get('today')
    if raw:
        today = parse_event_date(raw)
        if today is None:
            raise ValueError(f"Invalid date for 'today': {raw}")
        return today
    return current_app.services.get('today_provider')()


@api_bp.route('/report/rows')
def report_rows():
    """Flattened account/banner/contact rows"""
    report_service = current_app.services.get('report')
    result = report_service.get_rows_result(request.args.get('account_id'))
    if result.is_failure:
        return _error_response(result)
    return jsonify({'rows': result.data, 'count': result.metadata['count']})


@api_bp.route('/report/rows.csv')
def report_rows_csv():
    report_service = current_app.services.get('report')
    columns = request.args.get('columns')
    result = report_service.export_csv(columns.split(',') if columns else None)
    if result.is_failure:
        return _error_response(result)

    return Response(
        result.data,
        mimetype='text/csv',
        headers={
            'Content-Disposition': 'attachment; filename=account_report.csv'
        }
    )


@api_bp.route('/alerts')
def alert_feed():
    """Alerts triggering today with their sent/snoozed state"""
    try:
        today = _requested_today()
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    evaluation_service = current_app.services.get('alert_evaluation')
    result = evaluation_service.get_alert_feed(today)
    if result.is_failure:
        return _error_response(result)
    return jsonify({'today': today.isoformat(), 'alerts': result.data})


@api_bp.route('/alerts/evaluate', methods=['POST'])
def evaluate_alerts():
    """Run one delivery pass now"""
    try:
        today = _requested_today()
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    evaluation_service = current_app.services.get('alert_evaluation')
    result = evaluation_service.run_evaluation(today)
    if result.is_failure:
        return _error_response(result)
    return jsonify({'success': True, 'summary': result.data})


@api_bp.route('/alerts/prune', methods=['POST'])
def prune_alerts():
    data = request.get_json(silent=True) or {}
    retention_days = data.get('retention_days')
    if retention_days is not None and (not isinstance(retention_days, int) or retention_days < 0):
        return jsonify({'error': 'retention_days must be a non-negative integer'}), 400

    try:
        today = _requested_today()
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    evaluation_service = current_app.services.get('alert_evaluation')
    result = evaluation_service.prune_sent_alerts(retention_days, today=today)
    if result.is_failure:
        return _error_response(result)
    return jsonify({'success': True, 'removed': result.data, 'pruned_at': format_utc_iso()})


@api_bp.route('/alerts/<path:alert_id>/snooze', methods=['POST'])
def snooze_alert(alert_id):
    data = request.get_json(silent=True) or {}
    days = data.get('days', 1)
    if not isinstance(days, int) or days < 1:
        return jsonify({'error': 'days must be a positive integer'}), 400

    try:
        today = _requested_today()
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    snooze_service = current_app.services.get('alert_snooze')
    try:
        until = snooze_service.snooze(alert_id, days, today)
    except LedgerUnavailableError as e:
        logger.error(f"Failed to snooze alert {alert_id}: {e}")
        return jsonify({'error': str(e), 'code': ErrorCode.STORE_UNAVAILABLE}), 503
    return jsonify({'success': True, 'alert_id': alert_id, 'snooze_until': until.isoformat()})


@api_bp.route('/alerts/<path:alert_id>/snooze', methods=['DELETE'])
def unsnooze_alert(alert_id):
    try:
        today = _requested_today()
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    snooze_service = current_app.services.get('alert_snooze')
    try:
        removed = snooze_service.unsnooze(alert_id, today)
    except LedgerUnavailableError as e:
        logger.error(f"Failed to unsnooze alert {alert_id}: {e}")
        return jsonify({'error': str(e), 'code': ErrorCode.STORE_UNAVAILABLE}), 503
    if not removed:
        return jsonify({'error': f"Alert {alert_id} is not snoozed", 'code': ErrorCode.NOT_FOUND}), 404
    return jsonify({'success': True, 'alert_id': alert_id})


@api_bp.route('/alerts/settings')
def alert_settings():
    evaluation_service = current_app.services.get('alert_evaluation')
    try:
        settings = evaluation_service.get_settings()
    except LedgerUnavailableError as e:
        return jsonify({'error': str(e), 'code': ErrorCode.STORE_UNAVAILABLE}), 503
    return jsonify({'settings': settings.to_dict()})


@api_bp.route('/alerts/settings', methods=['PUT'])
def update_alert_settings():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Expected a JSON object of settings'}), 400

    evaluation_service = current_app.services.get('alert_evaluation')
    result = evaluation_service.update_settings(data)
    if result.is_failure:
        return _error_response(result)
    return jsonify({'success': True, 'settings': result.data})


@api_bp.route('/accounts/<account_id>/hierarchy')
def account_hierarchy(account_id):
    report_service = current_app.services.get('report')
    result = report_service.get_hierarchy(account_id)
    if result.is_failure:
        return _error_response(result)
    return jsonify({'account_id': account_id, 'hierarchy': result.data})


@api_bp.route('/data-quality')
def data_quality():
    report_service = current_app.services.get('report')
    result = report_service.get_data_quality_issues()
    if result.is_failure:
        return _error_response(result)
    return jsonify({'issues': result.data, 'count': result.metadata['count']})
