"""
Celery tasks for the alert engine

Scheduled evaluation passes and the sent-alert retention sweep.
"""

import logging
from typing import Any, Dict, Optional

from celery import shared_task
from flask import current_app

from services.common.result import ErrorCode
from utils.datetime_utils import format_utc_iso

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def run_alert_evaluation(self, today: Optional[str] = None) -> Dict[str, Any]:
    """
    Run one alert delivery pass.

    Args:
        today: 'YYYY-MM-DD' to evaluate as; defaults to the configured local date

    Returns:
        Pass summary
    """
    evaluation_service = current_app.services.get('alert_evaluation')
    evaluation_date = today or current_app.services.get('today_provider')()

    logger.info(f"Starting alert evaluation for {evaluation_date}")
    result = evaluation_service.run_evaluation(evaluation_date)

    if result.is_failure:
        logger.error(f"Alert evaluation failed: {result.error}")
        if result.error_code == ErrorCode.STORE_UNAVAILABLE:
            raise self.retry(
                exc=Exception(result.error),
                countdown=60 * (self.request.retries + 1)
            )
        return {'success': False, 'error': result.error, 'code': result.error_code}

    summary = dict(result.data)
    summary.update(task_id=self.request.id, executed_at=format_utc_iso(), success=True)
    logger.info(
        "Alert evaluation completed",
        extra={
            'delivered': summary['delivered'],
            'skipped': summary['skipped'],
            'failed': summary['failed'],
        }
    )
    return summary


@shared_task(bind=True, max_retries=3)
def prune_sent_alerts(self, retention_days: Optional[int] = None) -> Dict[str, Any]:
    """Drop ledger records older than the retention window whose due date has passed"""
    evaluation_service = current_app.services.get('alert_evaluation')
    today = current_app.services.get('today_provider')()
    result = evaluation_service.prune_sent_alerts(retention_days, today=today)

    if result.is_failure:
        logger.error(f"Sent-alert prune failed: {result.error}")
        if result.error_code != ErrorCode.STORE_UNAVAILABLE:
            return {'success': False, 'error': result.error, 'code': result.error_code}
        raise self.retry(
            exc=Exception(result.error),
            countdown=300 * (self.request.retries + 1)
        )

    logger.info(f"Pruned {result.data} sent-alert record(s)")
    return {'success': True, 'removed': result.data, 'executed_at': format_utc_iso()}
