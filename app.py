# app.py

from flask import Flask, g, jsonify, request
from config import get_config
from extensions import db
import os
import uuid
from werkzeug.middleware.proxy_fix import ProxyFix
from logging_config import setup_logging, get_logger

# Configure logging as early as possible
setup_logging(app_name="account-reminders", log_level=os.environ.get('LOG_LEVEL', 'INFO'))
logger = get_logger(__name__)


def create_app(config_name=None, test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize app with config
    config_class.init_app(app)

    if test_config:
        app.config.update(test_config)

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    db.init_app(app)

    from services.registry import ServiceRegistry
    registry = ServiceRegistry()
    _register_services(registry, app.config)

    # Attach registry to app
    app.services = registry

    # Add request tracking middleware
    @app.before_request
    def before_request():
        g.request_id = str(uuid.uuid4())
        logger.info("Request started",
                    request_id=g.request_id,
                    method=request.method,
                    path=request.path)

    @app.after_request
    def after_request(response):
        logger.info("Request completed",
                    request_id=getattr(g, 'request_id', None),
                    status_code=response.status_code)
        return response

    # Global error handlers
    @app.errorhandler(500)
    def internal_error(error):
        logger.error("Internal server error",
                     request_id=getattr(g, 'request_id', None),
                     error=str(error))
        return jsonify({'error': 'Internal server error'}), 500

    @app.errorhandler(404)
    def not_found_error(error):
        logger.warning("Page not found",
                       request_id=getattr(g, 'request_id', None),
                       path=request.path)
        return jsonify({'error': 'Not found'}), 404

    @app.route('/health')
    def health_check():
        """Health check endpoint for monitoring"""
        from sqlalchemy import text
        from sqlalchemy.exc import SQLAlchemyError
        health_status = {
            'status': 'healthy',
            'service': 'account-reminders',
            'services': app.services.list_services()
        }

        try:
            # Quick database check
            db.session.execute(text('SELECT 1'))
            health_status['database'] = 'connected'
        except SQLAlchemyError as e:
            health_status['database'] = 'error'
            health_status['status'] = 'degraded'
            logger.error(f"Health check database error: {e}")

        return jsonify(health_status), 200 if health_status['status'] == 'healthy' else 503

    # Register blueprints for routes
    from routes.api_routes import api_bp
    app.register_blueprint(api_bp, url_prefix='/api')

    # Register CLI commands
    from scripts import commands
    commands.init_app(app)

    return app


def _register_services(registry, config):
    """Register lazily-built collaborators; each factory resolves its dependencies from the registry"""
    registry.register_factory('document_store', lambda: _create_document_store())

    registry.register_factory(
        'entity_repository',
        lambda: _create_entity_repository(registry.get('document_store'))
    )
    registry.register_factory(
        'sent_alert_repository',
        lambda: _create_sent_alert_repository(registry.get('document_store'))
    )
    registry.register_factory(
        'alert_settings_repository',
        lambda: _create_alert_settings_repository(registry.get('document_store'))
    )
    registry.register_factory(
        'snoozed_alert_repository',
        lambda: _create_snoozed_alert_repository(registry.get('document_store'))
    )
    registry.register_factory(
        'relationship_owner_repository',
        lambda: _create_relationship_owner_repository(registry.get('document_store'))
    )

    registry.register_factory(
        'notification_ledger',
        lambda: _create_notification_ledger(registry.get('sent_alert_repository'), config)
    )
    registry.register_factory(
        'alert_snooze',
        lambda: _create_alert_snooze_service(registry.get('snoozed_alert_repository'))
    )
    registry.register_factory('alert_delivery', lambda: _create_alert_delivery(config))
    registry.register_factory(
        'alert_evaluation',
        lambda: _create_alert_evaluation_service(
            entity_repository=registry.get('entity_repository'),
            ledger=registry.get('notification_ledger'),
            delivery=registry.get('alert_delivery'),
            snooze_service=registry.get('alert_snooze'),
            settings_repository=registry.get('alert_settings_repository'),
            owner_repository=registry.get('relationship_owner_repository'),
            config=config,
        )
    )
    registry.register_factory('report', lambda: _create_report_service(registry.get('entity_repository')))

    # "Today" for alert evaluation, in the configured timezone
    registry.register('today_provider', lambda: _local_today(config.get('ALERT_TIMEZONE', 'UTC')))


def _create_document_store():
    from repositories.document_store import SqlDocumentStore
    return SqlDocumentStore(db.session)


def _create_entity_repository(store):
    from repositories.entity_repository import EntityRepository
    return EntityRepository(store)


def _create_sent_alert_repository(store):
    from repositories.sent_alert_repository import SentAlertRepository
    return SentAlertRepository(store)


def _create_alert_settings_repository(store):
    from repositories.alert_settings_repository import AlertSettingsRepository
    return AlertSettingsRepository(store)


def _create_snoozed_alert_repository(store):
    from repositories.alert_settings_repository import SnoozedAlertRepository
    return SnoozedAlertRepository(store)


def _create_relationship_owner_repository(store):
    from repositories.relationship_owner_repository import RelationshipOwnerRepository
    return RelationshipOwnerRepository(store)


def _create_notification_ledger(sent_alert_repository, config):
    from services.notification_ledger_service import NotificationLedgerService
    return NotificationLedgerService(
        sent_alert_repository,
        retention_days=config.get('SENT_ALERT_RETENTION_DAYS', 30),
    )


def _create_alert_snooze_service(snoozed_alert_repository):
    from services.alert_snooze_service import AlertSnoozeService
    return AlertSnoozeService(snoozed_alert_repository)


def _create_alert_delivery(config):
    from services.alert_delivery_service import LoggingAlertDelivery, WebhookAlertDelivery
    if config.get('ALERT_DELIVERY') == 'webhook':
        return WebhookAlertDelivery(
            config.get('ALERT_WEBHOOK_URL'),
            timeout=config.get('WEBHOOK_TIMEOUT_SECONDS', 30),
        )
    return LoggingAlertDelivery()


def _create_alert_evaluation_service(entity_repository, ledger, delivery, snooze_service,
                                     settings_repository, owner_repository, config):
    from services.alert_evaluation_service import AlertEvaluationService, AlertSettings
    defaults = AlertSettings(
        birthday_lead_days=config.get('BIRTHDAY_LEAD_DAYS', 7),
        next_contact_lead_days=config.get('NEXT_CONTACT_LEAD_DAYS', 7),
        task_lead_days=config.get('TASK_LEAD_DAYS', 7),
        default_lead_days=config.get('DEFAULT_ALERT_LEAD_DAYS', 7),
    )
    return AlertEvaluationService(
        entity_repository=entity_repository,
        ledger=ledger,
        delivery=delivery,
        snooze_service=snooze_service,
        settings_repository=settings_repository,
        defaults=defaults,
        owner_repository=owner_repository,
    )


def _create_report_service(entity_repository):
    from services.report_service import ReportService
    return ReportService(entity_repository)


def _local_today(timezone_name):
    from utils.datetime_utils import local_today
    return local_today(timezone_name)
