# tests/conftest.py
"""
Shared fixtures for the pytest test suite.

- `app` / `client`: Flask app in the testing configuration with an in-memory
  SQLite database (module scoped, like the tables it creates)
- `clean_documents`: empties the document table around a test
- `memory_store` and the service fixtures built on it: fast, database-free
  collaborators for unit tests
"""
import os
from datetime import date

import pytest

os.environ['FLASK_ENV'] = 'testing'

from app import create_app
from extensions import db
from repositories.alert_settings_repository import AlertSettingsRepository, SnoozedAlertRepository
from repositories.document_store import InMemoryDocumentStore
from repositories.entity_repository import EntityRepository
from repositories.relationship_owner_repository import RelationshipOwnerRepository
from repositories.sent_alert_repository import SentAlertRepository
from services.alert_delivery_service import LoggingAlertDelivery
from services.alert_evaluation_service import AlertEvaluationService
from services.alert_snooze_service import AlertSnoozeService
from services.notification_ledger_service import NotificationLedgerService


@pytest.fixture(scope='module')
def app():
    """
    A Flask application instance for a test module with its tables created.
    """
    app = create_app(config_name='testing', test_config={
        'SERVER_NAME': 'localhost.localdomain'
    })

    with app.app_context():
        import crm_database  # noqa: F401
        db.create_all()

        yield app

        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='module')
def client(app):
    """A test client for the app"""
    return app.test_client()


@pytest.fixture
def clean_documents(app):
    """Empty document table before and after the test; cached services are rebuilt"""
    from crm_database import StoredDocument

    def clear():
        db.session.query(StoredDocument).delete()
        db.session.commit()
        for name in ('notification_ledger', 'alert_evaluation', 'report', 'alert_snooze'):
            app.services.reset_service(name)

    clear()
    yield db.session
    db.session.rollback()
    clear()


@pytest.fixture
def today():
    return date(2024, 3, 10)


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore()


@pytest.fixture
def entity_repository(memory_store):
    return EntityRepository(memory_store)


@pytest.fixture
def sent_alert_repository(memory_store):
    return SentAlertRepository(memory_store)


@pytest.fixture
def ledger(sent_alert_repository):
    return NotificationLedgerService(sent_alert_repository)


@pytest.fixture
def snooze_service(memory_store):
    return AlertSnoozeService(SnoozedAlertRepository(memory_store))


@pytest.fixture
def delivery():
    return LoggingAlertDelivery()


@pytest.fixture
def evaluation_service(entity_repository, ledger, delivery, snooze_service, memory_store):
    return AlertEvaluationService(
        entity_repository=entity_repository,
        ledger=ledger,
        delivery=delivery,
        snooze_service=snooze_service,
        settings_repository=AlertSettingsRepository(memory_store),
        owner_repository=RelationshipOwnerRepository(memory_store),
    )
