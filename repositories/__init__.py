"""
Repository Layer - Data Access Abstraction
Every repository reads and writes JSON documents through a DocumentStore
"""

from .document_store import (
    DocumentStore,
    InMemoryDocumentStore,
    SqlDocumentStore
)
from .entity_repository import EntityRepository
from .sent_alert_repository import SentAlertRepository
from .alert_settings_repository import AlertSettingsRepository, SnoozedAlertRepository
from .relationship_owner_repository import RelationshipOwnerRepository

__all__ = [
    'DocumentStore',
    'InMemoryDocumentStore',
    'SqlDocumentStore',
    'EntityRepository',
    'SentAlertRepository',
    'AlertSettingsRepository',
    'SnoozedAlertRepository',
    'RelationshipOwnerRepository'
]
