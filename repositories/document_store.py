"""
Document Store - key-value persistence collaborator
Synchronous get/set of JSON-serializable documents keyed by string
"""

import copy
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from services.common.exceptions import LedgerUnavailableError

logger = logging.getLogger(__name__)


class DocumentStore(ABC):
    """
    Abstract key-value store.

    `load` returns `default` for a missing key; store failures raise
    LedgerUnavailableError and are never swallowed.
    """

    @abstractmethod
    def load(self, key: str, default: Any = None) -> Any:
        """Return the document stored under `key`, or `default`"""
        pass

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Replace the document stored under `key`"""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove `key`; returns True if it existed"""
        pass


class InMemoryDocumentStore(DocumentStore):
    """
    Dictionary-backed store for tests and single-process tooling.

    Values go through a JSON round trip on save so callers observe the same
    serialization constraints as a real store.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._documents: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.save(key, value)

    def load(self, key: str, default: Any = None) -> Any:
        raw = self._documents.get(key)
        if raw is None:
            return copy.deepcopy(default)
        return json.loads(raw)

    def save(self, key: str, value: Any) -> None:
        self._documents[key] = json.dumps(value)

    def delete(self, key: str) -> bool:
        return self._documents.pop(key, None) is not None

    def keys(self):
        return sorted(self._documents.keys())


class SqlDocumentStore(DocumentStore):
    """Store backed by the StoredDocument table"""

    def __init__(self, session: Session, model_class=None):
        """
        Args:
            session: SQLAlchemy database session
            model_class: Document model (defaults to crm_database.StoredDocument)
        """
        if model_class is None:
            from crm_database import StoredDocument
            model_class = StoredDocument
        self.session = session
        self.model_class = model_class

    def _find(self, key: str):
        return self.session.query(self.model_class).filter_by(key=key).first()

    def load(self, key: str, default: Any = None) -> Any:
        try:
            document = self._find(key)
        except SQLAlchemyError as e:
            logger.error(f"Error loading document {key}: {e}")
            raise LedgerUnavailableError(key, e) from e
        if document is None:
            return copy.deepcopy(default)
        return copy.deepcopy(document.value)

    def save(self, key: str, value: Any) -> None:
        try:
            document = self._find(key)
            if document is None:
                document = self.model_class(key=key, value=value)
                self.session.add(document)
            else:
                document.value = value
            self.session.commit()
            logger.debug(f"Saved document {key}")
        except SQLAlchemyError as e:
            logger.error(f"Error saving document {key}: {e}")
            self.session.rollback()
            raise LedgerUnavailableError(key, e) from e

    def delete(self, key: str) -> bool:
        try:
            document = self._find(key)
            if document is None:
                return False
            self.session.delete(document)
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Error deleting document {key}: {e}")
            self.session.rollback()
            raise LedgerUnavailableError(key, e) from e
