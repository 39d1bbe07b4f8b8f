"""
SentAlertRepository - persistence for the sent-alert ledger document
"""

import logging
from typing import List

from repositories.document_store import DocumentStore
from services.entities import SentAlertRecord

logger = logging.getLogger(__name__)

SENT_ALERTS_KEY = 'crm-pa-sent-alerts'


class SentAlertRepository:
    """Reads and replaces the whole ledger; the ledger is small and always written in one save"""

    def __init__(self, store: DocumentStore, key: str = SENT_ALERTS_KEY):
        self.store = store
        self.key = key

    def get_all(self) -> List[SentAlertRecord]:
        """
        All ledger records in stored order.

        Entries without an alertId are ignored.
        """
        documents = self.store.load(self.key, [])
        if not isinstance(documents, list):
            logger.warning(f"Ledger document {self.key} is not a list; treating as empty")
            return []

        records = []
        for document in documents:
            if not isinstance(document, dict) or not document.get('alertId'):
                logger.debug(f"Skipping malformed ledger entry: {document!r}")
                continue
            records.append(SentAlertRecord.from_dict(document))
        return records

    def replace_all(self, records: List[SentAlertRecord]) -> None:
        self.store.save(self.key, [record.to_dict() for record in records])
