"""
RelationshipOwnerRepository - the directory of relationship owners and where to notify them
"""

import logging
from typing import Any, Dict, List

from repositories.document_store import DocumentStore
from services.entities import RelationshipOwner

logger = logging.getLogger(__name__)

RELATIONSHIP_OWNERS_KEY = 'crm-relationship-owners'


class RelationshipOwnerRepository:
    """List of {name, email, teamsChannelId} entries"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def _load_documents(self) -> List[Dict[str, Any]]:
        documents = self.store.load(RELATIONSHIP_OWNERS_KEY, [])
        if not isinstance(documents, list):
            logger.warning(f"Document {RELATIONSHIP_OWNERS_KEY} is not a list; treating as empty")
            return []
        return [d for d in documents if isinstance(d, dict)]

    def get_all(self) -> List[RelationshipOwner]:
        """Directory entries in stored order; entries without a name are skipped"""
        owners = [RelationshipOwner.from_dict(d) for d in self._load_documents()]
        return [owner for owner in owners if owner.name]
