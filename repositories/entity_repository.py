"""
EntityRepository - access to accounts, contacts and tasks in the document store
"""

import logging
from typing import Any, Dict, List, Optional

from repositories.document_store import DocumentStore
from repositories.relationship_owner_repository import RELATIONSHIP_OWNERS_KEY
from services.entities import Account, Contact, Task
from utils.datetime_utils import format_utc_iso, utc_now

logger = logging.getLogger(__name__)

ACCOUNTS_KEY = 'crm-accounts'
CONTACTS_KEY = 'crm-contacts'
TASKS_KEY = 'crm-tasks'

SNAPSHOT_KEYS = {
    'accounts': ACCOUNTS_KEY,
    'contacts': CONTACTS_KEY,
    'tasks': TASKS_KEY,
    'relationshipOwners': RELATIONSHIP_OWNERS_KEY,
}


class EntityRepository:
    """Repository for the Account, Contact and Task documents"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def _load_list(self, key: str) -> List[Dict[str, Any]]:
        documents = self.store.load(key, [])
        if not isinstance(documents, list):
            logger.warning(f"Document {key} is not a list; treating as empty")
            return []
        return [d for d in documents if isinstance(d, dict)]

    def get_accounts(self) -> List[Account]:
        return [Account.from_dict(d) for d in self._load_list(ACCOUNTS_KEY)]

    def get_contacts(self) -> List[Contact]:
        return [Contact.from_dict(d) for d in self._load_list(CONTACTS_KEY)]

    def get_tasks(self) -> List[Task]:
        return [Task.from_dict(d) for d in self._load_list(TASKS_KEY)]

    def get_account(self, account_id: str) -> Optional[Account]:
        for account in self.get_accounts():
            if account.id == account_id:
                return account
        return None

    def get_contacts_for_account(self, account_id: str) -> List[Contact]:
        return [c for c in self.get_contacts() if c.account_id == account_id]

    def import_snapshot(self, snapshot: Dict[str, Any]) -> Dict[str, int]:
        """
        Replace stored collections with those present in `snapshot`.

        Args:
            snapshot: {'accounts': [...], 'contacts': [...], 'tasks': [...],
                'relationshipOwners': [...]};
                missing collections are left untouched

        Returns:
            Number of documents written per collection
        """
        counts = {}
        for name, key in SNAPSHOT_KEYS.items():
            if name not in snapshot:
                continue
            documents = snapshot[name]
            if not isinstance(documents, list):
                raise ValueError(f"Snapshot collection '{name}' must be a list")
            self.store.save(key, documents)
            counts[name] = len(documents)
        logger.info(f"Imported snapshot: {counts}")
        return counts

    def upsert_contacts(self, contacts: List[Dict[str, Any]]) -> Dict[str, int]:
        """
        Merge imported contact documents into the stored contacts.

        A contact whose email matches a stored one (case-insensitively) updates
        it in place, keeping the stored id and createdAt; fields absent from the
        import keep their stored values. Other contacts are appended with a
        generated `imported-...` id.

        Returns:
            {'added': n, 'updated': n}
        """
        stored = self._load_list(CONTACTS_KEY)
        by_email = {}
        for position, document in enumerate(stored):
            email = _email_key(document)
            if email:
                by_email.setdefault(email, position)

        now = utc_now()
        stamp = format_utc_iso(now)
        batch = int(now.timestamp() * 1000)
        added = updated = 0
        for index, contact in enumerate(contacts):
            email = _email_key(contact)
            if not email:
                raise ValueError(f"Imported contact {index + 1} has no email")

            position = by_email.get(email)
            if position is not None:
                previous = stored[position]
                stored[position] = {
                    **previous,
                    **contact,
                    'id': previous.get('id'),
                    'createdAt': previous.get('createdAt') or stamp,
                    'lastModified': stamp,
                }
                updated += 1
                continue

            document = {'createdAt': stamp, 'lastModified': stamp, **contact}
            document['id'] = contact.get('id') or f"imported-{batch}-{index}"
            stored.append(document)
            by_email[email] = len(stored) - 1
            added += 1

        self.store.save(CONTACTS_KEY, stored)
        logger.info(f"Upserted contacts: {added} added, {updated} updated")
        return {'added': added, 'updated': updated}


def _email_key(document: Dict[str, Any]) -> Optional[str]:
    email = document.get('email')
    if not isinstance(email, str):
        return None
    return email.strip().lower() or None
