"""
Who gets told about an alert.

The recipient address is the first usable value of:
1. the contact's own `notificationEmail` override
2. the contact's primary Diageo relationship owner email
3. the relationship-owner directory entry matching the owner's name
4. the contact's legacy relationship owner email

Directory entries are matched on name exactly, then case-insensitively, then
by either name containing the other. The Teams channel comes from the contact
override or else the directory entry.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from services.entities import Contact, RelationshipOwner

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
UNASSIGNED = 'Unassigned'


def clean_email(value) -> str:
    """Strip surrounding whitespace and embedded CR/LF/tab characters"""
    if not value or not isinstance(value, str):
        return ''
    return re.sub(r'[\r\n\t]', '', value.strip())


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and EMAIL_PATTERN.match(value) is not None


@dataclass(frozen=True)
class NotificationRoute:
    email: Optional[str] = None
    teams_channel: Optional[str] = None


class OwnerDirectory:
    """Name lookup over the relationship-owner directory"""

    def __init__(self, owners: Iterable[RelationshipOwner] = ()):
        self.owners: List[RelationshipOwner] = [o for o in owners if o.name]

    def find(self, owner_name: Optional[str]) -> Optional[RelationshipOwner]:
        if not owner_name or owner_name == UNASSIGNED:
            return None

        for owner in self.owners:
            if owner.name == owner_name:
                return owner

        wanted = owner_name.lower()
        for owner in self.owners:
            if owner.name.lower() == wanted:
                return owner
        for owner in self.owners:
            name = owner.name.lower()
            if wanted in name or name in wanted:
                return owner
        return None

    def route(self, contact: Optional[Contact], owner_name: Optional[str]) -> NotificationRoute:
        """Recipient email and Teams channel for an alert owned by `owner_name`"""
        entry = self.find(owner_name)
        primary = (contact.get('primaryDiageoRelationshipOwners') or {}) if contact else {}
        legacy = (contact.get('relationshipOwner') or {}) if contact else {}

        candidates = [
            contact.get('notificationEmail') if contact else None,
            primary.get('ownerEmail') if isinstance(primary, dict) else None,
            entry.email if entry else None,
            legacy.get('email') if isinstance(legacy, dict) else None,
        ]
        email = next((clean for clean in map(clean_email, candidates) if clean), None)

        channels = [
            contact.get('teamsChannelId') if contact else None,
            entry.teams_channel_id if entry else None,
        ]
        teams_channel = next(
            (c.strip() for c in channels if isinstance(c, str) and c.strip()), None
        )
        return NotificationRoute(email=email, teams_channel=teams_channel)
