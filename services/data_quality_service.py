"""
Data-quality signals for dangling or inconsistent references.

Broken references are tolerated everywhere else in the engine (treated as
absent); this module is where they get reported.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List

from services.contact_hierarchy_service import find_manager_cycles
from services.entities import Account, Contact, Task
from services.enums import DataQualityKind, RelatedType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataQualityIssue:
    kind: DataQualityKind
    entity_id: str
    detail: str

    def to_dict(self) -> Dict[str, str]:
        return {'kind': self.kind.value, 'entityId': self.entity_id, 'detail': self.detail}


def find_reference_issues(accounts: Iterable[Account],
                          contacts: Iterable[Contact],
                          tasks: Iterable[Task] = ()) -> List[DataQualityIssue]:
    """Every reference inconsistency across accounts, contacts and tasks"""
    accounts = list(accounts)
    contacts = list(contacts)
    accounts_by_id = {a.id: a for a in accounts}
    contacts_by_id = {c.id: c for c in contacts}
    issues: List[DataQualityIssue] = []

    for contact in contacts:
        account = accounts_by_id.get(contact.account_id)
        if account is None:
            issues.append(DataQualityIssue(
                DataQualityKind.MISSING_ACCOUNT,
                contact.id,
                f"accountId {contact.account_id!r} does not match any account",
            ))
        elif contact.banner_buying_office_id and account.find_banner(contact.banner_buying_office_id) is None:
            issues.append(DataQualityIssue(
                DataQualityKind.FOREIGN_BANNER,
                contact.id,
                f"bannerBuyingOfficeId {contact.banner_buying_office_id!r} "
                f"is not a banner of account {account.id!r}",
            ))

        if contact.manager_id and contact.manager_id not in contacts_by_id:
            issues.append(DataQualityIssue(
                DataQualityKind.MISSING_MANAGER,
                contact.id,
                f"managerId {contact.manager_id!r} does not match any contact",
            ))

    for cycle in find_manager_cycles(contacts):
        issues.append(DataQualityIssue(
            DataQualityKind.MANAGER_CYCLE,
            cycle[0],
            'managerId cycle: ' + ' -> '.join(cycle + [cycle[0]]),
        ))

    for task in tasks:
        if not task.related_id:
            continue
        if task.related_type == RelatedType.ACCOUNT.value:
            found = task.related_id in accounts_by_id
        elif task.related_type == RelatedType.CONTACT.value:
            found = task.related_id in contacts_by_id
        else:
            continue
        if not found:
            issues.append(DataQualityIssue(
                DataQualityKind.MISSING_TASK_TARGET,
                task.id,
                f"related {task.related_type} {task.related_id!r} does not exist",
            ))

    if issues:
        logger.info(f"Found {len(issues)} data-quality issue(s)")
    return issues
