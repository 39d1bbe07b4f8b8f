"""
Row Flattener - one reporting row per (account, banner?, contact?) triple.

Row ids are stable across re-flattens so downstream views can diff and cache:
    "{accountId}"                     account with no contacts and no banners
    "{accountId}-banner-{bannerId}"   banner of an account with no contacts
    "{accountId}-{contactId}"         one row per contact
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from services.entities import Account, BannerBuyingOffice, Contact
from services.field_resolver import OVERRIDABLE_ATTRIBUTES, resolve, resolve_banner

LIST_SEPARATOR = ', '

# Account-only attributes copied verbatim onto every row of the account
ACCOUNT_ATTRIBUTES = [
    'industry',
    'accountStatus',
    'accountOwner',
    'revenue',
    'employees',
    'email',
    'description',
    'publiclyTraded',
    'tickerSymbol',
    'parentCompany',
    'totalBuyingOffices',
    'currentPrice',
    'percentChange',
    'highPrice',
    'lowPrice',
    'openPrice',
    'previousClose',
    'marketCap',
    'pegRatio',
    'annualSales',
    'dividendYield',
    'fiftyTwoWeekLow',
    'fiftyTwoWeekHigh',
    'percentOfGeneralMarket',
    'sales52Weeks',
    'sales12Weeks',
    'sales4Weeks',
]

# Overridable attributes in report column order
RESOLVED_ATTRIBUTES = sorted(OVERRIDABLE_ATTRIBUTES)

CONTACT_COLUMNS = [
    'contactName',
    'contactType',
    'contactTitle',
    'contactEmail',
    'contactMobile',
    'contactOffice',
    'contactOwner',
    'contactOwnerEmail',
    'director',
    'seniorVicePresident',
    'contactRelationship',
    'contactInfluence',
    'contactPreferredMethod',
    'contactBirthday',
    'contactLastContact',
    'contactNextContact',
    'contactPreferences',
    'contactNotes',
    'linkedinProfile',
    'preferredFirstName',
    'currentRoleTenure',
    'contactActiveStatus',
    'categorySegmentOwnership',
    'entertainment',
    'decisionBiasProfile',
    'followThrough',
    'values',
    'painPoints',
    'managerId',
    'isPrimaryContact',
    'birthdayAlertDays',
    'nextContactAlertDays',
]

SUMMARY_COLUMNS = ['secondaryContactCount', 'secondaryContactNames', 'totalContacts']

ROW_COLUMNS = (
    ['accountName', 'bannerName', 'vp']
    + ACCOUNT_ATTRIBUTES
    + RESOLVED_ATTRIBUTES
    + CONTACT_COLUMNS
    + SUMMARY_COLUMNS
    + ['createdAt', 'lastModified']
)


@dataclass
class CombinedRow:
    """A flattened reporting row"""
    id: str
    account_id: str
    banner_id: Optional[str] = None
    contact_id: Optional[str] = None
    values: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, **self.values}


def join_values(value: Any, separator: str = LIST_SEPARATOR) -> Any:
    """Join list values for display; scalars pass through untouched"""
    if isinstance(value, (list, tuple)):
        return separator.join(str(item) for item in value)
    return value


def format_outlets_by_state(value: Any, separator: str = LIST_SEPARATOR) -> Optional[str]:
    """[{'state': 'TX', 'outletCount': 12}, ...] -> 'TX: 12, ...'"""
    if not isinstance(value, (list, tuple)):
        return value
    return separator.join(
        f"{entry.get('state')}: {entry.get('outletCount')}"
        for entry in value if isinstance(entry, dict)
    )


def _display_value(attribute: str, value: Any, separator: str) -> Any:
    if attribute == 'spiritsOutletsByState':
        return format_outlets_by_state(value, separator)
    return join_values(value, separator)


def _account_values(account: Account,
                    contact: Optional[Contact],
                    banner: Optional[BannerBuyingOffice],
                    separator: str) -> Dict[str, Any]:
    values: Dict[str, Any] = {
        'accountName': account.account_name,
        'bannerName': banner.name if banner else None,
        'vp': account.get('vp'),
    }
    for attribute in ACCOUNT_ATTRIBUTES:
        values[attribute] = account.get(attribute)
    for attribute in RESOLVED_ATTRIBUTES:
        value = resolve(attribute, account, contact=contact, banner=banner)
        values[attribute] = _display_value(attribute, value, separator)
    return values


def _empty_contact_values() -> Dict[str, Any]:
    return {column: None for column in CONTACT_COLUMNS}


def _contact_values(contact: Contact, separator: str) -> Dict[str, Any]:
    owner = contact.get('relationshipOwner') or {}
    return {
        'contactName': contact.full_name,
        'contactType': 'Primary' if contact.is_primary_contact else 'Secondary',
        'contactTitle': contact.get('title'),
        'contactEmail': contact.email,
        'contactMobile': contact.get('mobilePhone'),
        'contactOffice': contact.get('officePhone'),
        'contactOwner': owner.get('name') or None,
        'contactOwnerEmail': owner.get('email'),
        'director': owner.get('director'),
        'seniorVicePresident': owner.get('seniorVicePresident'),
        'contactRelationship': contact.get('relationshipStatus'),
        'contactInfluence': contact.get('influence'),
        'contactPreferredMethod': contact.get('preferredContactMethod'),
        'contactBirthday': contact.birthday,
        'contactLastContact': contact.last_contact_date,
        'contactNextContact': contact.next_contact_date,
        'contactPreferences': contact.get('knownPreferences'),
        'contactNotes': contact.get('notes'),
        'linkedinProfile': contact.get('linkedinProfile'),
        'preferredFirstName': contact.get('preferredFirstName'),
        'currentRoleTenure': contact.get('currentRoleTenure'),
        'contactActiveStatus': contact.get('contactActiveStatus'),
        'categorySegmentOwnership': join_values(contact.get('categorySegmentOwnership'), separator),
        'entertainment': contact.get('entertainment'),
        'decisionBiasProfile': join_values(contact.get('decisionBiasProfile'), separator),
        'followThrough': contact.get('followThrough'),
        'values': contact.get('values'),
        'painPoints': contact.get('painPoints'),
        'managerId': contact.manager_id,
        'isPrimaryContact': contact.is_primary_contact,
        'birthdayAlertDays': contact.birthday_alert_days,
        'nextContactAlertDays': contact.next_contact_alert_days,
    }


def _timestamps(account: Account) -> Dict[str, Any]:
    return {
        'createdAt': account.get('createdAt'),
        'lastModified': account.get('lastModified'),
    }


def flatten_account(account: Account,
                    account_contacts: Sequence[Contact],
                    list_separator: str = LIST_SEPARATOR) -> List[CombinedRow]:
    """Rows for a single account given the contacts already selected for it"""
    if not account_contacts:
        summary = {'secondaryContactCount': 0, 'secondaryContactNames': None, 'totalContacts': 0}
        if not account.banner_buying_offices:
            values = _account_values(account, None, None, list_separator)
            values.update(_empty_contact_values())
            values.update(summary)
            values.update(_timestamps(account))
            return [CombinedRow(id=account.id, account_id=account.id, values=values)]

        rows = []
        for banner in account.banner_buying_offices:
            values = _account_values(account, None, banner, list_separator)
            values.update(_empty_contact_values())
            values.update(summary)
            values.update(_timestamps(account))
            rows.append(CombinedRow(
                id=f"{account.id}-banner-{banner.id}",
                account_id=account.id,
                banner_id=banner.id,
                values=values,
            ))
        return rows

    # Account-level aggregate, identical on every row of this account
    secondary = [c for c in account_contacts if not c.is_primary_contact]
    secondary_names = list_separator.join(c.full_name for c in secondary)
    summary = {
        'secondaryContactCount': len(secondary),
        'secondaryContactNames': secondary_names or None,
        'totalContacts': len(account_contacts),
    }

    rows = []
    for contact in account_contacts:
        banner = resolve_banner(contact, account)
        values = _account_values(account, contact, banner, list_separator)
        values.update(_contact_values(contact, list_separator))
        owner = contact.get('relationshipOwner') or {}
        if owner.get('vicePresident'):
            values['vp'] = owner['vicePresident']
        values.update(summary)
        values.update(_timestamps(account))
        rows.append(CombinedRow(
            id=f"{account.id}-{contact.id}",
            account_id=account.id,
            banner_id=banner.id if banner else None,
            contact_id=contact.id,
            values=values,
        ))
    return rows


def flatten(accounts: Iterable[Account],
            contacts: Iterable[Contact],
            list_separator: str = LIST_SEPARATOR) -> List[CombinedRow]:
    """
    Flatten accounts and contacts into reporting rows.

    Pure function of its inputs: accounts keep their input order and each
    account's contacts keep theirs. Contacts pointing at an account that is
    not in `accounts` produce no row. List attributes are joined with
    `list_separator`.
    """
    contacts_by_account: Dict[str, List[Contact]] = {}
    for contact in contacts:
        if contact.account_id:
            contacts_by_account.setdefault(contact.account_id, []).append(contact)

    rows: List[CombinedRow] = []
    for account in accounts:
        rows.extend(flatten_account(account, contacts_by_account.get(account.id, []), list_separator))
    return rows


def column_label(column: str) -> str:
    """'secondaryContactCount' -> 'Secondary Contact Count'"""
    words = re.sub(r'(?<=[a-z0-9])(?=[A-Z])', ' ', column)
    return words[:1].upper() + words[1:]
