"""
Field Resolver - effective value of an account attribute for a row scoped to
a banner/buying office.

Two fallback policies:
- value attributes (strings, lists): the banner wins only when its value is
  non-empty, otherwise the account value is used
- presence attributes (booleans, numeric overrides): the banner wins whenever
  it defines the key at all, so an explicit False or 0 overrides the account

Array attributes come back as raw lists; joining them is the caller's job.
"""

from typing import Any, Optional

from services.entities import Account, BannerBuyingOffice, Contact


# Attributes a banner may override with non-empty-wins semantics
VALUE_OVERRIDE_ATTRIBUTES = frozenset([
    'channel',
    'footprint',
    'region',
    'territory',
    'address',
    'city',
    'state',
    'zipCode',
    'phone',
    'website',
    'operatingStates',
    'fulfillmentTypes',
    'ecommerceMaturityLevel',
    'ecommerceSalesPercentage',
    'ecommercePartners',
    'lastJBPDate',
    'nextJBPDate',
    'nextJBPAlertOptions',
    'planogramWrittenBy',
    'resetFrequency',
    'resetWindowLeadTime',
    'resetWindowMonths',
    'affectedCategories',
    'affectedSegments',
    'hasDifferentResetWindows',
    'resetWindowQ1',
    'resetWindowQ2',
    'resetWindowQ3',
    'resetWindowQ4',
    'resetWindowSpring',
    'resetWindowSummer',
    'resetWindowFall',
    'resetWindowWinter',
    'categoryCaptain',
    'categoryAdvisor',
    'spiritsOutlets',
    'allSpiritsOutlets',
    'spiritsOutletsByState',
    'fullProofOutlets',
    'designatedCharities',
    'executionReliabilityScore',
    'executionReliabilityRationale',
    'influenceAssortmentShelf',
    'influencePricePromo',
    'influenceDisplayMerchandising',
    'influenceDigital',
    'influenceEcommerce',
    'influenceInStoreEvents',
    'influenceShrinkManagement',
    'influenceBuyingPOOwnership',
    'strategicPriorities',
    'keyCompetitors',
    'topPriorities',
    'whatsWorking',
    'areasOfOpportunity',
    'accountPrioritization',
    'buyingPOOwnership',
])

# Attributes a banner may override with present-wins (``??``) semantics
PRESENCE_OVERRIDE_ATTRIBUTES = frozenset([
    'isJBP',
    'hasPlanograms',
    'hqInfluence',
    'displayMandates',
    'pricingStrategy',
    'privateLabel',
    'hasEcommerce',
    'innovationAppetite',
    'nextJBPAlert',
    'nextJBPAlertDays',
])

OVERRIDABLE_ATTRIBUTES = VALUE_OVERRIDE_ATTRIBUTES | PRESENCE_OVERRIDE_ATTRIBUTES


def is_empty(value: Any) -> bool:
    """None, empty string and empty collections count as "not defined" for value attributes"""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ''
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


def fallback_non_empty(banner_value: Any, account_value: Any) -> Any:
    return account_value if is_empty(banner_value) else banner_value


def fallback_present(banner_value: Any, account_value: Any) -> Any:
    return account_value if banner_value is None else banner_value


def resolve_banner(contact: Optional[Contact], account: Account) -> Optional[BannerBuyingOffice]:
    """
    Banner a contact is scoped to, validated against the contact's own account.

    A banner id that does not exist in this account (including ids that belong
    to another account) resolves to None.
    """
    if contact is None or not contact.banner_buying_office_id:
        return None
    if contact.account_id != account.id:
        return None
    return account.find_banner(contact.banner_buying_office_id)


def resolve(attribute: str,
            account: Account,
            contact: Optional[Contact] = None,
            banner: Optional[BannerBuyingOffice] = None) -> Any:
    """
    Effective value of `attribute` for a row.

    Args:
        attribute: Document name of the attribute (e.g. 'channel', 'isJBP')
        account: Owning account, always consulted as the fallback
        contact: When given and no banner is passed, the contact's banner is resolved
        banner: Explicit banner scope (no-contact banner rows)

    Returns:
        The banner value when it wins under the attribute's policy, else the
        account value. Never raises; missing values come back as None.
    """
    if banner is None and contact is not None:
        banner = resolve_banner(contact, account)

    account_value = account.get(attribute)
    if banner is None or attribute not in OVERRIDABLE_ATTRIBUTES:
        return account_value

    banner_value = banner.get(attribute)
    if attribute in PRESENCE_OVERRIDE_ATTRIBUTES:
        return fallback_present(banner_value, account_value)
    return fallback_non_empty(banner_value, account_value)
