"""
CSV serialization for reporting rows and contact documents.

Multi-valued fields are joined with "; " and nested objects (sales/support
role maps, primary owner records) are JSON-encoded, matching files exported
by earlier versions of the tool so they can be re-imported unchanged.
"""

import csv
import io
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from services.row_flattener import ROW_COLUMNS, CombinedRow, column_label

logger = logging.getLogger(__name__)

CSV_LIST_SEPARATOR = '; '


def _json(value: Any) -> str:
    return json.dumps(value, separators=(',', ':'))


def serialize_cell(value: Any) -> str:
    """Render one value as CSV cell text"""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, dict):
        return _json(value)
    if isinstance(value, (list, tuple)):
        return CSV_LIST_SEPARATOR.join(
            _json(item) if isinstance(item, dict) else str(item)
            for item in value
        )
    return str(value)


def split_multi_value(cell: Optional[str]) -> List[str]:
    """Inverse of the "; " join: 'a; b;c' -> ['a', 'b', 'c']"""
    if not cell:
        return []
    return [part.strip() for part in cell.split(';') if part.strip()]


def parse_json_cell(cell: Optional[str], default: Any = None) -> Any:
    """Decode a JSON-encoded cell (role maps); blank or invalid cells give `default`"""
    if not cell or not cell.strip():
        return default
    try:
        return json.loads(cell)
    except ValueError:
        logger.warning(f"Invalid JSON in CSV cell: {cell[:80]!r}")
        return default


def export_rows_csv(rows: Iterable[CombinedRow], columns: Optional[Sequence[str]] = None) -> str:
    """
    CSV text for flattened rows with human-readable header labels.

    Args:
        rows: Output of row_flattener.flatten (ideally built with the "; " separator)
        columns: Row columns to include, in order (default: every column)
    """
    columns = list(columns or ROW_COLUMNS)
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(column_label(column) for column in columns)

    count = 0
    for row in rows:
        writer.writerow(serialize_cell(row.get(column)) for column in columns)
        count += 1

    logger.debug(f"Exported {count} row(s) to CSV")
    return output.getvalue()


# Header label -> contact document field; dotted paths reach into relationshipOwner
CONTACT_CSV_FIELDS = [
    ('First Name', 'firstName'),
    ('Last Name', 'lastName'),
    ('Email', 'email'),
    ('Office Phone', 'officePhone'),
    ('Mobile Phone', 'mobilePhone'),
    ('Preferred Contact Method', 'preferredContactMethod'),
    ('Title', 'title'),
    ('Account ID', 'accountId'),
    ('Contact Type', 'contactType'),
    ('Influence', 'influence'),
    ('Birthday', 'birthday'),
    ('Birthday Alert', 'birthdayAlert'),
    ('Relationship Status', 'relationshipStatus'),
    ('Last Contact Date', 'lastContactDate'),
    ('Next Contact Date', 'nextContactDate'),
    ('Next Contact Alert', 'nextContactAlert'),
    ('Social Handles', 'socialHandles'),
    ('Known Preferences', 'knownPreferences'),
    ('Notes', 'notes'),
    ('Relationship Owner Name', 'relationshipOwner.name'),
    ('Relationship Owner Email', 'relationshipOwner.email'),
    ('Director', 'director'),
    ('Vice President', 'relationshipOwner.vicePresident'),
    ('Senior Vice President', 'seniorVicePresident'),
    ('Primary Relationship Owner', 'primaryDiageoRelationshipOwners'),
    ('Notification Email', 'notificationEmail'),
    ('Created At', 'createdAt'),
    ('Last Modified', 'lastModified'),
]

REQUIRED_CONTACT_HEADERS = ('First Name', 'Last Name', 'Email')

_BOOLEAN_FIELDS = {'birthdayAlert', 'nextContactAlert'}
_LIST_FIELDS = {'socialHandles'}
_JSON_FIELDS = {'primaryDiageoRelationshipOwners'}


def _lookup(document: Dict[str, Any], path: str) -> Any:
    value: Any = document
    for part in path.split('.'):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _assign(document: Dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split('.')
    for part in parents:
        document = document.setdefault(part, {})
    document[leaf] = value


def parse_bool_cell(cell: Optional[str]) -> Optional[bool]:
    """'true'/'yes'/'1' and 'false'/'no'/'0' in any case; anything else is unset"""
    value = (cell or '').strip().lower()
    if value in ('true', 'yes', '1'):
        return True
    if value in ('false', 'no', '0'):
        return False
    return None


def export_contacts_csv(documents: Iterable[Dict[str, Any]]) -> str:
    """CSV text for contact documents in the contact import layout"""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(header for header, _ in CONTACT_CSV_FIELDS)
    for document in documents:
        writer.writerow(serialize_cell(_lookup(document, path)) for _, path in CONTACT_CSV_FIELDS)
    return output.getvalue()


def parse_contacts_csv(text: str) -> List[Dict[str, Any]]:
    """
    Contact documents from CSV in the contact import layout.

    Headers match case-insensitively and may come in any order; unknown
    columns are ignored and blank rows skipped. Blank cells leave the field
    unset. Documents carry no id or timestamps unless the file supplies them.

    Raises:
        ValueError: If the file has no data rows or a row lacks a required field
    """
    rows = list(csv.reader(io.StringIO(text)))
    if len(rows) < 2:
        raise ValueError('CSV file is empty or has no data rows')

    positions: Dict[str, int] = {}
    for position, header in enumerate(rows[0]):
        positions.setdefault(header.strip().lower(), position)

    contacts = []
    for row_number, row in enumerate(rows[1:], start=2):
        if not any(cell.strip() for cell in row):
            continue

        def cell(header: str) -> str:
            position = positions.get(header.lower())
            if position is None or position >= len(row):
                return ''
            return row[position].strip()

        if not all(cell(header) for header in REQUIRED_CONTACT_HEADERS):
            raise ValueError(f"Row {row_number}: First Name, Last Name, and Email are required")

        document: Dict[str, Any] = {}
        for header, path in CONTACT_CSV_FIELDS:
            raw = cell(header)
            if path in _BOOLEAN_FIELDS:
                value = parse_bool_cell(raw)
            elif path in _LIST_FIELDS:
                value = split_multi_value(raw) or None
            elif path in _JSON_FIELDS:
                value = parse_json_cell(raw)
                if value is not None and not isinstance(value, dict):
                    logger.warning(f"Row {row_number}: ignoring non-object {header} cell")
                    value = None
            else:
                value = raw or None
            if value is not None:
                _assign(document, path, value)

        if 'relationshipOwner' in document:
            document['relationshipOwner'] = {
                'name': '', 'email': '', 'vicePresident': '', **document['relationshipOwner'],
            }
        contacts.append(document)

    logger.debug(f"Parsed {len(contacts)} contact(s) from CSV")
    return contacts
