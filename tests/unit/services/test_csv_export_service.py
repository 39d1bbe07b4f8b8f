"""
Tests for CSV serialization
"""

import csv
import io

import pytest

from services.csv_export_service import (
    CSV_LIST_SEPARATOR,
    export_contacts_csv,
    export_rows_csv,
    parse_bool_cell,
    parse_contacts_csv,
    parse_json_cell,
    serialize_cell,
    split_multi_value,
)
from services.entities import Account, Contact
from services.row_flattener import flatten
from tests.fixtures.entity_fixtures import make_account, make_contact


class TestSerializeCell:

    @pytest.mark.parametrize('value, expected', [
        (None, ''),
        (True, 'true'),
        (False, 'false'),
        (0, '0'),
        ('text', 'text'),
        (['TX', 'OK'], 'TX; OK'),
        ({'primary': 'Ann', 'backup': None}, '{"primary":"Ann","backup":null}'),
    ])
    def test_cells(self, value, expected):
        assert serialize_cell(value) == expected

    def test_list_of_objects(self):
        assert serialize_cell([{'a': 1}, {'b': 2}]) == '{"a":1}; {"b":2}'


class TestParsing:

    def test_split_multi_value(self):
        assert split_multi_value('TX; OK;CA') == ['TX', 'OK', 'CA']
        assert split_multi_value('') == []
        assert split_multi_value(None) == []

    def test_split_reverses_join(self):
        values = ['Whiskey', 'Tequila', 'Rum']
        assert split_multi_value(CSV_LIST_SEPARATOR.join(values)) == values

    def test_parse_json_cell(self):
        assert parse_json_cell('{"primary":"Ann"}') == {'primary': 'Ann'}
        assert parse_json_cell('', default={}) == {}
        assert parse_json_cell('{not json', default={}) == {}


class TestExport:

    def _read(self, text):
        return list(csv.reader(io.StringIO(text)))

    def test_rows_with_selected_columns(self):
        rows = flatten(
            [Account.from_dict(make_account('A1', operatingStates=['TX', 'OK'], isJBP=True))],
            [Contact.from_dict(make_contact('C1'))],
            list_separator=CSV_LIST_SEPARATOR,
        )

        table = self._read(export_rows_csv(rows, ['accountName', 'operatingStates', 'isJBP', 'contactName']))

        assert table == [
            ['Account Name', 'Operating States', 'Is JBP', 'Contact Name'],
            ['Acme Spirits', 'TX; OK', 'true', 'Casey Contact'],
        ]

    def test_all_columns_by_default(self):
        rows = flatten([Account.from_dict(make_account('A1'))], [])

        table = self._read(export_rows_csv(rows))

        assert len(table) == 2
        assert len(table[0]) == len(table[1])
        assert table[0][0] == 'Account Name'

    def test_commas_are_quoted(self):
        rows = flatten([Account.from_dict(make_account('A1', name='Acme, Inc.'))], [])

        table = self._read(export_rows_csv(rows, ['accountName']))

        assert table[1] == ['Acme, Inc.']

    def test_contacts_use_import_layout(self):
        text = export_contacts_csv([make_contact(
            'C1',
            socialHandles=['@casey', 'linkedin.com/in/casey'],
            birthdayAlert=True,
            relationshipOwner={'name': 'Pat Owner', 'email': 'pat@example.com', 'vicePresident': 'Val'},
            primaryDiageoRelationshipOwners={'ownerName': 'Pat Owner', 'ownerEmail': 'pat@example.com'},
        )])

        header, row = self._read(text)
        cells = dict(zip(header, row))

        assert header[:3] == ['First Name', 'Last Name', 'Email']
        assert cells['Email'] == 'casey@example.com'
        assert cells['Social Handles'] == '@casey; linkedin.com/in/casey'
        assert cells['Birthday Alert'] == 'true'
        assert cells['Next Contact Alert'] == ''
        assert cells['Relationship Owner Name'] == 'Pat Owner'
        assert cells['Vice President'] == 'Val'
        assert parse_json_cell(cells['Primary Relationship Owner']) == {
            'ownerName': 'Pat Owner', 'ownerEmail': 'pat@example.com',
        }


class TestContactImport:

    def test_exported_contacts_parse_back(self):
        original = make_contact(
            'C1',
            socialHandles=['@casey', 'linkedin.com/in/casey'],
            birthday='1990-03-15',
            birthdayAlert=True,
            relationshipOwner={'name': 'Pat Owner', 'email': 'pat@example.com', 'vicePresident': 'Val'},
            primaryDiageoRelationshipOwners={'ownerName': 'Pat Owner', 'ownerEmail': 'pat@example.com'},
        )

        [parsed] = parse_contacts_csv(export_contacts_csv([original]))

        assert parsed['firstName'] == 'Casey'
        assert parsed['accountId'] == 'A1'
        assert parsed['socialHandles'] == ['@casey', 'linkedin.com/in/casey']
        assert parsed['birthdayAlert'] is True
        assert parsed['relationshipOwner'] == original['relationshipOwner']
        assert parsed['primaryDiageoRelationshipOwners'] == original['primaryDiageoRelationshipOwners']
        assert 'id' not in parsed
        assert 'notes' not in parsed

    def test_headers_match_case_insensitively_in_any_order(self):
        text = 'email,LAST NAME,first name,Shoe Size,Next Contact Alert\npat@example.com,Owner,Pat,9,no\n'

        assert parse_contacts_csv(text) == [{
            'firstName': 'Pat', 'lastName': 'Owner', 'email': 'pat@example.com', 'nextContactAlert': False,
        }]

    def test_owner_fields_are_filled_in(self):
        text = 'First Name,Last Name,Email,Vice President\nPat,Owner,pat@example.com,Val\n'

        [parsed] = parse_contacts_csv(text)

        assert parsed['relationshipOwner'] == {'name': '', 'email': '', 'vicePresident': 'Val'}

    def test_blank_rows_are_skipped(self):
        text = 'First Name,Last Name,Email\n,,\nPat,Owner,pat@example.com\n'

        assert [c['email'] for c in parse_contacts_csv(text)] == ['pat@example.com']

    def test_missing_required_field_names_the_row(self):
        text = 'First Name,Last Name,Email\nPat,Owner,pat@example.com\nDrew,,drew@example.com\n'

        with pytest.raises(ValueError, match='Row 3: First Name, Last Name, and Email are required'):
            parse_contacts_csv(text)

    @pytest.mark.parametrize('text', ['', 'First Name,Last Name,Email\n'])
    def test_no_data_rows(self, text):
        with pytest.raises(ValueError, match='no data rows'):
            parse_contacts_csv(text)

    def test_non_object_owner_cell_is_ignored(self):
        text = 'First Name,Last Name,Email,Primary Relationship Owner\nPat,Owner,pat@example.com,"[1, 2]"\n'

        [parsed] = parse_contacts_csv(text)

        assert 'primaryDiageoRelationshipOwners' not in parsed

    @pytest.mark.parametrize('cell, expected', [
        ('TRUE', True), ('yes', True), ('1', True),
        ('False', False), ('no', False), ('0', False),
        ('', None), ('maybe', None), (None, None),
    ])
    def test_parse_bool_cell(self, cell, expected):
        assert parse_bool_cell(cell) is expected
