"""
Tests for EntityRepository and the alert-state repositories
"""

import pytest

from repositories.alert_settings_repository import (
    ALERT_SETTINGS_KEY,
    AlertSettingsRepository,
    SnoozedAlertRepository,
)
from repositories.entity_repository import ACCOUNTS_KEY, CONTACTS_KEY, TASKS_KEY
from repositories.relationship_owner_repository import RelationshipOwnerRepository
from repositories.sent_alert_repository import SENT_ALERTS_KEY
from tests.fixtures.entity_fixtures import make_account, make_banner, make_contact, make_event, make_task


class TestEntityRepository:

    def test_empty_store(self, entity_repository):
        assert entity_repository.get_accounts() == []
        assert entity_repository.get_contacts() == []
        assert entity_repository.get_tasks() == []

    def test_import_snapshot(self, entity_repository, memory_store):
        counts = entity_repository.import_snapshot({
            'accounts': [make_account('A1'), make_account('A2')],
            'contacts': [make_contact('C1')],
        })

        assert counts == {'accounts': 2, 'contacts': 1}
        assert [a.id for a in entity_repository.get_accounts()] == ['A1', 'A2']
        assert memory_store.load(TASKS_KEY) is None

    def test_import_snapshot_loads_owner_directory(self, entity_repository, memory_store):
        counts = entity_repository.import_snapshot({
            'relationshipOwners': [{'name': 'Jordan Lee', 'email': 'jordan.lee@example.com'}, {'email': 'x@y.z'}],
        })

        owners = RelationshipOwnerRepository(memory_store).get_all()

        assert counts == {'relationshipOwners': 2}
        assert [(o.name, o.email) for o in owners] == [('Jordan Lee', 'jordan.lee@example.com')]

    def test_import_rejects_non_list(self, entity_repository):
        with pytest.raises(ValueError):
            entity_repository.import_snapshot({'accounts': {'A1': {}}})

    def test_lookup_helpers(self, entity_repository):
        entity_repository.import_snapshot({
            'accounts': [make_account('A1', 'Acme Spirits')],
            'contacts': [make_contact('C1'), make_contact('C2', account_id='A2')],
            'tasks': [make_task('T1')],
        })

        assert entity_repository.get_account('A1').account_name == 'Acme Spirits'
        assert entity_repository.get_account('A9') is None
        assert [c.id for c in entity_repository.get_contacts_for_account('A1')] == ['C1']
        assert entity_repository.get_tasks()[0].due_date == '2024-03-12'

    def test_malformed_documents_are_skipped(self, entity_repository, memory_store):
        memory_store.save(ACCOUNTS_KEY, {'not': 'a list'})
        memory_store.save(CONTACTS_KEY, [make_contact('C1'), 'junk', None])

        assert entity_repository.get_accounts() == []
        assert [c.id for c in entity_repository.get_contacts()] == ['C1']

    def test_null_nested_entries_are_skipped(self, entity_repository):
        entity_repository.import_snapshot({
            'accounts': [make_account('A1', bannerBuyingOffices=[None, make_banner('B1', customerEvents=[None])],
                                      customerEvents=[None, 'junk', make_event('E1')])],
            'contacts': [make_contact('C1', contactEvents=[None, make_event('E2')])],
        })

        account = entity_repository.get_accounts()[0]
        contact = entity_repository.get_contacts()[0]

        assert [b.id for b in account.banner_buying_offices] == ['B1']
        assert account.banner_buying_offices[0].customer_events == []
        assert [e.id for e in account.customer_events] == ['E1']
        assert [e.id for e in contact.contact_events] == ['E2']

    def test_non_list_nested_collections_are_empty(self, entity_repository):
        entity_repository.import_snapshot({
            'accounts': [make_account('A1', bannerBuyingOffices={'B1': {}}, customerEvents='none')],
        })

        account = entity_repository.get_accounts()[0]

        assert account.banner_buying_offices == []
        assert account.customer_events == []

    def test_upsert_contacts_updates_by_email(self, entity_repository, memory_store):
        entity_repository.import_snapshot({'contacts': [
            make_contact('C1', title='Buyer', managerId='C9', createdAt='2024-01-01T00:00:00Z'),
        ]})

        counts = entity_repository.upsert_contacts([
            {'firstName': 'Casey', 'lastName': 'Contact', 'email': ' CASEY@example.com', 'title': 'Director'},
        ])

        [stored] = memory_store.load(CONTACTS_KEY)
        assert counts == {'added': 0, 'updated': 1}
        assert stored['id'] == 'C1'
        assert stored['title'] == 'Director'
        assert stored['managerId'] == 'C9'
        assert stored['createdAt'] == '2024-01-01T00:00:00Z'
        assert stored['lastModified'] != '2024-01-01T00:00:00Z'

    def test_upsert_contacts_appends_new(self, entity_repository, memory_store):
        entity_repository.import_snapshot({'contacts': [make_contact('C1')]})

        counts = entity_repository.upsert_contacts([
            {'firstName': 'Drew', 'lastName': 'Buyer', 'email': 'drew@example.com'},
            {'firstName': 'Drew', 'lastName': 'Buyer', 'email': 'Drew@Example.com', 'title': 'VP'},
        ])

        stored = memory_store.load(CONTACTS_KEY)
        assert counts == {'added': 1, 'updated': 1}
        assert len(stored) == 2
        assert stored[1]['id'].startswith('imported-')
        assert stored[1]['title'] == 'VP'
        assert stored[1]['createdAt']

    def test_upsert_contacts_requires_email(self, entity_repository, memory_store):
        with pytest.raises(ValueError):
            entity_repository.upsert_contacts([{'firstName': 'Drew', 'email': '  '}])

        assert memory_store.load(CONTACTS_KEY) is None


class TestSentAlertRepository:

    def test_entries_without_alert_id_are_skipped(self, sent_alert_repository, memory_store):
        memory_store.save(SENT_ALERTS_KEY, [
            {'alertId': 'jbp:A1:2024-03-20', 'alertType': 'jbp', 'sentAt': '2024-03-10T00:00:00Z',
             'dueDate': '2024-03-20'},
            {'alertType': 'jbp'},
        ])

        records = sent_alert_repository.get_all()

        assert [r.alert_id for r in records] == ['jbp:A1:2024-03-20']
        assert records[0].contact_id is None

    def test_non_list_is_empty(self, sent_alert_repository, memory_store):
        memory_store.save(SENT_ALERTS_KEY, 'corrupt')

        assert sent_alert_repository.get_all() == []


class TestAlertSettingsRepository:

    def test_update_merges(self, memory_store):
        repository = AlertSettingsRepository(memory_store)

        repository.update({'birthdayLeadDays': 3})
        repository.update({'reminderFrequency': 'weekly'})

        assert memory_store.load(ALERT_SETTINGS_KEY) == {'birthdayLeadDays': 3, 'reminderFrequency': 'weekly'}

    def test_non_object_settings_are_ignored(self, memory_store):
        memory_store.save(ALERT_SETTINGS_KEY, ['oops'])

        assert AlertSettingsRepository(memory_store).get() == {}


def test_snoozed_alert_repository_filters_entries(memory_store):
    repository = SnoozedAlertRepository(memory_store)
    repository.replace_all([{'alertId': 'a', 'snoozeUntil': '2024-03-12'}, {'snoozeUntil': '2024-03-12'}])

    assert repository.get_all() == [{'alertId': 'a', 'snoozeUntil': '2024-03-12'}]
