"""
Tests for the sent-alert ledger
"""

from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest

from repositories.sent_alert_repository import SENT_ALERTS_KEY, SentAlertRepository
from services.common.exceptions import LedgerUnavailableError
from services.notification_ledger_service import NotificationLedgerService, make_alert_id

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestMakeAlertId:

    def test_format(self):
        assert make_alert_id('birthday', 'C1', date(2024, 3, 15)) == 'birthday:C1:2024-03-15'

    def test_timestamp_due_dates_use_the_date(self):
        assert make_alert_id('task-due', 'T1', '2024-03-15T10:00:00Z') == 'task-due:T1:2024-03-15'

    def test_new_due_date_gives_new_id(self):
        assert make_alert_id('jbp', 'A1', '2024-03-15') != make_alert_id('jbp', 'A1', '2024-03-16')

    def test_invalid_due_date(self):
        with pytest.raises(ValueError):
            make_alert_id('jbp', 'A1', 'soon')


class TestShouldSendAndRecord:

    def test_unseen_alert_should_send(self, ledger):
        assert ledger.should_send('birthday:C1:2024-03-15') is True

    def test_record_persists_immediately_outside_batch(self, ledger, memory_store):
        assert ledger.record('birthday:C1:2024-03-15', 'birthday', 'C1', '2024-03-15', sent_at=NOW) is True

        stored = memory_store.load(SENT_ALERTS_KEY)
        assert stored == [{
            'alertId': 'birthday:C1:2024-03-15',
            'alertType': 'birthday',
            'contactId': 'C1',
            'sentAt': '2024-03-10T12:00:00+00:00',
            'dueDate': '2024-03-15',
        }]
        assert ledger.should_send('birthday:C1:2024-03-15') is False

    def test_record_is_idempotent(self, ledger, memory_store):
        ledger.record('birthday:C1:2024-03-15', 'birthday', 'C1', '2024-03-15')

        assert ledger.record('birthday:C1:2024-03-15', 'birthday', 'C1', '2024-03-15') is False
        assert len(memory_store.load(SENT_ALERTS_KEY)) == 1

    def test_records_from_another_ledger_instance_are_seen(self, ledger, sent_alert_repository):
        ledger.record('jbp:A1:2024-03-12', 'jbp', None, '2024-03-12')

        other = NotificationLedgerService(sent_alert_repository)
        assert other.should_send('jbp:A1:2024-03-12') is False


class TestBatch:

    def test_batch_commits_once(self, memory_store):
        repository = SentAlertRepository(memory_store)
        repository.replace_all = MagicMock(wraps=repository.replace_all)
        ledger = NotificationLedgerService(repository)

        with ledger.batch():
            ledger.record('a:1:2024-03-11', 'a', None, '2024-03-11')
            ledger.record('a:2:2024-03-11', 'a', None, '2024-03-11')
            assert ledger.pending_count == 2
            assert memory_store.load(SENT_ALERTS_KEY) is None

        repository.replace_all.assert_called_once()
        assert len(memory_store.load(SENT_ALERTS_KEY)) == 2

    def test_staged_records_dedup_within_batch(self, ledger):
        with ledger.batch():
            assert ledger.record('a:1:2024-03-11', 'a', None, '2024-03-11') is True
            assert ledger.should_send('a:1:2024-03-11') is False

    def test_aborted_batch_commits_nothing(self, ledger, memory_store):
        with pytest.raises(RuntimeError):
            with ledger.batch():
                ledger.record('a:1:2024-03-11', 'a', None, '2024-03-11')
                raise RuntimeError('delivery pipeline blew up')

        assert memory_store.load(SENT_ALERTS_KEY) is None
        assert ledger.should_send('a:1:2024-03-11') is True
        assert ledger.pending_count == 0


class TestStoreFailures:

    def test_load_failure_propagates(self):
        store = MagicMock()
        store.load.side_effect = LedgerUnavailableError(SENT_ALERTS_KEY)
        ledger = NotificationLedgerService(SentAlertRepository(store))

        with pytest.raises(LedgerUnavailableError):
            ledger.should_send('a:1:2024-03-11')

    def test_save_failure_propagates_and_discards_staged(self):
        store = MagicMock()
        store.load.return_value = []
        store.save.side_effect = LedgerUnavailableError(SENT_ALERTS_KEY)
        ledger = NotificationLedgerService(SentAlertRepository(store))

        with pytest.raises(LedgerUnavailableError):
            with ledger.batch():
                ledger.record('a:1:2024-03-11', 'a', None, '2024-03-11')

        assert ledger.pending_count == 0


class TestPrune:

    def _seed(self, memory_store, *sent_ats):
        memory_store.save(SENT_ALERTS_KEY, [
            {'alertId': f'a:{i}:2024-01-01', 'alertType': 'a', 'contactId': None,
             'sentAt': sent_at, 'dueDate': '2024-01-01'}
            for i, sent_at in enumerate(sent_ats)
        ])

    def test_removes_records_older_than_retention(self, ledger, memory_store):
        self._seed(memory_store,
                   '2024-01-01T00:00:00.000Z',   # old
                   '2024-03-01T00:00:00.000Z',   # recent
                   '2024-02-09T11:00:00+00:00')  # just past the 30-day cutoff

        removed = ledger.prune(now=NOW)

        assert removed == 2
        assert [r['alertId'] for r in memory_store.load(SENT_ALERTS_KEY)] == ['a:1:2024-01-01']

    def test_custom_retention(self, ledger, memory_store):
        self._seed(memory_store, '2024-03-01T00:00:00Z')

        assert ledger.prune(retention_days=5, now=NOW) == 1

    def test_unreadable_sent_at_is_removed(self, ledger, memory_store):
        self._seed(memory_store, 'yesterday', '2024-03-09T00:00:00Z')

        assert ledger.prune(now=NOW) == 1

    def test_nothing_to_prune_does_not_write(self, memory_store):
        self._seed(memory_store, '2024-03-09T00:00:00Z')
        repository = SentAlertRepository(memory_store)
        repository.replace_all = MagicMock()

        assert NotificationLedgerService(repository).prune(now=NOW) == 0
        repository.replace_all.assert_not_called()

    def test_record_for_alert_still_due_is_kept(self, ledger, memory_store):
        # Sent 30 days ahead of the birthday; the sweep runs on the birthday itself
        memory_store.save(SENT_ALERTS_KEY, [
            {'alertId': 'birthday:C1:2024-04-09', 'alertType': 'birthday', 'contactId': 'C1',
             'sentAt': '2024-03-10T01:00:00Z', 'dueDate': '2024-04-09'},
        ])

        removed = ledger.prune(now=datetime(2024, 4, 9, 3, 0, tzinfo=timezone.utc))

        assert removed == 0
        assert ledger.should_send('birthday:C1:2024-04-09') is False

    def test_record_is_pruned_once_due_date_has_passed(self, ledger, memory_store):
        memory_store.save(SENT_ALERTS_KEY, [
            {'alertId': 'birthday:C1:2024-04-09', 'alertType': 'birthday', 'contactId': 'C1',
             'sentAt': '2024-03-10T01:00:00Z', 'dueDate': '2024-04-09'},
        ])

        assert ledger.prune(now=datetime(2024, 4, 10, 3, 0, tzinfo=timezone.utc)) == 1

    def test_due_dates_compare_against_local_today(self, ledger, memory_store):
        memory_store.save(SENT_ALERTS_KEY, [
            {'alertId': 'task-due:T1:2024-04-09', 'alertType': 'task-due', 'contactId': None,
             'sentAt': '2024-01-01T00:00:00Z', 'dueDate': '2024-04-09'},
        ])

        # 01:00 UTC on the 10th is still the 9th in New York
        removed = ledger.prune(now=datetime(2024, 4, 10, 1, 0, tzinfo=timezone.utc),
                               today=date(2024, 4, 9))

        assert removed == 0

    def test_unreadable_sent_at_kept_while_due(self, ledger, memory_store):
        memory_store.save(SENT_ALERTS_KEY, [
            {'alertId': 'jbp:A1:2024-03-20', 'alertType': 'jbp', 'contactId': None,
             'sentAt': 'yesterday', 'dueDate': '2024-03-20'},
        ])

        assert ledger.prune(now=NOW) == 0

    def test_negative_retention_is_rejected(self, ledger, memory_store):
        self._seed(memory_store, '2024-03-09T00:00:00Z')

        with pytest.raises(ValueError):
            ledger.prune(retention_days=-1, now=NOW)
        assert len(memory_store.load(SENT_ALERTS_KEY)) == 1

    def test_pruned_alert_can_be_sent_again(self, ledger, memory_store):
        self._seed(memory_store, '2024-01-01T00:00:00Z')
        assert ledger.should_send('a:0:2024-01-01') is False

        ledger.prune(now=NOW)

        assert ledger.should_send('a:0:2024-01-01') is True
