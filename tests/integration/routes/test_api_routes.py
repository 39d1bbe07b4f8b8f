"""
Integration tests for the JSON API against the SQLite-backed document store
"""

import pytest

from tests.fixtures.entity_fixtures import make_account, make_banner, make_contact, make_task


@pytest.fixture
def seeded(app, clean_documents):
    app.services.get('entity_repository').import_snapshot({
        'accounts': [
            make_account('A1'),
            make_account('A2', 'Beacon Liquors', channel='Grocery',
                         bannerBuyingOffices=[make_banner('B1', channel='Club')]),
        ],
        'contacts': [
            make_contact('C1', birthday='1990-03-15', birthdayAlert=True),
            make_contact('C2', account_id='A2', first_name='Drew', bannerBuyingOfficeId='B1',
                         managerId='C404'),
        ],
        'tasks': [make_task('T1', due_date='2024-03-20', relatedId='A1', relatedType='account')],
    })
    return app


def test_health(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.get_json()['database'] == 'connected'
    assert 'alert_evaluation' in response.get_json()['services']


class TestReportRoutes:

    def test_rows(self, client, seeded):
        response = client.get('/api/report/rows')

        assert response.status_code == 200
        data = response.get_json()
        assert data['count'] == 2
        assert [row['id'] for row in data['rows']] == ['A1-C1', 'A2-C2']
        assert data['rows'][1]['channel'] == 'Club'

    def test_rows_for_account(self, client, seeded):
        response = client.get('/api/report/rows?account_id=A2')

        assert [row['id'] for row in response.get_json()['rows']] == ['A2-C2']

    def test_csv(self, client, seeded):
        response = client.get('/api/report/rows.csv?columns=accountName,contactName')

        assert response.status_code == 200
        assert response.mimetype == 'text/csv'
        assert response.get_data(as_text=True).splitlines() == [
            'Account Name,Contact Name',
            'Acme Spirits,Casey Contact',
            'Beacon Liquors,Drew Contact',
        ]

    def test_csv_unknown_column(self, client, seeded):
        response = client.get('/api/report/rows.csv?columns=accountName,shoeSize')

        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_COLUMNS'

    def test_hierarchy(self, client, seeded):
        response = client.get('/api/accounts/A1/hierarchy')

        assert response.status_code == 200
        assert response.get_json()['hierarchy'][0]['id'] == 'C1'

    def test_hierarchy_unknown_account(self, client, seeded):
        response = client.get('/api/accounts/A404/hierarchy')

        assert response.status_code == 404
        assert response.get_json()['code'] == 'NOT_FOUND'

    def test_data_quality(self, client, seeded):
        data = client.get('/api/data-quality').get_json()

        assert data['count'] == 1
        assert data['issues'][0]['kind'] == 'contact_missing_manager'


class TestAlertRoutes:

    def test_feed(self, client, seeded):
        response = client.get('/api/alerts?today=2024-03-10')

        assert response.status_code == 200
        data = response.get_json()
        assert data['today'] == '2024-03-10'
        assert [a['alert_id'] for a in data['alerts']] == ['birthday:C1:2024-03-15']
        assert data['alerts'][0]['already_sent'] is False

    def test_feed_rejects_bad_date(self, client, seeded):
        response = client.get('/api/alerts?today=next-week')

        assert response.status_code == 400

    def test_evaluate_twice_delivers_once(self, client, seeded):
        first = client.post('/api/alerts/evaluate?today=2024-03-10').get_json()
        second = client.post('/api/alerts/evaluate?today=2024-03-10').get_json()

        assert first['summary']['delivered_ids'] == ['birthday:C1:2024-03-15']
        assert second['summary']['delivered'] == 0
        assert second['summary']['already_sent'] == 1

        feed = client.get('/api/alerts?today=2024-03-10').get_json()
        assert feed['alerts'][0]['already_sent'] is True

    def test_snooze(self, client, seeded):
        response = client.post('/api/alerts/birthday:C1:2024-03-15/snooze?today=2024-03-10',
                               json={'days': 2})

        assert response.status_code == 200
        assert response.get_json()['snooze_until'] == '2024-03-12'

        summary = client.post('/api/alerts/evaluate?today=2024-03-11').get_json()['summary']
        assert summary['snoozed'] == 1
        assert summary['delivered'] == 0

    def test_snooze_rejects_bad_days(self, client, seeded):
        response = client.post('/api/alerts/birthday:C1:2024-03-15/snooze', json={'days': 0})

        assert response.status_code == 400

    def test_prune(self, client, seeded):
        client.post('/api/alerts/evaluate?today=2024-03-10')

        response = client.post('/api/alerts/prune?today=2024-03-16', json={'retention_days': 0})

        assert response.status_code == 200
        assert response.get_json()['removed'] == 1

    def test_prune_keeps_alerts_not_yet_due(self, client, seeded):
        client.post('/api/alerts/evaluate?today=2024-03-10')

        response = client.post('/api/alerts/prune?today=2024-03-15', json={'retention_days': 0})
        summary = client.post('/api/alerts/evaluate?today=2024-03-15').get_json()['summary']

        assert response.get_json()['removed'] == 0
        assert 'birthday:C1:2024-03-15' not in summary['delivered_ids']
        assert summary['already_sent'] == 1

    def test_prune_rejects_negative_retention(self, client, seeded):
        response = client.post('/api/alerts/prune', json={'retention_days': -1})

        assert response.status_code == 400

    def test_unsnooze(self, client, seeded):
        client.post('/api/alerts/birthday:C1:2024-03-15/snooze?today=2024-03-10', json={'days': 3})

        response = client.delete('/api/alerts/birthday:C1:2024-03-15/snooze?today=2024-03-11')
        summary = client.post('/api/alerts/evaluate?today=2024-03-11').get_json()['summary']

        assert response.status_code == 200
        assert summary['snoozed'] == 0
        assert summary['delivered_ids'] == ['birthday:C1:2024-03-15']

    def test_unsnooze_when_not_snoozed(self, client, seeded):
        response = client.delete('/api/alerts/birthday:C1:2024-03-15/snooze?today=2024-03-10')

        assert response.status_code == 404
        assert response.get_json()['code'] == 'NOT_FOUND'


class TestAlertSettingsRoutes:

    def test_defaults(self, client, seeded):
        settings = client.get('/api/alerts/settings').get_json()['settings']

        assert settings['reminderFrequency'] == 'once'
        assert settings['birthdayLeadDays'] == 7

    def test_update_changes_evaluation_window(self, client, seeded):
        response = client.put('/api/alerts/settings', json={'birthdayLeadDays': 3})
        feed = client.get('/api/alerts?today=2024-03-10').get_json()

        assert response.status_code == 200
        assert response.get_json()['settings']['birthdayLeadDays'] == 3
        assert feed['alerts'] == []

    def test_update_frequency(self, client, seeded):
        client.put('/api/alerts/settings', json={'reminderFrequency': 'daily'})

        assert client.get('/api/alerts/settings').get_json()['settings']['reminderFrequency'] == 'daily'

    @pytest.mark.parametrize('body', [
        {'birthdayLeadDays': -1},
        {'taskLeadDays': 'soon'},
        {'reminderFrequency': 'hourly'},
        {'shoeSize': 9},
        ['birthdayLeadDays'],
    ])
    def test_update_rejects_invalid_settings(self, client, seeded, body):
        response = client.put('/api/alerts/settings', json=body)

        assert response.status_code == 400
        assert client.get('/api/alerts/settings').get_json()['settings']['birthdayLeadDays'] == 7
