"""
Tests for the ServiceRegistry and the services wired into the app
"""

import pytest
from unittest.mock import Mock

from services.registry import ServiceRegistry


class TestServiceRegistry:

    def test_register_instance(self):
        registry = ServiceRegistry()
        service = Mock()

        registry.register('report', service)

        assert registry.get('report') is service
        assert registry.list_services() == ['report']

    def test_factory_runs_once(self):
        registry = ServiceRegistry()
        factory = Mock(side_effect=lambda: object())

        registry.register_factory('report', factory)

        assert registry.get('report') is registry.get('report')
        factory.assert_called_once()

    def test_reset_service_rebuilds_from_factory(self):
        registry = ServiceRegistry()
        registry.register_factory('notification_ledger', lambda: object())
        first = registry.get('notification_ledger')

        registry.reset_service('notification_ledger')

        assert registry.get('notification_ledger') is not first

    def test_unknown_service(self):
        with pytest.raises(ValueError, match="'missing'"):
            ServiceRegistry().get('missing')

    def test_list_services(self):
        registry = ServiceRegistry()
        registry.register('b', Mock())
        registry.register_factory('a', Mock)

        assert registry.list_services() == ['a', 'b']


class TestAppServices:

    def test_engine_services_are_registered(self, app):
        for name in ('document_store', 'entity_repository', 'relationship_owner_repository',
                     'notification_ledger', 'alert_delivery',
                     'alert_snooze', 'alert_evaluation', 'report', 'today_provider'):
            assert name in app.services.list_services(), name

    def test_evaluation_service_shares_the_ledger(self, app):
        evaluation = app.services.get('alert_evaluation')

        assert evaluation.ledger is app.services.get('notification_ledger')

    def test_testing_config_uses_logging_delivery(self, app):
        from services.alert_delivery_service import LoggingAlertDelivery

        assert isinstance(app.services.get('alert_delivery'), LoggingAlertDelivery)
