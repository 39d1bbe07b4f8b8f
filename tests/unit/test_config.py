"""
Tests for configuration loading and validation
"""

import pytest
from unittest.mock import patch

from config import (
    Config,
    ConfigurationError,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    _int_env,
    get_config,
)


class TestGetConfig:

    def test_named_configs(self):
        assert get_config('testing') is TestingConfig
        assert get_config('production') is ProductionConfig

    def test_unknown_name_falls_back_to_development(self):
        assert get_config('staging') is DevelopmentConfig

    def test_testing_defaults(self):
        assert TestingConfig.SQLALCHEMY_DATABASE_URI == 'sqlite:///:memory:'
        assert TestingConfig.ALERT_DELIVERY == 'log'
        assert TestingConfig.ALERT_TIMEZONE == 'UTC'


class TestIntEnv:

    def test_unset_and_blank_use_default(self):
        with patch.dict('os.environ', {'TASK_LEAD_DAYS': ''}):
            assert _int_env('TASK_LEAD_DAYS', 7) == 7
        assert _int_env('SOME_UNSET_SETTING', 30) == 30

    def test_integer_value(self):
        with patch.dict('os.environ', {'TASK_LEAD_DAYS': '14'}):
            assert _int_env('TASK_LEAD_DAYS', 7) == 14

    def test_non_integer_raises(self):
        with patch.dict('os.environ', {'TASK_LEAD_DAYS': 'a week'}):
            with pytest.raises(ConfigurationError):
                _int_env('TASK_LEAD_DAYS', 7)


class TestValidateRequiredConfig:

    def _validate(self, **settings):
        with patch.dict('os.environ', {'FLASK_ENV': 'production'}), \
                patch.multiple(Config, **settings):
            Config.validate_required_config()

    def test_webhook_delivery_requires_url(self):
        with pytest.raises(ConfigurationError, match='ALERT_WEBHOOK_URL'):
            self._validate(ALERT_DELIVERY='webhook', ALERT_WEBHOOK_URL=None)

    def test_unknown_delivery_mode(self):
        with pytest.raises(ConfigurationError, match="'email'"):
            self._validate(ALERT_DELIVERY='email', ALERT_WEBHOOK_URL=None)

    def test_valid_webhook_config(self):
        self._validate(ALERT_DELIVERY='webhook', ALERT_WEBHOOK_URL='https://flows.example.com/alerts')

    def test_skipped_when_testing(self):
        with patch.dict('os.environ', {'FLASK_ENV': 'testing'}), \
                patch.multiple(Config, ALERT_DELIVERY='webhook', ALERT_WEBHOOK_URL=None):
            Config.validate_required_config()
