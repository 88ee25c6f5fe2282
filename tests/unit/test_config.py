"""Unit Tests for wrapper configuration loading"""
from pathlib import Path

import pytest

from cronmail.config import WrapperConfig, env_flag, load_config
from cronmail.errors import ConfigurationError
from cronmail.runner.alerts import DEFAULT_API_URL


class TestLoadConfig:
    """Test building WrapperConfig from an environment mapping"""

    def test_defaults(self):
        config = load_config(environ={})
        assert config.from_email is None
        assert config.to_email is None
        assert config.realm == 'local'
        assert config.api_token == ''
        assert config.api_url == DEFAULT_API_URL
        assert config.always_notify is False
        assert config.debug is False
        assert config.max_retries == 3
        assert config.log_dir == Path('logs')

    def test_reads_environment(self):
        config = load_config(environ={
            'CRONMAIL_FROM_EMAIL': 'cron@example.com',
            'CRONMAIL_TO_EMAIL': 'ops@example.com',
            'CRONMAIL_REALM': 'prod-eu',
            'SENDGRID_API_KEY': 'SG.secret',
            'CRONMAIL_API_URL': 'https://mail.internal/send',
            'CRONMAIL_DEBUG': '1',
            'CRONMAIL_MAX_RETRIES': '5',
            'CRONMAIL_LOG_DIR': '/var/log/cron-jobs',
        })
        assert config.from_email == 'cron@example.com'
        assert config.to_email == 'ops@example.com'
        assert config.realm == 'prod-eu'
        assert config.api_token == 'SG.secret'
        assert config.api_url == 'https://mail.internal/send'
        assert config.debug is True
        assert config.max_retries == 5
        assert config.log_dir == Path('/var/log/cron-jobs')

    def test_overrides_win(self):
        config = load_config(
            environ={'CRONMAIL_FROM_EMAIL': 'env@example.com'},
            from_email='flag@example.com',
            always_notify=True
        )
        assert config.from_email == 'flag@example.com'
        assert config.always_notify is True

    def test_none_overrides_ignored(self):
        config = load_config(
            environ={'CRONMAIL_FROM_EMAIL': 'env@example.com'},
            from_email=None,
            to_email=None,
            always_notify=None
        )
        assert config.from_email == 'env@example.com'
        assert config.always_notify is False

    def test_bad_retry_count(self):
        with pytest.raises(ConfigurationError):
            load_config(environ={'CRONMAIL_MAX_RETRIES': 'lots'})

    def test_loads_dotenv_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / '.env'
        env_file.write_text("CRONMAIL_FROM_EMAIL=dotenv@example.com\nCRONMAIL_REALM=qa\n")
        monkeypatch.setenv('CRONMAIL_REALM', 'from-shell')
        config = load_config(env_file=env_file)
        assert config.from_email == 'dotenv@example.com'
        assert config.realm == 'from-shell'

    def test_missing_dotenv_file_is_fine(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv('CRONMAIL_FROM_EMAIL', 'shell@example.com')
        assert load_config().from_email == 'shell@example.com'


class TestWrapperConfig:
    """Test validation and derived values"""

    def test_validate_requires_sender(self):
        with pytest.raises(ConfigurationError) as exc_info:
            WrapperConfig().validate()
        assert exc_info.value.exit_code == 2

    def test_validate_ok(self):
        WrapperConfig(from_email='cron@example.com').validate()

    def test_recipient_falls_back_to_sender(self):
        assert WrapperConfig(from_email='cron@example.com').recipient == 'cron@example.com'

    def test_recipient(self):
        config = WrapperConfig(from_email='cron@example.com', to_email='ops@example.com')
        assert config.recipient == 'ops@example.com'


class TestEnvFlag:
    """Test truthy environment flag parsing"""

    @pytest.mark.parametrize("value", ['1', 'true', 'yes', 'on'])
    def test_truthy(self, value):
        assert env_flag(value) is True

    @pytest.mark.parametrize("value", [None, '', '0', 'false', 'False', 'no'])
    def test_falsy(self, value):
        assert env_flag(value) is False


class TestRetryCount:
    """Test CRONMAIL_MAX_RETRIES bounds"""

    def test_zero_allowed(self):
        assert load_config(environ={'CRONMAIL_MAX_RETRIES': '0'}).max_retries == 0

    def test_negative_rejected(self):
        """A negative count would mean no delivery attempt at all"""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(environ={'CRONMAIL_MAX_RETRIES': '-1'})
        assert 'must not be negative' in str(exc_info.value)
