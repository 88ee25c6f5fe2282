"""
Pytest configuration and shared fixtures for cronmail tests.
"""

import io
import logging
from functools import partial
from typing import Generator
from unittest import mock

import pytest
import requests

from cronmail.config import WrapperConfig
from cronmail.runner.capture import run_command


ENV_VARS = (
    'CRONMAIL_FROM_EMAIL',
    'CRONMAIL_TO_EMAIL',
    'CRONMAIL_REALM',
    'SENDGRID_API_KEY',
    'CRONMAIL_API_URL',
    'CRONMAIL_DEBUG',
    'CRONMAIL_MAX_RETRIES',
    'CRONMAIL_LOG_DIR',
    'CRONMAIL_WRAPPED',
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch) -> Generator[None, None, None]:
    """Keep the developer's own cronmail settings out of the tests"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    # The CLI attaches a stderr handler bound to the capture stream of the test
    logger = logging.getLogger("cronmail")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def make_response(status_code: int = 202, content: bytes = b"") -> mock.Mock:
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    response.content = content
    return response


@pytest.fixture
def mail_session() -> mock.MagicMock:
    """A requests.Session stand-in whose post() returns 202 Accepted"""
    session = mock.MagicMock(spec=requests.Session)
    session.post.return_value = make_response(202)
    return session


@pytest.fixture
def config(tmp_path) -> WrapperConfig:
    """Minimal valid configuration logging under tmp_path"""
    return WrapperConfig(
        from_email='cron@example.com',
        to_email='ops@example.com',
        realm='Staging',
        api_token='test-token',
        api_url='https://mail.example.test/v3/mail/send',
        retry_delay=0,
        log_dir=tmp_path / 'logs',
    )


@pytest.fixture
def quiet_runner():
    """run_command that mirrors to a buffer instead of the test's stderr"""
    return partial(run_command, mirror=io.BytesIO())


@pytest.fixture
def response_factory():
    """Build fake requests.Response objects"""
    return make_response
