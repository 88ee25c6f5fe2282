"""
Wrapper configuration.

Values come from the environment (after loading a .env file, if any) and
are overridden by command line flags. The result is passed explicitly to
CommandExecutor; nothing below the CLI reads os.environ for settings.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from cronmail.errors import ConfigurationError
from cronmail.runner.alerts import DEFAULT_API_URL
from cronmail.runner.capture import DEFAULT_LOG_DIR


FROM_EMAIL_VAR = 'CRONMAIL_FROM_EMAIL'
TO_EMAIL_VAR = 'CRONMAIL_TO_EMAIL'
REALM_VAR = 'CRONMAIL_REALM'
API_TOKEN_VAR = 'SENDGRID_API_KEY'
API_URL_VAR = 'CRONMAIL_API_URL'
DEBUG_VAR = 'CRONMAIL_DEBUG'
MAX_RETRIES_VAR = 'CRONMAIL_MAX_RETRIES'
LOG_DIR_VAR = 'CRONMAIL_LOG_DIR'

DEFAULT_REALM = 'local'
DEFAULT_MAX_RETRIES = 3


@dataclass(frozen=True)
class WrapperConfig:
    """Everything CommandExecutor needs to run and report one command."""
    from_email: Optional[str] = None
    to_email: Optional[str] = None
    realm: str = DEFAULT_REALM
    api_token: str = ''
    api_url: str = DEFAULT_API_URL
    always_notify: bool = False
    debug: bool = False
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = 5.0
    timeout: float = 30.0
    log_dir: Path = DEFAULT_LOG_DIR

    @property
    def recipient(self) -> Optional[str]:
        """Recipient address, falling back to the sender."""
        return self.to_email or self.from_email

    def validate(self) -> None:
        """Raise ConfigurationError if no sender address is configured."""
        if not self.from_email:
            raise ConfigurationError(
                f"No sender address configured. Pass -f or set {FROM_EMAIL_VAR}."
            )

    def with_overrides(self, **changes) -> 'WrapperConfig':
        """Copy with the given fields replaced; None values are ignored."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def env_flag(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip() not in ('0', 'false', 'False', 'no', 'NO', '')


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if not value:
        return default
    try:
        number = int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if number < 0:
        raise ConfigurationError(f"{name} must not be negative, got {number}")
    return number


def load_config(
    environ: Mapping[str, str] = None,
    env_file: Path = None,
    **overrides
) -> WrapperConfig:
    """
    Build a WrapperConfig from the environment plus overrides.

    Args:
        environ: Mapping to read (default: os.environ after loading .env)
        env_file: .env file to load when environ is not given (default: ./.env)
        overrides: WrapperConfig fields to set, e.g. from CLI flags

    Returns:
        The populated WrapperConfig (not yet validated)
    """
    if environ is None:
        env_path = Path(env_file or '.env')
        if env_path.exists():
            # Variables already in the environment win over the file
            load_dotenv(env_path, override=False)
        environ = os.environ

    config = WrapperConfig(
        from_email=environ.get(FROM_EMAIL_VAR) or None,
        to_email=environ.get(TO_EMAIL_VAR) or None,
        realm=environ.get(REALM_VAR) or DEFAULT_REALM,
        api_token=environ.get(API_TOKEN_VAR, ''),
        api_url=environ.get(API_URL_VAR) or DEFAULT_API_URL,
        debug=env_flag(environ.get(DEBUG_VAR)),
        max_retries=_env_int(environ, MAX_RETRIES_VAR, DEFAULT_MAX_RETRIES),
        log_dir=Path(environ.get(LOG_DIR_VAR) or DEFAULT_LOG_DIR),
    )
    return config.with_overrides(**overrides)
