"""
Email alerting for wrapped command results.

Builds the notification payload and delivers it through a transactional
mail HTTP API (SendGrid v3 mail/send shape) with bearer token auth.
"""

import json
import socket
import time
import logging
from typing import Optional

import requests

from cronmail import __version__
from cronmail.runner.result import Address, DeliveryOutcome, NotificationPayload


logger = logging.getLogger("cronmail.alerts")

DEFAULT_API_URL = "https://api.sendgrid.com/v3/mail/send"
USER_AGENT = f"cronmail/{__version__}"


def failure_subject(realm: str) -> str:
    return f"{realm} cron job failure".lower()


def success_subject(realm: str) -> str:
    return f"{realm} cron job success report".lower()


def decode_log(output: bytes) -> str:
    """
    Decode captured output for the email body.

    Bytes that are not valid UTF-8 are kept as surrogate escapes, which
    json.dumps writes as \\udcXX, so nothing is dropped or replaced.
    """
    return output.decode('utf-8', errors='surrogateescape')


def encode_log(text: str) -> bytes:
    """Inverse of decode_log."""
    return text.encode('utf-8', errors='surrogateescape')


def build_payload(
    command_text: str,
    exit_code: int,
    log_content: str,
    to_email: str,
    from_email: str,
    subject: str,
    realm: str = "local",
    log_path: str = None
) -> NotificationPayload:
    """
    Build the notification for one run.

    Args:
        command_text: The command line exactly as run
        exit_code: The command's exit code
        log_content: Full captured log, never truncated
        to_email: Recipient address
        from_email: Sender address
        subject: Subject line (see failure_subject / success_subject)
        realm: Deployment name shown in the recipient name and body
        log_path: Where the log file was kept, if known

    Returns:
        NotificationPayload ready for send_email_alert
    """
    lines = [
        f"Command: {command_text}",
        f"Exit code: {exit_code}",
        f"Realm: {realm}",
        f"Host: {socket.gethostname()}",
    ]
    if log_path:
        lines.append(f"Log file: {log_path}")
    lines.append("")
    lines.append("Log output:")
    body = "\n".join(lines) + "\n" + log_content

    return NotificationPayload(
        to=Address(email=to_email, name=f"cron ({realm})"),
        sender=Address(email=from_email, name="cronmail"),
        subject=subject,
        body=body
    )


def serialize_payload(payload: NotificationPayload) -> bytes:
    """JSON request body; ASCII-only so every log byte survives the trip."""
    return json.dumps(payload.to_dict()).encode('ascii')


def _record_error(outcome: DeliveryOutcome, error: Exception, debug: bool) -> None:
    outcome.status_code = 0
    outcome.raw_response = str(error).encode('utf-8')
    outcome.errors.append(str(error))
    if debug:
        logger.debug(f"Raw transport error: {error!r}")


def send_email_alert(
    payload: NotificationPayload,
    api_token: str,
    api_url: str = DEFAULT_API_URL,
    max_retries: int = 3,
    retry_delay: float = 5.0,
    timeout: float = 30.0,
    debug: bool = False,
    session: Optional[requests.Session] = None
) -> DeliveryOutcome:
    """
    POST a notification to the mail API.

    Connection errors and timeouts are retried up to max_retries times.
    A non-2xx response is returned as-is without retrying. This function
    does not raise for HTTP or transport problems; check outcome.ok.

    Args:
        payload: Notification to send
        api_token: Bearer token for the mail API
        api_url: Endpoint URL
        max_retries: Extra attempts after a transport failure
        retry_delay: Seconds to wait between attempts
        timeout: Per-request timeout in seconds
        debug: Log the raw response of every attempt
        session: Optional requests.Session (a new one is used otherwise)

    Returns:
        DeliveryOutcome of the last attempt
    """
    data = serialize_payload(payload)
    headers = {
        'Authorization': f'Bearer {api_token}',
        'Content-Type': 'application/json',
        'User-Agent': USER_AGENT,
    }
    http = session or requests.Session()
    outcome = DeliveryOutcome(status_code=0, attempts=0)

    try:
        for attempt in range(1, max_retries + 2):
            outcome.attempts = attempt
            try:
                response = http.post(api_url, data=data, headers=headers, timeout=timeout)
                raw_response = response.content or b""
            except (requests.ConnectionError, requests.Timeout) as e:
                _record_error(outcome, e, debug)
                logger.warning(f"Email delivery attempt {attempt} failed: {e}")
                if attempt <= max_retries:
                    logger.info(f"Retrying in {retry_delay} seconds...")
                    time.sleep(retry_delay)
                continue
            except requests.RequestException as e:
                # Bad URL, bad header value, redirect loop: retrying cannot help
                _record_error(outcome, e, debug)
                logger.error(f"Email delivery attempt {attempt} failed, not retrying: {e}")
                break

            outcome.status_code = response.status_code
            outcome.raw_response = raw_response
            if debug:
                logger.debug(
                    f"Mail API responded {response.status_code}: "
                    f"{outcome.raw_response.decode('utf-8', errors='replace')}"
                )
            break
    finally:
        if session is None:
            http.close()

    if outcome.ok:
        logger.info(f"Email alert '{payload.subject}' sent to {payload.to.email}")
    return outcome
