"""
Command executor: run the wrapped command, then alert on the result.
"""

import shlex
import logging
from typing import Callable, List, Optional

import requests

from cronmail.config import WrapperConfig
from cronmail.runner import alerts
from cronmail.runner.capture import create_log_file, run_command
from cronmail.runner.result import DeliveryOutcome, ExecutionResult, NotificationPayload


logger = logging.getLogger("cronmail.executor")


class CommandExecutor:
    """
    Runs one command and emails its output when it fails.

    The return value of run() is always the wrapped command's exit code,
    whatever happens to the notification.

    Usage:
        executor = CommandExecutor(load_config(from_email='ops@example.com'))
        exit_code = executor.run(['backup.sh', '--full'])
    """

    def __init__(
        self,
        config: WrapperConfig,
        session: requests.Session = None,
        runner: Callable[..., ExecutionResult] = run_command
    ):
        """
        Initialize the executor.

        Args:
            config: Wrapper configuration, validated here
            session: Optional requests.Session for the mail API
            runner: Command runner (run_command unless testing)
        """
        config.validate()
        self.config = config
        self.session = session
        self.runner = runner
        self.last_result: Optional[ExecutionResult] = None
        self.last_payload: Optional[NotificationPayload] = None
        self.last_outcome: Optional[DeliveryOutcome] = None

    def run(self, argv: List[str]) -> int:
        """
        Execute argv, notify if needed, and return its exit code.

        Args:
            argv: Command and arguments to run

        Returns:
            The wrapped command's exit code
        """
        command_text = shlex.join(argv)
        log_path = create_log_file(self.config.log_dir)

        logger.debug(f"Running '{command_text}', logging to {log_path}")
        result = self.runner(argv, log_path)
        self.last_result = result

        if result.status.failed:
            logger.warning(
                f"Command '{command_text}' failed with exit code {result.exit_code} "
                f"after {result.duration_seconds:.2f}s"
            )
            self._notify(command_text, result, alerts.failure_subject(self.config.realm))
        elif self.config.always_notify:
            logger.info(f"Command '{command_text}' succeeded, sending success report")
            self._notify(command_text, result, alerts.success_subject(self.config.realm))
        else:
            logger.debug(f"Command '{command_text}' succeeded, no notification needed")

        return result.exit_code

    def _notify(self, command_text: str, result: ExecutionResult, subject: str) -> None:
        """
        Build and send the notification for a finished run.

        Delivery failure is logged loudly but never raised.
        """
        payload = alerts.build_payload(
            command_text=command_text,
            exit_code=result.exit_code,
            log_content=alerts.decode_log(result.output),
            to_email=self.config.recipient,
            from_email=self.config.from_email,
            subject=subject,
            realm=self.config.realm,
            log_path=str(result.log_path)
        )
        self.last_payload = payload

        logger.info(f"Sending '{subject}' alert to {payload.to.email}")
        outcome = alerts.send_email_alert(
            payload,
            api_token=self.config.api_token,
            api_url=self.config.api_url,
            max_retries=self.config.max_retries,
            retry_delay=self.config.retry_delay,
            timeout=self.config.timeout,
            debug=self.config.debug,
            session=self.session
        )
        self.last_outcome = outcome

        if not outcome.ok:
            status = outcome.status_code or "no response"
            logger.critical(
                f"FAILED TO SEND ALERT EMAIL '{subject}' to {payload.to.email} "
                f"(status {status}, {outcome.attempts} attempt(s)). "
                f"Command log kept at {result.log_path}"
            )
            for attempt, error in enumerate(outcome.errors, start=1):
                logger.error(f"Delivery error {attempt}/{len(outcome.errors)}: {error}")
            logger.error(
                f"Mail API response: {outcome.raw_response.decode('utf-8', errors='replace')}"
            )
