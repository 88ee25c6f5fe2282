"""
cronmail - run a scheduled command and email its output when it fails.

- runner/capture.py: Command execution with live output capture
- runner/alerts.py: Notification payload building and delivery
- runner/executor.py: Ties execution and alerting together
- config.py: Wrapper configuration from environment and CLI flags
- cli.py: Command line entry point
"""

__version__ = "0.3.0"
