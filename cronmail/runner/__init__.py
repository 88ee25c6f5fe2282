"""
Runner components for cronmail.

- capture.py: Command execution with output captured to a log file
- alerts.py: Email payload building and delivery with retry
- executor.py: Runs the command and sends alerts on its result
- result.py: Exit status, execution and delivery result types
"""
