"""System reporting (logging) for Vigie components."""

from shared.reporter.system_reporter import SystemReporter, parse_log_level

__all__ = [
    "SystemReporter",
    "parse_log_level",
]
