"""Input data validation."""

from finpanel.validation.core import ValidationResult, ValidationRunner
from finpanel.validation.reporter import ConsoleReporter

__all__ = ["ConsoleReporter", "ValidationResult", "ValidationRunner"]
