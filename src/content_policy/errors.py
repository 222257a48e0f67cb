"""Exceptions."""


class PolicyConfigError(ValueError):
    """Raised when a rule-set configuration cannot be built."""
