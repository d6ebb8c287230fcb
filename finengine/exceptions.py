"""Exceptions raised by the configuration and service layers.

Calculators never raise on numeric input; these cover misconfiguration and
misuse of the service facade only.
"""


class EngineError(Exception):
    """Base exception for all engine errors."""


class ConfigurationError(EngineError):
    """Invalid engine configuration or a missing collaborator."""
