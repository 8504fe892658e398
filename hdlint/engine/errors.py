"""
Exception hierarchy for the hdlint engine.
"""


class HdlintError(Exception):
    """Base class for all engine errors."""


class RuleConfigurationError(HdlintError):
    """A rule could not be registered (duplicate id, malformed rule object)."""


class ConfigError(HdlintError):
    """A configuration value is invalid."""


class TreeLoadError(HdlintError):
    """A syntax tree could not be built or loaded for a compilation unit."""

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path
