"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class UnresolvedAccountError(ConfigurationError):
    """Raised when an import execution cannot determine its target account."""

    def __init__(self, analysis_id: str) -> None:
        self.analysis_id = analysis_id
        super().__init__(
            f"Invalid account id for analysis {analysis_id}: provide account_id in the "
            "request or execute while the analysis is still cached"
        )
