"""
Custom exceptions for addon-manifest.

This module defines domain-specific exceptions that separate fatal run errors
(configuration, credentials, primary manifest write) from errors scoped to a
single repository or addon.
"""


class AddonManifestError(Exception):
    """
    Base exception for all addon-manifest errors.

    All custom exceptions should inherit from this class to allow for easy
    catching of all application-specific errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors (fatal)
# =============================================================================


class ConfigurationError(AddonManifestError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - Missing configuration file
    - Configuration file parsing errors
    - Missing required environment input
    """

    pass


class ConfigMissingError(ConfigurationError):
    """Exception raised when the configuration file does not exist."""

    def __init__(self, path: str, details: str | None = None) -> None:
        super().__init__(f"Configuration file not found: {path}", details)
        self.path = path


class ConfigParseError(ConfigurationError):
    """Exception raised when a configuration document is not valid structured data."""

    def __init__(self, path: str, details: str | None = None) -> None:
        super().__init__(f"Could not parse configuration file: {path}", details)
        self.path = path


class MissingEnvironmentError(ConfigurationError):
    """
    Exception raised when a required environment input is absent.

    Attributes:
        variable: Name of the missing environment variable.
    """

    def __init__(self, variable: str, details: str | None = None) -> None:
        super().__init__(f"Missing required environment variable: {variable}", details)
        self.variable = variable


# =============================================================================
# Fetch Errors (repository-scoped)
# =============================================================================


class FetchError(AddonManifestError):
    """
    Exception raised when the release list of a repository cannot be fetched.

    The run continues with the next repository.

    Attributes:
        repo: The ``owner/name`` repository identifier.
        url: The URL that was being requested.
        status_code: HTTP status code, when the server answered.
    """

    def __init__(
        self,
        repo: str,
        message: str = "Failed to fetch releases",
        url: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(f"{message} for {repo}", details)
        self.repo = repo
        self.url = url
        self.status_code = status_code


# =============================================================================
# Output Errors
# =============================================================================


class ManifestWriteError(AddonManifestError):
    """
    Exception raised when the manifest cannot be written.

    Attributes:
        path: Destination path of the failed write.
    """

    def __init__(self, path: str, details: str | None = None) -> None:
        super().__init__(f"Could not write manifest to {path}", details)
        self.path = path
