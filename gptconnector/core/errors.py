"""Project error hierarchy."""


class ConnectorError(Exception):
    """Base error."""


class ConfigurationError(ConnectorError):
    """Raised when a required capability is missing or holds an invalid value."""


class ConnectorNotBuiltError(ConnectorError):
    """Raised when a turn is processed without a provider client."""


class TransportError(ConnectorError):
    """Raised when a provider call (response, upload, deletion) fails."""


class UploadError(TransportError):
    """Raised when an attachment cannot be uploaded to the provider file store."""


class SpreadsheetGenerationError(ConnectorError):
    """Raised when tabular tool data cannot be serialized to a workbook."""
