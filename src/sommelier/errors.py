class SommelierError(Exception):
    """Base exception for journal errors."""
    pass


class CredentialMissing(SommelierError):
    """Raised when no API key is configured for the AI service.

    Attributes:
        variable: Name of the environment variable that should hold the key.
    """

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"No API key configured. Set the {variable} environment variable.")


class ServiceError(SommelierError):
    """The AI service could not be reached or returned an error."""
    pass


class ParseError(SommelierError):
    """The AI service answered, but not with a usable wine record."""

    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text
        super().__init__(message)


class StoreCorrupted(SommelierError):
    """The persisted journal could not be read back."""
    pass


class ConfigurationError(SommelierError):
    """An environment setting holds a value that cannot be used."""
    pass
