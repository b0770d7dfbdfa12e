"""
Configuration errors raised while acquiring feature models.

Every error here is fatal for the configuration pass. Nothing is retried
and no fallback model is substituted; the entry point reports the message.
"""

from typing import Optional


class ConfigurationError(Exception):
    """Base class for all feature-model configuration failures."""

    def __init__(self, message: str, locator: Optional[str] = None):
        super().__init__(message)
        self.locator = locator


class MissingFileError(ConfigurationError):
    """Raised when a file-based source names a path that does not exist."""

    def __init__(self, path: str):
        super().__init__(f"file not found: {path}", locator=path)
        self.path = path


class DuplicateModelError(ConfigurationError):
    """Raised when a second whole-model source targets an occupied slot."""
    pass


class ModelParseError(ConfigurationError):
    """Raised when expression or DIMACS content is malformed."""
    pass


class FactoryResolutionError(ConfigurationError):
    """Raised when a factory class cannot be resolved, built or run."""

    def __init__(self, class_name: str, cause: str):
        super().__init__(f"cannot instantiate feature model {class_name}: {cause}", locator=class_name)
        self.class_name = class_name
