"""
Exception types shared across dbeval.
"""


class DbEvalError(Exception):
    """Base class for dbeval errors."""


class ConfigurationError(DbEvalError):
    """A required setting is missing."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            "Missing required configuration: " + ", ".join(self.missing)
        )


class CompletionError(DbEvalError):
    """The completion API returned no usable text."""
