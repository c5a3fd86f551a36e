"""Project-wide custom exception types."""


class RequestInFlightError(RuntimeError):
    """Raised when a conversation already has a question waiting on the model."""

    def __init__(self, message: str) -> None:  # noqa: D401 – simple constructor
        super().__init__(message)


class DatasetValidationError(ValueError):
    """Raised when a submitted survey dataset violates the schema.

    ``field`` names the offending series (and row, when known) so the Slack
    editor can point the user at the right input.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field
