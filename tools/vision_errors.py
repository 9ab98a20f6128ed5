"""
Token vision error types.

None of these cross TokenVisionService.apply(): the service reports them
through the notifier and carries on with the tokens it can still process.
"""


class TokenVisionError(Exception):
    """Base class for token vision errors."""
    pass


class NoSubjectSelected(TokenVisionError):
    """The caller asked for a change with no tokens selected."""

    def __init__(self, message: str = "Please select a token"):
        super().__init__(message)


class SchedulingUnavailable(TokenVisionError):
    """A duration was requested but the game clock is missing or inactive."""
    pass


class InvalidPresetIndex(TokenVisionError):
    """Preset index outside the catalog. Only raised by strict lookups."""

    def __init__(self, catalog: str, index: int, size: int):
        self.catalog = catalog
        self.index = index
        self.size = size
        super().__init__(f"{catalog} preset index {index} out of range (0-{size - 1})")
