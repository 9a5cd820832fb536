class CapWatchError(Exception):
    """Base class for every error raised by the watch engine."""

class ValidationError(CapWatchError):
    """User input could not be turned into a watch field."""

class TokenNotFound(CapWatchError):
    """The token address could not be resolved to a symbol."""

class DataUnavailable(CapWatchError):
    """Price or supply could not be fetched this cycle."""

class FetchTimeout(DataUnavailable):
    pass

class IndexOutOfRange(CapWatchError):
    def __init__(self, index: int, size: int):
        super().__init__(f"index {index} not in [0, {size})")
        self.index = index
        self.size = size

class DeliveryFailed(CapWatchError):
    """A notification could not be delivered to its owner."""
