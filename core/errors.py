class HubError(Exception):
    """Base class for hub engine failures."""


class ConfigurationError(HubError):
    """A party carries a timezone or window the engine cannot interpret.

    Raised internally and recovered by substituting a safe default; callers of
    the cycle and expiry functions never see it.
    """


class TransientStoreError(HubError):
    """A record store call failed or timed out after all retries."""

    def __init__(self, operation: str, cause: Exception = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}" if cause else f"{operation} failed")
