class DeviceUnavailableError(RuntimeError):
    """The robot's onboard controller did not answer a request."""


class PolicySyncError(RuntimeError):
    """The policy round-trip failed (transport, status or response body)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class OperatorAuthError(RuntimeError):
    """An operator request carried a missing, expired or invalid token."""

    def __init__(self, message: str, close_code: int = 4003):
        super().__init__(message)
        self.close_code = close_code
