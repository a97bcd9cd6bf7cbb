"""Error taxonomy shared by the gateway, the auth gate and the pipelines.

Only authentication failures cross the hydration pipeline boundary.
Everything else is degraded per item by the caller.
"""


class TelecleanerError(Exception):
    """Base class for all application errors."""


class AuthRequiredError(TelecleanerError):
    """The user must (re-)authenticate before the operation can run."""

    def __init__(self, reason: str = "Not authenticated") -> None:
        super().__init__(reason)
        self.reason = reason


class SessionExpiredError(AuthRequiredError):
    """The remote platform rejected the stored session."""

    def __init__(self, reason: str = "SESSION_EXPIRED") -> None:
        super().__init__(reason)


class GatewayError(TelecleanerError):
    """A remote gateway call failed (transport, status code or payload)."""

    def __init__(self, operation: str, detail: str, status_code: int | None = None) -> None:
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation
        self.detail = detail
        self.status_code = status_code
