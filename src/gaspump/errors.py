"""Exception types shared by the sweep and provisioning services."""

from typing import Optional


class GasPumpError(Exception):
    """Base class for all gaspump errors."""


class ConfigurationError(GasPumpError):
    """Raised when a required identity or credential is missing.

    Always raised before any network call is made.
    """


class UnknownChain(GasPumpError):
    """Raised when a chain code cannot be resolved to a configured network."""

    def __init__(self, chain: str, reason: str = "no network configured"):
        self.chain = chain
        super().__init__(f"Unknown chain '{chain}': {reason}")


class RemoteServiceError(GasPumpError):
    """Non-success response from the custodial service or a chain RPC node."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        detail = message
        if status_code is not None:
            detail = f"{detail}: {status_code}"
        if body:
            detail = f"{detail} - {body}"
        super().__init__(detail)


class PerWalletSweepError(GasPumpError):
    """Failure while sweeping a single wallet; the run continues."""

    def __init__(self, address: str, index: int, cause: BaseException):
        self.address = address
        self.index = index
        self.cause = cause
        super().__init__(f"Sweep failed for wallet #{index} ({address}): {cause}")
