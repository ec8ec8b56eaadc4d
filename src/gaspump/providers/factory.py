"""Provider factory for the custodial wallet service."""

from typing import Optional

from gaspump.config import Settings, get_settings
from gaspump.providers.base import CustodialProvider
from gaspump.providers.tatum import TatumProvider

# Singleton instance
_provider_instance: CustodialProvider | None = None


def get_provider(settings: Optional[Settings] = None) -> CustodialProvider:
    """Get the configured custodial provider.

    Returns:
        TatumProvider built from settings
    """
    global _provider_instance

    if _provider_instance is not None:
        return _provider_instance

    settings = settings or get_settings()
    _provider_instance = TatumProvider(
        api_key=settings.tatum_api_key,
        base_url=settings.tatum_base_url,
        timeout=settings.http_timeout,
    )
    return _provider_instance


def reset_provider() -> None:
    """Reset provider instance (useful for testing)."""
    global _provider_instance
    _provider_instance = None
