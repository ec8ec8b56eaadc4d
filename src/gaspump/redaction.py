"""Secret redaction for anything that is logged or surfaced in errors.

Two layers:
- credentials are carried as pydantic SecretStr, which never renders its
  value in repr() or str() and is always replaced here regardless of key;
- plain payload dicts are scrubbed by key name at every nesting depth.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable

from pydantic import SecretStr

logger = logging.getLogger(__name__)

REDACTED = "REDACTED"

SENSITIVE_KEYS = frozenset(
    {
        "fromPrivateKey",
        "privateKey",
        "MASTER_PRIVATE_KEY",
        "signatureId",
        "x-api-key",
        "apiKey",
    }
)

# Fallback when a payload cannot be copied
PLACEHOLDER = {"redacted": True}

_SCALARS = (str, int, float, bool, Decimal, type(None))


def _walk(value: Any, keys: frozenset) -> Any:
    if isinstance(value, SecretStr):
        return REDACTED
    if isinstance(value, dict):
        copy = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"non-string key {type(key).__name__}")
            copy[key] = REDACTED if key in keys else _walk(item, keys)
        return copy
    if isinstance(value, list):
        return [_walk(item, keys) for item in value]
    if isinstance(value, tuple):
        return tuple(_walk(item, keys) for item in value)
    if isinstance(value, _SCALARS):
        return value
    raise TypeError(f"cannot copy {type(value).__name__}")


def redact(payload: Any, keys: Iterable[str] = SENSITIVE_KEYS) -> Any:
    """Return a secret-free deep copy of a payload.

    Sensitive keys are replaced with "REDACTED" at any depth and the input
    is never mutated. Structures that cannot be copied yield a placeholder
    instead of an exception.
    """
    try:
        return _walk(payload, frozenset(keys))
    except (TypeError, ValueError, RecursionError) as e:
        logger.debug(f"Payload could not be redacted, using placeholder: {e}")
        return dict(PLACEHOLDER)
