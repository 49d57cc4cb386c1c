"""Token symbol normalization shared by ledger, rate and API layers."""

from __future__ import annotations

from collections.abc import Iterable


def domain_normalize_token(token: str) -> str:
    """Return the canonical uppercase form of one token symbol.

    Args:
        token: Raw token symbol.

    Returns:
        str: Stripped uppercase symbol.

    Raises:
        ValueError: Raised when token is blank.
    """

    normalized_token = str(token).strip().upper()
    if not normalized_token:
        raise ValueError("token must not be blank")
    return normalized_token


def domain_normalize_token_set(tokens: Iterable[str]) -> tuple[str, ...]:
    """Return sorted, deduplicated uppercase symbols, dropping blank entries."""

    return tuple(sorted({str(token).strip().upper() for token in tokens if str(token).strip()}))


__all__ = ["domain_normalize_token", "domain_normalize_token_set"]
