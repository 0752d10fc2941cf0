"""Whitelist matching and event-name normalization."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

WhitelistSpec = str | Sequence[str] | None


def parse_whitelist(spec: WhitelistSpec) -> list[str]:
    """Return the whitelist fragments; a string is split on commas and trimmed."""
    if spec is None:
        return []
    if isinstance(spec, str):
        if spec == "":
            return []
        return [entry.strip() for entry in spec.split(",")]
    return list(spec)


def whitelist_allows(
    spec: WhitelistSpec,
    candidates: Iterable[str],
    primary: str | None = None,
) -> bool:
    """Check an address against a whitelist.

    An empty or absent whitelist admits everything. Otherwise the address is
    allowed when ``primary`` or any of ``candidates`` contains one of the
    fragments as a substring, so ``example.com`` also admits ``sub.example.com``.
    """
    fragments = parse_whitelist(spec)
    if not fragments:
        return True

    values = [value for value in candidates if value]
    for fragment in fragments:
        if primary and fragment in primary:
            return True
        if any(fragment in value for value in values):
            return True
    return False


def normalize_event_name(raw: str) -> str:
    """``session.status`` -> ``session_status``."""
    return raw.replace(".", "_")
