from __future__ import annotations

from typing import Final

# Error envelopes carry one of these types so callers can branch without parsing messages.
# Keep this list minimal and grow it only when a new type is actually emitted.
KNOWN_ERROR_TYPES: Final[set[str]] = {
    "HOOK_FAILED",
    "IMPLEMENTATION_NOT_FOUND",
    "INVALID_ARGUMENT",
    "PARSE_ERROR",
    "SCENARIOS_FAILED",
}


def assert_known_error_type(error_type: str) -> None:
    if error_type not in KNOWN_ERROR_TYPES:
        raise ValueError(f"Unknown error type: {error_type!r}. Add it to sorrel.core.error_types.KNOWN_ERROR_TYPES.")
