"""Helpers for owner/name repository identifiers."""


class ValidationError(ValueError):
    """Raised for a malformed owner/name identifier (checked before any API call)."""

    pass


def parse_full_name(full_name: str) -> tuple[str, str]:
    """Split "owner/name" into (owner, name).

    Raises ValidationError unless there is exactly one "/" and both parts
    are non-empty.
    """
    parts = full_name.strip().split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValidationError(f"Format must be owner/repo (e.g. facebook/react), got {full_name!r}")
    return parts[0], parts[1]


def split_full_name_lenient(full_name: str) -> tuple[str, str]:
    """Best-effort split for display (placeholder cards); never raises."""
    owner, sep, name = full_name.partition("/")
    if not sep:
        return "Unknown", full_name
    return owner or "Unknown", name or full_name
