MAX_FILENAME_LENGTH = 140
DEFAULT_FILENAME = "file.pdf"

_KEEP = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789._-")


def sanitize_filename(name: str | None, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """Replace every character outside [A-Za-z0-9._-] with '_' and truncate.

    Idempotent: sanitizing an already-sanitized name returns it unchanged.
    """
    safe = "".join(c if c in _KEEP else "_" for c in (name or ""))[:max_length]
    return safe or DEFAULT_FILENAME
