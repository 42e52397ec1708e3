"""Id mapping between the server's numeric ids and the core's string ids.

This is the only place where ids change representation.
"""

from martrello.errors import ValidationError


def to_local_id(remote: int | str) -> str:
    """Convert a server id to the opaque string id used by the store.

    123 → "123", "007" → "7"
    """
    text = str(remote).strip()
    if text.isdigit():
        return text.lstrip("0") or "0"
    return text


def to_remote_id(local: str | int) -> int:
    """Convert a store id back to the server's numeric id.

    Raises ValidationError for ids that were never numeric.
    """
    if isinstance(local, bool):
        raise ValidationError(f"not a server id: {local!r}")
    if isinstance(local, int):
        return local
    text = str(local).strip()
    if not text.isdigit():
        raise ValidationError(f"not a server id: {local!r}")
    return int(text)


def next_id(ids) -> int:
    """Return the next autoincrement id after the highest numeric id in ids."""
    highest = 0
    for id_ in ids:
        try:
            highest = max(highest, int(id_))
        except (TypeError, ValueError):
            continue
    return highest + 1
