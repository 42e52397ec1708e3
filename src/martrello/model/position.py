"""Dense 0-based positions for ordered containers."""

from martrello.errors import InvariantViolation


def renumber(sequence):
    """Set ``position = index`` on every element, in current order.

    Idempotent; unchanged positions fire no watchers. Returns the sequence.
    """
    for i, item in enumerate(sequence):
        if item.position != i:
            item.position = i
    return sequence


def is_dense(sequence) -> bool:
    """True if positions are exactly 0..n-1 in storage order."""
    return [item.position for item in sequence] == list(range(len(sequence)))


def check_dense(sequence, where: str = "") -> None:
    """Raise InvariantViolation if positions are not dense."""
    if not is_dense(sequence):
        found = [item.position for item in sequence]
        raise InvariantViolation(f"positions not dense in {where or 'container'}: {found}")
