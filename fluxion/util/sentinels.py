"""Sentinel values shared across fluxion modules."""


class _Absent:
    """Marks a missing value where None is a legitimate value."""

    __slots__ = ()

    def __repr__(self):
        return "ABSENT"

    def __bool__(self):
        return False


class _Delete:
    """Cleanup state that removes a slice's key from its parent."""

    __slots__ = ()

    def __repr__(self):
        return "DELETE"


ABSENT = _Absent()
DELETE = _Delete()
