"""The ``MISSING`` marker for "no value".

``get`` returns it for an unset key and notifications carry it as the old
value of a fresh key or the new value of a removed one.  It is never a valid
payload, so a stored ``None`` stays distinguishable from an absent entry.
"""

from __future__ import annotations

from typing import Any, Final, final


@final
class _MissingType:
    _instance: _MissingType | None = None

    def __new__(cls) -> _MissingType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<MISSING>"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"

    def __copy__(self) -> _MissingType:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _MissingType:
        return self


MISSING: Final = _MissingType()


def is_missing(value: Any) -> bool:
    """Return ``True`` when *value* is the ``MISSING`` marker."""
    return value is MISSING
