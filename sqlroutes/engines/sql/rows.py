"""
Row materializer: cursor -> list of column-name -> value mappings.
"""

from typing import Any

from sqlroutes.core.pool import cursor_to_dicts

RowMap = dict[str, Any]


class RawText(str):
    """
    A raw byte column payload kept as text.

    Serializes as a plain JSON string holding the bytes as-is (not base64, not
    re-parsed as a number). Bytes that are not valid UTF-8 are replaced with
    U+FFFD.
    """

    __slots__ = ()

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> "RawText":
        return cls(bytes(data).decode("utf-8", errors="replace"))


def materialize_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return RawText.from_bytes(value)
    return value


def materialize_rows(cursor: Any) -> list[RowMap]:
    """All remaining rows of ``cursor``; statements without a result set give []."""
    return [
        {name: materialize_value(value) for name, value in row.items()}
        for row in cursor_to_dicts(cursor)
    ]
