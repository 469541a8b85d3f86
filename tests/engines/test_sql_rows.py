"""Unit tests for engines.sql.rows (row materializer)."""

import json
from unittest.mock import MagicMock

from sqlroutes.core.pool import ConnectionPool, execute
from sqlroutes.engines.sql import RawText, materialize_rows


def test_raw_text_from_bytes() -> None:
    t = RawText.from_bytes(b"hello")
    assert t == "hello"
    assert isinstance(t, str)
    assert json.dumps({"v": t}) == '{"v": "hello"}'


def test_raw_text_numeric_looking_bytes_stay_string() -> None:
    assert json.loads(json.dumps(RawText.from_bytes(b"123"))) == "123"


def test_raw_text_invalid_utf8_replaced() -> None:
    assert RawText.from_bytes(b"a\xffb") == "a\ufffdb"


def test_materialize_rows_wraps_bytes_only() -> None:
    cur = MagicMock()
    cur.description = [("id",), ("payload",), ("flag",), ("nothing",)]
    cur.fetchall.return_value = [(1, b"abc", True, None), (2, bytearray(b"de"), False, None)]

    rows = materialize_rows(cur)

    assert rows == [
        {"id": 1, "payload": "abc", "flag": True, "nothing": None},
        {"id": 2, "payload": "de", "flag": False, "nothing": None},
    ]
    assert isinstance(rows[0]["payload"], RawText)
    assert isinstance(rows[1]["payload"], RawText)
    assert not isinstance(rows[0]["id"], RawText)


def test_materialize_rows_no_result_set() -> None:
    cur = MagicMock()
    cur.description = None
    assert materialize_rows(cur) == []
    cur.fetchall.assert_not_called()


def test_materialize_rows_sqlite_blob(pool: ConnectionPool) -> None:
    with pool.connection() as conn:
        cur = execute(conn, "SELECT CAST('42' AS BLOB) AS b, 7 AS n, 'x' AS s")
        rows = materialize_rows(cur)
        cur.close()
    assert rows == [{"b": "42", "n": 7, "s": "x"}]
    assert isinstance(rows[0]["b"], RawText)
