"""End-to-end tests for gateway routes (FastAPI TestClient + SQLite file)."""

from collections.abc import Callable, Iterable

from fastapi.testclient import TestClient

from sqlroutes.models import MethodEnum, Rule

MakeClient = Callable[[Iterable[Rule]], TestClient]


def test_show_by_path_param(make_client: MakeClient) -> None:
    client = make_client(
        [Rule(path="/show/:id", method=MethodEnum.GET, queries=("SELECT * FROM test WHERE id = {{id}}",))]
    )
    r = client.get("/show/3")
    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "rows": [{"id": 3, "body": "x"}],
        "errorType": "",
        "errorDescription": "",
    }


def test_zero_rows(make_client: MakeClient) -> None:
    client = make_client([Rule(path="/show/:id", queries=("SELECT * FROM test WHERE id = {{id}}",))])
    r = client.get("/show/404")
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["rows"] == []


def test_unknown_argument_reports_failure_with_200(make_client: MakeClient) -> None:
    client = make_client([Rule(path="/missing", queries=("SELECT * FROM test WHERE id = {{missing}}",))])
    r = client.get("/missing")
    assert r.status_code == 200
    assert r.json() == {
        "success": False,
        "rows": None,
        "errorType": "UnknownArgError",
        "errorDescription": "unknown argument name: missing",
    }


def test_rows_from_two_main_queries_in_order(make_client: MakeClient) -> None:
    client = make_client(
        [
            Rule(
                path="/two",
                queries=(
                    "SELECT 1 AS n",
                    "SELECT 2 AS n UNION ALL SELECT 3 ORDER BY 1",
                ),
            )
        ]
    )
    r = client.get("/two")
    assert r.json()["rows"] == [{"n": 1}, {"n": 2}, {"n": 3}]


def test_param_precedence_query_body_path(make_client: MakeClient) -> None:
    client = make_client([Rule(path="/echo/:id", method=MethodEnum.POST, queries=("SELECT {{id}} AS id",))])
    r = client.post("/echo/1?id=3", json={"id": 2})
    assert r.json()["rows"] == [{"id": "3"}]

    r = client.post("/echo/1", json={"id": 2})
    assert r.json()["rows"] == [{"id": 2}]

    r = client.post("/echo/1")
    assert r.json()["rows"] == [{"id": "1"}]


def test_repeated_query_key_uses_first(make_client: MakeClient) -> None:
    client = make_client([Rule(path="/q", queries=("SELECT {{v}} AS v",))])
    r = client.get("/q?v=first&v=second")
    assert r.json()["rows"] == [{"v": "first"}]


def test_invalid_body(make_client: MakeClient) -> None:
    client = make_client([Rule(path="/new", method=MethodEnum.POST, queries=("SELECT {{v}} AS v",))])
    r = client.post("/new", content=b"[1, 2, 3]", headers={"content-type": "application/json"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is False
    assert body["errorType"] == "RequestBodyParseError"


def test_null_body_falls_back_to_path_params(make_client: MakeClient) -> None:
    client = make_client([Rule(path="/echo/:id", method=MethodEnum.POST, queries=("SELECT {{id}} AS id",))])
    r = client.post("/echo/7", content=b"null", headers={"content-type": "application/json"})
    assert r.json()["success"] is True
    assert r.json()["rows"] == [{"id": "7"}]


def test_nested_body_value_fails_at_execution(make_client: MakeClient) -> None:
    client = make_client([Rule(path="/new", method=MethodEnum.POST, queries=("SELECT {{v}} AS v",))])
    r = client.post("/new", json={"v": {"nested": True}})
    body = r.json()
    assert body["success"] is False
    assert body["errorType"] == "QueryExecutionError"


def test_insert_then_select_in_transaction(make_client: MakeClient, fetch_all) -> None:
    client = make_client(
        [
            Rule(
                path="/test",
                method=MethodEnum.POST,
                befores=("INSERT INTO test (id, body) VALUES ({{id}}, {{body}})",),
                queries=("SELECT id, body FROM test WHERE id = {{id}}",),
                afters=("INSERT INTO audit (note) VALUES ({{body}})",),
                transaction=True,
            )
        ]
    )
    r = client.post("/test", json={"id": 7, "body": "seven"})
    assert r.json()["rows"] == [{"id": 7, "body": "seven"}]
    assert fetch_all("SELECT note FROM audit") == [("seven",)]

    # Duplicate id: the before statement fails, nothing of the set is kept.
    r = client.post("/test", json={"id": 7, "body": "again"})
    body = r.json()
    assert body["success"] is False
    assert body["errorType"] == "QueryExecutionError"
    assert fetch_all("SELECT note FROM audit") == [("seven",)]


def test_blob_column_rendered_as_text(make_client: MakeClient) -> None:
    client = make_client([Rule(path="/blob", queries=("SELECT CAST('123' AS BLOB) AS b",))])
    assert client.get("/blob").json()["rows"] == [{"b": "123"}]


def test_method_not_bound_is_not_served(make_client: MakeClient) -> None:
    client = make_client([Rule(path="/only-get", queries=("SELECT 1 AS one",))])
    assert client.post("/only-get").status_code == 405
    assert client.get("/nowhere").status_code == 404
