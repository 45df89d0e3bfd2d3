from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from src.config import EngineConfig
from src.engine.errors import InvalidIndex
from src.protocol.http.app import create_app


def test_error_envelope_for_http_exception() -> None:
    app: FastAPI = create_app(EngineConfig())

    @app.get("/boom")
    def boom():  # type: ignore[no-redef]
        raise HTTPException(status_code=400, detail="oops")

    client = TestClient(app)
    r = client.get("/boom")
    assert r.status_code == 400
    body = r.json()
    assert "error" in body
    err = body["error"]
    assert err["code"] == "bad_request"
    assert err["message"] == "oops"
    assert err["type"] == "client_error"
    assert err["request_id"]


def test_unknown_route_uses_envelope() -> None:
    client = TestClient(create_app(EngineConfig()))
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"


def test_engine_index_error_maps_to_400() -> None:
    app: FastAPI = create_app(EngineConfig())

    @app.get("/bad-index")
    def bad_index():  # type: ignore[no-redef]
        raise InvalidIndex("square index must be in 0..63, got 64")

    r = TestClient(app).get("/bad-index")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_index"


def test_unhandled_exception_is_500() -> None:
    app: FastAPI = create_app(EngineConfig())

    @app.get("/crash")
    def crash():  # type: ignore[no-redef]
        raise RuntimeError("kaboom")

    client = TestClient(app, raise_server_exceptions=False)
    r = client.get("/crash")
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "internal_error"
    assert err["type"] == "server_error"
    assert "kaboom" not in err["message"]
