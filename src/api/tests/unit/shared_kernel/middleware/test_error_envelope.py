"""Unit tests for the JSON error envelope handlers."""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from shared_kernel.middleware import error_body, register_exception_handlers


class Item(BaseModel):
    name: str
    quantity: int


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/conflict")
    def conflict():
        raise HTTPException(
            status_code=503,
            detail="Try again later",
            headers={"Retry-After": "1"},
        )

    @app.get("/structured")
    def structured():
        raise HTTPException(status_code=400, detail={"code": "x"})

    @app.post("/items")
    def create(item: Item):
        return {"success": True}

    @app.get("/boom")
    def boom():
        raise RuntimeError("database password is hunter2")

    return TestClient(app, raise_server_exceptions=False)


def test_error_body():
    assert error_body("Nope", errors=[]) == {
        "success": False,
        "message": "Nope",
        "errors": [],
    }


def test_http_exception_keeps_headers(client):
    response = client.get("/conflict")

    assert response.status_code == 503
    assert response.json() == {"success": False, "message": "Try again later"}
    assert response.headers["retry-after"] == "1"


def test_non_string_detail(client):
    response = client.get("/structured")

    assert response.json() == {"success": False, "message": "Request failed"}


def test_validation_errors_name_fields(client):
    response = client.post("/items", json={"name": "Sencha", "quantity": "many"})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid request"
    assert [error["field"] for error in body["errors"]] == ["quantity"]


def test_unhandled_error_is_hidden(client):
    response = client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error"}
    assert "hunter2" not in response.text
