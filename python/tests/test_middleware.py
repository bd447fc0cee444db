"""Tests for the Network header and access-control header middleware."""

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from walletauth.middleware.cors import AccessControlHeadersMiddleware
from walletauth.middleware.network import NETWORK_HEADER, NetworkHeaderMiddleware


async def _echo_network(request: Request) -> JSONResponse:
    return JSONResponse({"network": request.headers.get(NETWORK_HEADER)})


async def _boom(request: Request) -> JSONResponse:
    return JSONResponse({"message": "nope"}, status_code=418)


def _app() -> Starlette:
    return Starlette(routes=[Route("/", _echo_network), Route("/teapot", _boom)])


class TestNetworkHeaderMiddleware:
    @pytest.fixture
    def client(self) -> TestClient:
        app = _app()
        app.add_middleware(
            NetworkHeaderMiddleware,
            allowed_networks=("mainnet", "rinkeby"),
            default_network="mainnet",
        )
        return TestClient(app)

    def test_missing_header_gets_default(self, client):
        assert client.get("/").json() == {"network": "mainnet"}

    def test_allowed_value_passed_through(self, client):
        assert client.get("/", headers={"Network": "rinkeby"}).json() == {"network": "rinkeby"}

    def test_unknown_value_rejected(self, client):
        response = client.get("/", headers={"Network": "ropsten"})

        assert response.status_code == 400
        assert response.json() == {
            "status": "fail",
            "data": {"message": "Invalid network set in the request."},
        }

    def test_values_are_case_sensitive(self, client):
        assert client.get("/", headers={"Network": "Mainnet"}).status_code == 400

    def test_custom_default(self):
        app = _app()
        app.add_middleware(
            NetworkHeaderMiddleware, allowed_networks=["testnet"], default_network="testnet"
        )

        assert TestClient(app).get("/").json() == {"network": "testnet"}


class TestAccessControlHeadersMiddleware:
    def test_default_headers(self):
        app = _app()
        app.add_middleware(AccessControlHeadersMiddleware)

        response = TestClient(app).get("/")

        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["Access-Control-Allow-Headers"] == (
            "Origin, X-Requested-With, Content-Type, Accept"
        )

    def test_headers_on_error_responses(self):
        app = _app()
        app.add_middleware(AccessControlHeadersMiddleware)

        response = TestClient(app).get("/teapot")

        assert response.status_code == 418
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_configured_values(self):
        app = _app()
        app.add_middleware(
            AccessControlHeadersMiddleware,
            allow_origin="https://app.example",
            allow_headers="Authorization",
        )

        response = TestClient(app).get("/")

        assert response.headers["Access-Control-Allow-Origin"] == "https://app.example"
        assert response.headers["Access-Control-Allow-Headers"] == "Authorization"
