"""
Tests for the default backend error server.
"""

import pytest
from fastapi.testclient import TestClient

from error_server.main import create_app, parse_addr
from error_server.pages import (
    ERROR_MESSAGES,
    ErrorPageRenderer,
    load_asset,
    parse_error_code,
)


@pytest.fixture
def client(quiet_logger):
    return TestClient(create_app(structured_logger=quiet_logger))


@pytest.fixture
def index_page():
    return load_asset("index.html")


class TestHealthz:
    def test_get(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.text == "ok"

    def test_head(self, client):
        assert client.head("/healthz").status_code == 200

    def test_ignores_x_code(self, client):
        response = client.get("/healthz", headers={"X-Code": "503"})

        assert response.status_code == 200

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "PATCH", "OPTIONS", "TRACE"])
    def test_any_method(self, client, method):
        response = client.request(method, "/healthz")

        assert response.status_code == 200
        assert response.text == "ok"


class TestErrorPages:
    @pytest.mark.parametrize("code,message", sorted(ERROR_MESSAGES.items()))
    def test_known_codes(self, client, code, message):
        response = client.get("/some/path", headers={"X-Code": str(code)})

        assert response.status_code == code
        assert response.headers["content-type"].startswith("text/html")
        assert f"<h1 class=\"error__code\">{code}</h1>" in response.text
        assert message in response.text

    @pytest.mark.parametrize("method", ["post", "put", "delete", "patch", "options", "trace"])
    def test_any_method(self, client, method):
        response = client.request(method.upper(), "/", headers={"X-Code": "503"})

        assert response.status_code == 503

    @pytest.mark.parametrize("header", ["418", "200", "0", "-1"])
    def test_unknown_code_serves_index(self, client, index_page, header):
        response = client.get("/", headers={"X-Code": header})

        assert response.status_code == 404
        assert response.content == index_page

    def test_missing_header_serves_index(self, client, index_page):
        response = client.get("/anything")

        assert response.status_code == 404
        assert response.content == index_page

    @pytest.mark.parametrize("header", ["abc", "5o3", "1.5"])
    def test_unparsable_code(self, client, header):
        response = client.get("/", headers={"X-Code": header})

        assert response.status_code == 500
        assert "unable to get error code" in response.text

    def test_broken_template_returns_empty_500(self, quiet_logger):
        renderer = ErrorPageRenderer(b"<p>$unknown_field</p>", b"index")
        client = TestClient(create_app(renderer, quiet_logger))

        response = client.get("/", headers={"X-Code": "404"})

        assert response.status_code == 500
        assert response.content == b""

    def test_invalid_placeholder_returns_empty_500(self, quiet_logger):
        renderer = ErrorPageRenderer(b"<p>$</p>", b"index")
        client = TestClient(create_app(renderer, quiet_logger))

        response = client.get("/", headers={"X-Code": "503"})

        assert response.status_code == 500
        assert response.content == b""


class TestRenderer:
    def test_values_are_escaped(self):
        renderer = ErrorPageRenderer(b"$err_code:$err_msg", b"")

        assert renderer.render_error(500, "<script>&") == "500:&lt;script&gt;&amp;"

    def test_packaged_assets(self):
        renderer = ErrorPageRenderer.from_package()

        assert b"$err_code" in renderer.error_template
        assert b"Default Backend" in renderer.index_page


class TestParseErrorCode:
    @pytest.mark.parametrize(
        "header,expected",
        [(None, 0), ("", 0), ("404", 404), ("+503", 503), ("-1", -1)],
    )
    def test_valid(self, header, expected):
        assert parse_error_code(header) == expected

    @pytest.mark.parametrize("header", ["abc", "4 04", "0x1f", "1e3"])
    def test_invalid(self, header):
        with pytest.raises(ValueError):
            parse_error_code(header)


class TestParseAddr:
    @pytest.mark.parametrize(
        "addr,expected",
        [
            ("0.0.0.0:8080", ("0.0.0.0", 8080)),
            (":9000", ("0.0.0.0", 9000)),
            ("localhost:80", ("localhost", 80)),
            ("[::1]:8080", ("::1", 8080)),
        ],
    )
    def test_valid(self, addr, expected):
        assert parse_addr(addr) == expected

    @pytest.mark.parametrize("addr", ["8080", "host:", "host:http"])
    def test_invalid(self, addr):
        with pytest.raises(ValueError):
            parse_addr(addr)
