from __future__ import annotations

import gzip
import json

import httpx
import pytest

from src.backend.client import get_http_client
from src.backend.config import ProxySettings
from src.backend.invoker import BackendInvoker, BackendResponse
from src.backend.relay import relay_response, rewrite_cookie
from src.search.exceptions import SearchBackendError, SearchTransportError
from src.search.schemas import RequestContext


def _invoker(settings, handler) -> BackendInvoker:
    client = httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)
    return BackendInvoker(settings, client=client)


class TestBackendInvoker:
    def test_posts_query_to_search_endpoint(self, settings):
        captured = []
        body = gzip.compress(b'{"hits": {"total": 0}}')

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(
                200,
                headers=[("Content-Type", "application/json"), ("Content-Encoding", "gzip")],
                stream=httpx.ByteStream(body),
            )

        response = _invoker(settings, handler).search('{"query": {}}')

        request = captured[0]
        assert request.method == "POST"
        assert str(request.url) == "http://es.test/posts/_search"
        assert request.headers["content-type"] == "application/json"
        assert request.headers["accept-encoding"] == "gzip"
        assert json.loads(request.content) == {"query": {}}

        assert response.status_code == 200
        assert response.body == body
        assert response.header("content-encoding") == "gzip"

    def test_error_status_is_returned_verbatim(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, stream=httpx.ByteStream(b"unavailable"))

        response = _invoker(settings, handler).search("{}")
        assert response.status_code == 503
        assert response.body == b"unavailable"

    def test_transport_failure_raises(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SearchTransportError):
            _invoker(settings, handler).search("{}")

    def test_redirects_are_followed(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/posts/_search":
                return httpx.Response(307, headers={"Location": "http://es.test/v2/_search"})
            return httpx.Response(200, stream=httpx.ByteStream(b"{}"))

        response = _invoker(settings, handler).search("{}")
        assert response.status_code == 200

    def test_client_uses_basic_auth(self, template):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, stream=httpx.ByteStream(b"{}"))

        settings = ProxySettings(
            post_index_url="http://es.test/posts/",
            query_template=json.dumps(template),
            username="elastic",
            password="secret",
        )
        client = get_http_client(settings, transport=httpx.MockTransport(handler))
        BackendInvoker(settings, client=client).search("{}")

        assert captured[0].headers["authorization"].startswith("Basic ")
        assert str(captured[0].url) == "http://es.test/posts/_search"

    def test_owned_client_is_closed(self, settings):
        invoker = BackendInvoker(settings)
        client = invoker.client
        invoker.close()
        assert client.is_closed

    def test_context_manager_closes_owned_client(self, settings):
        with BackendInvoker(settings) as invoker:
            client = invoker.client
            assert not client.is_closed
        assert client.is_closed


class TestRelay:
    def test_missing_status_defaults_to_404(self):
        assert relay_response(None).status_code == 404
        assert relay_response(BackendResponse(status_code=None)).status_code == 404
        assert relay_response(BackendResponse(status_code=0)).status_code == 404

    def test_status_is_forwarded(self):
        assert relay_response(BackendResponse(status_code=503)).status_code == 503

    def test_only_selected_headers_are_forwarded(self):
        response = BackendResponse(
            status_code=200,
            headers=[
                ("Content-Type", "application/json; charset=UTF-8"),
                ("Content-Length", "120"),
                ("Server", "backend"),
                ("X-Elastic-Product", "Elasticsearch"),
                ("content-language", "en"),
                ("Content-Security-Policy", "default-src 'self'"),
            ],
            body=b"{}",
        )
        relayed = relay_response(response)
        assert relayed.headers == [
            ("Content-Type", "application/json; charset=UTF-8"),
            ("X-Elastic-Product", "Elasticsearch"),
            ("content-language", "en"),
            ("Content-Security-Policy", "default-src 'self'"),
        ]
        assert relayed.body == b"{}"

    def test_cookies_are_moved_to_caller_host(self):
        response = BackendResponse(
            status_code=200,
            headers=[
                ("Set-Cookie", "sid=abc; Domain=backend.internal; Path=/; HttpOnly"),
                ("Set-Cookie", "lang=en; path=/shop"),
            ],
        )
        relayed = relay_response(response, RequestContext(host="shop.example.com:8080"))
        assert relayed.headers == [
            ("Set-Cookie", "sid=abc; Domain=.shop.example.com; HttpOnly"),
            ("Set-Cookie", "lang=en"),
        ]

    def test_rewrite_cookie_without_host_only_strips_path(self):
        assert rewrite_cookie("a=1; domain=x.internal; path=/", "") == "a=1; domain=x.internal"

    def test_gzip_body_is_decompressed(self):
        response = BackendResponse(
            status_code=200,
            headers=[("Content-Encoding", "gzip"), ("Content-Type", "text/plain")],
            body=gzip.compress(b"hello"),
        )
        relayed = relay_response(response)
        assert relayed.body == b"hello"
        assert relayed.headers == [("Content-Type", "text/plain")]

    def test_content_encoding_lookup_ignores_header_case(self):
        response = BackendResponse(
            status_code=200,
            headers=[("content-encoding", " GZIP ")],
            body=gzip.compress(b"hello"),
        )
        assert response.header("Content-Encoding") == " GZIP "
        assert relay_response(response).body == b"hello"

    def test_invalid_gzip_body_raises(self):
        response = BackendResponse(
            status_code=200,
            headers=[("Content-Encoding", "gzip")],
            body=b"not gzip at all",
        )
        with pytest.raises(SearchBackendError):
            relay_response(response)

    def test_plain_body_is_untouched(self):
        response = BackendResponse(status_code=200, body=b'{"took": 1}')
        assert relay_response(response).body == b'{"took": 1}'
