import asyncio

import httpx
import pytest

from mall.client.api import ApiClient, normalize_base_url
from mall.client.auth import AuthClient
from mall.client.exceptions import ApiAuthenticationError, ApiConfigurationError, ApiError
from mall.client.orders import OrderService
from mall.client.storage import LocalStorage

ORDERS_PAYLOAD = {"success": True, "data": [{"id": 1, "status": "processing"}], "count": 1}


def build_service(handler):
    api = ApiClient(base_url="http://api.test", transport=httpx.MockTransport(handler))
    return OrderService(api, AuthClient(api, LocalStorage()))


def unauthorized():
    return httpx.Response(401, json={"success": False, "message": "Token expired. Please log in again."})


def test_refresh_then_retry_returns_payload():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if request.url.path == "/api/auth/refresh":
            return httpx.Response(200, json={"success": True, "message": "Token refreshed successfully"})
        if calls.count("/api/orders") == 1:
            return unauthorized()
        return httpx.Response(200, json=ORDERS_PAYLOAD)

    result = asyncio.run(build_service(handler).get_orders())

    assert result == ORDERS_PAYLOAD
    assert calls == ["/api/orders", "/api/auth/refresh", "/api/orders"]


def test_second_unauthorized_propagates():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if request.url.path == "/api/auth/refresh":
            return httpx.Response(200, json={"success": True})
        return unauthorized()

    with pytest.raises(ApiAuthenticationError) as exc_info:
        asyncio.run(build_service(handler).get_orders())

    assert exc_info.value.status_code == 401
    assert calls == ["/api/orders", "/api/auth/refresh", "/api/orders"]


def test_failed_refresh_does_not_retry():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return unauthorized()

    with pytest.raises(ApiAuthenticationError):
        asyncio.run(build_service(handler).get_order_by_id(7))

    assert calls == ["/api/orders/7", "/api/auth/refresh"]


def test_non_json_response_is_a_configuration_error():
    def handler(request):
        return httpx.Response(404, text="<html>Not Found</html>", headers={"content-type": "text/html"})

    with pytest.raises(ApiConfigurationError) as exc_info:
        asyncio.run(build_service(handler).get_orders())

    assert "http://api.test" in exc_info.value.message


def test_json_error_response_raises_api_error():
    def handler(request):
        return httpx.Response(403, json={"success": False, "message": "You do not have permission to view this order"})

    with pytest.raises(ApiError) as exc_info:
        asyncio.run(build_service(handler).get_order_by_id(3))

    assert not isinstance(exc_info.value, ApiAuthenticationError)
    assert not isinstance(exc_info.value, ApiConfigurationError)
    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "You do not have permission to view this order"


def test_query_string_only_carries_truthy_parameters():
    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(200, json=ORDERS_PAYLOAD)

    service = build_service(handler)
    asyncio.run(service.get_orders(status="shipped", limit=10, offset=0))
    asyncio.run(service.get_order_history())

    assert seen == [{"status": "shipped", "limit": "10"}, {}]


def test_base_url_normalization():
    assert normalize_base_url(None) == "http://localhost:3001"
    assert normalize_base_url("api.example.com") == "http://api.example.com"
    assert normalize_base_url("https://api.example.com/") == "https://api.example.com"
