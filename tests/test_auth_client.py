import asyncio

import httpx

from mall.client.api import ApiClient
from mall.client.auth import HAS_LOGGED_IN_KEY, AuthClient
from mall.client.storage import LocalStorage

USER = {"id": 1, "email": "jane@example.com", "fullName": "Jane Doe"}


def build_client(handler, storage=None):
    api = ApiClient(base_url="http://api.test", transport=httpx.MockTransport(handler))
    return AuthClient(api, storage or LocalStorage())


def test_restore_is_skipped_for_devices_that_never_logged_in():
    calls = []
    auth = build_client(lambda request: calls.append(request))

    assert asyncio.run(auth.restore_session()) is None
    assert calls == []


def test_login_sets_flag_and_restore_uses_it():
    storage = LocalStorage()

    def handler(request):
        return httpx.Response(200, json={"success": True, "user": USER})

    auth = build_client(handler, storage)
    asyncio.run(auth.login("jane@example.com", "secret"))
    assert storage.get_item(HAS_LOGGED_IN_KEY) == "true"

    restored = build_client(handler, storage)
    assert asyncio.run(restored.restore_session()) == USER
    assert restored.is_authenticated


def test_rejected_login_returns_message():
    auth = build_client(lambda request: httpx.Response(401, json={"success": False, "message": "Invalid email or password"}))

    result = asyncio.run(auth.login("jane@example.com", "wrong"))

    assert result == {"success": False, "message": "Invalid email or password"}
    assert not auth.has_logged_in


def test_restore_refreshes_once_on_unauthorized():
    storage = LocalStorage()
    storage.set_item(HAS_LOGGED_IN_KEY, "true")
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if request.url.path == "/api/auth/refresh":
            return httpx.Response(200, json={"success": True})
        if calls.count("/api/auth/me") == 1:
            return httpx.Response(401, json={"success": False, "message": "Token expired. Please log in again."})
        return httpx.Response(200, json={"success": True, "user": USER})

    assert asyncio.run(build_client(handler, storage).restore_session()) == USER
    assert calls == ["/api/auth/me", "/api/auth/refresh", "/api/auth/me"]


def test_restore_gives_up_when_refresh_fails():
    storage = LocalStorage()
    storage.set_item(HAS_LOGGED_IN_KEY, "true")

    auth = build_client(lambda request: httpx.Response(401, json={"success": False, "message": "Access token required"}), storage)

    assert asyncio.run(auth.restore_session()) is None


def test_logout_clears_flag_even_when_request_fails():
    storage = LocalStorage()
    storage.set_item(HAS_LOGGED_IN_KEY, "true")
    auth = build_client(lambda request: httpx.Response(500, json={"success": False, "message": "boom"}), storage)

    asyncio.run(auth.logout())

    assert storage.get_item(HAS_LOGGED_IN_KEY) is None
    assert auth.user is None
