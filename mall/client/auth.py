import logging
from typing import Any, Dict, Optional

from mall.client.api import ApiClient
from mall.client.exceptions import ApiAuthenticationError, ApiError
from mall.client.storage import LocalStorage

HAS_LOGGED_IN_KEY = "hasLoggedIn"


class AuthClient:
    """Session handling for the storefront; the token itself lives in the HTTP-only cookie."""

    def __init__(self, api: ApiClient, storage: Optional[LocalStorage] = None):
        self.api = api
        self.storage = storage or LocalStorage()
        self.user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def has_logged_in(self) -> bool:
        return self.storage.get_item(HAS_LOGGED_IN_KEY) == "true"

    async def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        response = await self.api.request(method, endpoint, **kwargs)
        payload = self.api.parse_json(response)

        if response.status_code == 401:
            raise ApiAuthenticationError(self.api.error_message(payload, 401))
        self.api.raise_for_error(response, payload)
        return payload

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        response = await self.api.request("POST", "/api/auth/login", json={"email": email, "password": password})
        payload = self.api.parse_json(response)

        # Rejected credentials come back as a result the caller can show
        if not response.is_success:
            return {"success": False, "message": payload.get("message") or "Login failed"}

        self.user = payload.get("user")
        self.storage.set_item(HAS_LOGGED_IN_KEY, "true")
        return payload

    async def signup(self, email: str, password: str, full_name: str, phone_number: Optional[str] = None) -> Dict[str, Any]:
        payload = await self._request(
            "POST",
            "/api/auth/signup",
            json={"email": email, "password": password, "fullName": full_name, "phoneNumber": phone_number},
        )
        self.user = payload.get("user")
        self.storage.set_item(HAS_LOGGED_IN_KEY, "true")
        return payload

    async def refresh_token(self) -> Dict[str, Any]:
        return await self._request("POST", "/api/auth/refresh")

    async def get_current_user(self) -> Dict[str, Any]:
        try:
            return await self._request("GET", "/api/auth/me")
        except ApiAuthenticationError:
            refreshed = await self.refresh_token()
            if not refreshed.get("success"):
                raise
            return await self._request("GET", "/api/auth/me")

    async def restore_session(self) -> Optional[Dict[str, Any]]:
        """Restores the signed-in user; devices that never logged in skip the round-trip."""
        if not self.has_logged_in:
            self.user = None
            return None

        try:
            payload = await self.get_current_user()
        except ApiError as e:
            logging.info(f"AUTH >>> Session not restored -> {e.message}")
            self.user = None
            return None

        self.user = payload.get("user") if payload.get("success") else None
        return self.user

    async def logout(self) -> None:
        try:
            await self._request("POST", "/api/auth/logout")
        except ApiError as e:
            logging.warning(f"AUTH >>> Logout request failed -> {e.message}")
        finally:
            self.user = None
            self.storage.remove_item(HAS_LOGGED_IN_KEY)
            self.api.cookies.clear()
