import logging
from urllib.parse import urlencode
from typing import Any, Dict, Optional

from mall.client.api import ApiClient
from mall.client.auth import AuthClient
from mall.client.exceptions import ApiAuthenticationError, ApiError


class OrderService:
    """Order queries for the signed-in customer.

    A 401 triggers exactly one token refresh; when it succeeds the request is
    sent once more and a second 401 is final.
    """

    def __init__(self, api: ApiClient, auth: AuthClient):
        self.api = api
        self.auth = auth

    async def _try_refresh_token(self) -> bool:
        try:
            result = await self.auth.refresh_token()
        except ApiError as e:
            logging.warning(f"ORDERS >>> Token refresh attempt failed -> {e.message}")
            return False
        return bool(result.get("success"))

    async def _request(self, endpoint: str) -> Dict[str, Any]:
        try:
            response = await self.api.request("GET", endpoint)
            payload = self.api.parse_json(response)

            if response.status_code == 401 and await self._try_refresh_token():
                response = await self.api.request("GET", endpoint)
                payload = self.api.parse_json(response)

            if response.status_code == 401:
                raise ApiAuthenticationError(self.api.error_message(payload, 401))
            self.api.raise_for_error(response, payload)
            return payload
        except ApiError as e:
            logging.error(f"ORDERS >>> Request to {self.api.base_url}{endpoint} failed -> {e.message}")
            raise

    async def get_orders(
        self,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Dict[str, Any]:
        params = {}
        if status:
            params["status"] = status
        if limit:
            params["limit"] = str(limit)
        if offset:
            params["offset"] = str(offset)

        endpoint = "/api/orders"
        if params:
            endpoint = f"{endpoint}?{urlencode(params)}"
        return await self._request(endpoint)

    async def get_order_by_id(self, order_id) -> Dict[str, Any]:
        return await self._request(f"/api/orders/{order_id}")

    async def get_order_history(
        self,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await self.get_orders(status=status, limit=limit, offset=offset)
