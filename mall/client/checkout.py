import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mall.client.api import ApiClient
from mall.client.exceptions import ApiError

AUTH_COOKIE_NAME = "auth_token"

MISSING_SESSION_MESSAGE = "Missing checkout identifier. Please contact support."
AUTH_REQUIRED_MESSAGE = "Authentication required to complete checkout. Please log in."
EMPTY_CART_MESSAGE = "Your cart is empty."
INVALID_ITEMS_MESSAGE = "All items in your cart have invalid quantities or prices."


@dataclass
class CheckoutCompletionResult:
    success: bool
    message: str
    order_ids: List[Any] = field(default_factory=list)


@dataclass
class CheckoutSessionResult:
    success: bool
    message: Optional[str] = None
    checkout_url: Optional[str] = None
    session_id: Optional[str] = None


def has_auth_cookie(cookie_header: Optional[str]) -> bool:
    return bool(cookie_header) and AUTH_COOKIE_NAME in cookie_header


class CheckoutClient:
    """Starts hosted checkouts and turns a returning session id into orders."""

    def __init__(self, api: ApiClient):
        self.api = api

    @staticmethod
    def _headers(cookie_header: Optional[str]) -> Dict[str, str]:
        if cookie_header and cookie_header.strip():
            return {"Cookie": cookie_header}
        return {}

    async def complete_checkout_session(
        self,
        session_id: Optional[str],
        cookie_header: Optional[str],
        order_ids: Optional[str] = None,
    ) -> CheckoutCompletionResult:
        """Finalizes a returning checkout.

        ``order_ids`` is the comma separated list a redirect may already carry;
        when present the orders exist and no request is made.
        """
        known_order_ids = [part.strip() for part in (order_ids or "").split(",") if part.strip()]

        if not known_order_ids and (not session_id or not session_id.strip()):
            return CheckoutCompletionResult(success=False, message=MISSING_SESSION_MESSAGE)

        if not has_auth_cookie(cookie_header):
            return CheckoutCompletionResult(success=False, message=AUTH_REQUIRED_MESSAGE)

        if known_order_ids:
            return CheckoutCompletionResult(
                success=True,
                message="Order completed successfully.",
                order_ids=known_order_ids,
            )

        try:
            response = await self.api.request(
                "POST",
                "/api/payments/checkout-complete",
                json={"sessionId": session_id},
                headers=self._headers(cookie_header),
            )
            payload = self.api.parse_json(response)
            self.api.raise_for_error(response, payload)
        except ApiError as e:
            logging.error(f"CHECKOUT >>> Failed to finalize checkout session {session_id} -> {e.message}")
            return CheckoutCompletionResult(success=False, message=e.message)
        except Exception as e:
            logging.error(f"CHECKOUT >>> Failed to finalize checkout session {session_id} -> {e}")
            return CheckoutCompletionResult(
                success=False,
                message=str(e) or "We were unable to finalize your order at this time.",
            )

        return CheckoutCompletionResult(
            success=bool(payload.get("success")),
            message=payload.get("message") or "Order completed successfully.",
            order_ids=list(payload.get("orderIds") or []),
        )

    async def create_checkout_session(self, payload: Dict[str, Any], cookie_header: Optional[str] = None) -> CheckoutSessionResult:
        items = payload.get("items") or []
        if not items:
            return CheckoutSessionResult(success=False, message=EMPTY_CART_MESSAGE)

        purchasable = [
            item for item in items
            if (item.get("quantity") or 0) > 0 and (item.get("price") or 0) > 0
        ]
        if not purchasable:
            return CheckoutSessionResult(success=False, message=INVALID_ITEMS_MESSAGE)

        try:
            response = await self.api.request(
                "POST",
                "/api/payments/checkout-session",
                json={**payload, "items": purchasable},
                headers=self._headers(cookie_header),
            )
            data = self.api.parse_json(response)
            self.api.raise_for_error(response, data)
        except ApiError as e:
            logging.error(f"CHECKOUT >>> Failed to start checkout -> {e.message}")
            return CheckoutSessionResult(success=False, message=e.message)
        except Exception as e:
            logging.error(f"CHECKOUT >>> Failed to start checkout -> {e}")
            return CheckoutSessionResult(success=False, message="Failed to start checkout. Please try again.")

        return CheckoutSessionResult(
            success=bool(data.get("success")),
            message=data.get("message"),
            checkout_url=data.get("checkoutUrl"),
            session_id=data.get("sessionId"),
        )
