import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import mercadopago

from mall.configuration.settings import Configuration
from mall.core.exceptions.checkout import CheckoutFinalizationError
from mall.schemas.payment.payment import CheckoutItem
from mall.services.payment.types import (
    PAYMENT_STATUS_PAID,
    PAYMENT_STATUS_UNPAID,
    CheckoutLineItem,
    CheckoutSession,
    PaymentNotification,
)

configuration = Configuration()

DEFAULT_STORE_NAME = "Marketplace Store"

_sdk: Optional[mercadopago.SDK] = None


def get_sdk() -> mercadopago.SDK:
    global _sdk
    if _sdk is None:
        if configuration.environment == "production":
            _sdk = mercadopago.SDK(configuration.mercado_pago_access_token_prod or "")
        else:
            _sdk = mercadopago.SDK(configuration.mercado_pago_access_token_test or "")
    return _sdk


class MercadoPagoCheckoutGateway:
    """Hosted checkout on Mercado Pago preferences.

    A preference plays the role of the checkout session: its id is the session id
    handed back to the storefront, items carry the store in ``category_id`` and
    ``description``, and payment state comes from the payments that reference it.
    """

    def __init__(self, sdk: Optional[mercadopago.SDK] = None, app_base_url: Optional[str] = None):
        self._sdk = sdk
        self.app_base_url = app_base_url or configuration.app_base_url

    @property
    def sdk(self) -> mercadopago.SDK:
        return self._sdk or get_sdk()

    def create_session(
        self,
        items: List[CheckoutItem],
        metadata: Dict[str, Any],
        external_reference: str,
        payer_email: Optional[str] = None,
    ) -> CheckoutSession:
        body = {
            "items": [self._build_item(item) for item in items],
            "external_reference": external_reference,
            "metadata": metadata,
            "back_urls": {
                "success": f"{self.app_base_url}/checkout/success",
                "pending": f"{self.app_base_url}/checkout/success",
                "failure": f"{self.app_base_url}/cart?canceled=1",
            },
            "auto_return": "approved",
        }
        if payer_email:
            body["payer"] = {"email": payer_email}

        result = self.sdk.preference().create(body)
        response = result.get("response") or {}

        if result.get("status") not in (200, 201) or not response.get("id"):
            logging.error(f"MERCADO PAGO >>> Preference creation failed -> {result}")
            raise CheckoutFinalizationError("Failed to start checkout. Please try again.", 502)

        url = response.get("init_point") if configuration.environment == "production" else (
            response.get("sandbox_init_point") or response.get("init_point")
        )
        return CheckoutSession(
            id=str(response["id"]),
            url=url,
            payment_status=PAYMENT_STATUS_UNPAID,
            metadata=response.get("metadata") or metadata,
            line_items=[self._parse_item(item) for item in response.get("items") or []],
        )

    def retrieve_session(self, session_id: str) -> Optional[CheckoutSession]:
        result = self.sdk.preference().get(session_id)
        if result.get("status") == 404:
            return None

        response = result.get("response") or {}
        if result.get("status") != 200 or not response:
            logging.error(f"MERCADO PAGO >>> Unable to retrieve preference {session_id} -> {result}")
            raise CheckoutFinalizationError("Checkout session could not be retrieved.", 502)

        external_reference = response.get("external_reference")
        paid = bool(external_reference) and self._has_approved_payment(external_reference)

        return CheckoutSession(
            id=str(response.get("id", session_id)),
            url=response.get("init_point"),
            payment_status=PAYMENT_STATUS_PAID if paid else PAYMENT_STATUS_UNPAID,
            metadata=response.get("metadata") or {},
            shipping_details=self._parse_receiver_address(response),
            line_items=[self._parse_item(item) for item in response.get("items") or []],
        )

    def expire_session(self, session_id: str) -> None:
        now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000+00:00")
        self.sdk.preference().update(session_id, {"expires": True, "expiration_date_to": now})

    def get_payment_notification(self, payment_id: str) -> Optional[PaymentNotification]:
        """Looks up a notified payment and the preference sharing its external reference."""
        result = self.sdk.payment().get(payment_id)
        payment = result.get("response") or {}
        if result.get("status") != 200 or not payment:
            logging.error(f"MERCADO PAGO >>> Payment {payment_id} not found -> {result}")
            return None

        checkout_session_id = None
        external_reference = payment.get("external_reference")
        if external_reference:
            search = self.sdk.preference().search(filters={"external_reference": external_reference})
            preferences = (search.get("response") or {}).get("elements") or []
            if preferences:
                checkout_session_id = str(preferences[0].get("id"))

        return PaymentNotification(
            payment_id=str(payment.get("id", payment_id)),
            status=payment.get("status") or "",
            checkout_session_id=checkout_session_id,
        )

    def _has_approved_payment(self, external_reference: str) -> bool:
        result = self.sdk.payment().search(filters={"external_reference": external_reference})
        payments = (result.get("response") or {}).get("results") or []
        return any(payment.get("status") == "approved" for payment in payments)

    @staticmethod
    def _build_item(item: CheckoutItem) -> Dict[str, Any]:
        body = {
            "id": item.product_id,
            "title": item.product_name,
            "quantity": item.quantity,
            "unit_price": round(float(item.price), 2),
            "currency_id": "USD",
            "category_id": item.store_id,
            "description": item.store_name,
        }
        image = (item.product_image or "").strip()
        if image.startswith("http://") or image.startswith("https://"):
            body["picture_url"] = image
        return body

    @staticmethod
    def _parse_item(item: Dict[str, Any]) -> CheckoutLineItem:
        return CheckoutLineItem(
            product_id=str(item.get("id") or ""),
            product_name=item.get("title") or "Product",
            quantity=int(item.get("quantity") or 0),
            unit_price=float(item.get("unit_price") or 0),
            store_id=item.get("category_id"),
            store_name=item.get("description") or DEFAULT_STORE_NAME,
            product_image=item.get("picture_url"),
        )

    @staticmethod
    def _parse_receiver_address(response: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        address = (response.get("shipments") or {}).get("receiver_address") or {}
        if not address:
            return None

        street = " ".join(
            str(part) for part in (address.get("street_number"), address.get("street_name")) if part
        )
        return {
            "street_address": street,
            "apt_number": address.get("apartment") or None,
            "city": address.get("city_name") or "",
            "state_province": address.get("state_name") or "",
            "zip_code": address.get("zip_code") or "",
            "country": address.get("country_name") or "",
        }
