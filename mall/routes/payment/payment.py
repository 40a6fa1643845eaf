import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlmodel import Session, select

from mall.auth.auth import AuthRouter
from mall.configuration.settings import Configuration
from mall.core.exceptions.app_exception import AppHttpException
from mall.core.exceptions.checkout import CheckoutFinalizationError
from mall.database.connection import get_session
from mall.email import email_service
from mall.integration.mercadopago import MercadoPagoCheckoutGateway
from mall.models.user.user import User
from mall.schemas.payment.payment import (
    CheckoutCompleteRequest,
    CheckoutCompletionResponse,
    CheckoutPayload,
    CheckoutSessionResponse,
)
from mall.services.payment.checkout_completion import (
    discard_unpaid_checkout,
    finalize_checkout_session,
    find_finalized_orders,
    retrieve_checkout_session,
)
from mall.services.payment.checkout_session import start_checkout_session
from mall.services.payment.checkout_validation import validate_checkout_payload

configuration = Configuration()
db_session = get_session
get_current_user = AuthRouter().get_current_user


def get_checkout_gateway() -> Optional[MercadoPagoCheckoutGateway]:
    if configuration.environment == "production":
        token = configuration.mercado_pago_access_token_prod
    else:
        token = configuration.mercado_pago_access_token_test

    if not token:
        logging.error("CHECKOUT >>> Mercado Pago access token not configured")
        return None
    return MercadoPagoCheckoutGateway()


class PaymentRouter(APIRouter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.add_api_route(
            "/api/payments/checkout-session",
            self.create_checkout_session,
            methods=["POST"],
            response_model=CheckoutSessionResponse,
            response_model_by_alias=True,
        )
        self.add_api_route(
            "/api/payments/checkout-complete",
            self.complete_checkout_session,
            methods=["POST"],
            response_model=CheckoutCompletionResponse,
            response_model_by_alias=True,
        )
        self.add_api_route("/api/payments/webhook", self.handle_webhook, methods=["POST"])

    def create_checkout_session(
        self,
        payload: CheckoutPayload,
        current_user: User = Depends(get_current_user),
        session: Session = Depends(db_session),
        gateway: Optional[MercadoPagoCheckoutGateway] = Depends(get_checkout_gateway),
    ):
        is_valid, error = validate_checkout_payload(payload)
        if not is_valid:
            raise AppHttpException(status_code=400, detail=error)

        if gateway is None:
            raise AppHttpException(status_code=500, detail="Payments are not configured. Please contact support.")

        try:
            checkout_session = start_checkout_session(gateway, session, current_user, payload)
        except CheckoutFinalizationError as e:
            raise AppHttpException(status_code=e.status_code, detail=e.message)
        except Exception as e:
            logging.error(f"CHECKOUT >>> Unable to start checkout for user {current_user.id} -> {e}")
            raise AppHttpException(status_code=500, detail="Failed to start checkout. Please try again.")

        return CheckoutSessionResponse(
            success=True,
            checkout_url=checkout_session.url,
            session_id=checkout_session.id,
        )

    def complete_checkout_session(
        self,
        data: CheckoutCompleteRequest,
        background_tasks: BackgroundTasks,
        current_user: User = Depends(get_current_user),
        session: Session = Depends(db_session),
        gateway: Optional[MercadoPagoCheckoutGateway] = Depends(get_checkout_gateway),
    ):
        session_id = (data.session_id or "").strip()
        if not session_id:
            raise AppHttpException(status_code=400, detail="Missing checkout session identifier.")

        finalized = find_finalized_orders(session, session_id)
        if finalized:
            if any(order.user_id != current_user.id for order in finalized):
                raise AppHttpException(status_code=403, detail="You do not have permission to finalize this order.")

            logging.info(f"CHECKOUT >>> Session {session_id} already processed")
            return CheckoutCompletionResponse(
                success=True,
                message="Order already processed.",
                order_ids=[order.id for order in finalized],
            )

        try:
            checkout_session = retrieve_checkout_session(gateway, session_id)
            orders = finalize_checkout_session(session, checkout_session, expected_user_id=current_user.id)
        except CheckoutFinalizationError as e:
            logging.warning(f"CHECKOUT >>> Session {session_id} not finalized -> {e.message}")
            raise AppHttpException(status_code=e.status_code, detail=e.message)
        except Exception as e:
            session.rollback()
            logging.error(f"CHECKOUT >>> Unable to finalize session {session_id} -> {e}")
            raise AppHttpException(status_code=500, detail="Failed to complete checkout. Please try again.")

        email_service.send_order_confirmation_email(
            current_user.email,
            current_user.full_name,
            orders,
            background_tasks,
        )

        return CheckoutCompletionResponse(
            success=True,
            message="Order completed successfully.",
            order_ids=[order.id for order in orders],
        )

    async def handle_webhook(
        self,
        request: Request,
        background_tasks: BackgroundTasks,
        session: Session = Depends(db_session),
        gateway: Optional[MercadoPagoCheckoutGateway] = Depends(get_checkout_gateway),
    ):
        try:
            body = await request.json()
        except ValueError:
            return {"status": "ignored"}

        logging.info(f"MERCADO PAGO >>> Webhook received: {body}")

        if not isinstance(body, dict) or body.get("type") != "payment":
            return {"status": "ignored"}

        payment_id = (body.get("data") or {}).get("id")
        if not payment_id:
            return {"status": "no_payment_id"}

        if gateway is None:
            raise AppHttpException(status_code=500, detail="Payment webhook is not configured.")

        try:
            notification = gateway.get_payment_notification(str(payment_id))
        except Exception as e:
            logging.error(f"MERCADO PAGO >>> Unable to fetch payment {payment_id} -> {e}")
            return {"status": "payment_not_found"}

        if notification is None or not notification.checkout_session_id:
            return {"status": "payment_not_found"}

        session_id = notification.checkout_session_id
        try:
            if notification.status == "approved":
                if find_finalized_orders(session, session_id):
                    return {"status": "already_processed"}

                checkout_session = retrieve_checkout_session(gateway, session_id)
                orders = finalize_checkout_session(session, checkout_session, expected_user_id=None)
                self._notify_customer(session, orders, background_tasks)
                return {"status": "ok", "orderIds": [order.id for order in orders]}

            if notification.status == "cancelled":
                removed = discard_unpaid_checkout(session, gateway, session_id)
                return {"status": "expired", "removed": removed}
        except CheckoutFinalizationError as e:
            logging.warning(f"MERCADO PAGO >>> Webhook for session {session_id} not processed -> {e.message}")
            raise AppHttpException(status_code=e.status_code, detail=e.message)
        except Exception as e:
            session.rollback()
            logging.error(f"MERCADO PAGO >>> Webhook processing failed for session {session_id} -> {e}")
            raise AppHttpException(status_code=500, detail="Payment webhook processing failed.")

        return {"status": "ignored"}

    @staticmethod
    def _notify_customer(session: Session, orders, background_tasks: BackgroundTasks) -> None:
        if not orders:
            return
        user = session.exec(select(User).where(User.id == orders[0].user_id)).first()
        if user:
            email_service.send_order_confirmation_email(user.email, user.full_name, orders, background_tasks)
