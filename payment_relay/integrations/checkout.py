"""
Stripe Checkout delegate.

Static and dynamic checkout differ only in where the line items come from;
everything else (API key, return URL, environment tag) is forwarded verbatim
to ``stripe.checkout.Session.create``. No retries: a processor failure is
reported to the caller as a CheckoutError.
"""
import asyncio
import functools
import time
from typing import Any, Dict, List, Mapping, Optional

import stripe
import structlog

from payment_relay.config import Settings
from payment_relay.core.exceptions import CheckoutError
from payment_relay.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

STATIC = "static"
DYNAMIC = "dynamic"


def _with_query(url: str, query: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


class CheckoutDelegate:
    """Starts hosted Stripe Checkout sessions."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def create_static_session(
        self,
        product_id: str,
        quantity: int = 1,
        customer_email: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, str]:
        """
        Create a session for a single preconfigured Stripe price.

        Args:
            product_id: Stripe price ID
            quantity: Units of the price
            customer_email: Optional email prefilled on the checkout page
            metadata: Optional metadata stored on the session

        Returns:
            Dict[str, str]: ``checkout_url`` and ``session_id``
        """
        line_items = [{"price": product_id, "quantity": quantity}]
        return await self._create_session(STATIC, line_items, customer_email, metadata)

    async def create_dynamic_session(
        self,
        product_cart: List[Mapping[str, Any]],
        customer_email: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        return_url: Optional[str] = None,
    ) -> Dict[str, str]:
        """
        Create a session from a caller-built cart.

        Args:
            product_cart: Items with ``product_id`` (Stripe price ID) and ``quantity``
            customer_email: Optional email prefilled on the checkout page
            metadata: Optional metadata stored on the session
            return_url: Overrides the configured return URL for this session

        Returns:
            Dict[str, str]: ``checkout_url`` and ``session_id``
        """
        line_items = [
            {"price": item["product_id"], "quantity": item.get("quantity", 1)}
            for item in product_cart
        ]
        return await self._create_session(
            DYNAMIC, line_items, customer_email, metadata, return_url
        )

    def _session_params(
        self,
        checkout_type: str,
        line_items: List[Dict[str, Any]],
        customer_email: Optional[str],
        metadata: Optional[Mapping[str, Any]],
        return_url: Optional[str],
    ) -> Dict[str, Any]:
        return_url = return_url or self.settings.payment_return_url
        session_metadata = {str(k): str(v) for k, v in (metadata or {}).items()}
        session_metadata["checkout_type"] = checkout_type
        session_metadata["environment"] = self.settings.payment_environment

        params: Dict[str, Any] = {
            "api_key": self.settings.stripe_secret_key,
            "mode": "payment",
            "line_items": line_items,
            "success_url": _with_query(return_url, "session_id={CHECKOUT_SESSION_ID}"),
            "cancel_url": _with_query(return_url, "status=cancelled"),
            "metadata": session_metadata,
        }
        if customer_email:
            params["customer_email"] = customer_email
        return params

    async def _create_session(
        self,
        checkout_type: str,
        line_items: List[Dict[str, Any]],
        customer_email: Optional[str],
        metadata: Optional[Mapping[str, Any]],
        return_url: Optional[str] = None,
    ) -> Dict[str, str]:
        params = self._session_params(
            checkout_type, line_items, customer_email, metadata, return_url
        )
        logger.info(
            "creating_checkout_session",
            checkout_type=checkout_type,
            line_items=len(line_items),
            environment=self.settings.payment_environment,
        )

        start_time = time.time()
        loop = asyncio.get_running_loop()
        try:
            session = await loop.run_in_executor(
                None, functools.partial(stripe.checkout.Session.create, **params)
            )
        except stripe.StripeError as e:
            metrics.record_checkout_session(checkout_type, "failed", time.time() - start_time)
            raise self._wrap_error(e) from e

        metrics.record_checkout_session(checkout_type, "created", time.time() - start_time)
        logger.info(
            "checkout_session_created",
            checkout_type=checkout_type,
            session_id=session.id,
        )
        return {"checkout_url": session.url, "session_id": session.id}

    @staticmethod
    def _wrap_error(error: stripe.StripeError) -> CheckoutError:
        """Classify a Stripe error into the status reported to the caller."""
        if isinstance(error, (stripe.InvalidRequestError, stripe.CardError)):
            http_status = 400
        else:
            http_status = 502

        logger.error(
            "stripe_checkout_error",
            error_type=type(error).__name__,
            error_code=getattr(error, "code", None),
            error_message=str(error),
        )
        message = getattr(error, "user_message", None) or "Checkout session could not be created"
        return CheckoutError(message, http_status=http_status)
