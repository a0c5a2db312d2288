"""Stripe HTTP client for hosted checkout sessions."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.core.config import Settings
from src.core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)


class PaymentProviderError(UpstreamFailure):
    """Raised when the payment provider rejects a request or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider_status = status_code


class StripeClient:
    """Async HTTP client for the Stripe REST API.

    Stripe takes form-encoded bodies with bracketed keys for nested
    values and authenticates with the secret key as the basic-auth user.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._base_url = settings.stripe_api_base
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> StripeClient:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def connect(self) -> None:
        """Initialize HTTP client connection."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                auth=(self._settings.stripe_secret_key, ""),
                timeout=httpx.Timeout(30.0, connect=10.0),
            )
            logger.info(f"Stripe client connected to {self._base_url}")

    async def close(self) -> None:
        """Close HTTP client connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Stripe client disconnected")

    @property
    def client(self) -> httpx.AsyncClient:
        """Get HTTP client, raising if not connected."""
        if self._client is None:
            raise PaymentProviderError("Payment client not connected")
        return self._client

    async def create_checkout_session(
        self,
        *,
        success_url: str,
        cancel_url: str,
        customer_email: str,
        client_reference_id: str,
        name: str,
        description: str,
        amount_cents: int,
        images: list[str] | None = None,
        currency: str = "usd",
    ) -> dict[str, Any]:
        """Create a hosted checkout session for a single card payment.

        Args:
            success_url: Where the provider redirects after payment.
            cancel_url: Where the provider redirects on cancel.
            customer_email: Pre-filled customer e-mail.
            client_reference_id: Our reference (the tour ID).
            name: Line item name.
            description: Line item description.
            amount_cents: Unit price in the smallest currency unit.
            images: Line item image URLs.
            currency: ISO currency code.

        Returns:
            Checkout session object as returned by the provider.

        Raises:
            PaymentProviderError: If the provider returns an error or the
                connection fails.
        """
        form = {
            "mode": "payment",
            "payment_method_types[0]": "card",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "customer_email": customer_email,
            "client_reference_id": client_reference_id,
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": currency,
            "line_items[0][price_data][unit_amount]": str(amount_cents),
            "line_items[0][price_data][product_data][name]": name,
            "line_items[0][price_data][product_data][description]": description,
        }
        for index, image in enumerate(images or []):
            form[f"line_items[0][price_data][product_data][images][{index}]"] = image

        try:
            response = await self.client.post("/v1/checkout/sessions", data=form)
        except httpx.RequestError as e:
            logger.error(f"Stripe connection error: {e}")
            raise PaymentProviderError(f"Failed to connect to payment provider: {e}") from e

        if response.status_code != 200:
            logger.error(
                f"Stripe checkout session failed: {response.status_code} - {response.text}"
            )
            raise PaymentProviderError(
                "Could not create checkout session",
                status_code=response.status_code,
            )

        session = response.json()
        logger.debug(f"Checkout session created: {session.get('id')}")
        return session
