"""Stripe service - PaymentIntent calls against the Stripe API"""

import logging
from typing import Optional

import stripe

from ...config import STRIPE_API_VERSION, STRIPE_SECRET_KEY, STRIPE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class StripeService:
    """Service for Stripe PaymentIntent operations"""

    def __init__(self, api_key: Optional[str] = STRIPE_SECRET_KEY):
        self.client: Optional[stripe.StripeClient] = None

        if not api_key:
            logger.warning("STRIPE_SECRET_KEY not set; payment endpoints will fail until configured")
            return

        try:
            self.client = stripe.StripeClient(
                api_key,
                stripe_version=STRIPE_API_VERSION,
                http_client=stripe.HTTPXClient(timeout=STRIPE_TIMEOUT_SECONDS),
                max_network_retries=0,
            )
            logger.info("Stripe client initialized")
        except Exception as e:
            logger.error(f"Failed to initialize Stripe client: {e}")
            self.client = None

    def is_available(self) -> bool:
        """Check if the Stripe client is available"""
        return self.client is not None

    def _require_client(self) -> stripe.StripeClient:
        if not self.client:
            raise RuntimeError("Stripe client not initialized")
        return self.client

    async def create_payment_intent(
        self,
        amount_minor: int,
        currency: str,
        receipt_email: str,
        description: str,
        metadata: dict,
    ) -> stripe.PaymentIntent:
        """
        Create a PaymentIntent.

        Args:
            amount_minor: Amount in the currency's smallest unit (øre for DKK)
            currency: Lowercase ISO currency code
            receipt_email: Where Stripe sends the receipt
            description: Shown on the Stripe dashboard
            metadata: Booking and customer references
        """
        client = self._require_client()
        try:
            intent = await client.v1.payment_intents.create_async(
                params={
                    "amount": amount_minor,
                    "currency": currency,
                    "metadata": metadata,
                    "description": description,
                    "receipt_email": receipt_email,
                    "automatic_payment_methods": {"enabled": True},
                }
            )
            logger.info(f"💳 Created payment intent {intent.id} for {amount_minor} {currency}")
            return intent
        except stripe.StripeError as e:
            logger.error(f"❌ Error creating payment intent: {e.user_message or str(e)}")
            raise

    async def retrieve_payment_intent(self, payment_intent_id: str) -> stripe.PaymentIntent:
        """Fetch the authoritative state of a PaymentIntent"""
        client = self._require_client()
        try:
            return await client.v1.payment_intents.retrieve_async(payment_intent_id)
        except stripe.StripeError as e:
            logger.error(f"❌ Error retrieving payment intent {payment_intent_id}: {e.user_message or str(e)}")
            raise


# Singleton instance
stripe_service = StripeService()
