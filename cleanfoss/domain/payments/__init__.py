"""Payments domain - Stripe payment intents and booking confirmation"""

from .router import router

__all__ = ["router"]
