"""Payment intent metadata lookup."""

from affiliate_revenue.services.payment_intent.client import PaymentIntentClient
from affiliate_revenue.services.payment_intent.models import PaymentIntentMetadata

__all__ = ["PaymentIntentClient", "PaymentIntentMetadata"]
