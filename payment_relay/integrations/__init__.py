"""External integrations for payment processing."""
from .checkout import CheckoutDelegate
from .webhook_handler import WebhookReceiver, WebhookResult

__all__ = ["CheckoutDelegate", "WebhookReceiver", "WebhookResult"]
