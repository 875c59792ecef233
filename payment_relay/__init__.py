"""Payment relay: Stripe checkout delegation, webhook status capture and a file-backed status cache."""

__version__ = "0.1.0"
