"""
Health checks for the relay.

Reports liveness plus a summary of the status store. The processor is not
probed: checkout and webhook traffic surface Stripe problems directly.
"""
from typing import TYPE_CHECKING, Any, Dict

import structlog

from payment_relay.config import Settings

if TYPE_CHECKING:
    from payment_relay.core.status_store import StatusStore

logger = structlog.get_logger(__name__)


class HealthCheck:
    """Health check service for the relay and its status store."""

    def __init__(self, store: "StatusStore", settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def check_store(self) -> Dict[str, Any]:
        """
        Summarize the status store.

        A store whose last save failed is reported as degraded: memory is
        still correct but the file has fallen behind.
        """
        degraded = self.store.last_save_ok is False
        if degraded:
            logger.warning("status_store_degraded", path=str(self.store.path))
        return {
            "status": "degraded" if degraded else "healthy",
            "service": "status_store",
            "path": str(self.store.path),
            "records": len(self.store),
            "last_save_ok": self.store.last_save_ok,
        }

    async def check_all(self) -> Dict[str, Any]:
        """
        Run all health checks.

        Returns:
            Dict[str, Any]: Overall health status
        """
        checks = {"status_store": self.check_store()}
        all_healthy = all(check["status"] == "healthy" for check in checks.values())
        return {
            "status": "healthy" if all_healthy else "degraded",
            "checks": checks,
            "message": f"{self.settings.app_name} running in {self.settings.payment_environment}",
        }
