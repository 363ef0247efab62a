"""Service lifecycle manager."""

from __future__ import annotations

from degen_bot.log import get_logger
from degen_bot.services.base import Service

logger = get_logger(__name__)


class ServiceManager:
    """Starts services in registration order and stops them in reverse."""

    def __init__(self) -> None:
        self._services: list[Service] = []
        self._started: list[Service] = []

    def register(self, service: Service) -> None:
        self._services.append(service)

    async def start_all(self) -> None:
        for service in self._services:
            await service.start()
            self._started.append(service)
        logger.info("all_services_started", services=[s.service_name for s in self._started])

    async def stop_all(self) -> None:
        """Stop every started service; one failing does not keep the others running."""
        while self._started:
            service = self._started.pop()
            try:
                await service.stop()
            except Exception as e:
                logger.error("service_stop_error", service=service.service_name, error=str(e))
        logger.info("all_services_stopped")

    async def health_check_all(self) -> dict[str, bool]:
        return {s.service_name: await s.health_check() for s in self._services}
