from __future__ import annotations

import logging
import os

import uvicorn

from .env import get_settings

logger = logging.getLogger(__name__)


def _setup_prometheus_multiproc_dir() -> None:
    """Prepare the Prometheus multiprocess directory before Uvicorn forks workers.

    This ensures each process writes to a clean directory so metrics can be
    correctly aggregated by the multiprocess collector.
    """
    prom_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
    if not prom_dir:
        return

    os.makedirs(prom_dir, exist_ok=True)
    for filename in os.listdir(prom_dir):
        file_path = os.path.join(prom_dir, filename)
        if os.path.isfile(file_path):
            os.remove(file_path)


def main() -> None:
    """Main entry point for the checkout payment service."""
    logging.basicConfig(
        level=logging.DEBUG if os.environ.get("DEBUG_LOG") else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = get_settings()

    logger.info("Starting %s v%s", settings.app_name, settings.app_version)
    logger.info(
        "API will be available at: http://%s:%s%s",
        settings.api_host,
        settings.api_port,
        settings.api_prefix,
    )
    if settings.payments_disabled:
        logger.warning("Payments are disabled; payment routes will answer 503")

    # Reload only works with a single worker.
    reload = settings.api_debug
    workers = 1 if reload else settings.api_workers

    _setup_prometheus_multiproc_dir()

    uvicorn.run(
        "hostedpay.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=reload,
        workers=workers,
        log_level="info",
    )


if __name__ == "__main__":
    main()
