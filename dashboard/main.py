"""Main entry point for the portfolio dashboard client."""

import asyncio
import logging
import signal
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

from .config import Config
from .http_client import ApiClient, close_http_client, get_http_client
from .jobs.refresh_job import RefreshController
from .providers.backend import BackendProvider
from .storage.alerts_repo import AlertsRepo
from .storage.local_store import LocalStore
from .storage.watchlist_repo import WatchlistRepo
from .store import StateStore
from .ui.binding import DashboardView
from .ui.screens import DashboardScreens

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def publish(view: DashboardView, output_dir: Path) -> None:
    """Print every rendered view and write chart PNGs."""
    for mount_id, text in view.binding.items().items():
        print(f"\n===== {mount_id} =====\n{text}")

    output_dir.mkdir(parents=True, exist_ok=True)
    for mount_id in view.charts.mounts():
        handle = view.charts.get(mount_id)
        (output_dir / f"{mount_id}.png").write_bytes(handle.to_png())
    logger.info("Charts written to %s", output_dir)


async def main() -> None:
    """Main application entry point."""
    load_dotenv()

    # Load configuration
    config = Config.from_env()

    # Shared HTTP client with connection pooling
    http_client = get_http_client(config.http_timeout)
    client = ApiClient(
        config.api_base_url,
        http_client=http_client,
        timeout=config.http_timeout,
        max_concurrent=config.max_concurrent_requests,
    )

    output_dir = Path(config.chart_output_dir)
    local_store = LocalStore(config.local_store_path)
    screens = DashboardScreens(config.currency_symbol, config.number_locale)
    view = DashboardView(screens=screens)
    controller = RefreshController(
        backend=BackendProvider(client),
        store=StateStore(history_capacity=config.history_capacity),
        view=view,
        watchlist_repo=WatchlistRepo(local_store),
        alerts_repo=AlertsRepo(local_store),
        notify=lambda message: print(screens.notification(message)),
        recommendation_limit=config.recommendation_limit,
        history_days=config.history_days,
        on_rendered=lambda: publish(view, output_dir),
    )

    logger.info("Starting dashboard client at %s", datetime.now(timezone.utc).isoformat())
    logger.info(
        "Configuration: api=%s, refresh_interval=%d, http_timeout=%d",
        config.api_base_url, config.refresh_interval, config.http_timeout,
    )

    stop_event = asyncio.Event()

    def async_signal_handler(signum):
        logger.info("Signal %d received, shutting down gracefully...", signum)
        stop_event.set()

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGTERM, lambda: async_signal_handler(signal.SIGTERM))
    loop.add_signal_handler(signal.SIGINT, lambda: async_signal_handler(signal.SIGINT))

    scheduler_task = None
    try:
        await controller.initial_load(config.default_holder_id)
        scheduler_task = asyncio.create_task(controller.start_scheduler(config.refresh_interval))
        await stop_event.wait()
    finally:
        logger.info("Stopping dashboard client...")
        controller.stop_scheduler()
        if scheduler_task is not None:
            scheduler_task.cancel()
            try:
                await scheduler_task
            except asyncio.CancelledError:
                pass
        view.charts.destroy_all()
        await close_http_client()
        logger.info("Shutdown complete")


def run() -> None:
    """Synchronous entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Dashboard stopped by user")
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
