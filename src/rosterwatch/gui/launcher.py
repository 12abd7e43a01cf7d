"""Launcher for the roster dashboard (`rosterwatch` / `python -m rosterwatch.gui`).

Wires the HTTP client, poller, preference store and player actions together,
then runs the Qt event loop until the window closes.
"""

from __future__ import annotations

import argparse
import logging
import sys

from rosterwatch.config import settings
from rosterwatch.core.api_client import ApiError, RosterApiClient
from rosterwatch.gui.services.event_bus import EventBus
from rosterwatch.gui.services.logging_service import LoggingService, configure_logging
from rosterwatch.gui.services.player_actions import PlayerActionService
from rosterwatch.gui.services.roster_poller import RosterPoller
from rosterwatch.gui.services.user_settings import UserSettings
from rosterwatch.gui.services.view_preferences import JsonFilePreferenceBackend, ViewPreferenceStore
from rosterwatch.gui.viewmodels.roster_viewmodel import RosterViewModel

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rosterwatch")
    p.add_argument("--api-url", default=settings.API_BASE_URL, help="Detector API base URL")
    p.add_argument(
        "--interval-ms",
        type=int,
        default=settings.POLL_INTERVAL_MS,
        help="Roster poll interval in milliseconds",
    )
    p.add_argument("--data-dir", default=settings.DATA_DIR, help="Directory for view preferences")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return p


def load_user_settings(client: RosterApiClient) -> UserSettings:
    try:
        return UserSettings.from_dict(client.get_user_settings())
    except ApiError as e:
        logger.warning("Could not load user settings, using defaults: %s", e)
        return UserSettings()


def main(argv: list[str] | None = None) -> int:  # pragma: no cover - runtime
    args = build_parser().parse_args(argv)
    if args.interval_ms <= 0:
        build_parser().error("--interval-ms must be positive")
    configure_logging(args.verbose)

    from PyQt6.QtWidgets import QApplication

    from rosterwatch.gui.main_window import MainWindow
    from rosterwatch.gui.views.roster_table_view import RosterTableView

    app = QApplication.instance() or QApplication(sys.argv)
    bus = EventBus()
    log_service = LoggingService(event_bus=bus)
    log_service.attach_root(logging.DEBUG if args.verbose else logging.INFO)

    client = RosterApiClient(args.api_url)
    store = ViewPreferenceStore(JsonFilePreferenceBackend(args.data_dir), event_bus=bus)
    poller = RosterPoller(client.get_roster, event_bus=bus)
    actions = PlayerActionService(client, event_bus=bus)
    vm = RosterViewModel(store, event_bus=bus)

    table = RosterTableView(
        vm,
        poller=poller,
        actions=actions,
        event_bus=bus,
        user_settings=load_user_settings(client),
    )
    win = MainWindow(table, event_bus=bus, logging_service=log_service)
    poller.start(args.interval_ms)
    poller.tick()
    win.show()
    try:
        return app.exec()
    finally:
        poller.shutdown()
        actions.shutdown()
        client.close()
        log_service.detach_root()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
