import json
import logging

import pytest

from rosterwatch.gui.services.event_bus import EventBus, GUIEvent
from rosterwatch.gui.services.logging_service import LoggingService


@pytest.fixture()
def setup_logging():
    bus = EventBus()
    svc = LoggingService(capacity=5, event_bus=bus)
    svc.attach_root()
    yield svc, bus
    svc.detach_root()


def test_logging_capture_and_retrieve(setup_logging):
    svc, _ = setup_logging
    logging.getLogger("alpha").info("Hello World")
    assert any(e.message == "Hello World" for e in svc.recent())


def test_logging_capacity_eviction(setup_logging):
    svc, _ = setup_logging
    for i in range(10):
        logging.getLogger("cap").info("M%d", i)
    recents = svc.recent()
    assert len(recents) == 5  # capacity
    assert recents[0].message.endswith("5")  # first retained after evictions
    assert [e.message for e in svc.recent(2)] == ["M8", "M9"]


def test_logging_filtering(setup_logging):
    svc, _ = setup_logging
    logging.getLogger("rosterwatch.poller").warning("fetch failed")
    logging.getLogger("rosterwatch.http").info("GET /players")
    warnings = svc.filter(level="WARNING")
    assert warnings and all(e.level == "WARNING" for e in warnings)
    http = svc.filter(name_contains="http")
    assert http and all("http" in e.name for e in http)


def test_logging_event_emission(setup_logging):
    svc, bus = setup_logging
    payloads = []
    bus.subscribe(GUIEvent.LOG_RECORD_ADDED, lambda evt: payloads.append(evt.payload))
    logging.getLogger("evt").warning("Something happened")
    assert payloads and payloads[-1]["level"] == "WARNING"


def test_export_jsonl(setup_logging, tmp_path):
    svc, _ = setup_logging
    svc.clear()
    logging.getLogger("x").info("one")
    logging.getLogger("x").warning("two")
    path = tmp_path / "logs.jsonl"
    assert svc.export_jsonl(str(path), level="WARNING") == 1
    lines = path.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[0])["message"] == "two"


def test_detach_stops_capture():
    svc = LoggingService(capacity=5)
    svc.attach_root()
    svc.detach_root()
    logging.getLogger("gone").warning("not captured")
    assert svc.recent() == []
