from __future__ import annotations

import pytest

from app import events
from app.context import correlation_scope
from app.core.events import InProcessEventBus, InternalEvent, event_bus


def test_subscribers_receive_published_events() -> None:
    bus = InProcessEventBus()
    received: list[InternalEvent] = []
    bus.subscribe("brief.approved", received.append)

    bus.publish("brief.approved", {"brief_id": "b-1"})
    bus.publish("brief.submitted", {"brief_id": "b-1"})

    assert [(item.name, item.payload["brief_id"]) for item in received] == [("brief.approved", "b-1")]


def test_unsubscribed_handler_is_not_called() -> None:
    bus = InProcessEventBus()
    received: list[InternalEvent] = []
    bus.subscribe("pipeline.accepted", received.append)
    bus.unsubscribe("pipeline.accepted", received.append)

    bus.publish("pipeline.accepted", {})

    assert received == []


def test_handler_failure_reaches_publisher() -> None:
    bus = InProcessEventBus()

    def broken(event: InternalEvent) -> None:
        raise RuntimeError("downstream failed")

    bus.subscribe("approval.escalated", broken)

    with pytest.raises(RuntimeError):
        bus.publish("approval.escalated", {})


def test_publish_fills_envelope_and_fans_out() -> None:
    received: list[InternalEvent] = []
    event_bus.subscribe("pipeline.declined", received.append)
    try:
        with correlation_scope("evt-corr-1"):
            events.publish({"event_type": "pipeline.declined", "pipeline_id": "p-9"})
    finally:
        event_bus.unsubscribe("pipeline.declined", received.append)

    envelope = received[0].payload
    assert envelope["correlation_id"] == "evt-corr-1"
    assert envelope["event_id"]
    assert envelope["occurred_at"]
    assert events.published_events[-1] is envelope
