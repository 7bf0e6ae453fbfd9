"""
Unit tests for ServiceEvents.

Tests follow AAA (Arrange, Act, Assert) pattern.
"""

import logging

from modelservice.services import ServiceEvent, ServiceEvents, ServiceEventType


class TestServiceEvent:
    """Tests for the ServiceEvent dataclass."""

    def test_timestamp_is_set(self):
        event = ServiceEvent(type=ServiceEventType.CREATED, service="pictures", data={})

        assert event.timestamp is not None


class TestServiceEvents:
    """Tests for subscribe / emit."""

    def test_listeners_called_in_subscription_order(self):
        """
        Test listeners run synchronously in order.

        Arrange: Two listeners on created
        Act: Emit created
        Assert: Both called in order with the event
        """
        # Arrange
        events = ServiceEvents("pictures")
        calls = []
        events.subscribe(ServiceEventType.CREATED, lambda event: calls.append(("first", event.data)))
        events.subscribe(ServiceEventType.CREATED, lambda event: calls.append(("second", event.data)))

        # Act
        emitted = events.emit(ServiceEventType.CREATED, {"id": 1})

        # Assert
        assert calls == [("first", {"id": 1}), ("second", {"id": 1})]
        assert emitted.type == ServiceEventType.CREATED
        assert emitted.service == "pictures"

    def test_only_matching_event_type_is_delivered(self):
        events = ServiceEvents("pictures")
        calls = []
        events.subscribe(ServiceEventType.DELETED, calls.append)

        events.emit(ServiceEventType.UPDATED, {"id": 1})

        assert calls == []

    def test_string_event_type_is_accepted(self):
        events = ServiceEvents("pictures")
        calls = []
        events.subscribe("updated", calls.append)

        events.emit(ServiceEventType.UPDATED, {"id": 1})

        assert len(calls) == 1

    def test_failing_listener_is_logged_and_skipped(self, caplog):
        """
        Test a raising listener neither propagates nor blocks later ones.

        Arrange: Raising listener followed by a recording one
        Act: Emit
        Assert: Second listener called, error logged
        """
        # Arrange
        events = ServiceEvents("pictures", log=logging.getLogger("test.events"))
        calls = []

        def broken(event):
            raise RuntimeError("listener down")

        events.subscribe(ServiceEventType.CREATED, broken)
        events.subscribe(ServiceEventType.CREATED, calls.append)
        caplog.set_level(logging.ERROR, logger="test.events")

        # Act
        events.emit(ServiceEventType.CREATED, {"id": 1})

        # Assert
        assert len(calls) == 1
        assert any("Listener failed" in record.getMessage() for record in caplog.records)

    def test_unsubscribe(self):
        events = ServiceEvents("pictures")
        calls = []
        events.subscribe(ServiceEventType.CREATED, calls.append)

        events.unsubscribe(ServiceEventType.CREATED, calls.append)
        events.emit(ServiceEventType.CREATED, {"id": 1})

        assert calls == []
        assert events.listener_count(ServiceEventType.CREATED) == 0
