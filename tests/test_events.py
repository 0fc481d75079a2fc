"""
Tests for the Event System (Observer Pattern)

Tests the dispatcher and the structured event logger.
"""

import json
import logging
from datetime import datetime
from unittest.mock import Mock

from account_demo.accounts import BankAccount
from account_demo.events import (
    DomainEvent, EventPayload, EventDispatcher,
    create_account_event, log_event_handler
)
from account_demo.logging_config import JSONFormatter


class TestEventPayload:
    """Test EventPayload creation and serialization"""

    def test_event_payload_creation(self):
        """Test creating event payloads"""
        event = EventPayload(
            event_type=DomainEvent.ACCOUNT_CREATED,
            entity_type="account",
            entity_id="acc-123",
            data={"available": 6.0, "present": 10.0}
        )

        assert event.event_type == DomainEvent.ACCOUNT_CREATED
        assert event.entity_type == "account"
        assert event.data["present"] == 10.0
        assert isinstance(event.timestamp, datetime)
        assert len(event.event_id) > 0

    def test_event_payload_serialization(self):
        """Test event payload serializes with an ISO timestamp"""
        original = EventPayload(
            event_type=DomainEvent.ACCOUNT_UPDATE_REJECTED,
            entity_type="account",
            entity_id="acc-456",
            data={"error": "available_below_minimum"}
        )

        event_dict = original.to_dict()
        assert event_dict['event_type'] == "account.update_rejected"
        assert event_dict['entity_id'] == "acc-456"
        assert event_dict["data"] == {"error": "available_below_minimum"}
        assert event_dict["event_id"] == original.event_id
        assert datetime.fromisoformat(event_dict["timestamp"]) == original.timestamp

    def test_create_account_event(self):
        """Test account events carry a balance snapshot plus extras"""
        account = BankAccount(6, 10)
        event = create_account_event(DomainEvent.ACCOUNT_COPIED, account, source_id="src")

        assert event.entity_id == account.id
        assert event.data == {"available": 6.0, "present": 10.0, "source_id": "src"}


class TestEventDispatcher:
    """Test the event dispatcher"""

    def _event(self, event_type=DomainEvent.ACCOUNT_CREATED):
        return EventPayload(event_type=event_type, entity_type="account", entity_id="acc-1", data={})

    def test_subscribe_and_publish_single_event(self):
        """Test a specific handler only sees its event type"""
        dispatcher = EventDispatcher()
        handler = Mock()
        dispatcher.subscribe(DomainEvent.ACCOUNT_CREATED, handler)

        created = self._event()
        dispatcher.publish(created)
        dispatcher.publish(self._event(DomainEvent.ACCOUNT_RELEASED))

        handler.assert_called_once_with(created)

    def test_global_handler_sees_everything(self):
        """Test subscribe_all"""
        dispatcher = EventDispatcher()
        handler = Mock()
        dispatcher.subscribe_all(handler)

        dispatcher.publish(self._event())
        dispatcher.publish(self._event(DomainEvent.ACCOUNT_UPDATED))

        assert handler.call_count == 2

    def test_unsubscribe(self):
        """Test handlers can be removed, and removing twice is harmless"""
        dispatcher = EventDispatcher()
        handler = Mock()
        dispatcher.subscribe(DomainEvent.ACCOUNT_CREATED, handler)
        dispatcher.subscribe_all(handler)

        dispatcher.unsubscribe(DomainEvent.ACCOUNT_CREATED, handler)
        dispatcher.unsubscribe_all(handler)
        dispatcher.unsubscribe(DomainEvent.ACCOUNT_CREATED, handler)
        dispatcher.unsubscribe_all(handler)

        dispatcher.publish(self._event())
        handler.assert_not_called()

    def test_handler_error_isolated(self):
        """Test one failing handler does not stop the others"""
        dispatcher = EventDispatcher()
        failing = Mock(side_effect=RuntimeError("boom"))
        working = Mock()
        dispatcher.subscribe(DomainEvent.ACCOUNT_CREATED, failing)
        dispatcher.subscribe_all(working)

        dispatcher.publish(self._event())

        failing.assert_called_once()
        working.assert_called_once()

    def test_handler_count_and_clear(self):
        """Test counting and clearing handlers"""
        dispatcher = EventDispatcher()
        dispatcher.subscribe(DomainEvent.ACCOUNT_CREATED, Mock())
        dispatcher.subscribe(DomainEvent.ACCOUNT_UPDATED, Mock())
        dispatcher.subscribe_all(Mock())

        assert dispatcher.get_handler_count(DomainEvent.ACCOUNT_CREATED) == 1
        assert dispatcher.get_handler_count() == 3

        dispatcher.clear()
        assert dispatcher.get_handler_count() == 0


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestLogEventHandler:
    """Test the structured event logger"""

    def setup_method(self):
        """Set up test fixtures"""
        self.logger = logging.getLogger("account_demo.test_events")
        self.logger.propagate = False
        self.capture = _ListHandler()
        self.logger.addHandler(self.capture)
        self.logger.setLevel(logging.DEBUG)

    def teardown_method(self):
        self.logger.removeHandler(self.capture)

    def test_records_carry_event_fields(self):
        """Test the event becomes a structured record"""
        handler = log_event_handler(self.logger)
        event = EventPayload(
            event_type=DomainEvent.ACCOUNT_UPDATED,
            entity_type="account",
            entity_id="acc-9",
            data={"available": 8.0}
        )
        handler(event)

        record = self.capture.records[0]
        assert record.levelno == logging.INFO
        assert record.action == "account.updated"
        assert record.resource == "account:acc-9"
        assert record.correlation_id == event.event_id
        assert record.extra == event.to_dict()
        assert record.extra["data"] == {"available": 8.0}

        entry = json.loads(JSONFormatter().format(record))
        assert entry["action"] == "account.updated"
        assert entry["extra"]["event_type"] == "account.updated"
        assert entry["extra"]["entity_id"] == "acc-9"
        assert entry["extra"]["data"]["available"] == 8.0

    def test_rejections_are_warnings(self):
        """Test rejected updates and defaulted creations log at warning"""
        handler = log_event_handler(self.logger)
        for event_type in (DomainEvent.ACCOUNT_UPDATE_REJECTED, DomainEvent.ACCOUNT_DEFAULTED):
            handler(EventPayload(event_type=event_type, entity_type="account", entity_id="a", data={}))

        assert [r.levelno for r in self.capture.records] == [logging.WARNING, logging.WARNING]

    def test_respects_logger_level(self):
        """Test records below the logger level are dropped"""
        self.logger.setLevel(logging.WARNING)
        handler = log_event_handler(self.logger)
        handler(EventPayload(event_type=DomainEvent.ACCOUNT_CREATED, entity_type="account", entity_id="a", data={}))

        assert self.capture.records == []
