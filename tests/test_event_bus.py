"""
Tests for EventBus emission and error handling in engine/events.py.
"""
import io
import sys
import unittest

from engine.events import EVT_NODE_DISCOVERED, WILDCARD, EventBus, ExplorationEvent

class TestEventBus(unittest.TestCase):
    def setUp(self):
        self.bus = EventBus()
        self.calls = []

        # Save stderr to avoid cluttering test output and to assert on it
        self.saved_stderr = sys.stderr
        self.mock_stderr = io.StringIO()
        sys.stderr = self.mock_stderr

    def tearDown(self):
        sys.stderr = self.saved_stderr

    def _success_handler_1(self, event):
        self.calls.append("success_1")

    def _success_handler_2(self, event):
        self.calls.append("success_2")

    def _fail_handler(self, event):
        self.calls.append("fail")
        raise ValueError("Intentional error for testing")

    def _wildcard_handler(self, event):
        self.calls.append("wildcard")

    def test_emit_continues_after_handler_exception(self):
        self.bus.subscribe(EVT_NODE_DISCOVERED, self._success_handler_1)
        self.bus.subscribe(EVT_NODE_DISCOVERED, self._fail_handler)
        self.bus.subscribe(EVT_NODE_DISCOVERED, self._success_handler_2)

        self.bus.emit(ExplorationEvent(event_key=EVT_NODE_DISCOVERED, source="origin"))

        self.assertEqual(self.calls, ["success_1", "fail", "success_2"])

    def test_emit_logs_error_to_stderr(self):
        self.bus.subscribe("test.error", self._fail_handler)

        self.bus.emit(ExplorationEvent(event_key="test.error", source="origin"))

        stderr_output = self.mock_stderr.getvalue()
        self.assertIn("[EventBus] Handler error on 'test.error': Intentional error for testing", stderr_output)

    def test_wildcard_runs_after_specific_handlers(self):
        self.bus.subscribe(WILDCARD, self._wildcard_handler)
        self.bus.subscribe(EVT_NODE_DISCOVERED, self._fail_handler)

        self.bus.emit(ExplorationEvent(event_key=EVT_NODE_DISCOVERED, source="origin"))

        self.assertEqual(self.calls, ["fail", "wildcard"])

    def test_unsubscribe_removes_only_that_handler(self):
        self.bus.subscribe(EVT_NODE_DISCOVERED, self._success_handler_1)
        self.bus.subscribe(EVT_NODE_DISCOVERED, self._success_handler_2)
        self.bus.unsubscribe(EVT_NODE_DISCOVERED, self._success_handler_1)
        self.bus.unsubscribe("never.subscribed", self._success_handler_1)

        self.bus.emit(ExplorationEvent(event_key=EVT_NODE_DISCOVERED, source="origin"))

        self.assertEqual(self.calls, ["success_2"])

    def test_event_data_defaults_to_fresh_dict(self):
        a = ExplorationEvent(event_key="x", source="origin")
        b = ExplorationEvent(event_key="x", source="origin")
        a.data["k"] = 1
        self.assertEqual(b.data, {})
        self.assertIsNone(a.target)

    def test_unsubscribe_bound_method_by_fresh_reference(self):
        self.bus.subscribe(EVT_NODE_DISCOVERED, self._success_handler_1)
        self.bus.subscribe(WILDCARD, self._wildcard_handler)

        # Each attribute access builds a new bound-method object
        self.bus.unsubscribe(EVT_NODE_DISCOVERED, self._success_handler_1)
        self.bus.unsubscribe(WILDCARD, self._wildcard_handler)
        self.bus.emit(ExplorationEvent(event_key=EVT_NODE_DISCOVERED, source="origin"))

        self.assertEqual(self.calls, [])

if __name__ == '__main__':
    unittest.main()
