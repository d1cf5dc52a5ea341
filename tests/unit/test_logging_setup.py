import faulthandler
import json
import logging
import sys
import tempfile
import threading
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from powerdash_core import logging_setup
from powerdash_core.logging_setup import JsonFormatter, get_logger


class JsonFormatterTests(unittest.TestCase):
    def test_includes_event_extras(self):
        record = logging.LogRecord("powerdash", logging.WARNING, __file__, 1, "Failed to fetch metrics: x", None, None)
        record.event = "tick_failed"
        record.kind = "acquisition"
        payload = json.loads(JsonFormatter().format(record))
        self.assertEqual(payload["level"], "WARNING")
        self.assertEqual(payload["msg"], "Failed to fetch metrics: x")
        self.assertEqual(payload["event"], "tick_failed")
        self.assertEqual(payload["kind"], "acquisition")

    def test_named_logger(self):
        self.assertEqual(get_logger().name, "powerdash")


class CrashHookTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        patcher = mock.patch.object(logging_setup, "log_dir", return_value=Path(self._tmp.name))
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(logging_setup.uninstall_crash_hooks)

    def test_install_keeps_fault_file_until_uninstall(self):
        before = (sys.excepthook, threading.excepthook)
        logging_setup.install_crash_hooks()
        handle = logging_setup._fault_file

        self.assertIsNotNone(handle)
        self.assertFalse(handle.closed)
        self.assertTrue(faulthandler.is_enabled())
        self.assertTrue((Path(self._tmp.name) / "fault.log").exists())
        self.assertIsNot(sys.excepthook, before[0])

        # A second install must not open another file.
        logging_setup.install_crash_hooks()
        self.assertIs(logging_setup._fault_file, handle)

        logging_setup.uninstall_crash_hooks()
        self.assertTrue(handle.closed)
        self.assertIsNone(logging_setup._fault_file)
        self.assertEqual((sys.excepthook, threading.excepthook), before)

    def test_thread_exception_is_logged_with_crash_id(self):
        logging_setup.install_crash_hooks()

        def _boom():
            raise RuntimeError("worker died")

        with self.assertLogs("powerdash", level="CRITICAL") as captured:
            worker = threading.Thread(target=_boom, name="sampler")
            worker.start()
            worker.join(5)

        record = captured.records[-1]
        self.assertEqual(record.event, "thread_exception")
        self.assertIn("sampler", record.getMessage())
        self.assertTrue(record.crash_id)


if __name__ == "__main__":
    unittest.main()
