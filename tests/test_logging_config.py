"""Tests for setup_logging functionality."""
import logging
from logging.handlers import RotatingFileHandler
import os
import subprocess
import sys
import tempfile

from src.shared.logging_config import setup_logging


class TestSetupLogging:
    """Tests for setup_logging idempotency."""

    def setup_method(self):
        """Remember handlers installed by pytest."""
        root_logger = logging.getLogger()
        self._original_handlers = list(root_logger.handlers)
        self._original_level = root_logger.level

    def teardown_method(self):
        """Remove handlers added by the test."""
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            if handler not in self._original_handlers:
                root_logger.removeHandler(handler)
                handler.close()
        root_logger.setLevel(self._original_level)

    def test_console_handler_not_duplicated_on_multiple_calls(self):
        """Calling setup_logging multiple times should not add duplicate console handlers.

        This test runs in a subprocess to avoid pytest's log capture interference.
        """
        test_code = '''
import logging
from logging.handlers import RotatingFileHandler
import sys

root_logger = logging.getLogger()
for handler in root_logger.handlers[:]:
    root_logger.removeHandler(handler)
    handler.close()

from src.shared.logging_config import setup_logging

setup_logging(None)
setup_logging(None)
setup_logging(None)

console_handlers = [
    h for h in root_logger.handlers
    if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
]
file_handlers = [h for h in root_logger.handlers if isinstance(h, RotatingFileHandler)]

if len(console_handlers) != 1 or file_handlers:
    print(f"FAIL: {root_logger.handlers}")
    sys.exit(1)
print("PASS")
sys.exit(0)
'''
        result = subprocess.run(
            [sys.executable, '-c', test_code],
            capture_output=True,
            text=True,
            cwd=os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        )
        assert result.returncode == 0, f"Test failed: {result.stdout} {result.stderr}"

    def test_file_handler_not_duplicated_on_multiple_calls(self):
        """Calling setup_logging multiple times should not add duplicate file handlers."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, "reporter.log")

            setup_logging(log_file)
            setup_logging(log_file)
            setup_logging(log_file)

            file_handlers = [
                h for h in logging.getLogger().handlers
                if isinstance(h, RotatingFileHandler)
            ]
            assert len(file_handlers) == 1, f"Expected 1 file handler, got {len(file_handlers)}"
            self.teardown_method()

    def test_changed_rotation_settings_replace_handler(self, tmp_path):
        """A second call with different rotation settings reconfigures the file handler."""
        log_file = str(tmp_path / "reporter.log")
        setup_logging(log_file, max_bytes=1024, backup_count=1)
        setup_logging(log_file, max_bytes=2048, backup_count=2)

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 2048
        assert file_handlers[0].backupCount == 2

    def test_creates_log_directory(self, tmp_path):
        log_file = tmp_path / "nested" / "logs" / "reporter.log"
        setup_logging(str(log_file))
        logging.getLogger().info("delivery attempt recorded")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert log_file.exists()
        assert "INFO - delivery attempt recorded" in log_file.read_text()

    def test_level_applied(self, tmp_path):
        setup_logging(str(tmp_path / "reporter.log"), level=logging.DEBUG)
        assert logging.getLogger().level == logging.DEBUG
