"""Tests for the structured logging utilities."""

import logging
import time
from unittest.mock import MagicMock, patch

from spreadsheet_translator.utils.logging import (
    LogContext,
    PerformanceMetrics,
    ProgressTracker,
    StructuredLogFormatter,
    StructuredLogger,
    clear_context,
    configure_logging,
    get_extra_context,
    get_logger,
    get_request_id,
    get_run_id,
    set_extra_context,
    set_request_id,
    set_run_id,
    timed_operation,
)


def _record(message: str = "Test message") -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestContextVariables:
    """Tests for context variable management."""

    def setup_method(self) -> None:
        clear_context()

    def teardown_method(self) -> None:
        clear_context()

    def test_request_id_default_none(self) -> None:
        assert get_request_id() is None

    def test_set_and_get_run_id(self) -> None:
        set_run_id("run-456")
        assert get_run_id() == "run-456"

    def test_clear_context(self) -> None:
        """Clear context should reset all context variables."""
        set_request_id("req-123")
        set_run_id("run-456")
        set_extra_context({"sheet": "Quiz"})

        clear_context()

        assert get_request_id() is None
        assert get_run_id() is None
        assert get_extra_context() == {}


class TestPerformanceMetrics:
    """Tests for PerformanceMetrics class."""

    def test_initialization(self) -> None:
        metrics = PerformanceMetrics(operation="translate_workbook")
        assert metrics.duration_seconds == 0.0
        assert metrics.cells_processed == 0
        assert metrics.batches == 0
        assert metrics.failed_batches == 0
        assert metrics.api_calls == 0

    def test_finish_calculates_duration(self) -> None:
        metrics = PerformanceMetrics(operation="test_op")
        time.sleep(0.01)
        metrics.finish()
        assert metrics.duration_seconds > 0
        assert metrics.end_time is not None

    def test_to_dict_excludes_zero_values(self) -> None:
        metrics = PerformanceMetrics(operation="test_op", cells_processed=120)
        metrics.batches = 3
        result = metrics.to_dict()
        assert result["cells_processed"] == 120
        assert result["batches"] == 3
        assert "failed_batches" not in result
        assert "api_calls" not in result


class TestStructuredLogger:
    """Tests for StructuredLogger class."""

    def setup_method(self) -> None:
        self.logger = get_logger("test_logger")

    def test_get_logger_returns_structured_logger(self) -> None:
        assert isinstance(get_logger(__name__), StructuredLogger)
        assert isinstance(self.logger.logger, logging.Logger)

    def test_build_message_with_kwargs(self) -> None:
        msg = self.logger._build_message("Batch done", batch=2, cells=50)
        assert msg == "Batch done | batch=2, cells=50"

    def test_build_message_without_kwargs(self) -> None:
        assert self.logger._build_message("Plain") == "Plain"

    @patch.object(logging.Logger, "warning")
    def test_warning_logging(self, mock_warning: MagicMock) -> None:
        self.logger.warning("Short reply", sent=5, received=3)
        mock_warning.assert_called_once()
        assert "received=3" in mock_warning.call_args[0][0]

    @patch.object(logging.Logger, "info")
    def test_log_progress(self, mock_info: MagicMock) -> None:
        self.logger.log_progress("Translating cells", current=25, total=100)
        call_args = mock_info.call_args[0][0]
        assert "Progress: Translating cells" in call_args
        assert "25.0%" in call_args

    @patch.object(logging.Logger, "log")
    def test_log_api_call_failure(self, mock_log: MagicMock) -> None:
        """Failed backend calls are logged at ERROR level."""
        self.logger.log_api_call(
            service="openai",
            operation="translate_batch",
            duration_seconds=0.5,
            success=False,
            error_message="timeout",
        )
        level, message = mock_log.call_args[0]
        assert level == logging.ERROR
        assert "error=timeout" in message

    @patch.object(logging.Logger, "log")
    def test_log_translation_result_clean_run(self, mock_log: MagicMock) -> None:
        self.logger.log_translation_result(
            run_id="run-1",
            duration_seconds=1.0,
            total=10,
            translated=8,
            skipped=2,
            untranslated=0,
            failed_batches=0,
        )
        level, message = mock_log.call_args[0]
        assert level == logging.INFO
        assert "Translation completed" in message
        assert "translated=8" in message

    @patch.object(logging.Logger, "log")
    def test_log_translation_result_with_failures_warns(
        self, mock_log: MagicMock
    ) -> None:
        self.logger.log_translation_result(
            run_id="run-1",
            duration_seconds=1.0,
            total=10,
            translated=5,
            skipped=0,
            untranslated=5,
            failed_batches=1,
        )
        assert mock_log.call_args[0][0] == logging.WARNING


class TestLogContext:
    """Tests for LogContext context manager."""

    def setup_method(self) -> None:
        clear_context()

    def teardown_method(self) -> None:
        clear_context()

    def test_context_restores_values(self) -> None:
        set_run_id("original-run")
        set_extra_context({"original": "value"})

        with LogContext(run_id="new-run", sheet="Quiz"):
            assert get_run_id() == "new-run"
            assert get_extra_context()["sheet"] == "Quiz"

        assert get_run_id() == "original-run"
        assert get_extra_context() == {"original": "value"}

    def test_nested_contexts_merge_extra(self) -> None:
        with LogContext(run_id="run-1"):
            with LogContext(sheet="Notes"):
                assert get_run_id() == "run-1"
                assert get_extra_context() == {"sheet": "Notes"}
            assert get_extra_context() == {}


class TestTimedOperation:
    """Tests for timed_operation context manager."""

    @patch.object(StructuredLogger, "log_performance")
    def test_timed_operation_logs_metrics(self, mock_log: MagicMock) -> None:
        logger = get_logger("test")
        with timed_operation(logger, "translate_workbook") as metrics:
            metrics.cells_processed = 12

        logged_metrics = mock_log.call_args[0][0]
        assert logged_metrics.operation == "translate_workbook"
        assert logged_metrics.cells_processed == 12
        assert logged_metrics.end_time is not None


class TestProgressTracker:
    """Tests for ProgressTracker class."""

    @patch.object(StructuredLogger, "log_progress")
    def test_fraction_tracks_updates(self, _mock_log: MagicMock) -> None:
        tracker = ProgressTracker(get_logger("test"), "Translating", total=4)
        assert tracker.fraction == 0.0
        tracker.update(1)
        assert tracker.fraction == 0.25
        tracker.update(3)
        assert tracker.fraction == 1.0
        assert tracker.current == 4

    def test_fraction_with_empty_total(self) -> None:
        tracker = ProgressTracker(get_logger("test"), "Translating", total=0)
        assert tracker.fraction == 1.0

    @patch.object(StructuredLogger, "log_progress")
    def test_update_with_interval(self, mock_log: MagicMock) -> None:
        tracker = ProgressTracker(
            get_logger("test"), "Translating", total=10, log_interval=5
        )
        for _ in range(4):
            tracker.update()
        assert mock_log.call_count == 0
        tracker.update()
        assert mock_log.call_count == 1


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_with_string_level(self) -> None:
        configure_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_with_structured_formatter(self) -> None:
        configure_logging(use_structured_formatter=True)
        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, StructuredLogFormatter)


class TestStructuredLogFormatter:
    """Tests for StructuredLogFormatter class."""

    def setup_method(self) -> None:
        clear_context()

    def teardown_method(self) -> None:
        clear_context()

    def test_format_without_context(self) -> None:
        formatter = StructuredLogFormatter("%(message)s")
        assert formatter.format(_record()) == "Test message"

    def test_format_with_ids_and_extra_context(self) -> None:
        set_request_id("req-123")
        set_run_id("run-9")
        set_extra_context({"sheet": "Quiz"})
        formatter = StructuredLogFormatter("%(message)s")

        result = formatter.format(_record())

        assert result == "[request_id=req-123 run_id=run-9 sheet=Quiz] Test message"
