"""
Tests for shared_utils.logging_utils.

Covers get_scoped_logger(), the log_execution() decorator and ContextualLogger
including bound context.
"""

from unittest.mock import patch

import pytest
import structlog

from shared_utils.logging_utils import ContextualLogger, get_scoped_logger, log_execution
from shared_utils.constants import LogScope


class TestGetScopedLogger:
    def test_returns_bound_logger(self) -> None:
        logger = get_scoped_logger(LogScope.API)
        assert callable(getattr(logger, "info", None))
        assert callable(getattr(logger, "error", None))

    def test_different_scopes(self) -> None:
        for scope in (LogScope.API, LogScope.MATCHING, LogScope.PIPELINE, LogScope.ADAPTER, LogScope.WORKER):
            assert get_scoped_logger(scope) is not None


class TestLogExecution:
    def test_passes_through_return_value(self) -> None:
        @log_execution(scope=LogScope.PIPELINE)
        def add(a: int, b: int) -> int:
            return a + b

        assert add(2, 3) == 5

    def test_propagates_exception(self) -> None:
        @log_execution(scope=LogScope.PIPELINE)
        def boom() -> None:
            raise ValueError("oops")

        with pytest.raises(ValueError, match="oops"):
            boom()

    def test_preserves_function_name(self) -> None:
        @log_execution(scope=LogScope.PIPELINE)
        def my_func() -> None:
            pass

        assert my_func.__name__ == "my_func"

    def test_logs_start_and_success(self) -> None:
        with patch("shared_utils.logging_utils.get_scoped_logger") as mock_get:
            @log_execution(scope=LogScope.PIPELINE)
            def run(x: int) -> int:
                return x

            run(1)

        mock_get.assert_called_with(LogScope.PIPELINE)
        events = [c.args[0] for c in mock_get.return_value.info.call_args_list]
        assert events == ["run_start", "run_success"]

    def test_logs_failure(self) -> None:
        with patch("shared_utils.logging_utils.get_scoped_logger") as mock_get:
            @log_execution(scope=LogScope.PIPELINE)
            def fail() -> None:
                raise RuntimeError("nope")

            with pytest.raises(RuntimeError):
                fail()

        kwargs = mock_get.return_value.error.call_args.kwargs
        assert mock_get.return_value.error.call_args.args[0] == "fail_failed"
        assert kwargs["error_type"] == "RuntimeError"


class TestContextualLogger:
    def test_all_levels_callable(self) -> None:
        cl = ContextualLogger(scope=LogScope.API)
        for method_name in ("info", "debug", "warning", "error"):
            assert callable(getattr(cl, method_name))

    def test_info_does_not_raise(self) -> None:
        ContextualLogger(scope=LogScope.API).info("test_event", key="value")

    def test_error_does_not_raise(self) -> None:
        ContextualLogger(scope=LogScope.ERROR_HANDLER).error("bad_thing_happened", detail="x")

    def test_scope_stored(self) -> None:
        cl = ContextualLogger(scope=LogScope.WORKER)
        assert cl.scope == LogScope.WORKER

    def test_bind_carries_meeting_id(self) -> None:
        bound = ContextualLogger(scope=LogScope.PIPELINE).bind(meeting_id="m-1")
        context = structlog.get_context(bound.logger)
        assert context["scope"] == LogScope.PIPELINE
        assert context["meeting_id"] == "m-1"
        assert bound.scope == LogScope.PIPELINE

    def test_bind_leaves_parent_untouched(self) -> None:
        parent = ContextualLogger(scope=LogScope.PIPELINE)
        parent.bind(meeting_id="m-1")
        assert "meeting_id" not in structlog.get_context(parent.logger)
