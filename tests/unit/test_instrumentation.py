"""
Unit tests for operation logging.

Tests verify:
- log_execution levels for success, slow calls, domain and unexpected errors
- Exceptions are re-raised unchanged
- InstrumentedService wraps public methods only
"""

import logging
from unittest.mock import patch

import pytest

from src.domain.exceptions import MemberNotFound
from src.domain.instrumentation import InstrumentedService, log_execution

LOGGER_NAME = "src.domain.instrumentation"


class Greeter:
    greeting = "hello"

    def greet(self, name: str) -> str:
        return f"{self.greeting} {name}"

    def lookup(self, member_id: str) -> None:
        raise MemberNotFound(member_id)

    def explode(self) -> None:
        raise RuntimeError("boom")

    def _private(self) -> str:
        return "private"


class TestLogExecution:
    """Tests for the log_execution decorator."""

    def test_returns_result_and_logs_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        @log_execution("SERVICE: add")
        def add(a: int, b: int) -> int:
            return a + b

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            assert add(2, 3) == 5

        messages = [r.getMessage() for r in caplog.records]
        assert messages[0] == "SERVICE: add: start"
        assert messages[1].startswith("SERVICE: add: success")
        assert all(r.levelno == logging.DEBUG for r in caplog.records)

    def test_preserves_function_metadata(self) -> None:
        @log_execution("op")
        def documented() -> None:
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."

    def test_slow_call_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        @log_execution("SERVICE: slow", slow_threshold_ms=1000)
        def slow() -> str:
            return "done"

        # perf_counter readings 2 seconds apart
        with patch("src.domain.instrumentation.time.perf_counter", side_effect=[0.0, 2.0]):
            with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
                assert slow() == "done"

        warning = caplog.records[-1]
        assert warning.levelno == logging.WARNING
        assert warning.getMessage() == "SERVICE: slow: slow execution (2000.0ms)"

    def test_domain_error_logs_warning_and_reraises(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        @log_execution("SERVICE: find")
        def find() -> None:
            raise MemberNotFound("abc")

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            with pytest.raises(MemberNotFound):
                find()

        failure = caplog.records[-1]
        assert failure.levelno == logging.WARNING
        assert "MemberNotFound" in failure.getMessage()

    def test_unexpected_error_logs_error_and_reraises(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        @log_execution("SERVICE: crash")
        def crash() -> None:
            raise RuntimeError("boom")

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            with pytest.raises(RuntimeError, match="boom"):
                crash()

        failure = caplog.records[-1]
        assert failure.levelno == logging.ERROR
        assert "RuntimeError: boom" in failure.getMessage()

    def test_custom_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        custom = logging.getLogger("tests.custom")

        @log_execution("op", log=custom)
        def op() -> None:
            return None

        with caplog.at_level(logging.DEBUG, logger="tests.custom"):
            op()

        assert {r.name for r in caplog.records} == {"tests.custom"}


class TestInstrumentedService:
    """Tests for the InstrumentedService wrapper."""

    def test_delegates_public_method(self, caplog: pytest.LogCaptureFixture) -> None:
        service = InstrumentedService(Greeter())

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            assert service.greet("Ada") == "hello Ada"

        assert caplog.records[0].getMessage() == "SERVICE: Greeter.greet: start"

    def test_layer_prefix(self, caplog: pytest.LogCaptureFixture) -> None:
        service = InstrumentedService(Greeter(), layer="REPOSITORY")

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            service.greet("Ada")

        assert caplog.records[0].getMessage().startswith("REPOSITORY: Greeter.greet")

    def test_non_callable_attribute_passthrough(self) -> None:
        assert InstrumentedService(Greeter()).greeting == "hello"

    def test_private_method_not_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        service = InstrumentedService(Greeter())

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            assert service._private() == "private"

        assert caplog.records == []

    def test_domain_error_propagates(self) -> None:
        with pytest.raises(MemberNotFound):
            InstrumentedService(Greeter()).lookup("abc")

    def test_unexpected_error_propagates(self) -> None:
        with pytest.raises(RuntimeError):
            InstrumentedService(Greeter()).explode()

    def test_target_exposed(self) -> None:
        greeter = Greeter()
        assert InstrumentedService(greeter).target is greeter

    def test_unknown_attribute_raises(self) -> None:
        with pytest.raises(AttributeError):
            InstrumentedService(Greeter()).missing  # noqa: B018
