import logging

import pytest
import structlog

from slate.core import ErrorCode, ErrorLevel
from slate.core.base import DatabaseErrorDetails, ErrorDetails
from slate.core.config import Settings
from slate.core.decorators import with_error_handling
from slate.core.error_context import ErrorContext, error_context
from slate.core.errors import NotFoundError, QueryBuilderError, QueryExecutionError
from slate.core.logging import (
    clear_log_context,
    get_log_context,
    log_context,
    set_log_context,
    setup_logging,
    update_log_context,
)
from slate.core.logging.setup import flatten_extra


@pytest.fixture(autouse=True)
def _clean_log_context():
    clear_log_context()
    yield
    clear_log_context()


def test_error_levels_map_to_logging_levels():
    assert ErrorLevel.WARNING.to_logging_level() == logging.WARNING
    assert ErrorLevel.CRITICAL.to_logging_level() == logging.CRITICAL


def test_dict_details_are_converted_without_mutation():
    details = {"source": "builder", "operation": "join"}

    error = QueryBuilderError("bad nesting", details=details)

    assert isinstance(error.details, ErrorDetails)
    assert error.details.source == "builder"
    assert error.details.operation == "join"
    assert details == {"source": "builder", "operation": "join"}
    assert error.code is ErrorCode.INVALID_REQUEST


def test_not_found_is_a_warning():
    error = NotFoundError("not found")

    assert error.level is ErrorLevel.WARNING
    assert error.code is ErrorCode.DB_RECORD_NOT_FOUND
    assert str(error) == "not found"


def test_execution_error_has_database_details_by_default():
    error = QueryExecutionError("boom")

    assert isinstance(error.details, DatabaseErrorDetails)
    assert error.details.service_name == "ArangoDB"


def test_error_context_includes_details_and_log_context():
    error = NotFoundError(
        "not found",
        details=DatabaseErrorDetails(source="test", operation="get", service_name="ArangoDB", collection="users"),
    )

    with log_context(collection="users"):
        data = ErrorContext(error, trace_id="abc", request="r1").to_dict()

    assert data["trace_id"] == "abc"
    assert data["error_type"] == "NotFoundError"
    assert data["code"] == ErrorCode.DB_RECORD_NOT_FOUND.value
    assert data["level"] == "warning"
    assert data["details"]["collection"] == "users"
    assert data["context"] == {"collection": "users", "request": "r1"}


def test_error_context_for_plain_exceptions():
    data = ErrorContext(RuntimeError("bad")).to_dict()

    assert data["message"] == "bad"
    assert "context" not in data
    assert len(data["trace_id"]) == 32


def test_error_context_reraises_handling_failures():
    with pytest.raises(KeyError):
        with error_context(ValueError("bad"), step="decode") as ctx:
            assert ctx.context == {"step": "decode"}
            raise KeyError("missing")


def test_flatten_extra():
    event = flatten_extra(None, "info", {"event": "hi", "extra": {"query": "RETURN 1", "event": "other"}})

    assert event == {"event": "hi", "query": "RETURN 1"}


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.NOTSET)
    structlog.reset_defaults()


def test_setup_logging_configures_root_and_http_loggers(restore_logging):
    setup_logging("WARNING", json_logs=True)

    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING

    setup_logging("debug")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpcore").level == logging.DEBUG


def test_error_handling_reraises_original_error():
    error = QueryExecutionError("server down")

    @with_error_handling()
    def fail() -> None:
        raise error

    with pytest.raises(QueryExecutionError) as excinfo:
        fail()

    assert excinfo.value is error


def test_error_handling_can_swallow():
    @with_error_handling(error_level=ErrorLevel.WARNING, reraise=False)
    def fail() -> int:
        raise RuntimeError("ignored")

    assert fail() is None


def test_error_handling_passes_results_through():
    @with_error_handling()
    def add(a: int, b: int) -> int:
        return a + b

    assert add(1, 2) == 3
    assert add.__name__ == "add"


def test_log_context_is_scoped():
    set_log_context({"request": "r1"})

    with log_context(collection="users"):
        assert get_log_context() == {"request": "r1", "collection": "users"}

    update_log_context("attempt", 2)
    assert get_log_context() == {"request": "r1", "attempt": 2}


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("SLATE_ARANGO_DATABASE", "analytics")
    monkeypatch.setenv("SLATE_ARANGO_PASSWORD", "hunter2")
    monkeypatch.setenv("SLATE_ARANGO_BATCH_SIZE", "250")

    config = Settings()

    assert config.arango_database == "analytics"
    assert config.arango_password.get_secret_value() == "hunter2"
    assert "hunter2" not in repr(config)
    assert config.arango_batch_size == 250


def test_settings_reject_invalid_batch_size():
    with pytest.raises(ValueError):
        Settings(arango_batch_size=0)
