import json
import logging
from collections.abc import Iterator

import pytest

from sqlbee import new_select
from sqlbee.exceptions import ImproperConfigurationError
from sqlbee.nodes import Table
from sqlbee.renderers import PostgresRenderer
from sqlbee.transformers import SoftDelete
from sqlbee.utils.logging import (
    SimpleFormatter,
    StructuredFormatter,
    configure_logging,
    get_correlation_id,
    get_logger,
    log_with_context,
    record_fields,
    set_correlation_id,
)


class ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def correlation_id() -> Iterator[str]:
    set_correlation_id("req-123")
    yield "req-123"
    set_correlation_id(None)


def _record(message: str = "hello", **fields: object) -> logging.LogRecord:
    record = logging.LogRecord("sqlbee.test", logging.INFO, __file__, 10, message, (), None)
    if fields:
        record.extra_fields = fields
    return record


def test_get_logger_namespaces_under_sqlbee() -> None:
    assert get_logger().name == "sqlbee"
    assert get_logger("sqlbee").name == "sqlbee"
    assert get_logger("repl").name == "sqlbee.repl"
    assert get_logger("sqlbee.builder").name == "sqlbee.builder"
    assert get_logger("sqlbeetle").name == "sqlbee.sqlbeetle"


def test_structured_formatter_emits_json(correlation_id: str) -> None:
    """Fields and the correlation id land next to the message in one JSON object."""
    entry = json.loads(StructuredFormatter().format(_record(plugin="softdelete")))

    assert entry["message"] == "hello"
    assert entry["level"] == "INFO"
    assert entry["logger"] == "sqlbee.test"
    assert entry["plugin"] == "softdelete"
    assert entry["correlation_id"] == correlation_id
    assert get_correlation_id() == correlation_id


def test_structured_formatter_keeps_base_keys() -> None:
    record = _record(table="users")
    record.extra_fields["message"] = "overwritten"
    entry = json.loads(StructuredFormatter().format(record))

    assert entry["message"] == "hello"
    assert entry["table"] == "users"
    assert "correlation_id" not in entry


def test_simple_formatter_appends_fields() -> None:
    line = SimpleFormatter().format(_record(command="select", table="users"))

    assert line.endswith("INFO sqlbee.test: hello command=select table=users")
    assert SimpleFormatter().format(_record()).endswith("sqlbee.test: hello")


def test_configure_logging_installs_handlers() -> None:
    handler = ListHandler()
    root = configure_logging(level="debug", format_style="simple", extra_handlers=[handler])

    assert root is logging.getLogger("sqlbee")
    assert root.level == logging.DEBUG
    assert root.propagate is False
    assert handler in root.handlers
    assert len(root.handlers) == 2
    assert isinstance(root.handlers[0].formatter, SimpleFormatter)
    configured = next(r for r in handler.records if r.getMessage() == "sqlbee logging configured")
    assert record_fields(configured) == {"level": "debug", "format_style": "simple", "handlers": 2}


def test_configure_logging_replaces_previous_handlers() -> None:
    first, second = ListHandler(), ListHandler()
    configure_logging(extra_handlers=[first])
    root = configure_logging(extra_handlers=[second])

    assert first not in root.handlers
    assert second in root.handlers


@pytest.mark.parametrize(
    ("kwargs", "match"),
    [
        ({"level": "chatty"}, "unknown log level: chatty"),
        ({"format_style": "xml"}, "unknown log format: xml"),
    ],
)
def test_configure_logging_rejects_unknown_settings(kwargs: "dict[str, str]", match: str) -> None:
    with pytest.raises(ImproperConfigurationError, match=match):
        configure_logging(**kwargs)


def test_log_with_context_attaches_fields() -> None:
    handler = ListHandler()
    configure_logging(level="DEBUG", extra_handlers=[handler])

    log_with_context(get_logger("repl"), logging.DEBUG, "repl.plugin.enabled", plugin="tenant", status="column: tenant_id")

    record = handler.records[-1]
    assert record.getMessage() == "repl.plugin.enabled"
    assert record.name == "sqlbee.repl"
    assert record_fields(record) == {"plugin": "tenant", "status": "column: tenant_id"}
    assert record.funcName == "test_log_with_context_attaches_fields"


def test_log_with_context_skips_disabled_levels() -> None:
    handler = ListHandler()
    configure_logging(level="WARNING", extra_handlers=[handler])
    before = len(handler.records)

    log_with_context(get_logger("repl"), logging.DEBUG, "ignored", plugin="x")

    assert len(handler.records) == before


def test_transformer_name_reaches_structured_output() -> None:
    """Pipeline and builder logs carry their fields through the JSON formatter."""
    handler = ListHandler()
    configure_logging(level="DEBUG", extra_handlers=[handler])

    new_select(Table("users")).use(SoftDelete()).build(PostgresRenderer())

    entries = [json.loads(StructuredFormatter().format(record)) for record in handler.records]
    applied = next(entry for entry in entries if entry["message"] == "Applying transformer")
    assert applied["transformer"] == "SoftDelete"
    assert applied["statement"] == "SelectCore"
    assert applied["logger"] == "sqlbee.transformers"
    built = next(entry for entry in entries if entry["message"] == "Built statement")
    assert built["dialect"] == "postgres"
    assert built["parameter_count"] == 0
