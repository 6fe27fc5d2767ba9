from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from sqlbee.nodes import Table
from sqlbee.renderers import MySQLRenderer, PostgresRenderer, SQLiteRenderer

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture
def users() -> Table:
    return Table("users")


@pytest.fixture
def posts() -> Table:
    return Table("posts")


@pytest.fixture
def pg() -> PostgresRenderer:
    """Parameterising PostgreSQL renderer."""
    return PostgresRenderer()


@pytest.fixture
def pg_inline() -> PostgresRenderer:
    """PostgreSQL renderer that inlines literals."""
    return PostgresRenderer(parameterize=False)


@pytest.fixture
def mysql() -> MySQLRenderer:
    return MySQLRenderer()


@pytest.fixture
def sqlite_inline() -> SQLiteRenderer:
    return SQLiteRenderer(parameterize=False)


@pytest.fixture(autouse=True)
def _reset_sqlbee_logging() -> Iterator[None]:
    """Undo ``configure_logging`` calls made by a test."""
    yield
    root = logging.getLogger("sqlbee")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    root.propagate = True
