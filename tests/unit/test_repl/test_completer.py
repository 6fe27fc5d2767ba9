from io import StringIO

import pytest

from sqlbee.repl import Completer, Session, install_completer
from sqlbee.repl.completer import OPERATORS, ORDER_DIRECTIONS, CompletionContext


@pytest.fixture()
def session() -> Session:
    return Session(out=StringIO())


@pytest.fixture()
def completer(session: Session) -> Completer:
    return Completer(session)


def test_command_names(completer: Completer) -> None:
    assert completer.candidates("ed") == ["edit"]
    assert completer.candidates("left") == ["left join"]
    assert completer.candidates("SEL") == ["select"]
    assert "sql" in completer.candidates("")
    assert "tosql" not in completer.candidates("")


def test_table_names(session: Session, completer: Completer) -> None:
    for line in ("table users", "table posts", "alias users u"):
        session.execute(line)

    assert completer.candidates("from ") == ["posts", "u", "users"]
    assert completer.candidates("from u") == ["u", "users"]
    assert completer.candidates("join p") == ["posts"]
    assert completer.candidates("alias u") == ["users"]


def test_column_references_use_seen_columns(session: Session, completer: Completer) -> None:
    for line in ("from users", "select users.name", "where users.age > 18"):
        session.execute(line)

    assert completer.candidates("where users.") == ["users.age", "users.name", "users.*"]
    assert completer.candidates("select users.id, users.n") == ["users.name"]
    assert completer.candidates("join posts on posts.") == ["posts.*"]


def test_function_names_before_a_dot(completer: Completer) -> None:
    assert completer.candidates("select co") == ["COALESCE(", "COUNT(", "COUNT(DISTINCT "]
    assert completer.candidates("select row") == ["ROW_NUMBER("]


def test_operators_and_order_directions(completer: Completer) -> None:
    assert completer.candidates("where users.age ") == list(OPERATORS)
    assert completer.candidates("order users.name ") == list(ORDER_DIRECTIONS)
    assert completer.candidates("order users.name d") == ["desc"]
    assert completer.candidates("order users.name desc, users.") == ["users.*"]


def test_engines_plugins_and_edit_clauses(session: Session, completer: Completer) -> None:
    assert completer.candidates("engine m") == ["mysql"]
    assert completer.candidates("plugin ") == ["off", "softdelete", "tenant"]
    assert completer.candidates("plugin off ") == []

    session.execute("plugin softdelete")
    assert completer.candidates("plugin off s") == ["softdelete"]

    assert completer.candidates("edit w") == ["where", "window"]


@pytest.mark.parametrize(
    ("line", "context"),
    [
        ("", CompletionContext.COMMAND),
        ("from us", CompletionContext.TABLE),
        ("where users.a", CompletionContext.COLUMN),
        ("window w", CompletionContext.NONE),
        ("window w partition by users.", CompletionContext.COLUMN),
        ("limit 1", CompletionContext.NONE),
        ("plugin softdelete deleted_at ", CompletionContext.NONE),
    ],
)
def test_context(completer: Completer, line: str, context: CompletionContext) -> None:
    assert completer.context(line)[0] is context


def test_complete_returns_the_rest_of_the_current_word(
    completer: Completer, session: Session, monkeypatch: pytest.MonkeyPatch
) -> None:
    readline = pytest.importorskip("readline")
    line = "left jo"
    monkeypatch.setattr(readline, "get_line_buffer", lambda: line)
    monkeypatch.setattr(readline, "get_endidx", lambda: len(line))

    assert completer.complete("jo", 0) == "join"
    assert completer.complete("jo", 1) is None

    session.execute("table users")
    line = "from us"
    assert completer.complete("us", 0) == "users"


def test_install_completer(session: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    readline = pytest.importorskip("readline")
    calls: dict[str, object] = {}
    monkeypatch.setattr(readline, "set_completer", lambda function: calls.setdefault("completer", function))
    monkeypatch.setattr(readline, "set_completer_delims", lambda delims: calls.setdefault("delims", delims))
    monkeypatch.setattr(readline, "parse_and_bind", lambda text: calls.setdefault("bind", text))

    completer = install_completer(session)

    assert completer is not None
    assert calls["completer"] == completer.complete
    assert "," in str(calls["delims"])
    assert "complete" in str(calls["bind"])
