import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from click import Group

    from sqlbee.repl import Session

__all__ = ("get_sqlbee_group", "main")

BANNER = "sqlbee shell - type 'help' for commands, 'exit' to quit"
EXIT_COMMANDS = frozenset({"exit", "quit"})


def get_sqlbee_group() -> "Group":
    """Get the sqlbee CLI group.

    Raises:
        MissingDependencyError: If the `click` package is not installed.

    Returns:
        The sqlbee CLI group.
    """
    from sqlbee.exceptions import MissingDependencyError

    try:
        import rich_click as click
    except ImportError:
        try:
            import click  # type: ignore[no-redef]
        except ImportError as e:
            raise MissingDependencyError(package="click", install_package="cli") from e

    from sqlbee.renderers import DIALECTS

    @click.group(name="sqlbee")
    @click.option(
        "--engine",
        help="SQL dialect to render",
        type=click.Choice(list(DIALECTS), case_sensitive=False),
        default="postgres",
        show_default=True,
    )
    @click.option(
        "--parameterize/--no-parameterize",
        help="Render values as bind parameters instead of inline literals",
        default=False,
        show_default=True,
    )
    @click.option(
        "--log-level",
        help="Emit structured logs at this level on stderr",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
        default=None,
    )
    @click.pass_context
    def sqlbee_group(ctx: "click.Context", engine: str, parameterize: bool, log_level: Optional[str]) -> None:
        """sqlbee query builder commands."""
        from sqlbee.utils.logging import configure_logging

        if log_level:
            configure_logging(level=log_level)
        ctx.ensure_object(dict)
        ctx.obj["engine"] = engine.lower()
        ctx.obj["parameterize"] = parameterize

    @sqlbee_group.command(name="shell", help="Build queries interactively.")
    @click.pass_context
    def shell(ctx: "click.Context") -> None:
        """Run the interactive shell until ``exit``, ``quit`` or end of input."""
        from rich import get_console

        from sqlbee.repl import Session, install_completer

        console = get_console()
        session = Session(engine=ctx.obj["engine"], parameterize=ctx.obj["parameterize"], out=sys.stdout)
        install_completer(session)
        console.print(f"[bold]{BANNER}[/]")
        while True:
            try:
                line = console.input("sqlbee> ")
            except (EOFError, KeyboardInterrupt):
                console.print()
                break
            if line.strip().lower() in EXIT_COMMANDS:
                break
            _run_line(session, line)

    @sqlbee_group.command(name="run", help="Execute shell commands from a file, one per line.")
    @click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
    @click.option("--keep-going", is_flag=True, default=False, help="Continue after a failing command")
    @click.pass_context
    def run(ctx: "click.Context", script: Path, keep_going: bool) -> None:
        """Execute a command script; blank lines and lines starting with ``#`` are skipped."""
        from sqlbee.repl import Session

        session = Session(engine=ctx.obj["engine"], parameterize=ctx.obj["parameterize"], out=sys.stdout)
        failed = False
        for number, line in enumerate(script.read_text(encoding="utf-8").splitlines(), start=1):
            if not line.strip() or line.lstrip().startswith("#"):
                continue
            if line.strip().lower() in EXIT_COMMANDS:
                break
            if not _run_line(session, line, location=f"{script.name}:{number}"):
                failed = True
                if not keep_going:
                    break
        if failed:
            ctx.exit(1)

    return sqlbee_group


def _run_line(session: "Session", line: str, location: str = "") -> bool:
    """Execute one line, reporting sqlbee errors instead of raising them.

    Returns:
        ``True`` if the command succeeded.
    """
    from rich import get_console
    from rich.markup import escape

    from sqlbee.exceptions import SQLBeeError

    try:
        session.execute(line)
    except SQLBeeError as e:
        prefix = f"{location}: " if location else ""
        get_console().print(f"  [red]Error: {escape(prefix + str(e))}[/]")
        return False
    return True


def main() -> None:
    get_sqlbee_group()()
