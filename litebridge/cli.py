import asyncio
import json
import logging
from functools import wraps
from pathlib import Path

import typer

from litebridge import commands
from litebridge.errors import LiteBridgeError, to_message
from litebridge.plugin import Builder
from litebridge.store import migrations

app = typer.Typer(no_args_is_help=True, add_completion=False)


def error_feedback(f):
    """Report errors on stderr and exit 1 instead of dumping a traceback."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (SystemExit, typer.Exit):
            raise
        except LiteBridgeError as e:
            typer.echo(f"{type(e).__name__}: {to_message(e)}", err=True)
            raise typer.Exit(1) from e
        except (ValueError, OSError) as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from e

    return wrapper


def parse_param(raw: str):
    """JSON literal when it parses, plain text otherwise."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _jsonable(value):
    if isinstance(value, bytes):
        return list(value)
    return value


def _rows_json(rows: list[dict]) -> str:
    return json.dumps([{k: _jsonable(v) for k, v in row.items()} for row in rows], indent=2)


def _home(ctx: typer.Context) -> Path | None:
    return ctx.obj.get("home") if ctx.obj else None


def _json_mode(ctx: typer.Context) -> bool:
    return ctx.obj.get("json", False) if ctx.obj else False


@app.callback()
def common_options_callback(
    ctx: typer.Context,
    home: Path = typer.Option(None, "--home", help="Storage directory for databases."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output in JSON format."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pool and migration activity."),
):
    """Run SQL against litebridge databases."""
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")
    ctx.obj = {"home": home, "json": json_output}


@app.command()
@error_feedback
def execute(
    ctx: typer.Context,
    db: str = typer.Argument(..., help="Database url, e.g. sqlite:app.db"),
    sql: str = typer.Argument(...),
    params: list[str] = typer.Argument(None),
):
    """Run a write statement."""

    async def run():
        async with Builder().build().session(_home(ctx)) as state:
            await commands.load(state, db)
            return await commands.execute(state, db, sql, [parse_param(p) for p in params or []])

    rows_affected, last_insert_id = asyncio.run(run())
    if _json_mode(ctx):
        typer.echo(json.dumps({"rows_affected": rows_affected, "last_insert_id": last_insert_id}))
    else:
        typer.echo(f"rows_affected={rows_affected} last_insert_id={last_insert_id}")


@app.command()
@error_feedback
def select(
    ctx: typer.Context,
    db: str = typer.Argument(..., help="Database url, e.g. sqlite:app.db"),
    sql: str = typer.Argument(...),
    params: list[str] = typer.Argument(None),
):
    """Run a query and print its rows as JSON."""

    async def run():
        async with Builder().build().session(_home(ctx)) as state:
            await commands.load(state, db)
            return await commands.select(state, db, sql, [parse_param(p) for p in params or []])

    typer.echo(_rows_json(asyncio.run(run())))


@app.command()
@error_feedback
def migrate(
    ctx: typer.Context,
    db: str = typer.Argument(..., help="Database url, e.g. sqlite:app.db"),
    migrations_dir: Path = typer.Option(..., "--dir", "-d", help="Directory of NNN_name.sql files."),
):
    """Apply the migrations found in a directory."""
    migs = migrations.load_dir(migrations_dir)
    if not migs:
        raise ValueError(f"no migrations found in {migrations_dir}")

    async def run():
        async with Builder().add_migrations(db, migs).build().session(_home(ctx)) as state:
            await commands.load(state, db)
            return await commands.select(
                state, db, f"SELECT version FROM {migrations.LEDGER} ORDER BY version"
            )

    versions = [row["version"] for row in asyncio.run(run())]
    if _json_mode(ctx):
        typer.echo(json.dumps({"db": db, "versions": versions}))
    else:
        typer.echo(f"✓ {db} at version {versions[-1] if versions else 0}")


def main() -> None:
    """Entry point for litebridge command."""
    app()
