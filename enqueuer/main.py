"""
Command line entry point.

    enqueuer enqueue QUEUE CLASS [--args JSON] [--in SECONDS | --at TIME]
    enqueuer forward [FILE]

Both commands print the job identifier on stdout. Logs go to stderr.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

import typer
from redis.exceptions import RedisError

from enqueuer.clock import now_seconds, time_to_seconds
from enqueuer.config import get_settings
from enqueuer.engine import Enqueuer, get_enqueuer, reset_enqueuer
from enqueuer.errors import EnqueueError
from enqueuer.observability.logging import bind_context, setup_logging
from enqueuer.observability.tracing import instrument_redis, setup_tracing
from enqueuer.store.connection import close_redis, init_redis
from enqueuer.types.job import EnqueueOptions

logger = logging.getLogger(__name__)

app = typer.Typer(help="Enqueue jobs into Redis.", add_completion=False)


@app.callback()
def main(ctx: typer.Context) -> None:
    """Configure logging and tracing before any command runs."""
    setup_logging()
    bind_context(command=ctx.invoked_subcommand)
    if get_settings().tracing_enabled:
        setup_tracing()
        instrument_redis()


async def run_async(operation: Callable[[Enqueuer], Awaitable[str]]) -> str:
    """Run one enqueue operation between Redis startup and shutdown."""
    await init_redis()
    try:
        return await operation(get_enqueuer())
    finally:
        reset_enqueuer()
        await close_redis()


def _execute(operation: Callable[[Enqueuer], Awaitable[str]]) -> None:
    try:
        jid = asyncio.run(run_async(operation))
    except (EnqueueError, RedisError) as e:
        logger.error("Enqueue failed", extra={"error": str(e)})
        raise typer.Exit(code=1) from e
    typer.echo(jid)


@app.command()
def enqueue(
    queue: str = typer.Argument(..., help="Queue name"),
    class_name: str = typer.Argument(..., metavar="CLASS", help="Job class"),
    args: str = typer.Option("[]", "--args", "-a", help="Job arguments as JSON"),
    delay: float | None = typer.Option(
        None, "--in", help="Run after this many seconds"
    ),
    at: datetime | None = typer.Option(
        None, "--at", help="Run at this time (UTC unless an offset is given)"
    ),
    retry: bool = typer.Option(False, "--retry", help="Allow the job to be retried"),
    retry_count: int = typer.Option(0, "--retry-count", min=0, help="Current retry attempt"),
    max_attempts: int = typer.Option(0, "--max-attempts", min=0, help="Retry ceiling"),
) -> None:
    """Enqueue a job built from its queue, class and arguments."""
    if delay is not None and at is not None:
        raise typer.BadParameter("--in and --at are mutually exclusive")

    try:
        job_args = json.loads(args)
    except ValueError as e:
        raise typer.BadParameter(f"--args is not valid JSON: {e}") from e

    if delay is not None:
        run_at = now_seconds() + delay
    elif at is not None:
        run_at = time_to_seconds(at)
    else:
        run_at = 0.0

    options = EnqueueOptions(
        max_attempts=max_attempts,
        retry_count=retry_count,
        retry=retry,
        at=run_at,
    )
    _execute(
        lambda enqueuer: enqueuer.enqueue_with_options(queue, class_name, job_args, options)
    )


@app.command()
def forward(
    source: typer.FileText = typer.Argument(
        "-", help="File holding a JSON job record, - for stdin"
    ),
) -> None:
    """Enqueue a pre-built JSON job record, keeping all of its fields."""
    raw = source.read()
    _execute(lambda enqueuer: enqueuer.enqueue_record(raw))


def run() -> None:
    """Run the command line interface."""
    app()


if __name__ == "__main__":
    run()
