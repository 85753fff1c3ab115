"""
Command line entry point: ask for N, rank the best stories, print them.
"""
from __future__ import annotations

import logging
import os
import sys
import time
from typing import Union

import click
from dotenv import load_dotenv

from beststories import build_pipeline
from beststories.errors import RunCancelled, TransportError, ValidationError
from beststories.models import RankedResult
from beststories.render import render_json, render_text
from beststories.settings import load_settings

logger = logging.getLogger(__name__)

INVALID_COUNT_MESSAGE = "Invalid input. Please enter a positive integer."


def parse_story_count(raw: Union[str, int, None]) -> int:
    """Validate operator input before the pipeline runs."""
    if isinstance(raw, bool):
        raise ValidationError(INVALID_COUNT_MESSAGE)
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw).strip())
        except (TypeError, ValueError):
            raise ValidationError(INVALID_COUNT_MESSAGE) from None
    if value <= 0:
        raise ValidationError(INVALID_COUNT_MESSAGE)
    return value


def _report_problems(result: RankedResult) -> None:
    if result.failures:
        click.echo(f"Skipped {len(result.failures)} stories that could not be fetched:", err=True)
        for failure in result.failures:
            click.echo(f"  {failure.story_id}: {failure.error}", err=True)
    if result.decode_warnings:
        click.echo(f"{len(result.decode_warnings)} decode warnings (see log)", err=True)


@click.command()
@click.option("--count", "-n", "raw_count", prompt="Enter the number of top stories (n)", help="How many stories to print.")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text", show_default=True)
@click.option("--timing/--no-timing", default=True, help="Print total execution time.")
@click.option("--repeat", type=click.IntRange(min=1), default=1, show_default=True, help="Number of runs sharing one cache.")
@click.option("--interval", type=click.FloatRange(min=0), default=0.0, show_default=True, help="Seconds between repeated runs.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(raw_count: str, output_format: str, timing: bool, repeat: int, interval: float, verbose: bool) -> None:
    started = time.perf_counter()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv(os.getenv("BESTSTORIES_DOTENV", ".env"))

    try:
        count = parse_story_count(raw_count)
    except ValidationError as exc:
        click.echo(str(exc), err=True)
        sys.exit(2)

    render = render_json if output_format == "json" else render_text
    with build_pipeline(load_settings()) as pipeline:
        for run_index in range(repeat):
            if run_index:
                time.sleep(interval)
            try:
                result = pipeline.run(count)
            except TransportError as exc:
                click.echo(f"Error: could not fetch the best stories list: {exc}", err=True)
                sys.exit(1)
            except (RunCancelled, KeyboardInterrupt):
                click.echo("Interrupted.", err=True)
                sys.exit(130)

            click.echo(render(result.stories))
            _report_problems(result)
            logger.debug("Cache after run %d: %s", run_index + 1, pipeline.fetcher.cache.snapshot())

    if timing:
        elapsed_ms = (time.perf_counter() - started) * 1000
        click.echo(f"Total execution time: {elapsed_ms:.0f} ms")


if __name__ == "__main__":  # pragma: no cover
    main()
