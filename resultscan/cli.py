"""resultscan CLI: scan a range of identifiers or probe a single one.

Usage:
    resultscan scan --prefix 2025925 --start 8601 --end 9000
    resultscan scan --prefix 2025925 --start 1 --end 50 --proxy http://p:3128
    resultscan probe 20259258601
"""

from __future__ import annotations

import json
import logging

import click
import httpx
from pydantic import ValidationError
from typing_extensions import assert_never

from resultscan.candidates import count_candidates, generate_candidates
from resultscan.common.request_manager import SyncRequestManager
from resultscan.config import SiteConfig
from resultscan.data_types import (
    Candidate,
    NotFound,
    ParseFailure,
    Success,
    TransportFailure,
)
from resultscan.driver.callbacks import CsvResultSink
from resultscan.driver.sync_driver import ScanDriver
from resultscan.lookup import ResultLookup


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO; keep that for -v only.
    logging.getLogger("httpx").setLevel(
        logging.DEBUG if verbose else logging.WARNING
    )


def _build_config(
    form_url: str | None, results_url: str | None, timeout: float
) -> SiteConfig:
    overrides: dict[str, object] = {
        "timeout": timeout if timeout > 0 else None
    }
    if form_url:
        overrides["form_url"] = form_url
    if results_url:
        overrides["results_url"] = results_url
    try:
        return SiteConfig(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e


def _check_proxy_urls(ctx: click.Context, param: click.Parameter, value):
    """Reject proxy URLs httpx cannot use before any client is built."""
    urls = value if isinstance(value, tuple) else (value,)
    for url in urls:
        if url is None:
            continue
        try:
            httpx.Proxy(url)
        except (ValueError, httpx.InvalidURL) as e:
            raise click.BadParameter(
                f"invalid proxy URL {url!r}: {e}", ctx=ctx, param=param
            ) from e
    return value


_site_options = [
    click.option(
        "--form-url",
        default=None,
        help="Override the form page URL.",
    ),
    click.option(
        "--results-url",
        default=None,
        help="Override the results endpoint URL.",
    ),
    click.option(
        "--timeout",
        type=float,
        default=30.0,
        show_default=True,
        help="Per-request timeout in seconds (0 disables).",
    ),
    click.option("-v", "--verbose", is_flag=True, help="Verbose logging."),
]


def site_options(func):
    for option in reversed(_site_options):
        func = option(func)
    return func


@click.group()
@click.version_option(package_name="resultscan")
def cli() -> None:
    """Look up results from an HTML results service."""


@cli.command()
@click.option("--prefix", required=True, help="Fixed identifier prefix.")
@click.option("--start", type=int, required=True, help="First suffix.")
@click.option("--end", type=int, required=True, help="Last suffix (inclusive).")
@click.option(
    "--width",
    type=int,
    default=4,
    show_default=True,
    help="Digits the suffix is zero-padded to.",
)
@click.option(
    "--delay",
    type=float,
    default=0.5,
    show_default=True,
    help="Seconds to wait between candidates.",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False),
    default="results.csv",
    show_default=True,
    help="CSV file to write results to.",
)
@click.option(
    "--append",
    is_flag=True,
    help="Append to an existing CSV instead of overwriting it.",
)
@click.option(
    "--proxy",
    "proxies",
    multiple=True,
    callback=_check_proxy_urls,
    help="Proxy URL; repeat to rotate through several.",
)
@click.option(
    "--stop-on-parse-error",
    is_flag=True,
    help="Stop the scan at the first unexpected page.",
)
@site_options
def scan(
    prefix: str,
    start: int,
    end: int,
    width: int,
    delay: float,
    output: str,
    append: bool,
    proxies: tuple[str, ...],
    stop_on_parse_error: bool,
    form_url: str | None,
    results_url: str | None,
    timeout: float,
    verbose: bool,
) -> None:
    """Look up every identifier PREFIX + [START..END] and save hits to CSV.

    \b
    Examples:
        resultscan scan --prefix 2025925 --start 8601 --end 9000
        resultscan scan --prefix 2025925 --start 1 --end 99 --output out.csv --append
    """
    _configure_logging(verbose)
    config = _build_config(form_url, results_url, timeout)

    try:
        candidates = generate_candidates(prefix, start, end, width)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    total = count_candidates(start, end)
    click.echo(
        f"Scanning {prefix}{'X' * width} "
        f"from {str(start).zfill(width)} to {str(end).zfill(width)}"
    )
    click.echo(
        f"WARNING: This will send {total} lookups ({total * 2} requests) "
        f"with a {delay}s delay. Ensure you have permission.",
        err=True,
    )

    def stop_on_parse(failure: ParseFailure) -> bool:
        return False

    sink = CsvResultSink(output, append=append)
    try:
        sink.open()
    except OSError as e:
        raise click.ClickException(f"Could not create {output}: {e}") from e

    try:
        driver = ScanDriver(
            config,
            candidates,
            proxies=list(proxies),
            delay=delay,
            on_result=sink,
            on_parse_error=stop_on_parse if stop_on_parse_error else None,
        )
        stats = driver.run()
    finally:
        sink.close()

    click.echo(
        f"Finished. Found and saved {stats.found} results to {output}. "
        f"Encountered {stats.errors} errors/empty results."
    )


@cli.command()
@click.argument("identifier")
@click.option(
    "--proxy", default=None, callback=_check_proxy_urls, help="Proxy URL."
)
@site_options
def probe(
    identifier: str,
    proxy: str | None,
    form_url: str | None,
    results_url: str | None,
    timeout: float,
    verbose: bool,
) -> None:
    """Look up a single IDENTIFIER and print the outcome.

    Exits with status 0 if a result was found and 1 otherwise.
    """
    _configure_logging(verbose)
    config = _build_config(form_url, results_url, timeout)

    with SyncRequestManager(timeout=config.timeout, proxy=proxy) as manager:
        outcome = ResultLookup(config, manager).lookup(Candidate(identifier))

    match outcome:
        case Success(result=result):
            click.echo(json.dumps(result.model_dump(), indent=2))
            return
        case NotFound(phrase=phrase):
            click.echo(f"Not found: {identifier} ({phrase})")
        case TransportFailure(stage=stage, message=message):
            click.echo(f"Transport error ({stage.value}): {message}", err=True)
        case ParseFailure(stage=stage, message=message):
            click.echo(f"Unexpected page ({stage.value}): {message}", err=True)
        case _:
            assert_never(outcome)
    raise SystemExit(1)


def main() -> None:
    """Entry point for the ``resultscan`` console script."""
    cli()
