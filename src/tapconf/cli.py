"""Command-line interface for the tap conformance harness.

Example:
    >>> # From terminal:
    >>> # tapconf --version
    >>> # tapconf run --n-addrs 2 --max-msg-count 200
    >>> # tapconf run --observers 1 --log-format json --json
    >>> # tapconf expect --n-addrs 3 --max-msg-count 10
"""

import json
from typing import Annotated, Optional

import typer

from tapconf import __version__
from tapconf.config import HarnessConfig
from tapconf.errors import TapConformanceError
from tapconf.harness.dispatcher import expected_copy_count, expected_primary_count
from tapconf.harness.orchestrator import TapConformanceRun
from tapconf.observability.logging import VALID_LOG_FORMATS, configure_logging, get_logger
from tapconf.substrate.base import Clock
from tapconf.substrate.clock import MonotonicClock, SimulatedClock
from tapconf.substrate.memory import InMemoryNetwork

app = typer.Typer(help="Tap conformance harness CLI.")

# Exit code for any violation or configuration error.
EXIT_FAILURE = 1


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show tapconf version and exit.",
    callback=_version_callback,
    is_eager=True,
)


@app.callback()
def cli(version: bool = VERSION_OPTION) -> None:
    """tapconf CLI entrypoint."""


@app.command("run")
def run(
    n_addrs: Annotated[
        Optional[int], typer.Option("--n-addrs", "-n", help="Addresses per role (N).")
    ] = None,
    max_msg_count: Annotated[
        Optional[int],
        typer.Option("--max-msg-count", "-m", help="Numbered messages before the sentinel (M)."),
    ] = None,
    listing_check_at: Annotated[
        Optional[int],
        typer.Option("--listing-check-at", help="Sent count of the in-traffic listing check."),
    ] = None,
    settle_seconds: Annotated[
        Optional[float], typer.Option("--settle", help="Settle wait in seconds.")
    ] = None,
    propagation_delay: Annotated[
        Optional[float],
        typer.Option("--propagation-delay", help="Delay before a removed tap disappears."),
    ] = None,
    send_batch: Annotated[
        Optional[int], typer.Option("--send-batch", help="Messages sent per scheduler tick.")
    ] = None,
    poll_quantum_ms: Annotated[
        Optional[float], typer.Option("--poll-quantum-ms", help="Sleep between polls, in ms.")
    ] = None,
    stream_timeout: Annotated[
        Optional[float],
        typer.Option("--stream-timeout", help="Longest wait for the sentinel to arrive."),
    ] = None,
    publisher_prefix: Annotated[
        Optional[str], typer.Option("--publisher-prefix", help="Publisher service prefix.")
    ] = None,
    subscriber_prefix: Annotated[
        Optional[str], typer.Option("--subscriber-prefix", help="Subscriber service prefix.")
    ] = None,
    copy_prefix: Annotated[
        Optional[str], typer.Option("--copy-prefix", help="Observer copy service prefix.")
    ] = None,
    observers: Annotated[
        int,
        typer.Option(
            "--observers", help="Extra processes that tap the tappee and check their listings."
        ),
    ] = 0,
    realtime: Annotated[
        bool,
        typer.Option("--realtime/--simulated", help="Use the wall clock instead of simulated time."),
    ] = False,
    log_format: Annotated[
        Optional[str], typer.Option("--log-format", help="console or json.")
    ] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Minimum log level.")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the run report as JSON.")] = False,
) -> None:
    """Run the tap conformance protocol against the in-memory substrate.

    Settings not given on the command line come from TAPCONF_* environment
    variables, then from the defaults. Exits 1 on the first violation.
    """
    if log_format is not None and log_format.lower() not in VALID_LOG_FORMATS:
        raise typer.BadParameter(f"--log-format must be one of {', '.join(VALID_LOG_FORMATS)}")
    if observers < 0:
        raise typer.BadParameter("--observers must be >= 0")
    configure_logging(log_format=log_format, log_level=log_level, force=True)
    logger = get_logger("tapconf.cli")

    try:
        config = HarnessConfig.from_env(
            n_addrs=n_addrs,
            max_msg_count=max_msg_count,
            listing_check_at=listing_check_at,
            settle_seconds=settle_seconds,
            propagation_delay=propagation_delay,
            send_batch=send_batch,
            poll_quantum_ms=poll_quantum_ms,
            stream_timeout=stream_timeout,
            publisher_prefix=publisher_prefix,
            subscriber_prefix=subscriber_prefix,
            copy_prefix=copy_prefix,
        )
        clock: Clock = MonotonicClock() if realtime else SimulatedClock()
        network = InMemoryNetwork(clock, propagation_delay=config.propagation_delay)
        process = network.attach("tapconf")
        watchers = [network.attach(f"observer{i}") for i in range(observers)]
        harness = TapConformanceRun(process, config, observers=watchers)
        report = harness.run()
    except TapConformanceError as exc:
        logger.error("tapconf.cli.failed", **exc.to_dict())
        typer.echo(f"FAILED: {exc.message}", err=True)
        raise typer.Exit(EXIT_FAILURE) from exc

    if as_json:
        typer.echo(report.model_dump_json(indent=2))
    else:
        typer.echo(
            f"PASSED {report.run_id}: msg_count={report.msg_count} "
            f"copy_count={report.copy_count} listing_checks={report.listing_checks}"
        )


@app.command("expect")
def expect(
    n_addrs: Annotated[int, typer.Option("--n-addrs", "-n", min=1, help="Addresses per role (N).")] = 2,
    max_msg_count: Annotated[
        int, typer.Option("--max-msg-count", "-m", min=0, help="Numbered messages (M).")
    ] = 200,
) -> None:
    """Print the closed-form final counters for N and M."""
    typer.echo(
        json.dumps(
            {
                "n_addrs": n_addrs,
                "max_msg_count": max_msg_count,
                "msg_count": expected_primary_count(max_msg_count),
                "copy_count": expected_copy_count(max_msg_count, n_addrs),
            }
        )
    )


def main() -> None:
    """Run the tapconf CLI."""
    app()


if __name__ == "__main__":
    main()
