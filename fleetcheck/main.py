"""Entry point for the fleetcheck health sweep."""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

from rich.console import Console
from rich.panel import Panel

from fleetcheck.config import Settings, settings
from fleetcheck.errors import ConfigurationError, ReportRenderError
from fleetcheck.health.models import DepthProfile, HostHealthReport, RunReport
from fleetcheck.health.orchestrator import build_orchestrator, validate_hosts
from fleetcheck.health.profiles import parse_depth
from fleetcheck.health.thresholds import load_thresholds
from fleetcheck.hosts import collect_hosts
from fleetcheck.report.assembler import EXIT_CONFIG_ERROR, exit_code
from fleetcheck.report.render import print_report, write_report

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def run_sweep(args: argparse.Namespace, cfg: Settings = settings) -> int:
    """Run one sweep from parsed CLI arguments and return the process exit code."""
    try:
        depth = parse_depth(args.depth)
        hosts = validate_hosts(collect_hosts(args.hosts, args.hosts_file))
        thresholds = load_thresholds(args.thresholds or cfg.thresholds_file)
        done = 0

        def _progress(report: HostHealthReport) -> None:
            nonlocal done
            done += 1
            status.update(f"[bold green]Checked {done}/{len(hosts)} hosts (last: {report.host})")

        orchestrator = build_orchestrator(cfg, thresholds, max_workers=args.workers, on_host=_progress)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        return EXIT_CONFIG_ERROR

    console.print(Panel(
        f"{len(hosts)} hosts · depth [bold]{depth.value}[/bold] · "
        f"workers {orchestrator.max_workers}",
        title="fleetcheck",
        style="bold blue",
    ))

    stop_event = threading.Event()
    with console.status("[bold green]Probing hosts...") as status:
        report = _run_until_done(orchestrator, hosts, depth, stop_event)

    code = exit_code(report)
    try:
        print_report(report, console)
        for fmt in ("json", "csv", "html"):
            path = getattr(args, fmt, None)
            if path:
                write_report(report, path, fmt)
                console.print(f"[dim]{fmt.upper()} report saved: {path}[/dim]")
    except ReportRenderError as e:
        console.print(f"[bold red]Report error:[/bold red] {e}")
    return code


def _run_until_done(orchestrator, hosts: list[str], depth: DepthProfile, stop_event: threading.Event) -> RunReport:
    """Run in a worker thread so Ctrl-C can set the stop event and still collect a report."""
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(orchestrator.run, hosts, depth, stop_event)
        while True:
            try:
                return future.result(timeout=0.25)
            except FutureTimeout:
                continue
            except KeyboardInterrupt:
                if stop_event.is_set():
                    continue
                console.print("[yellow]Cancelling, finishing in-flight checks...[/yellow]")
                stop_event.set()


def run_server(cfg: Settings = settings) -> None:
    """Start the FastAPI server."""
    import uvicorn

    console.print(Panel(f"Starting fleetcheck API on {cfg.api_host}:{cfg.api_port}", style="bold green"))
    uvicorn.run(
        "fleetcheck.api.server:app",
        host=cfg.api_host,
        port=cfg.api_port,
        log_level=cfg.log_level.lower(),
        reload=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fleetcheck", description="Multi-host system health diagnostics")
    sub = parser.add_subparsers(dest="command")

    run_parser = sub.add_parser("run", help="Run a health sweep")
    run_parser.add_argument("hosts", nargs="*", help="Hosts to check")
    run_parser.add_argument("-f", "--hosts-file", help="File with one host per line, or YAML with a 'hosts' list")
    run_parser.add_argument(
        "-d", "--depth", default=DepthProfile.STANDARD.value,
        help="quick | standard | comprehensive (default: standard)",
    )
    run_parser.add_argument("-w", "--workers", type=int, default=None, help="Parallel host workers")
    run_parser.add_argument("-t", "--thresholds", help="YAML file with threshold overrides")
    run_parser.add_argument("--json", help="Write a JSON report to this path")
    run_parser.add_argument("--csv", help="Write a CSV report to this path")
    run_parser.add_argument("--html", help="Write an HTML report to this path")

    sub.add_parser("serve", help="Start the API server")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(settings.log_level)

    if args.command == "run":
        sys.exit(run_sweep(args))
    elif args.command == "serve":
        run_server()
    else:
        parser.print_help()
        sys.exit(EXIT_CONFIG_ERROR)


if __name__ == "__main__":
    main()
