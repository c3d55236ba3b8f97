"""Rich CLI interface for ExpoScope."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from exposcope import __version__
from exposcope.checks import CHECKS, get_check
from exposcope.checks.runner import run_checks
from exposcope.core.config import Settings, load_settings
from exposcope.core.dns import DnsResolver
from exposcope.core.logger import get_logger, setup_logging

app = typer.Typer(
    name="exposcope",
    help="Web exposure scanner: secrets, sensitive files, links, third parties and takeovers",
    add_completion=False,
)
console = Console()
logger = get_logger(__name__)

SEVERITY_STYLES = {
    "Critical": "bold red",
    "High": "red",
    "Medium": "yellow",
    "Low": "dim",
}


def _score_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj["settings"]


def _with_concurrency(settings: Settings, concurrency: int) -> Settings:
    """Apply one parallelism limit to every fetch wave a check runs."""
    return settings.model_copy(update={
        "fetch": settings.fetch.model_copy(update={"concurrency": concurrency}),
        "exposed_files": settings.exposed_files.model_copy(update={"batch_size": concurrency}),
        "link_audit": settings.link_audit.model_copy(update={"concurrency": concurrency}),
    })


def _write_output(result: Any, output: Optional[Path]) -> None:
    if output is None:
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(result, indent=2, ensure_ascii=False), encoding="utf-8")
    console.print(f"[dim]Report saved to:[/dim] [cyan]{output}[/cyan]")


def _severity_cell(severity: str) -> str:
    style = SEVERITY_STYLES.get(severity, "white")
    return f"[{style}]{severity}[/{style}]"


def _display_result(name: str, result: dict[str, Any]) -> None:
    """Render one check result as Rich tables."""
    if "error" in result:
        console.print(Panel.fit(
            f"[red]{result['error']}[/red]",
            title=f"[bold]{name}[/bold]",
            border_style="red",
        ))
        return

    if "score" in result:
        score = result["score"]
        console.print(
            f"[bold]{name}[/bold]  score: [{_score_style(score)}]{score}/100[/{_score_style(score)}]"
        )
    else:
        console.print(f"[bold]{name}[/bold]")

    if name == "secrets":
        table = Table(title=f"{result['totalFindings']} findings in {result['scannedFilesCount']} files")
        table.add_column("Severity")
        table.add_column("Type", style="cyan")
        table.add_column("Value")
        table.add_column("Source", style="dim")
        for f in result["findings"]:
            table.add_row(_severity_cell(f["severity"]), f["type"], f["value"], f["sourceUrl"])
        console.print(table)

    elif name == "exposed-files":
        table = Table(title=f"{len(result['exposedFiles'])} exposed of {result['scannedCount']} probed")
        table.add_column("Severity")
        table.add_column("File", style="cyan")
        table.add_column("Type")
        table.add_column("URL", style="dim")
        for f in result["exposedFiles"]:
            table.add_row(_severity_cell(f["severity"]), f["file"], f["type"], f["url"])
        console.print(table)

    elif name == "link-audit":
        console.print(
            f"  links: {result['totalLinks']} "
            f"(internal {result['internalLinks']}, external {result['externalLinks']}, "
            f"checked {result['checkedLinks']})"
        )
        table = Table(title="Problems")
        table.add_column("Kind")
        table.add_column("URL", style="cyan")
        table.add_column("Detail")
        for link in result["brokenLinks"]:
            table.add_row("[red]broken[/red]", link["url"], f"{link['status']} {link['reason']}")
        for item in result["mixedContent"]:
            table.add_row("[yellow]mixed content[/yellow]", item["url"], item["type"])
        console.print(table)

    elif name == "cdn-resources":
        summary = result["summary"]
        console.print(
            f"  resources: {result['totalResources']}, domains: {summary['externalDomains']}, "
            f"CDNs: {summary['cdnCount']}, tracking: {summary['trackingResources']}"
        )
        if result.get("spaWarning"):
            console.print(f"  [yellow]{result['spaWarning']}[/yellow]")
        table = Table(title="Issues")
        table.add_column("Severity")
        table.add_column("Category")
        table.add_column("Title", style="cyan")
        table.add_column("Resource", style="dim")
        for category in ("securityIssues", "privacyIssues", "performanceIssues"):
            for issue in result[category]:
                table.add_row(
                    _severity_cell(issue["severity"]),
                    category.replace("Issues", ""),
                    issue["title"],
                    issue.get("resource", ""),
                )
        console.print(table)

    elif name == "subdomain-takeover":
        style = "bold red" if result["vulnerable"] else "green"
        console.print(f"  [{style}]{result['status']}[/{style}]")
        if result.get("cname"):
            console.print(f"  CNAME: {result['cname']}  service: {result.get('service') or '-'}")
        if result.get("details"):
            console.print(f"  {result['details']}")

    console.print()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]ExpoScope[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version",
    ),
    debug: bool = typer.Option(
        False, "--debug", "-d",
        help="Enable debug logging",
    ),
    config: Optional[Path] = typer.Option(
        None, "--config",
        help="YAML settings file",
    ),
) -> None:
    """ExpoScope - web exposure scanner."""
    settings = load_settings(config)
    # Quiet unless debugging; reports go to stdout, logs to stderr
    setup_logging(level="DEBUG" if debug else "WARNING", json_format=settings.log_json)
    ctx.obj = {"settings": settings}


@app.command()
def scan(
    ctx: typer.Context,
    check: str = typer.Argument(..., help=f"Check to run: {', '.join(CHECKS)}"),
    url: str = typer.Argument(..., help="Target URL or hostname"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="Write the JSON report to this file",
    ),
    as_json: bool = typer.Option(
        False, "--json",
        help="Print the raw JSON report",
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-c",
        min=1, max=100,
        help="Parallel requests per fetch wave",
    ),
) -> None:
    """Run a single exposure check."""
    try:
        check_cls = get_check(check)
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        raise typer.Exit(2)

    settings = _settings(ctx)
    if concurrency is not None:
        settings = _with_concurrency(settings, concurrency)

    if as_json:
        result = asyncio.run(check_cls(settings=settings).run(url))
    else:
        with console.status(f"[cyan]Running {check} on {url}...[/cyan]"):
            result = asyncio.run(check_cls(settings=settings).run(url))

    if as_json:
        typer.echo(json.dumps(result, indent=2, ensure_ascii=False))
    else:
        _display_result(check, result)
    _write_output(result, output)

    if "error" in result:
        raise typer.Exit(1)


@app.command(name="scan-all")
def scan_all(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Target URL or hostname"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="Write the combined JSON report to this file",
    ),
    as_json: bool = typer.Option(
        False, "--json",
        help="Print the raw JSON report",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t",
        help="Per-check time limit in seconds",
    ),
) -> None:
    """Run every check concurrently."""
    settings = _settings(ctx)

    if as_json:
        results = asyncio.run(run_checks(url, settings=settings, timeout=timeout))
        typer.echo(json.dumps(results, indent=2, ensure_ascii=False))
    else:
        with console.status(f"[cyan]Scanning {url}...[/cyan]"):
            results = asyncio.run(run_checks(url, settings=settings, timeout=timeout))

        summary = Table(title="[bold]Scan Complete[/bold]", border_style="green")
        summary.add_column("Check", style="cyan")
        summary.add_column("Score", justify="right")
        summary.add_column("Status")
        for name, result in results.items():
            if "error" in result:
                summary.add_row(name, "-", f"[red]{result['error']}[/red]")
            elif "score" in result:
                style = _score_style(result["score"])
                summary.add_row(name, f"[{style}]{result['score']}[/{style}]", "ok")
            else:
                summary.add_row(name, "-", result.get("status", "ok"))
        console.print(summary)
        console.print()
        for name, result in results.items():
            if "error" not in result:
                _display_result(name, result)

    _write_output(results, output)


@app.command()
def dns(
    ctx: typer.Context,
    host: str = typer.Argument(..., help="Hostname to look up"),
) -> None:
    """Show CNAME, MX and TXT records for a host."""
    resolver = DnsResolver.from_config(_settings(ctx).takeover)

    async def lookup():
        return await asyncio.gather(
            resolver.resolve_cname(host),
            resolver.resolve_mx(host),
            resolver.resolve_txt(host),
        )

    cnames, mx_records, txt_records = asyncio.run(lookup())

    table = Table(title=f"DNS records for {host}")
    table.add_column("Type", style="cyan")
    table.add_column("Value")
    for cname in cnames:
        table.add_row("CNAME", cname)
    for mx in mx_records:
        table.add_row("MX", f"{mx.priority} {mx.exchange}")
    for txt in txt_records:
        table.add_row("TXT", txt)

    if not table.row_count:
        console.print(f"[yellow]No CNAME, MX or TXT records found for {host}[/yellow]")
        return
    console.print(table)


@app.command()
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
) -> None:
    """Start the HTTP API."""
    from exposcope.api import create_app

    settings = _settings(ctx)
    host = host or settings.api.host
    port = port or settings.api.port

    console.print(f"[bold blue]ExpoScope[/bold blue] API on [cyan]http://{host}:{port}/api[/cyan]")
    create_app(settings).run(host=host, port=port, debug=settings.debug)


@app.command(name="checks")
def list_checks() -> None:
    """List available checks."""
    table = Table(title="Available checks")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for name, check in CHECKS.items():
        table.add_row(name, check.description)
    console.print(table)


if __name__ == "__main__":
    app()
