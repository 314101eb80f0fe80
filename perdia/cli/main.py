"""Command-line entry point for the monetization engine."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from perdia.backfill.runner import BackfillRunner, BackfillSummary
from perdia.compliance.validator import ComplianceReport, ComplianceValidator
from perdia.core.config import MonetizationSettings, load_settings
from perdia.monetization.models import MonetizationRequest, MonetizationResult
from perdia.monetization.slots import plan_slots, style_spec
from perdia.pipeline.bootstrap import DEFAULT_CONFIG_PATH, bootstrap_runtime
from perdia.pipeline.context import RuntimeContext

app = typer.Typer(help="Match topics, plan slots, render shortcodes and check article compliance.")
console = Console()
LOGGER = logging.getLogger("perdia.cli")

_SEVERITY_STYLES = {"blocking": "red", "major": "yellow", "minor": "cyan"}


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings YAML (default: config/monetization.yaml)."),
    repo_root: Optional[Path] = typer.Option(None, "--repo-root", help="Repository root used to resolve relative paths."),
    catalog: Optional[Path] = typer.Option(None, "--catalog", help="SQLite catalog overriding the configured backend."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"config": config, "repo_root": repo_root, "catalog": catalog}


def _options(ctx: typer.Context) -> Dict[str, Any]:
    return ctx.obj or {}


def _runtime(ctx: typer.Context, *, enable_audit: bool = False) -> RuntimeContext:
    opts = _options(ctx)
    try:
        return bootstrap_runtime(
            opts.get("config"),
            repo_root=opts.get("repo_root"),
            catalog_override=opts.get("catalog"),
            enable_audit=enable_audit,
        )
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc


def _settings(ctx: typer.Context) -> MonetizationSettings:
    opts = _options(ctx)
    root = (opts.get("repo_root") or Path.cwd()).resolve()
    path = opts.get("config") or root / DEFAULT_CONFIG_PATH
    if not path.exists():
        if opts.get("config"):
            raise typer.BadParameter(f"Settings file not found: {path}")
        return MonetizationSettings()
    try:
        return load_settings(path, base_dir=root)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


@app.command()
def match(
    ctx: typer.Context,
    topic: str = typer.Argument(..., help="Article title or topic."),
    level: Optional[str] = typer.Option(None, "--level", "-l", help="Degree level text, e.g. \"Master's\"."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Match a topic to the best category/concentration."""
    runtime = _runtime(ctx)
    try:
        result = runtime.engine.match_topic_to_category(topic, level)
    finally:
        runtime.close()

    if as_json:
        _echo_json(result.model_dump(mode="json"))
    elif result.error_kind:
        console.print(f"[red]{result.error_kind}:[/red] {escape(result.error or '')}")
    elif not result.matched:
        console.print(f"[yellow]No match:[/yellow] {escape(result.error or '')}")
    else:
        table = Table(title=escape(f"Topic match for {topic!r}"))
        for header in ("Category", "Concentration", "IDs", "Score", "Confidence", "Level"):
            table.add_column(header)
        table.add_row(
            escape(result.category.category) if result.category else "",
            escape(result.category.concentration) if result.category else "",
            f"{result.category_id}/{result.concentration_id}",
            str(result.score),
            result.confidence or "",
            str(result.degree_level_code or "-"),
        )
        console.print(table)
    if not result.matched:
        raise typer.Exit(code=1)


@app.command()
def plan(
    article_type: str = typer.Argument("default", help="ranking, guide, listicle, explainer, review or default."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Show the slot plan for an article type."""
    slots = plan_slots(article_type)
    if as_json:
        _echo_json([slot.model_dump() for slot in slots])
        return
    table = Table(title=escape(f"Slots for {article_type!r}"))
    for header in ("Slot", "Style", "Max programs", "Min programs"):
        table.add_column(header)
    for slot in slots:
        table.add_row(slot.name, slot.style, str(slot.max_programs or "-"), str(style_spec(slot.style).min_programs))
    console.print(table)


def _print_result(result: MonetizationResult) -> None:
    table = Table(title=f"Monetization ({result.total_programs_selected} program(s))")
    for header in ("Slot", "Style", "Programs", "Sponsored"):
        table.add_column(header)
    for slot in result.slots:
        names = ", ".join(f"{p.program_name} ({p.institution_name})" for p in slot.selected_programs) or "-"
        table.add_row(slot.name, slot.style, Text(names), "yes" if slot.has_sponsored else "no")
    console.print(table)
    # Shortcodes are printed unwrapped so they can be pasted as-is.
    for slot in result.slots:
        if slot.shortcode:
            console.print(Text(f"{slot.name}: {slot.shortcode}"), soft_wrap=True)


@app.command()
def generate(
    ctx: typer.Context,
    category: int = typer.Option(..., "--category", help="Category id."),
    concentration: int = typer.Option(..., "--concentration", help="Concentration id."),
    level: Optional[int] = typer.Option(None, "--level", help="Degree level code."),
    article_type: str = typer.Option("default", "--type", help="Article type used to plan slots."),
    article_id: Optional[str] = typer.Option(None, "--article-id"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Select programs and render shortcodes for every slot."""
    runtime = _runtime(ctx)
    try:
        result = runtime.engine.generate_monetization(
            MonetizationRequest(
                article_id=article_id,
                category_id=category,
                concentration_id=concentration,
                degree_level_code=level,
                article_type=article_type,
            )
        )
    finally:
        runtime.close()

    if as_json:
        _echo_json(result.model_dump(mode="json"))
    elif result.success:
        _print_result(result)
    else:
        console.print(f"[red]{result.error_kind}:[/red] {escape(result.error or '')}")
    if not result.success:
        raise typer.Exit(code=1)


def _print_report(report: ComplianceReport) -> None:
    if not report.findings:
        console.print("[green]No compliance findings.[/green]")
        return
    table = Table(title="Compliance findings")
    for header in ("Severity", "Rule", "Message", "Detail"):
        table.add_column(header)
    for finding in report.findings:
        style = _SEVERITY_STYLES.get(finding.severity, "white")
        detail = finding.domain or (str(finding.count) if finding.count is not None else "")
        table.add_row(f"[{style}]{finding.severity}[/{style}]", finding.rule, Text(finding.message), Text(detail))
    console.print(table)
    verdict = "[green]valid[/green]" if report.is_valid else "[red]blocked[/red]"
    console.print(f"Result: {verdict}")


@app.command()
def validate(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="HTML or text file to check."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Check article content against the compliance rules."""
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    validator = ComplianceValidator(_settings(ctx).compliance)
    report = validator.validate(None, path.read_text(encoding="utf-8"))
    if as_json:
        _echo_json(
            {
                "is_valid": report.is_valid,
                "findings": [finding.to_dict() for finding in report.findings],
            }
        )
    else:
        _print_report(report)
    if not report.is_valid:
        raise typer.Exit(code=1)


def _print_summary(summary: BackfillSummary) -> None:
    mode = "DRY RUN (no changes made)" if summary.dry_run else "LIVE"
    console.print(f"[bold]Backfill[/bold] {mode}")
    table = Table()
    table.add_column("Article")
    table.add_column("Status")
    table.add_column("Reason")
    for outcome in summary.details:
        table.add_row(Text(outcome.title), outcome.status, Text(outcome.reason or ""))
    console.print(table)
    console.print(
        f"Processed {summary.processed}: updated {summary.updated}, "
        f"review {summary.marked_for_review}, skipped {summary.skipped}, errors {len(summary.errors)}"
    )


@app.command()
def backfill(
    ctx: typer.Context,
    execute: bool = typer.Option(False, "--execute", help="Write changes (default is a dry run)."),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Maximum articles to process."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Monetize existing draft articles."""
    runtime = _runtime(ctx, enable_audit=execute)
    try:
        runner = BackfillRunner(
            runtime.engine,
            runtime.validator,
            runtime.articles,
            runtime.settings.backfill,
            provenance=runtime.provenance,
        )
        summary = runner.run(limit=limit, dry_run=not execute)
    finally:
        runtime.close()

    if as_json:
        _echo_json(asdict(summary))
    else:
        _print_summary(summary)
        if runtime.provenance is not None:
            recorded = len(runtime.provenance.read("backfill"))
            console.print(Text(f"Audit trail: {runtime.provenance.output_path} ({recorded} backfill event(s))"), soft_wrap=True)
    if summary.errors:
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover
    app()
