"""Typer CLI entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import orjson
import typer

from aceras.config import Settings
from aceras.db.client import apply_schema, db_cursor
from aceras.db.reports import fetch_legacy_rows, write_rescored
from aceras.errors import ReportError
from aceras.intake.analysis import envelope_model, needs_retake, parse_analysis
from aceras.intake.gate import IntakeGate
from aceras.intake.reconcile import draft_to_intake, reconcile
from aceras.models import RejectDecision, WalkabilityBuckets
from aceras.scoring.legacy import rescore_legacy_row
from aceras.scoring.walkability import score_walkability
from aceras.utils.logging import configure_logging, get_logger


app = typer.Typer(help="Aceras Check report core CLI")
db_app = typer.Typer(help="Database utilities")

app.add_typer(db_app, name="db")

logger = get_logger(__name__)


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        typer.echo(f"File not found: {path}", err=True)
        raise typer.Exit(2)


def _load_json(path: Path) -> Any:
    try:
        return orjson.loads(_read_bytes(path))
    except orjson.JSONDecodeError as exc:
        typer.echo(f"Invalid JSON in {path}: {exc}", err=True)
        raise typer.Exit(2)


def _echo_json(data: Any) -> None:
    typer.echo(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode("utf-8"))


@app.callback()
def main() -> None:
    """Initialize logging for all commands."""
    settings = Settings()
    configure_logging(settings.log_level)


@app.command("score")
def score(
    path: Path = typer.Argument(..., help="JSON file with a report intake or its buckets"),
) -> None:
    """Score the walkability buckets of an intake."""
    data = _load_json(path)
    buckets_data = data.get("buckets", data) if isinstance(data, dict) else data
    try:
        buckets = WalkabilityBuckets.model_validate(buckets_data)
    except ValueError as exc:
        typer.echo(f"Invalid buckets: {exc}", err=True)
        raise typer.Exit(1)
    _echo_json(score_walkability(buckets).as_dict())


@app.command("validate")
def validate_cmd(
    path: Path = typer.Argument(..., help="JSON file with a report intake"),
) -> None:
    """Run the intake gate and print the decision."""
    decision = IntakeGate().evaluate(_load_json(path))
    if isinstance(decision, RejectDecision):
        _echo_json({"accepted": False, "reason": decision.reason, "field": decision.field,
                    "message": str(decision.error)})
        raise typer.Exit(1)

    _echo_json(
        {
            "accepted": True,
            "review_reason": decision.review_reason,
            "review_details": decision.review_details,
            "intake": decision.intake.model_dump(mode="json"),
        }
    )


@app.command("draft")
def draft(
    path: Path = typer.Argument(..., help="Vision model response (JSON or text)"),
    lat: float = typer.Option(..., help="Report latitude"),
    lng: float = typer.Option(..., help="Report longitude"),
    category: Optional[str] = typer.Option(None, help="Category (suggested when omitted)"),
    edits: Optional[Path] = typer.Option(None, help="JSON file with reviewer edits"),
) -> None:
    """Parse an AI draft, apply reviewer edits and print the resulting intake."""
    settings = Settings()
    payload = _read_bytes(path)
    user_edits = _load_json(edits) if edits else {}

    try:
        analysis = parse_analysis(payload)
        reconciled = reconcile(analysis, user_edits)
        intake, provenance = draft_to_intake(
            reconciled,
            location={"lat": lat, "lng": lng},
            category=category,
            model_id=envelope_model(payload),
            settings=settings,
        )
    except ReportError as exc:
        typer.echo(f"Draft rejected: {exc}", err=True)
        raise typer.Exit(1)

    _echo_json(
        {
            "retake_recommended": needs_retake(analysis, settings),
            "changed_fields": list(reconciled.changed_fields),
            "intake": intake.model_dump(mode="json"),
            "provenance": provenance.model_dump(mode="json", exclude={"ai_raw_response"}),
            "scores": score_walkability(intake.buckets).as_dict(),
        }
    )


@db_app.command("check")
def db_check() -> None:
    """Check database connectivity."""
    try:
        with db_cursor() as cursor:
            cursor.execute("select 1")
            logger.info("db.check.ok")
    except Exception as exc:
        logger.error("db.check.failed: %s", exc)
        typer.echo(f"Database check failed: {exc}", err=True)
        raise typer.Exit(1)


@db_app.command("init")
def db_init(
    schema_dir: Path = typer.Option(Path("sql"), help="Directory with numbered .sql files"),
) -> None:
    """Create the reports table and indexes."""
    try:
        with db_cursor() as cursor:
            applied = apply_schema(cursor, schema_dir)
    except FileNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(2)
    typer.echo(f"Applied {len(applied)} schema file(s)")


@db_app.command("rescore-legacy")
def db_rescore_legacy(
    limit: Optional[int] = typer.Option(None, help="Max rows to migrate"),
    dry_run: bool = typer.Option(False, help="Do not write to DB"),
) -> None:
    """Rescore rows written by the deprecated percentage scheme."""
    settings = Settings()
    with db_cursor(settings) as cursor:
        rows = fetch_legacy_rows(cursor, limit=limit)

    logger.info("rescore_legacy.start", extra={"rows": len(rows), "dry_run": dry_run})
    migrated = 0
    failures = 0
    for row in rows:
        try:
            rescore = rescore_legacy_row(row)
        except ReportError as exc:
            failures += 1
            logger.warning("rescore_legacy.failed report_id=%s: %s", row.get("id"), exc)
            continue

        if dry_run:
            migrated += 1
            continue

        with db_cursor(settings) as cursor:
            if write_rescored(cursor, rescore):
                migrated += 1

    logger.info(
        "rescore_legacy.complete",
        extra={"migrated": migrated, "failures": failures, "dry_run": dry_run},
    )
    typer.echo(f"Migrated {migrated} rows ({failures} failed)")


if __name__ == "__main__":
    app()
