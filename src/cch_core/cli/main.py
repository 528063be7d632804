"""Typer-based command line interface for cch-core."""
from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import typer

from ..cleanup import BlobPolicy, create_backup, iter_clean, policy_from_path
from ..config import AppConfig, load_config
from ..errors import CchCoreError
from ..logging import configure_logging
from ..models import DetectedSecret, RedactionResult, ScanResult
from ..paths import default_config_document, default_transcripts_dir
from ..redactor import mask_document, render_report
from ..scanner import scan_document, scan_transcript
from ..transcript import analyze, find_large_transcripts, parse
from ..utils.fs import atomic_write_bytes
from ..utils.text import format_bytes

app = typer.Typer(help="Scan developer tool caches for secrets and oversized blobs")


@app.callback()
def main(ctx: typer.Context, config: Optional[Path] = typer.Option(None, "--config", metavar="PATH")) -> None:
    ctx.obj = load_config(config)
    configure_logging(ctx.obj.logging.normalized_level(), json_lines=ctx.obj.logging.json_lines)


def _config() -> AppConfig:
    return click.get_current_context().obj


def _secret_view(secret: DetectedSecret) -> Dict[str, Any]:
    view = asdict(secret)
    view.pop("raw_value")
    view["context"] = secret.context.replace(secret.raw_value, secret.masked_value)
    return view


def _result_view(result: ScanResult) -> Dict[str, Any]:
    return {
        "total_count": result.total_count,
        "high_confidence_count": result.high_confidence_count,
        "category_counts": result.category_counts,
        "secrets": [_secret_view(secret) for secret in result.secrets],
    }


def _load_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, ValueError) as exc:
        typer.echo(f"Could not read {path}: {exc}", err=True)
        raise typer.Exit(code=1)


@app.command("scan-secrets")
def scan_secrets(
    path: Optional[Path] = typer.Argument(None, help="JSON document or .jsonl transcript"),
    as_json: bool = typer.Option(False, "--json", help="Emit findings as JSON"),
) -> None:
    target = path or default_config_document()
    scanner_config = _config().scanner.to_scanner_config()
    if target.suffix == ".jsonl":
        try:
            transcript = parse(target)
        except (OSError, CchCoreError) as exc:
            typer.echo(f"Could not read {target}: {exc}", err=True)
            raise typer.Exit(code=1)
        result = scan_transcript(transcript, config=scanner_config)
    else:
        result = scan_document(_load_json(target), config=scanner_config)
    if as_json:
        typer.echo(json.dumps(_result_view(result), ensure_ascii=False, indent=2))
    else:
        typer.echo(render_report(result))


@app.command("mask-secrets")
def mask_secrets(
    path: Optional[Path] = typer.Argument(None, help="JSON configuration document"),
    execute: bool = typer.Option(False, "--execute", help="Rewrite the document (a backup is taken first)"),
) -> None:
    target = path or default_config_document()
    masked, count = mask_document(_load_json(target))
    if count == 0:
        typer.echo("No secrets to mask")
        return
    if not execute:
        typer.echo(f"Would mask {count} secret(s) in {target} (dry run)")
        return
    try:
        backup_path = create_backup(target)
        payload = (json.dumps(masked, ensure_ascii=False, indent=2) + "\n").encode("utf-8")
        atomic_write_bytes(target, payload)
    except (OSError, CchCoreError) as exc:
        typer.echo(f"Could not mask {target}: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Masked {count} secret(s) in {target}; backup at {backup_path}")


def _transcript_paths(path: Optional[Path], large_only: bool) -> List[Path]:
    target = path or default_transcripts_dir()
    if target.is_file():
        return [target]
    if large_only:
        return find_large_transcripts(target, _config().cleanup.large_transcript_threshold_bytes)
    return sorted(candidate for candidate in target.glob("*.jsonl") if candidate.is_file())


@app.command("analyze-blobs")
def analyze_blobs(
    path: Optional[Path] = typer.Argument(None, help="Transcript file or directory of transcripts"),
    large_only: bool = typer.Option(False, "--large-only", help="Only transcripts above the configured size"),
) -> None:
    policy = _config().cleanup.policy
    reports: List[Dict[str, Any]] = []
    for candidate in _transcript_paths(path, large_only):
        try:
            transcript = parse(candidate)
        except (OSError, CchCoreError) as exc:
            typer.echo(f"Could not read {candidate}: {exc}", err=True)
            continue
        analysis = analyze(transcript, safe_age=policy.safe_age)
        reports.append(
            {
                "path": str(candidate),
                "total_records": analysis.total_records,
                "total_size": format_bytes(analysis.total_size_bytes),
                "skipped_lines": analysis.skipped_lines,
                "potential_savings": format_bytes(analysis.potential_savings_bytes),
                "blob_percentage": round(analysis.blob_percentage, 1),
                "findings": [asdict(finding) for finding in analysis.findings],
            }
        )
    typer.echo(json.dumps(reports, ensure_ascii=False, indent=2))


def _clean_view(result: RedactionResult) -> Dict[str, Any]:
    return {
        "path": str(result.path),
        "success": result.success,
        "error": result.error,
        "dry_run": result.dry_run,
        "original_size_bytes": result.original_size_bytes,
        "new_size_bytes": result.new_size_bytes,
        "saved": format_bytes(max(0, result.saved_bytes)),
        "records_removed": result.records_removed,
        "records_sanitized": result.records_sanitized,
        "backup_path": str(result.backup_path) if result.backup_path else None,
    }


@app.command("clean-blobs")
def clean_blobs(
    path: Optional[Path] = typer.Argument(None, help="Transcript file or directory of transcripts"),
    policy_file: Optional[Path] = typer.Option(None, "--policy", help="YAML or JSON blob policy"),
    no_images: bool = typer.Option(False, "--no-images", help="Leave images in place"),
    no_large_text: bool = typer.Option(False, "--no-large-text", help="Leave large text and data dumps in place"),
    min_size: Optional[int] = typer.Option(None, "--min-size", help="Minimum blob size in bytes"),
    sanitize: bool = typer.Option(False, "--sanitize", help="Replace blobs with placeholders instead of dropping records"),
    execute: bool = typer.Option(False, "--execute", help="Rewrite transcripts (a backup is taken first)"),
    large_only: bool = typer.Option(False, "--large-only", help="Only transcripts above the configured size"),
) -> None:
    try:
        base: BlobPolicy = policy_from_path(policy_file) if policy_file else _config().cleanup.policy
    except (OSError, ValueError, CchCoreError) as exc:
        typer.echo(f"Could not load policy: {exc}", err=True)
        raise typer.Exit(code=2)
    updates: Dict[str, Any] = {"dry_run": not execute}
    if no_images:
        updates["remove_images"] = False
    if no_large_text:
        updates["remove_large_text"] = False
    if min_size is not None:
        updates["min_blob_size_bytes"] = min_size
    if sanitize:
        updates["sanitize"] = True
    policy = base.model_copy(update=updates)

    failed = False
    for result in iter_clean(_transcript_paths(path, large_only), policy):
        failed = failed or not result.success
        typer.echo(json.dumps(_clean_view(result), ensure_ascii=False))
    if failed:
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    from ..version import __version__

    typer.echo(__version__)


if __name__ == "__main__":  # pragma: no cover
    app()
