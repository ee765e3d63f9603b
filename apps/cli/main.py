"""Typer CLI entrypoint for formbind."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, cast

import typer

from apps.cli.io import (
    build_output_paths,
    existing_output_files,
    load_mapping,
    load_submission,
    write_bytes_atomic,
    write_fill_output_atomic,
)
from formbind.binding.session import EditSession
from formbind.config.loader import load_settings
from formbind.orchestrator.export import ExportFormat, export_document
from formbind.render.diff import changed_line_count, diff
from formbind.schema.models import TemplateKind
from formbind.schema.registry import fields_for, list_template_kinds, resolve_kind
from formbind.schema.roster import Roster
from formbind.templates.blanks import load_blank_template
from formbind.templates.classifier import classify
from formbind.utils.errors import (
    ExportFailedError,
    UnknownFieldError,
    UnknownRosterEntryError,
    UnknownTemplateKindError,
)

app = typer.Typer(help="Template field binding CLI", rich_markup_mode=None)

_DIFF_MARKERS = {"unchanged": " ", "added": "+", "modified": "~"}


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep subcommands explicit."""


@app.command("kinds")
def kinds_command() -> None:
    """List known template kinds in classification order."""

    for kind in list_template_kinds():
        typer.echo(kind.value)


@app.command("classify")
def classify_command(
    template: Annotated[Path, typer.Argument(exists=True, dir_okay=False, file_okay=True)],
) -> None:
    """Print the template kind of a Markdown file."""

    typer.echo(classify(template.read_text(encoding="utf-8")).value)


@app.command("fields")
def fields_command(
    kind: Annotated[str, typer.Argument()],
    as_json: Annotated[bool, typer.Option("--json", help="Emit field definitions as JSON.")] = False,
    roster: Annotated[Path | None, typer.Option(exists=True, dir_okay=False)] = None,
) -> None:
    """List the field definitions of a template kind in registry order."""

    try:
        resolved = resolve_kind(kind.upper())
        roster_model = _load_roster(roster)
    except (UnknownTemplateKindError, ValueError) as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    fields = fields_for(resolved, roster_model)
    if as_json:
        payload = [
            {
                "key": field.key,
                "label": field.label,
                "value_type": field.value_type.value,
                "required": field.required,
                "options": [{"value": o.value, "label": o.label} for o in field.options],
            }
            for field in fields
        ]
        typer.echo(json.dumps(payload, ensure_ascii=False))
        return

    for field in fields:
        marker = "*" if field.required else " "
        typer.echo(f"{marker} {field.key:<32} {field.value_type.value:<14} {field.label}")


@app.command("fill")
def fill_command(
    values: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    template: Annotated[Path | None, typer.Option(exists=True, dir_okay=False)] = None,
    submission: Annotated[Path | None, typer.Option(exists=True, dir_okay=False)] = None,
    kind: Annotated[str | None, typer.Option(help="Start from the bundled blank template.")] = None,
    roster: Annotated[Path | None, typer.Option(exists=True, dir_okay=False)] = None,
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    no_overwrite: Annotated[
        bool,
        typer.Option("--no-overwrite", help="Fail when outputs already exist."),
    ] = False,
) -> None:
    """Bind a value file into a template or submission and write fixed outputs."""

    sources = [source for source in (template, submission, kind) if source is not None]
    if len(sources) != 1:
        typer.echo("ERROR: pass exactly one of --template, --submission, --kind.")
        raise typer.Exit(code=1)

    paths = build_output_paths(out_dir)
    existing = existing_output_files(paths)
    if existing and no_overwrite:
        typer.echo("ERROR: outputs already exist and --no-overwrite is enabled.")
        raise typer.Exit(code=1)
    if existing:
        names = ", ".join(path.name for path in existing)
        typer.echo(f"INFO: overwriting existing outputs: {names}")

    try:
        roster_model = _load_roster(roster)
        if submission is not None:
            loaded = load_submission(submission)
            session = EditSession.open(
                loaded, roster_model, template_text=_blank_baseline(loaded.document_text)
            )
        elif template is not None:
            session = EditSession.new(template.read_text(encoding="utf-8"), roster_model)
        else:
            session = EditSession.new(
                load_blank_template(resolve_kind(cast(str, kind).upper())), roster_model
            )
        session.bind_many(load_mapping(values))
    except (
        UnknownFieldError,
        UnknownRosterEntryError,
        UnknownTemplateKindError,
        ValueError,
        TypeError,
    ) as exc:
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    report = session.validate()
    try:
        write_fill_output_atomic(paths, session.save(), report)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: write output failed: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(f"INFO: kind={session.kind.value} changed_lines={changed_line_count(session.diff())}")
    if not report.passed:
        typer.echo(f"ERROR: missing required fields ({report.missing_count})")
        for issue in report.issues:
            typer.echo(f"  - {issue.message}")
        raise typer.Exit(code=2)

    typer.echo("INFO: success")


@app.command("diff")
def diff_command(
    original: Annotated[Path, typer.Argument(exists=True, dir_okay=False)],
    current: Annotated[Path, typer.Argument(exists=True, dir_okay=False)],
    changed_only: Annotated[bool, typer.Option("--changed-only")] = False,
) -> None:
    """Print a positional line diff between two Markdown files."""

    try:
        current_text = load_submission(current).document_text
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    lines = diff(original.read_text(encoding="utf-8"), current_text)
    for line in lines:
        if changed_only and not line.has_changes:
            continue
        typer.echo(f"{_DIFF_MARKERS[line.kind]} {line.index + 1:>4} {line.content}")


@app.command("export")
def export_command(
    document: Annotated[Path, typer.Argument(exists=True, dir_okay=False)],
    fmt: Annotated[str, typer.Option("--format")] = "pdf",
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    stem: Annotated[str | None, typer.Option(help="Suffix for form-entry-<stem>.<ext>.")] = None,
    settings: Annotated[Path | None, typer.Option(exists=True, dir_okay=False)] = None,
) -> None:
    """Export a Markdown document or submission JSON to PDF or Word."""

    normalized_format = fmt.lower().strip()
    if normalized_format not in {"pdf", "docx"}:
        typer.echo("ERROR: --format must be one of: pdf, docx.")
        raise typer.Exit(code=1)

    try:
        engine_settings = load_settings(settings)
        loaded = load_submission(document)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    try:
        artifact = export_document(
            loaded.document_text,
            engine_settings.export,
            cast(ExportFormat, normalized_format),
            stem or loaded.submission_id,
        )
    except ExportFailedError as exc:
        typer.echo(f"ERROR: export failed at {exc.stage}: {exc}")
        raise typer.Exit(code=1) from exc

    target = out_dir / artifact.filename
    write_bytes_atomic(target, artifact.content)
    typer.echo(f"INFO: wrote {target} ({artifact.page_count} pages)")


def _blank_baseline(document_text: str) -> str | None:
    kind = classify(document_text)
    if kind is TemplateKind.UNKNOWN:
        return None
    return load_blank_template(kind)


def _load_roster(path: Path | None) -> Roster | None:
    if path is None:
        return None
    return Roster.model_validate(load_mapping(path))


def main() -> None:
    """Poetry script entrypoint."""

    app()


if __name__ == "__main__":
    main()
