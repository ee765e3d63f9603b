from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from apps.cli.main import app
from formbind.schema.models import TemplateKind
from formbind.templates.blanks import load_blank_template

runner = CliRunner()


def _write_blank(path: Path, kind: TemplateKind) -> Path:
    path.write_text(load_blank_template(kind), encoding="utf-8")
    return path


def test_kinds_lists_classification_order() -> None:
    result = runner.invoke(app, ["kinds"])

    assert result.exit_code == 0
    assert result.stdout.split() == [
        "TOOLBOX_MEETING",
        "VIDEO_SURVEILLANCE_CHECKLIST",
        "WORK_AT_HEIGHT_PERMIT",
        "PERMIT_TO_WORK",
    ]


def test_classify_prints_template_kind(tmp_path: Path) -> None:
    template = _write_blank(tmp_path / "wah.md", TemplateKind.WORK_AT_HEIGHT_PERMIT)
    other = tmp_path / "other.md"
    other.write_text("# Lunch menu\n", encoding="utf-8")

    known = runner.invoke(app, ["classify", str(template)])
    unknown = runner.invoke(app, ["classify", str(other)])

    assert known.stdout.strip() == "WORK_AT_HEIGHT_PERMIT"
    assert unknown.stdout.strip() == "UNKNOWN"


def test_fields_json_includes_roster_options(tmp_path: Path) -> None:
    roster = tmp_path / "roster.yaml"
    roster.write_text(
        "jobs:\n  - id: j1\n    title: Tower A\n    job_number: '1042'\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["fields", "toolbox_meeting", "--json", "--roster", str(roster)])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert len(payload) == 54
    assert payload[0]["key"] == "tbm_project_title"
    assert payload[0]["required"] is True
    assert payload[0]["options"] == [{"value": "Tower A", "label": "Tower A (#1042)"}]


def test_fields_table_marks_required_fields() -> None:
    result = runner.invoke(app, ["fields", "VIDEO_SURVEILLANCE_CHECKLIST"])

    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert len(lines) == 18
    assert lines[0].startswith("* vss_project_location")
    assert lines[3].startswith("  vss_serial_1")


def test_fields_rejects_unknown_kind() -> None:
    result = runner.invoke(app, ["fields", "hot_work_permit"])

    assert result.exit_code == 1
    assert "ERROR:" in result.stdout


def test_diff_marks_added_and_modified_lines(tmp_path: Path) -> None:
    original = tmp_path / "a.md"
    current = tmp_path / "b.md"
    original.write_text("title\n\nvalue: _\n", encoding="utf-8")
    current.write_text("title\nnew\nvalue: 42\n", encoding="utf-8")

    result = runner.invoke(app, ["diff", str(original), str(current), "--changed-only"])

    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["+    2 new", "~    3 value: 42"]


def test_export_writes_pdf_named_after_submission(tmp_path: Path) -> None:
    settings = tmp_path / "settings.yaml"
    settings.write_text("export:\n  dpi: 72\n", encoding="utf-8")
    entry = tmp_path / "entry.json"
    entry.write_text(
        json.dumps(
            {
                "document_text": load_blank_template(TemplateKind.TOOLBOX_MEETING),
                "submission_id": "42",
            }
        ),
        encoding="utf-8",
    )
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        ["export", str(entry), "--out-dir", str(out_dir), "--settings", str(settings)],
    )

    assert result.exit_code == 0
    target = out_dir / "form-entry-42.pdf"
    assert target.read_bytes().startswith(b"%PDF")
    assert list(out_dir.glob("*.tmp")) == []


def test_export_writes_docx_with_explicit_stem(tmp_path: Path) -> None:
    document = _write_blank(tmp_path / "ptw.md", TemplateKind.PERMIT_TO_WORK)
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        ["export", str(document), "--format", "DOCX", "--out-dir", str(out_dir), "--stem", "draft"],
    )

    assert result.exit_code == 0
    assert (out_dir / "form-entry-draft.docx").read_bytes().startswith(b"PK")


def test_export_rejects_unknown_format(tmp_path: Path) -> None:
    document = _write_blank(tmp_path / "ptw.md", TemplateKind.PERMIT_TO_WORK)

    result = runner.invoke(app, ["export", str(document), "--format", "html"])

    assert result.exit_code == 1
    assert "--format must be one of" in result.stdout


def test_diff_reports_malformed_submission(tmp_path: Path) -> None:
    original = _write_blank(tmp_path / "tbm.md", TemplateKind.TOOLBOX_MEETING)
    current = tmp_path / "entry.json"
    current.write_text("{not json", encoding="utf-8")

    result = runner.invoke(app, ["diff", str(original), str(current)])

    assert result.exit_code == 1
    assert result.stdout.startswith("ERROR:")
