"""CLI I/O helpers for atomic output writing and input loading."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from formbind.binding.document import Submission
from formbind.validate.models import ValidationReport

_LITERAL_TAGS = frozenset(
    {"tag:yaml.org,2002:int", "tag:yaml.org,2002:float", "tag:yaml.org,2002:timestamp"}
)


class _ValueFileLoader(yaml.SafeLoader):
    """Safe loader that keeps numbers, times and dates as the strings written.

    YAML 1.1 would read an unquoted ``14:30`` as the base-60 integer 870.
    """


_ValueFileLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _LITERAL_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


@dataclass(frozen=True)
class OutputPaths:
    """Fixed output artifact paths for a single fill run."""

    markdown: Path
    submission: Path
    validation: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    """Build fixed output file paths under out_dir."""

    return OutputPaths(
        markdown=out_dir / "out.md",
        submission=out_dir / "out.submission.json",
        validation=out_dir / "out.validation.json",
    )


def existing_output_files(paths: OutputPaths) -> list[Path]:
    """Return existing output files among fixed artifact paths."""

    candidates = [paths.markdown, paths.submission, paths.validation]
    return [path for path in candidates if path.exists()]


def write_fill_output_atomic(paths: OutputPaths, submission: Submission, report: ValidationReport) -> None:
    """Write the three fill artifacts atomically using temporary files + replace."""

    paths.markdown.parent.mkdir(parents=True, exist_ok=True)
    write_bytes_atomic(paths.markdown, submission.document_text.encode("utf-8"))
    _atomic_write_json(paths.submission, submission.model_dump(mode="json"))
    _atomic_write_json(paths.validation, report.model_dump(mode="json"))


def write_bytes_atomic(path: Path, content: bytes) -> None:
    """Write binary content atomically (export artifacts, Markdown)."""

    path.parent.mkdir(parents=True, exist_ok=True)

    fd, raw_tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f"{path.name}.",
        suffix=".tmp",
    )
    os.close(fd)
    tmp_path = Path(raw_tmp_path)

    try:
        tmp_path.write_bytes(content)
        tmp_path.replace(path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
        raise


def load_mapping(path: Path) -> dict[str, Any]:
    """Load a JSON or YAML file that must contain a mapping."""

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.load(text, Loader=_ValueFileLoader)  # noqa: S506
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"{path.name} is not valid JSON or YAML") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path.name} must contain a mapping")
    return raw


def load_submission(path: Path) -> Submission:
    """Load a persisted submission JSON or treat a Markdown file as bare text."""

    if path.suffix.lower() == ".json":
        return Submission.model_validate(load_mapping(path))
    return Submission(document_text=path.read_text(encoding="utf-8"))


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

    tmp_path.replace(path)
