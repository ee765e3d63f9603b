"""Editing session: one document, one value map, one template kind.

The kind is classified once when the session opens and never changes for
the lifetime of the session. Every edit goes through the binder and
replaces the session's document.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from formbind.binding.binder import bind
from formbind.binding.document import Document, Submission
from formbind.capture.adapters import ImageUploadAdapter, SignatureCaptureAdapter
from formbind.config.models import ExportSettings
from formbind.orchestrator.export import ExportFormat, export_document, export_document_async
from formbind.render.diff import diff as diff_lines
from formbind.render.images import ImageLoader
from formbind.render.models import DiffLine, ExportArtifact
from formbind.schema.models import FieldDefinition, TemplateKind, ValueType
from formbind.schema.registry import fields_for
from formbind.schema.roster import Roster, Worker
from formbind.templates.classifier import classify
from formbind.utils.errors import (
    CaptureFailedError,
    UnknownFieldError,
    UnknownRosterEntryError,
    UploadFailedError,
)
from formbind.validate.models import ValidationReport
from formbind.validate.validator import validate as validate_values

logger = logging.getLogger("formbind.engine")


class EditSession:
    def __init__(self, document: Document, roster: Roster | None = None, submission_id: str | None = None) -> None:
        self._document = document
        self._roster = roster
        self._submission_id = submission_id
        self._kind = classify(document.original_text)
        self._fields = fields_for(self._kind, roster)
        self._by_key = {field.key: field for field in self._fields}
        logger.debug("session opened: kind=%s fields=%s", self._kind.value, len(self._fields))

    @classmethod
    def new(cls, template_text: str, roster: Roster | None = None) -> EditSession:
        """Start a session from a blank template."""

        return cls(Document.from_text(template_text), roster)

    @classmethod
    def open(
        cls,
        submission: Submission,
        roster: Roster | None = None,
        *,
        template_text: str | None = None,
    ) -> EditSession:
        """Reconstruct a session from a persisted ``{document_text, value_map}`` pair.

        Without ``template_text`` the persisted text is its own baseline, so
        the diff starts clean and clearing a field restores the persisted
        region. With it, the blank template becomes the baseline.
        """

        original = template_text if template_text is not None else submission.document_text
        document = Document(
            original_text=original,
            text=submission.document_text,
            values=dict(submission.value_map),
        )
        return cls(document, roster, submission.submission_id)

    @property
    def kind(self) -> TemplateKind:
        return self._kind

    @property
    def fields(self) -> list[FieldDefinition]:
        return list(self._fields)

    @property
    def document(self) -> Document:
        return self._document

    @property
    def text(self) -> str:
        return self._document.text

    @property
    def values(self) -> dict[str, Any]:
        return dict(self._document.values)

    def field(self, key: str) -> FieldDefinition:
        try:
            return self._by_key[key]
        except KeyError:
            raise UnknownFieldError(key, kind=self._kind.value) from None

    def set_value(self, key: str, value: Any) -> Document:
        """Bind ``value`` to the field ``key``; ``None`` clears it."""

        field = self.field(key)
        if field.value_type is ValueType.PERSON_ROW and isinstance(value, str):
            value = self._resolve_worker(value) if value else None
        self._document = bind(self._document, field, value)
        return self._document

    def bind_many(self, values: Mapping[str, Any]) -> Document:
        """Apply several edits in registry order.

        Unknown keys are rejected before anything is bound.
        """

        for key in values:
            self.field(key)
        for field in self._fields:
            if field.key in values:
                self.set_value(field.key, values[field.key])
        return self._document

    def validate(self) -> ValidationReport:
        return validate_values(self._fields, self._document.values)

    def diff(self) -> list[DiffLine]:
        return diff_lines(self._document.original_text, self._document.text)

    def save(self) -> Submission:
        return Submission(
            document_text=self._document.text,
            value_map=dict(self._document.values),
            submission_id=self._submission_id,
            template_name=self._kind.value,
        )

    def export(
        self,
        settings: ExportSettings | None = None,
        fmt: ExportFormat = "pdf",
        image_loader: ImageLoader | None = None,
    ) -> ExportArtifact:
        return export_document(self._document, settings, fmt, self._submission_id, image_loader)

    async def export_async(
        self,
        settings: ExportSettings | None = None,
        fmt: ExportFormat = "pdf",
        image_loader: ImageLoader | None = None,
    ) -> ExportArtifact:
        return await export_document_async(self._document, settings, fmt, self._submission_id, image_loader)

    async def attach_signature(self, key: str, adapter: SignatureCaptureAdapter) -> Document:
        """Capture a signature into ``key``; the field stays unchanged on failure."""

        field = self._image_field(key)
        try:
            reference = await adapter.capture()
        except CaptureFailedError as exc:
            exc.field_key = key
            raise
        return self._bind_reference(field, reference)

    async def attach_upload(
        self,
        key: str,
        adapter: ImageUploadAdapter,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> Document:
        """Upload ``content`` and bind the returned URL into ``key``."""

        field = self._image_field(key)
        try:
            reference = await adapter.upload(filename, content, content_type)
        except UploadFailedError as exc:
            exc.field_key = key
            raise
        return self._bind_reference(field, reference)

    def _bind_reference(self, field: FieldDefinition, reference: str) -> Document:
        # the document may have been replaced while the capture was pending
        self._document = bind(self._document, field, reference)
        return self._document

    def _image_field(self, key: str) -> FieldDefinition:
        field = self.field(key)
        if not field.value_type.is_image:
            raise ValueError(f"Field {key} does not take an image")
        return field

    def _resolve_worker(self, worker_id: str) -> Worker:
        if self._roster is None:
            raise UnknownRosterEntryError(worker_id)
        worker = self._roster.find_worker(worker_id)
        if worker is None:
            raise UnknownRosterEntryError(worker_id)
        return worker
