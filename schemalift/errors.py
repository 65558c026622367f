"""Stage failures raised by the pipeline.

Only conditions that leave a stage with nothing usable are raised.  Local
problems (a selector the query engine rejects, a date that does not parse,
a single bad candidate entity) are absorbed where they happen.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schemalift.pipeline.models import ValidationReport


class PipelineError(Exception):
    """Base class for every stage failure.  ``str(exc)`` is the reason."""

    stage = "pipeline"

    def __init__(self, reason: str, stage: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        if stage is not None:
            self.stage = stage

    def to_dict(self) -> dict:
        return {"success": False, "stage": self.stage, "reason": self.reason}


class IngestionFailure(PipelineError):
    """The page could not be fetched or rendered."""

    stage = "ingestion"


class CleaningFailure(PipelineError):
    """The raw markup could not be turned into a content bundle."""

    stage = "cleaning"


class CollaboratorFailure(PipelineError):
    """A language-model collaborator failed or returned a malformed payload."""

    stage = "extraction"


class ValidationFailure(PipelineError):
    """No candidate entity survived validation.

    The partial :class:`ValidationReport` is kept on the exception so the
    rejection reasons are never lost.
    """

    stage = "validator"

    def __init__(self, reason: str, report: ValidationReport | None = None) -> None:
        super().__init__(reason)
        self.report = report

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.report is not None:
            payload["rejectedEntities"] = [r.to_dict() for r in self.report.rejected]
        return payload
