"""Job opening document models.

Defines the Pydantic v2 models for the documents this service stores and
indexes.  Wire format (HTTP bodies, JSON files on disk, vector metadata) is
camelCase to stay compatible with existing job opening files; Python code
uses snake_case attributes via aliases.

    JobOpening       -- the validated payload accepted by POST /job-openings
    DocumentMetadata -- descriptive metadata generated at write time
    StoredDocument   -- JobOpening + id + metadata, as written to disk

All models are frozen: a stored document never changes after creation, it
can only be deleted.
"""

from __future__ import annotations

import re
import time
from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from src.utils.errors import ValidationError
from src.utils.hashing import content_hash as hash_payload

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Field names (wire form) listed in every document's metadata.
RELATED_FIELDS: tuple[str, ...] = (
    "position",
    "category",
    "type",
    "schedule",
    "location",
    "salaryRange",
    "description",
    "keyResponsibilities",
    "requirements",
    "qualifications",
    "experienceRequired",
)

# Generic hiring keywords prepended to the per-document keywords.
HIRING_KEYWORDS: tuple[str, ...] = (
    "job opening",
    "employment",
    "vacancy",
    "hiring",
    "recruitment",
    "career opportunity",
)

DOCUMENT_TYPE = "jobOpening"
DOCUMENT_DOMAIN = "employment"
DOCUMENT_DESCRIPTION = "This document contains detailed information about a job opening."

JOB_ID_PREFIX = "jobOpening"
JOB_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class JobOpening(BaseModel):
    """A job opening as submitted by a client.

    Required string fields must be non-empty after trimming; the three list
    fields hold free-text bullet points.  ``qualifications`` is optional.
    Unknown keys are ignored.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    position: NonEmptyStr
    category: NonEmptyStr
    # "type" on the wire (Full-time, Contract, ...); renamed to avoid the builtin.
    employment_type: NonEmptyStr = Field(alias="type")
    schedule: NonEmptyStr
    location: NonEmptyStr
    salary_range: NonEmptyStr
    description: NonEmptyStr
    key_responsibilities: list[str]
    requirements: list[str]
    qualifications: list[str] | None = None
    experience_required: NonEmptyStr

    def to_wire(self) -> dict[str, Any]:
        """Return the camelCase JSON-ready form, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def content_hash(self) -> str:
        """Stable SHA-256 digest of the canonical JSON form of this opening.

        Only the JobOpening fields take part, so a StoredDocument hashes the
        same as the payload it was built from.
        """
        fields = set(JobOpening.model_fields)
        return hash_payload(self.model_dump(by_alias=True, exclude_none=True, include=fields))


class DocumentMetadata(BaseModel):
    """Descriptive metadata attached to a job opening when it is stored."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    file_path: str = ""
    document_type: str = DOCUMENT_TYPE
    contains_job_opening: bool = True
    domain: str = DOCUMENT_DOMAIN
    description: str = DOCUMENT_DESCRIPTION
    related_fields: list[str] = Field(default_factory=lambda: list(RELATED_FIELDS))
    keywords: list[str] = Field(default_factory=list)
    summary: str = ""
    content_hash: str = ""


class StoredDocument(JobOpening):
    """A job opening together with its id and generated metadata."""

    id: NonEmptyStr
    metadata: DocumentMetadata

    @classmethod
    def build(cls, job: JobOpening, doc_id: str, file_path: str = "") -> StoredDocument:
        """Attach generated metadata to *job*."""
        metadata = DocumentMetadata(
            file_path=file_path,
            keywords=[*HIRING_KEYWORDS, job.position, job.category, job.location],
            summary=f"Job opening for {job.position} in {job.location}.",
            content_hash=job.content_hash(),
        )
        return cls(**job.model_dump(), id=doc_id, metadata=metadata)

    def job_opening(self) -> JobOpening:
        """Return the bare :class:`JobOpening` without id and metadata."""
        return JobOpening.model_validate(self.model_dump(exclude={"id", "metadata"}))

    def to_summary(self) -> dict[str, Any]:
        """Listing form: the document with metadata reduced to ``filePath``."""
        data = self.to_wire()
        data["metadata"] = {"filePath": self.metadata.file_path}
        return data


def _trim_errors(exc: PydanticValidationError) -> list[dict[str, object]]:
    return [
        {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
        for err in exc.errors()
    ]


def parse_job_opening(payload: Any) -> JobOpening:
    """Validate *payload* against the JobOpening schema.

    Raises
    ------
    ValidationError
        If *payload* is not a mapping or any field fails validation.
    """
    if isinstance(payload, JobOpening):
        return payload
    if not isinstance(payload, Mapping):
        raise ValidationError(
            message="Invalid job opening data: expected a JSON object",
            errors=[{"loc": "", "msg": f"got {type(payload).__name__}"}],
        )
    try:
        return JobOpening.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise ValidationError(errors=_trim_errors(exc)) from exc


def new_job_id(now_ms: int | None = None) -> str:
    """Return a fresh ``jobOpening-<epoch millis>`` document id."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{JOB_ID_PREFIX}-{now_ms}"


def validate_job_id(job_id: Any) -> str:
    """Return *job_id* unchanged if it is a safe document id.

    Ids double as file stems, so only letters, digits, ``_`` and ``-`` are
    accepted.
    """
    if not isinstance(job_id, str) or not JOB_ID_PATTERN.fullmatch(job_id):
        raise ValidationError(
            message="Invalid job opening id",
            errors=[{"loc": "jobId", "msg": "must match ^[A-Za-z0-9_-]+$"}],
        )
    return job_id


def parse_stored_document(payload: Any) -> StoredDocument:
    """Validate a stored document read back from disk."""
    try:
        return StoredDocument.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(
            message="Stored job opening is malformed",
            errors=_trim_errors(exc),
        ) from exc
