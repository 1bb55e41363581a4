"""Core data models for report intake and persisted records."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from aceras.errors import ReportError, ReportValidationError
from aceras.intake.photo import check_photo_content_type
from aceras.intake.vocabulary import (
    REPORT_CATEGORIES,
    amenity_toggles,
    contaminant_set,
    obstruction_set,
)
from aceras.utils.text import normalize_tag, normalize_whitespace


Rating = Annotated[int, Field(ge=1, le=5)]

SCORE_SCHEME = "buckets_v1"


class ReportStatus(str, Enum):
    """Report lifecycle; reports only move forward."""

    PENDING = "pending"
    VERIFIED = "verified"
    RESOLVED = "resolved"

    @property
    def rank(self) -> int:
        return STATUS_ORDER.index(self)


STATUS_ORDER: tuple[ReportStatus, ...] = (
    ReportStatus.PENDING,
    ReportStatus.VERIFIED,
    ReportStatus.RESOLVED,
)


class IntakeModel(BaseModel):
    """Base for intake shapes: immutable, camelCase or snake_case keys."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class ReportLocation(IntakeModel):
    """WGS84 point of the report with optional reverse-geocoded labels."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address_label: Optional[str] = None
    road_name: Optional[str] = None


class UtilidadIntake(IntakeModel):
    """Amenities reachable within a 15 minute walk."""

    amenities: dict[str, bool] = Field(default_factory=dict)

    @field_validator("amenities", mode="before")
    @classmethod
    def _canonical_amenities(cls, value: object) -> object:
        if isinstance(value, dict):
            return amenity_toggles(value)
        return value


class SeguridadIntake(IntakeModel):
    """SEGURIDAD questionnaire answers."""

    has_sidewalk: Optional[bool] = None
    width_rating: Optional[Rating] = None
    obstructions: frozenset[str] = Field(default_factory=frozenset)
    comfort_space_rating: Optional[Rating] = None
    has_lighting: Optional[bool] = None
    lighting_rating: Optional[Rating] = None

    @field_validator("obstructions", mode="before")
    @classmethod
    def _canonical_obstructions(cls, value: object) -> object:
        if isinstance(value, (list, tuple, set, frozenset)):
            return obstruction_set(value)
        return value


class ComodidadIntake(IntakeModel):
    """COMODIDAD answers: shade and contamination."""

    shade_rating: Optional[Rating] = None
    contaminants: frozenset[str] = Field(default_factory=frozenset)
    contamination_severity: Optional[Rating] = Field(
        default=None,
        validation_alias=AliasChoices(
            "contamination_severity", "contaminationSeverity", "severity"
        ),
    )

    @field_validator("contaminants", mode="before")
    @classmethod
    def _canonical_contaminants(cls, value: object) -> object:
        if isinstance(value, (list, tuple, set, frozenset)):
            return contaminant_set(value)
        return value


class InteresanteIntake(IntakeModel):
    """INTERESANTE answers: ground-floor commerce and street vibe."""

    has_commerce: Optional[bool] = None
    commerce_count: int = Field(default=0, ge=0)
    vibe_rating: Optional[Rating] = None


class WalkabilityBuckets(IntakeModel):
    """The four independently capped scoring buckets."""

    utilidad: UtilidadIntake = Field(default_factory=UtilidadIntake)
    seguridad: SeguridadIntake = Field(default_factory=SeguridadIntake)
    comodidad: ComodidadIntake = Field(default_factory=ComodidadIntake)
    interesante: InteresanteIntake = Field(default_factory=InteresanteIntake)


class PhotoAttachment(IntakeModel):
    """Reference to a photo handed to the upload collaborator."""

    content_type: str
    size_bytes: Optional[int] = Field(default=None, ge=0)
    path: Optional[str] = None
    url: Optional[str] = None

    @field_validator("content_type")
    @classmethod
    def _supported_encoding(cls, value: str) -> str:
        return check_photo_content_type(value)


class ReportIntake(IntakeModel):
    """Validated report answers prior to scoring."""

    location: ReportLocation
    category: str
    description: str
    severity: Optional[Rating] = None
    condition_rating: Optional[Rating] = None
    safety_rating: Optional[Rating] = None
    accessibility_rating: Optional[Rating] = None
    buckets: WalkabilityBuckets = Field(default_factory=WalkabilityBuckets)
    photo: Optional[PhotoAttachment] = None

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        category = normalize_tag(value)
        if not category:
            raise ReportValidationError("category", "missing")
        if category not in REPORT_CATEGORIES:
            raise ReportValidationError(
                "category", "unknown_category", message=f"category: unknown value {value!r}"
            )
        return category

    @field_validator("description")
    @classmethod
    def _non_empty_description(cls, value: str) -> str:
        description = normalize_whitespace(value)
        if not description:
            raise ReportValidationError("description", "missing")
        return description


class ReportScores(BaseModel):
    """Stored bucket scores, rounded for persistence."""

    model_config = ConfigDict(frozen=True)

    utilidad: float = Field(ge=0, le=1)
    seguridad: float = Field(ge=0, le=5)
    comodidad: float = Field(ge=0, le=2)
    interesante: float = Field(ge=0, le=2)
    total: float = Field(ge=0, le=10)
    scheme: Literal["buckets_v1"] = SCORE_SCHEME


class AIProvenance(BaseModel):
    """Where an AI-drafted report came from and whether a human edited it."""

    model_config = ConfigDict(frozen=True)

    ai_generated: bool = True
    ai_confidence: float = Field(ge=0, le=1)
    ai_model: str
    user_modified: bool = False
    ai_processed_at: Optional[datetime] = None
    ai_raw_response: Optional[str] = None


class ReportRecord(BaseModel):
    """Persisted report: intake fields, derived scores and metadata."""

    model_config = ConfigDict(frozen=True)

    id: str
    author_id: str
    location: ReportLocation
    category: str
    description: str
    severity: Optional[Rating] = None
    condition_rating: Optional[Rating] = None
    safety_rating: Optional[Rating] = None
    accessibility_rating: Optional[Rating] = None
    buckets: WalkabilityBuckets
    scores: ReportScores
    status: ReportStatus = ReportStatus.PENDING
    photo: Optional[PhotoAttachment] = None
    provenance: Optional[AIProvenance] = None
    created_at: datetime
    updated_at: datetime

    @property
    def verified(self) -> bool:
        return self.status.rank >= ReportStatus.VERIFIED.rank

    @property
    def ai_generated(self) -> bool:
        return self.provenance is not None and self.provenance.ai_generated


class AcceptDecision(BaseModel):
    """Intake gate acceptance."""

    raw: dict[str, Any]
    intake: ReportIntake
    reason: str = "accepted"
    review_reason: Optional[str] = None
    review_details: dict[str, Any] = Field(default_factory=dict)


class RejectDecision(BaseModel):
    """Intake gate rejection."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    raw: dict[str, Any]
    reason: str
    field: str
    error: ReportError
    details: dict[str, Any] = Field(default_factory=dict)
