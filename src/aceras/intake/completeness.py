"""Advisory completeness checks used to gate the submit button.

These predicates never block persistence: a partially answered report is
stored with absent ratings left as ``None``. They accept either a validated
model or the raw in-progress form state (camelCase or snake_case keys).
"""

from __future__ import annotations

from typing import Any, Mapping, Union

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


REPORT_REQUIRED_FIELDS: tuple[str, ...] = (
    "category",
    "description",
    "condition_rating",
    "accessibility_rating",
    "severity",
)

SEGURIDAD_REQUIRED_FIELDS: tuple[str, ...] = (
    "has_sidewalk",
    "width_rating",
    "comfort_space_rating",
    "has_lighting",
)

FormState = Union[BaseModel, Mapping[str, Any]]


def _get(source: FormState, name: str) -> Any:
    if isinstance(source, BaseModel):
        return getattr(source, name, None)
    if name in source:
        return source[name]
    return source.get(to_camel(name))


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def missing_seguridad_fields(seguridad: FormState) -> list[str]:
    missing = [name for name in SEGURIDAD_REQUIRED_FIELDS if not _present(_get(seguridad, name))]
    # Lighting quality is only asked once the user says lighting exists.
    if _get(seguridad, "has_lighting") is True and not _present(_get(seguridad, "lighting_rating")):
        missing.append("lighting_rating")
    return missing


def is_seguridad_complete(seguridad: FormState) -> bool:
    return not missing_seguridad_fields(seguridad)


def missing_report_fields(report: FormState) -> list[str]:
    return [name for name in REPORT_REQUIRED_FIELDS if not _present(_get(report, name))]


def is_report_complete(report: FormState) -> bool:
    return not missing_report_fields(report)


def missing_fields(report: FormState) -> list[str]:
    """All missing fields, with SEGURIDAD entries prefixed by the section name."""
    missing = missing_report_fields(report)
    buckets = _get(report, "buckets")
    seguridad = _get(buckets, "seguridad") if buckets is not None else None
    if seguridad is None:
        seguridad = {}
    missing.extend(f"seguridad.{name}" for name in missing_seguridad_fields(seguridad))
    return missing
