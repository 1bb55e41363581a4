"""Fixed tag vocabularies for the walkability questionnaire."""

from __future__ import annotations

from typing import Iterable, Mapping

from aceras.errors import ReportValidationError
from aceras.utils.text import normalize_tag


OBSTRUCTIONS: tuple[str, ...] = (
    "huecos",
    "interrupciones",
    "carros_mal_estacionados",
    "construccion",
    "vendedores",
    "invasion_comercial",
    "raices",
    "basura",
)

OBSTRUCTION_ALIASES: dict[str, str] = {
    "holes": "huecos",
    "baches": "huecos",
    "potholes": "huecos",
    "interruptions": "interrupciones",
    "cars": "carros_mal_estacionados",
    "parked_cars": "carros_mal_estacionados",
    "construction": "construccion",
    "vendors": "vendedores",
    "business": "invasion_comercial",
    "business_encroachment": "invasion_comercial",
    "trees": "raices",
    "roots": "raices",
    "trees_roots": "raices",
    "garbage": "basura",
    "trash": "basura",
}

CONTAMINANTS: tuple[str, ...] = ("basura", "olores", "humo", "ruido")

CONTAMINANT_ALIASES: dict[str, str] = {
    "trash": "basura",
    "garbage": "basura",
    "smell": "olores",
    "smoke": "humo",
    "noise": "ruido",
}

AMENITIES: tuple[str, ...] = ("parque", "supermercado", "clinica", "tiendas", "trabajo")

AMENITY_ALIASES: dict[str, str] = {
    "park": "parque",
    "market": "supermercado",
    "clinic": "clinica",
    "hospital": "clinica",
    "shops": "tiendas",
    "restaurants": "tiendas",
    "work": "trabajo",
    "school": "trabajo",
}

REPORT_CATEGORIES: tuple[str, ...] = (
    "missing_sidewalk",
    "narrow_sidewalk",
    "broken_pavement",
    "obstruction_vehicle",
    "obstruction_vendor",
    "obstruction_construction",
    "obstruction_business",
    "missing_crossing",
    "poor_lighting",
    "safety_concern",
    "accessibility_issue",
    "positive_feedback",
)


def canonical_tag(
    value: str,
    vocabulary: Iterable[str],
    aliases: Mapping[str, str],
    field: str,
) -> str:
    """Map a tag or one of its aliases onto the vocabulary."""
    tag = normalize_tag(value or "")
    if tag in vocabulary:
        return tag
    if tag in aliases:
        return aliases[tag]
    raise ReportValidationError(field, "unknown_tag", message=f"{field}: unknown tag {value!r}")


def canonical_tags(
    values: Iterable[str],
    vocabulary: Iterable[str],
    aliases: Mapping[str, str],
    field: str,
) -> frozenset[str]:
    """Canonicalize a collection of tags; duplicates collapse."""
    vocab = tuple(vocabulary)
    return frozenset(canonical_tag(value, vocab, aliases, field) for value in values)


def obstruction_set(values: Iterable[str]) -> frozenset[str]:
    return canonical_tags(values, OBSTRUCTIONS, OBSTRUCTION_ALIASES, "seguridad.obstructions")


def contaminant_set(values: Iterable[str]) -> frozenset[str]:
    return canonical_tags(values, CONTAMINANTS, CONTAMINANT_ALIASES, "comodidad.contaminants")


def amenity_toggles(values: Mapping[str, bool]) -> dict[str, bool]:
    """Canonicalize amenity toggle keys; any alias set to True wins."""
    toggles: dict[str, bool] = {}
    for key, enabled in values.items():
        tag = canonical_tag(key, AMENITIES, AMENITY_ALIASES, "utilidad.amenities")
        if not isinstance(enabled, bool):
            raise ReportValidationError(f"utilidad.amenities.{key}", "not_boolean")
        toggles[tag] = toggles.get(tag, False) or enabled
    return toggles
