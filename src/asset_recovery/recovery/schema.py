"""Parsing and schema normalization of asset documents.

The asset-extraction prompt has changed over time, and completions in the
wild come in two record shapes:

  legacy     {"asset_name", "specifications", "tags", "source_text",
              "quantity", "priority", "estimated_cost_range"}
  technical  {"asset_name", "technical_specifications", "category_tag",
              "supplier_context", "source_text", "quantity"}

Each raw record is classified into exactly one variant of a tagged union,
then ``to_canonical`` maps the variant onto ``CanonicalRecord``. This is
the only module that knows about historical field names.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..config import RecoveryConfig
from ..exceptions import StructuralParseError
from .models import CanonicalRecord

logger = logging.getLogger("asset-recovery")

# Presence of any of these marks a record as the technical variant.
TECHNICAL_FIELDS = ("technical_specifications", "category_tag", "supplier_context")


class LegacyAssetShape(BaseModel):
    variant: Literal["legacy"] = "legacy"
    asset_name: str = ""
    specifications: str = ""
    tags: list[str] = Field(default_factory=list)
    source_text: str = ""
    quantity: int | str | None = None
    priority: str | None = None
    estimated_cost_range: str | None = None


class TechnicalAssetShape(BaseModel):
    variant: Literal["technical"] = "technical"
    asset_name: str = ""
    technical_specifications: str = ""
    specifications: str = ""  # Older name, used only when the newer is empty
    category_tag: str | None = None
    tags: list[str] = Field(default_factory=list)
    supplier_context: str | None = None
    source_text: str = ""
    quantity: int | str | None = None
    priority: str | None = None
    estimated_cost_range: str | None = None


AssetShape = Annotated[
    Union[LegacyAssetShape, TechnicalAssetShape], Field(discriminator="variant")
]
_shape_adapter: TypeAdapter = TypeAdapter(AssetShape)


@dataclass
class ParsedDocument:
    records: list[CanonicalRecord] = field(default_factory=list)
    reasoning: str | None = None
    confidence: float | None = None


# ── Lenient coercion ─────────────────────────────────────


def _scalar(value: Any) -> str:
    if value is None or isinstance(value, (list, tuple, dict)):
        return ""
    return str(value).strip()


def _text(value: Any) -> str:
    # One level of flattening only; deeper containers are dropped.
    if isinstance(value, (list, tuple)):
        return ", ".join(t for t in map(_scalar, value) if t)
    if isinstance(value, dict):
        return ", ".join(f"{k}: {_scalar(v)}" for k, v in value.items() if _scalar(v))
    return _scalar(value)


def _optional_text(value: Any) -> str | None:
    return _text(value) or None


def _tags(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return []
    return [_text(v) for v in value if _text(v)]


def _quantity(value: Any) -> int | str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else str(value)
    return _optional_text(value)


def _confidence(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


# ── Shape classification and mapping ─────────────────────


def classify_shape(raw: dict, primary_key: str = "asset_name") -> AssetShape:
    """Pick the historical variant of ``raw`` and coerce its fields."""
    common = {
        "asset_name": _text(raw.get(primary_key)),
        "specifications": _text(raw.get("specifications")),
        "tags": _tags(raw.get("tags")),
        "source_text": _text(raw.get("source_text")),
        "quantity": _quantity(raw.get("quantity")),
        "priority": _optional_text(raw.get("priority")),
        "estimated_cost_range": _optional_text(raw.get("estimated_cost_range")),
    }
    if any(name in raw for name in TECHNICAL_FIELDS):
        payload = {
            **common,
            "variant": "technical",
            "technical_specifications": _text(raw.get("technical_specifications")),
            "category_tag": _optional_text(raw.get("category_tag")),
            "supplier_context": _optional_text(raw.get("supplier_context")),
        }
    else:
        payload = {**common, "variant": "legacy"}
    return _shape_adapter.validate_python(payload)


def to_canonical(shape: AssetShape, max_tags: int = 4) -> CanonicalRecord:
    """Map either historical variant onto the canonical record."""
    if isinstance(shape, TechnicalAssetShape):
        specification = shape.technical_specifications or shape.specifications
        tags = shape.tags or ([shape.category_tag] if shape.category_tag else [])
        supplier_context = shape.supplier_context
    elif isinstance(shape, LegacyAssetShape):
        specification = shape.specifications
        tags = shape.tags
        supplier_context = None
    else:
        raise TypeError(f"Unhandled asset shape: {type(shape).__name__}")

    return CanonicalRecord(
        name=shape.asset_name,
        specification_text=specification,
        source_excerpt=shape.source_text,
        category_tags=tags[:max_tags],
        quantity=shape.quantity,
        supplier_context=supplier_context,
        priority=shape.priority,
        estimated_cost_range=shape.estimated_cost_range,
    )


def normalize_record(raw: dict, config: RecoveryConfig) -> CanonicalRecord:
    shape = classify_shape(raw, config.document.primary_key)
    return to_canonical(shape, config.document.max_category_tags)


# ── Document parsing ─────────────────────────────────────


def _records_array(document: dict, array_keys: list[str]) -> list | None:
    for key in array_keys:
        value = document.get(key)
        if isinstance(value, list):
            return value
    return None


def parse_document(
    cleaned_text: str, raw_text: str, config: RecoveryConfig
) -> ParsedDocument:
    """Parse fully repaired text into canonical records.

    Raises StructuralParseError (carrying the raw text, the cleaned text
    and the parser error) when the text is not a JSON object holding a
    records array.
    """
    try:
        document = json.loads(cleaned_text)
    except (json.JSONDecodeError, RecursionError) as e:
        raise StructuralParseError(
            f"Repaired completion is not valid JSON: {e}",
            raw_text=raw_text,
            cleaned_text=cleaned_text,
            cause=e,
        ) from e

    if not isinstance(document, dict):
        raise StructuralParseError(
            f"Expected a JSON object, got {type(document).__name__}",
            raw_text=raw_text,
            cleaned_text=cleaned_text,
        )

    items = _records_array(document, config.document.array_keys)
    if items is None:
        raise StructuralParseError(
            f"No records array under {config.document.array_keys}",
            raw_text=raw_text,
            cleaned_text=cleaned_text,
        )

    records = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning(
                "Skipping non-object record at position %d (%s)",
                position,
                type(item).__name__,
            )
            continue
        records.append(normalize_record(item, config))

    reasoning = document.get("reasoning")
    return ParsedDocument(
        records=records,
        reasoning=_optional_text(reasoning),
        confidence=_confidence(document.get("confidence")),
    )
