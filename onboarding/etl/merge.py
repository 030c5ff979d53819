"""Build a canonical restaurant payload from a submission and admin overrides."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from onboarding.core.errors import ValidationError
from onboarding.etl.coordinates import parse_coordinates
from onboarding.models import STATUS_LIVE

TEXT = "text"
LIST = "list"

ADDRESS_PARTS = ("address", "city", "state", "postcode")

REQUIRED_FIELDS = (
    ("name", "Missing restaurant name."),
    ("cuisines", "At least one cuisine is required."),
    ("location", "Location shown to diners is required."),
)

Fallback = Callable[[Dict[str, Any], Mapping[str, Any]], Any]


def _joined_address(merged: Dict[str, Any], source: Mapping[str, Any]) -> str:
    return ", ".join(merged[part] for part in ADDRESS_PARTS if merged.get(part))


def _source_id(merged: Dict[str, Any], source: Mapping[str, Any]) -> str:
    return source.get("$id") or ""


def _merged_name(merged: Dict[str, Any], source: Mapping[str, Any]) -> str:
    return merged.get("name") or ""


@dataclass(frozen=True)
class FieldRule:
    """Where one target field comes from, in precedence order."""

    target: str
    override_keys: Tuple[str, ...]
    source_keys: Tuple[str, ...]
    kind: str = TEXT
    fallback: Optional[Fallback] = None


def _rule(target: str, *source_keys: str, kind: str = TEXT, fallback: Optional[Fallback] = None) -> FieldRule:
    return FieldRule(target, (target,), source_keys or (target,), kind, fallback)


# Order matters: ``location`` reads the merged address parts above it.
FIELD_RULES: Tuple[FieldRule, ...] = (
    _rule("name", "name", "businessName"),
    _rule("businessName", "businessName", "name"),
    _rule("registrationNo"),
    FieldRule("cuisines", ("cuisines", "cuisine"), ("cuisines", "cuisine"), kind=LIST),
    _rule("theme"),
    _rule("ambience", kind=LIST),
    _rule("address"),
    _rule("city"),
    _rule("state"),
    _rule("postcode"),
    _rule("location", fallback=_joined_address),
    _rule("contact"),
    _rule("phone"),
    _rule("email"),
    _rule("website"),
    _rule("note"),
    _rule("ownerId", fallback=_source_id),
)

# Owner requests are listed under the business name.
OWNER_FIELD_RULES: Tuple[FieldRule, ...] = (
    _rule("name", "businessName", "name"),
    _rule("businessName", "businessName", fallback=_merged_name),
    *FIELD_RULES[2:],
)

RULES_BY_SOURCE_TYPE: Dict[str, Tuple[FieldRule, ...]] = {"owner": OWNER_FIELD_RULES}


def normalize_list(value: Any) -> List[str]:
    """Coerce list-ish input (list, comma-separated string, scalar) into trimmed strings."""
    if value is None or value is False:
        return []
    if isinstance(value, str):
        items: Any = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]

    cleaned = []
    for item in items:
        if item is None or item is False:
            continue
        text = str(item).strip()
        if text:
            cleaned.append(text)
    return cleaned


def normalize_text(value: Any) -> str:
    if value is None or value is False:
        return ""
    return str(value).strip()


def _coerce(kind: str, value: Any) -> Any:
    return normalize_list(value) if kind == LIST else normalize_text(value)


def _is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def _resolve(rule: FieldRule, source: Mapping[str, Any], overrides: Mapping[str, Any], merged: Dict[str, Any]) -> Any:
    for candidates, keys in ((overrides, rule.override_keys), (source, rule.source_keys)):
        for key in keys:
            value = _coerce(rule.kind, candidates.get(key))
            if value:
                return value
    if rule.fallback is not None:
        return _coerce(rule.kind, rule.fallback(merged, source))
    return _coerce(rule.kind, None)


def raw_map_value(source: Mapping[str, Any], overrides: Mapping[str, Any]) -> Any:
    override = overrides.get("map")
    return source.get("map") if _is_blank(override) else override


def merge_submission(
    source: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    source_type: str,
    source_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge ``overrides`` over ``source`` and validate the result.

    Args:
        source: The submitted document as read from its intake collection.
        overrides: Admin-supplied values; a present, non-empty value wins.
        source_type: Tag used when the source document carries no ``type``.
        source_id: Id of the source document, used as the ``ownerId`` fallback.

    Returns:
        The fields of the canonical restaurant document.

    Raises:
        ValidationError: naming the first missing required field, or ``map``
            when coordinates are missing or unparseable.
    """
    overrides = overrides or {}
    if source_id is not None:
        source = {**source, "$id": source_id}

    merged: Dict[str, Any] = {}
    for rule in RULES_BY_SOURCE_TYPE.get(source_type, FIELD_RULES):
        merged[rule.target] = _resolve(rule, source, overrides, merged)

    for field, message in REQUIRED_FIELDS:
        if not merged.get(field):
            raise ValidationError(field, message)

    longitude, latitude = parse_coordinates(raw_map_value(source, overrides))
    merged["map"] = [longitude, latitude]
    merged["status"] = STATUS_LIVE
    merged["type"] = normalize_text(source.get("type")) or source_type
    return merged
