from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Any, ClassVar

from filterops.errors import ValidationError
from filterops.time_utils import parse_iso_date


POSTAL_CODE_RE = re.compile(r"^\d{5}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class _Unset:
    """Marker for fields absent from the request body."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class FieldRule:
    """
    Wire-level rule for one patchable attribute:
    - wire: JSON key as sent by clients (camelCase)
    - kind: str, int, float, bool, date, email, postal_code, enum or raw
    - nullable: whether an explicit null is accepted
    """
    wire: str
    kind: str
    nullable: bool = True
    enum: type[Enum] | None = None
    max_length: int | None = None
    min_value: float | None = None
    max_value: float | None = None


def wire_field(wire: str, kind: str, **rule) -> Any:
    return field(default=UNSET, metadata={"rule": FieldRule(wire=wire, kind=kind, **rule)})


def _coerce_value(rule: FieldRule, value: Any):
    key = rule.wire

    # Integers - strict validation to reject floats and scientific notation
    if rule.kind == "int":
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be an integer")
        if isinstance(value, int):
            result = value
        elif isinstance(value, str):
            stripped = value.strip()
            if not stripped or "e" in stripped.lower() or "." in stripped:
                raise ValidationError(f"{key} must be an integer")
            try:
                result = int(stripped)
            except ValueError:
                raise ValidationError(f"{key} must be an integer")
        elif isinstance(value, float) and value.is_integer():
            result = int(value)
        else:
            raise ValidationError(f"{key} must be an integer")
        return _check_range(rule, result)

    if rule.kind == "float":
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be a number")
        if isinstance(value, (int, float)):
            result = float(value)
        elif isinstance(value, str):
            try:
                result = float(value.strip())
            except ValueError:
                raise ValidationError(f"{key} must be a number")
        else:
            raise ValidationError(f"{key} must be a number")
        return _check_range(rule, result)

    if rule.kind == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
            return value.strip().lower() == "true"
        raise ValidationError(f"{key} must be a boolean")

    if rule.kind == "date":
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                parsed = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{key} must be an ISO-8601 date")
            if parsed is None:
                raise ValidationError(f"{key} must be an ISO-8601 date")
            return parsed
        raise ValidationError(f"{key} must be an ISO-8601 date")

    if rule.kind == "enum":
        allowed = [member.value for member in rule.enum]
        if value not in allowed:
            raise ValidationError(f"{key} must be one of: {', '.join(allowed)}")
        return value

    if rule.kind in {"str", "email", "postal_code"}:
        if isinstance(value, (dict, list, bool)):
            raise ValidationError(f"{key} must be a string")
        text = str(value).strip()
        if not rule.nullable and text == "":
            raise ValidationError(f"{key} cannot be blank")
        if rule.max_length and len(text) > rule.max_length:
            raise ValidationError(f"{key} exceeds max length {rule.max_length}")
        if rule.kind == "email" and text:
            text = text.lower()
            if not EMAIL_RE.match(text):
                raise ValidationError(f"{key} must be a valid email address")
        if rule.kind == "postal_code" and not POSTAL_CODE_RE.match(text):
            raise ValidationError(f"{key} must be exactly 5 digits")
        return text

    # raw: structure validated by the owning service
    return value


def _check_range(rule: FieldRule, value):
    if rule.min_value is not None and value < rule.min_value:
        raise ValidationError(f"{rule.wire} must be >= {_fmt(rule.min_value)}")
    if rule.max_value is not None and value > rule.max_value:
        raise ValidationError(f"{rule.wire} must be <= {_fmt(rule.max_value)}")
    return value


def _fmt(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


@dataclass
class PatchModel:
    """
    Typed partial-update structure.

    Subclasses declare one dataclass field per patchable attribute via
    wire_field(). The declared fields ARE the allowlist: any other key in the
    payload rejects the whole request. Fields absent from the payload stay
    UNSET, so provided() yields exactly what the client sent.
    """

    REQUIRED_ON_CREATE: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def rules(cls) -> dict[str, FieldRule]:
        return {f.name: f.metadata["rule"] for f in fields(cls) if "rule" in f.metadata}

    @classmethod
    def allowed_keys(cls) -> set[str]:
        return {rule.wire for rule in cls.rules().values()}

    @classmethod
    def wire_name(cls, attr: str) -> str:
        return cls.rules()[attr].wire

    @classmethod
    def from_payload(cls, payload: Any, *, partial: bool):
        """
        Validates + normalizes incoming JSON.

        partial=False: create semantics (enforce REQUIRED_ON_CREATE)
        partial=True: patch semantics (validate only provided keys)
        """
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        rules = cls.rules()
        by_wire = {rule.wire: attr for attr, rule in rules.items()}

        unknown = sorted(k for k in payload.keys() if k not in by_wire)
        if unknown:
            raise ValidationError(
                f"Invalid field(s) provided for update: {', '.join(unknown)}",
                details=unknown,
                label="Invalid updates",
            )

        errors: list[str] = []
        if not partial:
            for attr in cls.REQUIRED_ON_CREATE:
                wire = rules[attr].wire
                if payload.get(wire) is None or payload.get(wire) == "":
                    errors.append(f"{wire} is required")

        values: dict[str, Any] = {}
        for wire, raw in payload.items():
            attr = by_wire[wire]
            rule = rules[attr]
            if raw is None:
                if not rule.nullable:
                    if partial or attr not in cls.REQUIRED_ON_CREATE:
                        errors.append(f"{wire} cannot be null")
                    continue
                values[attr] = None
                continue
            try:
                values[attr] = _coerce_value(rule, raw)
            except ValidationError as exc:
                errors.append(exc.message)

        if errors:
            raise ValidationError("; ".join(errors), details=errors)

        return cls(**values)

    def provided(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if "rule" in f.metadata and getattr(self, f.name) is not UNSET
        }

    def has(self, attr: str) -> bool:
        return getattr(self, attr, UNSET) is not UNSET


def apply_patch(target, values: dict[str, Any], *, skip: set[str] | None = None) -> None:
    skip = skip or set()
    for attr, value in values.items():
        if attr in skip:
            continue
        setattr(target, attr, value)


def require_json_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def parse_id(value: Any, name: str) -> int:
    """Accept 12, "12" or {"id": 12} / {"_id": 12} for a record reference."""
    if isinstance(value, dict):
        value = value.get("id", value.get("_id"))
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{name} must be a valid id")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"{name} must be a valid id")


def parse_id_list(value: Any, name: str) -> list[int]:
    if not isinstance(value, list) or not value:
        raise ValidationError(f"{name} must be a non-empty list")
    return [parse_id(v, name) for v in value]
