# billing_gateway/schemas/config_validator.py
from __future__ import annotations
import json
from typing import Any, Dict

from jsonschema import Draft202012Validator

from billing_gateway.payments.errors import RevstackError, RevstackErrorCode
from billing_gateway.payments.manifest import ConfigField, ProviderManifest

_JSON_TYPES = {
    "text": {"type": "string"},
    "password": {"type": "string"},
    "select": {"type": "string"},
    "number": {"type": "number"},
    "switch": {"type": "boolean"},
    "json": {},
}

# slug -> compiled validator; manifests are immutable so one compile per slug
_validator_cache: Dict[str, Draft202012Validator] = {}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _cast(name: str, spec: ConfigField, value: Any, slug: str) -> Any:
    if spec.type in ("text", "password", "select"):
        return str(value).strip()

    if spec.type == "number":
        if isinstance(value, bool):
            raise _invalid(slug, name, spec, "must be a number")
        if isinstance(value, (int, float)):
            return value
        try:
            num = float(str(value).strip())
        except ValueError:
            raise _invalid(slug, name, spec, "must be a number")
        return int(num) if num.is_integer() else num

    if spec.type == "switch":
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1")
        return value is True or value == 1

    if spec.type == "json":
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                raise _invalid(slug, name, spec, "must be valid JSON")
        return value

    return value


def _invalid(slug: str, name: str, spec: ConfigField, reason: str) -> RevstackError:
    msg = spec.error_message or f"Config field '{spec.label or name}' {reason}"
    return RevstackError(RevstackErrorCode.InvalidInput, msg, provider=slug)


def build_json_schema(manifest: ProviderManifest) -> Dict[str, Any]:
    props: Dict[str, Any] = {}
    required = []
    for name, spec in manifest.config_schema.items():
        prop = dict(_JSON_TYPES.get(spec.type, {}))
        if spec.pattern:
            prop["pattern"] = spec.pattern
        if spec.type == "select" and spec.options:
            prop["enum"] = [o.get("value") for o in spec.options]
        props[name] = prop
        if spec.required:
            required.append(name)
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": props,
        "required": required,
    }


def _validator_for(manifest: ProviderManifest) -> Draft202012Validator:
    v = _validator_cache.get(manifest.slug)
    if v is None:
        v = Draft202012Validator(build_json_schema(manifest))
        _validator_cache[manifest.slug] = v
    return v


def validate_config(manifest: ProviderManifest, config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Cast a submitted install config against the manifest's configSchema and
    validate it. Returns the cast config; unknown keys pass through untouched.

    Raises RevstackError(MissingRequiredField) for absent/blank required fields
    and RevstackError(InvalidInput) for type, pattern or option mismatches.
    """
    slug = manifest.slug
    out: Dict[str, Any] = dict(config or {})

    for name, spec in manifest.config_schema.items():
        value = out.get(name)
        if _is_blank(value):
            if spec.required:
                raise RevstackError(
                    RevstackErrorCode.MissingRequiredField,
                    f"Missing required config field '{spec.label or name}'",
                    provider=slug,
                )
            out.pop(name, None)
            continue
        out[name] = _cast(name, spec, value, slug)

    errors = sorted(_validator_for(manifest).iter_errors(out), key=lambda e: list(e.path))
    if errors:
        first = errors[0]
        field = str(first.path[0]) if first.path else None
        spec = manifest.config_schema.get(field) if field else None
        if spec is not None:
            raise _invalid(slug, field, spec, f"is invalid: {first.message}")
        raise RevstackError(RevstackErrorCode.InvalidInput, first.message, provider=slug)
    return out
