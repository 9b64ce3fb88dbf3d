import pytest

from billing_gateway.payments.errors import RevstackError, RevstackErrorCode
from billing_gateway.payments.manifest import ConfigField, ProviderManifest
from billing_gateway.payments.stripe_manifest import STRIPE_MANIFEST
from billing_gateway.schemas.config_validator import build_json_schema, validate_config

MANIFEST = ProviderManifest(
    slug="config-test",
    name="Config Test",
    category="card",
    version="1.0.0",
    config_schema={
        "apiKey": ConfigField(label="API Key", type="password", required=True, pattern="^key_[a-z]+$"),
        "retries": ConfigField(label="Retries", type="number"),
        "live": ConfigField(label="Live", type="switch"),
        "region": ConfigField(
            label="Region",
            type="select",
            options=[{"label": "EU", "value": "eu"}, {"label": "US", "value": "us"}],
            error_message="Pick a supported region",
        ),
        "extra": ConfigField(label="Extra", type="json"),
    },
)


def test_values_are_cast():
    out = validate_config(
        MANIFEST,
        {"apiKey": " key_abc ", "retries": "3", "live": "1", "region": "eu", "extra": '{"a": 1}'},
    )
    assert out == {"apiKey": "key_abc", "retries": 3, "live": True, "region": "eu", "extra": {"a": 1}}


def test_unknown_keys_pass_through():
    out = validate_config(MANIFEST, {"apiKey": "key_abc", "webhookSecret": "whsec_1"})
    assert out["webhookSecret"] == "whsec_1"


def test_blank_optional_fields_are_dropped():
    out = validate_config(MANIFEST, {"apiKey": "key_abc", "region": "  "})
    assert "region" not in out


@pytest.mark.parametrize("config", [{}, {"apiKey": ""}, {"apiKey": "   "}, {"apiKey": None}])
def test_missing_required_field(config):
    with pytest.raises(RevstackError) as exc:
        validate_config(MANIFEST, config)
    assert exc.value.code == RevstackErrorCode.MissingRequiredField


def test_pattern_mismatch_is_invalid_input():
    with pytest.raises(RevstackError) as exc:
        validate_config(MANIFEST, {"apiKey": "nope"})
    assert exc.value.code == RevstackErrorCode.InvalidInput
    assert "API Key" in exc.value.message


def test_select_outside_options_uses_custom_message():
    with pytest.raises(RevstackError) as exc:
        validate_config(MANIFEST, {"apiKey": "key_abc", "region": "mars"})
    assert exc.value.message == "Pick a supported region"


def test_number_rejects_garbage():
    with pytest.raises(RevstackError) as exc:
        validate_config(MANIFEST, {"apiKey": "key_abc", "retries": "many"})
    assert exc.value.code == RevstackErrorCode.InvalidInput


def test_bad_json_is_invalid_input():
    with pytest.raises(RevstackError):
        validate_config(MANIFEST, {"apiKey": "key_abc", "extra": "{not json"})


def test_stripe_key_format():
    assert validate_config(STRIPE_MANIFEST, {"apiKey": "sk_test_abc123"})["apiKey"] == "sk_test_abc123"
    with pytest.raises(RevstackError):
        validate_config(STRIPE_MANIFEST, {"apiKey": "pk_test_abc123"})


def test_json_schema_shape():
    schema = build_json_schema(MANIFEST)
    assert schema["required"] == ["apiKey"]
    assert schema["properties"]["region"]["enum"] == ["eu", "us"]
    assert schema["properties"]["live"] == {"type": "boolean"}
