"""Tests for the derived properties on splitspec.models."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from splitspec.models import (
    EndpointInfo,
    GlobalConfig,
    ParsedEndpoint,
    ResolvedLocation,
    SchemaField,
)


class TestSchemaField:
    def test_display_name_indents_by_depth(self) -> None:
        assert SchemaField(name="city", depth=2).display_name == "    city"
        assert SchemaField(name="id").display_name == "id"

    def test_display_type(self) -> None:
        assert SchemaField(name="a").display_type == ""
        assert SchemaField(name="a", type="string").display_type == "string"
        assert SchemaField(name="a", type="string", is_array=True).display_type == "string[]"

    def test_negative_depth_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SchemaField(name="a", depth=-1)

    def test_frozen(self) -> None:
        field = SchemaField(name="a")
        with pytest.raises(ValidationError):
            field.name = "b"

    def test_edited_overlay_via_copy(self) -> None:
        field = SchemaField(name="a", description="original")
        edited = field.model_copy(update={"edited_description": "changed"})

        assert edited.edited_description == "changed"
        assert edited.description == "original"
        assert field.edited_description is None


def test_parsed_endpoint_is_frozen() -> None:
    endpoint = ParsedEndpoint(method="get")
    with pytest.raises(ValidationError):
        endpoint.notes = "checked"
    assert endpoint.model_copy(update={"notes": "checked"}).notes == "checked"


@pytest.mark.parametrize(
    ("file_path", "expected"),
    [
        ("./paths/users.yaml", "users"),
        ("paths/users_{id}.yml", "users_{id}"),
        ("health.json", "health.json"),
    ],
)
def test_endpoint_info_display_name(file_path: str, expected: str) -> None:
    assert EndpointInfo(api_path="/x", file_path=file_path).display_name == expected


def test_resolved_location_key() -> None:
    location = ResolvedLocation(
        path=Path("/ws/schemas/User.yaml"),
        pointer="/components/schemas/User",
        base_dir=Path("/ws/schemas"),
        text="",
        name="User",
    )
    assert location.key == "/ws/schemas/User.yaml#/components/schemas/User"


def test_global_config_defaults() -> None:
    cfg = GlobalConfig()
    assert cfg.resolver.max_depth == 10
    assert cfg.resolver.indent_step == 2
    assert cfg.output.format == "auto"
