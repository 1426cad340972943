"""Unit tests for configuration validation and mixed-value helpers."""

import pytest

from flowconnector.config import DEFAULT_CONFIG, ConnectionConfig
from flowconnector.errors import ValidationError
from flowconnector.validation import (
    calculate_mixed_property_states,
    get_most_common_value,
    validate_config,
    validate_properties,
    validate_property,
)


class TestValidateProperty:
    """Tests for validate_property."""

    @pytest.mark.parametrize(
        "name,value",
        [
            ("stroke_width", 1),
            ("strokeWidth", 10),
            ("opacity", 0),
            ("connection_offset", 50),
            ("label_font_size", 8),
            ("color", "#abc"),
            ("labelBg", "#A1B2C3"),
            ("arrow_type", "elbow"),
            ("avoid_overlap", False),
            ("label", ""),
        ],
    )
    def test_valid(self, name, value):
        """Test values inside the allowed ranges and choices."""
        assert validate_property(name, value) is None

    @pytest.mark.parametrize(
        "name,value,message",
        [
            ("stroke_width", 11, "Stroke width must be between 1 and 10"),
            ("opacity", -1, "Opacity must be between 0 and 100"),
            ("label_padding", 1, "Padding must be between 2 and 12"),
            ("stroke_width", float("nan"), "Stroke width must be between 1 and 10"),
            ("stroke_width", "3", "Stroke width must be between 1 and 10"),
            ("color", "blue", "Invalid color format"),
            ("color", "#abcd", "Invalid color format"),
            ("sloppiness", "extreme", "Invalid sloppiness value"),
            ("start_position", "center", "Invalid position value"),
            ("label", 5, "Label must be a string"),
            ("shadow", 1, "Unknown property"),
        ],
    )
    def test_invalid(self, name, value, message):
        """Test out-of-range and malformed values."""
        assert validate_property(name, value) == message


class TestValidateConfig:
    """Tests for whole-config validation."""

    def test_default_is_valid(self):
        """Test the default configuration passes."""
        validate_config(DEFAULT_CONFIG)

    def test_collects_every_error(self):
        """Test all invalid fields are reported together."""
        config = ConnectionConfig(stroke_width=0, color="red")
        with pytest.raises(ValidationError) as excinfo:
            validate_config(config)
        assert set(excinfo.value.errors) == {"stroke_width", "color"}

    def test_validate_properties_keeps_keys(self):
        """Test errors are keyed by the names given."""
        errors = validate_properties({"strokeWidth": 20, "opacity": 50})
        assert list(errors) == ["strokeWidth"]


class TestMixedProperties:
    """Tests for bulk-edit helpers."""

    def test_mixed_states(self):
        """Test fields that differ are flagged."""
        configs = [ConnectionConfig(color="#000000"), ConnectionConfig(color="#ffffff")]
        states = calculate_mixed_property_states(configs)
        assert states["color"] is True
        assert states["stroke_width"] is False

    def test_single_config(self):
        """Test one configuration has no mixed states."""
        assert calculate_mixed_property_states([DEFAULT_CONFIG]) == {}

    def test_most_common_value(self):
        """Test the majority value wins and ties go to the first seen."""
        configs = [
            ConnectionConfig(stroke_width=3),
            ConnectionConfig(stroke_width=5),
            ConnectionConfig(stroke_width=5),
        ]
        assert get_most_common_value(configs, "strokeWidth") == 5
        assert get_most_common_value(configs[:2], "stroke_width") == 3
        assert get_most_common_value([], "stroke_width") is None
