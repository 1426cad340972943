"""
Validation of connection configuration values.

Runs before configurations reach the geometry functions, which assume sane
ranges. Also provides the helpers used when several connections are edited
at once (mixed-value detection and most common values).
"""

import json
from collections import Counter
from dataclasses import fields
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .colors import is_valid_color
from .config import (
    ARROW_TYPES,
    ARROWHEAD_MODES,
    LABEL_POSITIONS,
    POSITIONS,
    SLOPPINESS_LEVELS,
    STROKE_ALIGNS,
    STROKE_CAPS,
    STROKE_JOINS,
    STROKE_STYLES,
    ConnectionConfig,
)
from .errors import ValidationError

# attribute -> (min, max, message)
NUMERIC_RANGES: Dict[str, Tuple[float, float, str]] = {
    "stroke_width": (1, 10, "Stroke width must be between 1 and 10"),
    "opacity": (0, 100, "Opacity must be between 0 and 100"),
    "connection_offset": (0, 50, "Connection offset must be between 0 and 50"),
    "label_offset": (0, 30, "Label offset must be between 0 and 30"),
    "label_font_size": (8, 24, "Font size must be between 8 and 24"),
    "label_border_width": (0, 3, "Border width must be between 0 and 3"),
    "label_border_radius": (0, 12, "Border radius must be between 0 and 12"),
    "label_padding": (2, 12, "Padding must be between 2 and 12"),
}

# attribute -> (allowed values, message)
CHOICES: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "stroke_style": (STROKE_STYLES, "Invalid stroke style"),
    "stroke_align": (STROKE_ALIGNS, "Invalid stroke alignment"),
    "stroke_cap": (STROKE_CAPS, "Invalid stroke cap"),
    "stroke_join": (STROKE_JOINS, "Invalid stroke join"),
    "sloppiness": (SLOPPINESS_LEVELS, "Invalid sloppiness value"),
    "arrow_type": (ARROW_TYPES, "Invalid arrow type"),
    "arrowheads": (ARROWHEAD_MODES, "Invalid arrowheads value"),
    "start_position": (POSITIONS, "Invalid position value"),
    "end_position": (POSITIONS, "Invalid position value"),
    "label_position": (LABEL_POSITIONS, "Invalid label position"),
}

COLOR_FIELDS = ("color", "label_bg", "label_text_color", "label_border_color")
TEXT_FIELDS = ("label", "label_font_family", "label_font_weight")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == value


def validate_property(name: str, value: Any) -> Optional[str]:
    """
    Validate a single configuration value.

    Args:
        name: Attribute name (snake_case) or persisted key (camelCase).
        value: Proposed value.

    Returns:
        None when valid, otherwise an error message.
    """
    name = ConnectionConfig.attribute_name(name)

    if name in NUMERIC_RANGES:
        low, high, message = NUMERIC_RANGES[name]
        if not _is_number(value) or value < low or value > high:
            return message
        return None
    if name in CHOICES:
        allowed, message = CHOICES[name]
        return None if value in allowed else message
    if name in COLOR_FIELDS:
        return None if is_valid_color(value) else "Invalid color format"
    if name in TEXT_FIELDS:
        return None if isinstance(value, str) else "Label must be a string"
    if name == "avoid_overlap":
        return None if isinstance(value, bool) else "Avoid overlap must be a boolean"
    return "Unknown property"


def validate_properties(properties: Mapping[str, Any]) -> Dict[str, str]:
    """Validate several values; returns {key: message} for the invalid ones."""
    errors = {}
    for key, value in properties.items():
        message = validate_property(key, value)
        if message:
            errors[key] = message
    return errors


def validate_config(config: ConnectionConfig) -> None:
    """
    Check every field of a configuration.

    Raises:
        ValidationError: Listing every invalid field.
    """
    values = {f.name: getattr(config, f.name) for f in fields(config)}
    errors = validate_properties(values)
    if errors:
        raise ValidationError(errors)


def _comparable(value: Any) -> Any:
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, sort_keys=True)
    return value


def calculate_mixed_property_states(configs: List[ConnectionConfig]) -> Dict[str, bool]:
    """
    For each field, whether the configurations disagree on its value.

    Returns an empty mapping for zero or one configuration.
    """
    if len(configs) <= 1:
        return {}
    states = {}
    for f in fields(ConnectionConfig):
        first = _comparable(getattr(configs[0], f.name))
        states[f.name] = any(_comparable(getattr(c, f.name)) != first for c in configs[1:])
    return states


def get_most_common_value(configs: List[ConnectionConfig], name: str) -> Any:
    """
    The value of a field shared by most configurations.

    Ties go to the value seen first. Returns None for no configurations.
    """
    if not configs:
        return None
    name = ConnectionConfig.attribute_name(name)
    values = [getattr(config, name) for config in configs]
    counts = Counter(_comparable(value) for value in values)
    best = max(counts.values())
    for value in values:
        if counts[_comparable(value)] == best:
            return value
    return None
