"""
Static connection preview.

Renders a connection between two fixed sample frames for the settings
panel. It runs the same pipeline as live connections but always with
deterministic jitter, so the preview does not flicker between redraws.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import DASH_PATTERNS, ConnectionConfig
from .geometry import Rect
from .paths import format_number
from .renderer import build_connection_geometry

PREVIEW_CANVAS = (240, 168)
SOURCE_FRAME = Rect(40, 48, 56, 40)
TARGET_FRAME = Rect(152, 120, 56, 40)


@dataclass
class PreviewLabel:
    """Label rectangle and styling for the preview."""

    rect: Rect
    text: str
    font_size: float
    text_color: str
    background: str
    border_color: str
    border_width: float
    border_radius: float
    padding: float


@dataclass
class PreviewGeometry:
    """Vector description of the preview, ready for an SVG surface."""

    canvas: Tuple[int, int]
    frames: Tuple[Rect, Rect]
    path: str
    color: str
    opacity: float
    stroke_width: float
    stroke_dasharray: Optional[str] = None
    arrowheads: List[Tuple[str, str]] = field(default_factory=list)
    label: Optional[PreviewLabel] = None

    def to_svg(self) -> str:
        """Serialize as a standalone SVG document."""
        width, height = self.canvas
        fmt = format_number
        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" '
            f'height="{height}" viewBox="0 0 {width} {height}">'
        ]
        for frame in self.frames:
            parts.append(
                f'<rect x="{fmt(frame.x)}" y="{fmt(frame.y)}" width="{fmt(frame.width)}" '
                f'height="{fmt(frame.height)}" fill="#ffffff" stroke="#c4c4c4"/>'
            )

        dash = f' stroke-dasharray="{self.stroke_dasharray}"' if self.stroke_dasharray else ""
        stroke = (
            f'stroke="{self.color}" stroke-width="{fmt(self.stroke_width)}" '
            f'stroke-opacity="{fmt(self.opacity)}"'
        )
        parts.append(f'<path d="{self.path}" fill="none" {stroke}{dash}/>')
        for kind, data in self.arrowheads:
            parts.append(f'<path class="arrow-{kind}" d="{data}" fill="none" {stroke}/>')

        if self.label is not None:
            label = self.label
            rect = label.rect
            parts.append(
                f'<rect x="{fmt(rect.x)}" y="{fmt(rect.y)}" width="{fmt(rect.width)}" '
                f'height="{fmt(rect.height)}" rx="{fmt(label.border_radius)}" '
                f'fill="{label.background}" stroke="{label.border_color}" '
                f'stroke-width="{fmt(label.border_width)}"/>'
            )
            parts.append(
                f'<text x="{fmt(rect.center_x)}" y="{fmt(rect.center_y)}" '
                f'font-size="{fmt(label.font_size)}" fill="{label.text_color}" '
                f'text-anchor="middle" dominant-baseline="central">{_escape(label.text)}</text>'
            )
        parts.append("</svg>")
        return "\n".join(parts)


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def build_preview_geometry(config: ConnectionConfig) -> PreviewGeometry:
    """Build the preview of config between the two sample frames."""
    geometry = build_connection_geometry(
        SOURCE_FRAME, TARGET_FRAME, config, deterministic=True
    )

    label = None
    if geometry.label_box is not None:
        box = geometry.label_box
        label = PreviewLabel(
            rect=Rect(box.x, box.y, box.width, box.height),
            text=box.text,
            font_size=config.label_font_size,
            text_color=config.label_text_color,
            background=config.label_bg,
            border_color=config.label_border_color,
            border_width=box.border_width,
            border_radius=box.border_radius,
            padding=box.padding,
        )

    pattern = DASH_PATTERNS.get(config.stroke_style) or []
    return PreviewGeometry(
        canvas=PREVIEW_CANVAS,
        frames=(SOURCE_FRAME, TARGET_FRAME),
        path=geometry.path_data,
        color=config.color,
        opacity=geometry.stroke.opacity,
        stroke_width=config.stroke_width,
        stroke_dasharray=" ".join(str(n) for n in pattern) or None,
        arrowheads=[(head.kind, head.to_svg(closed=True)) for head in geometry.arrowheads],
        label=label,
    )
