"""CLI entry-point: ``python -m flowconnector <command>``."""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .canvas import FrameNode
from .config import LOG_LEVEL, ConnectionConfig
from .errors import ValidationError
from .geometry import Rect
from .layout import FrameOrderAnalyzer
from .messages import analysis_to_dict
from .preview import build_preview_geometry
from .renderer import build_connection_geometry
from .validation import validate_config

logger = logging.getLogger(__name__)


def _parse_value(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _load_config(path: Optional[str], overrides: List[str]) -> ConnectionConfig:
    """Config from an optional JSON file plus ``key=value`` overrides."""
    data: Dict[str, Any] = {}
    if path:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    for item in overrides:
        key, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"Expected key=value, got {item!r}")
        data[key.strip()] = _parse_value(value.strip())
    config = ConnectionConfig.from_dict(data)
    validate_config(config)
    return config


def _parse_rect(text: str) -> Rect:
    parts = [float(p) for p in text.split(",")]
    if len(parts) != 4:
        raise ValueError(f"Expected x,y,width,height, got {text!r}")
    return Rect(*parts)


def _cmd_preview(args) -> int:
    config = _load_config(args.config, args.set)
    svg = build_preview_geometry(config).to_svg()
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(svg)
        logger.info("Wrote preview to %s", args.output)
    else:
        print(svg)
    return 0


def _cmd_analyze(args) -> int:
    with open(args.file, encoding="utf-8") as f:
        data = json.load(f)
    frames = [
        FrameNode(
            id=str(item.get("id", i)),
            name=str(item.get("name", f"Frame {i + 1}")),
            x=item["x"],
            y=item["y"],
            width=item["width"],
            height=item["height"],
        )
        for i, item in enumerate(data)
    ]
    analysis = FrameOrderAnalyzer().analyze_frame_layout(frames)
    print(json.dumps(analysis_to_dict(analysis), indent=2))
    return 0


def _cmd_connect(args) -> int:
    config = _load_config(args.config, args.set)
    geometry = build_connection_geometry(
        _parse_rect(args.source),
        _parse_rect(args.target),
        config,
        deterministic=args.deterministic,
    )
    result = {
        "path": geometry.path_data,
        "arrowheads": [{"kind": h.kind, "path": h.to_svg()} for h in geometry.arrowheads],
        "label": None,
    }
    if geometry.label_position is not None:
        result["label"] = {"x": geometry.label_position.x, "y": geometry.label_position.y}
    print(json.dumps(result, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowconnector",
        description="Compute connector geometry between frames.",
    )
    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        help="Logging level (default from FLOWCONNECTOR_LOG_LEVEL)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_config_options(p):
        p.add_argument("-c", "--config", help="JSON file with connection settings")
        p.add_argument(
            "-s",
            "--set",
            action="append",
            default=[],
            metavar="KEY=VALUE",
            help="Override one setting (repeatable), e.g. arrowType=elbow",
        )

    preview = sub.add_parser("preview", help="Render the settings preview as SVG")
    add_config_options(preview)
    preview.add_argument("-o", "--output", help="Write the SVG here instead of stdout")
    preview.set_defaults(func=_cmd_preview)

    analyze = sub.add_parser("analyze", help="Classify the layout of frames in a JSON file")
    analyze.add_argument("file", help="JSON list of {id, name, x, y, width, height}")
    analyze.set_defaults(func=_cmd_analyze)

    connect = sub.add_parser("connect", help="Print the path between two rectangles")
    connect.add_argument("source", help="Source frame as x,y,width,height")
    connect.add_argument("target", help="Target frame as x,y,width,height")
    connect.add_argument(
        "--deterministic",
        action="store_true",
        help="Seed the jitter from the settings",
    )
    add_config_options(connect)
    connect.set_defaults(func=_cmd_connect)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Parse command-line arguments and run a command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        code = args.func(args)
    except ValidationError as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        sys.exit(2)
    except (OSError, ValueError, KeyError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
