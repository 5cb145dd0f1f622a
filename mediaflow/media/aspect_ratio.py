"""Aspect ratio parsing, detection and normalisation."""

from math import gcd

from mediaflow.models.node import NodeKind

DEFAULT_ASPECT_RATIO = "16:9"

STANDARD_RATIOS: dict[str, float] = {
    "1:1": 1.0,
    "16:9": 16 / 9,
    "9:16": 9 / 16,
    "4:3": 4 / 3,
    "3:4": 3 / 4,
    "3:2": 3 / 2,
    "2:3": 2 / 3,
    "21:9": 21 / 9,
    "5:4": 5 / 4,
    "4:5": 4 / 5,
}

EDITOR_RATIOS = ["16:9", "9:16", "1:1", "4:5"]

# Ratios each node kind can be set to; kinds not listed keep whatever they had
SUPPORTED_RATIOS: dict[NodeKind, list[str]] = {
    NodeKind.NANO_BANANA_PRO: list(STANDARD_RATIOS),
    NodeKind.KLING_26: ["16:9", "9:16", "1:1"],
    NodeKind.KLING_25_TURBO: ["16:9", "9:16", "1:1"],
    NodeKind.WAN_26: ["16:9", "9:16", "1:1", "4:3", "3:4"],
    NodeKind.VIDEO_CONCAT: EDITOR_RATIOS,
    NodeKind.VIDEO_SUBTITLES: EDITOR_RATIOS,
    NodeKind.VIDEO_TRIM: EDITOR_RATIOS,
    NodeKind.VIDEO_TRANSITION: EDITOR_RATIOS,
}


def parse_aspect_ratio(aspect_ratio: str | None) -> float:
    """Parse ``"W:H"`` into a float, falling back to square."""
    if not aspect_ratio:
        return 1.0
    parts = aspect_ratio.split(":")
    if len(parts) != 2:
        return 1.0
    try:
        width = float(parts[0])
        height = float(parts[1])
    except ValueError:
        return 1.0
    if height == 0:
        return 1.0
    return width / height


def normalize_to_standard_ratio(
    aspect_ratio: str | None,
    supported: list[str] | None = None,
) -> str:
    """Snap an arbitrary ratio to the closest standard (or supported) one."""
    if not aspect_ratio:
        return DEFAULT_ASPECT_RATIO

    candidates = [
        (label, value)
        for label, value in STANDARD_RATIOS.items()
        if supported is None or label in supported
    ]
    if not candidates:
        return DEFAULT_ASPECT_RATIO

    target = parse_aspect_ratio(aspect_ratio)
    closest_label, closest_value = candidates[0]
    for label, value in candidates[1:]:
        if abs(target - value) < abs(target - closest_value):
            closest_label, closest_value = label, value
    return closest_label


def ratio_from_dimensions(width: int, height: int) -> str:
    """Reduce pixel dimensions to a ``"W:H"`` string, e.g. 1920x1080 -> 16:9."""
    if width <= 0 or height <= 0:
        return DEFAULT_ASPECT_RATIO
    divisor = gcd(width, height)
    return f"{width // divisor}:{height // divisor}"
