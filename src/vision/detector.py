"""Grid-scan UI element detector over screenshots.

Each element type has its own scan step and margin. At every grid point a
small grayscale region is sampled with Pillow and compared to a fixed
heuristic (flat dark region for buttons, very light centre for text fields,
busy region for images, mid-tone centre for links). Points that fall inside a
box already reported for the same type are skipped so one widget does not
produce a carpet of overlapping detections.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from PIL import Image, ImageStat

from src.models.elements import ElementInfo, Point, Size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ScanRule:
    type: str
    margin: int
    step: int
    size: tuple[int, int]
    confidence: float
    selector: str  # format string taking x, y
    attributes: dict[str, str]


_BUTTON = _ScanRule("button", 20, 10, (80, 30), 0.75, "button[{x},{y}]", {"clickable": "true"})
_TEXTFIELD = _ScanRule("textfield", 20, 15, (120, 25), 0.80, "input[type=text][{x},{y}]",
                       {"input": "true", "type": "text"})
_IMAGE = _ScanRule("image", 10, 20, (100, 100), 0.70, "img[{x},{y}]", {})
_LINK = _ScanRule("link", 15, 12, (60, 15), 0.65, "a[{x},{y}]", {"href": "#", "clickable": "true"})


def region_variance(img: Image.Image, x: int, y: int, width: int, height: int) -> float:
    """Grayscale variance of the ``width`` x ``height`` region at (x, y).

    Returns 0.0 when the region does not fit inside the image.
    """
    if x + width >= img.width or y + height >= img.height:
        return 0.0
    return ImageStat.Stat(img.crop((x, y, x + width, y + height))).var[0]


class ElementDetector:
    """Heuristic visual element recognition on a single screenshot."""

    def __init__(self, enabled: bool = True):
        self._enabled = enabled
        self.last_image: Optional[Path] = None
        self.last_elements: list[ElementInfo] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def reset(self) -> None:
        """Drop per-run state before the detector is handed out again."""
        self.last_image = None
        self.last_elements = []

    def detect_elements(self, image_path: str | Path) -> list[ElementInfo]:
        """Find buttons, text fields, images and links in a screenshot.

        Raises:
            RuntimeError: if the detector is disabled.
            OSError: if the image cannot be opened or decoded.
        """
        if not self._enabled:
            raise RuntimeError("computer vision is disabled")

        image_path = Path(image_path)
        logger.info("Starting visual element detection in %s", image_path)

        with Image.open(image_path) as img:
            gray = img.convert("L")

        elements: list[ElementInfo] = []
        elements.extend(self._scan(gray, _BUTTON, self._is_button_like))
        elements.extend(self._scan(gray, _TEXTFIELD, self._is_text_field_like))
        elements.extend(self._scan(gray, _IMAGE, self._is_image_like))
        elements.extend(self._scan(gray, _LINK, self._is_link_like))

        self.last_image = image_path
        self.last_elements = elements
        logger.info("Detected %d visual elements", len(elements))
        return elements

    def _scan(
        self,
        img: Image.Image,
        rule: _ScanRule,
        matches: Callable[[Image.Image, int, int], bool],
    ) -> list[ElementInfo]:
        found: list[ElementInfo] = []
        for y in range(rule.margin, img.height - rule.margin, rule.step):
            for x in range(rule.margin, img.width - rule.margin, rule.step):
                if any(e.contains(x, y) for e in found):
                    continue
                if not matches(img, x, y):
                    continue
                attributes = dict(rule.attributes)
                if rule.type == "image":
                    attributes["src"] = f"detected_image_{x}_{y}"
                found.append(ElementInfo(
                    type=rule.type,
                    selector=rule.selector.format(x=x, y=y),
                    confidence=rule.confidence,
                    position=Point(x=x, y=y),
                    size=Size(width=rule.size[0], height=rule.size[1]),
                    attributes=attributes,
                ))
        logger.debug("Found %d %s candidates", len(found), rule.type)
        return found

    # ------------------------------------------------------------------
    # Heuristics
    # ------------------------------------------------------------------

    @staticmethod
    def _is_button_like(img: Image.Image, x: int, y: int) -> bool:
        if x + 10 >= img.width or y + 10 >= img.height:
            return False
        return region_variance(img, x, y, 10, 5) < 20 and img.getpixel((x, y)) < 200

    @staticmethod
    def _is_text_field_like(img: Image.Image, x: int, y: int) -> bool:
        if x + 15 >= img.width or y + 5 >= img.height:
            return False
        return img.getpixel((x, y)) > 220

    @staticmethod
    def _is_image_like(img: Image.Image, x: int, y: int) -> bool:
        if x + 20 >= img.width or y + 20 >= img.height:
            return False
        return region_variance(img, x, y, 20, 20) > 50

    @staticmethod
    def _is_link_like(img: Image.Image, x: int, y: int) -> bool:
        return 100 < img.getpixel((x, y)) < 200

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def find_by_type(elements: list[ElementInfo], element_type: str) -> list[ElementInfo]:
        return [e for e in elements if e.type == element_type]

    @staticmethod
    def find_by_text(elements: list[ElementInfo], text: str) -> list[ElementInfo]:
        """Case-insensitive substring match on element text."""
        if not text:
            return []
        needle = text.lower()
        return [e for e in elements if e.text and needle in e.text.lower()]

    @staticmethod
    def find_by_position(
        elements: list[ElementInfo], x: int, y: int, tolerance: int = 0,
    ) -> list[ElementInfo]:
        return [e for e in elements if e.contains(x, y, tolerance)]

    def write_visual_report(self, elements: list[ElementInfo], output_dir: str | Path) -> Path:
        """Write a plain-text listing of detected elements grouped by type."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / "visual_elements_report.txt"

        groups: dict[str, list[ElementInfo]] = {}
        for elem in elements:
            groups.setdefault(elem.type, []).append(elem)

        lines = ["# Visual Element Detection Report", "",
                 f"Total Elements Detected: {len(elements)}", ""]
        for element_type, group in groups.items():
            lines.append(f"## {element_type} ({len(group)})")
            lines.append("")
            for i, elem in enumerate(group, start=1):
                lines.append(f"{i}. Position: ({elem.position.x}, {elem.position.y})")
                lines.append(f"   Size: {elem.size.width}x{elem.size.height}")
                lines.append(f"   Confidence: {elem.confidence:.2f}")
                lines.append(f"   Selector: {elem.selector}")
                lines.append("")

        path.write_text("\n".join(lines))
        logger.info("Visual element report written to %s", path)
        return path
