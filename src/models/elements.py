"""Visual element records produced by the element detector."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Point(BaseModel):
    x: int = 0
    y: int = 0


class Size(BaseModel):
    width: int = 0
    height: int = 0


class ElementInfo(BaseModel):
    type: str  # button, textfield, link, image
    selector: str = ""
    text: str = ""
    confidence: float = 0.0
    position: Point = Field(default_factory=Point)
    size: Size = Field(default_factory=Size)
    attributes: dict[str, str] = Field(default_factory=dict)

    def contains(self, x: int, y: int, tolerance: int = 0) -> bool:
        """Whether (x, y) falls inside this element's bounding box."""
        return (
            self.position.x - tolerance <= x <= self.position.x + self.size.width + tolerance
            and self.position.y - tolerance <= y <= self.position.y + self.size.height + tolerance
        )
