"""
models.py - Shared data structures for the markdown-to-PDF pipeline.

Defines the content tree produced from markdown and the records that flow
between the measurement, correction and resize stages.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class NodeKind(Enum):
    TEXT = "text"
    IMAGE = "image"
    STACK = "stack"
    COLUMNS = "columns"
    TABLE = "table"
    LIST = "list"
    CODE = "code"
    RULE = "rule"


@dataclass
class InlineSpan:
    """A run of inline text with uniform styling."""
    text: str
    bold: bool = False
    italic: bool = False
    strike: bool = False
    code: bool = False
    link: Optional[str] = None
    color: Optional[str] = None


@dataclass
class ContentNode:
    """One renderable unit of the document.

    TEXT nodes carry ``spans``; IMAGE nodes carry an opaque ``image`` id;
    STACK, COLUMNS and LIST nodes carry ``children``; TABLE nodes carry
    ``rows`` of cells, each cell a list of spans.
    """
    kind: NodeKind
    spans: list = field(default_factory=list)
    image: Optional[str] = None
    children: list = field(default_factory=list)
    rows: list = field(default_factory=list)
    header_rows: int = 0
    alignments: list = field(default_factory=list)
    style: str = "body"
    margin: tuple = (0, 0, 0, 0)
    ordered: bool = False
    start: int = 1
    text: str = ""
    language: str = ""


def iter_nodes(nodes):
    """Yield every node of the tree in document order, containers first."""
    for node in nodes:
        if node is None:
            continue
        yield node
        if node.children:
            yield from iter_nodes(node.children)


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int


@dataclass(frozen=True)
class ImageRecord:
    """Pixel size of one distinct image of the document."""
    id: str
    pixel_width: int
    pixel_height: int

    @property
    def dimensions(self) -> ImageDimensions:
        return ImageDimensions(self.pixel_width, self.pixel_height)


@dataclass(frozen=True)
class FitBox:
    width: float
    height: float


@dataclass(frozen=True)
class PageGeometry:
    width: float
    height: float


@dataclass(frozen=True)
class Margins:
    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_tuple(cls, values) -> "Margins":
        left, top, right, bottom = values
        return cls(left, top, right, bottom)

    def as_tuple(self) -> tuple:
        return (self.left, self.top, self.right, self.bottom)


@dataclass
class ImageInfo:
    """An image reference collected while building the content tree."""
    id: str
    href: str
    alt: str = ""


@dataclass
class LoadedImage:
    """Encoded image bytes ready to hand to the layout engine."""
    id: str
    data: bytes
    mime_type: str
    dimensions: Optional[ImageDimensions] = None

    @property
    def record(self) -> Optional[ImageRecord]:
        if self.dimensions is None:
            return None
        return ImageRecord(self.id, self.dimensions.width, self.dimensions.height)


@dataclass(frozen=True)
class LayoutEvent:
    """Position of one node as resolved by the layout engine."""
    page_number: int
    top: float
    height: float
    image_id: Optional[str] = None


@dataclass
class MeasurementResult:
    """Aggregate extent observed during the measurement pass."""
    max_extent: float = 0.0
    image_top_positions: dict = field(default_factory=dict)
    page_count: int = 0


@dataclass
class ExtentCorrection:
    measured: float
    correction: float
    corrected: float
    strategy: str = "none"
