"""
Data models for the slide conversion pipeline.
"""
import enum
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .errors import AssemblyPartialFailure

# CSS reference pixel: 96 px per inch
PX_PER_INCH = 96


@dataclass(frozen=True)
class Job:
    """
    One HTML slide waiting to be rendered.
    """
    slide_id: str
    source_path: Path
    source_document: str
    sequence_index: int


@dataclass(frozen=True)
class Viewport:
    width: int = 1280
    height: int = 720


@dataclass(frozen=True)
class PageGeometry:
    """
    Page size for one rendered slide.

    ``measured_content_height`` comes from the browser after layout and may be
    larger than the requested height for over-long slides.
    """
    requested_width: int
    requested_height: int
    measured_content_height: int = 0

    @property
    def effective_height(self) -> int:
        return max(self.requested_height, self.measured_content_height)

    @property
    def needs_resize(self) -> bool:
        return self.effective_height > self.requested_height

    @property
    def width_inches(self) -> float:
        return self.requested_width / PX_PER_INCH

    @property
    def height_inches(self) -> float:
        return self.effective_height / PX_PER_INCH


@dataclass(frozen=True)
class RenderSuccess:
    artifact_path: Path
    page_width: int
    page_height: int


@dataclass(frozen=True)
class RenderFailure:
    reason: str
    attempts: int


@dataclass(frozen=True)
class RenderResult:
    """Outcome of rendering one :class:`Job`."""
    sequence_index: int
    slide_id: str
    outcome: Union[RenderSuccess, RenderFailure]

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, RenderSuccess)


@dataclass(frozen=True)
class IconGlyphMatch:
    """An icon-font glyph element found in a slide document."""
    style_family: str
    glyph_key: str
    carried_classes: Tuple[str, ...] = ()
    carried_attributes: Tuple[Tuple[str, str], ...] = ()
    carried_style: str = ""


@dataclass(frozen=True)
class VectorGlyph:
    """SVG path data for one icon in one style family."""
    glyph_key: str
    style_family: str
    width: int
    height: int
    paths: Tuple[str, ...]

    @property
    def aspect_ratio(self) -> float:
        if not self.height:
            return 1.0
        return self.width / self.height

    @property
    def view_box(self) -> str:
        return f"0 0 {self.width} {self.height}"


class AssemblyStatus(enum.Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class MergedArtifact:
    """
    Result of merging per-slide PDFs.

    ``path`` is ``None`` when no slide rendered successfully, in which case no
    file was written.
    """
    path: Optional[Path]
    total: int
    included: List[str] = field(default_factory=list)
    omitted: List[RenderResult] = field(default_factory=list)
    page_count: int = 0

    @property
    def status(self) -> AssemblyStatus:
        if not self.included:
            return AssemblyStatus.FAILED
        if self.omitted:
            return AssemblyStatus.PARTIAL
        return AssemblyStatus.COMPLETE

    def describe(self) -> str:
        status = self.status
        if status is AssemblyStatus.COMPLETE:
            return "complete success"
        if status is AssemblyStatus.PARTIAL:
            return f"partial success ({len(self.included)} of {self.total} slides)"
        return "total failure"

    def raise_for_omissions(self) -> None:
        """Raise :class:`AssemblyPartialFailure` if any slide was left out."""
        if self.omitted:
            raise AssemblyPartialFailure(
                [r.slide_id for r in self.omitted], self.total
            )


@dataclass
class RunSummary:
    """Everything a caller needs to report on one conversion run."""
    artifact: MergedArtifact
    unresolved: List[str] = field(default_factory=list)
    pptx_path: Optional[Path] = None
    conversion_error: Optional[str] = None
    pdf_removed: bool = False
    timings: Dict[str, float] = field(default_factory=dict)

    def format_timings(self) -> str:
        order = ("render", "merge", "convert", "total")
        parts = [
            f"{name}: {self.timings[name]:.1f}s" for name in order if name in self.timings
        ]
        return ", ".join(parts)


def ceil_px(value: float) -> int:
    """Round a browser measurement up to a whole pixel."""
    return int(math.ceil(value or 0))
