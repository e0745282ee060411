"""
slides2pptx

Render HTML slides with headless Chromium, merge them into one PDF in slide
order, and convert the result to PowerPoint with LibreOffice.
"""

from .assembler import assemble
from .config import PipelineConfig, RetryPolicy
from .generator import DeckConverter
from .icon_catalog import IconCatalog
from .models import Job, MergedArtifact, RenderResult, Viewport
from .renderer import SlideRenderer
from .scheduler import run_bounded
from .transformer import DocumentTransformer

__all__ = [
    'DeckConverter', 'DocumentTransformer', 'IconCatalog', 'Job', 'MergedArtifact',
    'PipelineConfig', 'RenderResult', 'RetryPolicy', 'SlideRenderer', 'Viewport',
    'assemble', 'run_bounded',
]
