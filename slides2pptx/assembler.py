"""
Merge per-slide PDFs into one document in slide order.

Failed slides are skipped: the merged PDF holds every slide that rendered,
in ascending ``sequence_index`` order, and the omissions are reported on the
returned :class:`~slides2pptx.models.MergedArtifact`.
"""
import logging
from pathlib import Path
from typing import Sequence

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from .models import MergedArtifact, RenderFailure, RenderResult

logger = logging.getLogger(__name__)

__all__ = ["assemble"]


def assemble(results: Sequence[RenderResult], output_path) -> MergedArtifact:
    """
    Write the merged PDF for ``results`` to ``output_path``.

    Returns:
        A :class:`MergedArtifact`. Its ``path`` is ``None`` and nothing is
        written when no slide succeeded.
    """
    output_path = Path(output_path)
    artifact = MergedArtifact(path=None, total=len(results))
    writer = PdfWriter()

    for result in sorted(results, key=lambda r: r.sequence_index):
        outcome = result.outcome
        if isinstance(outcome, RenderFailure):
            logger.warning(
                "⚠️ Skipping %s (failed after %d attempt(s)): %s",
                result.slide_id, outcome.attempts, outcome.reason,
            )
            artifact.omitted.append(result)
            continue

        try:
            reader = PdfReader(str(outcome.artifact_path))
            pages = list(reader.pages)
        except (OSError, PyPdfError) as e:
            logger.warning("⚠️ Skipping %s: unreadable PDF %s: %s", result.slide_id, outcome.artifact_path, e)
            artifact.omitted.append(
                RenderResult(result.sequence_index, result.slide_id, RenderFailure(f"unreadable PDF: {e}", 0))
            )
            continue

        logger.debug("📎 Adding %s (%d page(s))", result.slide_id, len(pages))
        for page in pages:
            writer.add_page(page)
        artifact.included.append(result.slide_id)
        artifact.page_count += len(pages)

    if not artifact.included:
        logger.error("❌ No slides rendered; nothing to merge")
        return artifact

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "wb") as f:
        writer.write(f)
    artifact.path = output_path
    return artifact
