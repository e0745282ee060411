#!/usr/bin/env python3
"""
Main conversion pipeline: HTML slides -> merged PDF -> PPTX.
"""

import logging
import time
from pathlib import Path
from typing import List, Optional, Tuple

from .assembler import assemble
from .config import PipelineConfig
from .converter import convert_to_pptx, count_slides
from .descriptor import jobs_from_html_files, load_jobs
from .errors import ConversionError, SetupError
from .icon_catalog import IconCatalog
from .models import AssemblyStatus, Job, RunSummary
from .paths import prepare_workspace
from .renderer import SlideRenderer
from .scheduler import run_bounded
from .transformer import DocumentTransformer

logger = logging.getLogger(__name__)

MERGED_PDF_NAME = "presentation.pdf"
HTML_SUFFIXES = (".html", ".htm")


def merged_pdf_name(input_path: Path) -> str:
    """``<stem>.pdf`` for a single HTML slide, ``presentation.pdf`` for a deck."""
    if input_path.suffix.lower() in HTML_SUFFIXES:
        return f"{input_path.stem}.pdf"
    return MERGED_PDF_NAME


class DeckConverter:
    """
    Convert a deck of HTML slides into one PDF and, optionally, a PPTX.
    """

    def __init__(
        self,
        config: PipelineConfig,
        *,
        catalog: Optional[IconCatalog] = None,
        renderer: Optional[SlideRenderer] = None,
    ):
        """Create a new :class:`DeckConverter`.

        Parameters
        ----------
        config
            Viewport, concurrency, retry and output settings.
        catalog
            Icon catalog shared by every slide. Loaded from the Font Awesome
            SVGs when omitted.
        renderer
            Renderer to use instead of one built from ``config``.
        """
        self.config = config
        self.debug = config.debug
        if renderer is None:
            catalog = catalog if catalog is not None else IconCatalog.default()
            renderer = SlideRenderer(
                DocumentTransformer(catalog, debug=config.debug),
                retry_policy=config.retry_policy,
                load_timeout_ms=config.load_timeout_ms,
                settle_delay=config.settle_delay,
                attempt_timeout=config.attempt_timeout,
                executable_path=config.browser_executable,
                debug=config.debug,
            )
        self.renderer = renderer

    async def convert(self, input_path) -> RunSummary:
        """
        Run the whole pipeline for ``input_path``.

        Args:
            input_path: ``slides.json`` descriptor or a single ``.html`` slide

        Returns:
            RunSummary describing what was produced

        Raises:
            SetupError: nothing to convert or the output directory is unusable
        """
        started = time.monotonic()
        input_path = Path(input_path)
        jobs, unresolved = self.load(input_path)
        if not jobs:
            raise SetupError(
                "No HTML files found. Check that HTML files exist next to the slides descriptor."
            )

        output_dir = self.config.output_dir or input_path.resolve().parent
        workspace = prepare_workspace(output_dir, keep_intermediates=self.config.keep_pdfs)
        viewport = self.config.viewport

        logger.info("📐 Dimensions: %dx%dpx", viewport.width, viewport.height)
        logger.info("⚙️  Concurrency: %d", self.config.concurrency)
        logger.info("📁 Output directory: %s", workspace.output_dir)

        summary = None
        try:
            async def render_job(job: Job):
                logger.info("🔄 Converting %s → %s.pdf", job.source_path.name, job.slide_id)
                return await self.renderer.render(job, viewport, workspace.page_path(job.slide_id))

            render_started = time.monotonic()
            results = await run_bounded(jobs, self.config.concurrency, render_job)
            render_elapsed = time.monotonic() - render_started

            merged_name = merged_pdf_name(input_path)
            logger.info("📄 Merging PDFs → %s", merged_name)
            merge_started = time.monotonic()
            artifact = assemble(results, workspace.output_dir / merged_name)
            summary = RunSummary(artifact=artifact, unresolved=unresolved)
            summary.timings["render"] = render_elapsed
            summary.timings["merge"] = time.monotonic() - merge_started

            if artifact.path is not None and not self.config.pdf_only:
                self._convert(summary)
                if self.config.pptx_only and summary.pptx_path is not None:
                    artifact.path.unlink()
                    summary.pdf_removed = True
        finally:
            if not self.config.keep_pdfs:
                logger.info("🧹 Cleaning up individual slide PDFs...")
                workspace.cleanup()

        summary.timings["total"] = time.monotonic() - started
        return summary

    def load(self, input_path: Path) -> Tuple[List[Job], List[str]]:
        if input_path.suffix.lower() in HTML_SUFFIXES:
            return jobs_from_html_files([input_path])
        return load_jobs(input_path)

    def _convert(self, summary: RunSummary) -> None:
        artifact = summary.artifact
        logger.info("📊 Converting merged PDF to PPTX → %s", artifact.path.with_suffix(".pptx").name)
        started = time.monotonic()
        try:
            summary.pptx_path = convert_to_pptx(artifact.path, timeout=self.config.converter_timeout)
        except ConversionError as e:
            summary.conversion_error = str(e)
            logger.error("❌ Error converting to PPTX: %s", e)
            return
        finally:
            summary.timings["convert"] = time.monotonic() - started

        try:
            slides = count_slides(summary.pptx_path)
        except Exception as e:
            logger.warning("⚠️ Could not open %s to verify it: %s", summary.pptx_path.name, e)
            return
        if slides != artifact.page_count:
            logger.warning(
                "⚠️ %s has %d slide(s) but the merged PDF has %d page(s)",
                summary.pptx_path.name, slides, artifact.page_count,
            )


def report(summary: RunSummary) -> int:
    """Log the outcome of a run and return the process exit code."""
    artifact = summary.artifact
    status = artifact.status

    for result in artifact.omitted:
        logger.error(
            "❌ %s missing from output after %d attempt(s): %s",
            result.slide_id, result.outcome.attempts, result.outcome.reason,
        )
    if summary.unresolved:
        logger.warning("⚠️ Unresolved slides: %s", ", ".join(summary.unresolved))

    if status is AssemblyStatus.FAILED:
        logger.error("❌ Conversion failed: total failure, no slide rendered")
        return 1

    if status is AssemblyStatus.COMPLETE:
        logger.info("\n🎉 Conversion completed: %s!", artifact.describe())
    else:
        logger.warning("\n⚠️ Conversion completed with %s", artifact.describe())
    if not summary.pdf_removed:
        logger.info("📄 PDF: %s", artifact.path)
    if summary.pptx_path:
        logger.info("📊 PPTX: %s", summary.pptx_path)
    logger.info("⏱️  Timings: %s", summary.format_timings())

    if summary.conversion_error:
        logger.error("Make sure LibreOffice is installed and available in PATH")
        return 2
    return 0


def main(argv=None):
    """Command-line entry point."""
    import argparse
    import asyncio
    import sys

    from .errors import AssemblyPartialFailure

    def _build_parser() -> argparse.ArgumentParser:
        p = argparse.ArgumentParser(
            prog="slides2pptx",
            description="Convert HTML slides (slides.json or a single .html file) to a merged PDF and PPTX.",
        )
        p.add_argument("input", type=Path, help="Path to slides.json or a single HTML slide")
        p.add_argument("--width", type=int, default=1280, help="Viewport width in px (default: 1280)")
        p.add_argument("--height", type=int, default=720, help="Viewport height in px (default: 720)")
        p.add_argument("--concurrency", type=int, default=4, help="Concurrent HTML→PDF conversions (default: 4)")
        p.add_argument("--output", "-o", type=Path, help="Output directory (default: input's directory)")
        p.add_argument("--pdf-only", action="store_true", help="Generate only the merged PDF")
        p.add_argument("--pptx-only", action="store_true", help="Delete the merged PDF once the PPTX is written")
        p.add_argument("--keep-pdfs", action="store_true", help="Keep individual slide PDFs after merging")
        p.add_argument("--retries", type=int, default=3, help="Render attempts per slide (default: 3)")
        p.add_argument(
            "--attempt-timeout", type=float, default=60.0,
            help="Seconds one render attempt may take before it is retried (default: 60)",
        )
        p.add_argument("--strict", action="store_true", help="Exit non-zero if any slide is missing")
        p.add_argument("--debug", action="store_true", help="Enable verbose logging")
        return p

    args = _build_parser().parse_args(argv)

    try:
        config = PipelineConfig.from_env(
            width=args.width,
            height=args.height,
            concurrency=max(1, args.concurrency),
            output_dir=args.output,
            pdf_only=args.pdf_only,
            pptx_only=args.pptx_only,
            keep_pdfs=args.keep_pdfs,
            max_retries=args.retries,
            attempt_timeout=args.attempt_timeout,
            strict=args.strict,
            debug=args.debug,
        )
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(levelname)s  %(message)s",
    )
    logger.info("🚀 Starting conversion: %s", args.input)

    try:
        summary = asyncio.run(DeckConverter(config).convert(args.input))
    except SetupError as e:
        logger.error("❌ %s", e)
        return 1
    except OSError as e:
        logger.error("❌ Could not write output: %s", e)
        return 1

    code = report(summary)
    if code == 0 and config.strict:
        try:
            summary.artifact.raise_for_omissions()
        except AssemblyPartialFailure as e:
            logger.error("❌ %s", e)
            return 3
    return code


if __name__ == "__main__":
    raise SystemExit(main())
