"""
Loading slide jobs from a ``slides.json`` descriptor.

The descriptor holds an ordered ``slide_ids`` list and a ``files`` list of
records with an ``id``. Each slide id resolves to ``<id>.html`` in the
descriptor's directory. Slides that cannot be resolved are logged and left
out; the remaining ones get contiguous sequence indices.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from .errors import DescriptorError, ResolutionError
from .models import Job

logger = logging.getLogger(__name__)

__all__ = ["load_descriptor", "resolve_slide", "load_jobs", "jobs_from_html_files"]


def load_descriptor(path) -> Dict[str, Any]:
    path = Path(path)
    if not path.is_file():
        raise DescriptorError(f"File not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except ValueError as e:
        raise DescriptorError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict) or "slide_ids" not in data or "files" not in data:
        raise DescriptorError(
            f"Invalid slides.json format in {path}. Expected 'slide_ids' and 'files' properties."
        )
    if not isinstance(data["slide_ids"], list) or not isinstance(data["files"], list):
        raise DescriptorError(f"'slide_ids' and 'files' must be lists in {path}")
    return data


def resolve_slide(slide_id: str, descriptor: Dict[str, Any], base_dir: Path) -> Path:
    """
    Return the HTML path for ``slide_id``.

    Raises:
        ResolutionError: no file record or no HTML document for the slide
    """
    known = {
        str(record["id"]) for record in descriptor["files"]
        if isinstance(record, dict) and record.get("id") is not None
    }
    if str(slide_id) not in known:
        raise ResolutionError(slide_id, "no entry in 'files'")
    html_path = Path(base_dir) / f"{slide_id}.html"
    if not html_path.is_file():
        raise ResolutionError(slide_id, f"{html_path.name} not found in {base_dir}")
    return html_path


def load_jobs(path) -> Tuple[List[Job], List[str]]:
    """
    Build jobs for every resolvable slide in the descriptor at ``path``.

    Returns:
        ``(jobs, unresolved_slide_ids)``
    """
    path = Path(path)
    descriptor = load_descriptor(path)
    base_dir = path.resolve().parent

    jobs, unresolved = _build_jobs(
        (str(slide_id), lambda sid=str(slide_id): resolve_slide(sid, descriptor, base_dir))
        for slide_id in descriptor["slide_ids"]
    )
    logger.info("📑 %d of %d slide(s) resolved from %s", len(jobs), len(descriptor["slide_ids"]), path.name)
    return jobs, unresolved


def jobs_from_html_files(paths: Iterable) -> Tuple[List[Job], List[str]]:
    """Jobs for HTML files given directly, in the given order."""

    def existing(path: Path) -> Path:
        if not path.is_file():
            raise ResolutionError(path.stem, f"{path} not found")
        return path.resolve()

    return _build_jobs((Path(p).stem, lambda p=Path(p): existing(p)) for p in paths)


def _read_source(slide_id: str, html_path: Path) -> str:
    try:
        return html_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ResolutionError(slide_id, f"cannot read {html_path.name}: {e}") from e


def _build_jobs(candidates) -> Tuple[List[Job], List[str]]:
    """Resolve and read each ``(slide_id, locate)`` pair, skipping failures."""
    jobs = []
    unresolved = []
    for slide_id, locate in candidates:
        try:
            html_path = locate()
            source = _read_source(slide_id, html_path)
        except ResolutionError as e:
            logger.warning("⚠️ Skipping slide %s", e)
            unresolved.append(slide_id)
            continue
        jobs.append(Job(slide_id, html_path, source, len(jobs)))
    return jobs, unresolved
