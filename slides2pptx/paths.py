#!/usr/bin/env python3
"""Output and scratch directory handling for a conversion run.

Every run writes into an explicit output directory. Per-slide PDFs go to a
``.slides_tmp`` sub-directory of it unless intermediates are kept, in which
case they are written next to the merged PDF. When ``.slides_tmp`` cannot be
created (e.g. read-only share) we fall back to :pyfunc:`tempfile.mkdtemp`.

The scratch directory is removed by :meth:`Workspace.cleanup`, which is also
registered with ``atexit`` so an aborted run does not leave it behind.
"""
from __future__ import annotations

import atexit
import errno
import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .errors import SetupError

logger = logging.getLogger(__name__)

__all__ = ["Workspace", "prepare_workspace"]

SCRATCH_DIR_NAME = ".slides_tmp"


@dataclass
class Workspace:
    output_dir: Path
    pages_dir: Path
    keep_intermediates: bool = False

    @property
    def is_scratch(self) -> bool:
        return self.pages_dir != self.output_dir

    def page_path(self, slide_id: str) -> Path:
        return self.pages_dir / f"{slide_id}.pdf"

    def cleanup(self) -> None:
        """Delete the scratch directory (never the output directory itself)."""
        if self.is_scratch and self.pages_dir.exists():
            shutil.rmtree(self.pages_dir, ignore_errors=True)


def prepare_workspace(output_dir: str | Path, *, keep_intermediates: bool = False) -> Workspace:
    """Create ``output_dir`` and pick the directory for per-slide PDFs.

    Parameters
    ----------
    output_dir
        Where ``presentation.pdf`` / ``presentation.pptx`` are written.
        Created if it does not exist.
    keep_intermediates
        Write per-slide PDFs straight into ``output_dir`` so they survive
        the run.

    Raises
    ------
    SetupError
        ``output_dir`` cannot be created.
    """
    out_path = Path(output_dir).expanduser().resolve()
    try:
        out_path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SetupError(f"Cannot create output directory {out_path}: {exc}") from exc

    if keep_intermediates:
        return Workspace(out_path, out_path, keep_intermediates=True)

    proposed_tmp = out_path / SCRATCH_DIR_NAME
    try:
        proposed_tmp.mkdir(parents=True, exist_ok=True)
        pages_dir = proposed_tmp
    except OSError as exc:  # permission denied, read-only FS, …
        if exc.errno not in (errno.EACCES, errno.EROFS):
            raise SetupError(f"Cannot create {proposed_tmp}: {exc}") from exc
        pages_dir = Path(tempfile.mkdtemp(prefix="slides2pptx_"))
        logger.debug("Falling back to scratch directory %s", pages_dir)

    workspace = Workspace(out_path, pages_dir)
    atexit.register(workspace.cleanup)
    return workspace
