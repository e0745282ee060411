"""
PDF -> PPTX conversion through LibreOffice.

The merged PDF is imported with LibreOffice's Impress PDF filter and saved as
a sibling ``.pptx``. A failure here never touches the merged PDF.
"""
import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from pptx import Presentation

from .errors import ConversionError

logger = logging.getLogger(__name__)

__all__ = ["find_office_binary", "build_command", "convert_to_pptx", "count_slides"]

OFFICE_BINARIES = ("soffice", "libreoffice")


def find_office_binary() -> Optional[str]:
    for name in OFFICE_BINARIES:
        found = shutil.which(name)
        if found:
            return found
    return None


def build_command(binary: str, pdf_path: Path, outdir: Path) -> List[str]:
    return [
        binary,
        "--headless",
        "--infilter=impress_pdf_import",
        "--convert-to", "pptx",
        str(pdf_path),
        "--outdir", str(outdir),
    ]


def convert_to_pptx(pdf_path, timeout: float = 300.0, binary: Optional[str] = None) -> Path:
    """
    Convert ``pdf_path`` to a PPTX next to it.

    Raises:
        ConversionError: LibreOffice is missing, fails, times out, or does not
            produce the expected file
    """
    pdf_path = Path(pdf_path)
    binary = binary or find_office_binary()
    if binary is None:
        raise ConversionError(
            "LibreOffice not found; install it and make sure 'soffice' is on PATH"
        )

    outdir = pdf_path.parent
    pptx_path = pdf_path.with_suffix(".pptx")
    command = build_command(binary, pdf_path, outdir)
    logger.debug("Running %s", " ".join(command))

    try:
        result = subprocess.run(command, capture_output=True, text=True, timeout=timeout, check=False)
    except subprocess.TimeoutExpired as e:
        raise ConversionError(f"LibreOffice timed out after {timeout:.0f}s") from e
    except OSError as e:
        raise ConversionError(f"Could not run {binary}: {e}") from e

    if result.returncode != 0:
        detail = (result.stderr or result.stdout or "").strip()
        raise ConversionError(f"LibreOffice exited with status {result.returncode}: {detail}")
    if not pptx_path.exists():
        raise ConversionError(f"LibreOffice reported success but {pptx_path.name} was not written")
    return pptx_path


def count_slides(pptx_path) -> int:
    """Number of slides in a PPTX file."""
    return len(Presentation(str(pptx_path)).slides)
