"""
Exceptions raised by the slide conversion pipeline.

Only :class:`SetupError` (and subclasses) end a run. Everything else is either
contained at the slide boundary and reported as data, or fatal to the final
PPTX step only.
"""
from typing import List, Optional


class SlidesError(Exception):
    """Base class for all pipeline errors."""


class SetupError(SlidesError):
    """The run cannot start: no input, no resolvable slides, no output dir."""


class DescriptorError(SetupError):
    """The slides.json descriptor is missing or malformed."""


class ResolutionError(SlidesError):
    """A slide listed in the descriptor has no HTML document on disk."""

    def __init__(self, slide_id: str, message: str):
        super().__init__(f"{slide_id}: {message}")
        self.slide_id = slide_id


class RenderAttemptError(SlidesError):
    """One render attempt failed; the renderer may retry."""

    def __init__(self, slide_id: str, attempt: int, cause: BaseException):
        super().__init__(f"{slide_id}: attempt {attempt} failed: {cause}")
        self.slide_id = slide_id
        self.attempt = attempt
        self.cause = cause


class RenderExhaustedError(SlidesError):
    """All render attempts for a slide failed."""

    def __init__(self, slide_id: str, attempts: int, last_error: Optional[BaseException]):
        detail = str(last_error) if last_error is not None else "unknown error"
        super().__init__(
            f"Failed to render {slide_id} after {attempts} attempt(s): {detail}"
        )
        self.slide_id = slide_id
        self.attempts = attempts
        self.last_error = last_error


class AssemblyPartialFailure(SlidesError):
    """The merged PDF is missing one or more slides."""

    def __init__(self, omitted: List[str], total: int):
        super().__init__(
            f"{len(omitted)} of {total} slides missing from merged PDF: "
            + ", ".join(omitted)
        )
        self.omitted = omitted
        self.total = total


class ConversionError(SlidesError):
    """The external PDF to PPTX converter failed."""
