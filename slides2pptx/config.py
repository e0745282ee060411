"""Runtime configuration for the conversion pipeline."""
import enum
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from .models import Viewport


class AttemptState(enum.Enum):
    SUCCEEDED = "succeeded"
    RETRY = "retry"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with a fixed backoff between attempts.

    Attempts are numbered from 1. After attempt ``n`` the renderer is either
    done (``SUCCEEDED``), goes on to attempt ``n + 1`` after sleeping
    ``backoff_seconds`` (``RETRY``), or gives up (``EXHAUSTED``).
    """
    max_retries: int = 3
    backoff_seconds: float = 2.0

    def next_state(self, attempt: int, succeeded: bool) -> AttemptState:
        if succeeded:
            return AttemptState.SUCCEEDED
        if attempt < self.max_retries:
            return AttemptState.RETRY
        return AttemptState.EXHAUSTED


@dataclass(frozen=True)
class PipelineConfig:
    width: int = 1280
    height: int = 720
    concurrency: int = 4
    output_dir: Optional[Path] = None
    pdf_only: bool = False
    pptx_only: bool = False
    keep_pdfs: bool = False
    max_retries: int = 3
    retry_backoff: float = 2.0
    load_timeout_ms: int = 10000
    settle_delay: float = 1.0
    attempt_timeout: float = 60.0
    converter_timeout: float = 300.0
    strict: bool = False
    debug: bool = False
    browser_executable: Optional[str] = None

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Viewport must be positive, got {self.width}x{self.height}")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        if self.attempt_timeout <= 0:
            raise ValueError(f"attempt_timeout must be positive, got {self.attempt_timeout}")
        if self.pdf_only and self.pptx_only:
            raise ValueError("pdf_only and pptx_only cannot both be set")
        if self.concurrency < 1:
            # Matches the CLI: anything below one means sequential
            object.__setattr__(self, "concurrency", 1)

    @property
    def viewport(self) -> Viewport:
        return Viewport(self.width, self.height)

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(self.max_retries, self.retry_backoff)

    @classmethod
    def from_env(cls, **overrides) -> "PipelineConfig":
        """
        Build a config, letting ``SLIDES_DEBUG`` and ``SLIDES_CHROME_PATH``
        fill in values not given explicitly.
        """
        config = cls(**overrides)
        env = {}
        if not config.debug and os.getenv("SLIDES_DEBUG") == "1":
            env["debug"] = True
        chrome = os.getenv("SLIDES_CHROME_PATH")
        if config.browser_executable is None and chrome:
            env["browser_executable"] = chrome
        return replace(config, **env) if env else config
