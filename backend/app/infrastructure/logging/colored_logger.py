"""Colored pipeline logger: ANSI-colored console tracing of the search pipeline.

Each search passes through a fixed sequence of stages. Tagging every
log line with its stage color makes one request easy to follow in a
busy terminal.

Color scheme:
    Yellow   Guardrails / load shedding
    Blue     Planning (sort, pagination, feature flags)
    Cyan     Cache lookups and writes
    Magenta  Store execution
    Green    Export / completion
    Red      Errors (reported under the failing stage)
    Gray     Details and timing
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


# ── Search Stage Definitions ─────────────────────────────────────────

class SearchStage:
    """Predefined search stages as (label, color) pairs."""

    GUARD = ("GUARD", _Colors.YELLOW)
    PLAN = ("PLAN", _Colors.BLUE)
    CACHE = ("CACHE", _Colors.CYAN)
    EXECUTE = ("EXECUTE", _Colors.MAGENTA)
    EXPORT = ("EXPORT", _Colors.GREEN)
    COMPLETE = ("COMPLETE", _Colors.GREEN)


def _format_details(kwargs: dict[str, Any]) -> str:
    if not kwargs:
        return ""
    details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
    return f" {_Colors.GRAY}({details}){_Colors.RESET}"


# ── PipelineLogger ───────────────────────────────────────────────────

class PipelineLogger:
    """Color-coded logger for search pipeline stages.

    Usage:
        plog = PipelineLogger(__name__)
        plog.step(SearchStage.CACHE, "Cache miss", key="3fa9c1")
        with plog.timed_step(SearchStage.EXECUTE, "Querying store"):
            result = await executor.execute(...)
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step(self, stage: tuple[str, str], message: str, **kwargs: Any) -> None:
        """Per-request stage trace; DEBUG so busy servers stay quiet."""
        if not self._logger.isEnabledFor(logging.DEBUG):
            return
        label, color = stage
        self._logger.debug(
            f"{color}{_Colors.BOLD}[{label}]{_Colors.RESET} {color}{message}{_Colors.RESET}"
            f"{_format_details(kwargs)}"
        )

    def step_complete(self, stage: tuple[str, str], message: str, **kwargs: Any) -> None:
        label, color = stage
        self._logger.info(
            f"{color}[{label}]{_Colors.RESET} {_Colors.GREEN}✓ {message}{_Colors.RESET}"
            f"{_format_details(kwargs)}"
        )

    def step_error(
        self, stage: tuple[str, str], message: str, error: Exception | None = None
    ) -> None:
        label, _ = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}[{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}{_Colors.RESET}"
        self._logger.error(formatted)

    @contextmanager
    def timed_step(self, stage: tuple[str, str], message: str, **kwargs: Any):
        """Trace a stage's start and log its elapsed time on success or failure."""
        self.step(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} failed after {elapsed:.3f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step(stage, f"{message} done in {elapsed:.3f}s", **kwargs)
