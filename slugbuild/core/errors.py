"""
Build errors — the fatal failure taxonomy of a compile.

Every fatal condition raised by a stage derives from ``BuildError``.
The pipeline driver catches ``BuildError`` once (wrapping anything else
in ``UnexpectedFailure``), records the failed stage and stops; nothing
below the driver retries.

Non-fatal situations (no manifest, no startup command) are never
raised — they are logged and the pipeline degrades to a no-op.
"""

from __future__ import annotations


class BuildError(Exception):
    """Base class for every failure that aborts the compile."""

    exit_code: int = 1

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ResolutionFailure(BuildError):
    """A version range could not be resolved to an exact version."""

    def __init__(self, target: str, requested: str, detail: str) -> None:
        self.target = target
        self.requested = requested
        shown = requested or "latest"
        super().__init__(f"Unable to resolve {target} version '{shown}': {detail}")


class FetchFailure(BuildError):
    """An archive could not be downloaded or extracted."""

    def __init__(self, url: str, detail: str) -> None:
        self.url = url
        super().__init__(f"Unable to fetch {url}: {detail}")


class InstallFailure(BuildError):
    """A dependency-manager or task-runner subprocess exited non-zero."""

    def __init__(
        self,
        step: str,
        detail: str,
        *,
        return_code: int | None = None,
        output: str = "",
    ) -> None:
        self.step = step
        self.return_code = return_code
        self.output = output
        code = return_code if return_code else None
        super().__init__(f"{step} failed: {detail}", exit_code=code)


class UnexpectedFailure(BuildError):
    """Any other exception escaping a stage (I/O errors, broken invariants)."""

    def __init__(self, stage: str, cause: Exception) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage}: {type(cause).__name__}: {cause}")
