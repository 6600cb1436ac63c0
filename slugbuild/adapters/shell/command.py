"""
Command adapter — run a CLI tool and capture its output.

This is the SINGLE PLACE where ``subprocess.run`` is called for build
tools.  Every tool adapter (npm, gem, bower, grunt) is a
``CommandAdapter`` bound to one executable; the action supplies the
arguments, working directory and environment overrides.

Commands run to completion with no timeout: a hung install hangs the
compile, as it would under any build system that shells out.  Output
is decoded as UTF-8 with undecodable bytes replaced; compiler output
from native addons is not always valid UTF-8.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from slugbuild.adapters.base import Adapter, ExecutionContext
from slugbuild.core.models.action import Receipt

logger = logging.getLogger(__name__)


class CommandAdapter(Adapter):
    """Execute one executable with the action's arguments.

    Args:
        name: Adapter identifier used by the registry.
        executable: Program name looked up on the action's ``PATH``.
        prefer_local_bin: Look in ``<cwd>/node_modules/.bin`` first,
            for tools an app may vendor as a dependency.
    """

    def __init__(
        self,
        name: str,
        executable: str | None = None,
        *,
        prefer_local_bin: bool = False,
    ) -> None:
        self._name = name
        self._executable = executable or name
        self._prefer_local_bin = prefer_local_bin

    @property
    def name(self) -> str:
        return self._name

    @property
    def executable(self) -> str:
        return self._executable

    def resolve_executable(self, context: ExecutionContext | None = None) -> str | None:
        """Full path of the executable for this context, or None."""
        env = context.environment() if context else dict(os.environ)
        search = env.get("PATH", "")
        if self._prefer_local_bin and context is not None:
            local_bin = Path(context.working_dir) / "node_modules" / ".bin"
            search = os.pathsep.join([str(local_bin), search]) if search else str(local_bin)
        return shutil.which(self._executable, path=search)

    def is_available(self, context: ExecutionContext | None = None) -> bool:
        return self.resolve_executable(context) is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        cwd = context.working_dir
        if not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"
        if self.resolve_executable(context) is None:
            return False, f"'{self._executable}' not found on PATH"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        action = context.action
        program = self.resolve_executable(context) or self._executable
        cmd = [program, *action.args]
        shown = " ".join([self._executable, *action.args])

        logger.debug("Executing: %s (cwd=%s)", shown, context.working_dir)
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                cwd=context.working_dir,
                env=context.environment(),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
            )
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=action.id,
                error=f"Command execution error: {e}",
                command=shown,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = (result.stdout or "").rstrip()

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=action.id,
                output=output,
                duration_ms=elapsed_ms,
                return_code=0,
                command=shown,
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=action.id,
            error=f"'{shown}' exited with code {result.returncode}",
            output=output,
            duration_ms=elapsed_ms,
            return_code=result.returncode,
            command=shown,
        )
