"""
Tool invocation — dispatch an action and turn failure into an error.

Every npm/gem/bower/grunt call made by the compile goes through
``run_tool``: the captured output is echoed into the build log
(indented under the current topic) and a failed receipt becomes an
``InstallFailure`` carrying the tool's exit code.
"""

from __future__ import annotations

import logging
from pathlib import Path

from slugbuild.adapters.registry import AdapterRegistry
from slugbuild.core.errors import InstallFailure
from slugbuild.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


def run_tool(
    registry: AdapterRegistry,
    *,
    adapter: str,
    step: str,
    args: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    echo: bool = True,
) -> Receipt:
    """Run ``adapter`` with ``args`` and return its successful receipt.

    Raises:
        InstallFailure: If the tool is missing or exits non-zero.
    """
    action = Action(
        id=f"{adapter}:{step}",
        adapter=adapter,
        args=args,
        cwd=str(cwd),
        env=env or {},
    )
    receipt = registry.execute_action(action)

    if receipt.output and (echo or receipt.failed):
        logger.info(receipt.output)

    if receipt.failed:
        raise InstallFailure(
            action.id,
            receipt.error or "unknown error",
            return_code=receipt.return_code,
            output=receipt.output,
        )
    return receipt
