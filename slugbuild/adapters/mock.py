"""
MockAdapter — stand-in for npm, gem, bower or grunt in tests.

Every call is recorded.  The answer to a call is, in order of
precedence: a canned receipt registered for its action id, the
receipt returned by the ``on_execute`` hook, or a plain success.
The hook may also act on the filesystem (create ``node_modules``
entries, a gem home) to imitate the real tool.
"""

from __future__ import annotations

from collections.abc import Callable

from slugbuild.adapters.base import Adapter, ExecutionContext
from slugbuild.core.models.action import Receipt

SideEffect = Callable[[ExecutionContext], "Receipt | None"]


class MockAdapter(Adapter):
    """Records calls and answers them without running anything."""

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "",
        on_execute: SideEffect | None = None,
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._on_execute = on_execute
        self._canned: dict[str, Receipt] = {}
        self._received: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        return self._received

    @property
    def call_count(self) -> int:
        return len(self._received)

    @property
    def calls(self) -> list[list[str]]:
        """argv of each call, oldest first."""
        return [ctx.action.args for ctx in self._received]

    def is_available(self, context: ExecutionContext | None = None) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._canned[action_id] = receipt

    def set_failure(
        self,
        action_id: str,
        error: str = "mock failure",
        return_code: int = 1,
        output: str = "",
    ) -> None:
        """Make ``action_id`` fail as if the tool exited with ``return_code``."""
        self._canned[action_id] = Receipt.failure(
            self._name, action_id, error, return_code=return_code, output=output
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._received.append(context)
        action_id = context.action.id

        if action_id in self._canned:
            return self._canned[action_id]
        if self._on_execute is not None:
            receipt = self._on_execute(context)
            if receipt is not None:
                return receipt
        return Receipt.success(
            self._name, action_id, output=self._default_output, return_code=0
        )

    def reset(self) -> None:
        self._received.clear()
        self._canned.clear()
