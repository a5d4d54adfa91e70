"""UNSAFE: arbitrary Python evaluation for the bridge's run-code endpoint.

Anything that can reach this evaluator can run any code with the
application's privileges. It is only wired in by `install_bridge`, which
refuses to run in production.
"""

from __future__ import annotations

import textwrap
from typing import Any, Callable, Mapping

_FUNCTION_NAME = "__bridge_fragment__"


class UnsafePythonEvaluator:
    """`CodeEvaluator` that runs a prepared fragment as a function body.

    `namespace` is what the fragment sees as globals (session factory,
    models...). A callable is invoked on every evaluation so each fragment
    starts from fresh globals.
    """

    def __init__(
        self,
        namespace: Mapping[str, Any] | Callable[[], Mapping[str, Any]] | None = None,
    ) -> None:
        self._namespace = namespace

    def _globals(self) -> dict[str, Any]:
        namespace = self._namespace() if callable(self._namespace) else self._namespace
        return {"__builtins__": __builtins__, **dict(namespace or {})}

    def evaluate(self, source: str) -> Any:
        body = textwrap.indent(textwrap.dedent(source), "    ")
        code = compile(f"def {_FUNCTION_NAME}():\n{body}\n", "<bridge>", "exec")
        scope = self._globals()
        exec(code, scope)  # noqa: S102
        return scope[_FUNCTION_NAME]()
