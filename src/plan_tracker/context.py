"""Context variables for tool execution.

Provides a ContextVar that lets tools reach the active PlanManager. The
caller sets it before invoking tools; tools fall back to a manager built
from the current settings when it is unset.
"""

from contextvars import ContextVar, Token
from typing import Any, Callable


def _make_context_accessors(name: str) -> tuple[Callable[..., Token], Callable[..., Any]]:
    """Create a (setter, getter) pair backed by a ContextVar."""
    var: ContextVar[Any] = ContextVar(f"{name}_context", default=None)

    def setter(value: Any) -> Token:
        return var.set(value)

    def getter() -> Any:
        return var.get()

    setter.__name__ = setter.__qualname__ = f"set_context_{name}"
    getter.__name__ = getter.__qualname__ = f"get_context_{name}"
    return setter, getter


set_context_plan_manager, get_context_plan_manager = _make_context_accessors("plan_manager")
