from __future__ import annotations

from typing import Any, Optional
from uuid import uuid4

import structlog


def current_run_id() -> Optional[str]:
    """Return the active pipeline run id if bound."""
    context = structlog.contextvars.get_contextvars()
    return context.get("run_id")


def bind_run_context(
    run_id: Optional[str] = None, url: Optional[str] = None, **extra: Any
) -> str:
    """Bind a run id (generated when absent) and article metadata for logging."""
    resolved = run_id or current_run_id() or uuid4().hex
    context: dict[str, Any] = {"run_id": resolved, "url": url}
    context.update(extra)
    structlog.contextvars.bind_contextvars(**context)
    return resolved


def clear_run_context() -> None:
    """Reset run-scoped context vars for the current scope."""
    structlog.contextvars.clear_contextvars()
