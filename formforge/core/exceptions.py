"""
Core Exceptions

Custom exceptions for the form engine. Every user-facing failure raised by
the engine derives from FormEngineError so callers (MCP tools, batches) can
tell operation errors apart from programming errors.
"""


class FormEngineError(Exception):
    """
    Base class for errors reported back to the calling agent.

    The message is meant to be shown verbatim; these errors are never retried
    by the engine.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class FormReferenceError(FormEngineError):
    """
    Raised when a form, component, or parent reference does not resolve.

    Usage:
        state = store.require(form_id)
        # Raises FormReferenceError("Form not found: ...") if missing
    """


class FormConstraintError(FormEngineError):
    """
    Raised when a request would break a tree invariant.

    Covers unsupported types, out-of-range layout columns, conflicting option
    sources, non-container parents, cyclic moves and duplicate keys.
    """


class ExportBlockedError(FormConstraintError):
    """Raised when export is blocked by validator errors."""

    def __init__(self, message: str, issues: list[dict] | None = None):
        self.issues = issues or []
        super().__init__(message)


class FormStateError(FormEngineError):
    """
    Raised when an operation is not possible in the current state.

    Examples: nothing to undo/redo, malformed or nested batch operations,
    arguments that do not match the operation.
    """
