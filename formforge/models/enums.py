"""
Enumerations shared by the form engine contracts.
"""

from enum import Enum


class HintLevel(str, Enum):
    """How much validator feedback is echoed back on mutation responses."""
    FULL = "full"  # errors + warnings
    MINIMAL = "minimal"  # errors only
    NONE = "none"


class IssueSeverity(str, Enum):
    """Validator issue severity"""
    ERROR = "error"
    WARNING = "warning"


class LayoutStrategy(str, Enum):
    """Auto-layout strategies"""
    SINGLE_COLUMN = "single-column"
    TWO_COLUMN = "two-column"
    COMPACT = "compact"


class HistoryAction(str, Enum):
    """form_history actions"""
    UNDO = "undo"
    REDO = "redo"


class FormChangeEvent(str, Enum):
    """Events delivered to the form store change listener"""
    STORE = "store"
    DELETE = "delete"
