"""
Calculator session state and its command surface.

A SessionState owns everything a calculator screen shows: the expression being
edited, the last result or error, the angle mode, the active view and the
evaluation history. The presentation layer reads these through properties and
changes them only through the named commands below. Commands never raise; a
bad expression is reported through the error flag.

Usage:
```python
from strands_calculator.session import SessionState

session = SessionState()
session.insert("2+3*4")
session.evaluate_current_expression()

session.output          # "14"
session.history[0]      # HistoryEntry(expression="2+3*4", result_text="14")
```
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from strands_calculator import gateway
from strands_calculator.gateway import Success
from strands_calculator.normalizer import AngleMode, normalize

logger = logging.getLogger(__name__)

EMPTY_DISPLAY = "—"


class ViewMode(Enum):
    BASIC = "basic"
    SCIENTIFIC = "scientific"
    HISTORY = "history"

    @property
    def title(self) -> str:
        return {
            ViewMode.BASIC: "Basic Calculator",
            ViewMode.SCIENTIFIC: "Scientific Calculator",
            ViewMode.HISTORY: "History",
        }[self]

    @property
    def placeholder(self) -> str:
        if self is ViewMode.SCIENTIFIC:
            return "Use functions (e.g. sin(30), pi)"
        return "Type or use buttons"


@dataclass(frozen=True)
class HistoryEntry:
    """A past expression paired with the result it produced."""

    expression: str
    result_text: str


def default_angle_mode() -> AngleMode:
    """Initial angle mode, from CALCULATOR_ANGLE_MODE (radians unless set to degrees)."""
    value = os.getenv("CALCULATOR_ANGLE_MODE", "radians").strip().lower()
    if value in ("degrees", "degree", "deg"):
        return AngleMode.DEGREES
    return AngleMode.RADIANS


class SessionState:
    """Single owner of the calculator's mutable state."""

    def __init__(
        self,
        angle_mode: Optional[AngleMode] = None,
        view_mode: ViewMode = ViewMode.BASIC,
        evaluator: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self._expression = ""
        self._output = ""
        self._error = False
        self._angle_mode = angle_mode or default_angle_mode()
        self._view_mode = view_mode
        self._history: List[HistoryEntry] = []
        self._evaluator = evaluator

    # Read surface

    @property
    def expression(self) -> str:
        return self._expression

    @property
    def output(self) -> str:
        return self._output

    @property
    def error(self) -> bool:
        return self._error

    @property
    def angle_mode(self) -> AngleMode:
        return self._angle_mode

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        """Past successful evaluations, most recent first."""
        return tuple(self._history)

    @property
    def error_message(self) -> str:
        return gateway.ErrorKind.INVALID_EXPRESSION.message if self._error else ""

    @property
    def display_text(self) -> str:
        """What the result row shows: the error message, else the output, else a dash."""
        if self._error:
            return self.error_message
        return self._output or EMPTY_DISPLAY

    @property
    def title(self) -> str:
        return self._view_mode.title

    @property
    def placeholder(self) -> str:
        return self._view_mode.placeholder

    @property
    def angle_label(self) -> str:
        return self._angle_mode.label

    # Commands

    def insert(self, text: str) -> None:
        self._expression += text
        self._error = False

    def set_expression(self, text: str) -> None:
        """Replace the expression wholesale, as direct text entry does."""
        self._expression = text

    def backspace(self) -> None:
        self._expression = self._expression[:-1]
        self._error = False

    def clear_expression(self) -> None:
        self._expression = ""
        self._output = ""
        self._error = False

    def toggle_angle_mode(self) -> None:
        self._angle_mode = self._angle_mode.toggled()
        logger.debug(f"Angle mode is now {self._angle_mode.value}")

    def switch_view(self, target: ViewMode) -> None:
        """Activate a view. BASIC and SCIENTIFIC start from a cleared expression."""
        self._view_mode = target
        if target in (ViewMode.BASIC, ViewMode.SCIENTIFIC):
            self.clear_expression()

    def evaluate_current_expression(self) -> None:
        """Evaluate the expression and fold the outcome into the session.

        On success the result becomes the output and a history entry is
        prepended. On failure the error flag is set and the output cleared.
        The expression itself is kept either way.
        """
        normalized = normalize(self._expression, self._angle_mode)
        outcome = gateway.evaluate(normalized, evaluator=self._evaluator)

        if isinstance(outcome, Success):
            self._output = outcome.result_text
            self._error = False
            self._history.insert(0, HistoryEntry(self._expression, outcome.result_text))
        else:
            logger.debug(f"Expression {self._expression!r} rejected: {outcome.reason.message}")
            self._error = True
            self._output = ""

    def clear_history(self) -> None:
        self._history.clear()

    def recall_history_entry(self, entry: HistoryEntry) -> None:
        self._expression = entry.expression
        self._output = entry.result_text
        self._error = False
        self._view_mode = ViewMode.BASIC

    def recall_last_answer(self) -> None:
        """Append the last output to the expression (nothing when there is none)."""
        self.insert(self._output or "")
