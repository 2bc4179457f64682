"""
Button layouts of the basic and scientific keypads.

A button either inserts text into the expression (its ``value``, falling back to
its ``label``) or runs a session command named by ``action``. The display labels
use the typographic operators (÷ × −) while the inserted values use the ASCII
ones the evaluator understands.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from strands_calculator.session import SessionState, ViewMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Button:
    label: str
    value: Optional[str] = None
    action: Optional[str] = None
    css_class: Optional[str] = None
    wide: bool = False


_DIGIT_ROWS: Tuple[Button, ...] = (
    Button("(", "("),
    Button(")", ")"),
    Button("⌫", action="backspace"),
    Button("7", "7"),
    Button("8", "8"),
    Button("9", "9"),
    Button("÷", "/", css_class="operator"),
    Button("4", "4"),
    Button("5", "5"),
    Button("6", "6"),
    Button("×", "*", css_class="operator"),
    Button("1", "1"),
    Button("2", "2"),
    Button("3", "3"),
    Button("−", "-", css_class="operator"),
    Button("0", "0", wide=True),
    Button(".", "."),
    Button("+", "+", css_class="operator"),
    Button("=", action="evaluate_current_expression", css_class="equals operator"),
)

BASIC_BUTTONS: Tuple[Button, ...] = (Button("C", action="clear_expression", css_class="clear1"),) + _DIGIT_ROWS

SCIENTIFIC_BUTTONS: Tuple[Button, ...] = (
    Button("C", action="clear_expression", css_class="clear"),
    Button("sin(", "sin("),
    Button("cos(", "cos("),
    Button("tan(", "tan("),
    Button("√", "sqrt("),
    Button("ln", "log("),
    Button("log10", "log10("),
    Button("x^y", "^"),
    Button("abs(", "abs("),
    Button("e", "e"),
    Button("ANS", action="recall_last_answer"),
    Button("π", "pi"),
) + _DIGIT_ROWS


def buttons_for(view: ViewMode) -> Tuple[Button, ...]:
    """Keypad shown in a view. The history view has none."""
    if view is ViewMode.BASIC:
        return BASIC_BUTTONS
    if view is ViewMode.SCIENTIFIC:
        return SCIENTIFIC_BUTTONS
    return ()


def find_button(view: ViewMode, label: str) -> Button:
    for button in buttons_for(view):
        if button.label == label:
            return button
    raise KeyError(f"No '{label}' button on the {view.value} keypad")


def press(session: SessionState, button: Button) -> None:
    """Apply a button press to the session."""
    if button.action:
        logger.debug(f"Button {button.label!r} runs {button.action}")
        getattr(session, button.action)()
    elif button.value is not None:
        session.insert(button.value)
    else:
        session.insert(button.label)
