"""
Input normalization for the calculator evaluation pipeline.

Raw expression text typed or composed on the keypad is not always something the
math evaluator understands. Before evaluation it is canonicalized in two steps:

1. Constant symbols: the π glyph is replaced with the ``pi`` token.
2. Angle mode: in degree mode every ``sin(``, ``cos(`` and ``tan(`` call gets the
   degree-to-radian factor multiplied into its argument.

The angle rewrite is purely lexical. It inserts ``(pi/180)*`` right after the
opening parenthesis and never looks for the matching closing one, so nested
trigonometric calls are each rewritten on their own:

```python
>>> apply_angle_mode("sin(cos(30))", AngleMode.DEGREES)
'sin((pi/180)*cos((pi/180)*30))'
```
"""

import re
from enum import Enum

PI_GLYPH = "π"
PI_TOKEN = "pi"
DEGREE_FACTOR = f"({PI_TOKEN}/180)*"

_TRIG_CALL = re.compile(r"(sin|cos|tan)\(")


class AngleMode(Enum):
    """Convention used to interpret trigonometric arguments."""

    RADIANS = "radians"
    DEGREES = "degrees"

    def toggled(self) -> "AngleMode":
        return AngleMode.DEGREES if self is AngleMode.RADIANS else AngleMode.RADIANS

    @property
    def label(self) -> str:
        return "DEG" if self is AngleMode.DEGREES else "RAD"


def substitute_constant_symbols(text: str) -> str:
    """Replace every π glyph with the evaluator's ``pi`` constant."""
    return text.replace(PI_GLYPH, PI_TOKEN)


def apply_angle_mode(text: str, mode: AngleMode) -> str:
    """Rewrite trig calls so their arguments are read as degrees.

    Args:
        text: Expression text, usually already passed through
            substitute_constant_symbols.
        mode: Active angle mode. RADIANS returns the text unchanged.

    Returns:
        The rewritten text, e.g. ``sin(30)`` becomes ``sin((pi/180)*30)``.
    """
    if mode is not AngleMode.DEGREES:
        return text
    return _TRIG_CALL.sub(lambda match: f"{match.group(1)}({DEGREE_FACTOR}", text)


def normalize(text: str, mode: AngleMode) -> str:
    return apply_angle_mode(substitute_constant_symbols(text), mode)
