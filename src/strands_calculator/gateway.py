"""
Evaluation gateway between normalized expression text and SymPy.

The gateway hands normalized text to a math evaluator, turns whatever comes back
into a display string and classifies the attempt as a Success or a Failure.
Nothing raised by the evaluator crosses this boundary: malformed syntax, unknown
names and undefined results such as ``1/0`` all collapse into a single
``ErrorKind.INVALID_EXPRESSION`` failure.

The default evaluator is built on SymPy's expression parser and understands the
usual infix operators (``+ - * / ^``), parentheses, implicit multiplication,
the functions ``sin cos tan sqrt abs log log10`` and the constants ``pi`` and
``e``. Text is screened before SymPy sees it: only numbers, those names and
arithmetic operators get through, so no Python code is ever evaluated. Powers
that would need more than ``MAX_RESULT_DIGITS`` digits and results that do not
fit a float are failures too. Any callable taking a string and returning a
number can be passed instead:

```python
>>> evaluate("2+3*4")
Success(result_text='14')
>>> evaluate("2+")
Failure(reason=<ErrorKind.INVALID_EXPRESSION: 'Invalid expression'>)
```
"""

import io
import logging
import math
import os
import tokenize
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

import sympy as sp
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication,
    parse_expr,
    standard_transformations,
)

logger = logging.getLogger(__name__)

DEFAULT_PRECISION = 15

# Powers beyond this many decimal digits are refused before SymPy computes them
MAX_RESULT_DIGITS = 1000

TRANSFORMATIONS = standard_transformations + (implicit_multiplication, convert_xor)

ALLOWED_OPERATORS = frozenset(["+", "-", "*", "/", "**", "^", "(", ")", ","])

IGNORED_TOKENS = frozenset([tokenize.NEWLINE, tokenize.NL, tokenize.ENDMARKER])


class ErrorKind(Enum):
    """User-facing failure reasons. The value is the message shown to the user."""

    INVALID_EXPRESSION = "Invalid expression"

    @property
    def message(self) -> str:
        return self.value


@dataclass(frozen=True)
class Success:
    result_text: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: ErrorKind = ErrorKind.INVALID_EXPRESSION

    @property
    def ok(self) -> bool:
        return False


EvaluationOutcome = Union[Success, Failure]


def _log10(arg: Any) -> Any:
    return sp.log(arg, 10)


def evaluator_namespace() -> dict:
    """Names the keypad can produce, mapped to their SymPy counterparts."""
    return {
        "sin": sp.sin,
        "cos": sp.cos,
        "tan": sp.tan,
        "sqrt": sp.sqrt,
        "abs": sp.Abs,
        "log": sp.log,
        "ln": sp.log,
        "log10": _log10,
        "pi": sp.pi,
        "e": sp.E,
    }


def parser_globals() -> dict:
    """Globals for the code parse_expr generates; no Python builtins are reachable."""
    return {
        "__builtins__": {},
        "Integer": sp.Integer,
        "Float": sp.Float,
        "Rational": sp.Rational,
        "Symbol": sp.Symbol,
        "Function": sp.Function,
        "Add": sp.Add,
        "Mul": sp.Mul,
        "Pow": sp.Pow,
    }


def check_expression_text(text: str) -> None:
    """Reject text that is not a plain arithmetic expression over the known names.

    Raises:
        ValueError: On floor division, logical operators, attribute access,
            string literals, any operator outside ``+ - * / ** ^ ( ) ,`` or
            any name that is not a known function or constant.
    """
    if "//" in text:
        raise ValueError("Invalid operator: //. Use / for division.")

    if "**/" in text:
        raise ValueError("Invalid operator sequence: **/")

    if any(op in text for op in ["&&", "||", "&", "|"]):
        raise ValueError("Logical operators are not supported in mathematical expressions")

    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(text).readline))
    except (tokenize.TokenError, SyntaxError) as e:
        raise ValueError(f"Invalid mathematical expression: {str(e)}") from e

    known = evaluator_namespace()
    unknown = set()
    for token in tokens:
        if token.type in IGNORED_TOKENS or token.type == tokenize.NUMBER:
            continue
        if token.type == tokenize.NAME:
            if token.string not in known:
                unknown.add(token.string)
            continue
        if token.type == tokenize.OP and token.string in ALLOWED_OPERATORS:
            continue
        raise ValueError(f"Unsupported token: {token.string!r}")

    if unknown:
        raise ValueError(f"Undefined symbol(s): {', '.join(sorted(unknown))}")


def _parse(text: str, evaluate: bool) -> sp.Basic:
    try:
        expr = parse_expr(
            text,
            local_dict=evaluator_namespace(),
            global_dict=parser_globals(),
            transformations=TRANSFORMATIONS,
            evaluate=evaluate,
        )
    except Exception as e:
        raise ValueError(f"Invalid mathematical expression: {str(e)}") from e

    if not isinstance(expr, sp.Basic):
        expr = sp.sympify(expr)
    return expr


def check_result_size(expr: sp.Basic, max_digits: int = MAX_RESULT_DIGITS) -> None:
    """Refuse powers whose value would need more than ``max_digits`` decimal digits.

    ``expr`` must be unevaluated. Inner powers are visited before the powers
    that contain them, so no oversized value is ever computed.
    """
    for node in sp.postorder_traversal(expr):
        if not isinstance(node, sp.Pow):
            continue

        base, exponent = node.args
        if not (base.is_number and exponent.is_number):
            continue

        base_size = abs(sp.N(base, 15))
        exponent_size = abs(sp.N(exponent, 15))
        if not (base_size.is_finite and exponent_size.is_finite):
            continue
        if base_size == 0 or base_size == 1:
            continue

        digits = sp.N(exponent_size * abs(sp.log(base_size)) / sp.log(10), 15)
        if digits > max_digits:
            raise ValueError(f"Result too large: about {int(digits)} digits")


def sympy_evaluate(text: str) -> Any:
    """Parse and evaluate an expression string with SymPy.

    The text is screened before parsing, parsed once unevaluated to check the
    size of every power, then parsed again and evaluated.

    Raises:
        ValueError: If the text contains unsupported operators or names, does
            not parse, would produce a number with more than
            ``MAX_RESULT_DIGITS`` digits, or evaluates to an undefined value
            (complex infinity, infinity, NaN).
    """
    check_expression_text(text)
    check_result_size(_parse(text, evaluate=False))

    expr = _parse(text, evaluate=True)

    if expr.free_symbols:
        names = ", ".join(sorted(str(s) for s in expr.free_symbols))
        raise ValueError(f"Undefined symbol(s): {names}")

    if expr.has(sp.zoo, sp.oo, -sp.oo, sp.nan):
        raise ValueError(f"Undefined result: {expr}")

    return expr


def _format_real(num: float, precision: int) -> str:
    if not math.isfinite(num):
        raise ValueError(f"Result is not a finite number: {num}")
    if num == 0:
        return "0"
    return f"{num:.{precision}g}"


def _format_complex(real: float, imag: float, precision: int) -> str:
    if imag == 0:
        return _format_real(real, precision)

    imag_part = _format_real(abs(imag), precision)
    if imag_part == "1":
        imag_part = ""

    if real == 0:
        return f"-{imag_part}i" if imag < 0 else f"{imag_part}i"

    sign = "-" if imag < 0 else "+"
    return f"{_format_real(real, precision)} {sign} {imag_part}i"


def format_result(value: Any, precision: int = DEFAULT_PRECISION) -> str:
    """Convert an evaluator result into its display string.

    Integers are printed exactly, real numbers with ``precision`` significant
    digits and no trailing zeros, complex numbers as ``a + bi``.
    """
    if isinstance(value, bool):
        return str(value).lower()

    if isinstance(value, int):
        return str(value)

    if isinstance(value, float):
        return _format_real(value, precision)

    if isinstance(value, complex):
        return _format_complex(value.real, value.imag, precision)

    if isinstance(value, sp.Basic):
        if value.is_Integer:
            return str(int(value))

        numeric = sp.N(value, precision)
        if numeric.free_symbols:
            raise ValueError(f"Could not evaluate numerically: {value}")

        real, imag = numeric.as_real_imag()
        return _format_complex(float(real), float(imag), precision)

    # Last resort - string representation
    return str(value)


def get_precision() -> int:
    """Significant digits for result text, from CALCULATOR_PRECISION."""
    try:
        precision = int(os.getenv("CALCULATOR_PRECISION", str(DEFAULT_PRECISION)))
    except ValueError as e:
        logger.debug(f"Precision configuration error: {str(e)}")
        return DEFAULT_PRECISION
    return precision if precision > 0 else DEFAULT_PRECISION


def evaluate(
    normalized_text: str,
    evaluator: Optional[Callable[[str], Any]] = None,
    precision: Optional[int] = None,
) -> EvaluationOutcome:
    """Evaluate normalized expression text and classify the outcome.

    Args:
        normalized_text: Text produced by the normalizer. Blank text evaluates as "0".
        evaluator: Callable from expression text to a value. Defaults to sympy_evaluate.
        precision: Significant digits of the result text. Defaults to the
            CALCULATOR_PRECISION environment variable (15 if unset).

    Returns:
        Success with the result text, or Failure(ErrorKind.INVALID_EXPRESSION).
    """
    evaluator = evaluator or sympy_evaluate
    precision = get_precision() if precision is None else precision

    to_eval = normalized_text.strip() or "0"

    try:
        value = evaluator(to_eval)
        result_text = format_result(value, precision)
    except Exception as e:
        logger.debug(f"Evaluation of {to_eval!r} failed: {str(e)}")
        return Failure(ErrorKind.INVALID_EXPRESSION)

    return Success(result_text)
