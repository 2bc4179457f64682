"""
Interactive calculator session tool for Strands Agent.

This module exposes one process-wide calculator session as a Strands tool. Each
call performs one user gesture against the session, the same gestures a keypad
front end would issue, and renders the resulting screen with rich:

1. Expression Editing:
   • Insert text or press keypad buttons (basic and scientific layouts)
   • Replace the whole expression (direct text entry)
   • Backspace and clear

2. Evaluation:
   • Evaluation through SymPy after π substitution
   • Degree or radian interpretation of sin, cos and tan arguments
   • Invalid expressions reported as "Invalid expression", never raised

3. History:
   • Most-recent-first list of successful evaluations
   • Recall of a past entry or of the last answer
   • Clearing, with confirmation unless DEV=true

Usage with Strands Agent:
```python
from strands import Agent
from strands_calculator import calculator

agent = Agent(tools=[calculator])

agent.tool.calculator_session(action="insert", text="sin(30)")
agent.tool.calculator_session(action="toggle_angle")
agent.tool.calculator_session(action="evaluate")   # Result: 0.5

agent.tool.calculator_session(action="history")
agent.tool.calculator_session(action="recall", index=0)
```
"""

import logging
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from strands import tool

from strands_calculator.keypad import find_button, press
from strands_calculator.session import HistoryEntry, SessionState, ViewMode
from strands_calculator.utils import console_util, user_input

logger = logging.getLogger(__name__)

ACTIONS = (
    "insert",
    "set",
    "backspace",
    "clear",
    "evaluate",
    "toggle_angle",
    "switch_view",
    "press",
    "history",
    "recall",
    "ans",
    "clear_history",
    "show",
    "reset",
)

_session: Optional[SessionState] = None


def get_session() -> SessionState:
    """Return the process-wide session, creating it on first use."""
    global _session
    if _session is None:
        _session = SessionState()
    return _session


def reset_session() -> SessionState:
    """Discard the process-wide session and start a fresh one."""
    global _session
    _session = SessionState()
    return _session


def create_session_table(session: SessionState) -> Table:
    """Create a table showing the calculator screen."""
    table = Table(show_header=False, box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Expression", session.expression or f"[dim]{session.placeholder}[/dim]")
    if session.error:
        table.add_row("Result", f"[red]{session.display_text}[/red]")
    else:
        table.add_row("Result", session.display_text)
    table.add_row("Angle", session.angle_label)

    return table


def create_history_table(history: Sequence[HistoryEntry]) -> Table:
    table = Table(show_header=True, box=box.ROUNDED)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Expression", style="cyan")
    table.add_column("Result", style="green")

    if not history:
        table.add_row("", "[dim]No history yet[/dim]", "")
    for i, entry in enumerate(history):
        table.add_row(str(i), entry.expression, entry.result_text)

    return table


def create_error_panel(console: Console, error_message: str) -> None:
    """Create and print an error panel."""
    console.print(
        Panel(
            f"[red]Error: {error_message}[/red]",
            title="[bold red]Calculator Error[/bold red]",
            border_style="red",
            padding=(1, 2),
        )
    )


def show_history(console: Console, history: Sequence[HistoryEntry]) -> None:
    console.print(
        Panel(
            create_history_table(history),
            title=f"[bold blue]{ViewMode.HISTORY.title}[/bold blue]",
            border_style="blue",
            padding=(1, 2),
        )
    )


def show_session(console: Console, session: SessionState) -> None:
    if session.view_mode is ViewMode.HISTORY:
        show_history(console, session.history)
        return

    console.print(
        Panel(
            create_session_table(session),
            title=f"[bold blue]{session.title}[/bold blue]",
            border_style="red" if session.error else "blue",
            padding=(1, 2),
        )
    )


def describe_session(session: SessionState) -> str:
    """Plain-text summary of the session returned to the agent."""
    lines = [f"Expression: {session.expression}"]
    if session.error:
        lines.append(f"Error: {session.error_message}")
    else:
        lines.append(f"Result: {session.output}")
    lines.append(f"Angle mode: {session.angle_label}")
    lines.append(f"View: {session.title}")
    return "\n".join(lines)


def describe_history(history: Sequence[HistoryEntry]) -> str:
    if not history:
        return "No history yet"
    return "\n".join(f"{i}: {entry.expression} = {entry.result_text}" for i, entry in enumerate(history))


def _require_text(action: str, text: Optional[str]) -> str:
    if text is None:
        raise ValueError(f"text parameter is required for {action} action")
    return text


def run_action(
    session: SessionState,
    action: str,
    text: Optional[str] = None,
    view: Optional[str] = None,
    index: Optional[int] = None,
) -> str:
    """Apply one action to a session and return the text reported back.

    Raises:
        ValueError: For unknown actions, missing or invalid parameters, or a
            declined history clear.
        KeyError: When a pressed button does not exist on the active keypad.
        IndexError: When a recalled history index is out of range.
    """
    logger.debug(f"Calculator action {action!r} (text={text!r}, view={view!r}, index={index!r})")

    if action == "insert":
        session.insert(_require_text(action, text))
    elif action == "set":
        session.set_expression(_require_text(action, text))
    elif action == "backspace":
        session.backspace()
    elif action == "clear":
        session.clear_expression()
    elif action == "evaluate":
        session.evaluate_current_expression()
    elif action == "toggle_angle":
        session.toggle_angle_mode()
    elif action == "switch_view":
        if view is None:
            raise ValueError("view parameter is required for switch_view action")
        try:
            target = ViewMode(view.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown view: {view}. Use basic, scientific or history.") from None
        session.switch_view(target)
    elif action == "press":
        press(session, find_button(session.view_mode, _require_text(action, text)))
    elif action == "history":
        return describe_history(session.history)
    elif action == "recall":
        if index is None:
            raise ValueError("index parameter is required for recall action")
        history = session.history
        if not 0 <= index < len(history):
            raise IndexError(f"History index {index} out of range ({len(history)} entries)")
        session.recall_history_entry(history[index])
    elif action == "ans":
        session.recall_last_answer()
    elif action == "clear_history":
        if not user_input.confirm("Do you want to clear the calculator history?"):
            raise ValueError("History clear cancelled by user")
        session.clear_history()
        return "History cleared"
    elif action in ("show", "reset"):
        pass
    else:
        raise ValueError(f"Unknown action: {action}. Valid actions: {', '.join(ACTIONS)}")

    return describe_session(session)


@tool
def calculator_session(
    action: str,
    text: str = None,
    view: str = None,
    index: int = None,
) -> dict:
    """
    Interactive calculator with basic and scientific keypads, degree mode and history.

    The tool keeps one calculator session alive between calls. Each call applies one
    user gesture to it and returns the resulting screen.

    How It Works:
    ------------
    1. The action is applied to the process-wide calculator session
    2. On "evaluate", π is replaced by pi and, in degree mode, sin/cos/tan arguments
       are multiplied by pi/180 before SymPy evaluates the expression
    3. Success stores the result and prepends the expression to the history
    4. Failure marks the session with "Invalid expression" and clears the result
    5. The screen (or the history list) is rendered as a rich panel

    Actions:
    --------
    - insert: Append text to the expression (requires text)
    - set: Replace the whole expression (requires text)
    - backspace: Remove the last character
    - clear: Clear expression, result and error
    - evaluate: Evaluate the expression
    - toggle_angle: Switch between radians and degrees
    - switch_view: Activate "basic", "scientific" or "history" (requires view)
    - press: Press a keypad button by its label, e.g. "7", "×", "sin(", "=" (requires text)
    - history: List past evaluations, most recent first
    - recall: Load history entry number `index` back into the calculator
    - ans: Append the last result to the expression
    - clear_history: Empty the history (asks for confirmation unless DEV=true)
    - show: Show the current screen
    - reset: Start a fresh session

    Args:
        action: One of the actions listed above.
        text: Text to insert or set, or the label of the button to press.
        view: Target view for switch_view.
        index: History position for recall, 0 being the most recent.

    Returns:
        Dict containing status and response content in the format:
        {
            "status": "success|error",
            "content": [{"text": "Expression: ...\\nResult: ..."}]
        }

        An invalid expression is still a successful call: the text reports
        "Error: Invalid expression". Errors are returned for unknown actions,
        bad parameters and a declined history clear.
    """
    console = console_util.create()

    try:
        session = reset_session() if action == "reset" else get_session()

        text_result = run_action(session, action, text=text, view=view, index=index)

        if action == "history":
            show_history(console, session.history)
        else:
            show_session(console, session)

        return {
            "status": "success",
            "content": [{"text": text_result}],
        }

    except Exception as e:
        create_error_panel(console, str(e))
        return {
            "status": "error",
            "content": [{"text": f"Error: {str(e)}"}],
        }

