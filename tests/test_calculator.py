"""
Tests for the calculator session tool.
"""

import io
import unittest.mock as mock

import pytest
from rich.console import Console
from strands import Agent
from strands_calculator import calculator as calculator_module
from strands_calculator.calculator import (
    calculator_session,
    create_error_panel,
    create_history_table,
    create_session_table,
    describe_history,
    describe_session,
    get_session,
    reset_session,
    run_action,
    show_history,
    show_session,
)
from strands_calculator.session import HistoryEntry, SessionState, ViewMode
from strands_calculator.utils import console_util


@pytest.fixture
def agent():
    """Create an agent with the calculator tool loaded."""
    return Agent(tools=[calculator_module], load_tools_from_directory=False)


@pytest.fixture
def session():
    return SessionState()


@pytest.fixture
def recording_console():
    """Route the tool's rendering into a console whose output can be read back."""
    console = Console(file=io.StringIO(), record=True, width=80)
    with mock.patch.object(console_util, "create", return_value=console):
        yield console


def extract_result_text(result):
    """Extract the result text from the tool response."""
    if isinstance(result, dict) and "content" in result and isinstance(result["content"], list):
        return result["content"][0]["text"]
    return str(result)


def test_agent_evaluation(agent):
    """Test a calculation through the agent.tool interface."""
    agent.tool.calculator_session(action="insert", text="2+3*4")
    result = agent.tool.calculator_session(action="evaluate")

    assert result["status"] == "success"
    assert "Result: 14" in extract_result_text(result)


def test_agent_invalid_expression(agent):
    agent.tool.calculator_session(action="set", text="2+")
    result = agent.tool.calculator_session(action="evaluate")

    assert result["status"] == "success"
    assert "Error: Invalid expression" in extract_result_text(result)


def test_direct_tool_call():
    result = calculator_session(action="insert", text="sin(30)")
    assert result["status"] == "success"

    calculator_session(action="toggle_angle")
    result = calculator_session(action="evaluate")
    result_text = extract_result_text(result)

    assert "Result: 0.5" in result_text
    assert "Angle mode: DEG" in result_text
    assert get_session().history[0] == HistoryEntry("sin(30)", "0.5")


def test_tool_keeps_one_session():
    calculator_session(action="insert", text="1")
    calculator_session(action="insert", text="+1")
    result = calculator_session(action="evaluate")

    assert "Expression: 1+1" in extract_result_text(result)
    assert "Result: 2" in extract_result_text(result)


def test_tool_reset():
    calculator_session(action="insert", text="1+1")
    before = get_session()

    result = calculator_session(action="reset")

    assert result["status"] == "success"
    assert get_session() is not before
    assert get_session().expression == ""


def test_tool_errors():
    for kwargs in (
        {"action": "explode"},
        {"action": "insert"},
        {"action": "switch_view", "view": "graph"},
        {"action": "recall", "index": 3},
        {"action": "press", "text": "sin("},
    ):
        with mock.patch.object(calculator_module, "create_error_panel") as mock_panel:
            result = calculator_session(**kwargs)
            assert result["status"] == "error"
            assert extract_result_text(result).startswith("Error:")
            mock_panel.assert_called_once()


def test_tool_renders_session_panel(recording_console):
    calculator_session(action="insert", text="6*7")
    calculator_session(action="evaluate")

    rendered = recording_console.export_text()
    assert "Basic Calculator" in rendered
    assert "42" in rendered
    assert "RAD" in rendered


def test_tool_renders_history_panel(recording_console):
    calculator_session(action="set", text="2*21")
    calculator_session(action="evaluate")
    recording_console.export_text(clear=True)

    result = calculator_session(action="history")

    assert extract_result_text(result) == "0: 2*21 = 42"
    rendered = recording_console.export_text()
    assert "History" in rendered
    assert "2*21" in rendered


def test_history_action_and_history_view_share_one_panel():
    calculator_session(action="set", text="2*21")
    calculator_session(action="evaluate")

    with mock.patch.object(calculator_module, "show_history") as mock_show_history:
        calculator_session(action="history")
        calculator_session(action="switch_view", view="history")

    assert mock_show_history.call_count == 2
    for call in mock_show_history.call_args_list:
        assert call.args[1] == (HistoryEntry("2*21", "42"),)


def test_show_session_in_history_view(session):
    session.set_expression("1+1")
    session.evaluate_current_expression()
    session.switch_view(ViewMode.HISTORY)
    console = Console(file=io.StringIO(), record=True, width=80)

    show_session(console, session)
    in_view = console.export_text(clear=True)

    show_history(console, session.history)
    assert console.export_text() == in_view
    assert "1+1" in in_view


def test_tool_never_runs_python_code():
    calculator_session(action="set", text="__import__('os').system('echo hi')")

    with mock.patch("os.system") as mock_system:
        result = calculator_session(action="evaluate")

    assert result["status"] == "success"
    assert "Error: Invalid expression" in extract_result_text(result)
    assert get_session().history == ()
    mock_system.assert_not_called()


def test_run_action_editing(session):
    run_action(session, "insert", text="12")
    run_action(session, "backspace")
    run_action(session, "insert", text="+3")
    text = run_action(session, "evaluate")

    assert "Expression: 1+3" in text
    assert "Result: 4" in text

    run_action(session, "clear")
    assert session.expression == ""
    assert session.output == ""


def test_run_action_switch_view(session):
    run_action(session, "insert", text="5")
    run_action(session, "switch_view", view="History")
    assert session.view_mode is ViewMode.HISTORY
    assert session.expression == "5"

    run_action(session, "switch_view", view="scientific")
    assert session.view_mode is ViewMode.SCIENTIFIC
    assert session.expression == ""

    with pytest.raises(ValueError, match="view parameter is required"):
        run_action(session, "switch_view")

    with pytest.raises(ValueError, match="Unknown view"):
        run_action(session, "switch_view", view="graph")


def test_run_action_press(session):
    for label in ["9", "÷", "4", "="]:
        run_action(session, "press", text=label)

    assert session.expression == "9/4"
    assert session.output == "2.25"

    with pytest.raises(KeyError):
        run_action(session, "press", text="π")


def test_run_action_recall_and_ans(session):
    run_action(session, "set", text="10-3")
    run_action(session, "evaluate")
    run_action(session, "set", text="1+1")
    run_action(session, "evaluate")
    run_action(session, "switch_view", view="history")

    text = run_action(session, "recall", index=1)

    assert "Expression: 10-3" in text
    assert "Result: 7" in text
    assert session.view_mode is ViewMode.BASIC

    run_action(session, "insert", text="*")
    run_action(session, "ans")
    assert session.expression == "10-3*7"

    with pytest.raises(ValueError, match="index parameter is required"):
        run_action(session, "recall")

    with pytest.raises(IndexError):
        run_action(session, "recall", index=-1)


def test_clear_history_requires_confirmation(session, get_user_input):
    run_action(session, "evaluate")
    assert len(session.history) == 1

    with pytest.raises(ValueError, match="cancelled"):
        run_action(session, "clear_history")
    assert len(session.history) == 1

    get_user_input.return_value = "y"
    assert run_action(session, "clear_history") == "History cleared"
    assert session.history == ()


def test_clear_history_in_dev_mode(session, get_user_input, monkeypatch):
    monkeypatch.setenv("DEV", "true")
    run_action(session, "evaluate")

    run_action(session, "clear_history")

    assert session.history == ()
    get_user_input.assert_not_called()


def test_describe_session(session):
    assert describe_session(session) == "Expression: \nResult: \nAngle mode: RAD\nView: Basic Calculator"

    session.set_expression("2+")
    session.evaluate_current_expression()
    assert "Error: Invalid expression" in describe_session(session)


def test_describe_history():
    assert describe_history(()) == "No history yet"
    assert describe_history((HistoryEntry("2+2", "4"), HistoryEntry("1", "1"))) == "0: 2+2 = 4\n1: 1 = 1"


def test_tables(session):
    table = create_session_table(session)
    assert len(table.columns) == 2
    assert table.row_count == 3

    history_table = create_history_table([HistoryEntry("2+2", "4")])
    assert len(history_table.columns) == 3
    assert history_table.row_count == 1

    assert create_history_table([]).row_count == 1


def test_create_error_panel():
    mock_console = mock.Mock()

    create_error_panel(mock_console, "Test Error")
    mock_console.print.assert_called_once()


def test_reset_session_returns_new_session():
    first = reset_session()
    second = reset_session()
    assert first is not second
    assert get_session() is second
