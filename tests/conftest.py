from unittest.mock import patch

import pytest
from strands_calculator import calculator
from strands_calculator.utils import user_input


@pytest.fixture(autouse=True)
def calculator_environment(monkeypatch):
    """Run every test with the default calculator configuration."""
    for name in ("CALCULATOR_ANGLE_MODE", "CALCULATOR_PRECISION", "CALCULATOR_CONSOLE_MODE", "DEV"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def get_user_input():
    with patch.object(user_input, "get_user_input") as mocked_user_input:
        # By default all confirmations are declined
        mocked_user_input.return_value = "n"
        yield mocked_user_input


@pytest.fixture(autouse=True)
def fresh_tool_session():
    """Give each test its own process-wide calculator session."""
    calculator.reset_session()
    yield
    calculator.reset_session()
