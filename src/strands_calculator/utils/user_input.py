"""
Confirmation prompts for the calculator tool.
Uses prompt_toolkit for input and its HTML markup for styling.
"""

import asyncio
import os

from prompt_toolkit import HTML, PromptSession
from prompt_toolkit.patch_stdout import patch_stdout

# Lazy initialize to avoid import errors for tests on windows without a terminal
session: PromptSession | None = None


async def get_user_input_async(prompt: str, default: str = "n") -> str:
    """
    Read one line from the user with prompt_toolkit.

    Args:
        prompt: HTML-formatted prompt text
        default: Returned when the user enters nothing or aborts (default is 'n')

    Returns:
        str: The user's response
    """
    global session

    try:
        with patch_stdout(raw=True):
            if session is None:
                session = PromptSession()

            response = await session.prompt_async(HTML(f"{prompt} "))
    except (KeyboardInterrupt, EOFError):
        return default

    return str(response) if response else str(default)


def get_user_input(prompt: str, default: str = "n") -> str:
    """Synchronous wrapper for get_user_input_async."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

    return str(loop.run_until_complete(get_user_input_async(prompt, default)))


def confirm(question: str) -> bool:
    """Ask a yes/no question. Always answers yes when DEV=true.

    Only a literal "y" (surrounding whitespace and case ignored) confirms.
    """
    if os.environ.get("DEV", "").lower() == "true":
        return True

    answer = get_user_input(f"\n<yellow><bold>{question}</bold> [y/*]</yellow>")
    return answer.strip().lower() == "y"
