import io
import os

from rich.console import Console

CONSOLE_WIDTH = 60


def create() -> Console:
    """Create the rich console the calculator renders into.

    Output goes to stdout only when CALCULATOR_CONSOLE_MODE is "enabled"; otherwise
    it is rendered into a fixed-width in-memory buffer and discarded.

    Returns
        Console instance.
    """
    if os.getenv("CALCULATOR_CONSOLE_MODE") != "enabled":
        return Console(file=io.StringIO(), width=CONSOLE_WIDTH)

    return Console()
