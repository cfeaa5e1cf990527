"""ANSI escape sequences used for terminal output."""

RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
BG_GREEN = "\033[102m"
BG_BLUE = "\033[104m"
BG_RED = "\033[101m"
RESET = "\033[0m"
BOLD = "\033[1m"
ITALIC = "\033[3m"


def colorize(text, *args):
    """Wrap ``text`` in the given style sequences, followed by a reset.

    With no styles the text is returned unchanged.
    """
    if not args:
        return text
    return "".join(args) + text + RESET