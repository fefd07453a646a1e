"""
Terminal Rendering Helpers
==========================
ANSI colours and string helpers shared by the instrument renderers and the
console log formatter.
"""

import re


class Color:
    """ANSI color codes"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    TURQUOISE = '\033[38;5;44m'
    VIOLET = '\033[38;5;135m'

    WHITE = '\033[38;5;255m'
    GRAY = '\033[38;5;245m'
    BLACK = '\033[38;5;232m'
    ORANGE = '\033[38;5;214m'
    RED = '\033[38;5;196m'

    # Backgrounds
    BG_TURQUOISE = '\033[48;5;44m'
    BG_VIOLET = '\033[48;5;135m'
    BG_DARK = '\033[48;5;235m'
    BG_BLACK = '\033[48;5;232m'


_ANSI = re.compile(r'\033\[[0-9;]*m')


def strip_ansi(s: str) -> str:
    return _ANSI.sub('', s)


def styled(text: str, *styles: str) -> str:
    if not styles:
        return text
    return f"{''.join(styles)}{text}{Color.RESET}"
