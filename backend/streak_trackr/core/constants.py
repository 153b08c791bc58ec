"""Shared application constants.

Centralizes values used by the streak engine and the display helpers so we
can document and adjust them in one place.
"""

import re

# Color stored when the client doesn't send one
DEFAULT_COLOR = "#000000"

# '#RRGGBB', either case; always use fullmatch
HEX_COLOR_RE = re.compile(r"#[0-9a-fA-F]{6}")

# Run lengths (days) that award a badge, ascending
MILESTONE_DAYS = (3, 7, 30, 100, 182, 365)

# Header carrying the caller's user id
USER_ID_HEADER = "X-User-Id"
