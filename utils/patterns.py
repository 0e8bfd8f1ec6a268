"""Pre-compiled regex patterns for the tool synchronizer.

All patterns are compiled once at module import.

Usage:
    from utils.patterns import CANDIDATE_URL

    for match in CANDIDATE_URL.finditer(text):
        ...
"""

import re

# Download links on the index page: https URLs ending in .zip or .txt, any case.
# No whitespace, quotes or angle brackets inside the URL, so a match stops
# at the closing quote of an href attribute.
CANDIDATE_URL = re.compile(r'https://[^\s"\'<>]+\.(?:zip|txt)\b', re.IGNORECASE)

# Literal booleans accepted in the manifest's IsNet6 column
TRUE_LITERAL = re.compile(r'^\s*(true|1|yes)\s*$', re.IGNORECASE)
FALSE_LITERAL = re.compile(r'^\s*(false|0|no)?\s*$', re.IGNORECASE)
