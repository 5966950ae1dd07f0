"""
Parsing Service

Reads ingredient rows out of pasted recipe text (e.g. copied from a PDF).
"""

import re
from collections import namedtuple

from constants import TEXT_UNIT_MAPPINGS, DEFAULT_IMPORTED_RECIPE_NAME
from utils import is_positive

ParsedRow = namedtuple('ParsedRow', ['raw', 'name', 'amount', 'unit'])

# Longest spellings first so 'граммов' is not read as 'г'
_UNIT_PATTERN = '|'.join(
    re.escape(word) for word in sorted(TEXT_UNIT_MAPPINGS, key=len, reverse=True)
)

# "<name> [-|:] <amount> <unit>", e.g. "Мука пшеничная - 250 г"
_LINE_RE = re.compile(
    r'^\s*([\w\s().,%-]+?)\s*[-:]?\s*(\d+(?:[.,]\d+)?)\s*(' + _UNIT_PATTERN + r')\s*$',
    re.IGNORECASE,
)


def normalize_whitespace(text):
    """Collapse runs of whitespace (including non-breaking spaces) to one space."""
    return re.sub(r'[\s\u00a0\u2000-\u200b]+', ' ', text).strip()


def parse_recipe_line(line):
    """Parse one line into a ParsedRow, or None if it is not an ingredient row."""
    line = normalize_whitespace(line)
    match = _LINE_RE.match(line)
    if not match:
        return None
    name_raw, amount_raw, unit_raw = match.groups()

    unit = TEXT_UNIT_MAPPINGS.get(unit_raw.lower())
    if unit is None:
        return None
    amount = float(amount_raw.replace(',', '.'))
    if not is_positive(amount):
        return None
    return ParsedRow(raw=line, name=name_raw.strip(), amount=amount, unit=unit)


def parse_recipe_text(text):
    """Parse every recognisable ingredient row in the text, skipping the rest."""
    rows = []
    for line in (text or '').splitlines():
        if not line.strip():
            continue
        row = parse_recipe_line(line)
        if row is not None:
            rows.append(row)
    return rows


def detect_recipe_name(text):
    """First line that is at least 4 characters long and has no digits."""
    for line in (text or '').splitlines():
        line = line.strip()
        if len(line) >= 4 and not re.search(r'\d', line):
            return line
    return DEFAULT_IMPORTED_RECIPE_NAME
