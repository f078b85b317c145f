"""Quote-aware CSV tokenizer used by the rule importer.

Every field is trimmed, rows made only of empty fields are dropped, and a
quote may open or close anywhere inside a field. An unterminated quote
swallows the rest of the document instead of raising; callers must validate
the number of rows they get back.
"""
from __future__ import annotations

from typing import List

QUOTE = '"'
COMMA = ","
SEMICOLON = ";"


def detect_delimiter(text: str) -> str:
    """Pick ``;`` or ``,`` by looking at the first line only.

    A semicolon inside a quoted header cell is enough to select ``;``.
    """
    first_line = (text or "").split("\n", 1)[0]
    return SEMICOLON if SEMICOLON in first_line else COMMA


def parse_csv(text: str, delimiter: str = COMMA) -> List[List[str]]:
    """Tokenize text into rows of trimmed string fields."""
    rows: List[List[str]] = []
    row: List[str] = []
    field: List[str] = []
    in_quotes = False
    # Tracks whether the pending field saw any character at all, so a
    # trailing delimiter still yields an (empty) last field.
    pending = False

    def end_field() -> None:
        nonlocal pending
        row.append("".join(field).strip())
        field.clear()
        pending = False

    def end_row() -> None:
        if any(f for f in row):
            rows.append(list(row))
        row.clear()

    text = text or ""
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == QUOTE:
            if in_quotes and i + 1 < n and text[i + 1] == QUOTE:
                field.append(QUOTE)
                i += 2
                pending = True
                continue
            in_quotes = not in_quotes
            pending = True
        elif ch == delimiter and not in_quotes:
            end_field()
            pending = True
        elif ch == "\r" and not in_quotes and i + 1 < n and text[i + 1] == "\n":
            end_field()
            end_row()
            i += 2
            continue
        elif ch == "\n" and not in_quotes:
            end_field()
            end_row()
        else:
            field.append(ch)
            pending = True
        i += 1

    if pending or field or row:
        end_field()
        end_row()
    return rows


def quote_field(value: str, delimiter: str = COMMA) -> str:
    """Quote value for CSV output when it contains a delimiter, quote or newline."""
    s = "" if value is None else str(value)
    if any(c in s for c in (delimiter, QUOTE, "\n", "\r")):
        return QUOTE + s.replace(QUOTE, QUOTE * 2) + QUOTE
    return s


def format_row(values: List[str], delimiter: str = COMMA) -> str:
    return delimiter.join(quote_field(v, delimiter) for v in values)
