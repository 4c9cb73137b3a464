"""Tolerant JSON extraction from agent replies.

The hosted agent is asked for JSON but routinely wraps it in prose, markdown
fences or trailing commentary. ``extract`` recovers the first structured
value (object or array) it can find and otherwise hands back the caller's
default. It never raises, performs no I/O and keeps no state.

Attempts, first success wins:
  1. Direct parse of the whole text
  2. Interior of a ```json ... ``` (or bare ```) fence
  3. First balanced ``{...}`` / ``[...]`` group, string- and escape-aware;
     apostrophes in prose are ignored unless the double-quote-only pass fails
  4. The same groups after lenient repair (trailing commas, single quotes)
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Any, TypeVar

T = TypeVar("T")

# Bracket scanning only looks at the first MiB of a reply
MAX_SCAN_CHARS = 1 << 20
# Upper bound on bracket groups tried per source text
MAX_CANDIDATES = 16

_FENCE_RE = re.compile(r"```[ \t]*(?:json)?[ \t]*\r?\n?(.*?)```", re.IGNORECASE | re.DOTALL)

_CLOSER_FOR = {"{": "}", "[": "]"}
_CLOSERS = frozenset("}]")
_QUOTES = frozenset("\"'")
_DOUBLE_QUOTE = frozenset("\"")


def extract(raw_text: Any, default: T) -> Any | T:
    """Return the JSON object/array embedded in *raw_text*, or *default*.

    Bare scalars (``"ok"``, ``42``) count as failures since every caller
    expects a structured result. *default* is returned as-is, never copied.
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        return default

    value = _loads_structured(raw_text)
    if value is not None:
        return value

    sources: list[str] = []
    fenced = _fenced_block(raw_text)
    if fenced is not None:
        value = _loads_structured(fenced)
        if value is not None:
            return value
        sources.append(fenced)
    sources.append(raw_text)

    # Single quotes only delimit strings on the second pass
    seen: set[str] = set()
    for source in sources:
        for quotes in (_DOUBLE_QUOTE, _QUOTES):
            for candidate in _balanced_groups(source, quotes):
                if candidate in seen:
                    continue
                seen.add(candidate)

                value = _loads_structured(candidate)
                if value is None:
                    value = _loads_structured(repair(candidate))
                if value is not None:
                    return value

    return default


def repair(text: str) -> str:
    """Apply the bounded set of textual fixes LLMs most often need.

    Single-quoted strings are rewritten only when every one of them is
    terminated; trailing commas before ``}``/``]`` are dropped.
    """
    converted = _convert_single_quotes(text)
    return _strip_trailing_commas(converted if converted is not None else text)


def _loads_structured(text: str) -> dict[str, Any] | list[Any] | None:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if isinstance(value, (dict, list)):
        return value
    return None


def _fenced_block(text: str) -> str | None:
    match = _FENCE_RE.search(text)
    if match is None:
        return None
    return match.group(1).strip()


def _balanced_groups(text: str, quotes: frozenset[str]) -> Iterator[str]:
    """Yield complete bracket groups left to right, earliest start first."""
    text = text[:MAX_SCAN_CHARS]
    pos = 0
    tried = 0
    while tried < MAX_CANDIDATES:
        start = _next_opener(text, pos)
        if start < 0:
            return
        tried += 1
        end = _match_closer(text, start, quotes)
        if end < 0:
            # Unterminated or mismatched; a later opener may still close
            pos = start + 1
            continue
        yield text[start : end + 1]
        pos = end + 1


def _next_opener(text: str, pos: int) -> int:
    brace = text.find("{", pos)
    bracket = text.find("[", pos)
    if brace < 0:
        return bracket
    if bracket < 0:
        return brace
    return min(brace, bracket)


def _match_closer(text: str, start: int, quotes: frozenset[str]) -> int:
    stack: list[str] = []
    quote: str | None = None
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if quote is not None:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue

        if ch in quotes:
            quote = ch
        elif ch in _CLOSER_FOR:
            stack.append(_CLOSER_FOR[ch])
        elif ch in _CLOSERS:
            if ch != stack.pop():
                return -1
            if not stack:
                return i
    return -1


def _convert_single_quotes(text: str) -> str | None:
    """Rewrite ``'...'`` strings as JSON strings, or ``None`` if ambiguous."""
    if "'" not in text:
        return text

    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            end = _string_end(text, i)
            if end < 0:
                return None
            out.append(text[i : end + 1])
            i = end + 1
        elif ch == "'":
            end = _string_end(text, i)
            if end < 0:
                return None
            out.append('"')
            out.append(_requote(text[i + 1 : end]))
            out.append('"')
            i = end + 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _string_end(text: str, start: int) -> int:
    quote = text[start]
    escaped = False
    for i in range(start + 1, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == quote:
            return i
    return -1


def _requote(body: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            # \' is not a JSON escape
            out.append("'" if nxt == "'" else ch + nxt)
            i += 2
            continue
        out.append('\\"' if ch == '"' else ch)
        i += 1
    return "".join(out)


def _strip_trailing_commas(text: str) -> str:
    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in _QUOTES:
            end = _string_end(text, i)
            if end < 0:
                out.append(text[i:])
                break
            out.append(text[i : end + 1])
            i = end + 1
            continue
        if ch == ",":
            j = i + 1
            while j < n and text[j].isspace():
                j += 1
            if j < n and text[j] in _CLOSERS:
                i = j
                continue
        out.append(ch)
        i += 1
    return "".join(out)
