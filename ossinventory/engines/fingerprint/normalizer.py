"""Comment-aware tokenization used by the structural hashes."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import PurePath


@dataclass(frozen=True)
class CommentStyle:
    """Comment and string-literal syntax of one language family."""

    name: str
    line: tuple[str, ...] = ()
    block: tuple[tuple[str, str], ...] = ()
    quotes: str = ""
    triple_quotes: bool = False


C_STYLE = CommentStyle("c", line=("//",), block=(("/*", "*/"),), quotes="\"'`")
HASH_STYLE = CommentStyle("hash", line=("#",), quotes="\"'", triple_quotes=True)
CSS_STYLE = CommentStyle("css", block=(("/*", "*/"),), quotes="\"'")
MARKUP_STYLE = CommentStyle("markup", block=(("<!--", "-->"),))

_EXTENSION_STYLES: dict[str, CommentStyle] = {
    **dict.fromkeys(
        (
            ".js", ".mjs", ".cjs", ".jsx", ".ts", ".tsx", ".java", ".c", ".h",
            ".cc", ".cpp", ".cxx", ".hpp", ".cs", ".go", ".kt", ".scala",
            ".swift", ".groovy", ".gradle", ".rs", ".dart", ".php", ".scss",
            ".less",
        ),
        C_STYLE,
    ),
    **dict.fromkeys(
        (".py", ".rb", ".sh", ".bash", ".pl", ".pm", ".r", ".ps1", ".yml", ".yaml"),
        HASH_STYLE,
    ),
    ".css": CSS_STYLE,
    **dict.fromkeys((".html", ".htm", ".xhtml", ".xml", ".vue"), MARKUP_STYLE),
}

_TOKEN_RE = re.compile(r"\w+|[^\w\s]")


def style_for(name: str) -> CommentStyle | None:
    """Comment style for a file name, or None when the type is not recognized."""
    return _EXTENSION_STYLES.get(PurePath(name).suffix.lower())


def _string_end(text: str, start: int, style: CommentStyle) -> int:
    quote = text[start]
    if style.triple_quotes and text.startswith(quote * 3, start):
        end = text.find(quote * 3, start + 3)
        return len(text) if end == -1 else end + 3
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n" and quote != "`":
            # unterminated literal stops at the end of the line
            return i
        i += 1
    return len(text)


def segments(text: str, style: CommentStyle) -> Iterator[tuple[str, str]]:
    """Split *text* into ``("code" | "string" | "comment", chunk)`` pairs."""
    i = start = 0
    n = len(text)
    while i < n:
        block = next((pair for pair in style.block if text.startswith(pair[0], i)), None)
        if block is not None:
            if start < i:
                yield "code", text[start:i]
            end = text.find(block[1], i + len(block[0]))
            end = n if end == -1 else end + len(block[1])
            yield "comment", text[i:end]
            i = start = end
            continue

        if any(text.startswith(marker, i) for marker in style.line):
            if start < i:
                yield "code", text[start:i]
            end = text.find("\n", i)
            end = n if end == -1 else end
            yield "comment", text[i:end]
            i = start = end
            continue

        if text[i] in style.quotes:
            if start < i:
                yield "code", text[start:i]
            end = _string_end(text, i, style)
            yield "string", text[i:end]
            i = start = end
            continue

        i += 1

    if start < n:
        yield "code", text[start:]


def strip_comments(text: str, style: CommentStyle) -> str:
    return "".join(chunk for kind, chunk in segments(text, style) if kind != "comment")


def strip_header(text: str, style: CommentStyle) -> str:
    """Drop the leading run of comments (license banners and the like)."""
    parts = list(segments(text, style))
    for index, (kind, chunk) in enumerate(parts):
        if kind == "comment" or (kind == "code" and not chunk.strip()):
            continue
        return "".join(chunk for _, chunk in parts[index:])
    return ""


def tokenize(text: str, style: CommentStyle | None) -> list[str]:
    """Comment-free token stream; string literals are kept whole.

    Unrecognized file types fall back to a plain whitespace split.
    """
    if style is None:
        return text.split()
    tokens: list[str] = []
    for kind, chunk in segments(text, style):
        if kind == "string":
            tokens.append(chunk)
        elif kind == "code":
            tokens.extend(_TOKEN_RE.findall(chunk))
    return tokens
