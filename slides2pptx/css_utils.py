"""
CSS utilities used when rewriting slide documents.

Slides style their icons with rules such as ``.card i { color: ... }``. Once
the ``<i>`` glyphs are swapped for inline ``<svg>`` those rules would stop
applying, so every rule whose subject is a bare ``i`` element gets a sibling
selector targeting ``svg``.
"""
import re
from typing import List, Optional

# Injected once per document; keeps each slide on exactly one printed page
PRINT_SAFETY_CSS = """
@media print {
  * { page-break-inside: avoid !important; page-break-after: avoid !important; }
  body, html { overflow: hidden !important; page-break-inside: avoid !important; }
  .slide-container { page-break-inside: avoid !important; page-break-after: avoid !important; max-height: 100vh !important; overflow: hidden !important; }
  body { transform-origin: top left; width: 100vw; height: 100vh; }
}
"""

# Text between a block delimiter and the next "{" that is not an at-rule prelude
_PRELUDE_RE = re.compile(r"(^|[{};])([^{};@]+)(?=\{)")
_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_COMBINATOR_RE = re.compile(r"(\s*[>+~]\s*|\s+)")
_WHITESPACE_RE = re.compile(r"\s+")


def split_selector_list(prelude: str) -> List[str]:
    """Split ``a, b:is(c, d)`` on top-level commas."""
    parts = []
    depth = 0
    current = []
    for ch in prelude:
        if ch in "([":
            depth += 1
        elif ch in ")]" and depth:
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def split_compounds(selector: str) -> List[str]:
    """
    Split ``selector`` into compounds and the combinators between them.

    Whitespace, ``>``, ``+`` and ``~`` only count as combinators outside
    brackets and quoted strings, so ``i:not(.a .b)`` and ``i[title="a b"]``
    stay one compound. Joining the result gives back ``selector``.
    """
    tokens = []
    depth = 0
    quote = None
    start = 0
    pos = 0
    while pos < len(selector):
        ch = selector[pos]
        if quote:
            if ch == "\\":
                pos += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in "([":
            depth += 1
        elif ch in ")]" and depth:
            depth -= 1
        elif depth == 0:
            combinator = _COMBINATOR_RE.match(selector, pos)
            if combinator and pos > start:
                tokens.append(selector[start:pos])
                tokens.append(combinator.group(0))
                pos = start = combinator.end()
                continue
        pos += 1
    tokens.append(selector[start:])
    return tokens


def retarget_subject(selector: str, source_tag: str = "i", target_tag: str = "svg") -> Optional[str]:
    """
    Return ``selector`` with its subject element type swapped, or ``None``.

    Only the last compound selector is considered, and only when its type
    selector is exactly ``source_tag``: ``div i`` and ``i.big:hover`` qualify,
    ``.list-item`` and ``i span`` do not.
    """
    selector = _COMMENT_RE.sub("", selector).strip()
    if not selector:
        return None
    tokens = split_compounds(selector)
    subject = tokens[-1]
    if not re.match(rf"{re.escape(source_tag)}(?![\w-])", subject):
        return None
    tokens[-1] = target_tag + subject[len(source_tag):]
    return "".join(tokens)


def _normalize(selector: str) -> str:
    return _WHITESPACE_RE.sub(" ", _COMMENT_RE.sub("", selector)).strip()


def rewrite_glyph_selectors(css_text: str, source_tag: str = "i", target_tag: str = "svg") -> str:
    """
    Extend every rule whose subject is a bare ``source_tag`` element so it
    also matches ``target_tag``.

    Rules already carrying the ``target_tag`` variant are left unchanged, so
    the rewrite can be applied repeatedly.
    """

    def rewrite(match):
        delimiter, prelude = match.group(1), match.group(2)
        selectors = split_selector_list(prelude)
        existing = {_normalize(s) for s in selectors}
        additions = []
        for selector in selectors:
            variant = retarget_subject(selector, source_tag, target_tag)
            if variant is None:
                continue
            key = _normalize(variant)
            if key in existing:
                continue
            existing.add(key)
            additions.append(variant)
        if not additions:
            return match.group(0)
        body = prelude.rstrip()
        trailing = prelude[len(body):]
        return f"{delimiter}{body}, {', '.join(additions)}{trailing}"

    return _PRELUDE_RE.sub(rewrite, css_text)
