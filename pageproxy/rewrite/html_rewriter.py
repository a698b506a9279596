"""
HTML transforms applied to proxied pages.

The pipeline runs three independent steps in order:

1. banner markup right after the first ``<body>`` tag
2. whole-word replacements in visible text nodes under ``<body>``
3. the client-side rewriting script right before the last ``</body>``

Text nodes inside ``script``, ``style`` and ``noscript`` are never touched;
comments, doctypes and other markup declarations are not text.
"""

import logging
import os
import re
import warnings
from functools import lru_cache
from typing import Dict, Iterator, List, Optional

from bs4 import BeautifulSoup, UnicodeDammit
from bs4.builder import ParserRejectedMarkup
from bs4.element import NavigableString, PreformattedString

from pageproxy.rewrite.client_script import ASSETS_DIR, client_script
from pageproxy.vars import BANNER_FILE

logger = logging.getLogger("uvicorn.error")

EXCLUDED_TEXT_PARENTS = frozenset({"script", "style", "noscript"})

_BODY_OPEN = re.compile(r"<body[^>]*>", re.IGNORECASE)
_BODY_CLOSE = re.compile(r"</body>", re.IGNORECASE)
_CHARSET = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.IGNORECASE)


@lru_cache(maxsize=4)
def load_banner(path: str = "") -> str:
    path = path or os.path.join(ASSETS_DIR, "banner.html")
    with open(path, "r", encoding="utf-8") as handle:
        return handle.read().strip()


def banner_markup() -> str:
    return load_banner(BANNER_FILE)


def decode_body(body: bytes, content_type: Optional[str] = None) -> str:
    """Decode upstream bytes: header charset first, then UTF-8, then sniffing."""
    declared = []
    if content_type:
        match = _CHARSET.search(content_type)
        if match:
            declared.append(match.group(1))
    if not declared:
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError:
            pass
    dammit = UnicodeDammit(body, known_definite_encodings=declared, is_html=True)
    if dammit.unicode_markup is None:
        return body.decode("utf-8", errors="replace")
    return dammit.unicode_markup


def inject_banner(html: str, banner: str) -> str:
    return _BODY_OPEN.sub(lambda m: m.group(0) + banner, html, count=1)


def inject_script(html: str, script: str) -> str:
    matches = list(_BODY_CLOSE.finditer(html))
    if not matches:
        return html
    pos = matches[-1].start()
    return html[:pos] + script + html[pos:]


def parse_html(html: str) -> Optional[BeautifulSoup]:
    """Lenient parse; returns None only when the parser rejects the markup outright."""
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            return BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as e:
        logger.warning(f"[Rewrite] Parser rejected markup, leaving it untouched: {e}")
        return None


def iter_visible_text_nodes(soup: BeautifulSoup) -> Iterator[NavigableString]:
    body = soup.body
    if body is None:
        return
    # materialized first: callers replace nodes while iterating
    nodes = [
        node
        for node in body.descendants
        if isinstance(node, NavigableString)
        and not isinstance(node, PreformattedString)
    ]
    for node in nodes:
        if any(parent.name in EXCLUDED_TEXT_PARENTS for parent in node.parents):
            continue
        yield node


def _word_patterns(replacements: Dict[str, str]) -> List[tuple]:
    return [
        (re.compile(r"\b" + re.escape(word) + r"\b"), replacement)
        for word, replacement in replacements.items()
        if word
    ]


def replace_text(text: str, patterns: List[tuple]) -> str:
    for pattern, replacement in patterns:
        text = pattern.sub(lambda _m, r=replacement: r, text)
    return text


def replace_words(html: str, replacements: Dict[str, str]) -> str:
    """
    Apply whole-word, case-sensitive replacements to visible body text.
    Entries apply in mapping order, each on the result of the previous one.
    """
    patterns = _word_patterns(replacements)
    if not patterns:
        return html
    soup = parse_html(html)
    if soup is None or soup.body is None:
        return html

    changed = 0
    for node in iter_visible_text_nodes(soup):
        original = str(node)
        updated = replace_text(original, patterns)
        if updated != original:
            node.replace_with(NavigableString(updated))
            changed += 1
    logger.debug(f"[Rewrite] Replaced words in {changed} text nodes")
    return soup.decode()


def extract_text(html: str) -> str:
    """Trimmed, non-empty visible body text, one node per line."""
    soup = parse_html(html)
    if soup is None:
        return ""
    texts = []
    for node in iter_visible_text_nodes(soup):
        text = str(node).strip()
        if text:
            texts.append(text)
    return "\n".join(texts)


def rewrite_html(
    html: str,
    replacements: Dict[str, str],
    banner: Optional[str] = None,
    script: Optional[str] = None,
) -> str:
    html = inject_banner(html, banner_markup() if banner is None else banner)
    html = replace_words(html, replacements)
    return inject_script(html, client_script() if script is None else script)
