from .client_script import client_script
from .html_rewriter import (
    decode_body,
    extract_text,
    inject_banner,
    inject_script,
    replace_words,
    rewrite_html,
)
from .replacements import load_replacements

__all__ = [
    "client_script",
    "decode_body",
    "extract_text",
    "inject_banner",
    "inject_script",
    "replace_words",
    "rewrite_html",
    "load_replacements",
]
