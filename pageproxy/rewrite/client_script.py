import json
import os
from functools import lru_cache

from pageproxy.vars import (
    BLOCKED_DOMAINS,
    IMAGE_MARKER_CLASSES,
    PLACEHOLDER_IMAGE,
    PROXY_BASE_PATH,
    PROXY_ENTRY,
)

ASSETS_DIR = os.path.join(os.path.dirname(__file__), "assets")
SCRIPT_FILE = os.path.join(ASSETS_DIR, "client_script.js")
CONFIG_MARKER = "/*PROXY_CONFIG*/{}"


def client_config() -> dict:
    return {
        "entryPath": f"{PROXY_BASE_PATH}{PROXY_ENTRY}",
        "placeholder": f"{PROXY_BASE_PATH}/{PLACEHOLDER_IMAGE.lstrip('/')}",
        "markerClasses": list(IMAGE_MARKER_CLASSES),
        "blockedDomains": list(BLOCKED_DOMAINS),
    }


def render_client_script(config: dict) -> str:
    with open(SCRIPT_FILE, "r", encoding="utf-8") as handle:
        source = handle.read()
    # "</" would close the surrounding <script> element early
    payload = json.dumps(config).replace("</", "<\\/")
    return "<script>\n" + source.replace(CONFIG_MARKER, payload, 1) + "</script>"


@lru_cache(maxsize=1)
def client_script() -> str:
    """The <script> element injected into every proxied HTML page."""
    return render_client_script(client_config())
