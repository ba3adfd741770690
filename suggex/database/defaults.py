"""
suggex.database.defaults — Default Guild Settings
==================================================

Baseline embed and modal presets applied to a guild the first time it is
synced, when the deployment supplies no overrides for it.  Existing
``guild_settings`` rows are never reset to these values.
"""

from __future__ import annotations

from suggex.config import DEFAULT_ASSET_BASE_URL

BRAND_COLOR = "#1596e9"
BRAND_NAME = "Suggex"
BRAND_URL = "https://suggexbot.io"
FOOTER_TEXT = "Suggex: Catch & Patch ⋆ suggexbot.io"


def default_embed_settings(asset_base_url: str = DEFAULT_ASSET_BASE_URL) -> dict:
    """Embed preset built from the artwork hosted under *asset_base_url*."""
    base = asset_base_url if asset_base_url.endswith("/") else asset_base_url + "/"
    return {
        "color": BRAND_COLOR,
        "footer": {
            "text": FOOTER_TEXT,
            "icon_url": base + "suggex_logo.png",
        },
        "thumbnail": base + "suggex_thumb.png",
        "image": base + "suggex_image.png",
        "author": {
            "name": BRAND_NAME,
            "icon_url": base + "suggex_logo.png",
        },
        "url": BRAND_URL,
    }


def default_modal_settings() -> dict:
    """Two-question submission modal: one short answer, one paragraph."""
    return {
        "components": [
            {
                "type": "text_input",
                "custom_id": "textInput1",
                "label": "Your First Question",
                "style": "short",
                "min_length": 1,
                "max_length": 100,
                "placeholder": "Type your answer here...",
                "required": True,
            },
            {
                "type": "text_input",
                "custom_id": "textInput2",
                "label": "Your Second Question",
                "style": "paragraph",
                "min_length": 1,
                "max_length": 500,
                "placeholder": "Type your answer here...",
                "required": False,
            },
        ]
    }
