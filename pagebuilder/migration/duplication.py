"""Section duplication - deep copy with "Copy of" titles and optional resets."""

import copy
from typing import Any, Optional

from pagebuilder.migration.schemas import DuplicateOptions

BUTTON_KEYS = ("primaryButton", "secondaryButton", "button", "contactButton")


def _prefix(block: Any, prefix: str) -> None:
    if isinstance(block, dict):
        text = block.get("text")
        if isinstance(text, str) and text and not text.startswith(prefix):
            block["text"] = f"{prefix}{text}"


def _reset_media(props: dict[str, Any]) -> None:
    background = props.get("background")
    if isinstance(background, dict):
        if background.get("type") == "image":
            background.pop("image", None)
        if background.get("type") == "video":
            background.pop("video", None)
    if "media" in props:
        props["media"] = None
    if "video" in props:
        props["video"] = None
    if "gallery" in props:
        props["gallery"] = []
    product = props.get("product")
    if isinstance(product, dict) and "images" in product:
        product["images"] = []
    # Legacy flat shapes
    for key in ("backgroundImage", "image"):
        if isinstance(props.get(key), str):
            props[key] = ""


def _reset_buttons(props: dict[str, Any]) -> None:
    for key in BUTTON_KEYS:
        if isinstance(props.get(key), dict):
            props[key]["url"] = "#"
    content = props.get("content")
    if isinstance(content, dict):
        for button in content.get("buttons") or []:
            if isinstance(button, dict):
                button["url"] = "#"
    if "buttonLink" in props:
        props["buttonLink"] = "#"


def duplicate_properties(
    props: dict[str, Any],
    options: Optional[DuplicateOptions] = None,
) -> dict[str, Any]:
    """Copy a property bag for a duplicated section. The input is not mutated."""
    options = options or DuplicateOptions()
    duplicated = copy.deepcopy(props)
    prefix = options.name_prefix

    title = duplicated.get("title")
    if isinstance(title, str):
        if title and not title.startswith(prefix):
            duplicated["title"] = f"{prefix}{title}"
    else:
        _prefix(title, prefix)

    content = duplicated.get("content")
    if isinstance(content, dict):
        _prefix(content.get("title"), prefix)

    if not options.preserve_media:
        _reset_media(duplicated)
    if not options.preserve_buttons:
        _reset_buttons(duplicated)
    return duplicated
