"""Legacy-to-variant property transforms.

The baseline transform turns a flat legacy hero bag into the centered
variant's shape. Adapters reshape that baseline for other variants;
variants without an adapter start from their registry defaults with the
baseline text overlaid.

All functions are pure: inputs are never mutated.
"""

import copy
from typing import Any, Callable, Optional

from pagebuilder.editor.paths import get_path, set_path
from pagebuilder.sections.schemas import HeroVariant

DEFAULT_TITLE = "Welcome to Your Website"
DEFAULT_CTA_TEXT = "Get Started"

DEFAULT_GRADIENT = {
    "type": "linear",
    "direction": "45deg",
    "colors": [
        {"color": "#3b82f6", "stop": 0},
        {"color": "#8b5cf6", "stop": 100},
    ],
}
PLACEHOLDER_MEDIA = {
    "id": "hero-media",
    "url": "/assets/hero/hero-image.jpg",
    "type": "image",
    "alt": "Hero image",
    "objectFit": "cover",
    "loading": "eager",
}
WHITE_BACKGROUND = {"type": "color", "color": "#ffffff"}

# Legacy-hero shape -> flat hero-section keys
LEGACY_ALIASES = {
    "headline": "title",
    "tagline": "subtitle",
    "cta": "buttonText",
    "ctaLink": "buttonLink",
}

# Keys the transforms consume or report on
KNOWN_LEGACY_KEYS = {
    "title", "subtitle", "description", "buttonText", "buttonLink",
    "backgroundImage", "textAlign", "videoUrl", "video",
    "customCSS", "animations",
    *LEGACY_ALIASES,
}

TEXT_KEYS = frozenset({"title", "subtitle", "description"})
BUTTON_KEYS = frozenset({"buttonText", "buttonLink"})

# Flat legacy keys each transform carries into its output
BASELINE_KEYS = TEXT_KEYS | BUTTON_KEYS | {"backgroundImage", "textAlign"}
CONSUMED_KEYS: dict[HeroVariant, frozenset[str]] = {
    HeroVariant.CENTERED: BASELINE_KEYS,
    HeroVariant.SPLIT_SCREEN: TEXT_KEYS | BUTTON_KEYS | {"backgroundImage"},
    HeroVariant.VIDEO: TEXT_KEYS | BUTTON_KEYS | {"backgroundImage", "videoUrl", "video"},
    HeroVariant.MINIMAL: BUTTON_KEYS | {"title", "subtitle"},
    HeroVariant.CTA: TEXT_KEYS | BUTTON_KEYS | {"backgroundImage"},
}

# Minimal required-field contract per variant: (path, message)
REQUIRED_FIELDS: dict[HeroVariant, list[tuple[str, str]]] = {
    HeroVariant.CENTERED: [
        ("title.text", "Title is required for centered hero variant"),
    ],
    HeroVariant.SPLIT_SCREEN: [
        ("content.title.text", "Content title is required for split-screen hero variant"),
        ("media.url", "Media URL is required for split-screen hero variant"),
    ],
    HeroVariant.VIDEO: [
        ("video.url", "Video URL is required for video hero variant"),
        ("content.title.text", "Content title is required for video hero variant"),
    ],
    HeroVariant.MINIMAL: [
        ("title.text", "Title is required for minimal hero variant"),
    ],
    HeroVariant.FEATURE: [
        ("title.text", "Title is required for feature hero variant"),
    ],
    HeroVariant.TESTIMONIAL: [
        ("title.text", "Title is required for testimonial hero variant"),
    ],
    HeroVariant.PRODUCT: [
        ("product.name", "Product name is required for product hero variant"),
    ],
    HeroVariant.SERVICE: [
        ("title.text", "Title is required for service hero variant"),
    ],
    HeroVariant.CTA: [
        ("title.text", "Title is required for CTA hero variant"),
        ("primaryButton.text", "Button text is required for CTA hero variant"),
    ],
    HeroVariant.GALLERY: [
        ("title.text", "Title is required for gallery hero variant"),
    ],
}


def normalize_legacy(old_props: dict[str, Any]) -> dict[str, Any]:
    """Map legacy-hero keys (headline, tagline, cta, ctaLink) onto flat keys."""
    flat = dict(old_props)
    for alias, key in LEGACY_ALIASES.items():
        if flat.get(key) is None and flat.get(alias) is not None:
            flat[key] = flat[alias]
    return flat


def _button(text: str, url: Optional[str], style: str = "primary") -> dict[str, Any]:
    return {
        "text": text,
        "url": url or "#",
        "style": style,
        "size": "lg",
        "iconPosition": "right",
        "target": "_self",
    }


def baseline_transform(old_props: dict[str, Any]) -> dict[str, Any]:
    """Flat legacy hero properties -> centered variant properties.

    A provided title is kept verbatim, even when blank; the default title
    is used only when none is given.
    """
    flat = normalize_legacy(old_props)
    title = flat.get("title")
    props: dict[str, Any] = {
        "title": {"text": DEFAULT_TITLE if title is None else str(title), "tag": "h1"},
        "subtitle": {"text": str(flat.get("subtitle") or ""), "tag": "p"},
    }
    if flat.get("description"):
        props["description"] = {"text": str(flat["description"]), "tag": "p"}
    if flat.get("buttonText"):
        props["primaryButton"] = _button(str(flat["buttonText"]), flat.get("buttonLink"))

    if flat.get("backgroundImage"):
        props["background"] = {
            "type": "image",
            "image": {
                "id": "hero-bg",
                "url": flat["backgroundImage"],
                "type": "image",
                "alt": "Hero background",
                "objectFit": "cover",
                "loading": "eager",
            },
        }
    else:
        props["background"] = {"type": "gradient", "gradient": copy.deepcopy(DEFAULT_GRADIENT)}

    props["textAlign"] = flat.get("textAlign") or "center"
    return props


def _buttons(baseline: dict[str, Any]) -> list[dict[str, Any]]:
    return [copy.deepcopy(baseline["primaryButton"])] if baseline.get("primaryButton") else []


def _text_blocks(baseline: dict[str, Any]) -> dict[str, Any]:
    return {
        key: copy.deepcopy(baseline[key])
        for key in ("title", "subtitle", "description")
        if key in baseline
    }


def adapt_split_screen(baseline: dict[str, Any], old_props: dict[str, Any]) -> dict[str, Any]:
    media = get_path(baseline, "background.image")
    return {
        "content": {**_text_blocks(baseline), "buttons": _buttons(baseline)},
        "media": copy.deepcopy(media) if media else copy.deepcopy(PLACEHOLDER_MEDIA),
        "layout": "left",
        "contentAlignment": "center",
        "mediaAlignment": "center",
        "background": dict(WHITE_BACKGROUND),
    }


def adapt_video(baseline: dict[str, Any], old_props: dict[str, Any]) -> dict[str, Any]:
    legacy_video = old_props.get("videoUrl") or old_props.get("video") or ""
    return {
        "video": {
            "id": "hero-video",
            "url": legacy_video if isinstance(legacy_video, str) else "",
            "type": "video",
            "autoplay": True,
            "loop": True,
            "muted": True,
            "controls": False,
            "poster": get_path(baseline, "background.image.url") or "/assets/hero/video-poster.jpg",
            "objectFit": "cover",
            "loading": "eager",
        },
        "overlay": {"enabled": True, "color": "#000000", "opacity": 0.4},
        "content": {**_text_blocks(baseline), "buttons": _buttons(baseline), "position": "center"},
    }


def adapt_minimal(baseline: dict[str, Any], old_props: dict[str, Any]) -> dict[str, Any]:
    props: dict[str, Any] = {
        "title": copy.deepcopy(baseline["title"]),
        "subtitle": {**baseline["subtitle"], "tag": "h2"},
        "background": dict(WHITE_BACKGROUND),
        "spacing": "normal",
    }
    if baseline.get("primaryButton"):
        props["button"] = {**baseline["primaryButton"], "style": "link"}
    return props


def adapt_cta(baseline: dict[str, Any], old_props: dict[str, Any]) -> dict[str, Any]:
    props = _text_blocks(baseline)
    props["primaryButton"] = copy.deepcopy(baseline.get("primaryButton")) or _button(DEFAULT_CTA_TEXT, "#")
    props["background"] = copy.deepcopy(baseline["background"])
    props["layout"] = "center"
    props["showBenefits"] = False
    return props


Adapter = Callable[[dict[str, Any], dict[str, Any]], dict[str, Any]]

ADAPTERS: dict[HeroVariant, Adapter] = {
    HeroVariant.SPLIT_SCREEN: adapt_split_screen,
    HeroVariant.VIDEO: adapt_video,
    HeroVariant.MINIMAL: adapt_minimal,
    HeroVariant.CTA: adapt_cta,
}


def overlay_on_defaults(baseline: dict[str, Any], default_props: dict[str, Any]) -> dict[str, Any]:
    """Start from a variant's defaults and carry the baseline text over."""
    props = copy.deepcopy(default_props)
    for key in ("title", "subtitle", "description"):
        text = get_path(baseline, f"{key}.text")
        if not text:
            continue
        if isinstance(props.get(key), dict):
            props[key]["text"] = text
        elif key == "title" and isinstance(props.get("product"), dict):
            props["product"]["name"] = text
        elif key == "subtitle" and isinstance(props.get("product"), dict):
            props["product"]["description"] = text

    button = baseline.get("primaryButton")
    if button:
        if isinstance(props.get("primaryButton"), dict):
            set_path(props, "primaryButton.text", button["text"])
            set_path(props, "primaryButton.url", button["url"])
        else:
            props["primaryButton"] = copy.deepcopy(button)
    return props


def overlay_consumed_keys(default_props: dict[str, Any]) -> frozenset[str]:
    """Legacy keys overlay_on_defaults can place, given the variant's defaults."""
    keys = set(BUTTON_KEYS)
    has_product = isinstance(default_props.get("product"), dict)
    for key in TEXT_KEYS:
        if isinstance(default_props.get(key), dict):
            keys.add(key)
        elif has_product and key in ("title", "subtitle"):
            keys.add(key)
    return frozenset(keys)


def contract_errors(variant: HeroVariant, props: dict[str, Any]) -> list[str]:
    """Itemized violations of a variant's required-field contract."""
    errors = []
    for path, message in REQUIRED_FIELDS.get(variant, []):
        value = get_path(props, path)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(message)
    return errors
