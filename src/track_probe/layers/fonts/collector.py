"""Font enumeration by width comparison against generic fallbacks."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from track_probe.core.base import ProbeFailure
from track_probe.core.hashing import sha256_hex
from track_probe.core.signals import FontsSignal

logger = logging.getLogger(__name__)

FALLBACK_FONTS = ("monospace", "sans-serif", "serif")
TEST_STRING = "mmmmmmmmmmlli"

# Common fonts to test, grouped by the platform that usually ships them
FONTS_TO_TEST = (
    # Windows
    "Arial",
    "Arial Black",
    "Calibri",
    "Cambria",
    "Comic Sans MS",
    "Consolas",
    "Courier New",
    "Georgia",
    "Impact",
    "Lucida Console",
    "Segoe UI",
    "Tahoma",
    "Times New Roman",
    "Trebuchet MS",
    "Verdana",
    # macOS
    "American Typewriter",
    "Andale Mono",
    "Apple Color Emoji",
    "Avenir",
    "Avenir Next",
    "Baskerville",
    "Chalkboard",
    "Cochin",
    "Copperplate",
    "Didot",
    "Futura",
    "Geneva",
    "Gill Sans",
    "Helvetica",
    "Helvetica Neue",
    "Hoefler Text",
    "Menlo",
    "Monaco",
    "Optima",
    "Palatino",
    "Papyrus",
    "Skia",
    "Zapfino",
    # Linux
    "DejaVu Sans",
    "DejaVu Sans Mono",
    "DejaVu Serif",
    "Droid Sans",
    "FreeMono",
    "FreeSans",
    "FreeSerif",
    "Liberation Mono",
    "Liberation Sans",
    "Liberation Serif",
    "Noto Sans",
    "Noto Serif",
    "Ubuntu",
    "Ubuntu Mono",
    # Cross-platform
    "Roboto",
    "Open Sans",
    "Lato",
    "Montserrat",
    "Source Sans Pro",
    "Source Code Pro",
    "Fira Sans",
    "Fira Code",
    "JetBrains Mono",
    "Noto Color Emoji",
)

MEASURE_SCRIPT = """({ fonts, fallbacks, testString }) => {
    if (!document.body) return null;
    const span = document.createElement('span');
    span.style.cssText = [
        'position:absolute', 'left:-9999px', 'top:-9999px', 'font-size:72px',
        'font-style:normal', 'font-weight:normal', 'letter-spacing:normal',
        'line-height:normal', 'text-transform:none', 'white-space:nowrap',
    ].join(';');
    span.textContent = testString;
    document.body.appendChild(span);
    try {
        const measure = (family) => {
            span.style.fontFamily = family;
            return span.offsetWidth;
        };
        const baseline = {};
        for (const fallback of fallbacks) baseline[fallback] = measure(fallback);
        const widths = {};
        for (const font of fonts) {
            widths[font] = {};
            for (const fallback of fallbacks) {
                widths[font][fallback] = measure(`'${font}', ${fallback}`);
            }
        }
        return { baseline, widths };
    } finally {
        span.remove();
    }
}"""


def detect_fonts(
    baseline: Mapping[str, Any],
    widths: Mapping[str, Mapping[str, Any]],
) -> list[str]:
    """A font is installed when stacking it in front of any fallback changes the width."""
    detected = []
    for font, per_fallback in widths.items():
        for fallback, width in per_fallback.items():
            if fallback in baseline and width != baseline[fallback]:
                detected.append(font)
                break
    return sorted(detected)


async def collect_fonts(page: Any, fonts: tuple[str, ...] = FONTS_TO_TEST) -> FontsSignal:
    try:
        payload = await page.evaluate(
            MEASURE_SCRIPT,
            {"fonts": list(fonts), "fallbacks": list(FALLBACK_FONTS), "testString": TEST_STRING},
        )
    except Exception as exc:
        logger.warning("Font probe failed: %s", exc)
        return FontsSignal(unavailable=ProbeFailure.ERROR, detail=str(exc))

    if not isinstance(payload, dict):
        return FontsSignal(unavailable=ProbeFailure.UNSUPPORTED, detail="document body is not available")

    detected = detect_fonts(payload.get("baseline") or {}, payload.get("widths") or {})
    return FontsSignal(
        detected=tuple(detected),
        tested=len(fonts),
        fingerprint_hash=sha256_hex(",".join(detected)),
    )
