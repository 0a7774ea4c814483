"""Automation framework markers left on window/document."""

from __future__ import annotations

import logging
from typing import Any

from track_probe.core.base import ProbeFailure
from track_probe.core.coerce import as_str, as_str_tuple
from track_probe.core.hashing import canonical_hash
from track_probe.core.signals import AutomationSignal

logger = logging.getLogger(__name__)

CDP_PROPS = (
    "cdc_adoQpoasnfa76pfcZLmcfl_Array",
    "cdc_adoQpoasnfa76pfcZLmcfl_Promise",
    "cdc_adoQpoasnfa76pfcZLmcfl_Symbol",
    "__webdriver_script_function",
    "__driver_evaluate",
    "__webdriver_evaluate",
    "__selenium_evaluate",
    "__fxdriver_evaluate",
    "__driver_unwrapped",
    "__webdriver_unwrapped",
    "__selenium_unwrapped",
    "__fxdriver_unwrapped",
)

SELENIUM_PROPS = (
    "_Selenium_IDE_Recorder",
    "_selenium",
    "__webdriver_script_fn",
    "__driver_evaluate",
    "__webdriver_evaluate",
    "__selenium_evaluate",
    "__webdriver_unwrapped",
    "__selenium_unwrapped",
)

PUPPETEER_PROPS = ("__puppeteer_evaluation_script__",)
PLAYWRIGHT_PROPS = ("__playwright", "__pw_manual")
PHANTOM_PROPS = ("callPhantom", "_phantom")
NIGHTMARE_PROPS = ("__nightmare",)
WEBDRIVER_PROPS = ("webdriver",)

DRIVER_PREFIXES = ("$cdc_", "$wdc_")

MARKER_PROPS = tuple(
    dict.fromkeys(
        CDP_PROPS
        + SELENIUM_PROPS
        + PUPPETEER_PROPS
        + PLAYWRIGHT_PROPS
        + PHANTOM_PROPS
        + NIGHTMARE_PROPS
        + WEBDRIVER_PROPS
    )
)

# Reports which marker names exist; interpretation happens in Python.
SCAN_SCRIPT = """({ props, prefixes }) => {
    const present = props.filter((p) => {
        try { return !!window[p] || p in window || p in document; } catch (e) { return false; }
    });
    const prefixed = [];
    for (const key of Object.getOwnPropertyNames(window).concat(Object.getOwnPropertyNames(document))) {
        if (prefixes.some((prefix) => key.startsWith(prefix))) prefixed.push(key);
    }
    return {
        webdriver: navigator.webdriver === true,
        userAgent: navigator.userAgent || '',
        present,
        prefixed,
    };
}"""


def classify_markers(
    present: tuple[str, ...],
    prefixed: tuple[str, ...],
    user_agent: str,
    webdriver: bool,
) -> AutomationSignal:
    found = set(present)
    ua = user_agent.lower()

    markers = list(dict.fromkeys(present + prefixed))
    if "headlesschrome" in ua:
        markers.append("HeadlessChrome")
    if "phantomjs" in ua:
        markers.append("PhantomJS")
    if webdriver and "navigator.webdriver" not in markers:
        markers.insert(0, "navigator.webdriver")

    return AutomationSignal(
        webdriver=webdriver or bool(found & set(WEBDRIVER_PROPS)),
        cdp_traces=bool(found & set(CDP_PROPS)),
        selenium=bool(found & set(SELENIUM_PROPS)) or bool(prefixed),
        puppeteer=bool(found & set(PUPPETEER_PROPS)) or "headlesschrome" in ua,
        playwright=bool(found & set(PLAYWRIGHT_PROPS)),
        phantomjs=bool(found & set(PHANTOM_PROPS)) or "phantomjs" in ua,
        nightmare=bool(found & set(NIGHTMARE_PROPS)),
        markers=tuple(markers),
        fingerprint_hash=canonical_hash(sorted(markers)),
    )


async def collect_automation(page: Any) -> AutomationSignal:
    args = {"props": list(MARKER_PROPS), "prefixes": list(DRIVER_PREFIXES)}
    try:
        payload = await page.evaluate(SCAN_SCRIPT, args)
    except Exception as exc:
        logger.warning("Automation probe failed: %s", exc)
        return AutomationSignal(unavailable=ProbeFailure.ERROR, detail=str(exc))

    if not isinstance(payload, dict):
        return AutomationSignal(unavailable=ProbeFailure.ERROR, detail="malformed automation payload")

    return classify_markers(
        present=as_str_tuple(payload.get("present")),
        prefixed=as_str_tuple(payload.get("prefixed")),
        user_agent=as_str(payload.get("userAgent")),
        webdriver=payload.get("webdriver") is True,
    )
