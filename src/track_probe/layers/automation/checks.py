"""Automation layer rules: one failing check per framework marker, plus the User-Agent."""

from __future__ import annotations

from collections.abc import Callable

from track_probe.core.base import Check, CheckStatus
from track_probe.core.signals import AutomationSignal, EvaluationContext
from track_probe.core.useragent import context_user_agent

REMEDIATIONS: dict[str, str] = {
    "webdriver": "navigator.webdriver is true. Launch the browser without automation flags.",
    "cdp-traces": "ChromeDriver cdc_ variables are injected. Use a patched driver that renames them.",
    "selenium": "Selenium globals are visible to page scripts. Avoid Selenium for private browsing.",
    "puppeteer": "Puppeteer or headless Chrome is detectable. Run a headed browser with a normal User-Agent.",
    "playwright": "Playwright bindings are exposed on window. Do not browse from an automation session.",
    "phantomjs": "PhantomJS is obsolete and trivially detected. Use a current browser.",
    "nightmare": "Nightmare.js leaves __nightmare on window. Use a current browser.",
    "headless-ua": "The User-Agent advertises a headless browser. Run headed, or set a regular User-Agent.",
}

_MARKERS: tuple[tuple[str, str, str], ...] = (
    ("webdriver", "WebDriver Flag", "webdriver"),
    ("cdp-traces", "CDP Traces", "cdp_traces"),
    ("selenium", "Selenium", "selenium"),
    ("puppeteer", "Puppeteer", "puppeteer"),
    ("playwright", "Playwright", "playwright"),
    ("phantomjs", "PhantomJS", "phantomjs"),
    ("nightmare", "Nightmare.js", "nightmare"),
)


def _marker_rule(check_id: str, title: str, field: str) -> Callable[[AutomationSignal, EvaluationContext], Check]:
    def rule(signal: AutomationSignal, context: EvaluationContext) -> Check:
        if getattr(signal, field):
            return Check(
                id=check_id,
                name=title,
                status=CheckStatus.FAIL,
                message=f"{title} markers detected.",
            )
        return Check(
            id=check_id,
            name=title,
            status=CheckStatus.PASS,
            message=f"No {title} markers.",
        )

    rule.__name__ = f"check_{field}"
    return rule


def check_headless_ua(signal: AutomationSignal, context: EvaluationContext) -> Check:
    if "headless" in context_user_agent(context).lower():
        return Check(
            id="headless-ua",
            name="Headless User-Agent",
            status=CheckStatus.FAIL,
            message='User-Agent contains a "Headless" indicator.',
        )
    return Check(
        id="headless-ua",
        name="Headless User-Agent",
        status=CheckStatus.PASS,
        message="User-Agent does not advertise a headless browser.",
    )


RULES = (*(_marker_rule(*marker) for marker in _MARKERS), check_headless_ua)
