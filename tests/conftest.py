"""Global pytest hooks and shared fixtures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import pytest

from sitegen.config import GeneratorSettings


@dataclass
class _TestAccounting:
    deselected: int = 0
    skipped: int = 0
    xfailed: int = 0
    xpassed: int = 0


_ACCOUNTING = _TestAccounting()


def pytest_deselected(items):  # pragma: no cover - pytest hook
    _ACCOUNTING.deselected += len(items)


def pytest_runtest_logreport(report):  # pragma: no cover - pytest hook
    if report.when not in {"setup", "call"}:
        return

    is_xfail = bool(getattr(report, "wasxfail", False))
    if is_xfail:
        if report.outcome == "skipped":
            _ACCOUNTING.xfailed += 1
        elif report.outcome == "passed":
            _ACCOUNTING.xpassed += 1
        return

    if report.outcome == "skipped":
        _ACCOUNTING.skipped += 1


def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - pytest hook
    violations = []
    if _ACCOUNTING.deselected:
        violations.append(f"deselected={_ACCOUNTING.deselected}")
    if _ACCOUNTING.skipped:
        violations.append(f"skipped={_ACCOUNTING.skipped}")
    if _ACCOUNTING.xfailed:
        violations.append(f"xfailed={_ACCOUNTING.xfailed}")
    if _ACCOUNTING.xpassed:
        violations.append(f"xpassed={_ACCOUNTING.xpassed}")

    if not violations:
        return

    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.write_sep(
            "=",
            "Strict guard failed: test accounting violations detected "
            f"({', '.join(violations)})",
        )
        reporter.write_line(
            "Hard guard requires zero skipped/deselected/xfail/xpass tests."
        )

    session.exitstatus = 1


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------

BAKERY_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Sunrise Bakery</title>
<style>
body { font-family: sans-serif; }
.hero > img { width: 100%; }
</style>
</head>
<body>
<header class="hero"><img id="hero-image" alt="bread"></header>
<section id="about"><h2>About</h2><p>Fresh every morning.</p></section>
<section id="menu"><img id="menu-image" alt="pastries"></section>
<section id="contact"><p>Call us.</p></section>
</body>
</html>"""

BAKERY_REPLY: Dict[str, Any] = {
    "pageTitle": "Sunrise Bakery",
    "metaDescription": "Fresh bread and pastries every morning.",
    "metaKeywords": "bakery, bread, pastries",
    "faviconPrompt": "a loaf of bread",
    "htmlContent": BAKERY_HTML,
    "imagePrompts": [
        {"id": "hero-image", "prompt": "fresh bread display"},
        {"id": "menu-image", "prompt": "pastry counter"},
    ],
}


class FakeModelClient:
    """Scripted stand-in for GenAIClient.

    ``fail_refine`` / ``fail_images`` hold prompts (substring match) whose
    calls raise; ``structured`` may be a dict reply or an exception.
    """

    def __init__(
        self,
        structured: Any = None,
        *,
        fail_refine: Optional[List[str]] = None,
        fail_images: Optional[List[str]] = None,
        fail_favicon: bool = False,
    ):
        self.structured = BAKERY_REPLY if structured is None else structured
        self.fail_refine = fail_refine or []
        self.fail_images = fail_images or []
        self.fail_favicon = fail_favicon
        self.structured_calls: List[Dict[str, Any]] = []
        self.text_calls: List[str] = []
        self.image_calls: List[Dict[str, Any]] = []

    async def generate_structured(self, prompt, *, system_instruction, schema, temperature=0.2):
        self.structured_calls.append(
            {"prompt": prompt, "schema": schema, "temperature": temperature}
        )
        if isinstance(self.structured, BaseException):
            raise self.structured
        return self.structured

    async def generate_text(self, prompt, *, system_instruction, temperature=0.5, thinking_budget=0):
        self.text_calls.append(prompt)
        if any(marker in prompt for marker in self.fail_refine):
            raise RuntimeError("refinement unavailable")
        short = prompt.rsplit('Original prompt: "', 1)[-1].rstrip('"')
        return f"  detailed photo of {short}  "

    async def generate_image(self, prompt, *, aspect_ratio="16:9", mime_type="image/jpeg"):
        self.image_calls.append({"prompt": prompt, "aspect_ratio": aspect_ratio})
        if aspect_ratio == "1:1" and self.fail_favicon:
            raise RuntimeError("favicon unavailable")
        if any(marker in prompt for marker in self.fail_images):
            raise RuntimeError("image unavailable")
        return f"data:{mime_type};base64,aW1n"


@pytest.fixture
def fake_client_factory() -> Callable[..., FakeModelClient]:
    return FakeModelClient


@pytest.fixture
def bakery_reply() -> Dict[str, Any]:
    return dict(BAKERY_REPLY)


@pytest.fixture
def bakery_html() -> str:
    return BAKERY_HTML


@pytest.fixture
def settings(tmp_path) -> GeneratorSettings:
    return GeneratorSettings(
        api_key="test-key",
        api_url="http://genai.test",
        state_file=tmp_path / "state.json",
        save_delay=0.01,
    )
