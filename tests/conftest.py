import asyncio
import sys
from pathlib import Path
from urllib.parse import unquote, urlparse

import pytest

# Ensure project root is on sys.path so `import slides2pptx` works
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from slides2pptx.icon_catalog import IconCatalog  # noqa: E402

HOUSE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 576 512">'
    '<path d="M575.8 255.5L288 0 0 255.5z"/></svg>'
)
STAR_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 512 512">'
    '<path d="M256 0l64 192H512z"/></svg>'
)
GITHUB_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 496 512">'
    '<path d="M165.9 397.4c0 2-2.3 3.6-5.2 3.6z"/></svg>'
)


@pytest.fixture
def icon_dir(tmp_path):
    """A miniature Font Awesome ``svgs`` tree."""
    root = tmp_path / "svgs"
    for style, name, svg in [
        ("solid", "house", HOUSE_SVG),
        ("solid", "star", STAR_SVG),
        ("regular", "star", STAR_SVG),
        ("brands", "github", GITHUB_SVG),
    ]:
        (root / style).mkdir(parents=True, exist_ok=True)
        (root / style / f"{name}.svg").write_text(svg, encoding="utf-8")
    return root


@pytest.fixture
def catalog(icon_dir):
    return IconCatalog.from_directory(icon_dir)


class FakePage:
    """Stands in for a pyppeteer page."""

    def __init__(self, browser):
        self.browser = browser
        self.viewports = []
        self.pdf_options = None

    async def setViewport(self, viewport):
        self.viewports.append(dict(viewport))

    async def goto(self, url, options=None):
        self.browser.visited.append((url, options))
        self.browser.documents.append(Path(unquote(urlparse(url).path)).read_text(encoding="utf-8"))
        if self.browser.fail_goto:
            raise TimeoutError("Navigation Timeout Exceeded: 10000 ms exceeded.")

    async def evaluate(self, script):
        return self.browser.content_height

    async def pdf(self, options):
        self.pdf_options = options
        if self.browser.pdf_delay:
            await asyncio.sleep(self.browser.pdf_delay)
        Path(options["path"]).write_bytes(b"%PDF-1.4 fake")


class FakeBrowser:
    def __init__(self, content_height=720, fail_goto=False, pdf_delay=0):
        self.content_height = content_height
        self.fail_goto = fail_goto
        self.pdf_delay = pdf_delay
        self.visited = []
        self.documents = []
        self.pages = []
        self.closed = False

    async def newPage(self):
        page = FakePage(self)
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeLauncher:
    """Coroutine function recording every browser it launches."""

    def __init__(self, outcomes=None, content_height=720, pdf_delay=0):
        # outcomes: list of booleans, True = that attempt fails
        self.outcomes = list(outcomes or [])
        self.content_height = content_height
        self.pdf_delay = pdf_delay
        self.browsers = []
        self.options = []

    async def __call__(self, **options):
        self.options.append(options)
        fail = self.outcomes.pop(0) if self.outcomes else False
        browser = FakeBrowser(self.content_height, fail_goto=fail, pdf_delay=self.pdf_delay)
        self.browsers.append(browser)
        return browser


@pytest.fixture
def fake_launcher():
    return FakeLauncher
