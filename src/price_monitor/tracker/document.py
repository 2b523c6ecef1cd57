"""BeautifulSoup-backed implementation of the page query surface."""

from __future__ import annotations

from collections.abc import Iterator

from bs4 import BeautifulSoup
from bs4.element import Comment, Doctype, Tag

from price_monitor.core.protocols import ImageRef

# Elements whose text is never visible product copy.
_SKIPPED_PARENTS = frozenset({"script", "style", "noscript", "template", "head", "title"})


class HtmlDocument:
    """A parsed page snapshot implementing :class:`~price_monitor.core.protocols.IDocument`."""

    def __init__(self, html: str, url: str = "") -> None:
        self.url = url
        self._soup = BeautifulSoup(html, "html.parser")

    def structured_data(self) -> list[str]:
        blocks: list[str] = []
        for script in self._soup.find_all("script", attrs={"type": "application/ld+json"}):
            text = script.string if script.string is not None else script.get_text()
            if text and text.strip():
                blocks.append(text.strip())
        return blocks

    def select_text(self, selector: str) -> str | None:
        node = self._soup.select_one(selector)
        if node is None:
            return None
        text = node.get_text(" ", strip=True)
        if not text:
            # Microdata price elements often carry the value in ``content``.
            content = node.get("content")
            text = str(content).strip() if content else ""
        return text or None

    def meta(self, key: str) -> str | None:
        for attr in ("property", "name", "itemprop"):
            node = self._soup.find("meta", attrs={attr: key})
            if isinstance(node, Tag):
                content = node.get("content")
                if content and str(content).strip():
                    return str(content).strip()
        return None

    def title(self) -> str | None:
        node = self._soup.title
        if node is None:
            return None
        text = node.get_text(strip=True)
        return text or None

    def images(self) -> list[ImageRef]:
        refs: list[ImageRef] = []
        for img in self._soup.find_all("img"):
            src = img.get("src") or img.get("data-src") or ""
            if not src:
                continue
            css_class = img.get("class") or []
            if isinstance(css_class, list):
                css_class = " ".join(css_class)
            refs.append(ImageRef(src=str(src), alt=str(img.get("alt") or ""), css_class=css_class))
        return refs

    def text_fragments(self, limit: int) -> Iterator[str]:
        seen = 0
        for string in self._soup.find_all(string=True):
            if isinstance(string, (Comment, Doctype)):
                continue
            parent = string.parent
            if parent is None or parent.name in _SKIPPED_PARENTS:
                continue
            text = string.strip()
            if not text:
                continue
            if seen >= limit:
                return
            seen += 1
            yield text


__all__ = ["HtmlDocument"]
