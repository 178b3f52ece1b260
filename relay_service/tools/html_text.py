import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment

_SKIP_TAGS = ["script", "style", "svg", "noscript"]


def page_text(html: str, base_url: str = "", max_chars: int = 20000) -> str:
    """
    Flatten an HTML page's body to one line of text.

    Each element contributes only its own text; links are kept as markdown
    `[text](absolute-href)` with an image's alt text appended to the link text.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_SKIP_TAGS):
        tag.decompose()
    root = soup.body or soup

    pieces = []
    for el in root.find_all(True):
        own = " ".join(
            s.strip()
            for s in el.find_all(string=True, recursive=False)
            if not isinstance(s, Comment) and s.strip()
        )
        href = el.get("href") if el.name == "a" else None
        if href:
            if not href.startswith("http"):
                href = urljoin(base_url, href) if base_url else ""
            img = el.find("img", alt=True)
            if img is not None and img["alt"].strip():
                own = f"{own} {img['alt'].strip()}".strip()
            pieces.append(f"[{own}]({href})")
        elif own:
            pieces.append(own)

    text = re.sub(r"\s*\n+\s*", " ", " ".join(pieces)).strip()
    return text[:max_chars]
