"""Text normalization for fetched feed content using BeautifulSoup."""

import re

from bs4 import BeautifulSoup

_BLOCK_TAGS = ["p", "div", "ul", "ol", "blockquote", "pre", "table", "section", "article"]
_BLANK_LINES = re.compile(r"\n{3,}")


def clean(raw_text: str | None) -> str:
    """Strip all markup from a fragment and collapse it to a single line.

    Entities are unescaped, UTF-8 that was decoded as Latin-1 is repaired,
    and runs of whitespace (including newlines) become single spaces.
    """
    if not raw_text:
        return ""
    text = BeautifulSoup(raw_text, "lxml").get_text(" ")
    text = fix_mojibake(text)
    return normalize_spaces(text)


def fix_mojibake(text: str) -> str:
    """Re-decode text whose UTF-8 bytes were read as Latin-1."""
    try:
        return text.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return text


def normalize_spaces(text: str) -> str:
    return " ".join(text.split())


def to_display_format(raw_html: str | None) -> str:
    """Convert an HTML body into lightweight markdown for reading.

    Links become ``[text](href)``, images ``![alt](src)``, headings get
    ``#`` prefixes and list items ``- ``. Block elements are separated by a
    blank line.
    """
    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "lxml")

    for tag in soup(["script", "style"]):
        tag.decompose()

    for link in soup.find_all("a", href=True):
        text = link.get_text(" ", strip=True)
        link.replace_with(f"[{text}]({link['href']})" if text else link["href"])

    for image in soup.find_all("img"):
        image.replace_with(f"![{image.get('alt', '')}]({image.get('src', '')})")

    for level in range(1, 7):
        for heading in soup.find_all(f"h{level}"):
            text = heading.get_text(" ", strip=True)
            heading.replace_with(f"\n\n{'#' * level} {text}\n\n")

    for item in soup.find_all("li"):
        item.replace_with(f"\n- {item.get_text(' ', strip=True)}")

    for br in soup.find_all("br"):
        br.replace_with("\n")

    for block in soup.find_all(_BLOCK_TAGS):
        block.insert_before("\n\n")
        block.insert_after("\n\n")

    lines = [line.rstrip() for line in soup.get_text().splitlines()]
    return _BLANK_LINES.sub("\n\n", "\n".join(lines)).strip()
