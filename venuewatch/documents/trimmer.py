import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from venuewatch.documents.models import MergedDocument, TrimmedDocument, TrimmedPage

REMOVED_TAGS = ["script", "style", "head", "header", "footer", "nav", "noscript", "iframe"]

BLOCK_TAGS = frozenset(
    {
        "p", "div", "li", "h1", "h2", "h3", "h4", "h5", "h6",
        "section", "article", "main", "blockquote", "pre",
        "ul", "ol", "dl", "dt", "dd", "table", "tr", "br",
    }
)

_HIDDEN_STYLE = re.compile(r"display\s*:\s*none", re.IGNORECASE)
_SPACES = re.compile(r"[ \t\r\f\v]+")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")


class Trimmer:
    """Reduces merged markup to the text a visitor would actually see. Pure."""

    def trim(self, document: MergedDocument) -> TrimmedDocument:
        pages: list[TrimmedPage] = []
        total_in = total_out = 0
        for page in document.pages:
            text = trim_html(page.html)
            total_in += len(page.html)
            total_out += len(text)
            pages.append(
                TrimmedPage(
                    url=page.url,
                    text=text,
                    size_reduction=size_reduction(len(page.html), len(text)),
                )
            )
        return TrimmedDocument(
            venue_id=document.venue_id,
            venue_name=document.venue_name,
            website=document.website,
            pages=pages,
            size_reduction=size_reduction(total_in, total_out),
        )


def trim_html(html: str) -> str:
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")

    title = soup.title.get_text(strip=True) if soup.title else ""

    for tag in soup.find_all(REMOVED_TAGS) + soup.find_all(_is_hidden):
        # nested matches are already gone with their parent
        if not tag.decomposed:
            tag.decompose()
    for comment in soup.find_all(string=lambda node: isinstance(node, Comment)):
        comment.extract()

    root = soup.body or soup
    parts: list[str] = []
    for node in root.descendants:
        if isinstance(node, Tag):
            if node.name in BLOCK_TAGS:
                parts.append("\n")
        elif type(node) is NavigableString:
            stripped = node.strip()
            if stripped:
                parts.append(stripped + " ")

    text = "".join(parts)
    text = _SPACES.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _EXTRA_NEWLINES.sub("\n\n", text).strip()

    if title:
        return f"[Page Title: {title}]\n\n{text}" if text else f"[Page Title: {title}]"
    return text


def size_reduction(original: int, trimmed: int) -> float:
    """Percentage of characters removed, rounded to one decimal place."""
    if original <= 0:
        return 0.0
    reduction = (1 - trimmed / original) * 100
    return round(min(max(reduction, 0.0), 100.0), 1)


def _is_hidden(tag: Tag) -> bool:
    if tag.has_attr("hidden"):
        return True
    style = tag.get("style")
    return bool(style) and bool(_HIDDEN_STYLE.search(style))
