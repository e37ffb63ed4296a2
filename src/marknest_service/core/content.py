"""Content metrics, markdown rendering and slug helpers."""

import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable, List
import bleach
import markdown

ALLOWED_TAGS = [
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'p', 'br', 'strong', 'em', 'u', 's', 'del', 'ol', 'ul', 'li',
    'blockquote', 'code', 'pre', 'hr', 'a', 'img', 'table',
    'thead', 'tbody', 'tr', 'th', 'td', 'dl', 'dt', 'dd', 'sup', 'abbr',
]

ALLOWED_ATTRIBUTES = {
    'a': ['href', 'title'],
    'img': ['src', 'alt', 'title'],
    'abbr': ['title'],
    'th': ['align'],
    'td': ['align'],
}

# Letters with inner apostrophes or hyphens; digits do not count as words.
_WORD_RE = re.compile(r"[^\W\d_]+(?:['\-][^\W\d_]+)*")
_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_DASH_RE = re.compile(r"[-\s_]+")


@dataclass(frozen=True)
class ContentStats:
    size: int
    word_count: int
    character_count: int


def compute_stats(content: str) -> ContentStats:
    """Byte size, word count (markup stripped) and character count of raw content."""
    plain = bleach.clean(content, tags=[], strip=True)
    return ContentStats(
        size=len(content.encode("utf-8")),
        word_count=len(_WORD_RE.findall(plain)),
        character_count=len(content),
    )


def render_markdown(content: str) -> str:
    """Render markdown to sanitized HTML."""
    if not content:
        return ""
    html = markdown.markdown(content, extensions=["extra", "sane_lists"])
    return bleach.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


def slugify(value: str) -> str:
    """ASCII, lowercase, dash-separated slug."""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = _SLUG_STRIP_RE.sub("", value).strip().lower()
    return _SLUG_DASH_RE.sub("-", value).strip("-")


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Trim, drop blanks and duplicates while keeping first-seen order."""
    seen = set()
    result = []
    for tag in tags:
        name = tag.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        result.append(name)
    return result


def tag_slug(name: str) -> str:
    """Per-user identity of a tag; falls back to the lowercased name for non-ASCII tags."""
    return slugify(name) or name.lower()


def format_file_size(size: int) -> str:
    value = float(size)
    units = ["B", "KB", "MB", "GB"]
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 1):g} {units[i]}"
