import re
from typing import Any

from bs4 import BeautifulSoup

MAX_HIGHLIGHTS = 5
ELLIPSIS = "..."

# A sentence ends at a full-width stop, or at an ASCII stop followed by whitespace
SENTENCE_PATTERN = re.compile(r".*?(?:[。！？]\s*|[.!?](?:\s+|$)|$)", re.DOTALL)


def query_words(query: str) -> list[str]:
    """Lowercased whitespace-separated query words longer than one character."""
    return [w for w in query.lower().split() if len(w) > 1]


def keyword_score(content: str, query: str) -> float:
    """Lexical match score in [0, 1].

    1.0 when the whole query appears in the content, otherwise the fraction
    of query words found as substrings.
    """
    content_lower = content.lower()
    query_lower = query.strip().lower()
    if not query_lower:
        return 0.0
    if query_lower in content_lower:
        return 1.0

    words = query_words(query_lower)
    if not words:
        return 0.0
    matched = [w for w in words if w in content_lower]
    return len(matched) / len(words)


def fuse_scores(
    vector_score: float,
    lexical_score: float,
    vector_weight: float = 0.7,
    keyword_weight: float = 0.3,
) -> float:
    score = vector_weight * vector_score + keyword_weight * lexical_score
    return min(max(score, 0.0), 1.0)


def strip_markup(content: str) -> str:
    if not content or "<" not in content:
        return content or ""
    return BeautifulSoup(content, "lxml").get_text()


def generate_excerpt(content: str, max_length: int = 150) -> str:
    """Summarise content as whole sentences within ``max_length`` characters.

    The result is at most ``max_length`` characters including the ellipsis.
    """
    if not content:
        return ""

    clean = strip_markup(content)
    if len(clean) <= max_length:
        return clean

    budget = max(max_length - len(ELLIPSIS), 0)
    excerpt = ""
    for sentence in SENTENCE_PATTERN.findall(clean):
        if not sentence:
            continue
        if len(excerpt) + len(sentence.rstrip()) > budget:
            break
        excerpt += sentence

    excerpt = excerpt.rstrip()
    if not excerpt:
        # First sentence alone is over budget
        excerpt = clean[:budget].rstrip()
    return excerpt + ELLIPSIS


def generate_highlights(content: str, query: str) -> list[str]:
    """Matched spans of each query word in content, deduplicated, at most five."""
    highlights: list[str] = []
    for word in query_words(query):
        for match in re.finditer(re.escape(word), content, re.IGNORECASE):
            if match.group(0) not in highlights:
                highlights.append(match.group(0))
            if len(highlights) >= MAX_HIGHLIGHTS:
                return highlights
    return highlights


def determine_result_type(metadata: dict[str, Any]) -> str:
    if metadata.get("course_id"):
        return "course"
    if metadata.get("wine_id") or metadata.get("type") == "wine":
        return "wine"
    if metadata.get("category") == "faq":
        return "faq"
    if metadata.get("type") == "game":
        return "game"
    return "article"


def result_url(metadata: dict[str, Any]) -> str | None:
    if metadata.get("course_id"):
        return f"/learn/{metadata['course_id']}"
    if metadata.get("wine_id"):
        return f"/wines/{metadata['wine_id']}"
    if metadata.get("article_id"):
        return f"/articles/{metadata['article_id']}"
    return None
