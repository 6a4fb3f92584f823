"""Keyword buckets shared by the trending tracker and the suggestion generator.

Order matters: a term is assigned to the first bucket with a matching keyword.
"""

DEFAULT_CATEGORY = "general"

CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("wine", ("wine", "葡萄酒", "紅酒", "白酒", "氣泡酒")),
    ("whiskey", ("whiskey", "威士忌")),
    ("sake", ("sake", "清酒")),
    ("beer", ("beer", "啤酒")),
    ("course", ("course", "課程", "學習", "教學")),
    ("certification", ("wset", "cms", "認證", "證照")),
]

_KEYWORDS_BY_CATEGORY = dict(CATEGORY_KEYWORDS)


def categorize_term(term: str) -> str:
    lowered = term.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def keywords_for(category: str) -> tuple[str, ...]:
    """Keywords of a bucket; empty for unknown categories."""
    return _KEYWORDS_BY_CATEGORY.get(category, ())
