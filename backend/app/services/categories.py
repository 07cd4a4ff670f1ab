"""Keyword-based category detection."""

# Checked in this order; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "work": ["งาน", "work", "project", "โปรเจค", "meeting", "ประชุม"],
    "learning": ["เรียน", "learn", "study", "อ่าน", "read", "book", "หนังสือ", "course"],
    "idea": ["idea", "ไอเดีย", "คิด", "think", "concept"],
    "todo": ["todo", "ทำ", "task", "รายการ"],
    "quote": ["quote", "คำคม", "saying"],
    "recipe": ["recipe", "สูตร", "อาหาร", "food", "cook"],
    "travel": ["travel", "เที่ยว", "trip", "ไป"],
    "finance": ["finance", "เงิน", "money", "invest", "ลงทุน"],
}

# Vocabulary the summarizer may suggest from; wider than the keyword table
AI_CATEGORIES = (
    "work",
    "learning",
    "idea",
    "todo",
    "quote",
    "recipe",
    "travel",
    "finance",
    "health",
    "other",
)


def detect_category(content: str, tags: list[str]) -> str | None:
    """
    Return the first category whose keyword appears in ``content`` or equals a tag.

    Matching is case-insensitive: substring match against content, exact
    match against tags.
    """
    lower_content = content.lower()
    lower_tags = {tag.lower() for tag in tags}

    for category, keywords in CATEGORY_KEYWORDS.items():
        for keyword in keywords:
            if keyword in lower_content or keyword in lower_tags:
                return category

    return None
