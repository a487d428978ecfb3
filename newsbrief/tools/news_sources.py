"""Curated NewsAPI source ids per provider category."""

MAX_SOURCES = 50

CATEGORY_SOURCES: dict[str, list[str]] = {
    "general": [
        "associated-press",
        "reuters",
        "bbc-news",
        "cnn",
        "the-washington-post",
        "the-wall-street-journal",
        "politico",
        "axios",
        "abc-news",
        "nbc-news",
        "cbs-news",
        "al-jazeera-english",
        "the-hill",
        "usa-today",
        "time",
    ],
    "technology": [
        "techcrunch",
        "the-verge",
        "wired",
        "ars-technica",
        "engadget",
        "hacker-news",
        "recode",
        "techradar",
        "the-next-web",
    ],
    "business": [
        "bloomberg",
        "business-insider",
        "financial-post",
        "fortune",
        "the-economist",
        "cnbc",
        "financial-times",
    ],
    "science": [
        "new-scientist",
        "national-geographic",
        "next-big-future",
    ],
    "health": [
        "medical-news-today",
    ],
    "sports": [
        "espn",
        "bleacher-report",
        "fox-sports",
        "nfl-news",
        "nhl-news",
        "bbc-sport",
        "talksport",
    ],
    "entertainment": [
        "entertainment-weekly",
        "ign",
        "polygon",
        "mtv-news",
        "buzzfeed",
    ],
}

# Keyword fragments that map a free-form topic onto a category. Order matters:
# the first category with a matching fragment wins.
CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("technology", ("tech", "ai", "artificial intelligence", "software", "crypto", "startup", "cyber", "gadget", "computing")),
    ("business", ("business", "econom", "finance", "market", "stock", "invest", "trade", "bank")),
    ("science", ("science", "space", "climate", "physics", "biology", "research", "environment")),
    ("health", ("health", "medic", "fitness", "wellness", "nutrition", "disease")),
    ("sports", ("sport", "football", "soccer", "basketball", "tennis", "nfl", "nba", "olympic")),
    ("entertainment", ("entertainment", "movie", "film", "music", "celebrity", "gaming", "tv")),
    ("general", ("politic", "election", "world", "government", "policy")),
]
