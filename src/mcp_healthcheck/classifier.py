"""Map configured MCP server names to test-suite categories."""

from enum import Enum
from typing import List, Tuple


class Category(str, Enum):
    """Test-suite bucket a configured server falls into."""
    FILESYSTEM = "filesystem"
    SEARCH_SERVER = "search-server"
    SQLITE = "sqlite"
    CHROMA = "chroma"
    DEEPWIKI = "deepwiki"
    DOCKER = "docker"
    GENERIC = "generic"


# First match wins
CATEGORY_KEYWORDS: List[Tuple[str, Category]] = [
    ("docker", Category.DOCKER),
    ("filesystem", Category.FILESYSTEM),
    ("search", Category.SEARCH_SERVER),
    ("sqlite", Category.SQLITE),
    ("chroma", Category.CHROMA),
    ("deepwiki", Category.DEEPWIKI),
]


def classify(name: str) -> Category:
    """
    Classify a server by case-insensitive substring match on its name.

    Args:
        name: Configured server name (key under the `mcp` map)

    Returns:
        Category: Matching category, or Category.GENERIC when nothing matches
    """
    lowered = name.lower()
    for keyword, category in CATEGORY_KEYWORDS:
        if keyword in lowered:
            return category
    return Category.GENERIC
