"""Fuzzy subsequence search across the manuscript and external collections.

A query matches when its characters appear in order, case-insensitively,
in an item's title (or body when it has no title): "cat" matches
"The Cathedral" and "a cold hat". There is no relevance ranking; results
keep the order they were given in.
"""

import re
from typing import Iterable, Optional, Pattern, Sequence

from inkflow.models.block import BlockKind, Document
from inkflow.models.collections import BraindumpItem, CharacterProfile, ResearchThread
from inkflow.models.search import SOURCE_ORDER, SearchableItem, SourceKind

_WHITESPACE = re.compile(r"\s+")


def build_pattern(query: str) -> Optional[Pattern[str]]:
    """
    Compile a query into a case-insensitive subsequence pattern.

    Whitespace is removed first; each remaining character is escaped and
    the characters are joined with ".*".

    Returns:
        Compiled pattern, or None when the query is empty (matches everything)
    """
    cleaned = _WHITESPACE.sub("", query)
    if not cleaned:
        return None
    return re.compile(".*".join(re.escape(c) for c in cleaned), re.IGNORECASE)


def matches(item: SearchableItem, pattern: Optional[Pattern[str]]) -> bool:
    """Test one item against a compiled query pattern."""
    if pattern is None:
        return True
    haystack = item.title if item.title else item.body
    return pattern.search(haystack) is not None


def search(items: Iterable[SearchableItem], query: str) -> list[SearchableItem]:
    """
    Filter items by fuzzy query, preserving input order.

    Args:
        items: Candidates (any mix of sources)
        query: User query; blank queries match everything

    Returns:
        Matching items in input order

    Example:
        >>> [i.body for i in search(items, "cat")]
        ['The Cathedral']
    """
    pattern = build_pattern(query)
    return [item for item in items if matches(item, pattern)]


def filter_source(items: Iterable[SearchableItem], source_kind: SourceKind) -> list[SearchableItem]:
    """Keep only items projected from one collection."""
    return [item for item in items if item.source_kind == source_kind]


# Adapters: one per collection, each producing SearchableItem projections

def items_from_document(document: Document) -> list[SearchableItem]:
    """Project manuscript blocks. Rules have no text and are left out."""
    return [
        SearchableItem(id=block.id, source_kind="manuscript", body=block.text)
        for block in document.blocks
        if block.kind != BlockKind.RULE
    ]


def items_from_braindump(notes: Iterable[BraindumpItem]) -> list[SearchableItem]:
    return [SearchableItem(id=note.id, source_kind="braindump", body=note.content) for note in notes]


def items_from_characters(characters: Iterable[CharacterProfile]) -> list[SearchableItem]:
    items = []
    for character in characters:
        body = "\n\n".join(part for part in (character.core_desire, character.description) if part)
        items.append(
            SearchableItem(id=character.id, source_kind="characters", title=character.name, body=body)
        )
    return items


def items_from_research(threads: Iterable[ResearchThread]) -> list[SearchableItem]:
    """One item per research interaction, titled by its query."""
    return [
        SearchableItem(
            id=interaction.id,
            source_kind="research",
            title=interaction.query,
            body=interaction.content,
        )
        for thread in threads
        for interaction in thread.interactions
    ]


def search_all(
    query: str,
    document: Optional[Document] = None,
    braindump: Sequence[BraindumpItem] = (),
    characters: Sequence[CharacterProfile] = (),
    research: Sequence[ResearchThread] = (),
) -> list[SearchableItem]:
    """
    Global search over every collection.

    Results are grouped by source in a fixed order (manuscript, braindump,
    characters, research), each group in its collection's own order.
    """
    by_source: dict[str, list[SearchableItem]] = {
        "manuscript": items_from_document(document) if document is not None else [],
        "braindump": items_from_braindump(braindump),
        "characters": items_from_characters(characters),
        "research": items_from_research(research),
    }
    pattern = build_pattern(query)
    return [
        item
        for source in SOURCE_ORDER
        for item in by_source[source]
        if matches(item, pattern)
    ]
