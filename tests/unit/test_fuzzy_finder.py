"""Unit tests for fuzzy search."""

import pytest

from inkflow.models.block import Block, BlockKind, Document
from inkflow.models.collections import BraindumpItem, CharacterProfile, ResearchInteraction, ResearchThread
from inkflow.models.search import SearchableItem
from inkflow.services.fuzzy_finder import (
    build_pattern,
    filter_source,
    items_from_characters,
    items_from_document,
    items_from_research,
    search,
    search_all,
)


def body_item(item_id, body, source_kind="manuscript"):
    return SearchableItem(id=item_id, source_kind=source_kind, body=body)


class TestBuildPattern:
    """Test build_pattern()."""

    @pytest.mark.parametrize("query", ["", "   ", "\t\n"])
    def test_blank_query_has_no_pattern(self, query):
        assert build_pattern(query) is None

    def test_regex_metacharacters_are_literal(self):
        pattern = build_pattern("a.b")

        assert pattern.search("a.b") is not None
        assert pattern.search("axb") is None

    def test_whitespace_in_query_is_ignored(self):
        assert build_pattern("c a t").search("The Cathedral") is not None


class TestSearch:
    """Test search()."""

    @pytest.fixture
    def items(self):
        return [
            body_item("1", "The Cathedral"),
            body_item("2", "a cold hat"),
            body_item("3", "Dog days"),
        ]

    def test_subsequence_match(self, items):
        assert [i.id for i in search(items, "cat")] == ["1", "2"]

    def test_case_insensitive(self, items):
        assert [i.id for i in search(items, "CATH")] == ["1"]

    def test_order_matters(self, items):
        assert search(items, "tac") == []

    def test_blank_query_matches_everything(self, items):
        assert search(items, "") == items

    def test_title_is_matched_instead_of_body(self):
        item = SearchableItem(id="c", source_kind="characters", title="Lady Macbeth", body="wants the crown")

        assert search([item], "ladym") == [item]
        assert search([item], "crown") == []

    def test_match_does_not_span_lines(self):
        item = body_item("1", "first ca\nt second")

        assert search([item], "cat") == []


class TestAdapters:
    """Test the per-collection projections."""

    def test_document_skips_rules(self, sample_document):
        items = items_from_document(sample_document)

        assert [i.id for i in items] == ["h1", "p1", "p2", "p3"]
        assert all(i.source_kind == "manuscript" for i in items)

    def test_characters_use_name_as_title(self):
        items = items_from_characters([
            CharacterProfile(id="c1", name="Mara", core_desire="To leave", description="Restless"),
        ])

        assert items[0].title == "Mara"
        assert items[0].body == "To leave\n\nRestless"

    def test_research_yields_one_item_per_interaction(self):
        thread = ResearchThread(id="t1", title="Weather", interactions=[
            ResearchInteraction(id="r1", query="How long can rain last?", content="Weeks."),
            ResearchInteraction(id="r2", query="Monsoon timing", content="June."),
        ])

        items = items_from_research([thread])

        assert [(i.id, i.title) for i in items] == [
            ("r1", "How long can rain last?"),
            ("r2", "Monsoon timing"),
        ]

    def test_filter_source(self):
        items = [body_item("1", "x"), body_item("2", "y", source_kind="braindump")]

        assert [i.id for i in filter_source(items, "braindump")] == ["2"]


class TestSearchAll:
    """Test search_all()."""

    def test_groups_results_by_source(self):
        document = Document(blocks=[
            Block(id="b1", text="Rain at the station"),
            Block(id="b2", kind=BlockKind.RULE),
        ])
        braindump = [BraindumpItem(id="n1", content="rain motif?")]
        characters = [CharacterProfile(id="c1", name="Rainer")]
        research = [ResearchThread(id="t1", interactions=[
            ResearchInteraction(id="r1", query="rainfall records", content="..."),
        ])]

        results = search_all(
            "rain",
            document=document,
            braindump=braindump,
            characters=characters,
            research=research,
        )

        assert [(r.source_kind, r.id) for r in results] == [
            ("manuscript", "b1"),
            ("braindump", "n1"),
            ("characters", "c1"),
            ("research", "r1"),
        ]

    def test_without_document(self):
        results = search_all("x", braindump=[BraindumpItem(id="n1", content="xylophone")])

        assert [r.id for r in results] == ["n1"]
