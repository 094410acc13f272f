"""Shared test fixtures for all test modules."""

import pytest

from inkflow.manuscript.review import ReviewSession
from inkflow.manuscript.store import BlockStore
from inkflow.models.block import Block, BlockKind, Document


@pytest.fixture
def sample_document():
    """Heading, two paragraphs, a scene break and a closing paragraph."""
    return Document(blocks=[
        Block(id="h1", kind=BlockKind.HEADING, text="Chapter One"),
        Block(id="p1", text="The rain had not stopped for three days."),
        Block(id="p2", text="Mara counted the drops on the window."),
        Block(id="r1", kind=BlockKind.RULE),
        Block(id="p3", text="Morning came grey and silent."),
    ])


@pytest.fixture
def store(sample_document):
    """Block store seeded with the sample document."""
    return BlockStore(sample_document)


@pytest.fixture
def review(store):
    """Review session over the sample store."""
    return ReviewSession(store)
