"""Unit tests for the review session (snapshot, dirty tracking, approve/revert)."""

from inkflow.models.diff import DiffTag, DiffToken


class TestSnapshot:
    """Test taking and discarding snapshots."""

    def test_no_snapshot_initially(self, review):
        assert not review.has_snapshot
        assert review.snapshot() is None

    def test_snapshot_is_isolated_from_later_edits(self, store, review):
        review.take_snapshot()

        store.update_content("p1", "Edited after the snapshot.")

        assert review.snapshot().find("p1").text == "The rain had not stopped for three days."

    def test_snapshot_does_not_touch_history(self, store, review):
        review.take_snapshot()

        assert not store.can_undo

    def test_discard(self, review):
        review.take_snapshot()
        review.discard_snapshot()

        assert not review.has_snapshot


class TestDirtyTracking:
    """Test is_dirty() and dirty_ids()."""

    def test_nothing_dirty_without_snapshot(self, store, review):
        store.update_content("p1", "Changed")

        assert not review.is_dirty("p1")
        assert review.dirty_ids() == []

    def test_edited_block_is_dirty(self, store, review):
        review.take_snapshot()

        store.update_content("p2", "Mara counted every drop.")

        assert review.dirty_ids() == ["p2"]

    def test_block_edited_back_is_clean(self, store, review):
        review.take_snapshot()

        store.update_content("p2", "Something else")
        store.update_content("p2", "Mara counted the drops on the window.")

        assert not review.is_dirty("p2")

    def test_block_added_after_snapshot_is_dirty(self, store, review):
        review.take_snapshot()

        new_id = store.insert_after("p3", "")

        assert review.is_dirty(new_id)

    def test_unknown_id_is_not_dirty(self, review):
        review.take_snapshot()

        assert not review.is_dirty("missing")


class TestDiffBlock:
    """Test diff_block()."""

    def test_unknown_block(self, review):
        assert review.diff_block("missing") is None

    def test_without_snapshot_everything_is_same(self, review):
        assert review.diff_block("p3") == [
            DiffToken(token="Morning came grey and silent.", tag=DiffTag.SAME)
        ]

    def test_diff_against_snapshot(self, store, review):
        review.take_snapshot()
        store.update_content("p3", "Morning came grey and very silent.")

        added = [t.token for t in review.diff_block("p3") if t.tag == DiffTag.ADDED]

        assert added == ["very"]

    def test_new_block_diffs_against_empty_text(self, store, review):
        review.take_snapshot()
        new_id = store.insert_after("p3", "A fresh line.")

        assert review.diff_block(new_id) == [DiffToken(token="A fresh line.", tag=DiffTag.ADDED)]


class TestApproveRevert:
    """Test approve() and revert()."""

    def test_approve_makes_live_document_the_reference(self, store, review):
        review.take_snapshot()
        store.update_content("p1", "Approved text.")

        review.approve()

        assert review.dirty_ids() == []
        assert review.snapshot().find("p1").text == "Approved text."

    def test_revert_restores_snapshot(self, store, review):
        review.take_snapshot()
        original = store.document()
        store.update_content("p1", "Draft")
        store.remove("p2")

        assert review.revert() is True
        assert store.document() == original
        assert review.dirty_ids() == []

    def test_revert_can_be_undone(self, store, review):
        review.take_snapshot()
        store.update_content("p1", "Draft")

        review.revert()
        store.undo()

        assert store.get("p1").text == "Draft"

    def test_revert_without_snapshot(self, store, review):
        before = store.document()

        assert review.revert() is False
        assert store.document() == before

    def test_revert_keeps_snapshot_usable(self, store, review):
        review.take_snapshot()
        review.revert()

        store.update_content("p1", "Again")

        assert review.dirty_ids() == ["p1"]
