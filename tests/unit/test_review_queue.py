"""
Tests for the in-memory review queue and review submission.
"""
import pytest

from problemqa.core.errors import DuplicateQueueEntryError, InvalidTransitionError
from problemqa.core.models import QueueStatus, ReviewOutcome, ReviewStage
from problemqa.workflow.queue import (
    QueueEntry,
    ReviewQueue,
    ReviewSubmission,
    assign_entry,
    decide_entry,
    submit_review,
)
from problemqa.workflow.states import ContentState


@pytest.fixture
def queue():
    return ReviewQueue()


class TestEnqueue:
    """Test the one-active-entry-per-problem rule."""

    def test_enqueue(self, queue):
        entry = queue.enqueue("p1", ReviewStage.AUTO, priority=2)

        assert entry.id == 1
        assert entry.status == QueueStatus.PENDING
        assert entry.review_type == ReviewStage.AUTO
        assert len(queue) == 1

    def test_duplicate_pending_entry_is_refused(self, queue):
        queue.enqueue("p1", "AUTO")

        with pytest.raises(DuplicateQueueEntryError) as exc_info:
            queue.enqueue("p1", "MANUAL")

        assert exc_info.value.problem_id == "p1"
        assert len(queue) == 1

    def test_duplicate_in_review_entry_is_refused(self, queue):
        entry = queue.enqueue("p1", "AUTO")
        queue.assign(entry.id, "reviewer-1")

        with pytest.raises(DuplicateQueueEntryError):
            queue.enqueue("p1", "AUTO")

    def test_closed_entry_allows_requeue(self, queue):
        entry = queue.enqueue("p1", "AUTO")
        queue.decide(entry.id, QueueStatus.REJECTED)

        second = queue.enqueue("p1", "AUTO")

        assert second.id == 2
        assert queue.active_entry("p1") == second

    def test_other_problems_are_independent(self, queue):
        queue.enqueue("p1", "AUTO")
        queue.enqueue("p2", "AUTO")

        assert len(queue) == 2


class TestLifecycle:
    """Test PENDING -> IN_REVIEW -> APPROVED | REJECTED."""

    def test_assign(self, queue):
        entry = queue.enqueue("p1", "MANUAL")

        assigned = queue.assign(entry.id, "reviewer-1")

        assert assigned.status == QueueStatus.IN_REVIEW
        assert assigned.assigned_to == "reviewer-1"
        assert queue.get(entry.id) == assigned

    def test_decide(self, queue):
        entry = queue.enqueue("p1", "MANUAL")
        queue.assign(entry.id, "reviewer-1")

        decided = queue.decide(entry.id, "APPROVED", notes="looks good")

        assert decided.status == QueueStatus.APPROVED
        assert decided.notes == "looks good"
        assert queue.active_entry("p1") is None

    def test_closed_entry_cannot_be_decided_again(self, queue):
        entry = queue.enqueue("p1", "MANUAL")
        queue.decide(entry.id, "APPROVED")

        with pytest.raises(InvalidTransitionError):
            queue.decide(entry.id, "REJECTED")

    def test_closed_entry_cannot_be_assigned(self, queue):
        entry = queue.enqueue("p1", "MANUAL")
        queue.decide(entry.id, "REJECTED")

        with pytest.raises(InvalidTransitionError):
            queue.assign(entry.id, "reviewer-1")

    def test_decision_must_be_terminal(self):
        entry = QueueEntry(problem_id="p1", review_type=ReviewStage.AUTO, id=1)

        with pytest.raises(InvalidTransitionError):
            decide_entry(entry, QueueStatus.IN_REVIEW)

    def test_entry_functions_do_not_mutate(self):
        entry = QueueEntry(problem_id="p1", review_type=ReviewStage.AUTO, id=1)

        assign_entry(entry, "reviewer-1")

        assert entry.status == QueueStatus.PENDING

    def test_close_active_mirrors_content_decision(self, queue):
        queue.enqueue("p1", "AI")

        closed = queue.close_active("p1", QueueStatus.REJECTED)

        assert closed.status == QueueStatus.REJECTED
        assert queue.close_active("p1", QueueStatus.REJECTED) is None


class TestListing:
    def test_entries_ordered_by_priority_then_age(self, queue):
        queue.enqueue("low", "AUTO", priority=0)
        queue.enqueue("high", "AUTO", priority=5)
        queue.enqueue("low-2", "AUTO", priority=0)

        assert [e.problem_id for e in queue.entries()] == ["high", "low", "low-2"]

    def test_entries_filtered_by_type(self, queue):
        queue.enqueue("p1", "AUTO")
        queue.enqueue("p2", "MANUAL")

        assert [e.problem_id for e in queue.entries(review_type="MANUAL")] == ["p2"]

    def test_stats(self, queue):
        first = queue.enqueue("p1", "AUTO")
        queue.enqueue("p2", "MANUAL")
        queue.enqueue("p3", "MANUAL")
        queue.decide(first.id, "APPROVED")

        assert queue.stats() == {
            "byStatus": {"APPROVED": 1, "PENDING": 2},
            "byType": {"MANUAL": 2},
        }

    def test_to_dict(self, queue):
        data = queue.enqueue("p1", "AUTO", confidence=0.4).to_dict()

        assert data["problemId"] == "p1"
        assert data["reviewType"] == "AUTO"
        assert data["confidence"] == 0.4


class TestReviewSubmission:
    """Test submitted reviews."""

    @pytest.mark.parametrize("score", [-1, 100.5])
    def test_score_out_of_range(self, score):
        with pytest.raises(ValueError):
            ReviewSubmission("p1", ReviewStage.MANUAL, ReviewOutcome.APPROVED, score=score)

    @pytest.mark.parametrize("score", [0, 100, None])
    def test_score_in_range(self, score):
        submission = ReviewSubmission("p1", "MANUAL", "APPROVED", score=score)

        assert submission.stage == ReviewStage.MANUAL
        assert submission.outcome == ReviewOutcome.APPROVED

    def test_submit_review(self):
        submission = ReviewSubmission(
            "p1", "MANUAL", "APPROVED", score=95, comments="clear", reviewer_id="teacher-1"
        )

        transition = submit_review(ContentState.AWAITING_MANUAL, submission)

        assert transition.state == ContentState.APPROVED
        record = transition.effects[0]
        assert record.reviewer_id == "teacher-1"
        assert record.score == 95

    def test_submit_review_at_wrong_stage(self):
        submission = ReviewSubmission("p1", "MANUAL", "APPROVED")

        with pytest.raises(InvalidTransitionError):
            submit_review(ContentState.AWAITING_AI, submission)
