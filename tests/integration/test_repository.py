"""
Integration tests for the SQLAlchemy problem repository.

Runs against an in-memory SQLite database.
"""
import pytest

from problemqa.core.errors import DuplicateQueueEntryError, InvalidTransitionError
from problemqa.core.models import (
    QueueStatus,
    ReviewOutcome,
    ReviewStage,
    SourceInfo,
)
from problemqa.quality.scorer import calculate_quality_scores
from problemqa.workflow.batch import BatchReviewer
from problemqa.workflow.states import (
    ContentState,
    record_review,
    submit,
)

pytestmark = pytest.mark.integration


def _submit(repository, record):
    problem_id = repository.add_problem(record)
    repository.apply_transition(problem_id, submit(ContentState.DRAFT))
    return problem_id


def _advance_to(repository, problem_id, target):
    """Approve stage by stage until the problem awaits ``target``."""
    for stage in (ReviewStage.AUTO, ReviewStage.AI, ReviewStage.MANUAL):
        state = repository.state_of(repository.get(problem_id))
        if state.awaiting_stage == target:
            return
        repository.apply_transition(problem_id, record_review(state, stage, ReviewOutcome.APPROVED))


class TestProblems:
    """Test storing and reading problems."""

    def test_add_problem_projects_state(self, repository, good_record):
        problem_id = repository.add_problem(good_record, ContentState.AWAITING_AI)

        problem = repository.get(problem_id)
        assert problem.status == "PENDING"
        assert problem.review_stage == "AI"
        assert repository.state_of(problem) == ContentState.AWAITING_AI

    def test_to_record_round_trip(self, repository, good_record):
        source = repository.add_source("School A", grade="B")
        problem_id = repository.add_problem(good_record, source_id=source.id)

        record = repository.to_record(repository.get(problem_id))

        assert record.id == problem_id
        assert record.options == good_record.options
        assert record.answer == "③"
        assert record.source == SourceInfo(grade="B", trust_score=None)

    def test_corpus(self, repository, good_record, unanswered_record):
        first = repository.add_problem(good_record)
        second = repository.add_problem(unanswered_record)

        corpus = repository.corpus(exclude_id=first)

        assert [entry.id for entry in corpus] == [second]

    def test_missing_problem(self, repository):
        with pytest.raises(LookupError):
            repository.apply_transition("missing", submit(ContentState.DRAFT))


class TestQueue:
    """Test the one-active-item-per-problem rule against the database."""

    def test_submit_enqueues_auto_review(self, repository, good_record):
        problem_id = _submit(repository, good_record)

        item = repository.active_queue_item(problem_id)
        assert item.review_type == "AUTO"
        assert item.status == "PENDING"

    def test_duplicate_enqueue_is_refused(self, repository, good_record):
        problem_id = _submit(repository, good_record)

        with pytest.raises(DuplicateQueueEntryError):
            repository.enqueue(problem_id, ReviewStage.MANUAL)

        assert len(repository.queue_items()) == 1

    def test_duplicate_refused_while_in_review(self, repository, good_record):
        problem_id = _submit(repository, good_record)
        item = repository.active_queue_item(problem_id)
        repository.assign_queue_item(item.id, "teacher-1")

        with pytest.raises(DuplicateQueueEntryError):
            repository.enqueue(problem_id, ReviewStage.MANUAL)

    def test_active_item_follows_stage(self, repository, good_record):
        problem_id = _submit(repository, good_record)

        _advance_to(repository, problem_id, ReviewStage.MANUAL)

        assert repository.active_queue_item(problem_id).review_type == "MANUAL"

    def test_rejection_closes_queue_item(self, repository, unanswered_record):
        problem_id = _submit(repository, unanswered_record)
        state = repository.state_of(repository.get(problem_id))

        repository.apply_transition(
            problem_id, record_review(state, ReviewStage.AUTO, ReviewOutcome.REJECTED)
        )

        assert repository.active_queue_item(problem_id) is None
        assert repository.queue_items(status=QueueStatus.REJECTED)[0].problem_id == problem_id

    def test_queue_items_ordered_by_priority(self, repository, good_record, unanswered_record):
        low = repository.add_problem(good_record)
        high = repository.add_problem(unanswered_record)
        repository.enqueue(low, "MANUAL", priority=1)
        repository.enqueue(high, "MANUAL", priority=9)

        assert [i.problem_id for i in repository.queue_items(review_type="MANUAL")] == [high, low]

    def test_queue_stats(self, repository, good_record, unanswered_record):
        _submit(repository, good_record)
        _submit(repository, unanswered_record)

        stats = repository.queue_stats()

        assert stats["byStatus"] == {"PENDING": 2}
        assert stats["byType"] == {"AUTO": 2}


class TestQueueDecisions:
    """Test closing queue items and mirroring the decision."""

    def test_approve_from_queue(self, repository, good_record):
        problem_id = _submit(repository, good_record)
        _advance_to(repository, problem_id, ReviewStage.MANUAL)
        item = repository.active_queue_item(problem_id)

        repository.decide_queue_item(item.id, "APPROVED", notes="ok")

        problem = repository.get(problem_id)
        assert problem.status == "APPROVED"
        assert problem.review_stage == "MANUAL"
        assert item.status == "APPROVED"
        assert item.notes == "ok"
        assert problem.quality_score is not None

    def test_reject_from_queue(self, repository, good_record):
        problem_id = _submit(repository, good_record)
        item = repository.active_queue_item(problem_id)

        repository.decide_queue_item(item.id, QueueStatus.REJECTED)

        problem = repository.get(problem_id)
        assert problem.status == "REJECTED"
        assert problem.review_stage == "NONE"
        assert problem.quality_score is None

    def test_decided_item_cannot_be_decided_again(self, repository, good_record):
        problem_id = _submit(repository, good_record)
        item = repository.active_queue_item(problem_id)
        repository.decide_queue_item(item.id, "REJECTED")

        with pytest.raises(InvalidTransitionError):
            repository.decide_queue_item(item.id, "APPROVED")

    def test_closed_item_cannot_be_assigned(self, repository, good_record):
        problem_id = _submit(repository, good_record)
        item = repository.active_queue_item(problem_id)
        repository.decide_queue_item(item.id, "REJECTED")

        with pytest.raises(InvalidTransitionError):
            repository.assign_queue_item(item.id, "teacher-1")


class TestReviewHistory:
    """Test that review records are append-only and ordered."""

    def test_each_stage_appends_a_record(self, repository, good_record):
        problem_id = _submit(repository, good_record)

        _advance_to(repository, problem_id, ReviewStage.MANUAL)
        state = repository.state_of(repository.get(problem_id))
        repository.apply_transition(
            problem_id,
            record_review(state, ReviewStage.MANUAL, ReviewOutcome.NEEDS_REVISION, comments="typo"),
        )

        reviews = repository.reviews(problem_id)
        assert [(r.stage, r.status) for r in reviews] == [
            ("AUTO", "APPROVED"),
            ("AI", "APPROVED"),
            ("MANUAL", "NEEDS_REVISION"),
        ]
        assert reviews[-1].comments == "typo"

    def test_issues_are_stored_as_json(self, repository, good_record):
        problem_id = _submit(repository, good_record)
        state = repository.state_of(repository.get(problem_id))

        repository.apply_transition(
            problem_id,
            record_review(
                state,
                ReviewStage.AUTO,
                ReviewOutcome.APPROVED,
                issues={"issues": [], "duplicates": [{"id": "x", "similarity": 0.9}]},
            ),
        )

        assert repository.reviews(problem_id)[0].issues["duplicates"][0]["id"] == "x"


class TestQualityScores:
    """Test that stored scores are always a complete, consistent set."""

    def test_final_approval_recomputes_scores(self, repository, good_record):
        problem_id = _submit(repository, good_record)
        _advance_to(repository, problem_id, ReviewStage.MANUAL)
        state = repository.state_of(repository.get(problem_id))

        repository.apply_transition(
            problem_id, record_review(state, ReviewStage.MANUAL, ReviewOutcome.APPROVED)
        )

        problem = repository.get(problem_id)
        expected = calculate_quality_scores(repository.to_record(problem))
        assert problem.quality_score == expected.overall_score
        assert problem.accuracy_score == expected.accuracy_score
        assert problem.usage_score == expected.usage_score
        assert repository.active_queue_item(problem_id) is None

    def test_overall_is_weighted_sum_of_stored_components(self, repository, good_record):
        problem_id = repository.add_problem(good_record, ContentState.APPROVED)

        repository.recompute_quality(problem_id)

        p = repository.get(problem_id)
        weighted = (
            p.accuracy_score * 0.3
            + p.clarity_score * 0.2
            + p.difficulty_fit * 0.15
            + p.trust_score * 0.2
            + p.usage_score * 0.15
        )
        assert p.quality_score == pytest.approx(weighted, abs=0.05)

    def test_recompute_approved_only(self, repository, good_record, unanswered_record):
        approved = repository.add_problem(good_record, ContentState.APPROVED)
        pending = repository.add_problem(unanswered_record, ContentState.AWAITING_AI)

        assert repository.recompute_approved() == 1
        assert repository.get(approved).quality_score is not None
        assert repository.get(pending).quality_score is None

    def test_recompute_uses_source_trust(self, repository, good_record):
        source = repository.add_source("Open data", grade="A")
        problem_id = repository.add_problem(good_record, ContentState.APPROVED, source_id=source.id)

        scores = repository.recompute_quality(problem_id)

        assert scores.trust_score == 100


class TestBatchReviewStore:
    """Test the repository as the batch reviewer's store."""

    def test_pending_ai_review(self, repository, good_record, unanswered_record):
        repository.add_problem(good_record, ContentState.AWAITING_AI)
        repository.add_problem(unanswered_record, ContentState.AWAITING_MANUAL)

        items = repository.pending_ai_review(limit=10)

        assert len(items) == 1
        assert items[0][1] == ContentState.AWAITING_AI

    def test_batch_run(self, repository, good_record, unanswered_record):
        good_id = repository.add_problem(good_record, ContentState.AWAITING_AI)
        bad_id = repository.add_problem(unanswered_record, ContentState.AWAITING_AI)
        repository.enqueue(good_id, "AI")
        repository.enqueue(bad_id, "AI")

        report = BatchReviewer().run(repository, limit=10)

        assert report.processed == 2
        assert repository.state_of(repository.get(good_id)) == ContentState.AWAITING_MANUAL
        assert repository.state_of(repository.get(bad_id)) == ContentState.REJECTED
        assert repository.active_queue_item(good_id).review_type == "MANUAL"
        assert repository.active_queue_item(bad_id) is None
        assert repository.reviews(bad_id)[0].stage == "AI"
        assert repository.reviews(bad_id)[0].score is not None

    def test_repeated_runs_reach_every_problem(self, repository, good_record, sample_mc_text):
        """A problem the AI stage sends back for revision is not picked up again."""
        from problemqa.segmentation.segmenter import parse_problems_from_text

        revise_record = parse_problems_from_text(sample_mc_text).problems[0].to_record()
        revise_id = repository.add_problem(revise_record, ContentState.AWAITING_AI)
        good_id = repository.add_problem(good_record, ContentState.AWAITING_AI)

        reviewed = [
            [o.problem_id for o in BatchReviewer().run(repository, limit=1).outcomes]
            for _ in range(3)
        ]

        assert sorted(reviewed[0] + reviewed[1]) == sorted([revise_id, good_id])
        assert reviewed[2] == []
        for problem_id in (revise_id, good_id):
            assert [r.stage for r in repository.reviews(problem_id)] == ["AI"]
        assert repository.state_of(repository.get(revise_id)) == ContentState.AWAITING_MANUAL
        assert repository.reviews(revise_id)[0].status == "NEEDS_REVISION"
