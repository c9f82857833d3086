"""Tests for attaching anonymous comments to a user identity."""

import pytest

from app.core.errors import ValidationFailed
from app.models.comment import CommentCreate
from app.services.claim_linker import ClaimLinker
from app.services.comment_service import CommentService


@pytest.fixture
def comments(store):
    return CommentService(store)


@pytest.fixture
def linker(store):
    return ClaimLinker(store)


def _create(comments: CommentService, email=None, key="acme-widget-9000"):
    payload = {"normalizedKey": key, "type": "general", "body": "Nice widget overall"}
    if email:
        payload["authorEmail"] = email
    return comments.create(CommentCreate.model_validate(payload))


class TestClaimByEmail:
    def test_claims_matching_unclaimed_comments(self, comments, linker):
        a = _create(comments, "ann@example.com")
        b = _create(comments, "ann@example.com", key="other-entry")
        other = _create(comments, "bob@example.com")

        result = linker.claim_by_email("user-ann", "ann@example.com")
        assert (result.matched, result.modified) == (2, 2)

        assert comments.repo.get(a.id).author_id == "user-ann"
        assert comments.repo.get(b.id).author_id == "user-ann"
        assert comments.repo.get(other.id).author_id is None

    def test_second_run_matches_nothing(self, comments, linker):
        _create(comments, "ann@example.com")
        linker.claim_by_email("user-ann", "ann@example.com")

        result = linker.claim_by_email("user-ann", "ann@example.com")
        assert (result.matched, result.modified) == (0, 0)

    def test_already_claimed_not_reassigned(self, comments, linker):
        created = _create(comments, "ann@example.com")
        linker.claim_by_email("user-ann", "ann@example.com")
        linker.claim_by_email("user-mallory", "ann@example.com")
        assert comments.repo.get(created.id).author_id == "user-ann"

    def test_status_and_digest_untouched(self, comments, linker):
        created = _create(comments, "ann@example.com")
        comments.approve(created.id)
        before = comments.repo.get(created.id)

        linker.claim_by_email("user-ann", "ann@example.com")
        after = comments.repo.get(created.id)
        assert after.status == before.status == "visible"
        assert after.edit_key_hash == before.edit_key_hash

    def test_exact_match_only(self, comments, linker):
        _create(comments, "ann@example.com")
        result = linker.claim_by_email("user-ann", "someone-else@example.com")
        assert result.matched == 0

    def test_comments_without_email_never_match(self, comments, linker):
        _create(comments)
        assert linker.claim_by_email("user-ann", "ann@example.com").matched == 0

    @pytest.mark.parametrize("user_id,email", [("", "ann@example.com"), ("user-ann", "")])
    def test_blank_arguments_rejected(self, linker, user_id, email):
        with pytest.raises(ValidationFailed):
            linker.claim_by_email(user_id, email)
