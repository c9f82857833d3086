"""Tests for the comment lifecycle manager against a real SQLite store."""

import pytest

from app.core.errors import Forbidden, NotFound, ValidationFailed
from app.models.comment import Comment, CommentCreate, CommentStatus
from app.services.comment_service import CommentService


@pytest.fixture
def service(store):
    return CommentService(store)


def _payload(**overrides) -> CommentCreate:
    data = {
        "normalizedKey": "acme-widget-9000",
        "type": "correction",
        "body": "Listed weight is wrong, should be 2.3kg",
    }
    data.update(overrides)
    return CommentCreate.model_validate(data)


class TestCreate:
    def test_returns_id_status_and_secret(self, service):
        created = service.create(_payload())
        assert created.id
        assert created.status == CommentStatus.PENDING
        assert len(created.edit_key) == 48

    def test_secret_not_stored_raw(self, service):
        created = service.create(_payload())
        record = service.repo.get(created.id)
        assert record.edit_key_hash
        assert record.edit_key_hash != created.edit_key

    def test_body_whitespace_normalized(self, service):
        created = service.create(_payload(body="  too   many \n\n spaces here  "))
        assert service.repo.get(created.id).body == "too many spaces here"

    def test_auto_visible(self, store):
        created = CommentService(store, auto_visible=True).create(_payload())
        assert created.status == CommentStatus.VISIBLE
        assert len(CommentService(store).list_public("acme-widget-9000")) == 1

    def test_decoy_persists_nothing(self, service):
        created = service.create(_payload(hp="i am a bot"))
        assert created.id
        assert created.status == CommentStatus.PENDING
        assert len(created.edit_key) == 48
        assert service.repo.get(created.id) is None
        assert service.list_for_moderation() == []

    def test_whitespace_decoy_is_not_spam(self, service):
        created = service.create(_payload(hp="   "))
        assert service.repo.get(created.id) is not None


class TestPublicListing:
    def test_fresh_comment_not_listed_until_visible(self, service):
        created = service.create(_payload())
        assert service.list_public("acme-widget-9000") == []

        service.set_status(created.id, "visible")
        items = service.list_public("acme-widget-9000")
        assert len(items) == 1
        assert items[0].body == "Listed weight is wrong, should be 2.3kg"

    def test_never_exposes_email_or_digest(self, service):
        created = service.create(_payload(authorEmail="ann@example.com"))
        service.approve(created.id)

        dumped = service.list_public("acme-widget-9000")[0].model_dump(by_alias=True)
        assert "authorEmail" not in dumped
        assert "editKeyHash" not in dumped
        assert created.edit_key not in str(dumped)

    def test_only_matching_key(self, service):
        service.approve(service.create(_payload()).id)
        service.approve(service.create(_payload(normalizedKey="other-entry")).id)
        assert [c.normalized_key for c in service.list_public("other-entry")] == ["other-entry"]

    def test_hidden_not_listed(self, service):
        created = service.create(_payload())
        service.approve(created.id)
        service.hide(created.id)
        assert service.list_public("acme-widget-9000") == []

    def test_blank_key_rejected(self, service):
        with pytest.raises(ValidationFailed):
            service.list_public("   ")


class TestModeration:
    def test_listing_includes_email_not_digest(self, service):
        service.create(_payload(authorEmail="ann@example.com"))
        items = service.list_for_moderation()
        dumped = items[0].model_dump(by_alias=True)
        assert dumped["authorEmail"] == "ann@example.com"
        assert "editKeyHash" not in dumped

    def test_listing_filters(self, service):
        a = service.create(_payload())
        service.create(_payload(normalizedKey="other-entry"))
        service.approve(a.id)

        assert [c.id for c in service.list_for_moderation(status="visible")] == [a.id]
        assert len(service.list_for_moderation(normalized_key="other-entry")) == 1
        assert len(service.list_for_moderation(limit=1)) == 1

    def test_set_status_returns_updated_record(self, service):
        created = service.create(_payload())
        record = service.set_status(created.id, CommentStatus.HIDDEN)
        assert isinstance(record, Comment)
        assert record.status == "hidden"

    def test_reapplying_status_is_noop(self, service):
        created = service.create(_payload())
        service.approve(created.id)
        assert service.approve(created.id).status == "visible"

    def test_pending_target_rejected(self, service):
        created = service.create(_payload())
        with pytest.raises(ValidationFailed):
            service.set_status(created.id, "pending")

    def test_unknown_id(self, service):
        with pytest.raises(NotFound):
            service.approve("does-not-exist")

    def test_delete(self, service):
        created = service.create(_payload())
        service.delete(created.id)
        assert service.repo.get(created.id) is None
        with pytest.raises(NotFound):
            service.delete(created.id)

    def test_status_change_on_deleted_record(self, service):
        created = service.create(_payload())
        service.delete(created.id)
        with pytest.raises(NotFound):
            service.hide(created.id)


class TestSelfService:
    def test_self_edit_with_secret(self, service):
        created = service.create(_payload())
        record = service.self_edit(created.id, "Actually   it is 2.4kg", created.edit_key)
        assert record.body == "Actually it is 2.4kg"
        assert record.status == "pending"

    def test_self_edit_keeps_visibility(self, service):
        created = service.create(_payload())
        service.approve(created.id)
        service.self_edit(created.id, "Updated body text", created.edit_key)
        assert service.list_public("acme-widget-9000")[0].body == "Updated body text"

    @pytest.mark.parametrize("secret", [None, "", "0" * 48])
    def test_self_edit_rejected_without_matching_secret(self, service, secret):
        created = service.create(_payload())
        with pytest.raises(Forbidden):
            service.self_edit(created.id, "Hijacked body text", secret)
        assert service.repo.get(created.id).body == "Listed weight is wrong, should be 2.3kg"

    def test_secret_of_other_comment_rejected(self, service):
        first = service.create(_payload())
        second = service.create(_payload())
        with pytest.raises(Forbidden):
            service.self_delete(first.id, second.edit_key)

    def test_self_delete_sequence(self, service):
        created = service.create(_payload())

        with pytest.raises(Forbidden):
            service.self_delete(created.id, "wrong-secret")

        service.self_delete(created.id, created.edit_key)

        with pytest.raises(NotFound):
            service.self_delete(created.id, created.edit_key)

    def test_self_edit_after_delete_does_not_resurrect(self, service):
        created = service.create(_payload())
        service.delete(created.id)
        with pytest.raises(NotFound):
            service.self_edit(created.id, "Back from the dead", created.edit_key)
        assert service.repo.get(created.id) is None

    def test_claimed_comment_keeps_working_with_secret(self, service, store):
        from app.services.claim_linker import ClaimLinker

        created = service.create(_payload(authorEmail="ann@example.com"))
        ClaimLinker(store).claim_by_email("user-1", "ann@example.com")
        record = service.self_edit(created.id, "Edited after claim", created.edit_key)
        assert record.author_id == "user-1"
