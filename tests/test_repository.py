"""Tests for the generic repository over SQLModel tables."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import Unexpected
from app.core.repository import Repository, UpdateResult
from app.models.comment import PUBLIC_COMMENT_FIELDS, Comment


@pytest.fixture
def repo(store):
    return Repository(store, Comment)


def _comment(**overrides) -> Comment:
    data = dict(normalized_key="k", type="general", body="hello world", status="pending")
    data.update(overrides)
    return Comment(**data)


class TestReads:
    def test_insert_and_get(self, repo):
        created = repo.insert_one(_comment())
        fetched = repo.get(created.id)
        assert fetched.body == "hello world"
        assert repo.get("nope") is None

    def test_find_many_filters_and_limits(self, repo):
        for i in range(3):
            repo.insert_one(_comment(body=f"body {i}", status="visible"))
        repo.insert_one(_comment(status="hidden"))

        visible = repo.find_many(Comment.status == "visible")
        assert len(visible) == 3
        assert len(repo.find_many(Comment.status == "visible", limit=2)) == 2

    def test_find_projected_loads_only_requested_columns(self, repo):
        repo.insert_one(_comment(author_email="a@example.com", edit_key_hash="d" * 64))
        rows = repo.find_projected(PUBLIC_COMMENT_FIELDS, Comment.normalized_key == "k")
        assert set(rows[0]) == set(PUBLIC_COMMENT_FIELDS)
        assert "author_email" not in rows[0]
        assert "edit_key_hash" not in rows[0]


class TestWrites:
    def test_update_one(self, repo):
        created = repo.insert_one(_comment())
        updated = repo.update_one(created.id, {"status": "visible"})
        assert updated.status == "visible"

    def test_update_one_conditional_miss(self, repo):
        created = repo.insert_one(_comment(status="hidden"))
        assert repo.update_one(created.id, {"status": "visible"}, Comment.status == "pending") is None
        assert repo.get(created.id).status == "hidden"

    def test_update_one_missing_row(self, repo):
        assert repo.update_one("missing", {"status": "visible"}) is None

    def test_update_many_counts(self, repo):
        repo.insert_one(_comment(author_email="a@example.com"))
        repo.insert_one(_comment(author_email="a@example.com", author_id="u1"))
        repo.insert_one(_comment(author_email="b@example.com"))

        result = repo.update_many(
            [Comment.author_email == "a@example.com"], {"author_id": "u1"}
        )
        # both rows match, only the unclaimed one changes
        assert result == UpdateResult(matched=2, modified=1)

    def test_delete_one(self, repo):
        created = repo.insert_one(_comment())
        assert repo.delete_one(created.id) is True
        assert repo.delete_one(created.id) is False


class TestFailures:
    def test_operational_error_becomes_store_failure(self, repo, store):
        err = OperationalError("SELECT 1", {}, Exception("disk I/O error"))
        with patch.object(store, "retrying", side_effect=err):
            with pytest.raises(Unexpected) as exc_info:
                repo.get("anything")
        assert exc_info.value.code == "CMT-DB-001"
