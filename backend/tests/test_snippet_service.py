"""
SnipStash Backend - Snippet Service Unit Tests
==============================================

What:  Tests for SnippetService business rules with the record store mocked.
How:   Patches snipstash.services.snippet_service.snippet_store; no database.

What we test:
    ✅ Tag normalisation (list, comma string, other)
    ✅ Create: owner mismatch, missing fields, language default
    ✅ Ownership guard: 404 before 403
    ✅ PUT merge rules and PATCH "no fields" rule
    ✅ Store returning no row becomes StoreError
"""

import pytest
from unittest.mock import AsyncMock, patch

from snipstash.exceptions import ForbiddenError, NotFoundError, StoreError, ValidationError
from snipstash.schemas.snippet import SnippetCreate, SnippetUpdate
from snipstash.services.snippet_service import SnippetService, normalize_tags

STORE = "snipstash.services.snippet_service.snippet_store"


class TestNormalizeTags:

    def test_list_passes_through(self):
        assert normalize_tags(["a", " b "]) == ["a", " b "]

    def test_comma_string_is_split_and_trimmed(self):
        assert normalize_tags("a, b ,,c , ") == ["a", "b", "c"]

    def test_empty_string_is_empty_list(self):
        assert normalize_tags("") == []

    @pytest.mark.parametrize("value", [None, 42, {"a": 1}])
    def test_other_values_become_empty_list(self, value):
        assert normalize_tags(value) == []


class TestCreateSnippet:

    def setup_method(self):
        self.service = SnippetService()

    @pytest.mark.asyncio
    async def test_user_id_mismatch_is_forbidden(self, mock_db_session):
        with patch(STORE) as store:
            store.create = AsyncMock()
            payload = SnippetCreate(title="t", code="c", userId="someone-else")

            with pytest.raises(ForbiddenError) as exc_info:
                await self.service.create_snippet(mock_db_session, "owner-1", payload)

            assert exc_info.value.message == "User ID mismatch"
            store.create.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"code": "c"}, {"title": "t"}, {"title": "", "code": "c"}])
    async def test_missing_title_or_code_writes_nothing(self, mock_db_session, body):
        with patch(STORE) as store:
            store.create = AsyncMock()

            with pytest.raises(ValidationError):
                await self.service.create_snippet(
                    mock_db_session, "owner-1", SnippetCreate(**body)
                )

            store.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_defaults_language_and_normalises_tags(self, mock_db_session, make_snippet):
        with patch(STORE) as store:
            store.create = AsyncMock(return_value=make_snippet(language="text", tags=["x", "y"]))

            result = await self.service.create_snippet(
                mock_db_session,
                "owner-1",
                SnippetCreate(title="t", code="c", tags="x, y", userId="owner-1"),
            )

            kwargs = store.create.await_args.kwargs
            assert kwargs["language"] == "text"
            assert kwargs["tags"] == ["x", "y"]
            assert kwargs["user_id"] == "owner-1"
            assert result.language == "text"


class TestOwnership:

    def setup_method(self):
        self.service = SnippetService()

    @pytest.mark.asyncio
    async def test_missing_snippet_is_not_found(self, mock_db_session):
        with patch(STORE) as store:
            store.find_unique = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError):
                await self.service.get_owned(mock_db_session, "owner-1", "nope")

    @pytest.mark.asyncio
    async def test_other_owner_is_forbidden(self, mock_db_session, make_snippet):
        with patch(STORE) as store:
            store.find_unique = AsyncMock(return_value=make_snippet(user_id="owner-2"))

            with pytest.raises(ForbiddenError) as exc_info:
                await self.service.get_owned(mock_db_session, "owner-1", "id", action="delete")

            assert "delete" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_get_snippet_has_no_ownership_check(self, mock_db_session, make_snippet):
        with patch(STORE) as store:
            store.find_unique = AsyncMock(return_value=make_snippet(user_id="owner-2"))

            result = await self.service.get_snippet(mock_db_session, "id")

            assert result.user_id == "owner-2"


class TestUpdates:

    def setup_method(self):
        self.service = SnippetService()

    @pytest.mark.asyncio
    async def test_put_merges_over_existing(self, mock_db_session, make_snippet):
        existing = make_snippet(title="old", description="keep me")
        with patch(STORE) as store:
            store.update = AsyncMock(return_value=existing)

            await self.service.replace_snippet(
                mock_db_session, existing, SnippetUpdate(title="new", tags="a,b")
            )

            _, snippet_id, changes = store.update.await_args.args
            assert snippet_id == existing.id
            assert changes["title"] == "new"
            assert changes["description"] == "keep me"
            assert changes["code"] == existing.code
            assert changes["tags"] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_put_requires_code_after_merge(self, mock_db_session, make_snippet):
        existing = make_snippet()
        with patch(STORE) as store:
            store.update = AsyncMock()

            with pytest.raises(ValidationError) as exc_info:
                await self.service.replace_snippet(
                    mock_db_session, existing, SnippetUpdate(code="")
                )

            assert exc_info.value.message == "Code is required"
            store.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_patch_without_fields_is_rejected(self, mock_db_session, make_snippet):
        with patch(STORE) as store:
            store.update = AsyncMock()

            with pytest.raises(ValidationError) as exc_info:
                await self.service.patch_snippet(
                    mock_db_session, make_snippet(), SnippetUpdate(title=None)
                )

            assert exc_info.value.message == "No fields to update"
            store.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_patch_sends_only_provided_fields(self, mock_db_session, make_snippet):
        existing = make_snippet()
        with patch(STORE) as store:
            store.update = AsyncMock(return_value=existing)

            await self.service.patch_snippet(
                mock_db_session, existing, SnippetUpdate(language="go")
            )

            _, _, changes = store.update.await_args.args
            assert changes == {"language": "go"}

    @pytest.mark.asyncio
    async def test_no_row_returned_is_store_error(self, mock_db_session, make_snippet):
        with patch(STORE) as store:
            store.update = AsyncMock(return_value=None)

            with pytest.raises(StoreError) as exc_info:
                await self.service.patch_snippet(
                    mock_db_session, make_snippet(), SnippetUpdate(title="x")
                )

            assert exc_info.value.message == "Failed to update snippet in database"

    @pytest.mark.asyncio
    async def test_put_explicit_null_is_not_merged(self, mock_db_session, make_snippet):
        existing = make_snippet(description="old")
        with patch(STORE) as store:
            store.update = AsyncMock(return_value=existing)

            with pytest.raises(ValidationError):
                await self.service.replace_snippet(
                    mock_db_session, existing, SnippetUpdate(code=None)
                )

            await self.service.replace_snippet(
                mock_db_session, existing, SnippetUpdate(description=None)
            )
            _, _, changes = store.update.await_args.args
            assert changes["description"] is None

    @pytest.mark.asyncio
    async def test_patch_empty_tag_list_counts_as_a_change(self, mock_db_session, make_snippet):
        existing = make_snippet(tags=["a"])
        with patch(STORE) as store:
            store.update = AsyncMock(return_value=existing)

            await self.service.patch_snippet(mock_db_session, existing, SnippetUpdate(tags=[]))

            _, _, changes = store.update.await_args.args
            assert changes == {"tags": []}
