"""Unit tests for optimistic versioned saves."""

import pytest
from types import SimpleNamespace

from bson import ObjectId

from common.database import mutate_versioned, save_versioned
from common.utils.exceptions import ConflictException


def _result(matched):
    return SimpleNamespace(matched_count=matched, modified_count=matched)


def _add_tag(doc):
    doc.setdefault("tags", []).append("python")


# ─────────────────────────────────────────────────────────────────
# save_versioned
# ─────────────────────────────────────────────────────────────────


class TestSaveVersioned:
    @pytest.mark.asyncio
    async def test_bumps_version(self, mock_collection):
        doc = {"_id": ObjectId(), "version": 2, "title": "x"}
        mock_collection.replace_one.return_value = _result(1)

        assert await save_versioned(mock_collection, doc) is True

        query, replacement = mock_collection.replace_one.call_args.args
        assert query == {"_id": doc["_id"], "version": 2}
        assert replacement["version"] == 3
        assert doc["version"] == 3
        assert "updatedAt" in doc

    @pytest.mark.asyncio
    async def test_conflict_leaves_document(self, mock_collection):
        doc = {"_id": ObjectId(), "version": 2}
        mock_collection.replace_one.return_value = _result(0)

        assert await save_versioned(mock_collection, doc) is False
        assert doc["version"] == 2

    @pytest.mark.asyncio
    async def test_unversioned_document(self, mock_collection):
        doc = {"_id": ObjectId()}
        mock_collection.replace_one.return_value = _result(1)

        await save_versioned(mock_collection, doc)

        query, replacement = mock_collection.replace_one.call_args.args
        assert query["version"] is None
        assert replacement["version"] == 1


# ─────────────────────────────────────────────────────────────────
# mutate_versioned
# ─────────────────────────────────────────────────────────────────


class TestMutateVersioned:
    @pytest.mark.asyncio
    async def test_retries_after_conflict(self, mock_collection):
        oid = ObjectId()
        mock_collection.find_one.side_effect = [
            {"_id": oid, "version": 1, "tags": []},
            {"_id": oid, "version": 2, "tags": ["rust"]},
        ]
        mock_collection.replace_one.side_effect = [_result(0), _result(1)]

        doc = await mutate_versioned(mock_collection, {"_id": oid}, _add_tag)

        assert doc["tags"] == ["rust", "python"]
        assert doc["version"] == 3
        assert mock_collection.replace_one.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_document(self, mock_collection):
        mock_collection.find_one.return_value = None

        assert await mutate_versioned(mock_collection, {"_id": ObjectId()}, _add_tag) is None
        mock_collection.replace_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self, mock_collection):
        mock_collection.find_one.side_effect = lambda query: {"_id": query["_id"], "version": 1}
        mock_collection.replace_one.return_value = _result(0)

        with pytest.raises(ConflictException) as exc:
            await mutate_versioned(mock_collection, {"_id": ObjectId()}, _add_tag, retries=3)

        assert exc.value.code == "CONCURRENT_MODIFICATION"
        assert mock_collection.replace_one.await_count == 3

    @pytest.mark.asyncio
    async def test_mutation_error_writes_nothing(self, mock_collection):
        mock_collection.find_one.return_value = {"_id": ObjectId(), "version": 0}

        def reject(doc):
            raise ValueError("nope")

        with pytest.raises(ValueError):
            await mutate_versioned(mock_collection, {"_id": ObjectId()}, reject)
        mock_collection.replace_one.assert_not_called()
