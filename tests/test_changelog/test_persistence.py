"""Tests for ChangeLogPersistenceAdapter error wrapping."""

from __future__ import annotations

import pytest

from resume_revisions.changelog.persistence import ChangeLogPersistenceAdapter
from resume_revisions.errors import PersistenceFailed
from resume_revisions.models.changelog import ChangeLogEntry


class TestChangeLogPersistenceAdapter:
    async def test_write_returns_authoritative_list(self, fake_store):
        adapter = ChangeLogPersistenceAdapter(fake_store, "job-1")
        result = await adapter.write(ChangeLogEntry(id="a"))
        assert [e.id for e in result] == ["a"]
        assert fake_store.calls == [("write", "a")]

    async def test_write_failure_wrapped(self, fake_store):
        fake_store.fail_write = True
        adapter = ChangeLogPersistenceAdapter(fake_store, "job-1")

        with pytest.raises(PersistenceFailed) as exc_info:
            await adapter.write(ChangeLogEntry(id="a"), phase="accept")

        error = exc_info.value
        assert error.suggestion_id == "a"
        assert error.phase == "accept"
        assert "store unavailable" in error.message

    async def test_remove_failure_wrapped(self, fake_store):
        fake_store.fail_remove = True
        adapter = ChangeLogPersistenceAdapter(fake_store, "job-1")

        with pytest.raises(PersistenceFailed) as exc_info:
            await adapter.remove("a", phase="revert")
        assert exc_info.value.phase == "revert"

    async def test_load_failure_wrapped(self, fake_store):
        fake_store.fail_load = True
        adapter = ChangeLogPersistenceAdapter(fake_store, "job-1")
        with pytest.raises(PersistenceFailed):
            await adapter.load()

    async def test_remove_flags_entry(self, fake_store):
        adapter = ChangeLogPersistenceAdapter(fake_store, "job-1")
        await adapter.write(ChangeLogEntry(id="a"))
        result = await adapter.remove("a")
        assert result[0].reverted is True
