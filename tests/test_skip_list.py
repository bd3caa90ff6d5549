"""Tests for skip-list matching and stores."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from contact_enrichment.core.config import Settings
from contact_enrichment.services.skip_list import (
    FileSkipListStore,
    SkipList,
    SupabaseSkipListStore,
    create_skip_list_store,
    normalize_entry,
)


class TestSkipListMatching:
    """Tests for SkipList.matches."""

    @pytest.fixture
    def skip_list(self) -> SkipList:
        return SkipList.from_entries(["acme.com", "@Initech.com", "ceo@globex.com", "  "])

    @pytest.mark.parametrize(
        "email",
        [
            "jane@acme.com",
            "Jane@ACME.com",
            "jane@eu.acme.com",
            "bill@initech.com",
            "ceo@globex.com",
        ],
    )
    def test_matches(self, skip_list: SkipList, email: str) -> None:
        assert skip_list.matches(email) is True

    @pytest.mark.parametrize(
        "email",
        ["jane@notacme.com", "jane@acme.co", "cfo@globex.com", "not-an-email"],
    )
    def test_does_not_match(self, skip_list: SkipList, email: str) -> None:
        assert skip_list.matches(email) is False

    def test_blank_entries_are_dropped(self, skip_list: SkipList) -> None:
        assert len(skip_list) == 3

    def test_normalize_entry(self) -> None:
        assert normalize_entry("  @Acme.COM ") == "acme.com"


class TestFileSkipListStore:
    """Tests for the file-backed store."""

    async def test_reads_entries_and_ignores_comments(self, tmp_path: Path) -> None:
        path = tmp_path / "skip_list.txt"
        path.write_text("# internal domains\nacme.com\n\nceo@globex.com  # asked us not to\n")

        skip_list = await FileSkipListStore(path).load()

        assert skip_list.entries == frozenset({"acme.com", "ceo@globex.com"})

    async def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        skip_list = await FileSkipListStore(tmp_path / "missing.txt").load()

        assert len(skip_list) == 0

    async def test_edits_apply_on_next_load(self, tmp_path: Path) -> None:
        path = tmp_path / "skip_list.txt"
        path.write_text("acme.com\n")
        store = FileSkipListStore(path)
        assert (await store.load()).matches("jane@initech.com") is False

        path.write_text("acme.com\ninitech.com\n")

        assert (await store.load()).matches("jane@initech.com") is True


class TestSupabaseSkipListStore:
    """Tests for the Supabase-backed store."""

    async def test_reads_value_column(self) -> None:
        client = MagicMock()
        client.table.return_value.select.return_value.execute.return_value = MagicMock(
            data=[{"value": "Acme.com"}, {"value": None}, {"value": "ceo@globex.com"}]
        )

        skip_list = await SupabaseSkipListStore(client=client).load()

        client.table.assert_called_once_with("enrichment_skip_list")
        client.table.return_value.select.assert_called_once_with("value")
        assert skip_list.entries == frozenset({"acme.com", "ceo@globex.com"})

    async def test_empty_table(self) -> None:
        client = MagicMock()
        client.table.return_value.select.return_value.execute.return_value = MagicMock(data=None)

        skip_list = await SupabaseSkipListStore(client=client, table="blocked").load()

        client.table.assert_called_once_with("blocked")
        assert len(skip_list) == 0


class TestCreateSkipListStore:
    """Tests for store selection from settings."""

    def test_file_source(self) -> None:
        store = create_skip_list_store(
            Settings(SKIP_LIST_SOURCE="file", SKIP_LIST_PATH="/tmp/skip.txt")
        )

        assert isinstance(store, FileSkipListStore)

    def test_supabase_source(self) -> None:
        store = create_skip_list_store(
            Settings(
                SKIP_LIST_SOURCE="supabase",
                SUPABASE_URL="https://example.supabase.co",
                SUPABASE_SERVICE_ROLE_KEY="service-key",
            )
        )

        assert isinstance(store, SupabaseSkipListStore)
