"""Skip list: domains and addresses that are never enriched.

The list is owned outside the pipeline and re-loaded on every enrichment
call, so edits take effect without a restart.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from contact_enrichment.core.config import Settings, settings

logger = logging.getLogger(__name__)

SKIP_LIST_TABLE = "enrichment_skip_list"


def normalize_entry(entry: str) -> str:
    """Lower-case an entry and drop a leading ``@`` from domain entries."""
    value = entry.strip().lower()
    return value[1:] if value.startswith("@") else value


@dataclass(frozen=True)
class SkipList:
    """Loaded skip-list entries."""

    entries: frozenset[str] = frozenset()

    @classmethod
    def from_entries(cls, entries: Iterable[str]) -> "SkipList":
        return cls(frozenset(e for e in (normalize_entry(x) for x in entries) if e))

    def matches(self, email: str) -> bool:
        """True for an exact address entry, the domain, or any parent domain."""
        address = email.strip().lower()
        if address in self.entries:
            return True
        if "@" not in address:
            return False

        domain = address.rsplit("@", 1)[1]
        labels = domain.split(".")
        return any(".".join(labels[i:]) in self.entries for i in range(len(labels)))

    def __len__(self) -> int:
        return len(self.entries)


class SkipListStore(ABC):
    """Source of skip-list entries."""

    @abstractmethod
    async def load(self) -> SkipList:
        """Fetch the current skip list."""


class StaticSkipListStore(SkipListStore):
    """Fixed in-memory entries."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._skip_list = SkipList.from_entries(entries)

    async def load(self) -> SkipList:
        return self._skip_list


class FileSkipListStore(SkipListStore):
    """One entry per line; ``#`` starts a comment. A missing file is empty."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _read(self) -> SkipList:
        if not self._path.exists():
            return SkipList()
        lines = self._path.read_text(encoding="utf-8").splitlines()
        return SkipList.from_entries(line.split("#", 1)[0] for line in lines)

    async def load(self) -> SkipList:
        return await asyncio.to_thread(self._read)


class SupabaseSkipListStore(SkipListStore):
    """Entries from the ``value`` column of a Supabase table."""

    def __init__(self, client: object | None = None, table: str = SKIP_LIST_TABLE) -> None:
        self._client = client
        self._table = table

    def _get_client(self) -> object:
        if self._client is None:
            from supabase import create_client

            self._client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_SERVICE_ROLE_KEY.get_secret_value(),
            )
            logger.info("Supabase client initialized for skip list")
        return self._client

    def _fetch(self) -> SkipList:
        client = self._get_client()
        response = client.table(self._table).select("value").execute()  # type: ignore[attr-defined]
        rows = response.data or []
        return SkipList.from_entries(str(row.get("value") or "") for row in rows)

    async def load(self) -> SkipList:
        return await asyncio.to_thread(self._fetch)


def create_skip_list_store(config: Settings | None = None) -> SkipListStore:
    """Build the store selected by ``SKIP_LIST_SOURCE``."""
    config = config or settings
    if config.SKIP_LIST_SOURCE == "supabase":
        return SupabaseSkipListStore()
    return FileSkipListStore(config.skip_list_file)
