from collections.abc import Iterable, Iterator
from pathlib import Path

from gschema import log
from gschema.descriptors import OperationRecord, OperationRegistry


class PersistedQueries:
    """
    Hash -> operation lookup over compiled operation registries.

    Lookups never raise: unknown hashes give None.
    """

    def __init__(self, registries: Iterable[OperationRegistry] = ()) -> None:
        self._records: dict[str, OperationRecord] = {}
        for registry in registries:
            self.add(registry)

    @classmethod
    def from_files(cls, paths: Iterable[Path]) -> "PersistedQueries":
        """Load ``*.queries.json`` registries from files or directories."""
        files: list[Path] = []
        for path in paths:
            if path.is_dir():
                files.extend(sorted(path.glob("*.queries.json")))
            else:
                files.append(path)
        return cls(OperationRegistry.from_file(file) for file in files)

    def add(self, registry: OperationRegistry) -> None:
        for record in registry.operations:
            if record.hash in self._records:
                log.debug(f"Operation {record.operation_name} ({record.hash}) is registered more than once")
            self._records[record.hash] = record

    def merge(self, *others: "PersistedQueries") -> "PersistedQueries":
        """Return a new store holding the operations of this one and all others, later ones win."""
        merged = PersistedQueries()
        for store in (self, *others):
            merged._records.update(store._records)
        return merged

    def get(self, query_hash: str) -> OperationRecord | None:
        return self._records.get(query_hash)

    def opname(self, query_hash: str) -> str | None:
        record = self._records.get(query_hash)
        return record.operation_name if record else None

    def source(self, query_hash: str) -> str | None:
        record = self._records.get(query_hash)
        return record.body if record else None

    def kind(self, query_hash: str) -> str | None:
        record = self._records.get(query_hash)
        return record.kind if record else None

    def __contains__(self, query_hash: object) -> bool:
        return query_hash in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[OperationRecord]:
        return iter(self._records.values())
