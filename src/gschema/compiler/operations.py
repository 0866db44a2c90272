"""Compile client operations into persisted-query registries.

Every named query and mutation is serialized together with the transitive closure of the
fragments it spreads, ``__typename`` is selected on every nested selection set, and the
resulting text is whitespace-normalized and hashed (sha256). Clients send the hash instead
of the query text.
"""

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from graphql import FragmentDefinitionNode, OperationDefinitionNode, print_ast

from gschema import log
from gschema.compiler.document import add_typename, get_fragment_spreads
from gschema.compiler.loader import OPERATION_SUFFIXES, resolve_source_files
from gschema.compiler.metadata import OperationMetadata, OperationSource, load_operation_source
from gschema.compiler.schema_compiler import node_location
from gschema.config import OperationCompilerConfig
from gschema.descriptors import OperationRecord, OperationRegistry
from gschema.errors import OperationCompileError
from gschema.tools.string import normalize_query, query_hash

SUPPORTED_OPERATIONS = ("query", "mutation")


@dataclass
class CompiledOperations:
    registries: dict[str, OperationRegistry] = field(default_factory=dict)
    # operation name -> hash
    hash_map: dict[str, str] = field(default_factory=dict)


def _unique(names: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(names))


class OperationCompiler:
    def __init__(self, config: OperationCompilerConfig | None = None) -> None:
        self.config = config or OperationCompilerConfig()

    def compile(self, sources: Sequence[OperationSource]) -> CompiledOperations:
        """Compile the operations of all sources.

        Raises:
            OperationCompileError: On anonymous or unsupported operations, duplicate operation or
                fragment names, unknown fragments, or operations without matching metadata.
        """
        self._check_unique_metadata(sources)
        fragments = self._collect_fragments(sources)

        records: dict[str, list[OperationRecord]] = {}
        result = CompiledOperations()

        for source in sources:
            metadata = {(meta.kind, meta.name): meta for meta in source.metadata}
            for document in source.documents:
                for definition in document.definitions:
                    if not isinstance(definition, OperationDefinitionNode):
                        continue
                    record, destination = self._compile_operation(definition, metadata, fragments)
                    records.setdefault(destination, []).append(record)

                    previous = result.hash_map.get(record.operation_name)
                    if previous is not None and previous != record.hash:
                        log.warning(
                            f"Operation name '{record.operation_name}' is used by more than one operation kind, "
                            f"the {record.kind} wins in {self.config.hash_map_file}"
                        )
                    result.hash_map[record.operation_name] = record.hash

        for destination, operations in sorted(records.items()):
            result.registries[destination] = OperationRegistry(destination=destination, operations=operations)
            log.debug(f"Destination '{destination}': {len(operations)} operation(s)")

        return result

    def _check_unique_metadata(self, sources: Sequence[OperationSource]) -> None:
        seen: dict[tuple[str, str], OperationMetadata] = {}
        for source in sources:
            for meta in source.metadata:
                first = seen.setdefault((meta.kind, meta.name), meta)
                if first is not meta:
                    raise OperationCompileError(
                        f"Not unique GraphQL operation found: {meta.kind} {meta.name}, "
                        f"it is already declared in {first.file}:{first.line}",
                        meta.file,
                        meta.line,
                    )

    def _collect_fragments(self, sources: Sequence[OperationSource]) -> dict[str, FragmentDefinitionNode]:
        fragments: dict[str, FragmentDefinitionNode] = {}
        for source in sources:
            for document in source.documents:
                for definition in document.definitions:
                    if not isinstance(definition, FragmentDefinitionNode):
                        continue
                    name = definition.name.value
                    if name in fragments:
                        first_file, first_line = node_location(fragments[name])
                        raise OperationCompileError(
                            f"Duplicate fragment '{name}', it is already declared in {first_file}:{first_line}",
                            *node_location(definition),
                        )
                    fragments[name] = definition
        return fragments

    def _compile_operation(
        self,
        node: OperationDefinitionNode,
        metadata: dict[tuple[str, str], OperationMetadata],
        fragments: dict[str, FragmentDefinitionNode],
    ) -> tuple[OperationRecord, str]:
        file, line = node_location(node)
        if node.name is None:
            raise OperationCompileError("Anonymous operations cannot be persisted, give the operation a name", file, line)

        name = node.name.value
        kind = node.operation.value
        if kind not in SUPPORTED_OPERATIONS:
            raise OperationCompileError(f"Unsupported operation kind '{kind}' for operation {name}", file, line)

        meta = metadata.get((kind, name))
        if meta is None:
            raise OperationCompileError(f"Cannot find metadata for {kind} {name}", file, line)

        used = self.resolve_fragments(node, fragments)

        body = print_ast(add_typename(node))
        if used:
            body += "\n" + "\n".join(print_ast(add_typename(fragments[fragment])) for fragment in reversed(used))

        record = OperationRecord(
            hash=query_hash(body),
            kind=kind,
            operation_name=name,
            constant_name=meta.constant_name,
            body=normalize_query(body),
            origin_file=meta.file,
            origin_line=meta.line,
        )
        return record, meta.destination or self.config.default_destination

    @staticmethod
    def resolve_fragments(node: OperationDefinitionNode, fragments: dict[str, FragmentDefinitionNode]) -> list[str]:
        """Transitive closure of the fragments used by an operation, first use first."""
        used = _unique(get_fragment_spreads(node))
        size = len(used)
        while True:
            for fragment_name in list(used):
                fragment = fragments.get(fragment_name)
                if fragment is None:
                    operation = node.name.value if node.name else "<anonymous>"
                    raise OperationCompileError(
                        f"Unknown fragment used [{fragment_name}] in operation {operation}", *node_location(node)
                    )
                used.extend(get_fragment_spreads(fragment))
            used = _unique(used)
            if len(used) == size:
                return used
            size = len(used)


def load_operation_sources(paths: Iterable[Path]) -> list[OperationSource]:
    files = resolve_source_files(paths, OPERATION_SUFFIXES)
    sources = [load_operation_source(file) for file in files]
    log.info(f"Loaded operations from {len(sources)} file(s)")
    return sources


def compile_operation_files(paths: Iterable[Path], config: OperationCompilerConfig | None = None) -> CompiledOperations:
    return OperationCompiler(config).compile(load_operation_sources(paths))


def write_operation_registries(
    compiled: CompiledOperations, output_dir: Path, config: OperationCompilerConfig | None = None
) -> list[Path]:
    """Write one ``<destination>.queries.json`` per destination plus the operation name to hash map."""
    config = config or OperationCompilerConfig()
    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []

    for destination, registry in compiled.registries.items():
        path = output_dir / f"{destination}.queries.json"
        path.write_text(registry.to_json(), encoding="utf-8")
        written.append(path)

    hash_map_path = output_dir / config.hash_map_file
    hash_map_path.write_text(json.dumps(dict(sorted(compiled.hash_map.items())), indent=2), encoding="utf-8")
    written.append(hash_map_path)
    return written
