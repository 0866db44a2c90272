"""Per-file operation metadata.

Client operations are written either in Python modules, as module-level constants::

    # @dest users
    GET_USER = gql(\"\"\"
        query GetUser($id: ID!) { user(id: $id) { id name } }
    \"\"\")

or in plain GraphQL documents. For each operation the metadata gives the constant name used
by client code, the registry destination the operation is persisted to, and the line it is
declared on. The destination comes from an optional ``# @dest <name>`` comment directly
above the declaration.
"""

import ast
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from ariadne import load_schema_from_path
from caseconverter import macrocase
from graphql import DocumentNode, GraphQLSyntaxError, OperationDefinitionNode, Source, parse

from gschema.errors import OperationCompileError

GQL_FUNCTIONS = {"gql"}

_GRAPHQL_HEADER_RE = re.compile(r"^\s*(query|mutation|subscription)\s+([_A-Za-z]\w*)")
_DEST_HINT_RE = re.compile(r"@dest\b[:\s]\s*([\w.-]+)")
# A plain string constant is only taken for an operation document if it starts like one
_GRAPHQL_CONSTANT_RE = re.compile(
    r"^\s*(?:#[^\n]*\n\s*)*"
    r"(?:(?:query|mutation|subscription)\b\s*(?:[_A-Za-z]\w*)?\s*[({@]|fragment\s+[_A-Za-z]\w*\s+on\b)"
)


@dataclass(frozen=True)
class OperationMetadata:
    kind: str
    name: str
    constant_name: str
    destination: str | None
    file: str
    line: int


@dataclass
class OperationSource:
    """Operation documents of one source file together with the metadata extracted from it."""

    path: Path
    documents: list[DocumentNode] = field(default_factory=list)
    metadata: list[OperationMetadata] = field(default_factory=list)


def operation_constant_name(kind: str, name: str) -> str:
    """Derive a constant name, e.g. ("query", "GetUser") -> "QUERY_GET_USER"."""
    constant = macrocase(name)
    prefix = f"{kind.upper()}_"
    return constant if constant.startswith(prefix) else prefix + constant


def _destination_hint(lines: list[str], index: int) -> str | None:
    """Look for a @dest hint in the comment lines directly above lines[index]."""
    index -= 1
    while index >= 0 and lines[index].strip().startswith("#"):
        match = _DEST_HINT_RE.search(lines[index])
        if match:
            return match.group(1)
        index -= 1
    return None


def _parse(text: str, path: Path, line: int = 1) -> DocumentNode:
    try:
        return parse(Source(text, str(path)))
    except GraphQLSyntaxError as e:
        raise OperationCompileError(f"Invalid GraphQL document: {e.message}", str(path), line) from e


# #########################################################
# Python modules
# #########################################################


def _call_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _string_value(node: ast.expr) -> tuple[str, bool] | None:
    """Return the string held by a constant expression and whether it was wrapped in gql()."""
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value, False
    if isinstance(node, ast.Call) and node.args and _call_name(node.func) in GQL_FUNCTIONS:
        inner = _string_value(node.args[0])
        return (inner[0], True) if inner else None
    return None


def _iter_python_constants(path: Path, source: str) -> Iterator[tuple[str, str, int]]:
    tree = ast.parse(source, filename=str(path))
    for node in tree.body:
        if isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
            target, value = node.targets[0].id, node.value
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name) and node.value is not None:
            target, value = node.target.id, node.value
        else:
            continue

        found = _string_value(value)
        if found is None:
            continue
        text, wrapped = found
        if wrapped or _GRAPHQL_CONSTANT_RE.match(text):
            yield target, text, node.lineno


def load_python_operations(path: Path) -> OperationSource:
    source = path.read_text(encoding="utf-8")
    lines = source.splitlines()
    result = OperationSource(path=path)

    for constant_name, text, line in _iter_python_constants(path, source):
        document = _parse(text, path, line)
        result.documents.append(document)
        destination = _destination_hint(lines, line - 1)
        for definition in document.definitions:
            if isinstance(definition, OperationDefinitionNode) and definition.name:
                result.metadata.append(
                    OperationMetadata(
                        kind=definition.operation.value,
                        name=definition.name.value,
                        constant_name=constant_name,
                        destination=destination,
                        file=str(path),
                        line=line,
                    )
                )

    return result


# #########################################################
# GraphQL documents
# #########################################################


def load_graphql_operations(path: Path) -> OperationSource:
    text = load_schema_from_path(str(path))
    lines = text.splitlines()
    result = OperationSource(path=path, documents=[_parse(text, path)])

    for index, line in enumerate(lines):
        match = _GRAPHQL_HEADER_RE.match(line)
        if not match:
            continue
        kind, name = match.groups()
        result.metadata.append(
            OperationMetadata(
                kind=kind,
                name=name,
                constant_name=operation_constant_name(kind, name),
                destination=_destination_hint(lines, index),
                file=str(path),
                line=index + 1,
            )
        )

    return result


def load_operation_source(path: Path) -> OperationSource:
    """Load the operation documents and metadata of one file, by suffix."""
    if path.suffix == ".py":
        return load_python_operations(path)
    return load_graphql_operations(path)
