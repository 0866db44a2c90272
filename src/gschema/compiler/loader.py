from collections.abc import Iterable
from pathlib import Path

from ariadne import load_schema_from_path
from graphql import DocumentNode, Source, parse

from gschema import log
from gschema.config import ModuleLayout
from gschema.errors import SchemaCompileError

SCHEMA_SUFFIXES = (".graphql", ".graphqls", ".gql")
OPERATION_SUFFIXES = (".graphql", ".gql", ".py")


def resolve_source_files(paths: Iterable[Path], suffixes: Iterable[str] = SCHEMA_SUFFIXES) -> list[Path]:
    """Resolve a list of paths (files and directories) into a flat list of unique source files.

    Args:
        paths: List of file or directory paths
        suffixes: File suffixes picked up when walking directories

    Returns:
        Sorted list of unique file paths. Explicitly given files are kept whatever their suffix.
    """
    suffixes = tuple(suffixes)
    resolved_files: set[Path] = set()

    for path in paths:
        if path.is_file():
            resolved_files.add(path)
        elif path.is_dir():
            resolved_files.update(file for file in path.rglob("*") if file.is_file() and file.suffix in suffixes)

    return sorted(resolved_files)


def determine_module(source_name: str, layout: ModuleLayout = ModuleLayout.STEM) -> str:
    """Determine the schema module a source file belongs to.

    With the ``stem`` layout the module is the file name without suffix. The ``directory``
    layout requires files to be stored as ``<module>/<module>.graphql``.

    Raises:
        SchemaCompileError: If the file does not follow the directory layout.
    """
    path = Path(source_name)
    if layout is ModuleLayout.DIRECTORY:
        if not path.stem or path.parent.name != path.stem:
            raise SchemaCompileError(
                f"Invalid schema file name, expected '<module>/<module>{path.suffix or '.graphql'}'", file=source_name
            )
    return path.stem


def load_schema_document(path: Path) -> DocumentNode:
    """Read one SDL file into a document whose locations point back to the file."""
    content = load_schema_from_path(str(path))
    return parse(Source(content, str(path)))


def load_schema_documents(paths: Iterable[Path]) -> list[DocumentNode]:
    """Load SDL files or folders, one document per file, in a stable order."""
    files = resolve_source_files(paths, SCHEMA_SUFFIXES)
    documents = [load_schema_document(file) for file in files]
    log.info(f"Loaded {len(documents)} schema document(s)")
    return documents
