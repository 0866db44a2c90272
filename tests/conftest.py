from pathlib import Path

import pytest
from graphql import DocumentNode, Source, parse
from hypothesis import strategies as st
from hypothesis.strategies import composite

from gschema.compiler import SchemaCompiler, compile_schema_files
from gschema.config import SchemaCompilerConfig
from gschema.descriptors import DescriptorTable
from gschema.runtime import DirectiveRegistry, SchemaAssembler
from sample_app.directives import upper
from sample_app.resolvers import Services


class TestData:
    TESTS_DATA_DIR: Path = Path(__file__).parent / "data"
    SCHEMA_DIR: Path = TESTS_DATA_DIR / "schema"
    USERS_SCHEMA: Path = SCHEMA_DIR / "users.graphql"
    POSTS_SCHEMA: Path = SCHEMA_DIR / "posts.graphql"
    OPERATIONS_DIR: Path = TESTS_DATA_DIR / "operations"
    USERS_OPERATIONS: Path = OPERATIONS_DIR / "users.py"
    POSTS_OPERATIONS: Path = OPERATIONS_DIR / "posts.graphql"
    CONFIG: Path = TESTS_DATA_DIR / "config.yaml"


def parse_sdl(files: dict[str, str]) -> list[DocumentNode]:
    """Parse SDL snippets keyed by file name; the file stem is the schema module."""
    return [parse(Source(text, name)) for name, text in files.items()]


def compile_sdl(files: dict[str, str], config: SchemaCompilerConfig | None = None) -> dict[str, DescriptorTable]:
    return SchemaCompiler(config).compile(parse_sdl(files))


@pytest.fixture(scope="module")
def schema_tables() -> dict[str, DescriptorTable]:
    return compile_schema_files([TestData.SCHEMA_DIR])


@pytest.fixture
def directive_registry() -> DirectiveRegistry:
    registry = DirectiveRegistry()
    registry.register("auth", "sample_app.directives.Auth")
    registry.register("upper", upper)
    return registry


@pytest.fixture
def services() -> Services:
    return Services()


@pytest.fixture
def assembler(
    schema_tables: dict[str, DescriptorTable], directive_registry: DirectiveRegistry, services: Services
) -> SchemaAssembler:
    return SchemaAssembler(schema_tables.values(), registry=directive_registry, locator=services)


@composite
def query_whitespace(draw: st.DrawFn) -> str:
    """Non-empty run of the whitespace characters collapsed by query normalization."""
    return draw(st.text(alphabet=" \t\n\r", min_size=1, max_size=5))


@composite
def query_tokens(draw: st.DrawFn) -> list[str]:
    """A few GraphQL-looking tokens without whitespace."""
    token = st.text(alphabet="abcXYZ_{}()$:!", min_size=1, max_size=6)
    return draw(st.lists(token, min_size=1, max_size=8))
