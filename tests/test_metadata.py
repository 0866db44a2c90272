from pathlib import Path

import pytest
from graphql import OperationDefinitionNode

from gschema.compiler.metadata import (
    OperationMetadata,
    load_graphql_operations,
    load_operation_source,
    load_python_operations,
    operation_constant_name,
)
from gschema.errors import OperationCompileError
from tests.conftest import TestData


@pytest.mark.parametrize(
    ("kind", "name", "expected"),
    [
        ("query", "GetUser", "QUERY_GET_USER"),
        ("query", "QueryUsers", "QUERY_USERS"),
        ("mutation", "publishPost", "MUTATION_PUBLISH_POST"),
    ],
)
def test_operation_constant_name(kind: str, name: str, expected: str) -> None:
    assert operation_constant_name(kind, name) == expected


def test_python_module_metadata() -> None:
    source = load_python_operations(TestData.USERS_OPERATIONS)
    path = str(TestData.USERS_OPERATIONS)

    assert source.metadata == [
        OperationMetadata("query", "GetUser", "GET_USER", "users", path, 4),
        OperationMetadata("query", "Me", "ME_QUERY", "users", path, 30),
    ]
    # GET_USER, USER_CARD, USER_POSTS and ME_QUERY; PAGE_TITLE is not a document
    assert len(source.documents) == 4
    assert all(document.loc is not None and document.loc.source.name == path for document in source.documents)


def test_graphql_document_metadata() -> None:
    source = load_graphql_operations(TestData.POSTS_OPERATIONS)
    path = str(TestData.POSTS_OPERATIONS)

    assert source.metadata == [
        OperationMetadata("query", "ListPosts", "QUERY_LIST_POSTS", "posts", path, 2),
        OperationMetadata("mutation", "PublishPost", "MUTATION_PUBLISH_POST", None, path, 12),
        OperationMetadata("query", "Search", "QUERY_SEARCH", None, path, 19),
    ]
    [document] = source.documents
    assert [
        definition.name.value
        for definition in document.definitions
        if isinstance(definition, OperationDefinitionNode) and definition.name
    ] == ["ListPosts", "PublishPost", "Search"]


def test_destination_hint_among_other_comments(tmp_path: Path) -> None:
    module = tmp_path / "billing.py"
    module.write_text(
        "# @dest billing\n"
        "# Invoices of the current account\n"
        'INVOICES = "query Invoices { invoices { id } }"\n'
        "\n"
        "# not a hint\n"
        'TOTAL = "query Total { total }"\n'
    )
    source = load_operation_source(module)
    assert [(meta.name, meta.destination) for meta in source.metadata] == [("Invoices", "billing"), ("Total", None)]


def test_plain_strings_that_are_not_operations_are_ignored(tmp_path: Path) -> None:
    module = tmp_path / "texts.py"
    module.write_text('HELP = "query the registry for a hash"\nNUMBER = 3\nLABEL: str = "mutation"\n')
    source = load_operation_source(module)
    assert source.documents == []
    assert source.metadata == []


def test_invalid_document_in_python_module(tmp_path: Path) -> None:
    module = tmp_path / "broken.py"
    module.write_text('from ariadne import gql\n\nBROKEN = gql("query Broken { user(id: ) }")\n')
    with pytest.raises(OperationCompileError, match="Invalid GraphQL document") as excinfo:
        load_operation_source(module)
    assert excinfo.value.line == 3
