from graphql import FragmentDefinitionNode, OperationDefinitionNode, parse, print_ast

from gschema.compiler.document import add_typename, get_fragment_spreads
from gschema.tools.string import normalize_query


def test_typename_is_added_below_the_operation_root() -> None:
    [operation] = parse("query Q { me { id friends { name } } }").definitions
    assert isinstance(operation, OperationDefinitionNode)
    printed = normalize_query(print_ast(add_typename(operation)))
    assert printed == "query Q { me { id friends { name __typename } __typename } }"


def test_typename_is_not_duplicated() -> None:
    [operation] = parse("query Q { me { __typename id } }").definitions
    assert isinstance(operation, OperationDefinitionNode)
    assert normalize_query(print_ast(add_typename(operation))) == "query Q { me { __typename id } }"


def test_typename_under_introspection_fields() -> None:
    [operation] = parse("query Q { __schema { types { name } } }").definitions
    assert isinstance(operation, OperationDefinitionNode)
    printed = normalize_query(print_ast(add_typename(operation)))
    assert printed == "query Q { __schema { types { name __typename } __typename } }"


def test_source_node_is_not_modified() -> None:
    [operation] = parse("query Q { me { id } }").definitions
    add_typename(operation)
    assert "__typename" not in print_ast(operation)


def test_fragment_definitions_get_typename_at_the_top() -> None:
    [fragment] = parse("fragment F on User { id }").definitions
    assert isinstance(fragment, FragmentDefinitionNode)
    assert normalize_query(print_ast(add_typename(fragment))) == "fragment F on User { id __typename }"


def test_get_fragment_spreads_in_document_order() -> None:
    [operation] = parse("query Q { me { ...A friends { ...B ...A } } ... on Query { ...C } }").definitions
    assert get_fragment_spreads(operation) == ["A", "B", "A", "C"]
