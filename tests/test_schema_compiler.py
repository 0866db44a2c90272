import json
from pathlib import Path

import pytest

from gschema.compiler import compile_schema_files, write_descriptor_tables
from gschema.config import ModuleLayout, SchemaCompilerConfig
from gschema.descriptors import (
    ConstructorReference,
    DescriptorTable,
    EnumDescriptor,
    InputObjectDescriptor,
    InterfaceDescriptor,
    LocatorReference,
    ObjectDescriptor,
    ScalarDescriptor,
    StaticMethodReference,
    TypeRef,
    UnionDescriptor,
)
from gschema.compiler.schema_compiler import _TypeGroup
from gschema.errors import SchemaCompileError
from tests.conftest import TestData, compile_sdl


def test_modules_follow_file_stems(schema_tables: dict[str, DescriptorTable]) -> None:
    assert set(schema_tables) == {"users", "posts"}
    assert list(schema_tables["users"].types) == ["Query", "User", "Node", "Role", "UserFilter", "DateTime"]
    assert list(schema_tables["posts"].types) == ["Query", "User", "Post", "SearchResult", "PostFilter", "Mutation"]


def test_object_fields_are_partitioned_by_module(schema_tables: dict[str, DescriptorTable]) -> None:
    [users_query] = schema_tables["users"].types["Query"]
    [posts_query] = schema_tables["posts"].types["Query"]

    assert isinstance(users_query, ObjectDescriptor)
    assert isinstance(posts_query, ObjectDescriptor)
    assert [field.name for field in users_query.fields] == ["me", "user", "users", "node"]
    assert [field.name for field in posts_query.fields] == ["posts", "search", "version"]
    assert users_query.source_module == "users"
    assert posts_query.source_module == "posts"

    # Type level data is carried by every partial
    for partial in (users_query, posts_query):
        assert partial.fields_resolver == ConstructorReference(target="sample_app.resolvers.QueryFields")
        assert partial.description == "Entry point of all read operations."


def test_field_descriptors(schema_tables: dict[str, DescriptorTable]) -> None:
    [user] = schema_tables["users"].types["User"]
    assert isinstance(user, ObjectDescriptor)
    assert user.interfaces == ["Node"]
    assert user.fields_resolver == StaticMethodReference(target="sample_app.resolvers.UserFields", method="fields")

    email = next(field for field in user.fields if field.name == "email")
    assert email.description == "Visible to administrators only."
    assert email.type == TypeRef.named("String")
    assert email.resolver is None
    assert [(directive.name, directive.arguments) for directive in email.directives] == [
        ("upper", {}),
        ("auth", {"role": "admin"}),
    ]

    [posts_query] = schema_tables["posts"].types["Query"]
    assert isinstance(posts_query, ObjectDescriptor)
    posts, _, version = posts_query.fields
    assert posts.resolver == StaticMethodReference(target="sample_app.resolvers", method="posts")
    assert version.resolver == LocatorReference(member="version")
    assert posts.directives == []
    assert str(posts.type) == "[Post!]!"
    assert posts.arguments[0].name == "filter"
    assert posts.arguments[0].type == TypeRef.named("PostFilter")


def test_kind_specific_descriptors(schema_tables: dict[str, DescriptorTable]) -> None:
    users = schema_tables["users"].types
    posts = schema_tables["posts"].types

    [node] = users["Node"]
    assert isinstance(node, InterfaceDescriptor)
    assert node.type_resolver == StaticMethodReference(target="sample_app.resolvers", method="resolve_node_type")

    [role] = users["Role"]
    assert isinstance(role, EnumDescriptor)
    assert list(role.values) == ["ADMIN", "USER", "GUEST"]
    assert role.values["GUEST"].deprecation_reason == "Use USER"

    [user_filter] = users["UserFilter"]
    assert isinstance(user_filter, InputObjectDescriptor)
    assert user_filter.parse_value == StaticMethodReference(target="sample_app.resolvers", method="parse_user_filter")
    defaults = {field.name: field.default_value for field in user_filter.fields}
    assert defaults["role"] is not None and defaults["role"].kind == "enum" and defaults["role"].value == "USER"
    assert defaults["limit"] is not None and defaults["limit"].kind == "int" and defaults["limit"].value == 10

    [date_time] = users["DateTime"]
    assert isinstance(date_time, ScalarDescriptor)
    assert date_time.implementation == "sample_app.scalars.DateTime"
    assert date_time.parse_literal == StaticMethodReference(target="sample_app.scalars.DateTime", method="parse_literal")
    assert date_time.directives == []

    [mutation] = posts["Mutation"]
    assert isinstance(mutation, ObjectDescriptor)
    assert mutation.fields_resolver == LocatorReference(member="mutations")
    assert mutation.fields[0].resolver is None

    [search_result] = posts["SearchResult"]
    assert isinstance(search_result, UnionDescriptor)
    assert search_result.members == ["User", "Post"]

    [post_filter] = posts["PostFilter"]
    assert isinstance(post_filter, InputObjectDescriptor)
    tags = post_filter.fields[1].default_value
    assert tags is not None and tags.kind == "list"
    assert [item.value for item in tags.items or []] == ["news"]


def test_descriptor_tables_are_written_as_json(schema_tables: dict[str, DescriptorTable], tmp_path: Path) -> None:
    written = write_descriptor_tables(schema_tables, tmp_path)
    assert sorted(path.name for path in written) == ["posts.schema.json", "users.schema.json"]

    raw = json.loads((tmp_path / "users.schema.json").read_text())
    user = raw["types"]["User"][0]
    assert user["kind"] == "object"
    assert user["sourceModule"] == "users"
    assert user["fieldsResolver"] == {
        "kind": "static",
        "target": "sample_app.resolvers.UserFields",
        "method": "fields",
    }

    assert DescriptorTable.from_file(tmp_path / "users.schema.json").to_json() == schema_tables["users"].to_json()


def test_overlapping_fields_fail_naming_type_and_field() -> None:
    files = {
        "a.graphql": "type T { a: Int b: Int }",
        "b.graphql": "extend type T { a: Int }",
    }
    with pytest.raises(SchemaCompileError, match=r"'T\.a'.*module 'a'.*module 'b'"):
        compile_sdl(files)


def test_redeclared_object_type_merges_across_modules() -> None:
    tables = compile_sdl({"a.graphql": "type T { a: Int b: Int }", "b.graphql": "type T { c: Int }"})
    assert [field.name for field in tables["a"].types["T"][0].fields] == ["a", "b"]
    assert [field.name for field in tables["b"].types["T"][0].fields] == ["c"]


def test_owner_module_gets_partial_without_fields() -> None:
    tables = compile_sdl({"a.graphql": "type T", "b.graphql": "extend type T { c: Int }"})
    [owner] = tables["a"].types["T"]
    assert isinstance(owner, ObjectDescriptor)
    assert owner.fields == []


@pytest.mark.parametrize(
    ("sdl", "message"),
    [
        ("scalar Date", r"@scalar directive must be set for scalar 'Date'"),
        ('scalar Date @scalar(_: "not a path")', r"must name an importable class"),
        ("interface Named { name: String }", r"Interface type 'Named' must have @t"),
        ("type A { a: Int } union U = A", r"Union type 'U' must have @t"),
        ('type A { a: Int @r(_: "nope") }', r"A\.a"),
        ('type A @f(_: 42) { a: Int }', r"must be a string"),
        ("input I { a: I2 = { b: 1 } } input I2 { b: Int }", r"Unsupported default value kind"),
        ("enum E { A } enum E { B }", r"defined more than once"),
        ("extend type Missing { a: Int }", r"Cannot extend undefined type 'Missing'"),
        ("type A { a: Int } extend interface A { b: Int }", r"declared both as object and interface"),
        ("query Q { a }", r"Unexpected 'operation_definition'"),
        ("enum E { A } extend enum E { A }", r"'E\.A' is defined more than once"),
    ],
)
def test_compile_errors(sdl: str, message: str) -> None:
    with pytest.raises(SchemaCompileError, match=message) as excinfo:
        compile_sdl({"module.graphql": sdl})
    assert excinfo.value.file == "module.graphql"
    assert excinfo.value.line == 1


def test_type_resolver_exempt_interface() -> None:
    tables = compile_sdl({"m.graphql": "interface RecordSet { total: Int }"})
    [record_set] = tables["m"].types["RecordSet"]
    assert isinstance(record_set, InterfaceDescriptor)
    assert record_set.type_resolver is None


def test_scalar_module_prefix() -> None:
    config = SchemaCompilerConfig(scalar_module_prefix="app.scalars.")
    with pytest.raises(SchemaCompileError, match="must start with 'app.scalars.'"):
        compile_sdl({"m.graphql": 'scalar Date @scalar(_: "other.Date")'}, config)
    tables = compile_sdl({"m.graphql": 'scalar Date @scalar(_: "app.scalars.Date")'}, config)
    assert tables["m"].types["Date"][0].kind == "scalar"


def test_custom_directive_names() -> None:
    config = SchemaCompilerConfig.model_validate({"directives": {"fieldResolver": "resolve"}})
    tables = compile_sdl({"m.graphql": 'type Q { a: Int @resolve(with: "Di->a") @r(_: "Di->b") }'}, config)
    [field] = tables["m"].types["Q"][0].fields
    assert field.resolver == LocatorReference(member="a")
    # "r" is no longer a wiring directive, it stays in the middleware list
    assert [(directive.name, directive.arguments) for directive in field.directives] == [("r", {"_": "Di->b"})]


def test_directory_layout(tmp_path: Path) -> None:
    config = SchemaCompilerConfig(module_layout=ModuleLayout.DIRECTORY)
    module_dir = tmp_path / "billing"
    module_dir.mkdir()
    (module_dir / "billing.graphql").write_text("type Invoice { id: ID }")
    assert set(compile_schema_files([tmp_path], config)) == {"billing"}

    (module_dir / "extra.graphql").write_text("type Extra { id: ID }")
    with pytest.raises(SchemaCompileError, match="Invalid schema file name"):
        compile_schema_files([tmp_path], config)


def test_compile_is_deterministic() -> None:
    first = compile_schema_files([TestData.SCHEMA_DIR])
    second = compile_schema_files([TestData.POSTS_SCHEMA, TestData.USERS_SCHEMA])
    assert {module: table.to_json() for module, table in first.items()} == {
        module: table.to_json() for module, table in second.items()
    }


def test_type_group_without_definition_has_no_owner() -> None:
    group = _TypeGroup(name="Missing", kind="object")
    with pytest.raises(SchemaCompileError, match="Cannot extend undefined type 'Missing'"):
        _ = group.owner
