from types import SimpleNamespace

import pytest

from gschema.descriptors import ConstructorReference, LocatorReference, StaticMethodReference
from gschema.errors import WiringError
from gschema.runtime.wiring import evaluate_reference, import_string
from sample_app import resolvers
from sample_app.resolvers import PostFields, QueryFields


def test_import_string() -> None:
    assert import_string("sample_app.resolvers") is resolvers
    assert import_string("sample_app.resolvers.QueryFields") is QueryFields
    assert import_string("sample_app.resolvers.QueryFields.node") is QueryFields.node


@pytest.mark.parametrize("path", ["missing_package.module", "sample_app.resolvers.Missing", "sample_app.missing.Thing"])
def test_import_string_errors(path: str) -> None:
    with pytest.raises(WiringError, match="Cannot import|has no attribute"):
        import_string(path)


def test_locator_reference_returns_the_member() -> None:
    auth = object()
    locator = SimpleNamespace(auth=auth)
    resolve = evaluate_reference(LocatorReference(member="auth"), locator)
    assert resolve() is auth
    # Resolver arguments are ignored
    assert resolve(None, None, id="u1") is auth

    replaced = object()
    locator.auth = replaced
    assert resolve(None, None) is replaced


def test_locator_reference_requires_locator() -> None:
    with pytest.raises(WiringError, match="no service locator"):
        evaluate_reference(LocatorReference(member="auth"))


def test_constructor_reference_returns_instance() -> None:
    instance = evaluate_reference(ConstructorReference(target="sample_app.resolvers.PostFields"))
    assert isinstance(instance, PostFields)
    assert set(instance()) == {"id", "title", "author", "publishedAt"}


def test_constructor_reference_requires_callable_instances() -> None:
    with pytest.raises(WiringError, match="not callable"):
        evaluate_reference(ConstructorReference(target="sample_app.resolvers.UserFields"))


def test_static_method_reference() -> None:
    function = evaluate_reference(StaticMethodReference(target="sample_app.resolvers", method="search"))
    assert function is resolvers.search
    with pytest.raises(WiringError, match="has no attribute 'nope'"):
        evaluate_reference(StaticMethodReference(target="sample_app.resolvers", method="nope"))
