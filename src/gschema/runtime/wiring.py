from collections.abc import Callable
from importlib import import_module
from typing import Any

from gschema.descriptors import ConstructorReference, LocatorReference, Reference, StaticMethodReference
from gschema.errors import WiringError


def import_string(dotted_path: str) -> Any:
    """
    Import a module, or an attribute of a module, from its dotted path.

    ``app.scalars`` imports the module, ``app.scalars.DateTime`` the class defined in it.

    Raises:
        WiringError: If nothing can be imported under the path.
    """
    try:
        return import_module(dotted_path)
    except ModuleNotFoundError as e:
        # Re-raise errors from inside an existing module
        if e.name is None or not dotted_path.startswith(e.name):
            raise WiringError(f"Cannot import '{dotted_path}': {e}") from e

    module_path, _, attribute = dotted_path.rpartition(".")
    if not module_path:
        raise WiringError(f"Cannot import '{dotted_path}'")

    try:
        target = import_string(module_path)
    except WiringError as e:
        raise WiringError(f"Cannot import '{dotted_path}'") from e

    try:
        return getattr(target, attribute)
    except AttributeError as e:
        raise WiringError(f"'{module_path}' has no attribute '{attribute}'") from e


def evaluate_reference(reference: Reference, locator: Any = None) -> Callable[..., Any]:
    """
    Turn a compiled wiring reference into a callable.

    A locator reference evaluates to a callable returning the locator member itself,
    whatever arguments it receives. The member is read on every call, so services
    may be replaced on the locator after the schema has been assembled. Constructor
    references are instantiated immediately, static references are resolved immediately.
    """
    if isinstance(reference, LocatorReference):
        if locator is None:
            raise WiringError(f"Reference to locator member '{reference.member}' but no service locator is configured")
        member = reference.member

        def read_locator(*_args: Any, **_kwargs: Any) -> Any:
            return getattr(locator, member)

        return read_locator

    if isinstance(reference, ConstructorReference):
        cls = import_string(reference.target)
        if not callable(cls):
            raise WiringError(f"'{reference.target}' cannot be instantiated")
        instance = cls()
        if not callable(instance):
            raise WiringError(f"Instances of '{reference.target}' are not callable")
        return instance

    if isinstance(reference, StaticMethodReference):
        target = import_string(reference.target)
        try:
            function = getattr(target, reference.method)
        except AttributeError as e:
            raise WiringError(f"'{reference.target}' has no attribute '{reference.method}'") from e
        if not callable(function):
            raise WiringError(f"'{reference.target}.{reference.method}' is not callable")
        return function

    raise WiringError(f"Unsupported reference {reference!r}")
