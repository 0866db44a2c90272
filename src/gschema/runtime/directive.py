"""Runtime directive middleware.

A directive handler is called as ``handler(args, context, next)`` where ``args`` are the
directive arguments written in the schema, ``context`` is the request context and
``next()`` evaluates the rest of the chain. A handler may return without calling ``next``
to short-circuit field resolution::

    def auth(args, context, next):
        if not context.user.has_role(args["role"]):
            return None
        return next()

    register("auth", auth)
"""

import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from graphql import GraphQLResolveInfo

from gschema import log
from gschema.descriptors import DirectiveInvocation
from gschema.errors import DirectiveSetupError, UnknownDirectiveError, WiringError
from gschema.runtime.wiring import import_string

DirectiveHandler = Callable[[Mapping[str, Any], Any, Callable[[], Any]], Any]
Resolver = Callable[..., Any]


class DirectiveRegistry:
    def __init__(self) -> None:
        self._handlers: dict[str, DirectiveHandler] = {}
        self._lock = threading.Lock()

    def register(self, name: str, handler: Any) -> None:
        """
        Register a directive handler.

        Args:
            name: Directive name as used in the schema, without "@"
            handler: A callable, a class (instantiated once), or the dotted path of a class

        Raises:
            DirectiveSetupError: If the handler is none of the accepted forms.
        """
        if isinstance(handler, type):
            handler = handler()
        elif isinstance(handler, str):
            try:
                cls = import_string(handler)
            except WiringError as e:
                raise DirectiveSetupError(f"Wrong directive setup: {name}, {e}") from e
            if not isinstance(cls, type):
                raise DirectiveSetupError(f"Wrong directive setup: {name}, '{handler}' is not a class")
            handler = cls()

        if not callable(handler):
            raise DirectiveSetupError(f"Wrong directive setup: {name}")

        with self._lock:
            if name in self._handlers:
                log.debug(f"Replacing handler of directive '{name}'")
            self._handlers[name] = handler

    def get(self, name: str) -> DirectiveHandler:
        try:
            return self._handlers[name]
        except KeyError:
            raise UnknownDirectiveError(f"Directive '{name}' is not registered") from None

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def wrap_directives(self, directives: Iterable[DirectiveInvocation], resolver: Resolver) -> Resolver:
        """
        Wrap a resolver into the middleware chain of the given directives.

        The first directive is the outermost layer: it runs first and decides whether the
        following directives and the resolver run at all.

        Raises:
            UnknownDirectiveError: If a directive has no registered handler.
        """
        chain = [(self.get(directive.name), directive.arguments) for directive in directives]
        if not chain:
            return resolver

        def resolve(parent: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
            def call_next() -> Any:
                return resolver(parent, info, **args)

            for handler, directive_args in reversed(chain):
                call_next = _link(handler, directive_args, info.context, call_next)
            return call_next()

        return resolve

    def wrap_directive(self, name: str, resolver: Resolver, args: Mapping[str, Any] | None = None) -> Resolver:
        """Wrap a resolver into a single directive, with the same semantics as wrap_directives."""
        return self.wrap_directives([DirectiveInvocation(name=name, arguments=dict(args or {}))], resolver)


def _link(handler: DirectiveHandler, args: Mapping[str, Any], context: Any, call_next: Callable[[], Any]) -> Callable[[], Any]:
    return lambda: handler(args, context, call_next)


directives = DirectiveRegistry()


def register(name: str, handler: Any) -> None:
    """Register a directive handler in the process-wide registry."""
    directives.register(name, handler)


def wrap_directives(invocations: Iterable[DirectiveInvocation], resolver: Resolver) -> Resolver:
    return directives.wrap_directives(invocations, resolver)


def wrap_directive(name: str, resolver: Resolver, args: Mapping[str, Any] | None = None) -> Resolver:
    return directives.wrap_directive(name, resolver, args)
