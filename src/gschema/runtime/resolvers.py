import threading
from collections.abc import Callable, Mapping
from typing import Any

from graphql import GraphQLField, GraphQLObjectType, GraphQLResolveInfo

from gschema.errors import MissingFieldResolverError
from gschema.runtime.directive import DirectiveRegistry, Resolver

DIRECTIVES_EXTENSION = "directives"


class ResolverChain:
    """Field name -> resolver map of one parent type. Each entry is wrapped into its directives once."""

    def __init__(self, type_name: str, resolvers: Mapping[str, Resolver], registry: DirectiveRegistry) -> None:
        self.type_name = type_name
        self._resolvers = dict(resolvers)
        self._registry = registry
        self._wrapped: set[str] = set()
        self._lock = threading.Lock()

    def resolver_for(self, field_name: str, field: GraphQLField) -> Resolver:
        if field_name in self._wrapped:
            return self._resolvers[field_name]

        with self._lock:
            if field_name not in self._wrapped:
                resolver = self._resolvers.get(field_name)
                if resolver is None:
                    raise MissingFieldResolverError(self.type_name, field_name)
                invocations = (field.extensions or {}).get(DIRECTIVES_EXTENSION)
                if invocations:
                    resolver = self._registry.wrap_directives(invocations, resolver)
                self._resolvers[field_name] = resolver
                self._wrapped.add(field_name)
            return self._resolvers[field_name]


class FieldsResolver:
    """
    Resolves every field of an object type through a single resolver map.

    The map producer (from the type's fields resolver directive) is called at most once
    per parent type instance, on the first field access.
    """

    def __init__(self, producer: Callable[[], Mapping[str, Resolver]], registry: DirectiveRegistry) -> None:
        self._producer = producer
        self._registry = registry
        # id(parent type) -> (parent type, chain); the type is kept so that the id stays valid
        self._chains: dict[int, tuple[GraphQLObjectType, ResolverChain]] = {}
        self._lock = threading.Lock()

    def __call__(self, parent: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        parent_type = info.parent_type
        chain = self.chain_for(parent_type)
        resolver = chain.resolver_for(info.field_name, parent_type.fields[info.field_name])
        return resolver(parent, info, **args)

    def chain_for(self, parent_type: GraphQLObjectType) -> ResolverChain:
        entry = self._chains.get(id(parent_type))
        if entry is None:
            with self._lock:
                entry = self._chains.get(id(parent_type))
                if entry is None:
                    resolvers = self._producer() or {}
                    entry = self._chains[id(parent_type)] = (parent_type, ResolverChain(parent_type.name, resolvers, self._registry))
        return entry[1]
