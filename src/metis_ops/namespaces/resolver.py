"""Longest-prefix classification of tags into namespaces.

During the dereferencing-mapping migration every tag of a vocabulary mapping
(``skos:prefLabel``, ``aat_term:literalForm``, ...) has to be routed to the
namespace it belongs to. Prefixes can be prefixes of each other (``aat`` and
``aat_term``), so the resolver picks the *longest* registered prefix that is
immediately followed by the separator.

Example:
    >>> resolver = PrefixNamespaceResolver([("ab", "NS1"), ("abc", "NS2")])
    >>> resolver.resolve("abc/123", "/")
    'NS2'
    >>> resolver.resolve("ab/123", "/")
    'NS1'
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Generic, NamedTuple, TypeVar

from metis_ops.core.errors import (
    AmbiguousPrefixError,
    DuplicatePrefixError,
    NoMatchingNamespaceError,
)
from metis_ops.namespaces.namespace import Namespace

N = TypeVar("N")

DEFAULT_SEPARATOR = ":"


class NamespaceBinding(NamedTuple, Generic[N]):
    prefix: str
    namespace: N


class PrefixNamespaceResolver(Generic[N]):
    """Immutable prefix -> namespace collection.

    Raises (at construction):
        DuplicatePrefixError: Two bindings share a prefix but name different
            namespaces. Repeating an identical binding is allowed.
    """

    def __init__(self, bindings: Iterable[tuple[str, N]]):
        collected: dict[str, N] = {}
        for prefix, namespace in bindings:
            existing = collected.get(prefix, namespace)
            if existing != namespace:
                raise DuplicatePrefixError(prefix, _describe(existing), _describe(namespace))
            collected[prefix] = namespace
        self._bindings: Mapping[str, N] = MappingProxyType(collected)

    @classmethod
    def from_namespaces(cls, namespaces: Iterable[Namespace]) -> PrefixNamespaceResolver[Namespace]:
        return cls((namespace.prefix, namespace) for namespace in namespaces)

    @property
    def bindings(self) -> Mapping[str, N]:
        return self._bindings

    @property
    def prefixes(self) -> list[str]:
        return sorted(self._bindings)

    def namespace_for(self, prefix: str) -> N:
        return self._bindings[prefix]

    def resolve(self, tag: str, separator: str = DEFAULT_SEPARATOR) -> N:
        """Namespace of the longest prefix ``p`` with ``tag.startswith(p + separator)``.

        Raises:
            NoMatchingNamespaceError: No prefix matches; bad input data, not retryable.
        """
        best: list[str] = []
        for prefix in self._bindings:
            if not tag.startswith(prefix + separator):
                continue
            if not best or len(prefix) > len(best[0]):
                best = [prefix]
            elif len(prefix) == len(best[0]):
                best.append(prefix)

        if not best:
            raise NoMatchingNamespaceError(tag, separator)
        if len(best) > 1:
            raise AmbiguousPrefixError(tag, sorted(best))
        return self._bindings[best[0]]

    def __iter__(self) -> Iterator[NamespaceBinding[N]]:
        for prefix in self.prefixes:
            yield NamespaceBinding(prefix, self._bindings[prefix])

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._bindings

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(prefixes={self.prefixes})"


def _describe(namespace: object) -> str:
    return namespace.uri if isinstance(namespace, Namespace) else str(namespace)


# A namespace collection is simply a resolver over Namespace values.
NamespaceCollection = PrefixNamespaceResolver


__all__ = [
    "DEFAULT_SEPARATOR",
    "NamespaceBinding",
    "PrefixNamespaceResolver",
    "NamespaceCollection",
]
