"""Namespaces: model, longest-prefix resolver, vocabulary registry."""

from metis_ops.namespaces.namespace import Namespace
from metis_ops.namespaces.registry import (
    GENERAL_INPUT,
    GENERAL_OUTPUT,
    NamespaceSet,
    VocabularyRegistry,
)
from metis_ops.namespaces.resolver import (
    DEFAULT_SEPARATOR,
    NamespaceBinding,
    NamespaceCollection,
    PrefixNamespaceResolver,
)

__all__ = [
    "Namespace",
    "GENERAL_INPUT",
    "GENERAL_OUTPUT",
    "NamespaceSet",
    "VocabularyRegistry",
    "DEFAULT_SEPARATOR",
    "NamespaceBinding",
    "NamespaceCollection",
    "PrefixNamespaceResolver",
]
