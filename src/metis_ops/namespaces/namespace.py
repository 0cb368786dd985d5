"""XML/RDF namespace model."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from metis_ops.core.errors import InvalidConfigError


@dataclass(frozen=True)
class Namespace:
    """An XML namespace: a prefix and the URI it stands for.

    ``capitalizations`` maps lower-case tag names used in legacy mappings to
    the spelling the target schema expects (``edm:agent`` -> ``edm:Agent``).
    It does not take part in equality.
    """

    prefix: str
    uri: str
    capitalizations: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.prefix is None or not self.prefix.strip():
            raise InvalidConfigError("prefix", self.prefix, "Prefix cannot be null or empty")
        if self.uri is None or not self.uri.strip():
            raise InvalidConfigError("uri", self.uri, "Namespace URI cannot be null or empty")
        object.__setattr__(self, "prefix", self.prefix.strip())
        object.__setattr__(self, "uri", self.uri.strip())
        object.__setattr__(self, "capitalizations", MappingProxyType(dict(self.capitalizations)))

    def capitalize_tag_name(self, tag_name: str) -> str:
        return self.capitalizations.get(tag_name, tag_name)

    def qualify(self, tag_name: str, separator: str = ":") -> str:
        """Prefixed tag name, e.g. ``skos:Concept``."""
        return f"{self.prefix}{separator}{self.capitalize_tag_name(tag_name)}"


__all__ = ["Namespace"]
