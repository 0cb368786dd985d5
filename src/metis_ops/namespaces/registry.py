"""Vocabulary registry: which namespaces apply to which vocabulary.

Each controlled vocabulary that the dereferencing migration handles uses its
own set of namespace prefixes. The sets live in ``vocabularies.yaml`` (bundled
with the package, overridable via ``METIS_OPS_VOCABULARIES_FILE``)::

    known_namespaces:
      skos:
        uri: http://www.w3.org/2004/02/skos/core#
        capitalize: {concept: Concept}

    namespace_sets:
      - name: EAGLE
        applies_to: [http://www.eagle-network.eu/voc/material/skos/]
        namespaces:
          - skos                           # reference to a known namespace
          - dc: http://purl.org/dc/terms/  # inline binding

The registry turns an input vocabulary URI into a resolver built from every
set that applies to it plus ``GENERAL_INPUT``, and provides the resolver for
the output side (``GENERAL_OUTPUT``).

Manifesto:
    Vocabulary bindings are data, not code. Keeping them in YAML means a new
    vocabulary is a configuration change, validated at startup with the
    same fail-fast rules as a hand-written binding set.

Tags:
    namespaces, vocabularies, yaml, config-driven, metis-ops
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path
from typing import Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from metis_ops.core.errors import (
    DuplicatePrefixError,
    InvalidConfigError,
    MissingConfigError,
)
from metis_ops.core.logging import get_logger
from metis_ops.core.settings import OpsSettings, get_settings
from metis_ops.namespaces.namespace import Namespace
from metis_ops.namespaces.resolver import PrefixNamespaceResolver

logger = get_logger(__name__)

GENERAL_INPUT = "GENERAL_INPUT"
GENERAL_OUTPUT = "GENERAL_OUTPUT"
BUNDLED_FILE = "vocabularies.yaml"


# ── YAML schema ──────────────────────────────────────────────────────────


class KnownNamespaceSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    uri: str = Field(..., min_length=1)
    capitalize: dict[str, str] = Field(default_factory=dict)


class NamespaceSetSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    applies_to: list[str] = Field(default_factory=list)
    namespaces: list[Union[str, dict[str, str]]] = Field(..., min_length=1)

    @field_validator("namespaces")
    @classmethod
    def _single_binding_per_entry(cls, value: list) -> list:
        for entry in value:
            if isinstance(entry, dict) and len(entry) != 1:
                raise ValueError(f"Inline binding must have exactly one prefix: {entry}")
        return value


class VocabularyFileSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    known_namespaces: dict[str, KnownNamespaceSpec] = Field(default_factory=dict)
    namespace_sets: list[NamespaceSetSpec]


# ── Runtime model ────────────────────────────────────────────────────────


def normalize_uri(uri: str) -> str:
    return uri.strip()


@dataclass(frozen=True)
class NamespaceSet:
    """Named group of namespaces, optionally tied to vocabulary URIs."""

    name: str
    namespaces: tuple[Namespace, ...]
    applies_to: tuple[str, ...] = ()

    def applies_to_uri(self, uri: str) -> bool:
        uri = normalize_uri(uri)
        return any(uri.startswith(candidate) for candidate in self.applies_to)


class VocabularyRegistry:
    """All namespace sets, looked up by name or by vocabulary URI."""

    def __init__(self, known: dict[str, Namespace], sets: list[NamespaceSet]):
        self.known = dict(known)
        self._sets: dict[str, NamespaceSet] = {}
        for namespace_set in sets:
            if namespace_set.name in self._sets:
                raise InvalidConfigError(
                    "namespace_sets", namespace_set.name, f"Duplicate set name: {namespace_set.name}"
                )
            self._sets[namespace_set.name] = namespace_set
        for required in (GENERAL_INPUT, GENERAL_OUTPUT):
            if required not in self._sets:
                raise MissingConfigError(f"namespace_sets.{required}")

    # ── Loading ──────────────────────────────────────────────────────

    @classmethod
    def from_spec(cls, spec: VocabularyFileSpec) -> VocabularyRegistry:
        known = {
            prefix: Namespace(prefix, entry.uri, entry.capitalize)
            for prefix, entry in spec.known_namespaces.items()
        }
        sets = [_build_set(set_spec, known) for set_spec in spec.namespace_sets]
        return cls(known, sets)

    @classmethod
    def from_yaml(cls, content: str, source: str = "<string>") -> VocabularyRegistry:
        try:
            data = yaml.safe_load(content)
            spec = VocabularyFileSpec.model_validate(data)
        except yaml.YAMLError as e:
            raise InvalidConfigError("vocabularies", source, f"Invalid YAML in {source}: {e}") from e
        except ValidationError as e:
            raise InvalidConfigError(
                "vocabularies", source, f"Invalid vocabulary file {source}: {e}"
            ) from e
        registry = cls.from_spec(spec)
        logger.debug("vocabularies.loaded", source=source, sets=len(registry._sets))
        return registry

    @classmethod
    def from_file(cls, path: Path) -> VocabularyRegistry:
        path = Path(path)
        if not path.is_file():
            raise MissingConfigError("vocabularies_file", f"Vocabulary file not found: {path}")
        return cls.from_yaml(path.read_text(encoding="utf-8"), source=str(path))

    @classmethod
    def bundled(cls) -> VocabularyRegistry:
        content = files("metis_ops.namespaces").joinpath(BUNDLED_FILE).read_text(encoding="utf-8")
        return cls.from_yaml(content, source=BUNDLED_FILE)

    @classmethod
    def from_settings(cls, settings: OpsSettings | None = None) -> VocabularyRegistry:
        settings = settings or get_settings()
        if settings.vocabularies_file is not None:
            return cls.from_file(settings.vocabularies_file)
        return cls.bundled()

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def set_names(self) -> list[str]:
        return list(self._sets)

    def namespace_set(self, name: str) -> NamespaceSet:
        try:
            return self._sets[name]
        except KeyError:
            raise KeyError(f"Unknown namespace set: {name}") from None

    def sets_for_input(self, uri: str) -> list[NamespaceSet]:
        """Sets applying to a vocabulary URI, always including GENERAL_INPUT."""
        matching = [s for s in self._sets.values() if s.applies_to_uri(uri)]
        general = self._sets[GENERAL_INPUT]
        if general not in matching:
            matching.append(general)
        return matching

    def collection_for_input(self, uri: str) -> PrefixNamespaceResolver[Namespace]:
        sets = self.sets_for_input(uri)
        logger.debug("vocabularies.input_sets", uri=uri, sets=[s.name for s in sets])
        return PrefixNamespaceResolver.from_namespaces(
            namespace for namespace_set in sets for namespace in namespace_set.namespaces
        )

    def output_collection(self) -> PrefixNamespaceResolver[Namespace]:
        return PrefixNamespaceResolver.from_namespaces(self._sets[GENERAL_OUTPUT].namespaces)


def _build_set(spec: NamespaceSetSpec, known: dict[str, Namespace]) -> NamespaceSet:
    namespaces: dict[str, Namespace] = {}
    for entry in spec.namespaces:
        if isinstance(entry, str):
            if entry not in known:
                raise InvalidConfigError(
                    f"namespace_sets.{spec.name}", entry, f"Unknown namespace reference: {entry}"
                )
            namespace = known[entry]
        else:
            ((prefix, uri),) = entry.items()
            namespace = known.get(prefix)
            if namespace is None or namespace.uri != uri.strip():
                namespace = Namespace(prefix, uri)
        if namespace.prefix in namespaces:
            raise DuplicatePrefixError(
                namespace.prefix, namespaces[namespace.prefix].uri, namespace.uri
            )
        namespaces[namespace.prefix] = namespace
    return NamespaceSet(
        name=spec.name,
        namespaces=tuple(namespaces.values()),
        applies_to=tuple(normalize_uri(uri) for uri in spec.applies_to),
    )


__all__ = [
    "GENERAL_INPUT",
    "GENERAL_OUTPUT",
    "NamespaceSet",
    "VocabularyRegistry",
    "VocabularyFileSpec",
]
