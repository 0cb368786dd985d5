"""
CLI: ``metis-ops namespaces`` -- look up tags and vocabulary namespace sets.
"""

from __future__ import annotations

import typer

from metis_ops.cli.utils import cli_errors, output_mapping, output_rows

app = typer.Typer(no_args_is_help=True)


@app.command("resolve")
def resolve(
    tag: str = typer.Argument(..., help="Prefixed tag, e.g. skos:prefLabel"),
    input_uri: str | None = typer.Option(
        None, "--input-uri", "-u",
        help="Vocabulary URI; resolves against its input sets instead of GENERAL_OUTPUT",
    ),
    separator: str = typer.Option(":", "--separator", "-s"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the namespace a tag belongs to."""
    from metis_ops.namespaces.registry import VocabularyRegistry

    with cli_errors():
        registry = VocabularyRegistry.from_settings()
        if input_uri is None:
            collection = registry.output_collection()
        else:
            collection = registry.collection_for_input(input_uri)
        namespace = collection.resolve(tag, separator)

    local_name = tag[len(namespace.prefix) + len(separator):]
    output_mapping(
        {
            "tag": tag,
            "prefix": namespace.prefix,
            "uri": namespace.uri,
            "qualified": namespace.qualify(local_name, separator),
        },
        as_json=json_out,
        title=tag,
    )


@app.command("sets")
def list_sets(
    input_uri: str | None = typer.Option(
        None, "--input-uri", "-u", help="Only sets applying to this vocabulary URI"
    ),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List vocabulary namespace sets."""
    from metis_ops.namespaces.registry import VocabularyRegistry

    with cli_errors():
        registry = VocabularyRegistry.from_settings()
    if input_uri is None:
        sets = [registry.namespace_set(name) for name in registry.set_names]
    else:
        sets = registry.sets_for_input(input_uri)

    rows = [
        {
            "name": namespace_set.name,
            "prefixes": ", ".join(n.prefix for n in namespace_set.namespaces),
            "applies_to": ", ".join(namespace_set.applies_to),
        }
        for namespace_set in sets
    ]
    output_rows(rows, as_json=json_out, title="Namespace sets")
