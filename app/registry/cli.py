"""Typer CLI for inspecting the feature registry and running local extraction."""

from __future__ import annotations

import asyncio
import json
from itertools import islice
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from app.common.logger import get_logger
from app.infra.settings import get_infra_settings
from config.settings import get_triage_settings
from triage_nlp.fallback import fallback_extract

from .loader import RegistryLoader
from .models import Registry
from .sources import HttpFetcher, load_json_file

app = typer.Typer(help="Inspect the triage feature registry.")
console = Console()
log = get_logger("triage.cli")


async def _load_from_urls(registry_url: str | None, features_url: str | None, redflags_url: str | None) -> Registry:
    async with httpx.AsyncClient() as client:
        loader = RegistryLoader(
            HttpFetcher(client, timeout_s=get_infra_settings().registry_fetch_timeout_s),
            registry_url=registry_url,
            features_url=features_url,
            redflags_url=redflags_url,
        )
        return await loader.load()


def load_registry(
    *,
    file: Optional[str] = None,
    url: Optional[str] = None,
    features_url: Optional[str] = None,
    redflags_url: Optional[str] = None,
) -> Registry:
    """Registry from a local snapshot file, explicit URLs or the configured URLs."""
    if file:
        loader = RegistryLoader(load_json_file, registry_url=file)
        return asyncio.run(loader.load())
    if url or features_url or redflags_url:
        return asyncio.run(_load_from_urls(url, features_url, redflags_url))

    settings = get_triage_settings()
    if not settings.has_registry_sources:
        log.warning("No registry sources configured; using an empty registry")
    return asyncio.run(_load_from_urls(settings.registry_url, settings.features_url, settings.redflags_url))


_file_opt = typer.Option(None, "--file", "-f", help="Registry snapshot JSON on disk.")
_url_opt = typer.Option(None, "--url", help="Registry snapshot URL.")
_features_url_opt = typer.Option(None, "--features-url", help="Standalone features document URL.")
_redflags_url_opt = typer.Option(None, "--redflags-url", help="Standalone red-flags document URL.")


@app.command()
def stats(
    file: Optional[str] = _file_opt,
    url: Optional[str] = _url_opt,
    features_url: Optional[str] = _features_url_opt,
    redflags_url: Optional[str] = _redflags_url_opt,
    sample: int = typer.Option(20, "--sample", help="How many aliases to list."),
) -> None:
    """Print registry counts, source outcomes and a sample of the alias index."""
    registry = load_registry(file=file, url=url, features_url=features_url, redflags_url=redflags_url)
    _print_sources(registry)

    summary = Table(title="Registry", show_lines=False)
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", justify="right")
    summary.add_row("features", str(len(registry.features_set)))
    summary.add_row("aliases", str(len(registry.alias_to_id)))
    summary.add_row("redflags", str(len(registry.redflags)))
    console.print(summary)

    aliases = Table(title="Aliases", show_lines=False)
    aliases.add_column("Alias", style="cyan")
    aliases.add_column("Feature")
    for alias, fid in islice(registry.alias_to_id.items(), max(sample, 0)):
        aliases.add_row(alias, fid)
    console.print(aliases)


@app.command()
def extract(
    text: str,
    file: Optional[str] = _file_opt,
    url: Optional[str] = _url_opt,
    features_url: Optional[str] = _features_url_opt,
    feature: Optional[list[str]] = typer.Option(
        None, "--feature", help="Restrict extraction to these feature ids (repeatable)."
    ),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON output."),
) -> None:
    """Run the local keyword extractor over TEXT."""
    registry = load_registry(file=file, url=url, features_url=features_url)
    allowed = tuple(feature) if feature else registry.feature_ids
    result = fallback_extract(text, registry, allowed)

    if json_output:
        typer.echo(json.dumps(result.model_dump(), indent=2, ensure_ascii=False))
        return

    table = Table(title="Extraction", show_lines=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("features", ", ".join(result.features) or "—")
    for key, value in result.modifiers.items():
        table.add_row(f"modifiers.{key}", str(value))
    demographics = result.demographics
    table.add_row("idade", "—" if demographics.idade is None else str(demographics.idade))
    table.add_row("sexo", demographics.sexo or "—")
    console.print(table)


def _print_sources(registry: Registry) -> None:
    if not registry.sources:
        return
    table = Table(title="Sources", show_lines=False)
    table.add_column("Source", style="cyan")
    table.add_column("OK")
    table.add_column("Detail")
    for status in registry.sources:
        table.add_row(status.source, "Yes" if status.ok else "No", status.detail)
    console.print(table)


if __name__ == "__main__":  # pragma: no cover
    app()
