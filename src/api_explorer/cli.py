"""CLI entry point for api-explorer."""

import logging
from pathlib import Path

import click

from api_explorer.errors import ApiExplorerError
from api_explorer.parser.base import Endpoint, NormalizedDocument
from api_explorer.parser.loader import load_spec
from api_explorer.search.grouping import count_endpoints_in_category, filter_view
from api_explorer.search.ranker import search
from api_explorer.search.samples import DEFAULT_LANGUAGE, LANGUAGES, generate_sample
from api_explorer.search.tool import MAX_RESULTS, search_documentation

DOC_PATH = click.Path(exists=True, dir_okay=False, path_type=Path)


def _load(doc_path: Path) -> NormalizedDocument:
    """Load a document, turning library errors into a clean CLI failure."""
    try:
        document = load_spec(doc_path)
    except ApiExplorerError as e:
        raise click.ClickException(str(e)) from e
    for warning in document.warnings:
        click.echo(f"warning: {warning}", err=True)
    return document


def _endpoint_line(endpoint: Endpoint) -> str:
    summary = f"  {endpoint.summary}" if endpoint.summary else ""
    flag = " (deprecated)" if endpoint.deprecated else ""
    return f"  {endpoint.method:<7} {endpoint.path}{summary}{flag}  [#{endpoint.id}]"


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool):
    """API Explorer: browse and search OpenAPI documents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("doc_path", type=DOC_PATH)
@click.option("-q", "--query", default="", help="Free-text filter; empty shows every endpoint.")
def browse(doc_path: Path, query: str):
    """Show endpoints grouped by category, optionally filtered by a query."""
    document = _load(doc_path)
    click.echo(f"{document.title} {document.version}")

    groups = filter_view(document, query)
    if not groups:
        if query:
            click.echo("No endpoints match your search criteria.")
        else:
            click.echo("No endpoints found in this specification.")
        return

    for category, endpoints in groups:
        click.echo("")
        click.echo(f"{category.name} [#{category.id}]")
        if category.description:
            click.echo(f"  {category.description}")
        for endpoint in endpoints:
            click.echo(_endpoint_line(endpoint))


@main.command(name="search")
@click.argument("doc_path", type=DOC_PATH)
@click.argument("query")
@click.option("--language", default=DEFAULT_LANGUAGE, envvar="API_EXPLORER_LANGUAGE", type=click.Choice(LANGUAGES), help="Language of the code samples.")
@click.option("--limit", default=MAX_RESULTS, show_default=True, type=click.IntRange(min=1), help="Maximum number of results.")
@click.option("--base-url", default=None, envvar="API_EXPLORER_BASE_URL", help="Server URL used in samples.")
@click.option("--explain", is_flag=True, help="Show the scoring breakdown instead of the tool output.")
def search_command(doc_path: Path, query: str, language: str, limit: int, base_url: str | None, explain: bool):
    """Run the agent search tool against a document."""
    document = _load(doc_path)

    if not explain:
        click.echo(search_documentation(document, query, language, limit=limit, base_url=base_url))
        return

    results = search(document.endpoints, query, limit=limit)
    if not results:
        click.echo("No endpoints matched.")
        return
    for result in results:
        click.echo(f"{result.score:>4}  {result.endpoint.method} {result.endpoint.path}")
        for hit in result.hits:
            label = f"{hit.field}:{hit.term}" if hit.term else hit.field
            click.echo(f"        +{hit.weight:<3} {label}")


@main.command()
@click.argument("doc_path", type=DOC_PATH)
def categories(doc_path: Path):
    """List categories with their endpoint counts."""
    document = _load(doc_path)
    for category in document.categories:
        count = count_endpoints_in_category(document.endpoints, category.name)
        click.echo(f"{category.name} [#{category.id}] ({count})")


@main.command()
@click.argument("doc_path", type=DOC_PATH)
@click.argument("endpoint_id")
@click.option("--language", default=DEFAULT_LANGUAGE, envvar="API_EXPLORER_LANGUAGE", type=click.Choice(LANGUAGES), help="Language of the code sample.")
@click.option("--base-url", default=None, envvar="API_EXPLORER_BASE_URL", help="Server URL used in the sample.")
def endpoint(doc_path: Path, endpoint_id: str, language: str, base_url: str | None):
    """Show one endpoint by its anchor id, with a code sample."""
    document = _load(doc_path)
    found = document.get_endpoint(endpoint_id)
    if found is None:
        raise click.ClickException(f"No endpoint with id '{endpoint_id}'.")

    click.echo(f"{found.method} {found.path}")
    if found.summary:
        click.echo(found.summary)
    if found.description:
        click.echo(found.description)
    click.echo(f"Tags: {', '.join(found.tags)}")
    if found.parameters:
        click.echo("Parameters:")
        for param in found.parameters:
            required = " (required)" if param.required else ""
            click.echo(f"  {param.name} in {param.location}{required}  {param.description}".rstrip())
    if found.responses:
        click.echo("Responses:")
        for code, response in found.responses.items():
            click.echo(f"  {code}  {response.description}".rstrip())
    click.echo("")
    click.echo(generate_sample(found, language, base_url))
