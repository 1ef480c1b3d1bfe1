import json
import logging

from typing import Annotated, Optional, cast

from typer import Argument, Exit, Option, Typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import resolve_log_level
from .indexing import DEFAULT_BATCH_LIMIT
from .models import DocumentKind, SearchResult
from .services import open_services
from .verify import verify_documents

app = Typer(help="Hybrid search and embedding maintenance for published content.")
console = Console()

DbPathOption = Annotated[
    Optional[str],
    Option("--db-path", help="DuckDB path (defaults to CONTENT_SEARCH_DB_PATH)."),
]


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=resolve_log_level(verbose),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    verbose: Annotated[
        bool, Option("--verbose", "-v", help="Log progress at INFO level.")
    ] = False,
) -> None:
    configure_logging(verbose)


def _results_table(title: str, results: list[SearchResult], *, show_score: bool) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Title", style="bold")
    table.add_column("Link")
    table.add_column("Snippet")
    if show_score:
        table.add_column("Score", justify="right")
    for position, result in enumerate(results, start=1):
        link = f"/{result.slug}" + (f"#{result.anchor}" if result.anchor else "")
        row = [str(position), result.kind, result.title, link, result.snippet]
        if show_score:
            row.append(f"{result.score:.3f}" if result.score is not None else "")
        table.add_row(*row)
    return table


@app.command()
def search(
    query: Annotated[str, Argument(help="Text to search for.")],
    semantic: Annotated[
        bool, Option("--semantic", help="Rank by meaning using embeddings.")
    ] = False,
    titles: Annotated[
        bool, Option("--titles", help="Only match titles; never fetch bodies.")
    ] = False,
    as_json: Annotated[bool, Option("--json", help="Print results as JSON.")] = False,
    db_path: DbPathOption = None,
) -> None:
    """Search published posts and pages."""
    if semantic and titles:
        console.print("[bold red]--semantic and --titles cannot be combined[/]")
        raise Exit(code=2)

    with open_services(db_path, read_only=True) as services:
        if semantic:
            if not services.engine.is_semantic_search_available():
                console.print(
                    "[yellow]Semantic search unavailable: no embedding provider "
                    "credential configured. Falling back to keyword search.[/]"
                )
                results = services.engine.search(query)
            else:
                results = services.engine.semantic_search(query)
        elif titles:
            results = services.engine.search_titles(query)
        else:
            results = services.engine.search(query)

    if as_json:
        console.print_json(json.dumps([result.to_dict() for result in results]))
        return
    if not results:
        console.print("No results.")
        return
    console.print(_results_table(f"Results for {query!r}", results, show_score=semantic))


@app.command("ensure-embeddings")
def ensure_embeddings(
    kind: Annotated[
        str, Option("--kind", help="post, page, or all.")
    ] = "all",
    limit: Annotated[
        int, Option("--limit", help="Maximum documents to embed per kind.")
    ] = DEFAULT_BATCH_LIMIT,
    db_path: DbPathOption = None,
) -> None:
    """Embed one batch of documents that have no embedding yet."""
    if kind not in {"post", "page", "all"}:
        console.print(f"[bold red]Unknown kind: {kind}[/]")
        raise Exit(code=2)

    with open_services(db_path) as services:
        if kind == "all":
            summary = services.pipeline.ensure_all_embeddings(limit)
            skipped = summary.skipped
            lines = [
                f"Posts processed: {summary.posts_processed}",
                f"Pages processed: {summary.pages_processed}",
            ]
            failures = summary.failures
        else:
            result = services.pipeline.ensure_embeddings(cast(DocumentKind, kind), limit)
            skipped = result.skipped
            lines = [f"{kind.title()}s processed: {result.processed}"]
            failures = result.failures

    if skipped:
        console.print(
            Panel(
                "No embedding provider credential configured; nothing was embedded.",
                title="Embeddings Skipped",
                border_style="bold yellow",
            )
        )
        return
    lines.extend(f"Failed: {failure.slug} ({failure.error})" for failure in failures)
    console.print(
        Panel(
            "\n".join(lines),
            title="Embeddings Complete",
            border_style="bold green" if not failures else "bold yellow",
        )
    )


@app.command()
def regenerate(
    slug: Annotated[str, Argument(help="Slug of the post or page.")],
    kind: Annotated[
        Optional[str], Option("--kind", help="post or page (default: try both).")
    ] = None,
    db_path: DbPathOption = None,
) -> None:
    """Regenerate the embedding of one document."""
    if kind is not None and kind not in {"post", "page"}:
        console.print(f"[bold red]Unknown kind: {kind}[/]")
        raise Exit(code=2)

    with open_services(db_path) as services:
        result = services.pipeline.regenerate_embedding(slug, cast(Optional[DocumentKind], kind))

    if result.success:
        console.print(f"[bold green]Regenerated embedding for {slug}[/]")
        return
    console.print(f"[bold red]Could not regenerate {slug}:[/] {result.error}")
    raise Exit(code=1)


@app.command("verify-gateway")
def verify_gateway(
    as_json: Annotated[bool, Option("--json", help="Print checks as JSON.")] = False,
    db_path: DbPathOption = None,
) -> None:
    """Fetch every published document's body and report which are reachable."""
    with open_services(db_path, read_only=True) as services:
        documents = services.store.list_documents()
        endpoints = [endpoint.base_url for endpoint in services.gateway.endpoints]
        checks = verify_documents(services.gateway, documents)

    failed = [check for check in checks if not check.ok]
    if as_json:
        console.print_json(
            json.dumps(
                [
                    {
                        "kind": check.document.kind,
                        "slug": check.document.slug,
                        "ok": check.ok,
                        "size": check.size,
                        "error": check.error,
                    }
                    for check in checks
                ]
            )
        )
    else:
        table = Table(title=f"Gateway: {', '.join(endpoints)}")
        table.add_column("Kind")
        table.add_column("Slug", style="bold")
        table.add_column("Status")
        table.add_column("Detail")
        for check in checks:
            status = "[green]ok[/]" if check.ok else "[red]failed[/]"
            detail = f"{check.size} bytes: {check.preview}" if check.ok else str(check.error)
            table.add_row(check.document.kind, check.document.slug, status, detail)
        console.print(table)
        console.print(f"{len(checks) - len(failed)} reachable, {len(failed)} failed")

    if failed:
        raise Exit(code=1)


@app.command("semantic-status")
def semantic_status(db_path: DbPathOption = None) -> None:
    """Report whether semantic search is available and how many embeddings are missing."""
    with open_services(db_path, read_only=True) as services:
        available = services.engine.is_semantic_search_available()
        missing = {
            kind: services.store.count_missing_embeddings(kind) for kind in ("post", "page")
        }
    console.print_json(json.dumps({"available": available, "missing_embeddings": missing}))


@app.command()
def serve(
    host: Annotated[str, Option("--host")] = "127.0.0.1",
    port: Annotated[int, Option("--port")] = 8000,
) -> None:
    """Run the HTTP API."""
    from .server import run_server

    run_server(host=host, port=port)
