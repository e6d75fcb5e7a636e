"""Main CLI entry point for the book metadata pipeline."""
import asyncio
import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from utils.logger import setup_logger
from utils.errors import ContentPolicyError, PipelineError
from ingestion.models import PreparedDocument
from ingestion.pipeline import prepare_document
from generation.model_client import AnthropicModelClient
from generation.metadata_generator import MetadataGenerator
from generation.models import ContentType

logger = setup_logger(__name__)
console = Console()

CONTENT_TYPE_CHOICES = [c.value for c in ContentType] + ["all"]


def _read_text(path: str) -> str:
    text = Path(path).read_text(encoding="utf-8")
    if not text.strip():
        raise click.ClickException(f"{path} contains no text")
    return text


def _load_prepared(text_path: str, prepared_path: str) -> PreparedDocument:
    if prepared_path:
        return PreparedDocument.model_validate_json(Path(prepared_path).read_text(encoding="utf-8"))
    if text_path:
        return prepare_document(_read_text(text_path))
    raise click.UsageError("Provide either --text or --prepared")


def _fail(error: PipelineError) -> None:
    if isinstance(error, ContentPolicyError):
        console.print(f"[red]{error.user_message}[/red]")
    else:
        console.print(f"[red]Error: {error}[/red]")
    sys.exit(1)


@click.group()
def cli():
    """Book Metadata Pipeline - chunking, rolling summary and metadata generation"""
    pass


@cli.command()
@click.option('--text', 'text_path', required=True, type=click.Path(exists=True), help='Path to extracted manuscript text')
def analyze(text_path):
    """Show detected structure and the resulting chunks."""
    try:
        doc = prepare_document(_read_text(text_path))
    except PipelineError as e:
        _fail(e)
        return

    structure = doc.structure
    console.print("\n[bold cyan]Structure[/bold cyan]\n")
    table = Table(show_header=False)
    table.add_row("Chapters", str(len(structure.chapter_matches)))
    table.add_row("Sections", str(len(structure.section_matches)))
    table.add_row("Paragraph breaks", str(structure.total_paragraphs))
    console.print(table)

    console.print("\n[bold cyan]Chunks[/bold cyan]\n")
    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Tokens", justify="right")
    table.add_column("Offsets")
    table.add_column("Sub-chunk")
    for i, chunk in enumerate(doc.chunks):
        title = chunk.chapter_title or chunk.section_title or "-"
        sub = str(chunk.sub_chunk_index) if chunk.is_sub_chunk else ""
        table.add_row(str(i), title, str(chunk.token_count), f"{chunk.start_offset}-{chunk.end_offset}", sub)
    console.print(table)

    console.print(
        f"\nRolling summary: {len(doc.summary.summary_text)} characters, "
        f"~{doc.summary.estimated_token_count} tokens"
    )


@cli.command()
@click.option('--text', 'text_path', required=True, type=click.Path(exists=True), help='Path to extracted manuscript text')
@click.option('--output', required=True, type=click.Path(), help='Where to write the prepared document JSON')
def prepare(text_path, output):
    """Chunk a manuscript and compute its rolling summary."""
    try:
        doc = prepare_document(_read_text(text_path))
    except PipelineError as e:
        _fail(e)
        return

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(doc.model_dump_json(indent=2), encoding="utf-8")

    console.print(f"[green]✓ Prepared {len(doc.chunks)} chunks[/green]")
    console.print(f"Output: [cyan]{output_path}[/cyan]")


@cli.command()
@click.option('--text', 'text_path', type=click.Path(exists=True), help='Path to extracted manuscript text')
@click.option('--prepared', 'prepared_path', type=click.Path(exists=True), help='Prepared document JSON from `prepare`')
@click.option('--type', 'content_type', required=True, type=click.Choice(CONTENT_TYPE_CHOICES), help='What to generate')
@click.option('--output', type=click.Path(), help='Write results as JSON to this path')
def generate(text_path, prepared_path, content_type, output):
    """Generate book metadata with the configured Anthropic model."""
    types = list(ContentType) if content_type == "all" else [ContentType(content_type)]

    try:
        doc = _load_prepared(text_path, prepared_path)
        generator = MetadataGenerator(AnthropicModelClient())

        async def _run():
            results = {}
            for ct in types:
                results[ct.value] = await generator.generate(ct, doc.chunks, doc.summary)
            return results

        results = asyncio.run(_run())
    except PipelineError as e:
        logger.debug("Generation failed", exc_info=True)
        _fail(e)
        return

    payload = {name: result.model_dump(by_alias=True) for name, result in results.items()}
    console.print_json(json.dumps(payload, ensure_ascii=False))
    console.print(f"\n[green]✓ Generation complete. Tokens used: {generator.total_tokens_used}[/green]")

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"Output: [cyan]{output_path}[/cyan]")


if __name__ == '__main__':
    cli()
