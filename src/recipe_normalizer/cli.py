#!/usr/bin/env python3
"""CLI for recipe-normalizer: turn model output into structured recipes.

The CLI is responsible for:
- Argument parsing
- Rich output (tables, panels, JSON)
- Error presentation
- Wiring services from configuration

Normalization, generation and storage live in their own modules.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import VALID_MODELS, NormalizerConfig
from .exceptions import RecipeNormalizerError
from .models import SavePayload, StoredRecipe, StructuredRecipe
from .normalizer import normalize
from .payload import build_save_payload
from .responses import read_model_output
from .services import ServiceFactory

console = Console()
error_console = Console(stderr=True)


def setup_logging(log_file: str | Path = "recipe_normalizer.log", debug: bool = False) -> None:
    """Set up logging for the application.

    Detailed logs go to ``log_file``. With ``debug`` set, records are also
    rendered on stderr through rich.

    Args:
        log_file: Path to the log file
        debug: Log at DEBUG level and echo to the console
    """
    handlers: list[logging.Handler] = [logging.FileHandler(log_file, mode="a")]
    if debug:
        handlers.append(RichHandler(console=error_console, show_path=False))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="recipe-normalizer",
        description="Normalize generative-model recipe output and manage stored recipes",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, help="Project config file (TOML)")
    parser.add_argument("--data-dir", type=Path, help="Directory for stored recipes and history")
    parser.add_argument("--debug", action="store_true", help="Verbose logging on stderr")

    commands = parser.add_subparsers(dest="command", required=True)

    normalize_cmd = commands.add_parser(
        "normalize", help="Normalize saved model output (JSON envelope, JSON or text)"
    )
    normalize_cmd.add_argument("file", help="File with model output, or '-' for stdin")
    normalize_cmd.add_argument("--payload", action="store_true", help="Print the save payload")
    normalize_cmd.add_argument("--save", action="store_true", help="Store the recipe")

    generate_cmd = commands.add_parser("generate", help="Generate a recipe from ingredients")
    generate_cmd.add_argument("ingredients", nargs="+", help="Ingredients, one per argument")
    generate_cmd.add_argument("--model", choices=sorted(VALID_MODELS), help="OpenAI model")
    generate_cmd.add_argument("--save", action="store_true", help="Store the recipe")
    generate_cmd.add_argument(
        "--persist", action="store_true", help="Record the request in the history"
    )

    commands.add_parser("list", help="List stored recipes")

    show_cmd = commands.add_parser("show", help="Show a stored recipe")
    show_cmd.add_argument("recipe_id", type=int, metavar="ID")

    update_cmd = commands.add_parser(
        "update", help="Replace a stored recipe with normalized model output"
    )
    update_cmd.add_argument("recipe_id", type=int, metavar="ID")
    update_cmd.add_argument("file", help="File with model output, or '-' for stdin")

    delete_cmd = commands.add_parser("delete", help="Delete a stored recipe")
    delete_cmd.add_argument("recipe_id", type=int, metavar="ID")

    commands.add_parser("history", help="List recorded generation requests")
    return parser


def display_error(title: str, message: str) -> None:
    """Display an error panel."""
    error_console.print()
    error_console.print(Panel(message, title=f"[bold red]{title}[/bold red]", border_style="red"))
    error_console.print()


def display_recipe(recipe: StoredRecipe) -> None:
    """Display a stored recipe as a panel followed by its ingredients and steps."""
    details = [
        f"[dim]Serves {recipe.servings} | Prep {recipe.prep_time} min | "
        f"Cook {recipe.cook_time} min[/dim]"
    ]
    if recipe.description:
        details.insert(0, recipe.description)
    if recipe.tags:
        details.append(f"[magenta]{', '.join(recipe.tags)}[/magenta]")
    console.print(
        Panel("\n\n".join(details), title=f"[bold]{recipe.title}[/bold]", border_style="cyan")
    )

    ingredients = Table(title="Ingredients", show_header=True, header_style="bold cyan")
    ingredients.add_column("Quantity", justify="right")
    ingredients.add_column("Unit")
    ingredients.add_column("Ingredient", style="green")
    ingredients.add_column("Preparation", style="dim")
    for row in recipe.ingredients:
        ingredients.add_row(
            "" if row.quantity is None else str(row.quantity),
            row.unit or "",
            row.name or "",
            row.preparation or "",
        )
    console.print(ingredients)

    for step in recipe.steps:
        console.print(f"[bold]{step.step_number}.[/bold] {step.instruction}")


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {source}")
    return path.read_text(encoding="utf-8")


def _normalize_source(
    source: str, config: NormalizerConfig
) -> tuple[StructuredRecipe, SavePayload | None]:
    structured = normalize(read_model_output(_read_source(source)), config.description_line_limit)
    return structured, build_save_payload(structured)


def cmd_normalize(args: argparse.Namespace, config: NormalizerConfig, factory: ServiceFactory) -> None:
    """Normalize model output from a file or stdin and print it as JSON."""
    structured, payload = _normalize_source(args.file, config)

    result = payload if args.payload else structured
    console.print_json(data=result.model_dump(mode="json"))

    if args.save and payload is not None:
        recipe_id = factory.create_repository().save(payload)
        console.print(f"[green]✓[/green] Saved recipe {recipe_id}")


def cmd_generate(args: argparse.Namespace, config: NormalizerConfig, factory: ServiceFactory) -> None:
    """Generate a recipe from ingredients with the configured model."""
    generator = factory.create_generator(model=args.model)
    with console.status(f"Asking {generator.model} for a recipe..."):
        result = asyncio.run(generator.generate(args.ingredients, persist=args.persist))

    console.print_json(data=result.structured.model_dump(mode="json"))
    if args.save:
        recipe_id = factory.create_repository().save(result.payload)
        console.print(f"[green]✓[/green] Saved recipe {recipe_id}")


def cmd_list(args: argparse.Namespace, config: NormalizerConfig, factory: ServiceFactory) -> None:
    """List stored recipes."""
    recipes = factory.create_repository().list()
    if not recipes:
        console.print("[dim]No recipes stored yet.[/dim]")
        return

    table = Table(title="Recipes", show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("Title", style="green")
    table.add_column("Serves", justify="right")
    table.add_column("Ingredients", justify="right")
    table.add_column("Created", style="dim")
    for recipe in recipes:
        table.add_row(
            str(recipe.id),
            recipe.title,
            str(recipe.servings),
            str(len(recipe.ingredients)),
            recipe.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


def cmd_show(args: argparse.Namespace, config: NormalizerConfig, factory: ServiceFactory) -> None:
    """Show one stored recipe."""
    recipe = factory.create_repository().get(args.recipe_id)
    if recipe is None:
        raise LookupError(f"No recipe with id {args.recipe_id}")
    display_recipe(recipe)


def cmd_update(args: argparse.Namespace, config: NormalizerConfig, factory: ServiceFactory) -> None:
    """Replace a stored recipe with normalized model output."""
    _, payload = _normalize_source(args.file, config)
    recipe = factory.create_repository().update(args.recipe_id, payload)
    if recipe is None:
        raise LookupError(f"No recipe with id {args.recipe_id}")
    console.print(f"[green]✓[/green] Updated recipe {recipe.id}")
    display_recipe(recipe)


def cmd_delete(args: argparse.Namespace, config: NormalizerConfig, factory: ServiceFactory) -> None:
    """Delete one stored recipe."""
    if not factory.create_repository().delete(args.recipe_id):
        raise LookupError(f"No recipe with id {args.recipe_id}")
    console.print(f"[green]✓[/green] Deleted recipe {args.recipe_id}")


def cmd_history(args: argparse.Namespace, config: NormalizerConfig, factory: ServiceFactory) -> None:
    """List recorded generation requests, newest first."""
    submissions = factory.create_submission_store().list()
    if not submissions:
        console.print("[dim]No submissions recorded yet.[/dim]")
        return

    table = Table(title="Submissions", show_header=True, header_style="bold cyan")
    table.add_column("Created", style="dim")
    table.add_column("Title", style="green")
    table.add_column("Model")
    table.add_column("Question")
    for submission in submissions:
        table.add_row(
            submission.created_at.strftime("%Y-%m-%d %H:%M"),
            submission.title,
            submission.model,
            submission.question.replace("\n", ", "),
        )
    console.print(table)


COMMANDS = {
    "normalize": cmd_normalize,
    "generate": cmd_generate,
    "list": cmd_list,
    "show": cmd_show,
    "update": cmd_update,
    "delete": cmd_delete,
    "history": cmd_history,
}


def main(argv: list[str] | None = None) -> None:
    """Entry point for the recipe-normalizer command.

    Expected failures (configuration, generation, storage, missing files or
    ids) are shown in an error panel and exit with status 1.
    """
    args = build_parser().parse_args(argv)

    try:
        config = NormalizerConfig.load(config_path=args.config)
        if args.data_dir:
            config.update(data_dir=args.data_dir)
        if args.debug:
            config.update(debug_mode=True)
    except RecipeNormalizerError as e:
        display_error("Configuration Error", str(e))
        raise SystemExit(1) from e

    setup_logging(config.log_file, debug=config.debug_mode)
    factory = ServiceFactory(config=config)

    try:
        COMMANDS[args.command](args, config, factory)
    except KeyboardInterrupt:
        display_error("Interrupted", "[yellow]Interrupted by user[/yellow]")
        raise SystemExit(130) from None
    except (RecipeNormalizerError, FileNotFoundError, LookupError) as e:
        logging.getLogger(__name__).error(f"{args.command} failed: {e}")
        display_error("Error", str(e))
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
