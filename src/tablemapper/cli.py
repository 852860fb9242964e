#!/usr/bin/env python3
"""tablemapper CLI for inspecting and removing rows through repositories."""

import argparse
import importlib

import questionary
from rich.console import Console
from rich.table import Table

from tablemapper.config import config
from tablemapper.entity import Entity
from tablemapper.exceptions import MapperError
from tablemapper.repository import Repository, RepositoryRegistry

console = Console()


def load_registry(path: str = None) -> RepositoryRegistry:
    """Import the registry named by "package.module:attribute"."""
    path = path or config.registry_path
    if not path:
        raise ValueError("No registry configured; set TABLEMAPPER_REGISTRY or pass --registry")
    module_name, _, attribute = path.partition(":")
    module = importlib.import_module(module_name)
    registry = getattr(module, attribute or "registry")
    if callable(registry) and not isinstance(registry, RepositoryRegistry):
        registry = registry()
    return registry


def parse_conditions(pairs: list[str]) -> dict:
    """Turn ["id=3", "parent_id=null"] into a where mapping."""
    conditions = {}
    for pair in pairs:
        column, sep, value = pair.partition("=")
        if not sep or not column:
            raise ValueError(f"Expected column=value, got {pair!r}")
        conditions[column] = None if value.lower() == "null" else value
    return conditions


def row_values(entity: Entity) -> dict:
    return {c: v for c, v in entity.snapshot().items() if c not in entity.relations}


def render_entity(entity: Entity) -> Table:
    table = Table(title=repr(entity), show_header=True)
    table.add_column("Column", style="bold")
    table.add_column("Value")
    for column, value in row_values(entity).items():
        table.add_row(column, "[dim]null[/]" if value is None else str(value))
    return table


def cell(entity: Entity, column: str) -> str:
    value = entity.get(column) if column in entity else None
    return "" if value is None else str(value)


def render_entities(repository: Repository, entities: list[Entity]) -> Table:
    columns = repository.entity_class.columns
    table = Table(title=str(repository.get_table()))
    for column in columns:
        table.add_column(column)
    for entity in entities:
        table.add_row(*(cell(entity, c) for c in columns))
    return table


def show(repository: Repository, conditions: dict) -> None:
    """Show a single row."""
    entity = repository.find_one(conditions)
    if entity is None:
        console.print("[red]No row found.[/]")
        return
    console.print(render_entity(entity))


def find(repository: Repository, conditions: dict, order: str = None) -> None:
    """List rows matching the conditions."""
    entities = repository.find(conditions, order)
    if not entities:
        console.print("[red]No rows found.[/]")
        return
    console.print(render_entities(repository, entities))
    console.print(f"[dim]{len(entities)} row(s)[/]")


def delete(repository: Repository, conditions: dict) -> None:
    """Delete a single row after confirmation."""
    entity = repository.find_one(conditions)
    if entity is None:
        console.print("[red]No row found.[/]")
        return

    console.print(render_entity(entity))
    if not questionary.confirm("Delete this row?").ask():
        console.print("[dim]Cancelled.[/]")
        return

    affected = repository.remove(entity)
    console.print(f"[green]Deleted {affected} row(s) from {repository.get_table()}.[/]")


def main(argv: list[str] = None) -> int:
    parser = argparse.ArgumentParser(description="tablemapper CLI")
    parser.add_argument("--registry", help="Registry location as package.module:attribute")
    subparsers = parser.add_subparsers(dest="command", required=True)

    show_parser = subparsers.add_parser("show", help="Show one row")
    find_parser = subparsers.add_parser("find", help="List matching rows")
    find_parser.add_argument("--order", help='Order specification, e.g. "name DESC"')
    delete_parser = subparsers.add_parser("delete", help="Delete one row")
    for sub in (show_parser, find_parser, delete_parser):
        sub.add_argument("repository", help="Registered repository name")
        sub.add_argument("conditions", nargs="*", help="column=value filters")

    args = parser.parse_args(argv)

    try:
        registry = load_registry(args.registry)
        repository = registry.get(args.repository)
        conditions = parse_conditions(args.conditions)

        if args.command == "show":
            show(repository, conditions)
        elif args.command == "find":
            find(repository, conditions, args.order)
        elif args.command == "delete":
            delete(repository, conditions)
    except (MapperError, ValueError) as e:
        console.print(f"[red]{e}[/]")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
