"""Category management commands."""

import click
from spendmap.cli.context import get_category_service
from spendmap.cli.error_handling import handle_domain_error
from spendmap.domain.entities import CategoryWithSubcategories
from spendmap.domain.errors import DomainError


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List all categories with their subcategories."""
    service = get_category_service(ctx)

    categories = service.list_categories()
    if not categories:
        click.echo("No categories found. Run 'init-categories' to create default categories.")
        return

    click.echo("\nCategories:")
    for name, category in categories:
        click.echo(f"{name} ({category.color})")
        if isinstance(category, CategoryWithSubcategories):
            for sub_name, color in category.subcategories.items():
                click.echo(f"  {sub_name} ({color})")


@category_group.command("create")
@click.argument("name")
@click.option("--color", help="Display color, e.g. '#FF6384'")
@click.pass_context
def create_category(ctx, name: str, color: str | None):
    """Create a new category."""
    service = get_category_service(ctx)

    try:
        service.create_category(name=name, color=color)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created category '{name.strip()}'")


@category_group.command("add-sub")
@click.argument("category")
@click.argument("name")
@click.option("--color", help="Display color (default: the category's color)")
@click.pass_context
def add_subcategory(ctx, category: str, name: str, color: str | None):
    """Add a subcategory to a category."""
    service = get_category_service(ctx)

    try:
        service.add_subcategory(category, name, color=color)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added subcategory '{name.strip()}' to '{category}'")


@category_group.command("rename")
@click.argument("old_name")
@click.argument("new_name")
@click.pass_context
def rename_category(ctx, old_name: str, new_name: str):
    """Rename a category, updating transactions and remembered descriptions."""
    service = get_category_service(ctx)

    try:
        moved = service.rename_category(old_name, new_name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Renamed '{old_name}' to '{new_name.strip()}' ({moved} transactions updated)")


@category_group.command("rename-sub")
@click.argument("category")
@click.argument("old_name")
@click.argument("new_name")
@click.pass_context
def rename_subcategory(ctx, category: str, old_name: str, new_name: str):
    """Rename a subcategory."""
    service = get_category_service(ctx)

    try:
        moved = service.rename_subcategory(category, old_name, new_name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Renamed '{category}:{old_name}' to '{category}:{new_name.strip()}' "
        f"({moved} transactions updated)"
    )


@category_group.command("delete")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def delete_category(ctx, name: str, yes: bool):
    """Delete a category. Its transactions become uncategorized."""
    service = get_category_service(ctx)

    if not yes and not click.confirm(f"Delete category '{name}'?", default=False):
        click.echo("Cancelled.")
        return
    try:
        cleared = service.delete_category(name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted category '{name}' ({cleared} transactions uncategorized)")


@category_group.command("delete-sub")
@click.argument("category")
@click.argument("name")
@click.pass_context
def delete_subcategory(ctx, category: str, name: str):
    """Delete a subcategory. Its transactions keep the parent category."""
    service = get_category_service(ctx)

    try:
        moved = service.delete_subcategory(category, name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted subcategory '{name}' from '{category}' ({moved} transactions updated)")


@category_group.command("learn")
@click.argument("description")
@click.argument("category")
@click.option("--regex", is_flag=True, help="Treat DESCRIPTION as a regular expression")
@click.option("--apply", "apply_now", is_flag=True, help="Categorize matching uncategorized transactions now")
@click.pass_context
def learn_mapping(ctx, description: str, category: str, regex: bool, apply_now: bool):
    """Remember CATEGORY ("Category" or "Category:Subcategory") for DESCRIPTION."""
    service = get_category_service(ctx)

    try:
        key = service.learn_mapping(description, category, is_regex=regex)
        click.echo(f"Remembered '{key}' -> {category}")
        if apply_now:
            count = service.apply_category_mappings()
            click.echo(f"Categorized {count} transactions")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("mappings")
@click.option("--forget", help="Remove the entry for this description or pattern")
@click.option("--clear", "clear_all", is_flag=True, help="Remove all entries")
@click.pass_context
def list_mappings(ctx, forget: str | None, clear_all: bool):
    """List remembered description categories."""
    service = get_category_service(ctx)

    try:
        if clear_all:
            count = service.clear_mappings()
            click.echo(f"Removed {count} entries")
            return
        if forget is not None:
            service.forget_mapping(forget)
            click.echo(f"Forgot '{forget}'")
            return
    except DomainError as e:
        handle_domain_error(ctx, e)

    mappings = service.list_mappings()
    if not mappings:
        click.echo("No remembered descriptions.")
        return
    click.echo("\nRemembered descriptions:")
    for key, ref in mappings:
        click.echo(f"  {key} -> {ref}")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
