"""Transaction management commands."""

import click
from spendmap.cli.context import get_edit_service
from spendmap.cli.date_filters import resolve_cli_date_range
from spendmap.cli.error_handling import handle_domain_error
from spendmap.domain.errors import DomainError, RevertPreconditionError


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD)")
@click.option("--end-date", help="End date (YYYY-MM-DD)")
@click.option("--category", help="Category name")
@click.option("--file", "file_name", help="Only transactions from this merged file")
@click.option("--uncategorized", is_flag=True, help="Show only uncategorized transactions")
@click.option("--edited", is_flag=True, help="Show only edited transactions")
@click.option("--all", "include_unselected", is_flag=True, help="Include deselected files")
@click.option("--verbose", "-v", is_flag=True, help="Show all fields including original values")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    category: str | None,
    file_name: str | None,
    uncategorized: bool,
    edited: bool,
    include_unselected: bool,
    verbose: bool,
):
    """View transactions with optional filters."""
    service = get_edit_service(ctx)

    if category and uncategorized:
        click.echo("Error: --category and --uncategorized cannot be combined.", err=True)
        ctx.exit(1)

    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date)

    transactions = service.list_transactions(
        file_name=file_name,
        category="" if uncategorized else category,
        start_date=start,
        end_date=end,
        edited_only=edited,
        include_unselected=include_unselected,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    if verbose:
        click.echo("=" * 100)
        for txn in transactions:
            click.echo(f"\nTransaction ID: {txn.id}")
            click.echo(f"  Date: {txn.date or ''}")
            click.echo(f"  Description: {txn.description}")
            click.echo(f"  Income: {txn.income:,.2f} {txn.currency}")
            click.echo(f"  Expenses: {txn.expenses:,.2f} {txn.currency}")
            click.echo(f"  Category: {txn.category_ref or 'Uncategorized'}")
            click.echo(f"  File: {txn.file_name}")
            if txn.original_data is not None:
                original = txn.original_data
                click.echo(
                    f"  Original: {original.date or ''} | {original.description} | "
                    f"income {original.income:,.2f} | expenses {original.expenses:,.2f}"
                )
            if txn.original_category is not None:
                click.echo(
                    f"  Original category: "
                    f"{':'.join(p for p in (txn.original_category, txn.original_subcategory) if p) or 'Uncategorized'}"
                )
            if txn.edited_fields:
                click.echo(f"  Edited fields: {', '.join(sorted(txn.edited_fields))}")
            click.echo("-" * 100)
        return

    click.echo("-" * 100)
    click.echo(f"{'ID':<16} {'Date':<12} {'Amount':>14} {'Category':<24} {'Description':<30}")
    click.echo("-" * 100)
    for txn in transactions:
        mark = "*" if txn.edited_fields else ""
        amount = f"{txn.amount:,.2f} {txn.currency}"
        category_str = str(txn.category_ref or "Uncategorized")[:24]
        click.echo(
            f"{txn.id + mark:<16} {str(txn.date or ''):<12} {amount:>14} "
            f"{category_str:<24} {txn.description[:30]:<30}"
        )


@transaction_group.command("edit")
@click.argument("transaction_id")
@click.option("--date", help="Transaction date")
@click.option("--description", help="Transaction description")
@click.option("--income", help="Income amount (non-negative)")
@click.option("--expenses", help="Expenses amount (non-negative)")
@click.option("--currency", help="Currency code")
@click.pass_context
def edit_transaction(
    ctx,
    transaction_id: str,
    date: str | None,
    description: str | None,
    income: str | None,
    expenses: str | None,
    currency: str | None,
) -> None:
    """Edit a transaction.

    Updates only the fields that are provided. The original values are kept
    and can be restored with 'transaction revert'.

    Examples:
        spendmap transaction edit tx_1a2b3c4d5e6f --description "Rent March"
        spendmap transaction edit tx_1a2b3c4d5e6f --expenses 42.50
    """
    service = get_edit_service(ctx)

    changes = {
        "date": date,
        "description": description,
        "income": income,
        "expenses": expenses,
        "currency": currency,
    }
    changes = {field: value for field, value in changes.items() if value is not None}
    if not changes:
        click.echo("Error: Nothing to update. Provide at least one field option.", err=True)
        ctx.exit(1)

    try:
        service.edit_fields(transaction_id, changes)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transaction {transaction_id}")


@transaction_group.command("category")
@click.argument("transaction_id")
@click.argument("category")
@click.option("--remember", is_flag=True, help="Use this category for the same description in future imports")
@click.pass_context
def categorize_transaction(ctx, transaction_id: str, category: str, remember: bool):
    """Set the category of a transaction.

    CATEGORY is "Category" or "Category:Subcategory"; use "" to clear it.
    """
    service = get_edit_service(ctx)

    try:
        txn = service.set_category(transaction_id, category, remember=remember)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Categorized transaction {transaction_id} as {txn.category_ref or 'Uncategorized'}")
    if remember and txn.category:
        click.echo(f"Remembered '{txn.description}' -> {txn.category_ref}")


@transaction_group.command("revert")
@click.argument("transaction_id")
@click.option("--data", "what", flag_value="data", help="Revert only date, description and amounts")
@click.option("--category", "what", flag_value="category", help="Revert only the category")
@click.pass_context
def revert_transaction(ctx, transaction_id: str, what: str | None):
    """Restore a transaction's original values."""
    service = get_edit_service(ctx)

    try:
        if what == "data":
            service.revert_data(transaction_id)
            reverted = ["data"]
        elif what == "category":
            service.revert_category(transaction_id)
            reverted = ["category"]
        else:
            reverted = service.revert(transaction_id)
    except RevertPreconditionError as e:
        click.echo(str(e))
        return
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reverted {' and '.join(reverted)} of transaction {transaction_id}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
