"""Statement file import command."""

import csv
from pathlib import Path

import click
from spendmap.cli.context import get_mapping_store, get_merge_service
from spendmap.cli.error_handling import handle_domain_error
from spendmap.domain.constants import DEFAULT_CURRENCY
from spendmap.domain.errors import DomainError, DuplicateDetectedError
from spendmap.domain.header_mapping import (
    format_mapping,
    parse_mapping,
    suggest_mapping,
    validate_mapping,
)
from spendmap.domain.signature import generate_signature
from spendmap.utils.table_reader import read_table


def print_mapping(header, mapping) -> None:
    """Print each column header next to the field it maps to."""
    for column, tag in enumerate(mapping):
        name = header[column] if column < len(header) else ""
        click.echo(f"  {column + 1:>2}. {str(name or '(blank)'):<30} -> {tag.value}")


@click.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--currency", help=f"Currency of the amounts (default: saved format or {DEFAULT_CURRENCY})")
@click.option("--header-row", type=click.IntRange(min=1), help="Row number of the column headers (default: 1)")
@click.option("--data-row", type=click.IntRange(min=1), help="Row number of the first transaction (default: row after headers)")
@click.option(
    "--mapping",
    "mapping_text",
    help="Comma separated field per column, e.g. 'date,description,-,expenses'",
)
@click.option("--yes", "-y", is_flag=True, help="Accept suggested mappings and duplicate warnings")
@click.pass_context
def import_file(
    ctx,
    file: str,
    currency: str | None,
    header_row: int | None,
    data_row: int | None,
    mapping_text: str | None,
    yes: bool,
):
    """Import transactions from a statement file.

    Known file formats are recognized from their headers and imported with
    the saved mapping. For new formats a mapping is suggested and saved
    once accepted.

    Examples:
        spendmap import january.csv
        spendmap import export.csv --currency EUR --mapping "date,description,expenses,income"
    """
    store = get_mapping_store(ctx)
    merge_service = get_merge_service(ctx)

    try:
        raw_table = read_table(file)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        click.echo(f"Error: Could not read {file}: {e}", err=True)
        ctx.exit(1)
    if not raw_table:
        click.echo(f"Error: {file} contains no rows", err=True)
        ctx.exit(1)

    file_name = Path(file).name
    width = max(len(row) for row in raw_table)
    header_row_index = header_row - 1 if header_row else 0
    if header_row_index >= len(raw_table):
        click.echo(f"Error: Header row {header_row} is past the end of the file", err=True)
        ctx.exit(1)
    header = raw_table[header_row_index]

    try:
        record = None
        if mapping_text is not None:
            mapping = parse_mapping(mapping_text)
        else:
            if header_row is not None:
                structure = generate_signature(
                    file_name, raw_table, header_row_index=header_row_index
                )
                record = store.find_by_structure(structure)
            else:
                record = store.find_by_table(file_name, raw_table)
            if record is not None:
                mapping = record.mapping
                if header_row is None:
                    header_row_index = record.header_row_index
                    header = raw_table[header_row_index]
                click.echo(f"Recognized format of '{record.file_name}'")
            else:
                mapping = suggest_mapping(raw_table, header_row_index)
                click.echo("Suggested column mapping:")
                print_mapping(header, mapping)

        # A saved mapping may be wider than this file's rows; missing cells read as empty
        too_wide = record is None and len(mapping) > width
        if len(mapping) < len(header) or too_wide:
            expected = width if too_wide else len(header)
            click.echo(
                f"Error: Mapping has {len(mapping)} columns but the file has {expected}",
                err=True,
            )
            ctx.exit(1)

        is_valid, problems = validate_mapping(mapping)
        if not is_valid:
            click.echo(f"Error: Mapping is incomplete: {'; '.join(problems)}", err=True)
            click.echo(
                f"Use --mapping to choose the columns, e.g. --mapping \"{format_mapping(mapping)}\"",
                err=True,
            )
            ctx.exit(1)

        if mapping_text is None and record is None and not yes:
            if not click.confirm("Use this mapping?", default=True):
                click.echo("Import cancelled. Use --mapping to choose the columns.")
                return

        if data_row is not None:
            data_row_index = data_row - 1
        elif record is not None and header_row is None:
            data_row_index = record.data_row_index
        else:
            data_row_index = header_row_index + 1
        if currency is None:
            currency = record.currency if record is not None and record.currency else DEFAULT_CURRENCY
        currency = currency.strip().upper()

        signature = generate_signature(
            file_name, raw_table, mapping, currency, header_row_index=header_row_index
        )
        store.save(
            store.new_record(
                signature=signature,
                mapping=mapping,
                file_name=file_name,
                header_row_index=header_row_index,
                data_row_index=data_row_index,
                currency=currency,
            )
        )

        merge_args = dict(
            raw_table=raw_table,
            mapping=mapping,
            file_name=file_name,
            signature=signature,
            header_row_index=header_row_index,
            data_row_index=data_row_index,
            currency=currency,
        )
        try:
            result = merge_service.add_merged_file(**merge_args, confirmed=yes)
        except DuplicateDetectedError as e:
            click.echo(f"Warning: {e}")
            if not click.confirm("Import anyway?", default=False):
                click.echo("Import cancelled.")
                return
            result = merge_service.add_merged_file(**merge_args, confirmed=True)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nImport complete:")
    if result["replaced"]:
        click.echo(f"  Replaced earlier import of '{file_name}'")
    click.echo(f"  Imported: {result['imported']} transactions")
    click.echo(f"  Skipped: {result['skipped']} empty rows")
    if result["errors"]:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_file)
