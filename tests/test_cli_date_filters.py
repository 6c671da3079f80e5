"""Tests for CLI date filter helper."""

from datetime import date

import click
import pytest

from spendmap.cli.date_filters import resolve_cli_date_range


def _ctx() -> click.Context:
    return click.Context(click.Command("test"))


def test_resolve_cli_date_range_parses_dates():
    start, end = resolve_cli_date_range(_ctx(), start_date="2024-01-01", end_date="31/01/2024")

    assert start == date(2024, 1, 1)
    assert end == date(2024, 1, 31)


def test_resolve_cli_date_range_open_ended():
    assert resolve_cli_date_range(_ctx(), start_date=None, end_date=None) == (None, None)
    assert resolve_cli_date_range(_ctx(), start_date="2024-01-01", end_date=None) == (
        date(2024, 1, 1),
        None,
    )


def test_resolve_cli_date_range_rejects_invalid_start(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(_ctx(), start_date="soon", end_date=None)

    assert excinfo.value.exit_code == 1
    assert "Invalid start date" in capsys.readouterr().err


def test_resolve_cli_date_range_rejects_invalid_end(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(_ctx(), start_date=None, end_date="later")

    assert excinfo.value.exit_code == 1
    assert "Invalid end date" in capsys.readouterr().err


def test_resolve_cli_date_range_rejects_reversed_range(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(_ctx(), start_date="2024-02-01", end_date="2024-01-01")

    assert excinfo.value.exit_code == 1
    assert "must not be after" in capsys.readouterr().err
