"""CLI helpers for loading application state and services."""

from __future__ import annotations

import click
from spendmap.domain.app_state import AppState
from spendmap.domain.category import CategoryService
from spendmap.domain.mapping_store import MappingStoreService
from spendmap.domain.merge import MergeService
from spendmap.domain.transaction_editor import TransactionEditService


def get_state(ctx: click.Context) -> AppState:
    """Load the application state once per command invocation."""
    obj = ctx.find_object(dict)
    if "state" not in obj:
        obj["state"] = AppState.load(obj["db"])
    return obj["state"]


def get_mapping_store(ctx: click.Context) -> MappingStoreService:
    """Create the mapping store service for the current database."""
    return MappingStoreService(ctx.find_object(dict)["db"])


def get_category_service(ctx: click.Context) -> CategoryService:
    """Create the category service for the current state."""
    return CategoryService(get_state(ctx))


def get_merge_service(ctx: click.Context) -> MergeService:
    """Create the merge service wired to the mapping store and categories."""
    return MergeService(
        get_state(ctx),
        mapping_store=get_mapping_store(ctx),
        category_service=get_category_service(ctx),
    )


def get_edit_service(ctx: click.Context) -> TransactionEditService:
    """Create the transaction edit service for the current state."""
    return TransactionEditService(get_state(ctx))
