"""Helpers shared by the CLI command modules."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

import typer
from pydantic import ValidationError

from cardwise.application.config import AppConfig, resolve_config
from cardwise.domain.errors import CardwiseError, CorruptRecordError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def humanize_error(error: Exception) -> str:
    """Turn an exception into a one-line message suitable for the terminal."""
    if isinstance(error, CorruptRecordError):
        return f"{error}. The data file may have been edited by hand."
    if isinstance(error, StorageError):
        return f"Storage problem: {error}"
    if isinstance(error, ValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in error.errors()
        )
        return f"Invalid configuration: {problems}"
    return str(error)


def _fail(error: Exception) -> typer.Exit:
    logger.debug("Command failed", exc_info=True)
    typer.secho(humanize_error(error), fg=typer.colors.RED, err=True)
    return typer.Exit(code=1)


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    try:
        return resolve_config({k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        raise _fail(e) from e


def run(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run an async command body, reporting domain errors as a red message and exit code 1.
    """
    try:
        return asyncio.run(coro)
    except CardwiseError as e:
        raise _fail(e) from e


def config_from_context(ctx: typer.Context) -> AppConfig:
    """Resolve config, layering the global CLI options stored on the context."""
    obj = ctx.obj or {}
    return _resolve_with_overrides(
        data_dir=obj.get("data_dir"),
        timezone=obj.get("timezone"),
    )
