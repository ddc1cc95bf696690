"""Execute interface for the repeatsave callable protocol.

Provides the in-proc execute() function for hosts that call the finisher
directly with plain JSON-like data.
"""

from __future__ import annotations

import logging
from typing import Any

from repeatsave.callable.result import CallableResult
from repeatsave.config import load_global_config
from repeatsave.context import FinisherContext, FinisherVariableProvider, FormDefinition
from repeatsave.finisher import SaveRepeatableToDatabaseFinisher
from repeatsave.storage import ConnectionPool, RecordingConnectionPool, SqlAlchemyConnectionPool
from repeatsave.values import decode_values

logger = logging.getLogger(__name__)


def execute(
    params: dict[str, Any],
    connection_pool: ConnectionPool | None = None,
) -> dict[str, Any]:
    """Save one form submission to the database.

    Args:
        params: Dictionary containing:
            - options: dict | list - One option set or a sequence of option sets
            - values: dict - Submitted form values (tagged file/date values
              are decoded, see repeatsave.values.decode_value)
            - elements: list[str] - Identifiers of the form's elements
              (optional, derived from values when missing)
            - variables: dict - Variables written by earlier finishers,
              keyed by finisher identifier (optional)
            - config: dict - Optional configuration overrides:
                - database_url: str - Database to write to
                - dry_run: bool - Record operations without writing
                - finisher_identifier: str - Variable namespace
        connection_pool: Pool to use instead of one built from config.

    Returns:
        CallableResult dict with:
            - schema_version: "1.0"
            - items: list[dict] - Operation descriptors
            - variables: dict - Entries written by this finisher
            - stats: dict - Processing statistics

    Raises:
        ValueError: If required parameters are missing or invalid.
        ConfigurationError: If an option set is inconsistent.
        StorageConnectionError: If no connection can be acquired.
        SQLAlchemyError: Any error raised while writing.
    """
    options = params.get("options")
    if not options:
        raise ValueError("'options' is required in params")

    values = params.get("values")
    if not isinstance(values, dict):
        raise ValueError("'values' is required in params and must be a dict")

    config = params.get("config") or {}
    global_config = load_global_config()
    dry_run = bool(config.get("dry_run", False))
    finisher_identifier = config.get(
        "finisher_identifier", global_config.finisher_identifier
    )

    # Resolve storage
    if connection_pool is None:
        if dry_run:
            connection_pool = RecordingConnectionPool()
        else:
            database_url = config.get("database_url", global_config.database_url)
            if not database_url:
                raise ValueError(
                    "No database configured: pass config.database_url, "
                    "set REPEATSAVE_DATABASE_URL or run 'repeatsave init'"
                )
            connection_pool = SqlAlchemyConnectionPool(
                database_url=database_url,
                echo=global_config.echo_sql,
            )

    # Build context
    form_values = decode_values(values)
    elements = params.get("elements")
    form_definition = (
        FormDefinition.from_identifiers(elements) if elements is not None else None
    )
    variable_provider = FinisherVariableProvider()
    for namespace, entries in (params.get("variables") or {}).items():
        for key, value in entries.items():
            variable_provider.add(namespace, key, value)

    context = FinisherContext(
        form_values,
        form_definition=form_definition,
        variable_provider=variable_provider,
    )

    finisher = SaveRepeatableToDatabaseFinisher(
        options,
        connection_pool,
        finisher_identifier=finisher_identifier,
    )
    finisher_result = finisher.execute(context)

    stats = {
        "option_sets": finisher_result.option_sets,
        "inserts": finisher_result.inserts,
        "updates": finisher_result.updates,
    }
    logger.info(
        "Finished %d option set(s): %d insert(s), %d update(s)",
        stats["option_sets"],
        stats["inserts"],
        stats["updates"],
    )

    result = CallableResult(
        schema_version="1.0",
        items=[op.model_dump(mode="json") for op in finisher_result.operations],
        variables=variable_provider.to_dict().get(finisher_identifier, {}),
        stats=stats,
        dry_run=dry_run,
    )
    return result.to_dict()
