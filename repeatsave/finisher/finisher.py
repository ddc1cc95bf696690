"""Finisher saving submitted form values, including repeatable containers, to a database.

For every option set the finisher builds rows from the submitted values and
writes them with one insert or update per row. With a "repeat" container
configured, one row is written per sub-group of the container.

Results are written to the finisher variable provider so later finishers
can read them:
    insertedUids.<iteration>                  uid of an inserted row
    insertedUids.<iteration>.<repeatIndex>    uid of a row inserted for a sub-group
    countInserts.<iteration>                  number of sub-groups processed
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from repeatsave.context import FinisherContext
from repeatsave.errors import ConfigurationError
from repeatsave.options import (
    ElementConfig,
    FinisherOptions,
    OptionResolver,
    TemplateOptionResolver,
    parse_option_sets,
)
from repeatsave.storage import (
    Connection,
    ConnectionPool,
    InsertOperation,
    Operation,
    UpdateOperation,
)
from repeatsave.values import is_empty_value, normalize_value

logger = logging.getLogger(__name__)

DEFAULT_FINISHER_IDENTIFIER = "SaveRepeatableToDatabase"
EMPTY_WHERE_CLAUSE_CODE = 1480469086
INTERNAL_IDENTIFIER_PREFIX = "__"

_elements_adapter = TypeAdapter(dict[str, ElementConfig])


class FinisherResult(BaseModel):
    """Operations issued by one finisher execution, in order."""

    finisher_identifier: str
    option_sets: int
    operations: list[Operation] = Field(default_factory=list)

    @property
    def inserts(self) -> int:
        return sum(1 for op in self.operations if op.kind == "insert")

    @property
    def updates(self) -> int:
        return sum(1 for op in self.operations if op.kind == "update")


class SaveRepeatableToDatabaseFinisher:
    """Maps submitted form values onto table rows and persists them.

    Options are either one option set (a mapping with a "table" key) or an
    ordered sequence of option sets, processed strictly in order.
    """

    def __init__(
        self,
        options: Any,
        connection_pool: ConnectionPool,
        resolver: OptionResolver | None = None,
        finisher_identifier: str = DEFAULT_FINISHER_IDENTIFIER,
    ) -> None:
        """Initialize the finisher.

        Args:
            options: Raw finisher options (one option set or a sequence).
            connection_pool: Provides connections per table.
            resolver: Option resolver. Defaults to TemplateOptionResolver.
            finisher_identifier: Namespace used in the variable provider.
        """
        self.options = options
        self.connection_pool = connection_pool
        self.resolver = resolver if resolver is not None else TemplateOptionResolver()
        self.finisher_identifier = finisher_identifier

        # Per-execution state
        self._context: FinisherContext | None = None
        self._active_options: dict[str, Any] = {}
        self._options: FinisherOptions | None = None
        self._connection: Connection | None = None
        self._operations: list[Operation] = []

    def execute(self, context: FinisherContext) -> FinisherResult:
        """Run every option set against one form submission.

        Args:
            context: Context of the submitted form.

        Returns:
            FinisherResult listing every insert and update issued.

        Raises:
            ConfigurationError: If an option set is inconsistent.
            StorageConnectionError: If no connection can be acquired.
        """
        option_sets = parse_option_sets(self.options)
        self._context = context
        self._operations = []

        for iteration, option_set in enumerate(option_sets):
            self._active_options = option_set
            self._options = None
            self._connection = None
            self.process(iteration)

        return FinisherResult(
            finisher_identifier=self.finisher_identifier,
            option_sets=len(option_sets),
            operations=list(self._operations),
        )

    def process(self, iteration: int) -> None:
        """Perform the database operation for the active option set."""
        self._throw_exception_on_inconsistent_configuration()
        options = FinisherOptions.from_raw(self._active_options)
        self._options = options

        table = self._parse_option("table")
        table = table if isinstance(table, str) else ""
        if not table:
            raise ConfigurationError('The option "table" must resolve to a non-empty string.')

        elements = self._parse_elements()
        repeat = self._parse_option("repeat")
        repeat = repeat if isinstance(repeat, str) else ""

        logger.info(
            "Processing option set %d: %s into %s%s",
            iteration,
            options.mode,
            table,
            f" (repeat {repeat!r})" if repeat else "",
        )
        self._connection = self.connection_pool.get_connection_for_table(table)

        row: dict[str, Any] = {}
        for column_name, column_config in options.database_column_mappings.items():
            value = self._parse_option(f"databaseColumnMappings.{column_name}.value")
            if is_empty_value(value) and column_config.skip_if_value_is_empty:
                continue
            row[column_name] = value

        if repeat:
            self._process_repeat(repeat, elements, row, table, iteration)
        else:
            row = self.prepare_data(elements, row)
            self._save_to_database(row, table, iteration)

    def prepare_data(
        self,
        elements: Mapping[str, ElementConfig],
        row: dict[str, Any],
        prefix: str = "",
        values: Mapping[str, Any] | None = None,
        repeat: str = "",
        repeat_index: int | None = None,
    ) -> dict[str, Any]:
        """Fill a row from submitted values.

        Args:
            elements: Element configs by identifier.
            row: Row to fill. Not modified; a filled copy is returned.
            prefix: Prefix of the identifiers in the form definition
                ("<repeat>.<index>." inside a repeatable container).
            values: Values to map. Defaults to all submitted form values.
            repeat: Name of the repeatable container, if any.
            repeat_index: Index of the sub-group inside the container.

        Returns:
            The filled row.
        """
        if values is None:
            values = self._require_context().get_form_values()

        row = dict(row)
        for identifier, value in values.items():
            element_config = self._element_config(elements, identifier, repeat, repeat_index)
            if self._ignore_element(element_config, prefix, identifier, value):
                continue

            row[element_config.map_on_database_column] = normalize_value(value, element_config)
        return row

    def _element_config(
        self,
        elements: Mapping[str, ElementConfig],
        identifier: str,
        repeat: str,
        repeat_index: int | None,
    ) -> ElementConfig | None:
        if identifier in elements:
            return elements[identifier]
        if repeat:
            for key in (f"{repeat}.*.{identifier}", f"{repeat}.{repeat_index}.{identifier}"):
                if key in elements:
                    return elements[key]
        return None

    def _ignore_element(
        self,
        element_config: ElementConfig | None,
        prefix: str,
        identifier: str,
        value: Any,
    ) -> bool:
        """Check if an element should be left out of the row."""
        if (
            (value is None or (isinstance(value, str) and value == ""))
            and element_config is not None
            and element_config.skip_if_value_is_empty
        ):
            logger.debug("Skipping empty element %s%s", prefix, identifier)
            return True

        element = self._require_context().get_element_by_identifier(prefix + identifier)
        if (
            (element is None and not identifier.startswith(INTERNAL_IDENTIFIER_PREFIX))
            or element_config is None
            or not element_config.map_on_database_column
        ):
            return True

        return False

    def _process_repeat(
        self,
        repeat: str,
        elements: Mapping[str, ElementConfig],
        row: dict[str, Any],
        table: str,
        iteration: int,
    ) -> None:
        """Write one row per sub-group of a repeatable container."""
        values = self._require_context().get_form_values()
        if repeat not in values:
            raise ConfigurationError(
                f'The repeatable container "{repeat}" was not submitted with the form.'
            )

        groups = self._sub_groups(repeat, values[repeat])
        for index, group in enumerate(groups):
            group_row = self.prepare_data(
                elements,
                row,
                prefix=f"{repeat}.{index}.",
                values=group,
                repeat=repeat,
                repeat_index=index,
            )
            self._save_to_database(group_row, table, iteration, index)

        self._require_context().variable_provider.add(
            self.finisher_identifier,
            f"countInserts.{iteration}",
            len(groups),
        )

    def _sub_groups(self, repeat: str, container: Any) -> list[Mapping[str, Any]]:
        """Return the sub-groups of a container in index order."""
        if isinstance(container, list):
            groups = container
        elif isinstance(container, Mapping):
            groups = []
            for index in range(len(container)):
                if index in container:
                    groups.append(container[index])
                elif str(index) in container:
                    groups.append(container[str(index)])
                else:
                    raise ConfigurationError(
                        f'The repeatable container "{repeat}" has no sub-group {index}.'
                    )
        else:
            raise ConfigurationError(
                f'The repeatable container "{repeat}" must hold sub-groups, '
                f"got {type(container).__name__}."
            )

        for index, group in enumerate(groups):
            if not isinstance(group, Mapping):
                raise ConfigurationError(
                    f'Sub-group {index} of "{repeat}" must be a mapping, '
                    f"got {type(group).__name__}."
                )
        return groups

    def _save_to_database(
        self,
        row: dict[str, Any],
        table: str,
        iteration: int,
        repeat_index: int | None = None,
    ) -> None:
        """Insert or update one row."""
        if not row:
            logger.debug("Nothing to save for option set %d", iteration)
            return

        connection = self._connection
        options = self._options
        if connection is None or options is None:
            raise RuntimeError("No connection acquired for the active option set")

        if options.is_update:
            where_clause = {
                column: self._parse_option(f"whereClause.{column}")
                for column in options.where_clause
            }
            connection.update(table, row, where_clause)
            logger.info("Updated %s where %s", table, where_clause)
            self._operations.append(
                UpdateOperation(
                    table=table,
                    row=row,
                    where_clause=where_clause,
                    iteration=iteration,
                    repeat_index=repeat_index,
                )
            )
            return

        connection.insert(table, row)
        inserted_uid = int(connection.last_insert_id(table) or 0)
        key = f"insertedUids.{iteration}"
        if repeat_index is not None:
            key += f".{repeat_index}"
        self._require_context().variable_provider.add(self.finisher_identifier, key, inserted_uid)
        logger.info("Inserted row %d into %s", inserted_uid, table)
        self._operations.append(
            InsertOperation(
                table=table,
                row=row,
                iteration=iteration,
                repeat_index=repeat_index,
                inserted_uid=inserted_uid,
            )
        )

    def _throw_exception_on_inconsistent_configuration(self) -> None:
        """Raise if the active option set is inconsistent.

        Raises:
            ConfigurationError: In update mode without a where clause.
        """
        if self._active_options.get("mode") == "update" and not self._active_options.get(
            "whereClause"
        ):
            raise ConfigurationError(
                'An empty option "whereClause" is not allowed in update mode.',
                code=EMPTY_WHERE_CLAUSE_CODE,
            )

    def _parse_elements(self) -> dict[str, ElementConfig]:
        elements = self._parse_option("elements")
        if not isinstance(elements, Mapping):
            return {}
        try:
            return _elements_adapter.validate_python(dict(elements))
        except ValidationError as e:
            raise ConfigurationError(f'Invalid option "elements": {e}') from e

    def _parse_option(self, path: str) -> Any:
        return self.resolver.parse_option(self._active_options, path, self._require_context())

    def _require_context(self) -> FinisherContext:
        if self._context is None:
            raise RuntimeError("The finisher has not been executed with a context")
        return self._context
