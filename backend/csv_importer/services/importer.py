"""CSV import pipeline: read → classify/validate → map → persist.

The import is all-or-nothing with respect to persistence and
collect-everything with respect to reporting: every row's problems are
returned in one ImportResult, and a single failing row keeps the whole
batch out of the store.
"""
import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import IO, Any, Generic, TypeVar

from pydantic import BaseModel

from csv_importer.core.config import settings
from csv_importer.schemas.imports import CsvError, ImportResult
from csv_importer.services.classifiers import ExceptionClassifier, default_classifier
from csv_importer.services.csv_reader import CsvRowReader
from csv_importer.services.errors import ImportAbortedError, ImportCancelledError
from csv_importer.services.mappers import FieldMapper
from csv_importer.services.stores import ImportStore
from csv_importer.services.validators import ModelValidator, RowValidator

RowT = TypeVar("RowT", bound=BaseModel)


class CsvImporter(Generic[RowT]):
    """Import CSV streams of ``row_model`` rows into ``store``.

    Args:
        store: Persistence backend; its transaction flag decides whether
            begin/commit/rollback are issued.
        row_model: pydantic model describing one CSV record.
        mapper: Turns a validated row into an entity.
        exception_classifier: Turns row parse exceptions into CsvErrors.
            Defaults to format + structural classifiers.
        validators: Run against every parsed row. ``None`` installs the
            model's declarative constraint check; an explicit list replaces it.
        logger: Defaults to this module's logger.
        encoding: Text encoding for binary streams.

    An instance holds no per-call state and can run several imports one
    after another. Concurrent calls against one session are not supported.
    """

    def __init__(
        self,
        store: ImportStore,
        row_model: type[RowT],
        mapper: FieldMapper,
        *,
        exception_classifier: ExceptionClassifier | None = None,
        validators: Iterable[RowValidator] | None = None,
        logger: logging.Logger | None = None,
        encoding: str | None = None,
    ) -> None:
        self.store = store
        self.row_model = row_model
        self.mapper = mapper
        self.exception_classifier = exception_classifier or default_classifier()
        self.validators: list[RowValidator] = (
            list(validators) if validators is not None else [ModelValidator()]
        )
        self.logger = logger or logging.getLogger(__name__)
        self.encoding = encoding or settings.CSV_ENCODING

    async def process_csv(
        self,
        stream: IO | bytes | str,
        column_values: Mapping[str, Any] | None = None,
        validate_only: bool = False,
        cancel_event: asyncio.Event | None = None,
    ) -> ImportResult:
        """Import one CSV stream.

        Returns a failed ImportResult carrying every row error when any row
        fails to parse or validate; nothing is persisted in that case.

        Raises:
            ImportCancelledError: ``cancel_event`` was set before or during the read.
            ImportAbortedError: the store, mapper or stream failed.
        """
        supports_transactions = self.store.supports_transactions
        errors: list[CsvError] = []
        entities: list[Any] = []

        try:
            with CsvRowReader(stream, self.row_model, encoding=self.encoding) as reader:
                if supports_transactions:
                    await self.store.begin()

                self.logger.info(
                    "Starting CSV processing. Validate only: %s",
                    validate_only,
                    extra={"row_model": self.row_model.__name__, "validate_only": validate_only},
                )

                _check_cancelled(cancel_event, 1)
                records = reader.records()
                while True:
                    # Stream reads are blocking; keep them off the event loop.
                    record = await asyncio.to_thread(next, records, None)
                    if record is None:
                        break
                    _check_cancelled(cancel_event, record.row_number)

                    if record.error is not None:
                        errors.append(
                            self.exception_classifier.classify(record.error, record.row_number)
                        )
                        self.logger.warning(
                            "Error occurred while reading the CSV file. Row: %d, Error: %s",
                            record.row_number, record.error,
                            extra={"row": record.row_number},
                        )
                        continue

                    row_errors = await self._validate(record.model, record.row_number)
                    errors.extend(row_errors)

                    if not validate_only and not row_errors:
                        entities.append(self.mapper.map(record.model, column_values))

            if not validate_only and entities and not errors:
                await self.store.add_batch(entities)
                await self.store.persist()

            if errors:
                if supports_transactions:
                    await self.store.rollback()
                self.logger.warning(
                    "Errors occurred during CSV processing. Number of errors: %d",
                    len(errors),
                    extra={"error_count": len(errors)},
                )
                return ImportResult.failed(errors)

            if supports_transactions:
                await self.store.commit()
            self.logger.info(
                "CSV processing completed successfully. Entities persisted: %d",
                len(entities),
                extra={"entity_count": len(entities)},
            )
            return ImportResult.success()

        except ImportCancelledError:
            await self._rollback(supports_transactions)
            self.logger.warning("CSV processing cancelled after %d errors", len(errors))
            raise
        except asyncio.CancelledError:
            await self._rollback(supports_transactions)
            raise
        except Exception as exc:
            await self._rollback(supports_transactions)
            self.logger.error("An exception occurred during CSV processing.", exc_info=True)
            raise ImportAbortedError(f"CSV import failed: {exc}") from exc

    async def _validate(self, row: RowT, row_number: int) -> list[CsvError]:
        row_errors: list[CsvError] = []
        for validator in self.validators:
            result = await validator.validate(row, row_number)
            if not result.succeeded:
                row_errors.extend(result.errors)
        return row_errors

    async def _rollback(self, supports_transactions: bool) -> None:
        if not supports_transactions:
            return
        try:
            await self.store.rollback()
        except Exception:
            self.logger.exception("Rollback failed after an aborted CSV import")


def _check_cancelled(cancel_event: asyncio.Event | None, row_number: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ImportCancelledError(f"CSV import cancelled before row {row_number}")
