"""Exception classifiers: turn a row's parse exception into a CsvError.

Each classifier either recognises the exception and returns a ``CsvError``
or returns ``None`` to abstain. ``CompositeClassifier`` walks a list of
them and falls back to a generic error, so a row failure is always
reported as data. New exception categories are added by appending a
classifier to the list.
"""
import csv
from abc import ABC, abstractmethod
from collections.abc import Iterable

from csv_importer.schemas.imports import CsvError
from csv_importer.services.errors import CsvStructureError

INVALID_FORMAT = "Invalid format detected."
MISSING_FIELDS = "Missing fields in the CSV file."


class ExceptionClassifier(ABC):
    @abstractmethod
    def classify(self, exc: BaseException, row_number: int) -> CsvError | None:
        """Return a CsvError for ``exc`` at ``row_number``, or None to abstain."""


class FormatClassifier(ExceptionClassifier):
    """A cell could not be coerced to its field's type.

    pydantic's ValidationError is a ValueError, so coercion failures from
    the reader land here along with plain ``int("x")``-style errors.
    """

    def classify(self, exc: BaseException, row_number: int) -> CsvError | None:
        if isinstance(exc, ValueError):
            return CsvError(row=row_number, description=INVALID_FORMAT)
        return None


class StructuralClassifier(ExceptionClassifier):
    """Parser-level problems: missing columns, short or malformed records."""

    def classify(self, exc: BaseException, row_number: int) -> CsvError | None:
        if isinstance(exc, (CsvStructureError, csv.Error)):
            return CsvError(row=row_number, description=MISSING_FIELDS)
        return None


class CompositeClassifier(ExceptionClassifier):
    def __init__(self, classifiers: Iterable[ExceptionClassifier]) -> None:
        if classifiers is None:
            raise TypeError("classifiers must not be None")
        self.classifiers = list(classifiers)

    def classify(self, exc: BaseException, row_number: int) -> CsvError:
        for classifier in self.classifiers:
            error = classifier.classify(exc, row_number)
            if error is not None:
                return error

        message = str(exc) or type(exc).__name__
        return CsvError(row=row_number, description=f"Unhandled exception: {message}")


def default_classifier() -> CompositeClassifier:
    return CompositeClassifier([FormatClassifier(), StructuralClassifier()])
