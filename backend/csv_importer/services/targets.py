"""Registry of CSV import targets exposed over HTTP."""
from dataclasses import dataclass, field

from pydantic import BaseModel

from csv_importer.models.contact import Contact
from csv_importer.schemas.contact import ContactRow
from csv_importer.services.errors import UnknownImportTargetError
from csv_importer.services.importer import CsvImporter
from csv_importer.services.mappers import FieldMapper
from csv_importer.services.stores import ImportStore
from csv_importer.services.validators import RowValidator


@dataclass(frozen=True)
class ImportTarget:
    name: str
    row_model: type[BaseModel]
    entity: type
    validators: tuple[RowValidator, ...] | None = field(default=None)

    def build_importer(self, store: ImportStore) -> CsvImporter:
        return CsvImporter(
            store,
            self.row_model,
            FieldMapper(self.entity),
            validators=self.validators,
        )


_TARGETS: dict[str, ImportTarget] = {}


def register_target(target: ImportTarget) -> None:
    _TARGETS[target.name] = target


def get_target(name: str) -> ImportTarget:
    try:
        return _TARGETS[name]
    except KeyError:
        raise UnknownImportTargetError(name) from None


def target_names() -> list[str]:
    return sorted(_TARGETS)


register_target(ImportTarget(name="contacts", row_model=ContactRow, entity=Contact))
