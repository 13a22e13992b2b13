from csv_importer.models.contact import Contact

__all__ = [
    "Contact",
]
