"""Exception hierarchy for the catalog search API."""


class CatalogError(Exception):
    """Base exception for all catalog errors."""


class FilterValidationError(CatalogError):
    """Search input failed validation; raised before any storage call."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class StorageError(CatalogError):
    """A read or write against the search projection failed."""
