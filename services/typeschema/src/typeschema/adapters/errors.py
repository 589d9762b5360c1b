from dataclasses import dataclass

from typeschema.domain.json_types import JsonDict


@dataclass
class AdapterError(Exception):
    message: str
    details: JsonDict | None = None
    hint: str | None = None
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


class CatalogError(AdapterError):
    pass


class CatalogReadError(CatalogError):
    pass


class CatalogParseError(CatalogError):
    pass


class TargetImportError(AdapterError):
    pass
