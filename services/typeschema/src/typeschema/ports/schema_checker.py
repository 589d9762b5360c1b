from typing import Protocol

from typeschema.domain.diagnostics import Diagnostic
from typeschema.domain.json_types import JsonDict


class SchemaCheckerPort(Protocol):
    def check(self, document: JsonDict, type_name: str) -> list[Diagnostic]: ...
