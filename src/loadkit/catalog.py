# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Catalog of external libraries.

The catalog is owned by the application configuration (usually the
"external-libraries" block) and is read-only to the loader. Descriptors accept
the camelCase keys used by that configuration as well as snake_case names.
Presence of `url` and `definesSymbol` is checked when a library is ensured,
not when the catalog is parsed, so one broken entry does not hide the others.
"""

import json
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import Any, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from .api.errors import ConfigurationError
from .core.types import CATALOG_CONFIG_KEY, LibraryId, StrPath


class LibraryDescriptor(BaseModel):
    """Load recipe for one external library."""

    id: str | None = None
    url: str | None = None
    dependencies: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("dependencies", "requires")
    )
    defines_symbol: str | None = Field(
        default=None, validation_alias=AliasChoices("definesSymbol", "defines_symbol")
    )
    invoke_defined_symbol: bool = Field(
        default=False, validation_alias=AliasChoices("invokeDefinedSymbol", "invoke_defined_symbol")
    )
    stylesheets: list[str] = Field(default_factory=list)
    model_config = {"extra": "ignore", "frozen": True}

    @field_validator("dependencies", "stylesheets", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class LibraryCatalog(Mapping[str, LibraryDescriptor]):
    """
    Read-only mapping of library id -> `LibraryDescriptor`.

    Entries are validated when they are first looked up and the result is
    kept. A malformed entry raises `ConfigurationError` naming its id, and only
    for callers that ask for that id. `lookup()` yields an empty descriptor for
    an unknown id, which the manager then rejects as not (properly) defined.
    """

    def __init__(self, entries: Mapping[LibraryId, Any] | None = None) -> None:
        self._raw: dict[LibraryId, Any] = dict(entries or {})
        self._parsed: dict[LibraryId, LibraryDescriptor] = {}

    # ---- constructors

    @classmethod
    def from_config(cls, app_config: Mapping[str, Any]) -> LibraryCatalog:
        """Build from an application config carrying an "external-libraries" block."""
        return cls(app_config.get(CATALOG_CONFIG_KEY) or {})

    @classmethod
    def from_file(cls, path: StrPath) -> LibraryCatalog:
        """
        Load a JSON file holding either the catalog itself or a config with an
        "external-libraries" block.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, Mapping):
            raise ValueError(f"catalog file {path} must contain a JSON object")
        if CATALOG_CONFIG_KEY in data:
            return cls.from_config(data)
        return cls(data)

    # ---- Mapping API

    def __getitem__(self, key: LibraryId) -> LibraryDescriptor:
        if key not in self._parsed:
            self._parsed[key] = _coerce(key, self._raw[key])
        return self._parsed[key]

    def __iter__(self) -> Iterator[LibraryId]:
        return iter(self._raw)

    def __len__(self) -> int:
        return len(self._raw)

    def lookup(self, lib_id: LibraryId) -> LibraryDescriptor:
        if lib_id not in self._raw:
            return LibraryDescriptor(id=lib_id)
        return self[lib_id]


def _coerce(lib_id: LibraryId, raw: Any) -> LibraryDescriptor:
    if isinstance(raw, LibraryDescriptor):
        return raw if raw.id == lib_id else raw.model_copy(update={"id": lib_id})
    if raw is None:
        return LibraryDescriptor(id=lib_id)
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"Library {lib_id} is not properly defined: expected an object, got {type(raw).__name__}",
            library_id=lib_id,
        )
    try:
        return LibraryDescriptor.model_validate({**raw, "id": lib_id})
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(map(str, err['loc'])) or lib_id}: {err['msg']}" for err in e.errors())
        raise ConfigurationError(f"Library {lib_id} is not properly defined: {problems}", library_id=lib_id) from e


CatalogSource = Union[LibraryCatalog, Mapping[str, Any], Callable[[], Union[LibraryCatalog, Mapping[str, Any]]]]


def read_catalog(source: CatalogSource) -> LibraryCatalog:
    """Materialize a catalog from a catalog, a raw mapping, or a zero-arg provider."""
    value = source() if callable(source) and not isinstance(source, Mapping) else source
    if isinstance(value, LibraryCatalog):
        return value
    return LibraryCatalog(value or {})
