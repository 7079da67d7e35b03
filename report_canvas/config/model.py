from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from report_canvas.core.dataset import FieldCatalog, TableCatalog
from report_canvas.core.exceptions import ConfigError
from report_canvas.core.fields import DataField


@dataclass
class TableConfig:
    """
    Parsed config entry for a single table of the field catalog.
    """
    raw: Dict[str, Any]
    source_path: Path
    index: int

    @property
    def id(self) -> str:
        try:
            return str(self.raw["id"])
        except KeyError:
            raise ConfigError(f"Table config {self.source_path} has no 'id'")

    @property
    def name(self) -> str:
        return self.raw.get("name", f"Table {self.index}")

    @property
    def category_field(self) -> str:
        value = self.raw.get("category_field")
        if not value:
            raise ConfigError(f"Table '{self.id}' has no 'category_field'")
        return str(value)

    def to_catalog(self) -> TableCatalog:
        """
        Build the {@link TableCatalog}. Every field is stamped with this table's id.
        Raises ConfigError on malformed fields or an unknown category field.
        """
        fields: List[DataField] = []
        for raw_field in self.raw.get("fields") or []:
            try:
                parsed = DataField.from_dict({**raw_field, "table": self.id})
            except (KeyError, ValueError) as e:
                raise ConfigError(f"Invalid field {raw_field!r} in table '{self.id}': {e}") from e
            fields.append(parsed)

        ids = [f.id for f in fields]
        if len(set(ids)) != len(ids):
            raise ConfigError(f"Duplicate field ids in table '{self.id}'")
        if self.category_field not in ids:
            raise ConfigError(
                f"category_field '{self.category_field}' of table '{self.id}' is not one of its fields"
            )
        return TableCatalog(
            id=self.id,
            name=self.name,
            category_field=self.category_field,
            fields=tuple(fields),
        )

    @classmethod
    def from_raw(cls, raw: Dict[str, Any], source_path: Path, index: int) -> TableConfig:
        return cls(raw=raw, source_path=source_path, index=index)


@dataclass
class GlobalConfig:
    ui_title: str
    data_file: Optional[Path]
    default_table: Optional[str]
    storage_root: Path
    tables: List[TableConfig]
    legacy_min_max: bool = False

    def build_catalog(self) -> FieldCatalog:
        tables = [t.to_catalog() for t in self.tables]

        seen_tables: Dict[str, Path] = {}
        seen_fields: Dict[str, str] = {}
        for cfg, table in zip(self.tables, tables):
            if table.id in seen_tables:
                raise ConfigError(
                    f"Table id '{table.id}' defined twice ({seen_tables[table.id]} and {cfg.source_path})"
                )
            seen_tables[table.id] = cfg.source_path
            for f in table.fields:
                if f.id in seen_fields:
                    raise ConfigError(
                        f"Field id '{f.id}' defined in both '{seen_fields[f.id]}' and '{table.id}'"
                    )
                seen_fields[f.id] = table.id

        if self.default_table is not None and self.default_table not in seen_tables:
            raise ConfigError(f"default_table '{self.default_table}' is not a configured table")
        return FieldCatalog(tables, default_table=self.default_table)
