from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from report_canvas.config.model import GlobalConfig, TableConfig
from report_canvas.core.dataset import FieldCatalog
from report_canvas.core.exceptions import ConfigError

logger = logging.getLogger(__name__)


def _resolve(root: Path, raw: Optional[str]) -> Optional[Path]:
    # Absolute paths are used as-is, relative ones resolve against the config root
    if raw is None:
        return None
    path = Path(raw)
    return path if path.is_absolute() else (root / path).resolve()


def _read_json(path: Path) -> dict:
    try:
        with path.open() as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e


def load_global_config(root: Path) -> GlobalConfig:
    """
    Load configuration from a directory using the multi-file layout.

    Expected structure:

        root/
            global.json
            tables/
                meta_campaigns.json
                ...

    global.json keys:

    - ui_title: title for UI, defaults to 'Report Canvas'
    - data_file: CSV or JSON record file, relative to root unless absolute
    - default_table: table new slicers and quick binds fall back to
    - storage_root: where saved workbooks go, defaults to root/'workbooks'
    - legacy_min_max: finalise min/max as sums, as older reports did

    :param root: Directory containing 'global.json' and optionally 'tables/'.
    :return: A GlobalConfig instance.
    :raises FileNotFoundError: if global.json does not exist.
    """
    logger.info("Loading global config", extra={"config_root": str(root)})

    global_path = root / "global.json"
    if not global_path.is_file():
        raise FileNotFoundError(f"File not found at {global_path}")

    raw_global = _read_json(global_path)

    tables_dir = root / "tables"
    tables: List[TableConfig] = []
    if tables_dir.is_dir():
        for idx, config_file in enumerate(sorted(tables_dir.glob("*.json"))):
            tables.append(TableConfig.from_raw(_read_json(config_file), source_path=config_file, index=idx))

    return GlobalConfig(
        ui_title=raw_global.get("ui_title", "Report Canvas"),
        data_file=_resolve(root, raw_global.get("data_file")),
        default_table=raw_global.get("default_table"),
        storage_root=_resolve(root, raw_global.get("storage_root", "workbooks")),
        tables=tables,
        legacy_min_max=bool(raw_global.get("legacy_min_max", False)),
    )


def load_catalog(root: Path) -> Tuple[GlobalConfig, FieldCatalog]:
    """
    Load the global configuration and build the field catalog from it.

    Main entrypoint used by UI/services.

    :param root: Path to config directory.
    :return: A tuple of (GlobalConfig, FieldCatalog).
    :raises ConfigError: on duplicate table/field ids or malformed tables, or
        when no table is configured at all.
    """
    global_config = load_global_config(root)
    catalog = global_config.build_catalog()

    logger.info(
        "Field catalog loaded from config root",
        extra={
            "config_root": str(root),
            "n_tables": len(catalog),
            "tables": list(catalog),
            "default_table": catalog.default_table_id,
        },
    )

    if not len(catalog):
        raise ConfigError(f"No tables configured under {root / 'tables'}")
    return global_config, catalog
