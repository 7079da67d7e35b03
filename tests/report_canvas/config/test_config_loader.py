import json
from pathlib import Path

import pytest

from report_canvas.config.loader import load_catalog, load_global_config
from report_canvas.core.exceptions import ConfigError
from report_canvas.core.fields import AggregationType, FieldRole


def _table(table_id: str = "ads", **overrides) -> dict:
    table = {
        "id": table_id,
        "name": "Ads",
        "category_field": "campaign",
        "fields": [
            {"id": "campaign", "name": "Campaign", "role": "dimension", "data_type": "string"},
            {"id": "spend", "name": "Spend", "role": "metric", "data_type": "number"},
            {"id": "ctr", "name": "CTR", "role": "metric", "data_type": "number", "aggregation": "avg"},
        ],
    }
    table.update(overrides)
    return table


def _write_config(root: Path, global_json: dict, *tables: dict) -> Path:
    tables_dir = root / "tables"
    tables_dir.mkdir(parents=True)
    (root / "global.json").write_text(json.dumps(global_json))
    for idx, table in enumerate(tables):
        (tables_dir / f"table_{idx}.json").write_text(json.dumps(table))
    return root


def test_load_catalog_from_config_dir(tmp_path):
    # root/
    #   global.json
    #   tables/
    #     table_0.json
    root = _write_config(
        tmp_path / "config",
        {"ui_title": "Test Canvas", "data_file": "data/ads.csv", "default_table": "ads"},
        _table(),
    )

    global_config, catalog = load_catalog(root)

    assert global_config.ui_title == "Test Canvas"
    assert global_config.data_file == (root / "data" / "ads.csv").resolve()
    assert global_config.storage_root == (root / "workbooks").resolve()
    assert global_config.legacy_min_max is False

    assert list(catalog) == ["ads"]
    assert catalog.default_table.id == "ads"
    spend = catalog.field("spend")
    assert spend.role == FieldRole.METRIC
    assert spend.table == "ads"
    assert catalog.field("ctr").aggregation == AggregationType.AVG


def test_absolute_paths_are_kept(tmp_path):
    data_file = tmp_path / "elsewhere.json"
    root = _write_config(tmp_path / "config", {"data_file": str(data_file)}, _table())

    config = load_global_config(root)

    assert config.data_file == data_file
    assert config.ui_title == "Report Canvas"


def test_missing_global_json_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_global_config(tmp_path)


def test_invalid_json_raises_config_error(tmp_path):
    (tmp_path / "global.json").write_text("{not json")

    with pytest.raises(ConfigError):
        load_global_config(tmp_path)


def test_no_tables_is_an_error(tmp_path):
    (tmp_path / "global.json").write_text("{}")

    with pytest.raises(ConfigError, match="No tables"):
        load_catalog(tmp_path)


def test_duplicate_field_ids_across_tables(tmp_path):
    root = _write_config(tmp_path / "config", {}, _table("ads"), _table("ads_copy"))

    with pytest.raises(ConfigError, match="defined in both"):
        load_catalog(root)


def test_duplicate_table_ids(tmp_path):
    other = _table("ads", fields=[{"id": "name", "role": "dimension"}], category_field="name")
    root = _write_config(tmp_path / "config", {}, _table("ads"), other)

    with pytest.raises(ConfigError, match="defined twice"):
        load_catalog(root)


def test_category_field_must_be_a_field_of_the_table(tmp_path):
    root = _write_config(tmp_path / "config", {}, _table(category_field="platform"))

    with pytest.raises(ConfigError, match="category_field"):
        load_catalog(root)


def test_bad_field_role_is_reported_with_the_table(tmp_path):
    broken = _table(fields=[{"id": "campaign", "role": "measure"}])
    root = _write_config(tmp_path / "config", {}, broken)

    with pytest.raises(ConfigError, match="table 'ads'"):
        load_catalog(root)


def test_unknown_default_table(tmp_path):
    root = _write_config(tmp_path / "config", {"default_table": "missing"}, _table())

    with pytest.raises(ConfigError, match="default_table"):
        load_catalog(root)
