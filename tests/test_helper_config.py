import pytest


def test_string_val_strips_and_defaults(helper_config, catalog_env):
    catalog_env.setenv("SYNC_SOURCE_DIR", "  /srv/catalog  ")
    assert helper_config.get_string_val("sync_source_dir") == "/srv/catalog"
    assert helper_config.get_string_val("SYNC_FILE_EXTENSION", default=".xml") == ".xml"


def test_empty_string_counts_as_unset(helper_config, catalog_env):
    catalog_env.setenv("SYNC_CONSUMED_MARKER", "")
    with pytest.raises(ValueError):
        helper_config.get_string_val("SYNC_CONSUMED_MARKER")


def test_number_val(helper_config, catalog_env):
    catalog_env.setenv("SYNC_BATCH_SIZE", "250")
    catalog_env.setenv("INDEX_TIMEOUT", "2.5")
    assert helper_config.get_number_val("SYNC_BATCH_SIZE") == 250
    assert helper_config.get_number_val("INDEX_TIMEOUT") == 2.5

    catalog_env.setenv("SYNC_BATCH_SIZE", "lots")
    with pytest.raises(ValueError):
        helper_config.get_number_val("SYNC_BATCH_SIZE")


@pytest.mark.parametrize("raw, expected", [("true", True), ("1", True), ("YES", True), ("false", False), ("no", False)])
def test_bool_val(helper_config, catalog_env, raw, expected):
    catalog_env.setenv("SYNC_RUN_ON_STARTUP", raw)
    assert helper_config.get_bool_val("SYNC_RUN_ON_STARTUP") is expected


def test_choice_val(helper_config, catalog_env):
    catalog_env.setenv("SEARCH_RESULT_SOURCE", "Index")
    assert helper_config.get_choice_val("SEARCH_RESULT_SOURCE", ["store", "index"]) == "index"

    catalog_env.setenv("SEARCH_RESULT_SOURCE", "cache")
    with pytest.raises(ValueError):
        helper_config.get_choice_val("SEARCH_RESULT_SOURCE", ["store", "index"])


def test_list_val(helper_config, catalog_env):
    catalog_env.setenv("SYNC_EXTRA_DIRS", "[a, b ,c]")
    assert helper_config.get_list_val("SYNC_EXTRA_DIRS") == ["a", "b", "c"]

    catalog_env.setenv("SYNC_EXTRA_DIRS", "a,b")
    with pytest.raises(ValueError):
        helper_config.get_list_val("SYNC_EXTRA_DIRS")
