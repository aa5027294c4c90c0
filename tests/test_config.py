import pytest

from ucindex.core.config import (
    DEFAULT_EXCLUDED_CATALOGS,
    IndexerSettings,
    JobStoreSettings,
    SolrSettings,
)
from ucindex.core.errors import ConfigError


def test_defaults_with_empty_environment():
    settings = IndexerSettings.from_env({})

    assert settings.databricks_host is None
    assert settings.databricks_token is None
    assert settings.solr == SolrSettings()
    assert settings.solr.base_url == "http://localhost:8983/solr/unity_catalog"
    assert settings.jobstore == JobStoreSettings()
    assert settings.max_depth == 10
    assert settings.batch_size == 100
    assert settings.max_parallel == 1
    assert settings.excluded_catalogs == DEFAULT_EXCLUDED_CATALOGS


def test_values_are_read_and_parsed():
    settings = IndexerSettings.from_env(
        {
            "DATABRICKS_HOST": "https://adb-1.azuredatabricks.net",
            "DATABRICKS_TOKEN": "dapi-x",
            "SOLR_HOST": "solr.internal",
            "SOLR_PORT": "8984",
            "SOLR_CORE": "uc",
            "SOLR_TIMEOUT": "5",
            "MYSQL_HOST": "db",
            "MYSQL_PASSWORD": "secret",
            "UCINDEX_MAX_DEPTH": " 4 ",
            "UCINDEX_BATCH_SIZE": "50",
            "UCINDEX_PARALLEL": "8",
            "UCINDEX_EXCLUDED_CATALOGS": "system, samples,,",
        }
    )

    assert settings.databricks_token == "dapi-x"
    assert settings.solr.base_url == "http://solr.internal:8984/solr/uc"
    assert settings.solr.timeout == 5
    assert settings.jobstore.host == "db"
    assert settings.jobstore.password == "secret"
    assert (settings.max_depth, settings.batch_size, settings.max_parallel) == (4, 50, 8)
    assert settings.excluded_catalogs == ("system", "samples")


def test_workspace_url_is_a_fallback_for_host():
    env = {"DATABRICKS_WORKSPACE_URL": "https://legacy.cloud.databricks.com"}

    assert IndexerSettings.from_env(env).databricks_host == env["DATABRICKS_WORKSPACE_URL"]

    env["DATABRICKS_HOST"] = "https://new.cloud.databricks.com"
    assert IndexerSettings.from_env(env).databricks_host == "https://new.cloud.databricks.com"


def test_blank_values_are_treated_as_unset():
    settings = IndexerSettings.from_env({"SOLR_HOST": "  ", "UCINDEX_MAX_DEPTH": ""})

    assert settings.solr.host == "localhost"
    assert settings.max_depth == 10


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("UCINDEX_MAX_DEPTH", "deep"),
        ("UCINDEX_MAX_DEPTH", "0"),
        ("UCINDEX_BATCH_SIZE", "-1"),
        ("SOLR_PORT", "80.5"),
    ],
)
def test_invalid_numbers_raise_config_error(name, value):
    with pytest.raises(ConfigError, match=name):
        IndexerSettings.from_env({name: value})


def test_jobstore_url_defaults_to_mysql():
    url = JobStoreSettings().sqlalchemy_url()

    assert url.render_as_string(hide_password=False) == (
        "mysql+pymysql://root@localhost:3306/unity_catalog?charset=utf8mb4"
    )


def test_explicit_jobstore_url_wins():
    settings = IndexerSettings.from_env(
        {"JOBSTORE_URL": "sqlite:///jobs.db", "MYSQL_HOST": "ignored"}
    )

    assert settings.jobstore.sqlalchemy_url() == "sqlite:///jobs.db"
