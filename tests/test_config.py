"""Tests for configuration layering and argument parsing."""

import pytest

from args import parse_args
from config import PublisherConfig, load_config_file
from constants import Constants


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        Constants.ENV_REGISTRY_URL,
        Constants.ENV_DATA_DIR,
        Constants.ENV_DEFINITELY_TYPED,
        Constants.ENV_MAX_CONCURRENCY,
    ):
        monkeypatch.delenv(name, raising=False)


class TestPublisherConfig:

    def test_defaults(self, monkeypatch):
        monkeypatch.setattr("os.cpu_count", lambda: 6)
        config = PublisherConfig()
        assert config.max_concurrency == 6
        assert config.registry_url == Constants.REGISTRY_URL_NPM
        assert config.registry_concurrency == Constants.REGISTRY_CONCURRENCY

    def test_registry_url_gets_trailing_slash(self):
        assert PublisherConfig(registry_url="https://r.test").registry_url == "https://r.test/"

    @pytest.mark.parametrize("field_name", ["max_concurrency", "registry_concurrency", "retry_max"])
    def test_rejects_non_positive(self, field_name):
        with pytest.raises(ValueError, match=field_name):
            PublisherConfig(**{field_name: 0})

    def test_with_overrides_ignores_none(self):
        config = PublisherConfig(data_dir="a").with_overrides(data_dir=None, max_concurrency=2)
        assert config.data_dir == "a"
        assert config.max_concurrency == 2

    def test_with_overrides_rejects_unknown(self):
        with pytest.raises(ValueError, match="colour"):
            PublisherConfig().with_overrides(colour="red")


class TestLoadConfigFile:

    def test_publisher_section(self, tmp_path):
        path = tmp_path / "typespub.yml"
        path.write_text("publisher:\n  data_dir: /tmp/data\n  registry_concurrency: 5\n")
        assert load_config_file(str(path)) == {"data_dir": "/tmp/data", "registry_concurrency": 5}

    def test_flat_file(self, tmp_path):
        path = tmp_path / "typespub.yml"
        path.write_text("max_concurrency: 3\n")
        assert load_config_file(str(path)) == {"max_concurrency": 3}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "typespub.yml"
        path.write_text("")
        assert load_config_file(str(path)) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config_file(str(tmp_path / "nope.yml"))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "typespub.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_config_file(str(path))


class TestFromArgs:

    def test_precedence(self, tmp_path, monkeypatch):
        path = tmp_path / "typespub.yml"
        path.write_text("publisher:\n  data_dir: from-file\n  registry_url: https://file.test/\n  max_concurrency: 3\n")
        monkeypatch.setenv(Constants.ENV_DATA_DIR, "from-env")
        monkeypatch.setenv(Constants.ENV_MAX_CONCURRENCY, "7")

        args = parse_args(["test", "-c", str(path), "--nProcesses", "9"])
        config = PublisherConfig.from_args(args)

        assert config.registry_url == "https://file.test/"
        assert config.data_dir == "from-env"
        assert config.max_concurrency == 9

    def test_bad_env_concurrency(self, monkeypatch):
        monkeypatch.setenv(Constants.ENV_MAX_CONCURRENCY, "many")
        with pytest.raises(ValueError, match=Constants.ENV_MAX_CONCURRENCY):
            PublisherConfig.from_args(parse_args(["test"]))


class TestParseArgs:

    def test_test_command(self):
        args = parse_args(["test", "^react", "--nProcesses", "4", "--loglevel", "debug"])
        assert args.action == "test"
        assert args.PATTERN == "^react"
        assert args.N_PROCESSES == 4
        assert args.LOG_LEVEL == "DEBUG"
        assert args.ALL is False

    def test_calculate_versions(self):
        args = parse_args(["calculate-versions", "--forceUpdate", "--registry", "https://r.test"])
        assert args.action == "calculate-versions"
        assert args.FORCE_UPDATE is True
        assert args.REGISTRY_URL == "https://r.test"

    @pytest.mark.parametrize("value", ["0", "-2", "x"])
    def test_rejects_bad_process_count(self, value):
        with pytest.raises(SystemExit):
            parse_args(["test", "--nProcesses", value])

    def test_requires_command(self):
        with pytest.raises(SystemExit):
            parse_args([])
