"""配置加载测试"""

from __future__ import annotations

import pytest

from pkgfetch.core import config as cfgmod
from pkgfetch.core.config import Config
from pkgfetch.core.exceptions import ConfigError


class TestConfig:

    def test_defaults(self):
        cfg = Config()
        assert cfg.max_retries == 3
        assert cfg.retry_policy == "uniform"
        assert cfg.default_branch == "master"
        assert cfg.staging_dir.endswith("package_install_tmp")

    def test_from_file(self, tmp_path):
        p = tmp_path / "cfg.yml"
        p.write_text(
            "packages_dir: /srv/pkgs\n"
            "max_retries: 1\n"
            "retry_policy: classified\n"
            "team: infra\n"
        )
        cfg = Config.from_file(str(p))
        assert cfg.packages_dir == "/srv/pkgs"
        assert cfg.max_retries == 1
        assert cfg.retry_policy == "classified"
        assert cfg.extra == {"team": "infra"}

    def test_missing_file_gives_defaults(self, tmp_path):
        assert Config.from_file(str(tmp_path / "nope.yml")) == Config()

    def test_bad_policy(self):
        with pytest.raises(ConfigError, match="重试策略"):
            Config(retry_policy="sometimes")

    def test_negative_retries(self):
        with pytest.raises(ConfigError, match="max_retries"):
            Config(max_retries=-1)


class TestGlobalConfig:

    @pytest.fixture(autouse=True)
    def _reset(self, monkeypatch):
        monkeypatch.setattr(cfgmod, "_current", None)

    def test_env_path(self, tmp_path, monkeypatch):
        p = tmp_path / "cfg.yml"
        p.write_text("registry_url: https://npm.example.com/\n")
        monkeypatch.setenv("PKGFETCH_CONFIG", str(p))
        assert cfgmod.get_config().registry_url == "https://npm.example.com/"

    def test_init_config(self, tmp_path):
        p = tmp_path / "cfg.yml"
        p.write_text("default_branch: main\n")
        cfgmod.init_config(str(p))
        assert cfgmod.get_config().default_branch == "main"
