"""CLI 命令测试（click CliRunner）"""

from __future__ import annotations

import pytest
from click.testing import CliRunner
from conftest import FakeRegistry

from pkgfetch.cli import main

GIT_SPEC = "mylib@git+https://example.com/org/mylib#dev"


@pytest.fixture(autouse=True)
def _keep_logging(monkeypatch: pytest.MonkeyPatch):
    """main 会重建根日志器 handler，测试中跳过，保留 pytest 的日志捕获"""
    monkeypatch.setattr("pkgfetch.cli.setup_logging", lambda **kwargs: None)


@pytest.fixture()
def container(config, make_acquirer, monkeypatch: pytest.MonkeyPatch):
    import pkgfetch.core.config as cfgmod
    from pkgfetch.services.container import get_container, reset_container

    monkeypatch.setattr(cfgmod, "_current", config)
    reset_container()
    c = get_container()
    c._instances["acquirer"] = make_acquirer()
    yield c
    reset_container()


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


class TestAcquireCommand:

    def test_acquire_default_dest(self, runner, container, config):
        result = runner.invoke(main, ["acquire", "left-pad@^1.0.0"])
        assert result.exit_code == 0, result.output
        assert "就绪: left-pad@1.3.0" in result.output

    def test_acquire_dest_option(self, runner, container, tmp_path):
        result = runner.invoke(main, ["acquire", "foo", "-d", str(tmp_path / "other")])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "other" / "foo" / "0.2.0" / "package.json").is_file()

    def test_acquire_failure(self, runner, container, make_acquirer):
        container._instances["acquirer"] = make_acquirer(
            registry_client=FakeRegistry({}), max_retries=0,
        )
        result = runner.invoke(main, ["acquire", "ghost@1.0.0"])
        assert result.exit_code == 1
        assert "ghost@1.0.0" in result.output

    def test_invalid_destination(self, runner, container):
        result = runner.invoke(main, ["acquire", "foo", "--dest", "http://example.com/x"])
        assert result.exit_code == 1
        assert "不支持的目标位置协议" in result.output


class TestParseCommand:

    def test_registry(self, runner, container):
        result = runner.invoke(main, ["parse", "left-pad@^1.2.3"])
        assert result.exit_code == 0
        assert "registry" in result.output
        assert ">=1.2.3 <2.0.0" in result.output

    def test_invalid_range(self, runner, container):
        result = runner.invoke(main, ["parse", "foo@latest"])
        assert "(无效区间)" in result.output

    def test_git(self, runner, container):
        result = runner.invoke(main, ["parse", GIT_SPEC])
        assert "source:  git" in result.output
        assert "branch:  dev" in result.output
        assert "https://example.com/org/mylib" in result.output


class TestInfoAndVersions:

    def test_info(self, runner, container, config):
        runner.invoke(main, ["acquire", GIT_SPEC])
        entries = container.inventory.list_versions("mylib")
        result = runner.invoke(main, ["info", entries[0]["path"]])
        assert result.exit_code == 0, result.output
        assert "mylib@0.1.0" in result.output
        assert "branch: dev" in result.output
        assert "commit: deadbeef1234" in result.output

    def test_info_without_manifest(self, runner, container, tmp_path):
        result = runner.invoke(main, ["info", str(tmp_path)])
        assert result.exit_code == 1

    def test_versions(self, runner, container):
        runner.invoke(main, ["acquire", "left-pad@1.0.0"])
        runner.invoke(main, ["acquire", "left-pad@2"])
        result = runner.invoke(main, ["versions", "left-pad"])
        assert "1.0.0" in result.output
        assert "2.0.0" in result.output

    def test_versions_empty(self, runner, container):
        result = runner.invoke(main, ["versions", "nothing"])
        assert "没有已落位的版本" in result.output


class TestMiscCommands:

    def test_clean_staging(self, runner, container, config, tmp_path):
        staging = tmp_path / "staging"
        (staging / "leftover").mkdir(parents=True)
        result = runner.invoke(main, ["clean-staging", "--yes"])
        assert result.exit_code == 0
        assert "已清理 1 个条目" in result.output
        assert not (staging / "leftover").exists()

    def test_version_option(self, runner):
        from pkgfetch import __version__
        result = runner.invoke(main, ["--version"])
        assert __version__ in result.output

    def test_config_option(self, runner, tmp_path, monkeypatch):
        import pkgfetch.core.config as cfgmod
        from pkgfetch.services.container import reset_container

        monkeypatch.setattr(cfgmod, "_current", None)
        p = tmp_path / "cfg.yml"
        p.write_text("default_branch: trunk\n")
        try:
            result = runner.invoke(main, ["--config", str(p), "parse", "mylib@github:o/mylib"])
        finally:
            reset_container()
        assert "branch:  trunk" in result.output
