"""PackageInventory 测试"""

from __future__ import annotations

import pytest

from pkgfetch.core.models import is_truncated_segment
from pkgfetch.services.acquire.inventory import PackageInventory


class TestPackageInventory:

    @pytest.fixture()
    def inventory(self, config):
        return PackageInventory(config.packages_dir, config.staging_dir)

    def test_list_versions(self, make_acquirer, inventory, config):
        acq = make_acquirer()
        acq.acquire("left-pad@1.0.0", config.packages_dir)
        acq.acquire("left-pad@^1.0.0", config.packages_dir)

        entries = inventory.list_versions("left-pad")
        assert [e["version"] for e in entries] == ["1.0.0", "1.3.0"]
        assert entries[0]["source"] == ""
        assert entries[1]["metadata"]["requested"] == "^1.0.0"

    def test_git_entry_source_decoded(self, make_acquirer, inventory, config):
        spec = "mylib@git+https://example.com/org/mylib#dev"
        make_acquirer().acquire(spec, config.packages_dir)
        (entry,) = inventory.list_versions("mylib")
        assert entry["source"] == "git+https://example.com/org/mylib#dev"
        assert entry["metadata"]["branch"] == "dev"

    def test_truncated_git_dir_source_from_metadata(self, make_acquirer, inventory, config):
        url = "git+https://example.com/" + "/".join(["deeply-nested-group"] * 15) + "#main"
        pkg = make_acquirer().acquire(f"mylib@{url}", config.packages_dir)
        assert is_truncated_segment(pkg.final_path.name)

        (entry,) = inventory.list_versions("mylib")
        assert entry["source"] == url
        assert entry["dir"] == pkg.final_path.name

    def test_unknown_package(self, inventory):
        assert inventory.list_versions("nothing") == []

    def test_skips_invalid_dirs(self, inventory, config, tmp_path):
        broken = tmp_path / "pkgs" / "foo" / "1.0.0"
        broken.mkdir(parents=True)
        (broken / "package.json").write_text("{broken")
        assert inventory.list_versions("foo") == []

    def test_clean_staging(self, inventory, tmp_path):
        staging = tmp_path / "staging"
        (staging / "foo-abc" / "package").mkdir(parents=True)
        (staging / "stray.tgz").write_bytes(b"x")
        assert inventory.clean_staging() == 2
        assert list(staging.iterdir()) == []

    def test_clean_missing_staging(self, tmp_path):
        inv = PackageInventory(tmp_path / "p", tmp_path / "nope")
        assert inv.clean_staging() == 0
