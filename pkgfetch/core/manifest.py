"""package.json 读取与补充

npm 安装时会往 package.json 里写入一批以 "_" 开头的内部字段，没有正式规范，
但部分包的 install 脚本会读取它们。这里补写其中的 _id 和 _from：

  来源      _id                      _from
  git       原始说明符               <name>@<git_url>
  registry  <name>@<version>         <name>@<规范化区间>

其余字段原样保留。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pkgfetch.core.exceptions import ManifestMissingError, ManifestParseError
from pkgfetch.core.semver import normalize_range
from pkgfetch.core.specifier import split_specifier
from pkgfetch.utils.fileio import load_json, save_json

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"
ADDED_KEYS = ("_id", "_from")


def read_manifest(pkg_dir: Path, *, manifest_name: str = MANIFEST_NAME) -> dict[str, Any]:
    """读取包目录下的 manifest，缺失 / 非法时抛对应异常"""
    path = Path(pkg_dir) / manifest_name
    if not path.is_file():
        raise ManifestMissingError(f"包目录中没有 {manifest_name}: {path}")
    try:
        data = load_json(path)
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
        raise ManifestParseError(f"{path} 不是合法的 JSON: {e}") from e
    if not isinstance(data, dict):
        raise ManifestParseError(
            f"{path} 内容应为 JSON 对象，实际为 {type(data).__name__}"
        )
    return data


def compat_fields(
    manifest: dict[str, Any], specifier: str, git_url: str | None,
) -> dict[str, str]:
    """计算 _id / _from"""
    name = manifest.get("name", "")
    if git_url:
        return {"_id": specifier, "_from": f"{name}@{git_url}"}

    _, token = split_specifier(specifier)
    rng = normalize_range(token)
    if rng is None:
        # dist-tag（如 latest）等非区间写法，保留原文
        rng = token or "*"
    return {
        "_id": f"{name}@{manifest.get('version', '')}",
        "_from": f"{name}@{rng}",
    }


def enrich(
    manifest_path: Path,
    manifest: dict[str, Any],
    specifier: str,
    git_url: str | None = None,
) -> dict[str, Any]:
    """写回带 _id / _from 的 manifest，返回新内容

    _id / _from 排在最前，已有同名字段会被覆盖；其他字段顺序与取值不变。
    """
    fields = compat_fields(manifest, specifier, git_url)
    enriched: dict[str, Any] = dict(fields)
    enriched.update((k, v) for k, v in manifest.items() if k not in ADDED_KEYS)
    save_json(manifest_path, enriched)
    logger.debug("manifest 已补充 _id=%s _from=%s", fields["_id"], fields["_from"])
    return enriched
