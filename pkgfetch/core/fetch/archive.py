"""tarball 解压

npm tarball 的内容统一包在一个顶层目录里（通常是 package/，少数包用包名），
解压后去掉这一层，把包内容放到 target_dir/<expected_name>。
"""

from __future__ import annotations

import logging
import tarfile
import tempfile
from pathlib import Path

from pkgfetch.core.exceptions import RetrievalError
from pkgfetch.core.location import remove_tree

logger = logging.getLogger(__name__)


class ArchiveExtractor:
    """tar / tgz 解压器"""

    def __init__(self, keep_archive: bool = False) -> None:
        self.keep_archive = keep_archive

    def extract(self, archive_path: Path, target_dir: Path, expected_name: str) -> Path:
        """解压 archive_path 到 target_dir/expected_name 并返回该目录"""
        if not hasattr(tarfile, "data_filter"):
            # filter="data" 需要 3.10.12+ / 3.11.4+ / 3.12+
            raise RetrievalError(
                f"当前 Python 的 tarfile 不支持安全解压过滤器，无法解压 {archive_path.name}"
            )
        dest = target_dir / expected_name
        if dest.exists():
            raise RetrievalError(f"解压目标已存在: {dest}")

        unpack_dir = Path(tempfile.mkdtemp(dir=str(target_dir), prefix=".unpack-"))
        try:
            with tarfile.open(archive_path, "r:*") as tf:
                tf.extractall(path=str(unpack_dir), filter="data")  # noqa: S202
            entries = list(unpack_dir.iterdir())
            root = entries[0] if len(entries) == 1 and entries[0].is_dir() else unpack_dir
            dest.parent.mkdir(parents=True, exist_ok=True)
            root.rename(dest)
        except (OSError, tarfile.TarError) as e:
            remove_tree(dest)
            raise RetrievalError(f"解压失败 {archive_path.name}: {e}") from e
        finally:
            remove_tree(unpack_dir)

        if not self.keep_archive:
            archive_path.unlink(missing_ok=True)
        logger.debug("  已解压: %s -> %s", archive_path.name, dest)
        return dest
