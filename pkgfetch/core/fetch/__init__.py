"""外部取包客户端

- git.py: git clone
- registry.py: packument 查询 + tarball 下载校验
- archive.py: tarball 解压
"""

from pkgfetch.core.fetch.archive import ArchiveExtractor
from pkgfetch.core.fetch.git import GitClient
from pkgfetch.core.fetch.registry import ArchiveInfo, RegistryClient

__all__ = [
    "ArchiveExtractor",
    "ArchiveInfo",
    "GitClient",
    "RegistryClient",
]
