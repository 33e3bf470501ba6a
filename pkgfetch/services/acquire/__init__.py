"""取包服务模块

- strategies.py: 取包策略 git / registry
- orchestrator.py: 取包编排器（暂存、校验、补写 manifest、落位、重试）
- inventory.py: 已落位包查看与暂存区清理
"""

from pkgfetch.services.acquire.inventory import PackageInventory
from pkgfetch.services.acquire.orchestrator import PackageAcquirer, acquire
from pkgfetch.services.acquire.strategies import GitRetrieval, RegistryRetrieval

__all__ = [
    "PackageAcquirer",
    "PackageInventory",
    "GitRetrieval",
    "RegistryRetrieval",
    "acquire",
]
