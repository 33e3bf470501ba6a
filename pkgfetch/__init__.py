"""pkgfetch - 包说明符解析与单包获取（git clone / registry 下载）"""

__version__ = "0.3.0"
