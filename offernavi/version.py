#!/usr/bin/env python3
"""
OfferNavi 版本信息
"""

__version__ = "1.0.0"
__title__ = "OfferNavi"
__description__ = "秋招面试助手：面试日程管理与自然语言 AI 助手"
__license__ = "MIT"

# 发布信息
RELEASE_DATE = "2025-09-20"
RELEASE_NOTES = """
## OfferNavi v1.0.0

- 面试日程、模拟题与真实面经的增删改查 API
- 中文自然语言助手：添加 / 删除面试、记录面试题、一般问询
- 通义千问 (OpenAI 兼容模式) 代理，未配置密钥时使用本地回复
- 数据同步、备份与恢复
"""

def get_version():
    """返回当前版本"""
    return __version__

def get_version_info():
    """返回版本信息字典"""
    return {
        "version": __version__,
        "title": __title__,
        "description": __description__,
        "license": __license__,
        "release_date": RELEASE_DATE
    }

if __name__ == "__main__":
    print(f"{__title__} v{__version__}")
    print(f"{__description__}")
    print(f"Released on {RELEASE_DATE}")
