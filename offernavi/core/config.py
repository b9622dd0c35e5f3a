from pydantic_settings import BaseSettings
from typing import Optional
import os
import logging # 日志模块

logger = logging.getLogger(__name__) # 模块级 logger

class Settings(BaseSettings):
    # 数据库设置：SQLite 数据库文件路径
    database_url: str = "sqlite:///data/offernavi.db"

    # Qwen (通义千问) 设置，使用 OpenAI 兼容模式
    qwen_api_key: Optional[str] = os.getenv("QWEN_API_KEY") # 服务端密钥，不下发给前端
    qwen_base_url: str = os.getenv("QWEN_BASE_URL", "https://dashscope.aliyuncs.com/compatible-mode/v1")
    qwen_model: str = os.getenv("QWEN_MODEL", "qwen-turbo") # 使用的模型名称
    qwen_temperature: float = float(os.getenv("QWEN_TEMPERATURE", "0.7")) # 回答的发散程度
    qwen_timeout: float = float(os.getenv("QWEN_TIMEOUT", "15")) # 请求超时（秒）

    # AI 助手设置
    chat_history_limit: int = 50 # 聊天记录只保留最近 N 条
    mock_answer_delay: float = 0.5 # 生成模拟答案时的等待时间（秒）
    review_answer_delay: float = 0.8 # 生成复盘分析时的等待时间（秒）

    # 系统设置
    log_level: str = "INFO" # 日志级别 (DEBUG, INFO, WARNING, ERROR 等)

    # FastAPI 设置
    api_host: str = "0.0.0.0" # 服务绑定地址
    api_port: int = 3000 # 服务端口
    api_title: str = "OfferNavi API" # API 文档标题
    api_version: str = "1.0.0" # API 版本

    # 安全设置
    cors_origins: list = ["*"] # 允许的跨域来源

    class Config:
        # 从 .env 文件加载环境变量
        env_file = ".env"


# 全局设置实例：整个应用共享
settings = Settings()


def get_settings() -> Settings:
    """
    返回设置实例。
    可用于 FastAPI 的 Depends 依赖注入。
    """
    return settings


def get_database_path() -> str:
    """
    返回 SQLite 数据库文件的绝对路径。
    database_url 为相对路径时，以当前工作目录为基准。
    """
    if settings.database_url.startswith("sqlite:///"):
        db_path = settings.database_url[10:]  # 去掉 "sqlite:///" 前缀
        if not os.path.isabs(db_path):
            return os.path.join(os.getcwd(), db_path)
        return db_path
    return settings.database_url
