from fastapi import APIRouter, HTTPException
from typing import Dict, Any
import logging
import psutil
from datetime import datetime

from offernavi.core.database import get_db_manager
from offernavi.core.config import settings
from offernavi.llm.qwen_client import get_qwen_client

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_FREE_DISK_GB = 1.0


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """综合健康检查：数据库、内存、磁盘、Qwen 配置"""
    try:
        db_status = get_db_manager().health_check()

        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')
        disk_free_gb = disk.free / (1024**3)

        overall_status = "healthy"
        issues = []

        if db_status.get("status") != "healthy":
            overall_status = "unhealthy"
            issues.append("database_connection_failed")

        if disk_free_gb < MIN_FREE_DISK_GB:
            overall_status = "warning" if overall_status == "healthy" else overall_status
            issues.append("low_disk_space")

        qwen_status = get_qwen_client().health_check()
        if not qwen_status["configured"]:
            # 没有密钥时助手退回本地回复，仍可使用
            issues.append("qwen_api_key_missing")

        return {
            "status": overall_status,
            "timestamp": datetime.utcnow().isoformat(),
            "version": settings.api_version,
            "issues": issues,
            "details": {
                "database": db_status,
                "memory": {
                    "used_gb": round(memory.used / (1024**3), 2),
                    "total_gb": round(memory.total / (1024**3), 2),
                    "percentage": memory.percent,
                },
                "disk": {
                    "free_gb": round(disk_free_gb, 2),
                    "total_gb": round(disk.total / (1024**3), 2),
                    "percentage": round((disk.used / disk.total) * 100, 2),
                },
                "qwen": qwen_status,
            },
        }

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {
            "status": "unhealthy",
            "timestamp": datetime.utcnow().isoformat(),
            "error": str(e),
        }


@router.get("/health/database")
async def database_health() -> Dict[str, Any]:
    """数据库专用健康检查"""
    try:
        return get_db_manager().health_check()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
