from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from contextlib import asynccontextmanager
import logging
import sys

from offernavi.core.config import settings
from offernavi.core.database import get_db_manager
from offernavi.api.health import router as health_router
from offernavi.api.interviews import router as interviews_router
from offernavi.api.backup import router as backup_router
from offernavi.api.statistics import router as statistics_router
from offernavi.assistant.api import assistant_router
from offernavi.llm.qwen_client import get_qwen_client
from offernavi.version import get_version_info


# 日志设置
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info("Starting OfferNavi application...")

    # 确认数据库可用
    db_manager = get_db_manager()
    health_status = db_manager.health_check()

    if health_status.get("status") != "healthy":
        logger.error(f"Database health check failed: {health_status}")
        raise RuntimeError("Database initialization failed")

    if not settings.qwen_api_key:
        logger.warning("QWEN_API_KEY is not set, assistant will answer with local responses")

    logger.info(f"Database initialized: {health_status}")
    logger.info(f"Application started on {settings.api_host}:{settings.api_port}")

    yield

    logger.info("Shutting down OfferNavi application...")
    await get_qwen_client().close()
    logger.info("Qwen client closed.")


# 创建 FastAPI 应用
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="OfferNavi - 秋招面试助手",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS 设置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail}
    )


# 校验错误处理（调试 422 用）
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error for {request.method} {request.url}")
    logger.error(f"Validation errors: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": "Invalid request", "detail": jsonable_encoder(exc.errors())}
    )


# 全局异常处理
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"}
    )


# 注册路由
app.include_router(health_router, prefix="/api/v1", tags=["Health"])
app.include_router(interviews_router, prefix="/api/v1", tags=["Interviews"])
app.include_router(assistant_router, prefix="/api/v1", tags=["Assistant"])
app.include_router(backup_router, prefix="/api/v1", tags=["Backup"])
app.include_router(statistics_router, prefix="/api/v1", tags=["Statistics"])


@app.get("/")
async def root():
    """根端点"""
    return {
        "message": "OfferNavi API",
        "version": settings.api_version,
        "status": "running",
        "docs": "/docs",
        "release": get_version_info(),
    }


def run():
    import uvicorn

    uvicorn.run(
        "offernavi.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
