"""
hwboard - 作业板后端
为桌面端 UI 提供数据接口：作业/提交/进度的可撤销操作、每日分配、变更通知
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from hwboard.common.config import settings
from hwboard.common.database import db_manager
from hwboard.common.events import change_notifier
from hwboard.common.logging_config import setup_logging

setup_logging(
    log_level=settings.log_level,
    log_dir=settings.log_dir,
    log_file_prefix=settings.log_file_prefix,
    backup_count=settings.log_backup_count,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info("🚀 Application starting...")
    await db_manager.initialize()
    await db_manager.create_tables()
    logger.info("✅ Database initialization completed")

    unsubscribe = change_notifier.on_changed(lambda: logger.debug("Data changed"))

    yield

    logger.info("Application shutting down...")
    unsubscribe()
    await db_manager.dispose()


app = FastAPI(
    title=settings.app_name,
    description="作业板 - 作业布置、提交跟踪与每日用时分配",
    version=settings.app_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """健康检查端点"""
    return {
        "status": "healthy" if db_manager.available else "degraded",
        "version": settings.app_version,
        "database": {
            "type": settings.database_type,
            "available": db_manager.available,
        },
    }


from hwboard.domains.homework.api import router as homework_router
from hwboard.domains.operation.api import router as operation_router

app.include_router(homework_router, prefix="/api", tags=["homework"])
app.include_router(operation_router, prefix="/api/operations", tags=["operations"])


if __name__ == "__main__":
    import uvicorn

    logger.info("📍 API Server: http://localhost:8888")
    logger.info("📚 API Docs: http://localhost:8888/docs")

    uvicorn.run(
        "hwboard.main:app",
        host="127.0.0.1",
        port=8888,
        reload=settings.debug,
        log_level="info"
    )
