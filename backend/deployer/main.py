#!/usr/bin/env python3
"""
Deployer - Main FastAPI Application

主应用入口文件
"""

import argparse
import logging
import os
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Add the backend directory to Python path
current_dir = os.path.dirname(os.path.abspath(__file__))
backend_dir = os.path.dirname(current_dir)

if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

# Import application configurations and components
from deployer.config import ServerConfig, DeployConfig, get_settings
from deployer.config.logging_config import LoggingConfig
from deployer.utils.exceptions.exception_handlers import register_exception_handlers
from deployer.db.base import init_db, dispose_db

# Import API routers
from deployer.api import (
    deploy_router,
    project_router,
    bucket_router,
    deployment_router,
)

# Initialize logging
LoggingConfig().setup_logging()

# Initialize logger (after logging setup)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI应用生命周期管理

    处理启动和关闭事件:
    - 数据库初始化（建表、保留名称）
    - 数据库连接释放
    """
    # Startup
    logger.info("=" * 80)
    logger.info("Starting Deployer...")
    logger.info("=" * 80)

    # Initialize database
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        logger.warning("Application will start but database operations may fail")

    logger.info("Application startup complete")
    logger.info(f"Server URL: http://{ServerConfig.HOST}:{ServerConfig.PORT}")
    logger.info(f"Sites served under: *.{DeployConfig.DOMAIN}")
    logger.info(f"Health Check: http://{ServerConfig.HOST}:{ServerConfig.PORT}/health")
    logger.info("=" * 80)

    yield

    # Shutdown
    logger.info("Shutting down application...")

    # Close database connections
    try:
        await dispose_db()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database: {e}")

    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    创建并配置FastAPI应用

    Returns:
        配置好的FastAPI应用实例
    """
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="1.0.0",
        description="Versioned static site hosting on S3-compatible object storage",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add CORS middleware (must be first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register global exception handlers
    register_exception_handlers(app)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    # Include routers with /api prefix
    app.include_router(deploy_router, prefix="/api")
    app.include_router(project_router, prefix="/api")
    app.include_router(bucket_router, prefix="/api")
    app.include_router(deployment_router, prefix="/api")

    return app


def run_api(host: str, port: int, **kwargs):
    """
    使用给定配置运行API服务器
    """
    try:
        uvicorn.run(
            "deployer.main:app",
            host=host,
            port=port,
            reload=kwargs.get("reload") or ServerConfig.RELOAD
        )
    except Exception as e:
        logger.error(f"Failed to start API server: {e}")
        raise


def main() -> None:
    """
    Deployer主入口
    """
    parser = argparse.ArgumentParser(prog='deployer',
                                     description='Deployer Server')
    parser.add_argument("--host", type=str, default=ServerConfig.HOST)
    parser.add_argument("--port", type=int, default=ServerConfig.PORT)
    parser.add_argument("--reload", action="store_true", default=ServerConfig.RELOAD)

    args = parser.parse_args()

    logger.info("=" * 80)
    logger.info("Starting Deployer Server...")
    logger.info(f"  - Server URL: http://{args.host}:{args.port}")
    logger.info(f"  - Documentation: http://{args.host}:{args.port}/docs")
    logger.info(f"  - Health Check: http://{args.host}:{args.port}/health")
    logger.info("=" * 80)

    try:
        run_api(host=args.host, port=args.port, reload=args.reload)
    except KeyboardInterrupt:
        logger.info("\nShutting down Deployer gracefully...")
    except Exception as e:
        logger.error(f"Application startup failed: {e}")
        sys.exit(1)


# Create the app instance
app = create_app()

if __name__ == "__main__":
    main()
