import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import settings
from .database import engine, Base, check_connection
from .api import api_router
from .api.errors import register_exception_handlers
from .events.producer import event_producer

# Настройка логирования
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def wait_for_db(max_retries: int = settings.db_connect_retries, delay: int = settings.db_connect_delay):
    """Ожидает готовности базы данных с повторными попытками"""
    for attempt in range(1, max_retries + 1):
        logger.info(f"Attempting to connect to database (attempt {attempt}/{max_retries})...")

        if check_connection():
            logger.info("✅ Database connection successful!")
            return True

        if attempt < max_retries:
            logger.warning(f"Database not ready, waiting {delay} seconds... (attempt {attempt}/{max_retries})")
            time.sleep(delay)

    logger.error(f"❌ Failed to connect to database after {max_retries} attempts")
    raise RuntimeError("Database is not available")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    # Startup
    logger.info(f"Starting {settings.app_name}...")

    try:
        wait_for_db()

        if settings.create_tables:
            logger.info("Creating database tables...")
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created successfully")

        await event_producer.start()

        logger.info(f"✅ {settings.app_name} started successfully!")

    except Exception as e:
        logger.error(f"❌ Failed to start {settings.app_name}: {e}")
        raise

    yield  # Приложение работает

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")

    await event_producer.stop()
    engine.dispose()

    logger.info(f"✅ {settings.app_name} shut down successfully!")


# Создаем FastAPI приложение
app = FastAPI(
    title=settings.app_name,
    description="Сервис корзины и заказов доставки еды",
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan
)

# Middleware для CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

# Подключаем роуты
app.include_router(api_router, prefix=settings.api_prefix)
register_exception_handlers(app)


# Health check endpoints
@app.get("/health")
async def health_check():
    """Проверка здоровья сервиса"""
    db_status = "connected" if await run_in_threadpool(check_connection) else "disconnected"

    if db_status != "connected":
        raise HTTPException(status_code=503, detail="Service unhealthy")

    if not event_producer.enabled:
        kafka_status = "disabled"
    else:
        kafka_status = "connected" if event_producer.producer else "disconnected"

    return {
        "status": "healthy",
        "service": settings.app_name,
        "database": db_status,
        "kafka": kafka_status,
        "version": __version__
    }


@app.get("/")
async def root():
    """Корневой endpoint"""
    return {
        "service": settings.app_name,
        "version": __version__,
        "status": "running",
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "cart": f"{settings.api_prefix}/cart",
            "orders": f"{settings.api_prefix}/orders"
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "food_order_service.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
