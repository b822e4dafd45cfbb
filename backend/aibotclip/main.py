import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aibotclip.config import settings
from aibotclip.database import Base, engine
from aibotclip.middleware.exceptions import register_exception_handlers
from aibotclip.middleware.security import SecurityHeadersMiddleware
from aibotclip.routers import admin, admin_key_features, agents, auth, health, key_features, request_form
from aibotclip.utils.redis_client import close_redis

logger = logging.getLogger("aibotclip")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.auto_create_tables:
        import aibotclip.models  # noqa: F401  (register tables)

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created")

    logger.info("AIBotClip API started (%s)", settings.environment)
    yield

    await close_redis()
    await engine.dispose()
    logger.info("AIBotClip API stopped")


app = FastAPI(
    title="AIBotClip",
    description="AI agent catalog, pricing and lead capture API",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
# Public
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(key_features.router, prefix="/api/key-features", tags=["key-features"])
app.include_router(agents.router, prefix="/api/agents", tags=["agents"])
app.include_router(request_form.router, prefix="/api/request", tags=["request"])

# Admin console
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(admin_key_features.router, prefix="/api/admin/key-features", tags=["admin"])
