"""career-chat — FastAPI Application Entry Point."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from career_chat.config import settings
from career_chat.dependencies import registry
from career_chat.middleware.rate_limit import limiter
from career_chat.routers import auth, resume_builder, interview, preferences
from career_chat.database import engine, Base
from career_chat import models  # noqa: F401  (registers tables)
from career_chat.services.ai_client import ai_provider_name, ai_health_check

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Create all tables on startup
Base.metadata.create_all(bind=engine)

# ── CORS origins from env (supports dev localhost + production domain) ──────
_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="career-chat",
    description="Guided conversational resume builder and AI interview simulator.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth.router)
app.include_router(resume_builder.router)
app.include_router(interview.router)
app.include_router(preferences.router)


@app.on_event("startup")
async def on_startup():
    """Log the AI provider."""
    provider = ai_provider_name()
    if provider == "none":
        print("\n" + "="*60)
        print("  ⚠  AI NOT CONFIGURED")
        print("  Set ANTHROPIC_API_KEY in backend/.env and restart.")
        print("  The interview simulator answers with a stub until then.")
        print("  Visit /api/health/ai to verify.")
        print("="*60 + "\n")
    else:
        print(f"\n  ✓  AI provider: {provider}\n")


@app.on_event("shutdown")
def on_shutdown():
    """Write pending drafts of every live conversation."""
    registry.close_all()


@app.get("/")
def root():
    return {
        "name": "career-chat API",
        "version": "1.0.0",
        "docs": "/docs",
        "ai_provider": ai_provider_name(),
    }


@app.get("/health")
def health():
    return {"status": "ok", "ai_provider": ai_provider_name()}


@app.get("/api/health/ai")
async def health_ai():
    """Live connectivity test for the completion service.

    Returns:
        provider: which AI is active
        status:   "ok" | "error" | "unconfigured"
        test_reply / error: result of a tiny test call
    """
    return await ai_health_check()
