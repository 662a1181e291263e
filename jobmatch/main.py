# jobmatch/main.py
import logging
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from jobmatch.core.config import Settings, settings
from jobmatch.core.errors import ProviderError
from jobmatch.db.base import Base
from jobmatch.db.session import create_db_engine, make_session_factory
from jobmatch.nlp.embeddings import EmbeddingGateway
from jobmatch.nlp.providers import EmbeddingProvider, build_provider
from jobmatch.services.fallback import BatchFallbackPolicy
from jobmatch.services.job_index import JobEmbeddingIndex
from jobmatch.services.matching import MatchingEngine
from jobmatch.services.resume_store import ResumeStore

# Import models so SQLAlchemy knows about them (for create_all)
from jobmatch.db import models  # noqa: F401

# Routers
from jobmatch.api.routes import router as api_router
from jobmatch.api.resume_routes import router as resume_router
from jobmatch.api.job_routes import router as job_router

log = logging.getLogger(__name__)


@dataclass
class Services:
    session_factory: sessionmaker
    gateway: EmbeddingGateway
    resumes: ResumeStore
    index: JobEmbeddingIndex
    matcher: MatchingEngine


def build_services(cfg: Settings, engine: Engine, provider: EmbeddingProvider) -> Services:
    session_factory = make_session_factory(engine)
    gateway = EmbeddingGateway(provider)
    index = JobEmbeddingIndex(
        session_factory,
        gateway,
        BatchFallbackPolicy(batch_size=cfg.SYNC_BATCH_SIZE, delay=cfg.SYNC_BATCH_DELAY),
    )
    matcher = MatchingEngine(
        session_factory,
        gateway,
        index,
        enrich=cfg.SKILL_ENRICHMENT,
        similarity_weight=cfg.SIMILARITY_WEIGHT,
        skill_weight=cfg.SKILL_WEIGHT,
        default_limit=cfg.MATCH_LIMIT,
        default_threshold=cfg.MATCH_THRESHOLD,
    )
    return Services(
        session_factory=session_factory,
        gateway=gateway,
        resumes=ResumeStore(session_factory, gateway),
        index=index,
        matcher=matcher,
    )


def create_app(cfg: Settings | None = None, engine: Engine | None = None,
               provider: EmbeddingProvider | None = None) -> FastAPI:
    cfg = cfg or settings
    logging.basicConfig(
        level=getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=cfg.APP_NAME)

    # Root -> redirect to Swagger UI
    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/docs")

    @app.exception_handler(ProviderError)
    def provider_error(request: Request, exc: ProviderError):
        log.error("provider failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=502, content={"detail": "Embedding provider unavailable"})

    # CORS
    origins = [o.strip() for o in cfg.BACKEND_CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Ensure tables exist
    engine = engine or create_db_engine(cfg.DATABASE_URL)
    Base.metadata.create_all(bind=engine)

    app.state.services = build_services(cfg, engine, provider or build_provider(cfg))
    log.info("%s started (env=%s, provider=%s)", cfg.APP_NAME, cfg.APP_ENV, cfg.EMBEDDING_PROVIDER)

    # API routes
    app.include_router(api_router)       # /health, /analytics
    app.include_router(resume_router)    # /resumes/*
    app.include_router(job_router)       # /jobs/*

    return app


if __name__ == "__main__":
    import uvicorn

    # factory form: the app (and its provider client) is only built when served
    uvicorn.run("jobmatch.main:create_app", factory=True, host="0.0.0.0", port=8000)
