import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers.printer import router
from .services.printer import PrinterEngine, build_engine
from .settings.config import Settings, settings

logger = logging.getLogger(__name__)


def create_app(cfg: Optional[Settings] = None, engine: Optional[PrinterEngine] = None) -> FastAPI:
    """Build the app. An ``engine`` passed in is used as-is and owned by the
    caller; otherwise one is built from ``cfg`` on startup and closed on
    shutdown."""
    cfg = cfg or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "printer", None) is None
        if owned:
            app.state.printer = build_engine(cfg)
            logger.info(
                "Printer ready: interval=%sms settle=%sms wrap=%s enrichment=%s",
                cfg.PRINT_INTERVAL_MS, cfg.SETTLE_DELAY_MS, cfg.WRAP_WIDTH, "on" if cfg.ENRICH_URL else "off",
            )
        try:
            yield
        finally:
            if owned:
                await app.state.printer.aclose()
                app.state.printer = None

    app = FastAPI(title="Receiptmatic", lifespan=lifespan)
    app.state.printer = engine

    # Enable CORS if needed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Update for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ----------------------
    # Route Includes
    # ----------------------
    app.include_router(router)
    return app


logging.basicConfig(level=settings.LOG_LEVEL.upper())
app = create_app()
