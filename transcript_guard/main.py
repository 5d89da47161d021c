"""
Transcript Guard - FastAPI Backend
Screens untrusted transcripts for prompt injection before they reach an LLM.

Run with:
    uvicorn transcript_guard.main:app
"""
import logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI

from transcript_guard.api.routes import router as api_router
from transcript_guard.engine.events import BackgroundEventSink, LoggingEventSink
from transcript_guard.engine.orchestrator import ThreatAnalyzer

logger = logging.getLogger(__name__)


def create_app(analyzer: Optional[ThreatAnalyzer] = None) -> FastAPI:
    """Build the app around one long-lived analyzer (constructed from env if not given)."""
    if analyzer is None:
        load_dotenv()
        analyzer = ThreatAnalyzer(event_sink=BackgroundEventSink(LoggingEventSink()))

    app = FastAPI(title="Transcript Guard", version="0.3.0")
    app.state.analyzer = analyzer
    app.include_router(api_router, prefix="/v1")

    @app.get("/health")
    def health():
        return {"status": "ok", "pattern_generation": app.state.analyzer.pattern_generation}

    logger.info("Transcript Guard ready (patterns %s, enabled=%s)",
                analyzer.pattern_generation, analyzer.config.enabled)
    return app


app = create_app()
