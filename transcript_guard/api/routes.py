from fastapi import APIRouter, Depends, Request

from transcript_guard.api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    FieldScoresResponse,
    StatsResponse,
)
from transcript_guard.engine.models import ContentInput
from transcript_guard.engine.orchestrator import ThreatAnalyzer

router = APIRouter()


def get_analyzer(request: Request) -> ThreatAnalyzer:
    return request.app.state.analyzer


def _content(req: AnalyzeRequest) -> ContentInput:
    return ContentInput(
        body=req.body,
        title=req.title,
        description=req.description,
        content_id=req.content_id,
        source_id=req.source_id,
    )


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze(req: AnalyzeRequest, analyzer: ThreatAnalyzer = Depends(get_analyzer)):
    result = analyzer.analyze(_content(req), requester=req.requester, user_id=req.user_id)
    return result.to_dict()


@router.post("/analyze/fields", response_model=FieldScoresResponse)
def analyze_fields(req: AnalyzeRequest, analyzer: ThreatAnalyzer = Depends(get_analyzer)):
    return analyzer.analyze_fields(_content(req)).to_dict()


@router.get("/stats", response_model=StatsResponse)
def stats(analyzer: ThreatAnalyzer = Depends(get_analyzer)):
    return analyzer.get_stats().to_dict()


@router.post("/stats/reset", response_model=StatsResponse)
def reset_stats(analyzer: ThreatAnalyzer = Depends(get_analyzer)):
    analyzer.reset_stats()
    return analyzer.get_stats().to_dict()
