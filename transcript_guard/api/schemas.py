from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# input received from the ingestion pipeline
class AnalyzeRequest(BaseModel):
    body: str = Field(..., description="Primary untrusted text (e.g. a transcript)")
    title: Optional[str] = Field(default=None, description="Optional title, only used by /analyze/fields")
    description: Optional[str] = Field(default=None, description="Optional description, only used by /analyze/fields")
    content_id: Optional[str] = Field(default=None, description="Caller's id for the content")
    source_id: Optional[str] = Field(default=None, description="Where the content came from (channel, feed...)")
    requester: Optional[str] = Field(default=None, description="Requester identity forwarded to the event log")
    user_id: Optional[str] = None


class Threat(BaseModel):
    pattern_name: str
    category: str
    severity: str
    score: int
    matched_text: str
    position: int
    context: str
    decoded_from: Optional[str] = None


class Metadata(BaseModel):
    processed_at: datetime
    processing_duration_ms: float
    content_length: int
    threat_count: int
    sections_removed: int
    cache_hit: bool
    pattern_generation: str


# output sent back
class AnalyzeResponse(BaseModel):
    action: str  # ALLOW | SANITIZE | BLOCK
    score: int
    threats: List[Threat]
    original_content: str
    sanitized_content: Optional[str] = None
    metadata: Metadata


class FieldScoresResponse(BaseModel):
    body: int
    title: int
    description: int
    weighted: float


class StatsResponse(BaseModel):
    total_requests: int
    allowed_requests: int
    sanitized_requests: int
    blocked_requests: int
    average_score: float
    average_processing_ms: float
    cache_hits: int
    cache_misses: int
    cache_hit_rate: float
    pattern_generation: str
