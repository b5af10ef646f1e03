"""
API schemas (Pydantic models) for request/response validation.

Responses are serialised with camelCase aliases; requests accept either form.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Log Schemas
# ============================================================================

class LogListingResponse(ApiModel):
    """Processed log for listing."""
    id: str
    name: str
    source_file: Optional[str] = None
    row_count: int
    duration_s: float
    total_duration: str
    is_relative_time: bool
    event_count: int
    has_gps: bool


class FlightInfoResponse(ApiModel):
    """Display-level timing of a log."""
    takeoff_time: str
    total_duration: str
    takeoff_timestamp_ms: float
    is_relative_time: bool


class ChannelInfoResponse(ApiModel):
    """Display metadata of a canonical channel."""
    label: str
    unit: str
    description: str = ""


class LogDetailResponse(ApiModel):
    """Flight info and available channels of a log."""
    id: str
    name: str
    source_file: Optional[str] = None
    row_count: int
    columns: list[str]
    channels: list[str]  # channels with at least one point
    channel_info: dict[str, ChannelInfoResponse]
    flight_info: FlightInfoResponse


class DataPointResponse(ApiModel):
    x: float
    y: float


class SeriesResponse(ApiModel):
    """Chart series keyed by canonical channel name."""
    log_id: str
    series: dict[str, list[DataPointResponse]]


class FlightPathPointResponse(ApiModel):
    lat: float
    lng: float
    alt: float
    time: float


class FlightPathResponse(ApiModel):
    log_id: str
    points: list[FlightPathPointResponse]


# ============================================================================
# Analysis Schemas
# ============================================================================

class AnalyzeRequest(ApiModel):
    """Raw rows to analyze without a file on disk."""
    name: str = "uploaded"
    rows: list[Optional[dict[str, Any]]] = Field(default_factory=list)


class AnalyzeResponse(ApiModel):
    """Result of analyzing uploaded rows."""
    id: str
    name: str
    row_count: int
    channels: list[str]
    flight_info: FlightInfoResponse
    flight_path: list[FlightPathPointResponse]
    summary: dict[str, Any]  # FlightSummary.to_dict() shape


# ============================================================================
# Folder Management Schemas
# ============================================================================

class SetFolderRequest(ApiModel):
    """Request to set the data folder."""
    path: str


class FolderInfoResponse(ApiModel):
    """Information about the current data folder."""
    path: Optional[str]
    log_count: int
