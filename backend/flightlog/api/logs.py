"""
API routes for flight logs.
"""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from flightlog.api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ChannelInfoResponse,
    DataPointResponse,
    FlightInfoResponse,
    FlightPathPointResponse,
    FlightPathResponse,
    FolderInfoResponse,
    LogDetailResponse,
    LogListingResponse,
    SeriesResponse,
    SetFolderRequest,
)
from flightlog.models.telemetry import FlightInfo, FlightPathPoint, ProcessedLog
from flightlog.services.analyzer import analyze_rows
from flightlog.services.channels import CHANNEL_METADATA
from flightlog.services.repository import get_repository


router = APIRouter(prefix="/logs", tags=["logs"])


def _get_log_or_404(log_id: str) -> ProcessedLog:
    log = get_repository().get_log(log_id)
    if log is None:
        raise HTTPException(status_code=404, detail=f"Log not found: {log_id}")
    return log


def _flight_info_response(info: FlightInfo) -> FlightInfoResponse:
    return FlightInfoResponse(
        takeoff_time=info.takeoff_time,
        total_duration=info.total_duration,
        takeoff_timestamp_ms=info.takeoff_timestamp_ms,
        is_relative_time=info.is_relative_time,
    )


def _channel_info(channels: list[str]) -> dict[str, ChannelInfoResponse]:
    info = {}
    for channel in channels:
        metadata = CHANNEL_METADATA.get(channel)
        if metadata is not None:
            info[channel] = ChannelInfoResponse(
                label=metadata.label,
                unit=metadata.unit,
                description=metadata.description,
            )
    return info


def _path_response(points: list[FlightPathPoint]) -> list[FlightPathPointResponse]:
    return [FlightPathPointResponse(lat=p.lat, lng=p.lng, alt=p.alt, time=p.time) for p in points]


@router.get("", response_model=list[LogListingResponse])
async def list_logs():
    """
    List all logs in the data folder.

    Parses every log not yet cached; files that fail to parse are skipped.
    """
    return [
        LogListingResponse(
            id=listing.id,
            name=listing.name,
            source_file=listing.source_file,
            row_count=listing.row_count,
            duration_s=listing.duration_s,
            total_duration=listing.total_duration,
            is_relative_time=listing.is_relative_time,
            event_count=listing.event_count,
            has_gps=listing.has_gps,
        )
        for listing in get_repository().list_logs()
    ]


@router.get("/{log_id}", response_model=LogDetailResponse)
async def get_log(log_id: str):
    """Get flight info and populated channels of a log."""
    log = _get_log_or_404(log_id)
    return LogDetailResponse(
        id=log.id,
        name=log.name,
        source_file=str(log.source_file) if log.source_file else None,
        row_count=log.row_count,
        columns=log.columns,
        channels=log.populated_channels,
        channel_info=_channel_info(log.populated_channels),
        flight_info=_flight_info_response(log.flight_info),
    )


@router.get("/{log_id}/series", response_model=SeriesResponse)
async def get_series(
    log_id: str,
    channel: Optional[list[str]] = Query(None, description="Channels to return (defaults to all populated)"),
):
    """
    Get chart series of a log.

    x is seconds since the start of the log, y the transformed value.
    """
    log = _get_log_or_404(log_id)

    if channel:
        unknown = [key for key in channel if key not in log.log_data]
        if unknown:
            raise HTTPException(status_code=400, detail=f"Unknown channel(s): {', '.join(unknown)}")
        keys = channel
    else:
        keys = log.populated_channels

    return SeriesResponse(
        log_id=log.id,
        series={
            key: [DataPointResponse(x=p.x, y=p.y) for p in log.series(key)]
            for key in keys
        },
    )


@router.get("/{log_id}/path", response_model=FlightPathResponse)
async def get_flight_path(log_id: str):
    """Get the GPS flight path of a log."""
    log = _get_log_or_404(log_id)
    return FlightPathResponse(log_id=log.id, points=_path_response(log.flight_path))


@router.get("/{log_id}/summary")
async def get_summary(log_id: str):
    """Get the flight summary (events, statistics, phases) of a log."""
    log = _get_log_or_404(log_id)
    return log.summary.to_dict()


@router.get("/{log_id}/context", response_class=PlainTextResponse)
async def get_context(log_id: str):
    """Flight summary as indented JSON text, ready to hand to an analysis agent."""
    log = _get_log_or_404(log_id)
    return PlainTextResponse(log.summary.to_context())


# ============================================================================
# Ad-hoc Analysis Routes
# ============================================================================

analyze_router = APIRouter(prefix="/analyze", tags=["analyze"])


@analyze_router.post("", response_model=AnalyzeResponse)
async def analyze(request: AnalyzeRequest):
    """
    Analyze rows posted in the request body.

    The result is not stored in the repository.
    """
    try:
        log = analyze_rows(request.rows, name=request.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return AnalyzeResponse(
        id=log.id,
        name=log.name,
        row_count=log.row_count,
        channels=log.populated_channels,
        flight_info=_flight_info_response(log.flight_info),
        flight_path=_path_response(log.flight_path),
        summary=log.summary.to_dict(),
    )


# ============================================================================
# Folder Management Routes
# ============================================================================

folder_router = APIRouter(prefix="/folder", tags=["folder"])


@folder_router.get("", response_model=FolderInfoResponse)
async def get_folder_info():
    """Get information about the current data folder."""
    repo = get_repository()
    return FolderInfoResponse(
        path=str(repo.data_folder) if repo.data_folder else None,
        log_count=repo.log_count,
    )


@folder_router.post("", response_model=FolderInfoResponse)
async def set_folder(request: SetFolderRequest):
    """
    Set the data folder to scan for CSV logs.

    This will clear the current cache and re-scan.
    """
    repo = get_repository()

    path = Path(request.path)
    if not path.exists():
        raise HTTPException(status_code=400, detail=f"Folder does not exist: {request.path}")
    if not path.is_dir():
        raise HTTPException(status_code=400, detail=f"Path is not a directory: {request.path}")

    count = repo.set_data_folder(path)
    return FolderInfoResponse(path=str(path), log_count=count)


@folder_router.post("/rescan", response_model=FolderInfoResponse)
async def rescan_folder():
    """Rescan the current data folder for new CSV logs."""
    repo = get_repository()

    if repo.data_folder is None:
        raise HTTPException(status_code=400, detail="No data folder set")

    repo.clear_cache()
    count = repo.scan_folder(repo.data_folder)
    return FolderInfoResponse(path=str(repo.data_folder), log_count=count)
