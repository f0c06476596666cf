"""
Session router - drives one lifecycle per browser session.

Endpoints:
  POST   /api/sessions                   — Create a session (Idle)
  GET    /api/sessions/{id}              — Current state
  DELETE /api/sessions/{id}              — Discard the session
  POST   /api/sessions/{id}/image        — Stage an image (replaces any previous one)
  DELETE /api/sessions/{id}/image        — Drop the staged image
  POST   /api/sessions/{id}/submit       — Start the analysis
  POST   /api/sessions/{id}/reset        — Back to Idle
  GET    /api/sessions/{id}/report       — Report card view
  GET    /api/sessions/{id}/report.png   — Report card as PNG
  GET    /api/sessions/{id}/report.pdf   — Report card as PDF
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, Response, UploadFile, status

from mingjing import config
from mingjing.analyzers.lifecycle import LifecycleController
from mingjing.api.schemas.analysis import AnalyzePayload, ReportViewResponse, SessionResponse
from mingjing.api.services import analysis_service
from mingjing.api.services.session_registry import SessionRegistry
from mingjing.core.errors import ExportError, ImageTooLargeError, InputValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_controller(session_id: str) -> LifecycleController:
    controller = SessionRegistry.get(session_id)
    if controller is None:
        raise HTTPException(404, f"Session {session_id} not found")
    return controller


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an analysis session",
)
async def create_session():
    try:
        session_id, controller = SessionRegistry.create()
    except RuntimeError as exc:
        raise HTTPException(503, str(exc))
    return SessionResponse(**analysis_service.session_snapshot(session_id, controller))


@router.get("/{session_id}", response_model=SessionResponse, summary="Current session state")
async def get_session(session_id: str):
    controller = _get_controller(session_id)
    return SessionResponse(**analysis_service.session_snapshot(session_id, controller))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Discard a session")
async def delete_session(session_id: str):
    if not SessionRegistry.discard(session_id):
        raise HTTPException(404, f"Session {session_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{session_id}/image",
    response_model=SessionResponse,
    summary="Stage a chat screenshot",
)
async def upload_image(
    session_id: str,
    file: UploadFile = File(..., description="Image file (PNG/JPEG/WEBP)"),
):
    """
    Stage one image for the next submission.

    A new upload replaces the previously staged image. The response is sent
    once the image has been fully read, so submission is enabled from then on.
    """
    controller = _get_controller(session_id)
    if controller.is_analyzing:
        raise HTTPException(409, "Analysis in progress")
    if file.content_type not in config.ALLOWED_IMAGE_TYPES:
        raise HTTPException(400, f"Unsupported file type: {file.content_type}")

    try:
        await analysis_service.stage_upload(controller, file)
    except ImageTooLargeError as exc:
        raise HTTPException(413, exc.message)
    except InputValidationError as exc:
        raise HTTPException(422, exc.message)
    return SessionResponse(**analysis_service.session_snapshot(session_id, controller))


@router.delete("/{session_id}/image", response_model=SessionResponse, summary="Remove the staged image")
async def remove_image(session_id: str):
    controller = _get_controller(session_id)
    if controller.is_analyzing:
        raise HTTPException(409, "Analysis in progress")
    controller.collector.clear_image()
    return SessionResponse(**analysis_service.session_snapshot(session_id, controller))


@router.post(
    "/{session_id}/submit",
    response_model=SessionResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit text and/or image for analysis",
)
async def submit(session_id: str, payload: AnalyzePayload):
    """
    Start the analysis for this session.

    - 202: now Analyzing; poll GET /api/sessions/{id} for the outcome
    - 409: the session is not Idle (the submission has no effect)
    - 422: nothing to analyze, or an image is still loading
    """
    controller = _get_controller(session_id)
    try:
        started = analysis_service.submit(controller, payload.text, payload.image)
    except InputValidationError as exc:
        raise HTTPException(422, exc.message)
    if not started:
        raise HTTPException(409, f"Session is {controller.state.status.value}; reset before submitting again")
    return SessionResponse(**analysis_service.session_snapshot(session_id, controller))


@router.post("/{session_id}/reset", response_model=SessionResponse, summary="Return to Idle")
async def reset(session_id: str):
    controller = _get_controller(session_id)
    if not controller.reset():
        raise HTTPException(409, "Analysis in progress")
    return SessionResponse(**analysis_service.session_snapshot(session_id, controller))


# ── Report ─────────────────────────────────────────────────────────────
@router.get("/{session_id}/report", response_model=ReportViewResponse, summary="Report card view")
async def get_report(session_id: str):
    controller = _get_controller(session_id)
    view = analysis_service.report_view(controller)
    if view is None:
        raise HTTPException(409, "Analysis not yet completed")

    result = view.result
    return ReportViewResponse(
        sessionId=session_id,
        title=view.title,
        brand=view.brand,
        generatedOn=view.generated_on.isoformat(),
        riskLevel=view.theme.level,
        accentColor=view.theme.accent,
        backgroundColor=view.theme.background,
        score=result.score,
        verdict=result.verdict,
        tone=result.tone,
        summary=result.summary,
        details=result.details,
        advice=result.advice,
        pngFilename=view.filename("png"),
        pdfFilename=view.filename("pdf"),
    )


@router.get("/{session_id}/report.{fmt}", summary="Export the report card")
async def export_report(session_id: str, fmt: str):
    """Download the report card as a PNG image or a PDF document."""
    if fmt not in analysis_service.EXPORT_FORMATS:
        raise HTTPException(404, f"Unsupported export format: {fmt}")

    controller = _get_controller(session_id)
    view = analysis_service.report_view(controller)
    if view is None:
        raise HTTPException(409, "Analysis not yet completed")

    try:
        data = await analysis_service.export_report(view, fmt)
    except ExportError as exc:
        raise HTTPException(500, exc.message)

    filename = view.filename(fmt)
    ascii_name = f"mingjing-report-{view.generated_on.isoformat()}.{fmt}"
    return Response(
        content=data,
        media_type=analysis_service.EXPORT_FORMATS[fmt],
        headers={
            "Content-Disposition": f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}",
        },
    )
