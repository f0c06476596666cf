"""
Analysis service.

Glue between the HTTP routers and the lifecycle controllers: one-shot
analysis, session snapshots, image staging and report export.
"""

import asyncio
import logging
from typing import Optional

from fastapi import UploadFile

from mingjing.analyzers.lifecycle import LifecycleController
from mingjing.core.models import AnalysisRequest, AnalysisResult, Completed, Idle
from mingjing.reporting import ReportView
from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)

EXAMPLES = [
    "年轻人眼光要放长远，不要只盯着这点工资，我在给你机会锻炼。",
    "我对你严厉是因为我看重你，别人想让我骂我都不骂。",
    "公司就是家，不要总是计较个人得失，要懂得感恩平台。",
    "这点抗压能力都没有，以后怎么在社会上立足？",
]

LOADING_MESSAGES = [
    "正在斟酌...",
    "探寻言外之意...",
    "分析语境...",
    "洞察动机...",
    "明辨真伪...",
]

EXPORT_FORMATS = {
    "png": "image/png",
    "pdf": "application/pdf",
}


async def run_analysis(text: str, image: Optional[str]) -> AnalysisResult:
    """
    Analyze one submission outside any session.

    Raises:
        InputValidationError: empty submission or undecodable image
        AnalysisError: provider or parsing failure
    """
    request = AnalysisRequest.create(text, image)
    return await SessionRegistry.agent().analyze(request)


def session_snapshot(session_id: str, controller: LifecycleController) -> dict:
    """Return a dict matching SessionResponse."""
    collector = controller.collector
    return {
        "sessionId": session_id,
        "state": controller.state,
        "canSubmit": isinstance(controller.state, Idle) and collector.can_submit,
        "hasImage": collector.image is not None,
        "imagePending": collector.image_pending,
    }


async def stage_upload(controller: LifecycleController, file: UploadFile) -> None:
    """Read an uploaded image into the session's collector, replacing any staged image."""
    controller.collector.begin_image_read(file.read(), file.content_type)
    await controller.collector.wait_for_image()
    logger.info("Image %s staged", file.filename or "upload")


def submit(controller: LifecycleController, text: str, image: Optional[str]) -> bool:
    """
    Stage the payload and dispatch the analysis.

    Returns False without touching the staged input when the session is not Idle.
    The payload is validated before it is staged, so a rejected submission
    leaves the session as it was.

    Raises:
        InputValidationError: nothing to analyze, bad image, or an image is still loading
    """
    if not isinstance(controller.state, Idle):
        return False

    collector = controller.collector
    request = collector.preview_request(text, image)
    collector.set_text(text)
    if image:
        collector.stage_image(image)
    return controller.submit(request)


def report_view(controller: LifecycleController) -> Optional[ReportView]:
    """Render the report for a completed session, or None if there is no result."""
    state = controller.state
    if not isinstance(state, Completed):
        return None
    return SessionRegistry.reports().render(state.result)


async def export_report(view: ReportView, fmt: str) -> bytes:
    """
    Export the report card off the event loop.

    Raises:
        ExportError: rasterization failed
    """
    reports = SessionRegistry.reports()
    if fmt == "pdf":
        return await asyncio.to_thread(reports.export_pdf, view)
    return await asyncio.to_thread(reports.export_png, view)
