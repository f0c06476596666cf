"""Single-page UI router."""
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from mingjing import config
from mingjing.api.services import analysis_service

router = APIRouter()
templates = Jinja2Templates(directory=config.TEMPLATES_DIR)


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index(request: Request):
    """Serve the analysis page; all state lives behind /api/sessions."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "examples": analysis_service.EXAMPLES,
            "loading_messages": analysis_service.LOADING_MESSAGES,
        },
    )
