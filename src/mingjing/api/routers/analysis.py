"""One-shot analysis router."""
import logging

from fastapi import APIRouter, HTTPException, status

from mingjing.api.schemas.analysis import AnalyzePayload, ExamplesResponse
from mingjing.api.services import analysis_service
from mingjing.core.errors import AnalysisError, InputValidationError
from mingjing.core.models import AnalysisResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/examples",
    response_model=ExamplesResponse,
    summary="Sample phrases for click-to-fill input",
)
async def list_examples():
    """Return the sample workplace phrases shown under the input box."""
    return ExamplesResponse(examples=analysis_service.EXAMPLES)


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    status_code=status.HTTP_200_OK,
    summary="Analyse text or a chat screenshot in one call",
)
async def analyze(payload: AnalyzePayload):
    """
    Run one analysis without a session.

    - At least one of text / image is required
    - The image is a base64 data URL (png, jpeg, webp) or raw base64

    Returns:
        Score (0-100), verdict, summary, details, advice and tone
    """
    try:
        return await analysis_service.run_analysis(payload.text, payload.image)
    except InputValidationError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.message)
    except AnalysisError as exc:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, exc.message)
    except RuntimeError as exc:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))
