"""
PUA Analysis Agent Module
Builds the fixed instruction payload, sends it to the completion provider and
parses the structured verdict.
"""

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from mingjing import config
from mingjing.core.errors import AnalysisError
from mingjing.core.models import AnalysisRequest, AnalysisResult
from .interface import ContentPart, GenerationSettings, ProviderInterface

logger = logging.getLogger("MINGJING_ANALYSIS")

INSTRUCTION_PROMPT = """
作为一位精通中国职场文化、组织行为学和沟通心理学的专家，请分析以下内容。

你的任务是判断这段内容（文字或图片中的聊天记录）是否包含上级对下级的PUA（精神控制）、洗脑、过度压榨或情感操纵的迹象。

请仔细体察语气、用词背后的动机以及权力不对等带来的压迫感。

如果是图片，请先提取图片中的文字内容，再分析其中的对话内容。

分析维度包括但不限于：
1. 否定打压（如：否定员工价值，人身攻击）
2. 制造焦虑（如：威胁裁员，强调外界环境恶劣）
3. 画饼充饥（如：空头承诺，谈理想不谈回报）
4. 情感绑架（如：强调感恩，把公司当家）
5. 边界侵犯（如：要求无偿加班，干涉私生活）

请保持客观、冷静，并给出具体的分析理由和建议。请务必使用中文回答。
"""

TEXT_LABEL = "需要分析的文字内容：\n"

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "score": {
            "type": "INTEGER",
            "description": "A score from 0 to 100 indicating the likelihood of PUA/manipulation. "
                           "0 is completely safe, 100 is severe manipulation.",
        },
        "verdict": {
            "type": "STRING",
            "description": "A short verdict in Chinese, e.g., '正常沟通', 'PUA预警', '严重洗脑'. "
                           "Maximum 4 characters.",
        },
        "summary": {
            "type": "STRING",
            "description": "A brief summary of the analysis in Chinese.",
        },
        "details": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "A list of 3-5 specific points explaining the analysis in Chinese.",
        },
        "advice": {
            "type": "STRING",
            "description": "Actionable advice for the employee in Chinese.",
        },
        "tone": {
            "type": "STRING",
            "description": "Description of the speaker's tone, e.g., 'Aggressive', "
                           "'Passive-Aggressive', 'Professional'. In Chinese.",
        },
    },
    "required": ["score", "verdict", "summary", "details", "advice", "tone"],
}


class PuaAnalysisAgent:
    """
    Analysis client for workplace speech.

    Every call sends the same instruction block, the user's text (if any) and
    the image (if any) in a single request, then parses the JSON verdict.
    There is no retry: a failure is final for that submission.

    Lifecycle:
        agent = PuaAnalysisAgent(GeminiProvider())
        agent.validate()
        result = await agent.analyze(request)
    """

    def __init__(self, provider: ProviderInterface, temperature: Optional[float] = None):
        self.provider = provider
        self.settings = GenerationSettings(
            temperature=config.ANALYSIS_TEMPERATURE if temperature is None else temperature,
        )

    def validate(self) -> bool:
        return self.provider.validate()

    def build_parts(self, request: AnalysisRequest) -> list[ContentPart]:
        """
        Assemble the ordered prompt parts for one request.

        Args:
            request: Validated analysis request

        Returns:
            Instruction part, then the labelled text part and the inline image
            part when present
        """
        parts = [ContentPart.from_text(INSTRUCTION_PROMPT)]
        if request.has_text:
            parts.append(ContentPart.from_text(f"{TEXT_LABEL}{request.text}"))
        if request.image is not None:
            parts.append(ContentPart.from_bytes(request.image_bytes, request.image_mime_type))
        return parts

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """
        Run one analysis.

        Raises:
            AnalysisError: on any provider, network or parsing failure
        """
        parts = self.build_parts(request)
        logger.info(
            "Analyzing submission (text: %d chars, image: %s)",
            len(request.text), request.image_mime_type or "none",
        )

        try:
            text = await self.provider.generate(parts, RESPONSE_SCHEMA, self.settings)
        except Exception as e:
            logger.error("Provider call failed: %s", e, exc_info=True)
            raise AnalysisError() from e

        if not text:
            logger.error("Provider returned no response text")
            raise AnalysisError()

        result = self.parse_response(text)
        logger.info("Analysis completed: score=%d verdict=%s", result.score, result.verdict)
        return result

    @staticmethod
    def parse_response(text: str) -> AnalysisResult:
        """Parse the provider's JSON text into an AnalysisResult."""
        try:
            payload: Any = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("Response is not valid JSON: %s", e)
            raise AnalysisError() from e

        try:
            return AnalysisResult.model_validate(payload)
        except ValidationError as e:
            logger.error("Response does not match the verdict schema: %s", e)
            raise AnalysisError() from e
