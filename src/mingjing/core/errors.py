"""
Error taxonomy for the analysis workflow.

Provider and parsing failures never cross the analysis client boundary in
their original shape: they are logged there and re-raised as AnalysisError.
"""

# Shown to the user whenever an analysis fails, whatever the cause.
ANALYSIS_FAILED_MESSAGE = "分析过程中出现了意外，请稍后再试。"
EXPORT_FAILED_MESSAGE = "图片生成失败，请重试"


class MirrorError(Exception):
    """Base class for all domain errors."""

    default_message = "未知错误"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InputValidationError(MirrorError):
    """Submission rejected before any provider call (empty input, bad image)."""

    default_message = "请输入需要分析的文字或上传聊天截图。"


class AnalysisError(MirrorError):
    """Any failure while calling the provider or parsing its response."""

    default_message = ANALYSIS_FAILED_MESSAGE


class ExportError(MirrorError):
    """Report rasterization or PDF export failed."""

    default_message = EXPORT_FAILED_MESSAGE


class ImageTooLargeError(InputValidationError):
    """Uploaded image exceeds MAX_IMAGE_BYTES."""

    default_message = "图片文件过大。"
