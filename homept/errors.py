"""
Error taxonomy for report generation.

Every error carries the pipeline stage it came from so a failed record can
be resubmitted on its own.
"""
from typing import Any, Dict, List, Optional


class ReportError(Exception):
    status_code = 500
    error = "Failed to generate report"
    stage = "generation"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if stage:
            self.stage = stage

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class InputError(ReportError):
    """Missing upload, empty batch, bad request body."""
    status_code = 400
    error = "Invalid request"
    stage = "input"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class UpstreamError(ReportError):
    """The AI service failed or answered with nothing usable."""
    error = "Upstream generation error"
    stage = "generation"


class ReportValidationError(ReportError):
    error = "Invalid report structure"
    stage = "validation"

    def __init__(self, violations: List[Dict[str, str]], stage: Optional[str] = None):
        self.violations = list(violations)
        paths = ", ".join(v["path"] for v in self.violations) or "<root>"
        super().__init__(f"Report failed validation at: {paths}", stage=stage)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message, "details": self.violations}


class RenderError(ReportError):
    error = "Failed to create documents"
    stage = "render"
