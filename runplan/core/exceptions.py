"""
Custom exception classes.

The engine never raises for structurally valid domain input; these
exceptions signal programming or configuration errors.
"""
from typing import Optional


class RunPlanError(Exception):
    """Base exception with consistent structure."""

    def __init__(self, detail: str, error_code: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.error_code = error_code or "RUNPLAN_ERROR"


class ConfigurationError(RunPlanError):
    """Rule file could not be read or is malformed."""

    def __init__(self, detail: str, source: Optional[str] = None):
        if source:
            detail = f"{source}: {detail}"
        super().__init__(detail=detail, error_code="CONFIGURATION_ERROR")
        self.source = source


class UnknownMethodologyError(RunPlanError):
    """Methodology is not part of the supported set."""

    def __init__(self, methodology: str):
        super().__init__(
            detail=f"Unknown training methodology: {methodology}",
            error_code="UNKNOWN_METHODOLOGY"
        )
        self.methodology = methodology


class TemplateNotFoundError(RunPlanError):
    """Workout template id does not exist in the library."""

    def __init__(self, template_id: str):
        super().__init__(
            detail=f"Workout template not found: {template_id}",
            error_code="TEMPLATE_NOT_FOUND"
        )
        self.template_id = template_id


class InvalidModificationError(RunPlanError):
    """Modification value cannot be applied."""

    def __init__(self, detail: str, field: Optional[str] = None):
        error_code = f"INVALID_MODIFICATION_{field.upper()}" if field else "INVALID_MODIFICATION"
        super().__init__(detail=detail, error_code=error_code)
