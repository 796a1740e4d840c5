"""Integration handlers and the executor that dispatches to them."""

from .base import IntegrationHandler, IntegrationResult, StepContext, extract_display_name
from .executor import OPERATION_ALIASES, IntegrationExecutor, normalize_operation
from .handlers import HANDLERS, SUPABASE_TABLES, infer_resource_type

__all__ = [
    "HANDLERS",
    "IntegrationExecutor",
    "IntegrationHandler",
    "IntegrationResult",
    "OPERATION_ALIASES",
    "SUPABASE_TABLES",
    "StepContext",
    "extract_display_name",
    "infer_resource_type",
    "normalize_operation",
]
