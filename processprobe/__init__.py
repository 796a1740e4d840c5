"""processprobe: path discovery, resource tracking and cleanup for workflow test runs."""

from .cleanup import CleanupObserver, CleanupResult, CleanupService
from .config import ProbeConfig, load_config
from .contracts import ProcessStructure, Workflow, WorkflowStepDefinition
from .converter import convert_process_structure, load_process_structure, validate_process_structure
from .discovery import PathDiscoveryResult, ScenarioPath, build_scenarios, discover_paths
from .errors import ProcessStructureError
from .integrations import IntegrationExecutor, IntegrationResult, StepContext
from .registry import CAPABILITIES, Integration, build_view_url, get_capability, supports_cleanup
from .session import TestRunSession
from .tracking import CleanupStatus, ResourceTracker, TrackedResource
from .transports import get_client

__version__ = "0.1.0"
__all__ = [
    "CAPABILITIES",
    "CleanupObserver",
    "CleanupResult",
    "CleanupService",
    "CleanupStatus",
    "Integration",
    "IntegrationExecutor",
    "IntegrationResult",
    "PathDiscoveryResult",
    "ProbeConfig",
    "ProcessStructure",
    "ProcessStructureError",
    "ResourceTracker",
    "ScenarioPath",
    "StepContext",
    "TestRunSession",
    "TrackedResource",
    "Workflow",
    "WorkflowStepDefinition",
    "build_scenarios",
    "build_view_url",
    "convert_process_structure",
    "discover_paths",
    "get_capability",
    "get_client",
    "load_config",
    "load_process_structure",
    "supports_cleanup",
    "validate_process_structure",
]
