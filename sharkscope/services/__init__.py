# Cross-cutting services package
#
# capture_service and config_service are imported from their modules
# directly; core.capture depends on thread_manager.

from .thread_manager import (
    ThreadManager,
    get_thread_manager,
    reset_thread_manager,
)
from .config_store import (
    ConfigStore,
    get_config_store,
    reset_config_store,
    resolve_analysis_parameters,
    resolve_capture_parameters,
)

__all__ = [
    # Thread manager
    "ThreadManager",
    "get_thread_manager",
    "reset_thread_manager",
    # Configuration store
    "ConfigStore",
    "get_config_store",
    "reset_config_store",
    "resolve_analysis_parameters",
    "resolve_capture_parameters",
]
