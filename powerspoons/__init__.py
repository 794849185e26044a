"""
Power Spoons - Remote package manager for host-embedded feature plugins.

This is the main package that exports the public API: configuration, wiring
and the lifecycle controller.
"""

__version__ = "0.1.0"

from powerspoons.bootstrap import Manager, create_manager
from powerspoons.config import ManagerConfig, load_config
from powerspoons.package import (
    LifecycleController,
    ManagerAPI,
    OperationResult,
    PackageStatus,
)

__all__ = [
    "__version__",
    "LifecycleController",
    "Manager",
    "ManagerAPI",
    "ManagerConfig",
    "OperationResult",
    "PackageStatus",
    "create_manager",
    "load_config",
]
