"""
Powerspoons Package System - Remote package catalog and lifecycle management.

This module handles:
- Manifest parsing and retrieval
- Code download and caching
- Dynamic loading against the package contract
- Install/enable/disable/update/uninstall state machine
"""

from powerspoons.package.api import ManagerAPI
from powerspoons.package.controller import LifecycleController, OperationResult
from powerspoons.package.manifest import Manifest, ManifestClient, PackageDefinition
from powerspoons.package.registry import PackageRegistry, PackageStatus

__all__ = [
    "LifecycleController",
    "ManagerAPI",
    "Manifest",
    "ManifestClient",
    "OperationResult",
    "PackageDefinition",
    "PackageRegistry",
    "PackageStatus",
]
