"""
Dynamic Package Loader.

This module turns downloaded source text into a running package object.

Key features:
- Compile -> execute -> factory -> contract check, one typed error per stage
- Fresh module namespace per load (never registered in sys.modules)
- The factory receives only the ManagerAPI
"""

import logging
from collections.abc import Callable
from types import ModuleType
from typing import Any, Protocol

from powerspoons.errors import (
    CompileError,
    ExecError,
    InvalidModule,
    NotAFactory,
)

logger = logging.getLogger(__name__)

FACTORY_NAME = "create"

# Caught at every call into package code. KeyboardInterrupt and
# asyncio.CancelledError still reach the host.
PACKAGE_FAULTS = (Exception, SystemExit)


class PackageModule(Protocol):
    """
    Contract every package object satisfies.

    start() is required. stop() must release everything start() acquired.
    get_menu_items(), get_hotkey_spec() and get_status() are optional.
    """

    def start(self) -> Any: ...


def module_name_for(package_id: str) -> str:
    return f"powerspoons_package_{package_id}"


def compile_source(package_id: str, source: str):
    """
    Raises:
        CompileError: If source is not valid Python
    """
    try:
        return compile(source, f"<powerspoons:{package_id}>", "exec")
    except (SyntaxError, ValueError) as e:
        raise CompileError(
            package_id, f"Failed to compile package code: {e}"
        ) from e


def execute_module(package_id: str, code) -> ModuleType:
    """
    Raises:
        ExecError: If the module body raises
    """
    module = ModuleType(module_name_for(package_id))
    module.__file__ = f"<powerspoons:{package_id}>"
    try:
        exec(code, module.__dict__)
    except PACKAGE_FAULTS as e:
        raise ExecError(package_id, f"Failed to execute package code: {e}") from e
    return module


def find_factory(package_id: str, module: ModuleType) -> Callable[[Any], Any]:
    """
    Raises:
        NotAFactory: If the module has no callable factory
    """
    factory = getattr(module, FACTORY_NAME, None)
    if factory is None or not callable(factory):
        raise NotAFactory(
            package_id, f"Package must define a callable '{FACTORY_NAME}(manager)'"
        )
    return factory


def validate_module(package_id: str, instance: Any) -> PackageModule:
    """
    Raises:
        InvalidModule: If the object has no callable start
    """
    if instance is None or not callable(getattr(instance, "start", None)):
        raise InvalidModule(
            package_id, "Package factory returned an object without a callable start()"
        )
    return instance


def instantiate(package_id: str, source: str, manager_api: Any) -> PackageModule:
    """
    Load a package object from source text.

    Args:
        package_id: Package identifier (used for naming and errors)
        source: Python source text
        manager_api: The ManagerAPI handed to the factory

    Returns:
        Object satisfying the package contract

    Raises:
        LoadError: CompileError, ExecError, NotAFactory or InvalidModule
    """
    code = compile_source(package_id, source)
    module = execute_module(package_id, code)
    factory = find_factory(package_id, module)

    try:
        instance = factory(manager_api)
    except PACKAGE_FAULTS as e:
        raise ExecError(
            package_id, f"Failed to create package instance: {e}"
        ) from e

    return validate_module(package_id, instance)
