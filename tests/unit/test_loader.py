"""
Tests for the dynamic package loader.
"""

import sys

import pytest

from conftest import package_source
from powerspoons.errors import (
    CompileError,
    ExecError,
    InvalidModule,
    LoadError,
    NotAFactory,
)
from powerspoons.package.loader import instantiate, module_name_for


class TestInstantiate:
    """Test each loading stage and its error."""

    def test_valid_package(self):
        """Should return the object built by create(manager)."""
        api = object()
        instance = instantiate("p1", package_source("7"), api)

        assert instance.version == "7"
        assert instance.manager is api
        assert instance.start_calls == 0

    def test_module_not_registered(self):
        """Loaded package modules should not appear in sys.modules."""
        instantiate("p1", package_source(), None)
        assert module_name_for("p1") not in sys.modules

    def test_fresh_namespace_per_load(self):
        """Two loads should not share module globals."""
        source = (
            "seen = []\n"
            "\n"
            "class P:\n"
            "    def start(self):\n"
            "        pass\n"
            "\n"
            "def create(manager):\n"
            "    seen.append(1)\n"
            "    p = P()\n"
            "    p.seen = seen\n"
            "    return p\n"
        )
        first = instantiate("p1", source, None)
        second = instantiate("p1", source, None)
        assert first.seen == [1]
        assert second.seen == [1]
        assert first.seen is not second.seen

    def test_syntax_error(self):
        """Should raise CompileError for invalid Python."""
        with pytest.raises(CompileError) as exc_info:
            instantiate("p1", "def broken(:\n", None)
        assert exc_info.value.package_id == "p1"

    def test_module_body_raises(self):
        """Should raise ExecError when the module body raises."""
        with pytest.raises(ExecError):
            instantiate("p1", "raise RuntimeError('at import')\n", None)

    def test_missing_factory(self):
        """Should raise NotAFactory without a create function."""
        with pytest.raises(NotAFactory):
            instantiate("p1", "x = 1\n", None)

    def test_factory_not_callable(self):
        """Should raise NotAFactory when create is not callable."""
        with pytest.raises(NotAFactory):
            instantiate("p1", "create = 42\n", None)

    def test_factory_raises(self):
        """Should raise ExecError when the factory raises."""
        source = "def create(manager):\n    raise ValueError('no key')\n"
        with pytest.raises(ExecError, match="no key"):
            instantiate("p1", source, None)

    def test_factory_returns_none(self):
        """Should raise InvalidModule when the factory returns None."""
        with pytest.raises(InvalidModule):
            instantiate("p1", "def create(manager):\n    return None\n", None)

    def test_object_without_start(self):
        """Should raise InvalidModule when start is missing or not callable."""
        source = "class P:\n    start = 'nope'\n\ndef create(manager):\n    return P()\n"
        with pytest.raises(InvalidModule):
            instantiate("p1", source, None)

    def test_all_errors_are_load_errors(self):
        """Every stage error should be a LoadError."""
        for source in ("def (", "raise Exception()", "x = 1", "def create(m):\n    return 1\n"):
            with pytest.raises(LoadError):
                instantiate("p1", source, None)

    def test_start_not_called(self):
        """Loading should never call start()."""
        instance = instantiate("p1", package_source(start_body="raise RuntimeError()"), None)
        assert instance.start_calls == 0

    def test_exit_in_module_body(self):
        """sys.exit() in the module body should raise ExecError."""
        with pytest.raises(ExecError):
            instantiate("p1", "import sys\nsys.exit(3)\n", object())

    def test_exit_in_factory(self):
        """sys.exit() in the factory should raise ExecError."""
        source = "import sys\n\ndef create(manager):\n    sys.exit(0)\n"
        with pytest.raises(ExecError):
            instantiate("p1", source, object())
