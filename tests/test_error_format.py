"""Tests for error formatting utilities."""

from vault_loader.errors import CircularRequireError
from vault_loader.errors import InvalidIdentifierError
from vault_loader.errors import LoaderError
from vault_loader.errors import ModuleLoadError
from vault_loader.errors import UnresolvedModuleError
from vault_loader.utils.error_format import escape_markup
from vault_loader.utils.error_format import format_error_message
from vault_loader.utils.error_format import format_load_failure


class TestFormatErrorMessage:
    def test_message_with_type(self):
        assert format_error_message(ValueError("bad")) == "ValueError: bad"

    def test_without_type(self):
        assert format_error_message(ValueError("bad"), include_type=False) == "bad"

    def test_empty_message_uses_friendly_text(self):
        assert format_error_message(TimeoutError()) == "TimeoutError: Operation timed out."

    def test_empty_message_fallback(self):
        assert format_error_message(ValueError()) == "ValueError: (no additional details)"


class TestFormatLoadFailure:
    def test_chain_is_rendered(self):
        root = ZeroDivisionError("division by zero")
        inner = ModuleLoadError("failed to load file lib/b.py", path="lib/b.py", cause=root)
        outer = ModuleLoadError("failed to load file lib/a.py", path="lib/a.py", cause=inner)

        assert format_load_failure(outer).splitlines() == [
            "ModuleLoadError: failed to load file lib/a.py",
            "  caused by ModuleLoadError: failed to load file lib/b.py",
            "  caused by ZeroDivisionError: division by zero",
        ]

    def test_non_load_error(self):
        assert format_load_failure(UnresolvedModuleError("x")) == "UnresolvedModuleError: cannot find module 'x'"


class TestErrorTaxonomy:
    def test_all_errors_are_loader_errors(self):
        for error in (
            InvalidIdentifierError("x"),
            UnresolvedModuleError("x"),
            CircularRequireError("a.py", source="b.py"),
            ModuleLoadError("x", path="a.py"),
        ):
            assert isinstance(error, LoaderError)

    def test_source_is_kept(self):
        assert UnresolvedModuleError("x", source="lib/main.py").source == "lib/main.py"

    def test_circular_message(self):
        assert str(CircularRequireError("a.py", source="b.py")) == "circular require detected: b.py -> a.py"


def test_escape_markup():
    assert escape_markup("[red]x[/red]") == "\\[red]x\\[/red]"
