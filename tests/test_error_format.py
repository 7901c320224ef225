"""Tests for error message formatting and markup escaping."""

from unittest.mock import MagicMock

import httpx
import pytest

from selefra_cli.module_graph.errors import ReferenceNotFoundError
from selefra_cli.module_graph.models import ReferenceKind
from selefra_cli.registry.fetcher import HttpPackageFetcher
from selefra_cli.registry.fetcher import PackageFetchError
from selefra_cli.utils.error_format import escape_markup
from selefra_cli.utils.error_format import format_error_message


def test_message_gets_type_prefix():
    assert format_error_message(ValueError("invalid input")) == "ValueError: invalid input"


def test_type_prefix_can_be_omitted():
    assert format_error_message(ValueError("invalid input"), include_type=False) == "invalid input"


def test_empty_message_uses_friendly_fallback():
    assert format_error_message(PermissionError()) == "PermissionError: Permission denied."


def test_empty_httpx_timeout_uses_friendly_fallback():
    message = format_error_message(httpx.ReadTimeout(""))
    assert message.startswith("ReadTimeout: Request timed out")


def test_friendly_fallback_without_type():
    assert format_error_message(PermissionError(), include_type=False) == "Permission denied."


def test_download_error_message_is_never_blank(package_cache):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("", request=request)

    fetcher = HttpPackageFetcher(
        cache=package_cache,
        registry=MagicMock(),
        cloud_hostname="api.selefra.test",
        token_provider=lambda: "tok",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    with pytest.raises(PackageFetchError, match="Could not connect to the server"):
        fetcher.fetch(ReferenceKind.ORG_PACKAGE, "baseline", "acme", None)


def test_empty_message_without_fallback():
    assert format_error_message(RuntimeError()) == "RuntimeError: (no additional details)"


def test_resolution_error_includes_context_lines():
    error = ReferenceNotFoundError("Module file does not exist: /ws/a.yaml", reference="./a.yaml")
    assert format_error_message(error, include_type=False) == (
        "Module file does not exist: /ws/a.yaml\n  reference: ./a.yaml"
    )


def test_escape_markup_neutralizes_brackets():
    assert escape_markup("[bold]path[/bold]") == "\\[bold]path\\[/bold]"
