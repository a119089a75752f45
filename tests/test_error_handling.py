"""Tests for the exception hierarchy and RowFailure records."""

from __future__ import annotations

import pytest

from geomatch.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DuplicateOutputColumn,
    FetchError,
    GeomatchError,
    IncompleteConfiguration,
    IncompleteJoinConfiguration,
    JoinError,
    PermanentFetchError,
    RowFailure,
    TransientFetchError,
    UnsupportedArity,
)


class TestGeomatchError:
    def test_message_only(self):
        err = GeomatchError("boom")
        assert str(err) == "boom"
        assert err.row_index is None
        assert err.field is None

    def test_row_and_field_context(self):
        err = GeomatchError("bad value", row_index=3, field="zip")
        assert str(err) == "bad value | Row: 3 | Field: zip"


class TestHierarchy:
    def test_join_config_errors_are_both(self):
        assert issubclass(IncompleteJoinConfiguration, IncompleteConfiguration)
        assert issubclass(IncompleteJoinConfiguration, JoinError)
        assert issubclass(DuplicateOutputColumn, ConfigurationError)
        assert issubclass(UnsupportedArity, JoinError)

    def test_auth_is_permanent(self):
        assert issubclass(AuthenticationError, PermanentFetchError)
        assert issubclass(PermanentFetchError, FetchError)
        assert not issubclass(TransientFetchError, PermanentFetchError)

    def test_incomplete_configuration_lists_missing(self):
        err = IncompleteConfiguration("unset", missing=["city", "state"])
        assert err.missing == ["city", "state"]

    def test_transient_context(self):
        err = TransientFetchError("slow down", status_code=429, retry_after=2.0, is_rate_limit=True)
        assert err.status_code == 429
        assert err.retry_after == 2.0
        assert err.is_rate_limit


class TestRowFailure:
    def test_error_type_from_exception(self):
        failure = RowFailure(row_index=2, address="1 Main St", error=PermanentFetchError("ZERO_RESULTS"))
        assert failure.error_type == "PermanentFetchError"

    def test_str(self):
        failure = RowFailure(row_index=0, address=None, error=ValueError("x"))
        assert str(failure) == "RowFailure(row=0, address=None, ValueError: x)"

    def test_explicit_error_type_kept(self):
        failure = RowFailure(row_index=0, address="a", error=ValueError("x"), error_type="Custom")
        assert failure.error_type == "Custom"


@pytest.mark.parametrize("exc_type", [ConfigurationError, JoinError, FetchError])
def test_all_errors_share_base(exc_type):
    assert issubclass(exc_type, GeomatchError)
