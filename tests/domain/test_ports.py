"""Unit tests for Result, Query and the error hierarchy."""

import pytest

from clinicdesk.domain.ports import (
    ClinicDataError,
    Filter,
    Notification,
    Query,
    Relation,
    Result,
    StoreError,
    UnauthenticatedError,
)


class TestResult:
    """Test suite for Result."""

    def test_unwrap_success(self):
        assert Result.success_result([1, 2]).unwrap() == [1, 2]

    def test_unwrap_failure_raises_store_error(self):
        result = Result.failure_result("permission denied", error_type="StoreError", error_details={"table": "patients"})

        with pytest.raises(StoreError) as exc_info:
            result.unwrap("count")

        assert str(exc_info.value) == "permission denied"
        assert exc_info.value.operation == "count"
        assert exc_info.value.details == {"table": "patients"}

    def test_failure_from_exception(self):
        result = Result.failure_result(ValueError("bad"))

        assert result.is_failure()
        assert result.error == "bad"
        assert result.error_type == "ValueError"


class TestQuery:
    """Test suite for the Query builder."""

    def test_builder_is_immutable(self):
        base = Query("professionals").eq("user_id", "u1")
        ordered = base.order("nome")

        assert base.order_by is None
        assert ordered.order_by == "nome"
        assert ordered.filters == (Filter("user_id", "eq", "u1"),)

    def test_filters_accumulate_in_order(self):
        query = Query("appointments").eq("user_id", "u1").gte("data_agendamento", "a").lt("data_agendamento", "b")
        assert [f.operator for f in query.filters] == ["eq", "gte", "lt"]

    def test_expand_defaults_to_name_column(self):
        query = Query("appointments").expand("patient", "patients", "patient_id")
        assert query.relations == (Relation("patient", "patients", "patient_id", ("nome",)),)

    def test_order_descending(self):
        query = Query("consultations").order("created_at", ascending=False)
        assert not query.ascending


class TestErrors:
    """Test suite for the error hierarchy."""

    def test_unauthenticated_default_message(self):
        error = UnauthenticatedError()

        assert isinstance(error, ClinicDataError)
        assert str(error) == "Usuário não autenticado"

    def test_store_error_defaults(self):
        error = StoreError("boom")
        assert error.operation is None
        assert error.details == {}


def test_notification_variant():
    assert Notification(title="t", description="d", variant="destructive").is_destructive
    assert not Notification(title="t", description="d").is_destructive
