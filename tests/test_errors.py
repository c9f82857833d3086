"""Tests for the error taxonomy, the YAML registry and the JSON envelope."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    Forbidden,
    NotConfigured,
    NotFound,
    PayloadTooLarge,
    RateLimited,
    ServiceError,
    Unauthorized,
    Unexpected,
    ValidationFailed,
)
from app.core.errors.middleware import service_error_handler
from app.core.errors.registry import (
    ErrorRegistry,
    RegistryValidationError,
    error_registry,
    exception_codes,
)


class TestTaxonomy:
    @pytest.mark.parametrize(
        "cls,code,status",
        [
            (ValidationFailed, "CMT-API-001", 400),
            (RateLimited, "CMT-API-002", 429),
            (PayloadTooLarge, "CMT-API-413", 413),
            (NotFound, "CMT-API-404", 404),
            (Unauthorized, "CMT-SEC-001", 401),
            (Forbidden, "CMT-SEC-002", 403),
            (NotConfigured, "CMT-CFG-001", 501),
            (Unexpected, "CMT-SYS-001", 500),
        ],
    )
    def test_default_codes_are_registered(self, cls, code, status):
        exc = cls()
        assert isinstance(exc, ServiceError)
        assert exc.code == code
        assert error_registry.lookup(code).http_status == status

    def test_store_failure_code(self):
        assert error_registry.lookup("CMT-DB-001").http_status == 503

    def test_bad_code_format_rejected(self):
        with pytest.raises(ValueError):
            ServiceError(code="not-a-code")


class TestRegistryLoading:
    def test_every_exception_class_registered(self):
        assert error_registry.missing(exception_codes()) == []

    def test_every_domain_covered(self):
        for domain in ("API", "SEC", "CFG", "DB", "SYS"):
            assert error_registry.codes_for_domain(domain)

    def test_domain_mismatch_rejected(self, tmp_path):
        bad = tmp_path / "registry.yaml"
        bad.write_text(
            "schema_version: 1\n"
            "errors:\n"
            "  - code: CMT-API-001\n"
            "    domain: SEC\n"
            "    title: x\n"
            "    severity: INFO\n"
            "    retryable: false\n"
            "    user_action_required: false\n"
            "    http_status: 400\n"
            "    safe_message: x\n"
            "    remediation: []\n"
        )
        with pytest.raises(RegistryValidationError):
            ErrorRegistry().load(str(bad))

    def test_missing_fields_rejected(self, tmp_path):
        bad = tmp_path / "registry.yaml"
        bad.write_text("schema_version: 1\nerrors:\n  - code: CMT-API-001\n    domain: API\n")
        with pytest.raises(RegistryValidationError):
            ErrorRegistry().load(str(bad))


class TestEnvelope:
    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_exception_handler(ServiceError, service_error_handler)

        @app.get("/missing")
        async def _missing():
            raise NotFound(detail="internal detail that must not leak")

        @app.get("/invalid")
        async def _invalid():
            raise ValidationFailed(details=[{"loc": ["body"], "msg": "bad", "type": "value_error"}])

        return TestClient(app)

    def test_not_found_envelope(self, client):
        resp = client.get("/missing")
        assert resp.status_code == 404
        body = resp.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "CMT-API-404"
        assert "internal detail" not in resp.text
        assert "details" not in body["error"]

    def test_validation_details_surface(self, client):
        resp = client.get("/invalid")
        assert resp.status_code == 400
        assert resp.json()["error"]["details"] == [{"loc": ["body"], "msg": "bad", "type": "value_error"}]
