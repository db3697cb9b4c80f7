"""
test_master_data_client.py — MasterDataClient against an in-process transport.

The upstream service is replaced by ``httpx.MockTransport``; responses use
the service's ``{"data": ...}`` envelope and camelCase field names.
"""

import asyncio

import httpx
import pytest

from conftest import employee_payload, group_nature_payload, nature_payload, shift_payload
from incentive.config import load_config
from incentive.models.schemas import ProductionType
from incentive.services.errors import MasterDataError
from incentive.services.master_data_client import MasterDataClient, MasterDataContext

BASE_URL = "http://masterdata.test/v1/api"


def _routes():
    return {
        "/v1/api/ProductionShift": [
            shift_payload(),
            shift_payload(_id="S2", shiftName="Night", shiftHrs="10", isDeleted=True),
        ],
        "/v1/api/ProductionNature": [nature_payload(), group_nature_payload()],
        "/v1/api/ProductionNature/N2": group_nature_payload(),
        "/v1/api/getAllowences": [
            {"_id": "A1", "allowence": "Night Meal", "amount": 75},
            {"_id": "A2", "allowence": "Retired", "amount": 10, "isDeleted": True},
        ],
    }


def _client(handler=None, token="svc-token"):
    routes = _routes()
    seen = []

    def default_handler(request):
        seen.append(request)
        path = request.url.path
        if path == "/v1/api/employeesList":
            code = request.url.params.get("empCode")
            rows = [employee_payload(c) for c in ("E001", "E002") if not code or c == code]
            return httpx.Response(200, json={"data": rows})
        if path in routes:
            return httpx.Response(200, json={"data": routes[path]})
        return httpx.Response(404, json={"message": "not found"})

    context = MasterDataContext(base_url=BASE_URL, auth_token=token, timeout_s=2.0)
    client = MasterDataClient(context, transport=httpx.MockTransport(handler or default_handler))
    return client, seen


def run_with(client_and_seen, fn):
    async def runner():
        client, seen = client_and_seen
        async with client:
            return await fn(client, seen)
    return asyncio.run(runner())


# ===========================================================================
# Class 1: Parsing and filtering
# ===========================================================================

class TestReads:

    def test_shifts_drop_deleted_rows(self):
        shifts = run_with(_client(), lambda c, _: c.list_shifts())
        assert [s.id for s in shifts] == ["S1"]
        assert shifts[0].shift_hrs == 8.0
        assert shifts[0].name == "General"

    def test_nature_parses_upstream_shape(self):
        nature = run_with(_client(), lambda c, _: c.get_nature("N2"))
        assert nature.production_type == ProductionType.GROUP
        assert nature.manpower == 4
        assert nature.building_id == "B1"
        assert nature.incentive_tiers[0].additional_values is True

    def test_populated_building_reference_is_flattened(self):
        natures = run_with(_client(), lambda c, _: c.list_natures(building_id="B1"))
        assert {n.id for n in natures} == {"N1", "N2"}

    def test_employee_lookup_sends_code(self):
        client = _client()
        employee = run_with(client, lambda c, _: c.get_employee("E002"))
        assert employee.emp_code == "E002"
        assert employee.full_name == "Worker E002"
        assert client[1][-1].url.params["empCode"] == "E002"

    def test_allowances_drop_deleted_rows(self):
        allowances = run_with(_client(), lambda c, _: c.list_allowances())
        assert [(a.id, a.name, a.amount) for a in allowances] == [("A1", "Night Meal", 75.0)]

    def test_bearer_token_forwarded(self):
        client = _client(token="caller-token")
        run_with(client, lambda c, _: c.list_shifts())
        assert client[1][0].headers["Authorization"] == "Bearer caller-token"

    def test_no_token_no_header(self):
        client = _client(token="")
        run_with(client, lambda c, _: c.list_shifts())
        assert "Authorization" not in client[1][0].headers


# ===========================================================================
# Class 2: Failures
# ===========================================================================

class TestFailures:

    def test_unknown_shift_is_404(self):
        with pytest.raises(MasterDataError) as exc:
            run_with(_client(), lambda c, _: c.get_shift("S2"))
        assert exc.value.status_code == 404

    def test_unknown_employee_is_404(self):
        with pytest.raises(MasterDataError) as exc:
            run_with(_client(), lambda c, _: c.get_employee("E999"))
        assert exc.value.status_code == 404

    def test_upstream_error_status(self):
        handler = lambda request: httpx.Response(500, json={"message": "boom"})
        with pytest.raises(MasterDataError) as exc:
            run_with(_client(handler), lambda c, _: c.list_natures())
        assert exc.value.status_code == 500

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(MasterDataError) as exc:
            run_with(_client(handler), lambda c, _: c.list_shifts())
        assert exc.value.status_code is None

    def test_invalid_json(self):
        handler = lambda request: httpx.Response(200, content=b"<html>")
        with pytest.raises(MasterDataError):
            run_with(_client(handler), lambda c, _: c.list_allowances())

    def test_deleted_nature_is_404(self):
        handler = lambda request: httpx.Response(200, json={"data": nature_payload(isDeleted=True)})
        with pytest.raises(MasterDataError) as exc:
            run_with(_client(handler), lambda c, _: c.get_nature("N1"))
        assert exc.value.status_code == 404


def test_context_from_config_prefers_caller_token(monkeypatch):
    monkeypatch.setenv("MASTER_DATA_BASE_URL", BASE_URL)
    monkeypatch.setenv("MASTER_DATA_TOKEN", "svc-token")
    config = load_config()
    assert MasterDataContext.from_config(config).auth_token == "svc-token"
    assert MasterDataContext.from_config(config, "caller").auth_token == "caller"
    assert MasterDataContext.from_config(config).base_url == BASE_URL
