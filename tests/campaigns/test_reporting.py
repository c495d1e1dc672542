from datetime import date
from decimal import Decimal

import pytest
import requests

from campaigns.reporting import (
    ProductFilters,
    ReportingClient,
    ReportingError,
    SalesRecord,
    get_reporting_client,
)


class FakeResponse:
    def __init__(self, payload=None, status_code=200, raise_json=False):
        self.payload = payload
        self.status_code = status_code
        self.raise_json = raise_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)

    def json(self):
        if self.raise_json:
            raise ValueError("Expecting value")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append({"url": url, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def make_client(response=None, error=None):
    session = FakeSession(response=response, error=error)
    client = ReportingClient("http://reporting.test/api/", token="secret", timeout=5, session=session)
    return client, session


def test_product_filters_params_skip_empty_lists():
    filters = ProductFilters.build(supplier_ids="10, 11", brand_ids=[], product_codes=["A1"])
    assert filters.as_params() == {"filtroFornecedores": "10,11", "filtroProduto": "A1"}
    assert not filters.is_empty()
    assert ProductFilters().is_empty()


def test_fetch_store_sales_sends_dates_filters_and_token():
    client, session = make_client(FakeResponse([]))
    client.fetch_store_sales(
        date(2024, 6, 1),
        date(2024, 6, 30),
        ProductFilters.build(brand_ids=["7"], family_ids="3,4", group_ids="9"),
    )

    sent = session.requests[0]
    assert sent["url"] == "http://reporting.test/api/vendas-por-filial"
    assert sent["timeout"] == 5
    assert sent["params"] == {
        "dataInicio": "2024-06-01",
        "dataFim": "2024-06-30",
        "filtroMarcas": "7",
        "filtroFamilias": "3,4",
        "filtroGrupos": "9",
    }
    assert session.headers["Authorization"] == "Bearer secret"


def test_fetch_store_sales_parses_rows_and_nets_returns():
    payload = [
        {
            "CDFIL": "012",
            "NOMEFIL": "Centre",
            "TOTAL_QUANTIDADE": "12",
            "TOTAL_VALOR": 120.5,
            "TOTAL_QUANTIDADE_DEVOLUCAO": 2,
            "TOTAL_VALOR_DEVOLUCAO": "abc",
        },
        {"NOMEFIL": "Sans code", "TOTAL_VALOR": 99},
    ]
    client, _ = make_client(FakeResponse(payload))

    records = client.fetch_store_sales(date(2024, 6, 1), date(2024, 6, 30))

    assert records == [
        SalesRecord(
            store_code="12",
            store_name="Centre",
            gross_quantity=Decimal("12"),
            returned_quantity=Decimal("2"),
            gross_value=Decimal("120.5"),
            returned_value=Decimal("0"),
        )
    ]
    assert records[0].net_quantity == Decimal("10")
    assert records[0].net_value == Decimal("120.5")


def test_fetch_employee_sales_accepts_data_envelope():
    payload = {
        "data": [
            {
                "CDFIL": 34,
                "NOMEFIL": "Gare",
                "CDFUN": 502,
                "NOMEFUN": "Bruno",
                "TOTAL_QUANTIDADE": 4,
                "TOTAL_VALOR": "100",
                "TOTAL_QUANTIDADE_DEVOLUCAO": 0,
                "TOTAL_VALOR_DEVOLUCAO": "20",
            }
        ]
    }
    client, session = make_client(FakeResponse(payload))

    records = client.fetch_employee_sales(date(2024, 6, 1), date(2024, 6, 30))

    assert session.requests[0]["url"].endswith("/vendas-por-funcionario")
    record = records[0]
    assert (record.store_code, record.employee_id, record.employee_name) == ("34", "502", "Bruno")
    assert record.net_value == Decimal("80")
    assert record.average_ticket == Decimal("20")


def test_returns_exceeding_sales_are_not_clamped():
    record = SalesRecord(store_code="1", gross_value=Decimal("10"), returned_value=Decimal("25"))
    assert record.net_value == Decimal("-15")


@pytest.mark.parametrize(
    "response, error",
    [
        (FakeResponse(status_code=503), None),
        (FakeResponse(raise_json=True), None),
        (FakeResponse({"rows": []}), None),
        (None, requests.ConnectionError("connection refused")),
        (None, requests.Timeout("read timed out")),
    ],
)
def test_failures_raise_reporting_error(response, error):
    client, _ = make_client(response, error)
    with pytest.raises(ReportingError):
        client.fetch_store_sales(date(2024, 6, 1), date(2024, 6, 30))


def test_get_reporting_client_reads_settings(settings):
    settings.REPORTING_API_URL = "https://sales.example.com/v2/"
    settings.REPORTING_API_TOKEN = "abc"
    settings.REPORTING_API_TIMEOUT = 3.5

    client = get_reporting_client()

    assert client.base_url == "https://sales.example.com/v2"
    assert client.timeout == 3.5
    assert client.session.headers["Authorization"] == "Bearer abc"
