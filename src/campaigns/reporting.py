"""Client for the external sales-reporting API.

The reporting API aggregates sales (and returns) per store or per employee
over a date range, optionally restricted by product filters. It answers with
upper-case Portuguese keys (``CDFIL``, ``TOTAL_VALOR`` ...), either as a bare
JSON list or wrapped in ``{"data": [...]}``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

import requests
from django.conf import settings

from campaigns.aggregation import ZERO, normalize_store_code, to_decimal
from stores.services import parse_id_list

logger = logging.getLogger(__name__)

DEFAULT_STORE_SALES_PATH = "/vendas-por-filial"
DEFAULT_EMPLOYEE_SALES_PATH = "/vendas-por-funcionario"


class ReportingError(Exception):
    """The reporting API could not be reached or answered something unusable."""


# ────────────────────────────────────────────────────────────
# Value objects
# ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProductFilters:
    supplier_ids: tuple = ()
    brand_ids: tuple = ()
    family_ids: tuple = ()
    group_ids: tuple = ()
    product_codes: tuple = ()

    PARAM_NAMES = {
        "supplier_ids": "filtroFornecedores",
        "brand_ids": "filtroMarcas",
        "family_ids": "filtroFamilias",
        "group_ids": "filtroGrupos",
        "product_codes": "filtroProduto",
    }

    @staticmethod
    def parse(value) -> tuple:
        """Accept ``None``, a ``"1,2"`` string or a list; return a tuple of ids."""
        return tuple(parse_id_list(value))

    @classmethod
    def build(
        cls,
        supplier_ids=None,
        brand_ids=None,
        family_ids=None,
        group_ids=None,
        product_codes=None,
    ) -> "ProductFilters":
        return cls(
            supplier_ids=cls.parse(supplier_ids),
            brand_ids=cls.parse(brand_ids),
            family_ids=cls.parse(family_ids),
            group_ids=cls.parse(group_ids),
            product_codes=cls.parse(product_codes),
        )

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in self.PARAM_NAMES)

    def as_params(self) -> dict:
        params = {}
        for name, param in self.PARAM_NAMES.items():
            values = getattr(self, name)
            if values:
                params[param] = ",".join(values)
        return params


@dataclass(frozen=True)
class SalesRecord:
    """Sales of one store over the requested range."""

    store_code: str
    store_name: str = ""
    gross_quantity: Decimal = ZERO
    returned_quantity: Decimal = ZERO
    gross_value: Decimal = ZERO
    returned_value: Decimal = ZERO

    @property
    def net_quantity(self) -> Decimal:
        return self.gross_quantity - self.returned_quantity

    @property
    def net_value(self) -> Decimal:
        return self.gross_value - self.returned_value


@dataclass(frozen=True)
class EmployeeSalesRecord(SalesRecord):
    """Sales of one employee (inside one store) over the requested range."""

    employee_id: str = ""
    employee_name: str = ""

    @property
    def average_ticket(self) -> Decimal:
        if self.net_quantity > 0:
            return self.net_value / self.net_quantity
        return ZERO


# ────────────────────────────────────────────────────────────
# Row parsing
# ────────────────────────────────────────────────────────────

def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _figures(row: dict) -> dict:
    return {
        "gross_quantity": to_decimal(row.get("TOTAL_QUANTIDADE")),
        "returned_quantity": to_decimal(row.get("TOTAL_QUANTIDADE_DEVOLUCAO")),
        "gross_value": to_decimal(row.get("TOTAL_VALOR")),
        "returned_value": to_decimal(row.get("TOTAL_VALOR_DEVOLUCAO")),
    }


def parse_store_row(row: dict) -> SalesRecord | None:
    code = normalize_store_code(row.get("CDFIL"))
    if not code:
        return None
    return SalesRecord(store_code=code, store_name=_text(row.get("NOMEFIL")), **_figures(row))


def parse_employee_row(row: dict) -> EmployeeSalesRecord | None:
    code = normalize_store_code(row.get("CDFIL"))
    if not code:
        return None
    return EmployeeSalesRecord(
        store_code=code,
        store_name=_text(row.get("NOMEFIL")),
        employee_id=_text(row.get("CDFUN")),
        employee_name=_text(row.get("NOMEFUN")),
        **_figures(row),
    )


def extract_rows(payload) -> list:
    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        raise ReportingError("Reponse inattendue de l'API de ventes (liste attendue).")
    return [row for row in payload if isinstance(row, dict)]


def _iso(value) -> str:
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


# ────────────────────────────────────────────────────────────
# Client
# ────────────────────────────────────────────────────────────

class ReportingClient:
    """Thin ``requests`` wrapper; one GET per call, no retry."""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 15.0,
        *,
        store_sales_path: str = DEFAULT_STORE_SALES_PATH,
        employee_sales_path: str = DEFAULT_EMPLOYEE_SALES_PATH,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.store_sales_path = store_sales_path
        self.employee_sales_path = employee_sales_path
        self.session = session or requests.Session()
        self.session.headers["Accept"] = "application/json"
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get_rows(self, path, start_date, end_date, filters: ProductFilters | None) -> list:
        params = {"dataInicio": _iso(start_date), "dataFim": _iso(end_date)}
        if filters is not None:
            params.update(filters.as_params())

        url = self._url(path)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise ReportingError(f"API de ventes indisponible ({url}): {exc}") from exc
        except ValueError as exc:
            raise ReportingError(f"Reponse illisible de l'API de ventes ({url}).") from exc
        return extract_rows(payload)

    def fetch_store_sales(self, start_date, end_date, filters=None) -> list[SalesRecord]:
        rows = self._get_rows(self.store_sales_path, start_date, end_date, filters)
        records = []
        for row in rows:
            record = parse_store_row(row)
            if record is None:
                logger.warning("Skipping store sales row without CDFIL: %r", row)
                continue
            records.append(record)
        return records

    def fetch_employee_sales(self, start_date, end_date, filters=None) -> list[EmployeeSalesRecord]:
        rows = self._get_rows(self.employee_sales_path, start_date, end_date, filters)
        records = []
        for row in rows:
            record = parse_employee_row(row)
            if record is None:
                logger.warning("Skipping employee sales row without CDFIL: %r", row)
                continue
            records.append(record)
        return records


def get_reporting_client() -> ReportingClient:
    return ReportingClient(
        base_url=settings.REPORTING_API_URL,
        token=getattr(settings, "REPORTING_API_TOKEN", ""),
        timeout=getattr(settings, "REPORTING_API_TIMEOUT", 15.0),
        store_sales_path=getattr(settings, "REPORTING_STORE_SALES_PATH", DEFAULT_STORE_SALES_PATH),
        employee_sales_path=getattr(
            settings, "REPORTING_EMPLOYEE_SALES_PATH", DEFAULT_EMPLOYEE_SALES_PATH,
        ),
    )
