# SPDX-License-Identifier: Apache-2.0

"""
Admin table engine for social registrations.

Derives the filtered, paginated view of the registration list shown in the
staff dashboard, plus summary statistics, the daily registrations series and
the CSV export. Everything runs over the already-fetched record set.
"""

import csv
import io
import math
from collections import Counter
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from models.entities import Registration
from models.enums import FilterType

PAGE_SIZE = 30
DAILY_WINDOW = 30

CSV_HEADERS = [
    "Nome Completo",
    "CPF",
    "Endereço",
    "Bairro",
    "Adultos",
    "Menores",
    "Deficiência",
    "Mulher Chefe",
    "Idosos",
    "Vulnerável",
    "Situação de Rua",
    "Violência Doméstica",
    "Data de Cadastro",
]

FILTER_FLAGS = {
    FilterType.DISABILITY: "has_disability",
    FilterType.ELDERLY: "has_elderly",
    FilterType.VULNERABLE: "vulnerable_situation",
    FilterType.FEMALE_HEAD: "female_head_of_household",
    FilterType.HOMELESS: "homeless",
    FilterType.VIOLENCE: "domestic_violence_victim",
}


def matches_search(registration: Registration, search: str) -> bool:
    """Name and neighborhood match case-insensitively, CPF by raw digits."""
    if not search:
        return True
    term = search.lower()
    return (
        term in registration.full_name.lower()
        or search in registration.cpf
        or term in registration.neighborhood.lower()
    )


def filter_registrations(
    registrations: Sequence[Registration],
    filter_type: FilterType = FilterType.ALL,
    search: Optional[str] = None
) -> List[Registration]:
    """
    Apply the text search and the category filter.

    Args:
        registrations: Full record set
        filter_type: Category selector, ANDed with the search
        search: Free text term

    Returns:
        Matching records in their original order
    """
    filter_type = FilterType(filter_type)
    flag = FILTER_FLAGS.get(filter_type)

    return [
        registration for registration in registrations
        if matches_search(registration, search or "")
        and (flag is None or getattr(registration, flag))
    ]


class RegistrationTable:
    """Filtered and paginated view over a fetched record set."""

    def __init__(self, registrations: Sequence[Registration] = (), page_size: int = PAGE_SIZE):
        self.page_size = page_size
        self._registrations: List[Registration] = list(registrations)
        self._search = ""
        self._filter_type = FilterType.ALL
        self._page = 1
        self._filtered = filter_registrations(self._registrations)

    def _refresh(self) -> None:
        self._filtered = filter_registrations(self._registrations, self._filter_type, self._search)
        self._page = 1

    @property
    def registrations(self) -> List[Registration]:
        return list(self._registrations)

    @registrations.setter
    def registrations(self, registrations: Sequence[Registration]) -> None:
        # A re-fetch replaces the set whole
        self._registrations = list(registrations)
        self._refresh()

    @property
    def search(self) -> str:
        return self._search

    @search.setter
    def search(self, value: Optional[str]) -> None:
        self._search = value or ""
        self._refresh()

    @property
    def filter_type(self) -> FilterType:
        return self._filter_type

    @filter_type.setter
    def filter_type(self, value) -> None:
        self._filter_type = FilterType(value)
        self._refresh()

    @property
    def filtered(self) -> List[Registration]:
        return list(self._filtered)

    @property
    def total_items(self) -> int:
        return len(self._filtered)

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self._filtered) / self.page_size))

    @property
    def page(self) -> int:
        return self._page

    def go_to_page(self, page: int) -> int:
        """Move to ``page``, clamped to the available range."""
        self._page = min(max(int(page), 1), self.total_pages)
        return self._page

    def next_page(self) -> int:
        return self.go_to_page(self._page + 1)

    def previous_page(self) -> int:
        return self.go_to_page(self._page - 1)

    def current_items(self) -> List[Registration]:
        start = (self._page - 1) * self.page_size
        return self._filtered[start:start + self.page_size]

    def page_info(self) -> Dict[str, int]:
        start = (self._page - 1) * self.page_size
        return {
            "page": self._page,
            "page_size": self.page_size,
            "total_items": self.total_items,
            "total_pages": self.total_pages,
            "first_item": start + 1 if self._filtered else 0,
            "last_item": min(start + self.page_size, self.total_items),
        }


def calculate_stats(registrations: Sequence[Registration]) -> Dict[str, int]:
    """Summary counters shown on the dashboard cards."""
    total_phones = 0
    for registration in registrations:
        total_phones += 1
        total_phones += sum(
            1 for phone in (
                registration.reference_phone_1,
                registration.reference_phone_2,
                registration.reference_phone_3,
            ) if phone
        )

    return {
        "total": len(registrations),
        "homeless": sum(1 for r in registrations if r.homeless),
        "violence": sum(1 for r in registrations if r.domestic_violence_victim),
        "disability": sum(1 for r in registrations if r.has_disability),
        "total_phones": total_phones,
    }


def calculate_daily_data(
    registrations: Sequence[Registration],
    window: int = DAILY_WINDOW
) -> List[Dict[str, Any]]:
    """
    Count registrations per calendar day.

    Only days with at least one registration appear; the most recent
    ``window`` of them are returned in ascending order.
    """
    per_day: Counter = Counter(r.created_at.date() for r in registrations)
    days = sorted(per_day)[-window:] if window else []

    return [
        {
            "date": day.isoformat(),
            "label": day.strftime("%d/%m"),
            "count": per_day[day],
        }
        for day in days
    ]


def _yes_no(value: Any) -> str:
    return "Sim" if value else "Não"


def _format_timestamp(value: datetime) -> str:
    return value.strftime("%d/%m/%Y %H:%M:%S")


def export_csv(registrations: Sequence[Registration]) -> str:
    """
    Render the registrations as CSV text prefixed with a UTF-8 BOM.

    Encode the result as UTF-8 before sending it.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for r in registrations:
        writer.writerow([
            r.full_name,
            r.cpf,
            r.address,
            r.neighborhood,
            r.adults_count,
            r.minors_count,
            _yes_no(r.has_disability),
            _yes_no(r.female_head_of_household),
            _yes_no(r.has_elderly),
            _yes_no(r.vulnerable_situation),
            _yes_no(r.homeless),
            _yes_no(r.domestic_violence_victim),
            _format_timestamp(r.created_at),
        ])

    return "\ufeff" + buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"cadastros_{today.isoformat()}.csv"
