# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the admin table engine.
"""

import csv
import io
from datetime import date, datetime

import pytest

from domain.registrations import (
    RegistrationTable, filter_registrations, calculate_stats, calculate_daily_data,
    export_csv, export_filename, CSV_HEADERS
)
from models.enums import FilterType


class TestFilterRegistrations:
    """Test search and category filtering."""

    def test_homeless_filter(self, sample_registrations):
        result = filter_registrations(sample_registrations, FilterType.HOMELESS)

        assert [r.full_name for r in result] == ["Ana Souza"]

    def test_filter_accepts_string_value(self, sample_registrations):
        result = filter_registrations(sample_registrations, "violence")

        assert [r.full_name for r in result] == ["Carla Mendes"]

    def test_search_name_case_insensitive(self, sample_registrations):
        result = filter_registrations(sample_registrations, search="bruno")

        assert [r.full_name for r in result] == ["Bruno Lima"]

    def test_search_neighborhood(self, sample_registrations):
        result = filter_registrations(sample_registrations, search="centro")

        assert {r.full_name for r in result} == {"Bruno Lima", "Daniel Rocha"}

    def test_search_cpf_digits(self, sample_registrations):
        result = filter_registrations(sample_registrations, search="529982")

        assert [r.full_name for r in result] == ["Ana Souza"]

    def test_search_and_filter_combined(self, sample_registrations):
        result = filter_registrations(sample_registrations, FilterType.ELDERLY, "centro")

        assert [r.full_name for r in result] == ["Daniel Rocha"]

    def test_all_keeps_order(self, sample_registrations):
        assert filter_registrations(sample_registrations) == sample_registrations


class TestRegistrationTable:
    """Test pagination state."""

    def make_table(self, registration_factory, count):
        return RegistrationTable([registration_factory(full_name=f"Pessoa {i:03d}") for i in range(count)])

    def test_page_size_thirty(self, registration_factory):
        table = self.make_table(registration_factory, 65)

        assert table.total_pages == 3
        assert len(table.current_items()) == 30
        table.go_to_page(3)
        assert len(table.current_items()) == 5
        assert table.page_info()["first_item"] == 61
        assert table.page_info()["last_item"] == 65

    def test_page_clamped(self, registration_factory):
        table = self.make_table(registration_factory, 40)

        assert table.go_to_page(9) == 2
        assert table.go_to_page(0) == 1
        assert table.previous_page() == 1
        assert table.next_page() == 2
        assert table.next_page() == 2

    def test_filter_change_resets_page(self, registration_factory):
        table = self.make_table(registration_factory, 40)
        table.go_to_page(2)

        table.search = "Pessoa 00"
        assert table.page == 1
        assert table.total_items == 10

        table.go_to_page(1)
        table.filter_type = FilterType.HOMELESS
        assert table.page == 1
        assert table.total_items == 0

    def test_empty_table(self):
        table = RegistrationTable()

        assert table.total_pages == 1
        assert table.current_items() == []
        assert table.page_info()["first_item"] == 0

    def test_refetch_replaces_records(self, registration_factory, sample_registrations):
        table = self.make_table(registration_factory, 40)
        table.go_to_page(2)

        table.registrations = sample_registrations
        assert table.page == 1
        assert table.total_items == 5


class TestStatistics:
    """Test dashboard counters and daily series."""

    def test_counters(self, sample_registrations):
        stats = calculate_stats(sample_registrations)

        assert stats == {
            "total": 5,
            "homeless": 1,
            "violence": 1,
            "disability": 1,
            # personal + reference 1 for each, plus one extra reference
            "total_phones": 11,
        }

    def test_daily_series_ascending(self, sample_registrations):
        daily = calculate_daily_data(sample_registrations)

        assert daily == [
            {"date": "2024-03-10", "label": "10/03", "count": 2},
            {"date": "2024-03-11", "label": "11/03", "count": 1},
            {"date": "2024-03-12", "label": "12/03", "count": 2},
        ]

    def test_daily_window_keeps_latest_days(self, registration_factory):
        registrations = [
            registration_factory(created_at=datetime(2024, 1, day, 12, 0, 0)) for day in range(1, 32)
        ]
        daily = calculate_daily_data(registrations)

        assert len(daily) == 30
        assert daily[0]["date"] == "2024-01-02"
        assert daily[-1]["date"] == "2024-01-31"


class TestExport:
    """Test CSV export."""

    def test_csv_layout(self, sample_registrations):
        content = export_csv(sample_registrations[:1])

        assert content.startswith("\ufeff")
        rows = list(csv.reader(io.StringIO(content.lstrip("\ufeff"))))
        assert rows[0] == CSV_HEADERS
        assert rows[1][0] == "Ana Souza"
        assert rows[1][1] == "52998224725"
        assert rows[1][2] == "Rua das Flores, 10"
        assert rows[1][6:12] == ["Não", "Não", "Não", "Não", "Sim", "Não"]
        assert rows[1][12] == "12/03/2024 09:00:00"

    def test_empty_export_has_headers(self):
        content = export_csv([])

        assert content == "\ufeff" + ",".join(CSV_HEADERS) + "\n"

    @pytest.mark.parametrize("today,expected", [
        (date(2024, 3, 15), "cadastros_2024-03-15.csv"),
        (date(2025, 12, 1), "cadastros_2025-12-01.csv"),
    ])
    def test_filename(self, today, expected):
        assert export_filename(today) == expected
