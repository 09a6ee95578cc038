"""Tests for the CSV exporter."""

import csv

import pytest

from wooscrape.csv_utils import build_header, export_products_to_csv, write_rows_to_csv
from wooscrape.errors import WriteError
from wooscrape.models import ExportRow


def read_csv(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestBuildHeader:

    def test_base_columns_only(self):
        header = build_header(0)

        assert header[:4] == ["ID", "Type", "SKU", "Name"]
        assert header[-1] == "Regular price"
        assert len(header) == 17

    def test_attribute_column_groups(self):
        header = build_header(2)

        assert header[17:] == [
            "Attribute 1 name", "Attribute 1 value(s)", "Attribute 1 visible", "Attribute 1 global",
            "Attribute 2 name", "Attribute 2 value(s)", "Attribute 2 visible", "Attribute 2 global",
        ]


class TestExportProductsToCsv:

    def test_writes_header_and_rows(self, tmp_path, tshirt, mug):
        path = tmp_path / "out" / "export.csv"

        count = export_products_to_csv([tshirt, mug], str(path))

        assert count == 4
        lines = read_csv(path)
        assert lines[0] == build_header(2)
        assert len(lines) == 5
        assert all(len(line) == len(lines[0]) for line in lines)

        parent = dict(zip(lines[0], lines[1]))
        assert parent["ID"] == "1000"
        assert parent["Type"] == "variable"
        assert parent["Attribute 1 value(s)"] == "red, blue"

        variation = dict(zip(lines[0], lines[3]))
        assert variation["Parent"] == "id:1000"
        assert variation["Position"] == "2"
        assert variation["In stock?"] == "0"

    def test_values_with_commas_and_quotes_survive(self, tmp_path, mug):
        path = tmp_path / "export.csv"

        export_products_to_csv([mug], str(path))

        row = dict(zip(*read_csv(path)))
        assert row["Name"] == "Coffee Mug, 350ml!"
        assert row["Description"] == "<p>Ceramic.</p>"

    def test_no_products_writes_header_only(self, tmp_path):
        path = tmp_path / "empty.csv"

        assert export_products_to_csv([], str(path)) == 0
        assert read_csv(path) == [build_header(0)]

    def test_unwritable_path_raises_write_error(self, tmp_path, mug):
        target = tmp_path / "taken"
        target.mkdir()

        with pytest.raises(WriteError) as exc_info:
            export_products_to_csv([mug], str(target))

        assert exc_info.value.path == str(target)


class TestWriteRowsToCsv:

    def test_quotes_embedded_quotes(self, tmp_path):
        path = tmp_path / "rows.csv"
        rows = [ExportRow(id=1, type="simple", name='The "Big" Box')]

        write_rows_to_csv(rows, str(path), max_attributes=0)

        with open(path, encoding="utf-8") as f:
            assert '"The ""Big"" Box"' in f.read()
        assert read_csv(path)[1][3] == 'The "Big" Box'
