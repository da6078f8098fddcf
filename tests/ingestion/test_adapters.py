"""Tests for the CSV and XLSX source adapters."""

from datetime import datetime

import openpyxl
import pytest

from ledger_kernel.exceptions import SourceReadError
from ledger_ingestion.adapters import CsvSourceAdapter, XlsxSourceAdapter, default_adapters


@pytest.fixture
def write_csv(tmp_path):
    def _write(text: str, name: str = "statement.csv", encoding: str = "utf-8"):
        path = tmp_path / name
        path.write_bytes(text.encode(encoding))
        return path

    return _write


class TestCsvSourceAdapter:
    def test_comma_delimited(self, write_csv):
        path = write_csv("Date,Description,Amount\n2024-02-01,Coffee,-25.50\n2024-02-02,Salary,1000.00\n")
        table = CsvSourceAdapter().read(path, {})
        assert table.columns == ("Date", "Description", "Amount")
        assert table.rows[0] == {"Date": "2024-02-01", "Description": "Coffee", "Amount": "-25.50"}
        assert table.row_count == 2
        assert table.detected_delimiter == ","

    def test_semicolon_is_sniffed(self, write_csv):
        path = write_csv("Data;Descrizione;Importo\n01/02/2024;Caffè;-25,50\n02/02/2024;Stipendio;1000,00\n")
        table = CsvSourceAdapter().read(path, {})
        assert table.detected_delimiter == ";"
        assert table.rows[1]["Importo"] == "1000,00"

    def test_explicit_delimiter(self, write_csv):
        path = write_csv("Date\tAmount\n2024-02-01\t5\n", name="statement.tsv")
        table = CsvSourceAdapter().read(path, {"delimiter": "\t"})
        assert table.rows == ({"Date": "2024-02-01", "Amount": "5"},)

    def test_quoted_cells_keep_delimiters(self, write_csv):
        path = write_csv('Date,Description,Amount\n2024-02-01,"Rent, March","1,200.00"\n')
        table = CsvSourceAdapter().read(path, {"delimiter": ","})
        assert table.rows[0]["Description"] == "Rent, March"
        assert table.rows[0]["Amount"] == "1,200.00"

    def test_skip_rows(self, write_csv):
        path = write_csv("Bank export\nGenerated today\nDate,Amount\n2024-02-01,5\n")
        table = CsvSourceAdapter().read(path, {"skip_rows": 2, "delimiter": ","})
        assert table.columns == ("Date", "Amount")
        assert table.row_count == 1

    def test_byte_order_mark_is_stripped(self, write_csv):
        path = write_csv("\ufeffDate,Amount\n2024-02-01,5\n")
        table = CsvSourceAdapter().read(path, {"delimiter": ","})
        assert table.columns[0] == "Date"

    def test_short_rows_padded_and_blank_lines_dropped(self, write_csv):
        path = write_csv("Date,Description,Amount\n\n2024-02-01,Coffee\n,,\n2024-02-02,Tea,3,extra\n")
        table = CsvSourceAdapter().read(path, {"delimiter": ","})
        assert table.rows == (
            {"Date": "2024-02-01", "Description": "Coffee", "Amount": ""},
            {"Date": "2024-02-02", "Description": "Tea", "Amount": "3"},
        )

    def test_duplicate_and_blank_headers(self, write_csv):
        path = write_csv("Amount,Amount,\n1,2,3\n")
        table = CsvSourceAdapter().read(path, {"delimiter": ","})
        assert table.columns == ("Amount", "Amount_1", "Column_3")

    def test_empty_file(self, write_csv):
        table = CsvSourceAdapter().read(write_csv(""), {"delimiter": ","})
        assert table.columns == ()
        assert table.rows == ()

    def test_latin1_encoding(self, write_csv):
        path = write_csv("Descrizione;Importo\nCaffè;2\n", encoding="latin-1")
        table = CsvSourceAdapter().read(path, {"encoding": "latin-1", "delimiter": ";"})
        assert table.rows[0]["Descrizione"] == "Caffè"

    def test_undecodable_file(self, write_csv):
        path = write_csv("Descrizione\nCaffè\n", encoding="latin-1")
        with pytest.raises(SourceReadError):
            CsvSourceAdapter().read(path, {"delimiter": ","})

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceReadError) as exc_info:
            CsvSourceAdapter().read(tmp_path / "missing.csv", {})
        assert exc_info.value.source.endswith("missing.csv")


class TestXlsxSourceAdapter:
    @pytest.fixture
    def workbook_path(self, tmp_path):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Movimenti"
        ws.append(["Estratto conto 2024"])
        ws.append([])
        ws.append(["Data", "Descrizione", "Importo", "Quantità"])
        ws.append([datetime(2024, 2, 1), "  Caffè  ", -25.5, 12.0])
        ws.append([None, None, None, None])
        ws.append(["02/02/2024", "Stipendio", 1000, 3])
        other = wb.create_sheet("Other")
        other.append(["Name", "Type"])
        other.append(["Visa", "credit"])
        path = tmp_path / "statement.xlsx"
        wb.save(path)
        return path

    def test_detects_header_below_title(self, workbook_path):
        table = XlsxSourceAdapter().read(workbook_path, {})
        assert table.columns == ("Data", "Descrizione", "Importo", "Quantità")
        assert table.row_count == 2

    def test_cell_types_preserved(self, workbook_path):
        first, second = XlsxSourceAdapter().read(workbook_path, {}).rows
        assert first["Data"] == datetime(2024, 2, 1)
        assert first["Descrizione"] == "Caffè"
        assert first["Importo"] == -25.5
        assert first["Quantità"] == 12
        assert isinstance(first["Quantità"], int)
        assert second["Data"] == "02/02/2024"

    def test_explicit_header_row(self, workbook_path):
        table = XlsxSourceAdapter().read(workbook_path, {"skip_rows": 2, "header_row": 0})
        assert table.columns[0] == "Data"

    def test_sheet_by_name_and_index(self, workbook_path):
        by_name = XlsxSourceAdapter().read(workbook_path, {"sheet": "Other"})
        by_index = XlsxSourceAdapter().read(workbook_path, {"sheet": 1})
        assert by_name == by_index
        assert by_name.rows == ({"Name": "Visa", "Type": "credit"},)

    def test_missing_sheet(self, workbook_path):
        with pytest.raises(SourceReadError):
            XlsxSourceAdapter().read(workbook_path, {"sheet": "Nope"})

    def test_not_a_workbook(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_text("not a zip", encoding="utf-8")
        with pytest.raises(SourceReadError):
            XlsxSourceAdapter().read(path, {})


class TestDefaultAdapters:
    def test_suffixes(self):
        adapters = default_adapters()
        assert set(adapters) == {".csv", ".txt", ".tsv", ".xlsx"}
        assert isinstance(adapters[".xlsx"], XlsxSourceAdapter)
