"""
Tests for the bulk import script.
"""
import asyncio

from import_performance_csv import import_file


class TestImportFile:
    """Tests for import_file."""

    def test_imports_file(self, tmp_path, store, make_csv, csv_row, capsys):
        path = tmp_path / "export.csv"
        path.write_text(make_csv([csv_row(), csv_row(**{"Ad ID": "a2"})]))

        assert asyncio.run(import_file(path, store, incremental=True)) is True
        assert asyncio.run(store.count()) == 2
        assert "Import complete." in capsys.readouterr().out

    def test_store_rejections_pass_without_strict(self, tmp_path, store, make_csv, csv_row):
        path = tmp_path / "export.csv"
        path.write_text(make_csv([csv_row(), csv_row(**{"Ad ID": "a2", "Day": ""})]))

        assert asyncio.run(import_file(path, store, incremental=True)) is True
        assert asyncio.run(store.count()) == 1

    def test_strict_fails_on_store_rejections(self, tmp_path, store, make_csv, csv_row, capsys):
        path = tmp_path / "export.csv"
        path.write_text(make_csv([csv_row(), csv_row(**{"Ad ID": "a2", "Day": ""})]))

        assert asyncio.run(import_file(path, store, incremental=True, strict=True)) is False
        assert "1 rows written, 1 rejected" in capsys.readouterr().out

    def test_strict_passes_clean_file(self, tmp_path, store, make_csv, csv_row):
        path = tmp_path / "export.csv"
        path.write_text(make_csv([csv_row()]))

        assert asyncio.run(import_file(path, store, incremental=True, strict=True)) is True

    def test_unreadable_file_fails(self, tmp_path, store):
        path = tmp_path / "export.csv"
        path.write_bytes(b"\xff\xfe\xfa")

        assert asyncio.run(import_file(path, store, incremental=True)) is False
