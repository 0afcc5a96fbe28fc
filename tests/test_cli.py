"""
End-to-end tests for the sales360 command line.

Each test uses its own SQLite file so that separate ``main`` invocations
share state the way separate process runs would.
"""

import pytest

from sales_kernel.db.engine import reset_engine
from sales_services.cli import main


@pytest.fixture
def db_url(tmp_path):
    reset_engine()
    yield f"sqlite:///{tmp_path / 'cli.db'}"
    reset_engine()


@pytest.fixture
def template_file(tmp_path):
    assert main(["template", "--output", str(tmp_path / "modelo.csv")]) == 0
    return tmp_path / "modelo.csv"


class TestTemplateCommand:
    def test_writes_template(self, template_file):
        assert template_file.exists()
        assert "DATA FATURAMENTO" in template_file.read_text(encoding="utf-8")


class TestImportCommand:
    def test_probe_only_writes_nothing(self, db_url, template_file, capsys):
        code = main(["--db-url", db_url, "import", "--user", "u1",
                     "--file", str(template_file), "--probe-only"])
        out = capsys.readouterr().out
        assert code == 0
        assert "Data rows: 2" in out

    def test_import_and_clients(self, db_url, template_file, capsys):
        assert main(["--db-url", db_url, "import", "--user", "u1", "--file", str(template_file)]) == 0
        assert "Imported 2 sales (1 pending billing)." in capsys.readouterr().out

        assert main(["--db-url", db_url, "clients", "--user", "u1"]) == 0
        out = capsys.readouterr().out
        assert "EMPRESA EXEMPLO LTDA" in out
        assert "CLIENTE TESTE" not in out

    def test_unmapping_required_field_fails(self, db_url, template_file, capsys):
        code = main(["--db-url", db_url, "import", "--user", "u1",
                     "--file", str(template_file), "--map", "margin=-1"])
        assert code == 1
        assert "MISSING_MAPPING" in capsys.readouterr().err

    def test_unsupported_file(self, db_url, tmp_path, capsys):
        path = tmp_path / "vendas.xls"
        path.write_bytes(b"")
        code = main(["--db-url", db_url, "import", "--user", "u1", "--file", str(path)])
        assert code == 1
        assert "UNSUPPORTED_FILE_FORMAT" in capsys.readouterr().err


class TestBackupCommands:
    def test_export_then_restore_into_other_user(
        self, db_url, template_file, tmp_path, monkeypatch, capsys
    ):
        monkeypatch.setenv("SALES360_BACKUP_PASSPHRASE", "secret123")
        main(["--db-url", db_url, "import", "--user", "u1", "--file", str(template_file)])
        out_dir = tmp_path / "backups"

        assert main(["--db-url", db_url, "export-backup", "--user", "u1",
                     "--output", str(out_dir)]) == 0
        [artifact] = list(out_dir.glob("backup_sales360_u1_*.v360"))

        assert main(["--db-url", db_url, "restore-backup", "--user", "u2",
                     "--file", str(artifact)]) == 0
        assert "Restored 2 sales (backup version 2.3)." in capsys.readouterr().out

    def test_wrong_passphrase(self, db_url, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("SALES360_BACKUP_PASSPHRASE", "secret123")
        main(["--db-url", db_url, "export-backup", "--user", "u1", "--output", str(tmp_path)])
        [artifact] = list(tmp_path.glob("*.v360"))

        monkeypatch.setenv("SALES360_BACKUP_PASSPHRASE", "other-pass")
        code = main(["--db-url", db_url, "restore-backup", "--user", "u1",
                     "--file", str(artifact)])
        assert code == 1
        assert "RESTORE_FAILED" in capsys.readouterr().err

    def test_short_passphrase_rejected(self, db_url, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("SALES360_BACKUP_PASSPHRASE", "abc")
        code = main(["--db-url", db_url, "export-backup", "--user", "u1",
                     "--output", str(tmp_path)])
        assert code == 1
        assert "at least 4" in capsys.readouterr().err
