from datetime import datetime, timedelta, timezone
import importlib.util
import sys
from pathlib import Path

from photovault.acl.models import Visibility
from photovault.config import StorageSettings


PROJECT_ROOT = Path(__file__).resolve().parents[3]
MODULE_PATH = PROJECT_ROOT / "scripts" / "cleanup_uploads.py"
SPEC = importlib.util.spec_from_file_location("cleanup_uploads_module", MODULE_PATH)
cleanup_uploads = importlib.util.module_from_spec(SPEC)
assert SPEC and SPEC.loader
sys.modules["cleanup_uploads_module"] = cleanup_uploads
SPEC.loader.exec_module(cleanup_uploads)


def make_settings(tmp_path: Path) -> StorageSettings:
    return StorageSettings(
        private_object_dir=tmp_path / "priv",
        database_url=f"sqlite:///{(tmp_path / 'vault.db').as_posix()}",
        upload_grant_ttl_seconds=60,
    )


def seed(settings: StorageSettings) -> tuple[str, str]:
    service = cleanup_uploads.build_storage(settings).service
    kept = service.create_upload_grant()
    kept.path.write_bytes(b"keep")
    service.register_object(kept.object_id, "owner", Visibility.PRIVATE)
    abandoned = service.create_upload_grant()
    abandoned.path.write_bytes(b"drop")
    return kept.object_id, abandoned.object_id


def test_perform_cleanup_dry_run(tmp_path):
    settings = make_settings(tmp_path)
    _, abandoned = seed(settings)
    later = datetime.now(tz=timezone.utc) + timedelta(minutes=5)

    summary = cleanup_uploads.perform_cleanup(dry_run=True, settings=settings, reference_time=later)

    assert summary.dry_run is True
    assert summary.uploads_removed == 1
    assert (tmp_path / "priv" / "uploads" / abandoned).exists()


def test_perform_cleanup_removes_abandoned_uploads(tmp_path):
    settings = make_settings(tmp_path)
    kept, abandoned = seed(settings)
    later = datetime.now(tz=timezone.utc) + timedelta(minutes=5)

    summary = cleanup_uploads.perform_cleanup(dry_run=False, settings=settings, reference_time=later)

    assert summary.uploads_removed == 1
    assert not (tmp_path / "priv" / "uploads" / abandoned).exists()
    assert (tmp_path / "priv" / "uploads" / kept).exists()


def test_main_reports_failure(monkeypatch, capsys):
    def boom(**_kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(cleanup_uploads, "perform_cleanup", boom)

    assert cleanup_uploads.main(["--dry-run"]) == 2
    assert "cleanup failed: db down" in capsys.readouterr().err
