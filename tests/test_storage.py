import os
import re
from datetime import datetime, timedelta, timezone

import pytest

from smartclass.services.storage import AttachmentStorage, StagedFile
from smartclass.services.submissions import late_flags


def test_generated_name_keeps_extension(tmp_path):
    storage = AttachmentStorage(tmp_path, max_bytes=1024)
    name = storage.generate_filename("Final Report.PDF")
    assert re.fullmatch(r"attachments-\d{13}-\d{1,9}\.PDF", name)


def test_generated_name_drops_odd_extension(tmp_path):
    storage = AttachmentStorage(tmp_path, max_bytes=1024)
    assert "." not in storage.generate_filename("weird.ex t")
    assert "." not in storage.generate_filename("no_extension")


def test_generated_names_differ(tmp_path):
    storage = AttachmentStorage(tmp_path, max_bytes=1024)
    names = {storage.generate_filename("a.txt") for _ in range(50)}
    assert len(names) == 50


@pytest.mark.parametrize("bad", ["../secret.txt", "sub/dir.txt", ".staging", ""])
def test_resolve_rejects_paths(tmp_path, bad):
    storage = AttachmentStorage(tmp_path, max_bytes=1024)
    with pytest.raises(ValueError):
        storage.resolve(bad)


def test_remove_ignores_missing_files(tmp_path):
    storage = AttachmentStorage(tmp_path, max_bytes=1024)
    (tmp_path / "attachments-1-2.txt").write_text("x")
    storage.remove(["attachments-1-2.txt", "attachments-3-4.txt"])
    assert not (tmp_path / "attachments-1-2.txt").exists()


def test_failed_commit_removes_files_already_moved(tmp_path, monkeypatch):
    storage = AttachmentStorage(tmp_path, max_bytes=1024)
    storage.ensure_dirs()
    staged = []
    for name in ("attachments-1-1.txt", "attachments-1-2.txt"):
        path = storage.staging_dir / name
        path.write_text(name)
        staged.append(StagedFile(name, name, path, tmp_path / name, path.stat().st_size))

    real_replace = os.replace

    def fail_second(src, dst):
        if str(src).endswith("attachments-1-2.txt"):
            raise OSError("disk full")
        real_replace(src, dst)

    monkeypatch.setattr(os, "replace", fail_second)
    with pytest.raises(OSError):
        storage.commit(staged)

    assert not (tmp_path / "attachments-1-1.txt").exists()
    assert not (tmp_path / "attachments-1-2.txt").exists()


def test_late_flags_grace_period():
    due = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    assert late_flags(due, due - timedelta(minutes=5), 10) == (False, None)
    assert late_flags(due, due + timedelta(minutes=5), 10) == (False, 5)
    assert late_flags(due, due + timedelta(minutes=30), 10) == (True, 30)
    # naive values from SQLite are read as UTC
    assert late_flags(due.replace(tzinfo=None), due + timedelta(minutes=30), 10) == (True, 30)
