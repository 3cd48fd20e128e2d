from unittest.mock import MagicMock

import pytest

from sharectl.backups.manager import BackupManager
from sharectl.errors import NoBackupFound, ReloadFailed, ServiceError
from sharectl.shares.models import Protocol

EXPORTS = "# exports\n/srv/a 10.0.0.0/8(rw,sync,fsid=1)\n"
SMB_CONF = "[global]\n   workgroup = HOME\n\n[docs]\n   path = /srv/docs\n"


@pytest.fixture
def files(tmp_path):
    exports = tmp_path / "exports"
    smb_conf = tmp_path / "smb.conf"
    exports.write_text(EXPORTS)
    smb_conf.write_text(SMB_CONF)
    return exports, smb_conf


@pytest.fixture
def services():
    return MagicMock()


def _manager(files, services):
    exports, smb_conf = files
    return BackupManager(str(exports), str(smb_conf), services=services)


def test_snapshot_modify_restore_is_byte_exact(files, services):
    exports, smb_conf = files
    manager = _manager(files, services)

    written = manager.snapshot()
    assert written == [f"{exports}.bak", f"{smb_conf}.bak"]

    exports.write_text("/srv/other 10.0.0.0/8(ro)\n")
    smb_conf.write_text("")

    result = manager.restore()
    assert result.restored == [str(exports), str(smb_conf)]
    assert result.skipped == []
    assert exports.read_bytes() == EXPORTS.encode()
    assert smb_conf.read_bytes() == SMB_CONF.encode()
    services.reload_share_service.assert_any_call(Protocol.NFS)
    services.reload_share_service.assert_any_call(Protocol.SMB)


def test_snapshot_overwrites_previous_backup(files, services):
    exports, _ = files
    manager = _manager(files, services)
    manager.snapshot()
    exports.write_text("second\n")
    manager.snapshot()
    assert (exports.parent / "exports.bak").read_text() == "second\n"


def test_snapshot_skips_missing_file(files, services):
    exports, smb_conf = files
    smb_conf.unlink()
    assert _manager(files, services).snapshot() == [f"{exports}.bak"]


def test_restore_partial(files, services):
    exports, smb_conf = files
    manager = _manager(files, services)
    manager.snapshot()
    (smb_conf.parent / "smb.conf.bak").unlink()

    result = manager.restore()
    assert result.restored == [str(exports)]
    assert result.skipped == [str(smb_conf)]
    services.reload_share_service.assert_called_once_with(Protocol.NFS)


def test_restore_without_backups(files, services):
    with pytest.raises(NoBackupFound):
        _manager(files, services).restore()
    services.reload_share_service.assert_not_called()


def test_restore_reload_failure(files, services):
    exports, _ = files
    manager = _manager(files, services)
    manager.snapshot()
    exports.write_text("changed\n")
    services.reload_share_service.side_effect = ServiceError("exportfs failed")

    with pytest.raises(ReloadFailed):
        manager.restore()
    assert exports.read_text() == EXPORTS


def test_list_backups(files, services):
    exports, _ = files
    manager = _manager(files, services)
    assert manager.list_backups() == []
    manager.snapshot()
    backups = manager.list_backups()
    assert [b["protocol"] for b in backups] == ["nfs", "smb"]
    assert backups[0]["source"] == str(exports)
    assert backups[0]["size"] == len(EXPORTS)


def test_custom_suffix(files, services):
    exports, smb_conf = files
    manager = BackupManager(str(exports), str(smb_conf), suffix=".orig", services=services)
    assert manager.get_backup_path("/etc/exports") == "/etc/exports.orig"
