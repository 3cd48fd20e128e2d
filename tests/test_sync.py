import os
import stat

import pytest

from sharectl.errors import AmbiguousMatch, DuplicateShare, ShareNotFound
from sharectl.shares.exports import ExportsCodec
from sharectl.shares.models import Protocol, ShareEntry
from sharectl.shares.registry import ShareRegistry
from sharectl.shares.smb import SmbConfCodec
from sharectl.shares.sync import ConfigSynchronizer, locked, write_text

EXPORTS = (
    "# managed by hand and by sharectl\n"
    "/srv/a 10.0.0.0/8(rw,sync,fsid=1)\n"
    "\n"
    "/srv/b 10.0.0.0/8(ro,sync,fsid=2)\n"
    "/srv/complex host1(rw) host2(ro)\n"
)


def _entry(path, options=("rw", "sync"), fsid="9"):
    return ShareEntry(
        identity=path,
        protocol=Protocol.NFS,
        target=path,
        access_scope="10.0.0.0/8",
        options=list(options),
        fsid=fsid,
    )


@pytest.fixture
def exports(tmp_path):
    path = tmp_path / "exports"
    path.write_text(EXPORTS)
    return ConfigSynchronizer(str(path), ExportsCodec())


def _read(sync):
    with open(sync.path) as f:
        return f.read()


def test_append_keeps_existing_text(exports):
    exports.append(_entry("/srv/c"))
    assert _read(exports) == EXPORTS + "/srv/c 10.0.0.0/8(rw,sync,fsid=9)\n"


def test_append_creates_missing_file(tmp_path):
    sync = ConfigSynchronizer(str(tmp_path / "etc" / "exports"), ExportsCodec())
    sync.append(_entry("/srv/c"))
    assert _read(sync) == "/srv/c 10.0.0.0/8(rw,sync,fsid=9)\n"


def test_append_refuses_identity_already_on_disk(exports):
    with pytest.raises(DuplicateShare):
        exports.append(_entry("/srv/a/"))
    assert _read(exports) == EXPORTS


def test_append_refuses_path_of_hand_written_export(exports):
    with pytest.raises(DuplicateShare):
        exports.append(_entry("/srv/complex"))
    assert _read(exports) == EXPORTS


def test_replace_touches_only_one_line(exports):
    exports.replace(_entry("/srv/b", options=("rw", "async"), fsid="2"))
    assert _read(exports) == EXPORTS.replace(
        "/srv/b 10.0.0.0/8(ro,sync,fsid=2)", "/srv/b 10.0.0.0/8(rw,async,fsid=2)"
    )


def test_remove(exports):
    exports.remove("/srv/a")
    assert _read(exports) == EXPORTS.replace("/srv/a 10.0.0.0/8(rw,sync,fsid=1)\n", "")


def test_missing_identity_raises_and_leaves_file(exports):
    with pytest.raises(ShareNotFound):
        exports.remove("/srv/nope")
    with pytest.raises(ShareNotFound):
        exports.replace(_entry("/srv/nope"))
    assert _read(exports) == EXPORTS


def test_duplicate_blocks_are_ambiguous(tmp_path):
    path = tmp_path / "exports"
    path.write_text("/srv/a 10.0.0.0/8(rw)\n/srv/a/ 192.168.0.0/16(ro)\n")
    sync = ConfigSynchronizer(str(path), ExportsCodec())
    with pytest.raises(AmbiguousMatch) as exc:
        sync.remove("/srv/a")
    assert exc.value.count == 2
    result = sync.reconcile()
    assert result.duplicates == ["/srv/a/"]
    assert [e.identity for e in result.entries] == ["/srv/a"]


def test_reconcile_does_not_modify_file(exports):
    before = os.stat(exports.path).st_mtime_ns
    result = exports.reconcile()
    assert [e.identity for e in result.entries] == ["/srv/a", "/srv/b"]
    assert result.duplicates == []
    assert os.stat(exports.path).st_mtime_ns == before
    assert _read(exports) == EXPORTS


def test_reconcile_missing_file(tmp_path):
    sync = ConfigSynchronizer(str(tmp_path / "exports"), ExportsCodec())
    assert sync.reconcile().entries == []


def test_drift(exports):
    registry = ShareRegistry(Protocol.NFS)
    for entry in exports.reconcile().entries:
        registry.put(entry)
    assert not exports.drift(registry).has_drift

    registry.put(_entry("/srv/new"))
    registry.put(_entry("/srv/a", options=("ro",), fsid="1"))
    registry.delete("/srv/b")
    report = exports.drift(registry)
    assert report.has_drift
    assert report.missing_on_disk == ["/srv/new"]
    assert report.changed == ["/srv/a"]
    assert report.unmanaged_on_disk == ["/srv/b"]


def test_smb_append_and_remove_keep_foreign_sections(tmp_path):
    original = "[global]\n   workgroup = HOME\n"
    path = tmp_path / "smb.conf"
    path.write_text(original)
    sync = ConfigSynchronizer(str(path), SmbConfCodec())
    entry = ShareEntry(identity="docs", protocol=Protocol.SMB, target="/srv/docs", options=["browseable = yes"])

    sync.append(entry)
    assert path.read_text() == (
        original
        + "\n[docs]\n   path = /srv/docs\n   browseable = yes\n   read only = no\n"
    )
    sync.remove("DOCS")
    assert path.read_text() == original + "\n"


def test_write_text_preserves_mode(tmp_path):
    path = tmp_path / "exports"
    path.write_text("old\n")
    os.chmod(path, 0o600)
    write_text(str(path), "new\n")
    assert path.read_text() == "new\n"
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    assert os.listdir(tmp_path) == ["exports"]


def test_locked_uses_sidecar_file(tmp_path):
    path = tmp_path / "exports"
    with locked(str(path)):
        assert os.path.exists(f"{path}.lock")
    with locked(str(path), exclusive=False):
        pass
