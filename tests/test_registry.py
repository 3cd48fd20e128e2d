import pytest

from sharectl.errors import ShareNotFound
from sharectl.shares.models import Protocol, ShareEntry
from sharectl.shares.registry import ShareRegistry


def _nfs(path):
    return ShareEntry(identity=path, protocol=Protocol.NFS, target=path, access_scope="10.0.0.0/8")


def test_put_get_list_keep_insertion_order():
    registry = ShareRegistry(Protocol.NFS)
    registry.put(_nfs("/srv/b"))
    registry.put(_nfs("/srv/a"))
    assert [e.identity for e in registry.list()] == ["/srv/b", "/srv/a"]
    assert registry.get("/srv/a").identity == "/srv/a"
    assert registry.get("/srv/missing") is None
    assert len(registry) == 2


def test_nfs_identity_is_normalized_path():
    registry = ShareRegistry(Protocol.NFS)
    registry.put(_nfs("/srv/data"))
    assert "/srv/data/" in registry
    assert registry.get("/srv//data").identity == "/srv/data"


def test_smb_identity_is_case_insensitive():
    registry = ShareRegistry(Protocol.SMB)
    registry.put(ShareEntry(identity="Media", protocol=Protocol.SMB, target="/srv/media"))
    assert "media" in registry
    assert registry.delete("MEDIA").identity == "Media"
    assert len(registry) == 0


def test_delete_missing_raises():
    registry = ShareRegistry(Protocol.NFS)
    with pytest.raises(ShareNotFound):
        registry.delete("/srv/nope")
