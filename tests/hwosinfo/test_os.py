from unittest.mock import patch

from sharectl.hwosinfo.os import get_os_info


def test_reads_os_release(tmp_path):
    os_release = tmp_path / "os-release"
    os_release.write_text('NAME="Ubuntu"\nID=ubuntu\nID_LIKE=debian\n# comment\n\nVERSION_ID="22.04"\n')
    info = get_os_info(str(os_release))
    assert info["id"] == "ubuntu"
    assert info["id_like"] == "debian"
    assert info["version_id"] == "22.04"


def test_falls_back_to_release_files(tmp_path):
    missing = str(tmp_path / "os-release")
    with patch("sharectl.hwosinfo.os.os.path.exists", side_effect=lambda p: p == "/etc/redhat-release"):
        assert get_os_info(missing)["id"] == "rhel"
    with patch("sharectl.hwosinfo.os.os.path.exists", return_value=False):
        assert get_os_info(missing) == {"id": "unknown"}
