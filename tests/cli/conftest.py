from unittest.mock import patch

import pytest

from sharectl.config.settings import config


@pytest.fixture(autouse=True)
def no_log_files():
    with patch("sharectl.cli.configure_logging"):
        yield


@pytest.fixture
def share_env(tmp_path):
    """Point the CLI at config files under tmp_path and stub out systemd."""
    share_dir = tmp_path / "srv" / "data"
    share_dir.mkdir(parents=True)
    with patch.object(config, "exports_path", str(tmp_path / "exports")), \
            patch.object(config, "smb_conf_path", str(tmp_path / "smb.conf")), \
            patch("sharectl.systemd.manager.SystemdManager") as mock_systemd:
        yield {
            "dir": str(share_dir),
            "exports": tmp_path / "exports",
            "smb_conf": tmp_path / "smb.conf",
            "systemd": mock_systemd.return_value,
        }
