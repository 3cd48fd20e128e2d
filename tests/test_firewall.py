import subprocess
from unittest.mock import patch

import pytest

from sharectl.errors import FirewallError
from sharectl.firewall.manager import FirewallManager
from sharectl.shares.models import Protocol


def _which(available):
    return lambda name: f"/usr/sbin/{name}" if name in available else None


@patch('sharectl.firewall.manager.subprocess.run')
@patch('sharectl.firewall.manager.shutil.which')
def test_firewalld_nfs(mock_which, mock_run):
    mock_which.side_effect = _which({"firewall-cmd", "ufw"})
    assert FirewallManager().allow_share_traffic(Protocol.NFS) == "firewalld"
    commands = [call.args[0] for call in mock_run.call_args_list]
    assert commands == [
        ["firewall-cmd", "--permanent", "--add-service=nfs"],
        ["firewall-cmd", "--permanent", "--add-service=mountd"],
        ["firewall-cmd", "--permanent", "--add-service=rpc-bind"],
        ["firewall-cmd", "--reload"],
    ]


@patch('sharectl.firewall.manager.subprocess.run')
@patch('sharectl.firewall.manager.shutil.which')
def test_ufw_smb(mock_which, mock_run):
    mock_which.side_effect = _which({"ufw"})
    assert FirewallManager().allow_share_traffic("smb") == "ufw"
    commands = [call.args[0] for call in mock_run.call_args_list]
    assert ["ufw", "allow", "from", "any", "to", "any", "port", "445", "proto", "tcp"] in commands
    assert commands[-1] == ["ufw", "reload"]


@patch('sharectl.firewall.manager.shutil.which', return_value=None)
def test_no_firewall(mock_which):
    with pytest.raises(FirewallError):
        FirewallManager().allow_share_traffic(Protocol.SMB)


@patch('sharectl.firewall.manager.subprocess.run')
@patch('sharectl.firewall.manager.shutil.which')
def test_firewall_command_failure(mock_which, mock_run):
    mock_which.side_effect = _which({"firewall-cmd"})
    mock_run.side_effect = subprocess.CalledProcessError(1, ["firewall-cmd"], stderr="not running")
    with pytest.raises(FirewallError) as exc:
        FirewallManager().allow_share_traffic(Protocol.NFS)
    assert "not running" in str(exc.value)
