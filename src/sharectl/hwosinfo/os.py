import os
from typing import Dict

OS_RELEASE_PATH = "/etc/os-release"


def _read_os_release(path: str) -> Dict[str, str]:
    info = {}
    with open(path, "r") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            info[key.lower()] = value.strip().strip('"').strip("'")
    return info


def get_os_info(os_release_path: str = OS_RELEASE_PATH) -> Dict[str, str]:
    """
    Returns the distribution id (and id_like) of the running system.
    Falls back to the release marker files older systems ship.
    """
    if os.path.exists(os_release_path):
        return _read_os_release(os_release_path)
    if os.path.exists("/etc/redhat-release"):
        return {"id": "rhel", "id_like": "fedora"}
    if os.path.exists("/etc/debian_version"):
        return {"id": "debian"}
    return {"id": "unknown"}
