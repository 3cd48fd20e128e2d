import logging
import os
import shutil
import subprocess

from sharectl.errors import InstallationFailed
from sharectl.hwosinfo.os import get_os_info
from sharectl.pkgs.debian import DebianPackageManager
from sharectl.pkgs.fedora import FedoraPackageManager

logger = logging.getLogger(__name__)

DEBIAN_FAMILY = ["debian", "ubuntu", "raspbian", "linuxmint"]
FEDORA_FAMILY = ["fedora", "centos", "rhel", "rocky", "almalinux"]

# component -> binary that proves the install worked
COMPONENT_BINARIES = {
    "nfs-server": "exportfs",
    "nfs-client": "mount.nfs",
    "smb-server": "smbd",
    "smb-client": "mount.cifs",
}


def get_package_manager():
    os_info = get_os_info()
    candidates = [os_info.get('id', '')] + os_info.get('id_like', '').split()
    for distro in candidates:
        if distro in DEBIAN_FAMILY:
            return DebianPackageManager()
        if distro in FEDORA_FAMILY:
            return FedoraPackageManager()
    raise InstallationFailed(f"Unsupported distribution: {os_info.get('id')}")


def is_component_installed(component: str) -> bool:
    binary = COMPONENT_BINARIES[component]
    # sbin is not always on PATH for non-root users
    path = "/usr/local/sbin:/usr/sbin:/sbin:" + os.environ.get("PATH", "")
    return shutil.which(binary, path=path) is not None


def install_component(component: str, pm=None) -> None:
    """Install the server or client side of NFS or SMB."""
    if component not in COMPONENT_BINARIES:
        raise InstallationFailed(
            f"Unknown component '{component}', expected one of: {', '.join(COMPONENT_BINARIES)}"
        )
    if is_component_installed(component):
        logger.info(f"{component} already installed")
        return

    pm = pm or get_package_manager()
    package = pm.package_for(component)
    logger.info(f"Installing {component} ({package})")
    try:
        pm.install(package)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise InstallationFailed(f"Installing {package} failed: {e}") from e

    if not is_component_installed(component):
        raise InstallationFailed(
            f"{package} installed but {COMPONENT_BINARIES[component]} is still missing."
        )
    logger.info(f"{component} installed successfully")
