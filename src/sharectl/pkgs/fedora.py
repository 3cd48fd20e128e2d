import shutil
import subprocess

from sharectl.errors import InstallationFailed
from sharectl.pkgs.base import PackageManager


class FedoraPackageManager(PackageManager):
    packages = {
        "nfs-server": "nfs-utils",
        "nfs-client": "nfs-utils",
        "smb-server": "samba",
        "smb-client": "cifs-utils",
    }

    def __init__(self):
        if shutil.which("dnf"):
            self.pm = "dnf"
        elif shutil.which("yum"):
            self.pm = "yum"
        else:
            raise InstallationFailed("No package manager found (dnf or yum)")

    def install(self, package):
        subprocess.run([self.pm, "install", "-y", package], check=True)
