import subprocess

from sharectl.pkgs.base import PackageManager


class DebianPackageManager(PackageManager):
    packages = {
        "nfs-server": "nfs-kernel-server",
        "nfs-client": "nfs-common",
        "smb-server": "samba",
        "smb-client": "cifs-utils",
    }

    def install(self, package):
        subprocess.run(["apt-get", "update", "-y"], check=True)
        subprocess.run(["apt-get", "install", "-y", package], check=True)
