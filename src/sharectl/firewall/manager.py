import logging
import shutil
import subprocess
from typing import List, Optional

from sharectl.errors import FirewallError
from sharectl.shares.models import Protocol

logger = logging.getLogger(__name__)

FIREWALLD_SERVICES = {
    Protocol.NFS: ["nfs", "mountd", "rpc-bind"],
    Protocol.SMB: ["samba"],
}

# (port, proto)
UFW_PORTS = {
    Protocol.NFS: [(2049, "tcp"), (2049, "udp"), (111, "tcp"), (111, "udp")],
    Protocol.SMB: [(137, "udp"), (138, "udp"), (139, "tcp"), (445, "tcp")],
}


class FirewallManager:
    def detect_backend(self) -> Optional[str]:
        if shutil.which("firewall-cmd"):
            return "firewalld"
        if shutil.which("ufw"):
            return "ufw"
        return None

    def _run(self, command: List[str]) -> None:
        try:
            subprocess.run(command, check=True, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise FirewallError(f"Command not found: {e.filename}") from e
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.strip() if e.stderr else ""
            raise FirewallError(f"Command '{' '.join(e.cmd)}' failed: {stderr}") from e

    def allow_share_traffic(self, protocol: Protocol) -> str:
        """Open the ports a protocol's server needs. Returns the backend used."""
        protocol = Protocol(protocol)
        backend = self.detect_backend()
        if backend is None:
            raise FirewallError("No supported firewall found (firewalld or ufw).")

        logger.info(f"Configuring {backend} for {protocol.value.upper()}")
        if backend == "firewalld":
            for service in FIREWALLD_SERVICES[protocol]:
                self._run(["firewall-cmd", "--permanent", f"--add-service={service}"])
            self._run(["firewall-cmd", "--reload"])
        else:
            for port, proto in UFW_PORTS[protocol]:
                self._run(["ufw", "allow", "from", "any", "to", "any", "port", str(port), "proto", proto])
            self._run(["ufw", "reload"])
        logger.info(f"Firewall configured for {protocol.value.upper()}")
        return backend
