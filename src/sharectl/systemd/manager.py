import logging
logger = logging.getLogger(__name__)
import subprocess
from typing import List, Optional
from sharectl.errors import ServiceError
from sharectl.shares.models import Protocol
from sharectl.systemd.models import SystemdServiceStatus
from sharectl.systemd.registry import MANAGED_SERVICES

ACTIONS = ["start", "stop", "restart", "enable", "disable", "reload"]

class SystemdManager:
    def _run(self, command: List[str]) -> subprocess.CompletedProcess:
        """Run a command, turning failures into ServiceError."""
        try:
            return subprocess.run(command, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise ServiceError(f"Command not found: {e.filename}") from e
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.strip() if e.stderr else ""
            raise ServiceError(
                f"Command '{' '.join(e.cmd)}' failed with exit code {e.returncode}: {stderr}"
            ) from e

    def _resolve_service_name(self, service_key: str) -> Optional[str]:
        """Resolves the actual systemd unit name from the registry list."""
        if service_key not in MANAGED_SERVICES:
            logger.info(f"Service {service_key} not found in registry, candidates: {list(MANAGED_SERVICES)}")
            return None

        for unit in MANAGED_SERVICES[service_key]:
            # 'systemctl show' reports LoadState even for inactive units
            try:
                res = subprocess.run(
                    ["systemctl", "show", "-p", "LoadState", unit],
                    capture_output=True, text=True
                )
            except FileNotFoundError:
                return None
            if "LoadState=loaded" in res.stdout:
                logger.info(f"Resolved service {service_key} to unit {unit}")
                return unit
        return None

    def _require_unit(self, service_name: str) -> str:
        unit = self._resolve_service_name(service_name)
        if not unit:
            raise ServiceError(f"Service {service_name} not found or not installed.")
        return unit

    def get_service_status(self, service_name: str) -> Optional[SystemdServiceStatus]:
        """Get comprehensive status of a service."""
        unit = self._resolve_service_name(service_name)
        if not unit:
            # Known service that is not installed yet
            if service_name in MANAGED_SERVICES:
                return SystemdServiceStatus(
                    name=service_name,
                    load_state="not-found",
                    active_state="inactive",
                    sub_state="dead",
                    unit_file_state="disabled"
                )
            return None

        props = ["LoadState", "ActiveState", "SubState", "UnitFileState", "Description", "MainPID", "ActiveEnterTimestamp"]
        cmd = ["systemctl", "show", "--no-pager"] + [f"-p{p}" for p in props] + [unit]

        try:
            result = self._run(cmd)
        except ServiceError as e:
            logger.error(f"Error getting status for {unit}: {e}")
            return None

        data = {}
        for line in result.stdout.splitlines():
            if "=" in line:
                k, v = line.split("=", 1)
                data[k] = v.strip()

        return SystemdServiceStatus(
            name=service_name,
            unit=unit,
            description=data.get("Description"),
            load_state=data.get("LoadState", "unknown"),
            active_state=data.get("ActiveState", "unknown"),
            sub_state=data.get("SubState", "unknown"),
            unit_file_state=data.get("UnitFileState") or "unknown",
            main_pid=int(data.get("MainPID") or 0),
            since=data.get("ActiveEnterTimestamp") or None
        )

    def list_services(self) -> List[SystemdServiceStatus]:
        """List status for all managed services."""
        results = []
        for key in MANAGED_SERVICES:
            status = self.get_service_status(key)
            if status:
                results.append(status)
        return results

    def manage_service(self, service_name: str, action: str) -> Optional[SystemdServiceStatus]:
        """Perform an action on a service."""
        if action not in ACTIONS:
            raise ValueError(f"Invalid action: {action}")

        unit = self._require_unit(service_name)
        logger.info(f"Running systemctl {action} {unit}")
        self._run(["systemctl", action, unit])
        return self.get_service_status(service_name)

    def enable_and_start(self, service_name: str) -> None:
        unit = self._require_unit(service_name)
        logger.info(f"Enabling and starting {unit}")
        self._run(["systemctl", "enable", "--now", unit])

    def start(self, service_name: str) -> None:
        self.manage_service(service_name, "start")

    def stop(self, service_name: str) -> None:
        self.manage_service(service_name, "stop")

    def restart(self, service_name: str) -> None:
        self.manage_service(service_name, "restart")

    def reload_exports(self) -> None:
        """Re-export everything in /etc/exports."""
        logger.info("Reloading NFS exports")
        self._run(["exportfs", "-ra"])

    def show_exports(self) -> str:
        """What the kernel is exporting right now (exportfs -v)."""
        return self._run(["exportfs", "-v"]).stdout

    def check_smb_conf(self) -> str:
        """Samba's parsed view of smb.conf (testparm -s), failing on syntax errors."""
        return self._run(["testparm", "-s"]).stdout

    def reload_share_service(self, protocol: Protocol) -> None:
        """Make the live service pick up its config file."""
        if Protocol(protocol) == Protocol.NFS:
            self.reload_exports()
        else:
            self.manage_service("smb", "reload")
