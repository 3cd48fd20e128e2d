# Dictionary of managed services.
# Key: Internal ID/Name used in API and CLI
# Value: List of possible systemd unit names (first match wins)

MANAGED_SERVICES = {
    "nfs": ["nfs-server.service", "nfs-kernel-server.service"],
    "smb": ["smb.service", "smbd.service", "samba.service"],
}
