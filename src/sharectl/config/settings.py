import os

class Config:
    exports_path = os.getenv("SHARECTL_EXPORTS_PATH", "/etc/exports")
    smb_conf_path = os.getenv("SHARECTL_SMB_CONF_PATH", "/etc/samba/smb.conf")
    backup_suffix = os.getenv("SHARECTL_BACKUP_SUFFIX", ".bak")

    # Logging
    log_file = os.getenv("SHARECTL_LOG_FILE", "/var/log/sharectl.log")
    log_level = os.getenv("SHARECTL_LOG_LEVEL", "INFO").upper()

    # API
    api_host = os.getenv("SHARECTL_API_HOST", "127.0.0.1")
    api_port = int(os.getenv("SHARECTL_API_PORT", "8000"))

config = Config()
