import subprocess
from importlib import metadata

def get_version() -> str:
    """
    Returns the current version of sharectl.
    Priorities:
    1. Installed distribution metadata
    2. Git commit hash (if running from a checkout)
    3. Fallback "dev"
    """
    try:
        return metadata.version("sharectl")
    except metadata.PackageNotFoundError:
        pass

    try:
        cmd = ["git", "rev-parse", "--short", "HEAD"]
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        pass

    return "dev"
