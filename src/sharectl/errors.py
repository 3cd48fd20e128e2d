class ShareError(Exception):
    """Base class for every error raised by sharectl."""
    pass


class InvalidOptionFormat(ShareError):
    def __init__(self, message, token=None):
        super().__init__(message)
        self.token = token


class InvalidShare(ShareError):
    """Bad share name, export path, target directory or access scope."""
    pass


class DuplicateShare(ShareError):
    def __init__(self, identity, protocol, where="registry"):
        super().__init__(
            f"{protocol.value.upper()} share '{identity}' already exists in {where}."
        )
        self.identity = identity
        self.protocol = protocol


class ShareNotFound(ShareError):
    def __init__(self, identity, where="registry"):
        super().__init__(f"Share '{identity}' not found in {where}.")
        self.identity = identity


class AmbiguousMatch(ShareError):
    def __init__(self, identity, path, count):
        super().__init__(
            f"Share '{identity}' matches {count} blocks in {path}; "
            "remove the duplicates manually before retrying."
        )
        self.identity = identity
        self.path = path
        self.count = count


class ServiceError(ShareError):
    pass


class ReloadFailed(ShareError):
    """The configuration was written but the live service did not pick it up."""

    def __init__(self, message, share=None):
        super().__init__(message)
        self.share = share


class NoBackupFound(ShareError):
    pass


class FilePermissionError(ShareError):
    def __init__(self, path, reason=""):
        message = f"Permission denied for {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.path = path


class InstallationFailed(ShareError):
    pass


class FirewallError(ShareError):
    pass
