"""Option grammar for NFS exports and SMB shares.

Every option that ends up in /etc/exports or smb.conf goes through
``validate_options`` first. Tokens outside the whitelist below are rejected,
never passed through, since both files are read by root-owned daemons.
"""
import ipaddress
import re
from typing import Iterable, List, Optional, Tuple, Union

from sharectl.errors import InvalidOptionFormat, InvalidShare
from sharectl.shares.models import AccessMode, FileType, Protocol

RawOptions = Union[str, Iterable[str], None]

NFS_KEYWORDS = (
    "rw",
    "ro",
    "sync",
    "async",
    "no_subtree_check",
    "no_root_squash",
    "root_squash",
    "all_squash",
)

_NUMBER = re.compile(r"[0-9]+")
_SEC_FLAVOURS = ("sys", "krb5", "krb5i", "krb5p")

NFS_KEYS = {
    "anonuid": _NUMBER,
    "anongid": _NUMBER,
    "rsize": _NUMBER,
    "wsize": _NUMBER,
    "sec": re.compile(r"(%s)(:(%s))*" % ("|".join(_SEC_FLAVOURS), "|".join(_SEC_FLAVOURS))),
}

NFS_EXCLUSIVE = (
    ("rw", "ro"),
    ("sync", "async"),
    ("root_squash", "no_root_squash"),
)

NO_ROOT_SQUASH_WARNING = "'no_root_squash' is insecure and generally not recommended."

# rsize/wsize per file type, as tuned by the interactive setup
NFS_TRANSFER_SIZES = {
    FileType.NORMAL: 8192,
    FileType.MUSIC: 4096,
    FileType.DOCUMENTS: 4096,
    FileType.PHOTOS: 4096,
    FileType.MOVIES: 16384,
}

SMB_BOOLEAN = ("read only", "writeable", "browseable", "guest ok")
SMB_USER_LISTS = ("valid users", "admin users", "read list", "write list")
SMB_ACCOUNTS = ("force user", "force group")
SMB_MASKS = ("create mask", "directory mask")
SMB_TEXT = ("comment",)
SMB_DIRECTIVES = SMB_BOOLEAN + SMB_USER_LISTS + SMB_ACCOUNTS + SMB_MASKS + SMB_TEXT
SMB_ALIASES = {
    "writable": "writeable",
    "browsable": "browseable",
}

_TRUE = ("yes", "true", "1", "on")
_FALSE = ("no", "false", "0", "off")
_ACCOUNT = r"[@+&]?[A-Za-z0-9_.$\\-]+"
_USER_LIST = re.compile(r"%s([ \t]*[, ][ \t]*%s)*" % (_ACCOUNT, _ACCOUNT))
_ACCOUNT_NAME = re.compile(_ACCOUNT)
_MASK = re.compile(r"[0-7]{3,4}")
_TEXT = re.compile(r"[^\x00-\x1f\x7f\[\]]+")
_IPV4 = re.compile(r"([0-9]{1,3}\.){3}[0-9]{1,3}")
_CIDR = re.compile(r"([0-9]{1,3}\.){3}[0-9]{1,3}/[0-9]{1,2}")


def split_raw_options(protocol: Protocol, raw: RawOptions) -> List[str]:
    """Split a comma (NFS) or line (SMB) delimited string into stripped tokens."""
    if raw is None:
        return []
    if isinstance(raw, str):
        parts = raw.split(",") if protocol == Protocol.NFS else raw.splitlines()
    else:
        parts = list(raw)
    return [p.strip() for p in parts if p and p.strip()]


def smb_directive_name(token: str) -> str:
    name = token.split("=", 1)[0]
    name = " ".join(name.lower().split())
    return SMB_ALIASES.get(name, name)


def option_key(protocol: Protocol, token: str) -> str:
    """The part of an option that must be unique within a share."""
    if protocol == Protocol.SMB:
        return smb_directive_name(token)
    return token.split("=", 1)[0].strip()


def _normalize_nfs_token(token: str) -> str:
    if "=" not in token:
        if token in NFS_KEYWORDS:
            return token
        raise InvalidOptionFormat(f"Unsupported NFS option '{token}'.", token)

    key, value = (part.strip() for part in token.split("=", 1))
    pattern = NFS_KEYS.get(key)
    if pattern is None:
        raise InvalidOptionFormat(f"Unsupported NFS option '{token}'.", token)
    if not pattern.fullmatch(value):
        raise InvalidOptionFormat(f"Invalid value for NFS option '{key}': '{value}'.", token)
    if pattern is _NUMBER:
        value = str(int(value))
    return f"{key}={value}"


def _normalize_smb_token(token: str) -> str:
    name = smb_directive_name(token)
    if name not in SMB_DIRECTIVES:
        raise InvalidOptionFormat(f"Unsupported SMB directive '{token}'.", token)

    value = token.split("=", 1)[1].strip() if "=" in token else ""

    if name in SMB_BOOLEAN:
        lowered = value.lower()
        if not value or lowered in _TRUE:
            value = "yes"
        elif lowered in _FALSE:
            value = "no"
        else:
            raise InvalidOptionFormat(
                f"SMB directive '{name}' expects yes or no, got '{value}'.", token
            )
        return f"{name} = {value}"

    if not value:
        raise InvalidOptionFormat(f"SMB directive '{name}' requires a value.", token)

    if name in SMB_USER_LISTS:
        valid = _USER_LIST.fullmatch(value)
    elif name in SMB_ACCOUNTS:
        valid = _ACCOUNT_NAME.fullmatch(value)
    elif name in SMB_MASKS:
        valid = _MASK.fullmatch(value)
    else:
        valid = _TEXT.fullmatch(value)
    if not valid:
        raise InvalidOptionFormat(f"Invalid value for SMB directive '{name}': '{value}'.", token)
    return f"{name} = {value}"


def _smb_value(token: str) -> str:
    return token.split("=", 1)[1].strip()


def _check_conflicts(protocol: Protocol, options: List[str]) -> None:
    seen = {}
    for token in options:
        key = option_key(protocol, token)
        if key in seen and seen[key] != token:
            raise InvalidOptionFormat(
                f"Conflicting values for option '{key}': '{seen[key]}' and '{token}'.", token
            )
        seen[key] = token

    if protocol == Protocol.NFS:
        for first, second in NFS_EXCLUSIVE:
            if first in seen and second in seen:
                raise InvalidOptionFormat(
                    f"Options '{first}' and '{second}' are mutually exclusive.", second
                )
    elif "read only" in seen and "writeable" in seen:
        if _smb_value(seen["read only"]) == _smb_value(seen["writeable"]):
            raise InvalidOptionFormat(
                f"'{seen['read only']}' contradicts '{seen['writeable']}'.", seen["writeable"]
            )


def validate_options(protocol: Protocol, raw: RawOptions) -> Tuple[List[str], List[str]]:
    """Validate and normalize an option list.

    Returns the normalized options (duplicates collapsed, order kept) and a list
    of non-fatal warnings. Raises InvalidOptionFormat on the first token outside
    the grammar or on mutually exclusive options.
    """
    normalize = _normalize_nfs_token if protocol == Protocol.NFS else _normalize_smb_token
    options = []
    for token in split_raw_options(protocol, raw):
        normalized = normalize(token)
        if normalized not in options:
            options.append(normalized)

    _check_conflicts(protocol, options)

    warnings = []
    if protocol == Protocol.NFS and "no_root_squash" in options:
        warnings.append(NO_ROOT_SQUASH_WARNING)
    return options, warnings


def tuned_nfs_options(file_type: FileType, access_mode: AccessMode) -> List[str]:
    """Default export options for a new share of the given file type."""
    mode = "ro" if access_mode == AccessMode.READ_ONLY else "rw"
    options = [mode, "sync", "no_subtree_check"]
    size = NFS_TRANSFER_SIZES.get(FileType(file_type))
    if size:
        options += [f"rsize={size}", f"wsize={size}"]
    return options


def nfs_access_mode(options: List[str]) -> AccessMode:
    # exports(5) defaults to rw when neither is given
    return AccessMode.READ_ONLY if "ro" in options else AccessMode.READ_WRITE


def with_nfs_access_mode(options: List[str], access_mode: AccessMode) -> List[str]:
    """Swap the rw/ro token in place, adding "ro" when the default would be wrong."""
    mode = "ro" if access_mode == AccessMode.READ_ONLY else "rw"
    result = []
    replaced = False
    for token in options:
        if token in ("rw", "ro"):
            if not replaced:
                result.append(mode)
                replaced = True
            continue
        result.append(token)
    if not replaced and access_mode == AccessMode.READ_ONLY:
        result.insert(0, mode)
    return result


def split_smb_header(options: List[str]) -> Tuple[Optional[AccessMode], Optional[str], List[str]]:
    """Pull the directives rendered from dedicated fields out of an SMB option list.

    ``read only``/``writeable`` become the access mode and ``valid users``
    becomes the access scope; everything else is returned untouched.
    """
    access_mode = None
    scope = None
    rest = []
    for token in options:
        name = smb_directive_name(token)
        if name in ("read only", "writeable") and "=" in token:
            enabled = _smb_value(token).lower() in _TRUE
            read_only = enabled if name == "read only" else not enabled
            access_mode = AccessMode.READ_ONLY if read_only else AccessMode.READ_WRITE
        elif name == "valid users" and "=" in token:
            scope = _smb_value(token)
        else:
            rest.append(token)
    return access_mode, scope, rest


def subtract_options(protocol: Protocol, options: List[str], to_remove: RawOptions) -> List[str]:
    """Set difference on options.

    A token to remove matches an option exactly, or by key when given without
    a value (``rsize`` removes ``rsize=8192``). Tokens that match nothing are
    ignored.
    """
    removals = split_raw_options(protocol, to_remove)
    result = []
    for token in options:
        if any(_matches(protocol, token, r) for r in removals):
            continue
        result.append(token)
    return result


def _matches(protocol: Protocol, token: str, removal: str) -> bool:
    if "=" not in removal:
        return option_key(protocol, token) == option_key(protocol, removal)
    if protocol == Protocol.NFS:
        return token == removal.replace(" ", "")
    try:
        return token == _normalize_smb_token(removal)
    except InvalidOptionFormat:
        return token == removal


def validate_scope(protocol: Protocol, scope: Optional[str]) -> str:
    """Validate who may access a share.

    NFS scopes are an IPv4 CIDR block or a comma separated list of IPv4
    addresses. SMB scopes are an optional ``valid users`` list.
    """
    scope = (scope or "").strip()
    if protocol == Protocol.SMB:
        if scope and not _USER_LIST.fullmatch(scope):
            raise InvalidShare(f"Invalid SMB user list '{scope}'.")
        return scope

    if not scope:
        raise InvalidShare("An NFS export needs a network (CIDR) or IP address list.")
    try:
        if "/" in scope:
            if not _CIDR.fullmatch(scope):
                raise ValueError(scope)
            ipaddress.IPv4Network(scope, strict=False)
            return scope
        addresses = [a.strip() for a in scope.split(",")]
        for address in addresses:
            if not _IPV4.fullmatch(address):
                raise ValueError(address)
            ipaddress.IPv4Address(address)
        return ",".join(addresses)
    except ValueError:
        raise InvalidShare(
            f"Invalid network '{scope}'. Use CIDR notation (e.g. 192.168.1.0/24) or "
            "comma-separated IP addresses (e.g. 192.168.1.100,192.168.1.101)."
        )
