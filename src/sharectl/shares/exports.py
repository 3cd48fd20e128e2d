"""
/etc/exports reader/writer.

Only lines of the shape

    <path> <scope>(<opt1>,<opt2>,...,fsid=<fsid>)

are managed. Everything else (comments, blank lines, exports with several
client specs) is kept verbatim as foreign text.
"""
import re
from typing import List, Optional

from sharectl.errors import InvalidOptionFormat
from sharectl.shares.models import Block, ForeignBlock, ManagedBlock, Protocol, ShareEntry
from sharectl.shares.options import nfs_access_mode, validate_options

EXPORT_LINE = re.compile(
    r'^\s*(?:"(?P<quoted>[^"]+)"|(?P<path>/\S*))\s+(?P<scope>[^\s()]+)\((?P<options>[^()]*)\)\s*$'
)

# leading path of any export line, including ones with several client specs
EXPORT_PATH = re.compile(r'\s*(?:"(?P<quoted>[^"]+)"|(?P<path>/[^\s#]*))')


def parse_export_line(line: str) -> Optional[ManagedBlock]:
    match = EXPORT_LINE.match(line)
    if not match:
        return None
    target = match.group("quoted") or match.group("path")
    if not target.startswith("/"):
        return None

    options = []
    fsid = None
    for token in match.group("options").split(","):
        token = token.strip()
        if not token:
            continue
        if token.startswith("fsid="):
            fsid = token[len("fsid="):]
            continue
        options.append(token)

    entry = ShareEntry(
        identity=target,
        protocol=Protocol.NFS,
        target=target,
        access_scope=match.group("scope"),
        access_mode=nfs_access_mode(options),
        options=options,
        fsid=fsid,
    )

    warnings = []
    try:
        validate_options(Protocol.NFS, options)
    except InvalidOptionFormat as e:
        warnings.append(str(e))
    return ManagedBlock(identity=target, entry=entry, text=line, warnings=warnings)


def exported_path(line: str) -> Optional[str]:
    """The path an export line shares, or None for comments and blank lines."""
    if line.lstrip().startswith("#"):
        return None
    match = EXPORT_PATH.match(line)
    if not match:
        return None
    path = match.group("quoted") or match.group("path")
    return path if path.startswith("/") else None


def parse_exports(text: str) -> List[Block]:
    blocks = []
    for line in text.splitlines(keepends=True):
        stripped = line.strip()
        block = None
        if stripped and not stripped.startswith("#"):
            block = parse_export_line(line)
        if block is None:
            block = ForeignBlock(text=line, identity=exported_path(line))
        blocks.append(block)
    return blocks


def render_export(entry: ShareEntry) -> str:
    target = entry.target
    if any(c.isspace() for c in target):
        target = f'"{target}"'
    options = list(entry.options)
    if entry.fsid:
        options.append(f"fsid={entry.fsid}")
    return f"{target} {entry.access_scope}({','.join(options)})\n"


class ExportsCodec:
    protocol = Protocol.NFS

    def parse(self, text: str) -> List[Block]:
        return parse_exports(text)

    def render(self, entry: ShareEntry) -> str:
        return render_export(entry)

    def separator(self, text: str) -> str:
        if text and not text.endswith("\n"):
            return "\n"
        return ""
