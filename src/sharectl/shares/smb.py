import re
from typing import List, Optional

from sharectl.errors import InvalidOptionFormat
from sharectl.shares.models import AccessMode, Block, ForeignBlock, ManagedBlock, Protocol, ShareEntry
from sharectl.shares.options import smb_directive_name, validate_options

# Sections Samba gives a special meaning to; never treated as shares.
RESERVED_SECTIONS = ("global", "homes", "printers", "print$")

SECTION_HEADER = re.compile(r"^\s*\[(?P<name>[^\]]+)\]")
INDENT = "   "


def _str_to_bool(val: str) -> bool:
    return val.lower() in ('yes', 'true', '1', 'on')


def _is_filler(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#") or stripped.startswith(";")


def _parse_section(name: str, body: List[str]) -> Optional[ShareEntry]:
    target = None
    access_mode = AccessMode.READ_WRITE
    scope = ""
    options = []
    for line in body:
        if _is_filler(line):
            continue
        stripped = line.strip()
        key = smb_directive_name(stripped)
        value = stripped.split("=", 1)[1].strip() if "=" in stripped else None
        if key == "path":
            target = value
        elif key == "read only" and value is not None:
            access_mode = AccessMode.READ_ONLY if _str_to_bool(value) else AccessMode.READ_WRITE
        elif key == "writeable" and value is not None:
            access_mode = AccessMode.READ_WRITE if _str_to_bool(value) else AccessMode.READ_ONLY
        elif key == "valid users" and value is not None:
            scope = value
        elif value is None:
            options.append(key)
        else:
            options.append(f"{key} = {value}")

    if not target:
        return None
    return ShareEntry(
        identity=name,
        protocol=Protocol.SMB,
        target=target,
        access_scope=scope,
        access_mode=access_mode,
        options=options,
    )


def _section_blocks(lines: List[str]) -> List[Block]:
    match = SECTION_HEADER.match(lines[0])
    name = match.group("name").strip()
    if name.lower() in RESERVED_SECTIONS:
        return [ForeignBlock(text="".join(lines))]

    # trailing blank lines and comments belong to whatever follows
    end = len(lines)
    while end > 1 and _is_filler(lines[end - 1]):
        end -= 1
    entry = _parse_section(name, lines[1:end])
    if entry is None:
        return [ForeignBlock(text="".join(lines), identity=name)]

    warnings = []
    try:
        validate_options(Protocol.SMB, entry.options)
    except InvalidOptionFormat as e:
        warnings.append(str(e))

    blocks = [ManagedBlock(identity=name, entry=entry, text="".join(lines[:end]), warnings=warnings)]
    if end < len(lines):
        blocks.append(ForeignBlock(text="".join(lines[end:])))
    return blocks


def parse_smb_conf(text: str) -> List[Block]:
    """Split smb.conf into sections. A section runs up to the next '[' or EOF."""
    blocks = []
    current = []
    for line in text.splitlines(keepends=True):
        if line.lstrip().startswith("[") and current:
            blocks.extend(_flush(current))
            current = []
        current.append(line)
    if current:
        blocks.extend(_flush(current))
    return blocks


def _flush(lines: List[str]) -> List[Block]:
    if SECTION_HEADER.match(lines[0]):
        return _section_blocks(lines)
    return [ForeignBlock(text="".join(lines))]


def render_section(entry: ShareEntry) -> str:
    browse = [o for o in entry.options if smb_directive_name(o) == "browseable"]
    rest = [o for o in entry.options if smb_directive_name(o) != "browseable"]
    read_only = "yes" if entry.access_mode == AccessMode.READ_ONLY else "no"

    lines = [f"[{entry.identity}]", f"{INDENT}path = {entry.target}"]
    lines += [f"{INDENT}{o}" for o in browse]
    lines.append(f"{INDENT}read only = {read_only}")
    if entry.access_scope:
        lines.append(f"{INDENT}valid users = {entry.access_scope}")
    lines += [f"{INDENT}{o}" for o in rest]
    return "\n".join(lines) + "\n"


class SmbConfCodec:
    protocol = Protocol.SMB

    def parse(self, text: str) -> List[Block]:
        return parse_smb_conf(text)

    def render(self, entry: ShareEntry) -> str:
        return render_section(entry)

    def separator(self, text: str) -> str:
        """Keep one blank line between the previous section and a new one."""
        if not text:
            return ""
        if not text.endswith("\n"):
            return "\n\n"
        if not text.endswith("\n\n"):
            return "\n"
        return ""
