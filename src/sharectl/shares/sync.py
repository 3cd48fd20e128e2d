import fcntl
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from typing import List

from sharectl.errors import AmbiguousMatch, DuplicateShare, FilePermissionError, ShareError, ShareNotFound
from sharectl.shares.models import Block, DriftReport, ForeignBlock, ManagedBlock, ReconcileResult, ShareEntry
from sharectl.shares.registry import ShareRegistry, identity_key

logger = logging.getLogger(__name__)


@contextmanager
def locked(path: str, exclusive: bool = True):
    """Hold an advisory lock on ``<path>.lock`` for the duration of the block.

    The lock lives on a sidecar file because the config file itself is
    replaced (new inode) on every write.
    """
    lock_path = f"{path}.lock"
    try:
        os.makedirs(os.path.dirname(os.path.abspath(lock_path)), exist_ok=True)
        lock_file = open(lock_path, "a")
    except PermissionError as e:
        raise FilePermissionError(lock_path, str(e)) from e
    except OSError as e:
        raise ShareError(f"Failed to open lock file {lock_path}: {e}") from e
    with lock_file:
        fcntl.flock(lock_file, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
        try:
            yield
        finally:
            fcntl.flock(lock_file, fcntl.LOCK_UN)


def read_text(path: str) -> str:
    try:
        with open(path, "r", newline="") as f:
            return f.read()
    except FileNotFoundError:
        return ""
    except PermissionError as e:
        raise FilePermissionError(path, str(e)) from e
    except OSError as e:
        raise ShareError(f"Failed to read {path}: {e}") from e


def write_text(path: str, text: str) -> None:
    """Replace ``path`` with ``text`` in one step; on failure the old file stays."""
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{os.path.basename(path)}.")
        with os.fdopen(fd, "w", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if os.path.exists(path):
            shutil.copymode(path, tmp_path)
        else:
            os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
        tmp_path = None
    except PermissionError as e:
        raise FilePermissionError(path, str(e)) from e
    except OSError as e:
        raise ShareError(f"Failed to write {path}: {e}") from e
    finally:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)


class ConfigSynchronizer:
    """Keeps one config file in step with the shares of one protocol.

    The file is parsed into foreign and managed blocks; a mutation touches
    exactly one managed block and writes everything else back unchanged.
    """

    def __init__(self, path: str, codec):
        self.path = path
        self.codec = codec
        self.protocol = codec.protocol

    def render(self, entry: ShareEntry) -> str:
        return self.codec.render(entry)

    def _blocks(self) -> List[Block]:
        return self.codec.parse(read_text(self.path))

    def _matches(self, blocks: List[Block], identity: str) -> List[int]:
        key = identity_key(self.protocol, identity)
        return [
            i for i, block in enumerate(blocks)
            if isinstance(block, ManagedBlock) and identity_key(self.protocol, block.identity) == key
        ]

    def _unmanaged(self, blocks: List[Block], identity: str) -> int:
        """How many hand-written entries the file has for ``identity``."""
        key = identity_key(self.protocol, identity)
        return sum(
            1 for block in blocks
            if isinstance(block, ForeignBlock) and block.identity
            and identity_key(self.protocol, block.identity) == key
        )

    def _find_one(self, blocks: List[Block], identity: str) -> int:
        matches = self._matches(blocks, identity)
        if not matches:
            raise ShareNotFound(identity, where=self.path)
        if len(matches) > 1:
            raise AmbiguousMatch(identity, self.path, len(matches))
        return matches[0]

    def _serialize(self, blocks: List[Block]) -> str:
        return "".join(block.text for block in blocks)

    def append(self, entry: ShareEntry) -> None:
        with locked(self.path):
            text = read_text(self.path)
            blocks = self.codec.parse(text)
            if self._matches(blocks, entry.identity) or self._unmanaged(blocks, entry.identity):
                raise DuplicateShare(entry.identity, self.protocol, where=self.path)
            write_text(self.path, text + self.codec.separator(text) + self.render(entry))
        logger.info(f"Appended {self.protocol.value} share {entry.identity} to {self.path}")

    def replace(self, entry: ShareEntry) -> None:
        """Substitute the block of ``entry.identity`` with the rendered entry."""
        with locked(self.path):
            blocks = self._blocks()
            index = self._find_one(blocks, entry.identity)
            blocks[index] = ManagedBlock(identity=entry.identity, entry=entry, text=self.render(entry))
            write_text(self.path, self._serialize(blocks))
        logger.info(f"Replaced {self.protocol.value} share {entry.identity} in {self.path}")

    def remove(self, identity: str) -> None:
        with locked(self.path):
            blocks = self._blocks()
            index = self._find_one(blocks, identity)
            del blocks[index]
            write_text(self.path, self._serialize(blocks))
        logger.info(f"Removed {self.protocol.value} share {identity} from {self.path}")

    def reconcile(self) -> ReconcileResult:
        """Parse the file into entries. The file is never modified here."""
        with locked(self.path, exclusive=False):
            blocks = self._blocks()

        result = ReconcileResult(path=self.path)
        seen = set()
        for block in blocks:
            if not isinstance(block, ManagedBlock):
                continue
            key = identity_key(self.protocol, block.identity)
            if key in seen:
                if block.identity not in result.duplicates:
                    result.duplicates.append(block.identity)
                continue
            seen.add(key)
            result.entries.append(block.entry)
            if block.warnings:
                result.warnings[block.identity] = block.warnings

        for identity in result.duplicates:
            logger.warning(f"{self.path} has more than one block for share {identity}")
        return result

    def drift(self, registry: ShareRegistry) -> DriftReport:
        """Compare the session registry with the file. Reports, never corrects."""
        on_disk = {identity_key(self.protocol, e.identity): e for e in self.reconcile().entries}
        report = DriftReport(path=self.path)
        for entry in registry.list():
            disk_entry = on_disk.pop(identity_key(self.protocol, entry.identity), None)
            if disk_entry is None:
                report.missing_on_disk.append(entry.identity)
            elif self.render(disk_entry) != self.render(entry):
                report.changed.append(entry.identity)
        report.unmanaged_on_disk = [e.identity for e in on_disk.values()]
        return report
