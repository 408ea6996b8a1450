"""
Path-confined file store backing the agent's long-term memory.

The agent addresses files with logical paths under ``/memories``. Every
logical path is mapped onto the configured storage root and canonicalized
before any disk access; anything that resolves outside the root is refused.

Content problems (missing files, ambiguous edits, bad line numbers) come back
as failed ``ToolResult`` values so the agent can read them and adjust. Only
the path-safety checks raise.
"""

from typing import List, Optional, Sequence
from pathlib import Path
import asyncio
import os
import shutil
import structlog

from counselor.domain.errors import PathEscape, PathRejected
from counselor.domain.models.agent_state import ToolResult

logger = structlog.get_logger(__name__)

VIRTUAL_ROOT = "/memories"
LISTING_DEPTH = 2


class MemoryFileSystem:
    """Sandboxed view/create/str_replace/insert/delete/rename over one directory"""

    def __init__(self, storage_root: Path, virtual_root: str = VIRTUAL_ROOT):
        self.storage_root = Path(storage_root)
        self.virtual_root = virtual_root.rstrip("/")

    async def ensure_root(self) -> Path:
        """Create the storage root if needed"""

        await asyncio.to_thread(self.storage_root.mkdir, parents=True, exist_ok=True)
        logger.info("Memory root ready", storage_root=str(self.storage_root.resolve()))
        return self.storage_root

    def resolve(self, logical_path: str) -> Path:
        """Map a logical path to a canonical physical path inside the root"""

        if logical_path != self.virtual_root and not logical_path.startswith(self.virtual_root + "/"):
            raise PathRejected(logical_path, self.virtual_root)

        relative = logical_path[len(self.virtual_root):].lstrip("/\\")
        root = Path(os.path.realpath(self.storage_root))
        resolved = Path(os.path.realpath(root / relative)) if relative else root

        if resolved != root and root not in resolved.parents:
            raise PathEscape(logical_path)

        return resolved

    def is_root(self, logical_path: str) -> bool:
        return self.resolve(logical_path) == Path(os.path.realpath(self.storage_root))

    async def view(self, path: str, view_range: Optional[Sequence[int]] = None) -> ToolResult:
        """List a directory or read a file with line numbers"""

        full_path = self.resolve(path)
        return await asyncio.to_thread(self._view, full_path, path, view_range)

    def _view(self, full_path: Path, path: str, view_range: Optional[Sequence[int]]) -> ToolResult:
        if full_path.is_dir():
            return ToolResult.ok(self._directory_listing(full_path, path))
        if not full_path.is_file():
            return ToolResult.fail(f"The path {path} does not exist.")

        lines = full_path.read_text(encoding="utf-8").split("\n")
        start, end = 1, len(lines)
        if view_range:
            if len(view_range) != 2:
                return ToolResult.fail("view_range must be [start_line, end_line]")
            start = view_range[0]
            end = len(lines) if view_range[1] == -1 else view_range[1]
            if start < 1 or start > len(lines) or end < start:
                return ToolResult.fail(
                    f"Invalid view_range {list(view_range)} for {path}: "
                    f"the file has {len(lines)} lines"
                )

        return ToolResult.ok("\n".join(
            f"{number:>6}\t{line}"
            for number, line in enumerate(lines[start - 1:end], start=start)
        ))

    def _directory_listing(self, directory: Path, logical_path: str) -> str:
        logical_path = logical_path.rstrip("/") or self.virtual_root
        lines = [f"Contents of {logical_path} (up to {LISTING_DEPTH} levels):"]

        def walk(current: Path, logical: str, depth: int):
            for entry in sorted(current.iterdir(), key=lambda p: p.name):
                # Links are never followed; their targets may lie outside the root
                if entry.name.startswith(".") or entry.is_symlink():
                    continue
                child_logical = f"{logical}/{entry.name}"
                size_kb = entry.stat().st_size / 1024
                if entry.is_dir():
                    lines.append(f"{size_kb:.1f}K\t{child_logical}/")
                    if depth < LISTING_DEPTH:
                        walk(entry, child_logical, depth + 1)
                else:
                    lines.append(f"{size_kb:.1f}K\t{child_logical}")

        walk(directory, logical_path, 1)
        return "\n".join(lines)

    async def create(self, path: str, file_text: str) -> ToolResult:
        """Create a new file; never overwrites"""

        full_path = self.resolve(path)
        return await asyncio.to_thread(self._create, full_path, path, file_text)

    def _create(self, full_path: Path, path: str, file_text: str) -> ToolResult:
        if full_path.exists():
            return ToolResult.fail(f"Error: File {path} already exists")

        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(file_text, encoding="utf-8")
        logger.info("Memory file created", path=path)
        return ToolResult.ok(f"File created successfully at: {path}")

    async def str_replace(self, path: str, old_str: str, new_str: str) -> ToolResult:
        """Replace the single occurrence of ``old_str``"""

        full_path = self.resolve(path)
        return await asyncio.to_thread(self._str_replace, full_path, path, old_str, new_str)

    def _str_replace(self, full_path: Path, path: str, old_str: str, new_str: str) -> ToolResult:
        if not full_path.is_file():
            return ToolResult.fail(f"Error: The path {path} does not exist")
        if not old_str:
            return ToolResult.fail("Error: old_str must not be empty")

        content = full_path.read_text(encoding="utf-8")
        count = content.count(old_str)
        if count == 0:
            return ToolResult.fail(
                f"No replacement was performed: old_str `{old_str}` appears 0 times in {path}"
            )
        if count > 1:
            return ToolResult.fail(
                f"No replacement was performed: old_str `{old_str}` appears {count} times in {path}. "
                "Include more context so it is unique."
            )

        full_path.write_text(content.replace(old_str, new_str, 1), encoding="utf-8")
        logger.info("Memory file edited", path=path)
        return ToolResult.ok(f"The memory file {path} has been edited.")

    async def insert(self, path: str, insert_line: int, insert_text: str) -> ToolResult:
        """Insert text after ``insert_line`` (0 inserts before the first line)"""

        full_path = self.resolve(path)
        return await asyncio.to_thread(self._insert, full_path, path, insert_line, insert_text)

    def _insert(self, full_path: Path, path: str, insert_line: int, insert_text: str) -> ToolResult:
        if not full_path.is_file():
            return ToolResult.fail(f"Error: The path {path} does not exist")

        lines: List[str] = full_path.read_text(encoding="utf-8").split("\n")
        if insert_line < 0 or insert_line > len(lines):
            return ToolResult.fail(
                f"Error: Invalid insert_line {insert_line}. Valid range: [0, {len(lines)}]"
            )

        lines.insert(insert_line, insert_text)
        full_path.write_text("\n".join(lines), encoding="utf-8")
        logger.info("Memory file edited", path=path, insert_line=insert_line)
        return ToolResult.ok(f"Text inserted at line {insert_line} of {path}")

    async def delete(self, path: str) -> ToolResult:
        """Delete a file, or a directory and everything under it"""

        full_path = self.resolve(path)
        if self.is_root(path):
            return ToolResult.fail(f"Error: Cannot delete the memory root {self.virtual_root}")
        return await asyncio.to_thread(self._delete, full_path, path)

    def _delete(self, full_path: Path, path: str) -> ToolResult:
        if full_path.is_dir():
            shutil.rmtree(full_path)
        elif full_path.exists():
            full_path.unlink()
        else:
            return ToolResult.fail(f"Error: The path {path} does not exist")

        logger.info("Memory path deleted", path=path)
        return ToolResult.ok(f"Successfully deleted {path}")

    async def rename(self, old_path: str, new_path: str) -> ToolResult:
        """Move a file or directory to a new, unused path"""

        old_full = self.resolve(old_path)
        new_full = self.resolve(new_path)
        if self.is_root(old_path) or self.is_root(new_path):
            return ToolResult.fail(f"Error: Cannot rename the memory root {self.virtual_root}")
        return await asyncio.to_thread(self._rename, old_full, new_full, old_path, new_path)

    def _rename(self, old_full: Path, new_full: Path, old_path: str, new_path: str) -> ToolResult:
        if not old_full.exists():
            return ToolResult.fail(f"Error: The path {old_path} does not exist")
        if new_full.exists():
            return ToolResult.fail(f"Error: The destination {new_path} already exists")

        new_full.parent.mkdir(parents=True, exist_ok=True)
        old_full.rename(new_full)
        logger.info("Memory path renamed", old_path=old_path, new_path=new_path)
        return ToolResult.ok(f"Successfully renamed {old_path} to {new_path}")
