# diff.py -- Per-file patches between two commits
# Copyright (C) 2026 The bareview authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# bareview is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Per-file patches between two commits.

The patch writer produces one continuous stream of lines for a whole tree
diff. Each line is tagged with the file it belongs to and the stream is then
cut wherever that tag changes.
"""

__all__ = [
    "CHANGE_ADD",
    "CHANGE_DELETE",
    "CHANGE_MODIFY",
    "DiffEngine",
    "FilePatch",
    "PatchKey",
    "PatchLine",
    "patch_events",
    "split_patches",
]

from collections.abc import Iterable, Iterator
from io import BytesIO
from typing import NamedTuple

from dulwich.diff_tree import tree_changes
from dulwich.errors import NotTreeError, ObjectFormatException
from dulwich.patch import write_object_diff

from . import log_utils
from .objects import CommitInfo
from .store import RepositoryHandle

logger = log_utils.getLogger(__name__)

CHANGE_ADD = "add"
CHANGE_DELETE = "delete"
CHANGE_MODIFY = "modify"


class PatchKey(NamedTuple):
    """Identifies the file a patch line belongs to.

    The paths are part of the key so that two deleted files (which share a
    new_id of None) or two files with identical contents stay apart.
    """

    new_id: bytes | None
    new_path: bytes | None
    old_path: bytes | None


class PatchLine(NamedTuple):
    key: PatchKey
    old_id: bytes | None
    line: bytes


class FilePatch(NamedTuple):
    """Unified diff of a single file.

    Attributes:
      old_path: Path before the change, or None for an added file
      new_path: Path after the change, or None for a deleted file
      old_id: Blob id before the change, or None
      new_id: Blob id after the change, or None
      text: The patch, starting with its "diff --git" header
    """

    old_path: str | None
    new_path: str | None
    old_id: bytes | None
    new_id: bytes | None
    text: str

    @property
    def path(self) -> str:
        """The path to show for this patch."""
        return self.new_path if self.new_path is not None else self.old_path or ""

    @property
    def change_type(self) -> str:
        if self.old_path is None:
            return CHANGE_ADD
        if self.new_path is None:
            return CHANGE_DELETE
        return CHANGE_MODIFY


def _entry_triple(entry) -> tuple[bytes | None, int | None, bytes | None]:
    # Older dulwich releases use TreeEntry(None, None, None) for the missing
    # side of an add or delete; newer ones use None.
    if entry is None:
        return (None, None, None)
    return (entry.path, entry.mode, entry.sha)


def patch_events(
    handle: RepositoryHandle, old_tree: bytes | None, new_tree: bytes
) -> Iterator[PatchLine]:
    """Generate the tagged lines of a tree to tree diff.

    Args:
      handle: Repository to read objects from
      old_tree: Id of the old tree, or None to diff against an empty tree
      new_tree: Id of the new tree
    Returns: iterator over PatchLine, grouped by file in tree order
    Raises:
      KeyError: if an object is missing
    """
    store = handle.object_store
    for change in tree_changes(store, old_tree, new_tree):
        old_file = _entry_triple(change.old)
        new_file = _entry_triple(change.new)
        key = PatchKey(new_file[2], new_file[0], old_file[0])
        f = BytesIO()
        write_object_diff(f, store, old_file, new_file)
        for line in f.getvalue().splitlines(keepends=True):
            yield PatchLine(key, old_file[2], line)


def _decode_path(path: bytes | None) -> str | None:
    if path is None:
        return None
    return path.decode("utf-8", "replace")


def _make_patch(key: PatchKey, old_id: bytes | None, lines: list[bytes]) -> FilePatch:
    return FilePatch(
        _decode_path(key.old_path),
        _decode_path(key.new_path),
        old_id,
        key.new_id,
        b"".join(lines).decode("utf-8", "replace"),
    )


def split_patches(events: Iterable[PatchLine]) -> list[FilePatch]:
    """Cut a stream of tagged patch lines into one FilePatch per file."""
    patches = []
    current: PatchKey | None = None
    current_old_id: bytes | None = None
    buf: list[bytes] = []
    for event in events:
        if event.key != current:
            if buf:
                patches.append(_make_patch(current, current_old_id, buf))
            current = event.key
            current_old_id = event.old_id
            buf = []
        buf.append(event.line)
    if buf:
        patches.append(_make_patch(current, current_old_id, buf))
    return patches


class DiffEngine:
    """Computes the patches a commit introduces."""

    def __init__(self, handle: RepositoryHandle) -> None:
        self._handle = handle

    def diff(self, old: CommitInfo | None, new: CommitInfo) -> list[FilePatch]:
        """Diff the trees of two commits.

        Args:
          old: The base commit, or None to diff against an empty tree
          new: The commit to diff
        Returns: list of FilePatch in tree order; empty if the diff could not
            be computed
        """
        old_tree = old.tree if old is not None else None
        if old_tree == new.tree:
            return []
        try:
            return split_patches(patch_events(self._handle, old_tree, new.tree))
        except (KeyError, NotTreeError, ObjectFormatException, OSError, ValueError) as exc:
            logger.warning(
                "Unable to diff %s against %s: %s",
                new.hexid,
                old.hexid if old is not None else "empty tree",
                exc,
            )
            return []
