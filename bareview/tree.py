# tree.py -- Directory listings annotated with history
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

"""Directory listings annotated with the commit that last touched each entry.

Two policies decide which commit an entry is annotated with:

SCAN_LAST_MODIFIED
  The newest commit that holds the entry's current object while none of its
  parents does, i.e. the commit that introduced the current content. This is
  what "git log -1 -- path" reports for linear history.

SCAN_EARLIEST_MATCH
  The oldest commit in the ref's history whose object at the same path equals
  the current one. If a file is changed and later reverted, this reports the
  commit that first introduced that content rather than the revert.
"""

__all__ = [
    "ALL_SCAN_POLICIES",
    "README_NAMES",
    "SCAN_EARLIEST_MATCH",
    "SCAN_LAST_MODIFIED",
    "AnnotatedEntry",
    "BlobSnapshot",
    "TreeProjector",
    "TreeSnapshot",
    "entry_url",
    "find_readme",
]

import datetime
import posixpath
import stat
from collections.abc import Sequence

from dulwich.objects import S_ISGITLINK

from . import log_utils
from .errors import PathNotFound, WrongKindError
from .objects import KIND_BLOB, KIND_TREE, CommitInfo
from .refs import ResolvedRef
from .store import RepositoryHandle
from .walk import HistoryWalker

logger = log_utils.getLogger(__name__)

SCAN_LAST_MODIFIED = "last-modified"
SCAN_EARLIEST_MATCH = "earliest-match"

ALL_SCAN_POLICIES = (SCAN_LAST_MODIFIED, SCAN_EARLIEST_MATCH)

README_NAMES = ("readme.md", "README.md", "readme", "README")


def entry_url(repo_url: str, kind: str, ref_name: str, subpath: str, name: str) -> str:
    """Build the URL of an entry below a directory.

    >>> entry_url("/alice/widgets", "blob", "main", "src", "app.py")
    '/alice/widgets/blob/main/src/app.py'
    >>> entry_url("/alice/widgets", "tree", "main", "", "docs")
    '/alice/widgets/tree/main/docs'
    """
    parts = [repo_url, kind, ref_name]
    if subpath:
        parts.append(subpath.strip("/"))
    parts.append(name)
    return "/".join(parts)


class AnnotatedEntry:
    """One entry of a projected directory.

    Attributes:
      name: Name of the entry within its directory
      kind: KIND_TREE or KIND_BLOB
      id: Object id of the entry's tree or blob
      mode: File mode as stored in the tree
      last_commit: CommitInfo deemed to have last touched it, if any
      url: URL of the tree or blob view of the entry
    """

    def __init__(
        self,
        name: str,
        kind: str,
        id: bytes,
        mode: int,
        last_commit: CommitInfo | None = None,
        url: str | None = None,
    ) -> None:
        self.name = name
        self.kind = kind
        self.id = id
        self.mode = mode
        self.last_commit = last_commit
        self.url = url

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.name!r}, {self.kind!r}, "
            f"{self.id!r}, last_commit={self.last_id!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnnotatedEntry):
            return NotImplemented
        return (
            self.name == other.name
            and self.kind == other.kind
            and self.id == other.id
            and self.mode == other.mode
            and self.last_id == other.last_id
            and self.url == other.url
        )

    def sort_key(self) -> tuple[bool, str]:
        """Trees before blobs, then by case-insensitive name."""
        return (self.kind != KIND_TREE, self.name.lower())

    @property
    def last_summary(self) -> str | None:
        if self.last_commit is None:
            return None
        return self.last_commit.summary

    @property
    def last_update(self) -> datetime.datetime | None:
        if self.last_commit is None:
            return None
        return self.last_commit.datetime

    @property
    def last_id(self) -> bytes | None:
        if self.last_commit is None:
            return None
        return self.last_commit.id


class TreeSnapshot:
    """A directory of a ref, ready for rendering.

    Attributes:
      ref_name: Short name of the ref the directory was read from
      subpath: Path of the directory; empty for the root
      repo_url: URL of the repository
      entries: AnnotatedEntry list, trees first
    """

    def __init__(
        self,
        ref_name: str,
        subpath: str,
        repo_url: str,
        entries: list[AnnotatedEntry],
    ) -> None:
        self.ref_name = ref_name
        self.subpath = subpath
        self.repo_url = repo_url
        self.entries = entries

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} {self.ref_name}:{self.subpath or '/'} "
            f"({len(self.entries)} entries)>"
        )

    @property
    def subtree(self) -> bool:
        """Whether a ".." entry leading to the parent should be shown."""
        return bool(self.subpath)

    @property
    def parent_url(self) -> str | None:
        if not self.subtree:
            return None
        return self.url_for(posixpath.dirname(self.subpath))

    def url_for(self, path: str) -> str:
        """URL of the tree view of a path on this snapshot's ref."""
        url = f"{self.repo_url}/{KIND_TREE}/{self.ref_name}"
        path = path.strip("/")
        if path:
            url += "/" + path
        return url


class BlobSnapshot:
    """Contents of a file at a ref.

    Attributes:
      ref_name: Short name of the ref the file was read from
      path: Path of the file within the tree
      id: Object id of the blob
      data: Contents of the blob
      repo_url: URL of the repository
    """

    def __init__(
        self, ref_name: str, path: str, id: bytes, data: bytes, repo_url: str
    ) -> None:
        self.ref_name = ref_name
        self.path = path
        self.id = id
        self.data = data
        self.repo_url = repo_url

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.ref_name}:{self.path}>"

    @property
    def text(self) -> str:
        """Contents decoded as UTF-8.

        Raises:
          UnicodeDecodeError: if the blob is not valid UTF-8
        """
        return self.data.decode("utf-8")

    @property
    def directory(self) -> str:
        return posixpath.dirname(self.path)

    @property
    def file_name(self) -> str:
        return posixpath.basename(self.path)

    @property
    def token(self) -> str:
        """Extension of the file, or its name if it has none.

        Syntax highlighters pick a lexer by this token.
        """
        extension = posixpath.splitext(self.file_name)[1]
        if extension:
            return extension[1:]
        return self.file_name

    @property
    def directory_url(self) -> str:
        url = f"{self.repo_url}/{KIND_TREE}/{self.ref_name}"
        if self.directory:
            url += "/" + self.directory
        return url


class _DirectoryIndex:
    """Per-projection memo of the listing of one directory in each commit.

    Commits sharing a root tree share a listing.
    """

    def __init__(self, handle: RepositoryHandle, subpath: str) -> None:
        self._handle = handle
        self._subpath = subpath
        self._listings: dict[bytes, dict[bytes, bytes]] = {}

    def listing(self, commit: CommitInfo) -> dict[bytes, bytes]:
        """Map of entry name to object id of the directory in a commit.

        Empty if the directory does not exist in that commit.
        """
        listing = self._listings.get(commit.tree)
        if listing is None:
            listing = self._read(commit.tree)
            self._listings[commit.tree] = listing
        return listing

    def _read(self, root_tree_id: bytes) -> dict[bytes, bytes]:
        tree_id = root_tree_id
        try:
            if self._subpath:
                mode, tree_id = self._handle.lookup_path(root_tree_id, self._subpath)
                if not stat.S_ISDIR(mode):
                    return {}
            tree = self._handle.get_tree(tree_id)
        except (KeyError, PathNotFound):
            return {}
        return {entry.path: entry.sha for entry in tree.iteritems()}


class TreeProjector:
    """Builds annotated listings of directories on a ref."""

    def __init__(
        self,
        handle: RepositoryHandle,
        walker: HistoryWalker | None = None,
        scan_policy: str = SCAN_LAST_MODIFIED,
    ) -> None:
        if scan_policy not in ALL_SCAN_POLICIES:
            raise ValueError(f"Unknown scan policy {scan_policy}")
        self._handle = handle
        self._walker = walker or HistoryWalker(handle)
        self.scan_policy = scan_policy

    def resolve_tree(self, resolved: ResolvedRef, subpath: str) -> bytes:
        """Find the tree at subpath on a resolved ref.

        Returns: Id of the tree
        Raises:
          PathNotFound: if there is nothing at subpath
          WrongKindError: if subpath is a file
        """
        commit = self._handle.get_commit(resolved.commit_id)
        if not subpath:
            return commit.tree
        mode, sha = self._handle.lookup_path(commit.tree, subpath)
        if stat.S_ISDIR(mode):
            return sha
        if S_ISGITLINK(mode):
            raise PathNotFound(subpath)
        raise WrongKindError(KIND_BLOB, resolved.name, subpath)

    def resolve_blob(self, resolved: ResolvedRef, path: str) -> BlobSnapshot:
        """Read the file at path on a resolved ref.

        Raises:
          PathNotFound: if there is no file at path
          WrongKindError: if path is a directory
        """
        if not path:
            raise WrongKindError(KIND_TREE, resolved.name, path)
        commit = self._handle.get_commit(resolved.commit_id)
        mode, sha = self._handle.lookup_path(commit.tree, path)
        if stat.S_ISDIR(mode):
            raise WrongKindError(KIND_TREE, resolved.name, path)
        if S_ISGITLINK(mode):
            raise PathNotFound(path)
        try:
            blob = self._handle.get_blob(sha)
        except KeyError as exc:
            raise PathNotFound(path) from exc
        return BlobSnapshot(resolved.name, path, sha, blob.as_raw_string(), self._handle.url)

    def project(self, resolved: ResolvedRef, subpath: str, tree_id: bytes) -> TreeSnapshot:
        """Build the annotated listing of a directory.

        Args:
          resolved: The ref the directory was read from
          subpath: Path of the directory within the ref's root tree
          tree_id: Id of the directory's tree
        Returns: A TreeSnapshot
        Raises:
          PathNotFound: if the tree can't be read
          HistoryUnavailable: if the ref's history can't be walked
        """
        subpath = subpath.strip("/")
        try:
            tree = self._handle.get_tree(tree_id)
        except KeyError as exc:
            raise PathNotFound(subpath) from exc
        history = self._walker.walk(resolved.commit_id)
        index = _DirectoryIndex(self._handle, subpath)
        repo_url = self._handle.url

        entries = []
        for item in tree.iteritems():
            if stat.S_ISDIR(item.mode):
                kind = KIND_TREE
            elif S_ISGITLINK(item.mode):
                logger.debug("Skipping submodule %r in %s", item.path, subpath or "/")
                continue
            else:
                kind = KIND_BLOB
            name = item.path.decode("utf-8", "replace")
            last_commit = self._last_commit(history, index, item.path, item.sha)
            entries.append(
                AnnotatedEntry(
                    name,
                    kind,
                    item.sha,
                    item.mode,
                    last_commit=last_commit,
                    url=entry_url(repo_url, kind, resolved.name, subpath, name),
                )
            )
        entries.sort(key=AnnotatedEntry.sort_key)
        return TreeSnapshot(resolved.name, subpath, repo_url, entries)

    def _last_commit(
        self,
        history: Sequence[CommitInfo],
        index: _DirectoryIndex,
        name: bytes,
        sha: bytes,
    ) -> CommitInfo | None:
        if self.scan_policy == SCAN_EARLIEST_MATCH:
            return _earliest_match(history, index, name, sha)
        return _last_modified(history, index, name, sha)


def _earliest_match(
    history: Sequence[CommitInfo], index: _DirectoryIndex, name: bytes, sha: bytes
) -> CommitInfo | None:
    for commit in reversed(history):
        if index.listing(commit).get(name) == sha:
            return commit
    return None


def _last_modified(
    history: Sequence[CommitInfo], index: _DirectoryIndex, name: bytes, sha: bytes
) -> CommitInfo | None:
    by_id = {commit.id: commit for commit in history}
    for commit in history:
        if index.listing(commit).get(name) != sha:
            continue
        inherited = any(
            index.listing(by_id[parent]).get(name) == sha
            for parent in commit.parents
            if parent in by_id
        )
        if not inherited:
            return commit
    return None


def find_readme(handle: RepositoryHandle, snapshot: TreeSnapshot) -> str | None:
    """Return the text of the directory's readme, if it has one.

    The first blob in listing order whose name is one of README_NAMES wins,
    so "readme" comes before "README.md". A readme that is not valid UTF-8
    counts as no readme.
    """
    for entry in snapshot.entries:
        if entry.kind != KIND_BLOB or entry.name not in README_NAMES:
            continue
        try:
            return handle.get_blob(entry.id).as_raw_string().decode("utf-8")
        except KeyError:
            logger.warning("Readme %s is missing from the object store", entry.name)
            return None
        except UnicodeDecodeError:
            return None
    return None
