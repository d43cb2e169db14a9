# store.py -- Read-only access to one repository's object store
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

"""Read-only access to one repository's object store.

A RepositoryHandle is opened for a single request and closed afterwards.
Nothing in here writes to the repository.
"""

__all__ = [
    "DEFAULT_DESCRIPTION_PREFIX",
    "RepositoryHandle",
    "project_name_from_path",
]

import datetime
import os
from types import TracebackType

from dulwich.errors import NotGitRepository, NotTreeError, ObjectFormatException
from dulwich.object_store import peel_sha, tree_lookup_path
from dulwich.objects import Blob, Commit, ShaFile, Tree
from dulwich.refs import SymrefLoop
from dulwich.repo import BaseRepo, Repo

from . import log_utils
from .errors import CommitNotFound, PathNotFound, RepositoryNotFound
from .objects import CommitInfo

logger = log_utils.getLogger(__name__)

# git and dulwich both write a description starting with this into every new
# repository.
DEFAULT_DESCRIPTION_PREFIX = "Unnamed repository"


def project_name_from_path(path: str) -> str:
    """Derive the project name from a bare repository directory.

    >>> project_name_from_path("/srv/git/alice/widgets.git")
    'widgets'
    """
    name = os.path.basename(path.rstrip(os.sep))
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def _decode_description(description: bytes | None) -> str | None:
    if not description:
        return None
    text = description.decode("utf-8", "replace").strip()
    if not text or text.startswith(DEFAULT_DESCRIPTION_PREFIX):
        return None
    return text


class RepositoryHandle:
    """Read-only handle onto a repository's commits, trees, blobs and refs.

    Attributes:
      repo: The underlying dulwich repository
      user_name: Name of the user the repository belongs to
      name: Name of the project, without the ".git" suffix
      description: Contents of the description file, if any
    """

    def __init__(
        self,
        repo: BaseRepo,
        user_name: str,
        name: str,
        description: str | None = None,
    ) -> None:
        self.repo = repo
        self.user_name = user_name
        self.name = name
        self.description = description

    @classmethod
    def open(cls, path: str, user_name: str) -> "RepositoryHandle":
        """Open the bare repository at path.

        Args:
          path: Path to the bare repository directory
          user_name: Name of the user owning it
        Returns: A RepositoryHandle
        Raises:
          RepositoryNotFound: if there is no bare git repository at path
        """
        name = project_name_from_path(path)
        try:
            # Layout detection rejects directories without objects/ and refs/.
            repo = Repo(path)
        except (NotGitRepository, OSError) as exc:
            raise RepositoryNotFound(user_name, name) from exc
        if not repo.bare:
            repo.close()
            raise RepositoryNotFound(user_name, name)
        logger.debug("Opened repository %s for %s", path, user_name)
        return cls(repo, user_name, name, _decode_description(repo.get_description()))

    def close(self) -> None:
        self.repo.close()

    def __enter__(self) -> "RepositoryHandle":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.user_name}/{self.name}>"

    @property
    def object_store(self):
        return self.repo.object_store

    @property
    def url(self) -> str:
        return f"/{self.user_name}/{self.name}"

    def head_target(self) -> bytes | None:
        """Return the full name of the ref HEAD points at.

        Returns: e.g. b"refs/heads/main", b"HEAD" for a detached HEAD, or
            None if HEAD is missing or dangling
        """
        try:
            names, sha = self.repo.refs.follow(b"HEAD")
        except (KeyError, ValueError, SymrefLoop):
            return None
        if sha is None:
            return None
        return names[-1]

    def read_ref(self, name: bytes) -> bytes | None:
        """Return the object id a ref points at, following symbolic refs."""
        try:
            return self.repo.refs[name]
        except (KeyError, SymrefLoop):
            return None

    def refs_under(self, prefix: bytes) -> dict[bytes, bytes]:
        """Return refs under prefix, keyed by the name with prefix removed."""
        return dict(self.repo.refs.as_dict(prefix))

    def get_object(self, sha: bytes) -> ShaFile:
        """Retrieve an object by id.

        Raises:
          KeyError: if the object is not in the store
        """
        return self.repo.object_store[sha]

    def peel(self, sha: bytes) -> bytes:
        """Follow annotated tags until something that is not a tag.

        Raises:
          KeyError: if an object on the way is missing
        """
        _, peeled = peel_sha(self.repo.object_store, sha)
        return peeled.id

    def get_commit(self, sha: bytes) -> CommitInfo:
        """Read a commit from the store.

        Raises:
          CommitNotFound: if sha is missing, malformed or not a commit
        """
        try:
            obj = self.get_object(sha)
        except (KeyError, ValueError, ObjectFormatException) as exc:
            raise CommitNotFound(sha) from exc
        if not isinstance(obj, Commit):
            raise CommitNotFound(sha)
        return CommitInfo.from_commit(obj)

    def parents(self, sha: bytes) -> list[bytes]:
        """Parents of a commit as the repository sees them.

        Grafts replace a commit's parents and commits on a shallow boundary
        have none.

        Raises:
          KeyError: if the commit is missing from the store
        """
        return list(self.repo.get_parents(sha))

    def get_tree(self, sha: bytes) -> Tree:
        """Read a tree from the store.

        Raises:
          KeyError: if sha is missing or not a tree
        """
        obj = self.get_object(sha)
        if not isinstance(obj, Tree):
            raise KeyError(sha)
        return obj

    def get_blob(self, sha: bytes) -> Blob:
        """Read a blob from the store.

        Raises:
          KeyError: if sha is missing or not a blob
        """
        obj = self.get_object(sha)
        if not isinstance(obj, Blob):
            raise KeyError(sha)
        return obj

    def lookup_path(self, tree_id: bytes, path: str) -> tuple[int, bytes]:
        """Look up a "/"-separated path below a tree.

        Args:
          tree_id: Id of the root tree
          path: Path relative to that tree
        Returns: tuple with (mode, sha) of the object at path
        Raises:
          PathNotFound: if some component of path does not exist
        """
        try:
            return tree_lookup_path(
                self.repo.object_store.__getitem__, tree_id, path.encode("utf-8")
            )
        except (KeyError, NotTreeError) as exc:
            raise PathNotFound(path) from exc

    def last_update(self) -> datetime.datetime | None:
        """Commit time of the commit HEAD points at, if any."""
        sha = self.read_ref(b"HEAD")
        if sha is None:
            return None
        try:
            commit = self.get_commit(self.peel(sha))
        except (KeyError, CommitNotFound):
            return None
        return commit.datetime
