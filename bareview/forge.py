# forge.py -- Page operations over a directory of bare repositories
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

"""Page operations over a directory of bare repositories.

Repositories live at ``<root>/<user>/<project>.git``. Each operation opens the
repository it needs, builds its result and closes the repository again, so a
Forge can be shared between threads.
"""

__all__ = [
    "CommitPage",
    "Forge",
    "RepositorySummary",
    "TreePage",
    "UserListing",
]

import datetime
import functools
import os
from collections.abc import Callable, Sequence
from typing import NamedTuple, TypeVar

from . import log_utils
from .config import ForgeConfig
from .diff import DiffEngine, FilePatch
from .errors import NotFoundError, RepositoryNotFound, UserNotFound, WrongKindError
from .log import LogProjector
from .objects import KIND_RAW, CommitInfo
from .outcome import Found, NotFound, Outcome, WrongKindRedirect, canonical_path
from .refs import RefPathResolver
from .store import RepositoryHandle
from .tree import BlobSnapshot, TreeProjector, TreeSnapshot, find_readme
from .walk import HistoryWalker

logger = log_utils.getLogger(__name__)

REPOSITORY_SUFFIX = ".git"

F = TypeVar("F", bound=Callable[..., Outcome])


class RepositorySummary(NamedTuple):
    """A repository as shown in listings."""

    user_name: str
    name: str
    description: str | None
    last_update: datetime.datetime | None

    @classmethod
    def from_handle(cls, handle: RepositoryHandle) -> "RepositorySummary":
        return cls(handle.user_name, handle.name, handle.description, handle.last_update())

    @property
    def url(self) -> str:
        return f"/{self.user_name}/{self.name}"


class UserListing(NamedTuple):
    name: str
    repositories: list[RepositorySummary]


class TreePage(NamedTuple):
    repository: RepositorySummary
    snapshot: TreeSnapshot
    readme: str | None


class CommitPage(NamedTuple):
    """A commit with the patches it introduces.

    Attributes:
      repository: The repository the commit was read from
      commit: The commit
      parent: Its first parent, or None for a root commit
      patches: One FilePatch per file touched
    """

    repository: RepositorySummary
    commit: CommitInfo
    parent: CommitInfo | None
    patches: list[FilePatch]


def _valid_name(name: str) -> bool:
    return bool(name) and not (
        name.startswith(".") or "/" in name or os.sep in name or "\0" in name
    )


def _by_last_update(summary: RepositorySummary) -> tuple[bool, float]:
    if summary.last_update is None:
        return (True, 0.0)
    return (False, -summary.last_update.timestamp())


def _outcome(func: F) -> F:
    """Turn NotFoundError raised by an operation into a NotFound outcome."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except NotFoundError as exc:
            logger.debug("%s: %s", func.__name__, exc)
            return NotFound(str(exc))

    return wrapper  # type: ignore[return-value]


def _redirect(handle: RepositoryHandle, exc: WrongKindError) -> WrongKindRedirect:
    return WrongKindRedirect(
        exc.kind,
        canonical_path(handle.user_name, handle.name, exc.kind, exc.ref_name, exc.path),
    )


class Forge:
    """Answers page requests from the repositories under a root directory."""

    def __init__(self, config: ForgeConfig) -> None:
        self.config = config

    def user_path(self, user_name: str) -> str:
        """Directory holding the repositories of a user.

        Raises:
          UserNotFound: if the name is not a valid user name
        """
        if not _valid_name(user_name):
            raise UserNotFound(user_name)
        return os.path.join(self.config.root, user_name)

    def repository_path(self, user_name: str, project_name: str) -> str:
        """Directory of a bare repository.

        Raises:
          RepositoryNotFound: if either name is not valid
        """
        if not _valid_name(user_name) or not _valid_name(project_name):
            raise RepositoryNotFound(user_name, project_name)
        return os.path.join(
            self.config.root, user_name, project_name + REPOSITORY_SUFFIX
        )

    def open_project(self, user_name: str, project_name: str) -> RepositoryHandle:
        """Open a repository for the duration of one operation.

        Raises:
          RepositoryNotFound: if there is no such repository
        """
        path = self.repository_path(user_name, project_name)
        if not os.path.isdir(path):
            raise RepositoryNotFound(user_name, project_name)
        return RepositoryHandle.open(path, user_name)

    def _user_repositories(self, user_name: str) -> list[RepositorySummary]:
        user_path = self.user_path(user_name)
        try:
            names = sorted(os.listdir(user_path))
        except OSError as exc:
            raise UserNotFound(user_name) from exc
        summaries = []
        for name in names:
            if name.startswith("."):
                continue
            path = os.path.join(user_path, name)
            if not os.path.isdir(path):
                continue
            if not name.endswith(REPOSITORY_SUFFIX):
                logger.info("Skipping %s: no %s suffix", path, REPOSITORY_SUFFIX)
                continue
            try:
                handle = RepositoryHandle.open(path, user_name)
            except RepositoryNotFound:
                logger.info("Skipping %s: not a git repository", path)
                continue
            with handle:
                summaries.append(RepositorySummary.from_handle(handle))
        return summaries

    @_outcome
    def root(self) -> Outcome:
        """List the repositories of all users, most recently updated first.

        Repositories whose HEAD can't be read come last.
        """
        try:
            users = sorted(os.listdir(self.config.root))
        except OSError as exc:
            logger.warning("Unable to list repository root %s: %s", self.config.root, exc)
            return Found([])
        summaries = []
        for user_name in users:
            if not _valid_name(user_name):
                continue
            if not os.path.isdir(os.path.join(self.config.root, user_name)):
                continue
            try:
                summaries.extend(self._user_repositories(user_name))
            except UserNotFound as exc:
                logger.warning("Skipping user %s: %s", user_name, exc.__cause__)
        summaries.sort(key=_by_last_update)
        return Found(summaries)

    @_outcome
    def user(self, user_name: str) -> Outcome:
        """List the repositories of one user, sorted by name."""
        return Found(UserListing(user_name, self._user_repositories(user_name)))

    def project(self, user_name: str, project_name: str) -> Outcome:
        """The root directory of a repository's HEAD."""
        return self.tree(user_name, project_name)

    @_outcome
    def tree(
        self,
        user_name: str,
        project_name: str,
        ref_name: str | None = None,
        path_segments: Sequence[str] | None = None,
    ) -> Outcome:
        """A directory of a ref, with each entry's last commit and any readme."""
        with self.open_project(user_name, project_name) as handle:
            resolved, subpath = RefPathResolver(handle).resolve(ref_name, path_segments)
            projector = TreeProjector(
                handle, HistoryWalker(handle), scan_policy=self.config.scan_policy
            )
            try:
                tree_id = projector.resolve_tree(resolved, subpath)
            except WrongKindError as exc:
                return _redirect(handle, exc)
            snapshot = projector.project(resolved, subpath, tree_id)
            return Found(
                TreePage(
                    RepositorySummary.from_handle(handle),
                    snapshot,
                    find_readme(handle, snapshot),
                )
            )

    @_outcome
    def blob(
        self,
        user_name: str,
        project_name: str,
        ref_name: str | None = None,
        path_segments: Sequence[str] | None = None,
    ) -> Outcome:
        """A text file of a ref.

        Files that are not valid UTF-8 redirect to the raw page.
        """
        with self.open_project(user_name, project_name) as handle:
            resolved, path = RefPathResolver(handle).resolve(ref_name, path_segments)
            try:
                snapshot = TreeProjector(handle).resolve_blob(resolved, path)
            except WrongKindError as exc:
                return _redirect(handle, exc)
            try:
                snapshot.text
            except UnicodeDecodeError:
                return _redirect(handle, WrongKindError(KIND_RAW, resolved.name, path))
            return Found(snapshot)

    @_outcome
    def raw(
        self,
        user_name: str,
        project_name: str,
        ref_name: str | None = None,
        path_segments: Sequence[str] | None = None,
    ) -> Outcome:
        """The bytes of a file of a ref."""
        with self.open_project(user_name, project_name) as handle:
            resolved, path = RefPathResolver(handle).resolve(ref_name, path_segments)
            try:
                snapshot: BlobSnapshot = TreeProjector(handle).resolve_blob(resolved, path)
            except WrongKindError as exc:
                return _redirect(handle, exc)
            return Found(snapshot)

    @_outcome
    def log(
        self,
        user_name: str,
        project_name: str,
        ref_name: str | None = None,
        path_segments: Sequence[str] | None = None,
    ) -> Outcome:
        """The history of a ref, newest first.

        Log pages cover the whole tree; path segments are accepted and ignored.
        """
        with self.open_project(user_name, project_name) as handle:
            return Found(
                LogProjector(handle).log(ref_name, max_entries=self.config.log_limit)
            )

    @_outcome
    def commit(self, user_name: str, project_name: str, commit_id: str) -> Outcome:
        """A commit and the patches against its first parent."""
        with self.open_project(user_name, project_name) as handle:
            commit, parent = LogProjector(handle).commit(commit_id)
            patches = DiffEngine(handle).diff(parent, commit)
            return Found(
                CommitPage(RepositorySummary.from_handle(handle), commit, parent, patches)
            )

    @_outcome
    def refs(self, user_name: str, project_name: str) -> Outcome:
        """The tags and branches of a repository."""
        with self.open_project(user_name, project_name) as handle:
            return Found(RefPathResolver(handle).list_refs())
