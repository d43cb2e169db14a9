# log.py -- Commit logs of refs
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

"""Commit logs of refs."""

__all__ = ["LogProjection", "LogProjector"]

from typing import NamedTuple

from dulwich.objects import valid_hexsha

from . import log_utils
from .errors import CommitNotFound
from .objects import CommitInfo
from .refs import RefPathResolver, ResolvedRef
from .store import RepositoryHandle
from .walk import HistoryWalker

logger = log_utils.getLogger(__name__)


class LogProjection(NamedTuple):
    """History of a ref, newest commit first."""

    ref: ResolvedRef
    commits: list[CommitInfo]

    @property
    def ref_name(self) -> str:
        return self.ref.name


class LogProjector:
    def __init__(
        self,
        handle: RepositoryHandle,
        resolver: RefPathResolver | None = None,
        walker: HistoryWalker | None = None,
    ) -> None:
        self._handle = handle
        self._resolver = resolver or RefPathResolver(handle)
        self._walker = walker or HistoryWalker(handle)

    def log(
        self, ref_name: str | None = None, max_entries: int | None = None
    ) -> LogProjection:
        """List the history of a ref.

        Args:
          ref_name: Short name of the ref, or None for HEAD
          max_entries: Maximum number of commits to list
        Returns: A LogProjection
        Raises:
          RefNotFound: if the ref does not resolve
          HistoryUnavailable: if the history can't be read
        """
        resolved = self._resolver.resolve_ref(ref_name)
        commits = self._walker.walk(resolved.commit_id, max_entries=max_entries)
        return LogProjection(resolved, commits)

    def commit(self, commit_id: str) -> tuple[CommitInfo, CommitInfo | None]:
        """Look up a commit and its first parent.

        Args:
          commit_id: Full hex id of the commit
        Returns: tuple with the commit and its first parent. The parent is
            None for a root commit, a commit on a shallow boundary, or a
            parent missing from the store.
        Raises:
          CommitNotFound: if commit_id is malformed or the commit is missing
        """
        commit_id = commit_id.lower()
        if not commit_id.isascii() or not valid_hexsha(commit_id.encode("ascii")):
            raise CommitNotFound(commit_id)
        commit = self._handle.get_commit(commit_id.encode("ascii"))
        parents = self._handle.parents(commit.id)
        if not parents:
            return commit, None
        try:
            parent = self._handle.get_commit(parents[0])
        except CommitNotFound:
            logger.warning(
                "Parent %s of %s is missing; showing %s as a root commit",
                parents[0].decode("ascii", "replace"),
                commit.hexid,
                commit.short_id,
            )
            return commit, None
        return commit, parent
