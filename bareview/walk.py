# walk.py -- Ordered commit history for a starting commit
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

"""Ordered commit history for a starting commit."""

__all__ = ["HistoryWalker"]

from dulwich.errors import MissingCommitError, ObjectFormatException
from dulwich.walk import ORDER_TOPO

from . import log_utils
from .errors import HistoryUnavailable
from .objects import CommitInfo
from .store import RepositoryHandle

logger = log_utils.getLogger(__name__)


class HistoryWalker:
    """Lists the commits reachable from a commit, children before parents.

    Every reachable commit shows up exactly once. The whole history is read
    before anything is returned, so callers either get all of it or an
    exception.
    """

    def __init__(self, handle: RepositoryHandle) -> None:
        self._handle = handle

    def walk(
        self,
        start_commit_id: bytes,
        reverse: bool = False,
        max_entries: int | None = None,
    ) -> list[CommitInfo]:
        """Walk the history of a commit in topological order.

        Args:
          start_commit_id: Id of the commit to start from
          reverse: If True, return the oldest commit first
          max_entries: Maximum number of commits, counted from the newest
        Returns: list of CommitInfo
        Raises:
          HistoryUnavailable: if a commit on the way can't be read
        """
        try:
            # The repository's walker honours grafts and shallow boundaries.
            walker = self._handle.repo.get_walker(
                include=[start_commit_id],
                order=ORDER_TOPO,
                max_entries=max_entries,
            )
            commits = [CommitInfo.from_commit(entry.commit) for entry in walker]
        except (KeyError, MissingCommitError, ObjectFormatException) as exc:
            logger.warning(
                "Unable to walk history of %s: %s",
                start_commit_id.decode("ascii", "replace"),
                exc,
            )
            raise HistoryUnavailable(start_commit_id, str(exc)) from exc
        if not commits:
            raise HistoryUnavailable(start_commit_id, "not a commit")
        if reverse:
            commits.reverse()
        logger.debug(
            "Walked %d commits from %s",
            len(commits),
            start_commit_id.decode("ascii", "replace"),
        )
        return commits
