# errors.py -- Exceptions raised while resolving requests
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

"""bareview exception classes.

Everything the projection engine can fail with is some flavour of "not
found". WrongKindError is the odd one out: it is raised when a path resolved
to an object of another kind than the caller asked for, and gets turned into
a redirect rather than an error page.
"""


class NotFoundError(Exception):
    """Base class for a repository, ref, path or commit that can't be resolved."""


class UserNotFound(NotFoundError):
    """Indicates that there is no directory for a user under the root."""

    def __init__(self, user_name: str) -> None:
        """Initialize a UserNotFound exception.

        Args:
            user_name: Name of the missing user.
        """
        self.user_name = user_name
        NotFoundError.__init__(self, f"no such user: {user_name}")


class RepositoryNotFound(NotFoundError):
    """Indicates that a user has no repository with the given name."""

    def __init__(self, user_name: str, project_name: str) -> None:
        """Initialize a RepositoryNotFound exception.

        Args:
            user_name: Name of the user owning the repository.
            project_name: Name of the repository, without ".git".
        """
        self.user_name = user_name
        self.project_name = project_name
        NotFoundError.__init__(self, f"no such repository: {user_name}/{project_name}")


class RefNotFound(NotFoundError):
    """Indicates that a ref name did not resolve to a commit."""

    def __init__(self, ref_name: str) -> None:
        """Initialize a RefNotFound exception.

        Args:
            ref_name: The ref name as it was requested.
        """
        self.ref_name = ref_name
        NotFoundError.__init__(self, f"no such ref: {ref_name}")


class PathNotFound(NotFoundError):
    """Indicates that a path does not exist in a tree."""

    def __init__(self, path: str) -> None:
        """Initialize a PathNotFound exception.

        Args:
            path: The path that could not be looked up.
        """
        self.path = path
        NotFoundError.__init__(self, f"no such path: {path}")


class CommitNotFound(NotFoundError):
    """Indicates that an id does not name a commit in the object store."""

    def __init__(self, commit_id: str | bytes) -> None:
        """Initialize a CommitNotFound exception.

        Args:
            commit_id: The requested commit id.
        """
        if isinstance(commit_id, bytes):
            commit_id = commit_id.decode("ascii", "replace")
        self.commit_id = commit_id
        NotFoundError.__init__(self, f"no such commit: {commit_id}")


class HistoryUnavailable(NotFoundError):
    """Indicates that the history of a commit could not be read completely."""

    def __init__(self, commit_id: bytes, reason: str) -> None:
        """Initialize a HistoryUnavailable exception.

        Args:
            commit_id: The commit the walk started from.
            reason: Description of the underlying failure.
        """
        self.commit_id = commit_id
        NotFoundError.__init__(
            self, f"history of {commit_id.decode('ascii', 'replace')} is unreadable: {reason}"
        )


class WrongKindError(Exception):
    """A path resolved to an object of an unexpected kind.

    Attributes:
      kind: The kind of view that can show the object ("tree", "blob" or "raw")
      ref_name: Short name of the ref the path was resolved against
      path: The path within the tree
    """

    def __init__(self, kind: str, ref_name: str, path: str) -> None:
        """Initialize a WrongKindError.

        Args:
            kind: The kind of view that should be used instead.
            ref_name: Short name of the ref the path was resolved against.
            path: The path within the tree.
        """
        self.kind = kind
        self.ref_name = ref_name
        self.path = path
        Exception.__init__(self, f"{path} at {ref_name} should be viewed as {kind}")
