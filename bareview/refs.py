# refs.py -- Splitting request paths into a ref and a subpath
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

"""Resolution of (ref, path segments) pairs.

A ref name always occupies exactly one URL segment. A branch called
"feature/x" therefore can't be addressed: "feature" is looked up as the ref
and "x/..." becomes the subpath.
"""

__all__ = [
    "RefListing",
    "RefPathResolver",
    "ResolvedRef",
    "join_segments",
    "shorthand",
]

from collections.abc import Sequence
from typing import NamedTuple

from dulwich.objects import Commit
from dulwich.objectspec import parse_ref
from dulwich.refs import (
    HEADREF,
    LOCAL_BRANCH_PREFIX,
    LOCAL_TAG_PREFIX,
    check_ref_format,
    shorten_ref_name,
)

from . import log_utils
from .errors import RefNotFound
from .store import RepositoryHandle

logger = log_utils.getLogger(__name__)

REFS_PREFIX = b"refs/"


class ResolvedRef(NamedTuple):
    """A ref name resolved to a commit at the start of a request.

    Attributes:
      name: Short name used in URLs (e.g. "main")
      ref: Full name of the ref that matched (e.g. b"refs/heads/main")
      commit_id: Id of the commit the ref peels to
    """

    name: str
    ref: bytes
    commit_id: bytes


class RefListing(NamedTuple):
    """Short names of a repository's tags and branches."""

    tags: list[str]
    branches: list[str]


def shorthand(refname: bytes) -> str:
    """Convert a full ref name to the short form used in URLs.

    >>> shorthand(b"refs/heads/main")
    'main'
    >>> shorthand(b"refs/tags/v1.0")
    'v1.0'
    """
    short = shorten_ref_name(refname)
    # Refs outside heads/tags/remotes, such as notes, lose just "refs/".
    if short.startswith(REFS_PREFIX):
        short = short[len(REFS_PREFIX) :]
    return short.decode("utf-8", "replace")


def join_segments(path_segments: Sequence[str] | None) -> str:
    """Join URL path segments into a tree path, dropping empty segments."""
    if not path_segments:
        return ""
    return "/".join(segment for segment in path_segments if segment)


class RefPathResolver:
    """Resolves refs by short name against one repository."""

    def __init__(self, handle: RepositoryHandle) -> None:
        self._handle = handle

    def default_ref_name(self) -> str:
        """Short name of the ref HEAD points at.

        Raises:
          RefNotFound: if HEAD does not resolve, e.g. in an empty repository
        """
        target = self._handle.head_target()
        if target is None:
            raise RefNotFound(HEADREF.decode("ascii"))
        return shorthand(target)

    def resolve_ref(self, ref_name: str | None = None) -> ResolvedRef:
        """Resolve a short ref name to the commit it points at.

        Args:
          ref_name: Short name of a branch or tag, or None for HEAD
        Returns: A ResolvedRef
        Raises:
          RefNotFound: if no ref matches or it does not end at a commit
        """
        if ref_name is None:
            ref_name = self.default_ref_name()
        encoded = ref_name.encode("utf-8")
        if not encoded or not check_ref_format(LOCAL_BRANCH_PREFIX + encoded):
            raise RefNotFound(ref_name)
        try:
            ref = parse_ref(self._handle.repo.refs, encoded)
        except KeyError as exc:
            raise RefNotFound(ref_name) from exc
        sha = self._handle.read_ref(ref)
        if sha is None:
            raise RefNotFound(ref_name)
        try:
            commit_id = self._handle.peel(sha)
            obj = self._handle.get_object(commit_id)
        except KeyError as exc:
            logger.warning("Ref %r points at missing object %r", ref, sha)
            raise RefNotFound(ref_name) from exc
        if not isinstance(obj, Commit):
            raise RefNotFound(ref_name)
        return ResolvedRef(ref_name, ref, commit_id)

    def resolve(
        self,
        ref_name: str | None,
        path_segments: Sequence[str] | None = None,
    ) -> tuple[ResolvedRef, str]:
        """Split a request into its ref and its subpath.

        Args:
          ref_name: The single segment naming the ref, or None for HEAD
          path_segments: Remaining segments of the request path
        Returns: tuple with the ResolvedRef and the "/"-joined subpath
        Raises:
          RefNotFound: if the ref does not exist
        """
        return self.resolve_ref(ref_name), join_segments(path_segments)

    def list_refs(self) -> RefListing:
        """Short names of all tags and branches, each sorted by name."""
        tags = self._handle.refs_under(LOCAL_TAG_PREFIX.rstrip(b"/"))
        branches = self._handle.refs_under(LOCAL_BRANCH_PREFIX.rstrip(b"/"))
        return RefListing(
            sorted(name.decode("utf-8", "replace") for name in tags),
            sorted(name.decode("utf-8", "replace") for name in branches),
        )
