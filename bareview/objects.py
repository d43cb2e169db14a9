# objects.py -- Value types copied out of the object store
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

"""Value types copied out of the object store.

The projections never hold on to dulwich objects once a request is done;
commits are read into CommitInfo tuples that own their data.
"""

__all__ = [
    "ALL_KINDS",
    "KIND_BLOB",
    "KIND_RAW",
    "KIND_TREE",
    "CommitInfo",
    "Identity",
    "commit_encoding",
]

import codecs
import datetime
from typing import NamedTuple

from dulwich.objects import Commit

KIND_TREE = "tree"
KIND_BLOB = "blob"
# A blob that is served as raw bytes because it is not valid text.
KIND_RAW = "raw"

ALL_KINDS = (KIND_TREE, KIND_BLOB, KIND_RAW)


def commit_encoding(commit: Commit) -> str:
    """Return the Python codec name for a commit's message encoding.

    Commits without an encoding header, or with one Python does not know,
    are treated as UTF-8.
    """
    if commit.encoding:
        try:
            return codecs.lookup(commit.encoding.decode("ascii")).name
        except (LookupError, UnicodeDecodeError):
            pass
    return "utf-8"


class Identity(NamedTuple):
    """Name and email address of an author or committer."""

    name: str
    email: str

    @classmethod
    def parse(cls, identity: bytes, encoding: str = "utf-8") -> "Identity":
        """Parse a "Name <email>" identity line.

        Args:
          identity: Raw identity as stored in the commit
          encoding: Encoding of the commit
        Returns: An Identity; the email is empty if there are no brackets
        """
        text = identity.decode(encoding, "replace")
        name, sep, rest = text.partition("<")
        if not sep:
            return cls(text.strip(), "")
        return cls(name.strip(), rest.split(">", 1)[0].strip())

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class CommitInfo(NamedTuple):
    """A commit, detached from the repository it was read from."""

    id: bytes
    tree: bytes
    parents: tuple[bytes, ...]
    author: Identity
    committer: Identity
    author_time: int
    commit_time: int
    commit_timezone: int
    message: str

    @classmethod
    def from_commit(cls, commit: Commit) -> "CommitInfo":
        """Copy the fields of a dulwich Commit."""
        encoding = commit_encoding(commit)
        return cls(
            id=commit.id,
            tree=commit.tree,
            parents=tuple(commit.parents),
            author=Identity.parse(commit.author, encoding),
            committer=Identity.parse(commit.committer, encoding),
            author_time=commit.author_time,
            commit_time=commit.commit_time,
            commit_timezone=commit.commit_timezone,
            message=commit.message.decode(encoding, "replace"),
        )

    @property
    def summary(self) -> str:
        """First line of the commit message."""
        for line in self.message.splitlines():
            if line.strip():
                return line.strip()
        return ""

    @property
    def hexid(self) -> str:
        return self.id.decode("ascii")

    @property
    def short_id(self) -> str:
        return self.hexid[:7]

    @property
    def datetime(self) -> datetime.datetime:
        """Commit time in the committer's own timezone."""
        tz = datetime.timezone(datetime.timedelta(seconds=self.commit_timezone))
        return datetime.datetime.fromtimestamp(self.commit_time, tz)
