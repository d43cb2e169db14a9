# outcome.py -- Results of resolving a page request
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

"""Results of resolving a page request.

Every page operation ends in exactly one of Found, WrongKindRedirect or
NotFound.
"""

__all__ = [
    "Found",
    "NotFound",
    "Outcome",
    "WrongKindRedirect",
    "canonical_path",
]

from typing import Any, NamedTuple, Union

from .objects import ALL_KINDS


class Found(NamedTuple):
    value: Any


class WrongKindRedirect(NamedTuple):
    """The request should be repeated as another kind of page.

    Attributes:
      kind: "tree", "blob" or "raw"
      path: Absolute URL path of the page to redirect to
    """

    kind: str
    path: str


class NotFound(NamedTuple):
    reason: str


Outcome = Union[Found, WrongKindRedirect, NotFound]


def canonical_path(
    user_name: str, project_name: str, kind: str, ref_name: str, path: str
) -> str:
    """Build the URL path of a tree, blob or raw page.

    >>> canonical_path("alice", "widgets", "blob", "main", "src/app.py")
    '/alice/widgets/blob/main/src/app.py'
    """
    if kind not in ALL_KINDS:
        raise ValueError(f"Unknown kind {kind}")
    url = f"/{user_name}/{project_name}/{kind}/{ref_name}"
    path = path.strip("/")
    if path:
        url += "/" + path
    return url
