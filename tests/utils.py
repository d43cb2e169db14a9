# utils.py -- Test utilities for bareview.
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

"""Utility functions common to bareview tests."""

import os

from dulwich.index import commit_tree
from dulwich.objects import Blob, Commit
from dulwich.repo import BaseRepo, MemoryRepo, Repo

from bareview.store import RepositoryHandle

# Plain files should be created with this mode by default.
F = 0o100644
# Submodule entries.
GITLINK = 0o160000

# 2010-01-01 00:00:00 UTC
DEFAULT_TIME = 1262304000


def make_object(cls, **attrs):
    """Make an object for testing and assign some members.

    Args:
      cls: The class the object should be an instance of.
      attrs: dict of attributes to set on the new object.
    Returns: A newly initialized object of type cls.
    """
    obj = cls()
    for name, value in attrs.items():
        setattr(obj, name, value)
    return obj


def make_commit(**attrs) -> Commit:
    """Make a Commit object with a default set of members.

    Args:
      attrs: dict of attributes to overwrite from the default values.
    Returns: A newly initialized Commit object.
    """
    all_attrs = {
        "author": b"Test Author <test@nodomain.com>",
        "author_time": DEFAULT_TIME,
        "author_timezone": 0,
        "committer": b"Test Committer <test@nodomain.com>",
        "commit_time": DEFAULT_TIME,
        "commit_timezone": 0,
        "message": b"Test message.",
        "parents": [],
        "tree": b"0" * 40,
    }
    all_attrs.update(attrs)
    return make_object(Commit, **all_attrs)


def make_tree(object_store, contents) -> bytes:
    """Store a tree built from a path to contents mapping.

    Args:
      object_store: Store to add the blobs and trees to
      contents: dict of path -> bytes, or path -> (bytes, mode). A mode of
        GITLINK takes a commit id instead of contents.
    Returns: Id of the root tree
    """
    entries = []
    for path, value in contents.items():
        if isinstance(value, tuple):
            data, mode = value
        else:
            data, mode = value, F
        if mode == GITLINK:
            entries.append((path, data, mode))
            continue
        blob = Blob.from_string(data)
        object_store.add_object(blob)
        entries.append((path, blob.id, mode))
    return commit_tree(object_store, entries)


def build_commit_graph(object_store, commit_spec, trees=None, attrs=None) -> list[Commit]:
    """Build a commit graph from a concise specification.

    Args:
      object_store: An ObjectStore to commit objects to.
      commit_spec: An iterable of iterables of ints defining the commit
        graph. Each entry defines one commit, and entries must be in
        topological order. The first element of each entry is a commit number,
        and the remaining elements are its parents.
      trees: An optional dict of commit number -> contents as accepted by
        make_tree. Commits without an entry get an empty tree.
      attrs: A dict of commit number -> (dict of attribute -> value) for
        assigning additional values to the commits.
    Returns: The list of commit objects created.
    Raises:
      ValueError: If an undefined commit identifier is listed as a parent.
    """
    if trees is None:
        trees = {}
    if attrs is None:
        attrs = {}
    commit_time = DEFAULT_TIME
    nums = {}
    commits = []

    for commit in commit_spec:
        commit_num = commit[0]
        try:
            parent_ids = [nums[pn] for pn in commit[1:]]
        except KeyError as e:
            (missing_parent,) = e.args
            raise ValueError(f"Unknown parent {missing_parent}") from e

        commit_attrs = {
            "message": f"Commit {commit_num}".encode("ascii"),
            "parents": parent_ids,
            "tree": make_tree(object_store, trees.get(commit_num, {})),
            "commit_time": commit_time,
        }
        commit_attrs.update(attrs.get(commit_num, {}))
        commit_obj = make_commit(**commit_attrs)

        commit_time = commit_attrs["commit_time"] + 100
        nums[commit_num] = commit_obj.id
        object_store.add_object(commit_obj)
        commits.append(commit_obj)

    return commits


def build_history(object_store, contents, attrs=None) -> list[Commit]:
    """Build a linear history, one commit per entry of contents.

    Returns: The commits, oldest first.
    """
    spec = [[1]] + [[n, n - 1] for n in range(2, len(contents) + 1)]
    trees = {n: tree for n, tree in enumerate(contents, 1)}
    return build_commit_graph(object_store, spec, trees=trees, attrs=attrs)


def point_branch(repo: BaseRepo, commit: Commit, branch: bytes = b"master") -> None:
    """Point a branch at commit and HEAD at the branch."""
    repo.refs[b"refs/heads/" + branch] = commit.id
    repo.refs.set_symbolic_ref(b"HEAD", b"refs/heads/" + branch)


def memory_handle(
    user_name: str = "alice", name: str = "widgets"
) -> tuple[MemoryRepo, RepositoryHandle]:
    """Create an empty in-memory repository with a handle onto it."""
    repo = MemoryRepo()
    return repo, RepositoryHandle(repo, user_name, name)


def make_bare_repo(
    root: str, user_name: str, project_name: str, description: bytes | None = None
) -> Repo:
    """Create <root>/<user>/<project>.git as an empty bare repository.

    The caller is responsible for closing the returned repository.
    """
    user_dir = os.path.join(root, user_name)
    if not os.path.isdir(user_dir):
        os.mkdir(user_dir)
    repo = Repo.init_bare(os.path.join(user_dir, project_name + ".git"), mkdir=True)
    if description is not None:
        repo.set_description(description)
    return repo
