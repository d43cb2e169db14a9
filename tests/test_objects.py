# test_objects.py -- tests for bareview.objects
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

"""Tests for bareview.objects."""

import datetime

from bareview.objects import CommitInfo, Identity, commit_encoding

from . import TestCase
from .utils import DEFAULT_TIME, make_commit


class IdentityTests(TestCase):
    def test_parse(self) -> None:
        self.assertEqual(
            Identity("Jane Doe", "jane@example.com"),
            Identity.parse(b"Jane Doe <jane@example.com>"),
        )

    def test_parse_without_email(self) -> None:
        self.assertEqual(Identity("Jane Doe", ""), Identity.parse(b"Jane Doe"))

    def test_parse_latin1(self) -> None:
        self.assertEqual(
            Identity("J\xf6rg", "j@example.com"),
            Identity.parse(b"J\xf6rg <j@example.com>", "iso8859-1"),
        )

    def test_str(self) -> None:
        self.assertEqual("A <a@b>", str(Identity("A", "a@b")))


class CommitEncodingTests(TestCase):
    def test_default(self) -> None:
        self.assertEqual("utf-8", commit_encoding(make_commit()))

    def test_declared(self) -> None:
        self.assertEqual("iso8859-1", commit_encoding(make_commit(encoding=b"latin1")))

    def test_unknown(self) -> None:
        self.assertEqual("utf-8", commit_encoding(make_commit(encoding=b"no-such-codec")))


class CommitInfoTests(TestCase):
    def test_from_commit(self) -> None:
        commit = make_commit(
            message=b"Fix the frobnicator\n\nIt was broken.\n",
            parents=[b"1" * 40],
            commit_timezone=3600,
        )
        info = CommitInfo.from_commit(commit)
        self.assertEqual(commit.id, info.id)
        self.assertEqual(b"0" * 40, info.tree)
        self.assertEqual((b"1" * 40,), info.parents)
        self.assertEqual(Identity("Test Author", "test@nodomain.com"), info.author)
        self.assertEqual(Identity("Test Committer", "test@nodomain.com"), info.committer)
        self.assertEqual("Fix the frobnicator\n\nIt was broken.\n", info.message)
        self.assertEqual("Fix the frobnicator", info.summary)

    def test_summary_skips_blank_lines(self) -> None:
        info = CommitInfo.from_commit(make_commit(message=b"\n\n  Subject  \nbody\n"))
        self.assertEqual("Subject", info.summary)

    def test_summary_empty_message(self) -> None:
        self.assertEqual("", CommitInfo.from_commit(make_commit(message=b"")).summary)

    def test_ids(self) -> None:
        commit = make_commit()
        info = CommitInfo.from_commit(commit)
        self.assertEqual(commit.id.decode("ascii"), info.hexid)
        self.assertEqual(commit.id.decode("ascii")[:7], info.short_id)

    def test_datetime(self) -> None:
        info = CommitInfo.from_commit(make_commit(commit_timezone=-5 * 3600))
        self.assertEqual(DEFAULT_TIME, info.datetime.timestamp())
        self.assertEqual(
            datetime.timedelta(hours=-5), info.datetime.utcoffset()
        )
