# web.py -- WSGI front end serving pages as JSON
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

"""WSGI front end serving pages as JSON.

URL shapes::

  /                                        all repositories
  /<user>                                  repositories of a user
  /<user>/<project>                        root directory of HEAD
  /<user>/<project>/tree[/<ref>[/<path>]]  directory
  /<user>/<project>/blob[/<ref>[/<path>]]  text file
  /<user>/<project>/raw[/<ref>[/<path>]]   file contents
  /<user>/<project>/log[/<ref>]            history
  /<user>/<project>/commit/<id>            commit with its patches
  /<user>/<project>/refs                   tags and branches
"""

__all__ = [
    "HTTP_ERROR",
    "HTTP_FOUND",
    "HTTP_NOT_FOUND",
    "HTTP_OK",
    "Blob",
    "Commit",
    "ForgeApplication",
    "ForgeRequest",
    "ForgeRequestHandler",
    "ForgeServer",
    "ForgeServerHandler",
    "SERVER_SOFTWARE",
    "Log",
    "Raw",
    "Refs",
    "Root",
    "Tree",
    "User",
    "decode_operation",
    "main",
    "make_wsgi_chain",
]

import argparse
import email.utils
import json
import re
import sys
import time
from collections.abc import Callable, Iterable, Sequence
from types import TracebackType
from typing import Any, ClassVar, NamedTuple, Union
from urllib.parse import quote
from wsgiref.simple_server import (
    ServerHandler,
    WSGIRequestHandler,
    WSGIServer,
    make_server,
)

from . import __version__, log_utils
from .config import load_config
from .diff import FilePatch
from .forge import CommitPage, Forge, RepositorySummary, TreePage, UserListing
from .log import LogProjection
from .objects import CommitInfo, Identity
from .outcome import Found, NotFound, Outcome, WrongKindRedirect
from .refs import RefListing
from .tree import ALL_SCAN_POLICIES, AnnotatedEntry, BlobSnapshot

logger = log_utils.getLogger(__name__)

WSGIEnvironment = dict[str, Any]
StartResponse = Callable[..., Callable[[bytes], object]]
WSGIApplication = Callable[[WSGIEnvironment, StartResponse], Iterable[bytes]]

HTTP_OK = "200 OK"
HTTP_FOUND = "302 Found"
HTTP_NOT_FOUND = "404 Not Found"
HTTP_ERROR = "500 Internal Server Error"

SERVER_SOFTWARE = "bareview/" + ".".join(str(part) for part in __version__)

# Longest request line accepted, as in http.server.
_MAX_REQUEST_LINE = 65536

JSON_CONTENT_TYPE = "application/json"
RAW_CONTENT_TYPE = "application/octet-stream"

NO_CACHE_HEADERS = [
    ("Expires", "Fri, 01 Jan 1980 00:00:00 GMT"),
    ("Pragma", "no-cache"),
    ("Cache-Control", "no-cache, max-age=0, must-revalidate"),
]

# One year, the longest lifetime HTTP/1.1 caches are asked to honour.
_CACHE_FOREVER_SECONDS = 31536000


def cache_forever_headers(now: float | None = None) -> list[tuple[str, str]]:
    """Headers for responses that can never change, such as commit pages."""
    if now is None:
        now = time.time()
    return [
        ("Date", email.utils.formatdate(now, usegmt=True)),
        ("Expires", email.utils.formatdate(now + _CACHE_FOREVER_SECONDS, usegmt=True)),
        ("Cache-Control", f"public, max-age={_CACHE_FOREVER_SECONDS}"),
    ]


class Root(NamedTuple):
    pass


class User(NamedTuple):
    user: str


class Tree(NamedTuple):
    user: str
    project: str
    ref: str | None
    segments: tuple[str, ...]


class Blob(NamedTuple):
    user: str
    project: str
    ref: str | None
    segments: tuple[str, ...]


class Raw(NamedTuple):
    user: str
    project: str
    ref: str | None
    segments: tuple[str, ...]


class Log(NamedTuple):
    user: str
    project: str
    ref: str | None
    segments: tuple[str, ...]


class Commit(NamedTuple):
    user: str
    project: str
    commit_id: str


class Refs(NamedTuple):
    user: str
    project: str


Operation = Union[Root, User, Tree, Blob, Raw, Log, Commit, Refs]

_REF_PAGES: dict[str, type] = {"tree": Tree, "blob": Blob, "raw": Raw, "log": Log}

_SEGMENT = r"[^/]+"
_PROJECT_PREFIX = rf"^/(?P<user>{_SEGMENT})/(?P<project>{_SEGMENT})"


def _ref_page(mat: re.Match[str]) -> Operation:
    path = mat.group("path") or ""
    segments = tuple(segment for segment in path.split("/") if segment)
    return _REF_PAGES[mat.group("page")](
        mat.group("user"), mat.group("project"), mat.group("ref"), segments
    )


_ROUTES: list[tuple[re.Pattern[str], Callable[[re.Match[str]], Operation]]] = [
    (re.compile(r"^/?$"), lambda mat: Root()),
    (re.compile(rf"^/(?P<user>{_SEGMENT})/?$"), lambda mat: User(mat.group("user"))),
    (
        re.compile(_PROJECT_PREFIX + r"/?$"),
        lambda mat: Tree(mat.group("user"), mat.group("project"), None, ()),
    ),
    (
        re.compile(
            _PROJECT_PREFIX
            + r"/(?P<page>tree|blob|raw|log)"
            + rf"(?:/(?P<ref>{_SEGMENT})(?:/(?P<path>.*))?)?/?$"
        ),
        _ref_page,
    ),
    (
        re.compile(_PROJECT_PREFIX + rf"/commit/(?P<commit>{_SEGMENT})/?$"),
        lambda mat: Commit(mat.group("user"), mat.group("project"), mat.group("commit")),
    ),
    (
        re.compile(_PROJECT_PREFIX + r"/refs/?$"),
        lambda mat: Refs(mat.group("user"), mat.group("project")),
    ),
]


def decode_operation(path: str) -> Operation | None:
    """Map a request path onto the operation it asks for.

    Args:
      path: The decoded URL path, starting with "/"
    Returns: An operation, or None if no page has that shape
    """
    for pattern, make_operation in _ROUTES:
        mat = pattern.match(path)
        if mat:
            return make_operation(mat)
    return None


def _isoformat(value) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def _hex(sha: bytes | None) -> str | None:
    if sha is None:
        return None
    return sha.decode("ascii")


def identity_to_json(identity: Identity) -> dict[str, str]:
    return {"name": identity.name, "email": identity.email}


def commit_to_json(commit: CommitInfo | None) -> dict[str, Any] | None:
    if commit is None:
        return None
    return {
        "id": commit.hexid,
        "short_id": commit.short_id,
        "tree": _hex(commit.tree),
        "parents": [_hex(parent) for parent in commit.parents],
        "author": identity_to_json(commit.author),
        "committer": identity_to_json(commit.committer),
        "author_time": commit.author_time,
        "commit_time": commit.commit_time,
        "commit_timezone": commit.commit_timezone,
        "date": _isoformat(commit.datetime),
        "summary": commit.summary,
        "message": commit.message,
    }


def summary_to_json(summary: RepositorySummary) -> dict[str, Any]:
    return {
        "user": summary.user_name,
        "name": summary.name,
        "description": summary.description,
        "last_update": _isoformat(summary.last_update),
        "url": summary.url,
    }


def entry_to_json(entry: AnnotatedEntry) -> dict[str, Any]:
    last_commit = None
    if entry.last_commit is not None:
        last_commit = {
            "id": entry.last_commit.hexid,
            "summary": entry.last_summary,
            "date": _isoformat(entry.last_update),
        }
    return {
        "name": entry.name,
        "kind": entry.kind,
        "id": _hex(entry.id),
        "mode": entry.mode,
        "url": entry.url,
        "last_commit": last_commit,
    }


def tree_page_to_json(page: TreePage) -> dict[str, Any]:
    snapshot = page.snapshot
    return {
        "repository": summary_to_json(page.repository),
        "ref": snapshot.ref_name,
        "path": snapshot.subpath,
        "subtree": snapshot.subtree,
        "parent_url": snapshot.parent_url,
        "entries": [entry_to_json(entry) for entry in snapshot.entries],
        "readme": page.readme,
    }


def blob_to_json(snapshot: BlobSnapshot) -> dict[str, Any]:
    return {
        "ref": snapshot.ref_name,
        "path": snapshot.path,
        "id": _hex(snapshot.id),
        "file_name": snapshot.file_name,
        "directory": snapshot.directory,
        "directory_url": snapshot.directory_url,
        "token": snapshot.token,
        "text": snapshot.text,
    }


def log_to_json(projection: LogProjection) -> dict[str, Any]:
    return {
        "ref": projection.ref_name,
        "commits": [commit_to_json(commit) for commit in projection.commits],
    }


def patch_to_json(patch: FilePatch) -> dict[str, Any]:
    return {
        "old_path": patch.old_path,
        "new_path": patch.new_path,
        "old_id": _hex(patch.old_id),
        "new_id": _hex(patch.new_id),
        "change_type": patch.change_type,
        "text": patch.text,
    }


def commit_page_to_json(page: CommitPage) -> dict[str, Any]:
    return {
        "repository": summary_to_json(page.repository),
        "commit": commit_to_json(page.commit),
        "parent": commit_to_json(page.parent),
        "patches": [patch_to_json(patch) for patch in page.patches],
    }


def refs_to_json(listing: RefListing) -> dict[str, Any]:
    return {"tags": listing.tags, "branches": listing.branches}


def user_to_json(listing: UserListing) -> dict[str, Any]:
    return {
        "name": listing.name,
        "repositories": [summary_to_json(summary) for summary in listing.repositories],
    }


def root_to_json(summaries: Sequence[RepositorySummary]) -> dict[str, Any]:
    return {"repositories": [summary_to_json(summary) for summary in summaries]}


class ForgeRequest:
    """Class encapsulating the state of a single page request.

    Attributes:
      environ: the WSGI environment for the request.
    """

    def __init__(self, environ: WSGIEnvironment, start_response: StartResponse) -> None:
        self.environ = environ
        self._start_response = start_response
        self._cache_headers: list[tuple[str, str]] = []
        self._headers: list[tuple[str, str]] = []

    def respond(
        self,
        status: str = HTTP_OK,
        content_type: str | None = None,
        headers: Sequence[tuple[str, str]] | None = None,
    ) -> Callable[[bytes], object]:
        """Begin a response with the given status and other headers."""
        if headers:
            self._headers.extend(headers)
        if content_type:
            self._headers.append(("Content-Type", content_type))
        self._headers.extend(self._cache_headers)
        return self._start_response(status, self._headers)

    def json(self, document: Any) -> bytes:
        """Begin a HTTP 200 response and return the encoded document."""
        body = json.dumps(document).encode("utf-8")
        self.respond(HTTP_OK, JSON_CONTENT_TYPE)
        return body

    def not_found(self, message: str) -> bytes:
        """Begin a HTTP 404 response and return the text of a message."""
        self._cache_headers = []
        logger.info("Not found: %s", message)
        self.respond(HTTP_NOT_FOUND, "text/plain; charset=utf-8")
        return message.encode("utf-8")

    def redirect(self, path: str) -> bytes:
        """Begin a HTTP 302 response to another page of this application."""
        self._cache_headers = []
        location = self.environ.get("SCRIPT_NAME", "").rstrip("/") + quote(path)
        logger.debug("Redirecting to %s", location)
        self.respond(HTTP_FOUND, "text/plain", headers=[("Location", location)])
        return location.encode("ascii")

    def error(self, message: str) -> bytes:
        """Begin a HTTP 500 response and return the text of a message."""
        self._cache_headers = []
        logger.error("Error: %s", message)
        self.respond(HTTP_ERROR, "text/plain; charset=utf-8")
        return message.encode("utf-8")

    def nocache(self) -> None:
        """Set the response to never be cached by the client."""
        self._cache_headers = NO_CACHE_HEADERS

    def cache_forever(self) -> None:
        """Set the response to be cached forever by the client."""
        self._cache_headers = cache_forever_headers()


def send_outcome(
    req: ForgeRequest, outcome: Outcome, serialize: Callable[[Any], Any]
) -> Iterable[bytes]:
    """Turn an outcome into a JSON response, a redirect or a 404."""
    if isinstance(outcome, Found):
        return [req.json(serialize(outcome.value))]
    if isinstance(outcome, WrongKindRedirect):
        return [req.redirect(outcome.path)]
    if isinstance(outcome, NotFound):
        return [req.not_found(outcome.reason)]
    raise TypeError(f"Unexpected outcome {outcome!r}")


def get_root(req: ForgeRequest, forge: Forge, op: Root) -> Iterable[bytes]:
    req.nocache()
    return send_outcome(req, forge.root(), root_to_json)


def get_user(req: ForgeRequest, forge: Forge, op: User) -> Iterable[bytes]:
    req.nocache()
    return send_outcome(req, forge.user(op.user), user_to_json)


def get_tree(req: ForgeRequest, forge: Forge, op: Tree) -> Iterable[bytes]:
    req.nocache()
    return send_outcome(
        req, forge.tree(op.user, op.project, op.ref, op.segments), tree_page_to_json
    )


def get_blob(req: ForgeRequest, forge: Forge, op: Blob) -> Iterable[bytes]:
    req.nocache()
    return send_outcome(
        req, forge.blob(op.user, op.project, op.ref, op.segments), blob_to_json
    )


def get_raw(req: ForgeRequest, forge: Forge, op: Raw) -> Iterable[bytes]:
    req.nocache()
    outcome = forge.raw(op.user, op.project, op.ref, op.segments)
    if not isinstance(outcome, Found):
        return send_outcome(req, outcome, lambda value: value)
    snapshot: BlobSnapshot = outcome.value
    req.respond(
        HTTP_OK,
        RAW_CONTENT_TYPE,
        headers=[("Content-Length", str(len(snapshot.data)))],
    )
    return [snapshot.data]


def get_log(req: ForgeRequest, forge: Forge, op: Log) -> Iterable[bytes]:
    req.nocache()
    return send_outcome(
        req, forge.log(op.user, op.project, op.ref, op.segments), log_to_json
    )


def get_commit(req: ForgeRequest, forge: Forge, op: Commit) -> Iterable[bytes]:
    outcome = forge.commit(op.user, op.project, op.commit_id)
    if isinstance(outcome, Found):
        req.cache_forever()
    return send_outcome(req, outcome, commit_page_to_json)


def get_refs(req: ForgeRequest, forge: Forge, op: Refs) -> Iterable[bytes]:
    req.nocache()
    return send_outcome(req, forge.refs(op.user, op.project), refs_to_json)


class ForgeApplication:
    """Class encapsulating the state of the page serving WSGI application.

    Attributes:
      forge: the Forge answering the requests
    """

    handlers: ClassVar[
        dict[type, Callable[[ForgeRequest, Forge, Any], Iterable[bytes]]]
    ] = {
        Root: get_root,
        User: get_user,
        Tree: get_tree,
        Blob: get_blob,
        Raw: get_raw,
        Log: get_log,
        Commit: get_commit,
        Refs: get_refs,
    }

    def __init__(
        self, forge: Forge, fallback_app: WSGIApplication | None = None
    ) -> None:
        self.forge = forge
        self.fallback_app = fallback_app

    def __call__(
        self, environ: WSGIEnvironment, start_response: StartResponse
    ) -> Iterable[bytes]:
        # PATH_INFO carries the request bytes decoded as latin-1.
        path = environ.get("PATH_INFO", "/").encode("latin-1").decode("utf-8", "replace")
        method = environ["REQUEST_METHOD"]
        req = ForgeRequest(environ, start_response)
        op = decode_operation(path) if method in ("GET", "HEAD") else None
        if op is None:
            if self.fallback_app is not None:
                return self.fallback_app(environ, start_response)
            return [req.not_found("Sorry, that page does not exist")]
        handler = self.handlers[type(op)]
        try:
            return handler(req, self.forge, op)
        except Exception:
            logger.exception("Error while handling %s %s", method, path)
            return [req.error("Internal server error")]


def make_wsgi_chain(
    forge: Forge, fallback_app: WSGIApplication | None = None
) -> WSGIApplication:
    """Factory function to create an instance of ForgeApplication."""
    return ForgeApplication(forge, fallback_app=fallback_app)


class ForgeServerHandler(ServerHandler):
    """Runs the application for one request, reporting failures by path."""

    server_software = SERVER_SOFTWARE

    def log_exception(
        self,
        exc_info: Union[
            tuple[type[BaseException], BaseException, TracebackType],
            tuple[None, None, None],
            None,
        ],
    ) -> None:
        logger.exception(
            "Unhandled error serving %s %s",
            self.environ.get("REQUEST_METHOD", "GET"),
            self.environ.get("PATH_INFO", "/"),
            exc_info=exc_info,
        )


class ForgeRequestHandler(WSGIRequestHandler):
    """Reads one HTTP request and writes its access line to the log."""

    server_version = SERVER_SOFTWARE

    def log_request(self, code: int | str = "-", size: int | str = "-") -> None:
        logger.info(
            '%s "%s" %s %s', self.address_string(), self.requestline, code, size
        )

    def log_message(self, format: str, *args: object) -> None:
        logger.warning("%s: " + format, self.address_string(), *args)

    def handle(self) -> None:
        self.raw_requestline = self.rfile.readline(_MAX_REQUEST_LINE + 1)
        if len(self.raw_requestline) > _MAX_REQUEST_LINE:
            self.requestline = ""
            self.request_version = ""
            self.command = ""
            self.send_error(414)
            return
        if not self.parse_request():
            return
        handler = ForgeServerHandler(
            self.rfile,
            self.wfile,  # type: ignore
            self.get_stderr(),
            self.get_environ(),
            multithread=False,
        )
        handler.request_handler = self  # type: ignore
        handler.run(self.server.get_app())  # type: ignore


class ForgeServer(WSGIServer):
    """Single-threaded server for a ForgeApplication."""

    def handle_error(self, request: object, client_address: tuple[str, int]) -> None:
        logger.exception("Connection from %s:%d failed", *client_address[:2])


def main(argv: list[str] = sys.argv) -> None:
    """Entry point for starting the HTTP server."""
    parser = argparse.ArgumentParser(
        prog="bareview", description="Browse bare git repositories over HTTP."
    )
    parser.add_argument("--config", help="Read settings from this git-config file.")
    parser.add_argument(
        "-l", "--listen_address", dest="listen_address", help="Binding IP address."
    )
    parser.add_argument("-p", "--port", dest="port", type=int, help="Port to listen on.")
    parser.add_argument(
        "--scan-policy",
        dest="scan_policy",
        choices=ALL_SCAN_POLICIES,
        help="How to find the commit that last touched a file.",
    )
    parser.add_argument(
        "--log-limit",
        dest="log_limit",
        type=int,
        help="Maximum number of commits on a log page.",
    )
    parser.add_argument(
        "root",
        nargs="?",
        help="Directory with one subdirectory of bare repositories per user.",
    )
    args = parser.parse_args(argv[1:])

    log_utils.default_logging_config()
    try:
        config = load_config(
            args.config,
            root=args.root,
            listen_address=args.listen_address,
            port=args.port,
            scan_policy=args.scan_policy,
            log_limit=args.log_limit,
        )
    except (OSError, ValueError) as exc:
        parser.error(str(exc))

    app = make_wsgi_chain(Forge(config))
    server = make_server(
        config.listen_address,
        config.port,
        app,
        handler_class=ForgeRequestHandler,
        server_class=ForgeServer,
    )
    logger.info(
        "Serving repositories under %s on %s:%d",
        config.root,
        config.listen_address,
        config.port,
    )
    server.serve_forever()


if __name__ == "__main__":
    main()
