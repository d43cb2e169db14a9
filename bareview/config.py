# config.py -- Server configuration
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

"""Server configuration.

The configuration file uses git-config syntax::

  [forge]
      root = /srv/git
      scanPolicy = last-modified
      logLimit = 200
  [http]
      address = 0.0.0.0
      port = 3000
"""

__all__ = [
    "DEFAULT_LISTEN_ADDRESS",
    "DEFAULT_PORT",
    "ForgeConfig",
    "load_config",
]

import os

from dulwich.config import ConfigFile

from . import log_utils
from .tree import ALL_SCAN_POLICIES, SCAN_LAST_MODIFIED

logger = log_utils.getLogger(__name__)

DEFAULT_LISTEN_ADDRESS = "localhost"
DEFAULT_PORT = 8000


class ForgeConfig:
    """Settings shared by every request.

    Attributes:
      root: Directory holding one subdirectory per user
      listen_address: Address the HTTP server binds to
      port: Port the HTTP server listens on
      scan_policy: How tree entries are matched to the commit that last
        touched them
      log_limit: Maximum number of commits on a log page, or None
    """

    def __init__(
        self,
        root: str,
        listen_address: str = DEFAULT_LISTEN_ADDRESS,
        port: int = DEFAULT_PORT,
        scan_policy: str = SCAN_LAST_MODIFIED,
        log_limit: int | None = None,
    ) -> None:
        if not root:
            raise ValueError("No repository root configured")
        if scan_policy not in ALL_SCAN_POLICIES:
            raise ValueError(
                f"Unknown scan policy {scan_policy!r}, "
                f"expected one of {', '.join(ALL_SCAN_POLICIES)}"
            )
        if log_limit is not None and log_limit <= 0:
            raise ValueError(f"Invalid log limit {log_limit}")
        self.root = os.path.abspath(root)
        self.listen_address = listen_address
        self.port = port
        self.scan_policy = scan_policy
        self.log_limit = log_limit

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.root!r}, "
            f"listen_address={self.listen_address!r}, port={self.port!r}, "
            f"scan_policy={self.scan_policy!r}, log_limit={self.log_limit!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ForgeConfig):
            return NotImplemented
        return (
            self.root == other.root
            and self.listen_address == other.listen_address
            and self.port == other.port
            and self.scan_policy == other.scan_policy
            and self.log_limit == other.log_limit
        )


def _get(config: ConfigFile, section: bytes, name: bytes) -> str | None:
    try:
        value = config.get((section,), name)
    except KeyError:
        return None
    return value.decode("utf-8")


def _get_int(config: ConfigFile, section: bytes, name: bytes) -> int | None:
    value = _get(config, section, name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(
            f"Invalid value for {section.decode()}.{name.decode()}: {value!r}"
        ) from exc


def load_config(
    path: str | None = None,
    root: str | None = None,
    listen_address: str | None = None,
    port: int | None = None,
    scan_policy: str | None = None,
    log_limit: int | None = None,
) -> ForgeConfig:
    """Load the configuration, letting explicit arguments win over the file.

    Args:
      path: Path of a git-config format file, or None
      root: Repository root, overriding forge.root
      listen_address: Overrides http.address
      port: Overrides http.port
      scan_policy: Overrides forge.scanPolicy
      log_limit: Overrides forge.logLimit
    Returns: A ForgeConfig
    Raises:
      ValueError: if no root is configured or a setting is invalid
      OSError: if the file can't be read
    """
    if path is not None:
        logger.debug("Reading configuration from %s", path)
        config = ConfigFile.from_path(path)
        if root is None:
            root = _get(config, b"forge", b"root")
            if root is not None and not os.path.isabs(root):
                root = os.path.join(os.path.dirname(os.path.abspath(path)), root)
        if scan_policy is None:
            scan_policy = _get(config, b"forge", b"scanPolicy")
        if log_limit is None:
            log_limit = _get_int(config, b"forge", b"logLimit")
        if listen_address is None:
            listen_address = _get(config, b"http", b"address")
        if port is None:
            port = _get_int(config, b"http", b"port")
    if root is None:
        raise ValueError("No repository root configured")
    return ForgeConfig(
        root,
        listen_address=listen_address or DEFAULT_LISTEN_ADDRESS,
        port=port if port is not None else DEFAULT_PORT,
        scan_policy=scan_policy or SCAN_LAST_MODIFIED,
        log_limit=log_limit,
    )
