# log_utils.py -- Logging utilities for bareview
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

"""Logging utilities for bareview.

bareview is mostly used as a library behind some HTTP front end, so its
loggers stay silent until the embedding application configures logging. The
"bareview" logger carries a null handler for that reason; the bundled server
calls default_logging_config() to get output on stderr.

Modules only need getLogger from here; anything else can come from the
standard logging module directly.
"""

import logging
import os
import sys

getLogger = logging.getLogger

TRACE_ENVIRONMENT_VARIABLE = "BAREVIEW_TRACE"

_TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


class _NullHandler(logging.Handler):
    """No-op logging handler to avoid unexpected logging warnings."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_BAREVIEW_LOGGER = getLogger("bareview")
_BAREVIEW_LOGGER.addHandler(_NULL_HANDLER)


def _get_trace_target() -> str | int | None:
    """Get the trace target from the BAREVIEW_TRACE environment variable.

    Returns:
        - None if tracing is disabled
        - 2 for stderr output (values "1", "2", "true")
        - str for an absolute file path
    """
    trace_value = os.environ.get(TRACE_ENVIRONMENT_VARIABLE, "")
    if not trace_value or trace_value.lower() in ("0", "false"):
        return None
    if trace_value.lower() in ("1", "2", "true"):
        return 2
    if os.path.isabs(trace_value):
        return trace_value
    return None


def _configure_logging_from_trace() -> bool:
    """Configure DEBUG logging if BAREVIEW_TRACE asks for it.

    Returns True if tracing was configured, False otherwise.
    """
    trace_target = _get_trace_target()
    if trace_target is None:
        return False
    if trace_target == 2:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=_TRACE_FORMAT)
        return True
    try:
        logging.basicConfig(
            level=logging.DEBUG, filename=trace_target, filemode="a", format=_TRACE_FORMAT
        )
    except OSError as e:
        sys.stderr.write(
            f"Warning: Failed to open {TRACE_ENVIRONMENT_VARIABLE} file {trace_target}: {e}\n"
        )
        return False
    return True


def default_logging_config(level: int = logging.INFO) -> None:
    """Set up the default bareview loggers.

    Args:
      level: Level used when BAREVIEW_TRACE does not request tracing
    """
    remove_null_handler()
    if not _configure_logging_from_trace():
        logging.basicConfig(
            level=level,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s: %(message)s",
        )


def remove_null_handler() -> None:
    """Remove the null handler from the bareview loggers."""
    _BAREVIEW_LOGGER.removeHandler(_NULL_HANDLER)
