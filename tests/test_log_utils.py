# test_log_utils.py -- tests for bareview.log_utils
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

"""Tests for bareview.log_utils."""

import logging
import os

from bareview.log_utils import (
    _BAREVIEW_LOGGER,
    _NULL_HANDLER,
    TRACE_ENVIRONMENT_VARIABLE,
    _get_trace_target,
    _NullHandler,
    default_logging_config,
    getLogger,
    remove_null_handler,
)

from . import TestCase


class LogUtilsTests(TestCase):
    """Tests for log_utils."""

    def setUp(self) -> None:
        super().setUp()
        self.original_handlers = list(_BAREVIEW_LOGGER.handlers)
        root_logger = logging.getLogger()
        self.original_root_handlers = list(root_logger.handlers)
        self.original_root_level = root_logger.level

    def tearDown(self) -> None:
        _BAREVIEW_LOGGER.handlers = self.original_handlers
        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            if handler not in self.original_root_handlers:
                handler.close()
        root_logger.handlers = self.original_root_handlers
        root_logger.setLevel(self.original_root_level)
        super().tearDown()

    def test_null_handler(self) -> None:
        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="test_log_utils.py",
            lineno=1,
            msg="Test message",
            args=(),
            exc_info=None,
        )
        _NullHandler().emit(record)

    def test_get_logger(self) -> None:
        logger = getLogger("bareview.test")
        self.assertIsInstance(logger, logging.Logger)
        self.assertEqual("bareview.test", logger.name)

    def test_null_handler_installed(self) -> None:
        self.assertIn(_NULL_HANDLER, _BAREVIEW_LOGGER.handlers)

    def test_remove_null_handler(self) -> None:
        remove_null_handler()
        self.assertNotIn(_NULL_HANDLER, _BAREVIEW_LOGGER.handlers)

    def test_trace_target_unset(self) -> None:
        self.assertIsNone(_get_trace_target())

    def test_trace_target_disabled(self) -> None:
        for value in ["0", "false", "FALSE"]:
            self.overrideEnv(TRACE_ENVIRONMENT_VARIABLE, value)
            self.assertIsNone(_get_trace_target())

    def test_trace_target_stderr(self) -> None:
        for value in ["1", "2", "true", "True"]:
            self.overrideEnv(TRACE_ENVIRONMENT_VARIABLE, value)
            self.assertEqual(2, _get_trace_target())

    def test_trace_target_file(self) -> None:
        path = os.path.join(self.make_tempdir(), "trace.log")
        self.overrideEnv(TRACE_ENVIRONMENT_VARIABLE, path)
        self.assertEqual(path, _get_trace_target())

    def test_trace_target_relative_path(self) -> None:
        self.overrideEnv(TRACE_ENVIRONMENT_VARIABLE, "trace.log")
        self.assertIsNone(_get_trace_target())

    def test_default_logging_config(self) -> None:
        logging.getLogger().handlers = []
        default_logging_config()
        self.assertNotIn(_NULL_HANDLER, _BAREVIEW_LOGGER.handlers)
        self.assertEqual(logging.INFO, logging.getLogger().level)

    def test_default_logging_config_with_trace_file(self) -> None:
        path = os.path.join(self.make_tempdir(), "trace.log")
        self.overrideEnv(TRACE_ENVIRONMENT_VARIABLE, path)
        logging.getLogger().handlers = []
        default_logging_config()
        self.assertEqual(logging.DEBUG, logging.getLogger().level)
        getLogger("bareview.test").debug("traced")
        for handler in logging.getLogger().handlers:
            handler.flush()
        with open(path) as f:
            self.assertIn("traced", f.read())
