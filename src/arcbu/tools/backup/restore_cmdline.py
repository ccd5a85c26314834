# Copyright 2022 Ashley R. Thomas
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
r"""Restore command line handler.
"""
import logging
import os

from .backup_cmdline import ConsoleProgressListener, wait_for_tasks
from .config import ConfigurationManager
from .config_cmdline import get_configuration_manager
from .dispatcher import Dispatcher
from .exception import ArchiveNotFoundError


def handle_restore(args):
    logging.debug(f"handle_restore")
    manager = get_configuration_manager(args)
    config = manager.get_configuration(args.name)
    archive = args.archive
    if archive is None:
        archive = ConfigurationManager.get_latest_archive(config)
        if archive is None:
            raise ArchiveNotFoundError(
                f"No archive found for configuration '{config.name}' "
                f"in {config.target_directory}"
            )
    archive = os.path.abspath(archive)
    target = os.path.abspath(args.target)
    logging.info(f"Restoring {archive} to {target}")

    dispatcher = Dispatcher(max_workers=1)
    dispatcher.add_progress_listener(ConsoleProgressListener(operation_name="Restore"))
    try:
        future = dispatcher.restore(config, archive=archive, target_directory=target)
        failure_count = wait_for_tasks([(config.name, future)], "Restore")
    finally:
        dispatcher.shutdown()
    return 0 if failure_count == 0 else 1
