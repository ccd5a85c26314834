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
r"""Backup command line handler and console progress reporting.
"""
import logging
import threading

from arcbu.common.util_helpers import byte_count_to_display_size

from .config_cmdline import get_configuration_manager
from .constants import *
from .dispatcher import Dispatcher, TaskFuture
from .progress import ProgressListener


class ConsoleProgressListener(ProgressListener):
    """Log the progress of each configuration in PROGRESS_REPORT_PERCENT_STEP
    increments.
    """

    def __init__(self, operation_name: str = "Backup"):
        self._operation_name = operation_name
        self._lock = threading.Lock()
        self._total_sizes: dict[str, int] = {}
        self._last_percents: dict[str, int] = {}

    def task_started(self, configuration_name: str):
        with self._lock:
            self._total_sizes.pop(configuration_name, None)
            self._last_percents[configuration_name] = 0
        logging.info(f"{self._operation_name} '{configuration_name}' started.")

    def total_size_computed(self, configuration_name: str, total_size: int):
        with self._lock:
            self._total_sizes[configuration_name] = total_size
        logging.info(
            f"{self._operation_name} '{configuration_name}': "
            f"total size {byte_count_to_display_size(total_size)}"
        )

    def progress(self, configuration_name: str, total_read_bytes: int):
        with self._lock:
            total_size = self._total_sizes.get(configuration_name)
            if not total_size:
                return
            percent = min(100, total_read_bytes * 100 // total_size)
            percent -= percent % PROGRESS_REPORT_PERCENT_STEP
            if percent <= self._last_percents.get(configuration_name, 0):
                return
            self._last_percents[configuration_name] = percent
        logging.info(f"{self._operation_name} '{configuration_name}': {percent}%")

    def task_finished(self, configuration_name: str, error: Exception):
        if error is None:
            logging.info(f"{self._operation_name} '{configuration_name}' finished.")
        else:
            logging.error(
                f"{self._operation_name} '{configuration_name}' failed: {error}"
            )


def wait_for_tasks(futures: list[tuple[str, TaskFuture]], operation_name: str) -> int:
    """Wait for every task, returning the number that failed. On
    KeyboardInterrupt, all tasks are cancelled and waited for.
    """
    failure_count = 0
    try:
        for name, f in futures:
            ex = f.exception()
            if ex is not None:
                failure_count += 1
                logging.debug(f"{operation_name} '{name}' raised: {ex}")
    except KeyboardInterrupt:
        logging.warning(f"Cancelling {len(futures)} tasks...")
        for _, f in futures:
            f.cancel()
        for _, f in futures:
            if f.running():
                f.exception()
        raise
    return failure_count


def handle_backup(args):
    logging.debug(f"handle_backup")
    manager = get_configuration_manager(args)
    configs = [manager.get_configuration(name) for name in args.names]
    dispatcher = Dispatcher()
    dispatcher.add_progress_listener(ConsoleProgressListener(operation_name="Backup"))
    try:
        futures = [(c.name, dispatcher.backup(c)) for c in configs]
        failure_count = wait_for_tasks(futures, "Backup")
    finally:
        dispatcher.shutdown()
    if failure_count > 0:
        logging.error(f"{failure_count} of {len(configs)} backups failed.")
        return 1
    logging.info(f"All {len(configs)} backups succeeded.")
    return 0
