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
r"""Dispatcher, running backup/restore tasks on a pool of worker threads and
fanning task events out to the registered progress listeners.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
import logging
from pathlib import Path
import threading
import time
from typing import Callable, Union

from arcbu.common.exception import DispatcherShutdownError, exc_to_string

from .cancellable import CancellationToken
from .config import Configuration
from .constants import *
from .deleter import FileDeleter
from .progress import ProgressListener, TaskListener
from .task import BackupTask, FileDeleterFactory, RestoreTask, Task


class ListenerScope(Enum):
    """Registry key for listeners observing every configuration."""

    ALL = "all"


ListenerKey = Union[str, ListenerScope]


class ConfigurationTaskListener(TaskListener):
    """TaskListener bound to one configuration, forwarding each event to the
    dispatcher's listeners for that configuration and the global ones.
    """

    def __init__(self, dispatcher: "Dispatcher", configuration_name: str):
        self._dispatcher = dispatcher
        self._configuration_name = configuration_name

    @property
    def configuration_name(self) -> str:
        return self._configuration_name

    def task_started(self):
        name = self._configuration_name
        self._dispatcher.broadcast(name, "task_started", lambda l: l.task_started(name))

    def total_size_computed(self, total_size: int):
        name = self._configuration_name
        self._dispatcher.broadcast(
            name,
            "total_size_computed",
            lambda l: l.total_size_computed(name, total_size),
        )

    def progress(self, total_read_bytes: int):
        name = self._configuration_name
        self._dispatcher.broadcast(
            name, "progress", lambda l: l.progress(name, total_read_bytes)
        )

    def task_finished(self, error: Exception):
        name = self._configuration_name
        self._dispatcher.broadcast(
            name, "task_finished", lambda l: l.task_finished(name, error)
        )


class TaskFuture:
    """Handle of a submitted task. Cancelling sets the task's cancellation
    token, a running task stops at its next checkpoint and rolls back.
    """

    def __init__(self, future: Future, token: CancellationToken, task: Task):
        self._future = future
        self._token = token
        self._task = task

    @property
    def task(self) -> Task:
        return self._task

    def cancel(self) -> bool:
        self._token.cancel()
        self._future.cancel()
        return True

    def cancelled(self) -> bool:
        return self._token.is_cancelled()

    def running(self) -> bool:
        return self._future.running()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float = None):
        return self._future.result(timeout=timeout)

    def exception(self, timeout: float = None):
        return self._future.exception(timeout=timeout)

    def add_done_callback(self, fn: Callable[["TaskFuture"], None]):
        self._future.add_done_callback(lambda _: fn(self))


class Dispatcher:
    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        deleter_factory: FileDeleterFactory = FileDeleter,
    ):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=WORKER_THREAD_NAME_PREFIX
        )
        self._deleter_factory = deleter_factory
        self._lock = threading.Lock()
        self._listeners: dict[ListenerKey, list[ProgressListener]] = {}
        self._task_listeners: dict[str, ConfigurationTaskListener] = {}
        self._futures: list[Future] = []
        self._is_shutdown = False

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def backup(self, config: Configuration) -> TaskFuture:
        return self.submit(
            lambda token: BackupTask(
                config=config,
                deleter_factory=self._deleter_factory,
                listener=self.get_task_listener(config.name),
                cancellable=token,
            )
        )

    def restore(
        self,
        config: Configuration,
        archive: Union[str, Path],
        target_directory: Union[str, Path],
    ) -> TaskFuture:
        return self.submit(
            lambda token: RestoreTask(
                config=config,
                archive=archive,
                target_directory=target_directory,
                deleter_factory=self._deleter_factory,
                listener=self.get_task_listener(config.name),
                cancellable=token,
            )
        )

    def submit(self, task_factory: Callable[[CancellationToken], Task]) -> TaskFuture:
        if self._is_shutdown:
            raise DispatcherShutdownError("The dispatcher has been shut down.")
        token = CancellationToken()
        task = task_factory(token)
        with self._lock:
            if self._is_shutdown:
                raise DispatcherShutdownError("The dispatcher has been shut down.")
            self._futures = [f for f in self._futures if not f.done()]
            future = self._executor.submit(task)
            self._futures.append(future)
        logging.debug(f"Submitted {type(task).__name__} for '{task.config.name}'")
        return TaskFuture(future=future, token=token, task=task)

    def get_task_listener(self, configuration_name: str) -> ConfigurationTaskListener:
        with self._lock:
            listener = self._task_listeners.get(configuration_name)
            if listener is None:
                listener = ConfigurationTaskListener(self, configuration_name)
                self._task_listeners[configuration_name] = listener
            return listener

    @staticmethod
    def _to_key(configuration_name: str) -> ListenerKey:
        return ListenerScope.ALL if configuration_name is None else configuration_name

    def add_progress_listener(
        self, listener: ProgressListener, configuration_name: str = None
    ):
        """Register listener for configuration_name, or for every
        configuration when configuration_name is None.
        """
        key = Dispatcher._to_key(configuration_name)
        with self._lock:
            listeners = self._listeners.setdefault(key, [])
            if not any(l is listener for l in listeners):
                listeners.append(listener)

    def remove_progress_listener(
        self, listener: ProgressListener, configuration_name: str = None
    ):
        key = Dispatcher._to_key(configuration_name)
        with self._lock:
            listeners = self._listeners.get(key)
            if not listeners:
                return
            listeners[:] = [l for l in listeners if l is not listener]
            if not listeners:
                del self._listeners[key]

    def get_progress_listeners(self, configuration_name: str) -> list[ProgressListener]:
        """Return the listeners for configuration_name followed by the
        global listeners, each listener at most once.
        """
        with self._lock:
            candidates = list(self._listeners.get(configuration_name, [])) + list(
                self._listeners.get(ListenerScope.ALL, [])
            )
        result = []
        for c in candidates:
            if not any(r is c for r in result):
                result.append(c)
        return result

    def broadcast(
        self,
        configuration_name: str,
        event: str,
        notify: Callable[[ProgressListener], None],
    ):
        """Call notify with each listener of configuration_name. event names
        the notification for logging when a listener fails.
        """
        for l in self.get_progress_listeners(configuration_name):
            try:
                notify(l)
            except Exception as ex:
                logging.error(
                    f"Progress listener failed: event={event} "
                    f"configuration={configuration_name} {exc_to_string(ex)}"
                )

    def shutdown(
        self,
        on_terminated: Callable[[], None] = None,
        poll_interval: float = SHUTDOWN_POLL_INTERVAL_SECONDS,
    ) -> threading.Thread:
        """Stop accepting tasks, letting the running ones finish. When
        on_terminated is given, it is called once from a daemon thread after
        all submitted tasks are done, and that thread is returned.
        """
        with self._lock:
            self._is_shutdown = True
            futures = list(self._futures)
        self._executor.shutdown(wait=False)
        logging.debug(f"Dispatcher shut down, {len(futures)} tasks tracked.")
        if on_terminated is None:
            return None

        def _wait_for_termination():
            while not all(f.done() for f in futures):
                time.sleep(poll_interval)
            try:
                on_terminated()
            except Exception as ex:
                logging.error(f"Termination callback failed: {exc_to_string(ex)}")

        t = threading.Thread(
            target=_wait_for_termination,
            name=f"{ARCBU_ACRONYM}-shutdown",
            daemon=True,
        )
        t.start()
        return t
