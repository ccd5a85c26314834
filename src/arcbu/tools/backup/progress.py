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
r"""Progress reporting: listener interfaces and the counting reader used to
report cumulative bytes processed.
"""

import threading
from typing import BinaryIO


class TaskListener:
    """Per-task lifecycle observer. Calls arrive in the order task_started,
    total_size_computed, zero or more progress, task_finished.
    Methods are no-ops by default, override what is needed.
    """

    def task_started(self):
        pass

    def total_size_computed(self, total_size: int):
        pass

    def progress(self, total_read_bytes: int):
        pass

    def task_finished(self, error: Exception):
        pass


class ProgressListener:
    """Observer of task events for one or all configurations, registered
    with the dispatcher. Methods are no-ops by default.
    """

    def task_started(self, configuration_name: str):
        pass

    def total_size_computed(self, configuration_name: str, total_size: int):
        pass

    def progress(self, configuration_name: str, total_read_bytes: int):
        pass

    def task_finished(self, configuration_name: str, error: Exception):
        pass


class ProcessedSize:
    """Running byte total shared by the readers of one operation."""

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        return self._value

    def add(self, n: int) -> int:
        with self._lock:
            self._value += n
            return self._value


class NotifyingReader:
    """Wrap a binary stream, adding bytes read to processed_size and
    reporting the new total to the listener after every non-empty read.
    """

    def __init__(
        self,
        stream: BinaryIO,
        processed_size: ProcessedSize,
        listener: TaskListener = None,
    ):
        self._stream = stream
        self._processed_size = processed_size
        self._listener = listener

    def _after_read(self, n: int):
        if n <= 0:
            return
        total = self._processed_size.add(n)
        if self._listener is not None:
            self._listener.progress(total)

    def read(self, size: int = -1) -> bytes:
        data = self._stream.read(size)
        self._after_read(len(data))
        return data

    def readinto(self, b) -> int:
        n = self._stream.readinto(b)
        self._after_read(n or 0)
        return n

    def readable(self) -> bool:
        return True

    def close(self):
        self._stream.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
