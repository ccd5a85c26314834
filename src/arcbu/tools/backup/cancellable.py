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
r"""Cooperative cancellation. Long running operations poll is_cancelled()
at their checkpoints (i.e., before each file or archive entry).
"""

import threading


class Cancellable:
    def is_cancelled(self) -> bool:
        raise NotImplementedError()


class CancellationToken(Cancellable):
    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()


def is_cancelled(cancellable: Cancellable) -> bool:
    return cancellable is not None and cancellable.is_cancelled()
