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
r"""ARCBU Exceptions.
"""
import traceback


class ArcbuException(Exception):
    def __init__(self, message: str, cause=None):
        super().__init__(message)
        self.message = message
        self._cause = cause

    @property
    def cause(self):
        return self._cause

    def __str__(self):
        if not self._cause:
            return f"{self.message}"
        else:
            return f"{self.message} cause={self._cause}"


class InvalidStateError(ArcbuException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class InvalidFunctionArgument(ArcbuException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class InvalidCommandLineArgument(ArcbuException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class InvalidConfigurationValue(ArcbuException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class GlobalContextNotSet(ArcbuException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class QueueListenerAlreadyStarted(ArcbuException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class QueueListenerNotStarted(ArcbuException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class DispatcherShutdownError(ArcbuException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


def exc_to_string(ex: Exception):
    return f"ex={ex} details: {traceback.format_exception(type(ex), ex, ex.__traceback__)}"

