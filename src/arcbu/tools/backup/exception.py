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
r"""ARCBU backup/restore exceptions.
"""

from arcbu.common.exception import *


class BackupException(ArcbuException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class ValidationError(BackupException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class InvalidConfigurationName(ValidationError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class DuplicateConfigurationName(ValidationError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class CodecRequiredError(ValidationError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class RelativeSourcePathError(ValidationError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class MissingTargetDirectoryError(ValidationError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class ArchiveNotFoundError(ValidationError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class NoSourcesError(ValidationError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class ConfigurationNotFoundError(BackupException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class UnknownCodecError(BackupException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class PathAlreadyExistsError(BackupException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class CollectionFailedError(BackupException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class ArchiveError(BackupException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class CompressionError(ArchiveError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class DecompressionError(ArchiveError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class ArchivePathTraversalError(DecompressionError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class RestoreFilePathAlreadyExistsError(DecompressionError):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class CommandError(BackupException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)


class VerificationFailedError(BackupException):
    def __init__(self, message: str = None, cause=None):
        super().__init__(message=message, cause=cause)
