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
r"""Commands and the CommandChain executing them. A chain runs its commands
in order and records which ones it started. It never reverts anything
itself, reverting is left to the owning task.
"""

from abc import ABC, abstractmethod
from enum import auto
import logging
from pathlib import Path
from typing import BinaryIO, Optional

from arcbu.common.exception import InvalidStateError, exc_to_string
from arcbu.common.util_helpers import AutoNameEnum

from .archive.base import ArchiveCodec
from .archiver import Compressor, Decompressor
from .cancellable import Cancellable, is_cancelled
from .collector import ArchiveParameters, CollectedFile, FileCollector
from .deleter import FileDeleter
from .exception import BackupException, CommandError, VerificationFailedError
from .progress import TaskListener
from .verifier import ArchiveVerifier, InputStreamComparator


class Context:
    """State shared by the commands of one task run."""

    def __init__(
        self,
        codec: ArchiveCodec,
        file_deleter: FileDeleter,
        listener: TaskListener = None,
        cancellable: Cancellable = None,
        archive_parameters: ArchiveParameters = None,
        archive_path: Path = None,
        target_directory: Path = None,
        comparator: InputStreamComparator = None,
    ):
        self.codec = codec
        self.file_deleter = file_deleter
        self.listener = listener
        self.cancellable = cancellable
        self.archive_parameters = archive_parameters
        self.archive_path = archive_path
        if self.archive_path is None and archive_parameters is not None:
            self.archive_path = archive_parameters.archive
        self.target_directory = target_directory
        self.comparator = comparator
        self.files: list[CollectedFile] = []
        self.total_size: int = 0

    def open_archive(self) -> BinaryIO:
        return open(self.archive_path, "rb")


class Command(ABC):
    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def execute(self, context: Context):
        pass

    def revert(self, context: Context):  # pylint: disable=unused-argument
        """Undo what execute did, best effort. Must not raise."""

    def __repr__(self):
        return self.name


class CollectFilesCommand(Command):
    def __init__(self, collector: FileCollector = None):
        self._collector = collector if collector is not None else FileCollector()

    def execute(self, context: Context):
        context.files, context.total_size = self._collector.collect(
            sources=context.archive_parameters.sources,
            cancellable=context.cancellable,
        )
        if context.listener is not None and not is_cancelled(context.cancellable):
            context.listener.total_size_computed(context.total_size)


class CompressCommand(Command):
    def execute(self, context: Context):
        Compressor(context.codec).compress(
            params=context.archive_parameters,
            files=context.files,
            listener=context.listener,
            cancellable=context.cancellable,
        )

    def revert(self, context: Context):
        archive = context.archive_parameters.archive
        try:
            context.file_deleter.delete(archive)
        except Exception as ex:
            logging.error(f"Failed to delete archive {archive}: {exc_to_string(ex)}")


class VerifyArchiveCommand(Command):
    def execute(self, context: Context):
        verifier = ArchiveVerifier(comparator=context.comparator)
        with context.open_archive() as archive_stream:
            is_valid = verifier.verify(
                codec=context.codec,
                archive_stream=archive_stream,
                collected_files=context.files,
                relative_entries=context.archive_parameters.relative_entries,
            )
        if not is_valid:
            raise VerificationFailedError(
                f"The archive does not match its source files: {context.archive_path}"
            )


class DecompressCommand(Command):
    def execute(self, context: Context):
        Decompressor(context.codec).decompress(
            archive=context.archive_path,
            target_directory=context.target_directory,
            listener=context.listener,
            cancellable=context.cancellable,
            file_deleter=context.file_deleter,
        )

    def revert(self, context: Context):
        deleter = context.file_deleter
        for p in deleter.registered_files + deleter.registered_directories:
            try:
                deleter.delete(p)
            except Exception as ex:
                logging.error(f"Failed to delete {p}: {exc_to_string(ex)}")


class ChainState(AutoNameEnum):
    NOT_STARTED = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()
    CANCELLED = auto()


class CommandChain:
    def __init__(self, commands: list[Command]):
        self._commands = list(commands)
        self._executed_commands: list[Command] = []
        self._state = ChainState.NOT_STARTED
        self._failed_command: Optional[Command] = None

    @property
    def commands(self) -> list[Command]:
        return list(self._commands)

    @property
    def executed_commands(self) -> list[Command]:
        return list(self._executed_commands)

    @property
    def state(self) -> ChainState:
        return self._state

    @property
    def failed_command(self) -> Optional[Command]:
        return self._failed_command

    def execute(self, context: Context):
        if self._state != ChainState.NOT_STARTED:
            raise InvalidStateError(
                f"The command chain cannot be executed again: state={self._state.value}"
            )
        self._state = ChainState.RUNNING
        for c in self._commands:
            if is_cancelled(context.cancellable):
                logging.info(f"Command chain cancelled before {c.name}")
                self._state = ChainState.CANCELLED
                return
            self._executed_commands.append(c)
            logging.debug(f"Executing command: {c.name}")
            try:
                c.execute(context)
            except BackupException:
                self._failed_command = c
                self._state = ChainState.FAILED
                raise
            except Exception as ex:
                self._failed_command = c
                self._state = ChainState.FAILED
                raise CommandError(
                    f"The command {c.name} failed: {ex}", cause=ex
                ).with_traceback(ex.__traceback__) from ex
        if is_cancelled(context.cancellable):
            self._state = ChainState.CANCELLED
        else:
            self._state = ChainState.COMPLETED
