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
r"""Backup and restore tasks. A task validates its configuration, builds a
Context and a CommandChain, runs it, and owns the rollback performed when
the chain fails or the task is cancelled.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import auto
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from arcbu.common.exception import exc_to_string
from arcbu.common.logging_global import ThreadContextMixin
from arcbu.common.util_helpers import (
    AutoNameEnum,
    convert_to_pathlib_path,
    is_absolute_path,
)

from .archive.base import ArchiveCodec, ArchiveCodecFactory
from .cancellable import Cancellable, is_cancelled
from .collector import ArchiveParameters
from .command import (
    CollectFilesCommand,
    Command,
    CommandChain,
    CompressCommand,
    Context,
    DecompressCommand,
    VerifyArchiveCommand,
)
from .config import Configuration
from .constants import *
from .deleter import FileDeleter
from .exception import (
    ArchiveNotFoundError,
    CodecRequiredError,
    MissingTargetDirectoryError,
    NoSourcesError,
    RelativeSourcePathError,
    UnknownCodecError,
)
from .progress import TaskListener

FileDeleterFactory = Callable[[], FileDeleter]


def generate_archive_name(
    config_name: str, codec: ArchiveCodec, now: datetime = None
) -> str:
    if codec is None:
        raise CodecRequiredError("An archive codec is required to name the archive.")
    if now is None:
        now = datetime.now()
    return f"{config_name}_{now.strftime(ARCHIVE_NAME_TIME_STAMP_FORMAT)}.{codec.extension}"


class TaskState(AutoNameEnum):
    NOT_STARTED = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()
    CANCELLED = auto()


class Task(ThreadContextMixin, ABC):
    def __init__(
        self,
        config: Configuration,
        listener: TaskListener = None,
        cancellable: Cancellable = None,
    ):
        if config is None:
            raise ValueError("config is None")
        self._config = config
        self._listener = listener
        self._cancellable = cancellable
        self._state = TaskState.NOT_STARTED
        self._error: Optional[Exception] = None

    @property
    def config(self) -> Configuration:
        return self._config

    @property
    def listener(self) -> TaskListener:
        return self._listener

    @property
    def cancellable(self) -> Cancellable:
        return self._cancellable

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    def is_cancelled(self) -> bool:
        return is_cancelled(self._cancellable)

    def __call__(self):
        self._state = TaskState.RUNNING
        error = None
        try:
            if self._listener is not None:
                self._listener.task_started()
            self.execute()
            if self.is_cancelled():
                self._state = TaskState.CANCELLED
                logging.info(
                    f"{type(self).__name__} cancelled: configuration={self._config.name}"
                )
            else:
                self._state = TaskState.COMPLETED
        except Exception as ex:
            error = ex
            self._error = ex
            self._state = TaskState.FAILED
            logging.error(
                f"Error in {type(self).__name__} for configuration "
                f"'{self._config.name}': {self.get_exec_context_log_stamp_str()} "
                f"{exc_to_string(ex)}"
            )
            raise
        finally:
            if self._listener is not None:
                self._listener.task_finished(error)

    @abstractmethod
    def execute(self):
        pass


class FileCreatorTask(Task):
    def __init__(
        self,
        config: Configuration,
        deleter_factory: FileDeleterFactory = FileDeleter,
        listener: TaskListener = None,
        cancellable: Cancellable = None,
        codec: ArchiveCodec = None,
    ):
        super().__init__(config=config, listener=listener, cancellable=cancellable)
        if deleter_factory is None:
            raise ValueError("deleter_factory is None")
        self._deleter_factory = deleter_factory
        self._codec = codec
        self._chain: Optional[CommandChain] = None

    @property
    def chain(self) -> Optional[CommandChain]:
        return self._chain

    def get_codec(self) -> ArchiveCodec:
        codec = self._codec if self._codec is not None else self._config.create_codec()
        if codec is None:
            raise CodecRequiredError(
                f"No archive codec for configuration '{self._config.name}'."
            )
        return codec

    def execute(self):
        deleter = self._deleter_factory()
        task_complete = False
        context = None
        try:
            context = self.prepare(deleter)
            self._chain = CommandChain(self.create_commands())
            self._chain.execute(context)
            task_complete = not self.is_cancelled()
        finally:
            if not task_complete:
                self._rollback(context, deleter)

    def _rollback(self, context: Optional[Context], deleter: FileDeleter):
        logging.info(
            f"Rolling back {type(self).__name__} for configuration "
            f"'{self._config.name}'"
        )
        if self._chain is not None and context is not None:
            for c in reversed(self._chain.executed_commands):
                try:
                    c.revert(context)
                except Exception as ex:
                    logging.error(f"Failed to revert {c.name}: {exc_to_string(ex)}")
        deleter.delete_all()

    @abstractmethod
    def prepare(self, deleter: FileDeleter) -> Context:
        """Validate, register the paths the task will create with deleter,
        and return the Context for the command chain.
        """

    @abstractmethod
    def create_commands(self) -> list[Command]:
        pass


class BackupTask(FileCreatorTask):
    def prepare(self, deleter: FileDeleter) -> Context:
        codec = self.get_codec()
        self._config.validate_name()
        if not self._config.sources:
            raise NoSourcesError(
                f"The configuration '{self._config.name}' has no sources to back up."
            )
        for s in self._config.sources:
            if not is_absolute_path(s.path):
                raise RelativeSourcePathError(
                    f"The source path must be absolute: {s.path}"
                )

        target = self._config.target_directory
        target.mkdir(parents=True, exist_ok=True)
        archive = target / generate_archive_name(self._config.name, codec)
        params = ArchiveParameters(
            archive=archive, relative_entries=self._config.relative_entries
        )
        for s in self._config.sources:
            params.add_source(s)

        deleter.register_file(archive)
        logging.info(
            f"Backup of '{self._config.name}' to {archive} "
            f"{self.get_exec_context_log_stamp_str()}"
        )
        return Context(
            codec=codec,
            file_deleter=deleter,
            listener=self._listener,
            cancellable=self._cancellable,
            archive_parameters=params,
        )

    def create_commands(self) -> list[Command]:
        commands = [CollectFilesCommand(), CompressCommand()]
        if self._config.verify:
            commands.append(VerifyArchiveCommand())
        return commands


class RestoreTask(FileCreatorTask):
    def __init__(
        self,
        config: Configuration,
        archive: Union[str, Path],
        target_directory: Union[str, Path],
        deleter_factory: FileDeleterFactory = FileDeleter,
        listener: TaskListener = None,
        cancellable: Cancellable = None,
        codec: ArchiveCodec = None,
    ):
        super().__init__(
            config=config,
            deleter_factory=deleter_factory,
            listener=listener,
            cancellable=cancellable,
            codec=codec,
        )
        self._archive = convert_to_pathlib_path(archive)
        self._target_directory = convert_to_pathlib_path(target_directory)

    @property
    def archive(self) -> Path:
        return self._archive

    @property
    def target_directory(self) -> Path:
        return self._target_directory

    def get_codec(self) -> ArchiveCodec:
        """Return the explicit codec if one was given, otherwise the codec
        matching the archive's extension, falling back to the configuration's.
        """
        codec = super().get_codec()
        if self._codec is not None or self._archive is None:
            return codec
        try:
            archive_codec = ArchiveCodecFactory.create_codec_for_archive(
                self._archive.name
            )
        except UnknownCodecError:
            logging.debug(
                f"Using the configured codec {codec.name} for {self._archive}"
            )
            return codec
        if archive_codec.name != codec.name:
            logging.info(
                f"The archive {self._archive.name} is {archive_codec.name}, "
                f"not the configured {codec.name}."
            )
        return archive_codec

    def prepare(self, deleter: FileDeleter) -> Context:
        codec = self.get_codec()
        if self._archive is None or not self._archive.is_file():
            raise ArchiveNotFoundError(f"The archive '{self._archive}' doesn't exist.")
        if self._target_directory is None or not self._target_directory.is_dir():
            raise MissingTargetDirectoryError(
                f"The target directory '{self._target_directory}' doesn't exist."
            )
        logging.info(
            f"Restore of '{self._config.name}' from {self._archive} "
            f"to {self._target_directory} {self.get_exec_context_log_stamp_str()}"
        )
        return Context(
            codec=codec,
            file_deleter=deleter,
            listener=self._listener,
            cancellable=self._cancellable,
            archive_path=self._archive,
            target_directory=self._target_directory,
        )

    def create_commands(self) -> list[Command]:
        return [DecompressCommand()]
