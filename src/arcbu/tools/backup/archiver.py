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
r"""Compressor/Decompressor, streaming files into and out of an archive
through an ArchiveCodec while reporting cumulative progress.
"""

import logging
import os
from pathlib import Path
import shutil
from typing import Union

from arcbu.common.util_helpers import (
    byte_count_to_display_size,
    convert_to_pathlib_path,
    is_path_within,
    path_without_root,
)

from .archive.base import ArchiveCodec, ArchiveEntry
from .cancellable import Cancellable, is_cancelled
from .collector import ArchiveParameters, CollectedFile
from .constants import *
from .deleter import FileDeleter
from .exception import (
    ArchivePathTraversalError,
    BackupException,
    CompressionError,
    DecompressionError,
    MissingTargetDirectoryError,
    RestoreFilePathAlreadyExistsError,
)
from .progress import NotifyingReader, ProcessedSize, TaskListener


class Compressor:
    def __init__(self, codec: ArchiveCodec):
        self._codec = codec

    def compress(
        self,
        params: ArchiveParameters,
        files: list[CollectedFile],
        listener: TaskListener = None,
        cancellable: Cancellable = None,
    ):
        processed_size = ProcessedSize()
        logging.info(f"Creating archive: {params.archive}")
        try:
            with open(params.archive, "wb") as output_stream:
                with self._codec.open_writer(output_stream) as writer:
                    for cf in files:
                        if is_cancelled(cancellable):
                            logging.info(f"Compression cancelled: {params.archive}")
                            break
                        name = cf.entry_name(params.relative_entries)
                        with open(cf.path, "rb") as f:
                            writer.add_entry(
                                name, NotifyingReader(f, processed_size, listener)
                            )
                        logging.debug(f"Added entry: {name}")
        except Exception as ex:
            raise CompressionError(
                f"Failed to create archive {params.archive}: {ex}", cause=ex
            ).with_traceback(ex.__traceback__) from ex

        archive_size = params.archive.stat().st_size
        logging.info(
            f"Archive {params.archive} created: "
            f"size={byte_count_to_display_size(archive_size)} "
            f"source_bytes={processed_size.value}"
        )


class Decompressor:
    def __init__(self, codec: ArchiveCodec):
        self._codec = codec

    def decompress(
        self,
        archive: Union[str, Path],
        target_directory: Union[str, Path],
        listener: TaskListener = None,
        cancellable: Cancellable = None,
        file_deleter: FileDeleter = None,
    ):
        archive = convert_to_pathlib_path(archive)
        target_directory = convert_to_pathlib_path(target_directory)
        if target_directory is None or not target_directory.is_dir():
            raise MissingTargetDirectoryError(
                f"The target directory '{target_directory}' doesn't exist."
            )

        try:
            archive_size = archive.stat().st_size
        except OSError as ex:
            raise DecompressionError(
                f"Cannot access the archive {archive}: {ex}", cause=ex
            ).with_traceback(ex.__traceback__) from ex
        if listener is not None:
            listener.total_size_computed(archive_size)

        processed_size = ProcessedSize()
        logging.info(f"Extracting {archive} to {target_directory}")
        try:
            with open(archive, "rb") as input_stream:
                with self._codec.open_reader(input_stream) as reader:
                    while True:
                        if is_cancelled(cancellable):
                            logging.info(f"Decompression cancelled: {archive}")
                            break
                        entry = reader.next_entry()
                        if entry is None:
                            break
                        with entry:
                            self._extract_entry(
                                entry=entry,
                                target_directory=target_directory,
                                processed_size=processed_size,
                                listener=listener,
                                file_deleter=file_deleter,
                            )
        except DecompressionError:
            raise
        except Exception as ex:
            raise DecompressionError(
                f"Failed to extract archive {archive}: {ex}", cause=ex
            ).with_traceback(ex.__traceback__) from ex
        logging.info(f"Extracted {processed_size.value} bytes from {archive}")

    @staticmethod
    def resolve_entry_path(target_directory: Path, entry_name: str) -> Path:
        """Return the destination of entry_name under target_directory.
        Absolute entry names are re-rooted under the target.
        """
        dest = Path(
            os.path.normpath(target_directory / path_without_root(entry_name))
        )
        if dest == Path(os.path.normpath(target_directory)) or not is_path_within(
            dest, target_directory
        ):
            raise ArchivePathTraversalError(
                f"The entry '{entry_name}' is outside the target directory "
                f"'{target_directory}'."
            )
        # Existing parents may be symlinks pointing out of the target.
        if not is_path_within(
            os.path.realpath(dest.parent), os.path.realpath(target_directory)
        ):
            raise ArchivePathTraversalError(
                f"The entry '{entry_name}' resolves outside the target directory "
                f"'{target_directory}' through a symbolic link."
            )
        return dest

    def _extract_entry(
        self,
        entry: ArchiveEntry,
        target_directory: Path,
        processed_size: ProcessedSize,
        listener: TaskListener,
        file_deleter: FileDeleter,
    ):
        dest = Decompressor.resolve_entry_path(target_directory, entry.name)
        if os.path.lexists(dest):
            raise RestoreFilePathAlreadyExistsError(
                f"The restore destination already exists: {dest}"
            )

        if file_deleter is not None:
            new_directory = Decompressor._highest_missing_parent(dest)
            try:
                if new_directory is not None:
                    file_deleter.register_directory(new_directory)
                file_deleter.register_file(dest)
            except BackupException as ex:
                raise DecompressionError(
                    f"Cannot register restore path {dest}: {ex}", cause=ex
                ).with_traceback(ex.__traceback__) from ex

        dest.parent.mkdir(parents=True, exist_ok=True)
        with open(dest, "xb") as f:
            shutil.copyfileobj(
                NotifyingReader(entry.open_stream(), processed_size, listener),
                f,
                COPY_BUFFER_SIZE,
            )
        logging.debug(f"Extracted: {entry.name} -> {dest}")

    @staticmethod
    def _highest_missing_parent(path: Path) -> Path:
        highest = None
        parent = path.parent
        while not parent.exists():
            highest = parent
            if parent.parent == parent:
                break
            parent = parent.parent
        return highest
