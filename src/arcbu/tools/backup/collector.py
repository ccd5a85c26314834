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
r"""FileCollector walks the configured source trees and returns the files
to be archived along with their total size.
"""

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Union

from arcbu.common.util_helpers import convert_to_pathlib_path, is_absolute_path

from .cancellable import Cancellable, is_cancelled
from .config import Source
from .exception import CollectionFailedError, RelativeSourcePathError


class CollectedFile:
    def __init__(self, source: Union[str, Path], path: Union[str, Path]):
        source = convert_to_pathlib_path(source)
        if not is_absolute_path(source):
            raise ValueError(f"The source root must be absolute: {source}")
        self._source = source
        self._path = convert_to_pathlib_path(path)

    @property
    def source(self) -> Path:
        return self._source

    @property
    def path(self) -> Path:
        return self._path

    @property
    def relative_path(self) -> str:
        """The path relative to the parent of a directory source, or just the
        file name for a file source, always with '/' separators.
        """
        if self._path == self._source:
            return self._path.name
        base = self._source.parent
        if base == self._source:
            # Root of a drive/filesystem, nothing above it.
            base = self._source
        return PurePosixPath(*self._path.relative_to(base).parts).as_posix()

    @property
    def absolute_path(self) -> str:
        return self._path.as_posix()

    def entry_name(self, relative_entries: bool) -> str:
        return self.relative_path if relative_entries else self.absolute_path

    def __eq__(self, other):
        if not isinstance(other, CollectedFile):
            return NotImplemented
        return self._source == other._source and self._path == other._path

    def __hash__(self):
        return hash((self._source, self._path))

    def __repr__(self):
        return f"CollectedFile(source={self._source}, path={self._path})"


@dataclass
class ArchiveParameters:
    archive: Path
    relative_entries: bool = True
    sources: list[Source] = field(default_factory=list)

    def __post_init__(self):
        self.archive = convert_to_pathlib_path(self.archive)

    def add_source(self, source: Source):
        self.sources.append(source)


class FileCollector:
    def collect(
        self, sources: list[Source], cancellable: Cancellable = None
    ) -> tuple[list[CollectedFile], int]:
        for s in sources:
            if not is_absolute_path(s.path):
                raise RelativeSourcePathError(
                    f"The source path must be absolute: {s.path}"
                )

        files: list[CollectedFile] = []
        total_size = 0
        for s in sources:
            try:
                total_size += self._collect_source(s, files, cancellable)
            except OSError as ex:
                raise CollectionFailedError(
                    f"Failed to collect files from {s.path}", cause=ex
                ).with_traceback(ex.__traceback__) from ex
            if is_cancelled(cancellable):
                logging.info(f"File collection cancelled after {len(files)} files.")
                break

        logging.debug(f"Collected {len(files)} files, {total_size} bytes.")
        return files, total_size

    def _collect_source(
        self, source: Source, files: list[CollectedFile], cancellable: Cancellable
    ) -> int:
        root = source.path
        if root.is_symlink():
            logging.debug(f"Skipping symbolic link source: {root}")
            return 0
        if root.is_file():
            if is_cancelled(cancellable):
                return 0
            files.append(CollectedFile(source=root, path=root))
            return root.stat().st_size
        if not root.is_dir():
            raise CollectionFailedError(f"The source does not exist: {root}")
        return self._walk(root, root, source, files, cancellable)

    def _walk(
        self,
        root: Path,
        directory: Path,
        source: Source,
        files: list[CollectedFile],
        cancellable: Cancellable,
    ) -> int:
        total_size = 0
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
        for de in entries:
            if is_cancelled(cancellable):
                return total_size
            if de.is_symlink():
                continue
            p = Path(de.path)
            if de.is_dir(follow_symlinks=False):
                if source.dir_filter is not None and not source.dir_filter(p):
                    continue
                total_size += self._walk(root, p, source, files, cancellable)
            elif de.is_file(follow_symlinks=False):
                if source.file_filter is not None and not source.file_filter(p):
                    continue
                files.append(CollectedFile(source=root, path=p))
                total_size += de.stat(follow_symlinks=False).st_size
        return total_size
