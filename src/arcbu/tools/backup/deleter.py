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
r"""FileDeleter, the rollback registry of a task. Paths registered here must
not exist at registration time, they are created by the task and are removed
again if the task fails or is cancelled.
"""

import logging
import os
from pathlib import Path
import shutil
from typing import Union

from arcbu.common.exception import exc_to_string
from arcbu.common.util_helpers import convert_to_pathlib_path

from .exception import PathAlreadyExistsError


class FileDeleter:
    def __init__(self):
        self._registered_files: list[Path] = []
        self._registered_directories: list[Path] = []

    @property
    def registered_files(self) -> list[Path]:
        return list(self._registered_files)

    @property
    def registered_directories(self) -> list[Path]:
        return list(self._registered_directories)

    def register_file(self, file: Union[str, Path]):
        file = convert_to_pathlib_path(file)
        if file.exists():
            raise PathAlreadyExistsError(f"The file '{file}' already exists.")
        self._registered_files.append(file)

    def register_directory(self, directory: Union[str, Path]):
        directory = convert_to_pathlib_path(directory)
        if directory.exists():
            raise PathAlreadyExistsError(f"The directory '{directory}' already exists.")
        self._registered_directories.append(directory)

    def delete(self, path: Union[str, Path]) -> bool:
        """Delete a single registered path, returning True if it was deleted.
        The path is no longer registered afterwards.
        """
        path = convert_to_pathlib_path(path)
        if path in self._registered_files:
            self._registered_files.remove(path)
            return self._delete_path(path=path, expect_file=True)
        if path in self._registered_directories:
            self._registered_directories.remove(path)
            return self._delete_path(path=path, expect_file=False)
        logging.warning(f"FileDeleter: not registered, not deleting: {path}")
        return False

    def delete_all(self):
        """Delete all registered files, then all registered directories.
        Paths are unregistered as they are processed, calling this again
        does nothing.
        """
        files = self._registered_files
        directories = self._registered_directories
        self._registered_files = []
        self._registered_directories = []
        for f in files:
            self._delete_path(path=f, expect_file=True)
        for d in directories:
            self._delete_path(path=d, expect_file=False)

    def _delete_path(self, path: Path, expect_file: bool) -> bool:
        if not os.path.lexists(path):
            # Never created, i.e., failure before the file was written.
            logging.debug(f"FileDeleter: does not exist: {path}")
            return True
        is_file = path.is_file() or path.is_symlink()
        is_dir = path.is_dir() and not path.is_symlink()
        if (expect_file and not is_file) or (not expect_file and not is_dir):
            logging.error(
                f"FileDeleter: wrong path type: "
                f"expected={'file' if expect_file else 'directory'} "
                f"is_file={is_file} is_dir={is_dir} path={path}"
            )
            logging.error(f"{path} : NOT DELETED")
            return False
        try:
            if expect_file:
                path.unlink()
            else:
                shutil.rmtree(path)
        except OSError as ex:
            logging.error(f"{path} : NOT DELETED {exc_to_string(ex)}")
            return False
        logging.info(f"{path} : deleted")
        return True
