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
r"""Utility/helper functions.
"""

# pylint: disable=missing-class-docstring

from enum import Enum
import os
from pathlib import Path, PurePath
from typing import Union

from .exception import InvalidFunctionArgument

_ONE_KB = 1024
_ONE_MB = _ONE_KB * 1024
_ONE_GB = _ONE_MB * 1024


class AutoNameEnum(Enum):
    @staticmethod
    def _generate_next_value_(name, start, count, last_values):
        return name


def convert_to_pathlib_path(p):
    if p is None:
        return None
    if not isinstance(p, Path):
        p = Path(p)
    return p


def convert_to_str_path(p):
    if p is None:
        return p
    if not isinstance(p, str):
        p = str(p)
    return p


def is_absolute_path(path_to_dir: Union[str, Path]):
    if isinstance(path_to_dir, Path):
        path_to_dir = str(path_to_dir)
    converted_to_abs = os.path.normcase(os.path.abspath(path_to_dir).rstrip("\\/"))
    original_path = os.path.normcase(path_to_dir.rstrip("\\/"))
    return converted_to_abs == original_path


def path_without_root(path: Union[str, PurePath]) -> str:
    """Return path with any drive and leading separators removed, i.e.
    'C:\\a\\b' -> 'a\\b', '/a/b' -> 'a/b'.
    """
    path = convert_to_str_path(path)
    without_drive = os.path.splitdrive(path)[1]
    return without_drive.lstrip("\\/")


def is_path_within(path: Union[str, Path], directory: Union[str, Path]) -> bool:
    path = os.path.normcase(os.path.abspath(path))
    directory = os.path.normcase(os.path.abspath(directory))
    if path == directory:
        return True
    return path.startswith(directory.rstrip("\\/") + os.sep)


def byte_count_to_display_size(size: int) -> str:
    if size is None or size < 0:
        raise InvalidFunctionArgument(f"Expected a positive byte count: size={size}")
    if size >= _ONE_GB:
        return f"{size // _ONE_GB} GB"
    if size >= _ONE_MB:
        return f"{size // _ONE_MB} MB"
    if size >= _ONE_KB:
        return f"{size // _ONE_KB} KB"
    return f"{size} bytes"
