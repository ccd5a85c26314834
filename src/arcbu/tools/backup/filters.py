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
r"""File/directory predicates applied while collecting files.

A predicate is any callable taking a pathlib.Path and returning a bool.
The classes here are the ones that can be persisted with a configuration.
"""

from fnmatch import fnmatch
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from arcbu.common.exception import InvalidConfigurationValue

from .constants import *

FileFilterPredicate = Callable[[Path], bool]

MAVEN2_PROJECT_FILE = "pom.xml"
MAVEN2_TARGET_DIR = "target"
MAVEN2_PROJECT_HEAD_SIZE = 2048


def accept_all(path: Path) -> bool:  # pylint: disable=unused-argument
    return True


class PatternFilter:
    """Accept a path if its name (or its full path) matches one of the include
    patterns, when there are any, and none of the exclude patterns.
    """

    def __init__(self, include: list[str] = None, exclude: list[str] = None):
        self.include = list(include) if include else []
        self.exclude = list(exclude) if exclude else []
        self._nc_include = [os.path.normcase(p) for p in self.include]
        self._nc_exclude = [os.path.normcase(p) for p in self.exclude]

    @staticmethod
    def _is_match(path: Path, nc_patterns: list[str]) -> bool:
        nc_name = os.path.normcase(path.name)
        nc_path = os.path.normcase(path.as_posix())
        for p in nc_patterns:
            if fnmatch(nc_name, p) or fnmatch(nc_path, p):
                return True
        return False

    def __call__(self, path: Path) -> bool:
        if self._nc_include and not self._is_match(path, self._nc_include):
            return False
        return not self._is_match(path, self._nc_exclude)

    def __eq__(self, other):
        if not isinstance(other, PatternFilter):
            return NotImplemented
        return self.include == other.include and self.exclude == other.exclude

    def __repr__(self):
        return f"PatternFilter(include={self.include}, exclude={self.exclude})"


class MavenTargetRecognizer:
    def could_be_maven_target_directory(self, directory: Path) -> bool:
        return (
            directory is not None
            and directory.is_dir()
            and directory.name == MAVEN2_TARGET_DIR
        )

    def get_maven_project_file(self, directory: Path) -> Optional[Path]:
        if directory is None or not directory.is_dir():
            return None
        project_path = directory / MAVEN2_PROJECT_FILE
        if not project_path.is_file():
            return None
        with open(project_path, "r", encoding="utf-8", errors="replace") as f:
            head = f.read(MAVEN2_PROJECT_HEAD_SIZE)
        if not self.is_maven_project_content(head):
            return None
        return project_path

    @staticmethod
    def is_maven_project_content(content: str) -> bool:
        index = content.find("<project")
        if index < 0:
            return False
        return content.find("<modelVersion>", index + len("<project")) >= 0

    def is_maven_target(self, directory: Path) -> bool:
        return (
            self.could_be_maven_target_directory(directory)
            and self.get_maven_project_file(directory.parent) is not None
        )


class MavenTargetExcludeFilter:
    """Directory predicate rejecting Maven build output directories,
    i.e., 'target' next to a Maven 'pom.xml'.
    """

    def __init__(self):
        self._recognizer = MavenTargetRecognizer()

    def __call__(self, path: Path) -> bool:
        try:
            is_target = self._recognizer.is_maven_target(path)
        except OSError as ex:
            logging.warning(f"Cannot inspect directory, accepting it: {path} ex={ex}")
            return True
        if is_target:
            logging.debug(f"Skipping Maven target directory: {path}")
        return not is_target

    def __eq__(self, other):
        return isinstance(other, MavenTargetExcludeFilter)

    def __repr__(self):
        return "MavenTargetExcludeFilter()"


def filter_to_dict(predicate: FileFilterPredicate) -> Optional[dict]:
    if predicate is None:
        return None
    if isinstance(predicate, PatternFilter):
        return {
            CONFIG_VALUE_NAME_FILTER_TYPE: FILTER_TYPE_PATTERN,
            CONFIG_VALUE_NAME_FILTER_INCLUDE: predicate.include,
            CONFIG_VALUE_NAME_FILTER_EXCLUDE: predicate.exclude,
        }
    if isinstance(predicate, MavenTargetExcludeFilter):
        return {CONFIG_VALUE_NAME_FILTER_TYPE: FILTER_TYPE_MAVEN_TARGET}
    raise InvalidConfigurationValue(
        f"The filter cannot be saved with a configuration: {predicate}"
    )


def filter_from_dict(d: Optional[dict]) -> Optional[FileFilterPredicate]:
    if d is None:
        return None
    filter_type = d.get(CONFIG_VALUE_NAME_FILTER_TYPE)
    if filter_type == FILTER_TYPE_PATTERN:
        return PatternFilter(
            include=d.get(CONFIG_VALUE_NAME_FILTER_INCLUDE),
            exclude=d.get(CONFIG_VALUE_NAME_FILTER_EXCLUDE),
        )
    if filter_type == FILTER_TYPE_MAVEN_TARGET:
        return MavenTargetExcludeFilter()
    raise InvalidConfigurationValue(f"Unknown filter type '{filter_type}'.")
