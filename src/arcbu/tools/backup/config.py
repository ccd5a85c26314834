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
r"""ARCBU configuration-related classes/functions.
- Configuration/Source describe one named backup.
- ConfigurationManager persists configurations, one JSON file each.
"""

from dataclasses import dataclass, field
import json
import logging
import os
from pathlib import Path
import re
from typing import Optional, Union

from send2trash import send2trash

from arcbu.common.exception import exc_to_string, InvalidConfigurationValue
from arcbu.common.util_helpers import convert_to_pathlib_path

from .constants import *
from .exception import (
    ConfigurationNotFoundError,
    DuplicateConfigurationName,
    InvalidConfigurationName,
)
from .filters import FileFilterPredicate, filter_from_dict, filter_to_dict
from .archive.base import ArchiveCodec, ArchiveCodecFactory

re_not_allowed_cfg_name = re.compile(r"[^\w]")


def is_configuration_name_ok(name: str) -> bool:
    if not name or not isinstance(name, str):
        return False
    return not re_not_allowed_cfg_name.search(name)


def validate_configuration_name(name: str):
    if name is None:
        raise InvalidConfigurationName("configuration has a null name")
    if name == "":
        raise InvalidConfigurationName("configuration has an empty name")
    if not is_configuration_name_ok(name):
        raise InvalidConfigurationName(f"configuration has an invalid name : '{name}'")


def get_default_config_dir() -> Path:
    env_dir = os.environ.get(ARCBU_CONFIG_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir)
    return Path.home() / ARCBU_DEFAULT_CONFIG_DIR_NAME


@dataclass(frozen=True)
class Source:
    path: Path
    dir_filter: Optional[FileFilterPredicate] = None
    file_filter: Optional[FileFilterPredicate] = None

    def __post_init__(self):
        object.__setattr__(self, "path", convert_to_pathlib_path(self.path))

    def to_serialization_dict(self) -> dict:
        return {
            CONFIG_VALUE_NAME_SOURCE_PATH: str(self.path),
            CONFIG_VALUE_NAME_DIR_FILTER: filter_to_dict(self.dir_filter),
            CONFIG_VALUE_NAME_FILE_FILTER: filter_to_dict(self.file_filter),
        }

    @staticmethod
    def from_serialization_dict(d: dict) -> "Source":
        return Source(
            path=Path(d[CONFIG_VALUE_NAME_SOURCE_PATH]),
            dir_filter=filter_from_dict(d.get(CONFIG_VALUE_NAME_DIR_FILTER)),
            file_filter=filter_from_dict(d.get(CONFIG_VALUE_NAME_FILE_FILTER)),
        )


@dataclass
class Configuration:
    name: str
    target_directory: Path
    sources: list[Source] = field(default_factory=list)
    codec_name: Optional[str] = CODEC_NAME_DEFAULT
    relative_entries: bool = True
    verify: bool = False

    def __post_init__(self):
        self.target_directory = convert_to_pathlib_path(self.target_directory)

    def validate_name(self):
        validate_configuration_name(self.name)

    def add_source(
        self,
        path: Union[str, Path],
        dir_filter: FileFilterPredicate = None,
        file_filter: FileFilterPredicate = None,
    ) -> Source:
        source = Source(path=path, dir_filter=dir_filter, file_filter=file_filter)
        self.sources.append(source)
        return source

    def create_codec(self) -> Optional[ArchiveCodec]:
        if self.codec_name is None:
            return None
        return ArchiveCodecFactory.create_codec(self.codec_name)

    def to_serialization_dict(self) -> dict:
        return {
            CONFIG_VALUE_NAME_CONFIG_NAME: self.name,
            CONFIG_VALUE_NAME_SOURCES: [
                s.to_serialization_dict() for s in self.sources
            ],
            CONFIG_VALUE_NAME_TARGET_DIRECTORY: str(self.target_directory),
            CONFIG_VALUE_NAME_CODEC: self.codec_name,
            CONFIG_VALUE_NAME_RELATIVE_ENTRIES: self.relative_entries,
            CONFIG_VALUE_NAME_VERIFY: self.verify,
        }

    @staticmethod
    def from_serialization_dict(d: dict) -> "Configuration":
        try:
            return Configuration(
                name=d[CONFIG_VALUE_NAME_CONFIG_NAME],
                target_directory=Path(d[CONFIG_VALUE_NAME_TARGET_DIRECTORY]),
                sources=[
                    Source.from_serialization_dict(s)
                    for s in d.get(CONFIG_VALUE_NAME_SOURCES, [])
                ],
                codec_name=d.get(CONFIG_VALUE_NAME_CODEC, CODEC_NAME_DEFAULT),
                relative_entries=d.get(CONFIG_VALUE_NAME_RELATIVE_ENTRIES, True),
                verify=d.get(CONFIG_VALUE_NAME_VERIFY, False),
            )
        except KeyError as ex:
            raise InvalidConfigurationValue(
                f"The configuration is missing the value {ex}.", cause=ex
            ).with_traceback(ex.__traceback__) from ex


class ConfigurationManager:
    def __init__(self, config_dir: Union[str, Path] = None):
        if config_dir is None:
            config_dir = get_default_config_dir()
        self._config_dir = convert_to_pathlib_path(config_dir)
        self._configurations: list[Configuration] = []
        self._is_loaded = False

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def config_file_for(self, name: str) -> Path:
        return self._config_dir / f"{name}{CONFIG_FILE_EXTENSION}"

    def get_configurations(self) -> list[Configuration]:
        if not self._is_loaded:
            self.load_all_configurations()
        return list(self._configurations)

    def get_configuration(self, name: str) -> Configuration:
        for c in self.get_configurations():
            if c.name == name:
                return c
        raise ConfigurationNotFoundError(f"The configuration '{name}' was not found.")

    def load_all_configurations(self):
        self._configurations.clear()
        self._is_loaded = True
        if not self._config_dir.is_dir():
            logging.debug(f"No configuration directory: {self._config_dir}")
            return
        for config_file in sorted(self._config_dir.glob(f"*{CONFIG_FILE_EXTENSION}")):
            try:
                config = self.load_configuration(config_file)
                if config_file.stem != config.name:
                    logging.error(
                        f"Configuration name '{config.name}' does not match "
                        f"the file name, skipping: {config_file}"
                    )
                    continue
                self._add_to_list(config)
            except Exception as ex:
                logging.error(
                    f"Failed to load configuration: {config_file} {exc_to_string(ex)}"
                )

    @staticmethod
    def load_configuration(config_file: Union[str, Path]) -> Configuration:
        with open(config_file, "r", encoding="utf-8") as f:
            return Configuration.from_serialization_dict(json.load(f))

    def save_configuration(self, config: Configuration) -> Path:
        validate_configuration_name(config.name)
        output = self.config_file_for(config.name)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            json.dump(config.to_serialization_dict(), f, indent=4)
        logging.debug(f"Saved configuration '{config.name}' to {output}")
        return output

    def add_configuration(self, config: Configuration) -> Path:
        if not self._is_loaded:
            self.load_all_configurations()
        self._add_to_list(config)
        return self.save_configuration(config)

    def remove_configuration(self, name: str):
        index = self._index_of(name)
        if index < 0:
            raise ConfigurationNotFoundError(f"The configuration '{name}' was not found.")
        del self._configurations[index]
        config_file = self.config_file_for(name)
        if config_file.exists():
            send2trash(str(config_file))
            logging.info(f"Configuration file sent to trash: {config_file}")

    def rename_configuration(self, old_name: str, config: Configuration) -> Path:
        validate_configuration_name(config.name)
        index = self._index_of(old_name)
        if index < 0:
            raise ConfigurationNotFoundError(
                f"The configuration '{old_name}' was not found."
            )
        if config.name != old_name and self._index_of(config.name) >= 0:
            raise DuplicateConfigurationName(
                f"There is already a configuration with name '{config.name}'"
            )
        old_file = self.config_file_for(old_name)
        self._configurations[index] = config
        output = self.save_configuration(config)
        if config.name != old_name and old_file.exists():
            old_file.unlink()
        return output

    @staticmethod
    def get_latest_archive(config: Configuration) -> Optional[Path]:
        target = config.target_directory
        if target is None or not target.is_dir():
            return None
        result = None
        for p in target.iterdir():
            if not p.is_file():
                continue
            if result is None or p.stat().st_mtime > result.stat().st_mtime:
                result = p
        return result

    def _index_of(self, name: str) -> int:
        if not self._is_loaded:
            self.load_all_configurations()
        for i, c in enumerate(self._configurations):
            if c.name == name:
                return i
        return -1

    def _add_to_list(self, config: Configuration):
        validate_configuration_name(config.name)
        if self._index_of(config.name) >= 0:
            raise DuplicateConfigurationName(
                f"There is already a configuration with name '{config.name}'"
            )
        self._configurations.append(config)
