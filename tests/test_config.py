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

# pylint: disable=unused-argument
# pylint: disable=unused-variable
# pylint: disable=unused-import

import json
import logging
import os
from pathlib import Path
import time

from pytest import raises

from arcbu.common.exception import InvalidConfigurationValue
from arcbu.tools.backup.config import (
    Configuration,
    ConfigurationManager,
    Source,
    get_default_config_dir,
    is_configuration_name_ok,
    validate_configuration_name,
)
from arcbu.tools.backup.constants import ARCBU_CONFIG_DIR_ENV_VAR
from arcbu.tools.backup.exception import (
    ConfigurationNotFoundError,
    DuplicateConfigurationName,
    InvalidConfigurationName,
    UnknownCodecError,
)
from arcbu.tools.backup.filters import MavenTargetExcludeFilter, PatternFilter

from .common_helpers import create_file

LOGGER = logging.getLogger(__name__)


def setup_module(module):
    pass


def teardown_module(module):
    pass


def make_configuration(tmp_path: Path, name: str = "my_backup") -> Configuration:
    config = Configuration(name=name, target_directory=tmp_path / "archives")
    config.add_source(
        tmp_path / "src",
        dir_filter=MavenTargetExcludeFilter(),
        file_filter=PatternFilter(include=["*.txt"]),
    )
    config.add_source(tmp_path / "single.txt")
    return config


def test_configuration_name_validation():
    assert is_configuration_name_ok("backup_1")
    assert is_configuration_name_ok("Sauvegarde")
    assert not is_configuration_name_ok("")
    assert not is_configuration_name_ok("my backup")
    assert not is_configuration_name_ok("a/b")
    assert not is_configuration_name_ok("a.b")
    with raises(InvalidConfigurationName):
        validate_configuration_name(None)
    with raises(InvalidConfigurationName):
        validate_configuration_name("")
    with raises(InvalidConfigurationName):
        validate_configuration_name("bad-name")


def test_configuration_serialization(tmp_path: Path):
    config = make_configuration(tmp_path)
    config.codec_name = "tgz"
    config.verify = True
    config.relative_entries = False
    d = json.loads(json.dumps(config.to_serialization_dict()))
    restored = Configuration.from_serialization_dict(d)
    assert restored == config
    assert restored.sources[0].dir_filter == MavenTargetExcludeFilter()
    assert restored.sources[0].file_filter == PatternFilter(include=["*.txt"])
    assert restored.sources[1].dir_filter is None

    with raises(InvalidConfigurationValue):
        Configuration.from_serialization_dict({"name": "x"})


def test_configuration_create_codec(tmp_path: Path):
    config = make_configuration(tmp_path)
    assert config.create_codec().name == "zip"
    config.codec_name = None
    assert config.create_codec() is None
    config.codec_name = "rar"
    with raises(UnknownCodecError):
        config.create_codec()


def test_source_path_conversion(tmp_path: Path):
    s = Source(path=str(tmp_path))
    assert isinstance(s.path, Path)
    assert s.dir_filter is None and s.file_filter is None


def test_configuration_manager(tmp_path: Path):
    config_dir = tmp_path / "configs"
    manager = ConfigurationManager(config_dir=config_dir)
    assert manager.get_configurations() == []

    config = make_configuration(tmp_path)
    config_file = manager.add_configuration(config)
    assert config_file == config_dir / "my_backup.json"
    assert config_file.is_file()

    with raises(DuplicateConfigurationName):
        manager.add_configuration(make_configuration(tmp_path))
    with raises(InvalidConfigurationName):
        manager.add_configuration(make_configuration(tmp_path, name="bad name"))

    manager2 = ConfigurationManager(config_dir=config_dir)
    configs = manager2.get_configurations()
    assert len(configs) == 1
    assert configs[0] == config
    assert manager2.get_configuration("my_backup") == config
    with raises(ConfigurationNotFoundError):
        manager2.get_configuration("other")


def test_configuration_manager_rename(tmp_path: Path):
    config_dir = tmp_path / "configs"
    manager = ConfigurationManager(config_dir=config_dir)
    manager.add_configuration(make_configuration(tmp_path, name="first"))
    manager.add_configuration(make_configuration(tmp_path, name="second"))

    renamed = make_configuration(tmp_path, name="third")
    manager.rename_configuration("first", renamed)
    assert not (config_dir / "first.json").exists()
    assert (config_dir / "third.json").is_file()
    assert [c.name for c in manager.get_configurations()] == ["third", "second"]

    with raises(DuplicateConfigurationName):
        manager.rename_configuration("third", make_configuration(tmp_path, name="second"))
    with raises(ConfigurationNotFoundError):
        manager.rename_configuration("first", make_configuration(tmp_path, name="fourth"))


def test_configuration_manager_remove(tmp_path: Path, monkeypatch):
    trashed = []

    def fake_send2trash(path):
        trashed.append(path)
        os.remove(path)

    monkeypatch.setattr("arcbu.tools.backup.config.send2trash", fake_send2trash)

    config_dir = tmp_path / "configs"
    manager = ConfigurationManager(config_dir=config_dir)
    manager.add_configuration(make_configuration(tmp_path))
    manager.remove_configuration("my_backup")
    assert trashed == [str(config_dir / "my_backup.json")]
    assert manager.get_configurations() == []
    with raises(ConfigurationNotFoundError):
        manager.remove_configuration("my_backup")


def test_configuration_manager_skips_bad_files(tmp_path: Path):
    config_dir = tmp_path / "configs"
    manager = ConfigurationManager(config_dir=config_dir)
    manager.add_configuration(make_configuration(tmp_path, name="good"))
    create_file(config_dir / "broken.json", b"{not json")
    mismatch = make_configuration(tmp_path, name="inside").to_serialization_dict()
    create_file(config_dir / "outside.json", json.dumps(mismatch).encode("utf-8"))

    manager2 = ConfigurationManager(config_dir=config_dir)
    assert [c.name for c in manager2.get_configurations()] == ["good"]


def test_get_latest_archive(tmp_path: Path):
    config = make_configuration(tmp_path)
    assert ConfigurationManager.get_latest_archive(config) is None

    older = create_file(config.target_directory / "my_backup_1.zip", b"1")
    newer = create_file(config.target_directory / "my_backup_2.zip", b"2")
    now = time.time()
    os.utime(older, (now - 100, now - 100))
    os.utime(newer, (now, now))
    (config.target_directory / "subdir").mkdir()
    assert ConfigurationManager.get_latest_archive(config) == newer


def test_default_config_dir(monkeypatch, tmp_path: Path):
    monkeypatch.setenv(ARCBU_CONFIG_DIR_ENV_VAR, str(tmp_path))
    assert get_default_config_dir() == tmp_path
    monkeypatch.delenv(ARCBU_CONFIG_DIR_ENV_VAR)
    assert get_default_config_dir() == Path.home() / ".arcbu"
