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

import pytest
from pytest import raises

from arcbu.tools.backup.backup_cmdline import ConsoleProgressListener
from arcbu.tools.backup.command_line import main
from arcbu.tools.backup.config import ConfigurationManager

from .common_helpers import create_file, create_simple_tree, directory_contents

LOGGER = logging.getLogger(__name__)


def setup_module(module):
    pass


def teardown_module(module):
    pass


def config_add(config_dir: Path, name: str, source: Path, target: Path, *extra) -> int:
    return main(
        [
            "config",
            "add",
            name,
            "--source",
            str(source),
            "--target",
            str(target),
            "--config-dir",
            str(config_dir),
            *extra,
        ]
    )


def test_config_add_list(tmp_path: Path):
    config_dir = tmp_path / "configs"
    source = create_simple_tree(tmp_path / "root")
    exit_code = config_add(
        config_dir,
        "docs",
        source,
        tmp_path / "archives",
        "--codec",
        "tgz",
        "--verify",
        "--include",
        "*.txt",
        "--exclude-maven-target",
    )
    assert exit_code == 0
    saved = json.loads((config_dir / "docs.json").read_text(encoding="utf-8"))
    assert saved["name"] == "docs"
    assert saved["codec"] == "tgz"
    assert saved["verify"] is True
    assert saved["relative_entries"] is True
    assert saved["sources"][0]["path"] == str(source)
    assert saved["sources"][0]["file_filter"]["include"] == ["*.txt"]
    assert saved["sources"][0]["dir_filter"] == {"type": "maven_target"}

    assert main(["config", "list", "--config-dir", str(config_dir)]) == 0
    # Duplicate name.
    assert config_add(config_dir, "docs", source, tmp_path / "archives") == 1
    # Invalid name.
    assert config_add(config_dir, "bad-name", source, tmp_path / "archives") == 1


def test_config_remove(tmp_path: Path, monkeypatch):
    monkeypatch.setattr("arcbu.tools.backup.config.send2trash", os.remove)
    config_dir = tmp_path / "configs"
    source = create_simple_tree(tmp_path / "root")
    assert config_add(config_dir, "docs", source, tmp_path / "archives") == 0
    assert main(["config", "remove", "docs", "--config-dir", str(config_dir)]) == 0
    assert not (config_dir / "docs.json").exists()
    assert main(["config", "remove", "docs", "--config-dir", str(config_dir)]) == 1


def test_backup_restore_command_line(tmp_path: Path):
    config_dir = tmp_path / "configs"
    source_a = create_simple_tree(tmp_path / "a" / "root")
    source_b = create_file(tmp_path / "b" / "single.txt", b"single")
    assert config_add(config_dir, "cfg_a", source_a, tmp_path / "archives_a") == 0
    assert config_add(config_dir, "cfg_b", source_b, tmp_path / "archives_b", "--codec", "tgz") == 0

    assert main(["backup", "cfg_a", "cfg_b", "--config-dir", str(config_dir)]) == 0
    assert len(list((tmp_path / "archives_a").iterdir())) == 1
    archives_b = list((tmp_path / "archives_b").iterdir())
    assert len(archives_b) == 1
    assert archives_b[0].name.endswith(".tar.gz")

    restore_a = tmp_path / "restore_a"
    restore_a.mkdir()
    assert main(["restore", "cfg_a", "--target", str(restore_a), "--config-dir", str(config_dir)]) == 0
    assert directory_contents(restore_a) == directory_contents(tmp_path / "a")

    restore_b = tmp_path / "restore_b"
    restore_b.mkdir()
    exit_code = main(
        [
            "restore",
            "cfg_b",
            "--target",
            str(restore_b),
            "--archive",
            str(archives_b[0]),
            "--config-dir",
            str(config_dir),
        ]
    )
    assert exit_code == 0
    assert directory_contents(restore_b) == {"single.txt": b"single"}

    # Restoring again conflicts with the restored files, which are kept.
    assert main(["restore", "cfg_a", "--target", str(restore_a), "--config-dir", str(config_dir)]) == 1
    assert directory_contents(restore_a) == directory_contents(tmp_path / "a")


def test_backup_failures(tmp_path: Path):
    config_dir = tmp_path / "configs"
    source = create_simple_tree(tmp_path / "root")
    assert config_add(config_dir, "good", source, tmp_path / "archives") == 0
    assert config_add(config_dir, "gone", tmp_path / "missing", tmp_path / "archives_gone") == 0

    assert main(["backup", "unknown", "--config-dir", str(config_dir)]) == 1
    assert main(["backup", "good", "gone", "--config-dir", str(config_dir)]) == 1
    assert len(list((tmp_path / "archives").iterdir())) == 1
    assert list((tmp_path / "archives_gone").iterdir()) == []


def test_restore_without_archive(tmp_path: Path):
    config_dir = tmp_path / "configs"
    source = create_simple_tree(tmp_path / "root")
    assert config_add(config_dir, "docs", source, tmp_path / "archives") == 0
    restore_dir = tmp_path / "restore"
    restore_dir.mkdir()
    assert main(["restore", "docs", "--target", str(restore_dir), "--config-dir", str(config_dir)]) == 1


def test_console_progress_listener(caplog):
    listener = ConsoleProgressListener(operation_name="Backup")
    with caplog.at_level(logging.INFO):
        listener.task_started("cfg")
        listener.total_size_computed("cfg", 1000)
        for total in [50, 99, 100, 150, 420, 999, 1000]:
            listener.progress("cfg", total)
        listener.task_finished("cfg", None)
    percents = [r.getMessage() for r in caplog.records if r.getMessage().endswith("%")]
    assert percents == [
        "Backup 'cfg': 10%",
        "Backup 'cfg': 40%",
        "Backup 'cfg': 90%",
        "Backup 'cfg': 100%",
    ]
