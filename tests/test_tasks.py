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

from datetime import datetime
import logging
from pathlib import Path
import re

import pytest
from pytest import raises

from arcbu.tools.backup.archive.base import ArchiveCodecFactory
from arcbu.tools.backup.archive.zip import ZipArchiveCodec
from arcbu.tools.backup.cancellable import CancellationToken
from arcbu.tools.backup.config import Configuration
from arcbu.tools.backup.deleter import FileDeleter
from arcbu.tools.backup.exception import (
    ArchiveNotFoundError,
    CodecRequiredError,
    CompressionError,
    InvalidConfigurationName,
    MissingTargetDirectoryError,
    NoSourcesError,
    RelativeSourcePathError,
    RestoreFilePathAlreadyExistsError,
    VerificationFailedError,
)
from arcbu.tools.backup.task import (
    BackupTask,
    RestoreTask,
    TaskState,
    generate_archive_name,
)
from arcbu.tools.backup.verifier import InputStreamComparator

from .common_helpers import (
    FailingArchiveCodec,
    RecordingTaskListener,
    create_file,
    create_simple_tree,
    directory_contents,
)

LOGGER = logging.getLogger(__name__)


class CancellingListener(RecordingTaskListener):
    """Cancel the task on the first progress notification."""

    def __init__(self, token: CancellationToken):
        super().__init__()
        self.token = token

    def progress(self, total_read_bytes: int):
        super().progress(total_read_bytes)
        self.token.cancel()


class TrackingDeleterFactory:
    def __init__(self):
        self.deleters = []

    def __call__(self) -> FileDeleter:
        deleter = FileDeleter()
        self.deleters.append(deleter)
        return deleter


def setup_module(module):
    pass


def teardown_module(module):
    pass


def create_configuration(tmp_path: Path, codec_name="zip", verify=False) -> Configuration:
    root = create_simple_tree(tmp_path / "root")
    config = Configuration(
        name="test_cfg",
        target_directory=tmp_path / "archives",
        codec_name=codec_name,
        verify=verify,
    )
    config.add_source(root)
    return config


def get_archives(config: Configuration) -> list[Path]:
    if not config.target_directory.exists():
        return []
    return list(config.target_directory.iterdir())


def test_generate_archive_name():
    now = datetime(2024, 1, 2, 3, 4, 5)
    assert generate_archive_name("cfg", ZipArchiveCodec(), now) == "cfg_2024_01_02_03_04_05.zip"
    tgz = ArchiveCodecFactory.create_codec("tgz")
    assert generate_archive_name("cfg", tgz, now) == "cfg_2024_01_02_03_04_05.tar.gz"
    with raises(CodecRequiredError):
        generate_archive_name("cfg", None, now)


@pytest.mark.parametrize("codec_name", ArchiveCodecFactory.get_codec_names())
@pytest.mark.parametrize("verify", [False, True])
def test_backup_task(tmp_path: Path, codec_name: str, verify: bool):
    config = create_configuration(tmp_path, codec_name=codec_name, verify=verify)
    listener = RecordingTaskListener()
    task = BackupTask(config, listener=listener)
    task()
    assert task.state == TaskState.COMPLETED
    assert task.error is None

    archives = get_archives(config)
    assert len(archives) == 1
    assert re.fullmatch(r"test_cfg_\d{4}_\d{2}_\d{2}_\d{2}_\d{2}_\d{2}\.(zip|tar\.gz)", archives[0].name)
    assert listener.event_names == [
        "task_started",
        "total_size_computed",
        "progress",
        "progress",
        "task_finished",
    ]
    assert listener.get_events("total_size_computed") == [("total_size_computed", 15)]
    assert listener.get_events("progress")[-1] == ("progress", 15)
    assert listener.get_events("task_finished") == [("task_finished", None)]


def test_backup_failure_rolls_back(tmp_path: Path):
    config = create_configuration(tmp_path)
    listener = RecordingTaskListener()
    deleter_factory = TrackingDeleterFactory()
    task = BackupTask(
        config,
        deleter_factory=deleter_factory,
        listener=listener,
        codec=FailingArchiveCodec(fail_at_entry=1),
    )
    with raises(CompressionError):
        task()
    assert task.state == TaskState.FAILED
    assert isinstance(task.error, CompressionError)
    assert get_archives(config) == []
    assert len(deleter_factory.deleters) == 1
    assert deleter_factory.deleters[0].registered_files == []
    finished = listener.get_events("task_finished")
    assert len(finished) == 1
    assert isinstance(finished[0][1], CompressionError)


def test_backup_verification_failure(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(InputStreamComparator, "equals", lambda self, s1, s2: False)
    config = create_configuration(tmp_path, verify=True)
    listener = RecordingTaskListener()
    task = BackupTask(config, listener=listener)
    with raises(VerificationFailedError):
        task()
    assert get_archives(config) == []
    assert isinstance(listener.get_events("task_finished")[0][1], VerificationFailedError)


def test_backup_validation(tmp_path: Path):
    config = create_configuration(tmp_path, codec_name=None)
    listener = RecordingTaskListener()
    with raises(CodecRequiredError):
        BackupTask(config, listener=listener)()
    assert not config.target_directory.exists()
    assert listener.event_names == ["task_started", "task_finished"]

    config = create_configuration(tmp_path)
    config.add_source(Path("relative") / "path")
    with raises(RelativeSourcePathError):
        BackupTask(config)()
    assert not config.target_directory.exists()

    config = create_configuration(tmp_path)
    config.name = "bad name"
    with raises(InvalidConfigurationName):
        BackupTask(config)()

    config = Configuration(name="empty_cfg", target_directory=tmp_path / "empty")
    with raises(NoSourcesError):
        BackupTask(config)()
    assert not config.target_directory.exists()


def test_backup_cancelled_during_compression(tmp_path: Path):
    config = create_configuration(tmp_path)
    token = CancellationToken()
    listener = CancellingListener(token)
    task = BackupTask(config, listener=listener, cancellable=token)
    task()
    assert task.state == TaskState.CANCELLED
    assert task.error is None
    assert get_archives(config) == []
    assert listener.get_events("progress") == [("progress", 10)]
    assert listener.get_events("task_finished") == [("task_finished", None)]


def test_backup_cancelled_before_start(tmp_path: Path):
    config = create_configuration(tmp_path)
    token = CancellationToken()
    token.cancel()
    listener = RecordingTaskListener()
    task = BackupTask(config, listener=listener, cancellable=token)
    task()
    assert task.state == TaskState.CANCELLED
    assert get_archives(config) == []
    assert listener.event_names == ["task_started", "task_finished"]


@pytest.mark.parametrize("codec_name", ArchiveCodecFactory.get_codec_names())
def test_restore_task(tmp_path: Path, codec_name: str):
    config = create_configuration(tmp_path, codec_name=codec_name)
    BackupTask(config)()
    archive = get_archives(config)[0]

    restore_dir = tmp_path / "restore"
    restore_dir.mkdir()
    listener = RecordingTaskListener()
    task = RestoreTask(config, archive=archive, target_directory=restore_dir, listener=listener)
    task()
    assert task.state == TaskState.COMPLETED
    assert directory_contents(restore_dir) == {
        "root/a.txt": b"0123456789",
        "root/sub/b.txt": b"abcde",
    }
    assert listener.get_events("total_size_computed") == [
        ("total_size_computed", archive.stat().st_size)
    ]
    assert listener.get_events("progress")[-1] == ("progress", 15)
    assert listener.get_events("task_finished") == [("task_finished", None)]


def test_restore_uses_archive_codec(tmp_path: Path):
    config = create_configuration(tmp_path, codec_name="tgz")
    BackupTask(config)()
    archive = get_archives(config)[0]
    assert archive.name.endswith(".tar.gz")

    config.codec_name = "zip"
    restore_dir = tmp_path / "restore"
    restore_dir.mkdir()
    task = RestoreTask(config, archive=archive, target_directory=restore_dir)
    task()
    assert task.state == TaskState.COMPLETED
    assert directory_contents(restore_dir) == {
        "root/a.txt": b"0123456789",
        "root/sub/b.txt": b"abcde",
    }


def test_restore_explicit_codec_wins(tmp_path: Path):
    config = create_configuration(tmp_path)
    BackupTask(config)()
    archive = get_archives(config)[0]

    codec = ZipArchiveCodec()
    task = RestoreTask(
        config, archive=archive, target_directory=tmp_path, codec=codec
    )
    assert task.get_codec() is codec

    config.codec_name = "tgz"
    task = RestoreTask(config, archive=tmp_path / "cfg.bin", target_directory=tmp_path)
    assert task.get_codec().name == "tgz"


def test_restore_failure_rolls_back(tmp_path: Path):
    config = create_configuration(tmp_path)
    BackupTask(config)()
    archive = get_archives(config)[0]

    restore_dir = tmp_path / "restore"
    create_file(restore_dir / "root" / "sub" / "b.txt", b"keep me")
    task = RestoreTask(config, archive=archive, target_directory=restore_dir)
    with raises(RestoreFilePathAlreadyExistsError):
        task()
    assert task.state == TaskState.FAILED
    assert directory_contents(restore_dir) == {"root/sub/b.txt": b"keep me"}


def test_restore_validation(tmp_path: Path):
    config = create_configuration(tmp_path)
    BackupTask(config)()
    archive = get_archives(config)[0]

    missing_target = tmp_path / "missing"
    with raises(MissingTargetDirectoryError):
        RestoreTask(config, archive=archive, target_directory=missing_target)()
    assert not missing_target.exists()

    with raises(ArchiveNotFoundError):
        RestoreTask(config, archive=tmp_path / "none.zip", target_directory=tmp_path)()

    config.codec_name = None
    with raises(CodecRequiredError):
        RestoreTask(config, archive=archive, target_directory=tmp_path)()


def test_restore_cancelled(tmp_path: Path):
    config = create_configuration(tmp_path)
    BackupTask(config)()
    archive = get_archives(config)[0]

    restore_dir = tmp_path / "restore"
    restore_dir.mkdir()
    token = CancellationToken()
    listener = CancellingListener(token)
    task = RestoreTask(
        config,
        archive=archive,
        target_directory=restore_dir,
        listener=listener,
        cancellable=token,
    )
    task()
    assert task.state == TaskState.CANCELLED
    assert list(restore_dir.iterdir()) == []
