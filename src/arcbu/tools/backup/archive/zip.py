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
r"""Zip archive codec.
"""

import shutil
from typing import BinaryIO
import zipfile

from .base import (
    ArchiveCodec,
    ArchiveEntry,
    ArchiveReader,
    ArchiveWriter,
)
from ..constants import *


class ZipArchiveEntry(ArchiveEntry):
    def __init__(self, zip_file: zipfile.ZipFile, zip_info: zipfile.ZipInfo):
        super().__init__(name=zip_info.filename, compressed_size=zip_info.compress_size)
        self._zip_file = zip_file
        self._zip_info = zip_info
        self._stream = None

    def open_stream(self) -> BinaryIO:
        if self._stream is None:
            self._stream = self._zip_file.open(self._zip_info, mode="r")
        return self._stream

    def close(self):
        if self._stream is not None:
            self._stream.close()
            self._stream = None


class ZipArchiveWriter(ArchiveWriter):
    def __init__(self, output_stream: BinaryIO):
        self._zip_file = zipfile.ZipFile(
            output_stream, mode="w", compression=zipfile.ZIP_DEFLATED
        )

    def add_entry(self, name: str, reader: BinaryIO):
        # Entry sizes are unknown up front, allow for large entries.
        with self._zip_file.open(name, mode="w", force_zip64=True) as entry_stream:
            shutil.copyfileobj(reader, entry_stream, COPY_BUFFER_SIZE)

    def close(self):
        self._zip_file.close()


class ZipArchiveReader(ArchiveReader):
    def __init__(self, input_stream: BinaryIO):
        self._zip_file = zipfile.ZipFile(input_stream, mode="r")
        self._zip_infos = [i for i in self._zip_file.infolist() if not i.is_dir()]
        self._next_index = 0

    def next_entry(self) -> ZipArchiveEntry:
        if self._next_index >= len(self._zip_infos):
            return None
        zip_info = self._zip_infos[self._next_index]
        self._next_index += 1
        return ZipArchiveEntry(zip_file=self._zip_file, zip_info=zip_info)

    def close(self):
        self._zip_file.close()


class ZipArchiveCodec(ArchiveCodec):
    @property
    def name(self) -> str:
        return CODEC_NAME_ZIP

    @property
    def extension(self) -> str:
        return "zip"

    def open_writer(self, output_stream: BinaryIO) -> ZipArchiveWriter:
        return ZipArchiveWriter(output_stream)

    def open_reader(self, input_stream: BinaryIO) -> ZipArchiveReader:
        return ZipArchiveReader(input_stream)
