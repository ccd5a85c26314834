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
r"""Gzip-compressed tar archive codec. Entries are read in streaming mode,
one at a time, in archive order.
"""

import shutil
import tarfile
import tempfile
import time
from typing import BinaryIO

from .base import (
    ArchiveCodec,
    ArchiveEntry,
    ArchiveReader,
    ArchiveWriter,
)
from ..constants import *

SPOOL_MAX_MEMORY_SIZE = 8 * 1024 * 1024


class TarArchiveEntry(ArchiveEntry):
    def __init__(self, tar_file: tarfile.TarFile, tar_info: tarfile.TarInfo):
        # Tar members carry no per-member compressed size.
        super().__init__(name=tar_info.name, compressed_size=tar_info.size)
        self._tar_file = tar_file
        self._tar_info = tar_info
        self._stream = None

    def open_stream(self) -> BinaryIO:
        if self._stream is None:
            self._stream = self._tar_file.extractfile(self._tar_info)
        return self._stream

    def close(self):
        if self._stream is not None:
            self._stream.close()
            self._stream = None


class TarGzArchiveWriter(ArchiveWriter):
    def __init__(self, output_stream: BinaryIO):
        self._tar_file = tarfile.open(fileobj=output_stream, mode="w:gz")

    def add_entry(self, name: str, reader: BinaryIO):
        # A tar header needs the size before the data, spool the entry first.
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_MEMORY_SIZE) as spool:
            shutil.copyfileobj(reader, spool, COPY_BUFFER_SIZE)
            tar_info = tarfile.TarInfo(name=name)
            tar_info.size = spool.tell()
            tar_info.mtime = int(time.time())
            spool.seek(0)
            self._tar_file.addfile(tar_info, spool)

    def close(self):
        self._tar_file.close()


class TarGzArchiveReader(ArchiveReader):
    def __init__(self, input_stream: BinaryIO):
        self._tar_file = tarfile.open(fileobj=input_stream, mode="r|gz")

    def next_entry(self) -> TarArchiveEntry:
        while True:
            tar_info = self._tar_file.next()
            if tar_info is None:
                return None
            if tar_info.isfile():
                return TarArchiveEntry(tar_file=self._tar_file, tar_info=tar_info)

    def close(self):
        self._tar_file.close()


class TarGzArchiveCodec(ArchiveCodec):
    @property
    def name(self) -> str:
        return CODEC_NAME_TGZ

    @property
    def extension(self) -> str:
        return "tar.gz"

    def open_writer(self, output_stream: BinaryIO) -> TarGzArchiveWriter:
        return TarGzArchiveWriter(output_stream)

    def open_reader(self, input_stream: BinaryIO) -> TarGzArchiveReader:
        return TarGzArchiveReader(input_stream)
