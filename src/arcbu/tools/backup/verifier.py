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
r"""Archive verification, comparing every archive entry with the source file
it was created from.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Union

from .archive.base import ArchiveCodec
from .collector import CollectedFile
from .constants import *


class InputStreamComparator:
    def __init__(self, buffer_size: int = COMPARE_BUFFER_SIZE):
        self._buffer_size = buffer_size

    @staticmethod
    def _read_chunk(stream: BinaryIO, size: int) -> bytes:
        chunks = []
        remaining = size
        while remaining > 0:
            data = stream.read(remaining)
            if not data:
                break
            chunks.append(data)
            remaining -= len(data)
        return b"".join(chunks)

    def equals(self, stream1: BinaryIO, stream2: BinaryIO) -> bool:
        while True:
            chunk1 = InputStreamComparator._read_chunk(stream1, self._buffer_size)
            chunk2 = InputStreamComparator._read_chunk(stream2, self._buffer_size)
            if chunk1 != chunk2:
                return False
            if not chunk1:
                return True

    def equals_path(self, path: Union[str, Path], stream: BinaryIO) -> bool:
        with open(path, "rb") as f:
            return self.equals(f, stream)


class ArchiveVerifier:
    def __init__(self, comparator: InputStreamComparator = None):
        if comparator is None:
            comparator = InputStreamComparator()
        self._comparator = comparator

    def verify(
        self,
        codec: ArchiveCodec,
        archive_stream: BinaryIO,
        collected_files: list[CollectedFile],
        relative_entries: bool = True,
    ) -> bool:
        """Return True if every entry of the archive matches, byte for byte,
        the collected file with the same entry name. An entry without a
        matching file fails. All entries are checked even after a failure.
        """
        files_by_name = {
            cf.entry_name(relative_entries): cf for cf in collected_files
        }
        result = True
        entry_count = 0
        with codec.open_reader(archive_stream) as reader:
            for entry in reader:
                with entry:
                    entry_count += 1
                    cf = files_by_name.get(entry.name)
                    if cf is None:
                        logging.error(f"Verify: no source file for entry: {entry.name}")
                        result = False
                        continue
                    if not self._comparator.equals_path(cf.path, entry.open_stream()):
                        logging.error(
                            f"Verify: entry does not match source: "
                            f"entry={entry.name} source={cf.path}"
                        )
                        result = False
                        continue
                    logging.debug(f"Verify: entry ok: {entry.name}")
        logging.info(f"Verified {entry_count} entries: success={result}")
        return result
