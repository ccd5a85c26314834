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
r"""Base for ARCBU archive codec abstraction, decoupling the backup engine
from any particular archive format. A codec writes (name, byte stream)
entries to an output stream and reads them back, in archive order, from an
input stream.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Iterator

from ..constants import *
from ..exception import UnknownCodecError


class ArchiveEntry(ABC):
    def __init__(self, name: str, compressed_size: int):
        self._name = name
        self._compressed_size = compressed_size

    @property
    def name(self) -> str:
        return self._name

    @property
    def compressed_size(self) -> int:
        return self._compressed_size

    @abstractmethod
    def open_stream(self) -> BinaryIO:
        pass

    @abstractmethod
    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class ArchiveWriter(ABC):
    @abstractmethod
    def add_entry(self, name: str, reader: BinaryIO):
        pass

    @abstractmethod
    def close(self):
        """Finalize the archive (i.e., write any trailing metadata)."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class ArchiveReader(ABC):
    @abstractmethod
    def next_entry(self) -> ArchiveEntry:
        """Return the next entry, or None when there are no more entries."""

    @abstractmethod
    def close(self):
        pass

    def __iter__(self) -> Iterator[ArchiveEntry]:
        while True:
            entry = self.next_entry()
            if entry is None:
                return
            yield entry

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class ArchiveCodec(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def extension(self) -> str:
        pass

    @abstractmethod
    def open_writer(self, output_stream: BinaryIO) -> ArchiveWriter:
        pass

    @abstractmethod
    def open_reader(self, input_stream: BinaryIO) -> ArchiveReader:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name})"


class ArchiveCodecFactory:
    @staticmethod
    def get_codec_names() -> list[str]:
        return [CODEC_NAME_ZIP, CODEC_NAME_TGZ]

    @staticmethod
    def create_codec(codec_name: str) -> ArchiveCodec:
        # pylint: disable=import-outside-toplevel
        if codec_name == CODEC_NAME_ZIP:
            from .zip import ZipArchiveCodec

            return ZipArchiveCodec()
        elif codec_name == CODEC_NAME_TGZ:
            from .tar import TarGzArchiveCodec

            return TarGzArchiveCodec()
        else:
            raise UnknownCodecError(
                f"Unknown codec '{codec_name}', "
                f"expected one of {ArchiveCodecFactory.get_codec_names()}."
            )

    @staticmethod
    def create_codec_for_archive(archive_name: str) -> ArchiveCodec:
        for codec_name in ArchiveCodecFactory.get_codec_names():
            codec = ArchiveCodecFactory.create_codec(codec_name)
            if str(archive_name).endswith(f".{codec.extension}"):
                return codec
        raise UnknownCodecError(
            f"Cannot determine the codec from the archive name: {archive_name}"
        )
