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
r"""ARCBU constants.
"""

ARCBU_ACRONYM = "arcbu"
ARCBU_ACRONUM_U = "ARCBU"
ARCBU_PROGRAM_NAME = ARCBU_ACRONYM
ARCBU_VERSION_STRING = "0.0.1"

ARCBU_DEFAULT_CONFIG_DIR_NAME = f".{ARCBU_ACRONYM}"
ARCBU_CONFIG_DIR_ENV_VAR = "ARCBU_CONFIG_DIR"
CONFIG_FILE_EXTENSION = ".json"

CONFIG_VALUE_NAME_CONFIG_NAME = "name"
CONFIG_VALUE_NAME_SOURCES = "sources"
CONFIG_VALUE_NAME_SOURCE_PATH = "path"
CONFIG_VALUE_NAME_DIR_FILTER = "dir_filter"
CONFIG_VALUE_NAME_FILE_FILTER = "file_filter"
CONFIG_VALUE_NAME_TARGET_DIRECTORY = "target_directory"
CONFIG_VALUE_NAME_CODEC = "codec"
CONFIG_VALUE_NAME_RELATIVE_ENTRIES = "relative_entries"
CONFIG_VALUE_NAME_VERIFY = "verify"
CONFIG_VALUE_NAME_FILTER_TYPE = "type"
CONFIG_VALUE_NAME_FILTER_INCLUDE = "include"
CONFIG_VALUE_NAME_FILTER_EXCLUDE = "exclude"

FILTER_TYPE_PATTERN = "pattern"
FILTER_TYPE_MAVEN_TARGET = "maven_target"

CODEC_NAME_ZIP = "zip"
CODEC_NAME_TGZ = "tgz"
CODEC_NAME_DEFAULT = CODEC_NAME_ZIP

ARCHIVE_NAME_TIME_STAMP_FORMAT = "%Y_%m_%d_%H_%M_%S"

DEFAULT_MAX_WORKERS = 8
WORKER_THREAD_NAME_PREFIX = f"{ARCBU_ACRONYM}-worker"
SHUTDOWN_POLL_INTERVAL_SECONDS = 1.0

COPY_BUFFER_SIZE = 64 * 1024
COMPARE_BUFFER_SIZE = 1024

PROGRESS_REPORT_PERCENT_STEP = 10
