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

import setuptools

setuptools.setup(
    name="arcbu-pkg",
    version="0.0.1",
    author="Ashley R. Thomas",
    author_email="ashley.r.thomas.701@gmail.com",
    description=(
        "ARCBU package supports configuration-driven backup of local file trees "
        "to zip or tar.gz archives, with optional verification and restore."
    ),
    entry_points = {
        'console_scripts': ['arcbu=arcbu.tools.backup.command_line:main']
    },
    long_description="""
ARCBU (Archive Backup Utility) is a command-line backup/restore utility.
Named configurations describe source trees, filters, a target directory and
an archive format. Backups of several configurations run concurrently, with
progress reporting, optional archive verification, and automatic cleanup of
partial archives on failure or cancellation.

Install: `pip install arcbu-pkg`
""",
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    package_dir={"": "src"},
    packages=setuptools.find_namespace_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "tabulate >= 0.8.9",
        "Send2Trash >= 1.8.0",
    ],
    extras_require={
        "test": [
            "pytest >= 7.0",
        ],
    },
)
