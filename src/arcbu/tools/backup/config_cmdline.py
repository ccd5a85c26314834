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
r"""Configuration-related command line handlers.
"""
import logging
import os

from tabulate import tabulate

from arcbu.common.exception import InvalidCommandLineArgument, InvalidStateError

from .config import Configuration, ConfigurationManager, Source
from .constants import *
from .filters import MavenTargetExcludeFilter, PatternFilter

CONFIG_SUBCMD_ADD = "add"
CONFIG_SUBCMD_REMOVE = "remove"
CONFIG_SUBCMD_LIST = "list"


def get_configuration_manager(args) -> ConfigurationManager:
    config_dir = None
    if hasattr(args, "config_dir") and args.config_dir is not None:
        config_dir = args.config_dir
    return ConfigurationManager(config_dir=config_dir)


def create_configuration_from_args(args) -> Configuration:
    if not args.source:
        raise InvalidCommandLineArgument(f"At least one --source is required.")
    file_filter = None
    if args.include or args.exclude:
        file_filter = PatternFilter(include=args.include, exclude=args.exclude)
    dir_filter = None
    if args.exclude_maven_target:
        dir_filter = MavenTargetExcludeFilter()
    elif args.exclude_dir:
        dir_filter = PatternFilter(exclude=args.exclude_dir)
    config = Configuration(
        name=args.name,
        target_directory=os.path.abspath(args.target),
        codec_name=args.codec,
        relative_entries=not args.absolute_entries,
        verify=args.verify,
    )
    for s in args.source:
        config.sources.append(
            Source(
                path=os.path.abspath(s),
                dir_filter=dir_filter,
                file_filter=file_filter,
            )
        )
    return config


def handle_config_add(args):
    manager = get_configuration_manager(args)
    config = create_configuration_from_args(args)
    config_file = manager.add_configuration(config)
    logging.info(f"Configuration '{config.name}' saved to {config_file}")


def handle_config_remove(args):
    manager = get_configuration_manager(args)
    manager.remove_configuration(args.name)
    logging.info(f"Configuration '{args.name}' removed.")


def handle_config_list(args):
    manager = get_configuration_manager(args)
    configs = manager.get_configurations()
    if not configs:
        logging.info(f"No configurations found in {manager.config_dir}")
        return
    headers = ["Name", "Codec", "Target", "Sources", "Relative", "Verify"]
    records = []
    for c in configs:
        records.append(
            [
                c.name,
                c.codec_name,
                str(c.target_directory),
                "\n".join([str(s.path) for s in c.sources]),
                c.relative_entries,
                c.verify,
            ]
        )
    logging.info(
        "\n" + tabulate(tabular_data=records, headers=headers, tablefmt="simple")
    )


def handle_config(args):
    logging.debug(f"handle_config")
    if args.subcmd == CONFIG_SUBCMD_ADD:
        handle_config_add(args)
    elif args.subcmd == CONFIG_SUBCMD_REMOVE:
        handle_config_remove(args)
    elif args.subcmd == CONFIG_SUBCMD_LIST:
        handle_config_list(args)
    else:
        raise InvalidStateError(f"Unknown config sub-command: {args.subcmd}")
    return 0
