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
r"""Main entry point, argument parsing.
"""
# pylint: disable=line-too-long

import argparse
import logging
import sys

from arcbu.common.exception import (
    exc_to_string,
    ArcbuException,
    QueueListenerNotStarted,
)
from arcbu.common.logging_global import (
    deinitialize_logging,
    get_verbosity_level,
    global_init,
    initialize_logging_basic,
    initialize_logging,
    remove_created_logging_handlers,
    remove_root_stream_handlers,
)

from .constants import *
from .archive.base import ArchiveCodecFactory
from .backup_cmdline import handle_backup
from .config_cmdline import (
    CONFIG_SUBCMD_ADD,
    CONFIG_SUBCMD_LIST,
    CONFIG_SUBCMD_REMOVE,
    handle_config,
)
from .restore_cmdline import handle_restore


def create_argparse():
    #
    # Root parser
    #
    parser = argparse.ArgumentParser(
        prog=ARCBU_PROGRAM_NAME,
        description=f"{ARCBU_ACRONUM_U} v{ARCBU_VERSION_STRING}",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    #
    # Common to all parser
    #
    parser_common = argparse.ArgumentParser(add_help=False)
    parser_common.add_argument(
        "--logfile",
        help="The location of log file path. If not specified, do not log to file.",
    )
    parser_common.add_argument(
        "--loglevel", help="level for logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )
    parser_common.add_argument(
        "--log-console-detail",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="""When logging to console use detailed format.
""",
    )
    parser_common.add_argument(
        "-v",
        "--verbosity",
        action="count",
        help="""increase verbosity with each usage (i.e., -vv is more verbose than -v).
""",
    )
    parser_common.add_argument(
        "--config-dir",
        help=f"""The directory holding the backup configurations. If not specified, the
{ARCBU_CONFIG_DIR_ENV_VAR} environment variable is used, else ~/{ARCBU_DEFAULT_CONFIG_DIR_NAME}
""",
    )

    subparsers = parser.add_subparsers(
        help=f"""""",
    )

    #
    # 'config' subparser.
    #
    parser_config = subparsers.add_parser(
        "config",
        formatter_class=argparse.RawTextHelpFormatter,
        help="Add, remove or list backup configurations.",
    )
    subparser_config = parser_config.add_subparsers(
        dest="subcmd",
        required=True,
    )

    parser_config_add = subparser_config.add_parser(
        CONFIG_SUBCMD_ADD,
        formatter_class=argparse.RawTextHelpFormatter,
        help="Add a backup configuration.",
        parents=[parser_common],
        description=f"""Add a backup configuration.

Examples:

    {ARCBU_PROGRAM_NAME} config add my_docs --source /home/me/docs --target /mnt/backups
        Back up /home/me/docs to zip archives in /mnt/backups.

    {ARCBU_PROGRAM_NAME} config add my_src --source /home/me/src --target /mnt/backups --codec tgz --exclude-maven-target
        Back up /home/me/src to .tar.gz archives, skipping Maven build output.
""",
    )
    parser_config_add.add_argument(
        "name",
        help="The configuration name (letters, digits, underscore).",
    )
    parser_config_add.add_argument(
        "--source",
        action="append",
        required=True,
        help="A file or directory to back up. Can be specified more than once.",
    )
    parser_config_add.add_argument(
        "--target",
        required=True,
        help="The directory where archives are written.",
    )
    parser_config_add.add_argument(
        "--codec",
        choices=ArchiveCodecFactory.get_codec_names(),
        default=CODEC_NAME_DEFAULT,
        help=f"The archive format (default: {CODEC_NAME_DEFAULT}).",
    )
    parser_config_add.add_argument(
        "--absolute-entries",
        action="store_true",
        default=False,
        help="Store absolute paths in the archive instead of paths relative to each source.",
    )
    parser_config_add.add_argument(
        "--verify",
        action="store_true",
        default=False,
        help="Verify the archive against the source files after each backup.",
    )
    parser_config_add.add_argument(
        "--include",
        action="append",
        help="Only back up files matching this glob pattern. Can be specified more than once.",
    )
    parser_config_add.add_argument(
        "--exclude",
        action="append",
        help="Do not back up files matching this glob pattern. Can be specified more than once.",
    )
    group_dir_filter = parser_config_add.add_mutually_exclusive_group()
    group_dir_filter.add_argument(
        "--exclude-dir",
        action="append",
        help="Do not descend into directories matching this glob pattern.",
    )
    group_dir_filter.add_argument(
        "--exclude-maven-target",
        action="store_true",
        default=False,
        help="Do not descend into Maven 'target' directories (next to a pom.xml).",
    )

    parser_config_remove = subparser_config.add_parser(
        CONFIG_SUBCMD_REMOVE,
        help="Remove a backup configuration, its file is sent to the trash.",
        parents=[parser_common],
    )
    parser_config_remove.add_argument(
        "name",
        help="The name of the configuration to remove.",
    )

    subparser_config.add_parser(
        CONFIG_SUBCMD_LIST,
        help="List the backup configurations.",
        parents=[parser_common],
    )
    parser_config.set_defaults(func=handle_config)

    #
    # 'backup' subparser.
    #
    parser_backup = subparsers.add_parser(
        "backup",
        formatter_class=argparse.RawTextHelpFormatter,
        help="Run the backup of one or more configurations.",
        parents=[parser_common],
    )
    parser_backup.add_argument(
        "names",
        metavar="name",
        nargs="+",
        help="The configurations to back up, run concurrently.",
    )
    parser_backup.set_defaults(func=handle_backup)

    #
    # 'restore' subparser.
    #
    parser_restore = subparsers.add_parser(
        "restore",
        formatter_class=argparse.RawTextHelpFormatter,
        help="Restore an archive of a configuration.",
        parents=[parser_common],
    )
    parser_restore.add_argument(
        "name",
        help="The configuration whose archive is restored.",
    )
    parser_restore.add_argument(
        "--target",
        required=True,
        help="The existing directory to restore into. Existing files are never overwritten.",
    )
    parser_restore.add_argument(
        "--archive",
        help="The archive to restore. If not specified, the latest archive of the configuration.",
    )
    parser_restore.set_defaults(func=handle_restore)

    return parser


def main(argv=None):
    global_init()
    initialize_logging_basic()
    logging.info(f"{ARCBU_ACRONYM} - v{ARCBU_VERSION_STRING}")

    parser = create_argparse()
    args = parser.parse_args(argv)

    verbosity_level = 0
    if hasattr(args, "verbosity") and args.verbosity is not None:
        verbosity_level = args.verbosity

    logfile = None
    loglevel = None
    if hasattr(args, "logfile"):
        logfile = args.logfile
    if hasattr(args, "loglevel"):
        loglevel = args.loglevel

    log_console_detail = False
    if hasattr(args, "log_console_detail") and args.log_console_detail:
        log_console_detail = args.log_console_detail

    exit_code = 1
    try:
        if hasattr(args, "func"):
            remove_created_logging_handlers()
            remove_root_stream_handlers()
            initialize_logging(
                logfile=logfile,
                loglevel=loglevel,
                verbosity_level=verbosity_level,
                log_console_detail=log_console_detail,
            )
            debug_argv = argv if argv is not None else sys.argv
            logging.debug(f"argv={'None' if debug_argv is None else ' '.join([*debug_argv])}")

            exit_code = args.func(args)
            if exit_code is None:
                exit_code = 0
        else:
            print(f"I have nothing to do. Try {ARCBU_PROGRAM_NAME} -h for help.")
    except ArcbuException as err:
        logging.error(f"Failed: {err.message}")
        if get_verbosity_level() > 0:
            logging.error(exc_to_string(err))
            raise
    finally:
        try:
            deinitialize_logging()
        except QueueListenerNotStarted:
            pass
        except Exception as ex:
            print(f"Failure during deinitialize_logging. {exc_to_string(ex)}")
    logging.debug(f"{ARCBU_PROGRAM_NAME} exit_code={exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
