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
r"""Global logging setup. Worker threads log to the root logger which
forwards records to a single queue, where one listener thread writes them
to the console and, optionally, to a log file.
"""
import os
import sys
import logging
import logging.handlers
import queue
import threading

from .exception import (
    GlobalContextNotSet,
    QueueListenerAlreadyStarted,
    QueueListenerNotStarted,
)


class ThreadContextMixin:
    """A mixin to add useful functions for logging performed
    by classes that run on worker threads.
    """

    @property
    def our_thread(self):
        return threading.current_thread()

    @property
    def our_thread_name(self):
        return self.our_thread.name

    def get_exec_context_log_stamp_str(self):
        current_thread = self.our_thread
        return (
            f"PID={os.getpid()} TID={current_thread.native_id} "
            f"t_name={current_thread.name}"
        )


class GlobalLoggingContext:
    def __init__(self, logging_queue, logging_level, verbosity_level):
        self._global_logging_queue = logging_queue
        self.global_logging_level = logging_level
        self.global_verbosity_level = verbosity_level

    @property
    def global_logging_queue(self):
        return self._global_logging_queue

    def create_queue_handler_logger(self, log_level=None):
        logger = logging.getLogger()
        handler = logging.handlers.QueueHandler(self._global_logging_queue)
        logger.addHandler(handler)
        track_logging_handler(handler)
        if log_level:
            logger.setLevel(log_level)
        else:
            logger.setLevel(self.global_logging_level)
        return logger, handler


global_context: GlobalLoggingContext = None
parent_queue_listener: logging.handlers.QueueListener = None
queue_handler: logging.handlers.QueueHandler = None
created_logging_handlers: set = set()
_global_lock = threading.Lock()


def global_init(logging_level="INFO", verbosity_level=0):
    global global_context
    with _global_lock:
        if global_context:
            return
        global_context = GlobalLoggingContext(
            logging_queue=queue.Queue(),
            logging_level=logging_level,
            verbosity_level=verbosity_level,
        )


def track_logging_handler(*handlers):
    created_logging_handlers.update(handlers)


def untrack_logging_handler(*handlers):
    untracked = []
    for h in handlers:
        if h in created_logging_handlers:
            untracked.append(h)
            created_logging_handlers.remove(h)
    return untracked


def start_global_queue_listener(*logging_handlers):
    global parent_queue_listener
    if not global_context:
        raise GlobalContextNotSet(f"global_context not initialized.")
    if parent_queue_listener:
        raise QueueListenerAlreadyStarted(f"parent_queue_listener already started.")
    parent_queue_listener = logging.handlers.QueueListener(
        global_context.global_logging_queue,
        *logging_handlers,
        respect_handler_level=True,
    )
    track_logging_handler(*logging_handlers)
    parent_queue_listener.start()


def stop_global_queue_listener():
    global parent_queue_listener
    if not parent_queue_listener:
        raise QueueListenerNotStarted(f"parent_queue_listener not started.")
    p = parent_queue_listener

    untracked_handlers = untrack_logging_handler(*p.handlers)

    parent_queue_listener = None
    p.stop()
    p.handlers = ()

    return untracked_handlers


def _connect_root_logger_to_global_logging_queue():
    global queue_handler
    if not global_context:
        raise GlobalContextNotSet()
    if queue_handler is not None:
        return
    _, queue_handler = global_context.create_queue_handler_logger()


def remove_root_stream_handlers():
    """Remove logging.StreamHandler handlers from root
    logger. This helps to avoid double-logging output
    to console once normal logging infra is setup.
    Handlers added by pytest are of other types and are
    left alone, hence 'type(h) is' rather than isinstance.
    """
    for h in list(logging.root.handlers):
        if type(h) is logging.StreamHandler:  # pylint: disable=unidiomatic-typecheck
            logging.root.removeHandler(h)


def remove_created_logging_handlers():
    global queue_handler
    all_loggers = [logging.root] + [
        logging.getLogger(name)
        for name in logging.root.manager.loggerDict  # pylint: disable=no-member
    ]
    for l in all_loggers:
        for h in list(l.handlers):
            if h in created_logging_handlers:
                l.removeHandler(h)
                untrack_logging_handler(h)
    queue_handler = None


def _to_level_number(level) -> int:
    if isinstance(level, str):
        return logging.getLevelName(level.upper())
    return level


def initialize_logging(logfile, loglevel, verbosity_level, log_console_detail):
    global_init()
    file_log_level = logging.DEBUG
    console_log_level = logging.INFO
    global_context.global_logging_level = logging.INFO
    global_context.global_verbosity_level = 0
    if loglevel is not None:
        file_log_level = loglevel
        console_log_level = loglevel
        global_context.global_logging_level = loglevel
    if verbosity_level is not None:
        global_context.global_verbosity_level = verbosity_level

    detailed_formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d PID=%(process)-05d TID=%(thread)-05d %(threadName)-16s %(levelname)-8s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    _connect_root_logger_to_global_logging_queue()
    root_level = _to_level_number(console_log_level)
    if logfile is not None:
        root_level = min(root_level, _to_level_number(file_log_level))
    logging.getLogger().setLevel(root_level)

    handlers = ()

    stream_handler = logging.StreamHandler(stream=sys.stdout)
    stream_handler.setLevel(_to_level_number(console_log_level))
    if log_console_detail:
        stream_handler.setFormatter(detailed_formatter)
    handlers += (stream_handler,)

    if logfile is not None:
        file_handler = logging.FileHandler(logfile)
        file_handler.setLevel(_to_level_number(file_log_level))
        file_handler.setFormatter(detailed_formatter)
        handlers += (file_handler,)

    start_global_queue_listener(*handlers)


def set_verbosity_level(level):
    global_init()
    global_context.global_verbosity_level = int(level)


def get_verbosity_level() -> int:
    global_init()
    return global_context.global_verbosity_level


def deinitialize_logging():
    for h in stop_global_queue_listener():
        h.close()
    remove_created_logging_handlers()


def initialize_logging_basic():
    """Setup basic logging used before command line processing and
    primary logging setup is established.
    """
    logging.basicConfig(level=logging.INFO, format="%(message)s")
