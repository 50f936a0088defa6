"""Buffered log writing to rotating files on a background thread."""

from __future__ import annotations

import heapq
import itertools
import os
import sys
import threading
from collections import deque
from typing import BinaryIO

from trantor.date import Date

LOG_FLUSH_TIMEOUT = 1.0
MEM_BUFFER_SIZE = 4 * 1024 * 1024
MAX_PENDING_BUFFERS = 25
DEFAULT_FILE_SIZE_LIMIT = 20 * 1024 * 1024

# Length of ".yymmdd-hhmmss.000000", the part inserted into rotated names.
_ROTATED_INFIX_LENGTH = 21


class LoggerFile:
    """One log file, always written under its base name and renamed on rotation."""

    _file_seq = itertools.count()

    def __init__(self, file_path, file_base_name, file_ext_name,
                 switch_on_limit_only=False, max_files=0):
        self.creation_date = Date.date()
        self.file_path = file_path
        self.file_base_name = file_base_name
        self.file_ext_name = file_ext_name
        self.switch_on_limit_only = switch_on_limit_only
        self.max_files = max_files
        self.file_full_name = ""
        self._fp: BinaryIO | None = None
        self._filename_queue: deque[str] = deque()
        self.open()
        if self.max_files > 0:
            self._init_filename_queue()

    def __bool__(self) -> bool:
        return self._fp is not None

    def open(self) -> None:
        """Open the file under its base name for appending."""
        self.file_full_name = (self.file_path + self.file_base_name
                               + self.file_ext_name)
        try:
            self._fp = open(self.file_full_name, "ab")
        except OSError as exc:
            self._fp = None
            print(exc.strerror or str(exc))

    def write_log(self, data) -> None:
        """Append raw bytes to the file."""
        if self._fp is not None:
            self._fp.write(data)

    def flush(self) -> None:
        """Flush written data to the operating system."""
        if self._fp is not None:
            self._fp.flush()

    def length(self) -> int:
        """Current size of the open file, or 0 when no file is open."""
        if self._fp is not None:
            return self._fp.tell()
        return 0

    def switch_log(self, open_new_one) -> None:
        """Rename the current file with a timestamp and sequence number.

        When ``open_new_one`` is true, logging continues in a fresh file
        under the base name.
        """
        if self._fp is None:
            return
        self._fp.close()
        self._fp = None
        seq = next(self._file_seq) % 1_000_000
        new_name = (
            f"{self.file_path}{self.file_base_name}."
            f"{self.creation_date.to_custom_formatted_string('%y%m%d-%H%M%S')}"
            f".{seq:06d}{self.file_ext_name}"
        )
        try:
            os.replace(self.file_full_name, new_name)
        except OSError as exc:
            print(f"Failed to rename file {self.file_full_name}: "
                  f"{exc.strerror or exc}", file=sys.stderr)
        if self.max_files > 0:
            self._filename_queue.append(new_name)
            if len(self._filename_queue) > self.max_files:
                self._delete_old_files()
        if open_new_one:
            self.open()

    def close(self) -> None:
        """Finish with the file, renaming it unless rotation is limit-only."""
        if not self.switch_on_limit_only:
            self.switch_log(False)
        if self._fp is not None:
            self._fp.close()
            self._fp = None

    def _matches_rotated_name(self, name: str) -> bool:
        base, ext = self.file_base_name, self.file_ext_name
        return (len(name) == len(base) + _ROTATED_INFIX_LENGTH + len(ext)
                and name.startswith(base)
                and name.endswith(ext))

    def _init_filename_queue(self) -> None:
        if self.max_files <= 0:
            return
        try:
            entries = list(os.scandir(self.file_path))
        except OSError as exc:
            print(f"Can't open dir {self.file_path}: {exc.strerror or exc}",
                  file=sys.stderr)
            return
        heap: list[str] = []
        for entry in entries:
            if not self._matches_rotated_name(entry.name):
                continue
            full_name = self.file_path + entry.name
            try:
                is_regular = entry.is_file()
            except OSError as exc:
                print(f"Can't stat file {full_name}: {exc.strerror or exc}",
                      file=sys.stderr)
                continue
            if not is_regular:
                continue
            heapq.heappush(heap, full_name)
            if len(heap) > self.max_files:
                oldest = heapq.heappop(heap)
                try:
                    os.remove(oldest)
                except OSError:
                    pass
        self._filename_queue = deque(sorted(heap))

    def _delete_old_files(self) -> None:
        while len(self._filename_queue) > self.max_files:
            filename = self._filename_queue.popleft()
            try:
                os.remove(filename)
            except OSError as exc:
                print(f"Failed to remove file {filename}: "
                      f"{exc.strerror or exc}", file=sys.stderr)


class AsyncFileLogger:
    """Collects log output in memory and writes it to files in the background."""

    def __init__(self, file_size_limit=DEFAULT_FILE_SIZE_LIMIT, max_files=0,
                 switch_on_limit_only=False):
        self.file_size_limit = file_size_limit
        self.max_files = max_files
        self.switch_on_limit_only = switch_on_limit_only
        self.file_path = "./"
        self.file_base_name = "trantor"
        self.file_ext_name = ".log"
        self._cond = threading.Condition()
        self._log_buffer = bytearray()
        self._write_buffers: deque[bytearray] = deque()
        self._thread: threading.Thread | None = None
        self._stop = False
        self._closed = False
        self._logger_file: LoggerFile | None = None
        self._lost_counter = 0

    def set_file_name(self, base_name, ext_name=".log", path="./") -> None:
        """Set the base name, extension and directory of the log files."""
        self.file_base_name = base_name
        self.file_ext_name = (ext_name if ext_name.startswith(".")
                              else "." + ext_name)
        self.file_path = path or "./"
        if not self.file_path.endswith("/"):
            self.file_path += "/"

    def output(self, msg) -> None:
        """Queue a message (bytes or str) for writing."""
        data = msg.encode("utf-8") if isinstance(msg, str) else bytes(msg)
        with self._cond:
            if len(data) > MEM_BUFFER_SIZE:
                return
            if MEM_BUFFER_SIZE - len(self._log_buffer) < len(data):
                self._swap_buffer()
                self._cond.notify()
            if len(self._write_buffers) > MAX_PENDING_BUFFERS:
                self._lost_counter += 1
                return
            if self._lost_counter > 0:
                self._log_buffer += (
                    f"{self._lost_counter} log information is lost\n"
                ).encode("ascii")
                self._lost_counter = 0
            self._log_buffer += data

    def flush(self) -> None:
        """Hand the in-memory buffer over to the writer."""
        with self._cond:
            if self._log_buffer:
                self._swap_buffer()
                self._cond.notify()

    def start_logging(self) -> None:
        """Start the background writer thread."""
        self._thread = threading.Thread(target=self._log_thread_func,
                                        name="AsyncFileLogger", daemon=True)
        self._thread.start()

    def close(self) -> None:
        """Stop the writer, write everything pending and close the file."""
        if self._closed:
            return
        self._closed = True
        with self._cond:
            self._stop = True
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join()
        with self._cond:
            if self._log_buffer:
                self._write_buffers.append(self._log_buffer)
                self._log_buffer = bytearray()
            while self._write_buffers:
                self._write_log_to_file(self._write_buffers.popleft())
        if self._logger_file is not None:
            self._logger_file.close()
            self._logger_file = None

    def __enter__(self) -> AsyncFileLogger:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _swap_buffer(self) -> None:
        self._write_buffers.append(self._log_buffer)
        self._log_buffer = bytearray()

    def _write_log_to_file(self, data: bytes) -> None:
        if self._logger_file is None:
            self._logger_file = LoggerFile(self.file_path,
                                           self.file_base_name,
                                           self.file_ext_name,
                                           self.switch_on_limit_only,
                                           self.max_files)
        self._logger_file.write_log(data)
        if self._logger_file.length() > self.file_size_limit:
            self._logger_file.switch_log(True)

    def _log_thread_func(self) -> None:
        while not self._stop:
            with self._cond:
                while not self._write_buffers and not self._stop:
                    if not self._cond.wait(LOG_FLUSH_TIMEOUT):
                        if self._log_buffer:
                            self._swap_buffer()
                        break
                pending, self._write_buffers = self._write_buffers, deque()
            for data in pending:
                self._write_log_to_file(data)
            if self._logger_file is not None:
                self._logger_file.flush()