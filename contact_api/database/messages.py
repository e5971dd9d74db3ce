import asyncio
import json
import os
import tempfile
from typing import Any

from contact_api.errors import StorageError
from contact_api.models.contact import SubmissionRecord
from contact_api.utils.my_logger import init_logger


class MessageStore:
    """
    **MessageStore**
        Append-only store of submission records kept as a single JSON array on disk,
        records are kept in acceptance order and are never updated or removed

        every append reads the whole file, adds the record and writes the whole file back.
        with serialize_writes appends from this process run one at a time, without it (or across
        processes) overlapping appends race and the last writer can drop another writer's record
    """

    def __init__(self, file_path: str, serialize_writes: bool = True):
        self.file_path = file_path
        self.serialize_writes = serialize_writes
        self._write_lock = asyncio.Lock()
        self._logger = init_logger("message-store")

    def initialize(self) -> None:
        """creates the data directory and an empty array if the messages file does not exist"""
        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if not os.path.exists(self.file_path):
            self._write([])
            self._logger.info(f"created empty messages file : {self.file_path}")

    def _read(self) -> list[dict[str, Any]]:
        try:
            with open(self.file_path, encoding='utf-8') as f:
                file_data = f.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(message=f"unable to read messages file: {e}")
        except UnicodeDecodeError as e:
            raise StorageError(message=f"messages file is not valid UTF-8: {e}")

        try:
            messages = json.loads(file_data or '[]')
        except (ValueError, RecursionError) as e:
            raise StorageError(message=f"messages file is not valid JSON: {e}")

        if not isinstance(messages, list):
            raise StorageError(message="messages file does not hold a JSON array")
        return messages

    def _write(self, messages: list[dict[str, Any]]) -> None:
        # one temp file per write, the rename lands a whole array or nothing
        directory = os.path.dirname(os.path.abspath(self.file_path))
        temp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix=".messages-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(messages, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, self.file_path)
            temp_path = None
        except OSError as e:
            raise StorageError(message=f"unable to write messages file: {e}")
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)

    def _append(self, record: SubmissionRecord) -> int:
        messages = self._read()
        messages.append(record.to_dict())
        self._write(messages)
        return len(messages)

    async def append(self, record: SubmissionRecord) -> int:
        """
            **append**
                adds the record to the end of the messages file
        :param record: validated submission record
        :return: number of stored records after the append
        """
        if self.serialize_writes:
            async with self._write_lock:
                return await asyncio.to_thread(self._append, record)
        return await asyncio.to_thread(self._append, record)

    async def list_all(self) -> tuple[int, list[dict[str, Any]]]:
        """returns the count and every stored record in acceptance order"""
        messages = await asyncio.to_thread(self._read)
        return len(messages), messages
