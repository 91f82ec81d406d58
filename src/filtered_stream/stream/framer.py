"""
Writes stream records to an output stream as one JSON array.

Layout for two records:

    [
    {"id":"1","text":"a"}
    ,
    {"id":"2","text":"b"}
    ]

The array spans every reconnect of the process: it is opened once, closed
once, and every element is flushed as soon as it is written.
"""

import json
import logging
import sys
from typing import Optional, TextIO

from ..core.models import StreamRecord


logger = logging.getLogger(__name__)


class JsonArrayFramer:
    """
    Output sink framing records as elements of a single JSON array.

    Attributes:
        has_emitted_any: Whether any record has been written
        records_written: Number of records written so far
    """

    def __init__(self, output: Optional[TextIO] = None):
        self.output = output if output is not None else sys.stdout
        self.has_emitted_any = False
        self.records_written = 0
        self._opened = False
        self._closed = False
        self._line_open = False

    def _write(self, text: str) -> None:
        self.output.write(text)
        self.output.flush()

    def open(self) -> None:
        """Write the opening bracket. Later calls are ignored."""
        if self._opened:
            return
        self._opened = True
        self._write("[\n")

    def emit(self, record: StreamRecord) -> None:
        """Write one record as compact JSON, preceded by a separator if needed."""
        if self._closed:
            raise RuntimeError("Cannot emit to a closed JSON array")
        self.open()

        fragment = json.dumps(record.to_dict(), separators=(",", ":"), ensure_ascii=False)
        if self.has_emitted_any:
            fragment = ("\n,\n" if self._line_open else ",\n") + fragment

        # Separator and record go out in one write; state moves only on success
        self._write(fragment)
        self.has_emitted_any = True
        self.records_written += 1
        self._line_open = True

    def end_session(self) -> None:
        """Terminate the current record line when a stream session ends."""
        if self._line_open:
            self._write("\n")
            self._line_open = False

    def close(self) -> None:
        """Write the closing bracket. Later calls are ignored."""
        if self._closed:
            return
        self.open()
        self.end_session()
        self._write("]")
        self._closed = True
        logger.info(f"Closed output array after {self.records_written} record(s)")

    @property
    def closed(self) -> bool:
        return self._closed
