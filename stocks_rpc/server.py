"""Newline-delimited JSON-RPC loop over a pair of text streams."""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, Iterable, TextIO

from .dispatcher import Dispatcher

LOGGER = logging.getLogger(__name__)


def decode_stream(binary: BinaryIO) -> TextIO:
    """Wrap a byte stream as UTF-8 text, replacing undecodable bytes."""

    return io.TextIOWrapper(binary, encoding="utf-8", errors="replace")


def serve_stream(
    dispatcher: Dispatcher,
    requests_in: Iterable[str],
    responses_out: TextIO,
    *,
    echo_requests: bool = True,
) -> int:
    """Answer every request line until the input is exhausted.

    Responses are written in input order, one per non-blank line, and flushed
    immediately. Returns the number of responses written.
    """

    LOGGER.info("Stocks RPC server started. Waiting for JSON-RPC requests...")
    responses = 0
    for raw in requests_in:
        line = raw.strip()
        if not line:
            continue
        if echo_requests:
            LOGGER.info("Received: %s", line)

        output = dispatcher.process_line(line)
        if output is None:
            continue
        responses_out.write(output + "\n")
        responses_out.flush()
        responses += 1

        if echo_requests:
            LOGGER.info("Responded: %s", output)

    LOGGER.info("Stocks RPC server stopped (stdin closed).")
    return responses


__all__ = ["decode_stream", "serve_stream"]
