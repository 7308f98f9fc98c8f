"""
Клиент сервера разметки: отправляет документ и возвращает ответ целиком.
"""

import logging
import socket
from typing import Optional, TextIO

from .protocol import ENCODING, frame_request

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


def send_document(text: str, host: str, port: int, timeout: Optional[float] = None) -> str:
    """
    Отправляет документ серверу и читает ответ до закрытия соединения.

    Raises:
        OSError: ошибка соединения или передачи
    """
    with socket.create_connection((host, port), timeout=timeout) as sock:
        sock.sendall(frame_request(text).encode(ENCODING))
        sock.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            data = sock.recv(CHUNK_SIZE)
            if not data:
                break
            chunks.append(data)
    return b"".join(chunks).decode(ENCODING)


def run_client(stdin: TextIO, stdout: TextIO, host: str, port: int, timeout: Optional[float] = None) -> None:
    text = stdin.read()
    logger.debug(f"Отправка документа ({len(text)} символов) на {host}:{port}")
    stdout.write(send_document(text, host, port, timeout=timeout))
    stdout.flush()
