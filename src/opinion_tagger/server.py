"""
TCP-сервер разметки мнений.

Соединения обрабатываются строго последовательно в одном потоке: принять,
прочитать документ до разделителя, разметить, отправить ответ, закрыть.
Медленный клиент блокирует сервер целиком (см. server.timeout в конфиге).
Между соединениями живёт только аннотатор с памятью его классификаторов,
которая сбрасывается в конце каждого документа.
"""

from enum import Enum
import logging
import socketserver
import threading
from typing import Optional, Tuple

from .document import BOUNDARY_MARKER, DocumentFormatError
from .interfaces.annotation import Annotator
from .pipeline import LanguageMismatchError, annotate_payload
from .protocol import (
    ANNOTATION_FAILED_MESSAGE,
    BAD_DOCUMENT_MESSAGE,
    BAD_ENCODING_MESSAGE,
    ENCODING,
    format_error,
    read_request,
)

logger = logging.getLogger(__name__)

DRAIN_CHUNK_SIZE = 4096


class ConnectionState(Enum):
    AWAITING_REQUEST = "awaiting_request"
    PROCESSING = "processing"
    RESPONDING = "responding"
    CLOSED = "closed"


class OpinionRequestHandler(socketserver.StreamRequestHandler):
    """Один запрос = одно соединение."""

    def setup(self) -> None:
        # StreamRequestHandler применяет self.timeout к сокету в setup()
        self.timeout = self.server.connection_timeout
        self.state = ConnectionState.AWAITING_REQUEST
        super().setup()

    def _set_state(self, state: ConnectionState) -> None:
        logger.debug(f"{self.client_address}: {self.state.value} -> {state.value}")
        self.state = state

    def handle(self) -> None:
        try:
            payload = read_request(raw.decode(ENCODING) for raw in self.rfile)
        except UnicodeDecodeError as e:
            logger.warning(f"{self.client_address}: запрос не в UTF-8: {e}")
            response = format_error(BAD_ENCODING_MESSAGE)
        else:
            self._set_state(ConnectionState.PROCESSING)
            response = self.server.process(payload)
        self._set_state(ConnectionState.RESPONDING)
        self.wfile.write(response.encode(ENCODING))

    def _discard_unread(self) -> None:
        # Непрочитанный остаток запроса (например, разделитель после </NAF>)
        # при закрытии сокета превращается в RST и обрывает ответ клиенту
        self.connection.setblocking(False)
        try:
            while self.connection.recv(DRAIN_CHUNK_SIZE):
                pass
        except BlockingIOError:
            pass
        except OSError as e:
            logger.debug(f"{self.client_address}: остаток запроса не прочитан: {e}")

    def finish(self) -> None:
        try:
            super().finish()
            self._discard_unread()
        finally:
            self._set_state(ConnectionState.CLOSED)


class OpinionTaggerServer(socketserver.TCPServer):
    """Последовательный сервер поверх одного долгоживущего аннотатора."""

    allow_reuse_address = True

    def __init__(self, server_address: Tuple[str, int], annotator: Annotator, output_format: str = "naf",
                 language: Optional[str] = None, connection_timeout: Optional[float] = None,
                 boundary_marker: str = BOUNDARY_MARKER, bind_and_activate: bool = True):
        self.annotator = annotator
        self.output_format = output_format
        self.language = language
        self.connection_timeout = connection_timeout
        self.boundary_marker = boundary_marker
        # Память классификаторов общая для всех запросов
        self._annotator_lock = threading.Lock()
        super().__init__(server_address, OpinionRequestHandler, bind_and_activate=bind_and_activate)

    def process(self, payload: str) -> str:
        """Размечает документ запроса; ошибки входных данных возвращаются текстом."""
        try:
            with self._annotator_lock:
                return annotate_payload(
                    self.annotator, payload,
                    output_format=self.output_format,
                    language=self.language,
                    boundary_marker=self.boundary_marker,
                )
        except DocumentFormatError as e:
            logger.warning(f"Некорректный NAF: {e}")
            return format_error(BAD_DOCUMENT_MESSAGE)
        except LanguageMismatchError as e:
            logger.warning(str(e))
            return format_error(str(e))
        except Exception:
            logger.exception("Ошибка классификатора при разметке запроса")
            return format_error(ANNOTATION_FAILED_MESSAGE)

    def handle_error(self, request, client_address) -> None:
        # Ошибка транспорта касается только текущего соединения
        logger.exception(f"Ошибка соединения с {client_address}")


def serve(annotator: Annotator, host: str, port: int, output_format: str = "naf",
          language: Optional[str] = None, connection_timeout: Optional[float] = None,
          boundary_marker: str = BOUNDARY_MARKER) -> None:
    """Запускает сервер и обслуживает соединения до прерывания."""
    logger.info(f"-> Trying to listen port... {port}")
    with OpinionTaggerServer((host, port), annotator, output_format=output_format, language=language,
                             connection_timeout=connection_timeout,
                             boundary_marker=boundary_marker) as server:
        logger.info(f"-> Connected and listening to port {port}")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Остановка сервера по запросу пользователя")
        finally:
            logger.info("closing tcp socket...")
