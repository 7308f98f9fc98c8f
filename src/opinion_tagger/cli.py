#!/usr/bin/env python3
"""
Интерфейс командной строки для Opinion Tagger

Подкоманды:
1. ote    - извлечение целей мнений
2. aspect - извлечение аспектов (разметчик последовательностей или классификатор)
3. pol    - полярность (модель и/или словарь)
4. absa   - цели, аспекты и полярность
5. server - TCP-сервер разметки
6. client - отправка документа серверу

ote/aspect/pol/absa читают один NAF-документ со stdin и пишут результат в stdout.
"""

import argparse
import logging
import os
import sys
from typing import Any, Dict, List, Optional, TextIO

from . import __version__
from .client import run_client
from .components.annotator_factory import AnnotatorFactory, AnnotatorType
from .config import CLEAR_FEATURES_CHOICES, LANGUAGE_CHOICES, OUTPUT_FORMAT_CHOICES, config
from .document import DocumentFormatError, parse_document
from .models.model_factory import DICTIONARY_OFF
from .pipeline import LanguageMismatchError, annotate_document, check_language
from .server import serve

logger = logging.getLogger(__name__)

TASKS = ("ote", "aspect", "pol", "absa")


class _ArgumentParser(argparse.ArgumentParser):
    """Ошибки аргументов завершают процесс с кодом 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n"
                     f"Run opinion-tagger (ote|aspect|pol|absa|server|client) -h for details\n")


def _add_annotation_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--clearFeatures',
        choices=CLEAR_FEATURES_CHOICES,
        default=config.get_clear_features(),
        help="Reset the adaptive features every sentence ('yes'), never ('no') or "
             "when a -DOCSTART- mark starts a sentence ('docstart')."
    )
    parser.add_argument(
        '-o', '--outputFormat',
        choices=OUTPUT_FORMAT_CHOICES,
        default=config.get_output_format(),
        help="Output format; 'tabulated' is currently written as NAF."
    )


def _add_model_arguments(parser: argparse.ArgumentParser, model_required: bool) -> None:
    parser.add_argument('-m', '--model', required=model_required,
                        help="Model used for tagging (spaCy model directory or gazetteer file).")
    parser.add_argument('--classifier', choices=("seq", "doc"), default="seq",
                        help="aspect only: sequence labeler ('seq') or sentence classifier ('doc').")
    parser.add_argument('-d', '--dictionary', default=config.get_dictionary_path(),
                        help="pol only: polarity dictionary (TSV) or 'off'.")
    parser.add_argument('--targetModel', help="absa only: target and aspect sequence labeler.")
    parser.add_argument('--polarityModel', help="absa only: polarity sentence classifier.")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="opinion-tagger",
        description=f"opinion-tagger {__version__}: opinion target, aspect and polarity tagging of NAF documents.",
    )
    parser.add_argument('--version', action='version', version=__version__)
    subparsers = parser.add_subparsers(dest='command', metavar='command')
    subparsers.required = True

    helps = {
        "ote": "Opinion Target Extraction",
        "aspect": "Aspect extraction",
        "pol": "Polarity tagging",
        "absa": "Aspect Based Sentiment Analysis",
    }
    for task in TASKS:
        sub = subparsers.add_parser(task, help=helps[task])
        _add_model_arguments(sub, model_required=task in ("ote", "aspect"))
        _add_annotation_arguments(sub)
        sub.add_argument('-l', '--language', choices=LANGUAGE_CHOICES, default=config.get_language(),
                         help="Language; defaults to the language of the incoming NAF document.")

    server = subparsers.add_parser('server', help="Start TCP socket server")
    server.add_argument('-t', '--task', choices=TASKS, default="absa", help="Annotation task to serve.")
    server.add_argument('-p', '--port', type=int, required=True, help="Port to be assigned to the server.")
    server.add_argument('--host', default=config.get_server_host(), help="Address to bind.")
    _add_model_arguments(server, model_required=False)
    _add_annotation_arguments(server)
    server.add_argument('-l', '--language', choices=LANGUAGE_CHOICES, required=True, help="Choose language.")

    client = subparsers.add_parser('client', help="Send queries to the TCP socket server")
    client.add_argument('-p', '--port', type=int, required=True, help="Port of the TCP server.")
    client.add_argument('--host', default=config.get_client_host(),
                        help="Hostname or IP where the TCP server is running.")
    return parser


def _model_cfg(section: str, path: Optional[str]) -> Dict[str, Any]:
    cfg = config.get_model_config(section)
    if path:
        # Тип из конфига относится к пути из конфига
        cfg.update(path=path, type=None)
    return cfg


def settings_from_args(task: str, args: argparse.Namespace) -> Dict[str, Any]:
    """Параметры для AnnotatorFactory из аргументов CLI и config.yaml."""
    settings: Dict[str, Any] = {"clear_features": args.clearFeatures}
    if task == "ote":
        settings["target"] = _model_cfg("target", args.model)
    elif task == "aspect":
        settings["aspect"] = _model_cfg("aspect", args.model)
    elif task == "pol":
        settings["polarity"] = _model_cfg("polarity", args.model)
        settings["dictionary"] = args.dictionary or DICTIONARY_OFF
    elif task == "absa":
        settings["target"] = _model_cfg("target", args.targetModel)
        settings["polarity"] = _model_cfg("polarity", args.polarityModel)
    return settings


def _create_annotator(task: str, args: argparse.Namespace):
    annotator_type = AnnotatorType.from_task(task, args.classifier)
    return AnnotatorFactory.create(annotator_type, settings_from_args(task, args))


def run_task(args: argparse.Namespace, stdin: TextIO, stdout: TextIO) -> int:
    """Размечает один документ со stdin."""
    data = stdin.buffer.read() if hasattr(stdin, "buffer") else stdin.read()
    try:
        document = parse_document(data, boundary_marker=config.get_boundary_marker())
        check_language(document, args.language)
    except DocumentFormatError as e:
        logger.error(f"Некорректный NAF-документ: {e}")
        return 1
    except LanguageMismatchError as e:
        logger.error(str(e))
        return 1
    try:
        annotator = _create_annotator(args.command, args)
    except (RuntimeError, ValueError) as e:
        logger.error(f"Ошибка конфигурации: {e}")
        return 1
    try:
        annotate_document(annotator, document)
    except Exception:
        logger.exception("Ошибка классификатора при разметке документа")
        return 1
    stdout.write(annotator.serialize(document, args.outputFormat))
    stdout.flush()
    return 0


def run_server(args: argparse.Namespace) -> int:
    try:
        annotator = _create_annotator(args.task, args)
    except (RuntimeError, ValueError) as e:
        logger.error(f"Ошибка конфигурации: {e}")
        return 1
    try:
        serve(annotator, args.host, args.port,
              output_format=args.outputFormat,
              language=args.language,
              connection_timeout=config.get_server_timeout(),
              boundary_marker=config.get_boundary_marker())
    except OSError as e:
        logger.error(f"-> Не удалось открыть TCP-сокет на порту {args.port}: {e}")
        return 1
    return 0


def run_client_command(args: argparse.Namespace, stdin: TextIO, stdout: TextIO) -> int:
    try:
        run_client(stdin, stdout, args.host, args.port, timeout=config.get_client_timeout())
    except OSError as e:
        logger.error(f"ERROR: соединение с {args.host}:{args.port} не удалось: {e}")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Основная функция CLI"""
    if os.environ.get('OPINION_TAGGER_DEBUG') == '1':
        os.environ['OPINION_TAGGER_LOGGING__LEVEL'] = 'DEBUG'
        config._apply_env_overrides()
    config._configure_logging_if_needed(force=True)

    args = build_parser().parse_args(argv)
    logger.debug(f"CLI options: {vars(args)}")

    if args.command == "server":
        return run_server(args)
    if args.command == "client":
        return run_client_command(args, sys.stdin, sys.stdout)
    return run_task(args, sys.stdin, sys.stdout)


if __name__ == "__main__":
    sys.exit(main())
