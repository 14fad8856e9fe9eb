"""Command-line entry point for ingesting the reference document and chatting."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ragchat.config import config
from ragchat.conversation import ChatSession
from ragchat.errors import RAGError
from ragchat.pipeline import build_default_components

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from logging import Logger

    from ragchat.pipeline import ConversationalRAG

EXIT_COMMANDS = frozenset({"exit", "quit", ":q"})


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Build the CLI parser and read command-line arguments."""  # noqa: DOC201
    parser = argparse.ArgumentParser(
        description="Ask grounded questions about a reference document.",
    )
    parser.add_argument(
        "--backend",
        choices=("faiss", "memory"),
        default=None,
        help="Vector store backend (default: VECTOR_BACKEND or faiss).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Chunk, embed and index a document.")
    ingest.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=None,
        help="Document to ingest (default: DOCUMENT_PATH).",
    )

    ask = subparsers.add_parser("ask", help="Ask a single question.")
    ask.add_argument("question", help="The question to answer.")

    subparsers.add_parser("chat", help="Start an interactive conversation.")
    return parser.parse_args(argv)


def run_chat(
    chat: ConversationalRAG,
    logger: Logger,
    read: Callable[[str], str] = input,
    write: Callable[[str], object] = print,
) -> int:
    """Interactive loop on a single session until EOF or an exit command."""  # noqa: DOC201
    session = ChatSession(session_id="cli")
    write("Ask a question about the document (type 'exit' to quit).")
    while True:
        try:
            question = read("> ").strip()
        except (EOFError, KeyboardInterrupt):
            write("")
            return 0
        if not question:
            continue
        if question.lower() in EXIT_COMMANDS:
            return 0
        try:
            result = chat.ask(session, question)
        except RAGError:
            logger.exception("Unable to answer question")
            write("An error occurred while processing your request.")
            continue
        write(result.answer)


def main(argv: Sequence[str] | None = None) -> int:
    """Validate configuration and run the selected command."""  # noqa: DOC201
    args = parse_args(argv)

    config.setup_logging()
    logger = config.get_logger(__name__)

    try:
        config.validate()
    except ValueError:
        logger.exception("Configuration invalid")
        return 1

    try:
        components = build_default_components(vector_backend=args.backend)
    except (RAGError, ValueError):
        logger.exception("Unable to initialise the RAG pipelines")
        return 1

    if args.command == "ingest":
        path = args.path or config.DOCUMENT_PATH
        if not path.exists():
            logger.error("Document not found: %s", path)
            return 1
        try:
            total = components.ingestion.ingest(path)
        except (RAGError, ValueError, OSError):
            logger.exception("Ingestion failed for %s", path)
            return 1
        logger.info("Indexed %d chunks from %s", total, path)
        return 0

    if args.command == "ask":
        try:
            result = components.chat.ask(ChatSession(session_id="cli"), args.question)
        except RAGError:
            logger.exception("Unable to answer question")
            return 1
        print(result.answer)  # noqa: T201
        return 0

    return run_chat(components.chat, logger)


if __name__ == "__main__":
    sys.exit(main())
