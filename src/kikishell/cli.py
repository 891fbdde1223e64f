"""CLI entry point for kiki."""

import argparse
import logging
import sqlite3
import sys
from datetime import datetime
from typing import Literal, cast

from kikishell.agent import ContextAssembler, Session, interrupt_scope
from kikishell.config import Config
from kikishell.errors import KikiError
from kikishell.index import RetrievalIndex
from kikishell.llm import CompletionClient
from kikishell.scorers import get_scorer
from kikishell.shell import Repl, gen, run_ask
from kikishell.storage import IndexStore

logger = logging.getLogger(__name__)


def load_config(args: argparse.Namespace) -> Config:
    """Environment settings with command-line overrides applied."""
    config = Config.from_env()
    if args.profile:
        config.profile = args.profile
    if args.stream:
        config.stream = True
    config.apply_profile()
    return config


def load_index(config: Config) -> RetrievalIndex:
    try:
        scorer = get_scorer(config.rag_scorer)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)
    return RetrievalIndex.load(
        IndexStore(config.index_path), enabled=config.rag_enabled, scorer=scorer
    )


def open_session(config: Config, files: list[str]) -> Session:
    session = Session.from_config(config, load_index(config))
    for path in files:
        try:
            session.attach(path)
        except KikiError as e:
            logger.error(f"attach error: {e}")
            sys.exit(1)
    return session


def ask(config: Config, question: str, files: list[str]) -> None:
    """Answer one question and exit.

    Args:
        config: Runtime configuration
        question: The question text
        files: Paths to attach
    """
    session = open_session(config, files)
    with CompletionClient(config.endpoint) as client:
        assembler = ContextAssembler(client, config)
        result = run_ask(question, config, session, assembler)
    if result is None:
        sys.exit(1)


def gen_file(config: Config, path: str, prompt: str) -> None:
    """Generate a code file from prompt, confirming before it is written."""
    session = open_session(config, [])
    with CompletionClient(config.endpoint) as client:
        try:
            with interrupt_scope(config.timeout) as scope:
                gen(path, prompt, config, session, client, scope=scope)
        except (KikiError, OSError) as e:
            logger.error(f"gen error: {e}")
            sys.exit(1)


def shell(config: Config, files: list[str]) -> None:
    """Run the interactive shell."""
    session = open_session(config, files)
    logger.info(f"kiki -> {config.server_address} (profile={session.profile}, :help for commands)")
    with CompletionClient(config.endpoint) as client:
        Repl(config, session, ContextAssembler(client, config), client).run()


def index_add(config: Config, paths: list[str]) -> None:
    """Index files, folders or zip archives into the persistent index."""
    index = load_index(config)

    added = 0
    for path in paths:
        try:
            docs = index.add_source(path, config.file_max_bytes, config.file_max_chars)
        except (KikiError, OSError) as e:
            logger.error(f"Cannot index {path}: {e}")
            continue
        for doc in docs:
            logger.info(f"  {doc.path}")
        added += len(docs)

    try:
        index.store.set_metadata("updated_at", datetime.now().isoformat())
    except (sqlite3.Error, OSError) as e:
        logger.warning(f"Could not update index metadata: {e}")
    logger.info(f"Indexed {added} documents -> {config.index_path}")


def index_search(config: Config, query: str, top_k: int) -> None:
    """Print the best matching excerpts for query."""
    index = load_index(config)
    index.toggle(True)
    excerpts = index.search(query, top_k, config.rag_max_chars)
    if not excerpts:
        print(f"No results found for: {query}")
        return
    for excerpt in excerpts:
        print(f"[{excerpt.score:g}] {excerpt.path}")
        print(excerpt.text)
        print()


def index_info(config: Config) -> None:
    """Show information about the persistent index."""
    index = load_index(config)
    docs = index.documents()

    print(f"Index: {config.index_path}")
    if config.index_path.exists():
        print(f"  Size: {config.index_path.stat().st_size / 1024:.1f} KB")
    try:
        updated = index.store.get_metadata("updated_at")
    except (sqlite3.Error, OSError) as e:
        logger.warning(f"Could not read index metadata: {e}")
        updated = None
    if updated:
        print(f"  Updated: {updated}")
    print(f"  Scorer: {index.scorer.name}")
    print(f"  Retrieval on questions: {'on' if config.rag_enabled else 'off'}")
    print(f"")
    print(f"Contents:")
    print(f"  Documents: {len(docs)}")
    print(f"  Characters: {sum(len(doc.text) for doc in docs)}")


def index_clear(config: Config) -> None:
    """Remove every document from the persistent index."""
    index = load_index(config)
    count = len(index)
    index.clear()
    logger.info(f"Cleared {count} documents from {config.index_path}")


def serve(config: Config, transport: str = "stdio") -> None:
    """Start an MCP server over the persistent index.

    Args:
        config: Runtime configuration
        transport: Transport protocol (stdio or sse)
    """
    # Import here to avoid loading MCP unless needed
    from kikishell.server import create_mcp_server

    index = load_index(config)
    index.toggle(True)
    logger.info(f"Serving {config.index_path} ({len(index)} documents) via {transport}")
    mcp = create_mcp_server(
        index,
        max_bytes=config.file_max_bytes,
        max_chars=config.file_max_chars,
        excerpt_chars=config.rag_max_chars,
    )
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kiki",
        description="kiki - a shell that asks a local LLM, within its context size",
    )
    parser.add_argument(
        "--profile",
        choices=["fast", "deep", "none"],
        help="Sampling profile (default: LLM_PROFILE or fast)",
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Stream answers as they are generated",
    )
    parser.add_argument(
        "-f",
        "--file",
        action="append",
        default=[],
        dest="files",
        metavar="PATH",
        help="Attach a file (repeatable)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log planning decisions",
    )
    subparsers = parser.add_subparsers(dest="command")

    # ask command
    ask_parser = subparsers.add_parser("ask", help="Ask one question")
    ask_parser.add_argument("question", nargs="+", help="Question text")

    # gen command
    gen_parser = subparsers.add_parser("gen", help="Generate a code file")
    gen_parser.add_argument("path", help="Output file path")
    gen_parser.add_argument("prompt", nargs="+", help="What to generate")

    # shell command
    subparsers.add_parser("shell", help="Interactive shell (default)")

    # index command
    index_parser = subparsers.add_parser("index", help="Manage the persistent index")
    index_sub = index_parser.add_subparsers(dest="index_command", required=True)
    add_parser = index_sub.add_parser("add", help="Index files, folders or zip files")
    add_parser.add_argument("paths", nargs="+", help="Paths to index")
    search_parser = index_sub.add_parser("search", help="Search the index")
    search_parser.add_argument("query", nargs="+", help="Search words")
    search_parser.add_argument(
        "-k",
        "--top-k",
        type=int,
        default=3,
        help="Number of results (default: 3)",
    )
    index_sub.add_parser("info", help="Show index information")
    index_sub.add_parser("clear", help="Remove every document")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start MCP server for the index")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    config = load_config(args)

    if args.command == "ask":
        ask(config, " ".join(args.question), args.files)
    elif args.command == "gen":
        gen_file(config, args.path, " ".join(args.prompt))
    elif args.command == "index":
        if args.index_command == "add":
            index_add(config, args.paths)
        elif args.index_command == "search":
            index_search(config, " ".join(args.query), args.top_k)
        elif args.index_command == "info":
            index_info(config)
        elif args.index_command == "clear":
            index_clear(config)
    elif args.command == "serve":
        serve(config, args.transport)
    else:
        shell(config, args.files)


if __name__ == "__main__":
    main()
