"""Interactive shell: questions, internal commands and bash passthrough."""

import logging
import os
import re
from typing import Callable

from kikishell import history
from kikishell.agent.assembler import CompletionBackend, ContextAssembler
from kikishell.agent.cancel import interrupt_scope
from kikishell.agent.session import Session
from kikishell.budget import DEFAULT_FLOOR
from kikishell.config import Config
from kikishell.errors import KikiError
from kikishell.shell.ask import run_ask
from kikishell.shell.bash import run_bash_once, run_interactive_bash
from kikishell.shell.gen import confirm_save, gen
from kikishell.shell.help import help_text
from kikishell.utils.paths import expand_path
from kikishell.utils.text import truncate_preview

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20

_ON = {"on", "1", "true", "yes"}


def _flag(value: str) -> bool:
    return value.strip().lower() in _ON


class Repl:
    """Read-eval loop of the interactive shell.

    ``handle_line`` processes one input line and returns False when the
    shell should exit; ``run`` feeds it lines from the terminal.
    """

    def __init__(
        self,
        config: Config,
        session: Session,
        assembler: ContextAssembler,
        client: CompletionBackend,
        input_func: Callable[[str], str] = input,
        confirm: Callable[[str], bool] = confirm_save,
    ):
        self.config = config
        self.session = session
        self.assembler = assembler
        self.client = client
        self.input_func = input_func
        self.confirm = confirm
        self._commands = {
            "help": self._help,
            "bash": self._bash,
            "profile": self._profile,
            "stream": self._stream,
            "nofence": self._nofence,
            "timeout": self._timeout,
            "ctx": self._ctx,
            "ctx-size": self._ctx_size,
            "ctxsize": self._ctx_size,
            "rag": self._rag,
            "file": self._file,
            "history": self._history,
            "gen": self._gen,
        }

    def prompt_line(self) -> str:
        stream = "on" if self.session.stream else "off"
        rag = "on" if self.session.index.enabled else "off"
        return (
            f"kiki[{self.session.profile}|stream:{stream}|files:{len(self.session.files)}"
            f"|rag:{rag}] {os.getcwd()}> "
        )

    def run(self) -> None:
        while True:
            try:
                line = self.input_func(self.prompt_line())
            except EOFError:
                print()
                return
            except KeyboardInterrupt:
                print()
                continue
            if not self.handle_line(line):
                return

    def handle_line(self, line: str) -> bool:
        line = line.strip()
        if not line:
            return True

        if line.startswith(":"):
            return self.handle_command(line[1:])

        if line.startswith("?"):
            question = line[1:].strip()
            if question:
                run_ask(question, self.config, self.session, self.assembler)
            return True

        if line == "cd" or line.startswith("cd "):
            self._cd(line[2:].strip())
            return True

        run_bash_once(line)
        return True

    def handle_command(self, cmdline: str) -> bool:
        parts = cmdline.split()
        if not parts:
            return True
        name, args = parts[0].lower(), parts[1:]

        if name in ("exit", "quit"):
            return False

        handler = self._commands.get(name)
        if handler is None:
            print("unknown command. try :help")
            return True
        handler(args)
        return True

    # Commands

    def _cd(self, target: str) -> None:
        path = expand_path(target or "~")
        try:
            os.chdir(path)
        except OSError as e:
            logger.error(f"cd: {e}")

    def _help(self, args: list[str]) -> None:
        print(help_text(args[0] if args else ""))

    def _bash(self, args: list[str]) -> None:
        print("\n[Entering bash] (type 'exit' to return)")
        run_interactive_bash()
        print("\n[Back to kiki]")

    def _profile(self, args: list[str]) -> None:
        if not args:
            print(f"profile: {self.session.profile}")
            print("usage: :profile fast|deep|none")
            return
        self.session.profile = args[0]
        self.config.profile = args[0]
        self.config.apply_profile()
        print(
            f"profile: {args[0]} (temperature={self.config.temperature}, "
            f"max_tokens={self.config.max_tokens})"
        )

    def _stream(self, args: list[str]) -> None:
        if not args:
            print("usage: :stream on|off")
            return
        self.session.stream = _flag(args[0])
        self.config.stream = self.session.stream
        print(f"stream: {'on' if self.session.stream else 'off'}")

    def _nofence(self, args: list[str]) -> None:
        if not args:
            print(f"nofence: {'on' if self.session.no_fence else 'off'}")
            print("usage: :nofence on|off")
            return
        self.session.no_fence = _flag(args[0])
        self.config.no_fence = self.session.no_fence
        print(f"nofence: {'on' if self.session.no_fence else 'off'}")

    def _timeout(self, args: list[str]) -> None:
        if not args:
            print(f"timeout: {self.config.timeout}s")
            print("usage: :timeout <sec>")
            return
        try:
            seconds = int(args[0])
        except ValueError:
            seconds = 0
        if seconds < 1:
            print(f"invalid timeout: {args[0]}")
            return
        self.config.timeout = seconds
        print(f"timeout set: {seconds} sec")

    def _ctx(self, args: list[str]) -> None:
        usage = "usage: :ctx set key=value | :ctx show | :ctx clear"
        sub = args[0].lower() if args else ""
        if sub == "set":
            key, sep, value = " ".join(args[1:]).partition("=")
            if not sep or not key.strip():
                print("usage: :ctx set key=value")
                return
            self.session.set_context(key, value)
            print(f"ctx set: {key.strip()}={value.strip()}")
        elif sub == "show":
            if not self.session.ctx:
                print("(ctx empty)")
                return
            for key in sorted(self.session.ctx):
                print(f"{key}={self.session.ctx[key]}")
        elif sub == "clear":
            self.session.ctx.clear()
            print("ctx cleared")
        else:
            print(usage)

    def _ctx_size(self, args: list[str]) -> None:
        budget = self.session.budget
        if not args:
            print(f"ctx-size: observed={budget.observed} target={budget.target}")
            print("usage: :ctx-size <N>")
            return
        try:
            size = int(args[0])
        except ValueError:
            size = 0
        if size < DEFAULT_FLOOR:
            print(f"invalid ctx-size: {args[0]}")
            return
        budget.set_target(size)
        self.config.ctx_target = size
        print(f"ctx-size target set: {size}")
        print(f"note: restart the llama.cpp server with --ctx-size {size}")

    def _rag(self, args: list[str]) -> None:
        index = self.session.index
        usage = "usage: :rag on|off | :rag add <path> | :rag query <text> | :rag stats | :rag clear"
        sub = args[0].lower() if args else "stats"
        if sub == "on":
            index.toggle(True)
            self.config.rag_enabled = True
            print("rag enabled")
        elif sub == "off":
            index.toggle(False)
            self.config.rag_enabled = False
            print("rag disabled")
        elif sub == "add":
            if len(args) < 2:
                print("usage: :rag add <path>")
                return
            try:
                docs = index.add_source(
                    " ".join(args[1:]), self.config.file_max_bytes, self.config.file_max_chars
                )
            except (KikiError, OSError) as e:
                logger.error(f"rag add error: {e}")
                return
            for doc in docs:
                print(f"rag added: {doc.path}")
        elif sub == "query":
            query = " ".join(args[1:])
            excerpts = index.search(query, self.config.rag_top_k, self.config.rag_max_chars)
            if not excerpts:
                print("(no matches)")
                return
            for excerpt in excerpts:
                print(f"[{excerpt.score:g}] {excerpt.path}")
                print(f"    {truncate_preview(excerpt.text, 160)}")
        elif sub == "stats":
            enabled, count = index.stats()
            print(f"rag: enabled={enabled} docs={count} scorer={index.scorer.name}")
            if not args:
                print(usage)
        elif sub == "clear":
            index.clear()
            print("rag cleared")
        else:
            print(usage)

    def _file(self, args: list[str]) -> None:
        usage = "usage: :file add|list|rm|clear ..."
        sub = args[0].lower() if args else ""
        if sub == "add":
            if len(args) < 2:
                print("usage: :file add /path")
                return
            try:
                path = self.session.attach(" ".join(args[1:]))
            except KikiError as e:
                print(e)
                return
            print(f"file added: {path}")
            if self.session.index.enabled:
                try:
                    self.session.index.add_file(
                        path, self.config.file_max_bytes, self.config.file_max_chars
                    )
                except (KikiError, OSError) as e:
                    logger.debug(f"Not indexing {path}: {e}")
        elif sub == "list":
            if not self.session.files:
                print("(no attached files)")
                return
            for number, path in enumerate(self.session.files, 1):
                print(f"{number}) {path}")
        elif sub == "rm":
            if len(args) < 2:
                print("usage: :file rm N")
                return
            try:
                removed = self.session.detach(int(args[1]))
            except (ValueError, KikiError):
                print("invalid index")
                return
            print(f"file removed: {removed}")
        elif sub == "clear":
            self.session.files.clear()
            print("files cleared")
        else:
            print(usage)

    def _history(self, args: list[str]) -> None:
        usage = "usage: :history show [N] | :history search <regex> [N] | :history path"
        sub = args[0].lower() if args else ""
        if sub == "path":
            print(self.config.history_path)
            return
        if sub not in ("show", "search"):
            print(usage)
            return

        pattern = None
        limit_arg = args[1] if len(args) > 1 else ""
        if sub == "search":
            if len(args) < 2:
                print("usage: :history search <regex> [N]")
                return
            try:
                pattern = re.compile(args[1])
            except re.error as e:
                logger.error(f"invalid regex: {e}")
                return
            limit_arg = args[2] if len(args) > 2 else ""
        limit = int(limit_arg) if limit_arg.isdigit() and int(limit_arg) > 0 else HISTORY_LIMIT

        try:
            records = history.read_all(self.config.history_path)
        except OSError as e:
            logger.error(f"history read error: {e}")
            return

        numbered = list(enumerate(records, 1))
        if pattern is None:
            if not numbered:
                print("(history empty)")
                return
            selected = numbered[-limit:]
        else:
            selected = [
                (number, record)
                for number, record in reversed(numbered)
                if pattern.search(record.prompt) or pattern.search(record.response_preview)
            ][:limit]
            if not selected:
                print("(no matches)")
                return

        for number, record in selected:
            print(
                f"#{number} {record.time} | profile={record.profile} | "
                f"stream={record.stream} | prompt={truncate_preview(record.prompt, 120)}"
            )
            if record.response_preview:
                print(f"    ↳ {truncate_preview(record.response_preview, 160)}")

    def _gen(self, args: list[str]) -> None:
        if len(args) < 2:
            print("usage: :gen <path> <prompt...>")
            return
        try:
            with interrupt_scope(self.config.timeout) as scope:
                gen(
                    args[0],
                    " ".join(args[1:]),
                    self.config,
                    self.session,
                    self.client,
                    confirm=self.confirm,
                    scope=scope,
                )
        except (KikiError, OSError) as e:
            logger.error(f"gen error: {e}")
