## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# forthwalk — A small Forth dialect, evaluated by walking the parsed program directly.
#

import sys
import time
from pathlib import Path
from dataclasses import dataclass

import click

from .errors import ForthError, ForthParseError, ForthNameError, ForthStackError, ForthIndexError, ForthArithmeticError
from .parser import format_parse_error_context
from .formatting import write_without_ansi, format_stack, show_stack
from .runtime import Runtime, DEFAULT_MAX_DEPTH


SOURCE_SUFFIXES = ('.fs', '.fth', '.4th', '.forth')


@dataclass(frozen=True)
class RuntimeConfig:
    verbose: int
    ignore: bool
    stats: bool
    plain: bool
    max_depth: int


@dataclass
class ExecutionItem:
    source: str
    filename: str


class ForthRunner:
    def __init__(self, config: RuntimeConfig):
        self.verbose = config.verbose
        self.ignore = config.ignore
        self.stats_enabled = config.stats
        self.plain = config.plain

        if self.plain:
            writer = write_without_ansi(sys.stdout.write)
            sys.stdout.write, sys.stderr.write = writer, writer

        self.total_stats = {'steps': 0, 'start': time.time()} if self.stats_enabled else None
        self.runtime = Runtime(max_depth=config.max_depth, verbosity=self.verbose, stats=self.total_stats)
        self.failure = False
        self.executed_items = 0

    def _maybe_fatal_error(self, message: str, detail: str, exc_type: str = None, context: str = '', is_repl: bool = False) -> None:
        header = detail if not exc_type else f"{detail} (Exception: \033[33m{exc_type}\033[0m)"
        print(f'\033[30;43m {message} \033[0m {header}\n{context}', file=sys.stderr)
        if is_repl: return
        self.failure = True
        if not self.ignore: sys.exit(1)

    def _handle_exception(self, exc: ForthError, filename: str, source: str, is_repl: bool = False) -> None:
        if isinstance(exc, ForthParseError):
            context = format_parse_error_context(filename, exc.line, exc.column, exc.token, source=source)
            context += f"\n\033[90m{str(exc).replace(chr(10), ' ').replace(chr(9), ' ')}\033[0m\n"
            self._maybe_fatal_error("SYNTAX ERROR.", f"Parsing `\033[97m{filename}\033[0m` caused a problem!", type(exc).__name__, context, is_repl)
            return

        context = f"\033[1;33m  Stack content is\033[0;33m\n    {format_stack(self.runtime.data)}\033[0m\n"
        if isinstance(exc, ForthNameError):
            detail = f"Term `\033[1;97m{exc.forth_token}\033[0m` from `\033[97m{filename}\033[0m` was not found in dictionary! {exc}"
            self._maybe_fatal_error("UNDEFINED WORD.", detail, type(exc).__name__, context, is_repl)
        elif isinstance(exc, (ForthStackError, ForthIndexError, ForthArithmeticError)):
            detail = f"Function \033[1;97m`{exc.forth_token}`\033[0m failed: {exc}"
            self._maybe_fatal_error("STACK ERROR.", detail, type(exc).__name__, context, is_repl)
        else:
            detail = f"Function \033[1;97m`{exc.forth_token}`\033[0m caused an error in interpret: {exc}"
            self._maybe_fatal_error("RUNTIME ERROR.", detail, type(exc).__name__, context, is_repl)

    def execute_items(self, items: list[ExecutionItem]) -> None:
        for item in items:
            self._execute_script(item.source, item.filename)

    def _execute_script(self, source: str, filename: str, is_repl: bool = False, print_result: bool = False) -> None:
        try:
            self.runtime.evaluate(source, filename=filename, final=not is_repl)
            if print_result:
                print(format_stack(self.runtime.data))
        except ForthError as exc:
            self._handle_exception(exc, filename, source, is_repl=is_repl)
        else:
            self.executed_items += 1

    def repl(self) -> None:
        if sys.platform != "win32": import readline

        print('forthwalk - Stack language REPL; type Ctrl+C to exit.')

        while True:
            try:
                prompt = "\033[36m... \033[0m" if self.runtime.pending else "\033[36m<<< \033[0m"
                line = input(prompt)
                if len(line.strip()) == 0: continue
                if line.strip().lower() in ('quit', 'exit'): break

                try:
                    self.runtime.evaluate(line, filename='<REPL>')
                    if not self.runtime.pending:
                        print("\033[90m>>>\033[0m ", end='')
                        show_stack(self.runtime.data, width=None)
                except ForthError as exc:
                    self._handle_exception(exc, '<REPL>', line, is_repl=True)

            except (KeyboardInterrupt, EOFError):
                print(""); break

    def finalize(self) -> int:
        if self.total_stats and self.executed_items > 0:
            elapsed_time = time.time() - self.total_stats['start']
            print(f"\n\033[97m\033[48;5;30m STATISTICS. \033[0m")
            print(f"step\t\033[97m{self.total_stats['steps']:,}\033[0m")
            print(f"time\t\033[97m{elapsed_time:.3f}s\033[0m")
        return 1 if self.failure else 0


def _parse_dev_tokens(tokens: list[str]) -> list[tuple[str, Path | str | None]]:
    """Turn `-c CODE`, `-r` and source file arguments into actions, kept in command-line order."""
    actions, remaining = [], iter(tokens)
    for token in remaining:
        match token:
            case '-c' | '--command':
                if (code := next(remaining, None)) is None:
                    raise click.BadParameter("Option -c/--command needs Forth code after it.")
                actions.append(('command', code))
            case '-r' | '--repl':
                actions.append(('repl', None))
            case _ if token.startswith('-'):
                raise click.BadParameter(f"Unknown option `{token}`.")
            case _:
                path = Path(token)
                if path.suffix not in SOURCE_SUFFIXES or not path.is_file():
                    raise click.BadParameter(f"Expected a Forth source file ({', '.join(SOURCE_SUFFIXES)}), got `{token}`.")
                actions.append(('file', path))
    return actions


@click.group(invoke_without_command=True, context_settings={'ignore_unknown_options': True, 'allow_extra_args': True})
@click.option('--verbose', '-v', default=0, count=True, help='Trace interpreter execution; repeat for every step.')
@click.option('--ignore', '-i', is_flag=True, help='Ignore errors and continue executing.')
@click.option('--stats', is_flag=True, help='Display execution statistics (e.g., number of steps).')
@click.option('--plain', '-p', is_flag=True, help='Strip ANSI color codes and redirect stderr to stdout.')
@click.option('--max-depth', default=DEFAULT_MAX_DEPTH, type=click.IntRange(min=1), envvar='FORTHWALK_MAX_DEPTH',
              show_default=True, help='Deepest nesting of word calls and control constructs.')
@click.pass_context
def cli(ctx: click.Context, verbose: int, ignore: bool, stats: bool, plain: bool, max_depth: int) -> None:
    ctx.ensure_object(dict)
    ctx.obj['config'] = RuntimeConfig(verbose=verbose, ignore=ignore, stats=stats, plain=plain, max_depth=max_depth)


@cli.command('run-file')
@click.argument('script', type=click.File('r', encoding='utf-8'))
@click.pass_context
def run_file(ctx: click.Context, script) -> None:
    runner = ForthRunner(ctx.obj['config'])
    runner.execute_items((ExecutionItem(script.read(), script.name or '<STDIN>'),))
    ctx.exit(runner.finalize())


@cli.command('run-dev', context_settings={'ignore_unknown_options': True, 'allow_extra_args': True})
@click.argument('tokens', nargs=-1)
@click.pass_context
def run_dev(ctx: click.Context, tokens: tuple[str, ...]) -> None:
    runner = ForthRunner(ctx.obj['config'])
    actions = _parse_dev_tokens(list(tokens))

    command_index = 1
    for action, payload in actions:
        if action == 'file':
            runner.execute_items((ExecutionItem(payload.read_text(encoding='utf-8'), str(payload)),))
        elif action == 'command':
            runner._execute_script(payload, f'<INPUT_{command_index}>', is_repl=False, print_result=True)
            command_index += 1
        elif action == 'repl':
            runner.repl()
        else:
            raise NotImplementedError

    if not actions:
        runner.repl()
    ctx.exit(runner.finalize())


@cli.command('run-repl')
@click.pass_context
def run_repl(ctx: click.Context) -> None:
    runner = ForthRunner(ctx.obj['config'])
    runner.repl()
    ctx.exit(runner.finalize())


def _split_global_options(args: list[str]) -> tuple[list[str], list[str]]:
    g, r, index = [], [], 0
    while index < len(args):
        t = args[index]
        if t in ('--ignore', '--stats', '--plain', '-i', '-p') or (t.startswith('-v') and t.strip('v') == '-') \
                or t == '--verbose' or t.startswith('--max-depth='):
            g.append(t)
        elif t == '--max-depth' and index + 1 < len(args):
            g.extend(args[index:index+2])
            index += 1
        else:
            r.append(t)
        index += 1
    return g, r


def main(argv: list[str] | None = None) -> None:
    a = list(sys.argv[1:] if argv is None else argv)
    g, r = _split_global_options(a)
    pos = [t for t in r if not t.startswith('-')]

    if len(r) == 0:
        # No args: if stdin has data, treat as file '-', else REPL
        cmd, tail = ('run-file', ['-']) if not sys.stdin.isatty() else ('run-repl', [])
    elif r == ['-'] or (len(r) >= 2 and r[0] == '-f' and r[1] == '-'):
        cmd, tail = 'run-file', ['-']
    elif r == ['--repl']:
        cmd, tail = 'run-repl', []
    elif len(r) == 1 and len(pos) == 1 and pos[0].endswith(SOURCE_SUFFIXES) and Path(pos[0]).exists():
        cmd, tail = 'run-file', [pos[0]]
    else:
        cmd, tail = 'run-dev', r

    cli.main(args=[*g, cmd, *tail], prog_name='forthwalk')


if __name__ == "__main__":
    main()
