import sys
from pathlib import Path

from lox.lox_runtime import ScriptRunner
from lox.lox_printer import Printer

# Exit codes follow the BSD sysexits convention.
EX_USAGE = 64
EX_DATAERR = 65
EX_SOFTWARE = 70


# A basic input prompt.
def read_line(prompt: str) -> str:
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.readline()


def _print_side_effects(result):
    for effect in result.side_effects:
        if effect.get('topics') == ['stdout']:
            print(effect.get('message', ''))


def run_script_file(file_path: str):
    """Run a Lox script file non-interactively and exit with appropriate status."""
    runner = ScriptRunner()
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(EX_DATAERR)
    result = runner.handle_script(source)
    # Output produced before a runtime error is still shown.
    _print_side_effects(result)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        if runner.reporter.had_runtime_error:
            raise SystemExit(EX_SOFTWARE)
        raise SystemExit(EX_DATAERR)


def main(argv=None):
    """Run a script file when provided, otherwise start the interactive REPL."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) > 1:
        print("Usage: lox.py [script]", file=sys.stderr)
        raise SystemExit(EX_USAGE)
    if len(args) == 1:
        run_script_file(args[0])
        return

    print("Lox REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    # Setup: one runner for the whole session so globals persist between lines.
    runner = ScriptRunner()
    printer = Printer()

    # REPL Loop
    while True:
        try:
            raw = read_line(">> ")
            if raw == "":
                raise EOFError
            line = raw.strip()

            if not line:
                continue
            if line == "exit":
                break

            result = runner.handle_script(line)
            _print_side_effects(result)

            if result.status == 'error':
                print(result.error_message, file=sys.stderr)
                continue

            # Echo the value of a trailing expression statement
            if result.value is not None:
                print(printer.stringify(result.value))

        except EOFError:
            print("\nExiting.")
            break


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")
