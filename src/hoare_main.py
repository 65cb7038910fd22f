import sys

from hoare_parse import ParseError, parse_expression, parse_program, parse_statement
from hoare_solver import TranslationError
from hoare_wp import check_program, weakest_precondition
import hoare
import hoare_util

EXIT_CODES = {"valid": 0, "invalid": 2, "unknown": 3}


def print_and_exit(msg: str, code: int) -> None:
    try:
        print(msg)
    except BrokenPipeError:
        pass
    raise SystemExit(code)


class CmdLineArgs:
    """Options for one run; `stmt_mode` prints wp(statement, post) instead of a verdict."""

    def __init__(self, filename: str, *, verbose: bool, print_vc: bool, stmt_mode: bool, post: str):
        self.filename = filename
        self.verbose = verbose
        self.print_vc = print_vc
        self.stmt_mode = stmt_mode
        self.post = post


# boolean switches, keyed by spelling
SWITCHES = {
    "-v": "verbose",
    "--verbose": "verbose",
    "--print-vc": "print_vc",
    "--stmt": "stmt_mode",
}


def parse_cmd_line_args(argv: list[str]) -> CmdLineArgs:
    opts = {"verbose": False, "print_vc": False, "stmt_mode": False, "post": "true"}
    files: list[str] = []

    args = iter(argv)
    for a in args:
        if a in SWITCHES:
            opts[SWITCHES[a]] = True
        elif a == "--post":
            post = next(args, None)
            if post is None:
                print_and_exit("expected expression after --post", 1)
            opts["post"] = post
            opts["stmt_mode"] = True
        elif a.startswith("-"):
            print_and_exit("error", 1)
        else:
            files.append(a)

    if len(files) != 1:
        print_and_exit("error", 1)
    return CmdLineArgs(files[0], **opts)


def run_statement(src: str, cmd: CmdLineArgs) -> None:
    """Print wp(statement, post) for a bare statement file."""
    stmt = parse_statement(src)
    bv_names = [name for name, sort in hoare_util.stmt_vars(stmt).items() if sort is hoare.Sort.BV32]
    post = parse_expression(cmd.post, bv_names)
    if cmd.verbose:
        print(hoare_util.dump_stmt(stmt), file=sys.stderr)
    print_and_exit(hoare_util.dump(weakest_precondition(stmt, post)), 0)


def main(argv: list[str] | None = None) -> None:
    cmd = parse_cmd_line_args(sys.argv[1:] if argv is None else argv)
    try:
        with open(cmd.filename, "r", encoding="utf-8") as f:
            src = f.read()
        if cmd.stmt_mode:
            run_statement(src, cmd)
        result = check_program(parse_program(src), verbose=cmd.verbose, print_vc=cmd.print_vc)
    except ParseError as e:
        if cmd.verbose:
            print(e.explain(), file=sys.stderr)
        print_and_exit("error", 1)
    except (OSError, UnicodeDecodeError, TranslationError) as e:
        if cmd.verbose:
            print(e, file=sys.stderr)
        print_and_exit("error", 1)

    print_and_exit(result.status, EXIT_CODES[result.status])


if __name__ == "__main__":
    main()
