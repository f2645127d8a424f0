"""Runs .lc files, or the interactive shell when no file is given. Installed as the lc script.

Python version must be >=3.7, because error handling requires that dicts are insertion-ordered.
"""

import argparse
import sys

from lazycalc.lang.error import ErrorHandler
from lazycalc.lang.session import Session
from lazycalc.lang.shell import Shell
from lazycalc.pure.evaluator import Evaluator


def build_parser():
    parser = argparse.ArgumentParser(prog="lc", description="Call-by-need lambda calculus interpreter.")
    parser.add_argument("file", help="file to load (if empty, goes to command-line mode)", nargs="?")
    parser.add_argument("bindings", help=f"bindings to force and print (default: {Session.DEFAULT_BINDING})",
                        nargs="*")
    parser.add_argument("-I", "--include", help="extra directory to look for imported modules in",
                        action="append", default=[])
    parser.add_argument("--max-steps", help="evaluation steps allowed per evaluation, 0 for no limit "
                                            f"(default: {Evaluator.DEFAULT_MAX_STEPS})",
                        type=int, default=Evaluator.DEFAULT_MAX_STEPS)
    parser.add_argument("-n", "--numerals", help="print Church numerals as decimal numbers", action="store_true")
    parser.add_argument("--trace", help="print thunks as they are forced", action="store_true")
    parser.add_argument("--check", help="only load and link the file", action="store_true")
    return parser


def main(argv=None):
    """Runs lc interpreter. Called from lc executable script."""
    assert sys.version_info >= (3, 7), "lc cannot be run with python < 3.7"

    args = build_parser().parse_args(argv)
    with ErrorHandler() as error_handler:
        sess = Session(error_handler, include=args.include, max_steps=args.max_steps or None,
                       numerals=args.numerals, trace=args.trace)

        if args.file is None:
            error_handler.fatal = False
            Shell(sess).cmdloop()
            return 0

        sess.load(args.file)
        if args.check:
            print(f"{args.file}: {len(sess.main.names())} names")
            return 0
        return 0 if sess.run(args.bindings) else 1


if __name__ == "__main__":
    sys.exit(main())
