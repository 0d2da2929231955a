import sys
import logging
import unittest

from docopt import docopt

from lexnfa.builder import build
from lexnfa.parser import compile_pattern
from lexnfa.exceptions import RegexException
from lexnfa.tokens import ConfigurationError, load_tokens, compile_tokens


def report(error):
    sys.stderr.write("error: %s\n" % error)


def dump(pattern, two_pass=False):
    try:
        nfa = compile_pattern(pattern) if two_pass else build(pattern)
    except RegexException as error:
        report(error)
        return 1
    sys.stdout.write(nfa.render())
    return 0


def dump_tokens(path, workers=None):
    try:
        tokens = load_tokens(path)
    except (ConfigurationError, OSError) as error:
        report(error)
        return 1
    try:
        compiled = compile_tokens(tokens, max_workers=workers)
    except RegexException as error:
        report(error)
        return 1
    for token, nfa in compiled:
        sys.stdout.write("%s %s\n" % (token.kind, token.value))
        sys.stdout.write(nfa.render())
    return 0


def main(argv=sys.argv):
    """
    Usage:
      lexnfa dump [-v] [--two-pass] <pattern>
      lexnfa tokens [-v] [--workers=<n>] <path>
      lexnfa test [<args>...]
      lexnfa -h | --help

    Options:
      -h --help      Show this.
      -v --verbose   Log what is being built.
      --two-pass     Parse into a syntax tree before building the automaton.
      --workers=<n>  Number of threads compiling tokens.
    """
    arguments = docopt(main.__doc__, argv[1:], help=True)
    logging.basicConfig(
        level=logging.DEBUG if arguments["--verbose"] else logging.WARNING,
        format="%(name)s: %(message)s"
    )
    if arguments["dump"]:
        return dump(arguments["<pattern>"], arguments["--two-pass"])
    elif arguments["tokens"]:
        workers = arguments["--workers"]
        if workers is not None:
            try:
                workers = int(workers)
            except ValueError:
                workers = 0
            if workers < 1:
                report(
                    "--workers must be a positive integer, got %s" %
                    arguments["--workers"]
                )
                return 1
        return dump_tokens(arguments["<path>"], workers)
    elif arguments["test"]:
        import lexnfa.tests
        unittest.main(
            module=lexnfa.tests,
            argv=argv[0:1] + arguments["<args>"],
            buffer=True
        )


if __name__ == "__main__":
    sys.exit(main())
