"""
    lexnfa.tokens
    ~~~~~~~~~~~~~

    Token definitions pair the kind of a token with the pattern matching it.
    Token tables are kept in TOML files of the form::

        tokens = [
            { kind = "EQ", value = "=" },
            { kind = "KEYWORD", value = "if|else|while" },
        ]

    :copyright: 2012 by Daniel Neuhäuser
    :license: BSD
"""
import logging
from concurrent.futures import ThreadPoolExecutor

import toml

from lexnfa.builder import build
from lexnfa.fa import DEFAULT_ALLOCATOR


logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    def __init__(self, reason, source=None):
        Exception.__init__(self, reason, source)
        self.reason = reason
        self.source = source

    def __str__(self):
        if self.source is None:
            return self.reason
        return "%s: %s" % (self.source, self.reason)


class Token(object):
    def __init__(self, kind, value):
        self.kind = kind
        self.value = value

    def to_nfa(self, allocator=None):
        return build(self.value, allocator)

    def __eq__(self, other):
        if isinstance(other, self.__class__):
            return self.kind == other.kind and self.value == other.value
        return NotImplemented

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self.kind) ^ hash(self.value)

    def __repr__(self):
        return "%s(%r, %r)" % (self.__class__.__name__, self.kind, self.value)


def loads_tokens(string, source=None):
    try:
        document = toml.loads(string)
    except toml.TomlDecodeError as error:
        raise ConfigurationError("invalid TOML: %s" % error, source)
    definitions = document.get("tokens")
    if not isinstance(definitions, list):
        raise ConfigurationError("expected an array named tokens", source)
    tokens = []
    for i, definition in enumerate(definitions):
        if not isinstance(definition, dict):
            raise ConfigurationError("token %d is not a table" % i, source)
        for key in ["kind", "value"]:
            if not isinstance(definition.get(key), str):
                raise ConfigurationError(
                    "token %d is missing a string %s" % (i, key), source
                )
        tokens.append(Token(definition["kind"], definition["value"]))
    logger.info("loaded %d token definitions", len(tokens))
    return tokens


def load_tokens(path):
    with open(path, encoding="utf-8") as file:
        return loads_tokens(file.read(), source=path)


def compile_tokens(tokens, allocator=None, max_workers=None):
    """
    Compiles every token in `tokens` concurrently, all automata share one
    allocator so their state ids never overlap. Returns a list of
    ``(token, nfa)`` pairs in the order of `tokens`.
    """
    allocator = DEFAULT_ALLOCATOR if allocator is None else allocator
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            (token, executor.submit(token.to_nfa, allocator))
            for token in tokens
        ]
        compiled = [(token, future.result()) for token, future in futures]
    logger.info("compiled %d tokens", len(compiled))
    return compiled
