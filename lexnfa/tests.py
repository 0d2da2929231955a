"""
    lexnfa.tests
    ~~~~~~~~~~~~

    :copyright: 2012 by Daniel Neuhäuser
    :license: BSD
"""
import os
import shutil
import tempfile
import threading
from io import StringIO
from itertools import product
from unittest import TestCase
from contextlib import contextmanager, redirect_stdout, redirect_stderr

from lexnfa.fa import IDAllocator, NFA, Transition, EPSILON, RULE
from lexnfa.ast import Character, Concatenation, Union, Group
from lexnfa.parser import parse, compile_pattern, DEFAULT_LANGUAGE
from lexnfa.builder import build
from lexnfa.exceptions import (
    RegexSyntaxError, UnsupportedConstructError, AllocatorExhausted
)
from lexnfa.tokens import (
    Token, ConfigurationError, loads_tokens, load_tokens, compile_tokens
)
from lexnfa.__main__ import main


def epsilon_closure(nfa, ids):
    closure = set(ids)
    pending = list(ids)
    while pending:
        for target in nfa.state(pending.pop()).epsilon_moves():
            if target not in closure:
                closure.add(target)
                pending.append(target)
    return closure


def accepts(nfa, string):
    current = epsilon_closure(nfa, [nfa.initial])
    for character in string:
        current = epsilon_closure(nfa, [
            target
            for id in current
            for transition, target in nfa.state(id).transitions
            if transition.character == character
        ])
    return any(nfa.state(id).accepting for id in current)


def language(nfa, alphabet, max_length):
    result = set()
    for length in range(max_length + 1):
        for characters in product(alphabet, repeat=length):
            string = "".join(characters)
            if accepts(nfa, string):
                result.add(string)
    return result


LANGUAGES = [
    ("a", {"a"}),
    ("abc", {"abc"}),
    ("a|b", {"a", "b"}),
    ("a|b|c", {"a", "b", "c"}),
    ("ab|cd", {"ab", "cd"}),
    ("(ab|cd)", {"ab", "cd"}),
    ("(ab)", {"ab"}),
    ("((a))", {"a"}),
    ("(ab)c", {"abc"}),
    ("x(ab)", {"xab"}),
    ("a(b|c)d", {"abd", "acd"}),
    ("(a|b)(c|d)", {"ac", "ad", "bc", "bd"}),
    ("a|(bc|d)e", {"a", "bce", "de"}),
    ("aaaa|bbbd|cc", {"aaaa", "bbbd", "cc"}),
]


class LanguageAssertions(object):
    def assertLanguage(self, nfa, pattern, expected):
        alphabet = sorted(set(pattern) - set("()|")) + ["z"]
        max_length = max(len(string) for string in expected) + 1
        self.assertEqual(language(nfa, alphabet, max_length), expected)


class TestIDAllocator(TestCase):
    def test_monotonic(self):
        allocator = IDAllocator()
        self.assertEqual([allocator.next() for _ in range(5)], list(range(5)))

    def test_start(self):
        allocator = IDAllocator(start=10)
        self.assertEqual(allocator.next(), 10)
        self.assertEqual(allocator.next(), 11)

    def test_exhausted(self):
        allocator = IDAllocator(maximum=1)
        self.assertEqual(allocator.next(), 0)
        self.assertEqual(allocator.next(), 1)
        with self.assertRaises(AllocatorExhausted):
            allocator.next()
        with self.assertRaises(AllocatorExhausted):
            allocator.next()

    def test_concurrent(self):
        allocator = IDAllocator()
        results = [[] for _ in range(8)]

        def allocate(result):
            for _ in range(1000):
                result.append(allocator.next())

        threads = [
            threading.Thread(target=allocate, args=(result,))
            for result in results
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        ids = [id for result in results for id in result]
        self.assertEqual(sorted(ids), list(range(8000)))
        for result in results:
            self.assertEqual(result, sorted(result))


class TestTransition(TestCase):
    def test_epsilon(self):
        self.assertTrue(EPSILON.is_epsilon)
        self.assertEqual(EPSILON, Transition())
        self.assertEqual(repr(EPSILON), "Epsilon")

    def test_character(self):
        transition = Transition("a")
        self.assertFalse(transition.is_epsilon)
        self.assertEqual(transition, Transition("a"))
        self.assertNotEqual(transition, Transition("b"))
        self.assertNotEqual(transition, EPSILON)
        self.assertEqual(repr(transition), "Char('a')")

    def test_single_character(self):
        with self.assertRaises(ValueError):
            Transition("ab")


class TestNFA(TestCase, LanguageAssertions):
    def setUp(self):
        self.allocator = IDAllocator()

    def character(self, character):
        nfa = NFA(self.allocator)
        final = nfa.add_state(accepting=True)
        nfa.initial_state.add_transition(Transition(character), final.id)
        return nfa

    def test_new(self):
        nfa = NFA(self.allocator)
        self.assertEqual(len(nfa), 1)
        self.assertEqual(nfa.initial, nfa.states[0].id)
        self.assertFalse(nfa.initial_state.accepting)
        self.assertEqual(nfa.initial_state.transitions, [])
        self.assertTrue(nfa.is_empty)
        self.assertEqual(nfa.accepting_states(), [])

    def test_add_state(self):
        nfa = NFA(self.allocator)
        state = nfa.add_state(accepting=True)
        self.assertIs(nfa.states[-1], state)
        self.assertIs(nfa.state(state.id), state)
        self.assertTrue(state.accepting)
        self.assertEqual(nfa.accepting_states(), [state])
        self.assertGreater(state.id, nfa.initial)
        self.assertFalse(nfa.is_empty)

    def test_connect_other(self):
        a = self.character("a")
        b = self.character("b")
        initial = a.initial
        [a_final] = a.accepting_states()
        [b_final] = b.accepting_states()
        a.connect_other(b)
        self.assertEqual(a.initial, initial)
        self.assertEqual(len(a), 4)
        self.assertFalse(a_final.accepting)
        self.assertEqual(a_final.transitions, [(EPSILON, b.initial)])
        self.assertEqual(a.accepting_states(), [b_final])
        self.assertLanguage(a, "ab", {"ab"})

    def test_connect_other_clears_every_tail(self):
        a = self.character("a")
        a.merge_other(self.character("b"))
        a.connect_other(self.character("c"))
        self.assertEqual(len(a.accepting_states()), 1)
        self.assertLanguage(a, "abc", {"ac", "bc"})

    def test_merge_other(self):
        a = self.character("a")
        b = self.character("b")
        a_initial = a.initial
        a.merge_other(b)
        self.assertNotEqual(a.initial, a_initial)
        self.assertEqual(a.initial_state.transitions, [
            (EPSILON, a_initial),
            (EPSILON, b.initial),
        ])
        self.assertEqual(len(a), 5)
        self.assertEqual(len(a.accepting_states()), 2)
        self.assertLanguage(a, "ab", {"a", "b"})

    def test_different_allocators(self):
        a = self.character("a")
        b = NFA(IDAllocator())
        with self.assertRaises(ValueError):
            a.connect_other(b)
        with self.assertRaises(ValueError):
            a.merge_other(b)
        self.assertEqual(len(a), 2)
        self.assertEqual(len(a.accepting_states()), 1)

    def test_reachable(self):
        a = self.character("a")
        a.add_state()
        self.assertEqual(a.reachable(), {state.id for state in a.states[:2]})

    def test_render(self):
        nfa = build("a|b", IDAllocator())
        self.assertEqual(nfa.render(), "\n".join([
            RULE,
            "Initial: 6",
            "3 accepting: False [Epsilon -> 4]",
            "4 accepting: False [Char('b') -> 5]",
            "5 accepting: True",
            "6 accepting: False [Epsilon -> 3] [Epsilon -> 0]",
            "0 accepting: False [Epsilon -> 1]",
            "1 accepting: False [Char('a') -> 2]",
            "2 accepting: True",
            RULE,
        ]) + "\n")
        self.assertEqual(str(nfa), nfa.render())


class TestBuilder(TestCase, LanguageAssertions):
    def build(self, pattern):
        return build(pattern, IDAllocator())

    def test_languages(self):
        for pattern, expected in LANGUAGES:
            self.assertLanguage(self.build(pattern), pattern, expected)

    def test_literals(self):
        nfa = self.build("abc")
        self.assertTrue(accepts(nfa, "abc"))
        for string in ["", "a", "ab", "abcc", "abd", "cba"]:
            self.assertFalse(accepts(nfa, string), string)

    def test_three_alternatives(self):
        nfa = self.build("aaaa|bbbd|cc")
        self.assertEqual(len(nfa.accepting_states()), 3)
        closure = epsilon_closure(nfa, [nfa.initial])
        first_characters = sorted(
            transition.character
            for id in closure
            for transition, _ in nfa.state(id).transitions
            if not transition.is_epsilon
        )
        self.assertEqual(first_characters, ["a", "b", "c"])

    def test_two_alternatives(self):
        nfa = self.build("a|b")
        accepting = nfa.accepting_states()
        self.assertEqual(len(accepting), 2)
        characters = []
        for state in nfa:
            for transition, target in state.transitions:
                if not transition.is_epsilon:
                    self.assertTrue(nfa.state(target).accepting)
                    characters.append(transition.character)
        self.assertEqual(sorted(characters), ["a", "b"])

    def test_group(self):
        nfa = self.build("(ab)")
        self.assertEqual(len(nfa.accepting_states()), 1)
        self.assertEqual(
            [
                transition.character
                for state in nfa
                for transition, _ in state.transitions
                if not transition.is_epsilon
            ],
            ["a", "b"]
        )
        self.assertTrue(accepts(nfa, "ab"))
        self.assertFalse(accepts(nfa, "a"))

    def test_literal_chain(self):
        nfa = self.build("ab")
        initial, a1, a2, b1, b2 = nfa.states
        self.assertEqual(initial.transitions, [(EPSILON, a1.id)])
        self.assertEqual(a1.transitions, [(Transition("a"), a2.id)])
        self.assertEqual(a2.transitions, [(EPSILON, b1.id)])
        self.assertEqual(b1.transitions, [(Transition("b"), b2.id)])
        self.assertEqual(nfa.accepting_states(), [b2])

    def test_long_literal(self):
        nfa = self.build("a" * 1500)
        self.assertEqual(len(nfa), 3001)
        self.assertTrue(accepts(nfa, "a" * 1500))
        self.assertFalse(accepts(nfa, "a" * 1499))

    def test_no_orphans(self):
        for pattern, _ in LANGUAGES:
            nfa = self.build(pattern)
            ids = [state.id for state in nfa]
            self.assertEqual(len(ids), len(set(ids)), pattern)
            self.assertEqual(nfa.reachable(), set(ids), pattern)

    def test_only_tails_accept(self):
        nfa = self.build("ab(c|d)")
        self.assertEqual(len(nfa.accepting_states()), 2)
        for state in nfa.accepting_states():
            self.assertEqual(state.transitions, [])

    def test_default_allocator(self):
        first = build("a")
        second = build("a")
        self.assertLess(
            max(state.id for state in first),
            min(state.id for state in second)
        )

    def test_allocator_exhausted(self):
        with self.assertRaises(AllocatorExhausted):
            build("abc", IDAllocator(maximum=3))

    def test_failure_keeps_allocator(self):
        allocator = IDAllocator()
        with self.assertRaises(RegexSyntaxError):
            build("ab(", allocator)
        nfa = build("a", allocator)
        self.assertGreater(min(state.id for state in nfa), 0)


class SyntaxErrorTests(object):
    def assertSyntaxError(self, pattern, reason, position, annotation):
        with self.assertRaises(RegexSyntaxError) as context:
            self.compile(pattern)
        exception = context.exception
        self.assertEqual(exception.reason, reason)
        self.assertEqual(exception.position, position)
        self.assertEqual(exception.annotation, annotation)

    def assertUnsupported(self, pattern, position, character, construct):
        with self.assertRaises(UnsupportedConstructError) as context:
            self.compile(pattern)
        exception = context.exception
        self.assertEqual(exception.position, position)
        self.assertEqual(exception.character, character)
        self.assertEqual(exception.construct, construct)

    def test_empty_pattern(self):
        self.assertSyntaxError("", "empty pattern", 0, "\n^")

    def test_leading_group_end(self):
        self.assertSyntaxError(")", "found unmatched )", 0, ")\n^")
        self.assertSyntaxError(
            ")abc",
            "found unmatched )",
            0,
            (
                ")abc\n"
                "^"
            )
        )

    def test_group_missing_end(self):
        self.assertSyntaxError(
            "(a",
            "unexpected end of string, expected ) corresponding to (",
            0,
            (
                "(a\n"
                "^-^"
            )
        )

    def test_nested_group_missing_end(self):
        self.assertSyntaxError(
            "((a)",
            "unexpected end of string, expected ) corresponding to (",
            0,
            (
                "((a)\n"
                "^---^"
            )
        )

    def test_trailing_group_begin(self):
        self.assertSyntaxError(
            "ab(",
            "unexpected end of string, expected ) corresponding to (",
            2,
            (
                "ab(\n"
                "  ^^"
            )
        )

    def test_group_missing_begin(self):
        self.assertSyntaxError(
            "a)",
            "found unmatched )",
            1,
            (
                "a)\n"
                " ^"
            )
        )

    def test_extra_group_end(self):
        self.assertSyntaxError(
            "(a))",
            "found unmatched )",
            3,
            (
                "(a))\n"
                "   ^"
            )
        )

    def test_empty_group(self):
        self.assertSyntaxError(
            "a()",
            "empty group",
            1,
            (
                "a()\n"
                " ^"
            )
        )

    def test_union_missing_left(self):
        self.assertSyntaxError(
            "|a",
            "| is missing its left operand",
            0,
            (
                "|a\n"
                "^"
            )
        )

    def test_union_missing_left_in_group(self):
        self.assertSyntaxError(
            "b(|a)",
            "| is missing its left operand",
            2,
            (
                "b(|a)\n"
                "  ^"
            )
        )

    def test_union_missing_right(self):
        self.assertSyntaxError(
            "a|",
            "| is missing its right operand",
            1,
            (
                "a|\n"
                " ^"
            )
        )

    def test_union_missing_right_in_group(self):
        self.assertSyntaxError(
            "(a|)b",
            "| is missing its right operand",
            2,
            (
                "(a|)b\n"
                "  ^"
            )
        )

    def test_character_class(self):
        self.assertUnsupported("[0-9]+", 0, "[", "character class")

    def test_quantifiers(self):
        self.assertUnsupported("ab*", 2, "*", "quantifier")
        self.assertUnsupported("a+", 1, "+", "quantifier")
        self.assertUnsupported("(ab)?", 4, "?", "quantifier")

    def test_escape(self):
        self.assertUnsupported("a\\|b", 1, "\\", "escape")

    def test_anchors(self):
        self.assertUnsupported("^a", 0, "^", "anchor")
        self.assertUnsupported("a|b$", 3, "$", "anchor")

    def test_wildcard(self):
        self.assertUnsupported("a.c", 1, ".", "wildcard")

    def test_unsupported_annotation(self):
        with self.assertRaises(UnsupportedConstructError) as context:
            self.compile("(a*")
        self.assertEqual(context.exception.annotation, (
            "(a*\n"
            "  ^"
        ))
        self.assertEqual(
            context.exception.reason, "unsupported construct: quantifier *"
        )


class TestBuilderErrors(TestCase, SyntaxErrorTests):
    def compile(self, pattern):
        return build(pattern, IDAllocator())


class TestParserErrors(TestCase, SyntaxErrorTests):
    def compile(self, pattern):
        return parse(pattern)


class TestParser(TestCase):
    def test_character(self):
        self.assertEqual(parse("a"), Character("a"))

    def test_concatenation(self):
        self.assertEqual(
            parse("ab"),
            Concatenation(Character("a"), Character("b"))
        )
        self.assertEqual(
            parse("abc"),
            Concatenation(
                Concatenation(Character("a"), Character("b")),
                Character("c")
            )
        )

    def test_union(self):
        self.assertEqual(
            parse("a|b"),
            Union(Character("a"), Character("b"))
        )
        self.assertEqual(
            parse("a|b|c"),
            Union(Character("a"), Union(Character("b"), Character("c")))
        )

    def test_union_binds_loosest(self):
        self.assertEqual(
            parse("ab|c"),
            Union(
                Concatenation(Character("a"), Character("b")),
                Character("c")
            )
        )

    def test_group(self):
        self.assertEqual(parse("(a)"), Group(Character("a")))
        self.assertEqual(
            parse("(a|b)c"),
            Concatenation(
                Group(Union(Character("a"), Character("b"))),
                Character("c")
            )
        )

    def test_to_string(self):
        for pattern in ["a", "abc", "a|b|c", "(ab|cd)e", "x((y))"]:
            self.assertEqual(DEFAULT_LANGUAGE.to_string(parse(pattern)), pattern)


class TestCompiler(TestCase, LanguageAssertions):
    def test_character(self):
        nfa = Character("a").to_nfa(IDAllocator())
        self.assertEqual(len(nfa), 2)
        [final] = nfa.accepting_states()
        self.assertEqual(
            nfa.initial_state.transitions, [(Transition("a"), final.id)]
        )

    def test_languages(self):
        for pattern, expected in LANGUAGES:
            self.assertLanguage(
                compile_pattern(pattern, IDAllocator()), pattern, expected
            )

    def test_no_orphans(self):
        for pattern, _ in LANGUAGES:
            nfa = compile_pattern(pattern, IDAllocator())
            self.assertEqual(
                nfa.reachable(), {state.id for state in nfa}, pattern
            )

    def test_long_literal(self):
        nfa = compile_pattern("a" * 1500, IDAllocator())
        self.assertEqual(len(nfa), 3000)
        self.assertTrue(accepts(nfa, "a" * 1500))
        self.assertFalse(accepts(nfa, "a" * 1499))


TOKEN_TABLE = r"""
tokens = [
    { kind = "INT", value = "[0-9]+" },
    { kind = "ID", value = "[a-zA-Z_][a-zA-Z0-9_]*" },
    { kind = "OP", value = "[+\\-*/]" },
    { kind = "EQ", value = "=" },
    { kind = "WS", value = "[ \t\n]+" },
]
"""

SUPPORTED_TOKEN_TABLE = """
tokens = [
    { kind = "KEYWORD", value = "if|else|while" },
    { kind = "EQ", value = "=" },
    { kind = "ARROW", value = "(-|=)>" },
]
"""


@contextmanager
def token_file(content):
    directory = tempfile.mkdtemp()
    try:
        path = os.path.join(directory, "tokens.toml")
        with open(path, "w", encoding="utf-8") as file:
            file.write(content)
        yield path
    finally:
        shutil.rmtree(directory)


class TestTokens(TestCase):
    def test_loads(self):
        tokens = loads_tokens(TOKEN_TABLE)
        self.assertEqual(len(tokens), 5)
        self.assertEqual(
            [token.kind for token in tokens], ["INT", "ID", "OP", "EQ", "WS"]
        )
        self.assertEqual(tokens[2], Token("OP", "[+\\-*/]"))
        self.assertEqual(tokens[4].value, "[ \t\n]+")

    def test_load(self):
        with token_file(SUPPORTED_TOKEN_TABLE) as path:
            tokens = load_tokens(path)
        self.assertEqual(tokens[0], Token("KEYWORD", "if|else|while"))

    def test_invalid_toml(self):
        with self.assertRaises(ConfigurationError) as context:
            loads_tokens("tokens")
        self.assertTrue(context.exception.reason.startswith("invalid TOML"))

    def test_missing_tokens(self):
        for string in ["", "tokens = 1"]:
            with self.assertRaises(ConfigurationError) as context:
                loads_tokens(string)
            self.assertEqual(
                context.exception.reason, "expected an array named tokens"
            )

    def test_token_not_a_table(self):
        with self.assertRaises(ConfigurationError) as context:
            loads_tokens('tokens = ["a"]')
        self.assertEqual(context.exception.reason, "token 0 is not a table")

    def test_token_missing_value(self):
        with self.assertRaises(ConfigurationError) as context:
            loads_tokens('tokens = [{ kind = "EQ" }]', source="tokens.toml")
        exception = context.exception
        self.assertEqual(exception.reason, "token 0 is missing a string value")
        self.assertEqual(
            str(exception), "tokens.toml: token 0 is missing a string value"
        )

    def test_token_to_nfa(self):
        nfa = Token("KEYWORD", "if|else").to_nfa(IDAllocator())
        self.assertTrue(accepts(nfa, "if"))
        self.assertTrue(accepts(nfa, "else"))
        self.assertFalse(accepts(nfa, "ifelse"))

    def test_compile_tokens(self):
        tokens = loads_tokens(SUPPORTED_TOKEN_TABLE) * 10
        compiled = compile_tokens(tokens, IDAllocator(), max_workers=4)
        self.assertEqual([token for token, _ in compiled], tokens)
        ids = [state.id for _, nfa in compiled for state in nfa]
        self.assertEqual(len(ids), len(set(ids)))
        for token, nfa in compiled:
            self.assertEqual(nfa.reachable(), {state.id for state in nfa})
        _, nfa = compiled[2]
        self.assertTrue(accepts(nfa, "->"))
        self.assertTrue(accepts(nfa, "=>"))

    def test_compile_tokens_unsupported(self):
        with self.assertRaises(UnsupportedConstructError) as context:
            compile_tokens(loads_tokens(TOKEN_TABLE), IDAllocator())
        self.assertEqual(context.exception.character, "[")


class TestCommandLine(TestCase):
    def run_main(self, *arguments):
        stdout, stderr = StringIO(), StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            status = main(["lexnfa"] + list(arguments))
        return status, stdout.getvalue(), stderr.getvalue()

    def test_dump(self):
        status, stdout, stderr = self.run_main("dump", "a|b")
        self.assertEqual(status, 0)
        self.assertTrue(stdout.startswith(RULE + "\nInitial: "))
        self.assertIn("[Char('a') -> ", stdout)
        self.assertIn("[Char('b') -> ", stdout)
        self.assertEqual(stderr, "")

    def test_dump_two_pass(self):
        status, stdout, _ = self.run_main("dump", "--two-pass", "(ab)")
        self.assertEqual(status, 0)
        self.assertEqual(stdout.count("accepting: True"), 1)

    def test_dump_two_pass_long_literal(self):
        status, stdout, stderr = self.run_main(
            "dump", "--two-pass", "a" * 1500
        )
        self.assertEqual(status, 0)
        self.assertEqual(stdout.count("accepting: True"), 1)
        self.assertEqual(stderr, "")

    def test_dump_error(self):
        status, stdout, stderr = self.run_main("dump", "(a")
        self.assertEqual(status, 1)
        self.assertEqual(stdout, "")
        self.assertEqual(stderr, (
            "error: unexpected end of string, expected ) corresponding to (\n"
            "(a\n"
            "^-^\n"
        ))

    def test_tokens(self):
        with token_file(SUPPORTED_TOKEN_TABLE) as path:
            status, stdout, _ = self.run_main("tokens", "--workers=2", path)
        self.assertEqual(status, 0)
        self.assertIn("KEYWORD if|else|while\n" + RULE, stdout)
        self.assertIn("EQ =\n" + RULE, stdout)

    def test_tokens_unsupported(self):
        with token_file(TOKEN_TABLE) as path:
            status, _, stderr = self.run_main("tokens", path)
        self.assertEqual(status, 1)
        self.assertTrue(
            stderr.startswith("error: unsupported construct: character class [")
        )

    def test_tokens_missing_file(self):
        status, _, stderr = self.run_main(
            "tokens", os.path.join(tempfile.gettempdir(), "missing.toml")
        )
        self.assertEqual(status, 1)
        self.assertTrue(stderr.startswith("error: "))

    def test_tokens_workers_zero(self):
        with token_file(SUPPORTED_TOKEN_TABLE) as path:
            status, stdout, stderr = self.run_main(
                "tokens", "--workers=0", path
            )
        self.assertEqual(status, 1)
        self.assertEqual(stdout, "")
        self.assertEqual(
            stderr, "error: --workers must be a positive integer, got 0\n"
        )

    def test_tokens_workers_not_a_number(self):
        with token_file(SUPPORTED_TOKEN_TABLE) as path:
            status, stdout, stderr = self.run_main(
                "tokens", "--workers=x", path
            )
        self.assertEqual(status, 1)
        self.assertEqual(stdout, "")
        self.assertEqual(
            stderr, "error: --workers must be a positive integer, got x\n"
        )
