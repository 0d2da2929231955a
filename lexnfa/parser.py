"""
    lexnfa.parser
    ~~~~~~~~~~~~~

    Parses patterns into the syntax tree defined in :mod:`lexnfa.ast`.

    :copyright: 2012 by Daniel Neuhäuser
    :license: BSD
"""
from collections import deque

from lexnfa.ast import Character, Concatenation, Union, Group
from lexnfa.exceptions import (
    RegexSyntaxError, UnsupportedConstructError, annotated, annotated_range
)


DEFAULT_UNSUPPORTED = {
    "[": "character class",
    "]": "character class",
    "*": "quantifier",
    "+": "quantifier",
    "?": "quantifier",
    "{": "counted repetition",
    "}": "counted repetition",
    "\\": "escape",
    ".": "wildcard",
    "^": "anchor",
    "$": "anchor",
}


class Language(object):
    def __init__(self,
                 union="|",
                 group_begin="(", group_end=")",
                 unsupported=None
                 ):
        self.union = union
        self.group_begin = group_begin
        self.group_end = group_end
        self.unsupported = dict(
            DEFAULT_UNSUPPORTED if unsupported is None else unsupported
        )

    def __eq__(self, other):
        if self is other:
            return True
        if isinstance(other, self.__class__):
            return (
                self.union == other.union and
                self.group_begin == other.group_begin and
                self.group_end == other.group_end and
                self.unsupported == other.unsupported
            )
        return NotImplemented

    def __ne__(self, other):
        return not self == other

    @property
    def special_characters(self):
        return frozenset([self.union, self.group_begin, self.group_end])

    @property
    def term_end_characters(self):
        """
        Characters after which a literal ends the term it belongs to.
        """
        return self.special_characters

    @property
    def group_characters(self):
        return [self.group_begin, self.group_end]

    def check_supported(self, string, position):
        character = string[position]
        if character in self.unsupported:
            raise UnsupportedConstructError(
                position,
                character,
                self.unsupported[character],
                annotated(string, position)
            )

    def to_string(self, regex):
        if isinstance(regex, Character):
            return regex.raw
        elif isinstance(regex, Concatenation):
            return self.to_string(regex.left) + self.to_string(regex.right)
        elif isinstance(regex, Union):
            return "%s%s%s" % (
                self.to_string(regex.left),
                self.union,
                self.to_string(regex.right)
            )
        elif isinstance(regex, Group):
            return "%s%s%s" % (
                self.group_begin,
                self.to_string(regex.grouped),
                self.group_end
            )
        raise NotImplementedError(regex)


DEFAULT_LANGUAGE = Language()


class Input(object):
    def __init__(self, string):
        self.string = string
        self.characters = iter(self.string)
        self.remaining = deque()
        self.position = -1

    @property
    def is_consumed(self):
        try:
            self.lookahead()
            return False
        except StopIteration:
            return True

    def next(self):
        if self.remaining:
            result = self.remaining.popleft()
        else:
            result = next(self.characters)
        self.position += 1
        return result

    def lookahead(self, n=1):
        while len(self.remaining) < n:
            self.remaining.append(next(self.characters))
        return self.remaining[n - 1]

    def consume(self, n=1):
        if len(self.remaining) < n:
            raise RuntimeError(
                "attempting to consume %d, looked ahead only %d" % (
                    n, len(self.remaining)
                )
            )
        for _ in range(n):
            self.next()

    def annotated(self, position=None):
        position = self.position if position is None else position
        return annotated(self.string, position)

    def annotated_range(self, start=None, end=None):
        start = self.position if start is None else start
        end = self.position if end is None else end
        return annotated_range(self.string, start, end)


class Parser(object):
    def __init__(self, language=DEFAULT_LANGUAGE):
        self.language = language

    def parse(self, string):
        if not string:
            raise RegexSyntaxError("empty pattern", 0, annotated(string, 0))
        input = Input(string)
        result = self.parse_expression(input)
        if not input.is_consumed:
            input.next()
            raise RegexSyntaxError(
                "found unmatched %s" % self.language.group_end,
                input.position,
                input.annotated()
            )
        return result

    def parse_expression(self, input):
        result = None
        while True:
            try:
                character = input.lookahead()
            except StopIteration:
                break

            if character == self.language.union:
                input.consume()
                if result is None:
                    raise RegexSyntaxError(
                        "%s is missing its left operand" % character,
                        input.position,
                        input.annotated()
                    )
                union_position = input.position
                right = self.parse_expression(input)
                if right is None:
                    raise RegexSyntaxError(
                        "%s is missing its right operand" % character,
                        union_position,
                        input.annotated(union_position)
                    )
                return Union(result, right)
            elif character == self.language.group_begin:
                result = self.concat_or_return(result, self.parse_group(input))
            elif character == self.language.group_end:
                break
            else:
                input.consume()
                self.language.check_supported(input.string, input.position)
                result = self.concat_or_return(result, Character(character))
        return result

    def concat_or_return(self, result, regex):
        if result is None:
            return regex
        return Concatenation(result, regex)

    def parse_group(self, input):
        begin, end = self.language.group_characters
        input.consume()
        start_position = input.position
        grouped = self.parse_expression(input)
        try:
            character = input.next()
        except StopIteration:
            raise RegexSyntaxError(
                "unexpected end of string, "
                "expected %s corresponding to %s" % (end, begin),
                start_position,
                input.annotated_range(start_position, input.position + 1)
            )
        # parse_expression only stops early at the end of a group
        assert character == end, character
        if grouped is None:
            raise RegexSyntaxError(
                "empty group",
                start_position,
                input.annotated(start_position)
            )
        return Group(grouped)


def parse(string):
    return Parser(DEFAULT_LANGUAGE).parse(string)


def compile_pattern(string, allocator=None):
    return parse(string).to_nfa(allocator)
