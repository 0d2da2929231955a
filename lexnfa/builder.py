"""
    lexnfa.builder
    ~~~~~~~~~~~~~~

    Builds an :class:`~lexnfa.fa.NFA` straight from a pattern, without going
    through a syntax tree.

    The pattern is wrapped in a group and scanned from left to right using an
    operator stack, holding group and alternation markers, and an operand
    stack, holding the automata built so far. Every group and every
    alternative gets its own automaton on the operand stack, literals extend
    the automaton on top of it, so concatenation happens implicitly. Closing a
    group reduces the pending alternations using :meth:`NFA.merge_other` and
    splices the result into the enclosing automaton using
    :meth:`NFA.connect_other`.

    :copyright: 2012 by Daniel Neuhäuser
    :license: BSD
"""
import logging
from collections import namedtuple

from lexnfa.fa import NFA, EPSILON, Transition, DEFAULT_ALLOCATOR
from lexnfa.parser import DEFAULT_LANGUAGE
from lexnfa.exceptions import RegexSyntaxError, annotated, annotated_range


logger = logging.getLogger(__name__)


OPEN_GROUP = "open-group"
ALTERNATION = "alternation"

#: `position` is the index of the marker's character in the pattern as given
#: by the caller, the implicit top-level group is at -1.
Marker = namedtuple("Marker", ["kind", "position"])


class Builder(object):
    def __init__(self, language=DEFAULT_LANGUAGE, allocator=None):
        self.language = language
        self.allocator = DEFAULT_ALLOCATOR if allocator is None else allocator

    def build(self, pattern):
        if not pattern:
            raise RegexSyntaxError("empty pattern", 0, annotated(pattern, 0))
        language = self.language
        wrapped = language.group_begin + pattern + language.group_end
        last = len(wrapped) - 1
        operators = []
        operands = []

        def error(reason, position, annotation=None):
            if annotation is None:
                annotation = annotated(pattern, position)
            return RegexSyntaxError(reason, position, annotation)

        def pop_operator(index):
            if not operators:
                raise error("found unmatched %s" % language.group_end, index - 1)
            return operators.pop()

        def pop_operand(marker):
            if not operands:
                raise error(
                    "%s is missing an operand" % language.union, marker.position
                )
            return operands.pop()

        for index, character in enumerate(wrapped):
            position = index - 1
            if character == language.group_begin:
                operators.append(Marker(OPEN_GROUP, position))
                operands.append(NFA(self.allocator))
            elif character == language.group_end:
                self._check_term(operators, operands, pattern, index, last)
                while operators and operators[-1].kind != OPEN_GROUP:
                    self._reduce(pop_operator(index), operands, pop_operand)
                marker = pop_operator(index)
                if marker.position == -1 and index != last:
                    raise error(
                        "found unmatched %s" % language.group_end, position
                    )
                if marker.position != -1 and index == last:
                    raise self._unclosed(pattern, marker)
                if operators:
                    self._splice_group(marker, operands, pop_operand)
            elif character == language.union:
                if operands and operands[-1].is_empty:
                    raise error(
                        "%s is missing its left operand" % character, position
                    )
                operators.append(Marker(ALTERNATION, position))
                operands.append(NFA(self.allocator))
            else:
                language.check_supported(pattern, position)
                if not operands:
                    raise error("literal outside of any group", position)
                self._add_literal(
                    operands[-1],
                    character,
                    wrapped[index + 1] in language.term_end_characters
                )

        if len(operands) != 1 or operators:
            raise error("unbalanced pattern", len(pattern) - 1)
        nfa = operands.pop()
        logger.debug("built %r into %d states", pattern, len(nfa))
        return nfa

    def _check_term(self, operators, operands, pattern, index, last):
        if not operands or not operands[-1].is_empty or not operators:
            return
        marker = operators[-1]
        if marker.kind == ALTERNATION:
            reason = "%s is missing its right operand" % self.language.union
        elif marker.position == -1 and index == last:
            raise RegexSyntaxError("empty pattern", 0, annotated(pattern, 0))
        elif marker.position == -1:
            raise RegexSyntaxError(
                "found unmatched %s" % self.language.group_end,
                index - 1,
                annotated(pattern, index - 1)
            )
        elif index == last:
            raise self._unclosed(pattern, marker)
        else:
            reason = "empty group"
        raise RegexSyntaxError(
            reason, marker.position, annotated(pattern, marker.position)
        )

    def _unclosed(self, pattern, marker):
        return RegexSyntaxError(
            "unexpected end of string, expected %s corresponding to %s" % (
                self.language.group_end, self.language.group_begin
            ),
            marker.position,
            annotated_range(pattern, marker.position, len(pattern))
        )

    def _reduce(self, marker, operands, pop_operand):
        nfa1 = pop_operand(marker)
        nfa2 = pop_operand(marker)
        logger.debug(
            "merging alternatives %d and %d", nfa1.initial, nfa2.initial
        )
        nfa1.merge_other(nfa2)
        operands.append(nfa1)

    def _splice_group(self, marker, operands, pop_operand):
        group = pop_operand(marker)
        enclosing = pop_operand(marker)
        if enclosing.is_empty:
            logger.debug("group at %d starts its scope", marker.position)
            operands.append(group)
        else:
            logger.debug("connecting group at %d", marker.position)
            enclosing.connect_other(group)
            operands.append(enclosing)

    def _add_literal(self, nfa, character, ends_term):
        # last -epsilon-> state1 -character-> state2
        tails = nfa.accepting_states() or [nfa.states[-1]]
        state1 = nfa.add_state()
        state2 = nfa.add_state(ends_term)
        for tail in tails:
            tail.accepting = False
            tail.add_transition(EPSILON, state1.id)
        state1.add_transition(Transition(character), state2.id)


def build(pattern, allocator=None):
    return Builder(DEFAULT_LANGUAGE, allocator).build(pattern)
