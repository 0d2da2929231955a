"""
    lexnfa.ast
    ~~~~~~~~~~

    Syntax tree of a pattern. Every node compiles itself into an
    :class:`~lexnfa.fa.NFA` using Thompson's construction.

    :copyright: 2012 by Daniel Neuhäuser
    :license: BSD
"""
from lexnfa.fa import NFA, Transition


class Regex(object):
    def to_nfa(self, allocator=None):
        raise NotImplementedError()

    def __eq__(self, other):
        if isinstance(other, self.__class__):
            return True
        return NotImplemented

    def __ne__(self, other):
        return not self == other

    __hash__ = None

    def __repr__(self):
        return "%s()" % self.__class__.__name__


class Character(Regex):
    def __init__(self, raw):
        self.raw = raw

    def __eq__(self, other):
        if isinstance(other, self.__class__):
            return self.raw == other.raw
        return NotImplemented

    def __hash__(self):
        return hash(self.raw)

    def to_nfa(self, allocator=None):
        nfa = NFA(allocator)
        final = nfa.add_state(accepting=True)
        nfa.initial_state.add_transition(Transition(self.raw), final.id)
        return nfa

    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.raw)


class Operator(Regex):
    def __init__(self, left, right):
        self.left = left
        self.right = right

    def __eq__(self, other):
        if isinstance(other, self.__class__):
            return (
                self.left == other.left and
                self.right == other.right
            )
        return NotImplemented

    def __hash__(self):
        return hash(self.left) ^ hash(self.right)

    def __repr__(self):
        return "%s(%r, %r)" % (
            self.__class__.__name__,
            self.left,
            self.right
        )


class Concatenation(Operator):
    def to_nfa(self, allocator=None):
        # the parser nests concatenations to the left, one per character
        operands = []
        regex = self
        while isinstance(regex, Concatenation):
            operands.append(regex.right)
            regex = regex.left
        nfa = regex.to_nfa(allocator)
        for operand in reversed(operands):
            nfa.connect_other(operand.to_nfa(nfa.allocator))
        return nfa


class Union(Operator):
    def to_nfa(self, allocator=None):
        left = self.left.to_nfa(allocator)
        left.merge_other(self.right.to_nfa(left.allocator))
        return left


class Group(Regex):
    def __init__(self, grouped):
        self.grouped = grouped

    def to_nfa(self, allocator=None):
        return self.grouped.to_nfa(allocator)

    def __eq__(self, other):
        if isinstance(other, self.__class__):
            return self.grouped == other.grouped
        return NotImplemented

    def __hash__(self):
        return hash(self.grouped)

    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.grouped)
