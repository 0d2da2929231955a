"""
    lexnfa.fa
    ~~~~~~~~~

    Nondeterministic finite automata with epsilon moves.

    States live in a plain list owned by their :class:`NFA`, transitions
    refer to their target by state id. The ids are handed out by an
    :class:`IDAllocator` which is shared between automata that are going to be
    combined, this keeps ids unique so that combining automata never requires
    relabeling.

    :copyright: 2012 by Daniel Neuhäuser
    :license: BSD
"""
import sys
import threading
from collections import deque

from lexnfa.exceptions import AllocatorExhausted


RULE = "-" * 37


class IDAllocator(object):
    """
    Hands out monotonically increasing state ids. Safe to share between
    threads compiling different patterns.
    """

    def __init__(self, start=0, maximum=sys.maxsize):
        self.maximum = maximum
        self._next_id = start
        self._lock = threading.Lock()

    def next(self):
        with self._lock:
            if self._next_id > self.maximum:
                raise AllocatorExhausted(
                    "no state ids left, %d was the last one" % self.maximum
                )
            id = self._next_id
            self._next_id += 1
            return id

    def __repr__(self):
        return "%s(%d, %d)" % (
            self.__class__.__name__,
            self._next_id,
            self.maximum
        )


DEFAULT_ALLOCATOR = IDAllocator()


class Transition(object):
    """
    A transition label, either epsilon (`character` is `None`) or a single
    character that is consumed.
    """

    def __init__(self, character=None):
        if character is not None and len(character) != 1:
            raise ValueError("expected a single character, got %r" % character)
        self.character = character

    @property
    def is_epsilon(self):
        return self.character is None

    def __eq__(self, other):
        if isinstance(other, self.__class__):
            return self.character == other.character
        return NotImplemented

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self.character)

    def __repr__(self):
        if self.is_epsilon:
            return "Epsilon"
        return "Char(%r)" % self.character


EPSILON = Transition()


class State(object):
    def __init__(self, id, accepting=False):
        self.id = id
        self.accepting = accepting
        self.transitions = []

    def add_transition(self, transition, target):
        self.transitions.append((transition, target))

    def epsilon_moves(self):
        return [
            target for transition, target in self.transitions
            if transition.is_epsilon
        ]

    def __eq__(self, other):
        if isinstance(other, self.__class__):
            return (
                self.id == other.id and
                self.accepting == other.accepting and
                self.transitions == other.transitions
            )
        return NotImplemented

    def __ne__(self, other):
        return not self == other

    __hash__ = None

    def __str__(self):
        return " ".join(
            ["%d accepting: %s" % (self.id, self.accepting)] + [
                "[%r -> %d]" % (transition, target)
                for transition, target in self.transitions
            ]
        )

    def __repr__(self):
        return "%s(%r, %r, %r)" % (
            self.__class__.__name__,
            self.id,
            self.accepting,
            self.transitions
        )


class NFA(object):
    """
    An automaton owning an ordered list of states, one of which is the
    initial state. A new automaton consists of a single non-accepting state.

    Accepting states are not tracked separately, they are found by looking at
    the flag of each state.
    """

    def __init__(self, allocator=None):
        self.allocator = DEFAULT_ALLOCATOR if allocator is None else allocator
        self.states = []
        self._states_by_id = {}
        self.initial = self.add_state().id

    @property
    def initial_state(self):
        return self._states_by_id[self.initial]

    @property
    def is_empty(self):
        return len(self.states) == 1 and not self.initial_state.transitions

    def state(self, id):
        return self._states_by_id[id]

    def add_state(self, accepting=False):
        state = State(self.allocator.next(), accepting)
        self.states.append(state)
        self._states_by_id[state.id] = state
        return state

    def accepting_states(self):
        return [state for state in self.states if state.accepting]

    def connect_other(self, other):
        """
        Sequences `other` after this automaton: every accepting state loses
        its flag and gets an epsilon move to the initial state of `other`.
        The states of `other` are moved into this automaton, `other` must not
        be used afterwards.
        """
        self._check_allocator(other)
        for state in self.accepting_states():
            state.accepting = False
            state.add_transition(EPSILON, other.initial)
        self._absorb(other)

    def merge_other(self, other):
        """
        Turns this automaton into the alternation of itself and `other`, by
        adding a new initial state with epsilon moves to both initial states.
        The states of `other` are moved into this automaton, `other` must not
        be used afterwards.
        """
        self._check_allocator(other)
        initial = self.add_state()
        initial.add_transition(EPSILON, self.initial)
        initial.add_transition(EPSILON, other.initial)
        self.initial = initial.id
        self._absorb(other)

    def _check_allocator(self, other):
        if other.allocator is not self.allocator:
            raise ValueError(
                "cannot combine automata using different id allocators"
            )

    def _absorb(self, other):
        self.states.extend(other.states)
        self._states_by_id.update(other._states_by_id)

    def reachable(self):
        """
        Returns the set of ids reachable from the initial state.
        """
        seen = {self.initial}
        pending = deque([self.initial])
        while pending:
            for _, target in self._states_by_id[pending.popleft()].transitions:
                if target not in seen:
                    seen.add(target)
                    pending.append(target)
        return seen

    def render(self):
        lines = [RULE, "Initial: %d" % self.initial]
        lines.extend(str(state) for state in self.states)
        lines.append(RULE)
        return "\n".join(lines) + "\n"

    __str__ = render

    def __len__(self):
        return len(self.states)

    def __iter__(self):
        return iter(self.states)

    def __repr__(self):
        return "%s(%r, %r)" % (
            self.__class__.__name__,
            self.initial,
            self.states
        )
