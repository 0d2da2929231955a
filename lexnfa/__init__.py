"""
    lexnfa
    ~~~~~~

    Compiles the patterns of a lexer's token definitions into nondeterministic
    finite automata with epsilon moves, using Thompson's construction.

    Patterns consist of literal characters, concatenation, alternation (``|``)
    and groups (``(`` ``)``). Character classes, quantifiers, escapes,
    wildcards and anchors are rejected with an
    :class:`~lexnfa.exceptions.UnsupportedConstructError` instead of being
    taken literally.

    Patterns are either built directly using :func:`lexnfa.builder.build` or
    parsed into a syntax tree first, using :func:`lexnfa.parser.parse`, and
    then compiled using :meth:`~lexnfa.ast.Regex.to_nfa`.

    :copyright: 2012 by Daniel Neuhäuser
    :license: BSD
"""
