"""
    lexnfa.exceptions
    ~~~~~~~~~~~~~~~~~

    :copyright: 2012 by Daniel Neuhäuser
    :license: BSD
"""


def annotated(string, position):
    annotation = [" "] * (position + 1)
    annotation[position] = "^"
    return "%s\n%s" % (string, "".join(annotation))


def annotated_range(string, start, end):
    annotation = [" "] * (end + 1)
    annotation[start] = annotation[end] = "^"
    for position in range(start + 1, end):
        annotation[position] = "-"
    return "%s\n%s" % (string, "".join(annotation))


class RegexException(Exception):
    pass


class RegexSyntaxError(RegexException):
    def __init__(self, reason, position, annotation=None):
        RegexException.__init__(self, reason, position, annotation)
        self.reason = reason
        self.position = position
        self.annotation = annotation

    def __str__(self):
        if self.annotation is None:
            return "%s at position %d" % (self.reason, self.position)
        return "%s\n%s" % (self.reason, self.annotation)


class UnsupportedConstructError(RegexSyntaxError):
    def __init__(self, position, character, construct, annotation=None):
        RegexSyntaxError.__init__(
            self,
            "unsupported construct: %s %s" % (construct, character),
            position,
            annotation
        )
        self.character = character
        self.construct = construct


class AllocatorExhausted(RegexException):
    pass
