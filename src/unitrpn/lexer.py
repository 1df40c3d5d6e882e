from collections import namedtuple
from functools import reduce
import operator

import regex

from .number import Number
from .units import Unit
from .util import ParseError
from .value import OPERATORS, ALIASES, CONSTANTS, unalias


Lexeme = namedtuple('Lexeme', 'kind text value')


class Lexer:
    '''
    Lexer for the calculator's token grammar.

    Input is split on whitespace; each token is then exactly one lexeme. The
    first interpretation that accepts the whole token wins, in this order:
    number, sexagesimal time, IPv4 address, constant, units, stack
    operation, reduction, statistic, operator.

    For consistency, needs to be instantiated, despite holding no internal
    state.
    '''
    SPACE = r'\s+'

    STACK_OPERATIONS = {
        'x': 'exchange',
        'd': 'duplicate',
        'dup': 'duplicate',
        'p': 'pop',
        'pop': 'pop',
        'clear': 'clear',
    }
    STATISTICS = ('mini', 'max', 'mean', 'size', 'stddev', '95%')

    # Longest first, so ** isn't lexed as *.
    _OPERATOR_NAMES = sorted(set(OPERATORS) | set(ALIASES),
                             key=len, reverse=True)
    _BINARY_NAMES = [name for name in _OPERATOR_NAMES
                     if OPERATORS[unalias(name)].arity == 2]

    OPERATOR = r'(?:' + r'|'.join(map(regex.escape, _OPERATOR_NAMES)) + r')'
    BINARY_OPERATOR = r'(?:' + r'|'.join(map(regex.escape, _BINARY_NAMES)) \
        + r')'
    STACK = r'(?:' + r'|'.join(sorted(STACK_OPERATIONS, key=len,
                                      reverse=True)) + r')'
    # Fold the whole stack, bottom to top: 1 2 3 @+
    REDUCTION = r'@(?<reduction>' + BINARY_OPERATOR + r')'
    # A trailing ! replaces the stack with the result.
    STATISTIC = r'(?<statistic>' + \
        r'|'.join(map(regex.escape, STATISTICS)) + r')(?<replace>!)?'

    # Lexemes with a fixed spelling.
    LEXEME = r'(?<stack>' + STACK + r')|' \
             r'(?:' + REDUCTION + r')|' \
             r'(?:' + STATISTIC + r')|' \
             r'(?<operator>' + OPERATOR + r')'
    # Default regex flags for matching lexemes
    FLAGS = reduce(operator.__or__,
                   {regex.POSIX,
                    regex.VERSION1,
                    regex.VERBOSE},
                   0)

    NUMERIC = (
        ('number', Number.from_string),
        ('sexagesimal', Number.parse_sexagesimal),
        ('ipv4', Number.parse_ipv4),
    )

    def tokens(self, line):
        '''
        Split line into whitespace separated tokens.
        '''
        return [token for token in regex.split(self.SPACE, line) if token]

    def lex(self, line):
        '''
        Take a line and yield all lexemes.

        Stops on the first bad token, raising ParseError.
        '''
        for token in self.tokens(line):
            yield self.classify(token)

    def classify(self, token):
        '''
        Return the Lexeme for a single token.
        '''
        for kind, parse in self.NUMERIC:
            try:
                return Lexeme(kind, token, parse(token))
            except ParseError:
                pass
        if token in CONSTANTS:
            return Lexeme('constant', token, CONSTANTS[token])
        try:
            return Lexeme('units', token, Unit.parse(token))
        except ParseError:
            pass
        match = regex.fullmatch(self.LEXEME, token, flags=self.FLAGS)
        if match is None:
            raise ParseError('Unrecognized argument {!r}'.format(token))
        if match.group('stack'):
            return Lexeme('stack', token,
                          self.STACK_OPERATIONS[match.group('stack')])
        if match.group('reduction'):
            return Lexeme('reduction', token,
                          unalias(match.group('reduction')))
        if match.group('statistic'):
            return Lexeme('statistic', token,
                          (match.group('statistic'),
                           bool(match.group('replace'))))
        return Lexeme('operator', token, unalias(match.group('operator')))
