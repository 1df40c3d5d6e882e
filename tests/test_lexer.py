'''
Lexer tests
'''

import regex

from unitrpn.lexer import Lexer
from unitrpn.number import Number
from unitrpn.units import Unit
from unitrpn.util import ParseError

from pytest import mark, raises


@mark.parametrize('token, kind, value', [
    ('42', 'number', Number(42)),
    ('-0x10', 'number', Number(-16)),
    ('1:30', 'sexagesimal', Number(90) / 60),
    ('10.0.0.1', 'ipv4', Number(167772161)),
    ('m/s', 'units', Unit.parse('m/s')),
    ('min', 'units', Unit.parse('min')),
    ('num', 'units', Unit.parse('num')),
    ('x', 'stack', 'exchange'),
    ('d', 'stack', 'duplicate'),
    ('dup', 'stack', 'duplicate'),
    ('p', 'stack', 'pop'),
    ('@+', 'reduction', '+'),
    ('@•', 'reduction', '*'),
    ('@**', 'reduction', '**'),
    ('mean!', 'statistic', ('mean', True)),
    ('size', 'statistic', ('size', False)),
    ('mini', 'statistic', ('mini', False)),
    ('stddev', 'statistic', ('stddev', False)),
    ('95%', 'statistic', ('95%', False)),
    ('95%!', 'statistic', ('95%', True)),
    ('+', 'operator', '+'),
    ('**', 'operator', '**'),
    ('pow', 'operator', '**'),
    ('÷', 'operator', '/'),
    ('.', 'operator', '*'),
    ('!', 'operator', '!'),
    ('<<', 'operator', '<<'),
])
def test_classify(token, kind, value):
    lexeme = Lexer().classify(token)
    assert lexeme.kind == kind
    assert lexeme.text == token
    assert lexeme.value == value


def test_constants():
    lexeme = Lexer().classify('pi')
    assert lexeme.kind == 'constant'
    assert str(lexeme.value) == '3.1416'


@mark.parametrize('token', ['bogus', '@chs', '1KK', '1.0:30:45', 'mean!!',
                            '@'])
def test_unrecognized(token):
    with raises(ParseError, match=regex.escape(repr(token))):
        Lexer().classify(token)


def test_lex_splits_on_whitespace():
    lexemes = list(Lexer().lex(' 1  2\t+\n'))
    assert [lexeme.kind for lexeme in lexemes] == ['number', 'number',
                                                    'operator']


def test_lex_stops_on_first_bad():
    lexemes = Lexer().lex('1 bogus 2')
    assert next(lexemes).kind == 'number'
    with raises(ParseError):
        next(lexemes)
