'''
Value operator dispatch tests
'''

from fractions import Fraction

from unitrpn.config import Config
from unitrpn.number import Number
from unitrpn.units import DIMENSIONLESS, Unit
from unitrpn.util import (IncompatibleUnits, DimensionedOperationNotSupported,
                          InvalidTemperatureOperation, NonIntegralExponent)
from unitrpn.value import ALIASES, CONSTANTS, OPERATORS, Value

from pytest import mark, raises


def value(number, unit='num'):
    return Value(Number(number), Unit.parse(unit))


def test_aliases_resolve():
    for alias, name in ALIASES.items():
        assert name in OPERATORS, alias


def test_add_converts_right_to_left():
    result = value(2, 'ft').binary_op('+', value(3, 'in'))
    assert result == value(Fraction(9, 4), 'ft')


def test_operands_are_untouched():
    left, right = value(2, 'ft'), value(3, 'in')
    left.binary_op('+', right)
    assert left == value(2, 'ft')
    assert right == value(3, 'in')


def test_add_incompatible():
    with raises(IncompatibleUnits):
        value(1, 'm').binary_op('+', value(1, 's'))


def test_multiply_uses_left_units():
    result = value(1, 'km').binary_op('*', value(1000, 'm'))
    assert result == value(1, 'km²')


def test_divide_cancels():
    result = value(1, 'm').binary_op('/', value(1, 'ft'))
    assert result.unit == DIMENSIONLESS
    assert result.number == Fraction(10000, 3048)


@mark.parametrize('left, operator, right, expected', [
    ((20, 'C'), '+', (18, 'dF'), (30, 'C')),
    ((18, 'dF'), '+', (10, 'dC'), (36, 'dF')),
    ((10, 'dC'), '+', (20, 'C'), (30, 'C')),
    ((30, 'C'), '-', (10, 'C'), (20, 'C')),
    ((68, 'F'), '+', (10, 'dC'), (86, 'F')),
])
def test_temperature_addition(left, operator, right, expected):
    assert value(*left).binary_op(operator, value(*right)) == value(*expected)


def test_absolute_temperatures_of_different_scales():
    with raises(InvalidTemperatureOperation):
        value(20, 'C').binary_op('+', value(10, 'F'))
    # Also an IncompatibleUnits.
    with raises(IncompatibleUnits):
        value(20, 'C').binary_op('+', value(68, 'F'))


def test_temperature_multiplication():
    assert value(2).binary_op('*', value(20, 'C')) == value(40, 'C')
    with raises(InvalidTemperatureOperation):
        value(2, 'C').binary_op('*', value(2, 'C'))


def test_temperature_division_doesnt_convert():
    result = value(100, 'C').binary_op('/', value(50, 'F'))
    assert result == value(2)


def test_power():
    assert value(2, 'm').binary_op('**', value(3)) == value(8, 'm³')
    assert value(2, 'm').binary_op('pow', value(-1)) == \
        value(Fraction(1, 2), 'num/m')
    with raises(NonIntegralExponent):
        value(4, 'm²').binary_op('**', value(Fraction(1, 2)))
    with raises(DimensionedOperationNotSupported):
        value(2).binary_op('**', value(3, 'm'))


def test_modulo_keeps_left_units():
    assert value(7, 'm').binary_op('%', value(2)) == value(1, 'm')
    with raises(DimensionedOperationNotSupported):
        value(7, 'm').binary_op('%', value(2, 'm'))


def test_integral_operators_need_dimensionless_right():
    assert value(12).binary_op('&', value(10)) == value(8)
    assert value(12, 'm').binary_op('&', value(10)) == value(8, 'm')
    assert value(3, 's').binary_op('<<', value(2)) == value(12, 's')
    with raises(DimensionedOperationNotSupported):
        value(12).binary_op('&', value(10, 'm'))
    with raises(DimensionedOperationNotSupported):
        value(24, 's').unary_op('mask')


@mark.parametrize('name, operand, expected', [
    ('chs', (5, 'm'), (-5, 'm')),
    ('t', (Fraction(7, 2), 's'), (3, 's')),
    ('abs', (-2, 'kg'), (2, 'kg')),
    ('r', (2, 'm/s'), (Fraction(1, 2), 's/m')),
    ('i', (2, 'm/s'), (2, 's/m')),
    ('sqrt', (16, 'num'), (4, 'num')),
    ('!', (4, 'num'), (24, 'num')),
])
def test_unary(name, operand, expected):
    assert value(*operand).unary_op(name) == value(*expected)


def test_dimensionless_only():
    with raises(DimensionedOperationNotSupported):
        value(1, 'm').unary_op('log')


def test_apply():
    assert value(5).apply(Unit.parse('m')) == value(5, 'm')
    assert value(1, 'ft').apply(Unit.parse('in')) == value(12, 'in')
    assert value(5, 'm').apply(Unit.parse('num')) == value(5)
    with raises(IncompatibleUnits):
        value(5, 'm').apply(Unit.parse('s'))


def test_copy_is_deep():
    original = value(Fraction(1, 3), 'm')
    copy = original.copy()
    assert copy == original
    assert copy is not original
    assert copy.number is not original.number


def test_display_composites():
    cells, unit = value(1000, 'g·m²/s²').display(Config())
    assert (cells, unit) == (['1'], 'J')
    cells, unit = value(1000, 'g·m²/s²').display(
        Config(display_base_units_only=True))
    assert (cells, unit) == (['1000'], 'g·m²/s²')


def test_display_bases():
    config = Config(enabled_bases={10, 16, 2})
    assert value(5).display(config) == (['5', '0x5', '0b101'], '')


def test_annotations():
    config = Config(display_rational=True, display_ipv4=True,
                    display_factors=True)
    assert value(12).annotations(config) == ['(12/1)', '0.0.0.12', '2² • 3']
    assert value(Fraction(-1, 2), 'm').annotations(config) == \
        ['(-1/2)', '', '']
    # Shown as 1 J, so annotated as 1
    assert value(1000, 'g·m²/s²').annotations(config) == \
        ['(1/1)', '0.0.0.1', '']
    assert value(5).annotations(Config()) == []


def test_str():
    assert str(value(Fraction(3, 2), 'm/s')) == '1.5 m/s'
    assert str(value(3)) == '3'


def test_constants():
    assert str(CONSTANTS['pi']) == '3.1416'
    assert str(CONSTANTS['e']) == '2.7183'
    assert str(CONSTANTS['c']) == '299792458 m/s'
    assert str(CONSTANTS['G']) == '9.8067 m/s²'
