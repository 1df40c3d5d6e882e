'''
Unit algebra, table, and conversion tests
'''

from fractions import Fraction

from unitrpn.number import Number
from unitrpn.rates import StaticRates
from unitrpn.units import (AffineTemperature, BASE_UNITS, BaseUnit,
                           DIMENSIONLESS, Dimension, Linear, UNITS, Unit,
                           build_table, composite_for, describe,
                           temperature_addable, temperature_multipliable)
from unitrpn.util import (ParseError, IncompatibleUnits, NonIntegralExponent,
                          NoConversionRule, UnsupportedTemperaturePair,
                          ConversionFailed, DuplicateUnitSymbol)

from pytest import mark, raises


class FailingRates:
    def resolve(self, amount, from_code, to_code):
        raise OSError('network is down')


def convert(value, source, target, rates=None):
    return Unit.parse(source).convert(Number(value), Unit.parse(target),
                                      rates)


def test_parse_powers():
    unit = Unit.parse('m/s²')
    assert unit.power(Dimension.LENGTH) == 1
    assert unit.power(Dimension.TIME) == -2
    assert unit.power(Dimension.MASS) == 0
    assert Unit.parse('m^2') == Unit.parse('m²')
    assert Unit.parse('m·m') == Unit.parse('m²')
    assert Unit.parse('m*s') == Unit.parse('m.s') == Unit.parse('m•s')


def test_parse_denominator_takes_every_segment():
    assert Unit.parse('kg/m·s') == Unit.parse('kg') / Unit.parse('m·s')


@mark.parametrize('text', ['m/s/s', 'm·ft', 'furlong', '', 'm/', '2m',
                           'm^x'])
def test_bad_units(text):
    with raises(ParseError):
        Unit.parse(text)


def test_num_is_dimensionless():
    assert Unit.parse('num') == DIMENSIONLESS
    assert DIMENSIONLESS.is_dimensionless


def test_compatible():
    assert Unit.parse('ft').compatible(Unit.parse('km'))
    assert Unit.parse('m/s').compatible(Unit.parse('mi/hr'))
    assert not Unit.parse('m').compatible(Unit.parse('s'))
    assert not Unit.parse('m').compatible(Unit.parse('m²'))


def test_algebra():
    metre, second = Unit.parse('m'), Unit.parse('s')
    assert metre / second == Unit.parse('m/s')
    assert (metre * metre) ** 2 == Unit.parse('m^4')
    assert second.invert() == Unit.parse('num/s')
    assert (metre / metre).is_dimensionless
    with raises(NonIntegralExponent):
        metre ** Number(Fraction(1, 2))
    assert DIMENSIONLESS ** Number(Fraction(1, 2)) == DIMENSIONLESS


def test_rebased_keeps_temperature():
    rebased = Unit.parse('ft·F').rebased(Unit.parse('m·C'))
    assert rebased == Unit.parse('m·F')


@mark.parametrize('value, source, target, expected', [
    (1, 'ft', 'in', 12),
    (1, 'mi', 'ft', 5280),
    (1, 'km', 'm', 1000),
    (1, 'ft²', 'in²', 144),
    (1, 'gal', 'l', Fraction('3.785411784')),
    (1, 'gal', 'qt', 4),
    (1, 'lb', 'oz', 16),
    (90, 'min', 'hr', Fraction(3, 2)),
    (1, 'm/s', 'km/hr', Fraction(18, 5)),
    (100, 'C', 'F', 212),
    (212, 'F', 'C', 100),
    (-40, 'C', 'F', -40),
    (10, 'dC', 'dF', 18),
    (18, 'dF', 'C', 10),
    (1, 'J', 'g·m²/s²', 1000),
])
def test_convert(value, source, target, expected):
    assert convert(value, source, target) == expected


def test_convert_incompatible():
    with raises(IncompatibleUnits):
        convert(1, 'm', 's')


def test_temperature_powers_only_scale():
    # 1 per °C is 5/9 per °F, no offsets involved.
    assert convert(1, 'num/C', 'num/F') == Fraction(5, 9)


def test_currency_through_rates():
    rates = StaticRates({'EUR': Fraction(1, 2)})
    assert convert(10, 'usd', 'eur', rates) == 5
    assert convert(5, 'eur', 'usd', rates) == 10


def test_currency_same_code_needs_no_rates():
    assert convert(3, 'yen', 'jpy') == 3
    assert convert(3, '$', 'usd') == 3


def test_currency_inverse_power(rates):
    assert convert(1, 'm/usd', 'm/eur', rates) == 2
    assert rates.calls == [('EUR', 'USD')]


def test_currency_squared_has_no_rule(rates):
    with raises(NoConversionRule):
        convert(1, 'usd²', 'eur²', rates)


def test_resolver_errors_become_conversion_failed():
    with raises(ConversionFailed):
        convert(1, 'usd', 'eur', FailingRates())
    # No rates supplied at all
    with raises(ConversionFailed):
        convert(1, 'usd', 'eur')


def test_static_factors_never_ask_the_resolver(rates):
    assert convert(1, 'ft', 'in', rates) == 12
    assert rates.calls == []


def test_dynamic_conversion_asks_the_resolver(rates):
    assert convert(1, 'usd', 'eur', rates) == 2
    assert rates.calls == [('USD', 'EUR')]


def test_static_currency_unit_against_dynamic_one(rates):
    credit = BaseUnit('cr', 'credits', Dimension.CURRENCY,
                      Linear(Number(1)))
    with raises(NoConversionRule):
        Unit.of(credit).convert(Number(1), Unit.parse('eur'),
                                rates)


def test_unknown_temperature_scale():
    rankine = BaseUnit('°R', 'rankine', Dimension.TEMPERATURE,
                       AffineTemperature('R', False))
    with raises(UnsupportedTemperaturePair):
        Unit.of(rankine).convert(Number(1), Unit.parse('C'))
    # Still a NoConversionRule for callers that don't care which.
    with raises(NoConversionRule):
        Unit.parse('C').convert(Number(1), Unit.of(rankine))


def test_temperature_rules():
    celsius, fahrenheit = Unit.parse('C'), Unit.parse('F')
    delta_c, delta_f = Unit.parse('dC'), Unit.parse('dF')
    assert temperature_addable(celsius, celsius)
    assert temperature_addable(celsius, delta_f)
    assert temperature_addable(delta_f, delta_c)
    assert not temperature_addable(celsius, fahrenheit)
    assert not temperature_addable(Unit.parse('C²'), Unit.parse('C²'))
    assert temperature_addable(Unit.parse('m'), Unit.parse('ft'))
    assert temperature_multipliable(celsius, Unit.parse('m'))
    assert not temperature_multipliable(celsius, celsius)


@mark.parametrize('text, kwargs, expected', [
    ('m/s²', {}, 'm/s²'),
    ('m/s²', {'superscript': False}, 'm/s^2'),
    ('m·kg', {}, 'kg·m'),
    ('num/s', {}, '1/s'),
    ('kg·m²/s²', {}, 'J'),
    ('kg·m²/s²', {'base_only': True}, 'kg·m²/s²'),
    ('ohm', {}, 'Ω'),
    ('C', {}, '°C'),
    ('dF', {}, '°FΔ'),
    ('$', {}, 'usd'),
    ('num', {}, ''),
])
def test_render(text, kwargs, expected):
    assert Unit.parse(text).render(**kwargs) == expected


def test_table():
    assert UNITS['kg'].base(Dimension.MASS).factor == 1000
    assert UNITS['km'].base(Dimension.LENGTH).factor == 1000
    assert UNITS['ms'].base(Dimension.TIME).factor == Fraction(1, 1000)
    assert UNITS['μs'].base(Dimension.TIME).factor == \
        UNITS['us'].base(Dimension.TIME).factor
    assert UNITS['N'] == Unit.parse('kg·m/s²')
    with raises(TypeError):
        UNITS['furlong'] = Unit.parse('m')


def test_duplicate_symbols():
    extra = ((('m',), BaseUnit('m', 'more meters', Dimension.LENGTH,
                               Linear(Number(1)))),)
    with raises(DuplicateUnitSymbol):
        build_table(base_units=BASE_UNITS + extra)


def test_composite_for():
    assert composite_for(Unit.parse('g·m²/s²')).symbol == 'J'
    assert composite_for(Unit.parse('m')) is None
    assert composite_for(DIMENSIONLESS) is None


def test_describe():
    described = dict(describe())
    assert ('m', 'meters') in described[Dimension.LENGTH]
    assert ('C', 'celsius') in described[Dimension.TEMPERATURE]


@mark.parametrize('first, second', [
    ('ft', 'm'),
    ('mi/hr', 'm/s'),
    ('gal', 'cup'),
    ('lb·ft²', 'kg·m²'),
    ('C', 'F'),
    ('dF', 'dC'),
    ('J', 'g·cm²/ms²'),
])
def test_round_trip(first, second):
    number = Number(Fraction(123, 7))
    there = convert(number, first, second)
    assert Unit.parse(second).convert(there, Unit.parse(first)) == number


@mark.parametrize('first, second', [
    ('m', 'ft'), ('m', 's'), ('C', 'dF'), ('kg·m²/s²', 'J'), ('num', 'm'),
])
def test_compatible_is_reflexive_and_symmetric(first, second):
    first, second = Unit.parse(first), Unit.parse(second)
    assert first.compatible(first)
    assert first.compatible(second) == second.compatible(first)


def test_temperature_fixed_points():
    assert convert(0, 'C', 'F') == 32
    assert convert(-40, 'F', 'C') == -40


@mark.parametrize('text', ['W·hr', 'J/ft', 'm·ft'])
def test_one_unit_per_dimension(text):
    with raises(ParseError, match='one unit per dimension'):
        Unit.parse(text)
