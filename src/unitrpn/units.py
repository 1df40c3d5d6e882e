'''
Dimensional algebra.

A Unit is a vector with one (base unit, power) slot per Dimension, so m/s²
is LENGTH: (m, 1), TIME: (s, -2) and zero everywhere else. Base units say
how to convert to another unit of the same dimension: by a static factor,
by the affine temperature rules, or by asking a currency rate resolver.
'''

from collections import namedtuple
from fractions import Fraction
from types import MappingProxyType
import enum
import logging

import regex

from .number import Number
from .rates import NoRates
from .util import (ParseError, IncompatibleUnits, NonIntegralExponent,
                   NoConversionRule, UnsupportedTemperaturePair,
                   ConversionFailed, DuplicateUnitSymbol)


logger = logging.getLogger(__name__)

FLAGS = regex.VERBOSE | regex.VERSION1


class Dimension(enum.IntEnum):
    MASS = 0
    LENGTH = 1
    TIME = 2
    VOLUME = 3
    TEMPERATURE = 4
    CURRENCY = 5
    CURRENT = 6


# Conversion strategies. Closed set: _convert_slot knows every one of them.

class Linear(namedtuple('Linear', 'factor')):
    '''
    factor is the size of the unit in its dimension's base unit.
    '''
    __slots__ = ()


class AffineTemperature(namedtuple('AffineTemperature', 'scale delta')):
    '''
    scale is the temperature scale's name. A delta is a temperature
    difference, with no zero point.
    '''
    __slots__ = ()


class ExternalCurrency(namedtuple('ExternalCurrency', 'code')):
    __slots__ = ()


class BaseUnit(namedtuple('BaseUnit', 'name description dimension strategy')):
    '''
    A named unit of exactly one dimension.
    '''
    __slots__ = ()

    @property
    def factor(self):
        if isinstance(self.strategy, Linear):
            return self.strategy.factor
        return None

    def __str__(self):
        return self.name


SUPERSCRIPTS = '⁰¹²³⁴⁵⁶⁷⁸⁹⁻⁺'
_FROM_SUPERSCRIPT = str.maketrans(SUPERSCRIPTS, '0123456789-+')
_TO_SUPERSCRIPT = str.maketrans('0123456789-+', SUPERSCRIPTS)


def _power_text(power, superscript):
    if power == 1:
        return ''
    if superscript:
        return str(power).translate(_TO_SUPERSCRIPT)
    return '^{}'.format(power)


class Unit:
    '''
    Immutable vector of (BaseUnit, power) slots indexed by Dimension.

    A slot with power 0 is always (None, 0).
    '''

    __slots__ = ('slots',)

    SEGMENT = r'''
               (?<name>
                   [^\s\d.*·•/^⁰¹²³⁴⁵⁶⁷⁸⁹⁻⁺+-]+
               )
               (?:
                   \^(?<power>[+-]?\d+)
                   |
                   (?<superscript>[⁰¹²³⁴⁵⁶⁷⁸⁹⁻⁺]+)
               )?
               '''
    SEPARATORS = '.*·•'

    def __init__(self, slots=()):
        slots = dict(slots)
        self.slots = tuple(
            (slots[dimension][0], slots[dimension][1])
            if dimension in slots and slots[dimension][1] else (None, 0)
            for dimension in Dimension)

    @classmethod
    def of(cls, base, power=1):
        '''
        Unit with a single non-zero slot.
        '''
        return cls({base.dimension: (base, power)})

    # Queries

    def power(self, dimension):
        return self.slots[dimension][1]

    def base(self, dimension):
        return self.slots[dimension][0]

    def items(self):
        '''
        Yield (dimension, base, power) for each non-zero slot.
        '''
        for dimension, (base, power) in zip(Dimension, self.slots):
            if power:
                yield dimension, base, power

    @property
    def is_dimensionless(self):
        return not any(power for _, power in self.slots)

    def compatible(self, other):
        '''
        True when every dimension has the same power in both.
        '''
        return all(mine == theirs
                   for (_, mine), (_, theirs)
                   in zip(self.slots, other.slots))

    def __eq__(self, other):
        if not isinstance(other, Unit):
            return NotImplemented
        return self.slots == other.slots

    def __hash__(self):
        return hash(self.slots)

    # Algebra

    def __mul__(self, other):
        slots = {}
        for dimension in Dimension:
            base, power = self.slots[dimension]
            other_base, other_power = other.slots[dimension]
            slots[dimension] = (base if power else other_base,
                                power + other_power)
        return type(self)(slots)

    def invert(self):
        return type(self)({dimension: (base, -power)
                           for dimension, base, power in self.items()})

    def __truediv__(self, other):
        return self * other.invert()

    def __pow__(self, exponent):
        '''
        Raise every power by exponent, which must be integral unless self
        is dimensionless.
        '''
        if self.is_dimensionless:
            return self
        if not isinstance(exponent, Number):
            exponent = Number(exponent)
        if not exponent.is_integer:
            raise NonIntegralExponent(
                'Cannot raise {} to non-integer power {}'.format(self,
                                                                 exponent))
        return type(self)({dimension: (base, power * exponent.value)
                           for dimension, base, power in self.items()})

    def rebased(self, other, skip=(Dimension.TEMPERATURE,)):
        '''
        Copy of self using other's base units wherever both have a power.
        '''
        slots = {}
        for dimension, base, power in self.items():
            other_base = other.base(dimension)
            if other_base is not None and dimension not in skip:
                base = other_base
            slots[dimension] = (base, power)
        return type(self)(slots)

    # Conversion

    def convert(self, number, target, rates=None):
        '''
        Convert number, measured in self, into target.

        For each slot: a ratio of static factors when both units have one,
        otherwise the target's dynamic strategy, then the source's.
        '''
        if not self.compatible(target):
            raise IncompatibleUnits(
                'Incompatible units {} and {}'.format(self, target))
        for dimension, source, power in self.items():
            destination = target.base(dimension)
            if source == destination:
                continue
            before = number
            number = _convert_slot(number, source, destination, power,
                                   rates or NoRates())
            logger.debug('converted %s %s%+d -> %s %s',
                         before, source, power, number, destination)
        return number

    # Text

    @classmethod
    def parse(cls, text, table=None):
        '''
        Parse unit expressions like kg·m²/s^2, m/s or num.

        Segments are joined by ., *, · or •, and at most one / after which
        every segment is in the denominator.
        '''
        if table is None:
            table = UNITS
        unit = DIMENSIONLESS
        position, sign, divided = 0, 1, False
        while True:
            match = regex.match(cls.SEGMENT, text, pos=position, flags=FLAGS)
            if match is None:
                raise ParseError('Invalid units {!r}'.format(text))
            name = match.group('name')
            if name not in table:
                raise ParseError('Unknown unit {!r} in {!r}'.format(name,
                                                                     text))
            power = 1
            if match.group('power'):
                power = int(match.group('power'))
            elif match.group('superscript'):
                try:
                    power = int(match.group('superscript')
                                .translate(_FROM_SUPERSCRIPT))
                except ValueError:
                    raise ParseError(
                        'Invalid power in {!r}'.format(text)) from None
            unit = _merge(unit, table[name] ** (sign * power), text)
            position = match.end()
            if position == len(text):
                return unit
            separator = text[position]
            if separator == '/':
                if divided:
                    raise ParseError('More than one / in {!r}'.format(text))
                divided, sign = True, -1
            elif separator not in cls.SEPARATORS:
                raise ParseError('Invalid units {!r}'.format(text))
            position += 1

    def render(self, superscript=True, base_only=False):
        '''
        Composite symbol (J, N, ...) when self is exactly one, otherwise the
        numerator and denominator base units, e.g. m·kg/s².
        '''
        if not base_only:
            for composite in COMPOSITES:
                if composite.unit == self:
                    return composite.symbol
        numerator, denominator = [], []
        for _, base, power in self.items():
            if power > 0:
                numerator.append(base.name + _power_text(power, superscript))
            else:
                denominator.append(base.name +
                                   _power_text(-power, superscript))
        text = '·'.join(numerator)
        if denominator:
            text = (text or '1') + '/' + '·'.join(denominator)
        return text

    def __str__(self):
        return self.render()

    def __repr__(self):
        return 'Unit({!r})'.format(self.render(superscript=False,
                                                base_only=True))


DIMENSIONLESS = Unit()
Unit.DIMENSIONLESS = DIMENSIONLESS


def _merge(unit, contribution, text):
    for dimension, base, _ in contribution.items():
        existing = unit.base(dimension)
        if existing is not None and existing != base:
            raise ParseError(
                'Conflicting units {} and {} in {!r}, use one unit per '
                'dimension'.format(existing, base, text))
    return unit * contribution


# Temperature scales: (zero point in the scale's own degrees, size of a degree
# in celsius degrees).
TEMPERATURE_SCALES = {
    'C': (0, Fraction(1)),
    'F': (32, Fraction(5, 9)),
}


def _convert_linear(number, source, destination, power, rates):
    return number * (source.factor / destination.factor) ** power


def _convert_temperature(number, source, destination, power, rates):
    '''
    Absolute to absolute applies the offsets and the scale. Anything
    involving a delta, or a power other than 1, only applies the scale.
    '''
    if not (isinstance(source.strategy, AffineTemperature) and
            isinstance(destination.strategy, AffineTemperature)):
        raise NoConversionRule('No conversion from {} to {}'.format(
            source, destination))
    try:
        source_zero, source_size = TEMPERATURE_SCALES[source.strategy.scale]
        destination_zero, destination_size = \
            TEMPERATURE_SCALES[destination.strategy.scale]
    except KeyError:
        raise UnsupportedTemperaturePair(
            'Cannot convert temperature {} to {}'.format(
                source, destination)) from None
    ratio = Number(source_size / destination_size)
    if power != 1 or source.strategy.delta or destination.strategy.delta:
        return number * ratio ** power
    return (number - source_zero) * ratio + destination_zero


def _convert_currency(number, source, destination, power, rates):
    if not (isinstance(source.strategy, ExternalCurrency) and
            isinstance(destination.strategy, ExternalCurrency)):
        raise NoConversionRule('No conversion from {} to {}'.format(
            source, destination))
    source_code = source.strategy.code
    destination_code = destination.strategy.code
    if source_code == destination_code:
        return number
    if power not in (1, -1):
        raise NoConversionRule('Cannot convert {} to {} at power {}'.format(
            source, destination, power))
    try:
        if power == 1:
            return rates.resolve(number, source_code, destination_code)
        return number * rates.resolve(Number(1), destination_code,
                                      source_code)
    except Exception as e:
        # Whatever the resolver raised, it reaches callers as one error.
        raise ConversionFailed('Unable to convert {} to {}: {}'.format(
            source_code, destination_code, e)) from e


_DYNAMIC = {
    AffineTemperature: _convert_temperature,
    ExternalCurrency: _convert_currency,
}


def _convert_slot(number, source, destination, power, rates):
    if source.factor is not None and destination.factor is not None:
        return _convert_linear(number, source, destination, power, rates)
    for strategy in destination.strategy, source.strategy:
        convert = _DYNAMIC.get(type(strategy))
        if convert is not None:
            return convert(number, source, destination, power, rates)
    raise NoConversionRule('No conversion from {} to {}'.format(
        source, destination))


def temperature_addable(left, right):
    '''
    Whether left and right temperatures can be added or subtracted.

    Values without temperature always can. Otherwise both must be plain
    temperatures, and two absolute temperatures must share a scale.
    '''
    left_power = left.power(Dimension.TEMPERATURE)
    right_power = right.power(Dimension.TEMPERATURE)
    if not left_power and not right_power:
        return True
    if left_power != 1 or right_power != 1:
        return False
    left_base = left.base(Dimension.TEMPERATURE)
    right_base = right.base(Dimension.TEMPERATURE)
    if left_base == right_base:
        return True
    return (_is_delta(left_base) or _is_delta(right_base))


def temperature_multipliable(left, right):
    '''
    At most one side may carry a temperature.
    '''
    return not (left.power(Dimension.TEMPERATURE) and
                right.power(Dimension.TEMPERATURE))


def _is_delta(base):
    return isinstance(base.strategy, AffineTemperature) and \
        base.strategy.delta


def is_delta_temperature(unit):
    base = unit.base(Dimension.TEMPERATURE)
    return base is not None and _is_delta(base)


def _linear(name, description, dimension, factor):
    return BaseUnit(name, description, dimension,
                    Linear(Number(Fraction(factor))))


_INCH = Fraction('0.0254')
_GALLON = Fraction('3.785411784')

# (symbols, base unit). The first symbol is also the display name, unless
# the base unit's name differs.
BASE_UNITS = (
    (('s',), _linear('s', 'seconds', Dimension.TIME, 1)),
    (('min',), _linear('min', 'minutes', Dimension.TIME, 60)),
    (('hr',), _linear('hr', 'hours', Dimension.TIME, 3600)),
    (('day',), _linear('day', 'days', Dimension.TIME, 86400)),

    (('m',), _linear('m', 'meters', Dimension.LENGTH, 1)),
    (('in',), _linear('in', 'inches', Dimension.LENGTH, _INCH)),
    (('ft',), _linear('ft', 'feet', Dimension.LENGTH, _INCH * 12)),
    (('yd',), _linear('yd', 'yards', Dimension.LENGTH, _INCH * 36)),
    (('mi',), _linear('mi', 'miles', Dimension.LENGTH, _INCH * 63360)),

    (('l',), _linear('l', 'liters', Dimension.VOLUME, 1)),
    (('foz',), _linear('foz', 'fl. ounces', Dimension.VOLUME,
                       _GALLON / 128)),
    (('cup',), _linear('cup', 'cups', Dimension.VOLUME, _GALLON / 16)),
    (('pt',), _linear('pt', 'pints', Dimension.VOLUME, _GALLON / 8)),
    (('qt',), _linear('qt', 'quarts', Dimension.VOLUME, _GALLON / 4)),
    (('gal',), _linear('gal', 'us gallons', Dimension.VOLUME, _GALLON)),

    (('g',), _linear('g', 'grams', Dimension.MASS, 1)),
    (('oz',), _linear('oz', 'ounces', Dimension.MASS,
                      Fraction('28.349523125'))),
    (('lb',), _linear('lb', 'pounds', Dimension.MASS,
                      Fraction('453.59237'))),

    (('C', '°C'), BaseUnit('°C', 'celsius', Dimension.TEMPERATURE,
                           AffineTemperature('C', False))),
    (('dC', '°CΔ'), BaseUnit('°CΔ', 'delta celsius', Dimension.TEMPERATURE,
                             AffineTemperature('C', True))),
    (('F', '°F'), BaseUnit('°F', 'fahrenheit', Dimension.TEMPERATURE,
                           AffineTemperature('F', False))),
    (('dF', '°FΔ'), BaseUnit('°FΔ', 'delta fahrenheit',
                             Dimension.TEMPERATURE,
                             AffineTemperature('F', True))),

    (('A',), _linear('A', 'amperes', Dimension.CURRENT, 1)),

    (('usd', '$'), BaseUnit('usd', 'us dollars', Dimension.CURRENCY,
                            ExternalCurrency('USD'))),
    (('eur', '€'), BaseUnit('eur', 'euros', Dimension.CURRENCY,
                            ExternalCurrency('EUR'))),
    (('gbp', '£'), BaseUnit('gbp', 'gb pounds', Dimension.CURRENCY,
                            ExternalCurrency('GBP'))),
    (('yen', 'jpy', '¥'), BaseUnit('yen', 'yen', Dimension.CURRENCY,
                                   ExternalCurrency('JPY'))),
    (('btc',), BaseUnit('btc', 'bitcoin', Dimension.CURRENCY,
                        ExternalCurrency('BTC'))),
)

# (symbol, name, power of ten)
SI_PREFIXES = (
    ('da', 'deca', 1),
    ('h', 'hecto', 2),
    ('k', 'kilo', 3),
    ('M', 'mega', 6),
    ('G', 'giga', 9),
    ('T', 'tera', 12),
    ('P', 'peta', 15),
    ('E', 'exa', 18),
    ('d', 'deci', -1),
    ('c', 'centi', -2),
    ('m', 'milli', -3),
    ('μ', 'micro', -6),
    ('u', 'micro', -6),
    ('n', 'nano', -9),
    ('p', 'pico', -12),
    ('f', 'femto', -15),
    ('a', 'atto', -18),
)

PREFIXABLE = ('m', 'g', 'l', 's', 'A')

Composite = namedtuple('Composite', 'symbol description unit')

# Filled in by build_table below.
COMPOSITES = ()

# (symbols, description, definition)
COMPOSITE_UNITS = (
    (('J',), 'joules', 'kg·m²/s²'),
    (('N',), 'newtons', 'kg·m/s²'),
    (('W',), 'watts', 'kg·m²/s³'),
    (('V',), 'volts', 'kg·m²/s³·A'),
    (('Ω', 'ohm'), 'ohms', 'kg·m²/s³·A²'),
)


def generate_prefixed(table, prefixable=PREFIXABLE, prefixes=SI_PREFIXES):
    '''
    Add a base unit to table for every SI prefix of every prefixable symbol.
    '''
    for symbol in prefixable:
        (_, base, _), = table[symbol].items()
        for prefix, name, exponent in prefixes:
            prefixed = BaseUnit(prefix + base.name, name + base.description,
                                base.dimension,
                                Linear(base.factor * Number(10) ** exponent))
            _register(table, prefix + symbol, Unit.of(prefixed))


def _register(table, symbol, unit):
    if symbol in table:
        raise DuplicateUnitSymbol('Unit symbol {!r} defined twice'.format(
            symbol))
    table[symbol] = unit


def build_table(base_units=BASE_UNITS, prefixable=PREFIXABLE,
                prefixes=SI_PREFIXES, composites=COMPOSITE_UNITS):
    '''
    Build the read-only symbol to Unit table.

    Raises DuplicateUnitSymbol when any two definitions share a symbol.
    '''
    table = {'num': DIMENSIONLESS}
    for symbols, base in base_units:
        for symbol in symbols:
            _register(table, symbol, Unit.of(base))
    generate_prefixed(table, prefixable, prefixes)
    defined = []
    for symbols, description, definition in composites:
        unit = Unit.parse(definition, table)
        defined.append(Composite(symbols[0], description, unit))
        for symbol in symbols:
            _register(table, symbol, unit)
    logger.debug('built unit table with %d symbols', len(table))
    return MappingProxyType(table), tuple(defined)


UNITS, COMPOSITES = build_table()


def composite_for(unit):
    '''
    Composite with the same powers as unit, or None.
    '''
    if unit.is_dimensionless:
        return None
    for composite in COMPOSITES:
        if composite.unit.compatible(unit):
            return composite
    return None


def describe():
    '''
    Yield (dimension, [(symbol, description), ...]) for the base units.
    '''
    for dimension in Dimension:
        yield dimension, [(symbols[0], base.description)
                          for symbols, base in BASE_UNITS
                          if base.dimension == dimension]
