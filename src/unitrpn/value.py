'''
Values: a Number in a Unit, and the operators that combine them.
'''

from collections import namedtuple
from fractions import Fraction
import logging
import operator

from .config import Config
from .number import Number, PI, E
from .units import (DIMENSIONLESS, Dimension, Unit, composite_for,
                    is_delta_temperature, temperature_addable,
                    temperature_multipliable)
from .util import (IncompatibleUnits, DimensionedOperationNotSupported,
                   InvalidTemperatureOperation)


logger = logging.getLogger(__name__)

# Operator kinds, deciding what happens to the units.
ADDITIVE = 'additive'            # same powers, right converted to left
MULTIPLICATIVE = 'multiplicative'  # powers combine
POWER = 'power'                  # dimensionless, integral exponent
MODULO = 'modulo'                # dimensionless divisor, left unit kept
INTEGRAL = 'integral'            # integers, dimensionless right operand
SCALAR = 'scalar'                # unit passes through
DIMENSIONLESS_ONLY = 'dimensionless'
RECIPROCAL = 'reciprocal'        # number and unit inverted
INVERT_UNITS = 'invert'          # unit inverted, number untouched

Operator = namedtuple('Operator', 'function arity kind description')

OPERATORS = {
    '+': Operator(operator.__add__, 2, ADDITIVE, 'add'),
    '-': Operator(operator.__sub__, 2, ADDITIVE, 'subtract'),
    '*': Operator(operator.__mul__, 2, MULTIPLICATIVE, 'multiply'),
    '/': Operator(operator.__truediv__, 2, MULTIPLICATIVE, 'divide'),
    '**': Operator(operator.__pow__, 2, POWER, 'power'),
    '%': Operator(operator.__mod__, 2, MODULO, 'modulo'),

    '&': Operator(operator.__and__, 2, INTEGRAL, 'bitwise and'),
    '|': Operator(operator.__or__, 2, INTEGRAL, 'bitwise or'),
    '^': Operator(operator.__xor__, 2, INTEGRAL, 'bitwise xor'),
    '<<': Operator(operator.__lshift__, 2, INTEGRAL, 'left shift'),
    '>>': Operator(operator.__rshift__, 2, INTEGRAL, 'right shift'),
    '~': Operator(operator.__invert__, 1, INTEGRAL,
                  'bitwise complement (64 bits)'),
    'mask': Operator(Number.mask, 1, INTEGRAL, 'IPv4 netmask of n bits'),

    'chs': Operator(operator.__neg__, 1, SCALAR, 'change sign'),
    't': Operator(Number.truncate, 1, SCALAR, 'truncate toward zero'),
    'round': Operator(Number.round, 1, SCALAR, 'round half away from zero'),
    '[': Operator(Number.floor, 1, SCALAR, 'floor'),
    ']': Operator(Number.ceil, 1, SCALAR, 'ceiling'),
    'abs': Operator(operator.__abs__, 1, SCALAR, 'absolute value'),

    'log': Operator(Number.log, 1, DIMENSIONLESS_ONLY, 'natural log'),
    'log2': Operator(Number.log2, 1, DIMENSIONLESS_ONLY, 'base 2 log'),
    'log10': Operator(Number.log10, 1, DIMENSIONLESS_ONLY, 'base 10 log'),
    'sqrt': Operator(Number.sqrt, 1, DIMENSIONLESS_ONLY, 'square root'),
    '!': Operator(Number.factorial, 1, DIMENSIONLESS_ONLY, 'factorial'),
    'rand': Operator(Number.random, 1, DIMENSIONLESS_ONLY,
                     'random number in [0, value)'),

    'r': Operator(Number.reciprocal, 1, RECIPROCAL, 'reciprocal'),
    'i': Operator(None, 1, INVERT_UNITS, 'invert units'),
}

ALIASES = {
    '.': '*',
    '•': '*',
    '·': '*',
    '÷': '/',
    'pow': '**',
    '√': 'sqrt',
    'truncate': 't',
}


def unalias(name):
    return ALIASES.get(name, name)


class Value:
    '''
    A Number measured in a Unit.

    Operations build new Values; neither operand is modified.
    '''

    __slots__ = ('number', 'unit')

    def __init__(self, number, unit=DIMENSIONLESS):
        if not isinstance(number, Number):
            number = Number(number)
        self.number = number
        self.unit = unit

    def copy(self):
        '''
        Deep copy: the copy shares no numeric state with self.
        '''
        return type(self)(self.number.copy(), self.unit)

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return self.number == other.number and self.unit == other.unit

    __hash__ = None

    # Units

    def apply(self, unit, rates=None):
        '''
        Attach unit to a dimensionless value, strip units when unit is
        dimensionless (num), otherwise convert into unit.
        '''
        if unit.is_dimensionless or self.unit.is_dimensionless:
            return type(self)(self.number.copy(), unit)
        return self.convert_to(unit, rates)

    def convert_to(self, unit, rates=None):
        if not self.unit.compatible(unit):
            raise IncompatibleUnits('Incompatible units {} and {}'.format(
                self.unit, unit))
        return type(self)(self.unit.convert(self.number, unit, rates), unit)

    # Operators

    def binary_op(self, name, other, rates=None):
        '''
        Apply binary operator name to self (left) and other (right).
        '''
        op = OPERATORS[unalias(name)]
        if op.arity != 2:
            raise ValueError('{} is not a binary operator'.format(name))
        if op.kind == ADDITIVE:
            return self._additive(op, other, rates)
        if op.kind == MULTIPLICATIVE:
            return self._multiplicative(name, op, other, rates)
        if op.kind == POWER:
            if not other.unit.is_dimensionless:
                raise DimensionedOperationNotSupported(
                    'Dimensionless exponent required, got {}'.format(other))
            # Unit first: it refuses non-integral powers of dimensions.
            unit = self.unit ** other.number
            return type(self)(op.function(self.number, other.number), unit)
        if op.kind == MODULO:
            if not other.unit.is_dimensionless:
                raise DimensionedOperationNotSupported(
                    'Dimensionless divisor required for {}, got {}'.format(
                        name, other))
            return type(self)(op.function(self.number, other.number),
                              self.unit)
        if op.kind == INTEGRAL:
            if not other.unit.is_dimensionless:
                raise DimensionedOperationNotSupported(
                    'Dimensionless value required for {}, got {}'.format(
                        name, other))
            return type(self)(op.function(self.number, other.number),
                              self.unit)
        raise ValueError('Unknown operator kind {}'.format(op.kind))

    def _additive(self, op, other, rates):
        if not self.unit.compatible(other.unit):
            raise IncompatibleUnits(
                'Incompatible units for {}: {} vs {}'.format(
                    op.description, self.unit, other.unit))
        if not temperature_addable(self.unit, other.unit):
            raise InvalidTemperatureOperation(
                'Invalid temperature operation: {} {} {}'.format(
                    self.unit, op.description, other.unit))
        if is_delta_temperature(self.unit) and \
           not is_delta_temperature(other.unit):
            # A delta moves an absolute temperature, never the reverse.
            unit = other.unit
            left = self.unit.convert(self.number, unit, rates)
            right = other.number
        else:
            unit = self.unit
            left = self.number
            right = other.unit.convert(other.number, unit, rates)
        return type(self)(op.function(left, right), unit)

    def _multiplicative(self, name, op, other, rates):
        if op.function is operator.__mul__ and \
           not temperature_multipliable(self.unit, other.unit):
            raise InvalidTemperatureOperation(
                'Invalid temperature operation: cannot multiply {} {} {}'
                .format(self.unit, name, other.unit))
        # Shared dimensions are measured in the left operand's units,
        # except temperatures, whose scales don't multiply.
        right_unit = other.unit.rebased(self.unit)
        right = other.unit.convert(other.number, right_unit, rates)
        unit = op.function(self.unit, right_unit)
        left_base = self.unit.base(Dimension.TEMPERATURE)
        right_base = right_unit.base(Dimension.TEMPERATURE)
        if left_base is not None and right_base is not None and \
           left_base != right_base and unit.power(Dimension.TEMPERATURE):
            raise InvalidTemperatureOperation(
                'Invalid temperature operation: {} {} {}'.format(
                    self.unit, name, other.unit))
        return type(self)(op.function(self.number, right), unit)

    def unary_op(self, name):
        '''
        Apply unary operator name to self.
        '''
        op = OPERATORS[unalias(name)]
        if op.arity != 1:
            raise ValueError('{} is not a unary operator'.format(name))
        if op.kind == SCALAR:
            return type(self)(op.function(self.number), self.unit)
        if op.kind in (DIMENSIONLESS_ONLY, INTEGRAL):
            self._require_dimensionless(name)
            return type(self)(op.function(self.number))
        if op.kind == RECIPROCAL:
            return type(self)(op.function(self.number), self.unit.invert())
        if op.kind == INVERT_UNITS:
            return type(self)(self.number.copy(), self.unit.invert())
        raise ValueError('Unknown operator kind {}'.format(op.kind))

    def _require_dimensionless(self, name, *others):
        for value in (self,) + others:
            if not value.unit.is_dimensionless:
                raise DimensionedOperationNotSupported(
                    'Dimensionless value required for {}, got {}'.format(
                        name, value))

    # Display

    def _shown(self, config):
        '''
        A unit with the powers of a composite unit (J, W, ...) is shown as
        that composite, unless config asks for base units only.
        '''
        number, unit = self.number, self.unit
        if not config.display_base_units_only:
            composite = composite_for(unit)
            if composite is not None:
                number = unit.convert(number, composite.unit)
                unit = composite.unit
        return number, unit

    def display(self, config):
        '''
        Return ([number in each enabled base], unit text).
        '''
        number, unit = self._shown(config)
        cells = [number.to_string(base,
                                  precision=config.display_precision,
                                  grouping=config.grouping_separator,
                                  hex_float=config.allow_hex_float)
                 for base in config.bases()]
        text = unit.render(superscript=config.use_superscript_powers,
                           base_only=config.display_base_units_only)
        return cells, text

    def annotations(self, config):
        '''
        Extra renderings config asks for: rational, IPv4, prime factors.

        One string per enabled rendering, empty where it doesn't apply.
        '''
        number, _ = self._shown(config)
        extras = []
        if config.display_rational:
            extras.append('(' + number.to_rational() + ')')
        if config.display_ipv4:
            extras.append(number.to_ipv4() or '')
        if config.display_factors:
            extras.append(number.to_factors(
                superscript=config.use_superscript_powers) or '')
        return extras

    def __str__(self):
        cells, unit = self.display(Config())
        return ' '.join(cells + ([unit] if unit else []))

    def __repr__(self):
        return 'Value({!r}, {!r})'.format(self.number, self.unit)


CONSTANTS = {
    'pi': Value(PI),
    'π': Value(PI),
    'e': Value(E),
    # Speed of light
    'c': Value(Number(299792458), Unit.parse('m/s')),
    # Standard gravity
    'G': Value(Number(Fraction('9.80665')), Unit.parse('m/s²')),
}
