'''
Exact arbitrary precision numbers.

A Number is either an exact integer or an exact fraction. Anything that
turns out to be integral collapses back to an integer, so 6 3 / is 2 while
1 3 / stays 1/3.
'''

from decimal import Decimal, Overflow, localcontext
from fractions import Fraction
from functools import total_ordering
import logging
import math
import operator
import random

import regex

from .util import (ParseError, DivisionByZero, DomainError, IntegerRequired,
                   RPNError)


logger = logging.getLogger(__name__)

# Binary magnitude suffixes, K = 1024, M = 1024², ...
MAGNITUDE = 'KMGTPEZY'

FLAGS = regex.VERBOSE | regex.VERSION1

_SUPERSCRIPT = str.maketrans('0123456789', '⁰¹²³⁴⁵⁶⁷⁸⁹')

_PREFIXES = {
    2: ('0b', 'b'),
    8: ('0o', 'o'),
    16: ('0x', 'x'),
}


def _group(digits, separator, size):
    '''
    Insert separator every size digits, counting from the right.
    '''
    if not separator or len(digits) <= size:
        return digits
    head = len(digits) % size or size
    chunks = [digits[:head]]
    chunks.extend(digits[i:i + size] for i in range(head, len(digits), size))
    return separator.join(chunks)


def _clean(digits):
    return digits.replace(',', '').replace('_', '')


# Digits converted by a single int()/str() call. Python refuses decimal
# conversions longer than sys.get_int_max_str_digits(), at least 640.
_CHUNK_DIGITS = 500


def _digits(value):
    '''
    Decimal digits of the non-negative int value, however long.
    '''
    if value < 10 ** _CHUNK_DIGITS:
        return str(value)
    # About half the digit count, log10(2) ~ 0.3
    places = value.bit_length() * 3 // 20
    high, low = divmod(value, 10 ** places)
    return _digits(high) + _digits(low).zfill(places)


def _integer(digits):
    '''
    int of a string of decimal digits, however long.
    '''
    if len(digits) <= _CHUNK_DIGITS:
        return int(digits)
    places = len(digits) // 2
    return _integer(digits[:-places]) * 10 ** places + \
        _integer(digits[-places:])


def _decimal_fraction(text):
    '''
    Fraction of a decimal literal, [+-]digits[.digits][e[+-]digits].
    '''
    text = _clean(text)
    sign = -1 if text.startswith('-') else 1
    mantissa, _, exponent = text.lstrip('+-').lower().partition('e')
    integral, _, fractional = mantissa.partition('.')
    value = Fraction(_integer(integral + fractional or '0'),
                     10 ** len(fractional))
    exponent = int(exponent or 0)
    if exponent >= 0:
        value *= 10 ** exponent
    else:
        value /= 10 ** -exponent
    return sign * value


def _to_decimal(value):
    return Decimal(value.numerator) / Decimal(value.denominator)


@total_ordering
class Number:
    '''
    Immutable exact number.

    value is an int, or a Fraction whose denominator isn't 1.
    '''

    __slots__ = ('value',)

    # Significant digits for operations without an exact result. 40 decimal
    # digits is comfortably more than quadruple precision's 113 bits.
    DIGITS = 40
    # Largest integral exponent computed exactly.
    MAX_EXPONENT = 100000
    # Largest divisor tried when factoring.
    FACTOR_LIMIT = 10 ** 6

    BINARY = r'''
              (?<binary>
                  [+-]?0[bB][01][01,_]*
              )
              '''
    OCTAL = r'''
             (?<octal>
                 [+-]?0[oO][0-7][0-7,_]*
             )
             '''
    HEX = r'''
           (?<hex>
               (?<sign>[+-]?)
               0[xX]
               (?<int>[0-9a-fA-F][0-9a-fA-F,_]*)
               (?:\.(?<frac>[0-9a-fA-F,_]*))?
               # Exponent is in bits, written in decimal
               (?:[pP](?<exp>[+-]?\d+))?
           )
           '''
    DECIMAL = r'''
               (?<decimal>
                   [+-]?
                   (?:
                       \d[\d,_]*(?:\.\d[\d,_]*)?
                       |
                       \.\d[\d,_]*
                   )
                   (?:[eE][+-]?\d+)?
               )
               '''
    # Order matters: 0b1 would otherwise lex as the decimal 0.
    LITERAL = (r'(?:' + BINARY + r'|' + OCTAL + r'|' + HEX + r'|' + DECIMAL +
               r')(?<magnitude>[' + MAGNITUDE + r'])?')

    SEXAGESIMAL_LEADING = r'[0-9]+'
    SEXAGESIMAL_LAST = r'[0-9]+(?:\.[0-9]+)?|\.[0-9]+'
    IPV4_OCTET = r'[0-9]{1,3}'

    def __init__(self, value=0):
        if isinstance(value, Number):
            value = value.value
        elif isinstance(value, float):
            if not math.isfinite(value):
                raise DomainError('Not a finite number: {}'.format(value))
            value = Fraction(value)
        elif isinstance(value, Decimal):
            if not value.is_finite():
                raise DomainError('Not a finite number: {}'.format(value))
            value = Fraction(value)
        elif not isinstance(value, (int, Fraction)):
            raise TypeError('Cannot make a Number from {!r}'.format(value))
        if isinstance(value, Fraction) and value.denominator == 1:
            value = value.numerator
        self.value = int(value) if isinstance(value, bool) else value

    # Parsing

    @classmethod
    def parse(cls, text):
        '''
        Parse a numeric literal from the start of text.

        Returns (Number, remainder), or (None, text) when nothing matched.
        Only one magnitude suffix is consumed, so 1KK leaves K behind.
        '''
        match = regex.match(cls.LITERAL, text, flags=FLAGS)
        if match is None:
            return None, text
        if match.group('binary'):
            number = cls(int(_clean(match.group('binary')), 2))
        elif match.group('octal'):
            number = cls(int(_clean(match.group('octal')), 8))
        elif match.group('hex'):
            number = cls._parse_hex(match)
        else:
            number = cls(_decimal_fraction(match.group('decimal')))
        suffix = match.group('magnitude')
        if suffix:
            number = number * 1024 ** (MAGNITUDE.index(suffix) + 1)
        return number, text[match.end():]

    @classmethod
    def _parse_hex(cls, match):
        digits = _clean(match.group('int'))
        fraction = _clean(match.group('frac') or '')
        value = Fraction(int(digits + fraction, 16), 16 ** len(fraction))
        if match.group('exp'):
            value *= Fraction(2) ** int(match.group('exp'))
        if match.group('sign') == '-':
            value = -value
        return cls(value)

    @classmethod
    def from_string(cls, text):
        '''
        Parse text as exactly one numeric literal, or raise ParseError.
        '''
        number, remainder = cls.parse(text)
        if number is None or remainder:
            raise ParseError('Invalid number {!r}'.format(text))
        return number

    @classmethod
    def parse_sexagesimal(cls, text):
        '''
        Parse MM:SS or HH:MM:SS, in minutes or hours respectively.

        Every component but the last must be a non-negative integer, even
        1.0 is refused. The last one may be fractional.
        '''
        parts = text.split(':')
        if not 2 <= len(parts) <= 3:
            raise ParseError('Invalid time {!r}'.format(text))
        *leading, last = parts
        for part in leading:
            if not regex.fullmatch(cls.SEXAGESIMAL_LEADING, part):
                raise ParseError('Invalid time {!r}'.format(text))
        if not regex.fullmatch(cls.SEXAGESIMAL_LAST, last):
            raise ParseError('Invalid time {!r}'.format(text))
        total = Fraction(0)
        for part in leading:
            total = (total + _integer(part)) * 60
        total += _decimal_fraction(last)
        return cls(total / 60 ** (len(parts) - 1))

    @classmethod
    def parse_ipv4(cls, text):
        '''
        Parse a dotted quad into its 32 bit integer.
        '''
        parts = text.split('.')
        if len(parts) != 4:
            raise ParseError('Invalid IPv4 address {!r}'.format(text))
        value = 0
        for part in parts:
            if not regex.fullmatch(cls.IPV4_OCTET, part) or int(part) > 255:
                raise ParseError('Invalid IPv4 address {!r}'.format(text))
            value = value * 256 + int(part)
        return cls(value)

    # Properties

    @property
    def is_integer(self):
        return isinstance(self.value, int)

    @property
    def denominator(self):
        return Fraction(self.value).denominator

    def copy(self):
        '''
        Independent copy, never sharing state with self.
        '''
        return type(self)(self.value)

    def _require_integer(self, what):
        if not self.is_integer:
            raise IntegerRequired(
                'Integer value required for {}, got {}'.format(what, self))
        return self.value

    # Comparison

    def __eq__(self, other):
        if isinstance(other, Number):
            other = other.value
        if isinstance(other, (int, Fraction)):
            return self.value == other
        return NotImplemented

    def __lt__(self, other):
        return self.value < _coerce(other).value

    def __hash__(self):
        return hash(self.value)

    def __bool__(self):
        return self.value != 0

    def __int__(self):
        return int(self.value)

    def __float__(self):
        return float(self.value)

    # Arithmetic

    def __add__(self, other):
        return type(self)(self.value + _coerce(other).value)

    def __radd__(self, other):
        return _coerce(other) + self

    def __sub__(self, other):
        return type(self)(self.value - _coerce(other).value)

    def __rsub__(self, other):
        return _coerce(other) - self

    def __mul__(self, other):
        return type(self)(self.value * _coerce(other).value)

    def __rmul__(self, other):
        return _coerce(other) * self

    def __truediv__(self, other):
        other = _coerce(other)
        if other.value == 0:
            raise DivisionByZero('Division by zero: {} / 0'.format(self))
        if self.is_integer and other.is_integer:
            quotient, remainder = divmod(self.value, other.value)
            if remainder == 0:
                return type(self)(quotient)
        return type(self)(Fraction(self.value) / other.value)

    def __rtruediv__(self, other):
        return _coerce(other) / self

    def __mod__(self, other):
        '''
        Floored modulo, x - y*floor(x/y).
        '''
        other = _coerce(other)
        if other.value == 0:
            raise DivisionByZero('Modulo by zero: {} % 0'.format(self))
        return type(self)(self.value % other.value)

    def __pow__(self, other):
        other = _coerce(other)
        if other.is_integer and abs(other.value) <= self.MAX_EXPONENT:
            base, exponent = self, other.value
            if exponent < 0:
                base, exponent = self.reciprocal(), -exponent
            # int and Fraction both square and multiply exactly
            return type(self)(base.value ** exponent)
        return self._approximate_pow(other)

    def _approximate_pow(self, exponent):
        '''
        Lossy power for non-integral (or huge) exponents.

        A negative base takes an integral exponent only, the sign following
        its parity.
        '''
        logger.debug('approximating %s ** %s', self, exponent)
        if self.value < 0 and exponent.is_integer:
            magnitude = (-self)._approximate_pow(exponent)
            return -magnitude if exponent.value % 2 else magnitude
        if self.value < 0:
            raise DomainError(
                'Cannot raise negative number {} to non-integer power {}'
                .format(self, exponent))
        if self.value == 0:
            if exponent.value < 0:
                raise DivisionByZero('Division by zero: 0 ** {}'.format(
                    exponent))
            return type(self)(0)
        if self.value == 1:
            return type(self)(1)
        with localcontext() as context:
            context.prec = self.DIGITS
            context.traps[Overflow] = False
            result = _to_decimal(Fraction(self.value)) ** \
                _to_decimal(Fraction(exponent.value))
        if not result.is_finite():
            raise DomainError('Result of {} ** {} is too large'.format(
                self, exponent))
        return type(self)(result)

    def __neg__(self):
        return type(self)(-self.value)

    def __abs__(self):
        return type(self)(abs(self.value))

    def reciprocal(self):
        return type(self)(1) / self

    def truncate(self):
        '''
        Round toward zero. Integers come back untouched.
        '''
        if self.is_integer:
            return self.copy()
        return type(self)(math.trunc(self.value))

    def floor(self):
        return type(self)(math.floor(self.value))

    def ceil(self):
        return type(self)(math.ceil(self.value))

    def round(self):
        '''
        Round half away from zero.
        '''
        magnitude = math.floor(abs(Fraction(self.value)) + Fraction(1, 2))
        return type(self)(magnitude if self.value >= 0 else -magnitude)

    def sqrt(self):
        if self.value < 0:
            raise DomainError(
                'Cannot take square root of negative number {}'.format(self))
        if self.is_integer:
            root = math.isqrt(self.value)
            if root * root == self.value:
                return type(self)(root)
        with localcontext() as context:
            context.prec = self.DIGITS
            return type(self)(_to_decimal(Fraction(self.value)).sqrt())

    def _float_log(self, log, name):
        # Accuracy is that of a double, whatever the operand's precision.
        if self.value <= 0:
            raise DomainError(
                'Cannot take {} of non-positive number {}'.format(name, self))
        # log of each part, as either may be out of a double's range
        value = Fraction(self.value)
        return type(self)(log(value.numerator) - log(value.denominator))

    def log(self):
        return self._float_log(math.log, 'log')

    def log2(self):
        return self._float_log(math.log2, 'log2')

    def log10(self):
        return self._float_log(math.log10, 'log10')

    def factorial(self):
        value = self._require_integer('!')
        if value < 0:
            raise DomainError('Cannot take factorial of {}'.format(self))
        return type(self)(math.factorial(value))

    def random(self):
        '''
        Uniformly random number in [0, self).
        '''
        return type(self)(Fraction(random.random()) * self.value)

    # Integer only

    def _bitwise(self, other, op, name):
        return type(self)(op(self._require_integer(name),
                             _coerce(other)._require_integer(name)))

    def __and__(self, other):
        return self._bitwise(other, operator.__and__, '&')

    def __or__(self, other):
        return self._bitwise(other, operator.__or__, '|')

    def __xor__(self, other):
        return self._bitwise(other, operator.__xor__, '^')

    def _shift_amount(self, other, name):
        amount = _coerce(other)._require_integer(name)
        if amount < 0:
            raise DomainError(
                'Shift amount must be non-negative, got {}'.format(amount))
        return amount

    def __lshift__(self, other):
        return type(self)(self._require_integer('<<') <<
                          self._shift_amount(other, '<<'))

    def __rshift__(self, other):
        return type(self)(self._require_integer('>>') >>
                          self._shift_amount(other, '>>'))

    def __invert__(self):
        '''
        Complement within 64 bits, not two's complement.
        '''
        return type(self)(self._require_integer('~') ^ (2 ** 64 - 1))

    def mask(self):
        '''
        IPv4 netmask with self leading one bits, e.g. 24 is 0xffffff00.
        '''
        bits = self._require_integer('mask')
        if not 0 <= bits <= 32:
            raise DomainError(
                'Mask bits must be between 0 and 32, got {}'.format(bits))
        return type(self)((2 ** 32 - 1) ^ (2 ** (32 - bits) - 1))

    # Formatting

    def to_string(self, base=10, precision=4, grouping=None, hex_float=False):
        '''
        Render in base 2, 8, 10 or 16.

        Non-integers are shown in decimal in other bases, except in hex
        when hex_float is set. Decimal output groups digits in threes with
        grouping; other bases group in fours with underscores.
        '''
        if base == 10:
            return self._to_decimal_string(precision, grouping)
        if base not in _PREFIXES:
            raise RPNError('Unsupported base {}'.format(base))
        if not self.is_integer:
            if base == 16 and hex_float:
                return self._to_hex_float()
            return self._to_decimal_string(precision, grouping)
        prefix, spec = _PREFIXES[base]
        sign = '-' if self.value < 0 else ''
        digits = format(abs(self.value), spec)
        if grouping:
            digits = _group(digits, '_', 4)
        return sign + prefix + digits

    def _decimal_places(self, precision):
        '''
        Places needed to show self exactly, capped at precision.
        '''
        denominator = self.denominator
        twos = fives = 0
        while denominator % 2 == 0:
            denominator //= 2
            twos += 1
        while denominator % 5 == 0:
            denominator //= 5
            fives += 1
        if denominator != 1:
            return precision
        return min(precision, max(twos, fives))

    def _to_decimal_string(self, precision, grouping):
        if self.is_integer:
            sign = '-' if self.value < 0 else ''
            return sign + _group(_digits(abs(self.value)), grouping, 3)
        places = self._decimal_places(precision)
        scaled = abs(Fraction(self.value)) * 10 ** places
        rounded = math.floor(scaled + Fraction(1, 2))
        integral, fractional = divmod(rounded, 10 ** places)
        sign = '-' if self.value < 0 and rounded else ''
        text = sign + _group(_digits(integral), grouping, 3)
        if places:
            text += '.' + _digits(fractional).zfill(places)
        return text

    def to_rational(self):
        '''
        Exact numerator/denominator, 1/3 or 5/1.
        '''
        value = Fraction(self.value)
        sign = '-' if value < 0 else ''
        return '{}{}/{}'.format(sign, _digits(abs(value.numerator)),
                                _digits(value.denominator))

    def to_ipv4(self):
        '''
        Dotted quad of a 32 bit unsigned integer, otherwise None.
        '''
        if not self.is_integer or not 0 <= self.value < 2 ** 32:
            return None
        return '.'.join(str(self.value >> shift & 0xff)
                        for shift in (24, 16, 8, 0))

    def factors(self):
        '''
        Prime factors of an integer as [(prime, power)], smallest first.

        Returns None for -1, 0, 1, non-integers, and integers that would
        need trial divisors above FACTOR_LIMIT. A negative integer has the
        factor -1 first.
        '''
        if not self.is_integer or abs(self.value) <= 1:
            return None
        remaining = abs(self.value)
        found = [(-1, 1)] if self.value < 0 else []
        divisor = 2
        while divisor * divisor <= remaining:
            if divisor > self.FACTOR_LIMIT:
                return None
            power = 0
            while remaining % divisor == 0:
                remaining //= divisor
                power += 1
            if power:
                found.append((divisor, power))
            divisor += 1 if divisor == 2 else 2
        if remaining > 1:
            found.append((remaining, 1))
        return found

    def to_factors(self, superscript=True):
        '''
        Prime factorisation, 2³ • 3 (or 2^3 • 3), otherwise None.
        '''
        found = self.factors()
        if found is None:
            return None
        parts = []
        for prime, power in found:
            text = '-1' if prime == -1 else _digits(prime)
            if power > 1:
                text += (str(power).translate(_SUPERSCRIPT) if superscript
                         else '^{}'.format(power))
            parts.append(text)
        return ' • '.join(parts)

    def _to_hex_float(self):
        '''
        Hex float, 0x1.8p+3, exponent in bits. 112 fraction bits at most.
        '''
        value = abs(Fraction(self.value))
        exponent = value.numerator.bit_length() - \
            value.denominator.bit_length()
        if value / Fraction(2) ** exponent < 1:
            exponent -= 1
        mantissa = round(value / Fraction(2) ** exponent * 2 ** 112)
        if mantissa >= 2 ** 113:
            mantissa >>= 1
            exponent += 1
        fraction = format(mantissa - 2 ** 112, '028x').rstrip('0')
        sign = '-' if self.value < 0 else ''
        return '{}0x1{}p{:+d}'.format(sign,
                                      '.' + fraction if fraction else '',
                                      exponent)

    def __str__(self):
        return self.to_string()

    def __repr__(self):
        value = Fraction(self.value)
        text = ('-' if value < 0 else '') + _digits(abs(value.numerator))
        if value.denominator != 1:
            text += '/' + _digits(value.denominator)
        return 'Number({})'.format(text)


def _coerce(value):
    if isinstance(value, Number):
        return value
    return Number(value)


PI = Number(Fraction('3.141592653589793238462643383279502884197'))
E = Number(Fraction('2.718281828459045235360287471352662497757'))
