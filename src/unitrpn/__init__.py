'''
RPN calculator with units.

Exact arithmetic (integers and fractions, never floats unless an operation
has no exact answer) on values that carry their units. 2 ft 3 in + is 27 in
is 2.25 ft; 20 C 18 dF + is 30 °C; 1 usd eur converts through the exchange
rates you hand it.

Also does what a programmer's dc would: bases 2, 8 and 16, bitwise
operators, IPv4 addresses and masks, binary magnitude suffixes (4K is 4096).

The core never prints and never exits. evaluate() returns the rendered
stack or raises an RPNError; the CLI is a thin shell over it.
'''

from .cli import CLI
from .config import Config
from .lexer import Lexer
from .machine import Machine, evaluate
from .number import Number
from .rates import NoRates, StaticRates
from .units import Unit
from .util import RPNError
from .value import Value


__all__ = ('Machine', 'Lexer', 'CLI', 'Config', 'Number', 'Unit', 'Value',
           'NoRates', 'StaticRates', 'RPNError', 'evaluate')
