from collections import deque
from fractions import Fraction
from functools import reduce
import logging
import math

from .config import Config
from .lexer import Lexer
from .number import Number
from .rates import NoRates
from .util import EmptyStack, NotEnoughOperands, wrap_user_errors
from .value import OPERATORS, Value, unalias


logger = logging.getLogger(__name__)


def _split_point(cell):
    '''
    Split a rendered number at its radix point.
    '''
    integral, point, fractional = cell.partition('.')
    return integral, point + fractional


class Machine:
    '''
    Stack machine (RPN calculator) over Values.

    Takes lexemes and runs them. The top of the stack is the right end of
    the deque. Every slot holds its own Value; nothing is shared between
    slots.
    '''

    # Statistic lexeme to method
    STATISTICS = {
        'mini': 'minimum',
        'max': 'maximum',
        'mean': 'mean',
        'size': 'size',
        'stddev': 'standard_deviation',
        '95%': 'percentile',
    }

    def __init__(self, config=None, rates=None):
        '''
        Create empty stack machine.

        :param config: Config used to render the stack.
        :param rates: Currency rate resolver, see unitrpn.rates.
        '''
        self.stack = deque()
        self.config = config or Config()
        self.rates = rates or NoRates()
        self.lexer = Lexer()

    # Feeding

    def run(self, tokens):
        '''
        Lex and feed every token, stopping at the first error.
        '''
        for token in tokens:
            for lexeme in self.lexer.lex(token):
                self.feed(lexeme)

    @wrap_user_errors('Cannot evaluate {1.text!r}')
    def feed(self, lexeme):
        '''
        Stack or run a lexeme on the machine.

        :param lexeme: Lexeme from Lexer.classify.
        '''
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('[%s] %s (%s)', self.oneline(), lexeme.text,
                         lexeme.kind)
        if lexeme.kind in ('number', 'sexagesimal', 'ipv4'):
            self.push(Value(lexeme.value))
        elif lexeme.kind == 'constant':
            self.push(lexeme.value.copy())
        elif lexeme.kind == 'units':
            self.apply_units(lexeme.value)
        elif lexeme.kind == 'stack':
            getattr(self, lexeme.value)()
        elif lexeme.kind == 'reduction':
            self.reduce(lexeme.value)
        elif lexeme.kind == 'statistic':
            self.statistic(*lexeme.value)
        elif OPERATORS[unalias(lexeme.value)].arity == 2:
            self.apply_binary(lexeme.value)
        else:
            self.apply_unary(lexeme.value)

    # Stack

    def push(self, value):
        '''
        Push value onto the top of the stack.
        '''
        self.stack.append(value)

    def _operands(self, n):
        '''
        Return the n topmost values, bottommost first, without popping.
        '''
        if len(self.stack) < n:
            if n == 1:
                raise EmptyStack('Empty stack')
            raise NotEnoughOperands(
                'Less than {} element(s) on stack'.format(n))
        return [self.stack[i] for i in range(len(self.stack) - n,
                                             len(self.stack))]

    def _popstack(self, n=1):
        '''
        Pop n values from stack, topmost first.
        '''
        self._operands(n)
        return [self.stack.pop() for _ in range(n)]

    def pop(self):
        '''
        Remove and return the top of the stack.
        '''
        return self._popstack()[0]

    def peek(self):
        '''
        Return the top of the stack, leaving it there.
        '''
        return self._operands(1)[0]

    def exchange(self):
        '''
        Swap two elements at top of stack.
        '''
        top, below = self._popstack(2)
        self.push(top)
        self.push(below)

    def duplicate(self):
        '''
        Push an independent copy of the top of the stack.
        '''
        self.push(self.peek().copy())

    def clear(self):
        '''
        Clear everything from the stack.
        '''
        self.stack.clear()

    def __len__(self):
        return len(self.stack)

    # Operators

    def _replace(self, n, value):
        '''
        Replace the n topmost values with value.
        '''
        self._popstack(n)
        self.push(value)

    def apply_binary(self, name):
        '''
        Replace the two topmost values with left name right.

        The stack is left untouched if the operation fails.
        '''
        left, right = self._operands(2)
        self._replace(2, left.binary_op(name, right, self.rates))

    def apply_unary(self, name):
        top, = self._operands(1)
        self._replace(1, top.unary_op(name))

    def apply_units(self, unit):
        '''
        Attach, convert to, or (num) strip the units of the top of stack.
        '''
        top, = self._operands(1)
        self._replace(1, top.apply(unit, self.rates))

    def reduce(self, name):
        '''
        Fold the whole stack with binary operator name, bottom to top, and
        replace it with the result.
        '''
        self._operands(2)
        result = reduce(lambda left, right: left.binary_op(name, right,
                                                           self.rates),
                        self.stack)
        self.clear()
        self.push(result)

    # Statistics

    def _normalized(self):
        '''
        Every value on the stack in the units of the bottom one.
        '''
        if not self.stack:
            raise EmptyStack('Empty stack')
        unit = self.stack[0].unit
        return [value.convert_to(unit, self.rates) for value in self.stack]

    def minimum(self):
        return min(self._normalized(), key=lambda value: value.number)

    def maximum(self):
        return max(self._normalized(), key=lambda value: value.number)

    def mean(self):
        total = reduce(lambda left, right: left.binary_op('+', right,
                                                          self.rates),
                       self.stack)
        return total.binary_op('/', self.size(), self.rates)

    def size(self):
        return Value(len(self.stack))

    def standard_deviation(self):
        '''
        Sample standard deviation, in the units of the bottom value.
        '''
        if len(self.stack) < 2:
            raise NotEnoughOperands(
                'Standard deviation needs at least 2 values')
        values = self._normalized()
        numbers = [value.number for value in values]
        mean = sum(numbers, Number(0)) / len(numbers)
        variance = sum(((number - mean) ** 2 for number in numbers),
                       Number(0)) / (len(numbers) - 1)
        return Value(variance.sqrt(), values[0].unit)

    def percentile(self, percent=95):
        '''
        Smallest value with at least percent % of the stack at or below it.
        '''
        values = sorted(self._normalized(), key=lambda value: value.number)
        rank = math.ceil(Fraction(len(values) * percent, 100))
        return values[rank - 1]

    def statistic(self, name, replace=False):
        '''
        Push a statistic of the stack, or replace the stack with it.
        '''
        if name != 'size' and not self.stack:
            raise EmptyStack('Empty stack')
        result = getattr(self, self.STATISTICS[name])()
        if replace:
            self.clear()
        self.push(result)

    def stats(self):
        '''
        Return [(name, rendered value)] for the stack's statistics.
        '''
        values = []
        if self.stack:
            values += [('min', self.minimum()),
                       ('mean', self.mean()),
                       ('95%', self.percentile()),
                       ('max', self.maximum())]
        if len(self.stack) > 1:
            values.append(('stddev', self.standard_deviation()))
        values.append(('size', self.size()))
        return [(name, self._entry(value)) for name, value in values]

    # Rendering

    def _entry(self, value):
        cells, unit = value.display(self.config)
        extras = value.annotations(self.config)
        return ' '.join(cells + [text for text in [unit] + extras if text])

    def entries(self):
        '''
        Each value rendered on its own, top of the stack first.
        '''
        return [self._entry(value) for value in reversed(self.stack)]

    def oneline(self):
        '''
        The whole stack on one line, bottom first.
        '''
        return ' | '.join(reversed(self.entries()))

    def render(self):
        '''
        Lines for all elements on the stack, top of the stack first.

        Each numeric column is aligned on the radix point, integral parts
        right aligned and fractional parts left aligned. Units follow, then
        any rational, IPv4 or factor columns, left aligned.
        '''
        shown = list(reversed(self.stack))
        rows = [value.display(self.config) for value in shown]
        extras = [value.annotations(self.config) for value in shown]
        if not rows:
            return []
        columns = [[_split_point(cells[i]) for cells, _ in rows]
                   for i in range(len(rows[0][0]))]
        widths = [(max(len(integral) for integral, _ in column),
                   max(len(fractional) for _, fractional in column))
                  for column in columns]
        unit_width = max(len(unit) for _, unit in rows)
        extra_widths = [max(len(column) for column in cells)
                        for cells in zip(*extras)]
        lines = []
        for row, (_, unit) in enumerate(rows):
            parts = [integral.rjust(integral_width) +
                     fractional.ljust(fractional_width)
                     for (integral, fractional), (integral_width,
                                                  fractional_width)
                     in zip((column[row] for column in columns), widths)]
            if extra_widths:
                if unit_width:
                    parts.append(unit.ljust(unit_width))
                parts.extend(text.ljust(width) for text, width
                             in zip(extras[row], extra_widths))
            elif unit:
                parts.append(unit)
            lines.append(' '.join(parts).rstrip())
        return lines


def evaluate(tokens, config=None, rates=None):
    '''
    Evaluate tokens on a fresh machine.

    Returns the rendered stack entries, top of the stack first. Raises the
    first RPNError met; nothing is printed and the process never exits.
    '''
    machine = Machine(config=config, rates=rates)
    machine.run(tokens)
    return machine.entries()
