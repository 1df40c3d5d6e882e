from os import isatty
import sys
from argparse import ArgumentParser, REMAINDER, OPTIONAL
import logging

from prompt_toolkit import PromptSession

from .config import Config
from .lexer import Lexer
from .machine import Machine
from .rates import NoRates, StaticRates
from .units import describe
from .util import RPNError


logger = logging.getLogger(__name__)

UNITS_NOTE = ('A unit expression uses one unit per dimension: kg·m/s² or '
              'J/s, but not W·hr or J/ft, which mix hr with s or ft with m.')


class InteractiveInput:
    def __init__(self, prompt):
        self.prompt = prompt

    def __iter__(self):
        try:
            session = PromptSession(message=self.prompt,
                                    vi_mode=True,
                                    enable_suspend=True,
                                    enable_open_in_editor=True,
                                    history=None,
                                    prompt_continuation=' ' * len(self.prompt),
                                    # Certainly not! But be explicit.
                                    erase_when_done=False)
            while True:
                yield session.prompt()
        except EOFError:
            return


def columns(lines, column):
    '''
    Yield the column'th whitespace separated field of every line.

    Columns count from 1, or from the end when negative. Lines without
    that many fields are skipped.
    '''
    for line in lines:
        fields = line.split()
        index = column - 1 if column > 0 else len(fields) + column
        if 0 <= index < len(fields):
            yield fields[index]


class CLI:
    '''
    Command line interface to the calculator.
    '''

    DEFAULT_PROMPT = '> '

    def dumper(self):
        '''
        Dump how every token is classified.
        '''
        lexer = Lexer()
        print('<kind>\t<repr(token)>\t<value>')
        for line in self.args.expressions:
            for lexeme in lexer.lex(line):
                print(lexeme.kind, repr(lexeme.text), lexeme.value, sep='\t')

    def units(self):
        '''
        Print the known base units.
        '''
        for dimension, units in describe():
            print(dimension.name.lower() + ':')
            for symbol, description in units:
                print('  {:6} {}'.format(symbol, description))
        print()
        print(UNITS_NOTE)

    def executor(self):
        '''
        Run machine (RPN calculator).

        Non-interactively, the first error aborts the run. Interactively,
        it aborts the rest of its line only.
        '''
        machine = Machine(config=self.config, rates=self.rates)
        interactive = self._interactive()
        for line in self.args.expressions:
            try:
                machine.run([line])
            # Abort entire rest of line, makes sense anyway
            except RPNError as e:
                self._report(e)
                if not interactive:
                    return 1
            if interactive:
                self._show(machine)
        if not interactive:
            return self._show(machine)
        return 0

    def _show(self, machine):
        if self.args.oneline:
            print(machine.oneline())
        else:
            for line in machine.render():
                print(line)
        if self.args.stats:
            try:
                for name, value in machine.stats():
                    print('{}: {}'.format(name, value))
            except RPNError as e:
                self._report(e)
                return 1
        return 0

    def _report(self, error):
        logger.debug('evaluation failed', exc_info=error)
        print(error.args[0], file=sys.stderr)

    def _prompting_input(self):
        '''
        Return prompting input if either:

        - prompt explicitly specified.
        - both stdin/out are a tty

        Otherwise plain stdin.
        '''
        if self.args.prompt or \
           isatty(sys.stdin.fileno()) and isatty(sys.stdout.fileno()):
            return InteractiveInput(prompt=self.args.prompt or
                                    self.DEFAULT_PROMPT)
        else:
            return sys.stdin

    def _interactive(self):
        return isinstance(self.args.expressions, InteractiveInput)

    def __init__(self):
        '''
        Create ready to run CLI.

        Does not run or parse command line arguments.
        '''
        self.argument_parser = ArgumentParser(
            description='RPN calculator with units',
            epilog=UNITS_NOTE)
        self.argument_parser.add_argument('-v', '--verbose',
                                          action='count', default=0,
                                          help='more logging, -vv for debug')
        self.argument_parser.add_argument('-t', '--trace',
                                          action='store_true',
                                          help='log every token evaluated')
        bases = self.argument_parser.add_argument_group('display')
        for short_, long_, base in [('-b', '--binary', 2),
                                    ('-o', '--octal', 8),
                                    ('-x', '--hex', 16)]:
            bases.add_argument(short_, long_,
                               action='append_const',
                               const=base,
                               dest='bases',
                               help='also show base {}'.format(base))
        bases.add_argument('-X', '--hex-float', action='store_true',
                           help='show non-integers in hex as hex floats')
        bases.add_argument('-p', '--precision', type=int,
                           default=Config.DEFAULT_PRECISION,
                           help='decimal places shown (default %(default)s)')
        bases.add_argument('-g', '--grouping', nargs=OPTIONAL, const=',',
                           help='digit grouping separator (default ,)')
        bases.add_argument('-S', '--ascii-powers', action='store_true',
                           help='write powers as ^2 instead of ²')
        bases.add_argument('--base', action='store_true', dest='base_units',
                           help='show base units only, never J, W, ...')
        bases.add_argument('-r', '--rational', action='store_true',
                           help='also show numbers as numerator/denominator')
        bases.add_argument('-i', '--ipv4', action='store_true',
                           help='also show 32 bit integers as IPv4 addresses')
        bases.add_argument('-f', '--factors', action='store_true',
                           help='also show the prime factors of integers')
        bases.add_argument('-s', '--stats', action='store_true',
                           help='show stack statistics')
        bases.add_argument('-O', '--oneline', action='store_true',
                           help='show the stack on one line')
        self.argument_parser.add_argument('--rates', metavar='FILE',
                                          help='exchange rates JSON')
        self.argument_parser.add_argument('-c', '--column', type=int,
                                          metavar='N',
                                          help='read only column N of each '
                                               'input line, negative counts '
                                               'from the end')
        int_nonint_groups = self.argument_parser.add_mutually_exclusive_group()
        int_nonint_groups.add_argument('-e', '--expression',
                                       nargs=REMAINDER,
                                       dest='expressions')
        int_nonint_groups.add_argument('--prompt',
                                       nargs=OPTIONAL,
                                       const=self.DEFAULT_PROMPT)
        main_groups = self.argument_parser.add_mutually_exclusive_group()
        for short_, long_, action in [('-u', '--units', self.units),
                                      ('-D', '--dump', self.dumper)]:
            main_groups.add_argument(short_, long_,
                                     action='store_const',
                                     const=action,
                                     dest='action')
        self.argument_parser.set_defaults(action=self.executor,
                                          expressions=None)

    def _configure_logging(self):
        if self.args.trace or self.args.verbose > 1:
            level = logging.DEBUG
        elif self.args.verbose:
            level = logging.INFO
        else:
            level = logging.WARNING
        logging.basicConfig(stream=sys.stderr, level=level,
                            format='%(levelname)s:%(name)s: %(message)s')

    def _load(self):
        bases = {10, *(self.args.bases or ())}
        if self.args.hex_float:
            bases.add(16)
        self.config = Config(
            display_precision=self.args.precision,
            enabled_bases=bases,
            allow_hex_float=self.args.hex_float,
            grouping_separator=self.args.grouping,
            display_base_units_only=self.args.base_units,
            use_superscript_powers=not self.args.ascii_powers,
            display_rational=self.args.rational,
            display_ipv4=self.args.ipv4,
            display_factors=self.args.factors)
        if self.args.rates:
            self.rates = StaticRates.from_json(self.args.rates)
        else:
            self.rates = NoRates()
        logger.info('%r', self.config)

    def run(self, *, args=None):
        '''
        Run CLI, given these args, or previously passed CLI args.

        Returns the exit status.
        '''
        self.args = self.argument_parser.parse_args(args)
        self._configure_logging()
        if self.args.column is not None:
            if self.args.column == 0 or self.args.expressions is not None:
                self.argument_parser.error(
                    '-c takes a non-zero column and reads standard input')
            self.args.expressions = columns(sys.stdin, self.args.column)
        elif self.args.expressions is None and \
                self.args.action != self.units:
            self.args.expressions = self._prompting_input()
        try:
            self._load()
            return self.args.action() or 0
        except RPNError as e:
            self._report(e)
            return 1
        except KeyboardInterrupt:
            return 1
