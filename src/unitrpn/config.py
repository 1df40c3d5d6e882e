'''
Display settings.
'''

from .util import RPNError


class ConfigError(RPNError):
    pass


class Config:
    '''
    How the stack is shown. The core only reads these.
    '''

    DEFAULT_PRECISION = 4
    # Display order of the numeric columns.
    BASES = (10, 16, 8, 2)

    def __init__(self, display_precision=DEFAULT_PRECISION,
                 enabled_bases=(10,), allow_hex_float=False,
                 grouping_separator=None, display_base_units_only=False,
                 use_superscript_powers=True, display_rational=False,
                 display_ipv4=False, display_factors=False):
        if display_precision is None or display_precision < 0:
            raise ConfigError(
                'Precision must be a non-negative integer, got {}'.format(
                    display_precision))
        enabled_bases = set(enabled_bases)
        if not enabled_bases:
            raise ConfigError('At least one base must be enabled')
        unknown = enabled_bases.difference(self.BASES)
        if unknown:
            raise ConfigError('Unsupported bases: {}'.format(
                ', '.join(map(str, sorted(unknown)))))
        if grouping_separator and ('.' in grouping_separator or
                                   any(c.isdigit()
                                       for c in grouping_separator)):
            raise ConfigError('Invalid grouping separator {!r}'.format(
                grouping_separator))
        self.display_precision = display_precision
        self.enabled_bases = frozenset(enabled_bases)
        self.allow_hex_float = allow_hex_float
        self.grouping_separator = grouping_separator or None
        self.display_base_units_only = display_base_units_only
        self.use_superscript_powers = use_superscript_powers
        self.display_rational = display_rational
        self.display_ipv4 = display_ipv4
        self.display_factors = display_factors

    def bases(self):
        '''
        Enabled bases in display order.
        '''
        return [base for base in self.BASES if base in self.enabled_bases]

    def __repr__(self):
        return ('Config(display_precision={!r}, enabled_bases={!r}, '
                'allow_hex_float={!r}, grouping_separator={!r}, '
                'display_base_units_only={!r}, use_superscript_powers={!r}, '
                'display_rational={!r}, display_ipv4={!r}, '
                'display_factors={!r})'
                .format(self.display_precision, sorted(self.enabled_bases),
                        self.allow_hex_float, self.grouping_separator,
                        self.display_base_units_only,
                        self.use_superscript_powers, self.display_rational,
                        self.display_ipv4, self.display_factors))
