'''
Currency rate collaborators.

The unit engine never fetches rates itself. It asks a resolver, anything
with resolve(amount, from_code, to_code), for the converted amount.
'''

from decimal import Decimal
from fractions import Fraction
import json
import logging

from .number import Number
from .util import RateUnavailable, wrap_user_errors


logger = logging.getLogger(__name__)


class NoRates:
    '''
    Resolver used when no exchange rates were supplied.
    '''

    def resolve(self, amount, from_code, to_code):
        raise RateUnavailable('No exchange rates available for {} -> {}'
                              .format(from_code, to_code))


class StaticRates:
    '''
    Resolve from a fixed table of rates.

    rates maps a currency code to the number of units of that currency one
    unit of base buys, the layout openexchangerates.org serves.
    '''

    DEFAULT_BASE = 'USD'

    def __init__(self, rates, base=DEFAULT_BASE):
        self.base = base.upper()
        # str() keeps the rate's decimal digits exact, float or not
        self.rates = {code.upper(): Number(Fraction(str(rate)))
                      for code, rate in rates.items()}
        self.rates[self.base] = Number(1)

    @classmethod
    @wrap_user_errors('Cannot load exchange rates from {1}')
    def from_json(cls, path):
        '''
        Load a saved rates document ({"base": ..., "rates": {...}}).
        '''
        with open(path) as fp:
            document = json.load(fp, parse_float=Decimal)
        logger.debug('loaded %d rates from %s',
                     len(document['rates']), path)
        return cls(document['rates'],
                   base=document.get('base', cls.DEFAULT_BASE))

    def rate(self, code):
        try:
            rate = self.rates[code.upper()]
        except KeyError:
            raise RateUnavailable(
                'Unable to find exchange rate for {}'.format(code)) from None
        if not rate:
            raise RateUnavailable('Zero exchange rate for {}'.format(code))
        return rate

    def resolve(self, amount, from_code, to_code):
        '''
        Convert amount through the base currency.
        '''
        return amount / self.rate(from_code) * self.rate(to_code)
