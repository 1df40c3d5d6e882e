from functools import wraps


class RPNError(Exception):
    '''
    Root of every error raised by the calculator core.

    The core never exits the process; callers decide what to do.
    '''
    pass


class ParseError(RPNError):
    pass


class EmptyStack(RPNError):
    pass


class NotEnoughOperands(EmptyStack):
    pass


class IncompatibleUnits(RPNError):
    pass


class DimensionedOperationNotSupported(RPNError):
    pass


class NonIntegralExponent(DimensionedOperationNotSupported):
    pass


class InvalidTemperatureOperation(IncompatibleUnits,
                                  DimensionedOperationNotSupported):
    pass


class DivisionByZero(RPNError, ZeroDivisionError):
    pass


class DomainError(RPNError, ValueError):
    pass


class IntegerRequired(RPNError):
    pass


class NoConversionRule(RPNError):
    pass


class UnsupportedTemperaturePair(NoConversionRule):
    pass


class ConversionFailed(RPNError):
    pass


class RateUnavailable(RPNError):
    pass


class DuplicateUnitSymbol(RPNError):
    pass


def wrap_user_errors(fmt):
    '''
    Decorator that converts stray exceptions into RPNErrors.

    Passes through RPNErrors. The message is formatted with the call's
    arguments.
    '''
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except RPNError:
                raise
            except Exception as e:
                raise RPNError(fmt.format(*args, **kwargs), e) from e
        return wrapper
    return decorator
