from pytest import Item, fixture


class RecordingRates:
    '''
    Resolver doubling every amount, remembering what it was asked.
    '''

    def __init__(self):
        self.calls = []

    def resolve(self, amount, from_code, to_code):
        self.calls.append((from_code, to_code))
        return amount * 2


@fixture
def rates():
    return RecordingRates()


def pytest_assertion_pass(item: Item,
                          lineno: int,
                          orig: str,
                          expl: str) -> None:
    '''
    Log every assertion, in case we later need to audit a run.

    Excessive in most cases. Use with pytest -rP and
    enable_assertion_pass_hook = true.
    '''
    print('given', item.name + ':' + str(lineno), str(orig))  # no repr()!
    print('actual', item.name + ':' + str(lineno),
          # Get rid of full-diff, -vv for full diff, etc.
          '\n'.join(str(expl).splitlines()[:-2]))
