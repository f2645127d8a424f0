"""Natural numbers encoded as Church numerals. Note that operations are not implemented here (see
common/numbers.lc): numerals are plain closures, and this module only converts between them and Python ints.

```
n = (s, z) => s (s (... (s z)))     ; s applied n times
```

Source: https://en.wikipedia.org/wiki/Church_encoding#Calculation_with_Church_numerals
"""

from lazycalc.lang.error import GenericException, NotAFunctionError
from lazycalc.pure.environment import Constant, Primitive, Thunk
from lazycalc.pure.terms import Abstraction, Application, Variable


def cnumber(num, successor="s", zero="z"):
    """Returns the Church numeral term for num (cnum = Church numeral)."""
    if isinstance(num, bool) or not isinstance(num, int) or num < 0:
        raise GenericException("expected natural number, got '{}'", str(num), internal=True)

    body = Variable(zero)
    for _ in range(num):
        body = Application(Variable(successor), body)
    return Abstraction.curried([successor, zero], body)


def _increment(value):
    if isinstance(value, Constant) and isinstance(value.value, int):
        return Constant(value.value + 1)
    return Constant(None)  # not a numeral: poisons the count


SUCCESSOR = Primitive("succ", _increment)
ZERO = Constant(0)


def number(evaluator, value):
    """Returns the int value encodes if it is a Church numeral, else None.

    value is applied to a strict host successor and a host zero, so decoding n costs O(n) machine steps and no
    Python recursion. Values that are not numerals either apply a Constant (NotAFunctionError) or return something
    other than an int.
    """
    try:
        result = evaluator.apply(value, Thunk.evaluated(SUCCESSOR), Thunk.evaluated(ZERO))
    except NotAFunctionError:
        return None

    if isinstance(result, Constant) and isinstance(result.value, int):
        return result.value
    return None
