"""Call-by-need evaluation of pure lambda calculus terms.

Evaluation is normal order with sharing: an application forces only its function position, and hands its argument to
the function as an unforced Thunk. A thunk is evaluated the first time something inspects it and its value is
memoized, so each argument is evaluated at most once no matter how often the body uses it. This is what lets the
classical strict fixed-point combinator

```
Y = f => (x => f (x x)) (x => f (x x));
```

produce a recursive function instead of looping: `x x` is only evaluated when `f` actually calls itself.

The Evaluator is an abstract machine with an explicit continuation stack instead of Python recursion, so long chains
of applications or of thunks referring to thunks only grow a list. Machine states:

- evaluating a term in an environment (`term` is set), or
- returning a value to the top frame of the stack (`term` is None).

Frames:

- _ARGUMENT thunk: the value being returned is a function, to be applied to thunk;
- _UPDATE thunk: the value being returned is the value of thunk, to be memoized;
- _CALL primitive: the value being returned is the forced argument of a strict primitive.
"""

from lazycalc.lang.error import CyclicValueError, EvaluationError, NotAFunctionError, StepLimitExceeded
from lazycalc.pure.environment import Closure, Constant, Neutral, Primitive, Thunk
from lazycalc.pure.terms import Abstraction, Application, Variable

_ARGUMENT = "argument"
_UPDATE = "update"
_CALL = "call"

_QUOTE = "quote"
_QUOTE_THUNK = "quote thunk"
_BUILD_ABSTRACTION = "build abstraction"
_BUILD_APPLICATION = "build application"


class Evaluator:
    """Forces thunks and applies closures. One evaluator can serve any number of requests: a failed request leaves
    every thunk it touched either forced or unforced, never half-way.
    """
    DEFAULT_MAX_STEPS = 1_000_000

    def __init__(self, max_steps=None, tracer=None):
        """max_steps bounds the machine transitions of each run (None: unbounded). tracer, if given, is called as
        tracer(kind, label) when a named thunk starts being forced ("force") and when its value is memoized ("value").
        """
        self.max_steps = max_steps
        self.tracer = tracer

        self.steps = 0        # machine transitions, over all runs
        self.thunk_evals = 0  # thunks forced for the first time
        self.thunk_hits = 0   # lookups answered from a memoized thunk

    def evaluate(self, term, env):
        """Returns the value of term in env."""
        return self._run(term, env, [])

    def force(self, thunk):
        """Returns the value of thunk, evaluating its term if this is the first time it is forced."""
        if thunk.forced:
            self.thunk_hits += 1
            return thunk.value

        stack = []
        term, env = self._enter(thunk, stack)
        return self._run(term, env, stack)

    def apply(self, function, *arguments):
        """Returns the value of function applied to the thunks in arguments, left to right."""
        stack = [(_ARGUMENT, thunk) for thunk in reversed(arguments)]
        return self._run(None, None, stack, function)

    def _enter(self, thunk, stack):
        """Starts forcing an unforced thunk: black-holes it and pushes its update frame."""
        if thunk.forcing:
            raise CyclicValueError(thunk.label)

        thunk.begin()
        self.thunk_evals += 1
        if self.tracer is not None and thunk.name is not None:
            self.tracer("force", thunk.name)

        stack.append((_UPDATE, thunk))
        return thunk.term, thunk.env

    def _run(self, term, env, stack, value=None):
        steps = 0
        try:
            while True:
                steps += 1
                if self.max_steps and steps > self.max_steps:
                    raise StepLimitExceeded(self.max_steps)

                if term is not None:
                    if isinstance(term, Variable):
                        thunk = env.lookup(term.name)
                        if thunk.forced:
                            self.thunk_hits += 1
                            value, term = thunk.value, None
                        else:
                            term, env = self._enter(thunk, stack)

                    elif isinstance(term, Abstraction):
                        value, term = Closure(term, env), None

                    else:
                        stack.append((_ARGUMENT, self._delay(term.argument, env)))
                        term = term.function
                    continue

                if not stack:
                    return value

                kind, item = stack.pop()
                if kind == _UPDATE:
                    item.memoize(value)
                    if self.tracer is not None and item.name is not None:
                        self.tracer("value", item.name)

                elif kind == _ARGUMENT:
                    if isinstance(value, Closure):
                        term, env = value.body, value.env.extend(value.parameter, item)
                    elif isinstance(value, Neutral):
                        value = value.applied_to(item)
                    elif isinstance(value, Primitive):
                        stack.append((_CALL, value))
                        if item.forced:
                            value = item.value
                        else:
                            term, env = self._enter(item, stack)
                    else:
                        raise NotAFunctionError(value)

                else:
                    value = item.function(value)
        except BaseException as error:
            if isinstance(error, EvaluationError) and not error.trace:
                error.trace = [item.label for kind, item in stack if kind == _UPDATE]
            self._unwind(stack)
            raise
        finally:
            self.steps += steps

    @staticmethod
    def _delay(term, env):
        """Builds the thunk for an argument. Nothing that could fail is evaluated here."""
        if isinstance(term, Variable):
            # share the bound thunk rather than wrapping it; unbound names are left for forcing to report
            thunk = env.find(term.name)
            if thunk is not None:
                return thunk
        elif isinstance(term, Abstraction):
            return Thunk.evaluated(Closure(term, env))
        return Thunk(term, env)

    @staticmethod
    def _unwind(stack):
        for kind, item in stack:
            if kind == _UPDATE:
                item.reset()
        stack.clear()

    def normalize(self, value):
        """Reads value back into a Term in normal form.

        A closure is read back by applying it to a fresh Neutral variable and reading back the body's value; a neutral
        application is read back by forcing and reading back each argument. Binder names are taken from the source,
        with primes appended when a name is already used by an enclosing binder. Only terminates if value has a normal
        form: max_steps bounds the whole read-back, evaluations included, and StepLimitExceeded is raised past it.
        """
        start = self.steps
        results = []
        work = [(_QUOTE, value, ())]
        while work:
            self.steps += 1  # one read-back step per work item
            if self.max_steps and self.steps - start > self.max_steps:
                raise StepLimitExceeded(self.max_steps)

            kind, item, used = work.pop()

            if kind == _QUOTE_THUNK:
                kind, item = _QUOTE, self.force(item)

            if kind == _QUOTE:
                if isinstance(item, Closure):
                    name = fresh_name(item.parameter, used)
                    body = self._run(item.body, item.env.extend(item.parameter, Thunk.evaluated(Neutral(name))), [])
                    work.append((_BUILD_ABSTRACTION, name, used))
                    work.append((_QUOTE, body, used + (name,)))
                elif isinstance(item, Neutral):
                    work.append((_BUILD_APPLICATION, item, used))
                    work.extend((_QUOTE_THUNK, arg, used) for arg in reversed(item.args))
                elif isinstance(item, Constant):
                    results.append(Variable(repr(item.value)))
                else:
                    results.append(Variable(item.name))

            elif kind == _BUILD_ABSTRACTION:
                results.append(Abstraction(item, results.pop()))

            else:
                count = len(item.args)
                arguments = results[len(results) - count:]
                del results[len(results) - count:]
                results.append(Application.chain(Variable(item.name), arguments))

        return results.pop()


def fresh_name(name, used):
    """Returns name, with primes appended until it isn't in used."""
    candidate = name
    while candidate in used:
        candidate += "'"
    return candidate
