"""Pure lambda calculus terms.

The core language only knows single-parameter abstractions and single-argument applications:

```
<term> ::= <name>                 ; "variable"
         | <name> "=>" <term>     ; "abstraction"
         | <term> <term>          ; "application", associating by left: a b c d = (((a b) c) d)
```

Multi-parameter lambdas and multi-argument applications are surface sugar, removed by Abstraction.curried and
Application.chain:

```
(a, b) => body   =   a => b => body
f x y            =   (f x) y
```

Terms are immutable once built and may be freely shared between environments, thunks and modules.
"""

from dataclasses import dataclass


class Term:
    """Superclass of the three term variants. Printing a term gives its surface syntax."""

    def display(self):
        """Returns surface syntax for self, re-sugaring nested abstractions into parameter lists."""
        if isinstance(self, Variable):
            return self.name

        if isinstance(self, Abstraction):
            params, body = self.uncurried()
            head = params[0] if len(params) == 1 else f"({', '.join(params)})"
            return f"{head} => {body.display()}"

        function, arguments = self.unchained()
        parts = [_display_operand(function, last=False)]
        for idx, argument in enumerate(arguments):
            parts.append(_display_operand(argument, last=idx == len(arguments) - 1, position="argument"))
        return " ".join(parts)

    def __str__(self):
        return self.display()


@dataclass(frozen=True)
class Variable(Term):
    name: str


@dataclass(frozen=True)
class Abstraction(Term):
    parameter: str
    body: Term

    @classmethod
    def curried(cls, parameters, body):
        """(p1, p2, ..., pn) => body  ->  Abstraction(p1, Abstraction(p2, ... Abstraction(pn, body)))."""
        if not parameters:
            raise ValueError("an abstraction needs at least one parameter")

        term = body
        for parameter in reversed(parameters):
            term = cls(parameter, term)
        return term

    def uncurried(self):
        """Inverse of curried: returns ([p1, ..., pn], body) where body is not an Abstraction."""
        params = []
        term = self
        while isinstance(term, Abstraction):
            params.append(term.parameter)
            term = term.body
        return params, term


@dataclass(frozen=True)
class Application(Term):
    function: Term
    argument: Term

    @classmethod
    def chain(cls, function, arguments):
        """f a1 a2 ... an  ->  Application(... Application(Application(f, a1), a2) ..., an)."""
        term = function
        for argument in arguments:
            term = cls(term, argument)
        return term

    def unchained(self):
        """Inverse of chain: returns (f, [a1, ..., an]) where f is not an Application."""
        arguments = []
        term = self
        while isinstance(term, Application):
            arguments.append(term.argument)
            term = term.function
        arguments.reverse()
        return term, arguments


def _display_operand(term, last, position="function"):
    # a lambda swallows everything to its right, so it only goes unwrapped as the final argument
    if isinstance(term, Variable):
        return term.display()
    if isinstance(term, Abstraction) and position == "argument" and last:
        return term.display()
    return f"({term.display()})"


def free_names(term):
    """Returns the set of names used but not bound inside term."""
    free = set()
    work = [(term, frozenset())]
    while work:
        term, bound = work.pop()
        if isinstance(term, Variable):
            if term.name not in bound:
                free.add(term.name)
        elif isinstance(term, Abstraction):
            work.append((term.body, bound | {term.parameter}))
        else:
            work.append((term.function, bound))
            work.append((term.argument, bound))
    return free
