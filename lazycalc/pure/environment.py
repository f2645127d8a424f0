"""Environments, thunks and the values they hold.

An Environment is either a root layer, holding a module's binding table, or a layer with exactly one binding over a
parent. Layers are never changed after they are built (a root layer is only filled while its module is being linked),
so any number of closures and thunks can share a parent without observing each other's extensions.
"""

from lazycalc.lang.error import UnboundNameError
from lazycalc.pure.terms import Abstraction


class Environment:
    """Persistent name -> Thunk mapping. Lookup walks outward through parent links; the first match wins."""
    __slots__ = ("name", "thunk", "parent", "table")

    def __init__(self, name=None, thunk=None, parent=None, table=None):
        self.name = name
        self.thunk = thunk
        self.parent = parent
        self.table = table  # only set on root layers

    @classmethod
    def root(cls, table=None):
        """Returns an outermost environment over table (name: Thunk)."""
        return cls(table={} if table is None else table)

    def bind(self, name, thunk):
        """Adds name to a root layer. Only used while a module is being linked."""
        if self.table is None:
            raise TypeError("only root environments can be bound into")
        self.table[name] = thunk

    def extend(self, name, thunk):
        """Returns a new environment with name bound to thunk, layered over self. self is not changed."""
        return Environment(name, thunk, self)

    def find(self, name):
        """Returns the Thunk bound to name in the nearest enclosing layer, or None."""
        env = self
        while env is not None:
            if env.table is not None:
                thunk = env.table.get(name)
                if thunk is not None:
                    return thunk
            elif env.name == name:
                return env.thunk
            env = env.parent
        return None

    def lookup(self, name):
        """Like find, but raises UnboundNameError if name isn't bound anywhere."""
        thunk = self.find(name)
        if thunk is None:
            raise UnboundNameError(name)
        return thunk

    def names(self):
        """Returns all visible names, innermost first, without duplicates."""
        seen = []
        env = self
        while env is not None:
            layer = env.table.keys() if env.table is not None else [env.name]
            seen.extend(name for name in layer if name not in seen)
            env = env.parent
        return seen

    def __repr__(self):
        return f"Environment({', '.join(self.names())})"


def extend(parent, name, thunk):
    return parent.extend(name, thunk)


def lookup(env, name):
    return env.lookup(name)


class Value:
    """Superclass of everything a thunk can evaluate to."""


class Closure(Value):
    """An abstraction paired with the environment it was evaluated in."""
    __slots__ = ("abstraction", "env")

    def __init__(self, abstraction, env):
        self.abstraction = abstraction
        self.env = env

    @property
    def parameter(self):
        return self.abstraction.parameter

    @property
    def body(self):
        return self.abstraction.body

    def __repr__(self):
        return f"<closure {self.abstraction}>"


def make_closure(abstraction, env):
    """Pairs abstraction with env. Nothing is evaluated."""
    if not isinstance(abstraction, Abstraction):
        raise TypeError(f"expected an Abstraction, got {abstraction!r}")
    return Closure(abstraction, env)


class Neutral(Value):
    """A variable with no value, applied to zero or more argument thunks. Only created while reading a value back into
    a term: closures are applied to fresh Neutrals so their bodies can be evaluated.
    """
    __slots__ = ("name", "args")

    def __init__(self, name, args=()):
        self.name = name
        self.args = tuple(args)

    def applied_to(self, thunk):
        return Neutral(self.name, self.args + (thunk,))

    def __repr__(self):
        return f"<neutral {self.name}/{len(self.args)}>"


class Primitive(Value):
    """A strict host function of one argument. The evaluator forces the argument before calling function with its
    value.
    """
    __slots__ = ("name", "function")

    def __init__(self, name, function):
        self.name = name
        self.function = function

    def __repr__(self):
        return f"<primitive {self.name}>"


class Constant(Value):
    """Opaque host data. Constants are never applicable."""
    __slots__ = ("value",)

    def __init__(self, value):
        self.value = value

    def __eq__(self, other):
        return isinstance(other, Constant) and other.value == self.value

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return f"<constant {self.value!r}>"


class Thunk:
    """A deferred computation: term evaluated in env, at most once. The value cell is written once, on the first
    successful force; after that the term and environment are dropped so they can be reclaimed.
    """
    UNFORCED = "unforced"
    FORCING = "forcing"
    FORCED = "forced"
    __slots__ = ("term", "env", "name", "value", "state")

    def __init__(self, term, env, name=None):
        self.term = term
        self.env = env
        self.name = name  # binding or parameter name, for traces
        self.value = None
        self.state = Thunk.UNFORCED

    @classmethod
    def evaluated(cls, value, name=None):
        """Returns an already-forced thunk holding value."""
        thunk = cls(None, None, name)
        thunk.value = value
        thunk.state = Thunk.FORCED
        return thunk

    @property
    def forced(self):
        return self.state == Thunk.FORCED

    @property
    def forcing(self):
        return self.state == Thunk.FORCING

    @property
    def label(self):
        """Short description used in evaluation traces."""
        if self.name is not None:
            return self.name
        if self.term is not None:
            text = str(self.term)
            return text if len(text) <= 60 else text[:57] + "..."
        return repr(self.value)

    def begin(self):
        self.state = Thunk.FORCING

    def memoize(self, value):
        self.value = value
        self.state = Thunk.FORCED
        self.term = self.env = None

    def reset(self):
        """Returns a thunk abandoned mid-force to the unforced state."""
        if self.state == Thunk.FORCING:
            self.state = Thunk.UNFORCED

    def __repr__(self):
        return f"<thunk {self.label} ({self.state})>"
