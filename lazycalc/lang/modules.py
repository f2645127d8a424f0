"""Module resolution: turns parsed modules and their imports into linked binding tables.

Linking only wires names: every binding becomes an unforced Thunk in its module's root Environment and nothing is
evaluated, so a module may hold bindings that diverge (or that reference names bound nowhere) as long as nobody forces
them. Imported names are bound to the exporting module's own thunks, so a binding is evaluated at most once however
many modules import it.

Modules must not import each other cyclically. Bindings may depend on each other cyclically (mutual recursion), since
that is only a problem if the cycle is forced without an abstraction in between, which the evaluator detects.
"""

from lazycalc.lang.error import CyclicImportError, DuplicateBindingError, LoadError, UnboundNameError
from lazycalc.pure.environment import Environment, Thunk
from lazycalc.pure.terms import free_names


class Module:
    """A linked module: its root Environment holds imported names and local declarations."""

    def __init__(self, module_id, path=None):
        self.id = module_id
        self.path = path
        self.environment = Environment.root()
        self.exports = {}  # name: Thunk, local declarations only
        self.terms = {}    # name: Term, local declarations only
        self.lines = {}    # name: line number of the declaration

    def declare(self, name, thunk):
        """Binds name to thunk, refusing to rebind a name already present in this module."""
        if name in self.environment.table:
            raise DuplicateBindingError(name, self.id)
        self.environment.bind(name, thunk)

    def define(self, binding):
        """Declares a local binding and exports it."""
        thunk = Thunk(binding.term, self.environment, binding.name)
        self.declare(binding.name, thunk)
        self.exports[binding.name] = thunk
        self.terms[binding.name] = binding.term
        self.lines[binding.name] = binding.line
        return thunk

    def import_from(self, other, statement):
        """Binds the names listed in an Import statement to other's exported thunks. Either every name is bound or,
        if one of them can't be, none is.
        """
        aliases = set()
        for name, alias in statement.names:
            if name not in other.exports:
                raise UnboundNameError(f"{other.id}.{name}")
            if alias in aliases or alias in self.environment.table:
                raise DuplicateBindingError(alias, self.id)
            aliases.add(alias)

        for name, alias in statement.names:
            self.declare(alias, other.exports[name])

    def lookup(self, name):
        return self.environment.lookup(name)

    def names(self):
        return list(self.environment.table)

    def unbound_names(self):
        """Returns {binding name: sorted names it uses that are bound nowhere in this module}."""
        unbound = {}
        for name, term in self.terms.items():
            missing = sorted(free_names(term) - set(self.environment.table))
            if missing:
                unbound[name] = missing
        return unbound

    def __repr__(self):
        return f"Module({self.id!r}, names={self.names()})"


def dependency_order(sources, linked=()):
    """Returns the ids of sources (id: ModuleSource) ordered so that every module comes after the modules it imports.
    Ids in linked are taken as already resolved.

    Raises LoadError if a module imports an id missing from sources, CyclicImportError if modules import each other.
    """
    order = []
    done = set(linked)

    for root in sources:
        if root in done:
            continue

        path = [root]                                  # current chain of imports, for cycle reports
        work = [(root, iter(_imported_ids(sources[root])))]
        while work:
            module_id, pending = work[-1]
            child = next(pending, None)

            if child is None:
                work.pop()
                path.pop()
                done.add(module_id)
                order.append(module_id)
                continue

            if child in done:
                continue
            if child in path:
                raise CyclicImportError(path[path.index(child):] + [child])
            if child not in sources:
                raise LoadError(child, f"imported by '{module_id}' was not loaded")

            path.append(child)
            work.append((child, iter(_imported_ids(sources[child]))))

    return order


def _imported_ids(source):
    return [statement.source for statement in source.imports]


def link(source, modules):
    """Links one ModuleSource against already linked modules (id: Module). Imports are bound first, then local
    declarations, in source order.
    """
    module = Module(source.id, source.path)
    for statement in source.imports:
        module.import_from(modules[statement.source], statement)
    for binding in source.bindings:
        module.define(binding)
    return module


def resolve(sources, linked=None):
    """Links a collection of ModuleSources whose imports refer to each other by ModuleSource.id. Imports may also refer
    to modules in linked (id: Module), which are reused as they are. Returns a dict of id: Module for the newly linked
    modules, in dependency order (leaves first). Nothing is evaluated.
    """
    if not isinstance(sources, dict):
        sources = {source.id: source for source in sources}
    linked = linked or {}
    sources = {module_id: source for module_id, source in sources.items() if module_id not in linked}

    modules = dict(linked)
    resolved = {}
    for module_id in dependency_order(sources, linked):
        modules[module_id] = resolved[module_id] = link(sources[module_id], modules)
    return resolved
