"""Session control for the lazycalc language: loads a file and everything it imports, links the modules, and forces
the bindings that were asked for. Also holds the interactive module that shell entries are added to.
"""

from lazycalc.lang.error import EvaluationError, StepLimitExceeded
from lazycalc.lang.lexical import Binding, Import, Parser
from lazycalc.lang.loader import Loader
from lazycalc.lang.modules import Module, resolve
from lazycalc.lang.numerical import number
from lazycalc.pure.evaluator import Evaluator


class Session:
    """Governs a lazycalc session: linked modules, the evaluator shared by every request, and how results print."""
    SH_FILE = "<in>"  # command-line interpreter module id
    DEFAULT_BINDING = "Main"

    def __init__(self, error_handler, include=(), max_steps=Evaluator.DEFAULT_MAX_STEPS, numerals=False,
                 trace=False):
        self.error_handler = error_handler
        self.error_handler.verbose = trace
        self.error_handler.register_file(Session.SH_FILE)

        self.loader = Loader(include, error_handler)
        self.evaluator = Evaluator(max_steps, tracer=error_handler.register_step if trace else None)
        self.numerals = numerals  # print Church numerals as decimal numbers

        self.modules = {}                      # id: Module, every module linked so far
        self.main = None                       # Module loaded by load()
        self.shell = Module(Session.SH_FILE)   # bindings and imports typed into the shell
        self.results = []                      # printable results of shell expressions, oldest first

    def load(self, path):
        """Loads the file at path with everything it imports, links what isn't linked yet and makes it the main
        module. Resolution errors are raised before anything is evaluated.
        """
        self.main = self._load(self.loader.root_id(path))
        return self.main

    def _load(self, module_id):
        sources = self.loader.collect(module_id)
        linked = resolve(sources, self.modules)

        for module in linked.values():
            self.modules[module.id] = module
            for name, missing in module.unbound_names().items():
                self.error_handler.warn("'{}' in '{}' uses unbound '{}'", (name, module.id, ", ".join(missing)),
                                        diagnosis=False)
        return self.modules[module_id]

    def evaluate(self, name, module=None):
        """Forces the binding called name in module (default: the main module) and returns its value."""
        module = module or self.main or self.shell
        return self.evaluator.force(module.lookup(name))

    def show(self, value):
        """Returns the printable form of value: its normal form, or a decimal number for Church numerals if
        self.numerals. Warns and falls back to the unreduced closure if no normal form is reached within the step
        bound.
        """
        try:
            if self.numerals:
                num = number(self.evaluator, value)
                if num is not None:
                    return str(num)
            return str(self.evaluator.normalize(value))
        except StepLimitExceeded as error:
            self.error_handler.warn("'{}' has no normal form within {} steps", (repr(value), str(error.limit)),
                                    diagnosis=False)
            return repr(value)

    def run(self, names=()):
        """Forces and prints each binding in names (default: Main) of the main module. An evaluation error aborts only
        the binding it occurred in. Returns whether every binding was printed.
        """
        ok = True
        for name in names or [Session.DEFAULT_BINDING]:
            self.error_handler.register_line(self.main.id, name, self.main.lines.get(name, "?"))
            try:
                print(f"{name} = {self.show(self.evaluate(name))}")
            except EvaluationError as error:
                self.error_handler.throw(error, fatal=False)
                ok = False
            else:
                self.error_handler.remove_line(self.main.id)
        return ok

    def add(self, line, line_num=None):
        """Adds one shell entry: an import is loaded and linked into the shell module, a binding is declared in it and
        an expression is evaluated, its printable form appended to self.results.
        """
        self.error_handler.register_line(Session.SH_FILE, line, line_num)

        entry = Parser(line, Session.SH_FILE).parse_entry()
        if isinstance(entry, Import):
            module = self._load(self.loader.locate(entry.source))
            self.shell.import_from(module, entry)
        elif isinstance(entry, Binding):
            self.shell.define(entry)
        else:
            self.results.append(self.show(self.evaluator.evaluate(entry, self.shell.environment)))

        self.error_handler.remove_line(Session.SH_FILE)

    def pop(self):
        """Removes and returns the oldest result."""
        return self.results.pop(0)
