"""Error handling for the lazycalc language. Every error the language can produce is a GenericException subclass: if
another type of error makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Resolution errors (DuplicateBindingError, CyclicImportError, LoadError) are raised once per module load and prevent
evaluation of that module. Evaluation errors (UnboundNameError, NotAFunctionError, CyclicValueError) are raised lazily,
only when the offending term is forced, and carry a trace of the thunks that were being forced at the time.
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error/warning message so that it can be used to throw a lazycalc error/warning."""

    def __init__(self, msg, exprs=None, start=0, end=-1, diagnosis=True, internal=False):
        """Parses args for GenericException or warning. exprs are substituted into msg, and exprs[0] should be the
        offending expr: start and end delimit the part of it that is underlined in diagnoses.
        """
        if exprs is None:
            exprs = ""
        if isinstance(exprs, str):
            exprs = [exprs]

        self.plain = msg.format(*exprs)
        self.msg = msg.format(*(colored(expr, attrs=["bold"]) for expr in exprs))  # color expr snippets
        self.expr = exprs[0]  # exprs[0] should be the offending expr that caused the error
        self.end = end if end != -1 else len(self.expr)  # needed for error display

        self.start = start
        self.diagnosis = diagnosis
        self.internal = internal

        super().__init__(self.plain)


class ParseError(GenericException):
    """Malformed source text. msg is plain text; line_num is 1-based, start/end are columns into line_text."""

    def __init__(self, msg, line_text, line_num, start=0, end=-1):
        template = msg.replace("{", "{{").replace("}", "}}") + " in '{}'"
        super().__init__(template, line_text, start=start, end=end if end != -1 else start + 1)
        self.line = line_num


class LoadError(GenericException):
    """A module could not be found or read."""

    def __init__(self, module_id, reason="could not be opened"):
        super().__init__("module '{}' " + reason.replace("{", "{{").replace("}", "}}"), module_id, diagnosis=False)
        self.module_id = module_id


class DuplicateBindingError(GenericException):

    def __init__(self, name, module_id):
        super().__init__("'{}' is already bound in module '{}'", (name, module_id), diagnosis=False)
        self.name = name
        self.module_id = module_id


class CyclicImportError(GenericException):

    def __init__(self, cycle):
        super().__init__("cyclic import: {}", " -> ".join(cycle), diagnosis=False)
        self.cycle = list(cycle)


class EvaluationError(GenericException):
    """Base for errors raised while forcing. trace lists the labels of the thunks being forced, outermost first; the
    evaluator fills it in when the error passes through it.
    """

    def __init__(self, msg, expr, trace=None):
        super().__init__(msg, expr)
        self.trace = list(trace) if trace else []


class UnboundNameError(EvaluationError):

    def __init__(self, name, trace=None):
        super().__init__("'{}' is not bound", name, trace)
        self.name = name


class NotAFunctionError(EvaluationError):

    def __init__(self, value, trace=None):
        super().__init__("'{}' cannot be applied", str(value), trace)
        self.value = value


class CyclicValueError(EvaluationError):

    def __init__(self, name, trace=None):
        super().__init__("value of '{}' depends on itself", name, trace)
        self.name = name


class StepLimitExceeded(EvaluationError):
    """Raised by a bounded evaluator. Divergence is not an error of the program: this only tells the caller that the
    bound it asked for ran out.
    """

    def __init__(self, limit, trace=None):
        super().__init__("no result within {} steps", str(limit), trace)
        self.limit = limit


class ErrorHandler:
    """Context manager that will silently suppress Python errors and report lazycalc errors/warnings."""
    ERROR = "red"
    WARNING = "magenta"
    STEP = "cyan"

    def __init__(self, fatal=True, verbose=False):
        self.fatal = fatal
        self.verbose = verbose  # whether register_step prints
        self.traceback = {}

    def register_file(self, path):
        """Registers path in traceback."""
        self.traceback[path] = (None, None)

    def register_line(self, path, line, line_num):
        """Registers line in traceback given path. Should be called before a statement of path is processed."""
        self.traceback[path] = (line, line_num)

    def remove_line(self, path):
        """Removes line from traceback given path. Should be called after a statement was processed successfully."""
        self.traceback[path] = (None, None)

    def register_step(self, kind, label):
        """Prints an evaluation step if verbose. Used as the evaluator's tracer."""
        if self.verbose:
            print(colored(f"{kind:>6} ", ErrorHandler.STEP, attrs=["bold"]) + label)

    @staticmethod
    def diagnose(error, warning=False):
        """Returns offending part of error.expr highlighted and bolded."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR

        diagnosis = "  " + error.expr[:error.start]

        end = max(error.end, error.start + 1)
        diagnosis += colored(error.expr[error.start:end], color, attrs=["bold"])
        diagnosis += error.expr[end:] + "\n"

        diagnosis += "  " + " " * error.start
        diagnosis += colored("^" + "~" * (end - error.start - 1), color, attrs=["bold"])

        return diagnosis

    def _location(self):
        """file:line: prefix of the innermost registered line, if any."""
        for file, (line, line_num) in reversed(list(self.traceback.items())):
            if line is not None:
                return colored(f"{file}:{line_num}: ", attrs=["bold"])
        return ""

    def warn(self, *args, **kwargs):
        """Generates and prints a runtime warning message based on args."""
        error = GenericException(*args, **kwargs)

        error_msg = self._location()
        error_msg += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + error.msg
        print(error_msg)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error, warning=True))

    def throw(self, error, fatal=None):
        """Reports error using self.traceback, a dict of file: (line, line_num) representing where the error came
        from. Exits if fatal (default: self.fatal).
        """
        if fatal is None:
            fatal = self.fatal

        error_msg = ""
        lines = 0
        for file, (line, line_num) in self.traceback.items():  # assumes dict is insertion-ordered
            if line:
                error_msg += f"  File '{file}', line {line_num}:\n"
                error_msg += f"    {line}\n"
                lines += 1

        if lines > 1:
            error_msg = "Traceback:\n" + error_msg

        if getattr(error, "trace", None):
            error_msg += "Forcing:\n"
            for depth, label in enumerate(error.trace):
                error_msg += f"  {'  ' * depth}{label}\n"

        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        print(error_msg)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error))

        if fatal:
            sys.exit(1)
        self.traceback = {}  # if error occurred, reset traceback (no need if error is fatal)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(GenericException("maximum recursion depth exceeded", internal=True))
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True))
            do_exit = True

        return not do_exit
