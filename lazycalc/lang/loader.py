"""File discovery for lazycalc modules. Turns a root file into the set of ModuleSources it transitively imports, with
every import rewritten to refer to the imported module's id (its absolute path).

Module paths in import statements resolve as follows:

- "./x" and "../x" are relative to the directory of the importing file;
- absolute paths are used as they are;
- anything else is looked up in the bundled library (lazycalc/common), then in each include directory, in order.

A path without an extension gets Loader.EXTENSION.
"""

import os
from dataclasses import replace

from lazycalc.lang.error import LoadError, ParseError
from lazycalc.lang.lexical import parse_module


class Loader:
    """Reads and parses module files, caching them by absolute path."""
    EXTENSION = ".lc"
    LIBRARY = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "common")

    def __init__(self, include=(), error_handler=None):
        self.include = [os.path.abspath(path) for path in include]
        self.error_handler = error_handler
        self.sources = {}  # absolute path: ModuleSource

    def locate(self, module_path, importer=None):
        """Returns the absolute path of the file module_path refers to, as seen from the file importer."""
        if not os.path.splitext(module_path)[1]:
            module_path += Loader.EXTENSION

        if os.path.isabs(module_path):
            candidates = [module_path]
        elif module_path.startswith(("./", "../")):
            base = os.path.dirname(importer) if importer else os.getcwd()
            candidates = [os.path.join(base, module_path)]
        else:
            candidates = [os.path.join(directory, module_path) for directory in [Loader.LIBRARY] + self.include]

        for candidate in candidates:
            if os.path.isfile(candidate):
                return os.path.normpath(os.path.abspath(candidate))
        raise LoadError(module_path, "could not be found" + (f" (imported by '{importer}')" if importer else ""))

    @staticmethod
    def root_id(path):
        """Returns the module id of a file named on the command line (relative to the working directory)."""
        root = os.path.normpath(os.path.abspath(path))
        if not os.path.isfile(root):
            raise LoadError(path, "could not be found")
        return root

    def read(self, path):
        """Parses the file at absolute path into a ModuleSource, without following its imports."""
        if path in self.sources:
            return self.sources[path]

        if self.error_handler is not None:
            self.error_handler.register_file(path)
        try:
            with open(path, "r", encoding="utf-8") as file:
                text = file.read()
        except OSError:
            raise LoadError(path)

        try:
            source = parse_module(text, module_id=path, path=path)
        except ParseError as error:
            if self.error_handler is not None:
                self.error_handler.register_line(path, error.expr, error.line)
            raise

        source.imports = [replace(statement, source=self.locate(statement.source, path))
                          for statement in source.imports]

        self.sources[path] = source
        if self.error_handler is not None:
            self.error_handler.remove_line(path)
        return source

    def collect(self, path):
        """Returns {id: ModuleSource} for the file at path (relative to the working directory) and every module it
        transitively imports.
        """
        root = self.root_id(path)
        collected = {}
        pending = [root]
        while pending:
            module_id = pending.pop()
            if module_id in collected:
                continue
            source = self.read(module_id)
            collected[module_id] = source
            pending.extend(statement.source for statement in source.imports)
        return collected
