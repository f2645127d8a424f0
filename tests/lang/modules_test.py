import unittest

from lazycalc.lang.error import CyclicImportError, DuplicateBindingError, LoadError, UnboundNameError
from lazycalc.lang.lexical import parse_module
from lazycalc.lang.modules import Module, dependency_order, link, resolve
from lazycalc.pure.environment import Thunk
from lazycalc.pure.evaluator import Evaluator


def sources(**texts):
    return {module_id: parse_module(text, module_id) for module_id, text in texts.items()}


BOOLEANS = "True = (t, f) => t;\nFalse = (t, f) => f;"
PAIRS = 'import { True, False } from "booleans";\nCons = (a, b) => s => s a b;\nFst = p => p True;'


class DependencyOrderTestCase(unittest.TestCase):

    def test_dependency_order(self):
        order = dependency_order(sources(
            main='import { Cons } from "pairs";\nimport { True } from "booleans";\nMain = Cons True True;',
            pairs=PAIRS,
            booleans=BOOLEANS,
        ))
        self.assertEqual(["booleans", "pairs", "main"], order)

    def test_linked_modules_are_skipped(self):
        order = dependency_order(sources(pairs=PAIRS), linked=["booleans"])
        self.assertEqual(["pairs"], order)

    def test_cycles(self):
        cases = [
            (sources(a='import { B } from "b";\nA = B;', b='import { A } from "a";\nB = A;'), ["a", "b", "a"]),
            (sources(a='import { A } from "a";\nB = A;'), ["a", "a"]),
            (sources(a='import { B } from "b";', b='import { C } from "c";', c='import { A } from "a";'),
             ["a", "b", "c", "a"]),
        ]
        for case, cycle in cases:
            with self.assertRaises(CyclicImportError) as context:
                dependency_order(case)
            self.assertEqual(cycle, context.exception.cycle)

    def test_cycle_below_root(self):
        case = sources(main='import { B } from "b";', b='import { C } from "c";\nB = C;',
                       c='import { B } from "b";\nC = B;')
        with self.assertRaises(CyclicImportError) as context:
            dependency_order(case)
        self.assertEqual(["b", "c", "b"], context.exception.cycle)

    def test_diamond_is_not_a_cycle(self):
        order = dependency_order(sources(
            main='import { L } from "left";\nimport { R } from "right";',
            left='import { T } from "top";\nL = T;',
            right='import { T } from "top";\nR = T;',
            top="T = x => x;",
        ))
        self.assertEqual(["top", "left", "right", "main"], order)

    def test_missing_module(self):
        with self.assertRaises(LoadError) as context:
            dependency_order(sources(main='import { A } from "nowhere";'))
        self.assertEqual("nowhere", context.exception.module_id)


class LinkTestCase(unittest.TestCase):

    def test_imports_share_thunks(self):
        modules = resolve(sources(
            main='import { Cons } from "pairs";\nimport { True as Yes } from "booleans";\nMain = Cons Yes Yes;',
            pairs=PAIRS,
            booleans=BOOLEANS,
        ))
        self.assertEqual(["booleans", "pairs", "main"], list(modules))

        true = modules["booleans"].lookup("True")
        self.assertIs(true, modules["pairs"].lookup("True"))
        self.assertIs(true, modules["main"].lookup("Yes"))
        self.assertIsNone(modules["main"].environment.find("True"))

        evaluator = Evaluator()
        value = evaluator.force(modules["main"].lookup("Yes"))
        self.assertIs(value, evaluator.force(modules["booleans"].lookup("True")))
        self.assertEqual(1, evaluator.thunk_evals)

    def test_nothing_is_evaluated(self):
        modules = resolve(sources(main="Loop = (x => x x) x => x x;\nBad = Undefined;\nGood = x => x;"))
        for name in ("Loop", "Bad", "Good"):
            self.assertEqual(Thunk.UNFORCED, modules["main"].lookup(name).state)

    def test_exports_are_local_only(self):
        modules = resolve(sources(pairs=PAIRS, booleans=BOOLEANS))
        self.assertEqual(["Cons", "Fst"], list(modules["pairs"].exports))
        self.assertEqual(["True", "False", "Cons", "Fst"], modules["pairs"].names())

        with self.assertRaises(UnboundNameError):
            resolve(sources(main='import { True } from "pairs";'), modules)

    def test_missing_export(self):
        with self.assertRaises(UnboundNameError):
            resolve(sources(main='import { Maybe } from "booleans";', booleans=BOOLEANS))

    def test_duplicates(self):
        cases = [
            sources(main="A = x => x;\nA = y => y;"),
            sources(main='import { True } from "booleans";\nTrue = x => x;', booleans=BOOLEANS),
            sources(main='import { True, False as True } from "booleans";', booleans=BOOLEANS),
        ]
        for case in cases:
            with self.assertRaises(DuplicateBindingError) as context:
                resolve(case)
            self.assertEqual(("True" if len(case) > 1 else "A", "main"),
                             (context.exception.name, context.exception.module_id))

    def test_resolve_with_linked(self):
        first = resolve(sources(booleans=BOOLEANS))
        second = resolve(sources(pairs=PAIRS, booleans=BOOLEANS), first)

        self.assertEqual(["pairs"], list(second))
        self.assertIs(first["booleans"].lookup("True"), second["pairs"].lookup("True"))

    def test_resolve_list(self):
        modules = resolve([parse_module(BOOLEANS, "booleans")])
        self.assertEqual(["True", "False"], modules["booleans"].names())


class ModuleTestCase(unittest.TestCase):

    def test_define(self):
        module = link(parse_module("Id = x => x;\nK = (x, y) => x;", "main"), {})
        self.assertEqual(["Id", "K"], module.names())
        self.assertEqual({"Id": 1, "K": 2}, module.lines)
        self.assertEqual("Id", module.lookup("Id").name)

        self.assertRaises(UnboundNameError, module.lookup, "S")

    def test_import_is_all_or_nothing(self):
        booleans = resolve(sources(booleans=BOOLEANS))["booleans"]
        module = link(parse_module("Id = x => x;", "main"), {})

        should_fail = [
            (DuplicateBindingError, parse_module('import { True, False as True } from "booleans";').imports[0]),
            (DuplicateBindingError, parse_module('import { True, False as Id } from "booleans";').imports[0]),
            (UnboundNameError, parse_module('import { True, Maybe } from "booleans";').imports[0]),
        ]
        for error, statement in should_fail:
            self.assertRaises(error, module.import_from, booleans, statement)
            self.assertEqual(["Id"], module.names())

        module.import_from(booleans, parse_module('import { True, False as No } from "booleans";').imports[0])
        self.assertEqual(["Id", "True", "No"], module.names())

    def test_unbound_names(self):
        module = link(parse_module("A = B C;\nB = x => x;\nD = x => y => Z x W;", "main"), {})
        self.assertEqual({"A": ["C"], "D": ["W", "Z"]}, module.unbound_names())

    def test_empty(self):
        module = Module("main")
        self.assertEqual([], module.names())
        self.assertEqual({}, module.unbound_names())


if __name__ == '__main__':
    unittest.main()
