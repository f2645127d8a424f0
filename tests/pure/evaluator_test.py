import unittest

from lazycalc.lang.error import CyclicValueError, NotAFunctionError, StepLimitExceeded, UnboundNameError
from lazycalc.lang.lexical import parse_module, parse_term
from lazycalc.lang.modules import resolve
from lazycalc.lang.numerical import cnumber, number
from lazycalc.pure.environment import Closure, Constant, Environment, Primitive, Thunk
from lazycalc.pure.evaluator import Evaluator, fresh_name


CHURCH = """
# Natural numbers
Zero' = (s, z) => z;
Suc' = n => (s, z) => s (n s z);
Sum = (m, n) => m Suc' n;

Loop = (x => x x) x => x x;
Y = f => (x => f (x x)) (x => f (x x));

Two = (s, z) => s (s z);
K = (x, y) => x;
"""


def load(text):
    return resolve([parse_module(text, "main")])["main"]


class EvaluatorTestCase(unittest.TestCase):

    def setUp(self):
        self.events = []
        self.evaluator = Evaluator(max_steps=100_000, tracer=lambda kind, label: self.events.append((kind, label)))

    def force(self, module, name):
        return self.evaluator.force(module.lookup(name))

    def test_memoization(self):
        module = load("Id = x => x;\nA = Id Id;\nD = (a => a a) A;")
        thunk = module.lookup("A")

        first = self.evaluator.force(thunk)
        steps, evals = self.evaluator.steps, self.evaluator.thunk_evals
        second = self.evaluator.force(thunk)

        self.assertIs(first, second)
        self.assertEqual(steps, self.evaluator.steps)
        self.assertEqual(evals, self.evaluator.thunk_evals)

    def test_argument_evaluated_once(self):
        module = load("Id = x => x;\nA = Id Id;\nD = (a => a a) A;")
        self.force(module, "D")
        self.assertEqual(1, self.events.count(("force", "A")))
        self.assertEqual(1, self.events.count(("value", "A")))

    def test_unused_arguments_are_not_forced(self):
        module = load(CHURCH + "Safe = K Two Loop;\nAlsoSafe = K Two Undefined;")
        self.assertIs(self.force(module, "Two"), self.force(module, "Safe"))
        self.assertIs(self.force(module, "Two"), self.force(module, "AlsoSafe"))
        self.assertFalse(module.lookup("Loop").forced)

    def test_unbound_name(self):
        module = load("Bad = Id Undefined;\nId = x => x;")
        with self.assertRaises(UnboundNameError) as context:
            self.force(module, "Bad")
        self.assertEqual("Undefined", context.exception.name)
        self.assertEqual(["Bad", "Undefined"], context.exception.trace)

    def test_shadowing(self):
        module = load("n = (a, b) => a;\nF = n => n;\nG = F ((a, b) => b);")
        self.assertEqual(parse_term("(a, b) => b"), self.evaluator.normalize(self.force(module, "G")))

    def test_sum_is_extensionally_two(self):
        module = load(CHURCH + "S = Sum Zero' Two;")
        total = self.force(module, "S")

        self.assertEqual(2, number(self.evaluator, total))
        self.assertEqual(number(self.evaluator, self.force(module, "Two")), number(self.evaluator, total))
        self.assertEqual(parse_term("(s, z) => s (s z)"), self.evaluator.normalize(total))

    def test_y_with_step_ignoring_recursion(self):
        module = load(CHURCH + "Step = rec => (s, z) => z;\nR = Y Step;")
        self.evaluator.max_steps = 50

        result = self.force(module, "R")
        self.assertIsInstance(result, Closure)
        self.assertEqual(parse_term("(s, z) => z"), self.evaluator.normalize(result))

    def test_y_recursion(self):
        # Double 0 = 0, Double n = Suc (Suc (Double (Pred n)))
        module = load(CHURCH + """
            Pred = n => (s, z) => n (g => h => h (g s)) (u => z) (u => u);
            IsZero = n => n (x => (t, f) => f) ((t, f) => t);
            Double = Y self => n => IsZero n Zero' (Suc' (Suc' (self (Pred n))));
            Six = Double (Suc' (Suc' (Suc' Zero')));
        """)
        self.assertEqual(6, number(self.evaluator, self.force(module, "Six")))

    def test_loop_does_not_terminate(self):
        module = load(CHURCH)
        loop = module.lookup("Loop")

        for bound in (10, 1_000, 50_000):
            self.evaluator.max_steps = bound
            with self.assertRaises(StepLimitExceeded) as context:
                self.evaluator.force(loop)
            self.assertEqual(["Loop"], context.exception.trace)
            self.assertEqual(Thunk.UNFORCED, loop.state)

    def test_cyclic_value(self):
        module = load("A = B;\nB = A;\nC = x => x;\nOnes = s => s Ones;")
        with self.assertRaises(CyclicValueError) as context:
            self.force(module, "A")
        self.assertEqual("A", context.exception.name)
        self.assertEqual(["A", "B"], context.exception.trace)

        # the failed request leaves nothing half-forced
        self.assertEqual(Thunk.UNFORCED, module.lookup("A").state)
        self.assertEqual(Thunk.UNFORCED, module.lookup("B").state)
        self.assertRaises(CyclicValueError, self.force, module, "B")

        # cycles through an abstraction are fine
        self.assertIsInstance(self.force(module, "C"), Closure)
        self.assertIsInstance(self.force(module, "Ones"), Closure)

    def test_self_reference(self):
        module = load("Self = Self;")
        self.assertRaises(CyclicValueError, self.force, module, "Self")

    def test_not_a_function(self):
        env = Environment.root({"c": Thunk.evaluated(Constant(1))})
        with self.assertRaises(NotAFunctionError) as context:
            self.evaluator.evaluate(parse_term("c c"), env)
        self.assertEqual(Constant(1), context.exception.value)

        self.assertRaises(NotAFunctionError, self.evaluator.apply, Constant(1), Thunk.evaluated(Constant(2)))

    def test_primitive(self):
        double = Primitive("double", lambda value: Constant(value.value * 2))
        env = Environment.root({"double": Thunk.evaluated(double), "three": Thunk.evaluated(Constant(3))})
        self.assertEqual(Constant(6), self.evaluator.evaluate(parse_term("(x => double x) three"), env))

    def test_deep_numerals(self):
        self.evaluator.max_steps = None
        big = self.evaluator.evaluate(cnumber(20_000), Environment.root())
        self.assertEqual(20_000, number(self.evaluator, big))

        module = load(CHURCH)
        total = self.evaluator.apply(self.force(module, "Sum"),
                                     Thunk(cnumber(3_000), Environment.root()),
                                     Thunk(cnumber(2_000), Environment.root()))
        self.assertEqual(5_000, number(self.evaluator, total))


class NormalizeTestCase(unittest.TestCase):

    def setUp(self):
        self.evaluator = Evaluator(max_steps=10_000)

    def normalize(self, text, module_text=""):
        module = load(module_text)
        return self.evaluator.normalize(self.evaluator.evaluate(parse_term(text), module.environment))

    def test_normal_forms(self):
        cases = {
            "x => x": "x => x",
            "(x => x) (y => y)": "y => y",
            "(s, z) => (x => s x) z": "(s, z) => s z",
            "K K": "(y, x, y') => x",
            "(x => y => x) (y => y)": "(y, y') => y'",
            "Suc' (Suc' Zero')": "(s, z) => s (s z)",
        }
        for text, expected in cases.items():
            self.assertEqual(parse_term(expected), self.normalize(text, CHURCH), text)

    def test_no_normal_form(self):
        self.assertRaises(StepLimitExceeded, self.normalize, "f => Loop", CHURCH)

    def test_no_full_normal_form(self):
        # Y has a head normal form, f => f (f (f ...)), but the read-back never finishes
        self.evaluator.max_steps = 1_000
        module = load(CHURCH)
        y = self.evaluator.force(module.lookup("Y"))

        self.assertRaises(StepLimitExceeded, self.evaluator.normalize, y)

    def test_fresh_name(self):
        self.assertEqual("x", fresh_name("x", ()))
        self.assertEqual("x'", fresh_name("x", ("x",)))
        self.assertEqual("x''", fresh_name("x", ("x", "y", "x'")))


if __name__ == '__main__':
    unittest.main()
