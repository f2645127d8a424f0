"""Handles interactive/command-line mode for the lazycalc interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """Lazy lambda calculus interpreter shell."""
    intro = "lazycalc :: call-by-need lambda calculus\nType '?' or 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

        self._tmp_line = ""
        self.line_num = 0

    @staticmethod
    def continues(line):
        """Whether line needs another line to be complete: its parentheses or braces are still open."""
        return line.count("(") > line.count(")") or line.count("{") > line.count("}")

    def default(self, line):
        """Adds an import, binding or expression to the session and prints the result of expressions."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.line_num += 1
            line = f"{self._tmp_line} {line}".strip() if self._tmp_line else line

            if self.continues(line):
                self._tmp_line = line
                self.prompt = self.secondary_prompt
                return

            self._tmp_line = ""
            self.prompt = self._tmp_prompt

            self.sess.add(line, self.line_num)
            while self.sess.results:
                print(self.sess.pop())

    def do_names(self, arg):
        """Lists the names bound in the shell."""
        print(" ".join(self.sess.shell.names()))

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to lazycalc!\n\n"
              "Every line is an import, a binding or an expression:\n\n"
              "  import { Sum, Suc } from \"numbers\"\n"
              "  Two = Suc (Suc Zero)\n"
              "  Sum Two Two\n\n"
              "Expressions are evaluated lazily (call-by-need) and printed in normal form. Bindings are\n"
              "only evaluated when an expression needs them, so 'Loop = (x => x x) x => x x' is fine\n"
              "until you ask for Loop. Type 'names' to list bound names, 'exit' to leave.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
