"""Lexical analysis and parsing for the lazycalc language: source text in, pure lambda calculus terms out.

All grammar can be loosely defined as follows:

```
<module>      ::= (<import_stmt> | <binding>)*
<import_stmt> ::= ("import" | "use") "{" <item> ("," <item>)* "}" "from" <string> ";"
<item>        ::= <name> ("as" <name>)?              ; the alias is the local name, defaults to <name>
<binding>     ::= <name> "=" <expr> ";"

<expr>        ::= <lambda> | <atom>+ <lambda>?       ; juxtaposition, associating by left
<lambda>      ::= <name> "=>" <expr>
                | "(" <name> ("," <name>)* ")" "=>" <expr>
<atom>        ::= <name> | "(" <expr> ")"

<comment>     ::= "#" <char>*                        ; only as the first non-blank character of a line
```

A lambda body extends as far right as possible, so a lambda can only be the last operand of an application:

```
Y f => n => f n           =   Y (f => (n => (f n)))
(x => x x) x => x x       =   (x => x x) (x => x x)
```

Names start with a letter or underscore and may contain letters, digits, "_", "'", "?" and "!" (Suc', Zero?).
"""

import re
from dataclasses import dataclass, field

from lazycalc.lang.error import ParseError
from lazycalc.pure.terms import Abstraction, Application, Variable


KEYWORDS = {"import", "use", "from", "as"}

_TOKEN = re.compile(r"""
    (?P<space>\s+)
  | (?P<name>[A-Za-z_][A-Za-z0-9_'?!]*)
  | (?P<string>"[^"\n]*")
  | (?P<arrow>=>)
  | (?P<punct>[=;,(){}])
""", re.VERBOSE)


@dataclass(frozen=True)
class Token:
    kind: str    # "name", "keyword", "string", "=>", one of "=;,(){}", or "eof"
    text: str
    line: int
    col: int


@dataclass(frozen=True)
class Import:
    """import { name as alias, ... } from "source";  names is a tuple of (name, alias) pairs."""
    names: tuple
    source: str
    line: int = 0


@dataclass(frozen=True)
class Binding:
    name: str
    term: object
    line: int = 0


@dataclass
class ModuleSource:
    """A parsed but unlinked module."""
    id: str
    imports: list = field(default_factory=list)
    bindings: list = field(default_factory=list)
    path: str = None


def is_comment(line):
    """Whether line is a comment line: its first non-blank character is '#'."""
    return line.lstrip().startswith("#")


def tokenize(text):
    """Returns the list of Tokens in text, ending with an "eof" token. Comment lines are skipped."""
    tokens = []
    lines = text.split("\n")
    for line_num, line in enumerate(lines, 1):
        if is_comment(line):
            continue

        pos = 0
        while pos < len(line):
            match = _TOKEN.match(line, pos)
            if match is None:
                raise ParseError("unexpected character", line, line_num, start=pos)

            kind = match.lastgroup
            value = match.group()
            if kind == "name" and value in KEYWORDS:
                kind = "keyword"
            elif kind in ("arrow", "punct"):
                kind = value

            if kind != "space":
                tokens.append(Token(kind, value, line_num, pos))
            pos = match.end()

    tokens.append(Token("eof", "", len(lines), len(lines[-1])))
    return tokens


class Parser:
    """Recursive descent parser over the token list of one source text."""

    def __init__(self, text, path="<in>"):
        self.text = text
        self.lines = text.split("\n")
        self.path = path
        self.tokens = tokenize(text)
        self.pos = 0

    @property
    def current(self):
        return self.tokens[self.pos]

    def peek(self, offset=1):
        return self.tokens[min(self.pos + offset, len(self.tokens) - 1)]

    def advance(self):
        token = self.current
        if token.kind != "eof":
            self.pos += 1
        return token

    def error(self, msg, token=None):
        """Returns a ParseError pointing at token (default: the current token)."""
        token = token or self.current
        line = self.lines[token.line - 1] if token.line <= len(self.lines) else ""
        return ParseError(msg, line, token.line, start=token.col, end=token.col + max(len(token.text), 1))

    def expect(self, kind, what=None):
        if self.current.kind != kind:
            found = self.current.text or "end of input"
            raise self.error(f"expected {what or repr(kind)} but found '{found}'")
        return self.advance()

    def accept(self, kind, text=None):
        if self.current.kind == kind and (text is None or self.current.text == text):
            return self.advance()
        return None

    # statements

    def parse_module(self, module_id=None):
        """Parses the whole text as a module."""
        source = ModuleSource(module_id or self.path, path=self.path)
        while self.current.kind != "eof":
            statement = self.parse_statement()
            if isinstance(statement, Import):
                source.imports.append(statement)
            else:
                source.bindings.append(statement)
        return source

    def parse_statement(self):
        if self.current.kind == "keyword" and self.current.text in ("import", "use"):
            return self.parse_import()
        if self.current.kind == "name" and self.peek().kind == "=":
            return self.parse_binding()
        raise self.error("expected an import or a binding")

    def parse_import(self, terminated=True):
        line = self.advance().line
        self.expect("{")

        names = [self.parse_import_item()]
        while self.accept(","):
            names.append(self.parse_import_item())

        self.expect("}")
        if not self.accept("keyword", "from"):
            raise self.error("expected 'from'")
        source = self.expect("string", "a quoted module path").text[1:-1]
        if terminated:
            self.expect(";")
        else:
            self.accept(";")
        return Import(tuple(names), source, line)

    def parse_import_item(self):
        name = self.expect("name", "a name").text
        alias = name
        if self.accept("keyword", "as"):
            alias = self.expect("name", "a name").text
        return name, alias

    def parse_binding(self):
        name = self.advance()
        self.expect("=")
        term = self.parse_expr()
        self.expect(";")
        return Binding(name.text, term, name.line)

    def parse_entry(self):
        """Parses one shell entry: an import, a binding or a bare expression. The trailing ';' is optional."""
        if self.current.kind == "keyword" and self.current.text in ("import", "use"):
            entry = self.parse_import(terminated=False)
        elif self.current.kind == "name" and self.peek().kind == "=":
            name = self.advance()
            self.expect("=")
            entry = Binding(name.text, self.parse_expr(), name.line)
            self.accept(";")
        else:
            entry = self.parse_expr()
            self.accept(";")

        if self.current.kind != "eof":
            raise self.error(f"unexpected '{self.current.text}'")
        return entry

    # expressions

    def at_lambda(self):
        """Whether a lambda starts at the current token."""
        if self.current.kind == "name":
            return self.peek().kind == "=>"
        if self.current.kind != "(":
            return False

        offset = 1
        while True:
            if self.peek(offset).kind != "name":
                return False
            following = self.peek(offset + 1).kind
            if following == ")":
                return self.peek(offset + 2).kind == "=>"
            if following != ",":
                return False
            offset += 2

    def parse_expr(self):
        if self.at_lambda():
            return self.parse_lambda()

        function = self.parse_atom()
        arguments = []
        while True:
            if self.at_lambda():
                arguments.append(self.parse_lambda())
                break
            if self.current.kind not in ("name", "("):
                break
            arguments.append(self.parse_atom())
        return Application.chain(function, arguments)

    def parse_lambda(self):
        if self.accept("("):
            params = [self.expect("name", "a parameter").text]
            while self.accept(","):
                params.append(self.expect("name", "a parameter").text)
            self.expect(")")
        else:
            params = [self.advance().text]
        self.expect("=>")
        return Abstraction.curried(params, self.parse_expr())

    def parse_atom(self):
        if self.current.kind == "name":
            return Variable(self.advance().text)
        if self.accept("("):
            term = self.parse_expr()
            self.expect(")")
            return term
        found = self.current.text or "end of input"
        raise self.error(f"expected an expression but found '{found}'")


def parse_module(text, module_id="<in>", path=None):
    """Parses text as a module named module_id."""
    return Parser(text, path or module_id).parse_module(module_id)


def parse_term(text):
    """Parses text as a single expression."""
    parser = Parser(text)
    term = parser.parse_expr()
    if parser.current.kind != "eof":
        raise parser.error(f"unexpected '{parser.current.text}'")
    return term
