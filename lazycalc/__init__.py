"""Call-by-need lambda calculus interpreter.

For reference:
- "pure": the core calculus (terms, environments, thunks, the evaluator), in lazycalc/pure
- "lang": the lazycalc language around it (parsing, modules and imports, sessions, the shell), in lazycalc/lang

Basic program flow:
    1. Parser: source text -> imports and bindings of pure lambda calculus terms (lang/lexical.py)
    2. Loader: follows import statements from the root file to every module it needs (lang/loader.py)
    3. Resolver: links modules into per-module binding tables; no evaluation happens here (lang/modules.py)
    4. Evaluator: forces the requested binding lazily, evaluating only what it demands (pure/evaluator.py)
"""
