"""Pure lambda calculus: terms, environments and call-by-need evaluation."""
