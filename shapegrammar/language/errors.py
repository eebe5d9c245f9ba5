# shapegrammar/language/errors.py
"""
Error taxonomy for grammar parsing, validation and expansion.

Every problem a user can cause is a GrammarError carrying the offending name,
raised before any expansion or rendering happens. ExpansionError is reserved
for failures inside an already validated grammar, which indicate a defect.
"""


class GrammarError(ValueError):
    """Base class for all user-facing grammar problems."""
    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


class GrammarSyntaxError(GrammarError):
    """Raised by the parser when the program text cannot be read."""
    def __init__(self, message: str, line: int, column: int, fragment: str = ""):
        super().__init__(fragment, f"{message} (line {line}, column {column})")
        self.line = line
        self.column = column


class UndefinedVariable(GrammarError):
    def __init__(self, name: str):
        super().__init__(name, f"Variable '{name}' is not defined")


class UnknownRule(GrammarError):
    def __init__(self, name: str):
        super().__init__(name, f"Rule '{name}' does not exist")


class DuplicateDefinition(GrammarError):
    def __init__(self, name: str):
        super().__init__(name, f"'{name}' is defined more than once")


class UnreachableCase(GrammarError):
    def __init__(self, name: str):
        super().__init__(name, f"Rule '{name}' is defined after an unconditional rule of the same name")


class UnknownProperty(GrammarError):
    def __init__(self, name: str):
        super().__init__(name, f"Property '{name}' is not defined")


class ExpansionError(RuntimeError):
    """Raised when a validated grammar fails to evaluate during expansion."""
    pass
