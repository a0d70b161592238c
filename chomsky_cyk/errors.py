class GrammarError(ValueError):
    """Base class for every error raised while building or normalizing a grammar."""


class UnknownSymbolError(GrammarError):
    """
    Raised when a symbol does not belong to the alphabet it is checked against.

    :param symbol: The offending symbol.
    :param kind: The kind of symbol that was expected, or ``None`` when the symbol
        belongs to neither alphabet.
    """

    def __init__(self, symbol: str, kind: str | None = None):
        self.symbol = symbol
        self.kind = kind
        if kind is None:
            message = f"Symbol {symbol!r} is neither a terminal nor a non-terminal"
        else:
            message = f"{kind.capitalize()} symbol {symbol!r} is not allowed"
        super().__init__(message)


class UndeclaredNonterminalError(GrammarError):
    def __init__(self, symbol: str, message: str | None = None):
        self.symbol = symbol
        super().__init__(message or f"Symbol {symbol!r} is not a declared non-terminal")


class UndeclaredSymbolError(GrammarError):
    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Symbol {symbol!r} is not in the grammar alphabet")


class MalformedRuleError(GrammarError):
    def __init__(self, rule: str):
        self.rule = rule
        super().__init__(f"No '->' in rule: {rule!r}")


class NormalizationError(GrammarError):
    """Raised when a grammar cannot be brought to Chomsky Normal Form."""


class StartSymbolRemovedError(NormalizationError):
    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Trying to delete the start symbol {symbol!r} of the grammar")


class NonterminalCapacityExhaustedError(NormalizationError):
    def __init__(self, alphabet_size: int):
        self.alphabet_size = alphabet_size
        super().__init__(
            f"No unused non-terminal left: all {alphabet_size} symbols of the alphabet are taken"
        )
