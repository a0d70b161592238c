from enum import Enum

from chomsky_cyk.errors import UnknownSymbolError

NONTERMINALS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
TERMINALS = "abcdefghijklmnopqrstuvwxyz1234567890()+-=*/%"


class SymbolKind(Enum):
    TERMINAL = "terminal"
    NONTERMINAL = "non-terminal"


class Alphabet:
    """
    Two fixed, disjoint sets of one-character symbols: the non-terminals and the terminals.

    The non-terminal set is ordered. Its order is the order in which the normalization
    pipeline hands out fresh non-terminals, and its size bounds how many non-terminals a
    grammar over this alphabet can ever hold.

    :param nonterminals: The non-terminal symbols, in allocation order.
    :param terminals: The terminal symbols.
    :raises ValueError: If a symbol is not a single character, or if both sets share a symbol.
    """

    def __init__(self, nonterminals: str = NONTERMINALS, terminals: str = TERMINALS):
        for sym in (*nonterminals, *terminals):
            if len(sym) != 1:
                raise ValueError(f"Alphabet symbols must be single characters, got {sym!r}")
        shared = set(nonterminals) & set(terminals)
        if shared:
            raise ValueError(f"Terminal and non-terminal alphabets overlap on {sorted(shared)}")

        # dict.fromkeys drops duplicates while keeping the allocation order
        self.nonterminals: tuple[str, ...] = tuple(dict.fromkeys(nonterminals))
        self.terminals: frozenset[str] = frozenset(terminals)
        self._nonterminal_set = frozenset(self.nonterminals)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Alphabet):
            return NotImplemented
        return self.nonterminals == other.nonterminals and self.terminals == other.terminals

    def __hash__(self) -> int:
        return hash((self.nonterminals, self.terminals))

    def __repr__(self) -> str:
        return f"Alphabet({''.join(self.nonterminals)!r}, {''.join(sorted(self.terminals))!r})"

    def is_terminal(self, sym: str) -> bool:
        return sym in self.terminals

    def is_nonterminal(self, sym: str) -> bool:
        return sym in self._nonterminal_set

    def classify(self, sym: str) -> SymbolKind:
        """
        Tells whether a symbol is a terminal or a non-terminal of this alphabet.

        :param sym: The symbol to classify.
        :return: The kind of the symbol.
        :raises UnknownSymbolError: If the symbol belongs to neither set.
        """

        if self.is_terminal(sym):
            return SymbolKind.TERMINAL
        if self.is_nonterminal(sym):
            return SymbolKind.NONTERMINAL
        raise UnknownSymbolError(sym)

    def check_terminal(self, sym: str) -> None:
        if not self.is_terminal(sym):
            raise UnknownSymbolError(sym, SymbolKind.TERMINAL.value)

    def check_nonterminal(self, sym: str) -> None:
        if not self.is_nonterminal(sym):
            raise UnknownSymbolError(sym, SymbolKind.NONTERMINAL.value)


DEFAULT_ALPHABET = Alphabet()


def classify(sym: str) -> SymbolKind:
    return DEFAULT_ALPHABET.classify(sym)


def is_terminal(sym: str) -> bool:
    return DEFAULT_ALPHABET.is_terminal(sym)


def is_nonterminal(sym: str) -> bool:
    return DEFAULT_ALPHABET.is_nonterminal(sym)
