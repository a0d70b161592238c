from chomsky_cyk.alphabet import DEFAULT_ALPHABET, Alphabet, SymbolKind, classify, is_nonterminal, is_terminal
from chomsky_cyk.cyk import CYKRecognizer, cyk_table, extract_trees, recognition_table
from chomsky_cyk.errors import (
    GrammarError,
    MalformedRuleError,
    NonterminalCapacityExhaustedError,
    NormalizationError,
    StartSymbolRemovedError,
    UndeclaredNonterminalError,
    UndeclaredSymbolError,
    UnknownSymbolError,
)
from chomsky_cyk.grammar import Grammar, Rule
from chomsky_cyk.normalization import is_cnf, to_cnf

__version__ = "0.1.0"
