import itertools
import random

import pytest

from chomsky_cyk.grammar import Grammar


def derives(grammar: Grammar, word: str) -> bool:
    """
    Membership straight from the definition, without any normal form: the least set of
    (non-terminal, i, j) such that the non-terminal derives word[i:j], grown to a fixpoint.
    Exponential in the rule length, fine for the small grammars used here.
    """
    n = len(word)
    derived: set[tuple[str, int, int]] = set()

    def matches(rhs: tuple[str, ...], i: int, j: int) -> bool:
        if not rhs:
            return i == j
        head, rest = rhs[0], rhs[1:]
        if head in grammar.terminals:
            return i < j and word[i] == head and matches(rest, i + 1, j)
        return any((head, i, k) in derived and matches(rest, k, j) for k in range(i, j + 1))

    changed = True
    while changed:
        changed = False
        for i in range(n + 1):
            for j in range(i, n + 1):
                for rule in grammar.rules:
                    key = (rule.left, i, j)
                    if key not in derived and matches(rule.right, i, j):
                        derived.add(key)
                        changed = True
    return (grammar.start, 0, n) in derived


def random_grammar(seed: int, nonterminals: str = "SAB", terminals: str = "ab",
                   max_rules: int = 5, max_length: int = 3) -> Grammar:
    rng = random.Random(seed)
    grammar = Grammar()
    for sym in nonterminals:
        grammar.add_nonterminal(sym)
    for sym in terminals:
        grammar.add_terminal(sym)
    symbols = nonterminals + terminals
    for _ in range(rng.randint(1, max_rules)):
        left = rng.choice(nonterminals)
        right = [rng.choice(symbols) for _ in range(rng.randint(0, max_length))]
        grammar.add_rule(left, right)
    return grammar


def all_words(terminals: str, max_length: int) -> list[str]:
    return ["".join(p) for n in range(max_length + 1) for p in itertools.product(terminals, repeat=n)]


@pytest.fixture
def reference():
    return derives


@pytest.fixture
def make_random_grammar():
    return random_grammar


@pytest.fixture
def words_up_to():
    return all_words
