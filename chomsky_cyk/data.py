from chomsky_cyk.grammar import Grammar

# Sample grammars: nonterminals, terminals, rules, start, and words marked with "*" when
# they are not in the language.

balanced = {
    "nonterminals": "S",
    "terminals": "ab",
    "rules": ["S->aSbS", "S->"],
    "start": "S",
    "words": ["", "ab", "aababb", "abab", "*aabbba", "*a", "*ba"],
}

anbn = {
    "nonterminals": "SAB",
    "terminals": "ab",
    "rules": ["S->ASB", "A->a", "B->b", "S->"],
    "start": "S",
    "words": ["", "ab", "aaabbb", "*aaabb", "*abab", "*b"],
}

arithmetic = {
    "nonterminals": "ETFN",
    "terminals": "1234567890+*()",
    "rules": [
        "E->E+T", "E->T",
        "T->T*F", "T->F",
        "F->(E)", "F->N",
        "N->0", "N->1", "N->2", "N->3", "N->4", "N->5", "N->6", "N->7", "N->8", "N->9",
        "N->NN",
    ],
    "start": "E",
    "words": ["1", "12", "1+2", "(1+2)*3", "2*(3+4)*5", "*", "*1+", "*(1", "*()", "*+1"],
}

SAMPLES = {
    "balanced": balanced,
    "anbn": anbn,
    "arithmetic": arithmetic,
}


def load(name: str) -> Grammar:
    """Builds the sample grammar registered under ``name`` in :data:`SAMPLES`."""
    sample = SAMPLES[name]
    return Grammar.build(sample["nonterminals"], sample["terminals"], sample["rules"], start=sample["start"])


def words(name: str) -> tuple[list[str], list[str]]:
    """Splits the sample words of ``name`` into (accepted, rejected)."""
    accepted, rejected = [], []
    for word in SAMPLES[name]["words"]:
        if word.startswith("*"):
            rejected.append(word[1:])
        else:
            accepted.append(word)
    return accepted, rejected
