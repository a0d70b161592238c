import time

import pytest

from chomsky_cyk import cyk, data
from chomsky_cyk.alphabet import Alphabet
from chomsky_cyk.cyk import CYKRecognizer, cyk_table, extract_trees, recognition_table
from chomsky_cyk.errors import NonterminalCapacityExhaustedError, StartSymbolRemovedError
from chomsky_cyk.grammar import Grammar
from chomsky_cyk.normalization import is_cnf, to_cnf


def test_balanced_brackets():
    algo = CYKRecognizer().fit(data.load("balanced"))
    assert algo.predict("aababb") is True
    assert algo.predict("aabbba") is False
    assert algo.predict("") is True


def test_anbn():
    algo = CYKRecognizer().fit(data.load("anbn"))
    assert algo.predict("aaabbb") is True
    assert algo.predict("aaabb") is False
    assert algo.predict("") is True


@pytest.mark.parametrize("name", sorted(data.SAMPLES))
def test_sample_words(name):
    algo = CYKRecognizer().fit(data.load(name))
    accepted, rejected = data.words(name)
    for word in accepted:
        assert algo.predict(word), word
    for word in rejected:
        assert not algo.predict(word), word


def test_empty_word_without_epsilon():
    algo = CYKRecognizer().fit(Grammar.build("S", "a", ["S->a", "S->aS"]))
    assert algo.predict("") is False
    assert algo.predict("aaa") is True


def test_empty_word_never_builds_a_table(monkeypatch):
    def boom(*args, **kwargs):
        raise AssertionError("table built for the empty word")

    monkeypatch.setattr(cyk, "cyk_table", boom)
    monkeypatch.setattr(cyk, "recognition_table", boom)
    assert CYKRecognizer().predict("") is False
    assert CYKRecognizer().fit(data.load("balanced")).predict("") is True


def test_unfitted_recognizer_rejects_everything():
    algo = CYKRecognizer()
    assert algo.grammar.rules == set()
    assert not algo.predict("")
    assert not algo.predict("a")


def test_undeclared_characters_match_nothing():
    algo = CYKRecognizer().fit(data.load("balanced"))
    assert algo.predict("abc") is False
    assert algo.predict("#") is False


def test_word_as_symbol_sequence():
    algo = CYKRecognizer().fit(data.load("anbn"))
    assert algo.predict(["a", "a", "b", "b"])
    assert algo.predict(("a", "b"))


def test_fit_keeps_the_normalized_grammar():
    g = data.load("arithmetic")
    algo = CYKRecognizer().fit(g)
    assert is_cnf(algo.grammar)
    assert algo.grammar == to_cnf(g)
    assert algo.source_start == "E"


def test_failed_fit_keeps_the_previous_grammar():
    algo = CYKRecognizer().fit(data.load("anbn"))
    fitted = algo.grammar
    with pytest.raises(StartSymbolRemovedError):
        algo.fit(Grammar.build("SA", "a", ["S->aA", "A->aS"]))
    with pytest.raises(NonterminalCapacityExhaustedError):
        algo.fit(Grammar.build("S", "ab", ["S->aS", "S->b"], alphabet=Alphabet("S", "ab")))
    assert algo.grammar is fitted
    assert algo.predict("aabb")


def test_refit_replaces_the_grammar():
    algo = CYKRecognizer().fit(data.load("anbn"))
    assert algo.predict("ab")
    algo.fit(Grammar.build("S", "ab", ["S->ba"]))
    assert not algo.predict("ab")
    assert algo.predict("ba")
    assert not algo.predict("")


def test_table_spans():
    cnf = to_cnf(Grammar.build("SAB", "ab", ["S->AB", "A->a", "B->b"]))
    table = cyk_table(cnf, "ab")
    assert set(table[0][1]) == {"A"}
    assert set(table[1][2]) == {"B"}
    assert set(table[0][2]) == {"S"}
    assert table[0][2]["S"] == {("binary", 1, "A", "B")}


def test_recognition_table_holds_bare_symbols():
    cnf = to_cnf(Grammar.build("SAB", "ab", ["S->AB", "A->a", "B->b"]))
    table = recognition_table(cnf, "ab")
    assert table[0][1] == {"A"}
    assert table[1][2] == {"B"}
    assert table[0][2] == {"S"}
    assert recognition_table(cnf, "ba")[0][2] == set()


def test_recognition_table_matches_backpointer_table(make_random_grammar, words_up_to):
    for seed in range(20):
        try:
            cnf = to_cnf(make_random_grammar(seed))
        except StartSymbolRemovedError:
            continue
        for word in words_up_to("ab", 4):
            if not word:
                continue
            full = cyk_table(cnf, word)
            bare = recognition_table(cnf, word)
            for i in range(len(word)):
                for j in range(i + 1, len(word) + 1):
                    assert bare[i][j] == set(full[i][j]), (seed, word, i, j)


def test_predict_on_a_long_ambiguous_word(monkeypatch):
    algo = CYKRecognizer().fit(Grammar.build("S", "a", ["S->SS", "S->a"]))

    def boom(*args, **kwargs):
        raise AssertionError("backpointer table built for a yes/no query")

    monkeypatch.setattr(cyk, "cyk_table", boom)
    start = time.perf_counter()
    assert algo.predict("a" * 300) is True
    assert algo.predict("a" * 299 + "b") is False
    assert time.perf_counter() - start < 10


def test_parse_counts_ambiguous_derivations():
    algo = CYKRecognizer().fit(Grammar.build("S", "a", ["S->SS", "S->a"]))
    # Catalan numbers
    assert [algo.parse("a" * n)[0] for n in range(1, 6)] == [1, 1, 2, 5, 14]
    count, gen = algo.parse("aaaa")
    assert len(list(gen)) == count


def test_parse_of_rejected_word():
    algo = CYKRecognizer().fit(data.load("anbn"))
    count, gen = algo.parse("aab")
    assert count == 0
    assert list(gen) == []


def test_parse_of_empty_word():
    algo = CYKRecognizer().fit(data.load("anbn"))
    count, gen = algo.parse("")
    assert count == 1
    assert list(gen) == [(algo.grammar.start,)]


def test_extract_trees_yields_nested_tuples():
    cnf = to_cnf(Grammar.build("SAB", "ab", ["S->AB", "A->a", "B->b"]))
    count, gen = extract_trees(cyk_table(cnf, "ab"), "ab", start_symbol="S")
    assert count == 1
    assert list(gen) == [("S", ("A", "a"), ("B", "b"))]


def test_predict_agrees_with_direct_derivation(reference, make_random_grammar, words_up_to):
    words = words_up_to("ab", 4)
    for seed in range(80):
        g = make_random_grammar(seed)
        snapshot = g.copy()
        algo = CYKRecognizer()
        try:
            algo.fit(g)
        except StartSymbolRemovedError:
            assert not any(reference(g, word) for word in words), seed
            continue
        assert g == snapshot
        assert is_cnf(algo.grammar), seed
        for word in words:
            assert algo.predict(word) == reference(g, word), (seed, word, str(g))


def test_normalizing_twice_keeps_the_language(reference, words_up_to):
    for name in ("balanced", "anbn"):
        once = to_cnf(data.load(name))
        twice = to_cnf(once)
        assert is_cnf(twice)
        algo_once = CYKRecognizer().fit(once)
        algo_twice = CYKRecognizer().fit(twice)
        for word in words_up_to("ab", 6):
            assert algo_once.predict(word) == algo_twice.predict(word) == reference(data.load(name), word)
