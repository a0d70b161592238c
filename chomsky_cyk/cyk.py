from collections import defaultdict
from collections.abc import Iterator, Sequence
from functools import lru_cache

from nltk import Tree

from chomsky_cyk.alphabet import Alphabet
from chomsky_cyk.grammar import Grammar, Rule, Symbol
from chomsky_cyk.logging_config import setup_logger
from chomsky_cyk.normalization import to_cnf
from chomsky_cyk.trees import to_nltk_tree

logger = setup_logger(__name__)

# Backpointers: ("terminal", symbol) or ("binary", split_k, B, C)
BackPointer = tuple
Table = list[list[dict[Symbol, set[BackPointer]]]]
SpanTable = list[list[set[Symbol]]]
# A derivation tree: (label, terminal) or (label, left_subtree, right_subtree)
DerivationTree = tuple


def cyk_table(grammar: Grammar, word: Sequence[Symbol]) -> Table:
    """
    Builds the CYK table of a word over a grammar in Chomsky Normal Form.

    The table is indexed by half-open spans: ``table[i][j]`` (``0 <= i < j <= n``) maps every
    non-terminal deriving ``word[i:j]`` to the set of backpointers explaining how. A non-terminal
    missing from a cell does not derive that span.

    1. Base case: ``A`` derives ``word[i:i+1]`` if the grammar has ``A -> word[i]``.
    2. Induction on the span length: ``A`` derives ``word[i:j]`` if there are a rule ``A -> B C``
       and a split point ``i < k < j`` such that ``B`` derives ``word[i:k]`` and ``C`` derives
       ``word[k:j]``.

    Every cell is an OR over rules and split points, so the order of evaluation has no effect on
    the result.

    :param grammar: A grammar in Chomsky Normal Form.
    :param word: The input, as a string or a sequence of one-character symbols. Symbols the
        grammar does not know simply match no rule.
    :return: The filled table. Its first row has ``n + 1`` cells, the first of which is unused.
    """

    n = len(word)
    table: Table = [[defaultdict(set) for _ in range(n + 1)] for _ in range(n)]

    # Precompute inverse grammar: RHS -> LHS rules
    inverse: dict[tuple[Symbol, ...], set[Symbol]] = defaultdict(set)
    for rule in grammar.rules:
        if rule.right:
            inverse[rule.right].add(rule.left)

    # Fill diagonal with terminal rules
    for i, sym in enumerate(word):
        for lhs in inverse.get((sym,), ()):
            table[i][i + 1][lhs].add(("terminal", sym))

    # Fill larger spans
    for span in range(2, n + 1):  # span length
        for i in range(n - span + 1):  # start index
            j = i + span  # end index
            for k in range(i + 1, j):  # split point
                left_cell = table[i][k]
                right_cell = table[k][j]

                for B in left_cell:
                    for C in right_cell:
                        for lhs in inverse.get((B, C), ()):
                            table[i][j][lhs].add(("binary", k, B, C))

    return table


def recognition_table(grammar: Grammar, word: Sequence[Symbol]) -> SpanTable:
    """
    Builds the membership-only CYK table of a word over a grammar in Chomsky Normal Form.

    Same spans as :func:`cyk_table`, but ``table[i][j]`` is just the set of non-terminals
    deriving ``word[i:j]``. A rule ``A -> B C`` stops trying split points as soon as one works,
    and is skipped altogether once ``A`` is in the cell, so the table takes O(n^2 * |N|) memory
    whatever the ambiguity of the grammar.

    :param grammar: A grammar in Chomsky Normal Form.
    :param word: The input, as a string or a sequence of one-character symbols.
    :return: The filled table.
    """

    n = len(word)
    table: SpanTable = [[set() for _ in range(n + 1)] for _ in range(n)]

    producers: dict[Symbol, set[Symbol]] = defaultdict(set)
    binary: list[Rule] = []
    for rule in grammar.rules:
        if len(rule.right) == 1:
            producers[rule.right[0]].add(rule.left)
        elif len(rule.right) == 2:
            binary.append(rule)

    for i, sym in enumerate(word):
        table[i][i + 1].update(producers.get(sym, ()))

    for span in range(2, n + 1):
        for i in range(n - span + 1):
            j = i + span
            cell = table[i][j]
            for rule in binary:
                if rule.left in cell:
                    continue
                B, C = rule.right
                for k in range(i + 1, j):
                    if B in table[i][k] and C in table[k][j]:
                        cell.add(rule.left)
                        break

    return table


def extract_trees(table: Table, word: Sequence[Symbol], start_symbol: Symbol = "S") -> tuple:
    """
    Returns (count, generator) where:
      - count is the exact number of derivation trees of the word (computed by DP)
      - generator yields the trees lazily, one at a time

    Trees are nested tuples: ``(A, terminal)`` for a terminal rule and ``(A, left, right)`` for
    a binary rule. They are derivations in the CNF grammar the table was built from.
    """

    n = len(word)
    if n == 0:
        return 0, iter(())

    @lru_cache(maxsize=None)
    def count(symbol: Symbol, i: int, j: int) -> int:
        cell = table[i][j]
        if symbol not in cell:
            return 0
        total = 0
        for bp in cell[symbol]:
            kind = bp[0]
            if kind == "terminal":
                total += 1
            elif kind == "binary":
                _, k, B, C = bp
                total += count(B, i, k) * count(C, k, j)
            else:
                raise ValueError(f"Unknown backpointer kind: {kind}")
        return total

    total_trees = count(start_symbol, 0, n)

    # gen_state maps (symbol,i,j) -> dict with keys: cache(list), producer(generator), finished(bool)
    gen_state: dict[tuple[Symbol, int, int], dict] = {}

    def node_producer(symbol: Symbol, i: int, j: int) -> Iterator[DerivationTree]:
        # sorted so that trees come out in the same order on every run
        for bp in sorted(table[i][j].get(symbol, ())):
            kind = bp[0]
            if kind == "terminal":
                yield (symbol, bp[1])
            elif kind == "binary":
                _, k, B, C = bp
                # rights are replayed from the cache of (C, k, j) for every left
                for left in yield_from_node(B, i, k):
                    for right in yield_from_node(C, k, j):
                        yield (symbol, left, right)
            else:
                raise ValueError(f"Unknown backpointer kind: {kind}")

    def yield_from_node(symbol: Symbol, i: int, j: int) -> Iterator[DerivationTree]:
        """
        Iterator that yields trees for (symbol,i,j), using incremental caching.
        """
        key = (symbol, i, j)
        if key not in gen_state:
            gen_state[key] = {'cache': [], 'producer': node_producer(symbol, i, j), 'finished': False}

        state = gen_state[key]

        # First yield from already cached results
        for item in state['cache']:
            yield item

        if state['finished']:
            return

        # Pull new items from the producer one at a time, append to cache, yield each.
        prod = state['producer']
        for next_item in prod:
            state['cache'].append(next_item)
            yield next_item
        state['finished'] = True

    def tree_generator() -> Iterator[DerivationTree]:
        if total_trees == 0:
            return
        yield from yield_from_node(start_symbol, 0, n)

    return total_trees, tree_generator()


class CYKRecognizer:
    """
    Decides membership of words in the language of a context-free grammar.

    :meth:`fit` converts the grammar to Chomsky Normal Form once and caches the result;
    :meth:`predict` then answers any number of queries against the cached grammar. Each query
    builds its own table, so concurrent queries on one recognizer do not interfere. :meth:`fit`
    replaces the cached grammar and must not run while queries are in flight.

    Until :meth:`fit` succeeds the recognizer holds an empty grammar and rejects every word.

    :param alphabet: The alphabet of the initial empty grammar.
    """

    def __init__(self, alphabet: Alphabet | None = None):
        self.grammar = Grammar(alphabet)
        self.source_start: Symbol = self.grammar.start

    def fit(self, grammar: Grammar) -> "CYKRecognizer":
        """
        Converts ``grammar`` to Chomsky Normal Form and caches it for later queries.

        :param grammar: Any context-free grammar. It is not modified.
        :return: The recognizer itself.
        :raises NormalizationError: If the grammar cannot be normalized. The previously cached
            grammar stays in place.
        """

        cnf = to_cnf(grammar)
        self.grammar = cnf
        self.source_start = grammar.start
        logger.info("Fitted grammar: %d rules over %d non-terminals in CNF",
                    len(cnf.rules), len(cnf.nonterminals))
        return self

    def accepts_empty(self) -> bool:
        return Rule(self.grammar.start, ()) in self.grammar.rules

    def predict(self, word: Sequence[Symbol]) -> bool:
        """
        Tells whether ``word`` is in the language of the fitted grammar.

        :param word: The input, as a string or a sequence of one-character symbols.
        :return: True if the start symbol derives the word.
        """

        if len(word) == 0:
            return self.accepts_empty()
        table = recognition_table(self.grammar, word)
        return self.grammar.start in table[0][len(word)]

    def parse(self, word: Sequence[Symbol]) -> tuple:
        """
        Returns ``(count, generator)`` of the derivation trees of ``word`` in the fitted CNF
        grammar, see :func:`extract_trees`. The empty word, when accepted, has exactly one
        derivation: the tree made of the start symbol alone.
        """

        if len(word) == 0:
            if self.accepts_empty():
                return 1, iter([(self.grammar.start,)])
            return 0, iter(())
        table = cyk_table(self.grammar, word)
        return extract_trees(table, word, start_symbol=self.grammar.start)

    def trees(self, word: Sequence[Symbol], limit: int | None = None) -> list[Tree]:
        """
        Derivation trees of ``word`` as :class:`nltk.Tree` objects.

        Non-terminals introduced by the normal form conversion are flattened away and the root
        carries the start symbol of the grammar given to :meth:`fit`. Unit steps folded away by
        the conversion are put back from the grammar's ``folded`` map, one step per chain, so
        every node matches a rule of the grammar given to :meth:`fit` (epsilon children aside).

        :param word: The input word.
        :param limit: The maximum number of trees to return. All of them when None.
        :return: The trees, an empty list if the word is rejected.
        """

        count, gen = self.parse(word)
        if limit is not None and count > limit:
            logger.debug("%d trees found for %r, returning the first %d", count, word, limit)
        result = []
        for tree in gen:
            if limit is not None and len(result) >= limit:
                break
            result.append(to_nltk_tree(tree, self.grammar.auxiliary, root_label=self.source_start,
                                       folded=self.grammar.folded))
        return result
