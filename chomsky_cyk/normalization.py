"""
Conversion of a context-free grammar to Chomsky Normal Form (CNF).

The conversion is a sequence of six passes, each a pure function from grammar to grammar:

1. :func:`delete_non_generating` drops non-terminals that derive no terminal string.
2. :func:`delete_unreachable` drops non-terminals that the start symbol never reaches.
3. :func:`delete_mixed` moves terminals out of right-hand sides of length two or more.
4. :func:`delete_long` splits right-hand sides longer than two into chains of binary rules.
5. :func:`delete_epsilon` removes epsilon rules, keeping the empty word on a fresh start symbol.
6. :func:`delete_unit` replaces unit rules ``A -> B`` by the rules ``B`` eventually expands to.

The order matters: every pass relies on what the previous ones established. The epsilon pass in
particular drops every ``X -> ε`` rule after inlining it into binary rules, which is only sound
because the right-hand sides have already been made binary and the unit rules it creates are
cleaned up by the last pass.
"""

from collections import defaultdict

from chomsky_cyk.errors import NonterminalCapacityExhaustedError
from chomsky_cyk.grammar import Grammar, Rule, Symbol
from chomsky_cyk.logging_config import setup_logger

logger = setup_logger(__name__)


class SymbolPool:
    """
    Hands out non-terminals of the grammar's alphabet that the grammar does not use yet.

    Every allocated symbol is declared in the grammar right away and marked as auxiliary, so it
    stays reserved for the purpose it was allocated for.
    """

    def __init__(self, grammar: Grammar):
        self.grammar = grammar
        self._free = (sym for sym in grammar.alphabet.nonterminals if sym not in grammar.nonterminals)

    def allocate(self) -> Symbol:
        sym = next(self._free, None)
        if sym is None:
            raise NonterminalCapacityExhaustedError(len(self.grammar.alphabet.nonterminals))
        self.grammar.add_nonterminal(sym)
        self.grammar.auxiliary.add(sym)
        return sym


def _nonterminals_of(grammar: Grammar, rule: Rule) -> set[Symbol]:
    return {sym for sym in rule.right if sym in grammar.nonterminals}


def _is_unit(grammar: Grammar, rule: Rule) -> bool:
    return len(rule.right) == 1 and rule.right[0] in grammar.nonterminals


def delete_non_generating(grammar: Grammar) -> Grammar:
    """
    Removes every non-terminal that cannot derive a string of terminals, together with every
    rule mentioning it.

    Generating non-terminals are found by a fixpoint: a rule whose right-hand side holds no
    non-terminal proves its left side generating, and so does a rule whose non-terminals are all
    proven generating already.

    :param grammar: The input grammar. It is not modified.
    :return: A new grammar without non-generating non-terminals.
    :raises StartSymbolRemovedError: If the start symbol itself is not generating, i.e. the
        grammar generates no string at all.
    """

    generating: set[Symbol] = set()
    changed = True
    while changed:
        changed = False
        for rule in grammar.rules:
            if rule.left in generating:
                continue
            if _nonterminals_of(grammar, rule) <= generating:
                generating.add(rule.left)
                changed = True

    doomed = grammar.nonterminals - generating
    result = grammar.copy()
    result.remove_nonterminals(doomed)
    if doomed:
        logger.debug("Removed non-generating non-terminals: %s", sorted(doomed))
    return result


def delete_unreachable(grammar: Grammar) -> Grammar:
    """
    Removes every non-terminal that no derivation from the start symbol reaches, together with
    its rules. The start symbol reaches itself, so this pass never fails.
    """

    edges: dict[Symbol, set[Symbol]] = defaultdict(set)
    for rule in grammar.rules:
        edges[rule.left] |= _nonterminals_of(grammar, rule)

    # depth-first traversal from the start symbol
    reachable = {grammar.start}
    stack = [grammar.start]
    while stack:
        sym = stack.pop()
        for nxt in edges[sym]:
            if nxt not in reachable:
                reachable.add(nxt)
                stack.append(nxt)

    doomed = grammar.nonterminals - reachable
    result = grammar.copy()
    result.remove_nonterminals(doomed)
    if doomed:
        logger.debug("Removed unreachable non-terminals: %s", sorted(doomed))
    return result


def delete_mixed(grammar: Grammar) -> Grammar:
    """
    Rewrites right-hand sides of length two or more so that they consist of non-terminals only.

    Each terminal found in such a right-hand side gets one fresh non-terminal ``T`` for the whole
    pass, with the rule ``T -> terminal``. The terminal is then replaced by ``T`` in every
    right-hand side of length two or more. Single-terminal rules are already in normal form and
    are left alone.

    :param grammar: The input grammar. It is not modified.
    :return: A new grammar whose right-hand sides of length two or more hold no terminal.
    :raises NonterminalCapacityExhaustedError: If the alphabet runs out of unused non-terminals.
    """

    result = grammar.copy()
    pool = SymbolPool(result)

    mixed = {sym for rule in grammar.rules if len(rule.right) >= 2
             for sym in rule.right if sym in grammar.terminals}
    translate = {terminal: pool.allocate() for terminal in sorted(mixed)}
    if not translate:
        return result

    rules = set()
    for rule in grammar.rules:
        if len(rule.right) >= 2:
            rule = Rule(rule.left, tuple(translate.get(sym, sym) for sym in rule.right))
        rules.add(rule)
    for terminal, sym in translate.items():
        rules.add(Rule(sym, (terminal,)))
    result.rules = rules

    logger.debug("Replaced terminals by non-terminals: %s", translate)
    return result


def delete_long(grammar: Grammar) -> Grammar:
    """
    Splits every rule ``A -> X1 X2 ... Xk`` with ``k > 2`` into the chain
    ``A -> X1 F1``, ``F1 -> X2 F2``, ..., ``F(k-2) -> X(k-1) Xk`` of ``k - 2`` fresh non-terminals.

    :param grammar: The input grammar. It is not modified.
    :return: A new grammar whose right-hand sides have length at most two.
    :raises NonterminalCapacityExhaustedError: If the alphabet runs out of unused non-terminals.
    """

    result = grammar.copy()
    pool = SymbolPool(result)

    for rule in sorted(grammar.rules):
        rhs = rule.right
        if len(rhs) <= 2:
            continue

        result.rules.discard(rule)
        prev = rule.left
        for sym in rhs[:-2]:
            helper = pool.allocate()
            result.add_rule(prev, (sym, helper))
            prev = helper
        result.add_rule(prev, rhs[-2:])
        logger.debug("Split %s into %d binary rules", rule, len(rhs) - 1)

    return result


def nullable_nonterminals(grammar: Grammar) -> set[Symbol]:
    """Non-terminals that derive the empty string."""
    nullable: set[Symbol] = set()
    changed = True
    while changed:
        changed = False
        for rule in grammar.rules:
            if rule.left in nullable:
                continue
            # an empty right-hand side passes trivially
            if all(sym in nullable for sym in rule.right):
                nullable.add(rule.left)
                changed = True
    return nullable


def delete_epsilon(grammar: Grammar) -> Grammar:
    """
    Removes epsilon rules from a grammar whose right-hand sides have length at most two.

    For every binary rule ``A -> B C`` the rule ``A -> C`` is added when ``B`` derives the empty
    string, and ``A -> B`` when ``C`` does. All epsilon rules are then dropped. If the start
    symbol derives the empty string, a fresh start symbol ``S'`` takes over with the rules
    ``S' -> start`` and ``S' -> ε``, so the empty word stays in the language and the new start
    never appears on a right-hand side.

    :param grammar: The input grammar. It is not modified.
    :return: A new grammar whose only possible epsilon rule belongs to the start symbol.
    :raises NonterminalCapacityExhaustedError: If a fresh start symbol is needed and none is left.
    """

    nullable = nullable_nonterminals(grammar)
    result = grammar.copy()

    for rule in grammar.rules:
        if len(rule.right) != 2:
            continue
        first, second = rule.right
        if first in nullable:
            result.add_rule(rule.left, (second,))
        if second in nullable:
            result.add_rule(rule.left, (first,))

    result.rules = {rule for rule in result.rules if rule.right}

    if grammar.start in nullable:
        new_start = SymbolPool(result).allocate()
        result.add_rule(new_start, (grammar.start,))
        result.add_rule(new_start, ())
        result.set_start(new_start)
        logger.debug("Empty word is in the language, new start symbol %s", new_start)

    if nullable:
        logger.debug("Removed epsilon rules of %s", sorted(nullable))
    return result


def unit_closure(grammar: Grammar) -> dict[Symbol, set[Symbol]]:
    """
    Maps every non-terminal ``A`` to the non-terminals reachable from it through zero or more
    unit rules, ``A`` included. Cycles of unit rules are fine.
    """

    unit_graph: dict[Symbol, set[Symbol]] = defaultdict(set)
    for rule in grammar.rules:
        if _is_unit(grammar, rule):
            unit_graph[rule.left].add(rule.right[0])

    closure: dict[Symbol, set[Symbol]] = {}
    for sym in grammar.nonterminals:
        seen = {sym}
        stack = [sym]
        while stack:
            current = stack.pop()
            for nxt in unit_graph[current]:
                if nxt not in seen:
                    seen.add(nxt)
                    stack.append(nxt)
        closure[sym] = seen
    return closure


def delete_unit(grammar: Grammar) -> Grammar:
    """
    Replaces unit rules ``A -> B`` with copies of the real rules reachable from ``A`` along unit
    rules. A real rule has a single terminal or a pair of non-terminals on its right-hand side.
    The epsilon rule of the start symbol, if any, is kept as it is.

    Every copied rule that the left side did not already have is recorded in ``folded`` together
    with the alphabetically first non-auxiliary symbol it was copied from.

    :param grammar: The input grammar, with right-hand sides of length at most two and no epsilon
        rule other than the start symbol's. It is not modified.
    :return: A new grammar in Chomsky Normal Form.
    """

    closure = unit_closure(grammar)
    real: dict[Symbol, set[Rule]] = defaultdict(set)
    for rule in grammar.rules:
        if rule.right and not _is_unit(grammar, rule):
            real[rule.left].add(rule)

    result = grammar.copy()
    rules = {rule for rule in grammar.rules if rule.left == grammar.start and not rule.right}
    folded: dict[Rule, Symbol] = {}
    for left, reachable in closure.items():
        for sym in sorted(reachable):
            for rule in real[sym]:
                copied = Rule(left, rule.right)
                rules.add(copied)
                if sym != left and sym not in grammar.auxiliary and copied not in real[left]:
                    folded.setdefault(copied, sym)
    result.rules = rules
    result.folded = folded
    return result


PIPELINE = (
    delete_non_generating,
    delete_unreachable,
    delete_mixed,
    delete_long,
    delete_epsilon,
    delete_unit,
)


def to_cnf(grammar: Grammar) -> Grammar:
    """
    Converts a grammar to an equivalent grammar in Chomsky Normal Form by running the six passes
    of :data:`PIPELINE` in order.

    :param grammar: The input grammar. It is not modified.
    :return: The CNF grammar.
    :raises StartSymbolRemovedError: If the grammar generates no string at all.
    :raises NonterminalCapacityExhaustedError: If the alphabet has too few unused non-terminals
        for the helper symbols the conversion needs.
    """

    result = grammar
    for step in PIPELINE:
        result = step(result)
    return result


def is_cnf(grammar: Grammar) -> bool:
    """
    Checks whether every rule is ``A -> a`` or ``A -> B C``, with ``S -> ε`` allowed for the start
    symbol only when the start symbol appears on no right-hand side.
    """

    has_epsilon = False
    start_in_rhs = False
    for rule in grammar.rules:
        rhs = rule.right
        if grammar.start in rhs:
            start_in_rhs = True
        if not rhs:
            if rule.left != grammar.start:
                return False
            has_epsilon = True
        elif len(rhs) == 1:
            if rhs[0] not in grammar.terminals:
                return False
        elif len(rhs) == 2:
            if not all(sym in grammar.nonterminals for sym in rhs):
                return False
        else:
            return False
    return not (has_epsilon and start_in_rhs)
