from collections.abc import Iterable
from dataclasses import dataclass

from chomsky_cyk.alphabet import DEFAULT_ALPHABET, Alphabet
from chomsky_cyk.errors import (
    MalformedRuleError,
    StartSymbolRemovedError,
    UndeclaredNonterminalError,
    UndeclaredSymbolError,
)

Symbol = str
Rhs = tuple[Symbol, ...]  # right-hand side of a production, empty for epsilon

EPSILON = "ε"
ARROW = "->"


@dataclass(frozen=True, order=True)
class Rule:
    left: Symbol
    right: Rhs = ()

    def __str__(self) -> str:
        return f"{self.left} {ARROW} {''.join(self.right) or EPSILON}"


class Grammar:
    """
    A context-free grammar over a fixed :class:`Alphabet`.

    A grammar is filled in incrementally through :meth:`add_terminal`, :meth:`add_nonterminal`,
    :meth:`add_rule` and :meth:`set_start`, each of which validates its input. The start symbol
    defaults to ``S`` and is declared on construction, so the start symbol is always one of the
    declared non-terminals. Rules are kept in a set: adding the same rule twice is a no-op.

    ``auxiliary`` holds the non-terminals that the normalization pipeline allocated on its own;
    it only matters when derivation trees are displayed. ``folded`` maps each rule that the unit
    pass copied onto a non-terminal to the non-auxiliary non-terminal it was copied from, so that
    displayed trees can show the unit step again.

    :param alphabet: The alphabet the grammar's symbols are drawn from.
    :param start: The initial start symbol.
    """

    def __init__(self, alphabet: Alphabet | None = None, start: Symbol = "S"):
        self.alphabet = DEFAULT_ALPHABET if alphabet is None else alphabet
        self.nonterminals: set[Symbol] = set()
        self.terminals: set[Symbol] = set()
        self.rules: set[Rule] = set()
        self.auxiliary: set[Symbol] = set()
        self.folded: dict[Rule, Symbol] = {}
        self.add_nonterminal(start)
        self.start = start

    @classmethod
    def build(cls, nonterminals: Iterable[Symbol], terminals: Iterable[Symbol],
              rules: Iterable[str], start: Symbol | None = None,
              alphabet: Alphabet | None = None) -> "Grammar":
        """
        Builds a grammar in one go from declared symbols and textual rules such as ``"S->aSb"``.

        :param nonterminals: Non-terminal symbols to declare.
        :param terminals: Terminal symbols to declare.
        :param rules: Rules in textual form, see :meth:`add_rule_string`.
        :param start: The start symbol. Defaults to ``S``.
        :param alphabet: The alphabet to validate against.
        :return: The populated grammar.
        :raises GrammarError: If any declaration or rule is invalid.
        """

        grammar = cls(alphabet) if start is None else cls(alphabet, start)
        for sym in nonterminals:
            grammar.add_nonterminal(sym)
        for sym in terminals:
            grammar.add_terminal(sym)
        for rule in rules:
            grammar.add_rule_string(rule)
        return grammar

    def copy(self) -> "Grammar":
        result = Grammar.__new__(Grammar)
        result.alphabet = self.alphabet
        result.nonterminals = set(self.nonterminals)
        result.terminals = set(self.terminals)
        result.rules = set(self.rules)
        result.auxiliary = set(self.auxiliary)
        result.folded = dict(self.folded)
        result.start = self.start
        return result

    def add_terminal(self, sym: Symbol) -> None:
        self.alphabet.check_terminal(sym)
        self.terminals.add(sym)

    def add_nonterminal(self, sym: Symbol) -> None:
        self.alphabet.check_nonterminal(sym)
        self.nonterminals.add(sym)

    def add_rule(self, left: Symbol, right: Iterable[Symbol] = ()) -> None:
        """
        Adds the production ``left -> right`` to the grammar.

        :param left: A declared non-terminal.
        :param right: The right-hand side as a string or a sequence of symbols. Empty for epsilon.
        :raises UndeclaredNonterminalError: If ``left`` is not a declared non-terminal.
        :raises UndeclaredSymbolError: If a symbol of ``right`` is not declared.
        """

        if left not in self.nonterminals:
            raise UndeclaredNonterminalError(
                left, f"Symbol {left!r} is not a non-terminal, but appears in the left side of a rule"
            )
        rhs = tuple(right)
        for sym in rhs:
            if sym not in self.nonterminals and sym not in self.terminals:
                raise UndeclaredSymbolError(sym)
        self.rules.add(Rule(left, rhs))

    def add_rule_string(self, rule: str) -> None:
        """
        Parses a rule written as ``X->w`` and adds it. ``X`` is a single non-terminal, the arrow
        sits at offsets 1-2 and ``w`` may be empty (``"S->"`` is the epsilon rule of ``S``).

        :param rule: The textual rule.
        :raises MalformedRuleError: If the arrow is not found at offsets 1-2.
        """

        if rule[1:3] != ARROW:
            raise MalformedRuleError(rule)
        self.add_rule(rule[0], rule[3:])

    def set_start(self, sym: Symbol) -> None:
        if sym not in self.nonterminals:
            raise UndeclaredNonterminalError(
                sym, f"Symbol {sym!r} can't be the start because it is not a declared non-terminal"
            )
        self.start = sym

    def rules_for(self, left: Symbol) -> list[Rule]:
        return sorted(rule for rule in self.rules if rule.left == left)

    def remove_nonterminals(self, doomed: Iterable[Symbol]) -> None:
        """
        Removes the given non-terminals along with every rule that mentions one of them on
        either side.

        :param doomed: The non-terminals to remove.
        :raises StartSymbolRemovedError: If the start symbol is among them. Nothing is removed
            in that case.
        """

        doomed = set(doomed)
        if self.start in doomed:
            raise StartSymbolRemovedError(self.start)
        self.nonterminals -= doomed
        self.auxiliary -= doomed
        self.rules = {rule for rule in self.rules
                      if rule.left not in doomed and not doomed.intersection(rule.right)}
        self.folded = {rule: origin for rule, origin in self.folded.items()
                       if rule in self.rules and origin not in doomed}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grammar):
            return NotImplemented
        return (self.start == other.start
                and self.nonterminals == other.nonterminals
                and self.terminals == other.terminals
                and self.rules == other.rules)

    __hash__ = None

    def __repr__(self) -> str:
        return (f"Grammar(start={self.start!r}, nonterminals={sorted(self.nonterminals)}, "
                f"terminals={sorted(self.terminals)}, rules={len(self.rules)})")

    def __str__(self) -> str:
        lines = [f"Start: {self.start}"]
        # start first, then the rest alphabetically
        order = sorted(self.nonterminals, key=lambda sym: (sym != self.start, sym))
        for left in order:
            alternatives = ["".join(rule.right) or EPSILON for rule in self.rules_for(left)]
            if alternatives:
                lines.append(f"{left} {ARROW} {' | '.join(alternatives)}")
        return "\n".join(lines)
