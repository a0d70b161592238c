import io
from collections.abc import Iterable, Mapping

from nltk import Tree

from chomsky_cyk.grammar import Rule


def unfold_units(tree: tuple, auxiliary: Iterable[str], folded: Mapping[Rule, str]) -> tuple:
    """
    Puts back the non-terminals that unit folding removed from a derivation tree.

    A node whose rule was copied from ``B`` by the unit pass is relabelled ``B`` when its own
    label is auxiliary, and gets ``B`` inserted as its only child otherwise. Chains of several
    unit steps come back as a single step.

    :param tree: A derivation tree as produced by :func:`chomsky_cyk.cyk.extract_trees`.
    :param auxiliary: The auxiliary non-terminals of the grammar.
    :param folded: The ``folded`` map of the grammar the tree was derived in.
    :return: The tree with the unit steps restored.
    """

    auxiliary = set(auxiliary)

    def unfold(node: tuple) -> tuple:
        if len(node) < 2:
            return node
        label = node[0]
        right = tuple(c if isinstance(c, str) else c[0] for c in node[1:])
        children = tuple(c if isinstance(c, str) else unfold(c) for c in node[1:])
        origin = folded.get(Rule(label, right))
        if origin is None:
            return (label, *children)
        if label in auxiliary:
            return (origin, *children)
        return (label, (origin, *children))

    return unfold(tree)


def gather_children(node: tuple, auxiliary: Iterable[str]) -> list:
    """
    Gathers the children of a derivation tree node into a flat list. A child labelled with an
    auxiliary non-terminal is replaced by its own (recursively gathered) children, so the
    helper symbols introduced by the normal form conversion disappear from the output.

    :param node: A derivation tree node ``(label, child, ...)``. Children are terminal strings
        or nested nodes.
    :param auxiliary: The auxiliary non-terminals to flatten.
    :return: The flattened list of children.
    """

    auxiliary = set(auxiliary)
    out_children = []
    for child in node[1:]:
        if isinstance(child, str):
            out_children.append(child)
        elif child[0] in auxiliary:
            # flatten grandchildren
            out_children.extend(gather_children(child, auxiliary))
        else:
            out_children.append(child)
    return out_children


def format_tree(tree: tuple, auxiliary: Iterable[str] = (),
                folded: Mapping[Rule, str] | None = None) -> str:
    """
    Formats a derivation tree in bracket notation, e.g. ``[S [A a] [S ...] [B b]]``.

    :param tree: A derivation tree as produced by :func:`chomsky_cyk.cyk.extract_trees`.
    :param auxiliary: Non-terminals whose nodes are flattened into their parents.
    :param folded: Unit folding provenance, see :func:`unfold_units`.
    :return: The bracketed string.
    """

    auxiliary = set(auxiliary)
    if folded:
        tree = unfold_units(tree, auxiliary, folded)

    def node_to_str(node: tuple) -> str:
        label = node[0]
        children = gather_children(node, auxiliary)

        if not children:
            return f"[{label}]"
        if len(children) == 1 and isinstance(children[0], str):
            return f"[{label} {children[0]}]"

        child_strs = [c if isinstance(c, str) else node_to_str(c) for c in children]
        return f"[{label} " + " ".join(child_strs) + "]"

    return node_to_str(tree)


def to_nltk_tree(tree: tuple, auxiliary: Iterable[str] = (), root_label: str | None = None,
                 folded: Mapping[Rule, str] | None = None) -> Tree:
    """
    Converts a derivation tree into an :class:`nltk.Tree`, flattening auxiliary non-terminals.

    The tree is built node by node rather than through ``Tree.fromstring``, because terminals
    such as ``(`` and ``)`` would break the bracket syntax.

    Without ``folded`` the result can contain nodes that match no rule of either grammar: a
    helper that received ``B -> b`` through a unit rule is flattened and ``B`` is lost. With it,
    every node matches a rule of the grammar before normalization, with epsilon children left
    out and unit chains shortened to one step.

    :param tree: A derivation tree as produced by :func:`chomsky_cyk.cyk.extract_trees`.
    :param auxiliary: Non-terminals whose nodes are flattened into their parents.
    :param root_label: Label for the root instead of its own, e.g. the start symbol the grammar
        had before normalization.
    :param folded: Unit folding provenance, see :func:`unfold_units`.
    :return: The nltk tree. Its leaves are the terminals of the derived word.
    """

    auxiliary = set(auxiliary)
    if folded:
        tree = unfold_units(tree, auxiliary, folded)

    def convert(node: tuple, label: str) -> Tree:
        children = [c if isinstance(c, str) else convert(c, c[0])
                    for c in gather_children(node, auxiliary)]
        return Tree(label, children)

    return convert(tree, tree[0] if root_label is None else root_label)


def pretty_tree(tree: Tree) -> str:
    """Renders an nltk tree as ASCII art."""
    buf = io.StringIO()
    tree.pretty_print(stream=buf)
    return buf.getvalue().rstrip("\n")
