from __future__ import annotations

import sys
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from dotweave import (
    EMPTY,
    Attribute,
    AttributeKind,
    Dot,
    DotEdge,
    DotNode,
    GlobalAttributes,
    Subgroup,
    arrow,
    assemble,
    cluster,
    digraph,
    edge,
    edge_attrs,
    graph,
    graph_attrs,
    link,
    node,
    node_attrs,
    pure,
    sequence,
)


def scenario_graph():
    return digraph(
        sequence(
            node("A", {"color": "red"}),
            node("B"),
            arrow("A", "B"),
            cluster("C0", node("X")),
        ),
        identifier="G",
    )


class StatementBuilderTests(unittest.TestCase):
    def test_concrete_scenario_statement_order(self) -> None:
        g = scenario_graph()
        self.assertTrue(g.directed)
        self.assertFalse(g.strict)
        self.assertEqual(g.identifier, "G")
        self.assertEqual(
            g.statements,
            (
                DotNode("A", (Attribute("color", "red"),)),
                DotNode("B", ()),
                DotEdge("A", "B", ()),
                Subgroup("C0", (DotNode("X", ()),)),
            ),
        )

    def test_empty_run_is_identity_on_both_sides(self) -> None:
        run = sequence(node("a"), edge("a", "b"))
        self.assertEqual((EMPTY >> run).statements, run.statements)
        self.assertEqual((run >> EMPTY).statements, run.statements)
        self.assertEqual(sequence().statements, ())

    def test_composition_is_associative(self) -> None:
        a = node("a")
        b = sequence(node("b"), graph_attrs({"rankdir": "LR"}))
        c = cluster("c", edge("x", "y"))
        self.assertEqual(((a >> b) >> c).statements, (a >> (b >> c)).statements)

    def test_then_keeps_second_value(self) -> None:
        run = pure(1).then(Dot("second", (DotNode("n"),)))
        self.assertEqual(run.value, "second")
        self.assertEqual(run.statements, (DotNode("n"),))

    def test_bind_threads_values_and_statements(self) -> None:
        run = pure("hub").bind(lambda name: node(name).map(lambda _: name)).bind(
            lambda name: sequence(arrow(name, "leaf"), pure(name.upper()))
        )
        self.assertEqual(run.value, "HUB")
        self.assertEqual(run.statements, (DotNode("hub"), DotEdge("hub", "leaf")))

    def test_statements_are_never_deduplicated(self) -> None:
        g = graph(sequence(node("a"), node("a"), edge("a", "b"), edge("a", "b")))
        self.assertEqual(len(g.statements), 4)
        self.assertFalse(g.strict)

    def test_edge_spellings_are_identical(self) -> None:
        self.assertEqual(arrow("a", "b"), link("a", "b"))
        self.assertEqual(arrow("a", "b").statements, (DotEdge("a", "b", ()),))
        self.assertEqual(edge("a", "b"), arrow("a", "b"))

    def test_global_attribute_kinds(self) -> None:
        run = sequence(graph_attrs({"label": "t"}), node_attrs([("shape", "box")]), edge_attrs(None))
        self.assertEqual(
            run.statements,
            (
                GlobalAttributes(AttributeKind.GRAPH, (Attribute("label", "t"),)),
                GlobalAttributes(AttributeKind.NODE, (Attribute("shape", "box"),)),
                GlobalAttributes(AttributeKind.EDGE, ()),
            ),
        )

    def test_attribute_inputs_keep_insertion_order(self) -> None:
        run = node("n", {"z": 1, "a": True, "m": "x"})
        self.assertEqual(
            run.statements[0].attributes,
            (Attribute("z", "1"), Attribute("a", "true"), Attribute("m", "x")),
        )
        mixed = node("n", [Attribute("b", "2"), ("a", 1.5)])
        self.assertEqual(mixed.statements[0].attributes, (Attribute("b", "2"), Attribute("a", "1.5")))


class ClusterAssemblerTests(unittest.TestCase):
    def test_cluster_discards_nested_value(self) -> None:
        run = cluster("c", pure(42) >> node("x"))
        self.assertIsNone(run.value)
        self.assertEqual(run.statements, (Subgroup("c", (DotNode("x"),)),))

    def test_cluster_holds_exactly_nested_statements(self) -> None:
        inner = sequence(node("a"), node("b"), edge("a", "b"))
        (stmt,) = cluster("k", inner).statements
        self.assertEqual(len(stmt.statements), 3)
        self.assertEqual(stmt.statements, inner.statements)

    def test_nested_clusters_flatten_recursively(self) -> None:
        run = cluster(
            "outer",
            sequence(node("o"), cluster("middle", sequence(node("m"), cluster("inner", node("i"))))),
        )
        self.assertEqual(
            run.statements,
            (
                Subgroup(
                    "outer",
                    (
                        DotNode("o"),
                        Subgroup("middle", (DotNode("m"), Subgroup("inner", (DotNode("i"),)))),
                    ),
                ),
            ),
        )

    def test_negative_cluster_identifiers_become_text(self) -> None:
        run = sequence(cluster(-1, node("a")), cluster(0, node("b")), cluster(7, node("c")))
        self.assertEqual([s.identifier for s in run.statements], ["-1", 0, 7])

    def test_cluster_identifiers_may_repeat(self) -> None:
        run = sequence(cluster("same", node("a")), cluster("same", node("b")))
        self.assertEqual([s.identifier for s in run.statements], ["same", "same"])


class GraphAssemblerTests(unittest.TestCase):
    def test_order_preserved_across_cluster_boundaries(self) -> None:
        g = graph(sequence(node(1), cluster(0, sequence(node(2), node(3))), node(4)))
        self.assertEqual(
            g.statements,
            (DotNode(1), Subgroup(0, (DotNode(2), DotNode(3))), DotNode(4)),
        )

    def test_assemble_sets_flags(self) -> None:
        g = assemble(False, None, EMPTY)
        self.assertFalse(g.directed)
        self.assertFalse(g.strict)
        self.assertIsNone(g.identifier)
        self.assertEqual(g.statements, ())

    def test_graph_and_digraph_differ_only_in_direction(self) -> None:
        run = sequence(node("a"), link("a", "b"))
        self.assertEqual(digraph(run).statements, graph(run).statements)
        self.assertTrue(digraph(run).directed)
        self.assertFalse(graph(run).directed)


if __name__ == "__main__":
    unittest.main()
