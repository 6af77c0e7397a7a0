"""End-to-end editing sessions, each checked through the exported YAML too."""

import unittest

import yaml

from topobuilder import TopologyGraph
from topobuilder.model import LagKind


class TestScenarios(unittest.TestCase):
    def test_lag_survives_round_trip(self):
        g = TopologyGraph()
        leaf1 = g.add_node((0, 300))
        g.add_node((200, 300))
        spine1 = g.add_node((100, 0), template="spine")
        edge_id = g.connect(leaf1, spine1)
        g.connect(leaf1, spine1)
        self.assertEqual(len(g.state.edge(edge_id).member_links), 2)

        lag = g.create_lag_from_member_links(edge_id, [0, 1])
        edge = g.state.edge(edge_id)
        self.assertEqual(len(edge.lag_groups), 1)
        self.assertEqual(edge.lag(lag).member_indices, [0, 1])

        other = TopologyGraph()
        self.assertTrue(other.import_yaml(g.export_yaml()))
        self.assertEqual(len(other.state.edges), 1)
        imported = other.state.edges[0]
        self.assertIsInstance(imported.kind, LagKind)
        self.assertEqual([grp.member_indices for grp in imported.lag_groups], [[0, 1]])
        self.assertEqual(imported.lag_groups[0].name, edge.lag(lag).name)

    def test_rename_collision_leaves_everything_alone(self):
        g = TopologyGraph()
        leaf1 = g.add_node()
        leaf2 = g.add_node()
        spine1 = g.add_node(template="spine")
        g.connect(leaf2, spine1)
        before = g.snapshot()

        self.assertFalse(g.rename_node(leaf2, "leaf1"))
        self.assertIsNotNone(g.error)
        self.assertEqual(g.state.node(leaf2).name, "leaf2")
        self.assertEqual(g.state.node(leaf1).name, "leaf1")
        self.assertEqual(g.state.edges, before.edges)

    def test_generated_fabric(self):
        g = TopologyGraph()
        self.assertTrue(g.apply_fabric({"leafs": {"count": 4}, "spines": {"count": 2}}))
        self.assertEqual(len(g.state.nodes), 6)
        self.assertEqual(len(g.state.edges), 8)
        used = {}
        for e in g.state.edges:
            self.assertEqual(len(e.member_links), 1)
            m = e.member_links[0]
            used.setdefault(e.source, []).append(m.source_interface)
            used.setdefault(e.target, []).append(m.target_interface)
        for ifaces in used.values():
            self.assertEqual(ifaces, [f"ethernet-1-{i}" for i in range(1, len(ifaces) + 1)])

        links = yaml.safe_load(g.export_yaml())["spec"]["links"]
        self.assertEqual(len(links), 8)
        self.assertTrue(all(len(link["endpoints"]) == 1 for link in links))

    def test_esi_lag_leaf_bounds(self):
        g = TopologyGraph()
        leaves = [g.add_node((i * 200, 300)) for i in range(3)]
        spine = g.add_node((200, 0), template="spine")
        first = g.connect(leaves[0], spine)
        second = g.connect(leaves[1], spine)

        esi = g.create_esi_lag([first, second])
        self.assertEqual(len(g.state.edge(esi).esi_leaves), 2)
        self.assertIsNotNone(g.add_link_to_esi_lag(esi, leaves[2]))
        self.assertEqual(len(g.state.edge(esi).esi_leaves), 3)

        self.assertTrue(g.remove_link_from_esi_lag(esi, 2))
        self.assertEqual(len(g.state.edge(esi).esi_leaves), 2)
        self.assertFalse(g.remove_link_from_esi_lag(esi, 1))
        self.assertEqual(len(g.state.edge(esi).esi_leaves), 2)

        esi_entry = yaml.safe_load(g.export_yaml())["spec"]["links"][-1]
        self.assertEqual([ep["remote"]["node"] for ep in esi_entry["endpoints"]], ["leaf1", "leaf2"])


if __name__ == "__main__":
    unittest.main()
