import unittest

from topobuilder import TopologyGraph
from topobuilder.errors import FabricError
from topobuilder.fabric import FabricDefinition, fabric_to_topology, parse_fabric, parse_fabric_yaml
from topobuilder.model import Position


LEAF_SPINE = {"leafs": {"count": 4, "template": "leaf"}, "spines": {"count": 2, "template": "spine"}}


class TestFabricToTopology(unittest.TestCase):
    def test_leaf_spine_mesh(self):
        result = fabric_to_topology(parse_fabric(LEAF_SPINE), [], [])
        self.assertEqual([n.name for n in result.nodes], ["leaf1", "leaf2", "leaf3", "leaf4", "spine1", "spine2"])
        self.assertEqual([n.id for n in result.nodes], [f"node-{i}" for i in range(1, 7)])
        self.assertEqual(len(result.edges), 8)
        self.assertEqual((result.max_node_id, result.max_edge_id), (6, 8))
        for e in result.edges:
            self.assertEqual(len(e.member_links), 1)
            self.assertTrue(e.source_name.startswith("leaf"))
            self.assertEqual(e.member_links[0].template, "isl")

    def test_ports_are_sequential_per_node(self):
        result = fabric_to_topology(parse_fabric(LEAF_SPINE), [], [])
        first = result.edges[0].member_links[0]
        self.assertEqual(first.name, "spine1-leaf1-1")
        self.assertEqual((first.source_interface, first.target_interface), ("ethernet-1-1", "ethernet-1-1"))
        ports = {}
        for e in result.edges:
            m = e.member_links[0]
            ports.setdefault(e.source_name, []).append(m.source_interface)
            ports.setdefault(e.target_name, []).append(m.target_interface)
        self.assertEqual(ports["leaf3"], ["ethernet-1-1", "ethernet-1-2"])
        self.assertEqual(ports["spine2"], [f"ethernet-1-{i}" for i in range(1, 5)])

    def test_tier_layout(self):
        result = fabric_to_topology(parse_fabric(LEAF_SPINE), [], [])
        positions = {n.name: n.position for n in result.nodes}
        self.assertEqual(positions["leaf1"], Position(-300.0, 600.0))
        self.assertEqual(positions["leaf4"], Position(300.0, 600.0))
        self.assertEqual(positions["spine1"], Position(-100.0, 350.0))
        self.assertEqual(positions["spine2"], Position(100.0, 350.0))

    def test_superspines(self):
        fabric = parse_fabric({
            "leafs": {"count": 2},
            "spines": {"count": 2},
            "superspines": {"count": 2},
        })
        result = fabric_to_topology(fabric, [], [])
        self.assertEqual(len(result.nodes), 6)
        self.assertEqual(len(result.edges), 8)
        upper = result.edges[4:]
        self.assertEqual([(e.source_name, e.target_name) for e in upper], [
            ("spine1", "superspine1"), ("spine1", "superspine2"),
            ("spine2", "superspine1"), ("spine2", "superspine2"),
        ])
        # spine1 already used ports 1 and 2 towards the leafs
        self.assertEqual(upper[0].member_links[0].source_interface, "ethernet-1-3")
        self.assertEqual(result.nodes[-1].position, Position(100.0, 100.0))

    def test_template_prefix_and_isl_template(self):
        node_templates = [{"name": "tor", "annotations": {"topobuilder.eda.labs/name-prefix": "tor"}}]
        link_templates = [{"name": "edge", "type": "edge"}, {"name": "fast", "type": "interSwitch"}]
        fabric = parse_fabric({"leafs": {"count": 1, "template": "tor"}, "spines": {"count": 1}})
        result = fabric_to_topology(fabric, node_templates, link_templates)
        self.assertEqual(result.nodes[0].name, "tor1")
        self.assertEqual(result.nodes[0].template, "tor")
        self.assertIsNone(result.nodes[1].template)
        self.assertEqual(result.edges[0].member_links[0].template, "fast")

    def test_duplicate_names_across_tiers(self):
        fabric = parse_fabric({"leafs": {"count": 1, "template": "spine"}, "spines": {"count": 1, "template": "spine"}})
        templates = [{"name": "spine", "annotations": {"topobuilder.eda.labs/name-prefix": "spine"}}]
        with self.assertRaises(FabricError):
            fabric_to_topology(fabric, templates, [])


class TestParseFabric(unittest.TestCase):
    def test_counts_must_be_positive(self):
        with self.assertRaises(FabricError) as ctx:
            parse_fabric({"leafs": {"count": 0}, "spines": {"count": 1}})
        self.assertIn("leafs.count", str(ctx.exception))

    def test_unknown_keys_rejected(self):
        with self.assertRaises(FabricError):
            parse_fabric({"leafs": {"count": 1}, "spines": {"count": 1}, "borders": {"count": 1}})

    def test_yaml_form(self):
        fabric = parse_fabric_yaml("leafs:\n  count: 2\nspines:\n  count: 1\n")
        self.assertIsInstance(fabric, FabricDefinition)
        self.assertEqual(fabric.leafs.count, 2)
        self.assertIsNone(fabric.superspines)
        with self.assertRaises(FabricError):
            parse_fabric_yaml("- 1\n- 2\n")
        with self.assertRaises(FabricError):
            parse_fabric_yaml("leafs: {count: 2")


class TestApplyFabric(unittest.TestCase):
    def test_replaces_nodes_and_edges(self):
        g = TopologyGraph()
        g.add_node()
        self.assertTrue(g.apply_fabric(LEAF_SPINE))
        self.assertEqual(len(g.state.nodes), 6)
        self.assertEqual(len(g.state.edges), 8)
        self.assertEqual(g.layout_version, 1)

    def test_ids_continue_after_fabric(self):
        g = TopologyGraph()
        g.apply_fabric(LEAF_SPINE)
        self.assertEqual(g.add_node(), "node-7")
        self.assertEqual(g.connect("node-1", "node-7"), "edge-9")

    def test_keeps_sim_nodes_and_rejects_collisions(self):
        g = TopologyGraph()
        sim = g.add_sim_node()
        self.assertTrue(g.apply_fabric("leafs: {count: 1}\nspines: {count: 1}\n"))
        self.assertIsNotNone(g.state.sim_node(sim))

        g.add_sim_node(name="leaf2")
        before = g.snapshot()
        self.assertFalse(g.apply_fabric({"leafs": {"count": 2, "template": "leaf"}, "spines": {"count": 1}}))
        self.assertEqual(g.error, 'Fabric node name "leaf2" collides with a simulation node')
        self.assertEqual(g.state, before)

    def test_invalid_definition_sets_error(self):
        g = TopologyGraph()
        self.assertFalse(g.apply_fabric({"leafs": {"count": -1}, "spines": {"count": 1}}))
        self.assertTrue(g.error.startswith("Invalid fabric"))

    def test_undo_restores_previous_graph(self):
        g = TopologyGraph()
        g.add_node()
        before = g.snapshot()
        g.apply_fabric(LEAF_SPINE)
        g.undo()
        self.assertEqual(g.state, before)


if __name__ == "__main__":
    unittest.main()
