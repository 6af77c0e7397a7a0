import unittest

from topobuilder import TopologyGraph
from topobuilder.model import LagKind, NormalKind


class TestConnect(unittest.TestCase):
    def setUp(self):
        self.g = TopologyGraph()
        self.leaf = self.g.add_node((0, 300))
        self.spine = self.g.add_node((0, 0), template="spine")

    def test_repeated_connect_stacks_member_links(self):
        e1 = self.g.connect(self.leaf, self.spine)
        e2 = self.g.connect(self.leaf, self.spine)
        self.assertEqual(e1, e2)
        edge = self.g.state.edge(e1)
        self.assertEqual([m.name for m in edge.member_links], ["spine1-leaf1-1", "spine1-leaf1-2"])
        self.assertEqual(
            [(m.source_interface, m.target_interface) for m in edge.member_links],
            [("ethernet-1-1", "ethernet-1-1"), ("ethernet-1-2", "ethernet-1-2")],
        )
        self.assertEqual(edge.member_links[0].template, "isl")

    def test_reverse_direction_reuses_edge(self):
        e1 = self.g.connect(self.leaf, self.spine)
        e2 = self.g.connect(self.spine, self.leaf)
        self.assertEqual(e1, e2)
        self.assertEqual(len(self.g.state.edges), 1)
        second = self.g.state.edge(e1).member_links[1]
        self.assertEqual(second.source_interface, "ethernet-1-2")

    def test_different_handles_make_new_edge_with_global_ports(self):
        e1 = self.g.connect(self.leaf, self.spine)
        e2 = self.g.connect(self.leaf, self.spine, "left", "left-target")
        self.assertNotEqual(e1, e2)
        edge = self.g.state.edge(e2)
        self.assertEqual(edge.source_handle, "left")
        self.assertEqual(edge.member_links[0].source_interface, "ethernet-1-2")
        self.assertEqual(edge.member_links[0].name, "spine1-leaf1-2")

    def test_ports_scan_every_edge_of_the_node(self):
        other = self.g.add_node()
        self.g.connect(self.leaf, self.spine)
        self.g.connect(other, self.spine)
        edge = self.g.state.edge(self.g.connect(other, self.leaf))
        self.assertEqual(edge.member_links[0].source_interface, "ethernet-1-2")
        self.assertEqual(edge.member_links[0].target_interface, "ethernet-1-2")

    def test_self_loop_rejected(self):
        self.assertIsNone(self.g.connect(self.leaf, self.leaf))
        self.assertEqual(self.g.error, "Cannot connect a node to itself")
        self.assertEqual(self.g.state.edges, [])

    def test_unknown_endpoint_rejected(self):
        self.assertIsNone(self.g.connect(self.leaf, "node-42"))
        self.assertEqual(self.g.error, 'Node "node-42" not found')

    def test_sim_connection_normalized(self):
        sim = self.g.add_sim_node()
        edge = self.g.state.edge(self.g.connect(self.leaf, sim, "right", "left-target"))
        self.assertEqual(edge.source, sim)
        self.assertEqual(edge.target, self.leaf)
        self.assertEqual(edge.source_handle, "left")
        self.assertEqual(edge.target_handle, "right-target")
        member = edge.member_links[0]
        self.assertEqual(member.source_interface, "eth1")
        self.assertEqual(member.target_interface, "ethernet-1-1")
        self.assertEqual(member.template, "edge")

    def test_sim_to_sim_rejected(self):
        a = self.g.add_sim_node()
        b = self.g.add_sim_node()
        self.assertIsNone(self.g.connect(a, b))
        self.assertEqual(self.g.error, "Cannot connect two simulation nodes")

    def test_delete_edge(self):
        e1 = self.g.connect(self.leaf, self.spine)
        self.assertTrue(self.g.delete_edge(e1))
        self.assertEqual(self.g.state.edges, [])
        self.assertFalse(self.g.delete_edge(e1))

    def test_update_edge_handles(self):
        e1 = self.g.connect(self.leaf, self.spine)
        self.assertTrue(self.g.update_edge(e1, source_handle="top"))
        self.assertEqual(self.g.state.edge(e1).source_handle, "top")
        self.assertFalse(self.g.update_edge(e1, name="x"))

    def test_update_edge_cannot_duplicate_handles(self):
        e1 = self.g.connect(self.leaf, self.spine)
        e2 = self.g.connect(self.leaf, self.spine, "right", "left-target")
        self.assertFalse(self.g.update_edge(e2, source_handle=None, target_handle=None))
        self.assertEqual(self.g.error, f'Link "{e1}" already uses these handles')
        self.assertEqual(self.g.state.edge(e2).source_handle, "right")

        self.assertTrue(self.g.update_edge(e2, source_handle="top"))
        self.assertTrue(self.g.import_yaml(self.g.export_yaml()))
        self.assertEqual(len(self.g.state.edges), 2)


class TestMemberLinks(unittest.TestCase):
    def setUp(self):
        self.g = TopologyGraph()
        self.leaf = self.g.add_node()
        self.spine = self.g.add_node(template="spine")
        self.edge_id = self.g.connect(self.leaf, self.spine)

    def edge(self):
        return self.g.state.edge(self.edge_id)

    def test_add_member_link_defaults(self):
        index = self.g.add_member_link(self.edge_id, labels={"speed": "fast"})
        self.assertEqual(index, 1)
        member = self.edge().member_links[1]
        self.assertEqual(member.name, "spine1-leaf1-2")
        self.assertEqual(member.source_interface, "ethernet-1-2")
        self.assertEqual(member.labels, {"speed": "fast"})

    def test_add_member_link_explicit(self):
        self.g.add_member_link(self.edge_id, name="uplink", source_interface="ethernet-1-49")
        member = self.edge().member_links[1]
        self.assertEqual(member.name, "uplink")
        self.assertEqual(member.source_interface, "ethernet-1-49")

    def test_update_member_link(self):
        self.assertTrue(self.g.update_member_link(self.edge_id, 0, target_interface="ethernet-1-7"))
        self.assertEqual(self.edge().member_links[0].target_interface, "ethernet-1-7")
        self.assertFalse(self.g.update_member_link(self.edge_id, 5, name="x"))
        self.assertFalse(self.g.update_member_link(self.edge_id, 0, name="Bad_Name"))

    def test_deleting_last_member_deletes_edge(self):
        self.assertTrue(self.g.delete_member_link(self.edge_id, 0))
        self.assertIsNone(self.g.state.edge(self.edge_id))

    def test_delete_member_link_out_of_range(self):
        self.assertFalse(self.g.delete_member_link(self.edge_id, 3))
        self.assertEqual(self.g.error, "Member link index 3 is out of range")


class TestLag(unittest.TestCase):
    def setUp(self):
        self.g = TopologyGraph()
        self.leaf = self.g.add_node()
        self.spine = self.g.add_node(template="spine")
        for _ in range(4):
            self.edge_id = self.g.connect(self.leaf, self.spine)

    def edge(self):
        return self.g.state.edge(self.edge_id)

    def assert_lag_invariant(self):
        seen = set()
        for group in self.edge().lag_groups:
            self.assertGreaterEqual(len(group.member_indices), 2)
            self.assertEqual(group.member_indices, sorted(group.member_indices))
            self.assertFalse(seen & set(group.member_indices))
            seen.update(group.member_indices)

    def test_create_lag(self):
        lag = self.g.create_lag_from_member_links(self.edge_id, [1, 0])
        self.assertEqual(lag, "lag-edge-1-1")
        group = self.edge().lag(lag)
        self.assertEqual(group.name, "spine1-leaf1-lag-1")
        self.assertEqual(group.member_indices, [0, 1])
        self.assertEqual(group.template, "isl")
        self.assertIsInstance(self.edge().kind, LagKind)
        self.assertEqual(self.g.selection.lag_id, lag)

    def test_second_lag_gets_next_name(self):
        self.g.create_lag_from_member_links(self.edge_id, [0, 1])
        lag = self.g.create_lag_from_member_links(self.edge_id, [2, 3])
        self.assertEqual(self.edge().lag(lag).name, "spine1-leaf1-lag-2")
        self.assert_lag_invariant()

    def test_overlap_rejected_without_mutation(self):
        self.g.create_lag_from_member_links(self.edge_id, [0, 1])
        before = self.g.snapshot()
        self.assertIsNone(self.g.create_lag_from_member_links(self.edge_id, [1, 2]))
        self.assertEqual(self.g.error, "Member link 1 already belongs to a LAG")
        self.assertEqual(self.g.state, before)

    def test_too_few_or_bad_indices(self):
        self.assertIsNone(self.g.create_lag_from_member_links(self.edge_id, [0]))
        self.assertEqual(self.g.error, "A LAG needs at least 2 member links")
        self.assertIsNone(self.g.create_lag_from_member_links(self.edge_id, [0, 9]))
        self.assertEqual(self.g.error, "Member link index 9 is out of range")
        self.assertIsInstance(self.edge().kind, NormalKind)

    def test_add_link_to_lag(self):
        lag = self.g.create_lag_from_member_links(self.edge_id, [0, 1])
        index = self.g.add_link_to_lag(self.edge_id, lag)
        self.assertEqual(index, 4)
        member = self.edge().member_links[4]
        self.assertEqual(member.name, "spine1-leaf1-lag-1-3")
        self.assertEqual(member.source_interface, "ethernet-1-5")
        self.assertEqual(self.edge().lag(lag).member_indices, [0, 1, 4])

    def test_remove_link_from_lag_then_dissolve(self):
        lag = self.g.create_lag_from_member_links(self.edge_id, [0, 1, 2])
        self.g.update_lag(self.edge_id, lag, labels={"tier": "gold"})
        self.assertTrue(self.g.remove_link_from_lag(self.edge_id, lag, 1))
        self.assertEqual(self.edge().lag(lag).member_indices, [0, 2])
        self.assertTrue(self.g.remove_link_from_lag(self.edge_id, lag, 0))
        self.assertIsNone(self.edge().lag(lag))
        self.assertIsInstance(self.edge().kind, NormalKind)
        self.assertEqual(len(self.edge().member_links), 4)

    def test_remove_non_member_rejected(self):
        lag = self.g.create_lag_from_member_links(self.edge_id, [0, 1])
        self.assertFalse(self.g.remove_link_from_lag(self.edge_id, lag, 3))

    def test_delete_member_reindexes_groups(self):
        lag = self.g.create_lag_from_member_links(self.edge_id, [1, 2, 3])
        self.assertTrue(self.g.delete_member_link(self.edge_id, 0))
        self.assertEqual(self.edge().lag(lag).member_indices, [0, 1, 2])
        self.assert_lag_invariant()

    def test_delete_member_dissolves_small_group(self):
        lag = self.g.create_lag_from_member_links(self.edge_id, [2, 3])
        self.assertTrue(self.g.delete_member_link(self.edge_id, 3))
        self.assertIsNone(self.edge().lag(lag))
        self.assertIsInstance(self.edge().kind, NormalKind)
        self.assertEqual(len(self.edge().member_links), 3)

    def test_update_lag(self):
        lag = self.g.create_lag_from_member_links(self.edge_id, [0, 1])
        self.assertTrue(self.g.update_lag(self.edge_id, lag, name="bond0", template="fast"))
        self.assertEqual(self.edge().lag(lag).name, "bond0")
        self.assertFalse(self.g.update_lag(self.edge_id, lag, name="Bond0"))


if __name__ == "__main__":
    unittest.main()
