import unittest

from topobuilder.ids import IdAllocator, id_suffix
from topobuilder.labels import (
    extract_edge_id,
    extract_handles,
    extract_member_index,
    extract_position,
    filter_user_labels,
    link_labels,
    merge_labels,
    name_prefix,
    position_labels,
    round_coord,
)
from topobuilder.names import (
    copy_name,
    format_interface,
    name_error,
    port_number,
    replace_name_token,
    unique_name,
    validate_name,
)


class TestIdAllocator(unittest.TestCase):
    def test_sequential_per_kind(self):
        ids = IdAllocator()
        self.assertEqual(ids.next("node"), "node-1")
        self.assertEqual(ids.next("node"), "node-2")
        self.assertEqual(ids.next("edge"), "edge-1")
        self.assertEqual(ids.next("sim"), "sim-1")
        self.assertEqual(ids.next("annotation"), "a1")

    def test_two_allocators_do_not_share_counters(self):
        a, b = IdAllocator(), IdAllocator()
        a.next("node")
        a.next("node")
        self.assertEqual(b.next("node"), "node-1")

    def test_reseed_from_max_suffix(self):
        ids = IdAllocator()
        ids.reseed("node", ["node-3", "node-11", "weird", "node-x"])
        self.assertEqual(ids.next("node"), "node-12")

    def test_claim_never_lowers(self):
        ids = IdAllocator()
        ids.claim("edge", "edge-9")
        ids.claim("edge", "edge-2")
        self.assertEqual(ids.next("edge"), "edge-10")

    def test_copy_is_independent(self):
        ids = IdAllocator()
        other = ids.copy()
        other.next("node")
        self.assertEqual(ids.peek("node"), 1)
        ids.restore(other)
        self.assertEqual(ids.peek("node"), 2)

    def test_id_suffix(self):
        self.assertEqual(id_suffix("edge-42", "edge-"), 42)
        self.assertIsNone(id_suffix("edge-4a", "edge-"))
        self.assertIsNone(id_suffix("node-4", "edge-"))


class TestLabels(unittest.TestCase):
    def test_round_half_up(self):
        self.assertEqual(round_coord(2.5), 3)
        self.assertEqual(round_coord(2.49), 2)
        self.assertEqual(round_coord(-0.5), 0)
        self.assertEqual(round_coord(-1.6), -2)

    def test_position_labels_roundtrip(self):
        labels = position_labels(100.4, 200.5)
        self.assertEqual(labels, {"topobuilder.eda.labs/x": "100", "topobuilder.eda.labs/y": "201"})
        self.assertEqual(extract_position(labels), (100.0, 201.0))

    def test_extract_position_missing_or_bad(self):
        self.assertIsNone(extract_position({"topobuilder.eda.labs/x": "1"}))
        self.assertIsNone(extract_position({"topobuilder.eda.labs/x": "a", "topobuilder.eda.labs/y": "1"}))
        self.assertIsNone(extract_position(None))

    def test_filter_user_labels_strips_reserved(self):
        labels = {"role": "leaf", "topobuilder.eda.labs/x": "5", "topobuilder.eda.labs/edgeId": "edge-1"}
        self.assertEqual(filter_user_labels(labels), {"role": "leaf"})

    def test_link_labels_and_extractors(self):
        labels = link_labels("edge-3", 2, "right", "left-target")
        self.assertEqual(extract_edge_id(labels), "edge-3")
        self.assertEqual(extract_member_index(labels), 2)
        self.assertEqual(extract_handles(labels), ("right", "left-target"))
        self.assertNotIn("topobuilder.eda.labs/sourceHandle", link_labels("edge-3", 0))

    def test_merge_puts_reserved_last(self):
        merged = merge_labels({"b": "1", "topobuilder.eda.labs/x": "stale"}, {"topobuilder.eda.labs/x": "7"})
        self.assertEqual(list(merged), ["b", "topobuilder.eda.labs/x"])
        self.assertEqual(merged["topobuilder.eda.labs/x"], "7")

    def test_name_prefix(self):
        self.assertEqual(name_prefix({"topobuilder.eda.labs/name-prefix": "tor"}), "tor")
        self.assertIsNone(name_prefix({}))


class TestNames(unittest.TestCase):
    def test_name_errors(self):
        self.assertIsNone(name_error("leaf-1"))
        self.assertEqual(name_error(""), "name cannot be empty")
        self.assertIn("63", name_error("a" * 64))
        self.assertIn("start", name_error("-leaf"))
        self.assertIn("end", name_error("leaf-"))
        self.assertIn("lowercase", name_error("leAf"))
        self.assertIn("hyphens", name_error("leaf_1"))

    def test_validate_name_collision(self):
        self.assertEqual(validate_name("leaf1", {"leaf1"}), 'Node name "leaf1" already exists')
        self.assertIsNone(validate_name("leaf2", {"leaf1"}))

    def test_unique_name_probes_upward(self):
        self.assertEqual(unique_name("leaf", {"leaf1", "leaf2"}), "leaf3")
        self.assertEqual(unique_name("leaf", set()), "leaf1")

    def test_copy_name(self):
        self.assertEqual(copy_name("leaf1", set()), "leaf1-copy")
        self.assertEqual(copy_name("leaf1", {"leaf1-copy"}), "leaf1-copy1")
        self.assertEqual(copy_name("leaf1-copy", {"leaf1-copy"}), "leaf1-copy1")

    def test_replace_name_token_whole_tokens_only(self):
        self.assertEqual(replace_name_token("spine1-leaf1-1", "leaf1", "tor1"), "spine1-tor1-1")
        self.assertEqual(replace_name_token("spine1-leaf10-1", "leaf1", "tor1"), "spine1-leaf10-1")
        self.assertEqual(replace_name_token("leaf1", "leaf1", "tor1"), "tor1")

    def test_interfaces(self):
        self.assertEqual(port_number("ethernet-1-12"), 12)
        self.assertEqual(port_number("eth3"), 3)
        self.assertEqual(port_number("mgmt0"), 0)
        self.assertEqual(format_interface(4), "ethernet-1-4")
        self.assertEqual(format_interface(4, sim=True), "eth4")


if __name__ == "__main__":
    unittest.main()
