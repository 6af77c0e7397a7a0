import unittest

from mcp_server import topo_mcp_server as server
from topobuilder import TopologyGraph


class TestMcpTools(unittest.TestCase):
    def setUp(self):
        server.graph = TopologyGraph()

    def test_build_and_export(self):
        self.assertEqual(server.add_node(0, 300)["name"], "leaf1")
        self.assertEqual(server.add_node(0, 0, template="spine")["name"], "spine1")
        res = server.connect_nodes("leaf1", "spine1")
        self.assertTrue(res["ok"])
        self.assertEqual(res["memberLinks"], ["spine1-leaf1-1"])
        out = server.export_topology_yaml()
        self.assertIn("spine1-leaf1-1", out["yaml"])
        self.assertEqual(server.validate_topology_yaml(out["yaml"])["problems"], [])

    def test_errors_are_reported(self):
        server.add_node()
        server.add_node()
        res = server.rename_node("leaf2", "leaf1")
        self.assertFalse(res["ok"])
        self.assertEqual(res["error"], 'Node name "leaf1" already exists')
        self.assertFalse(server.connect_nodes("leaf1", "ghost")["ok"])

    def test_fabric_and_undo(self):
        res = server.generate_fabric(2, 2, superspines=1)
        self.assertTrue(res["ok"])
        self.assertEqual(res["status"]["nodes"], 5)
        self.assertEqual(res["status"]["edges"], 6)
        self.assertTrue(server.undo()["ok"])
        self.assertEqual(server.topology_status()["status"]["nodes"], 0)
        self.assertFalse(server.undo()["ok"])


if __name__ == "__main__":
    unittest.main()
