import unittest

from clip_cli.core.history import MAX_GLOBAL_HISTORY, MAX_HISTORY, HistoryIndex
from .test_base import make_record


class TestHistoryIndex(unittest.TestCase):
    def test_capacity_evicts_oldest(self):
        """51 inserts leave the 50 newest, most recent first"""
        index = HistoryIndex()
        for i in range(MAX_HISTORY + 1):
            index.record("conv_1", make_record(f"resp_{i}", "conv_1", 1000 + i))

        records = index.list("conv_1")
        self.assertEqual(len(records), 50)
        self.assertEqual(records[0].id, "resp_50")
        self.assertEqual(records[-1].id, "resp_1")
        self.assertNotIn("resp_0", [r.id for r in records])

    def test_global_capacity(self):
        index = HistoryIndex()
        for i in range(MAX_GLOBAL_HISTORY + 10):
            conv = f"conv_{i % 10}"
            index.record(conv, make_record(f"resp_{i}", conv, i))

        everything = index.list_all()
        self.assertEqual(len(everything), MAX_GLOBAL_HISTORY)
        self.assertEqual(everything[0].id, f"resp_{MAX_GLOBAL_HISTORY + 9}")

    def test_list_is_per_conversation(self):
        index = HistoryIndex()
        index.record("conv_a", make_record("a1", "conv_a", 1))
        index.record("conv_b", make_record("b1", "conv_b", 2))

        self.assertEqual([r.id for r in index.list("conv_a")], ["a1"])
        self.assertEqual([r.id for r in index.list_all()], ["b1", "a1"])
        self.assertEqual(index.list("conv_missing"), [])
        self.assertEqual(index.list(None), [])

    def test_returned_lists_are_copies(self):
        index = HistoryIndex()
        index.record("conv_a", make_record("a1", "conv_a", 1))
        index.list("conv_a").clear()
        index.list_all().clear()
        self.assertEqual(len(index.list("conv_a")), 1)
        self.assertEqual(len(index.list_all()), 1)

    def test_from_records_sorts_globally(self):
        """Merged files are re-sorted newest first, ties keep merge order"""
        index = HistoryIndex.from_records(
            {
                "conv_b": [make_record("b2", "conv_b", 300), make_record("b1", "conv_b", 100)],
                "conv_a": [make_record("a2", "conv_a", 300), make_record("a1", "conv_a", 200)],
            }
        )
        self.assertEqual([r.id for r in index.list_all()], ["b2", "a2", "a1", "b1"])
        self.assertEqual([r.id for r in index.list("conv_a")], ["a2", "a1"])
        self.assertEqual(index.most_recent("conv_b").id, "b2")
        self.assertIsNone(index.most_recent("conv_c"))

    def test_from_records_truncates(self):
        records = [make_record(f"r{i}", "conv_a", 1000 - i) for i in range(60)]
        index = HistoryIndex.from_records({"conv_a": records})
        self.assertEqual(len(index.list("conv_a")), MAX_HISTORY)
        self.assertEqual(index.list("conv_a")[0].id, "r0")


if __name__ == '__main__':
    unittest.main()
