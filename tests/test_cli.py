import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from seatmap.__main__ import main


def run(*argv):
    out = io.StringIO()
    with redirect_stdout(out):
        code = main(list(argv))
    return code, out.getvalue()


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.file = str(Path(self._tmp.name) / "map.json")

    def tearDown(self):
        self._tmp.cleanup()

    def _doc(self):
        return json.loads(Path(self.file).read_text(encoding="utf-8"))

    def test_init_add_and_delete(self):
        code, out = run("init", "--file", self.file, "--name", "Hall")
        self.assertEqual(code, 0)
        self.assertIn("Hall", out)

        code, out = run("add-row", "--file", self.file, "--label", "A", "--seats", "4")
        self.assertEqual(code, 0)
        row_id = out.strip()
        self.assertEqual(len(self._doc()["rows"][row_id]["seats"]), 4)

        code, _ = run("curve", "--file", self.file, "--row", row_id, "--curvature", "9")
        self.assertEqual(code, 0)
        self.assertEqual(self._doc()["rows"][row_id]["curve"], 1.5)

        code, out = run("delete", "--file", self.file, row_id)
        self.assertEqual(code, 0)
        self.assertIn("Deleted 5", out)
        self.assertEqual(self._doc()["seats"], {})

    def test_table_relabel_and_show(self):
        run("init", "--file", self.file)
        _, out = run("add-table", "--file", self.file, "--label", "T", "--x", "0", "--y", "0", "--seats", "6")
        table_id = out.strip()
        run("relabel", "--file", self.file, table_id, "--pattern", "Table {N}")
        self.assertEqual(self._doc()["tables"][table_id]["label"], "Table 01")
        code, out = run("show", "--file", self.file)
        self.assertEqual(code, 0)
        self.assertIn("T", out)

    def test_template_and_list(self):
        code, _ = run("init", "--file", self.file, "--template", "theater")
        self.assertEqual(code, 0)
        code, out = run("list", "--file", self.file)
        self.assertEqual(code, 0)
        self.assertIn("Stage", out)

    def test_missing_file_is_an_error(self):
        code, out = run("show", "--file", self.file)
        self.assertEqual(code, 2)
        self.assertTrue(out.startswith("Error:"))

    def test_import_rejects_bad_document(self):
        run("init", "--file", self.file, "--name", "Keep")
        bad = Path(self._tmp.name) / "bad.json"
        bad.write_text('{"rows": 3}', encoding="utf-8")
        code, out = run("import", "--file", self.file, "--input", str(bad))
        self.assertEqual(code, 2)
        self.assertIn("Error:", out)
        self.assertEqual(self._doc()["name"], "Keep")

    def test_export_round_trip(self):
        run("init", "--file", self.file, "--template", "banquet")
        target = str(Path(self._tmp.name) / "copy.json")
        run("export", "--file", self.file, "--output", target)
        other = str(Path(self._tmp.name) / "other.json")
        code, _ = run("import", "--file", other, "--input", target)
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(Path(other).read_text(encoding="utf-8")), self._doc())


if __name__ == "__main__":
    unittest.main()
