import json
import tempfile
import unittest
from pathlib import Path

from seatmap.render import render_ascii, render_listing
from seatmap.scene import InvalidDocumentError, Scene, SceneError
from seatmap.storage import load_scene, maybe_init_scene, save_scene
from seatmap.templates import TEMPLATES, build_template


class TestStorage(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "nested" / "map.json"

    def tearDown(self):
        self._tmp.cleanup()

    def test_save_and_load(self):
        s = Scene("Club")
        s.create_row("A", 3)
        save_scene(s, self.path)
        text = self.path.read_text(encoding="utf-8")
        self.assertTrue(text.endswith("\n"))
        self.assertEqual(json.loads(text)["name"], "Club")
        again = load_scene(self.path)
        self.assertEqual(again.export_scene(), s.export_scene())

    def test_missing_file(self):
        with self.assertRaises(SceneError):
            load_scene(self.path)

    def test_malformed_file(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(InvalidDocumentError) as ctx:
            load_scene(self.path)
        self.assertIn(str(self.path), str(ctx.exception))

    def test_maybe_init_keeps_existing(self):
        first = maybe_init_scene(self.path, name="One")
        first.create_seat("x", (0, 0))
        save_scene(first, self.path)
        again = maybe_init_scene(self.path, name="Two")
        self.assertEqual(again.name, "One")
        self.assertEqual(len(again.seats), 1)
        fresh = maybe_init_scene(self.path, name="Two", overwrite=True)
        self.assertEqual(fresh.name, "Two")
        self.assertEqual(fresh.seats, {})


class TestTemplates(unittest.TestCase):
    def test_all_templates_build(self):
        for template_id in TEMPLATES:
            scene = build_template(template_id)
            self.assertTrue(scene.all_element_ids())
            self.assertEqual(Scene.from_document(scene.export_scene()).export_scene(), scene.export_scene())

    def test_banquet(self):
        scene = build_template("banquet")
        self.assertEqual(len(scene.tables), 7)
        self.assertEqual(len(scene.seats), 6 * 8 + 10)

    def test_unknown(self):
        with self.assertRaises(SceneError):
            build_template("stadium")


class TestRender(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(render_ascii(Scene()), "(empty scene)")

    def test_ascii_and_listing(self):
        s = Scene("Small")
        s.create_row("A", 5, (0, 0))
        s.create_area("Bar area", (0, 100), (200, 60))
        drawing = render_ascii(s, width=40)
        self.assertIn("o", drawing)
        self.assertIn(".", drawing)
        self.assertTrue(all(len(line) <= 40 for line in drawing.splitlines()))
        listing = render_listing(s)
        self.assertTrue(listing.startswith("Small"))
        self.assertIn("row", listing)
        self.assertIn("area", listing)


if __name__ == "__main__":
    unittest.main()
