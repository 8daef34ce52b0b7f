import os
import tempfile
import unittest


class TestSeatMapAPI(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        # Point the app at a temporary sqlite DB for tests.
        cls._tmpdir = tempfile.TemporaryDirectory()
        os.environ["SEATMAP_DATA_DIR"] = cls._tmpdir.name
        # Import after env var set so db uses the temp dir.
        from backend.app.db import init_db
        from backend.app.main import app

        cls.app = app
        init_db()

    @classmethod
    def tearDownClass(cls):
        cls._tmpdir.cleanup()

    def _client(self):
        from fastapi.testclient import TestClient

        return TestClient(self.app)

    def _scene(self, c, **body):
        r = c.post("/scenes", json=body)
        self.assertEqual(r.status_code, 200, r.text)
        return r.json()["id"]

    def test_health(self):
        c = self._client()
        self.assertEqual(c.get("/health").json(), {"ok": True})

    def test_database_lives_in_data_dir(self):
        from backend.app.db import database_url

        self.assertEqual(database_url(), f"sqlite:///{os.path.join(self._tmpdir.name, 'seatmap.db')}")

    def test_record_timestamps_are_timezone_aware(self):
        from sqlmodel import Session

        from backend.app.db import engine
        from backend.app.models import SceneRecord

        c = self._client()
        scene_id = self._scene(c, name="Stamped")
        with Session(engine) as session:
            record = session.get(SceneRecord, scene_id)
            self.assertEqual(record.name, "Stamped")
        fresh = SceneRecord(name="x", document_json="{}")
        self.assertIsNotNone(fresh.created_at.tzinfo)
        self.assertIsNotNone(fresh.updated_at.tzinfo)

    def test_create_scene_rows_and_tables(self):
        c = self._client()
        scene_id = self._scene(c, name="Arena")

        row = c.post(f"/scenes/{scene_id}/rows", json={"label": "A", "seat_count": 4}).json()
        self.assertEqual(len(row["seats"]), 4)

        curved = c.post(
            f"/scenes/{scene_id}/curved-rows",
            json={"label": "B", "seat_count": 5, "start": {"x": 0, "y": 0}, "end": {"x": 300, "y": 0}, "curvature": 3},
        ).json()
        self.assertEqual(curved["curve"], 1.5)

        table = c.post(
            f"/scenes/{scene_id}/tables",
            json={"label": "T1", "position": {"x": 0, "y": 0}, "seat_count": 6},
        ).json()
        self.assertEqual(len(table["seats"]), 6)

        bulk = c.post(
            f"/scenes/{scene_id}/rows/bulk",
            json={"rows": [{"label": "C", "seat_count": 2}, {"label": "D", "seat_count": 2}], "base_position": {"x": 0, "y": 500}},
        ).json()
        self.assertEqual(len(bulk["ids"]), 2)

        doc = c.get(f"/scenes/{scene_id}").json()
        self.assertEqual(doc["name"], "Arena")
        self.assertEqual(len(doc["rows"]), 4)
        self.assertEqual(len(doc["seats"]), 4 + 5 + 6 + 4)

        listed = c.get("/scenes").json()
        self.assertIn(scene_id, [s["id"] for s in listed])

    def test_other_elements(self):
        c = self._client()
        scene_id = self._scene(c)
        section = c.post(f"/scenes/{scene_id}/sections", json={"label": "Floor", "default_price": 25}).json()["id"]
        seat = c.post(
            f"/scenes/{scene_id}/seats",
            json={"label": "1", "position": {"x": 5, "y": 5}, "seat_type": "vip", "section_id": section},
        ).json()["id"]
        area = c.post(
            f"/scenes/{scene_id}/areas",
            json={"label": "Lobby", "position": {"x": 0, "y": 0}, "size": {"width": 50, "height": 40}, "shape": "oval"},
        ).json()["id"]
        line = c.post(
            f"/scenes/{scene_id}/lines",
            json={"label": "Wall", "points": [{"x": 0, "y": 0}, {"x": 100, "y": 0}]},
        ).json()["id"]
        stage = c.post(
            f"/scenes/{scene_id}/structures",
            json={"label": "Stage", "type": "stage", "position": {"x": 0, "y": -100}, "size": {"width": 200, "height": 50}},
        ).json()["id"]

        doc = c.get(f"/scenes/{scene_id}").json()
        self.assertEqual(doc["seats"][seat]["type"], "vip")
        self.assertEqual(doc["seats"][seat]["sectionId"], section)
        self.assertEqual(doc["areas"][area]["shape"], "oval")
        self.assertEqual(doc["areas"][line]["shape"], "line")
        self.assertEqual(doc["structures"][stage]["type"], "stage")

        r = c.post(f"/scenes/{scene_id}/lines", json={"label": "Dot", "points": [{"x": 0, "y": 0}]})
        self.assertEqual(r.status_code, 422)

    def test_row_edits(self):
        c = self._client()
        scene_id = self._scene(c)
        row_id = c.post(
            f"/scenes/{scene_id}/curved-rows",
            json={"label": "A", "seat_count": 5, "start": {"x": 0, "y": 0}, "end": {"x": 300, "y": 0}},
        ).json()["id"]

        r = c.put(f"/scenes/{scene_id}/rows/{row_id}/curve", json={"point": {"x": 150, "y": 52.5}})
        self.assertAlmostEqual(r.json()["curve"], 0.5)

        r = c.put(f"/scenes/{scene_id}/rows/{row_id}/endpoint", json={"which": "end", "point": {"x": 400, "y": 0}})
        self.assertEqual(r.json()["end"], {"x": 400.0, "y": 0.0})

        r = c.put(f"/scenes/{scene_id}/rows/{row_id}", json={"label": "AA", "seat_count": 3, "seat_price": 10})
        self.assertEqual(r.json()["label"], "AA")
        self.assertEqual(len(r.json()["seats"]), 3)
        seat_id = r.json()["seats"][0]

        r = c.put(f"/scenes/{scene_id}/seats/{seat_id}", json={"status": "blocked"})
        self.assertEqual(r.json()["status"], "blocked")
        self.assertEqual(r.json()["price"], 10.0)

        self.assertEqual(c.put(f"/scenes/{scene_id}/rows/row_0_missing", json={"label": "x"}).status_code, 404)
        self.assertEqual(c.put(f"/scenes/{scene_id}/rows/{row_id}/curve", json={}).status_code, 400)

    def test_selection_ops(self):
        c = self._client()
        scene_id = self._scene(c)
        a = c.post(
            f"/scenes/{scene_id}/areas",
            json={"label": "A", "position": {"x": 0, "y": 0}, "size": {"width": 100, "height": 100}},
        ).json()["id"]
        b = c.post(
            f"/scenes/{scene_id}/areas",
            json={"label": "B", "position": {"x": 500, "y": 500}, "size": {"width": 100, "height": 100}},
        ).json()["id"]

        c.post(f"/scenes/{scene_id}/move", json={"ids": [a], "dx": 10, "dy": 20})
        c.post(f"/scenes/{scene_id}/rotate", json={"ids": [a], "degrees": 45})
        c.post(f"/scenes/{scene_id}/z-order", json={"ids": [a], "direction": "front"})
        c.post(f"/scenes/{scene_id}/relabel", json={"ids": [a, b], "pattern": "Zone {n}"})
        c.put(f"/scenes/{scene_id}/elements/{b}/size", json={"size": {"width": 10, "height": 10}})
        doc = c.get(f"/scenes/{scene_id}").json()
        self.assertEqual(doc["areas"][a]["position"], {"x": 10.0, "y": 20.0})
        self.assertEqual(doc["areas"][a]["rotation"], 45.0)
        self.assertEqual(doc["areas"][a]["zIndex"], 1)
        self.assertEqual(doc["areas"][b]["label"], "Zone 2")
        self.assertEqual(doc["areas"][b]["size"], {"width": 10.0, "height": 10.0})

        hit = c.post(f"/scenes/{scene_id}/hit-test", json={"point": {"x": 60, "y": 70}}).json()
        self.assertEqual(hit["topmost"], a)

        picked = c.post(
            f"/scenes/{scene_id}/box-select",
            json={"corner_a": {"x": 0, "y": 0}, "corner_b": {"x": 1000, "y": 1000}},
        ).json()["selected"]
        self.assertEqual(picked, [a, b])

        c.post(f"/scenes/{scene_id}/lock", json={"ids": [a]})
        hit = c.post(f"/scenes/{scene_id}/hit-test", json={"point": {"x": 60, "y": 70}}).json()
        self.assertEqual(hit["stack"], [a])
        self.assertIsNone(hit["topmost"])

        bounds = c.post(f"/scenes/{scene_id}/selection-bounds", json={"ids": [b]}).json()["bounds"]
        self.assertEqual(bounds["min_x"], 492.0)

        deleted = c.post(f"/scenes/{scene_id}/delete", json={"ids": [a, b]}).json()["deleted"]
        self.assertEqual(sorted(deleted), sorted([a, b]))

    def test_element_updates(self):
        c = self._client()
        scene_id = self._scene(c)
        table = c.post(
            f"/scenes/{scene_id}/tables",
            json={"label": "T", "position": {"x": 0, "y": 0}, "seat_count": 4},
        ).json()["id"]
        r = c.put(f"/scenes/{scene_id}/tables/{table}", json={"shape": "rectangular", "size": {"width": 120, "height": 60}})
        self.assertEqual(r.json()["shape"], "rectangular")
        self.assertEqual(r.json()["size"], {"width": 120.0, "height": 60.0})

        stage = c.post(
            f"/scenes/{scene_id}/structures",
            json={"label": "S", "position": {"x": 0, "y": 0}, "size": {"width": 10, "height": 10}},
        ).json()["id"]
        r = c.put(f"/scenes/{scene_id}/structures/{stage}", json={"type": "bar", "label": "Bar"})
        self.assertEqual((r.json()["type"], r.json()["label"]), ("bar", "Bar"))

        area = c.post(
            f"/scenes/{scene_id}/areas",
            json={"label": "A", "position": {"x": 0, "y": 0}, "size": {"width": 10, "height": 10}},
        ).json()["id"]
        r = c.put(f"/scenes/{scene_id}/areas/{area}", json={"color": "#000000", "opacity": 0.5})
        self.assertEqual((r.json()["color"], r.json()["opacity"]), ("#000000", 0.5))

        section = c.post(f"/scenes/{scene_id}/sections", json={"label": "Floor"}).json()["id"]
        r = c.put(f"/scenes/{scene_id}/sections/{section}", json={"default_price": 40})
        self.assertEqual(r.json()["defaultPrice"], 40.0)

        self.assertEqual(c.put(f"/scenes/{scene_id}/areas/area_0_missing", json={}).status_code, 404)

    def test_import_export_and_reset(self):
        c = self._client()
        scene_id = self._scene(c, name="Banquet", template="banquet")
        doc = c.get(f"/scenes/{scene_id}").json()
        self.assertEqual(doc["name"], "Banquet")
        self.assertEqual(len(doc["tables"]), 7)

        copy = c.post("/scenes/import", json=doc).json()
        self.assertEqual(c.get(f"/scenes/{copy['id']}").json(), doc)

        r = c.put(f"/scenes/{scene_id}/document", json={"rows": "nope"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(c.get(f"/scenes/{scene_id}").json(), doc)
        self.assertEqual(c.post("/scenes/import", json={"name": 3}).status_code, 400)

        c.put(f"/scenes/{scene_id}/name", json={"name": "Gala"})
        self.assertEqual(c.get(f"/scenes/{scene_id}").json()["name"], "Gala")

        c.post(f"/scenes/{scene_id}/reset")
        doc = c.get(f"/scenes/{scene_id}").json()
        self.assertEqual(doc["name"], "Untitled Map")
        self.assertEqual(doc["tables"], {})

        self.assertEqual(c.post("/scenes", json={"template": "stadium"}).status_code, 400)
        self.assertEqual(c.delete(f"/scenes/{scene_id}").json(), {"deleted": True})
        self.assertEqual(c.get(f"/scenes/{scene_id}").status_code, 404)


if __name__ == "__main__":
    unittest.main()
