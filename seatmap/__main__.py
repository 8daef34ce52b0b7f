from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .geometry import GeometryError
from .models import AreaShape, StructureType, TableShape
from .render import render_ascii, render_listing
from .scene import Scene, SceneError
from .storage import load_scene, maybe_init_scene, save_scene
from .templates import TEMPLATES


DEFAULT_FILE = "seatmap.json"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--file",
        default=DEFAULT_FILE,
        help=f"Path to scene JSON file (default: {DEFAULT_FILE})",
    )


def cmd_init(args: argparse.Namespace) -> int:
    scene = maybe_init_scene(args.file, name=args.name, template=args.template, overwrite=args.overwrite)
    print(f"Initialized scene {scene.name!r} at {args.file} ({len(scene.all_element_ids())} elements)")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    print(render_ascii(scene, width=args.width))
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    print(render_listing(scene, cell_width=args.width))
    return 0


def cmd_add_row(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    row_id = scene.create_row(args.label, args.seats, (args.x, args.y), args.section)
    save_scene(scene, args.file)
    print(row_id)
    return 0


def cmd_add_curved_row(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    row_id = scene.create_curved_row(args.label, args.seats, tuple(args.start), tuple(args.end), args.curve, args.section)
    save_scene(scene, args.file)
    print(row_id)
    return 0


def cmd_add_table(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    table_id = scene.create_table(args.label, (args.x, args.y), TableShape(args.shape), (args.width, args.height), args.seats)
    save_scene(scene, args.file)
    print(table_id)
    return 0


def cmd_add_area(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    area_id = scene.create_area(args.label, (args.x, args.y), (args.width, args.height), AreaShape(args.shape), color=args.color)
    save_scene(scene, args.file)
    print(area_id)
    return 0


def cmd_add_structure(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    sid = scene.create_structure(args.label, StructureType(args.type), (args.x, args.y), (args.width, args.height))
    save_scene(scene, args.file)
    print(sid)
    return 0


def cmd_add_section(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    sid = scene.create_section(args.label, args.color, args.number, args.price)
    save_scene(scene, args.file)
    print(sid)
    return 0


def cmd_move(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    scene.move_selection(args.ids, (args.dx, args.dy))
    save_scene(scene, args.file)
    print(f"Moved {len(args.ids)} element(s) by ({args.dx}, {args.dy})")
    return 0


def cmd_rotate(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    scene.rotate_selection(args.ids, args.degrees)
    save_scene(scene, args.file)
    print(f"Rotated {len(args.ids)} element(s) by {args.degrees} degrees")
    return 0


def cmd_front(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    scene.bring_to_front(args.ids)
    save_scene(scene, args.file)
    return 0


def cmd_back(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    scene.send_to_back(args.ids)
    save_scene(scene, args.file)
    return 0


def cmd_curve(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    if args.row not in scene.rows:
        print("Not found")
        return 1
    scene.update_row_curve(args.row, args.curvature)
    save_scene(scene, args.file)
    print(f"Row curvature is now {scene.rows[args.row].curve}")
    return 0


def cmd_lock(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    if args.unlock:
        scene.unlock(args.ids)
    else:
        scene.lock(args.ids)
    save_scene(scene, args.file)
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    removed = scene.delete_selected(args.ids)
    save_scene(scene, args.file)
    print(f"Deleted {len(removed)} element(s)")
    return 0


def cmd_relabel(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    scene.update_selected_labels(args.ids, args.pattern)
    save_scene(scene, args.file)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    scene = load_scene(args.file)
    save_scene(scene, args.output)
    print(f"Exported scene to {args.output}")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    inp = Path(args.input)
    if not inp.exists():
        raise SceneError(f"input file not found: {inp}")
    scene = Scene()
    scene.import_scene(inp.read_text(encoding="utf-8"))
    save_scene(scene, args.file)
    print(f"Imported {inp} into {args.file}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="seatmap", description="Venue seat map editor (CLI).")
    p.add_argument("-v", "--verbose", action="store_true", help="Log scene mutations")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create a new scene JSON file")
    _add_common_args(p_init)
    p_init.add_argument("--name")
    p_init.add_argument("--template", choices=sorted(TEMPLATES), help="Start from a built-in layout")
    p_init.add_argument("--overwrite", action="store_true", help="Overwrite existing scene file")
    p_init.set_defaults(func=cmd_init)

    p_show = sub.add_parser("show", help="Draw the scene as text")
    _add_common_args(p_show)
    p_show.add_argument("--width", type=int, default=80, help="Drawing width in characters")
    p_show.set_defaults(func=cmd_show)

    p_list = sub.add_parser("list", help="List the scene's elements")
    _add_common_args(p_list)
    p_list.add_argument("--width", type=int, default=14, help="Cell width for display")
    p_list.set_defaults(func=cmd_list)

    p_row = sub.add_parser("add-row", help="Add a straight row of seats")
    _add_common_args(p_row)
    p_row.add_argument("--label", required=True)
    p_row.add_argument("--seats", type=int, required=True)
    p_row.add_argument("--x", type=float, default=100.0)
    p_row.add_argument("--y", type=float, default=100.0)
    p_row.add_argument("--section")
    p_row.set_defaults(func=cmd_add_row)

    p_curved = sub.add_parser("add-curved-row", help="Add a row of seats along a curve")
    _add_common_args(p_curved)
    p_curved.add_argument("--label", required=True)
    p_curved.add_argument("--seats", type=int, required=True)
    p_curved.add_argument("--start", type=float, nargs=2, metavar=("X", "Y"), required=True)
    p_curved.add_argument("--end", type=float, nargs=2, metavar=("X", "Y"), required=True)
    p_curved.add_argument("--curve", type=float, default=0.0, help="Curvature, clamped to [-1.5, 1.5]")
    p_curved.add_argument("--section")
    p_curved.set_defaults(func=cmd_add_curved_row)

    p_table = sub.add_parser("add-table", help="Add a table with seats around it")
    _add_common_args(p_table)
    p_table.add_argument("--label", required=True)
    p_table.add_argument("--x", type=float, required=True)
    p_table.add_argument("--y", type=float, required=True)
    p_table.add_argument("--shape", choices=[s.value for s in TableShape], default=TableShape.round.value)
    p_table.add_argument("--width", type=float, default=80.0)
    p_table.add_argument("--height", type=float, default=80.0)
    p_table.add_argument("--seats", type=int, required=True)
    p_table.set_defaults(func=cmd_add_table)

    p_area = sub.add_parser("add-area", help="Add an area")
    _add_common_args(p_area)
    p_area.add_argument("--label", required=True)
    p_area.add_argument("--x", type=float, required=True)
    p_area.add_argument("--y", type=float, required=True)
    p_area.add_argument("--width", type=float, required=True)
    p_area.add_argument("--height", type=float, required=True)
    p_area.add_argument("--shape", choices=[s.value for s in AreaShape if s != AreaShape.line], default="rectangle")
    p_area.add_argument("--color", default="#e5e7eb")
    p_area.set_defaults(func=cmd_add_area)

    p_structure = sub.add_parser("add-structure", help="Add a stage, bar, entrance, exit or custom structure")
    _add_common_args(p_structure)
    p_structure.add_argument("--label", required=True)
    p_structure.add_argument("--type", choices=[s.value for s in StructureType], default="custom")
    p_structure.add_argument("--x", type=float, required=True)
    p_structure.add_argument("--y", type=float, required=True)
    p_structure.add_argument("--width", type=float, required=True)
    p_structure.add_argument("--height", type=float, required=True)
    p_structure.set_defaults(func=cmd_add_structure)

    p_section = sub.add_parser("add-section", help="Add a pricing/colour section")
    _add_common_args(p_section)
    p_section.add_argument("--label", required=True)
    p_section.add_argument("--color", default="#3b82f6")
    p_section.add_argument("--number", type=int)
    p_section.add_argument("--price", type=float)
    p_section.set_defaults(func=cmd_add_section)

    p_move = sub.add_parser("move", help="Move elements by a delta")
    _add_common_args(p_move)
    p_move.add_argument("ids", nargs="+")
    p_move.add_argument("--dx", type=float, default=0.0)
    p_move.add_argument("--dy", type=float, default=0.0)
    p_move.set_defaults(func=cmd_move)

    p_rotate = sub.add_parser("rotate", help="Rotate areas, tables and structures")
    _add_common_args(p_rotate)
    p_rotate.add_argument("ids", nargs="+")
    p_rotate.add_argument("--degrees", type=float, default=90.0)
    p_rotate.set_defaults(func=cmd_rotate)

    p_front = sub.add_parser("front", help="Bring elements to the front")
    _add_common_args(p_front)
    p_front.add_argument("ids", nargs="+")
    p_front.set_defaults(func=cmd_front)

    p_back = sub.add_parser("back", help="Send elements to the back")
    _add_common_args(p_back)
    p_back.add_argument("ids", nargs="+")
    p_back.set_defaults(func=cmd_back)

    p_curve = sub.add_parser("curve", help="Set a row's curvature")
    _add_common_args(p_curve)
    p_curve.add_argument("--row", required=True)
    p_curve.add_argument("--curvature", type=float, required=True)
    p_curve.set_defaults(func=cmd_curve)

    p_lock = sub.add_parser("lock", help="Lock (or --unlock) elements")
    _add_common_args(p_lock)
    p_lock.add_argument("ids", nargs="+")
    p_lock.add_argument("--unlock", action="store_true")
    p_lock.set_defaults(func=cmd_lock)

    p_delete = sub.add_parser("delete", help="Delete elements (rows and tables take their seats)")
    _add_common_args(p_delete)
    p_delete.add_argument("ids", nargs="+")
    p_delete.set_defaults(func=cmd_delete)

    p_relabel = sub.add_parser("relabel", help="Relabel elements with a {n}/{N} pattern")
    _add_common_args(p_relabel)
    p_relabel.add_argument("ids", nargs="+")
    p_relabel.add_argument("--pattern", required=True)
    p_relabel.set_defaults(func=cmd_relabel)

    p_export = sub.add_parser("export", help="Write the scene document to another file")
    _add_common_args(p_export)
    p_export.add_argument("--output", required=True)
    p_export.set_defaults(func=cmd_export)

    p_import = sub.add_parser("import", help="Replace the scene with a JSON document")
    _add_common_args(p_import)
    p_import.add_argument("--input", required=True)
    p_import.set_defaults(func=cmd_import)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return int(args.func(args))
    except (SceneError, GeometryError) as e:
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
