from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .scene import InvalidDocumentError, Scene, SceneError
from .templates import build_template

logger = logging.getLogger(__name__)


def load_scene(path: str | Path) -> Scene:
    p = Path(path)
    if not p.exists():
        raise SceneError(f"scene file not found: {p}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise SceneError(f"failed to read scene file: {e}") from e

    scene = Scene()
    try:
        scene.import_scene(text)
    except InvalidDocumentError as e:
        raise InvalidDocumentError(f"{p}: {e}") from e
    return scene


def save_scene(scene: Scene, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(scene.export_json(indent=2) + "\n", encoding="utf-8")
    logger.debug("saved scene %r to %s", scene.name, p)


def maybe_init_scene(
    path: str | Path,
    *,
    name: Optional[str] = None,
    template: Optional[str] = None,
    overwrite: bool = False,
) -> Scene:
    p = Path(path)
    if p.exists() and not overwrite:
        return load_scene(p)

    scene = build_template(template) if template else Scene()
    if name:
        scene.set_name(name)
    save_scene(scene, p)
    return scene
