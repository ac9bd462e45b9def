#!/usr/bin/env python3
"""
Scene template JSON loading utilities.

Schema
======
Template JSON (gravsim/templates/*.json):
{
  "name": "Human-friendly scene name",
  "description": "Optional description",
  "bodies": [
    {
      "name": "Sun",
      "mass": 1.98847e30,
      "radius": 6.9551e8,
      "position": [0.0, 0.0],
      "velocity": [0.0, 0.0]
    }
  ]
}

Users can add their own JSON files to the templates folder (or pass another folder)
and they'll be picked up by the loader.
"""
import json
import logging
import os
from typing import List, Optional, Tuple

from .data_models import Body

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "templates")


def _read_json(path: str) -> Optional[dict]:
  try:
    with open(path, "r", encoding="utf-8") as f:
      return json.load(f)
  except (OSError, ValueError) as exc:
    logger.warning("Could not read template %s: %s", path, exc)
    return None


def _body_from_json(b: dict, t: float) -> Body:
  return Body.create(
    name=str(b.get("name", "Body")),
    mass=float(b["mass"]),
    radius=float(b["radius"]),
    position=(float(b["position"][0]), float(b["position"][1])),
    velocity=(float(b["velocity"][0]), float(b["velocity"][1])),
    t=t,
  )


def list_templates(directory: str = TEMPLATES_DIR) -> List[Tuple[str, str]]:
  """Return list of (file_name, display_name) for available templates."""
  items: List[Tuple[str, str]] = []
  if not os.path.isdir(directory):
    return items
  for fn in sorted(os.listdir(directory)):
    if not fn.lower().endswith(".json"):
      continue
    data = _read_json(os.path.join(directory, fn)) or {}
    display = data.get("name") or os.path.splitext(fn)[0]
    items.append((fn, display))
  return items


def load_template(file_name: str, directory: str = TEMPLATES_DIR,
                  t: float = 0.0) -> Tuple[List[Body], str]:
  """
  Load a template JSON by file name.
  Returns (bodies, display_name). Malformed or duplicate bodies are skipped.
  """
  path = os.path.join(directory, file_name)
  data = _read_json(path) or {}
  display_name = data.get("name") or os.path.splitext(file_name)[0]
  bodies: List[Body] = []
  seen = set()
  for b in data.get("bodies", []):
    try:
      body = _body_from_json(b, t)
    except (KeyError, IndexError, TypeError, ValueError) as exc:
      logger.warning("Skipping malformed body in %s: %r (%s)", file_name, b, exc)
      continue
    if body.name in seen:
      logger.warning("Skipping duplicate body name '%s' in %s", body.name, file_name)
      continue
    seen.add(body.name)
    bodies.append(body)
  return bodies, display_name
