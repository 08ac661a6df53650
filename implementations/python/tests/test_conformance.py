"""gidser conformance test suite.

Runs all vectors from conformance_vectors.json against
conformance_expected.json.

Vector inputs are JSON.  Two conventions make model instances expressible:

  - in to_text inputs, a one-key map {"$record": "User/123"} stands for the
    live record User 123 from the "records" fixture list;
  - decoded values are rendered back the same way before comparison, so a
    located record shows up as {"$record": "User/123"}.

Usage:
    python tests/test_conformance.py [--vectors-dir DIR]
    python -m pytest tests/test_conformance.py -v
    PYTHONPATH=. GIDSER_VECTORS_DIR=../../conformance python tests/test_conformance.py
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import unittest
from typing import Any, Dict, List, Optional, Tuple

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from gidser import (
    GlobalID,
    Identification,
    Locator,
    from_text,
    to_text,
)

# ── Locate conformance data ───────────────────────────────────

_VECTORS_DIR: Optional[str] = os.environ.get("GIDSER_VECTORS_DIR", None)


def _find_vectors_dir() -> str:
    if _VECTORS_DIR:
        return _VECTORS_DIR
    candidates = [
        os.path.join(os.path.dirname(__file__), "..", "..", "..", "conformance"),
        os.path.join(os.path.dirname(__file__), "..", "..", "conformance"),
        os.path.join(os.path.dirname(__file__), "..", "conformance"),
    ]
    for d in candidates:
        if os.path.isfile(os.path.join(d, "conformance_vectors.json")):
            return d
    raise FileNotFoundError(
        "Cannot find conformance vectors. Set GIDSER_VECTORS_DIR or --vectors-dir."
    )


def _load_data() -> Tuple[dict, Dict[str, dict]]:
    """Load the vectors document and the expected results."""
    d = _find_vectors_dir()
    with open(os.path.join(d, "conformance_vectors.json"), "r", encoding="utf-8") as f:
        doc = json.load(f)
    with open(os.path.join(d, "conformance_expected.json"), "r", encoding="utf-8") as f:
        expected = json.load(f)["expected"]
    return doc, expected


# ── Fixture models ────────────────────────────────────────────
# Kept out of the default locator; every lookup goes through _LOCATOR.

class _Record(Identification, register=False):
    app = ""
    records: Dict[str, "_Record"] = {}

    def __init__(self, id: str, name: str) -> None:
        self.id = id
        self.name = name
        type(self).records[id] = self

    def to_global_id(self, **params: Any) -> GlobalID:
        return GlobalID.create(self, app=self.app, **params)

    @classmethod
    def find(cls, model_id: str) -> Optional["_Record"]:
        return cls.records.get(model_id)


class _User(_Record, register=False):
    model_name = "User"
    records: Dict[str, _Record] = {}


class _Document(_Record, register=False):
    model_name = "Document"
    records: Dict[str, _Record] = {}


_MODELS = {cls.model_name: cls for cls in (_User, _Document)}
_LOCATOR = Locator()
for _cls in _MODELS.values():
    _LOCATOR.register(_cls)


def _install_records(doc: dict) -> None:
    _Record.app = doc["app"]
    for cls in _MODELS.values():
        cls.records.clear()
    for rec in doc["records"]:
        _MODELS[rec["model"]](rec["id"], rec["name"])


def _materialize(tree: Any) -> Any:
    """Swap {"$record": "Model/id"} markers for live records."""
    if isinstance(tree, dict):
        if set(tree) == {"$record"}:
            model, _, model_id = tree["$record"].partition("/")
            return _MODELS[model].records[model_id]
        return {k: _materialize(v) for k, v in tree.items()}
    if isinstance(tree, list):
        return [_materialize(v) for v in tree]
    return tree


def _render(value: Any) -> Any:
    """Swap live records for {"$record": "Model/id"} markers."""
    if isinstance(value, _Record):
        return {"$record": "{}/{}".format(value.model_name, value.id)}
    if isinstance(value, dict):
        return {k: _render(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_render(v) for v in value]
    return value


def _run_vector(vec: dict) -> Dict[str, Any]:
    """Execute one conformance vector.  Returns {"text"|"value": ...} or {"err": ...}."""
    mode = vec["mode"]
    try:
        if mode == "to_text":
            return {"text": to_text(_materialize(vec["input"]))}
        elif mode == "from_text":
            return {"value": _render(from_text(vec["input"], locate=_LOCATOR.locate))}
        else:
            return {"err": "UNKNOWN_MODE"}
    except json.JSONDecodeError as e:
        return {"err": type(e).__name__}


# ── unittest integration ──────────────────────────────────────

class ConformanceTests(unittest.TestCase):
    """Dynamically generated: one test method per vector."""

    def setUp(self) -> None:
        _install_records(_doc)


def _make_test(vec: dict, exp: dict):
    def test_fn(self: unittest.TestCase) -> None:
        got = _run_vector(vec)
        self.assertEqual(got, exp,
                         "{}: got {} expected {}".format(vec["test_id"], got, exp))
    return test_fn


# Attach test methods at import time.
try:
    _doc, _expected = _load_data()
    for _vec in _doc["vectors"]:
        _tid = _vec["test_id"]
        _exp = _expected[_tid]
        _fn = _make_test(_vec, _exp)
        _fn.__name__ = "test_{}".format(_tid)
        _fn.__qualname__ = "ConformanceTests.test_{}".format(_tid)
        setattr(ConformanceTests, "test_{}".format(_tid), _fn)
except FileNotFoundError:
    pass


# ── Standalone CLI runner ─────────────────────────────────────

def main() -> None:
    global _VECTORS_DIR

    parser = argparse.ArgumentParser(description="gidser conformance runner")
    parser.add_argument("--vectors-dir", default=None,
                        help="Directory with conformance vector files")
    args, _remaining = parser.parse_known_args()

    if args.vectors_dir:
        _VECTORS_DIR = args.vectors_dir
        os.environ["GIDSER_VECTORS_DIR"] = args.vectors_dir

    doc, expected = _load_data()
    _install_records(doc)

    passed = 0
    failed = 0
    failures: List[Tuple[str, dict, dict]] = []

    for vec in doc["vectors"]:
        tid = vec["test_id"]
        got = _run_vector(vec)
        exp = expected[tid]
        if got == exp:
            passed += 1
        else:
            failed += 1
            failures.append((tid, got, exp))

    total = passed + failed
    print("CONFORMANCE (v{}): {}/{} PASS".format(doc.get("version", "?"), passed, total))
    for tid, got, exp in failures:
        print("  FAIL {}: got={} expected={}".format(tid, got, exp))

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
