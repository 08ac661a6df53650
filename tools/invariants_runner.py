#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Round-trip invariants (property tests) for the gidser codec.
#
# This runner:
# - generates random value trees (dict/list/scalars) with model records mixed in
# - checks the pack/unpack laws against them
# - deletes random records and checks that exactly those positions decode to None
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, json, random
from typing import Any, Dict, List, Optional

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(ROOT, "implementations", "python"))

from gidser import GID_PREFIX, GlobalID, Identifiable, Identification, Locator, pack, unpack, from_text, to_text

SEED = int(os.environ.get("GIDSER_SEED", "1337"))
TRIALS = int(os.environ.get("GIDSER_TRIALS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("GIDSER_GEN_MAX_DEPTH", "6"))
MAX_KEYS = int(os.environ.get("GIDSER_GEN_MAX_KEYS", "6"))
MAX_LIST = int(os.environ.get("GIDSER_GEN_MAX_LIST", "6"))
MAX_STR = int(os.environ.get("GIDSER_GEN_MAX_STR", "24"))
POOL_SIZE = int(os.environ.get("GIDSER_POOL_SIZE", "20"))

random.seed(SEED)

class Node(Identification, register=False):
    """Record whose `links` point at other records (and possibly itself)."""
    store: Dict[str, "Node"] = {}

    def __init__(self, id: int) -> None:
        self.id = id
        self.links: List["Node"] = []
        Node.store[str(id)] = self

    @classmethod
    def find(cls, model_id: str) -> Optional["Node"]:
        return cls.store.get(model_id)

LOCATOR = Locator()
LOCATOR.register(Node)

def make_pool() -> List[Node]:
    Node.store.clear()
    pool = [Node(i) for i in range(POOL_SIZE)]
    # Dense cross-links, self-links included: pack must never follow them.
    for n in pool:
        n.links = random.sample(pool, random.randint(0, len(pool)))
    return pool

def rand_str() -> str:
    out = []
    for _ in range(random.randint(0, MAX_STR)):
        r = random.random()
        if r < 0.80:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.95:
            out.append(chr(random.randint(0xA0, 0xD7FF)))
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    s = "".join(out)
    # Plain strings must never look like references.
    return "x" + s if s.startswith(GID_PREFIX) else s

def rand_scalar() -> Any:
    r = random.random()
    if r < 0.55:
        return rand_str()
    if r < 0.75:
        return random.randint(-10**12, 10**12)
    if r < 0.85:
        return random.random() * 1000
    if r < 0.95:
        return random.choice([True, False])
    return None

def gen_value(depth: int, pool: List[Node], models: bool) -> Any:
    if depth >= MAX_GEN_DEPTH:
        return random.choice(pool) if models and random.random() < 0.3 else rand_scalar()
    r = random.random()
    if r < 0.35:
        keys = list(dict.fromkeys(rand_str() for _ in range(random.randint(0, MAX_KEYS))))
        return {k: gen_value(depth + 1, pool, models) for k in keys}
    if r < 0.65:
        return [gen_value(depth + 1, pool, models) for _ in range(random.randint(0, MAX_LIST))]
    if models and r < 0.85:
        return random.choice(pool)
    return rand_scalar()

def contains_identifiable(v: Any) -> bool:
    if isinstance(v, Identifiable):
        return True
    if isinstance(v, dict):
        return any(contains_identifiable(x) for x in v.values())
    if isinstance(v, list):
        return any(contains_identifiable(x) for x in v)
    return False

def drop(v: Any, gone: set) -> Any:
    """Expected decode after the records in `gone` were deleted."""
    if isinstance(v, Node):
        return None if v.id in gone else v
    if isinstance(v, dict):
        return {k: drop(x, gone) for k, x in v.items()}
    if isinstance(v, list):
        return [drop(x, gone) for x in v]
    return v

def fail(label: str, trial: int, **ctx: Any) -> int:
    print("INVARIANT FAIL:", label, "trial", trial)
    for k, v in ctx.items():
        print("  {}: {}".format(k, repr(v)[:2000]))
    return 1

def main() -> int:
    saved_app = GlobalID.default_app
    GlobalID.default_app = "invariants"
    try:
        for t in range(TRIALS):
            pool = make_pool()
            plain = gen_value(0, pool, models=False)
            value = gen_value(0, pool, models=True)

            # (1) Plain trees are fixed points of pack and unpack.
            if pack(plain) != plain or unpack(plain, LOCATOR.locate) != plain:
                return fail("plain fixed point", t, tree=plain)

            # (2) Packed trees hold no models and encode as JSON.
            packed = pack(value)
            if contains_identifiable(packed):
                return fail("model survived pack", t, packed=packed)
            try:
                text = to_text(value)
            except (TypeError, ValueError) as e:
                return fail("packed tree not JSON-encodable", t, error=e)

            # (3) Pack is idempotent.
            if pack(packed) != packed:
                return fail("pack idempotence", t, packed=packed)

            # (4) Round trip through plain data and through text.
            if unpack(packed, LOCATOR.locate) != value:
                return fail("plain round trip", t, packed=packed)
            if from_text(text, locate=LOCATOR.locate) != value:
                return fail("text round trip", t, text=text)

            # (5) Deleted records decode to None, everything else survives.
            gone = {n.id for n in random.sample(pool, random.randint(0, len(pool)))}
            for i in gone:
                del Node.store[str(i)]
            if unpack(packed, LOCATOR.locate) != drop(value, gone):
                return fail("missing records", t, gone=sorted(gone), packed=packed)
    finally:
        GlobalID.default_app = saved_app

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
