from __future__ import annotations

"""
Property tests for the Selection State Engine.

Random listings are driven through random toggle sequences (seeded for
reproducibility). After every step the engine must satisfy:
1. Fixed point: re-running the ascend rule changes nothing.
2. Cascade completeness: a folder toggle reaches every descendant.
3. Tri-state correctness: each folder matches its direct children.
4. Change reporting: every key whose state changed is reported.
"""

import random
from typing import Dict, Optional

from repocontext.core.selection.engine import SelectionEngine
from repocontext.core.tree.pathkeys import descendants_of, is_folder_key
from repocontext.domain.models import TriState

SEEDS = range(30)
STEPS = 25


def _all_states(engine: SelectionEngine) -> Dict[str, Optional[TriState]]:
    return {key: engine.state_of(key) for key in engine.selection}


def _expected_state(engine: SelectionEngine, folder: str) -> Optional[TriState]:
    children = [c for c in engine.index.children_of(folder) if c in engine.selection]
    if not children:
        return None
    states = {engine.state_of(c) for c in children}
    if states == {TriState.CHECKED}:
        return TriState.CHECKED
    if states == {TriState.UNCHECKED}:
        return TriState.UNCHECKED
    return TriState.MIXED


def _run(seed: int, random_listing, check) -> None:
    rng = random.Random(seed)
    items = random_listing(seed)
    engine = SelectionEngine()
    engine.initialize(items)
    keys = sorted(engine.selection)

    for step in range(STEPS):
        key = rng.choice(keys)
        value = rng.random() < 0.5
        before = _all_states(engine)
        result = engine.toggle(key, value)
        check(engine, items, key, value, before, result, f"seed={seed} step={step} key={key}")


def test_toggle_reaches_fixed_point(random_listing) -> None:
    def check(engine, items, key, value, before, result, ctx):
        assert engine.is_consistent(), ctx
        for k in engine.selection:
            assert engine.ascend(k) == {}, ctx

    for seed in SEEDS:
        _run(seed, random_listing, check)


def test_folder_toggle_cascade_is_complete(random_listing) -> None:
    def check(engine, items, key, value, before, result, ctx):
        if not is_folder_key(key):
            return
        for descendant in descendants_of(key, engine.index.items):
            assert engine.selection[descendant] is value, ctx
            if not is_folder_key(descendant) or not engine.index.children_of(descendant):
                continue
            assert engine.state_of(descendant) is TriState.from_bool(value), ctx

    for seed in SEEDS:
        _run(seed, random_listing, check)


def test_folder_tri_state_matches_children(random_listing) -> None:
    def check(engine, items, key, value, before, result, ctx):
        for folder in engine.selection:
            if not is_folder_key(folder):
                continue
            expected = _expected_state(engine, folder)
            if expected is None:
                continue
            assert engine.state_of(folder) is expected, f"{ctx} folder={folder}"
            assert engine.selection[folder] is (expected is TriState.CHECKED), ctx

    for seed in SEEDS:
        _run(seed, random_listing, check)


def test_toggle_reports_every_changed_key(random_listing) -> None:
    def check(engine, items, key, value, before, result, ctx):
        after = _all_states(engine)
        really_changed = {k for k in after if after[k] is not before[k]}

        assert really_changed <= result.keys, ctx
        assert result.keys - really_changed <= {key}, ctx
        for k, state in result.changed.items():
            assert after[k] is state, ctx

    for seed in SEEDS:
        _run(seed, random_listing, check)


def test_file_states_are_never_mixed(random_listing) -> None:
    def check(engine, items, key, value, before, result, ctx):
        for k in engine.selection:
            if not is_folder_key(k):
                assert engine.state_of(k) is not TriState.MIXED, ctx

    for seed in SEEDS:
        _run(seed, random_listing, check)


def test_stale_keys_never_survive_initialize(random_listing) -> None:
    for seed in SEEDS:
        items = random_listing(seed)
        persisted = {"ghost.txt": False, "ghost/": True, "src/ghost.py": False}
        engine = SelectionEngine()
        selection = engine.initialize(items, persisted)

        assert not set(persisted) & set(selection), f"seed={seed}"
        assert set(selection) == set(engine.index.nodes), f"seed={seed}"
        assert engine.is_consistent(), f"seed={seed}"
