"""
SignerRegistry: construction invariants, capability-guarded mutation, events.
"""

from __future__ import annotations

import pickle

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from quorumgate.errors import (
    AlreadyMember,
    InvalidConfiguration,
    InvalidInput,
    NotMember,
    Unauthorized,
)
from quorumgate.events import EventKind, EventLog
from quorumgate.gate import AdminCapability, SelfAdministrationGate
from quorumgate.registry import SignerRegistry
from quorumgate.utils.bytes import ZERO_ADDRESS

A = b"\xaa" * 20
B = b"\xbb" * 20
C = b"\xcc" * 20
D = b"\xdd" * 20


def _registry(signers=(A, B, C), threshold=2, **kw):
    cap = AdminCapability()
    reg = SignerRegistry(list(signers), threshold, gate=SelfAdministrationGate(cap), **kw)
    return reg, cap


# ----------------------------- construction -----------------------------

_addresses = st.binary(min_size=20, max_size=20).filter(lambda x: x != ZERO_ADDRESS)


@settings(max_examples=150, deadline=None)
@given(signers=st.lists(_addresses, max_size=6, unique=True), threshold=st.integers(-2, 8))
def test_construction_succeeds_iff_threshold_in_range(signers, threshold):
    gate = SelfAdministrationGate(AdminCapability())
    ok = bool(signers) and 1 <= threshold <= len(signers)
    if ok:
        reg = SignerRegistry(signers, threshold, gate=gate)
        assert set(reg.signers()) == set(signers)
        assert reg.threshold == threshold
    else:
        with pytest.raises(InvalidConfiguration):
            SignerRegistry(signers, threshold, gate=gate)


def test_duplicates_in_initial_list_collapse_before_threshold_check():
    gate = SelfAdministrationGate(AdminCapability())
    with pytest.raises(InvalidConfiguration):
        SignerRegistry([A, A, B], 3, gate=gate)
    reg = SignerRegistry([A, A, B], 2, gate=gate)
    assert len(reg) == 2


@pytest.mark.parametrize(
    "signers",
    [
        [ZERO_ADDRESS, A],
        [b"\x01" * 19],
        ["0x" + "aa" * 20],
    ],
)
def test_rejects_malformed_signers(signers):
    with pytest.raises(InvalidConfiguration):
        SignerRegistry(signers, 1, gate=SelfAdministrationGate(AdminCapability()))


@pytest.mark.parametrize("threshold", [0, True, 1.5, "1"])
def test_rejects_non_positive_or_non_int_threshold(threshold):
    with pytest.raises(InvalidConfiguration):
        SignerRegistry([A, B], threshold, gate=SelfAdministrationGate(AdminCapability()))


# ----------------------------- gate -----------------------------


def test_mutators_without_capability_are_unauthorized():
    reg, _ = _registry()
    with pytest.raises(Unauthorized):
        reg.add(D)
    with pytest.raises(Unauthorized):
        reg.remove(A)
    with pytest.raises(Unauthorized):
        reg.swap(A, D)
    assert set(reg.signers()) == {A, B, C}


def test_foreign_capability_is_unauthorized():
    reg, _ = _registry()
    with pytest.raises(Unauthorized) as ei:
        reg.add(D, capability=AdminCapability())
    assert ei.value.details["operation"] == "addSigner"


def test_gate_runs_before_precondition():
    reg, _ = _registry()
    # A is already a member, but the caller has no capability.
    with pytest.raises(Unauthorized):
        reg.add(A)


def test_capability_cannot_be_pickled_or_copied():
    import copy

    cap = AdminCapability()
    with pytest.raises(TypeError):
        pickle.dumps(cap)
    assert copy.copy(cap) is cap
    assert copy.deepcopy(cap) is cap


# ----------------------------- mutation -----------------------------


def test_add_remove_and_preconditions():
    reg, cap = _registry()
    reg.add(D, capability=cap)
    assert D in reg
    with pytest.raises(AlreadyMember):
        reg.add(D, capability=cap)

    reg.remove(A, capability=cap)
    assert not reg.contains(A)
    with pytest.raises(NotMember):
        reg.remove(A, capability=cap)
    assert set(reg.signers()) == {B, C, D}


def test_swap_replaces_and_requires_old_member():
    reg, cap = _registry()
    reg.swap(A, D, capability=cap)
    assert set(reg.signers()) == {B, C, D}
    with pytest.raises(NotMember):
        reg.swap(A, D, capability=cap)


def test_swap_to_existing_member_shrinks_set():
    reg, cap = _registry()
    reg.swap(A, B, capability=cap)
    assert set(reg.signers()) == {B, C}


def test_swap_to_self_is_a_no_op_on_membership():
    reg, cap = _registry()
    reg.swap(A, A, capability=cap)
    assert set(reg.signers()) == {A, B, C}


def test_mutators_reject_bad_identities():
    reg, cap = _registry()
    with pytest.raises(InvalidInput):
        reg.add(ZERO_ADDRESS, capability=cap)
    with pytest.raises(InvalidInput):
        reg.add(b"\x01" * 21, capability=cap)
    with pytest.raises(InvalidInput):
        reg.swap(A, ZERO_ADDRESS, capability=cap)
    assert set(reg.signers()) == {A, B, C}


def test_threshold_gap_is_preserved_by_default():
    reg, cap = _registry(threshold=3)
    reg.remove(C, capability=cap)
    assert len(reg) == 2
    assert reg.threshold == 3


def test_guard_refuses_removal_below_threshold():
    reg, cap = _registry(threshold=3, guard_threshold_on_removal=True)
    with pytest.raises(InvalidConfiguration):
        reg.remove(C, capability=cap)
    with pytest.raises(InvalidConfiguration):
        reg.swap(A, B, capability=cap)
    # a plain swap keeps the count and is allowed
    reg.swap(A, D, capability=cap)
    assert set(reg.signers()) == {B, C, D}


# ----------------------------- events / snapshot -----------------------------


def test_mutations_emit_events_in_order():
    events = EventLog()
    seen = []
    events.subscribe(seen.append)
    reg, cap = _registry(events=events)

    reg.add(D, capability=cap)
    reg.remove(B, capability=cap)
    reg.swap(A, B, capability=cap)

    assert [(e.kind, e.identity) for e in events.events] == [
        (EventKind.SIGNER_ADDED, D),
        (EventKind.SIGNER_REMOVED, B),
        (EventKind.SIGNER_REMOVED, A),
        (EventKind.SIGNER_ADDED, B),
    ]
    assert seen == events.events
    assert events.events[0].to_dict() == {"name": "SignerAdded", "identity": "0x" + "dd" * 20}


def test_failed_mutation_emits_nothing():
    reg, cap = _registry()
    with pytest.raises(NotMember):
        reg.remove(D, capability=cap)
    assert len(reg.events) == 0


def test_unsubscribe_stops_notifications():
    events = EventLog()
    seen = []
    unsubscribe = events.subscribe(seen.append)
    reg, cap = _registry(events=events)
    reg.add(D, capability=cap)
    unsubscribe()
    reg.remove(D, capability=cap)
    assert len(seen) == 1
    assert len(events) == 2


def test_snapshot_restore_rolls_back_members_and_events():
    reg, cap = _registry()
    snap = reg.snapshot()
    reg.add(D, capability=cap)
    reg.remove(A, capability=cap)
    with pytest.raises(Unauthorized):
        reg.restore(snap)
    reg.restore(snap, capability=cap)
    assert set(reg.signers()) == {A, B, C}
    assert len(reg.events) == 0
