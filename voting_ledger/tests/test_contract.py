from __future__ import annotations

import json

import pytest

from voting_ledger.contract import (
    SEED_VOTERS,
    do_voting,
    init_ledger,
    invoke,
    query_all_votes,
    query_voter,
)
from voting_ledger.errors import (
    AlreadySeededError,
    AlreadyVotedError,
    RecordFormatError,
    RecordNotFoundError,
)
from voting_ledger.record import UNVOTED, VoterRecord
from voting_ledger.response import ERROR, OK
from voting_ledger.store import MemoryStore
from voting_ledger.store.api import RangeIterator


def _records(store):
    return json.loads(query_all_votes(store))


def _snapshot(store):
    with store.scan("", "\uffff") as it:
        return dict(it)


# ---------------------------------------------------------------------------
# initLedger
# ---------------------------------------------------------------------------


def test_seed_writes_ten_unvoted_records(seeded):
    entries = _records(seeded)
    assert [e["Key"] for e in entries] == [f"VOTER{i}" for i in range(10)]
    assert all(e["Record"]["vote"] == UNVOTED for e in entries)
    assert all(e["Record"]["security"] == "PIN" for e in entries)
    assert entries[3]["Record"] == {
        "security": "PIN",
        "factor": "1000",
        "vote": "SINVOTAR",
        "ownerid": "098765",
        "ownerdesc": "Chaparron Bonaparte",
    }


def test_seed_is_idempotent_and_resets_votes(seeded):
    do_voting(seeded, "VOTER0", "CANDIDATE_A")
    assert init_ledger(seeded) == b""
    assert VoterRecord.from_bytes(seeded.get("VOTER0")).vote == UNVOTED
    assert len(_records(seeded)) == 10


def test_bootstrap_policy_refuses_populated_store(seeded, cfg):
    do_voting(seeded, "VOTER0", "CANDIDATE_A")
    bootstrap = cfg.with_overrides(seed_policy="bootstrap")
    with pytest.raises(AlreadySeededError) as ei:
        init_ledger(seeded, config=bootstrap)
    assert "VOTER0" in ei.value.context["keys"]
    # nothing was reset
    assert VoterRecord.from_bytes(seeded.get("VOTER0")).vote == "CANDIDATE_A"


def test_bootstrap_policy_seeds_empty_store(store, cfg):
    init_ledger(store, config=cfg.with_overrides(seed_policy="bootstrap"))
    assert len(_records(store)) == 10


def test_bootstrap_policy_from_environment(monkeypatch, memory_store):
    from voting_ledger.config import load_config

    init_ledger(memory_store)
    monkeypatch.setenv("VOTING_LEDGER_SEED_POLICY", "bootstrap")
    load_config.cache_clear()
    res = invoke(memory_store, "initLedger")
    assert res.code == "already_seeded"


def test_seed_failure_keeps_earlier_writes():
    class FailsOnFifthPut(MemoryStore):
        puts = 0

        def put(self, key, value):
            self.puts += 1
            if self.puts == 5:
                raise OSError("disk full")
            super().put(key, value)

    s = FailsOnFifthPut()
    res = invoke(s, "initLedger")
    assert res.status == ERROR and res.code == "store_error"
    assert s.keys() == ["VOTER0", "VOTER1", "VOTER2", "VOTER3"]


# ---------------------------------------------------------------------------
# queryVoter
# ---------------------------------------------------------------------------


def test_query_voter_returns_stored_bytes_verbatim(seeded):
    assert query_voter(seeded, "VOTER1") == SEED_VOTERS[1].to_bytes()


def test_query_voter_missing_key_is_empty_success(store):
    res = invoke(store, "queryVoter", ["VOTER77"])
    assert res.ok and res.status == OK
    assert res.payload == b""


@pytest.mark.parametrize("key", ["", "VOTER" + "9" * 80])
def test_query_voter_unwritable_key_is_empty_success(store, key):
    res = invoke(store, "queryVoter", [key])
    assert res.ok
    assert res.payload == b""


def test_vote_on_unwritable_key_is_not_found(store):
    res = invoke(store, "doVoting", ["VOTER" + "9" * 80, "CANDIDATE_A"])
    assert res.code == "record_not_found"


def test_query_voter_does_not_validate(store):
    store.put("VOTER0", b"not json at all")
    assert invoke(store, "queryVoter", ["VOTER0"]).payload == b"not json at all"


# ---------------------------------------------------------------------------
# queryAllVotes
# ---------------------------------------------------------------------------


def test_scan_on_empty_store_is_empty_array(store):
    res = invoke(store, "queryAllVotes")
    assert res.ok and res.payload == b"[]"


def test_scan_payload_shape(seeded):
    payload = query_all_votes(seeded)
    assert payload.startswith(b'[{"Key":"VOTER0","Record":{"security":"PIN"')
    assert b" " not in payload.split(b'"ownerdesc"')[0]


def test_scan_ignores_keys_outside_range(seeded):
    seeded.put("ADMIN", b'{"vote":"x"}')
    seeded.put("VOTES", b'{"vote":"x"}')
    keys = [e["Key"] for e in _records(seeded)]
    assert "ADMIN" not in keys and "VOTES" not in keys


def test_scan_includes_wider_indices_in_lexicographic_order(seeded):
    seeded.put("VOTER10", VoterRecord(vote=UNVOTED, owner_id="x").to_bytes())
    keys = [e["Key"] for e in _records(seeded)]
    assert keys[:3] == ["VOTER0", "VOTER1", "VOTER10"]
    assert len(keys) == 11


def test_corrupt_record_fails_the_scan(seeded):
    seeded.put("VOTER4", b"{broken")
    res = invoke(seeded, "queryAllVotes")
    assert res.code == "record_format"
    assert res.payload == b""


def test_scan_iterator_released_on_decode_failure():
    s = MemoryStore()
    s.put("VOTER0", b"{broken")
    with pytest.raises(RecordFormatError):
        query_all_votes(s)
    assert s.open_scans == 0


def test_store_failure_mid_scan_is_reported_and_released():
    class DropsConnection(MemoryStore):
        released = 0

        def scan(self, start, end):
            inner = super().scan(start, end)

            def entries():
                yield next(inner)
                raise ConnectionError("peer went away")

            def release():
                inner.close()
                self.released += 1

            return RangeIterator(entries(), on_close=release)

    s = DropsConnection()
    init_ledger(s)
    res = invoke(s, "queryAllVotes")
    assert res.code == "store_error"
    assert s.released == 1
    assert s.open_scans == 0


# ---------------------------------------------------------------------------
# doVoting
# ---------------------------------------------------------------------------


def test_vote_keeps_other_fields(seeded):
    # Scenario: VOTER0 votes CANDIDATE_A.
    assert invoke(seeded, "doVoting", ["VOTER0", "CANDIDATE_A"]).ok
    rec = json.loads(invoke(seeded, "queryVoter", ["VOTER0"]).payload)
    assert rec == {
        "security": "PIN",
        "factor": "100",
        "vote": "CANDIDATE_A",
        "ownerid": "12345",
        "ownerdesc": "Homero Simpson",
    }


def test_second_vote_rejected_and_record_unchanged(seeded):
    do_voting(seeded, "VOTER2", "CANDIDATE_A")
    before = seeded.get("VOTER2")
    res = invoke(seeded, "doVoting", ["VOTER2", "CANDIDATE_B"])
    assert res.status == ERROR
    assert res.code == "already_voted"
    assert res.message == "Already voted before!, you can only vote once"
    assert seeded.get("VOTER2") == before


def test_vote_on_missing_key(store):
    with pytest.raises(RecordNotFoundError):
        do_voting(store, "VOTER5", "CANDIDATE_A")
    assert store.get("VOTER5") == b""


def test_vote_on_corrupt_record(store):
    store.put("VOTER0", b"garbage")
    res = invoke(store, "doVoting", ["VOTER0", "CANDIDATE_A"])
    assert res.code == "record_format"
    assert store.get("VOTER0") == b"garbage"


def test_vote_only_touches_its_key(seeded):
    before = _snapshot(seeded)
    do_voting(seeded, "VOTER7", "CANDIDATE_C")
    after = _snapshot(seeded)
    changed = [k for k in before if before[k] != after[k]]
    assert changed == ["VOTER7"]


def test_lost_race_ends_in_already_voted():
    class RivalWinsFirst(MemoryStore):
        raced = False

        def compare_and_swap(self, key, expected, value):
            if not self.raced:
                self.raced = True
                rival = VoterRecord.from_bytes(expected).cast("RIVAL").to_bytes()
                super().put(key, rival)
            return super().compare_and_swap(key, expected, value)

    s = RivalWinsFirst()
    init_ledger(s)
    with pytest.raises(AlreadyVotedError):
        do_voting(s, "VOTER0", "CANDIDATE_A")
    assert VoterRecord.from_bytes(s.get("VOTER0")).vote == "RIVAL"


def test_concurrent_votes_single_winner(seeded):
    import threading

    outcomes = []
    barrier = threading.Barrier(6)

    def voter(choice: str) -> None:
        barrier.wait()
        outcomes.append(invoke(seeded, "doVoting", ["VOTER8", choice]))

    threads = [threading.Thread(target=voter, args=(f"C{i}",)) for i in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    winners = [r for r in outcomes if r.ok]
    assert len(winners) == 1
    assert {r.code for r in outcomes if not r.ok} == {"already_voted"}


# ---------------------------------------------------------------------------
# dispatch
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "function,args,expected",
    [
        ("initLedger", ["extra"], 0),
        ("queryAllVotes", ["x"], 0),
        ("queryVoter", [], 1),
        ("queryVoter", ["VOTER0", "VOTER1"], 1),
        ("doVoting", ["VOTER0"], 2),
        ("doVoting", ["VOTER0", "A", "B"], 2),
    ],
)
def test_wrong_arity_rejected_without_mutation(seeded, function, args, expected):
    before = _snapshot(seeded)
    res = invoke(seeded, function, args)
    assert res.code == "argument_count"
    assert res.message == f"Incorrect number of arguments. Expecting {expected}"
    assert _snapshot(seeded) == before


@pytest.mark.parametrize("name", ["bogus", "", "queryvoter", "QueryVoter"])
def test_unknown_function(store, name):
    res = invoke(store, name, [])
    assert res.code == "unknown_operation"
    assert res.message == "Invalid Smart Contract function name."


def test_non_string_args_are_stringified(seeded):
    assert invoke(seeded, "doVoting", ["VOTER5", 7]).ok
    assert VoterRecord.from_bytes(seeded.get("VOTER5")).vote == "7"


def test_response_raise_for_error(store):
    res = invoke(store, "doVoting", ["VOTER0", "X"])
    with pytest.raises(RecordNotFoundError):
        res.raise_for_error()
    ok = invoke(store, "queryAllVotes")
    assert ok.raise_for_error() is ok
    assert res.to_dict()["error"]["code"] == "record_not_found"


def test_missing_args_mean_no_args(seeded):
    res = invoke(seeded, "queryAllVotes", None)
    assert res.ok
    assert invoke(seeded, "queryVoter", None).code == "argument_count"


def test_non_sequence_args_are_reported(store):
    res = invoke(store, "queryVoter", 5)  # type: ignore[arg-type]
    assert res.status == ERROR
    assert res.code == "argument_count"
