
import sys
import os
import datetime
import threading

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import quadvote.store
from quadvote.option import Event, Option, Vote
from quadvote.system import DecisionFramework

UTC = datetime.timezone.utc
EVENT = Event(
    id='ev1',
    start_time=datetime.datetime(2024, 1, 1, tzinfo=UTC),
    end_time=datetime.datetime(2024, 1, 31, tzinfo=UTC),
    decision_framework=DecisionFramework.binary(threshold_mode='above_average'),
)
OPTIONS = [Option('b', 'Bravo', 1), Option('a', 'Alpha', 0)]


def make_store(votes=()):
    return quadvote.store.MemoryEventStore(
        [EVENT], options={'ev1': OPTIONS}, votes={'ev1': list(votes)}
    )


def test_event_lookup():
    store = make_store()
    assert store.get_event('ev1') == EVENT


def test_options_by_position():
    assert [opt.id for opt in make_store().get_options('ev1')] == ['a', 'b']


@pytest.mark.parametrize('method, args', [
    ('get_event', ()),
    ('get_options', ()),
    ('get_votes', ()),
    ('get_vote', ('code', )),
    ('upsert_vote', (Vote('code', {}), )),
])
def test_unknown_event(method, args):
    store = make_store()
    with pytest.raises(quadvote.store.EventNotFoundError) as excinfo:
        getattr(store, method)('nope', *args)
    assert excinfo.value.event_id == 'nope'
    assert isinstance(excinfo.value, LookupError)


def test_get_vote_missing():
    assert make_store().get_vote('ev1', 'code') is None


def test_upsert_one_per_identity():
    t0 = datetime.datetime(2024, 1, 2, tzinfo=UTC)
    t1 = datetime.datetime(2024, 1, 3, tzinfo=UTC)
    store = make_store([Vote('x', {'a': 4}, submitted_at=t0)])
    store.upsert_vote('ev1', Vote('y', {'b': 1}, submitted_at=t0))
    stored = store.upsert_vote('ev1', Vote('x', {'b': 9}, submitted_at=t1))
    assert stored.allocations == {'b': 9}
    assert stored.submitted_at == t0
    assert stored.updated_at == t1
    votes = {vote.invite_code: vote for vote in store.get_votes('ev1')}
    assert set(votes) == {'x', 'y'}
    assert votes['x'].allocations == {'b': 9}


def test_reads_are_snapshots():
    store = make_store([Vote('x', {'a': 4})])
    votes = store.get_votes('ev1')
    votes[0].allocations['a'] = 100
    assert store.get_vote('ev1', 'x').allocations == {'a': 4}


def test_stored_vote_detached():
    vote = Vote('x', {'a': 4})
    store = make_store([vote])
    vote.allocations['a'] = 100
    assert store.get_vote('ev1', 'x').allocations == {'a': 4}


def test_concurrent_upserts():
    store = make_store()

    def submit(i):
        for j in range(20):
            store.upsert_vote('ev1', Vote(f'voter{i}', {'a': j}))

    threads = [threading.Thread(target=submit, args=(i, )) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    votes = store.get_votes('ev1')
    assert len(votes) == 8
    assert all(vote.allocations == {'a': 19} for vote in votes)


def test_store_interface():
    with pytest.raises(TypeError):
        quadvote.store.EventStore()
