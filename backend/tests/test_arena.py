import pytest

from roomofy import db
from roomofy.services.arena import Arena
from roomofy.services.arena.errors import (
    AlreadyFull,
    AlreadyJoined,
    CellTaken,
    InsufficientFunds,
    InvalidRequest,
    MatchFinished,
    NotFound,
    NotInMatch,
    NotRegistered,
    NotYourTurn,
    OutOfBounds,
)
from roomofy.services.arena.ledger import Ledger
from roomofy.services.arena.settings import ArenaSettings


def start_match(arena, fee=100):
    arena.register('sid-a', 'alice')
    arena.register('sid-b', 'bob')
    pool = arena.create_pool('Evening table', fee)
    arena.join_pool(pool['id'], 'alice')
    joined = arena.join_pool(pool['id'], 'bob')
    return joined['matchId'], pool['id']


def play_moves(arena, match_id, moves):
    for account, row, col in moves:
        arena.move(match_id, account, row, col)


def total_balance(ledger, *ids):
    return sum(ledger.balance(i) for i in ids)


def test_register_opens_wallet_once(arena, ledger):
    first = arena.register('sid-a', 'alice')
    again = arena.register('sid-a2', 'alice')
    assert first['accountId'] == 'alice'
    assert first['balance'] == first['startingBalance'] == 1000
    assert again['balance'] == 1000
    assert len(ledger.get_statement('alice')['transactions']) == 1


def test_register_requires_identity(arena):
    with pytest.raises(InvalidRequest):
        arena.register('sid-x', '')
    with pytest.raises(InvalidRequest):
        arena.register('sid-x', 'platform')


def test_create_pool_validation(arena):
    with pytest.raises(InvalidRequest):
        arena.create_pool('', 10)
    with pytest.raises(InvalidRequest):
        arena.create_pool('Table', 0)
    with pytest.raises(InvalidRequest):
        arena.create_pool('Table', 10, max_players=3)
    pool = arena.create_pool('Table', 10)
    assert pool['status'] == 'open'
    assert pool['currentCount'] == 0
    assert pool['maxPlayers'] == 2


def test_second_join_fills_pool_debits_both_and_starts_match(arena, ledger, recorder):
    match_id, pool_id = start_match(arena)
    assert match_id
    assert arena.pools.get(pool_id).status == 'full'
    assert ledger.balance('alice') == 900
    assert ledger.balance('bob') == 900
    found_a = recorder.named('matchFound', 'sid-a')[0]
    found_b = recorder.named('matchFound', 'sid-b')[0]
    assert found_a == {
        'roomId': match_id, 'side': 'X', 'opponent': 'bob', 'bet': 100,
        'boardSize': 8, 'winLength': 3, 'turn': 'X',
    }
    assert found_b['side'] == 'O'
    assert found_b['opponent'] == 'alice'
    assert arena.directory.active_match('alice') == match_id
    assert arena.list_pools() == []


def test_join_errors(arena):
    match_id, pool_id = start_match(arena)
    arena.register('sid-c', 'carol')
    with pytest.raises(NotFound):
        arena.join_pool('NOPE', 'carol')
    with pytest.raises(AlreadyFull):
        arena.join_pool(pool_id, 'carol')
    other = arena.create_pool('Other', 10)
    arena.join_pool(other['id'], 'carol')
    with pytest.raises(AlreadyJoined):
        arena.join_pool(other['id'], 'carol')
    # alice is busy in a match
    with pytest.raises(AlreadyJoined):
        arena.join_pool(other['id'], 'alice')
    with pytest.raises(NotRegistered):
        arena.join_pool(other['id'], 'nobody')


def test_joiner_without_funds_leaves_pool_open_and_first_player_refunded(arena, ledger, recorder):
    arena.register('sid-a', 'alice')
    arena.register('sid-b', 'bob')
    ledger.debit('bob', 950, 'spent elsewhere')
    pool = arena.create_pool('Pricey', 100)
    arena.join_pool(pool['id'], 'alice')
    with pytest.raises(InsufficientFunds):
        arena.join_pool(pool['id'], 'bob')

    entry = arena.pools.get(pool['id'])
    assert entry.status == 'open'
    assert [s.account_id for s in entry.seats] == ['alice']
    assert ledger.balance('alice') == 1000
    assert ledger.balance('bob') == 50
    assert ledger.verify('alice') and ledger.verify('bob')
    assert recorder.named('matchFound') == []
    assert recorder.named('matchError', 'sid-a')[0]['accountId'] == 'bob'
    assert recorder.named('matchError', 'sid-b')[0]['code'] == 'InsufficientFunds'


def test_first_player_without_funds_is_dropped_and_joiner_keeps_seat(arena, ledger):
    arena.register('sid-a', 'alice')
    arena.register('sid-b', 'bob')
    pool = arena.create_pool('Pricey', 100)
    arena.join_pool(pool['id'], 'alice')
    ledger.debit('alice', 990, 'spent while waiting')

    result = arena.join_pool(pool['id'], 'bob')
    assert result['status'] == 'open'
    assert result['players'] == ['bob']
    assert ledger.balance('bob') == 1000
    assert ledger.balance('alice') == 10


def test_leave_open_pool_is_free(arena, ledger):
    arena.register('sid-a', 'alice')
    pool = arena.create_pool('Table', 100)
    arena.join_pool(pool['id'], 'alice')
    left = arena.leave_pool(pool['id'], 'alice')
    assert left['currentCount'] == 0
    assert left['status'] == 'open'
    assert ledger.balance('alice') == 1000
    with pytest.raises(NotFound):
        arena.leave_pool(pool['id'], 'alice')


def test_cancel_pool_notifies_waiting_players(arena, recorder):
    arena.register('sid-a', 'alice')
    pool = arena.create_pool('Table', 100)
    arena.join_pool(pool['id'], 'alice')
    cancelled = arena.cancel_pool(pool['id'])
    assert cancelled['status'] == 'cancelled'
    assert recorder.named('poolCancelled', 'sid-a') == [{'poolId': pool['id']}]
    arena.register('sid-b', 'bob')
    with pytest.raises(NotFound):
        arena.join_pool(pool['id'], 'bob')
    assert pool['id'] in [p['id'] for p in arena.list_pools(include_closed=True)]


def test_move_validation_order_leaves_board_unchanged(arena):
    match_id, _ = start_match(arena)
    arena.register('sid-c', 'carol')
    with pytest.raises(NotFound):
        arena.move('ZZZZZZ', 'alice', 0, 0)
    with pytest.raises(NotInMatch):
        arena.move(match_id, 'carol', 0, 0)
    with pytest.raises(NotYourTurn):
        arena.move(match_id, 'bob', 0, 0)
    with pytest.raises(OutOfBounds):
        arena.move(match_id, 'alice', 8, 0)
    with pytest.raises(OutOfBounds):
        arena.move(match_id, 'alice', 'a', 0)
    assert all(cell is None for row in arena.get_match(match_id)['board'] for cell in row)

    arena.move(match_id, 'alice', 3, 3)
    with pytest.raises(NotYourTurn):
        arena.move(match_id, 'alice', 3, 4)
    with pytest.raises(CellTaken):
        arena.move(match_id, 'bob', 3, 3)
    state = arena.get_match(match_id)
    assert state['moves'] == 1
    assert state['turn'] == 'O'


def test_board_update_sent_to_both_players(arena, recorder):
    match_id, _ = start_match(arena)
    arena.move(match_id, 'alice', 2, 5)
    for handle in ('sid-a', 'sid-b'):
        update = recorder.named('boardUpdate', handle)[0]
        assert update['turn'] == 'O'
        assert update['board'][2][5] == 'X'
        assert update['lastMove'] == {'row': 2, 'col': 5, 'side': 'X', 'accountId': 'alice'}


def test_win_settles_once_and_tears_down(arena, ledger, recorder):
    match_id, _ = start_match(arena)
    play_moves(arena, match_id, [
        ('alice', 0, 0), ('bob', 1, 0),
        ('alice', 0, 1), ('bob', 1, 1),
        ('alice', 0, 2),
    ])
    over = recorder.named('gameOver', 'sid-a')
    assert over == recorder.named('gameOver', 'sid-b')
    assert len(over) == 1
    assert over[0]['winnerId'] == 'alice'
    assert over[0]['winnerShare'] == 160
    assert over[0]['platformFee'] == 40
    assert over[0]['reason'] == 'line'

    assert ledger.balance('alice') == 1060
    assert ledger.balance('bob') == 900
    assert ledger.balance('platform') == 40
    assert total_balance(ledger, 'alice', 'bob', 'platform') == 2000
    assert all(ledger.verify(i) for i in ('alice', 'bob', 'platform'))

    assert arena.directory.active_match('alice') is None
    with pytest.raises(MatchFinished):
        arena.move(match_id, 'bob', 5, 5)
    # a second "disconnect forfeit" after the end settles nothing
    assert arena.matches.forfeit(match_id, 'bob') is None
    assert ledger.balance('alice') == 1060


def test_draw_refunds_both_players(flask_app, recorder):
    arena = Arena(Ledger(db.session, starting_balance=1000), ArenaSettings(board_size=3, win_length=3))
    arena.events.subscribe(recorder)
    match_id, _ = start_match(arena, fee=150)
    play_moves(arena, match_id, [
        ('alice', 0, 0), ('bob', 0, 1),
        ('alice', 0, 2), ('bob', 1, 1),
        ('alice', 1, 0), ('bob', 2, 0),
        ('alice', 1, 2), ('bob', 2, 2),
        ('alice', 2, 1),
    ])
    over = recorder.named('gameOver', 'sid-b')
    assert over == [{'roomId': match_id, 'draw': True, 'refund': 150}]
    assert arena.ledger.balance('alice') == 1000
    assert arena.ledger.balance('bob') == 1000
    assert arena.ledger.verify('alice') and arena.ledger.verify('bob')


def test_disconnect_mid_match_forfeits_to_opponent(arena, ledger, recorder):
    match_id, _ = start_match(arena)
    arena.move(match_id, 'alice', 0, 0)
    assert arena.disconnect('sid-a') == 'alice'
    over = recorder.named('gameOver', 'sid-b')[0]
    assert over['winnerId'] == 'bob'
    assert over['reason'] == 'forfeit'
    assert ledger.balance('bob') == 1060
    assert ledger.balance('alice') == 900
    with pytest.raises(MatchFinished):
        arena.move(match_id, 'bob', 4, 4)


def test_disconnect_while_waiting_releases_seat(arena, ledger):
    arena.register('sid-a', 'alice')
    pool = arena.create_pool('Table', 100)
    arena.join_pool(pool['id'], 'alice')
    arena.disconnect('sid-a')
    entry = arena.pools.get(pool['id'])
    assert entry.status == 'open'
    assert entry.seats == []
    assert ledger.balance('alice') == 1000


def test_stale_handle_disconnect_does_nothing(arena, recorder):
    match_id, _ = start_match(arena)
    arena.register('sid-a2', 'alice')
    assert arena.disconnect('sid-a') is None
    assert arena.get_match(match_id)['status'] == 'playing'
    arena.move(match_id, 'alice', 1, 1)
    assert recorder.named('boardUpdate', 'sid-a2')


def test_quick_join_pairs_players_with_same_fee(arena, ledger):
    arena.register('sid-a', 'alice')
    arena.register('sid-b', 'bob')
    arena.register('sid-c', 'carol')
    waiting = arena.quick_join('alice', 50)
    assert waiting['status'] == 'open'
    other_fee = arena.quick_join('carol', 75)
    assert other_fee['id'] != waiting['id']
    paired = arena.quick_join('bob', 50)
    assert paired['id'] == waiting['id']
    assert paired['status'] == 'full'
    assert paired['matchId']
    assert ledger.balance('alice') == ledger.balance('bob') == 950


def test_switching_identity_on_a_live_handle_forfeits_the_old_match(arena, ledger, recorder):
    match_id, _ = start_match(arena)
    spare = arena.create_pool('Spare', 10)
    arena.register('sid-c', 'carol')
    arena.join_pool(spare['id'], 'carol')

    registered = arena.register('sid-a', 'mallory')
    assert registered['accountId'] == 'mallory'
    assert registered['activeMatch'] is None
    assert arena.identity_of('sid-a') == 'mallory'
    assert arena.directory.handle_for('alice') is None

    over = recorder.named('gameOver', 'sid-b')[0]
    assert over['winnerId'] == 'bob'
    assert over['reason'] == 'forfeit'
    assert ledger.balance('bob') == 1060
    assert ledger.balance('alice') == 900
    assert arena.directory.active_match('alice') is None
    assert [s.account_id for s in arena.pools.get(spare['id']).seats] == ['carol']
    with pytest.raises(MatchFinished):
        arena.move(match_id, 'bob', 4, 4)


def test_switching_identity_releases_open_pool_seats(arena, ledger):
    arena.register('sid-a', 'alice')
    pool = arena.create_pool('Table', 100)
    arena.join_pool(pool['id'], 'alice')
    arena.register('sid-a', 'mallory')
    assert arena.pools.get(pool['id']).seats == []
    assert ledger.balance('alice') == 1000
    with pytest.raises(NotRegistered):
        arena.join_pool(pool['id'], 'alice')


def test_reregistering_same_identity_keeps_match(arena):
    match_id, _ = start_match(arena)
    again = arena.register('sid-a', 'alice')
    assert again['activeMatch'] == match_id
    assert arena.get_match(match_id)['status'] == 'playing'


def test_pool_listings_can_be_iterated_more_than_once(arena):
    arena.create_pool('One', 10)
    arena.create_pool('Two', 20)
    listed = arena.pools.list_open()
    assert [p['title'] for p in listed] == ['One', 'Two']
    assert len(list(listed)) == 2
    everything = arena.pools.list_all()
    assert len(everything) == len(list(everything)) == 2
