# tests/test_cursor.py

from relay_indexer.pipeline.cursor import compute_window
from relay_indexer.types.chain import BlockWindow


def test_window_starts_at_stored_cursor():
    window = compute_window(last_block=500, current_height=1000, confirmations=6,
                            max_blocks_per_run=1000, default_lookback=10000)
    assert window == BlockWindow(from_block=500, to_block=994)
    assert window.last_block == 993
    assert window.size == 494


def test_window_is_capped_by_max_blocks_per_run():
    window = compute_window(last_block=0, current_height=5000, confirmations=6,
                            max_blocks_per_run=1000, default_lookback=10000)
    assert window == BlockWindow(from_block=0, to_block=1000)


def test_first_run_uses_start_block_over_lookback():
    window = compute_window(last_block=None, current_height=50_000, confirmations=6,
                            max_blocks_per_run=1000, default_lookback=10000, start_block=42_000)
    assert window.from_block == 42_000


def test_first_run_without_start_block_looks_back_from_head():
    window = compute_window(last_block=None, current_height=50_000, confirmations=6,
                            max_blocks_per_run=1000, default_lookback=10000)
    assert window.from_block == 40_000
    assert window.to_block == 41_000


def test_lookback_never_goes_below_genesis():
    window = compute_window(last_block=None, current_height=100, confirmations=6,
                            max_blocks_per_run=1000, default_lookback=10000)
    assert window == BlockWindow(from_block=0, to_block=94)


def test_no_window_when_cursor_at_confirmed_head():
    assert compute_window(last_block=994, current_height=1000, confirmations=6,
                          max_blocks_per_run=1000, default_lookback=10000) is None


def test_no_window_when_chain_shorter_than_confirmations():
    assert compute_window(last_block=None, current_height=3, confirmations=6,
                          max_blocks_per_run=1000, default_lookback=10000) is None


def test_stored_cursor_wins_over_start_block():
    window = compute_window(last_block=700, current_height=1000, confirmations=0,
                            max_blocks_per_run=1000, default_lookback=10000, start_block=100)
    assert window.from_block == 700


def test_cursor_manager_advance_is_monotonic(cursor_manager, repos):
    """Advancing to an older block never moves the stored cursor backwards"""
    assert cursor_manager.advance('agent_indexer', BlockWindow(0, 500)) == 500
    assert cursor_manager.advance('agent_indexer', BlockWindow(0, 300)) == 500
    assert repos.cursors.get_last_block('agent_indexer') == 500


def test_cursors_are_per_job(cursor_manager, repos):
    cursor_manager.advance('agent_indexer', BlockWindow(0, 500))
    cursor_manager.advance('escrow_indexer', BlockWindow(0, 20))
    assert repos.cursors.get_last_block('agent_indexer') == 500
    assert repos.cursors.get_last_block('escrow_indexer') == 20
    assert repos.cursors.get_last_block('feedback_indexer') is None


def test_next_window_reads_stored_cursor(cursor_manager):
    cursor_manager.advance('feedback_indexer', BlockWindow(0, 60))
    window = cursor_manager.next_window('feedback_indexer', current_height=100, confirmations=6,
                                        max_blocks_per_run=1000, default_lookback=10000)
    assert window == BlockWindow(from_block=60, to_block=94)
