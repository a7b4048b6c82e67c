import pytest

from approvalbridge.contracts.errors.errors import InvalidCursorMove
from approvalbridge.services.channel.cursor import EventCursor


def test_cursor_starts_at_zero_and_advances():
    cursor = EventCursor()
    assert cursor.current() == 0

    cursor.advance(5)
    cursor.advance(6)
    cursor.advance(100)
    assert cursor.current() == 100


@pytest.mark.parametrize("bad", [10, 9, 0, -1])
def test_cursor_rejects_non_increasing_move_and_stays_put(bad):
    cursor = EventCursor(start=10)

    with pytest.raises(InvalidCursorMove) as exc_info:
        cursor.advance(bad)

    assert exc_info.value.current == 10
    assert exc_info.value.requested == bad
    assert cursor.current() == 10


def test_cursor_is_non_decreasing_over_mixed_sequence():
    cursor = EventCursor()
    seen = [cursor.current()]
    for pos in [3, 2, 7, 7, 8, 1, 20]:
        try:
            cursor.advance(pos)
        except InvalidCursorMove:
            pass
        seen.append(cursor.current())

    assert seen == sorted(seen)
    assert cursor.current() == 20
