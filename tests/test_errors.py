"""Tests for fault types and suppressed-fault bookkeeping."""

from batik_core import IllegalAccessError, ParseError, add_suppressed, suppressed


class TestIllegalAccessError:
    def test_message_attribute(self):
        exc = IllegalAccessError('called `unwrap()` on a Nothing value')
        assert exc.message == 'called `unwrap()` on a Nothing value'
        assert isinstance(exc, RuntimeError)


class TestParseError:
    def test_fields(self):
        exc = ParseError('Expected `int`', content_type='application/json')
        assert exc.message == 'Expected `int`'
        assert exc.content_type == 'application/json'
        assert isinstance(exc, ValueError)

    def test_content_type_optional(self):
        assert ParseError('bad').content_type is None


class TestSuppressed:
    """Secondary faults attached to a primary one."""

    def test_none_by_default(self):
        assert suppressed(ValueError('x')) == ()

    def test_add_keeps_order(self):
        primary = ValueError('primary')
        first, second = OSError('first'), OSError('second')
        assert add_suppressed(primary, first) is primary
        add_suppressed(primary, second)
        assert suppressed(primary) == (first, second)

    def test_note_is_added(self):
        primary = ValueError('primary')
        add_suppressed(primary, OSError('disk gone'))
        assert primary.__notes__ == ['Suppressed: OSError: disk gone']

    def test_self_suppression_ignored(self):
        primary = ValueError('primary')
        add_suppressed(primary, primary)
        assert suppressed(primary) == ()
