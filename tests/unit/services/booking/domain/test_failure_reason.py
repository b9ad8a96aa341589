from services.booking.domain.enum import FailureReason


class TestFailureReason:
    def test_render_not_found(self):
        assert (
            FailureReason.BOOKING_NOT_FOUND.render(booking_id="b-1")
            == "Booking not found with ID: b-1"
        )

    def test_render_without_params(self):
        assert FailureReason.PERSISTENCE_UNAVAILABLE.render() == "Booking store unavailable"

    def test_every_reason_has_template(self):
        for reason in FailureReason:
            assert reason.template
