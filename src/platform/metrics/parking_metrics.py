from prometheus_client import Counter, Gauge, Histogram


class ParkingMetrics:
    """
    Booking engine metrics

    Tracks reservation outcomes, ledger check-and-hold latency, remaining capacity per
    event and payment webhook reconciliation.
    """

    def __init__(self) -> None:
        # ========== Reservation Metrics ==========
        self.reservation_requests = Counter(
            'parking_reservation_requests_total',
            'Reservation attempts by outcome',
            ['event_id', 'result'],  # created, sold_out, insufficient, over_limit, gateway_error
        )

        self.reservation_transitions = Counter(
            'parking_reservation_transitions_total',
            'Reservation state transitions',
            ['from_status', 'to_status'],
        )

        # ========== Ledger Metrics ==========
        self.ledger_operations = Counter(
            'parking_ledger_operations_total',
            'Availability ledger operations',
            ['operation', 'result'],  # operation: reserve/release
        )

        self.ledger_operation_duration = Histogram(
            'parking_ledger_operation_duration_seconds',
            'Availability ledger operation duration',
            ['operation'],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
        )

        self.remaining_capacity = Gauge(
            'parking_remaining_capacity',
            'Remaining spots per event',
            ['event_id'],
        )

        # ========== Payment Metrics ==========
        self.webhook_events = Counter(
            'parking_payment_webhook_events_total',
            'Payment gateway notifications by outcome',
            ['outcome', 'result'],  # result: applied/duplicate/unmatched/conflict/ignored
        )

        self.expired_holds = Counter(
            'parking_expired_holds_total', 'PENDING reservations canceled by the hold sweeper'
        )

    # ========== Helper Methods ==========

    def record_reservation(self, *, event_id: str, result: str) -> None:
        self.reservation_requests.labels(event_id=event_id, result=result).inc()

    def record_transition(self, *, from_status: str, to_status: str) -> None:
        self.reservation_transitions.labels(from_status=from_status, to_status=to_status).inc()

    def record_ledger_operation(
        self, *, operation: str, result: str, duration: float, event_id: str, remaining: int | None
    ) -> None:
        self.ledger_operations.labels(operation=operation, result=result).inc()
        self.ledger_operation_duration.labels(operation=operation).observe(duration)
        if remaining is not None:
            self.remaining_capacity.labels(event_id=event_id).set(remaining)

    def record_webhook(self, *, outcome: str, result: str) -> None:
        self.webhook_events.labels(outcome=outcome, result=result).inc()


# Global metrics instance
metrics = ParkingMetrics()
