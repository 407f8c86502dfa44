from llm_gateway.breaker import CircuitBreakers


def test_three_failures_open_until_recovery_window(clock):
    breakers = CircuitBreakers(threshold=3, recovery_s=300.0, clock=clock)
    for _ in range(2):
        breakers.record_failure("sealion")
    assert breakers.is_available("sealion")

    breakers.record_failure("sealion")
    assert not breakers.is_available("sealion")

    clock.advance(299.0)
    assert not breakers.is_available("sealion")

    clock.advance(1.0)
    assert breakers.is_available("sealion")
    assert breakers.snapshot(["sealion"])["sealion"]["failures"] == 0


def test_success_resets_failure_count(clock):
    breakers = CircuitBreakers(threshold=3, clock=clock)
    breakers.record_failure("openai")
    breakers.record_failure("openai")
    breakers.record_success("openai")
    breakers.record_failure("openai")
    assert breakers.is_available("openai")
    assert breakers.snapshot(["openai"])["openai"]["failures"] == 1


def test_snapshot_reports_open_without_resetting(clock):
    breakers = CircuitBreakers(threshold=2, recovery_s=10.0, clock=clock)
    breakers.record_failure("a")
    breakers.record_failure("a")
    view = breakers.snapshot(["a", "b"])
    assert view["a"]["available"] is False
    assert view["a"]["last_failure"] == clock.now
    assert view["b"] == {"available": True, "failures": 0, "last_failure": None}

    clock.advance(10.0)
    assert breakers.snapshot(["a"])["a"]["available"] is True
    assert breakers.snapshot(["a"])["a"]["failures"] == 2


def test_reset_closes_every_breaker(clock):
    breakers = CircuitBreakers(threshold=1, clock=clock)
    breakers.record_failure("a")
    assert not breakers.is_available("a")
    breakers.reset()
    assert breakers.is_available("a")
