from hypermine.prediction import PredictedMotion


def additive_step(position, velocity, on_ground, input):
    return position + input, input, False


def make(generation=0):
    return PredictedMotion(0, additive_step, initial_velocity=0, generation=generation)


def test_wraparound():
    pred = make(generation=0xFFFF - 1)

    assert pred.push(1) == 0xFFFF
    assert pred.push(1) == 0
    assert pred.in_flight == 2

    pred.reconcile(0xFFFF - 1, 0, 0, False)
    assert pred.in_flight == 2
    pred.reconcile(0xFFFF, 0, 0, False)
    assert pred.in_flight == 1
    pred.reconcile(0, 0, 0, False)
    assert pred.in_flight == 0


def test_push_applies_step():
    pred = make()
    assert pred.push(1) == 1
    assert pred.push(2) == 2
    assert pred.push(3) == 3
    assert pred.predicted_position == 6
    assert pred.predicted_velocity == 3
    assert pred.generation == 3


def test_reconcile_replays_remaining_inputs():
    pred = make()
    for delta in (1, 2, 3):
        pred.push(delta)
    pred.reconcile(1, 10, 0, True)
    assert pred.in_flight == 2
    assert pred.predicted_position == 15
    assert pred.predicted_velocity == 3
    assert pred.predicted_on_ground is False


def test_reconcile_all_acknowledged_takes_server_state():
    pred = make()
    pred.push(1)
    pred.push(2)
    pred.reconcile(2, 42, 7, True)
    assert pred.in_flight == 0
    assert pred.predicted_position == 42
    assert pred.predicted_velocity == 7
    assert pred.predicted_on_ground is True


def test_stale_reconcile_is_ignored():
    pred = make()
    pred.push(1)
    pred.push(2)
    pred.reconcile(2, 100, 0, True)
    pred.push(5)
    pred.reconcile(2, -1, 0, False)
    assert pred.in_flight == 1
    assert pred.predicted_position == 105


def test_future_generation_is_ignored():
    pred = make()
    pred.push(1)
    pred.reconcile(5, 99, 0, True)
    assert pred.in_flight == 1
    assert pred.predicted_position == 1