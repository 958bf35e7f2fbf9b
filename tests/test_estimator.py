"""Tests for the lidar/radar fusion estimator."""

import numpy as np
import pytest

from ctrv_estimation import (StateEstimator, UKFConfig, Measurement, SensorType,
                             NISHistory, ProcessStatus)
from ctrv_estimation.errors import (DegenerateRadarGeometry, InitializationError,
                                    NonPositiveDefiniteCovariance, SingularInnovationCovariance,
                                    TimestampOrderError, UnknownSensorError)
from ctrv_estimation.metrics import rmse, state_to_cartesian

from tests.conftest import assert_valid_covariance

T0 = 1477010443000000


def lidar(t_us, px, py):
    return Measurement(SensorType.LIDAR, t_us, [px, py])


def radar(t_us, rho, phi, rho_dot):
    return Measurement(SensorType.RADAR, t_us, [rho, phi, rho_dot])


def run(estimator, measurements):
    return [estimator.process_measurement(m) for m in measurements]


class TestInitialization:
    """First measurement handling."""

    def test_first_lidar(self):
        estimator = StateEstimator()
        result = estimator.process_measurement(lidar(T0, 1.0, 2.0))

        assert result.status is ProcessStatus.INITIALIZED
        assert result.dt == 0.0
        assert estimator.is_initialized
        assert estimator.time_us == T0
        np.testing.assert_array_equal(estimator.x, [1.0, 2.0, 0.0, 0.0, 0.0])
        np.testing.assert_allclose(estimator.P, np.diag([0.0225, 0.0225, 1.0, 1.0, 1.0]))

    def test_first_radar(self):
        estimator = StateEstimator()
        result = estimator.process_measurement(radar(T0, 5.0, 0.0, 0.0))

        assert result.status is ProcessStatus.INITIALIZED
        np.testing.assert_allclose(estimator.x, [5.0, 0.0, 0.0, 0.0, 0.0])
        np.testing.assert_allclose(estimator.P, np.diag([0.09, 0.09, 1.0, 0.0009, 0.0009]))

    def test_first_measurement_records_no_nis(self):
        estimator = StateEstimator()
        estimator.process_measurement(lidar(T0, 1.0, 2.0))
        assert len(estimator.nis) == 0

    def test_unknown_sensor_on_first_measurement(self):
        estimator = StateEstimator()
        with pytest.raises(InitializationError):
            estimator.process_measurement(Measurement('X', T0, [1.0, 2.0]))
        assert not estimator.is_initialized

    def test_wrong_shape_on_first_measurement(self):
        estimator = StateEstimator()
        with pytest.raises(InitializationError):
            estimator.process_measurement(Measurement(SensorType.RADAR, T0, [1.0, 2.0]))

    def test_non_finite_first_measurement(self):
        estimator = StateEstimator()
        with pytest.raises(InitializationError):
            estimator.process_measurement(lidar(T0, np.nan, 2.0))
        assert not estimator.is_initialized

    def test_sensor_letters_are_accepted(self):
        estimator = StateEstimator()
        result = estimator.process_measurement(Measurement('L', T0, [1.0, 2.0]))
        assert result.sensor_type is SensorType.LIDAR

    def test_disabled_sensor_still_initializes(self):
        estimator = StateEstimator(UKFConfig(use_radar=False))
        result = estimator.process_measurement(radar(T0, 5.0, 0.0, 0.0))
        assert result.status is ProcessStatus.INITIALIZED


class TestProcessing:
    """Predict/update cycles after initialization."""

    def test_update_flow(self):
        estimator = StateEstimator()
        results = run(estimator, [
            lidar(T0, 1.0, 2.0),
            radar(T0 + 50000, np.hypot(1.1, 2.0), np.arctan2(2.0, 1.1), 1.0),
            lidar(T0 + 100000, 1.2, 2.05),
        ])

        assert [r.status for r in results] == [ProcessStatus.INITIALIZED,
                                               ProcessStatus.UPDATED,
                                               ProcessStatus.UPDATED]
        assert results[1].dt == pytest.approx(0.05)
        assert results[1].nis == pytest.approx(estimator.nis.radar[0])
        assert results[2].nis == pytest.approx(estimator.nis.lidar[0])
        assert estimator.time_us == T0 + 100000
        assert_valid_covariance(estimator.P)

    def test_equal_timestamps_are_allowed(self):
        estimator = StateEstimator()
        results = run(estimator, [lidar(T0, 1.0, 2.0), lidar(T0, 1.01, 2.0)])
        assert results[1].status is ProcessStatus.UPDATED
        assert results[1].dt == 0.0

    def test_lidar_update_shrinks_position_variance(self):
        estimator = StateEstimator()
        run(estimator, [lidar(T0, 1.0, 2.0), lidar(T0 + 100000, 1.0, 2.0)])
        assert estimator.P[0, 0] < 0.0225 + 1e-3
        assert estimator.P[1, 1] < 0.0225 + 1e-3

    def test_timestamp_going_backwards(self):
        estimator = StateEstimator()
        estimator.process_measurement(lidar(T0, 1.0, 2.0))
        with pytest.raises(TimestampOrderError):
            estimator.process_measurement(lidar(T0 - 1, 1.0, 2.0))
        assert estimator.time_us == T0

    def test_unknown_sensor_after_initialization(self):
        estimator = StateEstimator()
        estimator.process_measurement(lidar(T0, 1.0, 2.0))
        with pytest.raises(UnknownSensorError) as excinfo:
            estimator.process_measurement(Measurement('sonar', T0 + 1000, [1.0, 2.0]))
        assert not isinstance(excinfo.value, InitializationError)

    def test_wrong_shape_after_initialization(self):
        estimator = StateEstimator()
        estimator.process_measurement(lidar(T0, 1.0, 2.0))
        with pytest.raises(ValueError):
            estimator.process_measurement(Measurement(SensorType.LIDAR, T0 + 1000, [1.0]))

    def test_non_finite_measurement_leaves_estimator_usable(self):
        estimator = StateEstimator()
        estimator.process_measurement(lidar(T0, 1.0, 2.0))
        x_before, P_before = estimator.x.copy(), estimator.P.copy()

        with pytest.raises(ValueError):
            estimator.process_measurement(lidar(T0 + 50000, np.nan, 2.0))
        with pytest.raises(ValueError):
            estimator.process_measurement(radar(T0 + 50000, np.inf, 0.1, 0.0))

        np.testing.assert_array_equal(estimator.x, x_before)
        np.testing.assert_array_equal(estimator.P, P_before)
        assert estimator.time_us == T0
        assert len(estimator.nis) == 0

        result = estimator.process_measurement(lidar(T0 + 100000, 1.1, 2.0))
        assert result.status is ProcessStatus.UPDATED
        assert np.all(np.isfinite(estimator.x))

    def test_disabled_sensor_timestamp_going_backwards(self):
        estimator = StateEstimator(UKFConfig(use_radar=False))
        estimator.process_measurement(lidar(T0, 1.0, 2.0))
        with pytest.raises(TimestampOrderError):
            estimator.process_measurement(radar(T0 - 1000000, 2.3, 1.1, 0.5))
        assert estimator.time_us == T0

    def test_disabled_sensor_is_skipped(self):
        estimator = StateEstimator(UKFConfig(use_radar=False))
        estimator.process_measurement(lidar(T0, 1.0, 2.0))
        x_before = estimator.x.copy()

        result = estimator.process_measurement(radar(T0 + 50000, 2.3, 1.1, 0.5))

        assert result.status is ProcessStatus.SKIPPED
        assert not result.accepted
        assert estimator.time_us == T0
        np.testing.assert_array_equal(estimator.x, x_before)
        assert estimator.nis.count(SensorType.RADAR) == 0

        result = estimator.process_measurement(lidar(T0 + 100000, 1.0, 2.0))
        assert result.status is ProcessStatus.UPDATED
        assert result.dt == pytest.approx(0.1)

    def test_predict_matches_straight_line_motion(self):
        """With negligible uncertainty the prediction is the CTRV mean."""
        config = UKFConfig().replace(std_a=1e-9, std_yawdd=1e-9)
        estimator = StateEstimator(config)
        estimator.process_measurement(lidar(T0, 1.0, 2.0))
        estimator.ukf.x = np.array([1.0, 2.0, 3.0, 0.4, 0.0])
        estimator.ukf.P = 1e-8 * np.eye(5)

        estimator.predict(0.5)

        expected = [1.0 + 1.5 * np.cos(0.4), 2.0 + 1.5 * np.sin(0.4), 3.0, 0.4, 0.0]
        np.testing.assert_allclose(estimator.x, expected, atol=1e-6)

    def test_predict_requires_initialization(self):
        with pytest.raises(RuntimeError):
            StateEstimator().predict(0.1)

    def test_predict_rejects_negative_dt(self):
        estimator = StateEstimator()
        estimator.process_measurement(lidar(T0, 1.0, 2.0))
        with pytest.raises(ValueError):
            estimator.predict(-0.1)


class TestRejection:
    """Numeric failures reject a measurement without corrupting the belief."""

    def test_radar_at_origin_keeps_prediction(self):
        estimator = StateEstimator()
        twin = StateEstimator()
        for est in (estimator, twin):
            est.process_measurement(lidar(T0, 0.0, 0.0))
        twin.predict(0.1)

        result = estimator.process_measurement(radar(T0 + 100000, 0.1, 0.0, 0.0))

        assert result.status is ProcessStatus.REJECTED
        assert isinstance(result.error, DegenerateRadarGeometry)
        assert estimator.nis.count(SensorType.RADAR) == 0
        assert estimator.time_us == T0 + 100000
        np.testing.assert_allclose(estimator.x, twin.x)
        np.testing.assert_allclose(estimator.P, twin.P)

    def test_raise_on_reject(self):
        estimator = StateEstimator(UKFConfig(raise_on_reject=True))
        estimator.process_measurement(lidar(T0, 0.0, 0.0))
        with pytest.raises(DegenerateRadarGeometry):
            estimator.process_measurement(radar(T0 + 100000, 0.1, 0.0, 0.0))

    def test_singular_innovation_keeps_prediction(self):
        estimator = StateEstimator()
        twin = StateEstimator()
        for est in (estimator, twin):
            est.process_measurement(lidar(T0, 1.0, 2.0))
        twin.predict(0.1)
        estimator.sensor_models[SensorType.LIDAR].R = np.full((2, 2), np.nan)

        result = estimator.process_measurement(lidar(T0 + 100000, 1.1, 2.0))

        assert result.status is ProcessStatus.REJECTED
        assert isinstance(result.error, SingularInnovationCovariance)
        assert len(estimator.nis) == 0
        assert estimator.time_us == T0 + 100000
        np.testing.assert_allclose(estimator.x, twin.x)
        np.testing.assert_allclose(estimator.P, twin.P)

    def test_failed_prediction_leaves_state_and_clock(self):
        estimator = StateEstimator()
        estimator.process_measurement(lidar(T0, 1.0, 2.0))
        estimator.ukf.P = -np.eye(5)
        x_before = estimator.x.copy()

        result = estimator.process_measurement(lidar(T0 + 100000, 1.0, 2.0))

        assert result.status is ProcessStatus.REJECTED
        assert isinstance(result.error, NonPositiveDefiniteCovariance)
        assert estimator.time_us == T0
        np.testing.assert_array_equal(estimator.x, x_before)
        np.testing.assert_array_equal(estimator.P, -np.eye(5))


class TestNISSink:
    """Where NIS values go."""

    def test_callable_sink(self):
        received = []
        estimator = StateEstimator(nis_sink=lambda sensor, nis: received.append((sensor, nis)))
        run(estimator, [lidar(T0, 1.0, 2.0), lidar(T0 + 50000, 1.1, 2.0),
                        radar(T0 + 100000, 2.3, 1.1, 0.5)])

        assert estimator.nis is None
        assert [sensor for sensor, _ in received] == [SensorType.LIDAR, SensorType.RADAR]
        assert all(nis >= 0 for _, nis in received)

    def test_bounded_history(self):
        estimator = StateEstimator(UKFConfig(nis_maxlen=3))
        run(estimator, [lidar(T0 + 50000 * k, 1.0 + 0.1 * k, 2.0) for k in range(10)])
        assert estimator.nis.count(SensorType.LIDAR) == 3

    def test_shared_history(self):
        history = NISHistory()
        estimator = StateEstimator(nis_sink=history)
        run(estimator, [lidar(T0, 1.0, 2.0), lidar(T0 + 50000, 1.1, 2.0)])
        assert estimator.nis is history
        assert len(history) == 1


class TestScenario:
    """End-to-end runs on simulated tracks."""

    def test_every_measurement_is_used(self, scenario):
        estimator = StateEstimator()
        results = []
        for m in scenario['measurements']:
            result = estimator.process_measurement(m)
            results.append(result)
            assert_valid_covariance(estimator.P)
            if result.status is ProcessStatus.UPDATED:
                assert result.nis >= 0.0

        assert results[0].status is ProcessStatus.INITIALIZED
        assert all(r.status is ProcessStatus.UPDATED for r in results[1:])
        assert estimator.nis.count(SensorType.LIDAR) == 99
        assert estimator.nis.count(SensorType.RADAR) == 100
        assert np.all(np.isfinite(estimator.x))
        assert_valid_covariance(estimator.P)

    def test_tracks_smooth_turn(self, smooth_scenario):
        estimator = StateEstimator()
        estimates = []
        for m in smooth_scenario['measurements']:
            estimator.process_measurement(m)
            estimates.append(estimator.x.copy())

        errors = rmse(state_to_cartesian(np.array(estimates)), smooth_scenario['ground_truth'])
        assert errors[0] < 0.5
        assert errors[1] < 0.5

    def test_deterministic(self, scenario):
        first, second = StateEstimator(), StateEstimator()
        run(first, scenario['measurements'])
        run(second, scenario['measurements'])

        np.testing.assert_array_equal(first.x, second.x)
        np.testing.assert_array_equal(first.P, second.P)
        np.testing.assert_array_equal(first.nis.radar, second.nis.radar)

    def test_reset(self, scenario):
        estimator = StateEstimator()
        run(estimator, scenario['measurements'][:10])
        estimator.reset()

        assert not estimator.is_initialized
        assert estimator.time_us is None
        result = estimator.process_measurement(scenario['measurements'][10])
        assert result.status is ProcessStatus.INITIALIZED
