"""Tests for the append-only ray registry."""

import threading

import pytest

from src.optics2d.conic import circle
from src.optics2d.datatypes import ConicSurface, Ray
from src.optics2d.errors import TotalInternalReflectionError
from src.optics2d.registry import RayRecord, RayRegistry
from src.optics2d.trace import outgoing_rays, trace


class TestCreateAndGet:

    def test_indices_are_sequential(self):
        registry = RayRegistry()
        assert registry.create(0.0, 0.0, 1.0, 0.0) == 0
        assert registry.append(Ray(1.0, 1.0, 0.0, 1.0)) == 1
        assert len(registry) == 2

    def test_new_ray_is_unbounded(self):
        registry = RayRegistry()
        index = registry.create(0.0, 0.0, 1.0, 0.0)
        assert registry.get(index) == RayRecord(Ray(0.0, 0.0, 1.0, 0.0), None)

    def test_iteration_in_insertion_order(self):
        registry = RayRegistry()
        for x in range(3):
            registry.create(float(x), 0.0, 1.0, 0.0)
        assert [record.ray.x0 for record in registry] == [0.0, 1.0, 2.0]

    @pytest.mark.parametrize("index", [5, -1])
    def test_out_of_range_read_warns(self, index):
        registry = RayRegistry()
        registry.create(0.0, 0.0, 1.0, 0.0)
        with pytest.warns(RuntimeWarning, match="cannot read ray"):
            assert registry.get(index) is None


class TestSetEnd:

    def test_first_write_wins(self):
        registry = RayRegistry()
        index = registry.create(0.0, 0.0, 1.0, 0.0)
        assert registry.set_end(index, 2.0, 0.0)
        with pytest.warns(RuntimeWarning, match="already ends"):
            assert not registry.set_end(index, 5.0, 0.0)
        assert registry.get(index).end == (2.0, 0.0)

    def test_out_of_range_write_warns(self):
        registry = RayRegistry()
        with pytest.warns(RuntimeWarning, match="cannot end ray 0"):
            assert not registry.set_end(0, 1.0, 1.0)
        assert len(registry) == 0


class TestRecordInteraction:

    def _refraction(self):
        ray = Ray(-3.0, 0.5, 1.0, 0.0)
        result = trace(ray, ConicSurface(circle(1.0), 1.0, 1.5))
        return ray, result

    def test_bad_index_appends_nothing(self):
        registry = RayRegistry()
        ray, result = self._refraction()
        with pytest.warns(RuntimeWarning, match="cannot end ray 7"):
            new = registry.record_interaction(7, result, *outgoing_rays(ray, result))
        assert new == []
        assert len(registry) == 0

    def test_already_ended_appends_nothing(self):
        registry = RayRegistry()
        ray, result = self._refraction()
        index = registry.append(ray)
        registry.set_end(index, 0.0, 0.0)
        with pytest.warns(RuntimeWarning, match="already ends"):
            new = registry.record_interaction(index, result, *outgoing_rays(ray, result))
        assert new == []
        assert len(registry) == 1
        assert registry.get(index).end == (0.0, 0.0)

    def test_refraction_adds_two_rays(self):
        registry = RayRegistry()
        ray = Ray(-3.0, 0.5, 1.0, 0.0)
        index = registry.append(ray)
        result = trace(ray, ConicSurface(circle(1.0), 1.0, 1.5))

        new = registry.record_interaction(index, result, *outgoing_rays(ray, result))
        assert new == [1, 2]
        assert registry.get(index).end == (result.x_r, result.y_r)
        for i in new:
            record = registry.get(i)
            assert (record.ray.x0, record.ray.y0) == (result.x_r, result.y_r)
            assert record.end is None

    def test_total_internal_reflection_adds_one_ray(self):
        registry = RayRegistry()
        ray = Ray(0.0, 0.9, 1.0, 0.0)
        index = registry.append(ray)
        with pytest.raises(TotalInternalReflectionError) as info:
            trace(ray, ConicSurface(circle(1.0), 1.5, 1.0))

        new = registry.record_interaction(index, info.value, *outgoing_rays(ray, info.value))
        assert new == [1]
        assert registry.get(index).end == (info.value.x_r, info.value.y_r)


class TestConcurrentAppend:

    def test_parallel_creates_get_unique_indices(self):
        registry = RayRegistry()
        created = {}
        created_lock = threading.Lock()

        def worker(start):
            mine = {registry.create(float(start + i), 0.0, 1.0, 0.0): float(start + i)
                    for i in range(200)}
            with created_lock:
                created.update(mine)

        threads = [threading.Thread(target=worker, args=(t * 200,)) for t in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 1600
        assert sorted(created) == list(range(1600))
        # every ray sits at the index create() returned for it
        for index, x0 in created.items():
            assert registry.get(index).ray.x0 == x0
