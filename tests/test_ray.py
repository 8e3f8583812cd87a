"""Tests for Ray class."""

import pytest
from phongtrace.vec3 import Vec3, Point3, DegenerateGeometryError
from phongtrace.ray import Ray
from phongtrace.transform import Transform


class TestRay:

    def test_direction_is_normalized(self):
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -5))
        assert ray.dir == Vec3(0, 0, -1)

    def test_zero_direction_raises(self):
        with pytest.raises(DegenerateGeometryError):
            Ray(Point3(0, 0, 0), Vec3(0, 0, 0))

    def test_at(self):
        ray = Ray(Point3(1, 0, 0), Vec3(0, 2, 0))
        assert ray.at(3) == Point3(1, 3, 0)

    def test_between(self):
        ray = Ray.between(Point3(1, 1, 1), Point3(1, 1, 4))
        assert ray.src == Point3(1, 1, 1)
        assert ray.dir == Vec3(0, 0, 1)

    def test_transformed_renormalizes(self):
        ray = Ray(Point3(0, 0, 0), Vec3(1, 0, 0))
        moved = ray.transformed(Transform.translation(0, 1, 0) @ Transform.scaling(3, 1, 1))
        assert moved.src == Point3(0, 1, 0)
        assert moved.dir == Vec3(1, 0, 0)
        assert abs(moved.dir.length() - 1.0) < 1e-12
