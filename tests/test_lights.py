"""Tests for lights and shadow rays."""

import pytest
from phongtrace.vec3 import Vec3, Point3
from phongtrace.color import Color, WHITE
from phongtrace.primitives import Sphere
from phongtrace.scene import SceneNode
from phongtrace.lights import Light, shadow_fraction


def make_occluder(x=0.0, y=2.0, z=0.0, radius=0.5):
    root = SceneNode(0, 'root')
    ball = SceneNode(1, 'ball', Sphere())
    ball.scale(radius, radius, radius)
    ball.translate(x, y, z)
    root.add_child(ball)
    return root


class TestLight:
    """Test Light construction and sampling grid."""

    def test_point_light_single_sample(self):
        light = Light(WHITE, Point3(1, 2, 3))
        assert light.light_samples == [Point3(1, 2, 3)]
        assert light.num_samples == 1

    def test_soft_grid(self):
        light = Light(WHITE, Point3(0, 5, 0))
        light.set_soft(1.0, 3)

        assert light.num_samples == 9
        xs = sorted({round(s.x, 9) for s in light.light_samples})
        zs = sorted({round(s.z, 9) for s in light.light_samples})
        assert xs == [-1.0, 0.0, 1.0]
        assert zs == [-1.0, 0.0, 1.0]
        assert all(s.y == 5 for s in light.light_samples)

    def test_soft_grid_corners(self):
        light = Light(WHITE, Point3(0, 0, 0), radius=2.0, samples=2)
        assert set(s.to_tuple() for s in light.light_samples) == {
            (-2.0, 0.0, -2.0), (-2.0, 0.0, 2.0), (2.0, 0.0, -2.0), (2.0, 0.0, 2.0)
        }

    def test_zero_radius_is_point(self):
        light = Light(WHITE, Point3(0, 5, 0))
        light.set_soft(0.0, 4)
        assert light.light_samples == [Point3(0, 5, 0)]

    def test_single_sample_is_point(self):
        light = Light(WHITE, Point3(0, 5, 0))
        light.set_soft(3.0, 1)
        assert light.light_samples == [Point3(0, 5, 0)]

    def test_invalid_soft_parameters(self):
        light = Light(WHITE, Point3(0, 0, 0))
        with pytest.raises(ValueError):
            light.set_soft(-1.0, 2)
        with pytest.raises(ValueError):
            light.set_soft(1.0, 0)

    def test_attenuation(self):
        light = Light(WHITE, Point3(0, 0, 0), falloff=(1, 2, 3))
        assert light.attenuation(2.0) == 1 + 4 + 12

    def test_falloff_must_have_three_terms(self):
        with pytest.raises(ValueError):
            Light(WHITE, Point3(0, 0, 0), falloff=(1, 0))

    def test_falloff_all_zero_rejected(self):
        with pytest.raises(ValueError):
            Light(WHITE, Point3(0, 0, 0), falloff=(0, 0, 0))

    def test_negative_falloff_rejected(self):
        with pytest.raises(ValueError):
            Light(WHITE, Point3(0, 0, 0), falloff=(1, -1, 0))


class TestShadowFraction:
    """Test shadow ray occlusion."""

    def test_unoccluded(self):
        light = Light(WHITE, Point3(3, 5, 0))
        assert shadow_fraction(Point3(3, 0, 0), light, make_occluder()) == 1.0

    def test_fully_occluded(self):
        light = Light(WHITE, Point3(0, 5, 0))
        assert shadow_fraction(Point3(0, 0, 0), light, make_occluder()) == 0.0

    def test_occluder_beyond_light_does_not_shadow(self):
        light = Light(WHITE, Point3(0, 1, 0))
        assert shadow_fraction(Point3(0, 0, 0), light, make_occluder()) == 1.0

    def test_penumbra(self):
        # Only the centre sample of the 3x3 grid is blocked
        light = Light(WHITE, Point3(0, 5, 0))
        light.set_soft(2.0, 3)
        fraction = shadow_fraction(Point3(0, 0, 0), light, make_occluder())
        assert fraction == pytest.approx(8 / 9)

    def test_fraction_in_range(self):
        light = Light(WHITE, Point3(0, 5, 0))
        light.set_soft(0.6, 4)
        fraction = shadow_fraction(Point3(0, 0, 0), light, make_occluder())
        assert 0.0 <= fraction <= 1.0

    def test_sample_at_point_counts_as_lit(self):
        light = Light(WHITE, Point3(0, 0, 0))
        assert shadow_fraction(Point3(0, 0, 0), light, make_occluder()) == 1.0
