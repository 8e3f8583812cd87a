"""Tests for Raytracer class."""

import os
import pytest
import numpy as np
from PIL import Image

from phongtrace.vec3 import Vec3, Point3, DegenerateGeometryError
from phongtrace.color import Color, BLACK, WHITE
from phongtrace.ray import Ray
from phongtrace.primitives import Sphere
from phongtrace.scene import SceneNode
from phongtrace.materials import PhongMaterial
from phongtrace.lights import Light
from phongtrace.volumes import VolumetricSolid, BoxVolume, SolidEffect
from phongtrace.renderer import Raytracer, RenderSettings, save_image


def sphere_scene(**settings):
    """Unit sphere lit from the upper right, seen from +z."""
    root = SceneNode(0, 'root')
    ball = SceneNode(1, 'ball', Sphere(),
                     PhongMaterial(Color(0.7, 0.7, 0.7), Color(0.5, 0.5, 0.5), 25))
    root.add_child(ball)

    settings.setdefault('stars', False)
    return Raytracer(
        root_node=root,
        eye=Point3(0, 0, 2),
        view=Point3(0, 0, -1),
        up=Vec3(0, 1, 0),
        fov_y=90,
        ambient=Color(0.1, 0.1, 0.1),
        lights=[Light(Color(0.9, 0.9, 0.9), Point3(2, 2, 2), (1, 0, 0))],
        settings=RenderSettings(**settings),
    )


def empty_scene(**settings):
    settings.setdefault('stars', False)
    return Raytracer(SceneNode(0, 'root'), settings=RenderSettings(**settings))


class TestRenderSettings:
    """Test RenderSettings configuration."""

    def test_default_values(self):
        settings = RenderSettings()
        assert settings.supersampling == 1
        assert settings.shadows is True
        assert settings.textures is True
        assert settings.phong_lighting is True
        assert settings.stars is True
        assert settings.seed is None

    def test_auto_thread_detection(self):
        settings = RenderSettings(num_threads=0)
        assert settings.num_threads == (os.cpu_count() or 4)

    def test_invalid_supersampling(self):
        with pytest.raises(ValueError):
            RenderSettings(supersampling=0)

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            RenderSettings(width=0)

    def test_invalid_tile_rows(self):
        with pytest.raises(ValueError):
            RenderSettings(tile_rows=0)


class TestCamera:

    def test_basis_is_orthonormal(self):
        rt = sphere_scene()
        u, v, w = rt.camera_basis()
        assert u == Vec3(1, 0, 0)
        assert v == Vec3(0, 1, 0)
        assert w == Vec3(0, 0, 1)

    def test_basis_for_tilted_view(self):
        rt = sphere_scene()
        rt.eye = Point3(3, 1, 2)
        rt.view = Point3(0, 0, 0)
        u, v, w = rt.camera_basis()
        for a, b in ((u, v), (v, w), (u, w)):
            assert abs(a.dot(b)) < 1e-12
        assert v.y > 0

    def test_centre_ray_looks_at_view(self):
        rt = sphere_scene()
        ray = rt.primary_ray(32, 32, 64, 64, rt.camera_basis())
        assert ray.src == Point3(0, 0, 2)
        assert ray.dir == Vec3(0, 0, -1)

    def test_top_left_ray(self):
        rt = sphere_scene()
        ray = rt.primary_ray(0, 0, 64, 64, rt.camera_basis())
        # fov 90: the image plane spans [-1, 1] at distance 1
        assert ray.dir == Vec3(-1, 1, -1).normalize()

    def test_aspect_ratio_widens_horizontally(self):
        rt = sphere_scene()
        ray = rt.primary_ray(0, 50, 200, 100, rt.camera_basis())
        assert ray.dir == Vec3(-2, 0, -1).normalize()

    def test_up_parallel_to_view_is_degenerate(self):
        rt = sphere_scene()
        rt.up = Vec3(0, 0, 1)
        with pytest.raises(DegenerateGeometryError):
            rt.camera_basis()


class TestRaytracerDefaults:

    def test_camera_defaults(self):
        rt = Raytracer(SceneNode(0, 'root'))
        assert rt.eye == Point3(0, 0, 0)
        assert rt.view == Point3(0, 0, -1)
        assert rt.up == Vec3(0, 1, 0)
        assert rt.ambient == BLACK

    def test_defaults_not_shared(self):
        a = Raytracer(SceneNode(0, 'a'))
        b = Raytracer(SceneNode(1, 'b'))
        assert a.eye is not b.eye
        assert a.up is not b.up
        assert a.ambient is not b.ambient


class TestBackground:

    def test_gradient_starts_black(self):
        rt = empty_scene()
        assert rt.background_color(0, 100) == BLACK
        assert rt.background_color(20, 100) == BLACK

    def test_gradient_increases_downward(self):
        rt = empty_scene()
        colors = [rt.background_color(y, 100) for y in range(20, 100, 10)]
        blues = [c.b for c in colors]
        assert blues == sorted(blues)
        assert colors[-1].b > colors[-1].g > colors[-1].r

    def test_gradient_value(self):
        rt = empty_scene()
        c = rt.background_color(70, 100)
        assert c == Color(67 / 255 * 0.5, 133 / 255 * 0.5, 0.5)

    def test_stars_are_grey_and_sparse(self):
        import random
        rt = empty_scene(stars=True)
        rng = random.Random(1)
        colors = [rt.background_color(5, 100, rng) for _ in range(20000)]
        stars = [c for c in colors if c != BLACK]
        assert 0 < len(stars) < 300
        for c in stars:
            assert c.r == c.g == c.b
            assert 55 / 255 - 1e-9 <= c.r <= 1.0

    def test_no_stars_low_in_the_sky(self):
        import random
        rt = empty_scene(stars=True)
        rng = random.Random(2)
        expected = rt.background_color(90, 100)
        assert all(rt.background_color(90, 100, rng) == expected for _ in range(2000))


class TestRender:

    def test_sphere_image(self):
        rt = sphere_scene(num_threads=1)
        image = rt.render_image(64, 64)

        assert image.shape == (64, 64, 3)
        assert image.dtype == np.uint8

        # Sphere covers the centre; the top corners show black sky
        assert tuple(image[32, 32]) != tuple(image[0, 0])
        assert tuple(image[0, 0]) == (0, 0, 0)
        assert tuple(image[0, 63]) == (0, 0, 0)

    def test_silhouette_is_centred(self):
        rt = sphere_scene(num_threads=1)
        image = rt.render_image(64, 64).astype(int)

        # Background only depends on the row; column 0 never sees the sphere
        mask = np.any(image != image[:, :1, :], axis=2)
        cols = np.flatnonzero(mask.any(axis=0))
        rows = np.flatnonzero(mask.any(axis=1))
        assert abs((cols.min() + cols.max()) / 2 - 31.5) <= 1
        assert abs((rows.min() + rows.max()) / 2 - 31.5) <= 1

    def test_lit_from_upper_right(self):
        rt = sphere_scene(num_threads=1)
        image = rt.render_image(64, 64).astype(int)

        upper_right = image[22, 42].sum()
        lower_left = image[42, 22].sum()
        assert upper_right > lower_left

    def test_threads_match_single_thread(self):
        single = sphere_scene(num_threads=1).render_image(24, 16)
        multi = sphere_scene(num_threads=4, tile_rows=3).render_image(24, 16)
        assert np.array_equal(single, multi)

    def test_seeded_stars_reproducible(self):
        a = empty_scene(stars=True, seed=42, num_threads=2).render_image(32, 32)
        b = empty_scene(stars=True, seed=42, num_threads=3, tile_rows=8).render_image(32, 32)
        assert np.array_equal(a, b)

    def test_supersampling_smooths_edges(self):
        plain = sphere_scene(num_threads=1).render_image(32, 32).astype(int)
        smooth = sphere_scene(num_threads=1, supersampling=3).render_image(32, 32).astype(int)

        assert plain.shape == smooth.shape
        # Interior pixels stay close; edge pixels pick up intermediate values
        assert abs(plain[16, 16] - smooth[16, 16]).max() <= 12
        assert not np.array_equal(plain, smooth)

    def test_volumes_applied_after_shading(self):
        rt = empty_scene(num_threads=1)
        red = Color(1, 0, 0)
        rt.volumes = [VolumetricSolid(BoxVolume(Point3(-10, -10, -10), Vec3(20, 20, 20)),
                                      SolidEffect(red))]
        image = rt.render_image(8, 8)
        assert (image == np.array([255, 0, 0], dtype=np.uint8)).all()

    def test_progress_reaches_one(self):
        rt = sphere_scene(num_threads=2, tile_rows=2)
        updates = []
        rt.set_progress_callback(updates.append)
        rt.render_image(8, 8)

        assert len(updates) == 8
        assert max(updates) == 1.0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            sphere_scene().render_image(0, 10)

    def test_render_writes_file(self, tmp_path):
        rt = sphere_scene(num_threads=1)
        path = tmp_path / "out" / "ball.png"
        image = rt.render(str(path), 16, 12)

        assert path.exists()
        with Image.open(path) as img:
            assert img.size == (16, 12)
            assert np.array_equal(np.array(img), image)


class TestSaveImage:

    def test_rejects_float_buffer(self, tmp_path):
        with pytest.raises(ValueError):
            save_image(np.zeros((4, 4, 3)), str(tmp_path / "x.png"))

    def test_round_trip(self, tmp_path):
        buf = np.zeros((2, 3, 3), dtype=np.uint8)
        buf[1, 2] = (10, 20, 30)
        path = tmp_path / "x.png"
        save_image(buf, str(path))

        with Image.open(path) as img:
            assert tuple(np.array(img)[1, 2]) == (10, 20, 30)
