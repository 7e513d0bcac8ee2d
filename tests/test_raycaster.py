import io
import numpy as np
import pytest
from conftest import BLUE, GREEN, GREY, RED, backdrop, make_scene
from meshcaster.camera import build_camera_basis, primary_directions
from meshcaster.config import RenderConfig
from meshcaster.framebuffer import to_bytes
from meshcaster.raycaster import RayCaster
from meshcaster.scene import Color, Mesh
from meshcaster.scenes import box_scene, quad_scene, showcase_scene


def test_empty_scene_is_black(origin, forward):
    caster = RayCaster(make_scene(xres=8, yres=6))
    caster.ray_trace(origin, forward)
    assert caster.pixels.shape == (6, 8, 3)
    assert not caster.pixels.any()
    assert caster.data.shape == (8 * 6 * 3,)
    assert not caster.data.any()


def test_full_screen_triangle_depth(origin, forward):
    caster = RayCaster(make_scene([backdrop(-5.0, GREY)], xres=16, yres=12))
    basis = build_camera_basis(origin, forward, 16, 12)
    directions = primary_directions(basis, 16, 12).reshape(-1, 3)
    hits = caster.intersector.intersect(origin, directions)
    assert hits.hit.all()
    np.testing.assert_allclose(hits.point[:, 2], -5.0, atol=1e-9)


def test_render_is_deterministic():
    demo = showcase_scene(xres=32, yres=24)
    caster = RayCaster(demo.scene)
    first = caster.render(demo.eye, demo.center, yview=demo.yview).copy()
    caster.ray_trace(demo.eye, demo.center, yview=demo.yview)
    np.testing.assert_array_equal(caster.framebuffer.bytes(), first)
    np.testing.assert_array_equal(RayCaster(demo.scene).render(demo.eye, demo.center, yview=demo.yview), first)


@pytest.mark.parametrize("accelerator", ["linear", "bvh"])
def test_nearer_triangle_color_wins(origin, forward, accelerator):
    config = RenderConfig(accelerator=accelerator)
    for meshes in ([backdrop(-3.0, RED), backdrop(-5.0, GREEN)],
                   [backdrop(-5.0, GREEN), backdrop(-3.0, RED)]):
        caster = RayCaster(make_scene(meshes), config)
        caster.ray_trace(origin, forward)
        np.testing.assert_allclose(caster.pixels.reshape(-1, 3), np.tile(RED, (48, 1)))


def test_equal_depth_first_mesh_wins(origin, forward):
    caster = RayCaster(make_scene([backdrop(-5.0, BLUE), backdrop(-5.0, RED)]))
    caster.ray_trace(origin, forward)
    np.testing.assert_allclose(caster.pixels.reshape(-1, 3), np.tile(BLUE, (48, 1)))


@pytest.mark.parametrize("accelerator", ["linear", "bvh"])
def test_disabling_shadows_keeps_unoccluded_pixels(accelerator):
    demo = box_scene(xres=40, yres=30)
    config = RenderConfig(accelerator=accelerator)
    on = RayCaster(demo.scene, config)
    off = RayCaster(demo.scene.with_shadows(False), config)
    on.ray_trace(demo.eye, demo.center)
    off.ray_trace(demo.eye, demo.center)

    basis = build_camera_basis(demo.eye, demo.center, 40, 30)
    directions = primary_directions(basis, 40, 30).reshape(-1, 3)
    primary = on.intersector.intersect(demo.eye, directions).color.reshape(30, 40, 3)

    unoccluded = np.all(on.pixels == primary, axis=-1)
    assert unoccluded.any() and not unoccluded.all()
    np.testing.assert_array_equal(off.pixels[unoccluded], on.pixels[unoccluded])
    np.testing.assert_array_equal(off.pixels, primary)


def test_visible_light_is_white_even_when_shadowed(origin, forward):
    occluder = Mesh.from_triangles([[[-2.0, -2.0, -7.0], [2.0, -2.0, -7.0], [0.0, 2.0, -7.0]]],
                                   color=Color(diffuse=BLUE))
    scene = make_scene([backdrop(-5.0, GREY), occluder], lights=[[0.0, 0.0, -10.0]],
                       xres=5, yres=5, shadows=True)
    caster = RayCaster(scene)
    caster.ray_trace(origin, forward)

    np.testing.assert_array_equal(caster.pixels[2, 2], [1.0, 1.0, 1.0])
    np.testing.assert_allclose(caster.pixels[2, 3], 0.5 * BLUE)
    np.testing.assert_allclose(caster.pixels[0, 0], GREY)


def test_bytes_follow_floats_with_row_flip():
    demo = showcase_scene(xres=24, yres=18)
    caster = RayCaster(demo.scene)
    caster.ray_trace(demo.eye, demo.center, yview=demo.yview)
    expected = np.floor(np.clip(caster.pixels, 0.0, 1.0) * 255).astype(np.uint8)
    np.testing.assert_array_equal(caster.data, expected[::-1].ravel())
    np.testing.assert_array_equal(caster.framebuffer.bytes(), to_bytes(caster.pixels))


def test_solid_color_ppm_scenario(origin, forward):
    demo = quad_scene(xres=4, yres=3, color=Color(diffuse=[1.0, 0.5, 0.0]))
    caster = RayCaster(demo.scene)
    caster.ray_trace(origin, forward)

    out = io.StringIO()
    caster.print_ppm(out)
    row = "255 127 0 " * 4 + "\n"
    assert out.getvalue() == "P3\n4 3 \n255\n" + row * 3


def test_bvh_render_matches_linear_without_shadows():
    demo = showcase_scene(xres=40, yres=30, shadows=False)
    linear = RayCaster(demo.scene, RenderConfig(accelerator="linear"))
    bvh = RayCaster(demo.scene, RenderConfig(accelerator="bvh", bvh_leaf_size=2))
    linear.ray_trace(demo.eye, demo.center, yview=demo.yview)
    bvh.ray_trace(demo.eye, demo.center, yview=demo.yview)
    np.testing.assert_array_equal(bvh.pixels, linear.pixels)


def test_new_render_overwrites_previous(origin, forward):
    caster = RayCaster(make_scene([backdrop(-5.0, GREY)]))
    caster.ray_trace(origin, forward)
    assert caster.pixels.any()
    caster.ray_trace(origin, -forward)
    assert not caster.pixels.any()


def test_normalize_image(origin, forward):
    caster = RayCaster(make_scene([backdrop(-5.0, [0.25, 0.5, 0.1])]))
    caster.ray_trace(origin, forward)
    caster.normalize_image()
    np.testing.assert_allclose(caster.pixels[0, 0], [0.5, 1.0, 0.2])


def test_export_through_caster(origin, forward, tmp_path):
    caster = RayCaster(make_scene([backdrop(-5.0, GREY)]))
    caster.ray_trace(origin, forward)
    assert caster.export_image(str(tmp_path / "out.png"), "PNG")
    assert caster.export_image(str(tmp_path / "out.jpg"), "jpg")
    assert not caster.export_image(str(tmp_path / "nowhere" / "out.png"))


@pytest.mark.parametrize("policy", ["darkest", "last"])
def test_bvh_render_matches_linear_with_shadows(policy):
    demo = showcase_scene(xres=40, yres=30)
    assert demo.scene.shadows
    linear = RayCaster(demo.scene, RenderConfig(accelerator="linear", shadow_policy=policy))
    bvh = RayCaster(demo.scene, RenderConfig(accelerator="bvh", bvh_leaf_size=1, shadow_policy=policy))
    linear.ray_trace(demo.eye, demo.center, yview=demo.yview)
    bvh.ray_trace(demo.eye, demo.center, yview=demo.yview)
    np.testing.assert_array_equal(bvh.pixels, linear.pixels)


@pytest.mark.parametrize("accelerator", ["linear", "bvh"])
def test_assigning_a_scene_rebuilds_geometry(origin, forward, accelerator):
    caster = RayCaster(make_scene([backdrop(-5.0, GREY)]), RenderConfig(accelerator=accelerator))
    caster.ray_trace(origin, forward)

    caster.scene = make_scene([backdrop(-5.0, RED), backdrop(-3.0, BLUE)], xres=4, yres=2)
    assert len(caster.soup) == 2
    caster.ray_trace(origin, forward)
    assert caster.pixels.shape == (2, 4, 3)
    np.testing.assert_allclose(caster.pixels.reshape(-1, 3), np.tile(BLUE, (8, 1)))
