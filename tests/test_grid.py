import numpy as np
import pytest

from fluid2d.grid import FluidGrid, MAX_CELLS, pin_boundary, extend_boundary


@pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-1, 5), (5, -3)])
def test_rejects_non_positive_dimensions(width, height):
    with pytest.raises(ValueError):
        FluidGrid(width, height)


@pytest.mark.parametrize("width,height", [(2.5, 4), (4, "8"), (True, 4)])
def test_rejects_non_integer_dimensions(width, height):
    with pytest.raises(ValueError):
        FluidGrid(width, height)


def test_rejects_grid_too_large_to_index():
    with pytest.raises(ValueError):
        FluidGrid(MAX_CELLS, 2)
    with pytest.raises(ValueError):
        FluidGrid(np.int32(65536), np.int32(65536))


def test_fields_start_at_zero_with_flat_length():
    g = FluidGrid(7, 4)
    for field in (g.density, g.velocity_x, g.velocity_y):
        assert field.shape == (28,)
        assert field.dtype == np.float32
        assert not field.any()


def test_index_is_row_major():
    g = FluidGrid(7, 4)
    assert g.index(0, 0) == 0
    assert g.index(3, 0) == 3
    assert g.index(0, 1) == 7
    assert g.index(6, 3) == 27


@pytest.mark.parametrize("x,y", [(7, 0), (0, 4), (-1, 0), (0, -1), (100, 100), (1.5, 1), (None, 0)])
def test_index_out_of_range_is_none(x, y):
    assert FluidGrid(7, 4).index(x, y) is None


def test_view_shares_memory_with_flat_field():
    g = FluidGrid(5, 3)
    g.add_density(4, 1, 2.0)
    assert g.view(g.density)[1, 4] == 2.0
    g.view(g.density)[2, 0] = 3.0
    assert g.density[g.index(0, 2)] == 3.0


def test_add_density_accumulates_without_clamping():
    g = FluidGrid(5, 5)
    g.add_density(2, 3, 1e6)
    g.add_density(2, 3, 1e6)
    g.add_density(2, 3, -5.0)
    assert g.density_at(2, 3) == pytest.approx(2e6 - 5.0)


def test_add_velocity_touches_both_components():
    g = FluidGrid(5, 5)
    g.add_velocity(1, 2, 0.5, -1.5)
    g.add_velocity(1, 2, 0.25, 0.0)
    assert g.velocity_at(1, 2) == pytest.approx((0.75, -1.5))
    assert g.velocity_at(2, 1) == (0.0, 0.0)


def test_out_of_range_injection_is_a_no_op():
    g = FluidGrid(5, 5)
    g.add_density(5, 0, 1.0)
    g.add_density(0, 5, 1.0)
    g.add_density(-1, 2, 1.0)
    g.add_velocity(9, 9, 1.0, 1.0)
    g.add_velocity(2, 2.5, 1.0, 1.0)
    assert not g.density.any()
    assert not g.velocity_x.any()
    assert not g.velocity_y.any()


def test_density_at_out_of_range_returns_zero():
    g = FluidGrid(5, 5)
    g.density[:] = 1.0
    assert g.density_at(5, 0) == 0.0
    assert g.density_at(0, 5) == 0.0
    assert g.density_at(-1, -1) == 0.0
    assert g.density_at("a", 0) == 0.0
    assert g.velocity_at(10**9, 0) == (0.0, 0.0)


def test_has_interior():
    assert FluidGrid(3, 3).has_interior
    assert not FluidGrid(2, 10).has_interior
    assert not FluidGrid(10, 2).has_interior
    assert not FluidGrid(1, 1).has_interior


def test_pin_boundary_zeroes_every_border_cell():
    x = np.ones((4, 5), dtype=np.float32)
    pin_boundary(x)
    assert not x[0].any() and not x[-1].any()
    assert not x[:, 0].any() and not x[:, -1].any()
    assert (x[1:-1, 1:-1] == 1.0).all()


def test_extend_boundary_copies_nearest_interior():
    x = np.zeros((4, 4), dtype=np.float32)
    x[1:-1, 1:-1] = [[1.0, 2.0], [3.0, 4.0]]
    extend_boundary(x)
    np.testing.assert_array_equal(x, [
        [1, 1, 2, 2],
        [1, 1, 2, 2],
        [3, 3, 4, 4],
        [3, 3, 4, 4],
    ])


def test_compute_divergence_of_a_ramp():
    g = FluidGrid(5, 5)
    # vx = x  →  vx[right] - vx[left] = 2 everywhere in the interior
    g.view(g.velocity_x)[:] = np.arange(5, dtype=np.float32)
    div = g.compute_divergence()
    np.testing.assert_allclose(div[1:-1, 1:-1], -0.5 * 2 / 5, rtol=1e-6)
    assert not div[0].any() and not div[:, 0].any()


def test_snapshot_is_a_copy():
    g = FluidGrid(4, 4)
    g.add_density(1, 1, 3.0)
    snap = g.snapshot()
    snap["density"][1, 1] = 99.0
    assert g.density_at(1, 1) == 3.0
    assert snap["velocity_x"].shape == (4, 4)


def test_swap_density_exchanges_buffers():
    g = FluidGrid(3, 3)
    live = g.density
    g.density_back()[:] = 7.0
    g.swap_density()
    assert g.density_at(2, 2) == 7.0
    assert g.density is not live


def test_reset_zeroes_everything():
    g = FluidGrid(4, 4)
    g.add_density(1, 1, 3.0)
    g.add_velocity(2, 2, 1.0, 1.0)
    g.reset()
    assert not g.density.any()
    assert not g.velocity_x.any()
    assert not g.velocity_y.any()


def test_repr_mentions_dimensions():
    assert "width=6, height=2" in repr(FluidGrid(6, 2))
