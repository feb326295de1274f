"""
Tests for CropSession.

Tests cover:
- Initial centered square
- Ordered drag moves and rejected moves
- Display-space drags
- Re-center and reset controls
"""

import pytest

from SB_Libs.CropLib.crop_geometry import CropRectangle
from SB_Libs.CropLib.crop_session import CropSession


class TestCropSession:
    """Tests for CropSession class."""

    def test_starts_with_centered_square(self):
        session = CropSession(800, 600)

        assert session.rect == CropRectangle(100, 0, 700, 600)
        assert not session.is_dragging

    def test_drag_lifecycle(self):
        session = CropSession(800, 600)

        session.drag_start(10, 10)
        assert session.is_dragging

        session.drag_move(-50, 0)
        session.drag_end()

        assert not session.is_dragging
        assert session.rect == CropRectangle(50, 0, 650, 600)

    def test_moves_apply_in_order(self):
        """A rejected move in the middle does not affect the moves after it."""
        session = CropSession(800, 600)

        session.drag_move(-60, 0)   # left 40
        session.drag_move(-60, 0)   # would be -20: rejected
        session.drag_move(-40, 0)   # left 0

        assert session.rect.left == 0
        assert session.rect.right == 600

    def test_rejected_move_keeps_rect(self):
        session = CropSession(800, 600)
        before = session.rect

        session.drag_move(0, 5)

        assert session.rect == before

    def test_drag_move_display_scales_delta(self):
        """A 10px drag on a half-size canvas moves 20 image pixels."""
        session = CropSession(800, 600)

        session.drag_move_display(-10, 0, 400, 300)

        assert session.rect.left == pytest.approx(80)

    def test_recenter_after_drag(self):
        session = CropSession(800, 600)
        session.drag_move(-100, 0)

        session.recenter()

        assert session.rect == CropRectangle(100, 0, 700, 600)

    def test_reset(self):
        session = CropSession(1000, 400)
        session.drag_move(200, 0)

        session.reset()

        assert session.rect == CropRectangle(300, 0, 700, 400)

    def test_grid_is_in_display_space(self):
        session = CropSession(800, 600)

        lines = session.grid(400, 300)

        # Display rect is (50, 0, 350, 300); first vertical guide at 150.
        assert lines[0] == ((pytest.approx(150), pytest.approx(0)), (pytest.approx(150), pytest.approx(300)))
